from django.urls import path
from .views import (
    RegisterView,
    LoginView,
    ExamListView,
    ExamDetailView,
    ExamQuestionsView,
    ExamPublishView,
    QuestionListCreateView,
    QuestionDetailView,
    StartAttemptView,
    RecordAnswerView,
    BulkAnswerView,
    SubmitExamView,
    GradeAnswerView,
    SubmissionListView,
    SubmissionDetailView,
)

urlpatterns = [
    # Authentication
    path('auth/register/', RegisterView.as_view(), name='register'),
    path('auth/login/', LoginView.as_view(), name='login'),

    # Exams
    path('exams/', ExamListView.as_view(), name='exam-list'),
    path('exams/<uuid:pk>/', ExamDetailView.as_view(), name='exam-detail'),
    path('exams/<uuid:pk>/questions/', ExamQuestionsView.as_view(), name='exam-questions'),
    path('exams/<uuid:pk>/publish/', ExamPublishView.as_view(), name='exam-publish'),

    # Questions
    path('questions/', QuestionListCreateView.as_view(), name='question-list'),
    path('questions/<uuid:pk>/', QuestionDetailView.as_view(), name='question-detail'),

    # Submissions
    path('submissions/', SubmissionListView.as_view(), name='submission-list'),
    path('submissions/start/', StartAttemptView.as_view(), name='submission-start'),
    path('submissions/<uuid:pk>/', SubmissionDetailView.as_view(), name='submission-detail'),
    path('submissions/<uuid:pk>/answers/', RecordAnswerView.as_view(), name='submission-answer'),
    path('submissions/<uuid:pk>/answers/bulk/', BulkAnswerView.as_view(), name='submission-answers-bulk'),
    path('submissions/<uuid:pk>/submit/', SubmitExamView.as_view(), name='submission-submit'),
    path('submissions/<uuid:pk>/grade/', GradeAnswerView.as_view(), name='submission-grade'),
]
