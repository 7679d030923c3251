import logging
import uuid

from rest_framework import status, generics
from rest_framework.exceptions import PermissionDenied
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.authtoken.models import Token
from django.contrib.auth import authenticate
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils import timezone

from .exceptions import (
    AlreadySubmitted,
    DeniedByPolicy,
    ExamEngineError,
    ExamLocked,
    InvalidGradingTarget,
    InvalidQuestionType,
    MalformedAnswer,
    NotFound,
    NotOwner,
    QuestionLocked,
)
from .models import Exam, Question, Submission
from .serializers import (
    UserRegistrationSerializer,
    QuestionDetailSerializer,
    ExamListSerializer,
    ExamDetailSerializer,
    ExamWriteSerializer,
    ExamQuestionsSerializer,
    StartAttemptSerializer,
    AnswerSubmissionSerializer,
    BulkAnswerSerializer,
    GradeAnswerSerializer,
    SubmissionListSerializer,
    SubmissionDetailSerializer,
)
from .submission_service import SubmissionService
from .permissions import IsStudent, IsTeacherOrAdmin, CanViewSubmission

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFound: status.HTTP_404_NOT_FOUND,
    DeniedByPolicy: status.HTTP_403_FORBIDDEN,
    AlreadySubmitted: status.HTTP_409_CONFLICT,
    InvalidQuestionType: status.HTTP_400_BAD_REQUEST,
    MalformedAnswer: status.HTTP_400_BAD_REQUEST,
    NotOwner: status.HTTP_403_FORBIDDEN,
    InvalidGradingTarget: status.HTTP_400_BAD_REQUEST,
    QuestionLocked: status.HTTP_409_CONFLICT,
    ExamLocked: status.HTTP_409_CONFLICT,
}


def error_response(exc):
    body = {'error': exc.message, 'code': exc.code}
    if isinstance(exc, DeniedByPolicy):
        body['reason'] = exc.reason
    return Response(body, status=ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST))


class RegisterView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = UserRegistrationSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            # Generate token for auto-login
            token, _ = Token.objects.get_or_create(user=user)
            return Response({
                'user_id': user.id,
                'username': user.username,
                'email': user.email,
                'role': user.role,
                'token': token.key
            }, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class LoginView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        username = request.data.get('username')
        password = request.data.get('password')

        if not username or not password:
            return Response(
                {'error': 'Username and password required'},
                status=status.HTTP_400_BAD_REQUEST
            )

        user = authenticate(username=username, password=password)

        if user:
            token, _ = Token.objects.get_or_create(user=user)
            return Response({
                'token': token.key,
                'user_id': user.id,
                'username': user.username,
                'role': user.role
            })

        return Response(
            {'error': 'Invalid credentials'},
            status=status.HTTP_401_UNAUTHORIZED
        )


class ExamListView(generics.ListCreateAPIView):
    """
    Students see exams currently available to them, teachers the exams
    they created, everyone else all exams.
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsTeacherOrAdmin()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return ExamWriteSerializer
        return ExamListSerializer

    def get_queryset(self):
        user = self.request.user
        queryset = Exam.objects.prefetch_related('questions')

        if user.is_student:
            now = timezone.now()
            return queryset.filter(
                is_published=True,
                is_active=True,
                start_date__lte=now,
                end_date__gte=now,
            ).filter(
                Q(eligible_students=user) | Q(eligible_students__isnull=True)
            ).distinct()
        if user.is_teacher:
            return queryset.filter(created_by=user)
        return queryset

    def perform_create(self, serializer):
        exam = serializer.save(created_by=self.request.user)
        logger.info("Exam created: %s by %s", exam.title, self.request.user.username)


class ExamDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    Anyone allowed to see the exam can read it; only its creator or an
    admin can edit or delete it. Exams with attempts cannot be deleted.
    """
    queryset = Exam.objects.prefetch_related('questions').all()
    lookup_field = 'pk'

    def get_permissions(self):
        if self.request.method in ('PUT', 'PATCH', 'DELETE'):
            return [IsAuthenticated(), IsTeacherOrAdmin()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        if self.request.method in ('PUT', 'PATCH'):
            return ExamWriteSerializer
        return ExamDetailSerializer

    def get_object(self):
        exam = super().get_object()
        user = self.request.user
        if user.is_student and not exam.is_available_for(user):
            raise PermissionDenied('Exam is not available for you')
        if (user.is_teacher or self.request.method != 'GET') and not user.can_manage(exam):
            raise PermissionDenied('Access denied')
        return exam

    def perform_update(self, serializer):
        exam = serializer.save()
        logger.info("Exam updated: %s by %s", exam.title, self.request.user.username)

    def destroy(self, request, *args, **kwargs):
        exam = self.get_object()
        if exam.submissions.exists():
            return error_response(ExamLocked('Exam already has attempts and cannot be deleted'))
        exam.delete()
        logger.info("Exam deleted: %s by %s", exam.title, request.user.username)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ExamQuestionsView(APIView):
    """Attach existing questions to an exam."""
    permission_classes = [IsAuthenticated, IsTeacherOrAdmin]

    def post(self, request, pk):
        exam = get_object_or_404(Exam, pk=pk)
        if not request.user.can_manage(exam):
            return error_response(NotOwner())
        # Attempts are scored against the total at the time they started
        if exam.submissions.exists():
            return error_response(ExamLocked())

        serializer = ExamQuestionsSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        question_ids = set(serializer.validated_data['question_ids'])
        questions = list(Question.objects.filter(pk__in=question_ids))
        if len(questions) != len(question_ids):
            return Response(
                {'error': 'Some questions not found'},
                status=status.HTTP_400_BAD_REQUEST
            )

        exam.questions.add(*questions)
        return Response({
            'exam_id': exam.id,
            'question_count': exam.questions.count(),
            'total_marks': exam.total_marks,
            'message': 'Questions added to exam successfully'
        })


class ExamPublishView(APIView):
    permission_classes = [IsAuthenticated, IsTeacherOrAdmin]

    def post(self, request, pk):
        exam = get_object_or_404(Exam, pk=pk)
        if not request.user.can_manage(exam):
            return error_response(NotOwner())

        if not exam.questions.exists():
            return Response(
                {'error': 'Cannot publish exam without questions'},
                status=status.HTTP_400_BAD_REQUEST
            )

        exam.is_published = True
        exam.save(update_fields=['is_published', 'updated_at'])
        logger.info("Exam published: %s by %s", exam.title, request.user.username)
        return Response(ExamDetailSerializer(exam).data)


class QuestionListCreateView(generics.ListCreateAPIView):
    permission_classes = [IsAuthenticated, IsTeacherOrAdmin]
    serializer_class = QuestionDetailSerializer

    def get_queryset(self):
        user = self.request.user
        if user.is_admin:
            return Question.objects.all()
        return Question.objects.filter(created_by=user)

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)


class QuestionDetailView(generics.RetrieveUpdateAPIView):
    """
    Questions answered in a submitted attempt are frozen; results are
    never rescored after the fact.
    """
    permission_classes = [IsAuthenticated, IsTeacherOrAdmin]
    serializer_class = QuestionDetailSerializer
    lookup_field = 'pk'

    def get_queryset(self):
        user = self.request.user
        if user.is_admin:
            return Question.objects.all()
        return Question.objects.filter(created_by=user)

    def update(self, request, *args, **kwargs):
        if self.get_object().is_frozen:
            return error_response(QuestionLocked())
        return super().update(request, *args, **kwargs)


class StartAttemptView(APIView):
    """
    Start an attempt, or resume the one already in progress.

    Identity comes from request.user, never from the payload.
    """
    permission_classes = [IsAuthenticated, IsStudent]

    def post(self, request):
        serializer = StartAttemptSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            submission, created = SubmissionService().start_attempt(
                serializer.validated_data['exam_id'],
                request.user
            )
        except ExamEngineError as exc:
            return error_response(exc)

        return Response({
            'message': 'Exam started successfully' if created else 'Exam resumed',
            'submission': SubmissionDetailSerializer(submission, context={'request': request}).data
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class RecordAnswerView(APIView):
    permission_classes = [IsAuthenticated, IsStudent]

    def post(self, request, pk):
        serializer = AnswerSubmissionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            submission = SubmissionService().record_answer(
                pk,
                data['question_id'],
                data['answer'],
                time_taken=data['time_taken'],
                student=request.user
            )
        except ExamEngineError as exc:
            return error_response(exc)

        return Response({
            'message': 'Answer saved successfully',
            'submission': SubmissionDetailSerializer(submission, context={'request': request}).data
        })


class BulkAnswerView(APIView):
    permission_classes = [IsAuthenticated, IsStudent]

    def post(self, request, pk):
        serializer = BulkAnswerSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            submission = SubmissionService().record_answers(
                pk,
                serializer.validated_data['answers'],
                student=request.user
            )
        except ExamEngineError as exc:
            return error_response(exc)

        return Response({
            'message': 'Answers saved successfully',
            'submission': SubmissionDetailSerializer(submission, context={'request': request}).data
        })


class SubmitExamView(APIView):
    permission_classes = [IsAuthenticated, IsStudent]

    def post(self, request, pk):
        try:
            submission = SubmissionService().finalize(pk, student=request.user)
        except ExamEngineError as exc:
            return error_response(exc)

        return Response({
            'message': 'Exam submitted successfully',
            'submission': SubmissionDetailSerializer(submission, context={'request': request}).data
        })


class GradeAnswerView(APIView):
    """Teacher scores one essay answer; totals are recomputed."""
    permission_classes = [IsAuthenticated, IsTeacherOrAdmin]

    def put(self, request, pk):
        serializer = GradeAnswerSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            submission = SubmissionService().grade_answer(
                pk,
                data['question_id'],
                data['marks'],
                feedback=data['feedback'],
                grader=request.user
            )
        except ExamEngineError as exc:
            return error_response(exc)

        return Response({
            'message': 'Submission graded successfully',
            'submission': SubmissionDetailSerializer(submission, context={'request': request}).data
        })


class SubmissionListView(generics.ListAPIView):
    """
    Role-filtered submission listing, optionally narrowed with ?exam=<id>.

    Optimization: select_related('exam', 'student') prevents N+1 lookups.
    """
    permission_classes = [IsAuthenticated]
    serializer_class = SubmissionListSerializer

    def get_queryset(self):
        user = self.request.user
        queryset = Submission.objects.select_related('exam', 'student')

        if user.is_admin:
            pass
        elif user.is_teacher:
            queryset = queryset.filter(exam__created_by=user)
        elif user.is_student:
            queryset = queryset.filter(student=user)
        else:
            return queryset.none()

        exam_id = self.request.query_params.get('exam')
        if exam_id:
            try:
                queryset = queryset.filter(exam_id=uuid.UUID(exam_id))
            except ValueError:
                return queryset.none()
        return queryset.order_by('-created_at')


class SubmissionDetailView(generics.RetrieveAPIView):
    permission_classes = [IsAuthenticated, CanViewSubmission]
    serializer_class = SubmissionDetailSerializer
    lookup_field = 'pk'

    def get_queryset(self):
        return Submission.objects.select_related(
            'exam',
            'student'
        ).prefetch_related(
            'answers__question'
        )
