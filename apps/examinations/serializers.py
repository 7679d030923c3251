from rest_framework import serializers
from django.contrib.auth import get_user_model

from .exceptions import ExamEngineError
from .grading_service import check_answer_shape
from .models import Exam, Question, Submission, Answer

User = get_user_model()


class UserRegistrationSerializer(serializers.ModelSerializer):
    """Registration with password hashing via set_password."""
    password = serializers.CharField(write_only=True, min_length=8)
    role = serializers.ChoiceField(
        choices=[User.Role.STUDENT, User.Role.TEACHER, User.Role.PARENT],
        default=User.Role.STUDENT
    )

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'password', 'role']

    def create(self, validated_data):
        user = User(
            username=validated_data['username'],
            email=validated_data['email'],
            first_name=validated_data.get('first_name', ''),
            last_name=validated_data.get('last_name', ''),
            role=validated_data['role']
        )
        user.set_password(validated_data['password'])
        user.save()
        return user


class QuestionSerializer(serializers.ModelSerializer):
    """
    Public question view - no correct answer and no option flags.
    Students must never see answers before submission.
    """
    options = serializers.SerializerMethodField()

    class Meta:
        model = Question
        fields = ['id', 'question_text', 'question_type', 'options', 'marks', 'negative_marks']

    def get_options(self, obj):
        return [{'text': option.get('text', '')} for option in obj.options]


class OptionSerializer(serializers.Serializer):
    text = serializers.CharField()
    is_correct = serializers.BooleanField(default=False)


class QuestionDetailSerializer(serializers.ModelSerializer):
    """
    Authoring view - includes the correct answer.
    The correct answer is checked with the same shape rules used to
    evaluate student answers.
    """
    options = serializers.ListField(child=OptionSerializer(), required=False)

    class Meta:
        model = Question
        fields = ['id', 'question_text', 'question_type', 'options', 'correct_answer',
                  'marks', 'negative_marks', 'explanation', 'created_by',
                  'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate(self, attrs):
        question_type = attrs.get('question_type', getattr(self.instance, 'question_type', None))
        correct_answer = attrs.get('correct_answer', getattr(self.instance, 'correct_answer', None))

        if question_type == Question.QuestionType.ESSAY:
            # Optional model answer for the grader
            if correct_answer is not None and not isinstance(correct_answer, str):
                raise serializers.ValidationError(
                    {'correct_answer': 'Essay model answers must be text.'}
                )
            return attrs

        if correct_answer is None:
            raise serializers.ValidationError(
                {'correct_answer': 'This question type needs a correct answer.'}
            )
        try:
            check_answer_shape(question_type, correct_answer)
        except ExamEngineError as exc:
            raise serializers.ValidationError({'correct_answer': exc.message})
        return attrs


class ExamListSerializer(serializers.ModelSerializer):
    """Lightweight exam listing for browse view."""
    question_count = serializers.SerializerMethodField()

    class Meta:
        model = Exam
        fields = ['id', 'title', 'subject', 'duration_minutes', 'question_count',
                  'total_marks', 'passing_marks', 'start_date', 'end_date',
                  'is_published', 'created_at']

    def get_question_count(self, obj):
        return obj.questions.count()


class ExamDetailSerializer(serializers.ModelSerializer):
    """Full exam with public questions for the take-exam view."""
    questions = QuestionSerializer(many=True, read_only=True)

    class Meta:
        model = Exam
        fields = ['id', 'title', 'subject', 'duration_minutes', 'instructions',
                  'total_marks', 'passing_marks', 'start_date', 'end_date',
                  'allow_multiple_attempts', 'max_attempts', 'show_results_immediately',
                  'show_correct_answers', 'is_published', 'is_active', 'questions',
                  'created_at']


class ExamWriteSerializer(serializers.ModelSerializer):
    eligible_students = serializers.PrimaryKeyRelatedField(
        many=True,
        required=False,
        queryset=User.objects.filter(role=User.Role.STUDENT)
    )

    class Meta:
        model = Exam
        fields = ['id', 'title', 'subject', 'instructions', 'duration_minutes',
                  'passing_marks', 'start_date', 'end_date', 'allow_multiple_attempts',
                  'max_attempts', 'show_results_immediately', 'show_correct_answers',
                  'eligible_students', 'is_active']

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end <= start:
            raise serializers.ValidationError({'end_date': 'End date must be after start date.'})
        return attrs


class ExamQuestionsSerializer(serializers.Serializer):
    question_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class StartAttemptSerializer(serializers.Serializer):
    exam_id = serializers.UUIDField()


class AnswerSubmissionSerializer(serializers.Serializer):
    """
    Validates one incoming answer. The payload shape is checked by the
    evaluator against the question type.
    """
    question_id = serializers.UUIDField()
    answer = serializers.JSONField()
    time_taken = serializers.IntegerField(min_value=0, default=0)


class BulkAnswerSerializer(serializers.Serializer):
    answers = AnswerSubmissionSerializer(many=True, allow_empty=False)

    def validate_answers(self, value):
        """Ensure no duplicate question_ids in one request."""
        question_ids = [a['question_id'] for a in value]
        if len(question_ids) != len(set(question_ids)):
            raise serializers.ValidationError(
                "Block double answers for the same question."
            )
        return value


class GradeAnswerSerializer(serializers.Serializer):
    question_id = serializers.UUIDField()
    marks = serializers.FloatField(min_value=0)
    feedback = serializers.CharField(required=False, allow_blank=True, default='')


class AnswerDetailSerializer(serializers.ModelSerializer):
    """
    Answer view for results.
    Includes question context for review.
    """
    question_id = serializers.UUIDField(source='question.id', read_only=True)
    question_text = serializers.CharField(source='question.question_text', read_only=True)
    question_type = serializers.CharField(source='question.question_type', read_only=True)
    marks_possible = serializers.IntegerField(source='question.marks', read_only=True)
    correct_answer = serializers.JSONField(source='question.correct_answer', read_only=True)

    class Meta:
        model = Answer
        fields = ['id', 'question_id', 'question_text', 'question_type', 'response',
                  'time_taken', 'is_correct', 'marks_awarded', 'marks_possible',
                  'correct_answer', 'is_reviewed', 'teacher_feedback']


SCORE_FIELDS = ['marks_obtained', 'percentage', 'grade', 'is_passed']
ANSWER_RESULT_FIELDS = ['is_correct', 'marks_awarded', 'teacher_feedback', 'correct_answer']


class ResultVisibilityMixin:
    """
    Hides scores from students until the exam releases them.
    Teachers managing the exam and admins always see everything.
    """

    def viewer_sees_everything(self, submission):
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        return bool(user and user.is_authenticated and user.can_manage(submission.exam))

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if self.viewer_sees_everything(instance):
            return data

        results_visible = instance.results_visible()
        if not results_visible:
            for field in SCORE_FIELDS:
                data.pop(field, None)

        for answer in data.get('answers', []):
            if not results_visible:
                for field in ANSWER_RESULT_FIELDS:
                    answer.pop(field, None)
            elif not instance.exam.show_correct_answers:
                answer.pop('correct_answer', None)
        return data


class SubmissionListSerializer(ResultVisibilityMixin, serializers.ModelSerializer):
    """Lightweight submission listing."""
    exam_title = serializers.CharField(source='exam.title', read_only=True)
    student = serializers.CharField(source='student.username', read_only=True)

    class Meta:
        model = Submission
        fields = ['id', 'exam', 'exam_title', 'student', 'attempt_number', 'status',
                  'submitted_at', 'marks_obtained', 'total_marks', 'percentage',
                  'grade', 'is_passed']


class SubmissionDetailSerializer(ResultVisibilityMixin, serializers.ModelSerializer):
    """
    Full submission with answers for result view.
    Optimized with select_related/prefetch_related in view.
    """
    exam_title = serializers.CharField(source='exam.title', read_only=True)
    student = serializers.CharField(source='student.username', read_only=True)
    answers = AnswerDetailSerializer(many=True, read_only=True)

    class Meta:
        model = Submission
        fields = ['id', 'exam', 'exam_title', 'student', 'attempt_number', 'status',
                  'start_time', 'end_time', 'submitted_at', 'time_taken',
                  'is_submitted', 'auto_submitted', 'total_marks', 'marks_obtained',
                  'percentage', 'grade', 'is_passed', 'is_graded', 'graded_at',
                  'answers']
