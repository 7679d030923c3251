import uuid
from datetime import timedelta

from django.db import models
from django.db.models import Sum
from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator
from django.utils import timezone


class User(AbstractUser):
    class Role(models.TextChoices):
        STUDENT = 'student', 'Student'
        TEACHER = 'teacher', 'Teacher'
        PARENT = 'parent', 'Parent'
        ADMIN = 'admin', 'Admin'

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STUDENT)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['email'], name='users_email_idx'),
        ]

    @property
    def is_student(self):
        return self.role == self.Role.STUDENT

    @property
    def is_admin(self):
        return self.is_superuser or self.role == self.Role.ADMIN

    @property
    def is_teacher(self):
        return self.role == self.Role.TEACHER

    def can_manage(self, exam):
        """Admins manage every exam, teachers only the ones they created."""
        if self.is_admin:
            return True
        return self.is_teacher and exam.created_by_id == self.pk


class Question(models.Model):
    class QuestionType(models.TextChoices):
        SINGLE_CHOICE = 'single_choice', 'Single Choice'
        TRUE_FALSE = 'true_false', 'True/False'
        FILL_IN_BLANK = 'fill_in_blank', 'Fill in the Blank'
        ESSAY = 'essay', 'Essay'
        MATCHING = 'matching', 'Matching'
        ORDERING = 'ordering', 'Ordering'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    question_text = models.TextField()
    question_type = models.CharField(max_length=20, choices=QuestionType.choices)
    # [{"text": "...", "is_correct": bool}, ...] for choice types
    options = models.JSONField(default=list, blank=True)
    correct_answer = models.JSONField(null=True, blank=True)
    marks = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    negative_marks = models.PositiveIntegerField(default=0)
    explanation = models.TextField(blank=True)
    created_by = models.ForeignKey(
        'User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='authored_questions'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'questions'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['question_type'], name='questions_type_idx'),
        ]

    def __str__(self):
        return f"{self.get_question_type_display()}: {self.question_text[:50]}"

    @property
    def is_frozen(self):
        """True once the question has been answered in a submitted attempt."""
        return self.student_answers.filter(submission__is_submitted=True).exists()


class Exam(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    subject = models.CharField(max_length=100)
    instructions = models.TextField(blank=True)
    created_by = models.ForeignKey(
        'User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_exams'
    )
    questions = models.ManyToManyField(Question, related_name='exams', blank=True)
    duration_minutes = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    passing_marks = models.PositiveIntegerField(default=0)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()

    # Attempt settings
    allow_multiple_attempts = models.BooleanField(default=False)
    max_attempts = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    eligible_students = models.ManyToManyField(
        'User',
        related_name='eligible_exams',
        blank=True
    )

    # Result visibility for students
    show_results_immediately = models.BooleanField(default=False)
    show_correct_answers = models.BooleanField(default=False)

    is_published = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    total_attempts = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'exams'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['start_date', 'end_date'], name='exams_schedule_idx'),
            models.Index(fields=['is_published', 'is_active'], name='exams_visibility_idx'),
        ]

    def __str__(self):
        return f"{self.subject} - {self.title}"

    @property
    def total_marks(self):
        return self.questions.aggregate(total=Sum('marks'))['total'] or 0

    def is_available_for(self, student, now=None):
        """
        Active, published, inside the scheduling window, and either open
        to everyone or listing the student as eligible.
        """
        if not (self.is_active and self.is_published):
            return False

        now = now or timezone.now()
        if now < self.start_date or now > self.end_date:
            return False

        if self.eligible_students.exists():
            return self.eligible_students.filter(pk=student.pk).exists()
        return True


class Submission(models.Model):
    """
    One student's attempt at an exam.

    An attempt is in progress until finalized; `is_submitted` only ever
    flips false -> true. Scores are recomputed on finalize and after each
    manual essay grade. The unique constraint keeps attempt numbers
    dense per student and exam, which is what stops two concurrent starts
    from both creating the same next attempt.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    student = models.ForeignKey(
        'User',
        on_delete=models.CASCADE,
        related_name='submissions'
    )
    exam = models.ForeignKey(
        Exam,
        on_delete=models.CASCADE,
        related_name='submissions'
    )
    attempt_number = models.PositiveIntegerField(default=1)

    start_time = models.DateTimeField(default=timezone.now)
    end_time = models.DateTimeField(null=True, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    time_taken = models.PositiveIntegerField(null=True, blank=True)  # minutes
    is_submitted = models.BooleanField(default=False)
    auto_submitted = models.BooleanField(default=False)

    total_marks = models.PositiveIntegerField(default=0)
    marks_obtained = models.FloatField(default=0)
    percentage = models.IntegerField(default=0)
    grade = models.CharField(max_length=2, blank=True)
    is_passed = models.BooleanField(default=False)

    is_graded = models.BooleanField(default=False)
    graded_by = models.ForeignKey(
        'User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='graded_submissions'
    )
    graded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'submissions'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'exam', 'attempt_number'],
                name='unique_student_exam_attempt'
            )
        ]
        indexes = [
            models.Index(fields=['student', 'exam'], name='submissions_student_exam_idx'),
            models.Index(fields=['is_submitted'], name='submissions_submitted_idx'),
            models.Index(fields=['is_graded'], name='submissions_graded_idx'),
        ]

    def __str__(self):
        return f"{self.student.username} - {self.exam.title} (attempt {self.attempt_number})"

    @property
    def status(self):
        if not self.is_submitted:
            return 'in_progress'
        return 'graded' if self.is_graded else 'submitted'

    @property
    def deadline(self):
        return min(
            self.start_time + timedelta(minutes=self.exam.duration_minutes),
            self.exam.end_date
        )

    def is_expired(self, now=None, grace_seconds=0):
        now = now or timezone.now()
        return now >= self.deadline + timedelta(seconds=grace_seconds)

    def results_visible(self, now=None):
        """
        Students see scores once the attempt is submitted and either the
        exam releases results immediately or its window has closed.
        """
        if not self.is_submitted:
            return False
        if self.exam.show_results_immediately:
            return True
        return (now or timezone.now()) > self.exam.end_date


class Answer(models.Model):
    """
    Response to one question within a submission.

    Objective answers are evaluated when recorded; essay answers keep
    `is_correct` and `marks_awarded` null until a teacher reviews them.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    submission = models.ForeignKey(
        Submission,
        on_delete=models.CASCADE,
        related_name='answers'
    )
    question = models.ForeignKey(
        Question,
        on_delete=models.CASCADE,
        related_name='student_answers'
    )
    response = models.JSONField()
    time_taken = models.PositiveIntegerField(default=0)  # seconds
    is_correct = models.BooleanField(null=True, blank=True)
    marks_awarded = models.FloatField(null=True, blank=True)
    is_reviewed = models.BooleanField(default=False)
    teacher_feedback = models.TextField(blank=True)
    answered_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'answers'
        ordering = ['answered_at']
        constraints = [
            models.UniqueConstraint(
                fields=['submission', 'question'],
                name='unique_submission_question_answer'
            )
        ]

    def __str__(self):
        return f"Answer to {self.question_id} in {self.submission_id}"
