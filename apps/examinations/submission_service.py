"""
Exam attempt lifecycle.

    start_attempt -> record_answer(s) -> finalize -> grade_answer (essays)

An attempt is in progress until finalize flips `is_submitted`, which
happens exactly once: the flip is a conditional UPDATE on the current
value, so of a manual submit, a retried request and the auto-submit job
only the first one wins and the rest get AlreadySubmitted.

Once an attempt's deadline (plus AUTO_SUBMIT_GRACE_SECONDS) has passed,
it no longer accepts answers. Whichever call notices first closes it as
auto-submitted, scoring only what was saved before the deadline.
"""
import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from . import attempt_policy, scoring
from .exceptions import (
    AlreadySubmitted,
    DeniedByPolicy,
    InvalidGradingTarget,
    InvalidQuestionType,
    MalformedAnswer,
    NotFound,
    NotOwner,
)
from .grading_service import AnswerEvaluator
from .models import Answer, Exam, Question, Submission

logger = logging.getLogger(__name__)

SCORE_FIELDS = ['total_marks', 'marks_obtained', 'percentage', 'grade', 'is_passed', 'is_graded']


def elapsed_minutes(start, end):
    return max(0, int((end - start).total_seconds() // 60))


class SubmissionService:
    """
    Orchestrates attempts. The evaluator is injectable so tests and
    alternative grading rules can swap it out.
    """

    def __init__(self, evaluator=None, grace_seconds=None):
        self.evaluator = evaluator or AnswerEvaluator()
        if grace_seconds is None:
            grace_seconds = getattr(settings, 'AUTO_SUBMIT_GRACE_SECONDS', 0)
        self.grace_seconds = grace_seconds

    def start_attempt(self, exam_id, student, now=None):
        """
        Returns (submission, created). A student with an attempt already
        in progress gets that attempt back instead of a new one, unless
        its time has run out; then it is closed and the policy decides
        whether a new attempt may start.
        """
        now = now or timezone.now()
        exam = self._get_exam(exam_id)

        open_attempts = Submission.objects.filter(exam=exam, student=student, is_submitted=False)
        for attempt in open_attempts.select_related('exam'):
            if attempt.is_expired(now, self.grace_seconds):
                self._close_expired(attempt, now)

        history = Submission.objects.filter(exam=exam, student=student)
        decision = attempt_policy.can_start(exam, student, history, now=now)
        if not decision.allowed:
            logger.warning(
                "Attempt denied (%s): exam=%s student=%s",
                decision.reason, exam.pk, student.pk
            )
            raise DeniedByPolicy(decision.reason, decision.message)

        in_progress = self._in_progress_attempt(exam, student)
        if in_progress is not None:
            return in_progress, False

        try:
            with transaction.atomic():
                submission = Submission.objects.create(
                    student=student,
                    exam=exam,
                    attempt_number=decision.next_attempt_number,
                    start_time=now,
                    total_marks=exam.total_marks,
                )
        except IntegrityError:
            # A concurrent start claimed this attempt number first
            in_progress = self._in_progress_attempt(exam, student)
            if in_progress is None:
                raise DeniedByPolicy(
                    attempt_policy.CONCURRENT_START,
                    attempt_policy.DENIAL_MESSAGES[attempt_policy.CONCURRENT_START]
                )
            return in_progress, False

        logger.info(
            "Exam started: %s by %s (attempt %s)",
            exam.title, student.username, submission.attempt_number
        )
        return submission, True

    def record_answer(self, submission_id, question_id, raw_answer, time_taken=0,
                      student=None, now=None):
        return self.record_answers(
            submission_id,
            [{'question_id': question_id, 'answer': raw_answer, 'time_taken': time_taken}],
            student=student,
            now=now
        )

    def record_answers(self, submission_id, answers, student=None, now=None):
        """Bulk variant of record_answer; all answers are saved or none."""
        now = now or timezone.now()
        with transaction.atomic():
            submission = self._lock_open_submission(submission_id, student)
            expired = submission.is_expired(now, self.grace_seconds)
            if not expired:
                for item in answers:
                    self._save_answer(
                        submission,
                        item['question_id'],
                        item['answer'],
                        item.get('time_taken', 0)
                    )

        if expired:
            self._close_expired(submission, now)
            raise AlreadySubmitted('Time is up, the exam was submitted automatically')
        return submission

    def finalize(self, submission_id, student=None, auto_submitted=False, now=None):
        submission = self._get_submission(submission_id)
        self._check_owner(submission, student)
        if submission.is_submitted:
            raise AlreadySubmitted()

        now = now or timezone.now()
        if submission.is_expired(now, self.grace_seconds):
            auto_submitted = True

        with transaction.atomic():
            claimed = Submission.objects.filter(
                pk=submission.pk,
                is_submitted=False
            ).update(
                is_submitted=True,
                auto_submitted=auto_submitted,
                end_time=now,
                submitted_at=now,
                time_taken=elapsed_minutes(submission.start_time, now),
                updated_at=now,
            )
            if not claimed:
                raise AlreadySubmitted()

            submission.refresh_from_db()
            self._rescore(submission)
            Exam.objects.filter(pk=submission.exam_id).update(
                total_attempts=F('total_attempts') + 1
            )

        logger.info(
            "Exam %s: %s by %s, %s/%s",
            'auto-submitted' if auto_submitted else 'submitted',
            submission.exam.title,
            submission.student.username,
            submission.marks_obtained,
            submission.total_marks,
        )
        return submission

    def auto_submit_expired(self, now=None, grace_seconds=None):
        """
        Finalize every in-progress attempt whose deadline has passed.
        Unanswered questions simply score nothing.
        """
        now = now or timezone.now()
        if grace_seconds is None:
            grace_seconds = self.grace_seconds

        finalized = []
        open_attempts = Submission.objects.filter(is_submitted=False).select_related('exam')
        for submission in open_attempts:
            if not submission.is_expired(now, grace_seconds):
                continue
            try:
                finalized.append(self.finalize(submission.pk, auto_submitted=True, now=now))
            except AlreadySubmitted:
                logger.info("Attempt %s was submitted before the auto-submit reached it", submission.pk)
        return finalized

    def grade_answer(self, submission_id, question_id, marks, feedback='', grader=None, now=None):
        """Manual grading of one essay answer, followed by re-aggregation."""
        with transaction.atomic():
            submission = self._get_submission(submission_id, for_update=True)
            if grader is not None and not grader.can_manage(submission.exam):
                raise NotOwner()
            if not submission.is_submitted:
                raise InvalidGradingTarget('Submission has not been submitted yet')

            answer = submission.answers.select_related('question').filter(
                question_id=question_id
            ).first()
            if answer is None:
                raise NotFound('Answer not found')

            question = answer.question
            if question.question_type != Question.QuestionType.ESSAY:
                raise InvalidGradingTarget('Only essay answers are graded manually')
            if not 0 <= marks <= question.marks:
                raise InvalidGradingTarget(f'Marks must be between 0 and {question.marks}')

            answer.marks_awarded = marks
            answer.teacher_feedback = feedback or ''
            answer.is_reviewed = True
            answer.save(update_fields=['marks_awarded', 'teacher_feedback', 'is_reviewed'])

            submission.graded_by = grader
            submission.graded_at = now or timezone.now()
            self._rescore(submission, extra_fields=['graded_by', 'graded_at'])

        logger.info(
            "Submission graded: %s question %s by %s",
            submission.pk, question_id, getattr(grader, 'username', 'system')
        )
        return submission

    # helpers

    def _close_expired(self, submission, now):
        try:
            self.finalize(submission.pk, auto_submitted=True, now=now)
        except AlreadySubmitted:
            logger.info("Expired attempt %s was already submitted", submission.pk)

    def _rescore(self, submission, extra_fields=()):
        scoring.apply_summary(submission, scoring.aggregate(submission))
        submission.is_graded = not submission.answers.filter(
            question__question_type=Question.QuestionType.ESSAY,
            is_reviewed=False
        ).exists()
        submission.save(update_fields=SCORE_FIELDS + list(extra_fields) + ['updated_at'])

    def _save_answer(self, submission, question_id, raw_answer, time_taken):
        question = submission.exam.questions.filter(pk=question_id).first()
        if question is None:
            raise NotFound('Question not found in this exam')

        try:
            result = self.evaluator.evaluate(question, raw_answer)
        except (InvalidQuestionType, MalformedAnswer) as exc:
            logger.warning(
                "Rejected answer to question %s in submission %s: %s",
                question.pk, submission.pk, exc
            )
            raise

        answer, _ = Answer.objects.update_or_create(
            submission=submission,
            question=question,
            defaults={
                'response': raw_answer,
                'time_taken': time_taken,
                'is_correct': result['is_correct'],
                'marks_awarded': result['marks_awarded'],
                'is_reviewed': False,
                'teacher_feedback': '',
            }
        )
        return answer

    def _lock_open_submission(self, submission_id, student):
        # Row lock keeps answers from landing after a concurrent finalize
        submission = self._get_submission(submission_id, for_update=True)
        self._check_owner(submission, student)
        if submission.is_submitted:
            raise AlreadySubmitted()
        return submission

    @staticmethod
    def _check_owner(submission, student):
        if student is not None and submission.student_id != student.pk:
            raise NotOwner()

    @staticmethod
    def _in_progress_attempt(exam, student):
        return Submission.objects.filter(
            exam=exam,
            student=student,
            is_submitted=False
        ).order_by('-attempt_number').first()

    @staticmethod
    def _get_exam(exam_id):
        try:
            return Exam.objects.get(pk=exam_id)
        except Exam.DoesNotExist:
            raise NotFound('Exam not found')

    @staticmethod
    def _get_submission(submission_id, for_update=False):
        queryset = Submission.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=submission_id)
        except Submission.DoesNotExist:
            raise NotFound('Submission not found')
