"""
Unit tests covering critical business logic and security.

Tests On:
- Answer evaluation for every question type
- Score aggregation and grade bands
- Attempt policy (availability, eligibility, attempt limits)
- Submission lifecycle: exactly-once submit, start races, essay grading
- Auto-submission and deadline enforcement for expired attempts
- Result release rules for students
- Exam authoring, editing and locking
- Authentication and authorization on the API
"""
import uuid
from datetime import timedelta
from io import StringIO
from types import SimpleNamespace
from unittest import mock

from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APITestCase
from rest_framework import status

from . import attempt_policy
from .exceptions import (
    AlreadySubmitted,
    DeniedByPolicy,
    InvalidGradingTarget,
    InvalidQuestionType,
    MalformedAnswer,
    NotFound,
    NotOwner,
)
from .grading_service import AnswerEvaluator, check_answer_shape
from .models import Exam, Question, Submission, Answer
from .scoring import grade_for_percentage, summarize, aggregate
from .submission_service import SubmissionService

User = get_user_model()
QT = Question.QuestionType


def unsaved_question(question_type, correct_answer, marks=5, negative_marks=0):
    return Question(
        question_text='Sample question',
        question_type=question_type,
        correct_answer=correct_answer,
        marks=marks,
        negative_marks=negative_marks
    )


class ExamFixtures:
    """Shared builders for database-backed tests."""

    def create_users(self):
        self.teacher = User.objects.create_user(
            username='teacher1', email='t1@test.com', password='pass12345', role=User.Role.TEACHER
        )
        self.other_teacher = User.objects.create_user(
            username='teacher2', email='t2@test.com', password='pass12345', role=User.Role.TEACHER
        )
        self.student = User.objects.create_user(
            username='student1', email='s1@test.com', password='pass12345'
        )
        self.other_student = User.objects.create_user(
            username='student2', email='s2@test.com', password='pass12345'
        )

    def create_question(self, question_type=QT.SINGLE_CHOICE, correct_answer='Paris',
                        marks=5, negative_marks=0):
        return Question.objects.create(
            question_text='Sample question',
            question_type=question_type,
            correct_answer=correct_answer,
            marks=marks,
            negative_marks=negative_marks,
            created_by=self.teacher
        )

    def create_exam(self, questions=(), **overrides):
        now = timezone.now()
        fields = {
            'title': 'Test Exam',
            'subject': 'CS101',
            'created_by': self.teacher,
            'duration_minutes': 60,
            'passing_marks': 4,
            'start_date': now - timedelta(hours=1),
            'end_date': now + timedelta(hours=1),
            'is_published': True,
        }
        fields.update(overrides)
        exam = Exam.objects.create(**fields)
        exam.questions.add(*questions)
        return exam


class AnswerEvaluatorTestCase(SimpleTestCase):
    """Test grading rules per question type."""

    def setUp(self):
        self.evaluator = AnswerEvaluator()

    def test_single_choice_ignores_case_and_whitespace(self):
        question = unsaved_question(QT.SINGLE_CHOICE, 'Paris')

        padded = self.evaluator.evaluate(question, ' Paris ')
        lower = self.evaluator.evaluate(question, 'paris')

        self.assertEqual(padded, lower)
        self.assertTrue(padded['is_correct'])
        self.assertEqual(padded['marks_awarded'], 5)

    def test_wrong_answer_applies_negative_marks(self):
        question = unsaved_question(QT.SINGLE_CHOICE, 'Paris', marks=5, negative_marks=2)

        result = self.evaluator.evaluate(question, 'London')
        self.assertFalse(result['is_correct'])
        self.assertEqual(result['marks_awarded'], -2)

    def test_wrong_answer_without_negative_marks_scores_zero(self):
        question = unsaved_question(QT.SINGLE_CHOICE, 'Paris')

        result = self.evaluator.evaluate(question, 'London')
        self.assertFalse(result['is_correct'])
        self.assertEqual(result['marks_awarded'], 0)

    def test_single_choice_by_option_index(self):
        question = unsaved_question(QT.SINGLE_CHOICE, 2)

        self.assertTrue(self.evaluator.evaluate(question, '2')['is_correct'])
        self.assertFalse(self.evaluator.evaluate(question, 1)['is_correct'])

    def test_true_false_accepts_booleans_and_text(self):
        question = unsaved_question(QT.TRUE_FALSE, True)

        self.assertTrue(self.evaluator.evaluate(question, 'TRUE')['is_correct'])
        self.assertTrue(self.evaluator.evaluate(question, True)['is_correct'])
        self.assertFalse(self.evaluator.evaluate(question, 'false')['is_correct'])

    def test_fill_in_blank_compares_each_blank_in_order(self):
        question = unsaved_question(QT.FILL_IN_BLANK, ['carbon dioxide', 'water'])

        self.assertTrue(
            self.evaluator.evaluate(question, [' Carbon Dioxide', 'WATER'])['is_correct']
        )
        self.assertFalse(
            self.evaluator.evaluate(question, ['water', 'carbon dioxide'])['is_correct']
        )
        self.assertFalse(self.evaluator.evaluate(question, ['carbon dioxide'])['is_correct'])

    def test_fill_in_blank_single_blank(self):
        question = unsaved_question(QT.FILL_IN_BLANK, 'Mitochondria')

        self.assertTrue(self.evaluator.evaluate(question, 'mitochondria ')['is_correct'])

    def test_fill_in_blank_shape_mismatch_is_malformed(self):
        multi = unsaved_question(QT.FILL_IN_BLANK, ['a', 'b'])
        single = unsaved_question(QT.FILL_IN_BLANK, 'a')

        with self.assertRaises(MalformedAnswer):
            self.evaluator.evaluate(multi, 'a')
        with self.assertRaises(MalformedAnswer):
            self.evaluator.evaluate(single, ['a'])

    def test_essay_is_indeterminate(self):
        question = unsaved_question(QT.ESSAY, None, marks=10)

        result = self.evaluator.evaluate(question, 'Plants make food from light.')
        self.assertIsNone(result['is_correct'])
        self.assertIsNone(result['marks_awarded'])

    def test_essay_requires_text(self):
        question = unsaved_question(QT.ESSAY, None)

        with self.assertRaises(MalformedAnswer):
            self.evaluator.evaluate(question, ['not', 'text'])

    def test_matching_ignores_pair_order(self):
        question = unsaved_question(QT.MATCHING, [['a', '1'], ['b', '2'], ['c', '3']])

        self.assertTrue(
            self.evaluator.evaluate(question, [['c', '3'], ['a', '1'], ['b', '2']])['is_correct']
        )
        self.assertFalse(
            self.evaluator.evaluate(question, [['a', '2'], ['b', '1'], ['c', '3']])['is_correct']
        )

    def test_matching_mapping_equals_pair_list(self):
        question = unsaved_question(QT.MATCHING, [['a', '1'], ['b', '2']])

        self.assertTrue(self.evaluator.evaluate(question, {'b': '2', 'a': '1'})['is_correct'])

    def test_matching_requires_collection(self):
        question = unsaved_question(QT.MATCHING, [['a', '1']])

        with self.assertRaises(MalformedAnswer):
            self.evaluator.evaluate(question, 'a-1')

    def test_matching_list_items_must_be_pairs(self):
        question = unsaved_question(QT.MATCHING, [['a', '1']])

        for answer in (['a', '1'], [1], [['a', '1', 'x']], [['a']]):
            with self.assertRaises(MalformedAnswer):
                self.evaluator.evaluate(question, answer)

    def test_ordering_is_order_sensitive(self):
        question = unsaved_question(QT.ORDERING, ['first', 'second', 'third'])

        self.assertTrue(
            self.evaluator.evaluate(question, ['first', 'second', 'third'])['is_correct']
        )
        self.assertFalse(
            self.evaluator.evaluate(question, ['second', 'first', 'third'])['is_correct']
        )

    def test_ordering_requires_list(self):
        question = unsaved_question(QT.ORDERING, ['first', 'second'])

        with self.assertRaises(MalformedAnswer):
            self.evaluator.evaluate(question, 'first,second')

    def test_unknown_question_type(self):
        question = unsaved_question('hotspot', 'x')

        with self.assertRaises(InvalidQuestionType):
            self.evaluator.evaluate(question, 'x')

    def test_malformed_correct_answer_is_reported(self):
        question = unsaved_question(QT.ORDERING, 'not-a-list')

        with self.assertRaises(MalformedAnswer):
            self.evaluator.evaluate(question, ['a'])

    def test_check_answer_shape(self):
        check_answer_shape(QT.ORDERING, ['a', 'b'])
        check_answer_shape(QT.MATCHING, {'a': '1'})

        with self.assertRaises(MalformedAnswer):
            check_answer_shape(QT.SINGLE_CHOICE, None)
        with self.assertRaises(MalformedAnswer):
            check_answer_shape(QT.FILL_IN_BLANK, [])


class ScoringTestCase(SimpleTestCase):
    """Test aggregation arithmetic and grade bands."""

    def test_grade_bands(self):
        expected = {
            100: 'A+', 90: 'A+', 89: 'A', 80: 'A', 70: 'B+', 60: 'B',
            50: 'C', 40: 'D', 39: 'F', 0: 'F', -10: 'F',
        }
        for percentage, grade in expected.items():
            self.assertEqual(grade_for_percentage(percentage), grade, percentage)

    def test_mixed_marks_with_negative_marking(self):
        summary = summarize([5, -1], total_marks=10, passing_marks=4)

        self.assertEqual(summary.marks_obtained, 4)
        self.assertEqual(summary.total_marks, 10)
        self.assertEqual(summary.percentage, 40)
        self.assertEqual(summary.grade, 'D')
        self.assertTrue(summary.is_passed)

    def test_pending_essays_count_as_zero(self):
        summary = summarize([5, None], total_marks=15, passing_marks=10)

        self.assertEqual(summary.marks_obtained, 5)
        self.assertFalse(summary.is_passed)

    def test_negative_total_is_not_clamped(self):
        summary = summarize([-1, -1], total_marks=10, passing_marks=0)

        self.assertEqual(summary.marks_obtained, -2)
        self.assertEqual(summary.percentage, -20)
        self.assertEqual(summary.grade, 'F')
        self.assertFalse(summary.is_passed)

    def test_percentage_rounds_half_up(self):
        self.assertEqual(summarize([1], total_marks=8, passing_marks=0).percentage, 13)

    def test_empty_exam_scores_zero_percent(self):
        self.assertEqual(summarize([], total_marks=0, passing_marks=0).percentage, 0)

    def test_pass_threshold_uses_raw_marks(self):
        # 45% but at the raw threshold
        summary = summarize([9], total_marks=20, passing_marks=9)
        self.assertTrue(summary.is_passed)

    def test_summarize_is_idempotent(self):
        first = summarize([5, -1, None], total_marks=20, passing_marks=5)
        second = summarize([5, -1, None], total_marks=20, passing_marks=5)
        self.assertEqual(first, second)


class AttemptPolicyTestCase(ExamFixtures, TestCase):
    """Test availability, eligibility and attempt limits."""

    def setUp(self):
        self.create_users()
        self.exam = self.create_exam([self.create_question()])

    def test_open_exam_available_to_every_student(self):
        for student in (self.student, self.other_student):
            decision = attempt_policy.can_start(self.exam, student, [])
            self.assertTrue(decision.allowed)
            self.assertEqual(decision.next_attempt_number, 1)

    def test_unpublished_or_inactive_exam_denied(self):
        self.exam.is_published = False
        decision = attempt_policy.can_start(self.exam, self.student, [])
        self.assertEqual(decision.reason, attempt_policy.NOT_AVAILABLE)

        self.exam.is_published = True
        self.exam.is_active = False
        decision = attempt_policy.can_start(self.exam, self.student, [])
        self.assertEqual(decision.reason, attempt_policy.NOT_AVAILABLE)

    def test_outside_scheduling_window_denied(self):
        early = self.exam.start_date - timedelta(minutes=1)
        late = self.exam.end_date + timedelta(minutes=1)

        self.assertFalse(attempt_policy.can_start(self.exam, self.student, [], now=early).allowed)
        self.assertFalse(attempt_policy.can_start(self.exam, self.student, [], now=late).allowed)

    def test_eligible_list_restricts_students(self):
        self.exam.eligible_students.add(self.student)

        self.assertTrue(attempt_policy.can_start(self.exam, self.student, []).allowed)
        decision = attempt_policy.can_start(self.exam, self.other_student, [])
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.message, 'Exam is not available for you')

    def test_single_attempt_exam_denies_after_submission(self):
        history = [SimpleNamespace(is_submitted=True)]

        decision = attempt_policy.can_start(self.exam, self.student, history)
        self.assertEqual(decision.reason, attempt_policy.ALREADY_ATTEMPTED)

    def test_attempt_limit(self):
        self.exam.allow_multiple_attempts = True
        self.exam.max_attempts = 2

        one = [SimpleNamespace(is_submitted=True)]
        decision = attempt_policy.can_start(self.exam, self.student, one)
        self.assertTrue(decision.allowed)
        self.assertEqual(decision.next_attempt_number, 2)

        two = one + [SimpleNamespace(is_submitted=True)]
        decision = attempt_policy.can_start(self.exam, self.student, two)
        self.assertEqual(decision.reason, attempt_policy.MAX_ATTEMPTS_REACHED)

    def test_unsubmitted_attempts_do_not_count(self):
        history = [SimpleNamespace(is_submitted=False)]

        decision = attempt_policy.can_start(self.exam, self.student, history)
        self.assertTrue(decision.allowed)
        self.assertEqual(decision.next_attempt_number, 1)


class SubmissionLifecycleTestCase(ExamFixtures, TestCase):
    """Test the attempt state machine end to end at the service layer."""

    def setUp(self):
        self.create_users()
        self.q1 = self.create_question(correct_answer='Paris', marks=5, negative_marks=1)
        self.q2 = self.create_question(correct_answer='Blue', marks=5, negative_marks=1)
        self.exam = self.create_exam([self.q1, self.q2])
        self.service = SubmissionService()

    def start(self, student=None, exam=None, **kwargs):
        submission, _ = self.service.start_attempt((exam or self.exam).pk, student or self.student, **kwargs)
        return submission

    def test_one_right_one_wrong(self):
        submission = self.start()
        self.service.record_answer(submission.pk, self.q1.pk, 'paris', 12, student=self.student)
        self.service.record_answer(submission.pk, self.q2.pk, 'Red', 20, student=self.student)

        submission = self.service.finalize(submission.pk, student=self.student)

        self.assertTrue(submission.is_submitted)
        self.assertEqual(submission.marks_obtained, 4)
        self.assertEqual(submission.total_marks, 10)
        self.assertEqual(submission.percentage, 40)
        self.assertEqual(submission.grade, 'D')
        self.assertTrue(submission.is_passed)
        self.assertTrue(submission.is_graded)
        self.exam.refresh_from_db()
        self.assertEqual(self.exam.total_attempts, 1)

    def test_marks_obtained_matches_answers(self):
        submission = self.start()
        self.service.record_answer(submission.pk, self.q1.pk, 'Paris', student=self.student)
        submission = self.service.finalize(submission.pk)

        awarded = sum(a.marks_awarded for a in submission.answers.all())
        self.assertEqual(submission.marks_obtained, awarded)

    def test_unanswered_questions_score_nothing(self):
        submission = self.start()
        self.service.record_answer(submission.pk, self.q1.pk, 'Paris', student=self.student)

        submission = self.service.finalize(submission.pk, student=self.student)
        self.assertEqual(submission.marks_obtained, 5)
        self.assertEqual(submission.percentage, 50)
        self.assertEqual(submission.grade, 'C')

    def test_reanswer_replaces_previous_answer(self):
        submission = self.start()
        self.service.record_answer(submission.pk, self.q1.pk, 'London', student=self.student)
        self.service.record_answer(submission.pk, self.q1.pk, 'Paris', student=self.student)

        answers = Answer.objects.filter(submission=submission)
        self.assertEqual(answers.count(), 1)
        self.assertTrue(answers.get().is_correct)
        self.assertEqual(answers.get().marks_awarded, 5)

    def test_bulk_answers(self):
        submission = self.start()
        self.service.record_answers(submission.pk, [
            {'question_id': self.q1.pk, 'answer': 'Paris', 'time_taken': 5},
            {'question_id': self.q2.pk, 'answer': 'Blue'},
        ], student=self.student)

        self.assertEqual(submission.answers.count(), 2)

    def test_bulk_answers_are_all_or_nothing(self):
        submission = self.start()
        with self.assertRaises(MalformedAnswer):
            self.service.record_answers(submission.pk, [
                {'question_id': self.q1.pk, 'answer': 'Paris'},
                {'question_id': self.q2.pk, 'answer': ['Blue']},
            ], student=self.student)

        self.assertEqual(submission.answers.count(), 0)

    def test_question_outside_exam_rejected(self):
        stray = self.create_question()
        submission = self.start()

        with self.assertRaises(NotFound):
            self.service.record_answer(submission.pk, stray.pk, 'Paris', student=self.student)

    def test_malformed_answer_not_saved(self):
        submission = self.start()

        with self.assertRaises(MalformedAnswer):
            self.service.record_answer(submission.pk, self.q1.pk, ['Paris'], student=self.student)
        self.assertFalse(submission.answers.exists())

    def test_only_owner_may_answer_or_submit(self):
        submission = self.start()

        with self.assertRaises(NotOwner):
            self.service.record_answer(submission.pk, self.q1.pk, 'Paris', student=self.other_student)
        with self.assertRaises(NotOwner):
            self.service.finalize(submission.pk, student=self.other_student)

    def test_no_answers_after_submission(self):
        submission = self.start()
        self.service.finalize(submission.pk, student=self.student)

        with self.assertRaises(AlreadySubmitted):
            self.service.record_answer(submission.pk, self.q1.pk, 'Paris', student=self.student)

    def test_finalize_is_exactly_once(self):
        submission = self.start()
        self.service.finalize(submission.pk, student=self.student)

        with self.assertRaises(AlreadySubmitted):
            self.service.finalize(submission.pk, student=self.student)

        self.exam.refresh_from_db()
        self.assertEqual(self.exam.total_attempts, 1)

    def test_finalize_with_stale_read_loses_the_race(self):
        submission = self.start()
        stale = Submission.objects.get(pk=submission.pk)
        self.service.finalize(submission.pk, student=self.student)

        # The second caller read the row before the first one committed
        with mock.patch.object(SubmissionService, '_get_submission', return_value=stale):
            with self.assertRaises(AlreadySubmitted):
                self.service.finalize(submission.pk, auto_submitted=True)

        submission.refresh_from_db()
        self.assertFalse(submission.auto_submitted)

    def test_finalize_records_timing(self):
        started = timezone.now() - timedelta(minutes=5)
        submission = self.start(now=started)

        finished = started + timedelta(minutes=2, seconds=50)
        submission = self.service.finalize(submission.pk, now=finished)

        self.assertEqual(submission.time_taken, 2)
        self.assertEqual(submission.end_time, finished)
        self.assertEqual(submission.submitted_at, finished)
        self.assertFalse(submission.auto_submitted)

    def test_start_resumes_attempt_in_progress(self):
        first, created = self.service.start_attempt(self.exam.pk, self.student)
        second, created_again = self.service.start_attempt(self.exam.pk, self.student)

        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Submission.objects.count(), 1)

    def test_second_attempt_denied_when_single_attempt(self):
        submission = self.start()
        self.service.finalize(submission.pk)

        with self.assertRaises(DeniedByPolicy) as ctx:
            self.start()
        self.assertEqual(ctx.exception.reason, attempt_policy.ALREADY_ATTEMPTED)

    def test_max_attempts_enforced(self):
        exam = self.create_exam([self.q1], allow_multiple_attempts=True, max_attempts=2)

        for expected_number in (1, 2):
            submission = self.start(exam=exam)
            self.assertEqual(submission.attempt_number, expected_number)
            self.service.finalize(submission.pk)

        with self.assertRaises(DeniedByPolicy) as ctx:
            self.start(exam=exam)
        self.assertEqual(ctx.exception.reason, attempt_policy.MAX_ATTEMPTS_REACHED)
        self.assertEqual(Submission.objects.filter(exam=exam).count(), 2)

    def test_concurrent_start_returns_winning_attempt(self):
        winner = self.start()

        # Both callers saw no attempt in progress; the insert collides
        with mock.patch.object(SubmissionService, '_in_progress_attempt', side_effect=[None, winner]):
            submission, created = self.service.start_attempt(self.exam.pk, self.student)

        self.assertFalse(created)
        self.assertEqual(submission.pk, winner.pk)
        self.assertEqual(Submission.objects.filter(exam=self.exam).count(), 1)

    def test_concurrent_start_without_winner_in_progress_is_denied(self):
        self.start()

        with mock.patch.object(SubmissionService, '_in_progress_attempt', side_effect=[None, None]):
            with self.assertRaises(DeniedByPolicy) as ctx:
                self.service.start_attempt(self.exam.pk, self.student)
        self.assertEqual(ctx.exception.reason, attempt_policy.CONCURRENT_START)
        self.assertEqual(Submission.objects.filter(exam=self.exam).count(), 1)

    def test_unknown_exam(self):
        with self.assertRaises(NotFound):
            self.service.start_attempt(uuid.uuid4(), self.student)

    def test_aggregate_twice_gives_same_result(self):
        submission = self.start()
        self.service.record_answer(submission.pk, self.q1.pk, 'Paris', student=self.student)
        submission = self.service.finalize(submission.pk)

        self.assertEqual(aggregate(submission), aggregate(submission))


class EssayGradingTestCase(ExamFixtures, TestCase):
    """Test manual grading and re-aggregation."""

    def setUp(self):
        self.create_users()
        self.essay = self.create_question(QT.ESSAY, None, marks=10)
        self.exam = self.create_exam([self.essay], passing_marks=5)
        self.service = SubmissionService()
        submission, _ = self.service.start_attempt(self.exam.pk, self.student)
        self.service.record_answer(
            submission.pk, self.essay.pk, 'Plants convert light into glucose.', student=self.student
        )
        self.submission = submission

    def test_essay_waits_for_teacher(self):
        submission = self.service.finalize(self.submission.pk)

        self.assertFalse(submission.is_graded)
        self.assertEqual(submission.marks_obtained, 0)
        self.assertEqual(submission.status, 'submitted')

        submission = self.service.grade_answer(
            submission.pk, self.essay.pk, 8, feedback='Good summary', grader=self.teacher
        )

        self.assertEqual(submission.marks_obtained, 8)
        self.assertEqual(submission.percentage, 80)
        self.assertEqual(submission.grade, 'A')
        self.assertTrue(submission.is_passed)
        self.assertTrue(submission.is_graded)
        self.assertEqual(submission.graded_by, self.teacher)
        self.assertEqual(submission.status, 'graded')

        answer = submission.answers.get()
        self.assertTrue(answer.is_reviewed)
        self.assertEqual(answer.teacher_feedback, 'Good summary')

    def test_regrading_is_idempotent(self):
        self.service.finalize(self.submission.pk)
        first = self.service.grade_answer(self.submission.pk, self.essay.pk, 6, grader=self.teacher)
        second = self.service.grade_answer(self.submission.pk, self.essay.pk, 6, grader=self.teacher)

        self.assertEqual(first.marks_obtained, second.marks_obtained)
        self.assertEqual(first.percentage, second.percentage)

    def test_graded_only_when_every_essay_reviewed(self):
        second_essay = self.create_question(QT.ESSAY, None, marks=10)
        self.exam.questions.add(second_essay)
        self.service.record_answer(self.submission.pk, second_essay.pk, 'More text', student=self.student)
        self.service.finalize(self.submission.pk)

        submission = self.service.grade_answer(self.submission.pk, self.essay.pk, 5, grader=self.teacher)
        self.assertFalse(submission.is_graded)

        submission = self.service.grade_answer(self.submission.pk, second_essay.pk, 7, grader=self.teacher)
        self.assertTrue(submission.is_graded)
        self.assertEqual(submission.marks_obtained, 12)

    def test_cannot_grade_before_submission(self):
        with self.assertRaises(InvalidGradingTarget):
            self.service.grade_answer(self.submission.pk, self.essay.pk, 5, grader=self.teacher)

    def test_only_essays_are_graded_manually(self):
        objective = self.create_question(correct_answer='Paris')
        self.exam.questions.add(objective)
        self.service.record_answer(self.submission.pk, objective.pk, 'Paris', student=self.student)
        self.service.finalize(self.submission.pk)

        with self.assertRaises(InvalidGradingTarget):
            self.service.grade_answer(self.submission.pk, objective.pk, 1, grader=self.teacher)

    def test_marks_cannot_exceed_question_marks(self):
        self.service.finalize(self.submission.pk)

        with self.assertRaises(InvalidGradingTarget):
            self.service.grade_answer(self.submission.pk, self.essay.pk, 11, grader=self.teacher)

    def test_other_teacher_cannot_grade(self):
        self.service.finalize(self.submission.pk)

        with self.assertRaises(NotOwner):
            self.service.grade_answer(self.submission.pk, self.essay.pk, 5, grader=self.other_teacher)

    def test_missing_answer(self):
        self.service.finalize(self.submission.pk)

        with self.assertRaises(NotFound):
            self.service.grade_answer(self.submission.pk, uuid.uuid4(), 5, grader=self.teacher)


class AutoSubmitTestCase(ExamFixtures, TestCase):
    """Test time-expiry submission."""

    def setUp(self):
        self.create_users()
        self.question = self.create_question(correct_answer='Paris', marks=5)
        self.exam = self.create_exam([self.question], duration_minutes=30)
        self.service = SubmissionService()

    def test_expired_attempt_is_auto_submitted(self):
        now = timezone.now()
        expired, _ = self.service.start_attempt(
            self.exam.pk, self.student, now=now - timedelta(minutes=40)
        )
        self.service.record_answer(
            expired.pk, self.question.pk, 'Paris', student=self.student, now=now - timedelta(minutes=35)
        )
        running, _ = self.service.start_attempt(
            self.exam.pk, self.other_student, now=now - timedelta(minutes=10)
        )

        finalized = self.service.auto_submit_expired(now=now)

        self.assertEqual([s.pk for s in finalized], [expired.pk])
        expired.refresh_from_db()
        running.refresh_from_db()
        self.assertTrue(expired.is_submitted)
        self.assertTrue(expired.auto_submitted)
        self.assertEqual(expired.marks_obtained, 5)
        self.assertFalse(running.is_submitted)

    def test_grace_period_delays_auto_submit(self):
        now = timezone.now()
        self.service.start_attempt(self.exam.pk, self.student, now=now - timedelta(minutes=31))

        self.assertEqual(self.service.auto_submit_expired(now=now, grace_seconds=120), [])
        self.assertEqual(len(self.service.auto_submit_expired(now=now)), 1)

    def test_command_reports_count(self):
        self.service.start_attempt(
            self.exam.pk, self.student, now=timezone.now() - timedelta(minutes=45)
        )
        out = StringIO()

        call_command('autosubmit_expired', stdout=out)

        self.assertIn('1 attempt(s) auto-submitted', out.getvalue())
        self.assertTrue(Submission.objects.get(student=self.student).auto_submitted)


class AttemptDeadlineTestCase(ExamFixtures, TestCase):
    """Expired attempts stop accepting work before the cron job runs."""

    def setUp(self):
        self.create_users()
        self.question = self.create_question(correct_answer='Paris', marks=5)
        self.exam = self.create_exam([self.question], duration_minutes=30)
        self.service = SubmissionService(grace_seconds=0)
        self.submission, _ = self.service.start_attempt(
            self.exam.pk, self.student, now=timezone.now() - timedelta(minutes=45)
        )

    def test_answer_after_deadline_closes_attempt(self):
        with self.assertRaises(AlreadySubmitted):
            self.service.record_answer(
                self.submission.pk, self.question.pk, 'Paris', student=self.student
            )

        self.submission.refresh_from_db()
        self.assertTrue(self.submission.is_submitted)
        self.assertTrue(self.submission.auto_submitted)
        self.assertEqual(self.submission.marks_obtained, 0)
        self.assertFalse(self.submission.answers.exists())

    def test_bulk_answers_after_deadline_rejected(self):
        with self.assertRaises(AlreadySubmitted):
            self.service.record_answers(self.submission.pk, [
                {'question_id': self.question.pk, 'answer': 'Paris'},
            ], student=self.student)

        self.assertFalse(self.submission.answers.exists())

    def test_answer_within_grace_period_is_saved(self):
        lenient = SubmissionService(grace_seconds=20 * 60)

        lenient.record_answer(self.submission.pk, self.question.pk, 'Paris', student=self.student)

        self.assertEqual(self.submission.answers.count(), 1)
        self.submission.refresh_from_db()
        self.assertFalse(self.submission.is_submitted)

    def test_start_does_not_resume_expired_attempt(self):
        with self.assertRaises(DeniedByPolicy) as ctx:
            self.service.start_attempt(self.exam.pk, self.student)
        self.assertEqual(ctx.exception.reason, attempt_policy.ALREADY_ATTEMPTED)

        self.submission.refresh_from_db()
        self.assertTrue(self.submission.is_submitted)
        self.assertTrue(self.submission.auto_submitted)

    def test_expired_attempt_makes_room_for_next_attempt(self):
        self.exam.allow_multiple_attempts = True
        self.exam.max_attempts = 2
        self.exam.save()

        submission, created = self.service.start_attempt(self.exam.pk, self.student)

        self.assertTrue(created)
        self.assertEqual(submission.attempt_number, 2)
        self.submission.refresh_from_db()
        self.assertTrue(self.submission.auto_submitted)

    def test_late_submit_is_marked_auto_submitted(self):
        submission = self.service.finalize(self.submission.pk, student=self.student)

        self.assertTrue(submission.is_submitted)
        self.assertTrue(submission.auto_submitted)


class QuestionFreezeTestCase(ExamFixtures, APITestCase):
    """Questions answered in a submitted attempt can no longer be edited."""

    def setUp(self):
        self.create_users()
        self.question = self.create_question(correct_answer='Paris')
        self.exam = self.create_exam([self.question])

    def test_question_frozen_after_submission(self):
        self.assertFalse(self.question.is_frozen)

        service = SubmissionService()
        submission, _ = service.start_attempt(self.exam.pk, self.student)
        service.record_answer(submission.pk, self.question.pk, 'Paris', student=self.student)
        self.assertFalse(self.question.is_frozen)

        service.finalize(submission.pk)
        self.assertTrue(self.question.is_frozen)

        self.client.force_authenticate(user=self.teacher)
        response = self.client.patch(
            f'/api/questions/{self.question.id}/', {'correct_answer': 'Lyon'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.question.refresh_from_db()
        self.assertEqual(self.question.correct_answer, 'Paris')

    def test_unfrozen_question_can_be_edited(self):
        self.client.force_authenticate(user=self.teacher)
        response = self.client.patch(
            f'/api/questions/{self.question.id}/', {'correct_answer': 'Lyon'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class AuthenticationTestCase(APITestCase):
    """Test authentication flows."""

    def test_user_registration(self):
        """Test a user can register and receive token."""
        data = {
            'username': 'testuser',
            'email': 'test@example.com',
            'password': 'securepass123',
            'first_name': 'Test',
            'last_name': 'User'
        }
        response = self.client.post('/api/auth/register/', data)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('token', response.data)
        self.assertEqual(response.data['role'], 'student')
        self.assertTrue(User.objects.filter(username='testuser').exists())

    def test_cannot_register_as_admin(self):
        data = {
            'username': 'sneaky',
            'email': 'sneaky@example.com',
            'password': 'securepass123',
            'role': 'admin'
        }
        response = self.client.post('/api/auth/register/', data)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_user_login(self):
        """Test a user can login with valid credentials."""
        User.objects.create_user(
            username='testuser',
            email='test@example.com',
            password='testpass123'
        )
        data = {'username': 'testuser', 'password': 'testpass123'}
        response = self.client.post('/api/auth/login/', data)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('token', response.data)

    def test_endpoints_require_authentication(self):
        response = self.client.get('/api/exams/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ExamTakingAPITestCase(ExamFixtures, APITestCase):
    """Test the student flow and its security over HTTP."""

    def setUp(self):
        self.create_users()
        self.q1 = self.create_question(correct_answer='Paris', marks=5, negative_marks=1)
        self.q2 = self.create_question(correct_answer='Blue', marks=5, negative_marks=1)
        self.exam = self.create_exam([self.q1, self.q2])

    def start(self, user=None):
        self.client.force_authenticate(user=user or self.student)
        return self.client.post('/api/submissions/start/', {'exam_id': str(self.exam.id)}, format='json')

    def test_full_attempt(self):
        self.exam.show_results_immediately = True
        self.exam.save()

        response = self.start()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        submission_id = response.data['submission']['id']

        response = self.client.post(
            f'/api/submissions/{submission_id}/answers/',
            {'question_id': str(self.q1.id), 'answer': ' PARIS', 'time_taken': 30},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.client.post(
            f'/api/submissions/{submission_id}/answers/',
            {'question_id': str(self.q2.id), 'answer': 'Green'},
            format='json'
        )

        response = self.client.post(f'/api/submissions/{submission_id}/submit/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        result = response.data['submission']
        self.assertEqual(result['marks_obtained'], 4)
        self.assertEqual(result['percentage'], 40)
        self.assertEqual(result['grade'], 'D')
        self.assertEqual(result['status'], 'graded')

        # Retried submit is rejected, not reapplied
        response = self.client.post(f'/api/submissions/{submission_id}/submit/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'already_submitted')

    def test_second_start_resumes(self):
        first = self.start()
        second = self.start()

        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data['submission']['id'], second.data['submission']['id'])

    def test_denied_start_reports_reason(self):
        self.exam.is_published = False
        self.exam.save()

        response = self.start()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['reason'], 'not_available')

    def test_teacher_cannot_take_exam(self):
        response = self.start(user=self.teacher)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_malformed_answer_rejected(self):
        submission_id = self.start().data['submission']['id']

        response = self.client.post(
            f'/api/submissions/{submission_id}/answers/',
            {'question_id': str(self.q1.id), 'answer': {'choice': 'Paris'}},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'malformed_answer')

    def test_bulk_answers(self):
        submission_id = self.start().data['submission']['id']
        url = f'/api/submissions/{submission_id}/answers/bulk/'

        duplicate = {'answers': [
            {'question_id': str(self.q1.id), 'answer': 'Paris'},
            {'question_id': str(self.q1.id), 'answer': 'Lyon'},
        ]}
        response = self.client.post(url, duplicate, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        valid = {'answers': [
            {'question_id': str(self.q1.id), 'answer': 'Paris'},
            {'question_id': str(self.q2.id), 'answer': 'Blue'},
        ]}
        response = self.client.post(url, valid, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['submission']['answers']), 2)

    def test_cannot_touch_other_student_submission(self):
        """Students cannot access other students' submissions."""
        submission_id = self.start().data['submission']['id']

        self.client.force_authenticate(user=self.other_student)
        response = self.client.get(f'/api/submissions/{submission_id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.post(
            f'/api/submissions/{submission_id}/answers/',
            {'question_id': str(self.q1.id), 'answer': 'Paris'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.post(f'/api/submissions/{submission_id}/submit/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_exam_teacher_can_view_submission(self):
        submission_id = self.start().data['submission']['id']

        self.client.force_authenticate(user=self.teacher)
        response = self.client.get(f'/api/submissions/{submission_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.force_authenticate(user=self.other_teacher)
        response = self.client.get(f'/api/submissions/{submission_id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_submission_list_is_scoped_to_student(self):
        self.start()
        self.start(user=self.other_student)

        self.client.force_authenticate(user=self.student)
        response = self.client.get('/api/submissions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

        self.client.force_authenticate(user=self.teacher)
        response = self.client.get('/api/submissions/', {'exam': str(self.exam.id)})
        self.assertEqual(response.data['count'], 2)

    def test_student_exam_list_shows_only_available_exams(self):
        restricted = self.create_exam([self.q1], title='Restricted')
        restricted.eligible_students.add(self.other_student)
        self.create_exam([self.q1], title='Draft', is_published=False)

        self.client.force_authenticate(user=self.student)
        response = self.client.get('/api/exams/')
        titles = [exam['title'] for exam in response.data['results']]
        self.assertEqual(titles, ['Test Exam'])

        self.client.force_authenticate(user=self.other_student)
        response = self.client.get('/api/exams/')
        titles = sorted(exam['title'] for exam in response.data['results'])
        self.assertEqual(titles, ['Restricted', 'Test Exam'])

    def test_exam_detail_hides_correct_answers(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.get(f'/api/exams/{self.exam.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        for question in response.data['questions']:
            self.assertNotIn('correct_answer', question)

    def test_unavailable_exam_detail_forbidden(self):
        self.exam.eligible_students.add(self.other_student)

        self.client.force_authenticate(user=self.student)
        response = self.client.get(f'/api/exams/{self.exam.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ResultVisibilityAPITestCase(ExamFixtures, APITestCase):
    """Students cannot read correctness before results are released."""

    def setUp(self):
        self.create_users()
        self.question = self.create_question(correct_answer='Paris', marks=5, negative_marks=1)
        self.exam = self.create_exam([self.question])
        self.client.force_authenticate(user=self.student)
        response = self.client.post(
            '/api/submissions/start/', {'exam_id': str(self.exam.id)}, format='json'
        )
        self.submission_id = response.data['submission']['id']

    def answer(self, value):
        return self.client.post(
            f'/api/submissions/{self.submission_id}/answers/',
            {'question_id': str(self.question.id), 'answer': value},
            format='json'
        )

    def test_answers_in_progress_reveal_nothing(self):
        for value in ('London', 'Paris'):
            response = self.answer(value)
            self.assertEqual(response.status_code, status.HTTP_200_OK)

            submission = response.data['submission']
            self.assertNotIn('marks_obtained', submission)
            self.assertNotIn('percentage', submission)
            answer = submission['answers'][0]
            self.assertEqual(answer['response'], value)
            self.assertNotIn('is_correct', answer)
            self.assertNotIn('marks_awarded', answer)
            self.assertNotIn('correct_answer', answer)

    def test_scores_hidden_after_submit_until_released(self):
        self.answer('Paris')

        response = self.client.post(f'/api/submissions/{self.submission_id}/submit/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn('grade', response.data['submission'])

        response = self.client.get('/api/submissions/')
        self.assertNotIn('marks_obtained', response.data['results'][0])

    def test_scores_shown_after_window_closes(self):
        self.answer('Paris')
        self.client.post(f'/api/submissions/{self.submission_id}/submit/')
        Exam.objects.filter(pk=self.exam.pk).update(end_date=timezone.now() - timedelta(minutes=1))

        response = self.client.get(f'/api/submissions/{self.submission_id}/')
        self.assertEqual(response.data['marks_obtained'], 5)

    def test_immediate_results_without_correct_answers(self):
        self.exam.show_results_immediately = True
        self.exam.save()
        self.answer('London')

        response = self.client.post(f'/api/submissions/{self.submission_id}/submit/')
        submission = response.data['submission']
        self.assertEqual(submission['marks_obtained'], -1)
        self.assertFalse(submission['answers'][0]['is_correct'])
        self.assertNotIn('correct_answer', submission['answers'][0])

    def test_correct_answers_shown_when_enabled(self):
        self.exam.show_results_immediately = True
        self.exam.show_correct_answers = True
        self.exam.save()
        self.answer('London')

        response = self.client.post(f'/api/submissions/{self.submission_id}/submit/')
        self.assertEqual(response.data['submission']['answers'][0]['correct_answer'], 'Paris')

    def test_exam_teacher_always_sees_scores(self):
        self.answer('Paris')

        self.client.force_authenticate(user=self.teacher)
        response = self.client.get(f'/api/submissions/{self.submission_id}/')
        self.assertEqual(response.data['marks_obtained'], 0)
        self.assertTrue(response.data['answers'][0]['is_correct'])


class GradingAPITestCase(ExamFixtures, APITestCase):
    """Test essay grading over HTTP."""

    def setUp(self):
        self.create_users()
        self.essay = self.create_question(QT.ESSAY, None, marks=10)
        self.exam = self.create_exam([self.essay])
        service = SubmissionService()
        submission, _ = service.start_attempt(self.exam.pk, self.student)
        service.record_answer(submission.pk, self.essay.pk, 'An essay', student=self.student)
        self.submission = service.finalize(submission.pk)
        self.url = f'/api/submissions/{self.submission.id}/grade/'

    def test_teacher_grades_essay(self):
        self.client.force_authenticate(user=self.teacher)
        response = self.client.put(
            self.url,
            {'question_id': str(self.essay.id), 'marks': 8, 'feedback': 'Well argued'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['submission']['marks_obtained'], 8)
        self.assertTrue(response.data['submission']['is_graded'])

    def test_student_cannot_grade(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.put(
            self.url, {'question_id': str(self.essay.id), 'marks': 10}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_negative_marks_rejected(self):
        self.client.force_authenticate(user=self.teacher)
        response = self.client.put(
            self.url, {'question_id': str(self.essay.id), 'marks': -1}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AuthoringAPITestCase(ExamFixtures, APITestCase):
    """Test question and exam authoring endpoints."""

    def setUp(self):
        self.create_users()
        self.client.force_authenticate(user=self.teacher)

    def test_question_correct_answer_shape_validated(self):
        response = self.client.post('/api/questions/', {
            'question_text': 'Order the steps',
            'question_type': 'ordering',
            'correct_answer': 'not a list',
            'marks': 3
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('correct_answer', response.data)

        response = self.client.post('/api/questions/', {
            'question_text': 'Order the steps',
            'question_type': 'ordering',
            'correct_answer': ['plan', 'build', 'ship'],
            'marks': 3
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_create_and_publish_exam(self):
        now = timezone.now()
        response = self.client.post('/api/exams/', {
            'title': 'Algebra',
            'subject': 'MATH 101',
            'duration_minutes': 45,
            'passing_marks': 5,
            'start_date': (now - timedelta(hours=1)).isoformat(),
            'end_date': (now + timedelta(days=1)).isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        exam_id = response.data['id']

        response = self.client.post(f'/api/exams/{exam_id}/publish/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        question = self.create_question(marks=7)
        response = self.client.post(
            f'/api/exams/{exam_id}/questions/', {'question_ids': [str(question.id)]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_marks'], 7)

        response = self.client.post(f'/api/exams/{exam_id}/publish/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(Exam.objects.get(pk=exam_id).is_published)

    def test_exam_end_must_follow_start(self):
        now = timezone.now()
        response = self.client.post('/api/exams/', {
            'title': 'Backwards',
            'subject': 'MATH 101',
            'duration_minutes': 45,
            'start_date': now.isoformat(),
            'end_date': (now - timedelta(hours=1)).isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_teacher_cannot_modify_exam(self):
        exam = self.create_exam([self.create_question()])

        self.client.force_authenticate(user=self.other_teacher)
        response = self.client.post(f'/api/exams/{exam.id}/publish/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_students_cannot_author(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.post('/api/questions/', {
            'question_text': 'Capital of France?',
            'question_type': 'single_choice',
            'correct_answer': 'Paris',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_questions_locked_once_exam_has_attempts(self):
        first = self.create_question(marks=5)
        exam = self.create_exam([first])
        service = SubmissionService()
        submission, _ = service.start_attempt(exam.pk, self.student)
        service.record_answer(submission.pk, first.pk, 'Paris', student=self.student)
        service.finalize(submission.pk)

        extra = self.create_question(marks=5)
        response = self.client.post(
            f'/api/exams/{exam.id}/questions/', {'question_ids': [str(extra.id)]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'exam_locked')
        self.assertEqual(exam.total_marks, 5)

        submission.refresh_from_db()
        self.assertEqual(submission.total_marks, 5)
        self.assertEqual(submission.percentage, 100)

    def test_owner_updates_exam(self):
        exam = self.create_exam([self.create_question()])
        student = self.student

        response = self.client.patch(f'/api/exams/{exam.id}/', {
            'max_attempts': 3,
            'allow_multiple_attempts': True,
            'eligible_students': [student.pk],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        exam.refresh_from_db()
        self.assertEqual(exam.max_attempts, 3)
        self.assertTrue(exam.allow_multiple_attempts)
        self.assertEqual(list(exam.eligible_students.all()), [student])

    def test_update_keeps_end_after_start(self):
        exam = self.create_exam([self.create_question()])

        response = self.client.patch(
            f'/api/exams/{exam.id}/',
            {'end_date': (exam.start_date - timedelta(minutes=5)).isoformat()},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('end_date', response.data)

    def test_only_owner_may_update_or_delete_exam(self):
        exam = self.create_exam([self.create_question()])

        self.client.force_authenticate(user=self.other_teacher)
        response = self.client.patch(f'/api/exams/{exam.id}/', {'title': 'Hijacked'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.delete(f'/api/exams/{exam.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.student)
        response = self.client.patch(f'/api/exams/{exam.id}/', {'title': 'Hijacked'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.assertEqual(Exam.objects.get(pk=exam.pk).title, 'Test Exam')

    def test_delete_exam(self):
        exam = self.create_exam([self.create_question()])

        response = self.client.delete(f'/api/exams/{exam.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Exam.objects.filter(pk=exam.pk).exists())

    def test_exam_with_attempts_cannot_be_deleted(self):
        exam = self.create_exam([self.create_question()])
        SubmissionService().start_attempt(exam.pk, self.student)

        response = self.client.delete(f'/api/exams/{exam.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Exam.objects.filter(pk=exam.pk).exists())
