"""
Submission score aggregation.

The total is always the exam's total, not just the questions a student
reached. Negative marking can push the result below zero and the
percentage follows it; nothing is clamped.
"""
import math
from dataclasses import dataclass

GRADE_BANDS = (
    (90, 'A+'),
    (80, 'A'),
    (70, 'B+'),
    (60, 'B'),
    (50, 'C'),
    (40, 'D'),
)
FAILING_GRADE = 'F'


@dataclass(frozen=True)
class ScoreSummary:
    total_marks: int
    marks_obtained: float
    percentage: int
    grade: str
    is_passed: bool


def grade_for_percentage(percentage):
    for threshold, grade in GRADE_BANDS:
        if percentage >= threshold:
            return grade
    return FAILING_GRADE


def percentage_of(marks_obtained, total_marks):
    """Whole-number percentage, halves rounded up."""
    if total_marks <= 0:
        return 0
    return math.floor(marks_obtained * 100 / total_marks + 0.5)


def summarize(marks_awarded, total_marks, passing_marks):
    # Essays awaiting review carry None and count as zero
    marks_obtained = sum(marks for marks in marks_awarded if marks is not None)
    percentage = percentage_of(marks_obtained, total_marks)
    return ScoreSummary(
        total_marks=total_marks,
        marks_obtained=marks_obtained,
        percentage=percentage,
        grade=grade_for_percentage(percentage),
        is_passed=marks_obtained >= passing_marks,
    )


def aggregate(submission, exam=None):
    exam = exam or submission.exam
    marks_awarded = submission.answers.values_list('marks_awarded', flat=True)
    return summarize(list(marks_awarded), exam.total_marks, exam.passing_marks)


def apply_summary(submission, summary):
    submission.total_marks = summary.total_marks
    submission.marks_obtained = summary.marks_obtained
    submission.percentage = summary.percentage
    submission.grade = summary.grade
    submission.is_passed = summary.is_passed
    return submission
