"""
Rules for whether a student may start (or resume) an attempt.
"""
from typing import NamedTuple, Optional

NOT_AVAILABLE = 'not_available'
ALREADY_ATTEMPTED = 'already_attempted'
MAX_ATTEMPTS_REACHED = 'max_attempts_reached'
CONCURRENT_START = 'concurrent_start'

DENIAL_MESSAGES = {
    NOT_AVAILABLE: 'Exam is not available for you',
    ALREADY_ATTEMPTED: 'You have already attempted this exam',
    MAX_ATTEMPTS_REACHED: 'Maximum attempts exceeded',
    CONCURRENT_START: 'Another attempt was started at the same time, please retry',
}


class PolicyDecision(NamedTuple):
    allowed: bool
    reason: Optional[str] = None
    next_attempt_number: Optional[int] = None

    @property
    def message(self):
        return DENIAL_MESSAGES.get(self.reason, '')


def can_start(exam, student, attempt_history, now=None):
    """
    Decide whether `student` may start a new attempt at `exam`.

    `attempt_history` is the student's attempts at this exam; only
    submitted ones count towards the limits.
    """
    if not exam.is_available_for(student, now=now):
        return PolicyDecision(False, NOT_AVAILABLE)

    submitted_count = sum(1 for attempt in attempt_history if attempt.is_submitted)

    if submitted_count and not exam.allow_multiple_attempts:
        return PolicyDecision(False, ALREADY_ATTEMPTED)

    if submitted_count >= exam.max_attempts:
        return PolicyDecision(False, MAX_ATTEMPTS_REACHED)

    return PolicyDecision(True, next_attempt_number=submitted_count + 1)
