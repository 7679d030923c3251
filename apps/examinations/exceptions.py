"""
Errors raised by the submission and scoring engine.

Views translate these into JSON responses; nothing here knows about HTTP.
"""


class ExamEngineError(Exception):
    code = 'error'
    default_message = 'Request could not be processed'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)

    @property
    def message(self):
        return self.args[0]


class NotFound(ExamEngineError):
    code = 'not_found'
    default_message = 'Not found'


class DeniedByPolicy(ExamEngineError):
    """Attempt refused by availability, eligibility or attempt limits."""
    code = 'denied_by_policy'
    default_message = 'Exam is not available for you'

    def __init__(self, reason, message=None):
        super().__init__(message)
        self.reason = reason


class AlreadySubmitted(ExamEngineError):
    code = 'already_submitted'
    default_message = 'Exam already submitted'


class InvalidQuestionType(ExamEngineError):
    code = 'invalid_question_type'

    def __init__(self, question_type):
        super().__init__(f'Unsupported question type: {question_type!r}')
        self.question_type = question_type


class MalformedAnswer(ExamEngineError):
    code = 'malformed_answer'
    default_message = 'Answer does not match the shape expected for this question type'


class NotOwner(ExamEngineError):
    code = 'not_owner'
    default_message = 'Access denied'


class InvalidGradingTarget(ExamEngineError):
    code = 'invalid_grading_target'
    default_message = 'This answer cannot be graded manually'


class QuestionLocked(ExamEngineError):
    code = 'question_locked'
    default_message = 'Question has been answered in a submitted attempt and can no longer be edited'


class ExamLocked(ExamEngineError):
    code = 'exam_locked'
    default_message = 'Exam already has attempts; its questions can no longer change'
