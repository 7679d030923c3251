"""
Answer evaluation for every supported question type.

- AnswerEvaluator: decides correctness and marks for one answer
- check_answer_shape: payload validation shared by evaluation and
  question authoring

Evaluation is pure: it reads the question's type, correct answer and
marks, and never touches the database.
"""
import json
import re

from .exceptions import InvalidQuestionType, MalformedAnswer
from .models import Question

QuestionType = Question.QuestionType

SCALAR_TYPES = (str, int, float, bool)


def _is_scalar(value):
    return isinstance(value, SCALAR_TYPES)


def _is_scalar_list(value):
    return isinstance(value, list) and all(_is_scalar(item) for item in value)


def _is_pair_collection(value):
    if isinstance(value, dict):
        return True
    return isinstance(value, list) and all(
        isinstance(pair, list) and len(pair) == 2 for pair in value
    )


def check_answer_shape(question_type, value):
    """
    Raise MalformedAnswer unless `value` has the payload shape used by
    `question_type`:

    - single_choice / true_false: scalar (option index or text)
    - fill_in_blank: scalar, or list of scalars for multi-blank questions
    - essay: text
    - matching: list of pairs, or a mapping of left -> right
    - ordering: list of scalars
    """
    if question_type in (QuestionType.SINGLE_CHOICE, QuestionType.TRUE_FALSE):
        valid = _is_scalar(value)
    elif question_type == QuestionType.FILL_IN_BLANK:
        valid = _is_scalar(value) or (_is_scalar_list(value) and len(value) > 0)
    elif question_type == QuestionType.ESSAY:
        valid = isinstance(value, str)
    elif question_type == QuestionType.MATCHING:
        valid = _is_pair_collection(value)
    elif question_type == QuestionType.ORDERING:
        valid = _is_scalar_list(value)
    else:
        raise InvalidQuestionType(question_type)

    if not valid:
        raise MalformedAnswer(
            f'Expected a {QuestionType(question_type).label} answer, '
            f'got {type(value).__name__}'
        )


class AnswerEvaluator:
    """
    Deterministic grading by question type.

    - single_choice/true_false: normalized text match
    - fill_in_blank: normalized match, element-wise for multiple blanks
    - matching: pairs compared as an unordered set
    - ordering: order-sensitive comparison
    - essay: indeterminate, left for a teacher
    """

    def evaluate(self, question, raw_answer):
        """
        Returns dict: {
            'is_correct': bool, or None when a teacher must decide
            'marks_awarded': marks, -negative_marks, or None
        }
        """
        is_correct = self.check_answer(question, raw_answer)
        return {
            'is_correct': is_correct,
            'marks_awarded': self.marks_for(question, is_correct),
        }

    def check_answer(self, question, raw_answer):
        qtype = question.question_type
        check_answer_shape(qtype, raw_answer)

        if qtype == QuestionType.ESSAY:
            return None

        expected = question.correct_answer
        try:
            check_answer_shape(qtype, expected)
        except MalformedAnswer:
            raise MalformedAnswer(f'Question {question.pk} has a malformed correct answer')

        if qtype in (QuestionType.SINGLE_CHOICE, QuestionType.TRUE_FALSE):
            return self._normalize_text(expected) == self._normalize_text(raw_answer)
        if qtype == QuestionType.FILL_IN_BLANK:
            return self._check_blanks(expected, raw_answer)
        if qtype == QuestionType.MATCHING:
            return self._canonical_pairs(expected) == self._canonical_pairs(raw_answer)
        # ordering
        return [self._canonical(item) for item in expected] == \
            [self._canonical(item) for item in raw_answer]

    @staticmethod
    def marks_for(question, is_correct):
        if is_correct is None:
            return None
        if is_correct:
            return question.marks
        return -question.negative_marks if question.negative_marks else 0

    def _check_blanks(self, expected, raw_answer):
        if not isinstance(expected, list):
            if isinstance(raw_answer, list):
                raise MalformedAnswer('This question has a single blank')
            return self._normalize_text(expected) == self._normalize_text(raw_answer)

        if not isinstance(raw_answer, list):
            raise MalformedAnswer(f'Expected {len(expected)} blanks')
        if len(expected) != len(raw_answer):
            return False
        return all(
            self._normalize_text(correct) == self._normalize_text(given)
            for correct, given in zip(expected, raw_answer)
        )

    @staticmethod
    def _normalize_text(value):
        """Case-insensitive, whitespace-trimmed comparison."""
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        return re.sub(r'\s+', ' ', str(value).strip().lower())

    @staticmethod
    def _canonical(value):
        return json.dumps(value, sort_keys=True)

    @classmethod
    def _canonical_pairs(cls, value):
        """
        Pairs as sorted JSON strings, so {"a": "1"} and [["a", "1"]] compare
        equal and the order pairs were given in does not matter.
        """
        if isinstance(value, dict):
            value = [[key, item] for key, item in value.items()]
        return sorted(cls._canonical(pair) for pair in value)
