"""
Answer validation.

Checks survey answers against their question definitions before they are
compiled: required answers, choice ids, number bounds, date format, and
the value type expected by each question type.

Like the request builder, the validator never raises on bad answers. It
runs over every question and returns all the problems it found.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from sace.answers import ComboboxAnswer
from sace.questions import QuestionType, SurveyQuestion

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$|^\d{2}/\d{2}/\d{4}$")


class ValidationCode(Enum):
    REQUIRED = "REQUIRED"
    INVALID_TYPE = "INVALID_TYPE"
    INVALID_CHOICE = "INVALID_CHOICE"
    EXCLUSIVE_CHOICE = "EXCLUSIVE_CHOICE"
    MIN_VALUE = "MIN_VALUE"
    MAX_VALUE = "MAX_VALUE"
    INVALID_DATE = "INVALID_DATE"


@dataclass(frozen=True)
class AnswerValidationError:
    """
    One answer that does not fit its question.

    Properties:
        question_id: Question (and answer key) the problem belongs to
        code: ValidationCode
        message: Human-readable description
        context: Extra details (valid choices, bounds, offending values)
    """

    question_id: str
    code: ValidationCode
    message: str
    context: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"field": self.question_id, "code": self.code.value, "message": self.message}
        if self.context:
            d["context"] = dict(self.context)
        return d


@dataclass(frozen=True)
class ValidationResult:
    errors: List[AnswerValidationError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


CustomValidator = Callable[[SurveyQuestion, Any], List[AnswerValidationError]]


def has_answer(answer: Any) -> bool:
    """None, the empty string and the empty selection count as no answer."""
    if answer is None or answer == "":
        return False
    if isinstance(answer, list) and not answer:
        return False
    return True


def _as_number(answer: Any) -> Optional[float]:
    if isinstance(answer, bool) or not isinstance(answer, (int, float, str)):
        return None
    try:
        value = float(answer)
    except ValueError:
        return None
    return None if math.isnan(value) else value


class AnswerValidator:
    """
    Validates answers against question definitions.

    Properties:
        custom_validators: Question id -> callable(question, answer)
            returning a list of errors. Replaces the built-in checks for
            that question.

    Example:
        validator = AnswerValidator()
        result = validator.validate_all(questions, answers)
        for error in result.errors:
            print(error.question_id, error.code.value, error.message)
    """

    def __init__(self, custom_validators: Optional[Mapping[str, CustomValidator]] = None):
        self.custom_validators: Dict[str, CustomValidator] = dict(custom_validators or {})

    def validate_answer(self, question: SurveyQuestion, answer: Any) -> ValidationResult:
        custom = self.custom_validators.get(question.id)
        if custom is not None:
            return ValidationResult(list(custom(question, answer)))

        if not has_answer(answer):
            if question.required:
                return ValidationResult([self._error(question, ValidationCode.REQUIRED, "is required")])
            return ValidationResult()

        check = self._checks.get(question.type)
        if check is None:
            return ValidationResult()
        return ValidationResult(check(self, question, answer))

    def validate_all(self, questions: List[SurveyQuestion], answers: Mapping[str, Any]) -> ValidationResult:
        """
        Validate the answer of every question, in question order.

        Pass only the visible questions: a hidden required question has
        no answer and would be reported as missing.
        """
        errors: List[AnswerValidationError] = []
        for question in questions:
            errors.extend(self.validate_answer(question, answers.get(question.id)).errors)
        return ValidationResult(errors)

    # ------------------------------------------------------------------
    # Per-type checks
    # ------------------------------------------------------------------

    @staticmethod
    def _error(question: SurveyQuestion, code: ValidationCode, text: str, **context) -> AnswerValidationError:
        return AnswerValidationError(question.id, code, f"{question.title or question.id} {text}", context)

    def _check_radio(self, question: SurveyQuestion, answer: Any) -> List[AnswerValidationError]:
        if not isinstance(answer, str):
            return [self._error(question, ValidationCode.INVALID_TYPE, "must be a string")]
        valid_ids = question.choice_ids
        if valid_ids and answer not in valid_ids:
            return [self._error(question, ValidationCode.INVALID_CHOICE,
                                f"must be one of: {', '.join(valid_ids)}",
                                valid_choices=valid_ids, provided=answer)]
        return []

    def _check_checkbox(self, question: SurveyQuestion, answer: Any) -> List[AnswerValidationError]:
        if not isinstance(answer, list):
            return [self._error(question, ValidationCode.INVALID_TYPE, "must be a list")]

        valid_ids = question.choice_ids
        if valid_ids:
            invalid = [a for a in answer if a not in valid_ids]
            if invalid:
                return [self._error(question, ValidationCode.INVALID_CHOICE,
                                    f"contains invalid choices: {', '.join(map(str, invalid))}",
                                    valid_choices=valid_ids, invalid_choices=invalid)]

        # an exclusive choice ("none of the above") cannot be combined
        exclusive = [c.id for c in question.choices if c.exclusive and c.id in answer]
        if exclusive and len(answer) > 1:
            return [self._error(question, ValidationCode.EXCLUSIVE_CHOICE,
                                f"cannot combine {', '.join(exclusive)} with other choices",
                                exclusive_choices=exclusive, provided=list(answer))]
        return []

    def _check_number(self, question: SurveyQuestion, answer: Any) -> List[AnswerValidationError]:
        value = _as_number(answer)
        if value is None:
            return [self._error(question, ValidationCode.INVALID_TYPE, "must be a number")]

        errors = []
        if question.min is not None and value < question.min:
            errors.append(self._error(question, ValidationCode.MIN_VALUE, f"must be at least {question.min}",
                                      min=question.min, provided=value))
        if question.max is not None and value > question.max:
            errors.append(self._error(question, ValidationCode.MAX_VALUE, f"must be at most {question.max}",
                                      max=question.max, provided=value))
        return errors

    def _check_date(self, question: SurveyQuestion, answer: Any) -> List[AnswerValidationError]:
        if isinstance(answer, date):
            return []
        if not isinstance(answer, str):
            return [self._error(question, ValidationCode.INVALID_TYPE, "must be a string")]
        if not DATE_PATTERN.match(answer):
            return [self._error(question, ValidationCode.INVALID_DATE, "must be a valid date")]
        return []

    def _check_combobox(self, question: SurveyQuestion, answer: Any) -> List[AnswerValidationError]:
        if isinstance(answer, (str, ComboboxAnswer)):
            return []
        if isinstance(answer, dict) and "text" in answer and "value" in answer:
            return []
        return [self._error(question, ValidationCode.INVALID_TYPE, "must be a string or a {text, value} selection")]

    def _check_boolean(self, question: SurveyQuestion, answer: Any) -> List[AnswerValidationError]:
        if not isinstance(answer, bool):
            return [self._error(question, ValidationCode.INVALID_TYPE, "must be a boolean")]
        return []

    _checks = {
        QuestionType.RADIO: _check_radio,
        QuestionType.CHECKBOX: _check_checkbox,
        QuestionType.NUMBER: _check_number,
        QuestionType.DATE: _check_date,
        QuestionType.COMBOBOX: _check_combobox,
        QuestionType.BOOLEAN: _check_boolean,
    }


def validate_answers(questions: List[SurveyQuestion], answers: Mapping[str, Any]) -> ValidationResult:
    """Validate with a default AnswerValidator."""
    return AnswerValidator().validate_all(questions, answers)
