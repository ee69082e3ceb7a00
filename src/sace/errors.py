"""
Error types for the survey answer compilation engine.

Two families live here:

    - BuildError: a VALUE describing one problem found while compiling
      answers into a calculation request. Build errors are collected, never
      raised (unless the builder is configured to fail fast).

    - SaceError and subclasses: ordinary exceptions for programming or
      configuration mistakes (bad registry, bad condition in strict mode,
      malformed question definitions, unreadable option files).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class BuildErrorType(Enum):
    """Closed taxonomy of build errors."""

    UNKNOWN_VARIABLE = "UNKNOWN_VARIABLE"
    UNKNOWN_ENTITY = "UNKNOWN_ENTITY"
    UNDEFINED_VALUE = "UNDEFINED_VALUE"
    UNEXPECTED_VALUE = "UNEXPECTED_VALUE"
    MAPPING_ERROR = "MAPPING_ERROR"


@dataclass(frozen=True)
class BuildError:
    """
    One problem found while compiling a single answer or question.

    Properties:
        type: BuildErrorType
        answer_key: Survey key that triggered the problem (kept for traceability)
        message: Human-readable description
    """

    type: BuildErrorType
    answer_key: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "answerKey": self.answer_key, "message": self.message}


class SaceError(Exception):
    """Base class for all exceptions raised by this package."""
    pass


class ConditionError(SaceError):
    """Raised when a visibility condition cannot be parsed (strict mode only)."""
    pass


class RegistryError(SaceError):
    """Raised when the mapping registry is inconsistent or cannot be loaded."""
    pass


class QuestionFormatError(SaceError):
    """Raised when a question definition does not have the expected shape."""
    pass


class UnknownPeriodError(SaceError):
    """Raised when a period type has no known period string."""
    pass


class OptionsError(SaceError):
    """Raised when builder options cannot be loaded."""
    pass


class DispatchError(SaceError):
    """Raised by dispatch functions when an answer cannot be fanned out."""

    def __init__(self, answer_key: str, message: str):
        super().__init__(message)
        self.answer_key = answer_key


class UnexpectedDispatchValue(DispatchError):
    """Raised when a dispatched answer carries a value the dispatcher does not know."""

    def __init__(self, answer_key: str, value: Any):
        super().__init__(answer_key, f"Unexpected value for '{answer_key}': {value!r}")
        self.value = value


class RequestBuildException(SaceError):
    """Raised on the first build error when the builder runs with throw_on_error."""

    def __init__(self, error: BuildError):
        super().__init__(f"{error.type.value}: {error.message}")
        self.error = error


class AnswersFormatError(SaceError):
    """Raised when an answers document is not a mapping of answer keys."""
    pass
