"""
Survey answer values.

An answer is one of:
    - a scalar: str, int, float, bool
    - a list of choice ids (checkbox questions, before expansion)
    - a combobox selection: ComboboxAnswer(text, value) or the equivalent
      dict {"text": ..., "value": ...} as produced by JSON front-ends
    - None, meaning "unanswered"

`unwrap_answer` is the single place where combobox selections are reduced
to their submitted value. Everything downstream only sees scalars, lists
or None.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Union

Scalar = Union[str, int, float, bool]


@dataclass(frozen=True)
class ComboboxAnswer:
    """
    Selection made in an autocomplete field.

    Properties:
        text: Label shown to the respondent (e.g. "Paris 15e")
        value: Submitted value (e.g. "75115")
    """

    text: str
    value: Any


AnswerValue = Union[Scalar, List[str], ComboboxAnswer, Dict[str, Any], None]
SurveyAnswers = Dict[str, AnswerValue]


def is_unanswered(value: AnswerValue) -> bool:
    return value is None


def is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def unwrap_answer(value: AnswerValue) -> Any:
    """Reduce a combobox selection to its value; return anything else unchanged."""
    if isinstance(value, ComboboxAnswer):
        return value.value
    if isinstance(value, dict) and "value" in value:
        return value["value"]
    return value
