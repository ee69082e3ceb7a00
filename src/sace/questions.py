"""
Survey Question Objects

Normalized question definitions, as supplied by the survey schema layer.

These are pure data classes. They carry exactly what the compilation
engine needs from the schema:
    - the question id (also the answer key)
    - its type and, for choice questions, the choice ids
    - its visibility condition(s)

ARCHITECTURAL RULE:
    Normalizing and validating the survey schema document is NOT done
    here. Questions arrive already normalized; this module only turns
    their dict form into typed objects and back.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from sace.errors import QuestionFormatError


class QuestionType(Enum):
    RADIO = "radio"
    CHECKBOX = "checkbox"
    NUMBER = "number"
    DATE = "date"
    COMBOBOX = "combobox"
    BOOLEAN = "boolean"


CHOICE_TYPES = (QuestionType.RADIO, QuestionType.CHECKBOX)


@dataclass(frozen=True)
class SurveyChoice:
    """
    One option of a radio or checkbox question.

    Properties:
        id: Value submitted when the option is chosen
        title: Label shown to the respondent
        exclusive: For checkboxes, selecting it clears the others
    """

    id: str
    title: str = ""
    exclusive: bool = False


@dataclass
class SurveyQuestion:
    """
    A single survey question.

    Properties:
        id:
            Unique identifier; answers are keyed by it
            Examples: "date-naissance", "situation-logement"

        title:
            Question text

        type:
            QuestionType

        required:
            Whether an answer is expected once the question is visible

        visible_when:
            Visibility condition. A string is one condition, a list is a
            conjunction of conditions. None means always visible.
            Example: "statut-professionnel=etudiant"

        choices:
            Options of radio/checkbox questions

        min / max:
            Bounds of number questions
    """

    id: str
    title: str
    type: QuestionType
    required: bool = True
    visible_when: Optional[Union[str, List[str]]] = None
    choices: List[SurveyChoice] = field(default_factory=list)
    min: Optional[float] = None
    max: Optional[float] = None
    description: Optional[str] = None
    default: Optional[Union[str, int, float, bool]] = None

    @property
    def choice_ids(self) -> List[str]:
        return [choice.id for choice in self.choices]

    @property
    def conditions(self) -> List[str]:
        """Visibility conditions as a list (empty when always visible)."""
        if self.visible_when is None:
            return []
        if isinstance(self.visible_when, str):
            return [self.visible_when]
        return list(self.visible_when)


_KNOWN_KEYS = {
    "id", "title", "type", "required", "visibleWhen", "visible_when", "choices",
    "min", "max", "step", "description", "placeholder", "default", "tooltip",
    "notion", "autocompleteFunction", "autocompleteConfig",
}


def choice_from_dict(d: Union[Dict[str, Any], str]) -> SurveyChoice:
    if isinstance(d, str):
        return SurveyChoice(id=d, title=d)
    if "id" not in d:
        raise QuestionFormatError(f"Choice without id: {d!r}")
    return SurveyChoice(id=str(d["id"]), title=d.get("title", ""), exclusive=bool(d.get("exclusive", False)))


def question_from_dict(d: Dict[str, Any]) -> SurveyQuestion:
    """
    Build a SurveyQuestion from its normalized dict form.

    Both "visibleWhen" (schema documents) and "visible_when" are accepted.

    Raises:
        QuestionFormatError: Missing id/type, unknown type, or a choice
            question without choices
    """
    if "id" not in d:
        raise QuestionFormatError(f"Question without id: {d!r}")
    qid = d["id"]

    try:
        qtype = QuestionType(d.get("type"))
    except ValueError:
        raise QuestionFormatError(f"Unknown question type for '{qid}': {d.get('type')!r}")

    unknown = set(d) - _KNOWN_KEYS
    if unknown:
        warnings.warn(f"Ignoring unknown keys for question '{qid}': {sorted(unknown)}", UserWarning)

    choices = [choice_from_dict(c) for c in d.get("choices") or []]
    if qtype in CHOICE_TYPES and not choices:
        raise QuestionFormatError(f"Question '{qid}' of type {qtype.value} has no choices")

    visible_when = d.get("visibleWhen", d.get("visible_when"))
    if visible_when is not None and not isinstance(visible_when, (str, list)):
        raise QuestionFormatError(f"visibleWhen of '{qid}' must be a string or a list of strings")

    return SurveyQuestion(
        id=qid,
        title=d.get("title", ""),
        type=qtype,
        required=d.get("required", True),
        visible_when=visible_when,
        choices=choices,
        min=d.get("min"),
        max=d.get("max"),
        description=d.get("description"),
        default=d.get("default"),
    )


def question_to_dict(q: SurveyQuestion) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": q.id,
        "title": q.title,
        "type": q.type.value,
        "required": q.required,
    }
    if q.visible_when is not None:
        d["visibleWhen"] = q.visible_when
    if q.choices:
        d["choices"] = [{"id": c.id, "title": c.title, "exclusive": c.exclusive} for c in q.choices]
    if q.min is not None:
        d["min"] = q.min
    if q.max is not None:
        d["max"] = q.max
    if q.description is not None:
        d["description"] = q.description
    if q.default is not None:
        d["default"] = q.default
    return d


def find_question(questions: List[SurveyQuestion], question_id: str) -> Optional[SurveyQuestion]:
    for question in questions:
        if question.id == question_id:
            return question
    return None
