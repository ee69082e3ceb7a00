"""
Serialization helpers for answers, questions, requests and build errors.

Requests are written as JSON (the engine's wire format) or YAML (for
reading them). Answers and questions are read from either format.
"""
from __future__ import annotations

import json
from datetime import date
from typing import Any, Dict, List

import yaml

from sace.answers import SurveyAnswers
from sace.errors import AnswersFormatError, BuildError, QuestionFormatError
from sace.questions import SurveyQuestion, question_from_dict, question_to_dict


def request_to_json(request: Dict[str, Any], indent: int | None = None) -> str:
    return json.dumps(request, sort_keys=True, indent=indent, ensure_ascii=False)


def request_from_json(s: str) -> Dict[str, Any]:
    return json.loads(s)


def request_to_yaml(request: Dict[str, Any]) -> str:
    return yaml.safe_dump(request, allow_unicode=True)


def _normalize_answer(value: Any) -> Any:
    # unquoted YAML dates load as date objects; answers carry ISO strings
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, list):
        return [_normalize_answer(v) for v in value]
    return value


def answers_from_dict(d: Any) -> SurveyAnswers:
    if d is None:
        return {}
    if not isinstance(d, dict):
        raise AnswersFormatError(f"Answers must be a mapping of answer keys, got {type(d).__name__}")
    return {str(key): _normalize_answer(value) for key, value in d.items()}


def answers_from_json(s: str) -> SurveyAnswers:
    return answers_from_dict(json.loads(s))


def answers_from_yaml(s: str) -> SurveyAnswers:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise AnswersFormatError(f"Invalid answers document: {e}")
    return answers_from_dict(d)


def questions_from_data(d: Any) -> List[SurveyQuestion]:
    """
    Accepts a list of questions, {"questions": [...]}, or a simulator
    schema {"steps": [{"questions": [...]}, ...]}.
    """
    if isinstance(d, list):
        raw = d
    elif isinstance(d, dict) and "steps" in d:
        raw = [q for step in d["steps"] or [] for q in step.get("questions") or []]
    elif isinstance(d, dict) and "questions" in d:
        raw = d["questions"] or []
    else:
        raise QuestionFormatError("Expected a list of questions, a 'questions' list or 'steps'")
    return [question_from_dict(q) for q in raw]


def questions_to_data(questions: List[SurveyQuestion]) -> Dict[str, Any]:
    return {"questions": [question_to_dict(q) for q in questions]}


def questions_from_json(s: str) -> List[SurveyQuestion]:
    return questions_from_data(json.loads(s))


def questions_from_yaml(s: str) -> List[SurveyQuestion]:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise QuestionFormatError(f"Invalid questions document: {e}")
    return questions_from_data(d)


def questions_to_yaml(questions: List[SurveyQuestion]) -> str:
    return yaml.safe_dump(questions_to_data(questions), sort_keys=False, allow_unicode=True)


def errors_to_dicts(errors: List[BuildError]) -> List[Dict[str, Any]]:
    return [error.to_dict() for error in errors]


def errors_to_json(errors: List[BuildError]) -> str:
    return json.dumps(errors_to_dicts(errors), ensure_ascii=False)
