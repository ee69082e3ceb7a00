"""
Tests for survey question objects.

These tests verify:
    - Question dicts (schema form) become typed SurveyQuestion objects
    - Malformed definitions are rejected, tolerated extras are warned about
    - The dict form round-trips
"""

import pytest

from sace.errors import QuestionFormatError
from sace.questions import (
    QuestionType,
    SurveyChoice,
    SurveyQuestion,
    choice_from_dict,
    find_question,
    question_from_dict,
    question_to_dict,
)


def situation_logement_dict():
    return {
        "id": "situation-logement",
        "title": "Quelle est votre situation de logement ?",
        "type": "radio",
        "visibleWhen": "statut-professionnel=etudiant",
        "choices": [
            {"id": "locataire", "title": "Locataire"},
            {"id": "proprietaire", "title": "Propriétaire"},
            {"id": "heberge", "title": "Hébergé"},
        ],
    }


class TestQuestionFromDict:
    """Test building questions from their dict form."""

    def test_radio_question(self):
        q = question_from_dict(situation_logement_dict())
        assert q.id == "situation-logement"
        assert q.type is QuestionType.RADIO
        assert q.choice_ids == ["locataire", "proprietaire", "heberge"]
        assert q.visible_when == "statut-professionnel=etudiant"
        assert q.required is True

    def test_snake_case_visibility_key(self):
        q = question_from_dict({"id": "age", "type": "number", "visible_when": ["a=1", "b=2"]})
        assert q.conditions == ["a=1", "b=2"]

    def test_no_condition(self):
        q = question_from_dict({"id": "age", "type": "number", "min": 0, "max": 120})
        assert q.conditions == []
        assert q.min == 0
        assert q.max == 120

    def test_missing_id(self):
        with pytest.raises(QuestionFormatError, match="without id"):
            question_from_dict({"type": "number"})

    def test_unknown_type(self):
        with pytest.raises(QuestionFormatError, match="Unknown question type"):
            question_from_dict({"id": "x", "type": "slider"})

    def test_choice_question_without_choices(self):
        with pytest.raises(QuestionFormatError, match="has no choices"):
            question_from_dict({"id": "x", "type": "checkbox"})

    def test_bad_visibility_type(self):
        with pytest.raises(QuestionFormatError, match="visibleWhen"):
            question_from_dict({"id": "x", "type": "number", "visibleWhen": 3})

    def test_unknown_key_warns(self):
        with pytest.warns(UserWarning, match="unknown keys"):
            q = question_from_dict({"id": "x", "type": "number", "colour": "red"})
        assert q.id == "x"

    def test_string_choices(self):
        assert choice_from_dict("oui") == SurveyChoice(id="oui", title="oui")
        with pytest.raises(QuestionFormatError):
            choice_from_dict({"title": "no id"})


class TestQuestionToDict:
    """Test the dict form of questions."""

    def test_round_trip(self):
        q = question_from_dict(situation_logement_dict())
        d = question_to_dict(q)
        assert d["visibleWhen"] == "statut-professionnel=etudiant"
        assert [c["id"] for c in d["choices"]] == ["locataire", "proprietaire", "heberge"]
        assert question_from_dict(d) == q

    def test_optional_fields_omitted(self):
        d = question_to_dict(SurveyQuestion(id="age", title="Âge", type=QuestionType.NUMBER))
        assert d == {"id": "age", "title": "Âge", "type": "number", "required": True}


class TestFindQuestion:
    def test_find(self):
        questions = [question_from_dict(situation_logement_dict())]
        assert find_question(questions, "situation-logement") is questions[0]
        assert find_question(questions, "missing") is None
