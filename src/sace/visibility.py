"""
Question visibility and answer filtering.

The compilation engine only ever sees answers to questions that are
currently visible. These helpers apply the visibility conditions of a
question list to an answer set, the way the survey front-end does while
the respondent navigates.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from sace.conditions import ConditionEvaluator
from sace.questions import QuestionType, SurveyQuestion


def is_question_visible(
    question: Optional[SurveyQuestion],
    answers: Mapping[str, Any],
    evaluator: Optional[ConditionEvaluator] = None,
) -> bool:
    """
    A question is visible when all its conditions hold.

    Unknown questions (None) are never visible; questions without a
    condition always are.
    """
    if question is None:
        return False
    evaluator = evaluator or ConditionEvaluator()
    return all(evaluator.evaluate(condition, answers) for condition in question.conditions)


def get_visible_questions(
    questions: List[SurveyQuestion],
    answers: Mapping[str, Any],
    evaluator: Optional[ConditionEvaluator] = None,
) -> List[SurveyQuestion]:
    evaluator = evaluator or ConditionEvaluator()
    return [q for q in questions if is_question_visible(q, answers, evaluator)]


def filter_visible_answers(
    questions: List[SurveyQuestion],
    answers: Mapping[str, Any],
    evaluator: Optional[ConditionEvaluator] = None,
) -> Dict[str, Any]:
    """
    Drop answers whose question is hidden.

    Conditions are evaluated against the full answer set. Answers whose key
    is not a question of the list are kept. Answer order is preserved.
    """
    evaluator = evaluator or ConditionEvaluator()
    by_id = {q.id: q for q in questions}
    visible: Dict[str, Any] = {}
    for key, value in answers.items():
        question = by_id.get(key)
        if question is None or is_question_visible(question, answers, evaluator):
            visible[key] = value
    return visible


def expand_checkbox_answers(
    questions: List[SurveyQuestion],
    answers: Mapping[str, Any],
    keep_keys: Optional[set] = None,
) -> Dict[str, Any]:
    """
    Expand checkbox list answers into one boolean answer per choice.

    {"aides": ["apl", "visale"]} with choices apl/visale/locapass becomes
    {"apl": True, "visale": True, "locapass": False}.

    Args:
        questions: Question definitions (choice ids come from here)
        answers: Answers to expand
        keep_keys: Keys left untouched even if they are checkbox answers
            (typically keys the mapping registry handles itself, such as
            excluded ones)

    Returns:
        A new answers dict; expanded booleans take the position of the
        original list answer.
    """
    keep_keys = keep_keys or set()
    by_id = {q.id: q for q in questions}
    expanded: Dict[str, Any] = {}
    for key, value in answers.items():
        question = by_id.get(key)
        if (
            question is None
            or question.type is not QuestionType.CHECKBOX
            or key in keep_keys
            or not isinstance(value, list)
        ):
            expanded[key] = value
            continue
        for choice_id in question.choice_ids:
            expanded[choice_id] = choice_id in value
    return expanded
