"""
Condition Evaluator for survey question visibility.

Evaluates `visibleWhen` expressions against the current answer set.

Grammar (string based, no parentheses):
    expression  := or_part ("||" or_part)*
    or_part     := atom ("&&" atom)*
    atom        := KEY ".includes(" values ")"
                 | KEY ".excludes(" values ")"
                 | KEY OP LITERAL
    OP          := "=" | "!=" | ">" | ">=" | "<" | "<=" | <custom symbol>

Examples:
    age>=18
    status=student
    age>=18&&status=student
    services.includes("aide-demenagement", "aide-caution")
    statuses.excludes('inactive')

IMPORTANT:
    The expression is split on "||" before "&&" is even looked at.
    "a&&b||c" therefore means "(a AND b) OR c", and "a||b&&c" means
    "a OR (b AND c)". There is no other precedence and no grouping.

    Unparsable expressions evaluate to False (the question is hidden)
    unless the evaluator is strict, in which case ConditionError is raised.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from sace.answers import ComboboxAnswer
from sace.errors import ConditionError

logger = logging.getLogger(__name__)

CustomOperator = Callable[[Any, Any], bool]
Literal = Union[str, int, float, bool]

COMPARISON_OPERATORS = [">=", "<=", "!=", ">", "<", "="]

_INCLUDES_RE = re.compile(r"^(.+)\.includes\((.+)\)$")
_EXCLUDES_RE = re.compile(r"^(.+)\.excludes\((.+)\)$")
_QUOTED_RE = re.compile(r"^[\"'](.+)[\"']$")
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def _unquote(value: str) -> str:
    return _QUOTED_RE.sub(r"\1", value)


def _to_number(text: str) -> float:
    """Numeric reading of a string; NaN when the string is not a number."""
    text = text.strip()
    if text == "":
        return 0.0
    if _NUMBER_RE.match(text):
        return float(text)
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf
    return math.nan


def _to_primitive(value: Any) -> Any:
    if isinstance(value, list):
        return ",".join("" if item is None else str(item) for item in value)
    if isinstance(value, (dict, ComboboxAnswer)):
        return "[object Object]"
    return value


def _coerce_number(value: Any) -> float:
    value = _to_primitive(value)
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return _to_number(value)
    return math.nan


def _loose_equals(left: Any, right: Any) -> bool:
    """
    Equality with implicit conversions.

    Strings compare as strings; as soon as one side is a number or a
    boolean both sides are compared numerically ("25" equals 25, True
    equals 1, "true" equals nothing numeric).
    """
    left = _to_primitive(left)
    right = _to_primitive(right)
    if isinstance(left, bool):
        left = 1 if left else 0
    if isinstance(right, bool):
        right = 1 if right else 0
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    if isinstance(left, str):
        left = _to_number(left)
    if isinstance(right, str):
        right = _to_number(right)
    return left == right


def parse_literal(value: str) -> Literal:
    """
    Parse the right-hand side of a comparison.

    Order: strip quotes, then number, then true/false, else raw string.
    """
    trimmed = _unquote(value)
    number = _to_number(trimmed)
    if not math.isnan(number):
        if math.isfinite(number) and number.is_integer():
            return int(number)
        return number
    if trimmed == "true":
        return True
    if trimmed == "false":
        return False
    return trimmed


def parse_list_argument(argument: str) -> List[str]:
    """Parse `"a", 'b', c` into ["a", "b", "c"]."""
    return [_unquote(part.strip()) for part in argument.split(",")]


def compare_values(left: Any, right: Literal, operator: str) -> bool:
    if operator == "=":
        return _loose_equals(left, right)
    if operator == "!=":
        return not _loose_equals(left, right)
    if operator == ">":
        return _coerce_number(left) > _coerce_number(right)
    if operator == ">=":
        return _coerce_number(left) >= _coerce_number(right)
    if operator == "<":
        return _coerce_number(left) < _coerce_number(right)
    if operator == "<=":
        return _coerce_number(left) <= _coerce_number(right)
    raise ConditionError(f"Unknown operator: {operator}")


class ConditionEvaluator:
    """
    Evaluates visibility conditions against survey answers.

    The evaluator holds no state besides its options and can be shared
    between threads and compilations.

    Properties:
        strict: Raise ConditionError on malformed expressions instead of
            returning False
        custom_operators: Extra comparison symbols mapped to callables
            (left_answer, parsed_literal) -> bool

    Example:
        evaluator = ConditionEvaluator()
        answers = {"age": 25, "status": "student"}

        evaluator.evaluate("age>=18", answers)                  # True
        evaluator.evaluate("status=student", answers)           # True
        evaluator.evaluate("age>=18&&status=student", answers)  # True
    """

    def __init__(self, strict: bool = False, custom_operators: Optional[Mapping[str, CustomOperator]] = None):
        self.strict = strict
        self.custom_operators: Dict[str, CustomOperator] = dict(custom_operators or {})
        # sorted() is stable: equal-length symbols keep their declaration order
        self._operators = sorted(
            COMPARISON_OPERATORS + [op for op in self.custom_operators if op not in COMPARISON_OPERATORS],
            key=len,
            reverse=True,
        )

    def evaluate(self, expression: Optional[str], answers: Mapping[str, Any]) -> bool:
        """
        Evaluate a condition string.

        Args:
            expression: Condition; None, empty or blank means "always visible"
            answers: Current answers keyed by question id

        Returns:
            True if the condition holds

        Raises:
            ConditionError: Malformed expression, strict mode only
        """
        if not expression or expression.strip() == "":
            return True

        try:
            return self._evaluate_expression(expression.strip(), answers)
        except ConditionError as e:
            if self.strict:
                raise
            logger.warning("Invalid condition expression %r: %s", expression, e)
            return False

    def _evaluate_expression(self, expression: str, answers: Mapping[str, Any]) -> bool:
        if "||" in expression:
            parts = [part.strip() for part in expression.split("||")]
            return any(self._evaluate_expression(part, answers) for part in parts)

        if "&&" in expression:
            parts = [part.strip() for part in expression.split("&&")]
            return all(self._evaluate_expression(part, answers) for part in parts)

        if ".includes(" in expression:
            return self._evaluate_includes(expression, answers)

        if ".excludes(" in expression:
            return self._evaluate_excludes(expression, answers)

        return self._evaluate_comparison(expression, answers)

    def _evaluate_includes(self, expression: str, answers: Mapping[str, Any]) -> bool:
        match = _INCLUDES_RE.match(expression)
        if not match:
            raise ConditionError(f"Invalid includes expression: {expression}")

        question_id = match.group(1).strip()
        values = parse_list_argument(match.group(2))
        selected = answers.get(question_id)

        if not selected:
            return False
        if isinstance(selected, str):
            return selected in values
        if isinstance(selected, list):
            return any(value in selected for value in values)
        return False

    def _evaluate_excludes(self, expression: str, answers: Mapping[str, Any]) -> bool:
        match = _EXCLUDES_RE.match(expression)
        if not match:
            raise ConditionError(f"Invalid excludes expression: {expression}")

        question_id = match.group(1).strip()
        values = parse_list_argument(match.group(2))
        selected = answers.get(question_id)

        # nothing selected excludes everything
        if not selected:
            return True
        if isinstance(selected, str):
            return selected not in values
        if isinstance(selected, list):
            return not any(value in selected for value in values)
        return True

    def _evaluate_comparison(self, expression: str, answers: Mapping[str, Any]) -> bool:
        for operator in self._operators:
            if operator not in expression:
                continue
            parts = expression.split(operator)
            if len(parts) != 2:
                continue

            left_side = parts[0].strip()
            right_side = parts[1].strip()
            left_value = answers.get(left_side)
            if left_value is None:
                return False

            right_value = parse_literal(right_side)

            custom = self.custom_operators.get(operator)
            if custom is not None:
                try:
                    return bool(custom(left_value, right_value))
                except Exception as e:
                    raise ConditionError(f"Custom operator {operator!r} failed on {expression!r}: {e}")

            return compare_values(left_value, right_value, operator)

        raise ConditionError(f"No valid operator found in expression: {expression}")


_default_evaluator = ConditionEvaluator()


def evaluate_condition(expression: Optional[str], answers: Mapping[str, Any]) -> bool:
    """Evaluate with a shared non-strict evaluator."""
    return _default_evaluator.evaluate(expression, answers)


__all__ = [
    "ConditionEvaluator",
    "CustomOperator",
    "evaluate_condition",
    "parse_literal",
    "parse_list_argument",
    "compare_values",
]
