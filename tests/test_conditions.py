"""
Tests for the visibility condition evaluator.

These tests verify:
    - Blank conditions and missing answers
    - Comparison operators and literal parsing
    - includes/excludes on single and multiple selections
    - The "||" before "&&" split
    - Strict mode and custom operators
"""

import math

import pytest

from sace.answers import ComboboxAnswer
from sace.conditions import (
    ConditionEvaluator,
    compare_values,
    evaluate_condition,
    parse_list_argument,
    parse_literal,
)
from sace.errors import ConditionError


class TestBlankExpressions:
    """Blank conditions always hold."""

    @pytest.mark.parametrize("expression", [None, "", "   ", "\t\n"])
    def test_blank_is_true(self, expression):
        assert ConditionEvaluator().evaluate(expression, {}) is True

    def test_module_level_helper(self):
        assert evaluate_condition("", {}) is True
        assert evaluate_condition("a=1", {"a": 1}) is True


class TestComparisons:
    """Test comparison operators."""

    def test_missing_key_is_false(self):
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate("k=anything", {}) is False
        assert evaluator.evaluate("k!=anything", {}) is False
        assert evaluator.evaluate("k=anything", {"k": None}) is False

    def test_range_conjunction(self):
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate("a>=18&&a<=30", {"a": 25}) is True
        assert evaluator.evaluate("a>=18&&a<=30", {"a": 31}) is False

    def test_string_equality(self):
        evaluator = ConditionEvaluator()
        answers = {"statut-professionnel": "etudiant"}
        assert evaluator.evaluate("statut-professionnel=etudiant", answers) is True
        assert evaluator.evaluate("statut-professionnel=salarie", answers) is False
        assert evaluator.evaluate("statut-professionnel!=salarie", answers) is True

    def test_quoted_literal(self):
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate("ville='Paris'", {"ville": "Paris"}) is True
        assert evaluator.evaluate('ville="Paris"', {"ville": "Paris"}) is True

    def test_numeric_string_equals_number(self):
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate("age=25", {"age": "25"}) is True
        assert evaluator.evaluate("age=25", {"age": 25}) is True
        assert evaluator.evaluate("age=25", {"age": 25.0}) is True

    def test_boolean_literals(self):
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate("boursier=true", {"boursier": True}) is True
        assert evaluator.evaluate("boursier=false", {"boursier": False}) is True
        assert evaluator.evaluate("boursier=true", {"boursier": False}) is False

    def test_string_true_is_not_boolean_true(self):
        # "true" answer vs true literal: compared numerically, NaN != 1
        assert ConditionEvaluator().evaluate("flag=true", {"flag": "true"}) is False

    def test_ordering_operators(self):
        evaluator = ConditionEvaluator()
        answers = {"loyer": 600}
        assert evaluator.evaluate("loyer>500", answers) is True
        assert evaluator.evaluate("loyer<500", answers) is False
        assert evaluator.evaluate("loyer>=600", answers) is True
        assert evaluator.evaluate("loyer<=599", answers) is False

    def test_ordering_with_non_numeric_is_false(self):
        assert ConditionEvaluator().evaluate("age>18", {"age": "abc"}) is False

    def test_spaces_around_operands(self):
        assert ConditionEvaluator().evaluate(" age >= 18 ", {"age": 20}) is True

    def test_combobox_answer_compares_as_object(self):
        answers = {"commune": ComboboxAnswer(text="Paris", value="75056")}
        assert ConditionEvaluator().evaluate("commune=75056", answers) is False


class TestIncludesExcludes:
    """Test includes/excludes membership functions."""

    def test_includes_list(self):
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate('x.includes("p","q")', {"x": ["p"]}) is True
        assert evaluator.evaluate('x.includes("r")', {"x": ["p", "q"]}) is False

    def test_includes_single_string(self):
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate("x.includes('p', 'q')", {"x": "q"}) is True
        assert evaluator.evaluate("x.includes('p')", {"x": "pq"}) is False

    def test_includes_missing_or_empty(self):
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate('x.includes("p")', {}) is False
        assert evaluator.evaluate('x.includes("p")', {"x": []}) is False
        assert evaluator.evaluate('x.includes("p")', {"x": ""}) is False

    def test_excludes(self):
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate('x.excludes("p")', {"x": ["p"]}) is False
        assert evaluator.evaluate('x.excludes("p")', {"x": ["q"]}) is True
        assert evaluator.evaluate('x.excludes("p")', {"x": "q"}) is True

    def test_excludes_missing_is_true(self):
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate('x.excludes("p")', {}) is True
        assert evaluator.evaluate('x.excludes("p")', {"x": []}) is True

    def test_includes_other_type_is_false(self):
        assert ConditionEvaluator().evaluate('x.includes("1")', {"x": 1}) is False


class TestLogicalSplit:
    """The expression is split on "||" first, then "&&"."""

    def test_or(self):
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate("a=1||b=2", {"a": 0, "b": 2}) is True
        assert evaluator.evaluate("a=1||b=2", {"a": 0, "b": 0}) is False

    def test_and_then_or(self):
        # "a=1&&b=1||c=1" is "(a=1 AND b=1) OR c=1"
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate("a=1&&b=1||c=1", {"a": 0, "b": 0, "c": 1}) is True
        assert evaluator.evaluate("a=1&&b=1||c=1", {"a": 1, "b": 0, "c": 0}) is False

    def test_or_then_and(self):
        # "a=1||b=1&&c=1" is "a=1 OR (b=1 AND c=1)"
        evaluator = ConditionEvaluator()
        assert evaluator.evaluate("a=1||b=1&&c=1", {"a": 1, "b": 0, "c": 0}) is True
        assert evaluator.evaluate("a=1||b=1&&c=1", {"a": 0, "b": 1, "c": 0}) is False

    def test_includes_inside_conjunction(self):
        answers = {"aides": ["apl"], "age": 20}
        assert ConditionEvaluator().evaluate('aides.includes("apl")&&age<26', answers) is True


class TestInvalidExpressions:
    """Test lenient and strict handling of malformed conditions."""

    def test_no_operator_is_false(self):
        assert ConditionEvaluator().evaluate("justakey", {"justakey": 1}) is False

    def test_no_operator_strict_raises(self):
        with pytest.raises(ConditionError, match="No valid operator"):
            ConditionEvaluator(strict=True).evaluate("justakey", {"justakey": 1})

    def test_ambiguous_equals_is_false(self):
        # splits into three parts for every operator
        assert ConditionEvaluator().evaluate("a=b=c", {"a": "b"}) is False

    def test_malformed_includes_strict(self):
        with pytest.raises(ConditionError):
            ConditionEvaluator(strict=True).evaluate("x.includes(", {"x": ["a"]})


class TestCustomOperators:
    """Test caller supplied comparison symbols."""

    def test_custom_operator(self):
        evaluator = ConditionEvaluator(custom_operators={"~": lambda left, right: str(right) in str(left)})
        assert evaluator.evaluate("ville~Par", {"ville": "Paris"}) is True
        assert evaluator.evaluate("ville~Lyon", {"ville": "Paris"}) is False

    def test_longer_custom_operator_wins(self):
        evaluator = ConditionEvaluator(custom_operators={"===": lambda left, right: left == right})
        assert evaluator.evaluate("a===1", {"a": 1}) is True
        assert evaluator.evaluate("a===1", {"a": "1"}) is False

    def test_failing_custom_operator(self):
        def boom(left, right):
            raise TypeError("bad operands")

        assert ConditionEvaluator(custom_operators={"~": boom}).evaluate("a~1", {"a": 1}) is False
        with pytest.raises(ConditionError, match="bad operands"):
            ConditionEvaluator(strict=True, custom_operators={"~": boom}).evaluate("a~1", {"a": 1})

    def test_custom_operator_lookup_error(self):
        def lookup(left, right):
            return {"a": True}[right]

        assert ConditionEvaluator(custom_operators={"~": lookup}).evaluate("x~zzz", {"x": 1}) is False
        with pytest.raises(ConditionError, match="zzz"):
            ConditionEvaluator(strict=True, custom_operators={"~": lookup}).evaluate("x~zzz", {"x": 1})


class TestHelpers:
    """Test literal and argument parsing."""

    def test_parse_literal(self):
        assert parse_literal("42") == 42
        assert isinstance(parse_literal("42"), int)
        assert parse_literal("3.5") == 3.5
        assert parse_literal("'12'") == 12
        assert parse_literal("true") is True
        assert parse_literal("false") is False
        assert parse_literal("etudiant") == "etudiant"
        assert parse_literal("''") == "''"

    def test_parse_list_argument(self):
        assert parse_list_argument('"a", \'b\', c') == ["a", "b", "c"]

    def test_compare_values(self):
        assert compare_values("25", 25, "=") is True
        assert compare_values(True, 1, "=") is True
        assert compare_values(None, 0, ">=") is False
        with pytest.raises(ConditionError):
            compare_values(1, 1, "<>")

    def test_nan_never_equal(self):
        assert compare_values("abc", math.nan, "=") is False
