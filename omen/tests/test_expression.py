"""
Tests for the expression evaluator.

Tests:
- Assignment forms (compound, postfix, plain)
- Arithmetic and boolean precedence
- Random(min, max)
- Malformed input handling
- Syntax validation
"""

import random

import pytest

from ..engine_core.errors import DiagnosticCode
from ..engine_core.expression import ExpressionEvaluator, tokenize, is_identifier
from ..engine_core.variables import VariableStore
from .conftest import FixedRandom


class TestAssignments:
    """Effects that write to the store."""

    def test_compound_on_empty_store(self):
        """x += 5 on an empty store yields x = 5."""
        store = VariableStore()
        evaluator = ExpressionEvaluator(store)

        assert evaluator.evaluate("x += 5") == 5
        assert store.get("x") == 5
        assert store.lookup("x").max == -1

    def test_subtract_bounded(self, evaluator, store):
        """hp -= 10 with hp = 30 yields 20."""
        evaluator.evaluate("hp -= 10")
        assert store.get("hp") == 20

    @pytest.mark.parametrize("effect, expected", [
        ("money += 25", 75),
        ("money -= 60", -10),
        ("money *= 2", 100),
        ("money /= 4", 12.5),
        ("money = 7", 7),
        ("money = money * 2 + 1", 101),
        ("money++", 51),
        ("money--", 49),
        ("  money  +=  1  ", 51),
    ])
    def test_assignment_forms(self, evaluator, store, effect, expected):
        evaluator.evaluate(effect)
        assert store.get("money") == pytest.approx(expected)

    def test_assignment_is_clamped(self, evaluator, store):
        """Assignments return the stored, clamped value."""
        assert evaluator.evaluate("hp += 500") == 100
        assert store.get("hp") == 100

    def test_compound_right_side_uses_variables(self, evaluator, store):
        evaluator.evaluate("hp += money / 10")
        assert store.get("hp") == 35

    def test_postfix_on_unknown_creates(self, evaluator, store, diagnostics):
        """Assignment targets start from 0 without an unbound diagnostic."""
        evaluator.evaluate("turns++")
        assert store.get("turns") == 1
        assert DiagnosticCode.UNBOUND_VARIABLE not in diagnostics.codes()

    def test_comparison_is_not_assignment(self, evaluator, store):
        """==, !=, <= and >= never write."""
        for expr in ["money == 50", "money != 3", "money <= 1", "money >= 1"]:
            evaluator.evaluate(expr)
        assert store.snapshot() == {"hp": 30.0, "money": 50.0}

    def test_division_by_zero_leaves_store(self, evaluator, store, diagnostics):
        assert evaluator.evaluate("money /= 0") == 0
        assert store.get("money") == 50
        assert DiagnosticCode.MALFORMED_EXPRESSION in diagnostics.codes()

    def test_invalid_target(self, evaluator, diagnostics):
        evaluator.evaluate("3 += 1")
        assert diagnostics.codes() == [DiagnosticCode.MALFORMED_EXPRESSION]

    def test_numeric_input(self, evaluator):
        assert evaluator.evaluate(4) == 4.0


class TestArithmetic:
    """Plain expressions."""

    @pytest.mark.parametrize("expr, expected", [
        ("1 + 2 * 3", 7),
        ("(1 + 2) * 3", 9),
        ("10 - 4 - 3", 3),
        ("12 / 4 / 3", 1),
        ("-3 + 5", 2),
        ("-(2 + 3)", -5),
        ("+4", 4),
        ("2.5 * 2", 5),
        ("hp + money", 80),
        ("hp - -10", 40),
    ])
    def test_evaluate(self, evaluator, expr, expected):
        assert evaluator.evaluate(expr) == pytest.approx(expected)

    def test_boolean_result_as_number(self, evaluator):
        assert evaluator.evaluate("hp > 10") == 1.0
        assert evaluator.evaluate("hp > 100") == 0.0

    def test_unknown_identifier_reads_zero(self, evaluator, diagnostics):
        assert evaluator.evaluate("ghost + 1") == 1
        assert diagnostics.codes() == [DiagnosticCode.UNBOUND_VARIABLE]


class TestConditions:
    """Boolean evaluation."""

    @pytest.mark.parametrize("a, b, expected", [
        (5, 0, False),
        (5, 1, True),
        (2, 1, False),
    ])
    def test_and_not(self, a, b, expected):
        """a >= 3 && !(b == 0)"""
        store = VariableStore()
        store.define("a", a, max=-1)
        store.define("b", b, max=-1)
        evaluator = ExpressionEvaluator(store)

        assert evaluator.evaluate_bool("a >= 3 && !(b == 0)") is expected

    @pytest.mark.parametrize("expr, expected", [
        ("hp == 30", True),
        ("hp != 30", False),
        ("hp < 30", False),
        ("hp <= 30", True),
        ("hp > 29.5", True),
        ("hp >= 31", False),
        ("hp > 100 || money == 50", True),
        ("hp > 100 || money == 51", False),
        ("1 || 0 && 0", True),
        ("!hp", False),
        ("!0", True),
        ("money", True),
        ("money - 50", False),
        ("(hp + 10) * 2 > money", True),
    ])
    def test_evaluate_bool(self, evaluator, expr, expected):
        assert evaluator.evaluate_bool(expr) is expected

    def test_float_equality_tolerance(self, evaluator):
        assert evaluator.evaluate_bool("0.1 + 0.2 == 0.3")

    def test_check_blank(self, evaluator):
        """Blank conditions always hold."""
        assert evaluator.check("")
        assert evaluator.check("   ")
        assert evaluator.check(None)
        assert not evaluator.check("hp > 100")


class TestRandom:
    """Random(min, max) substitution."""

    def test_degenerate_range(self, evaluator):
        """Random(1, 1) yields 1."""
        assert evaluator.evaluate("Random(1, 1)") == 1

    def test_reversed_range_yields_floor_min(self, evaluator):
        assert evaluator.evaluate("Random(5.7, 2)") == 5

    def test_pinned_draws(self, store):
        low = ExpressionEvaluator(store, rng=FixedRandom(value=0.0))
        high = ExpressionEvaluator(store, rng=FixedRandom(value=0.999))

        assert low.evaluate("Random(2, 6)") == 2
        assert high.evaluate("Random(2, 6)") == 5

    def test_range_is_half_open(self, store):
        evaluator = ExpressionEvaluator(store, rng=random.Random(3))
        draws = {evaluator.evaluate("Random(0, 3)") for _ in range(200)}
        assert draws == {0, 1, 2}

    def test_bounds_use_variables(self, store):
        evaluator = ExpressionEvaluator(store, rng=FixedRandom(value=0.5))
        # hp = 30, money = 50
        assert evaluator.evaluate("Random(hp, money)") == 40

    def test_random_in_effect(self, store):
        evaluator = ExpressionEvaluator(store, rng=FixedRandom(value=0.0))
        evaluator.evaluate("hp += Random(1, 6) * 2")
        assert store.get("hp") == 32

    def test_seeded_is_reproducible(self, store):
        first = ExpressionEvaluator(store, rng=random.Random(11))
        second = ExpressionEvaluator(store, rng=random.Random(11))
        assert [first.evaluate("Random(0, 100)") for _ in range(10)] == \
            [second.evaluate("Random(0, 100)") for _ in range(10)]


class TestMalformed:
    """Broken input is reported, never raised."""

    @pytest.mark.parametrize("expr", [
        "1 +",
        "(1 + 2",
        "1 2",
        "hp $ 3",
        "",
        "(hp > 1) + 2",
        "1 / 0",
    ])
    def test_evaluate_returns_zero(self, evaluator, diagnostics, expr):
        assert evaluator.evaluate(expr) == 0
        assert diagnostics.codes()[-1] == DiagnosticCode.MALFORMED_EXPRESSION

    def test_evaluate_bool_returns_false(self, evaluator, diagnostics):
        assert evaluator.evaluate_bool("hp >") is False
        assert diagnostics.codes() == [DiagnosticCode.MALFORMED_EXPRESSION]


class TestValidateSyntax:
    """Static parsing used by deck validation."""

    @pytest.mark.parametrize("expr", [
        "hp > 3 && money < 2",
        "Random(1, 6) > 3",
        "unknown_var == 0",
        "x / y",
    ])
    def test_valid_conditions(self, evaluator, expr):
        assert evaluator.validate_syntax(expr) is None

    @pytest.mark.parametrize("expr", ["hp += 1", "hp++", "x = Random(1, 3)", "a = b + c"])
    def test_valid_statements(self, evaluator, expr):
        assert evaluator.validate_syntax(expr, statement=True) is None

    @pytest.mark.parametrize("expr", ["hp >", "(1", "1 +* 2", "hp ? 1"])
    def test_invalid(self, evaluator, expr):
        assert evaluator.validate_syntax(expr) is not None

    def test_invalid_target(self, evaluator):
        assert evaluator.validate_syntax("3 = 4", statement=True) is not None

    def test_does_not_touch_store(self, evaluator, store, diagnostics):
        evaluator.validate_syntax("gold += ghost", statement=True)
        assert not store.has("gold")
        assert len(diagnostics) == 0


class TestHelpers:

    def test_tokenize(self):
        assert [t.text for t in tokenize("(1.5 + 2) >= 3")] == ["(", "1.5", "+", "2", ")", ">=", "3"]

    def test_is_identifier(self):
        assert is_identifier("hp_max2")
        assert not is_identifier("2hp")
        assert not is_identifier("a b")
