"""
Expression Evaluator for effects and conditions.

Effects are assignment-style strings that mutate the variable store:
    money -= 100
    hp += Random(1, 6)
    turns++
    morale = morale * 2

Conditions are boolean strings:
    money >= 100 && !(debt > 0)
    (a + b) * 2 > c || flag != 0

Supports:
- Arithmetic: + - * / and parentheses, unary + and -
- Comparisons: ==, !=, <, >, <=, >=
- Boolean operators: &&, ||, ! (numbers count as true when non-zero)
- Random(min, max): integer in [min, max), substituted before evaluation

Every identifier except Random is replaced by the value of the variable
with that name before parsing. Broken input never raises out of the public
methods: it is reported as a diagnostic and evaluates to 0 / False.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable
import logging
import math
import operator
import random
import re

from .errors import DiagnosticCode, ExpressionError
from .variables import VariableStore

logger = logging.getLogger(__name__)

RANDOM_KEYWORD = "Random"

IDENTIFIER_RE = re.compile(r"\b[A-Za-z_][A-Za-z0-9_]*\b", re.ASCII)
_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$", re.ASCII)
_RANDOM_RE = re.compile(r"Random\s*\(\s*(?P<min>[^,]+?)\s*,\s*(?P<max>[^)]+?)\s*\)")
_ASSIGN_RE = re.compile(r"(?<![=!<>+\-*/])=(?!=)")
_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<op>\|\||&&|==|!=|<=|>=|[<>!+\-*/()])"
    r")"
)

Value = float | bool


def _divide(left: float, right: float) -> float:
    if right == 0:
        raise ExpressionError("division by zero")
    return left / right


# Checked in this order, before postfix and plain assignment
COMPOUND_OPERATORS: tuple[tuple[str, Callable[[float, float], float]], ...] = (
    ("+=", operator.add),
    ("-=", operator.sub),
    ("*=", operator.mul),
    ("/=", _divide),
)


def is_identifier(name: str) -> bool:
    return bool(_NAME_RE.match(name))


@dataclass
class _Token:
    kind: str  # "number" | "op"
    text: str


def tokenize(text: str) -> list[_Token]:
    """Split substituted expression text into number and operator tokens."""
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        if text[pos:].strip() == "":
            break
        match = _TOKEN_RE.match(text, pos)
        if not match:
            raise ExpressionError(f"unexpected input at '{text[pos:].strip()}'")
        kind = match.lastgroup
        tokens.append(_Token(kind=kind, text=match.group(kind)))
        pos = match.end()
    return tokens


class _Parser:
    """
    Recursive-descent parser that evaluates while it parses.

    Precedence, lowest first:
        ||  &&  !  comparisons  + -  * /  unary + -  atoms
    """

    def __init__(self, tokens: list[_Token], check_only: bool = False):
        self.tokens = tokens
        self.pos = 0
        self.check_only = check_only

    def parse(self) -> Value:
        if not self.tokens:
            raise ExpressionError("empty expression")
        value = self._or()
        if self.pos < len(self.tokens):
            raise ExpressionError(f"unexpected token '{self.tokens[self.pos].text}'")
        return value

    # --- Token helpers ---

    def _peek(self) -> str | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos].text
        return None

    def _accept(self, *ops: str) -> str | None:
        token = self._peek()
        if token in ops and self.tokens[self.pos].kind == "op":
            self.pos += 1
            return token
        return None

    # --- Grammar ---

    def _or(self) -> Value:
        left = self._and()
        while self._accept("||"):
            right = self._and()
            left = _as_bool(left) or _as_bool(right)
        return left

    def _and(self) -> Value:
        left = self._not()
        while self._accept("&&"):
            right = self._not()
            left = _as_bool(left) and _as_bool(right)
        return left

    def _not(self) -> Value:
        if self._accept("!"):
            return not _as_bool(self._not())
        return self._comparison()

    def _comparison(self) -> Value:
        left = self._additive()
        op = self._accept("==", "!=", "<=", ">=", "<", ">")
        if op is None:
            return left
        right = self._additive()
        return _compare(_as_number(left), _as_number(right), op)

    def _additive(self) -> Value:
        left = self._term()
        while True:
            op = self._accept("+", "-")
            if op is None:
                return left
            right = self._term()
            if op == "+":
                left = _as_number(left) + _as_number(right)
            else:
                left = _as_number(left) - _as_number(right)

    def _term(self) -> Value:
        left = self._unary()
        while True:
            op = self._accept("*", "/")
            if op is None:
                return left
            right = self._unary()
            if op == "*":
                left = _as_number(left) * _as_number(right)
            elif self.check_only and _as_number(right) == 0:
                left = 0.0
            else:
                left = _divide(_as_number(left), _as_number(right))

    def _unary(self) -> Value:
        op = self._accept("+", "-")
        if op == "-":
            return -_as_number(self._unary())
        if op == "+":
            return _as_number(self._unary())
        return self._atom()

    def _atom(self) -> Value:
        if self.pos >= len(self.tokens):
            raise ExpressionError("unexpected end of expression")
        token = self.tokens[self.pos]
        if token.kind == "number":
            self.pos += 1
            return float(token.text)
        if self._accept("("):
            value = self._or()
            if not self._accept(")"):
                raise ExpressionError("missing closing parenthesis")
            return value
        raise ExpressionError(f"unexpected token '{token.text}'")


def _as_number(value: Value) -> float:
    if isinstance(value, bool):
        raise ExpressionError("arithmetic on a boolean value")
    return value


def _as_bool(value: Value) -> bool:
    if isinstance(value, bool):
        return value
    return value != 0


def _compare(left: float, right: float, op: str) -> bool:
    if op == "==":
        return math.isclose(left, right, rel_tol=1e-9, abs_tol=1e-9)
    if op == "!=":
        return not math.isclose(left, right, rel_tol=1e-9, abs_tol=1e-9)
    if op == "<":
        return left < right
    if op == ">":
        return left > right
    if op == "<=":
        return left <= right
    return left >= right


class ExpressionEvaluator:
    """
    Evaluates effect and condition strings against a VariableStore.

    Usage:
        evaluator = ExpressionEvaluator(store, rng=random.Random(7))
        evaluator.evaluate("money -= 100")
        if evaluator.evaluate_bool("money >= 100"):
            ...
    """

    def __init__(self, store: VariableStore, rng: random.Random | None = None):
        self.store = store
        self.rng = rng or random.Random()

    @property
    def diagnostics(self):
        return self.store.diagnostics

    # --- Public API ---

    def evaluate(self, expr: str | int | float) -> float:
        """
        Evaluate an effect or arithmetic expression.

        Assignments write to the store and return the stored value.
        Returns 0 (with a diagnostic) for malformed input.
        """
        if isinstance(expr, (int, float)) and not isinstance(expr, bool):
            return float(expr)

        text = expr.strip()
        try:
            return self._evaluate_statement(text)
        except ExpressionError as exc:
            self._report(text, exc)
            return 0.0

    def evaluate_bool(self, expr: str) -> bool:
        """Evaluate a condition. Returns False (with a diagnostic) for malformed input."""
        text = expr.strip()
        try:
            return _as_bool(self._evaluate_value(text))
        except ExpressionError as exc:
            self._report(text, exc)
            return False

    def check(self, condition: str | None) -> bool:
        """Blank conditions always hold; anything else goes through evaluate_bool."""
        if condition is None or not condition.strip():
            return True
        return self.evaluate_bool(condition)

    def validate_syntax(self, expr: str, statement: bool = False) -> str | None:
        """
        Parse an expression without reading or writing the store.

        Args:
            expr: Expression text
            statement: Accept assignment forms (effects) as well

        Returns:
            None if the text parses, otherwise an error message
        """
        text = expr.strip()
        try:
            if statement:
                target, body = self._split_statement(text)
                if target is not None and body is None:
                    return None
                text = body
            substituted = IDENTIFIER_RE.sub(
                lambda m: m.group(0) if m.group(0) == RANDOM_KEYWORD else "0",
                text,
            )
            substituted = self._substitute_randoms(substituted, check_only=True)
            _Parser(tokenize(substituted), check_only=True).parse()
        except ExpressionError as exc:
            return str(exc)
        return None

    # --- Statement classification ---

    def _split_statement(self, text: str) -> tuple[str | None, str | None]:
        """
        Classify a statement.

        Returns (target, body):
        - (None, text) for a plain expression
        - (name, None) for ++ / --
        - (name, rhs) for any assignment form
        """
        for symbol, _ in COMPOUND_OPERATORS:
            if symbol in text:
                target, body = text.split(symbol, 1)
                return self._check_target(target), body.strip()

        if text.endswith("++") or text.endswith("--"):
            return self._check_target(text[:-2]), None

        match = _ASSIGN_RE.search(text)
        if match:
            target = text[:match.start()]
            return self._check_target(target), text[match.end():].strip()

        return None, text

    def _check_target(self, target: str) -> str:
        name = target.strip()
        if not is_identifier(name) or name == RANDOM_KEYWORD:
            raise ExpressionError(f"invalid assignment target '{name}'")
        return name

    def _evaluate_statement(self, text: str) -> float:
        for symbol, op in COMPOUND_OPERATORS:
            if symbol in text:
                target, body = text.split(symbol, 1)
                name = self._check_target(target)
                current = self._current(name)
                operand = _as_number(self._evaluate_value(body.strip()))
                return self.store.set(name, op(current, operand))

        if text.endswith("++"):
            name = self._check_target(text[:-2])
            return self.store.set(name, self._current(name) + 1)

        if text.endswith("--"):
            name = self._check_target(text[:-2])
            return self.store.set(name, self._current(name) - 1)

        match = _ASSIGN_RE.search(text)
        if match:
            name = self._check_target(text[:match.start()])
            value = _as_number(self._evaluate_value(text[match.end():].strip()))
            return self.store.set(name, value)

        value = self._evaluate_value(text)
        if isinstance(value, bool):
            return 1.0 if value else 0.0
        return value

    def _current(self, name: str) -> float:
        # Assignment targets may not exist yet; they start from 0
        variable = self.store.lookup(name)
        return variable.value if variable is not None else 0.0

    # --- Substitution and evaluation ---

    def _evaluate_value(self, text: str) -> Value:
        substituted = self.substitute_variables(text)
        substituted = self._substitute_randoms(substituted)
        return _Parser(tokenize(substituted)).parse()

    def substitute_variables(self, text: str) -> str:
        """Replace every identifier except Random with its current value."""
        def replace(match: re.Match) -> str:
            token = match.group(0)
            if token == RANDOM_KEYWORD:
                return token
            return repr(self.store.get(token))

        return IDENTIFIER_RE.sub(replace, text)

    def _substitute_randoms(self, text: str, check_only: bool = False) -> str:
        def replace(match: re.Match) -> str:
            low = _as_number(_Parser(tokenize(match.group("min")), check_only).parse())
            high = _as_number(_Parser(tokenize(match.group("max")), check_only).parse())
            if check_only:
                return "0"
            return str(self.random_between(low, high))

        return _RANDOM_RE.sub(replace, text)

    def random_between(self, low: float, high: float) -> int:
        """Floor of a uniform draw in [low, high); low when the range is empty."""
        if high <= low:
            return math.floor(low)
        return math.floor(low + self.rng.random() * (high - low))

    def _report(self, text: str, exc: ExpressionError):
        self.diagnostics.report(
            DiagnosticCode.MALFORMED_EXPRESSION,
            f"Cannot evaluate '{text}': {exc}",
        )
