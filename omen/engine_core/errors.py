"""
Errors and Diagnostics.

Nothing in the engine is allowed to crash a turn. Problems in authored
content (unknown variables, broken expressions, commands naming missing
events) are reported as diagnostics and the engine keeps going.

Two internal exceptions exist so parsers can bail out early; they are always
caught at the public entry points and turned into diagnostics.
"""

from __future__ import annotations
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class DiagnosticCode(Enum):
    """Categories of non-fatal problems."""
    UNBOUND_VARIABLE = "unbound_variable"
    MALFORMED_EXPRESSION = "malformed_expression"
    MISSING_EVENT_LOOKUP = "missing_event_lookup"
    UNKNOWN_COMMAND = "unknown_command"
    EMPTY_DECK_AFTER_RESHUFFLE = "empty_deck_after_reshuffle"
    INPUT_BLOCKED = "input_blocked"
    INVALID_ACTION = "invalid_action"
    UNKNOWN_CONTROL = "unknown_control"


class ExpressionError(Exception):
    """Raised by the expression parser on malformed input or division by zero."""


class CommandParseError(Exception):
    """Raised when a special effect string is not a known command call."""


class DeckValidationError(Exception):
    """Raised when an authored deck fails validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Deck validation failed with {len(errors)} error(s)")


@dataclass(frozen=True)
class Diagnostic:
    """A single reported problem."""
    code: DiagnosticCode
    message: str

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class Diagnostics:
    """
    Shared sink for diagnostics.

    Every report is logged at WARNING and the most recent ones are kept so
    callers (tests, the API, the CLI) can show them.
    """

    def __init__(self, limit: int = 200):
        self._entries: deque[Diagnostic] = deque(maxlen=limit)
        self._reported = 0
        self._muted = 0

    def report(self, code: DiagnosticCode, message: str) -> Diagnostic:
        diagnostic = Diagnostic(code=code, message=message)
        if self._muted:
            logger.debug("Muted %s", diagnostic)
            return diagnostic
        self._entries.append(diagnostic)
        self._reported += 1
        logger.warning("%s", diagnostic)
        return diagnostic

    @contextmanager
    def muted(self):
        """Drop reports made inside the block, for read-only queries."""
        self._muted += 1
        try:
            yield self
        finally:
            self._muted -= 1

    @property
    def entries(self) -> list[Diagnostic]:
        return list(self._entries)

    def codes(self) -> list[DiagnosticCode]:
        return [d.code for d in self._entries]

    def mark(self) -> int:
        """Position to pass to since() to collect reports made after this call."""
        return self._reported

    def since(self, mark: int) -> list[Diagnostic]:
        entries = list(self._entries)
        new_count = self._reported - mark
        if new_count <= 0:
            return []
        return entries[-new_count:]

    def clear(self):
        self._entries.clear()
        self._reported = 0

    def __len__(self) -> int:
        return len(self._entries)
