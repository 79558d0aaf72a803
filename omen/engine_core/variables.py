"""
Variable Store - Named numeric registers read and written by expressions.

Reads and writes take different paths on purpose:
- get() never creates anything; an unknown name reads as 0 with a diagnostic
- set() creates an unbounded variable on first write to an unknown name

Bounded variables (max != -1) are clamped into [0, max] on every write.
Observers are only notified when a write actually changes the value.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterator
import logging
import math

from .errors import Diagnostics, DiagnosticCode

logger = logging.getLogger(__name__)

UNBOUNDED = -1.0

# (old_value, new_value, max)
ChangeCallback = Callable[[float, float, float], None]


@dataclass
class Variable:
    """A named float register."""
    name: str
    value: float = 0.0
    max: float = UNBOUNDED

    @property
    def bounded(self) -> bool:
        return self.max != UNBOUNDED

    def clamp(self, value: float) -> float:
        """Clamp a candidate value into [0, max] for bounded variables."""
        if not self.bounded:
            return value
        return min(max(value, 0.0), self.max)


class VariableStore:
    """
    Ordered collection of variables keyed by name.

    Usage:
        store = VariableStore()
        store.define("hp", 30, max=100)
        store.subscribe("hp", lambda old, new, cap: redraw(new))
        store.set("hp", 20)
    """

    def __init__(
        self,
        diagnostics: Diagnostics | None = None,
        epsilon: float = 1e-6,
    ):
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.epsilon = epsilon
        self._variables: dict[str, Variable] = {}
        self._observers: dict[str, list[ChangeCallback]] = {}

    # --- Declaration ---

    def define(self, name: str, value: float = 0.0, max: float = UNBOUNDED) -> Variable:
        """Declare a variable. Redefinition replaces value and bound."""
        variable = Variable(name=name, max=float(max))
        variable.value = variable.clamp(float(value))
        self._variables[name] = variable
        return variable

    # --- Read path ---

    def has(self, name: str) -> bool:
        return name in self._variables

    def get(self, name: str) -> float:
        """Current value of a variable, or 0 if it does not exist."""
        variable = self._variables.get(name)
        if variable is None:
            self.diagnostics.report(
                DiagnosticCode.UNBOUND_VARIABLE,
                f"Variable '{name}' not found, reading 0",
            )
            return 0.0
        return variable.value

    def lookup(self, name: str) -> Variable | None:
        """Variable record for a name, without reporting a miss."""
        return self._variables.get(name)

    def names(self) -> list[str]:
        return list(self._variables)

    def snapshot(self) -> dict[str, float]:
        return {name: v.value for name, v in self._variables.items()}

    def __iter__(self) -> Iterator[Variable]:
        return iter(list(self._variables.values()))

    def __len__(self) -> int:
        return len(self._variables)

    def __contains__(self, name: object) -> bool:
        return name in self._variables

    # --- Write path ---

    def set(self, name: str, value: float) -> float:
        """
        Write a variable and return the stored value.

        Unknown names are created unbounded. Existing bounded variables are
        clamped. Observers fire only when the stored value changes.
        """
        value = float(value)
        variable = self._variables.get(name)
        if variable is None:
            logger.debug("Creating variable %s = %s", name, value)
            self._variables[name] = Variable(name=name, value=value)
            return value

        new_value = variable.clamp(value)
        if math.isclose(variable.value, new_value, rel_tol=0.0, abs_tol=self.epsilon):
            return variable.value

        old_value = variable.value
        variable.value = new_value
        self._notify(variable, old_value)
        return new_value

    # --- Observers ---

    def subscribe(self, name: str, callback: ChangeCallback):
        """Register a change observer for a variable (it need not exist yet)."""
        self._observers.setdefault(name, []).append(callback)

    def unsubscribe(self, name: str, callback: ChangeCallback):
        callbacks = self._observers.get(name, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def broadcast(self):
        """Notify every observer once with (0, value, max) so displays can initialize."""
        for variable in self._variables.values():
            for callback in list(self._observers.get(variable.name, [])):
                callback(0.0, variable.value, variable.max)

    def _notify(self, variable: Variable, old_value: float):
        for callback in list(self._observers.get(variable.name, [])):
            callback(old_value, variable.value, variable.max)
