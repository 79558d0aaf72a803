"""
Control Panel - Condition-gated buttons that act outside the deck flow.

A control is a permanent button (build, hire, rest...) with an optional
condition and the same effect/special-effect lists as an event action.
Pressing it does not advance the turn.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable
import logging

from .effect_resolver import CommandResult, EffectCommandInterpreter
from .errors import DiagnosticCode
from .expression import ExpressionEvaluator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Control:
    """Author-defined control button."""
    name: str
    label: str = ""
    condition: str = ""
    effects: tuple[str, ...] = ()
    special_effects: tuple[str, ...] = ()


@dataclass
class ControlResult:
    """Outcome of pressing a control."""
    success: bool
    control: str
    error: str | None = None
    error_code: DiagnosticCode | None = None
    effects_applied: list[str] = field(default_factory=list)
    command_results: list[CommandResult] = field(default_factory=list)


class ControlPanel:
    """Holds the session's controls and runs them when pressed."""

    def __init__(
        self,
        controls: Iterable[Control],
        evaluator: ExpressionEvaluator,
        interpreter: EffectCommandInterpreter,
    ):
        self._controls: dict[str, Control] = {c.name: c for c in controls}
        self.evaluator = evaluator
        self.interpreter = interpreter

    @property
    def controls(self) -> list[Control]:
        return list(self._controls.values())

    def get(self, name: str) -> Control | None:
        return self._controls.get(name)

    def is_available(self, name: str) -> bool:
        control = self._controls.get(name)
        return control is not None and self.evaluator.check(control.condition)

    def available(self) -> list[str]:
        """Names of controls whose condition currently holds."""
        return [c.name for c in self._controls.values() if self.evaluator.check(c.condition)]

    def press(self, name: str) -> ControlResult:
        control = self._controls.get(name)
        if control is None:
            return self._fail(name, f"Unknown control '{name}'")
        if not self.evaluator.check(control.condition):
            return self._fail(name, f"Control '{name}' is not available")

        logger.debug("Control %s pressed", name)
        result = ControlResult(success=True, control=name)
        for effect in control.effects:
            if effect.strip():
                self.evaluator.evaluate(effect)
                result.effects_applied.append(effect)
        for special in control.special_effects:
            if special.strip():
                result.command_results.append(self.interpreter.run(special))
        return result

    def _fail(self, name: str, message: str) -> ControlResult:
        self.evaluator.diagnostics.report(DiagnosticCode.UNKNOWN_CONTROL, message)
        return ControlResult(
            success=False,
            control=name,
            error=message,
            error_code=DiagnosticCode.UNKNOWN_CONTROL,
        )
