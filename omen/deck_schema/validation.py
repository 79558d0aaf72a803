"""
Deck Validation - Static checks for authored decks.

Validates that:
1. Names are unique and variable names are identifiers
2. Every event has at least one copy
3. Conditions and effects parse
4. Special effects are known commands (naming a missing event is a warning)

Runtime never depends on a deck being valid (broken content only produces
diagnostics), but sessions refuse decks with errors so authors find out early.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass

from ..engine_core.commands import parse_command, referenced_events
from ..engine_core.errors import CommandParseError, DeckValidationError
from ..engine_core.expression import ExpressionEvaluator, is_identifier
from ..engine_core.variables import VariableStore
from .templates import DeckSpec


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]


def validate_deck(spec: DeckSpec, raise_on_error: bool = False) -> ValidationResult:
    """
    Validate a deck.

    Returns ValidationResult with errors and warnings.
    Raises DeckValidationError if raise_on_error=True and errors exist.
    """
    errors: list[str] = []
    warnings: list[str] = []
    evaluator = ExpressionEvaluator(VariableStore())

    errors.extend(_duplicates("event", [e.name for e in spec.events]))
    errors.extend(_duplicates("variable", [v.name for v in spec.variables]))
    errors.extend(_duplicates("control", [c.name for c in spec.controls]))

    for variable in spec.variables:
        if not is_identifier(variable.name):
            errors.append(f"Variable name '{variable.name}' is not a valid identifier")
        if variable.max != -1 and variable.max < 0:
            errors.append(f"Variable '{variable.name}' has a negative max")

    event_names = {e.name for e in spec.events}

    for event in spec.events:
        where = f"Event '{event.name}'"
        if event.copies < 1:
            errors.append(f"{where} must have at least one copy")
        errors.extend(_check_condition(evaluator, where, event.condition))
        for index, action in enumerate(event.actions):
            action_where = f"{where} action {index}"
            errors.extend(_check_condition(evaluator, action_where, action.condition))
            errors.extend(_check_effects(evaluator, action_where, action.effects))
            errors.extend(_check_specials(action_where, action.special_effects, event_names, warnings))
            if not action.effects and not action.special_effects:
                warnings.append(f"{action_where} has no effects")

    for control in spec.controls:
        where = f"Control '{control.name}'"
        errors.extend(_check_condition(evaluator, where, control.condition))
        errors.extend(_check_effects(evaluator, where, control.effects))
        errors.extend(_check_specials(where, control.special_effects, event_names, warnings))

    if not spec.events:
        warnings.append("No events defined - deck is empty")
    elif not any(e.active for e in spec.events):
        warnings.append("No active events - the deck only fills through conditions and commands")

    result = ValidationResult(valid=not errors, errors=errors, warnings=warnings)
    if errors and raise_on_error:
        raise DeckValidationError(errors)
    return result


def _duplicates(kind: str, names: list[str]) -> list[str]:
    return [
        f"Duplicate {kind} name '{name}'"
        for name, count in Counter(names).items()
        if count > 1
    ]


def _check_condition(evaluator: ExpressionEvaluator, where: str, condition: str) -> list[str]:
    if not condition.strip():
        return []
    problem = evaluator.validate_syntax(condition)
    if problem:
        return [f"{where} condition '{condition}' is malformed: {problem}"]
    return []


def _check_effects(evaluator: ExpressionEvaluator, where: str, effects: list[str]) -> list[str]:
    errors = []
    for effect in effects:
        if not effect.strip():
            continue
        problem = evaluator.validate_syntax(effect, statement=True)
        if problem:
            errors.append(f"{where} effect '{effect}' is malformed: {problem}")
    return errors


def _check_specials(
    where: str,
    specials: list[str],
    event_names: set[str],
    warnings: list[str],
) -> list[str]:
    errors = []
    for special in specials:
        if not special.strip():
            continue
        try:
            command = parse_command(special)
        except CommandParseError as exc:
            errors.append(f"{where} special effect '{special}': {exc}")
            continue
        for name in referenced_events(command):
            if name not in event_names:
                warnings.append(f"{where} special effect '{special}' references unknown event '{name}'")
    return errors
