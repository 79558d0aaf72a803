"""Deck schema - authored deck files and their validation."""

from .templates import DeckSpec, EventSpec, ActionSpec, VariableSpec, ControlSpec
from .validation import validate_deck, ValidationResult
from ..engine_core.errors import DeckValidationError

__all__ = [
    "DeckSpec",
    "EventSpec",
    "ActionSpec",
    "VariableSpec",
    "ControlSpec",
    "validate_deck",
    "ValidationResult",
    "DeckValidationError",
]
