"""
Engine Core - Variables, expressions, deck state and deck commands.

The engine is the runtime that:
1. Holds the variable store
2. Evaluates effect and condition expressions
3. Owns the event catalog (pool + draw queue)
4. Parses and executes special effect commands
5. Runs control buttons outside the deck flow
"""

from .variables import Variable, VariableStore, UNBOUNDED
from .expression import ExpressionEvaluator
from .catalog import Action, EventTemplate, EventInstance, EventCatalog, shuffle_in_place
from .commands import (
    Command,
    CommandType,
    Destroy,
    Add,
    Remove,
    Activate,
    Deactivate,
    Chain,
    RandomChain,
    parse_command,
)
from .effect_resolver import EffectCommandInterpreter, CommandResult
from .controls import Control, ControlPanel, ControlResult
from .errors import (
    Diagnostic,
    DiagnosticCode,
    Diagnostics,
    ExpressionError,
    CommandParseError,
    DeckValidationError,
)

__all__ = [
    "Variable",
    "VariableStore",
    "UNBOUNDED",
    "ExpressionEvaluator",
    "Action",
    "EventTemplate",
    "EventInstance",
    "EventCatalog",
    "shuffle_in_place",
    "Command",
    "CommandType",
    "Destroy",
    "Add",
    "Remove",
    "Activate",
    "Deactivate",
    "Chain",
    "RandomChain",
    "parse_command",
    "EffectCommandInterpreter",
    "CommandResult",
    "Control",
    "ControlPanel",
    "ControlResult",
    "Diagnostic",
    "DiagnosticCode",
    "Diagnostics",
    "ExpressionError",
    "CommandParseError",
    "DeckValidationError",
]
