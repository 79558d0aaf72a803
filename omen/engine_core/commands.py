"""
Special Effect Commands - Parsed form of the deck-mutation mini language.

Special effects are authored as call-like strings:
    destroy
    add(ambush)
    chain(boss_fight)
    randomchain(treasure, trap, 30)

The colon syntax `add:ambush` used by older decks is accepted as well.

Parsing produces one of a closed set of frozen command variants. Execution
lives in effect_resolver.py, so parsing can be checked ahead of time
(deck validation) without touching any game state.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import re

from .errors import CommandParseError


class CommandType(Enum):
    """Names of the deck-mutation commands."""
    DESTROY = "destroy"
    ADD = "add"
    REMOVE = "remove"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    CHAIN = "chain"
    RANDOM_CHAIN = "randomchain"


@dataclass(frozen=True)
class Destroy:
    """Permanently remove the event being resolved."""


@dataclass(frozen=True)
class Add:
    """Activate an inactive instance and shuffle it into the queue."""
    name: str


@dataclass(frozen=True)
class Remove:
    """Deactivate a queued active instance and take it out of the queue."""
    name: str


@dataclass(frozen=True)
class Activate:
    name: str


@dataclass(frozen=True)
class Deactivate:
    name: str


@dataclass(frozen=True)
class Chain:
    """Draw an event right after the current one."""
    name: str


@dataclass(frozen=True)
class RandomChain:
    """Chain name_a with `percent` chance, otherwise name_b."""
    name_a: str
    name_b: str
    percent: float


Command = Destroy | Add | Remove | Activate | Deactivate | Chain | RandomChain

_CALL_RE = re.compile(r"^(?P<name>[A-Za-z_]\w*)\s*(?:\((?P<args>.*)\))?$", re.DOTALL)

_SINGLE_NAME_COMMANDS = {
    CommandType.ADD: Add,
    CommandType.REMOVE: Remove,
    CommandType.ACTIVATE: Activate,
    CommandType.DEACTIVATE: Deactivate,
    CommandType.CHAIN: Chain,
}


def _split_call(text: str) -> tuple[str, list[str]]:
    """Split `name(a, b)` or `name:a` into a command name and trimmed arguments."""
    text = text.strip()
    if ":" in text and "(" not in text:
        name, argument = text.split(":", 1)
        return name.strip(), [argument.strip()]

    match = _CALL_RE.match(text)
    if not match:
        raise CommandParseError(f"Not a command call: '{text}'")

    args_text = match.group("args")
    if args_text is None:
        return match.group("name"), []
    args = [a.strip() for a in args_text.split(",")]
    if args == [""]:
        args = []
    return match.group("name"), args


def parse_command(text: str) -> Command:
    """
    Parse a special effect string into a command.

    Raises:
        CommandParseError: unknown command, wrong number of arguments,
            empty names, or a percent that is not a number
    """
    name, args = _split_call(text)
    try:
        command_type = CommandType(name.lower())
    except ValueError:
        raise CommandParseError(f"Unknown special effect '{text.strip()}'") from None

    if any(not a for a in args):
        raise CommandParseError(f"Empty argument in '{text.strip()}'")

    if command_type == CommandType.DESTROY:
        if args:
            raise CommandParseError("destroy takes no arguments")
        return Destroy()

    if command_type == CommandType.RANDOM_CHAIN:
        if len(args) != 3:
            raise CommandParseError("randomchain takes two event names and a percent")
        try:
            percent = float(args[2])
        except ValueError:
            raise CommandParseError(f"randomchain percent is not a number: '{args[2]}'") from None
        return RandomChain(name_a=args[0], name_b=args[1], percent=percent)

    if len(args) != 1:
        raise CommandParseError(f"{command_type.value} takes exactly one event name")
    return _SINGLE_NAME_COMMANDS[command_type](name=args[0])


def referenced_events(command: Command) -> list[str]:
    """Event template names a command refers to."""
    if isinstance(command, RandomChain):
        return [command.name_a, command.name_b]
    if isinstance(command, Destroy):
        return []
    return [command.name]
