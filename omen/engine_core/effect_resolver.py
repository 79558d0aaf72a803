"""
Effect Resolver - Runs special effect commands against the event catalog.

The resolver takes a special effect string (or an already parsed Command),
and applies it to the catalog. The "active" event for every command is the
head of the draw queue: the card currently being resolved.

Failures never raise. A command that cannot be parsed, or that names an
event with no instance in the required state, is reported as a diagnostic
and leaves the catalog untouched.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .catalog import EventCatalog
from .commands import (
    Command,
    Destroy,
    Add,
    Remove,
    Activate,
    Deactivate,
    Chain,
    RandomChain,
    parse_command,
)
from .errors import CommandParseError, Diagnostics, DiagnosticCode

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """
    Result of running one special effect.

    Contains:
    - Whether the command changed anything
    - The parsed command (None if parsing failed)
    - Error and error code on failure
    - Human-readable changes for the presentation layer
    """
    success: bool
    command: Command | None = None
    error: str | None = None
    error_code: DiagnosticCode | None = None
    changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: DiagnosticCode,
        command: Command | None = None,
    ) -> CommandResult:
        return cls(success=False, command=command, error=error, error_code=error_code)

    @classmethod
    def applied(cls, command: Command, *changes: str) -> CommandResult:
        return cls(success=True, command=command, changes=list(changes))


class EffectCommandInterpreter:
    """
    Executes deck-mutation commands.

    Usage:
        interpreter = EffectCommandInterpreter(catalog, diagnostics)
        result = interpreter.run("chain(boss_fight)")
    """

    def __init__(
        self,
        catalog: EventCatalog,
        diagnostics: Diagnostics | None = None,
        rng: random.Random | None = None,
    ):
        self.catalog = catalog
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.rng = rng or catalog.rng

    def run(self, effect: str) -> CommandResult:
        """Parse and execute a special effect string."""
        logger.debug("Executing special effect %s", effect)
        try:
            command = parse_command(effect)
        except CommandParseError as exc:
            return self._fail(str(exc), DiagnosticCode.UNKNOWN_COMMAND)
        return self.execute(command)

    def execute(self, command: Command) -> CommandResult:
        """Execute a parsed command."""
        if isinstance(command, Destroy):
            return self._destroy(command)
        if isinstance(command, Add):
            return self._add(command)
        if isinstance(command, Remove):
            return self._remove(command)
        if isinstance(command, Activate):
            return self._activate(command)
        if isinstance(command, Deactivate):
            return self._deactivate(command)
        if isinstance(command, Chain):
            return self._chain(command, command.name)
        if isinstance(command, RandomChain):
            return self._random_chain(command)
        return self._fail(f"Unsupported command {command!r}", DiagnosticCode.UNKNOWN_COMMAND)

    # --- Command handlers ---

    def _destroy(self, command: Destroy) -> CommandResult:
        current = self.catalog.current
        if current is None:
            return self._fail(
                "destroy: there is no event being resolved",
                DiagnosticCode.MISSING_EVENT_LOOKUP,
                command,
            )
        self.catalog.destroy(current)
        return CommandResult.applied(command, f"Destroyed {current.instance_id}")

    def _add(self, command: Add) -> CommandResult:
        instance = self.catalog.find_inactive(command.name)
        if instance is None:
            return self._missing(command, command.name, "inactive")

        instance.active = True
        if instance is self.catalog.current:
            # Being resolved right now; it comes back with the next reshuffle
            return CommandResult.applied(command, f"Activated {instance.instance_id}")
        # Queued by a condition or as the sentinel: move it instead of queueing it twice
        self.catalog.dequeue(instance)
        queue_length = self.catalog.remaining
        # Position 0 is the card being resolved
        position = self.rng.randint(1, queue_length) if queue_length else 0
        self.catalog.insert_next(instance, position)
        return CommandResult.applied(
            command, f"Added {instance.instance_id} at position {position}"
        )

    def _remove(self, command: Remove) -> CommandResult:
        instance = self.catalog.find_active_queued(command.name)
        if instance is None:
            return self._missing(command, command.name, "active queued")

        instance.active = False
        self.catalog.dequeue(instance)
        return CommandResult.applied(command, f"Removed {instance.instance_id}")

    def _activate(self, command: Activate) -> CommandResult:
        instance = self.catalog.find_inactive(command.name)
        if instance is None:
            return self._missing(command, command.name, "inactive")
        instance.active = True
        return CommandResult.applied(command, f"Activated {instance.instance_id}")

    def _deactivate(self, command: Deactivate) -> CommandResult:
        instance = self.catalog.find_active(command.name)
        if instance is None:
            return self._missing(command, command.name, "active")
        instance.active = False
        return CommandResult.applied(command, f"Deactivated {instance.instance_id}")

    def _chain(self, command: Command, name: str) -> CommandResult:
        instance = self.catalog.find_first(name)
        if instance is None:
            return self._missing(command, name, "any")
        if not self.catalog.next_events:
            return self._fail(
                f"chain: cannot chain '{name}' onto an empty queue",
                DiagnosticCode.MISSING_EVENT_LOOKUP,
                command,
            )
        # Already queued further down: move it up instead of queueing it twice
        if instance is not self.catalog.current:
            self.catalog.dequeue(instance)
        self.catalog.insert_next(instance, 1)
        return CommandResult.applied(command, f"Chained {instance.instance_id}")

    def _random_chain(self, command: RandomChain) -> CommandResult:
        roll = self.rng.randrange(100)
        name = command.name_a if roll < command.percent else command.name_b
        logger.debug("randomchain rolled %d against %s: %s", roll, command.percent, name)
        return self._chain(command, name)

    # --- Helpers ---

    def _missing(self, command: Command, name: str, state: str) -> CommandResult:
        return self._fail(
            f"Cannot find an event named '{name}' ({state})",
            DiagnosticCode.MISSING_EVENT_LOOKUP,
            command,
        )

    def _fail(
        self,
        message: str,
        code: DiagnosticCode,
        command: Command | None = None,
    ) -> CommandResult:
        self.diagnostics.report(code, message)
        return CommandResult.failure(message, code, command)

