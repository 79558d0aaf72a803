"""
Turn Scheduler - The draw-deck state machine.

One turn:
1. Check conditions: conditional events join or leave the draw queue
2. Present the head of the queue (or reshuffle when the queue is empty)
3. Wait for the reveal to finish, then accept exactly one action
4. Resolve: effects, then special effects, then discard the event
5. Back to 1

Input is gated by `input_active`: it goes False when an event starts being
presented and only comes back once the presentation layer reports that the
reveal finished (on_reveal_complete() or the async reveal()).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable
import asyncio
import logging

from ..config import EngineConfig
from ..engine_core.catalog import Action, EventCatalog, EventInstance
from ..engine_core.effect_resolver import CommandResult, EffectCommandInterpreter
from ..engine_core.errors import DiagnosticCode
from ..engine_core.expression import ExpressionEvaluator

logger = logging.getLogger(__name__)

# Choice value for the implicit action offered when no action is eligible
CONTINUE = "continue"


class SchedulerState(Enum):
    """State of the turn scheduler."""
    IDLE = "idle"  # Not started
    CHECKING_CONDITIONS = "checking_conditions"
    PRESENTING = "presenting"  # Reveal in progress, input blocked
    AWAITING_ACTION = "awaiting_action"  # Input open
    RESOLVING = "resolving"
    RESHUFFLING = "reshuffling"
    HALTED = "halted"  # Nothing to draw even after a reshuffle


@dataclass
class ActionChoice:
    """An action as shown to the player."""
    index: int | str  # action index, or CONTINUE
    description: str
    available: bool


@dataclass
class TurnResult:
    """
    Result of selecting an action.

    Contains what was resolved and what it produced, plus any diagnostics
    reported while resolving.
    """
    success: bool
    state: SchedulerState
    event_id: str | None = None
    event_title: str | None = None
    action_description: str | None = None
    effects_applied: list[str] = field(default_factory=list)
    command_results: list[CommandResult] = field(default_factory=list)
    changes: list[str] = field(default_factory=list)
    error: str | None = None
    error_code: DiagnosticCode | None = None
    warnings: list[str] = field(default_factory=list)


class TurnScheduler:
    """
    Drives the event deck one transition at a time.

    Usage:
        scheduler = TurnScheduler(catalog, evaluator, interpreter)
        scheduler.start()

        # presentation layer animates scheduler.current, then:
        scheduler.on_reveal_complete()

        result = scheduler.on_action_selected(0)
    """

    def __init__(
        self,
        catalog: EventCatalog,
        evaluator: ExpressionEvaluator,
        interpreter: EffectCommandInterpreter,
        config: EngineConfig | None = None,
        on_present: Callable[[EventInstance], None] | None = None,
    ):
        self.catalog = catalog
        self.evaluator = evaluator
        self.interpreter = interpreter
        self.config = config or EngineConfig()
        self.on_present = on_present

        self.state = SchedulerState.IDLE
        self.input_active = False
        self.current: EventInstance | None = None
        self.turn_number = 0
        self.reshuffles = 0

    @property
    def diagnostics(self):
        return self.evaluator.diagnostics

    # --- Transitions ---

    def start(self) -> SchedulerState:
        return self.advance()

    def advance(self) -> SchedulerState:
        """
        Move to the next event.

        Reshuffles at most once per call; if the queue is still empty
        afterwards (or conditions empty it again) the scheduler halts.
        Calling advance() again from HALTED retries.
        """
        reshuffled = False
        while True:
            self._set_state(SchedulerState.CHECKING_CONDITIONS)
            self.check_conditions()
            if self.catalog.next_events:
                self._present()
                return self.state
            if reshuffled or not self.reshuffle():
                return self._halt()
            reshuffled = True

    def check_conditions(self):
        """Queue conditional events whose condition holds, drop the ones that don't."""
        for instance in list(self.catalog.all_events):
            # Discarded events stay out until the next reshuffle
            if instance.discarded or not instance.condition.strip():
                continue
            holds = self.evaluator.evaluate_bool(instance.condition)
            queued = self.catalog.is_queued(instance)
            if holds and not queued:
                self.catalog.enqueue(instance)
                logger.info("Adding event %s to the draw queue", instance.instance_id)
            elif not holds and queued:
                self.catalog.dequeue(instance)
                logger.info("Removing event %s from the draw queue", instance.instance_id)

    def reshuffle(self) -> bool:
        """
        Rebuild the queue from every active instance.

        The inactive sentinel event, when present, goes first. Returns
        False if the queue is still empty.
        """
        self._set_state(SchedulerState.RESHUFFLING)
        self.reshuffles += 1
        logger.info("End of the deck, reshuffling")

        self.catalog.clear_queue()
        sentinel = self.catalog.find_inactive(self.config.sentinel_name)
        if sentinel is not None:
            self.catalog.enqueue(sentinel)

        self.catalog.shuffle_pool()
        for instance in self.catalog.all_events:
            if instance.active:
                instance.discarded = False
                self.catalog.enqueue(instance)

        if not self.catalog.next_events:
            self.diagnostics.report(
                DiagnosticCode.EMPTY_DECK_AFTER_RESHUFFLE,
                "There are no active events even after the reshuffle",
            )
            return False
        return True

    def _present(self):
        self.current = self.catalog.current
        self.input_active = False
        self._set_state(SchedulerState.PRESENTING)
        if self.on_present is not None:
            self.on_present(self.current)
        if self.config.auto_reveal:
            self.on_reveal_complete()

    def _halt(self) -> SchedulerState:
        self.current = None
        self.input_active = False
        self._set_state(SchedulerState.HALTED)
        return self.state

    def on_reveal_complete(self) -> bool:
        """Open input for the presented event. Ignored outside PRESENTING."""
        if self.state != SchedulerState.PRESENTING:
            return False
        self.input_active = True
        self._set_state(SchedulerState.AWAITING_ACTION)
        return True

    async def reveal(self, delay: float | None = None) -> bool:
        """Wait for a timed reveal, then open input."""
        await asyncio.sleep(self.config.reveal_delay if delay is None else delay)
        return self.on_reveal_complete()

    # --- Actions ---

    def available_actions(self) -> list[int]:
        """Indices of the current event's actions whose condition holds."""
        if self.current is None:
            return []
        return [
            index for index, action in enumerate(self.current.actions)
            if self.evaluator.check(action.condition)
        ]

    def choices(self) -> list[ActionChoice]:
        """
        Every action of the current event with its availability.

        When nothing is available a single CONTINUE choice is appended so
        the player is never stuck.
        """
        if self.current is None:
            return []
        available = set(self.available_actions())
        choices = [
            ActionChoice(index=index, description=action.description, available=index in available)
            for index, action in enumerate(self.current.actions)
        ]
        if not available:
            choices.append(ActionChoice(
                index=CONTINUE,
                description=self.config.continue_label,
                available=True,
            ))
        return choices

    def on_action_selected(self, choice: int | str) -> TurnResult:
        """
        Resolve the current event with one action (or CONTINUE).

        Ignored while input is blocked, so a double click cannot resolve
        an event twice.
        """
        if not self.input_active or self.state != SchedulerState.AWAITING_ACTION:
            logger.debug("Ignoring action %r while input is blocked", choice)
            return TurnResult(
                success=False,
                state=self.state,
                error="Input is blocked",
                error_code=DiagnosticCode.INPUT_BLOCKED,
            )

        mark = self.diagnostics.mark()
        eligible = self.available_actions()
        action: Action | None = None
        if choice == CONTINUE:
            if eligible:
                return self._invalid("Continue is only offered when no action is available")
        elif isinstance(choice, int) and choice in eligible:
            action = self.current.actions[choice]
        else:
            return self._invalid(f"Action {choice!r} is not available")

        self.input_active = False
        self._set_state(SchedulerState.RESOLVING)
        resolved = self.current
        result = TurnResult(
            success=True,
            state=self.state,
            event_id=resolved.instance_id,
            event_title=resolved.title,
            action_description=action.description if action else self.config.continue_label,
        )
        logger.info("Resolving %s with %s", resolved.instance_id, result.action_description)

        if action is not None:
            self._resolve_action(action, result)

        resolved.discarded = True
        self.catalog.dequeue(resolved)
        self.turn_number += 1
        self.current = None

        result.state = self.advance()
        result.warnings = [str(d) for d in self.diagnostics.since(mark)]
        return result

    def _resolve_action(self, action: Action, result: TurnResult):
        # Effects run before special effects: a special effect may remove
        # the event being resolved
        for effect in action.effects:
            if effect.strip():
                self.evaluator.evaluate(effect)
                result.effects_applied.append(effect)
        for special in action.special_effects:
            if special.strip():
                command_result = self.interpreter.run(special)
                result.command_results.append(command_result)
                result.changes.extend(command_result.changes)

    def _invalid(self, message: str) -> TurnResult:
        self.diagnostics.report(DiagnosticCode.INVALID_ACTION, message)
        return TurnResult(
            success=False,
            state=self.state,
            event_id=self.current.instance_id if self.current else None,
            error=message,
            error_code=DiagnosticCode.INVALID_ACTION,
        )

    def _set_state(self, state: SchedulerState):
        if state != self.state:
            logger.debug("Scheduler %s -> %s", self.state.value, state.value)
        self.state = state
