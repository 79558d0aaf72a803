"""
Session Manager - Creates and manages play sessions.

A session is one play-through of a deck:
- Created from a validated DeckSpec
- Owns the variable store, the event catalog and the scheduler
- Lives in memory only and is dropped when it ends

Everything random in a session draws from one random.Random, so a session
created with a seed replays identically given the same inputs.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import random
import time
import uuid

from ..config import EngineConfig
from ..deck_schema import DeckSpec, validate_deck
from ..engine_core.catalog import EventCatalog
from ..engine_core.controls import ControlPanel
from ..engine_core.effect_resolver import EffectCommandInterpreter
from ..engine_core.errors import Diagnostics
from ..engine_core.expression import ExpressionEvaluator
from ..engine_core.variables import VariableStore
from .scheduler import TurnScheduler, SchedulerState

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a play session."""
    CREATED = "created"  # Built, scheduler not started
    ACTIVE = "active"  # Deck in play
    HALTED = "halted"  # No drawable events; can resume after state changes
    ENDED = "ended"


@dataclass
class Session:
    """
    An in-memory play session.

    Contains:
    - The authored deck it was built from
    - The variable store and event catalog it owns
    - The evaluator, command interpreter, control panel and scheduler
      bound to them
    """
    session_id: str
    deck: DeckSpec
    created_at: float
    config: EngineConfig
    diagnostics: Diagnostics
    store: VariableStore
    catalog: EventCatalog
    evaluator: ExpressionEvaluator
    interpreter: EffectCommandInterpreter
    controls: ControlPanel
    scheduler: TurnScheduler
    seed: int | None = None
    ended: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def state(self) -> SessionState:
        if self.ended:
            return SessionState.ENDED
        if self.scheduler.state == SchedulerState.IDLE:
            return SessionState.CREATED
        if self.scheduler.state == SchedulerState.HALTED:
            return SessionState.HALTED
        return SessionState.ACTIVE

    def is_active(self) -> bool:
        return self.state in {SessionState.CREATED, SessionState.ACTIVE, SessionState.HALTED}

    def start(self) -> SchedulerState:
        """Push initial values to observers and present the first event."""
        self.store.broadcast()
        return self.scheduler.start()


def build_session(
    deck: DeckSpec,
    seed: int | None = None,
    config: EngineConfig | None = None,
    session_id: str | None = None,
) -> Session:
    """
    Wire up every component of a session from a deck.

    Raises:
        DeckValidationError: the deck has validation errors
    """
    config = config or EngineConfig()
    validate_deck(deck, raise_on_error=True)

    rng = random.Random(seed)
    diagnostics = Diagnostics(limit=config.diagnostics_limit)
    store = VariableStore(diagnostics=diagnostics, epsilon=config.epsilon)
    for variable in deck.variables:
        store.define(variable.name, variable.value, variable.max)

    catalog = EventCatalog.from_templates(deck.to_templates(), rng=rng)
    evaluator = ExpressionEvaluator(store, rng=rng)
    interpreter = EffectCommandInterpreter(catalog, diagnostics, rng=rng)
    controls = ControlPanel(deck.to_controls(), evaluator, interpreter)
    scheduler = TurnScheduler(catalog, evaluator, interpreter, config=config)

    return Session(
        session_id=session_id or str(uuid.uuid4()),
        deck=deck,
        created_at=time.time(),
        config=config,
        diagnostics=diagnostics,
        store=store,
        catalog=catalog,
        evaluator=evaluator,
        interpreter=interpreter,
        controls=controls,
        scheduler=scheduler,
        seed=seed,
    )


class SessionManager:
    """
    Tracks live sessions.

    No persistence - sessions are in-memory only.
    """

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        deck: DeckSpec,
        seed: int | None = None,
        start: bool = True,
    ) -> Session:
        """
        Create a new session from a deck.

        Args:
            deck: Authored deck
            seed: Seed for every random draw in the session
            start: Present the first event right away

        Returns:
            New Session

        Raises:
            DeckValidationError: the deck has validation errors
        """
        session = build_session(deck, seed=seed, config=self.config)
        self._sessions[session.session_id] = session
        logger.info("Created session %s for deck %s", session.session_id, deck.deck_id)
        if start:
            session.start()
        return session

    def get_session(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """Drop a session. Returns False if it did not exist."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.ended = True
        logger.info("Ended session %s", session_id)
        return True

    def list_active_sessions(self) -> list[str]:
        return [sid for sid, session in self._sessions.items() if session.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """End sessions older than max_age. Returns how many were ended."""
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.created_at > max_age_seconds
        ]
        for sid in stale:
            self.end_session(sid)
        return len(stale)
