"""
Session Module - Play sessions and the turn scheduler.

A session represents one play-through of a deck:
- Created from an authored DeckSpec
- Holds the variable store and the event catalog
- Steps turn by turn through the scheduler
- Dropped when it ends

Sessions are EPHEMERAL: nothing is persisted.
"""

from .manager import SessionManager, Session, SessionState, build_session
from .scheduler import TurnScheduler, SchedulerState, TurnResult, ActionChoice, CONTINUE

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "build_session",
    "TurnScheduler",
    "SchedulerState",
    "TurnResult",
    "ActionChoice",
    "CONTINUE",
]
