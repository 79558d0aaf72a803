"""
API Module - HTTP interface for presentation clients.

A client (game UI):
1. Creates a session from an authored deck
2. Reads the current event and its actions
3. Reports when its reveal animation is done
4. Submits the player's action or control presses

All state is session-scoped and in memory.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    SelectActionRequest,
    # Responses
    SessionResponse,
    TurnResponse,
    ControlResponse,
    ErrorResponse,
    # Shared
    VariableInfo,
    EventInfo,
    ActionInfo,
    # Enums
    SessionStatus,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "SelectActionRequest",
    # Responses
    "SessionResponse",
    "TurnResponse",
    "ControlResponse",
    "ErrorResponse",
    # Shared
    "VariableInfo",
    "EventInfo",
    "ActionInfo",
    # Enums
    "SessionStatus",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
