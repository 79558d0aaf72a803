"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models are the contract between a presentation client (a game UI)
and the engine. The client only reads state through these models and only
changes it through the action, reveal and control endpoints.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- INVALID_DECK: Deck failed validation
- INPUT_BLOCKED: An action arrived while the reveal was still running
- INVALID_ACTION: The chosen action is not available
- UNKNOWN_CONTROL: Control does not exist or its condition does not hold
- INVALID_STATE: The session cannot do that in its current state
"""

from enum import Enum
from typing import Optional, Any, Union
from pydantic import BaseModel, Field

from ..deck_schema import DeckSpec


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    CREATED = "created"
    ACTIVE = "active"
    HALTED = "halted"
    ENDED = "ended"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_DECK = "INVALID_DECK"
    INPUT_BLOCKED = "INPUT_BLOCKED"
    INVALID_ACTION = "INVALID_ACTION"
    UNKNOWN_CONTROL = "UNKNOWN_CONTROL"
    INVALID_STATE = "INVALID_STATE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class VariableInfo(BaseModel):
    """A variable for display."""
    name: str
    value: float
    max: float = Field(description="-1 when unbounded")

    model_config = {"from_attributes": True}


class EventInfo(BaseModel):
    """The event currently presented."""
    instance_id: str
    name: str
    title: str
    description: str = ""


class ActionInfo(BaseModel):
    """An action button for the current event."""
    index: Union[int, str] = Field(description="Action index, or 'continue'")
    description: str
    available: bool

    model_config = {"from_attributes": True}


# =============================================================================
# Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Create a session from an authored deck."""
    deck: DeckSpec
    seed: Optional[int] = Field(None, description="Seed for reproducible draws")


class SelectActionRequest(BaseModel):
    """Choose an action of the current event."""
    action_index: Optional[int] = Field(
        None, description="Index of the action; omit to continue when nothing is available"
    )


# =============================================================================
# Responses
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Everything a client needs to draw the current turn."""
    session_id: str
    deck_id: str
    deck_name: str = ""
    status: SessionStatus
    scheduler_state: str
    input_active: bool
    turn_number: int = 0
    current_event: Optional[EventInfo] = None
    actions: list[ActionInfo] = Field(default_factory=list)
    queue_length: int = 0
    pool_size: int = 0
    variables: list[VariableInfo] = Field(default_factory=list)
    available_controls: list[str] = Field(default_factory=list)
    diagnostics: list[str] = Field(default_factory=list)


class TurnResponse(BaseModel):
    """Result of resolving an action."""
    success: bool
    event_id: Optional[str] = None
    event_title: Optional[str] = None
    action_description: Optional[str] = None
    effects_applied: list[str] = Field(default_factory=list)
    changes: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    session: SessionResponse


class ControlResponse(BaseModel):
    """Result of pressing a control."""
    success: bool
    control: str
    effects_applied: list[str] = Field(default_factory=list)
    changes: list[str] = Field(default_factory=list)
    session: SessionResponse


class SessionListResponse(BaseModel):
    """Active session IDs."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Session end confirmation."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
