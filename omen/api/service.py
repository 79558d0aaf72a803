"""
API Service - Business logic layer between the HTTP API and the engine.

The service:
1. Translates API requests to session/scheduler calls
2. Manages sessions
3. Formats state into response models

This layer is framework-agnostic: it returns response models (or an
ErrorResponse) and never raises HTTP errors itself.
"""

from __future__ import annotations
from dataclasses import dataclass, field

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
from ..engine_core.errors import DeckValidationError, DiagnosticCode
from ..session import SessionManager, Session, SchedulerState, CONTINUE

_ERROR_CODES = {
    DiagnosticCode.INPUT_BLOCKED: ErrorCode.INPUT_BLOCKED,
    DiagnosticCode.INVALID_ACTION: ErrorCode.INVALID_ACTION,
    DiagnosticCode.UNKNOWN_CONTROL: ErrorCode.UNKNOWN_CONTROL,
}

# States from which a client may ask for another draw
_ADVANCEABLE = {SchedulerState.IDLE, SchedulerState.HALTED}

# How many recent diagnostics a session response carries
RECENT_DIAGNOSTICS = 20


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        session = service.create_session(CreateSessionRequest(deck=deck))
        service.reveal(session.session_id)
        turn = service.select_action(session.session_id, SelectActionRequest(action_index=0))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    def create_session(self, request: CreateSessionRequest) -> SessionResponse | ErrorResponse:
        try:
            session = self.session_manager.create_session(request.deck, seed=request.seed)
        except DeckValidationError as exc:
            return ErrorResponse(
                error=str(exc),
                error_code=ErrorCode.INVALID_DECK,
                details={"errors": exc.errors},
            )
        return self.session_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if session is None:
            return _not_found(session_id)
        return self.session_response(session)

    def end_session(self, session_id: str) -> bool:
        return self.session_manager.end_session(session_id)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    def reveal(self, session_id: str) -> SessionResponse | ErrorResponse:
        """Report that the client finished revealing the current event."""
        session = self.session_manager.get_session(session_id)
        if session is None:
            return _not_found(session_id)
        session.scheduler.on_reveal_complete()
        return self.session_response(session)

    def advance(self, session_id: str) -> SessionResponse | ErrorResponse:
        """Retry drawing after the scheduler halted."""
        session = self.session_manager.get_session(session_id)
        if session is None:
            return _not_found(session_id)
        if session.scheduler.state not in _ADVANCEABLE:
            return ErrorResponse(
                error=f"Cannot advance while the scheduler is {session.scheduler.state.value}",
                error_code=ErrorCode.INVALID_STATE,
            )
        session.scheduler.advance()
        return self.session_response(session)

    def select_action(
        self,
        session_id: str,
        request: SelectActionRequest,
    ) -> TurnResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if session is None:
            return _not_found(session_id)

        choice = CONTINUE if request.action_index is None else request.action_index
        result = session.scheduler.on_action_selected(choice)
        if not result.success:
            return ErrorResponse(
                error=result.error or "Action rejected",
                error_code=_ERROR_CODES.get(result.error_code, ErrorCode.INTERNAL_ERROR),
            )
        return TurnResponse(
            success=True,
            event_id=result.event_id,
            event_title=result.event_title,
            action_description=result.action_description,
            effects_applied=result.effects_applied,
            changes=result.changes,
            warnings=result.warnings,
            session=self.session_response(session),
        )

    def press_control(self, session_id: str, name: str) -> ControlResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if session is None:
            return _not_found(session_id)

        result = session.controls.press(name)
        if not result.success:
            return ErrorResponse(error=result.error, error_code=ErrorCode.UNKNOWN_CONTROL)
        changes = [c for r in result.command_results for c in r.changes]
        return ControlResponse(
            success=True,
            control=name,
            effects_applied=result.effects_applied,
            changes=changes,
            session=self.session_response(session),
        )

    # --- Formatting ---

    def session_response(self, session: Session) -> SessionResponse:
        scheduler = session.scheduler
        current = scheduler.current
        # Reading a session must not add diagnostics
        with session.diagnostics.muted():
            actions = [ActionInfo.model_validate(choice) for choice in scheduler.choices()]
            available_controls = session.controls.available()
        return SessionResponse(
            session_id=session.session_id,
            deck_id=session.deck.deck_id,
            deck_name=session.deck.name,
            status=SessionStatus(session.state.value),
            scheduler_state=scheduler.state.value,
            input_active=scheduler.input_active,
            turn_number=scheduler.turn_number,
            current_event=EventInfo(
                instance_id=current.instance_id,
                name=current.template_name,
                title=current.title,
                description=current.description,
            ) if current else None,
            actions=actions,
            queue_length=session.catalog.remaining,
            pool_size=len(session.catalog.all_events),
            variables=[VariableInfo.model_validate(v) for v in session.store],
            available_controls=available_controls,
            diagnostics=[str(d) for d in session.diagnostics.entries[-RECENT_DIAGNOSTICS:]],
        )


def _not_found(session_id: str) -> ErrorResponse:
    return ErrorResponse(
        error=f"Session not found: {session_id}",
        error_code=ErrorCode.SESSION_NOT_FOUND,
    )
