"""
FastAPI Application - REST API for presentation clients.

Endpoints:
    GET    /api/v1/health                           Health check
    POST   /api/v1/sessions                         Create a session from a deck
    GET    /api/v1/sessions                         List active sessions
    GET    /api/v1/sessions/{id}                    Get session state
    DELETE /api/v1/sessions/{id}                    End session
    POST   /api/v1/sessions/{id}/reveal             Report that the reveal finished
    POST   /api/v1/sessions/{id}/actions            Choose an action of the current event
    POST   /api/v1/sessions/{id}/advance            Retry drawing after a halt
    POST   /api/v1/sessions/{id}/controls/{name}    Press a control button

Turn flow:
    1. GET the session, animate `current_event`
    2. POST /reveal when the animation is done (input opens)
    3. POST /actions with an `action_index` (or none to continue)
    4. The response carries the next presented event; repeat
"""

from typing import Union
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .schemas import (
    CreateSessionRequest,
    SelectActionRequest,
    SessionResponse,
    TurnResponse,
    ControlResponse,
    ErrorResponse,
    ErrorCode,
    SessionListResponse,
    EndSessionResponse,
    HealthResponse,
)
from .service import APIService
from ..config import EngineConfig, configure_logging
from ..session import SessionManager

# Environment configuration
OMEN_ENV = os.getenv("OMEN_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

API_VERSION = "1.0.0"

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    ErrorCode.SESSION_NOT_FOUND: 404,
    ErrorCode.INVALID_DECK: 422,
    ErrorCode.INPUT_BLOCKED: 409,
    ErrorCode.INVALID_ACTION: 400,
    ErrorCode.UNKNOWN_CONTROL: 400,
    ErrorCode.INVALID_STATE: 409,
    ErrorCode.INTERNAL_ERROR: 500,
}


def create_app(service: APIService | None = None, config: EngineConfig | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)
        config: Engine config for new sessions (read from the environment if omitted)

    Returns:
        FastAPI application instance
    """
    config = config or EngineConfig.from_env()
    configure_logging(config.log_level)
    api_service = service or APIService(session_manager=SessionManager(config=config))

    app = FastAPI(
        title="Omen Engine API",
        description="Event deck engine: sessions, turns, actions and controls.",
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Wrap a service error into a JSON response with a matching status."""
        return JSONResponse(
            status_code=_STATUS_CODES.get(error.error_code, 400),
            content=error.model_dump(mode="json"),
        )

    def respond(result):
        if isinstance(result, ErrorResponse):
            return make_error_response(result)
        return result

    # =========================================================================
    # System
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(status="healthy", service="omen-engine", version=API_VERSION)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        status_code=201,
        responses={422: {"model": ErrorResponse, "description": "Deck failed validation"}},
        tags=["Sessions"],
        summary="Create a new session from a deck",
    )
    async def create_session(request: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.create_session(request))

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session state",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Turn Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/reveal",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Turns"],
        summary="Report that the current event finished revealing",
    )
    async def reveal(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.reveal(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/actions",
        response_model=TurnResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Action not available"},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Reveal still running"},
        },
        tags=["Turns"],
        summary="Choose an action of the current event",
    )
    async def select_action(
        session_id: str,
        request: SelectActionRequest,
    ) -> Union[TurnResponse, JSONResponse]:
        return respond(api_service.select_action(session_id, request))

    @app.post(
        "/api/v1/sessions/{session_id}/advance",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Turns"],
        summary="Retry drawing after the deck ran dry",
    )
    async def advance(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.advance(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/controls/{name}",
        response_model=ControlResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Controls"],
        summary="Press a control button",
    )
    async def press_control(session_id: str, name: str) -> Union[ControlResponse, JSONResponse]:
        return respond(api_service.press_control(session_id, name))

    logger.info("Omen API created (%s)", OMEN_ENV)
    return app
