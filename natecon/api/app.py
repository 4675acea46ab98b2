"""
FastAPI Application - REST API for National Economy sessions.

Endpoints:
    GET    /health                               Health check
    POST   /api/v1/sessions                      Create game session
    GET    /api/v1/sessions                      List active sessions
    GET    /api/v1/sessions/{id}                 Get session status
    DELETE /api/v1/sessions/{id}                 End session
    GET    /api/v1/sessions/{id}/state           Get game state (redacted per seat)
    POST   /api/v1/sessions/{id}/moves           Submit a move
    GET    /api/v1/sessions/{id}/legal-moves     List legal moves for a seat
    GET    /api/v1/sessions/{id}/scores          Current or final scores

CPU Execution Flow:
    1. POST /moves applies the human move
    2. Every CPU seat that must decide afterwards runs immediately
    3. Response lists the CPU moves and the seats the game waits on

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional
import logging
import os

from .. import __version__

# Environment configuration
NATECON_ENV = os.getenv("NATECON_ENV", "development")
NATECON_LOG_LEVEL = os.getenv("NATECON_LOG_LEVEL", "INFO")
NATECON_MAX_SESSIONS = os.getenv("NATECON_MAX_SESSIONS", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query, Request
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from ..session import GameStuckError, SessionLimitError, SessionManager, SessionNotFoundError
    from .service import APIService, GameOverError, MoveRejectedError
    from .schemas import (
        # Request models
        CreateSessionRequest,
        SubmitMoveRequest,
        # Response models
        SessionResponse,
        GameStateResponse,
        MoveResponse,
        LegalMovesResponse,
        ScoresResponse,
        ErrorResponse,
        SessionListResponse,
        EndSessionResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    logging.getLogger("natecon").setLevel(NATECON_LOG_LEVEL.upper())

    app = FastAPI(
        title="National Economy Engine API",
        description="""
Rules engine and CPU opponents for the National Economy worker-placement game.

## CPU Execution Flow

After a human move via `POST /moves`, every CPU seat that must decide
runs immediately. The response lists the CPU moves and the seats the
game is now waiting on.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `INVALID_MOVE` | The rules reject the move |
| `VALIDATION_ERROR` | Malformed request |
| `GAME_OVER` | The game has already ended |
| `SESSION_LIMIT` | The host is at capacity |
| `INTERNAL_ERROR` | Engine failure |
        """,
        version=__version__,
        docs_url=None if NATECON_ENV == "production" else "/api/docs",
        redoc_url=None if NATECON_ENV == "production" else "/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    if service is None:
        max_sessions = int(NATECON_MAX_SESSIONS) if NATECON_MAX_SESSIONS else None
        service = APIService(session_manager=SessionManager(max_sessions=max_sessions))
    api_service = service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found(request: Request, exc: SessionNotFoundError) -> JSONResponse:
        return make_error_response(
            ErrorCode.SESSION_NOT_FOUND, str(exc), status_code=404,
            details={"session_id": exc.session_id},
        )

    @app.exception_handler(MoveRejectedError)
    async def move_rejected(request: Request, exc: MoveRejectedError) -> JSONResponse:
        return make_error_response(ErrorCode.INVALID_MOVE, exc.reason, status_code=409)

    @app.exception_handler(GameOverError)
    async def game_over(request: Request, exc: GameOverError) -> JSONResponse:
        return make_error_response(ErrorCode.GAME_OVER, str(exc), status_code=409)

    @app.exception_handler(SessionLimitError)
    async def session_limit(request: Request, exc: SessionLimitError) -> JSONResponse:
        return make_error_response(ErrorCode.SESSION_LIMIT, str(exc), status_code=429)

    @app.exception_handler(ValueError)
    async def validation_error(request: Request, exc: ValueError) -> JSONResponse:
        return make_error_response(ErrorCode.VALIDATION_ERROR, str(exc), status_code=400)

    @app.exception_handler(GameStuckError)
    async def game_stuck(request: Request, exc: GameStuckError) -> JSONResponse:
        logger.error("Game stuck: %s", exc)
        return make_error_response(ErrorCode.INTERNAL_ERROR, str(exc), status_code=500)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid seats"},
            429: {"model": ErrorResponse, "description": "Session limit reached"},
        },
        tags=["Sessions"],
        summary="Create a new game session",
    )
    def create_session(request: CreateSessionRequest) -> SessionResponse:
        """
        Create a new game session.

        CPU seats that act before the first human decision run immediately.
        """
        return api_service.create_session(request)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    def get_session(session_id: str) -> SessionResponse:
        """Get the current status of a game session."""
        return api_service.get_session(session_id)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="End a game session",
    )
    def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndSessionResponse:
        """End a game session and release resources."""
        success = api_service.end_session(session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get the game state as seen by one seat",
    )
    def get_state(
        session_id: str,
        player_id: Annotated[Optional[int], Query(ge=0, le=3, description="Viewing seat")] = None,
    ) -> GameStateResponse:
        """Other players' hands and the deck are hidden."""
        return api_service.get_game_state(session_id, player_id)

    @app.post(
        "/api/v1/sessions/{session_id}/moves",
        response_model=MoveResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Session not found"},
            409: {"model": ErrorResponse, "description": "Move rejected or game over"},
        },
        tags=["Game"],
        summary="Submit a move for a human seat",
    )
    def submit_move(session_id: str, request: SubmitMoveRequest) -> MoveResponse:
        """
        Apply a move, then run every CPU seat that must decide.
        """
        return api_service.submit_move(session_id, request)

    @app.get(
        "/api/v1/sessions/{session_id}/legal-moves",
        response_model=LegalMovesResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="List legal moves for a seat",
    )
    def legal_moves(
        session_id: str,
        player_id: Annotated[int, Query(ge=0, le=3, description="Seat to list moves for")],
    ) -> LegalMovesResponse:
        return api_service.legal_moves(session_id, player_id)

    @app.get(
        "/api/v1/sessions/{session_id}/scores",
        response_model=ScoresResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Current or final scores",
    )
    def get_scores(session_id: str) -> ScoresResponse:
        return api_service.get_scores(session_id)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    def health_check() -> HealthResponse:
        """Check if the API is running."""
        return HealthResponse(
            status="healthy",
            version=__version__,
            active_sessions=len(api_service.list_sessions()),
        )

    return app


# For running directly: uvicorn natecon.api.app:app
app = create_app()
