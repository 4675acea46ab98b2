"""
API Module - HTTP interface to game sessions.

Exposes the engine via REST API. A client:
1. Creates a game session with its CPU seats
2. Reads the state as seen by its seat
3. Lists legal moves and submits moves
4. Reads the scores once the game ends

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    SubmitMoveRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    MoveResponse,
    LegalMovesResponse,
    ScoresResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    CardInfo,
    MoveInfo,
    ScoreInfo,
    # Enums
    ErrorCode,
    SessionStatus,
)
from .service import APIService, GameOverError, MoveRejectedError
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "SubmitMoveRequest",
    # Responses
    "SessionResponse",
    "GameStateResponse",
    "MoveResponse",
    "LegalMovesResponse",
    "ScoresResponse",
    "ErrorResponse",
    # Shared
    "PlayerInfo",
    "CardInfo",
    "MoveInfo",
    "ScoreInfo",
    # Enums
    "ErrorCode",
    "SessionStatus",
    # Service
    "APIService",
    "GameOverError",
    "MoveRejectedError",
    "create_app",
]
