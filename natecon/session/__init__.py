"""
Session Module - In-memory hosting of National Economy tables.

Each session is one table from setup to final scoring:
- Created when a host starts a game with its CPU seats
- Holds the current canonical game state
- Serializes move submissions and drives CPU seats
- Removed when ended or when stale

Sessions are EPHEMERAL: no persistence, no saved games.
"""

from .manager import SessionManager, Session, SessionState, SessionNotFoundError, SessionLimitError
from .game_loop import (
    GameLoop,
    GameStuckError,
    LoopState,
    TurnResult,
    pending_seats,
    simulate_game,
)

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "SessionNotFoundError",
    "SessionLimitError",
    "GameLoop",
    "GameStuckError",
    "LoopState",
    "TurnResult",
    "pending_seats",
    "simulate_game",
]
