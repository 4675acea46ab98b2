"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Host creates a session (seats, CPU seats, version, difficulty, seed)
2. During the game:
   - Human seats submit moves
   - Every submission is serialized by the session lock
   - CPU seats are driven by the GameLoop after each submission
3. Game ends -> session stays readable until ended or cleaned up

PERSISTENCE RULES:
- Sessions are in-memory only
- No saved-game format
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import random
import threading
import time
from typing import Any
import uuid

from ..bots import CPUBot, Difficulty
from ..engine_core.action import ActionResult, Move
from ..engine_core.catalog import CardCatalog, GameVersion
from ..engine_core.reducer import Reducer
from ..engine_core.state import GameOptions, GameState, Phase
from ..games.national_economy import default_catalog, setup

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """No session with the requested id."""

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session not found: {self.session_id}"


class SessionLimitError(RuntimeError):
    """The manager already holds its maximum number of active sessions."""


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Game completed
    ABANDONED = "abandoned"  # Ended before completion


@dataclass
class Session:
    """
    One game in progress.

    Contains:
    - The card catalog and the current canonical game state
    - One CPUBot per CPU seat
    - A lock serializing every move submission
    """
    session_id: str
    catalog: CardCatalog
    game_state: GameState
    created_at: float
    state: SessionState = SessionState.ACTIVE
    cpu_bots: dict[int, CPUBot] = field(default_factory=dict)
    difficulty: Difficulty = Difficulty.HEURISTIC
    metadata: dict[str, Any] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)
    reducer: Reducer = field(init=False, repr=False)

    def __post_init__(self):
        self.reducer = Reducer(self.catalog)

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state == SessionState.ACTIVE

    def is_cpu(self, player_id: int) -> bool:
        return player_id in self.cpu_bots

    @property
    def human_seats(self) -> list[int]:
        return [pid for pid in sorted(self.game_state.players) if pid not in self.cpu_bots]

    def submit_move(self, move: Move) -> ActionResult:
        """
        Apply a move to the session's game.

        Serialized by the session lock; a rejected move leaves the
        state untouched.
        """
        with self.lock:
            result = self.reducer.apply(self.game_state, move)
            if not result.success:
                logger.warning("Session %s rejected %s: %s", self.session_id, move.describe(), result.error)
                return result
            self.game_state = result.new_state
            if self.game_state.phase == Phase.GAME_END and self.state == SessionState.ACTIVE:
                self.state = SessionState.GAME_OVER
                logger.info("Session %s finished", self.session_id)
            return result


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions with their CPU seats
    - Track active sessions
    - Clean up completed sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, catalog: CardCatalog | None = None, max_sessions: int | None = None):
        self.catalog = catalog or default_catalog()
        self.max_sessions = max_sessions
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create_session(
        self,
        num_players: int = 2,
        cpu_seats: list[int] | None = None,
        version: GameVersion = GameVersion.BASE,
        difficulty: Difficulty = Difficulty.HEURISTIC,
        seed: int | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            num_players: Number of seats (1-4)
            cpu_seats: Seats played by the CPU (default: every seat but 0)
            version: Base game or Glory
            difficulty: CPU difficulty for every CPU seat
            seed: Seed for the shuffle and the CPU random choices

        Returns:
            New Session in the round 1 work phase
        """
        if cpu_seats is None:
            cpu_seats = list(range(1, num_players))
        invalid = [s for s in cpu_seats if not 0 <= s < num_players]
        if invalid:
            raise ValueError(f"CPU seats {invalid} outside 0..{num_players - 1}")

        with self._lock:
            if self.max_sessions is not None and len(self.list_active_sessions()) >= self.max_sessions:
                raise SessionLimitError(f"Session limit of {self.max_sessions} reached")

            options = GameOptions(version=version, seed=seed)
            game_state = setup(self.catalog, num_players, options)
            bot_rng = random.Random(seed)
            session = Session(
                session_id=str(uuid.uuid4()),
                catalog=self.catalog,
                game_state=game_state,
                created_at=time.time(),
                cpu_bots={
                    pid: CPUBot(player_id=pid, catalog=self.catalog, difficulty=difficulty, rng=bot_rng)
                    for pid in sorted(set(cpu_seats))
                },
                difficulty=difficulty,
                metadata={"seed": seed},
            )
            self._sessions[session.session_id] = session

        logger.info(
            "Created session %s: %d players (CPU seats %s), %s, %s",
            session.session_id, num_players, sorted(session.cpu_bots), version.value, difficulty.value,
        )
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def require_session(self, session_id: str) -> Session:
        """Get a session by ID or raise SessionNotFoundError."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def end_session(self, session_id: str, reason: str = "completed") -> None:
        """
        End a session and remove it from memory.

        Raises SessionNotFoundError if the session does not exist.
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.state == SessionState.ACTIVE:
            session.state = SessionState.GAME_OVER if reason == "completed" else SessionState.ABANDONED
        logger.info("Ended session %s (%s)", session_id, reason)

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [sid for sid, session in self._sessions.items() if session.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Remove finished sessions older than max_age.

        Returns the number of sessions removed.
        """
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.created_at > max_age_seconds and not session.is_active()
        ]
        for sid in stale:
            self.end_session(sid, reason="stale")
        return len(stale)
