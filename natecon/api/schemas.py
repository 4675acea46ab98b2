"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between clients and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has been ended
- INVALID_MOVE: The rules reject the move in the current state
- VALIDATION_ERROR: Malformed request
- GAME_OVER: The game has already ended
- SESSION_LIMIT: The host is at its session capacity
- INTERNAL_ERROR: Engine failure (stuck game, inconsistent state)
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..bots import Difficulty
from ..engine_core.action import MoveType
from ..engine_core.catalog import GameVersion


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    YOUR_TURN = "your_turn"
    WAITING = "waiting"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_MOVE = "INVALID_MOVE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    GAME_OVER = "GAME_OVER"
    SESSION_LIMIT = "SESSION_LIMIT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """A card in a hand, deck reveal or building row."""
    uid: str
    def_id: str
    name: str
    cost: Optional[int] = None
    vp: Optional[int] = None

    model_config = {"from_attributes": True}


class BuildingInfo(BaseModel):
    """A building owned by a player."""
    card: CardInfo
    worker_placed: bool = False


class PlayerInfo(BaseModel):
    """Player information for display."""
    player_id: int
    is_cpu: bool
    money: int
    workers: int
    available_workers: int
    max_workers: int
    robot_workers: int = 0
    unpaid_debts: int = 0
    vp_tokens: int = 0
    hand_size: int
    hand: list[CardInfo] = Field(default_factory=list)
    buildings: list[BuildingInfo] = Field(default_factory=list)


class WorkplaceInfo(BaseModel):
    """A public workplace and who works there."""
    id: str
    name: str
    effect_text: str = ""
    multiple_allowed: bool = False
    workers: list[int] = Field(default_factory=list)
    from_building_def_id: Optional[str] = None


class MoveInfo(BaseModel):
    """A move, as submitted or as listed among legal moves."""
    move_type: MoveType
    player_id: int = Field(ge=0, le=3)
    workplace_id: Optional[str] = None
    card_uid: Optional[str] = None
    index: Optional[int] = Field(default=None, ge=0)
    option: Optional[str] = None
    description: Optional[str] = None


class ScoreInfo(BaseModel):
    """One player's score with its breakdown."""
    player_id: int
    score: int
    building_vp: int
    money_vp: int
    debt_vp: int
    bonus_vp: int
    token_vp: int
    exempted_debts: int = 0


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a game session."""
    num_players: int = Field(default=2, ge=1, le=4, description="Number of seats")
    cpu_seats: Optional[list[int]] = Field(
        default=None,
        description="Seats played by the CPU (default: every seat but 0)",
    )
    version: GameVersion = GameVersion.BASE
    difficulty: Difficulty = Difficulty.HEURISTIC
    seed: Optional[int] = Field(default=None, description="Seed for the shuffle and CPU choices")


class SubmitMoveRequest(MoveInfo):
    """Request to apply a move for a human seat."""


# =============================================================================
# Response Models
# =============================================================================

class SessionResponse(BaseModel):
    """Session status."""
    session_id: str
    status: SessionStatus
    num_players: int
    version: GameVersion
    difficulty: Difficulty
    cpu_seats: list[int]
    human_seats: list[int]
    round: int
    phase: str
    waiting_on: list[int] = Field(default_factory=list)
    created_at: float


class GameStateResponse(BaseModel):
    """The game as seen by one seat."""
    session_id: str
    viewer_id: Optional[int] = None
    version: GameVersion
    round: int
    phase: str
    start_player: int
    current_player: int
    household: int
    deck_size: int
    discard_size: int
    players: list[PlayerInfo]
    public_workplaces: list[WorkplaceInfo]
    waiting_on: list[int] = Field(default_factory=list)
    revealed_cards: list[CardInfo] = Field(default_factory=list)
    log: list[str] = Field(default_factory=list)
    final_scores: Optional[list[ScoreInfo]] = None


class MoveResponse(BaseModel):
    """Result of a submitted move and the CPU turns that followed."""
    success: bool
    session_id: str
    changes: list[str] = Field(default_factory=list)
    cpu_actions: list[str] = Field(default_factory=list)
    waiting_on: list[int] = Field(default_factory=list)
    round: int
    phase: str
    game_over: bool = False


class LegalMovesResponse(BaseModel):
    """Legal moves for one seat."""
    session_id: str
    player_id: int
    moves: list[MoveInfo]


class ScoresResponse(BaseModel):
    """Current (or final) ranking."""
    session_id: str
    final: bool
    scores: list[ScoreInfo]


class SessionListResponse(BaseModel):
    """List of sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response when ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    active_sessions: int = 0


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None
