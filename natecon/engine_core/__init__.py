"""
Engine Core - Deterministic National Economy state machine.

The engine is the runtime that:
1. Looks up card rules in a CardCatalog
2. Manages GameState
3. Generates legal moves
4. Applies moves via the reducer
5. Resolves workplace and building effects, payday and cleanup
6. Scores finished (or running) games
"""

from .catalog import (
    CONSUMABLE_DEF_ID,
    CardCatalog,
    CardDef,
    CardTag,
    EffectTag,
    EndBonusKind,
    EndBonusRule,
    GameVersion,
    UnknownCardError,
)
from .state import (
    BuildMode,
    Card,
    BuildingSlot,
    GameOptions,
    GameState,
    Phase,
    PlayerState,
    Workplace,
)
from .action import ActionResult, AutomatonOption, INVALID_MOVE, Move, MovePayload, MoveType, VillageOption
from .errors import EngineError, IllegalMove
from .reducer import Reducer, apply_move
from .action_generator import ActionGenerator, legal_moves
from .effect_resolver import EffectResolver
from .round_flow import RoundFlow
from .scoring import PlayerScore, ScoreBreakdown, calculate_scores, score_player
from .view import HIDDEN, player_view

__all__ = [
    "CONSUMABLE_DEF_ID",
    "CardCatalog",
    "CardDef",
    "CardTag",
    "EffectTag",
    "EndBonusKind",
    "EndBonusRule",
    "GameVersion",
    "UnknownCardError",
    "BuildMode",
    "Card",
    "BuildingSlot",
    "GameOptions",
    "GameState",
    "Phase",
    "PlayerState",
    "Workplace",
    "ActionResult",
    "AutomatonOption",
    "INVALID_MOVE",
    "Move",
    "MovePayload",
    "MoveType",
    "VillageOption",
    "EngineError",
    "IllegalMove",
    "Reducer",
    "apply_move",
    "ActionGenerator",
    "legal_moves",
    "EffectResolver",
    "RoundFlow",
    "PlayerScore",
    "ScoreBreakdown",
    "calculate_scores",
    "score_player",
    "HIDDEN",
    "player_view",
]
