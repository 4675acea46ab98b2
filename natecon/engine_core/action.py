"""
Move System - Moves, payloads, and results.

Every state change is a named move submitted by a player:
1. Work phase placements (public workplace or own building)
2. Sub-phase selections (build, discard, design office, dual, choices)
3. Simultaneous payday and cleanup decisions

All state changes flow through moves.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


INVALID_MOVE = "INVALID_MOVE"


class MoveType(Enum):
    """Named moves accepted by the reducer."""
    # Work phase
    PLACE_WORKER = "place_worker"
    PLACE_WORKER_ON_BUILDING = "place_worker_on_building"

    # Build and payment sub-phases
    SELECT_BUILD_CARD = "select_build_card"
    TOGGLE_DISCARD = "toggle_discard"
    CONFIRM_DISCARD = "confirm_discard"
    CANCEL_ACTION = "cancel_action"

    # Card-specific sub-phases
    SELECT_DESIGN_OFFICE_CARD = "select_design_office_card"
    TOGGLE_DUAL_CARD = "toggle_dual_card"
    CONFIRM_DUAL_CONSTRUCTION = "confirm_dual_construction"
    SELECT_VILLAGE_OPTION = "select_village_option"
    SELECT_AUTOMATON_OPTION = "select_automaton_option"

    # Payday
    TOGGLE_PAYDAY_SELL = "toggle_payday_sell"
    CONFIRM_PAYDAY_SELL = "confirm_payday_sell"
    CONFIRM_PAYDAY = "confirm_payday"


class VillageOption(Enum):
    DRAW_CONSUMABLE = "draw_consumable"
    DRAW_BUILDING = "draw_building"


class AutomatonOption(Enum):
    GET_ROBOT = "get_robot"
    SKIP = "skip"


@dataclass
class MovePayload:
    """
    Payload for a move - contains the move parameters.

    Different move types use different fields.
    This is a generic container; validation happens in the reducer.
    """
    player_id: int
    workplace_id: str | None = None
    card_uid: str | None = None
    index: int | None = None
    option: str | None = None


@dataclass
class Move:
    """
    A complete move to be applied to the game state.

    Moves are:
    - Validated before application
    - Applied atomically by the reducer
    - Counted in state.move_count when accepted
    """
    move_type: MoveType
    payload: MovePayload

    @property
    def player_id(self) -> int:
        return self.payload.player_id

    def describe(self) -> str:
        args = [
            str(v) for v in (
                self.payload.workplace_id,
                self.payload.card_uid,
                self.payload.index,
                self.payload.option,
            ) if v is not None
        ]
        return f"P{self.player_id + 1} {self.move_type.value}({', '.join(args)})"

    @classmethod
    def place_worker(cls, player_id: int, workplace_id: str) -> Move:
        return cls(MoveType.PLACE_WORKER, MovePayload(player_id=player_id, workplace_id=workplace_id))

    @classmethod
    def place_worker_on_building(cls, player_id: int, card_uid: str) -> Move:
        return cls(MoveType.PLACE_WORKER_ON_BUILDING, MovePayload(player_id=player_id, card_uid=card_uid))

    @classmethod
    def select_build_card(cls, player_id: int, card_index: int) -> Move:
        return cls(MoveType.SELECT_BUILD_CARD, MovePayload(player_id=player_id, index=card_index))

    @classmethod
    def toggle_discard(cls, player_id: int, card_index: int) -> Move:
        return cls(MoveType.TOGGLE_DISCARD, MovePayload(player_id=player_id, index=card_index))

    @classmethod
    def confirm_discard(cls, player_id: int) -> Move:
        return cls(MoveType.CONFIRM_DISCARD, MovePayload(player_id=player_id))

    @classmethod
    def cancel_action(cls, player_id: int) -> Move:
        return cls(MoveType.CANCEL_ACTION, MovePayload(player_id=player_id))

    @classmethod
    def select_design_office_card(cls, player_id: int, card_index: int) -> Move:
        return cls(MoveType.SELECT_DESIGN_OFFICE_CARD, MovePayload(player_id=player_id, index=card_index))

    @classmethod
    def toggle_dual_card(cls, player_id: int, card_index: int) -> Move:
        return cls(MoveType.TOGGLE_DUAL_CARD, MovePayload(player_id=player_id, index=card_index))

    @classmethod
    def confirm_dual_construction(cls, player_id: int) -> Move:
        return cls(MoveType.CONFIRM_DUAL_CONSTRUCTION, MovePayload(player_id=player_id))

    @classmethod
    def select_village_option(cls, player_id: int, option: VillageOption | str) -> Move:
        value = option.value if isinstance(option, VillageOption) else option
        return cls(MoveType.SELECT_VILLAGE_OPTION, MovePayload(player_id=player_id, option=value))

    @classmethod
    def select_automaton_option(cls, player_id: int, option: AutomatonOption | str) -> Move:
        value = option.value if isinstance(option, AutomatonOption) else option
        return cls(MoveType.SELECT_AUTOMATON_OPTION, MovePayload(player_id=player_id, option=value))

    @classmethod
    def toggle_payday_sell(cls, player_id: int, building_index: int) -> Move:
        return cls(MoveType.TOGGLE_PAYDAY_SELL, MovePayload(player_id=player_id, index=building_index))

    @classmethod
    def confirm_payday_sell(cls, player_id: int) -> Move:
        return cls(MoveType.CONFIRM_PAYDAY_SELL, MovePayload(player_id=player_id))

    @classmethod
    def confirm_payday(cls, player_id: int) -> Move:
        return cls(MoveType.CONFIRM_PAYDAY, MovePayload(player_id=player_id))


@dataclass
class ActionResult:
    """
    Result of applying a move.

    Contains:
    - Whether the move succeeded
    - New state (if succeeded)
    - Error text and code (if rejected)
    - Human-readable changes (the log lines the move produced)
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = INVALID_MOVE) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(cls, state: Any, changes: list[str] | None = None) -> ActionResult:
        """Create a success result with new state."""
        return cls(success=True, new_state=state, state_changes=changes or [])
