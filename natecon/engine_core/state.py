"""
Game State - The complete National Economy state container.

Design principles:
- Mutated only by the reducer, on a private clone
- Serializable: plain dataclasses, enums and lists
- Observable: every accepted move appends to the in-state log
- Sub-state objects are non-null exactly while their phase is active
"""

from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
import random
from typing import Any

from .catalog import CONSUMABLE_DEF_ID, EffectTag, GameVersion


class Phase(Enum):
    """Game phases. Exactly one is active at a time."""
    WORK = "work"
    BUILD = "build"
    DISCARD = "discard"
    PAYDAY = "payday"
    CLEANUP = "cleanup"
    DESIGN_OFFICE = "design_office"
    DUAL_CONSTRUCTION = "dual_construction"
    CHOICE_VILLAGE = "choice_village"
    CHOICE_AUTOMATON = "choice_automaton"
    CHOICE_MODERNISM = "choice_modernism"
    CHOICE_TELEPORTER = "choice_teleporter"
    CHOICE_SKYSCRAPER = "choice_skyscraper"
    GAME_END = "game_end"


# Phases driven by select_build_card and carried by BuildState
BUILD_PHASES = frozenset({
    Phase.BUILD,
    Phase.CHOICE_MODERNISM,
    Phase.CHOICE_TELEPORTER,
    Phase.CHOICE_SKYSCRAPER,
})

CHOICE_PHASES = frozenset({Phase.CHOICE_VILLAGE, Phase.CHOICE_AUTOMATON})

# Phases owned by a single acting player that cancel_action can roll back
CANCELLABLE_PHASES = BUILD_PHASES | CHOICE_PHASES | {
    Phase.DISCARD,
    Phase.DESIGN_OFFICE,
    Phase.DUAL_CONSTRUCTION,
}


@dataclass
class Card:
    """
    A card instance in play.

    Shared attributes live in the CardCatalog under `def_id`.
    """
    uid: str
    def_id: str

    @property
    def is_consumable(self) -> bool:
        return self.def_id == CONSUMABLE_DEF_ID


@dataclass
class BuildingSlot:
    card: Card
    worker_placed: bool = False


@dataclass
class PlayerState:
    hand: list[Card] = field(default_factory=list)
    money: int = 0
    workers: int = 2
    available_workers: int = 2
    buildings: list[BuildingSlot] = field(default_factory=list)
    unpaid_debts: int = 0
    max_hand_size: int = 5
    max_workers: int = 5
    vp_tokens: int = 0
    robot_workers: int = 0

    @property
    def human_workers(self) -> int:
        return self.workers - self.robot_workers

    @property
    def consumable_count(self) -> int:
        return sum(1 for c in self.hand if c.is_consumable)

    def building_cards(self) -> list[tuple[int, Card]]:
        """(hand index, card) pairs for every non-consumable card in hand."""
        return [(i, c) for i, c in enumerate(self.hand) if not c.is_consumable]

    def find_building(self, card_uid: str) -> BuildingSlot | None:
        for slot in self.buildings:
            if slot.card.uid == card_uid:
                return slot
        return None

    def owns(self, def_id: str) -> bool:
        return any(slot.card.def_id == def_id for slot in self.buildings)


@dataclass
class Workplace:
    """
    A public workplace.

    Sell workplaces carry `sell_count`/`sell_amount`; sold buildings
    carry `from_building_def_id` and resolve their building's effect.
    """
    id: str
    name: str
    effect_text: str = ""
    multiple_allowed: bool = False
    workers: list[int] = field(default_factory=list)
    effect: EffectTag | None = None
    sell_count: int = 0
    sell_amount: int = 0
    added_at_round: int = 0
    from_building: bool = False
    from_building_def_id: str | None = None

    @property
    def is_sell(self) -> bool:
        return self.effect == EffectTag.SELL

    @property
    def is_occupied(self) -> bool:
        return len(self.workers) > 0


# =============================================================================
# Sub-states
# =============================================================================

class DiscardCallback(Enum):
    """What confirm_discard does once the selected cards are paid."""
    SELL = "sell"
    DRAW = "draw"
    MONEY = "money"
    BUILD_COST = "build_cost"
    DUAL_BUILD_COST = "dual_build_cost"


class BuildMode(Enum):
    NORMAL = "normal"
    FARM_ONLY = "farm_only"
    MODERNISM = "modernism"
    FREE = "free"
    SKYSCRAPER = "skyscraper"


@dataclass
class DiscardState:
    player_id: int
    count: int
    reason: str
    callback: DiscardCallback
    selected_indices: list[int] = field(default_factory=list)
    callback_data: dict[str, Any] = field(default_factory=dict)
    exclude_card_uids: list[str] = field(default_factory=list)
    consumable_weight: int = 1
    # "building:<uid>" or "workplace:<id>" that consumed the worker
    source: str | None = None


@dataclass
class BuildState:
    player_id: int
    cost_reduction: int = 0
    draw_after_build: int = 0
    consumables_after_build: int = 0
    mode: BuildMode = BuildMode.NORMAL
    source: str | None = None


@dataclass
class PaydayPlayerState:
    total_wage: int
    needs_selling: bool = False
    selected_building_indices: list[int] = field(default_factory=list)
    confirmed: bool = False


@dataclass
class PaydayState:
    wage_per_worker: int
    player_states: dict[int, PaydayPlayerState] = field(default_factory=dict)

    @property
    def all_confirmed(self) -> bool:
        return all(ps.confirmed for ps in self.player_states.values())


@dataclass
class CleanupPlayerState:
    excess_count: int
    selected_indices: list[int] = field(default_factory=list)
    confirmed: bool = False


@dataclass
class CleanupState:
    player_states: dict[int, CleanupPlayerState] = field(default_factory=dict)

    @property
    def all_confirmed(self) -> bool:
        return all(ps.confirmed for ps in self.player_states.values())


@dataclass
class DesignOfficeState:
    player_id: int
    revealed_cards: list[Card] = field(default_factory=list)
    source: str | None = None


@dataclass
class DualConstructionState:
    player_id: int
    selected_card_indices: list[int] = field(default_factory=list)
    source: str | None = None


@dataclass
class ChoiceState:
    player_id: int
    source: str | None = None


# =============================================================================
# Records
# =============================================================================

@dataclass
class LogEntry:
    text: str
    round: int


@dataclass
class PlayerRoundStat:
    round: int
    money: int
    workers: int
    building_count: int
    unpaid_debts: int
    vp_tokens: int
    current_vp: int


@dataclass
class GameOptions:
    version: GameVersion = GameVersion.BASE
    is_online: bool = False
    seed: int | None = None


# =============================================================================
# Game state
# =============================================================================

@dataclass
class GameState:
    """
    Complete game state at a point in time.

    `current_player` is the acting seat in the work phase and in every
    single-actor sub-phase. Payday and cleanup are simultaneous and
    addressed by player id instead.
    """
    version: GameVersion
    num_players: int
    players: dict[int, PlayerState] = field(default_factory=dict)
    public_workplaces: list[Workplace] = field(default_factory=list)
    household: int = 0
    round: int = 1
    phase: Phase = Phase.WORK
    start_player: int = 0
    current_player: int = 0
    deck: list[Card] = field(default_factory=list)
    discard: list[Card] = field(default_factory=list)
    consumable_counter: int = 0

    discard_state: DiscardState | None = None
    build_state: BuildState | None = None
    payday_state: PaydayState | None = None
    cleanup_state: CleanupState | None = None
    design_office_state: DesignOfficeState | None = None
    dual_construction_state: DualConstructionState | None = None
    choice_state: ChoiceState | None = None

    log: list[LogEntry] = field(default_factory=list)
    final_scores: list[Any] | None = None  # list[PlayerScore]
    is_online: bool = False
    stats: dict[int, list[PlayerRoundStat]] = field(default_factory=dict)
    move_count: int = 0

    # Drives every shuffle after setup; cloned along with the state
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    def player(self, player_id: int) -> PlayerState:
        return self.players[player_id]

    @property
    def total_available_workers(self) -> int:
        return sum(p.available_workers for p in self.players.values())

    def find_workplace(self, workplace_id: str) -> Workplace | None:
        for wp in self.public_workplaces:
            if wp.id == workplace_id:
                return wp
        return None

    def push_log(self, text: str) -> None:
        self.log.append(LogEntry(text=text, round=self.round))

    def acting_player(self) -> int | None:
        """The single acting player for the active phase, if there is one."""
        if self.phase in (Phase.PAYDAY, Phase.CLEANUP, Phase.GAME_END):
            return None
        if self.phase == Phase.WORK:
            return self.current_player
        owner = self.sub_state_owner()
        return owner if owner is not None else self.current_player

    def sub_state_owner(self) -> int | None:
        for sub in (
            self.discard_state,
            self.build_state,
            self.design_office_state,
            self.dual_construction_state,
            self.choice_state,
        ):
            if sub is not None:
                return sub.player_id
        return None

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)

    def invariant_violations(self) -> list[str]:
        """
        Check the structural invariants of the state.

        Returns a list of human-readable violations; empty when sound.
        """
        problems: list[str] = []
        expected = {
            "discard_state": self.phase == Phase.DISCARD,
            "build_state": self.phase in BUILD_PHASES,
            "payday_state": self.phase == Phase.PAYDAY,
            "cleanup_state": self.phase == Phase.CLEANUP,
            "design_office_state": self.phase == Phase.DESIGN_OFFICE,
            "dual_construction_state": self.phase == Phase.DUAL_CONSTRUCTION,
            "choice_state": self.phase in CHOICE_PHASES,
        }
        for name, should_exist in expected.items():
            exists = getattr(self, name) is not None
            if exists != should_exist:
                problems.append(f"{name} is {'set' if exists else 'missing'} in phase {self.phase.value}")

        for pid, p in self.players.items():
            if not 0 <= p.available_workers <= p.workers:
                problems.append(f"player {pid}: available_workers {p.available_workers} outside 0..{p.workers}")
            if p.workers > p.max_workers:
                problems.append(f"player {pid}: workers {p.workers} exceed max {p.max_workers}")

        if any(c.is_consumable for c in self.discard):
            problems.append("discard pile contains a consumable")

        uids = [c.uid for c in self.deck] + [c.uid for c in self.discard]
        for p in self.players.values():
            uids.extend(c.uid for c in p.hand)
            uids.extend(slot.card.uid for slot in p.buildings)
        if self.design_office_state:
            uids.extend(c.uid for c in self.design_office_state.revealed_cards)
        if len(uids) != len(set(uids)):
            problems.append("duplicate card uid in play")

        if self.phase == Phase.GAME_END and self.final_scores is None:
            problems.append("game ended without final scores")
        return problems
