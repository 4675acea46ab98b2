"""
Card Catalog - Immutable card definitions and lookup.

The catalog is the single source of shared card attributes. A card in
play carries only its uid and a definition id; cost, VP, tags and
effects are always resolved through CardCatalog.lookup().

Variable construction costs and end-game bonuses are declarative
(CostRule, EndBonusRule) so the rules engine and the CPU engine read
the same data through the same interpreters.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


CONSUMABLE_DEF_ID = "__consumable__"


class GameVersion(Enum):
    """Which card set a game is played with."""
    BASE = "base"
    GLORY = "glory"


class CardTag(Enum):
    FARM = "farm"
    FACTORY = "factory"


class EffectTag(Enum):
    """
    Effect keys dispatched by the EffectResolver.

    Covers both personal building work effects and public workplace
    effects; a sold building turned public keeps its building effect.
    """
    # Public workplaces
    START_PLAYER_DRAW = "start_player_draw"
    DRAW1 = "draw1"
    HIRE_WORKER = "hire_worker"
    HIRE_IMMEDIATE = "hire_immediate"
    EXPAND4 = "expand4"
    EXPAND5 = "expand5"
    BUILD = "build"
    SELL = "sell"
    RUINS = "ruins"

    # Base buildings
    FARM = "farm"
    SLASH_BURN = "slash_burn"
    DESIGN_OFFICE = "design_office"
    COFFEE_SHOP = "coffee_shop"
    ORCHARD = "orchard"
    LARGE_FARM = "large_farm"
    FACTORY = "factory"
    AUTO_FACTORY = "auto_factory"
    STEEL_MILL = "steel_mill"
    CHEMICAL_PLANT = "chemical_plant"
    RESTAURANT = "restaurant"
    CONSTRUCTION_CO = "construction_co"
    PIONEER = "pioneer"
    GENERAL_CONTRACTOR = "general_contractor"
    DUAL_CONSTRUCTION = "dual_construction"

    # Glory buildings
    VILLAGE = "village"
    COLONIST = "colonist"
    STUDIO = "studio"
    STEAM_FACTORY = "steam_factory"
    POULTRY_FARM = "poultry_farm"
    SKYSCRAPER = "skyscraper"
    GAME_CAFE = "game_cafe"
    COTTON_FARM = "cotton_farm"
    MUSEUM = "museum"
    AUTOMATON = "automaton"
    COAL_MINE = "coal_mine"
    MODERNISM = "modernism"
    THEATER = "theater"
    REFINERY = "refinery"
    GREENHOUSE = "greenhouse"
    LOCOMOTIVE_FACTORY = "locomotive_factory"
    TELEPORTER = "teleporter"


class BuildEffect(Enum):
    """One-shot effects applied when a card is constructed."""
    WAREHOUSE = "warehouse"  # max hand +4
    COMPANY_HOUSING = "company_housing"  # max workers +1
    RELIC = "relic"  # +2 VP tokens


class CostRuleKind(Enum):
    VP_TOKEN_THRESHOLD = "vp_token_threshold"


@dataclass(frozen=True)
class CostRule:
    """Discount `delta` applied when the owner holds >= `threshold` VP tokens."""
    kind: CostRuleKind
    threshold: int
    delta: int


class EndBonusKind(Enum):
    PER_BUILDING = "per_building"
    PER_CONSUMABLE = "per_consumable"
    PER_WORKER = "per_worker"
    PER_UNSELLABLE = "per_unsellable"
    PER_FACTORY = "per_factory"
    FARM_VP_AT_LEAST = "farm_vp_at_least"
    FACTORY_VP_AT_LEAST = "factory_vp_at_least"
    FARM_AND_FACTORY = "farm_and_factory"
    VP_TOKENS_AT_LEAST = "vp_tokens_at_least"
    HUMAN_WORKERS_AT_LEAST = "human_workers_at_least"
    CONSUMABLES_AT_LEAST = "consumables_at_least"
    SOLE_UNSELLABLE = "sole_unsellable"
    DEBT_EXEMPTION = "debt_exemption"


@dataclass(frozen=True)
class EndBonusRule:
    """Declarative end-game bonus, interpreted by scoring.evaluate_end_bonus()."""
    kind: EndBonusKind
    payout: int = 0
    param: int = 0


@dataclass(frozen=True)
class CardDef:
    """Shared attributes of every copy of a building card."""
    id: str
    name: str
    cost: int
    vp: int
    copies: int = 1
    tags: frozenset[CardTag] = field(default_factory=frozenset)
    unsellable: bool = False
    consume_on_use: bool = False
    effect_text: str = ""
    worker_req: int = 1
    effect: EffectTag | None = None
    on_build: BuildEffect | None = None
    cost_rule: CostRule | None = None
    end_bonus: EndBonusRule | None = None

    @property
    def is_farm(self) -> bool:
        return CardTag.FARM in self.tags

    @property
    def is_factory(self) -> bool:
        return CardTag.FACTORY in self.tags

    @property
    def is_consumable(self) -> bool:
        return self.id == CONSUMABLE_DEF_ID


CONSUMABLE_DEF = CardDef(
    id=CONSUMABLE_DEF_ID,
    name="Consumable",
    cost=0,
    vp=0,
    copies=0,
    consume_on_use=True,
    effect_text="Consumable goods",
)


class UnknownCardError(KeyError):
    """Raised when a definition id is not present in the catalog."""

    def __init__(self, def_id: str):
        super().__init__(def_id)
        self.def_id = def_id

    def __str__(self) -> str:
        return f"Unknown card definition id: {self.def_id!r}"


class CardCatalog:
    """
    Lookup table over every card set the engine knows.

    Instances are read-only after construction and may be shared
    between games, sessions and threads.
    """

    def __init__(self, decks: dict[GameVersion, Iterable[CardDef]]):
        self._decks: dict[GameVersion, tuple[CardDef, ...]] = {}
        self._by_id: dict[str, CardDef] = {}
        for version, defs in decks.items():
            defs = tuple(defs)
            self._decks[version] = defs
            for card_def in defs:
                if card_def.id in self._by_id:
                    raise ValueError(f"Duplicate card definition id: {card_def.id}")
                self._by_id[card_def.id] = card_def

    def lookup(self, def_id: str) -> CardDef:
        if def_id == CONSUMABLE_DEF_ID:
            return CONSUMABLE_DEF
        try:
            return self._by_id[def_id]
        except KeyError:
            raise UnknownCardError(def_id) from None

    def deck_defs_for(self, version: GameVersion) -> tuple[CardDef, ...]:
        """Definitions the draw deck is built from; unknown versions fall back to base."""
        return self._decks.get(version, self._decks.get(GameVersion.BASE, ()))

    def __contains__(self, def_id: str) -> bool:
        return def_id == CONSUMABLE_DEF_ID or def_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def all_defs(self) -> list[CardDef]:
        return list(self._by_id.values())
