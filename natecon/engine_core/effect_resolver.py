"""
Effect Resolver - Table-driven effect resolution.

Two dispatch levels:
1. `handlers` maps every EffectTag (building work effects and public
   workplace effects) to a handler that mutates the working state or
   opens a sub-phase.
2. Sub-phases that collect a payment store a DiscardCallback in the
   DiscardState; confirm_discard re-enters the resolver through
   resolve_callback().

Handlers record where the worker came from (`source`) on every
sub-state they open so cancel_action can return exactly those workers.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import Any, Callable

from .catalog import BuildEffect, CardCatalog, EffectTag
from .deck import discard_card, draw_cards, draw_into_hand, gain_consumables
from .errors import EngineError, IllegalMove
from .rules import (
    DESIGN_OFFICE_REVEAL,
    GAME_CAFE_INCOME,
    GAME_CAFE_LAST_ACTION_INCOME,
    MUSEUM_FULL_HAND_INCOME,
    MUSEUM_INCOME,
    RESTAURANT_INCOME,
    THEATER_INCOME,
    COFFEE_SHOP_INCOME,
    workplace_worker_req,
)
from .state import (
    BuildingSlot,
    BuildMode,
    BuildState,
    ChoiceState,
    DesignOfficeState,
    DiscardCallback,
    DiscardState,
    DualConstructionState,
    GameState,
    Phase,
)

logger = logging.getLogger(__name__)

Handler = Callable[[GameState, int, str], None]

BUILD_MODE_PHASES = {
    BuildMode.NORMAL: Phase.BUILD,
    BuildMode.FARM_ONLY: Phase.BUILD,
    BuildMode.MODERNISM: Phase.CHOICE_MODERNISM,
    BuildMode.FREE: Phase.CHOICE_TELEPORTER,
    BuildMode.SKYSCRAPER: Phase.CHOICE_SKYSCRAPER,
}

SKYSCRAPER_EMPTY_HAND_DRAW = 2


# =============================================================================
# Worker sources
# =============================================================================

def building_source(card_uid: str) -> str:
    return f"building:{card_uid}"


def workplace_source(workplace_id: str) -> str:
    return f"workplace:{workplace_id}"


def release_worker(catalog: CardCatalog, state: GameState, player_id: int, source: str | None) -> int:
    """
    Return the workers consumed at `source` to the player.

    Returns the number of workers returned.
    """
    if source is None:
        raise EngineError("Sub-phase has no recorded worker source")
    kind, _, ident = source.partition(":")
    player = state.player(player_id)

    if kind == "building":
        slot = player.find_building(ident)
        if slot is None or not slot.worker_placed:
            raise EngineError(f"No worked building {ident} for player {player_id}")
        slot.worker_placed = False
        returned = catalog.lookup(slot.card.def_id).worker_req
    elif kind == "workplace":
        wp = state.find_workplace(ident)
        if wp is None or player_id not in wp.workers:
            raise EngineError(f"Player {player_id} has no worker on {ident}")
        wp.workers.remove(player_id)
        returned = workplace_worker_req(catalog, wp)
    else:
        raise EngineError(f"Unrecognised worker source {source!r}")

    player.available_workers += returned
    return returned


def clear_sub_states(state: GameState) -> None:
    state.discard_state = None
    state.build_state = None
    state.design_office_state = None
    state.dual_construction_state = None
    state.choice_state = None


# =============================================================================
# Resolver
# =============================================================================

@dataclass
class EffectResolver:
    """
    Resolves workplace and building effects against a working state.

    Stateless apart from the handler table; every call receives the
    state it should mutate.
    """
    catalog: CardCatalog
    handlers: dict[EffectTag, Handler] = field(init=False, repr=False)

    def __post_init__(self):
        self.handlers = {
            # Public workplaces
            EffectTag.START_PLAYER_DRAW: self._start_player_draw,
            EffectTag.DRAW1: self._draw(1),
            EffectTag.HIRE_WORKER: self._hire_worker,
            EffectTag.HIRE_IMMEDIATE: self._hire_immediate,
            EffectTag.EXPAND4: self._expand_to(4),
            EffectTag.EXPAND5: self._expand_to(5),
            EffectTag.BUILD: self._build(BuildMode.NORMAL),
            EffectTag.RUINS: self._ruins,
            # Base buildings
            EffectTag.FARM: self._consumables(2),
            EffectTag.SLASH_BURN: self._consumables(5),
            EffectTag.LARGE_FARM: self._consumables(3),
            EffectTag.ORCHARD: self._orchard,
            EffectTag.DESIGN_OFFICE: self._design_office,
            EffectTag.COFFEE_SHOP: self._household_income(COFFEE_SHOP_INCOME),
            EffectTag.FACTORY: self._discard_then_draw(2, 4),
            EffectTag.AUTO_FACTORY: self._discard_then_draw(3, 7),
            EffectTag.STEEL_MILL: self._draw(3),
            EffectTag.CHEMICAL_PLANT: self._chemical_plant,
            EffectTag.RESTAURANT: self._discard_then_income(1, RESTAURANT_INCOME),
            EffectTag.CONSTRUCTION_CO: self._build(BuildMode.NORMAL, reduction=1),
            EffectTag.PIONEER: self._build(BuildMode.FARM_ONLY),
            EffectTag.GENERAL_CONTRACTOR: self._build(BuildMode.NORMAL, draw_after=2),
            EffectTag.DUAL_CONSTRUCTION: self._dual_construction,
            # Glory buildings
            EffectTag.VILLAGE: self._choice(Phase.CHOICE_VILLAGE),
            EffectTag.COLONIST: self._build(BuildMode.NORMAL, consumables_after=1),
            EffectTag.STUDIO: self._studio,
            EffectTag.STEAM_FACTORY: self._discard_then_draw(2, 4),
            EffectTag.POULTRY_FARM: self._poultry_farm,
            EffectTag.SKYSCRAPER: self._build(BuildMode.SKYSCRAPER),
            EffectTag.GAME_CAFE: self._game_cafe,
            EffectTag.COTTON_FARM: self._consumables(5),
            EffectTag.MUSEUM: self._museum,
            EffectTag.AUTOMATON: self._choice(Phase.CHOICE_AUTOMATON),
            EffectTag.COAL_MINE: self._draw(5),
            EffectTag.MODERNISM: self._build(BuildMode.MODERNISM),
            EffectTag.THEATER: self._discard_then_income(2, THEATER_INCOME),
            EffectTag.REFINERY: self._draw(3),
            EffectTag.GREENHOUSE: self._consumables(4),
            EffectTag.LOCOMOTIVE_FACTORY: self._discard_then_draw(3, 7),
            EffectTag.TELEPORTER: self._build(BuildMode.FREE),
        }

    def resolve(self, state: GameState, player_id: int, effect: EffectTag, source: str) -> None:
        handler = self.handlers.get(effect)
        if handler is None:
            raise EngineError(f"No handler for effect {effect.value}")
        logger.debug("Resolving %s for player %d (source %s)", effect.value, player_id, source)
        handler(state, player_id, source)

    def resolve_sell(self, state: GameState, player_id: int, count: int, amount: int, source: str) -> None:
        """Sell workplaces are parameterised by the workplace, not the effect tag."""
        self.begin_discard(
            state, player_id, count,
            reason=f"Sell {count} cards for ${amount}",
            callback=DiscardCallback.SELL,
            callback_data={"amount": amount},
            source=source,
        )

    # -------------------------------------------------------------------------
    # Sub-phase entry
    # -------------------------------------------------------------------------

    def begin_discard(
        self,
        state: GameState,
        player_id: int,
        count: int,
        reason: str,
        callback: DiscardCallback,
        callback_data: dict[str, Any] | None = None,
        source: str | None = None,
        exclude_card_uids: list[str] | None = None,
        consumable_weight: int = 1,
    ) -> None:
        clear_sub_states(state)
        state.phase = Phase.DISCARD
        state.discard_state = DiscardState(
            player_id=player_id,
            count=count,
            reason=reason,
            callback=callback,
            callback_data=callback_data or {},
            exclude_card_uids=exclude_card_uids or [],
            consumable_weight=consumable_weight,
            source=source,
        )

    def begin_build(
        self,
        state: GameState,
        player_id: int,
        source: str,
        mode: BuildMode = BuildMode.NORMAL,
        reduction: int = 0,
        draw_after: int = 0,
        consumables_after: int = 0,
    ) -> None:
        clear_sub_states(state)
        state.phase = BUILD_MODE_PHASES[mode]
        state.build_state = BuildState(
            player_id=player_id,
            cost_reduction=reduction,
            draw_after_build=draw_after,
            consumables_after_build=consumables_after,
            mode=mode,
            source=source,
        )

    # -------------------------------------------------------------------------
    # Handler factories
    # -------------------------------------------------------------------------

    def _draw(self, count: int) -> Handler:
        def handler(state: GameState, player_id: int, source: str) -> None:
            drawn = draw_into_hand(state, player_id, count)
            state.push_log(f"P{player_id + 1}: drew {drawn} card(s)")
        return handler

    def _consumables(self, count: int) -> Handler:
        def handler(state: GameState, player_id: int, source: str) -> None:
            gain_consumables(state, player_id, count)
            state.push_log(f"P{player_id + 1}: gained {count} consumable(s)")
        return handler

    def _household_income(self, amount: int) -> Handler:
        def handler(state: GameState, player_id: int, source: str) -> None:
            self._pay_from_household(state, player_id, amount)
        return handler

    def _expand_to(self, target: int) -> Handler:
        def handler(state: GameState, player_id: int, source: str) -> None:
            player = state.player(player_id)
            player.workers = max(player.workers, min(target, player.max_workers))
            state.push_log(f"P{player_id + 1}: expanded to {player.workers} workers")
        return handler

    def _build(
        self,
        mode: BuildMode,
        reduction: int = 0,
        draw_after: int = 0,
        consumables_after: int = 0,
    ) -> Handler:
        def handler(state: GameState, player_id: int, source: str) -> None:
            self.begin_build(
                state, player_id, source,
                mode=mode,
                reduction=reduction,
                draw_after=draw_after,
                consumables_after=consumables_after,
            )
        return handler

    def _discard_then_draw(self, discard: int, draw: int) -> Handler:
        def handler(state: GameState, player_id: int, source: str) -> None:
            self.begin_discard(
                state, player_id, discard,
                reason=f"Discard {discard} cards to draw {draw}",
                callback=DiscardCallback.DRAW,
                callback_data={"count": draw},
                source=source,
            )
        return handler

    def _discard_then_income(self, discard: int, amount: int) -> Handler:
        def handler(state: GameState, player_id: int, source: str) -> None:
            self.begin_discard(
                state, player_id, discard,
                reason=f"Discard {discard} card(s) to receive ${amount}",
                callback=DiscardCallback.MONEY,
                callback_data={"amount": amount},
                source=source,
            )
        return handler

    def _choice(self, phase: Phase) -> Handler:
        def handler(state: GameState, player_id: int, source: str) -> None:
            clear_sub_states(state)
            state.phase = phase
            state.choice_state = ChoiceState(player_id=player_id, source=source)
        return handler

    # -------------------------------------------------------------------------
    # Individual handlers
    # -------------------------------------------------------------------------

    def _start_player_draw(self, state: GameState, player_id: int, source: str) -> None:
        draw_into_hand(state, player_id, 1)
        state.start_player = player_id
        state.push_log(f"P{player_id + 1}: becomes start player and draws 1 card")

    def _hire_worker(self, state: GameState, player_id: int, source: str) -> None:
        player = state.player(player_id)
        player.workers += 1
        state.push_log(f"P{player_id + 1}: hired a worker ({player.workers} total)")

    def _hire_immediate(self, state: GameState, player_id: int, source: str) -> None:
        player = state.player(player_id)
        player.workers += 1
        player.available_workers += 1
        state.push_log(f"P{player_id + 1}: hired a worker who starts immediately")

    def _ruins(self, state: GameState, player_id: int, source: str) -> None:
        gain_consumables(state, player_id, 1)
        state.player(player_id).vp_tokens += 1
        state.push_log(f"P{player_id + 1}: gained 1 consumable and 1 VP token")

    def _orchard(self, state: GameState, player_id: int, source: str) -> None:
        count = max(0, 4 - len(state.player(player_id).hand))
        gain_consumables(state, player_id, count)
        state.push_log(f"P{player_id + 1}: gained {count} consumable(s)")

    def _chemical_plant(self, state: GameState, player_id: int, source: str) -> None:
        count = 4 if not state.player(player_id).hand else 2
        self._draw(count)(state, player_id, source)

    def _poultry_farm(self, state: GameState, player_id: int, source: str) -> None:
        count = 3 if len(state.player(player_id).hand) % 2 == 1 else 2
        self._consumables(count)(state, player_id, source)

    def _studio(self, state: GameState, player_id: int, source: str) -> None:
        draw_into_hand(state, player_id, 1)
        state.player(player_id).vp_tokens += 1
        state.push_log(f"P{player_id + 1}: drew 1 card and gained 1 VP token")

    def _game_cafe(self, state: GameState, player_id: int, source: str) -> None:
        # The placement already happened, so zero remaining workers means last action
        last_action = state.total_available_workers == 0
        amount = GAME_CAFE_INCOME
        if last_action and state.household >= GAME_CAFE_LAST_ACTION_INCOME:
            amount = GAME_CAFE_LAST_ACTION_INCOME
        self._pay_from_household(state, player_id, amount)

    def _museum(self, state: GameState, player_id: int, source: str) -> None:
        amount = MUSEUM_INCOME
        if len(state.player(player_id).hand) == 5 and state.household >= MUSEUM_FULL_HAND_INCOME:
            amount = MUSEUM_FULL_HAND_INCOME
        self._pay_from_household(state, player_id, amount)

    def _design_office(self, state: GameState, player_id: int, source: str) -> None:
        revealed = draw_cards(state, DESIGN_OFFICE_REVEAL)
        if not revealed:
            state.push_log(f"P{player_id + 1}: design office revealed nothing")
            return
        clear_sub_states(state)
        state.phase = Phase.DESIGN_OFFICE
        state.design_office_state = DesignOfficeState(
            player_id=player_id, revealed_cards=revealed, source=source,
        )

    def _dual_construction(self, state: GameState, player_id: int, source: str) -> None:
        clear_sub_states(state)
        state.phase = Phase.DUAL_CONSTRUCTION
        state.dual_construction_state = DualConstructionState(player_id=player_id, source=source)

    def _pay_from_household(self, state: GameState, player_id: int, amount: int) -> None:
        if state.household < amount:
            raise EngineError(f"Household ${state.household} cannot pay ${amount}")
        state.household -= amount
        state.player(player_id).money += amount
        state.push_log(f"P{player_id + 1}: received ${amount} from the household")

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def construct(self, state: GameState, player_id: int, card_uid: str) -> None:
        """Move a card from hand into the building area and apply its build effect."""
        player = state.player(player_id)
        for i, card in enumerate(player.hand):
            if card.uid == card_uid:
                break
        else:
            raise EngineError(f"Card {card_uid} not in hand of player {player_id}")
        card = player.hand.pop(i)
        card_def = self.catalog.lookup(card.def_id)
        player.buildings.append(BuildingSlot(card=card))
        state.push_log(f"P{player_id + 1}: built {card_def.name}")

        if card_def.on_build == BuildEffect.WAREHOUSE:
            player.max_hand_size += 4
        elif card_def.on_build == BuildEffect.COMPANY_HOUSING:
            player.max_workers += 1
        elif card_def.on_build == BuildEffect.RELIC:
            player.vp_tokens += 2

    def after_build(self, state: GameState, player_id: int, build_data: dict[str, Any]) -> None:
        """Follow-up of a completed build: draws, consumables, skyscraper refill."""
        draw_after = build_data.get("draw_after", 0)
        if draw_after:
            draw_into_hand(state, player_id, draw_after)
        consumables_after = build_data.get("consumables_after", 0)
        if consumables_after:
            gain_consumables(state, player_id, consumables_after)
        if build_data.get("mode") == BuildMode.SKYSCRAPER.value and not state.player(player_id).hand:
            draw_into_hand(state, player_id, SKYSCRAPER_EMPTY_HAND_DRAW)

    # -------------------------------------------------------------------------
    # Discard callbacks
    # -------------------------------------------------------------------------

    def resolve_callback(self, state: GameState, player_id: int, discard_state: DiscardState) -> None:
        data = discard_state.callback_data
        callback = discard_state.callback
        if callback in (DiscardCallback.SELL, DiscardCallback.MONEY):
            self._pay_from_household(state, player_id, data["amount"])
        elif callback == DiscardCallback.DRAW:
            self._draw(data["count"])(state, player_id, discard_state.source or "")
        elif callback == DiscardCallback.BUILD_COST:
            self.construct(state, player_id, data["card_uid"])
            self.after_build(state, player_id, data)
        elif callback == DiscardCallback.DUAL_BUILD_COST:
            for uid in data["card_uids"]:
                self.construct(state, player_id, uid)
        else:
            raise EngineError(f"Unhandled discard callback {callback}")

    # -------------------------------------------------------------------------
    # Glory choices
    # -------------------------------------------------------------------------

    def village_draw_consumables(self, state: GameState, player_id: int) -> None:
        self._consumables(2)(state, player_id, "")

    def village_draw_buildings(self, state: GameState, player_id: int) -> None:
        player = state.player(player_id)
        consumable_positions = [i for i, c in enumerate(player.hand) if c.is_consumable]
        if len(consumable_positions) < 2:
            raise IllegalMove("Need 2 consumables to trade for building cards")
        for i in sorted(consumable_positions[:2], reverse=True):
            discard_card(state, player.hand.pop(i))
        drawn = draw_into_hand(state, player_id, 3)
        state.push_log(f"P{player_id + 1}: traded 2 consumables for {drawn} card(s)")

    def automaton_get_robot(self, state: GameState, player_id: int) -> None:
        player = state.player(player_id)
        if player.workers >= player.max_workers:
            raise IllegalMove("Worker limit reached")
        player.workers += 1
        player.robot_workers += 1
        player.available_workers += 1
        state.push_log(f"P{player_id + 1}: gained a robot worker")
