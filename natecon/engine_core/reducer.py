"""
Reducer - Applies moves to game state.

The reducer is the single point of state mutation.
All state changes must go through Reducer.apply().

Design principles:
- Pure function: (state, move) -> new_state
- Validates before applying; a rejected move leaves the input untouched
- Returns ActionResult with success/failure
- Delegates effects to EffectResolver and phase changes to RoundFlow
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import Callable

from .action import ActionResult, AutomatonOption, Move, MoveType, VillageOption
from .catalog import CardCatalog
from .deck import discard_card
from .effect_resolver import EffectResolver, building_source, release_worker, workplace_source
from .errors import IllegalMove
from .round_flow import RoundFlow
from .rules import (
    build_cost_for,
    can_afford,
    construction_cost,
    effect_precondition,
    is_workable,
    selected_sale_value,
    sellable_building_indices,
    workplace_precondition,
    workplace_worker_req,
)
from .state import (
    BUILD_PHASES,
    CANCELLABLE_PHASES,
    BuildMode,
    DiscardCallback,
    GameState,
    Phase,
)

logger = logging.getLogger(__name__)


SUB_PHASE_MOVES = {
    Phase.DISCARD: {MoveType.TOGGLE_DISCARD, MoveType.CONFIRM_DISCARD},
    Phase.DESIGN_OFFICE: {MoveType.SELECT_DESIGN_OFFICE_CARD},
    Phase.DUAL_CONSTRUCTION: {MoveType.TOGGLE_DUAL_CARD, MoveType.CONFIRM_DUAL_CONSTRUCTION},
    Phase.CHOICE_VILLAGE: {MoveType.SELECT_VILLAGE_OPTION},
    Phase.CHOICE_AUTOMATON: {MoveType.SELECT_AUTOMATON_OPTION},
}

PHASE_MOVES: dict[Phase, set[MoveType]] = {
    Phase.WORK: {MoveType.PLACE_WORKER, MoveType.PLACE_WORKER_ON_BUILDING},
    Phase.PAYDAY: {MoveType.TOGGLE_PAYDAY_SELL, MoveType.CONFIRM_PAYDAY_SELL, MoveType.CONFIRM_PAYDAY},
    Phase.CLEANUP: {MoveType.TOGGLE_DISCARD, MoveType.CONFIRM_DISCARD},
    Phase.GAME_END: set(),
}
for _phase in BUILD_PHASES:
    PHASE_MOVES[_phase] = {MoveType.SELECT_BUILD_CARD}
PHASE_MOVES.update({phase: set(moves) for phase, moves in SUB_PHASE_MOVES.items()})
for _phase in CANCELLABLE_PHASES:
    PHASE_MOVES[_phase].add(MoveType.CANCEL_ACTION)


@dataclass
class Reducer:
    """
    Reducer applies moves to game state.

    Stateless - all state is in GameState.
    The catalog provides card rules for validation.
    """
    catalog: CardCatalog
    resolver: EffectResolver = field(init=False, repr=False)
    flow: RoundFlow = field(init=False, repr=False)

    def __post_init__(self):
        self.resolver = EffectResolver(self.catalog)
        self.flow = RoundFlow(self.catalog)

    def apply(self, state: GameState, move: Move) -> ActionResult:
        """
        Apply a move to the game state.

        Returns ActionResult with the new state or the rejection reason.
        Programming errors (unknown card ids, impossible states) are
        logged with the game context and re-raised.
        """
        error = self.validate(state, move)
        if error:
            logger.debug("Rejected %s: %s", move.describe(), error)
            return ActionResult.failure(error)

        handler = self._get_handler(move.move_type)
        working = state.clone()
        log_start = len(working.log)
        try:
            handler(working, move)
        except IllegalMove as e:
            logger.debug("Rejected %s: %s", move.describe(), e.reason)
            return ActionResult.failure(e.reason)
        except Exception:
            logger.exception(
                "Move %s failed (phase=%s round=%d current_player=%d moves=%d)",
                move.describe(), state.phase.value, state.round, state.current_player, state.move_count,
            )
            raise

        working.move_count += 1
        if working.phase != state.phase:
            logger.debug("Phase %s -> %s after %s", state.phase.value, working.phase.value, move.describe())
        changes = [entry.text for entry in working.log[log_start:]]
        return ActionResult.success_with_state(working, changes)

    def validate(self, state: GameState, move: Move) -> str | None:
        """
        Check that a move is legal in the current state.

        Returns an error message if invalid, None if valid. Never mutates.
        """
        if state.phase == Phase.GAME_END:
            return "Game is over - no moves allowed"
        if move.player_id not in state.players:
            return f"Unknown player {move.player_id}"
        if move.move_type not in PHASE_MOVES[state.phase]:
            return f"{move.move_type.value} is not allowed in phase {state.phase.value}"

        acting = state.acting_player()
        if acting is not None and move.player_id != acting:
            return f"Not P{move.player_id + 1}'s turn"

        check = self._get_check(move.move_type)
        return check(state, move)

    def _get_handler(self, move_type: MoveType) -> Callable[[GameState, Move], None]:
        handlers = {
            MoveType.PLACE_WORKER: self._handle_place_worker,
            MoveType.PLACE_WORKER_ON_BUILDING: self._handle_place_worker_on_building,
            MoveType.SELECT_BUILD_CARD: self._handle_select_build_card,
            MoveType.TOGGLE_DISCARD: self._handle_toggle_discard,
            MoveType.CONFIRM_DISCARD: self._handle_confirm_discard,
            MoveType.CANCEL_ACTION: self._handle_cancel_action,
            MoveType.SELECT_DESIGN_OFFICE_CARD: self._handle_select_design_office_card,
            MoveType.TOGGLE_DUAL_CARD: self._handle_toggle_dual_card,
            MoveType.CONFIRM_DUAL_CONSTRUCTION: self._handle_confirm_dual_construction,
            MoveType.SELECT_VILLAGE_OPTION: self._handle_select_village_option,
            MoveType.SELECT_AUTOMATON_OPTION: self._handle_select_automaton_option,
            MoveType.TOGGLE_PAYDAY_SELL: self._handle_toggle_payday_sell,
            MoveType.CONFIRM_PAYDAY_SELL: self._handle_confirm_payday_sell,
            MoveType.CONFIRM_PAYDAY: self._handle_confirm_payday,
        }
        return handlers[move_type]

    def _get_check(self, move_type: MoveType) -> Callable[[GameState, Move], str | None]:
        checks = {
            MoveType.PLACE_WORKER: self._check_place_worker,
            MoveType.PLACE_WORKER_ON_BUILDING: self._check_place_worker_on_building,
            MoveType.SELECT_BUILD_CARD: self._check_select_build_card,
            MoveType.TOGGLE_DISCARD: self._check_toggle_discard,
            MoveType.CONFIRM_DISCARD: self._check_confirm_discard,
            MoveType.CANCEL_ACTION: self._check_cancel_action,
            MoveType.SELECT_DESIGN_OFFICE_CARD: self._check_select_design_office_card,
            MoveType.TOGGLE_DUAL_CARD: self._check_toggle_dual_card,
            MoveType.CONFIRM_DUAL_CONSTRUCTION: self._check_confirm_dual_construction,
            MoveType.SELECT_VILLAGE_OPTION: self._check_select_village_option,
            MoveType.SELECT_AUTOMATON_OPTION: self._check_select_automaton_option,
            MoveType.TOGGLE_PAYDAY_SELL: self._check_toggle_payday_sell,
            MoveType.CONFIRM_PAYDAY_SELL: self._check_confirm_payday_sell,
            MoveType.CONFIRM_PAYDAY: self._check_confirm_payday,
        }
        return checks[move_type]

    def _continue_turn(self, state: GameState) -> None:
        """After an effect resolves: hand the turn on unless a sub-phase opened."""
        if state.phase == Phase.WORK:
            self.flow.advance_turn_or_phase(state)

    # =========================================================================
    # Work phase
    # =========================================================================

    def _check_place_worker(self, state: GameState, move: Move) -> str | None:
        wp = state.find_workplace(move.payload.workplace_id or "")
        if wp is None:
            return f"Unknown workplace {move.payload.workplace_id}"
        if not wp.multiple_allowed and wp.is_occupied:
            return f"{wp.name} is already occupied"
        player = state.player(move.player_id)
        required = workplace_worker_req(self.catalog, wp)
        if player.available_workers < required:
            return f"Need {required} available worker(s)"
        return workplace_precondition(self.catalog, state, player, wp)

    def _handle_place_worker(self, state: GameState, move: Move) -> None:
        pid = move.player_id
        player = state.player(pid)
        wp = state.find_workplace(move.payload.workplace_id)
        wp.workers.append(pid)
        player.available_workers -= workplace_worker_req(self.catalog, wp)
        state.push_log(f"P{pid + 1}: placed a worker on {wp.name}")

        source = workplace_source(wp.id)
        if wp.is_sell:
            self.resolver.resolve_sell(state, pid, wp.sell_count, wp.sell_amount, source)
        elif wp.from_building_def_id:
            card_def = self.catalog.lookup(wp.from_building_def_id)
            self.resolver.resolve(state, pid, card_def.effect, source)
        else:
            self.resolver.resolve(state, pid, wp.effect, source)
        self._continue_turn(state)

    def _check_place_worker_on_building(self, state: GameState, move: Move) -> str | None:
        player = state.player(move.player_id)
        slot = player.find_building(move.payload.card_uid or "")
        if slot is None:
            return f"No building {move.payload.card_uid} in your building area"
        if slot.worker_placed:
            return "A worker is already on this building this round"
        card_def = self.catalog.lookup(slot.card.def_id)
        if not is_workable(card_def):
            return f"{card_def.name} cannot take workers"
        if player.available_workers < card_def.worker_req:
            return f"Need {card_def.worker_req} available worker(s)"
        return effect_precondition(self.catalog, state, player, card_def.effect)

    def _handle_place_worker_on_building(self, state: GameState, move: Move) -> None:
        pid = move.player_id
        player = state.player(pid)
        slot = player.find_building(move.payload.card_uid)
        card_def = self.catalog.lookup(slot.card.def_id)
        slot.worker_placed = True
        player.available_workers -= card_def.worker_req
        state.push_log(f"P{pid + 1}: placed a worker on own {card_def.name}")
        self.resolver.resolve(state, pid, card_def.effect, building_source(slot.card.uid))
        self._continue_turn(state)

    # =========================================================================
    # Build
    # =========================================================================

    def _check_select_build_card(self, state: GameState, move: Move) -> str | None:
        bs = state.build_state
        player = state.player(move.player_id)
        index = move.payload.index
        if index is None or not 0 <= index < len(player.hand):
            return f"Invalid card index {index}"
        card = player.hand[index]
        if card.is_consumable:
            return "Consumables cannot be built"
        if bs.mode == BuildMode.FARM_ONLY and not self.catalog.lookup(card.def_id).is_farm:
            return "Only a farm building can be built here"
        if not can_afford(self.catalog, player, card, bs.cost_reduction, bs.mode):
            return "Not enough cards to pay the construction cost"
        return None

    def _handle_select_build_card(self, state: GameState, move: Move) -> None:
        pid = move.player_id
        bs = state.build_state
        player = state.player(pid)
        card = player.hand[move.payload.index]
        cost = build_cost_for(self.catalog, player, card, bs.cost_reduction, bs.mode)
        build_data = {
            "card_uid": card.uid,
            "draw_after": bs.draw_after_build,
            "consumables_after": bs.consumables_after_build,
            "mode": bs.mode.value,
        }
        if cost == 0:
            self.resolver.construct(state, pid, card.uid)
            self.resolver.after_build(state, pid, build_data)
            self.flow.end_action(state)
            return

        card_name = self.catalog.lookup(card.def_id).name
        modernism = bs.mode == BuildMode.MODERNISM
        self.resolver.begin_discard(
            state, pid, cost,
            reason=f"Pay {cost} to build {card_name}" + (" (consumables count double)" if modernism else ""),
            callback=DiscardCallback.BUILD_COST,
            callback_data=build_data,
            source=bs.source,
            exclude_card_uids=[card.uid],
            consumable_weight=2 if modernism else 1,
        )

    # =========================================================================
    # Discard and cleanup selection
    # =========================================================================

    def _check_toggle_discard(self, state: GameState, move: Move) -> str | None:
        player = state.player(move.player_id)
        index = move.payload.index
        if index is None or not 0 <= index < len(player.hand):
            return f"Invalid card index {index}"
        if state.phase == Phase.CLEANUP:
            cps = state.cleanup_state.player_states.get(move.player_id)
            if cps is None or cps.confirmed:
                return "Nothing to discard"
            return None
        if player.hand[index].uid in state.discard_state.exclude_card_uids:
            return "That card is being built and cannot pay for itself"
        return None

    def _handle_toggle_discard(self, state: GameState, move: Move) -> None:
        if state.phase == Phase.CLEANUP:
            selected = state.cleanup_state.player_states[move.player_id].selected_indices
        else:
            selected = state.discard_state.selected_indices
        index = move.payload.index
        if index in selected:
            selected.remove(index)
        else:
            selected.append(index)

    def _check_confirm_discard(self, state: GameState, move: Move) -> str | None:
        player = state.player(move.player_id)
        if state.phase == Phase.CLEANUP:
            cps = state.cleanup_state.player_states.get(move.player_id)
            if cps is None or cps.confirmed:
                return "Nothing to discard"
            if len(cps.selected_indices) != cps.excess_count:
                return f"Select exactly {cps.excess_count} card(s)"
            return None

        ds = state.discard_state
        if ds.consumable_weight == 1:
            if len(ds.selected_indices) != ds.count:
                return f"Select exactly {ds.count} card(s)"
            return None
        paid = sum(
            ds.consumable_weight if player.hand[i].is_consumable else 1
            for i in ds.selected_indices
        )
        if paid < ds.count:
            return f"Selected cards pay {paid} of {ds.count}"
        return None

    def _remove_from_hand(self, state: GameState, player_id: int, indices: list[int]) -> int:
        player = state.player(player_id)
        for i in sorted(indices, reverse=True):
            discard_card(state, player.hand.pop(i))
        return len(indices)

    def _handle_confirm_discard(self, state: GameState, move: Move) -> None:
        pid = move.player_id
        if state.phase == Phase.CLEANUP:
            cps = state.cleanup_state.player_states[pid]
            removed = self._remove_from_hand(state, pid, cps.selected_indices)
            cps.selected_indices = []
            cps.confirmed = True
            state.push_log(f"P{pid + 1}: discarded {removed} card(s) down to the hand limit")
            if state.cleanup_state.all_confirmed:
                self.flow.finish_cleanup(state)
            return

        ds = state.discard_state
        removed = self._remove_from_hand(state, pid, ds.selected_indices)
        state.push_log(f"P{pid + 1}: discarded {removed} card(s) ({ds.reason})")
        self.resolver.resolve_callback(state, pid, ds)
        self.flow.end_action(state)

    # =========================================================================
    # Cancel
    # =========================================================================

    def _cancel_source(self, state: GameState) -> str | None:
        for sub in (
            state.discard_state,
            state.build_state,
            state.design_office_state,
            state.dual_construction_state,
            state.choice_state,
        ):
            if sub is not None:
                return sub.source
        return None

    def _check_cancel_action(self, state: GameState, move: Move) -> str | None:
        if self._cancel_source(state) is None:
            return "Nothing to cancel"
        return None

    def _handle_cancel_action(self, state: GameState, move: Move) -> None:
        pid = move.player_id
        source = self._cancel_source(state)
        if state.design_office_state is not None:
            # Revealed cards came off the end of the deck
            state.deck.extend(reversed(state.design_office_state.revealed_cards))
        returned = release_worker(self.catalog, state, pid, source)
        self.flow.cancel_to_work(state, pid)
        state.push_log(f"P{pid + 1}: cancelled the action ({returned} worker(s) returned)")

    # =========================================================================
    # Design office and dual construction
    # =========================================================================

    def _check_select_design_office_card(self, state: GameState, move: Move) -> str | None:
        index = move.payload.index
        revealed = state.design_office_state.revealed_cards
        if index is None or not 0 <= index < len(revealed):
            return f"Invalid card index {index}"
        return None

    def _handle_select_design_office_card(self, state: GameState, move: Move) -> None:
        pid = move.player_id
        revealed = state.design_office_state.revealed_cards
        chosen = revealed.pop(move.payload.index)
        state.player(pid).hand.append(chosen)
        for card in revealed:
            discard_card(state, card)
        state.push_log(f"P{pid + 1}: kept {self.catalog.lookup(chosen.def_id).name} from the design office")
        self.flow.end_action(state)

    def _dual_cost(self, state: GameState, player_id: int, index: int) -> int:
        player = state.player(player_id)
        return construction_cost(self.catalog.lookup(player.hand[index].def_id), player)

    def _check_toggle_dual_card(self, state: GameState, move: Move) -> str | None:
        player = state.player(move.player_id)
        index = move.payload.index
        if index is None or not 0 <= index < len(player.hand):
            return f"Invalid card index {index}"
        if player.hand[index].is_consumable:
            return "Consumables cannot be built"
        selected = state.dual_construction_state.selected_card_indices
        if index in selected:
            return None
        if len(selected) >= 2:
            return "Two cards are already selected"
        if selected and self._dual_cost(state, move.player_id, selected[0]) != self._dual_cost(
            state, move.player_id, index
        ):
            return "Both cards must have the same cost"
        return None

    def _handle_toggle_dual_card(self, state: GameState, move: Move) -> None:
        selected = state.dual_construction_state.selected_card_indices
        index = move.payload.index
        if index in selected:
            selected.remove(index)
        else:
            selected.append(index)

    def _check_confirm_dual_construction(self, state: GameState, move: Move) -> str | None:
        player = state.player(move.player_id)
        selected = state.dual_construction_state.selected_card_indices
        if len(selected) != 2:
            return "Select exactly 2 cards"
        costs = {self._dual_cost(state, move.player_id, i) for i in selected}
        if len(costs) != 1:
            return "Both cards must have the same cost"
        cost = costs.pop()
        if len(player.hand) - 2 < cost:
            return "Not enough cards to pay the construction cost"
        return None

    def _handle_confirm_dual_construction(self, state: GameState, move: Move) -> None:
        pid = move.player_id
        player = state.player(pid)
        dcs = state.dual_construction_state
        uids = [player.hand[i].uid for i in dcs.selected_card_indices]
        cost = self._dual_cost(state, pid, dcs.selected_card_indices[0])
        if cost == 0:
            for uid in uids:
                self.resolver.construct(state, pid, uid)
            self.flow.end_action(state)
            return
        self.resolver.begin_discard(
            state, pid, cost,
            reason=f"Pay {cost} to build two buildings",
            callback=DiscardCallback.DUAL_BUILD_COST,
            callback_data={"card_uids": uids},
            source=dcs.source,
            exclude_card_uids=uids,
        )

    # =========================================================================
    # Glory choices
    # =========================================================================

    def _check_select_village_option(self, state: GameState, move: Move) -> str | None:
        option = move.payload.option
        if option == VillageOption.DRAW_CONSUMABLE.value:
            return None
        if option == VillageOption.DRAW_BUILDING.value:
            if state.player(move.player_id).consumable_count < 2:
                return "Need 2 consumables to trade for building cards"
            return None
        return f"Unknown village option {option!r}"

    def _handle_select_village_option(self, state: GameState, move: Move) -> None:
        if move.payload.option == VillageOption.DRAW_BUILDING.value:
            self.resolver.village_draw_buildings(state, move.player_id)
        else:
            self.resolver.village_draw_consumables(state, move.player_id)
        self.flow.end_action(state)

    def _check_select_automaton_option(self, state: GameState, move: Move) -> str | None:
        option = move.payload.option
        if option == AutomatonOption.SKIP.value:
            return None
        if option == AutomatonOption.GET_ROBOT.value:
            player = state.player(move.player_id)
            if player.workers >= player.max_workers:
                return "Worker limit reached"
            return None
        return f"Unknown automaton option {option!r}"

    def _handle_select_automaton_option(self, state: GameState, move: Move) -> None:
        if move.payload.option == AutomatonOption.GET_ROBOT.value:
            self.resolver.automaton_get_robot(state, move.player_id)
        else:
            state.push_log(f"P{move.player_id + 1}: declined the robot worker")
        self.flow.end_action(state)

    # =========================================================================
    # Payday
    # =========================================================================

    def _open_payday_slot(self, state: GameState, player_id: int):
        pps = state.payday_state.player_states.get(player_id)
        if pps is None or pps.confirmed:
            return None
        return pps

    def _check_toggle_payday_sell(self, state: GameState, move: Move) -> str | None:
        if self._open_payday_slot(state, move.player_id) is None:
            return "Payday already confirmed"
        player = state.player(move.player_id)
        index = move.payload.index
        if index is None or not 0 <= index < len(player.buildings):
            return f"Invalid building index {index}"
        if self.catalog.lookup(player.buildings[index].card.def_id).unsellable:
            return "That building cannot be sold"
        return None

    def _handle_toggle_payday_sell(self, state: GameState, move: Move) -> None:
        selected = state.payday_state.player_states[move.player_id].selected_building_indices
        index = move.payload.index
        if index in selected:
            selected.remove(index)
        else:
            selected.append(index)

    def _check_confirm_payday_sell(self, state: GameState, move: Move) -> str | None:
        pps = self._open_payday_slot(state, move.player_id)
        if pps is None:
            return "Payday already confirmed"
        player = state.player(move.player_id)
        selected = pps.selected_building_indices
        if not selected:
            if player.money < pps.total_wage:
                return "Select buildings to sell"
            return None
        values = selected_sale_value(self.catalog, player, selected)
        funds = player.money + sum(values)
        if funds - min(values) >= pps.total_wage:
            return "Overselling: the wage is covered without every selected building"
        if funds < pps.total_wage:
            sellable = set(sellable_building_indices(self.catalog, player))
            if set(selected) != sellable:
                return "Every sellable building must be sold before taking debt"
        return None

    def _handle_confirm_payday_sell(self, state: GameState, move: Move) -> None:
        pid = move.player_id
        pps = state.payday_state.player_states[pid]
        self.flow.sell_buildings(state, pid, list(pps.selected_building_indices))
        self.flow.pay_wage(state, pid, pps.total_wage)
        self.flow.confirm_payday_player(state, pid)

    def _check_confirm_payday(self, state: GameState, move: Move) -> str | None:
        if self._open_payday_slot(state, move.player_id) is None:
            return "Payday already confirmed"
        return None

    def _handle_confirm_payday(self, state: GameState, move: Move) -> None:
        pid = move.player_id
        pps = state.payday_state.player_states[pid]
        self.flow.pay_wage(state, pid, pps.total_wage)
        self.flow.confirm_payday_player(state, pid)


def apply_move(catalog: CardCatalog, state: GameState, move: Move) -> ActionResult:
    """
    Convenience function to apply a move.

    Creates a Reducer and applies the move.
    """
    reducer = Reducer(catalog=catalog)
    return reducer.apply(state, move)
