"""
Phase Strategies - One CPU decision function per game phase.

Each strategy receives a BotContext and returns a single Move (or None
when the seat has nothing to decide). Multi-step selections such as
discards are reconciled one toggle at a time against an ideal
selection, so a strategy can be called again after every accepted move.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import random
from typing import Callable

from ..engine_core.action import AutomatonOption, Move, MoveType, VillageOption
from ..engine_core.action_generator import ActionGenerator
from ..engine_core.catalog import CardCatalog
from ..engine_core.rules import FINAL_ROUND, dual_cost_groups, payment_capacity
from ..engine_core.state import GameState, Phase, PlayerState
from .evaluator import HeuristicEvaluator


class Difficulty(Enum):
    """RANDOM picks uniformly among candidates; HEURISTIC picks the best score."""
    RANDOM = "random"
    HEURISTIC = "heuristic"


@dataclass
class BotContext:
    """Everything a strategy needs to decide for one seat."""
    catalog: CardCatalog
    evaluator: HeuristicEvaluator
    generator: ActionGenerator
    state: GameState
    player_id: int
    difficulty: Difficulty = Difficulty.HEURISTIC
    rng: random.Random = field(default_factory=random.Random)

    @property
    def player(self) -> PlayerState:
        return self.state.player(self.player_id)

    @property
    def heuristic(self) -> bool:
        return self.difficulty == Difficulty.HEURISTIC

    def legal(self, *move_types: MoveType) -> list[Move]:
        moves = self.generator.generate(self.state, self.player_id)
        if move_types:
            moves = [m for m in moves if m.move_type in move_types]
        return moves


Strategy = Callable[[BotContext], "Move | None"]


def _pick(ctx: BotContext, scored: list[tuple[Move, float]]) -> Move | None:
    """Uniform choice for RANDOM, highest score for HEURISTIC (ties keep input order)."""
    if not scored:
        return None
    if not ctx.heuristic:
        return ctx.rng.choice(scored)[0]
    return max(scored, key=lambda pair: pair[1])[0]


# =============================================================================
# Work phase
# =============================================================================

def decide_work(ctx: BotContext) -> Move | None:
    if ctx.player.available_workers <= 0:
        return None
    candidates = ctx.legal(MoveType.PLACE_WORKER, MoveType.PLACE_WORKER_ON_BUILDING)
    if not ctx.heuristic:
        return _pick(ctx, [(m, 0.0) for m in candidates])

    scored = []
    for move in candidates:
        if move.move_type == MoveType.PLACE_WORKER:
            wp = ctx.state.find_workplace(move.payload.workplace_id)
            priority = ctx.evaluator.evaluate_public_workplace(ctx.state, ctx.player_id, wp)
        else:
            slot = ctx.player.find_building(move.payload.card_uid)
            priority = ctx.evaluator.evaluate_building_workplace(ctx.state, ctx.player_id, slot.card.def_id)
        scored.append((move, priority))
    return _pick(ctx, scored)


# =============================================================================
# Build family (build, modernism, teleporter, skyscraper)
# =============================================================================

def decide_build(ctx: BotContext) -> Move | None:
    if ctx.state.build_state is None:
        return None
    candidates = ctx.legal(MoveType.SELECT_BUILD_CARD)
    if not candidates:
        return Move.cancel_action(ctx.player_id)

    scored = []
    for move in candidates:
        card_def = ctx.catalog.lookup(ctx.player.hand[move.payload.index].def_id)
        scored.append((move, ctx.evaluator.evaluate_card_for_building(ctx.state, ctx.player_id, card_def)))
    return _pick(ctx, scored)


# =============================================================================
# Discard
# =============================================================================

def decide_discard(ctx: BotContext) -> Move | None:
    ds = ctx.state.discard_state
    if ds is None:
        return None
    pid = ctx.player_id
    hand = ctx.player.hand
    weight = ds.consumable_weight

    if payment_capacity(ctx.player, ds.exclude_card_uids, weight) < ds.count:
        return Move.cancel_action(pid)

    selectable = [i for i, c in enumerate(hand) if c.uid not in ds.exclude_card_uids]
    ranked = sorted(selectable, key=lambda i: ctx.evaluator.retain_value(ctx.state, pid, hand[i]))

    ideal: list[int] = []
    if weight == 1:
        ideal = ranked[:ds.count]
    else:
        paid = 0
        for i in ranked:
            if paid >= ds.count:
                break
            ideal.append(i)
            paid += weight if hand[i].is_consumable else 1

    for i in ds.selected_indices:
        if i not in ideal:
            return Move.toggle_discard(pid, i)
    for i in ideal:
        if i not in ds.selected_indices:
            return Move.toggle_discard(pid, i)
    return Move.confirm_discard(pid)


# =============================================================================
# Payday and cleanup (simultaneous)
# =============================================================================

def decide_payday(ctx: BotContext) -> Move | None:
    ps = ctx.state.payday_state
    pps = ps.player_states.get(ctx.player_id) if ps else None
    if pps is None or pps.confirmed:
        return None

    pid = ctx.player_id
    player = ctx.player
    selected = pps.selected_building_indices
    wage = pps.total_wage

    if player.money >= wage:
        if not selected:
            return Move.confirm_payday(pid)
        return Move.toggle_payday_sell(pid, selected[0])

    def vp_of(index: int) -> int:
        return ctx.catalog.lookup(player.buildings[index].card.def_id).vp

    vps = [vp_of(i) for i in selected]
    funds = player.money + sum(vps)
    if funds >= wage:
        if vps and funds - min(vps) >= wage:
            lowest = min(vps)
            return Move.toggle_payday_sell(pid, next(i for i in selected if vp_of(i) == lowest))
        return Move.confirm_payday_sell(pid) if selected else Move.confirm_payday(pid)

    candidates = [
        (i, slot) for i, slot in enumerate(player.buildings)
        if i not in selected and not ctx.catalog.lookup(slot.card.def_id).unsellable
    ]
    if candidates:
        cheapest = min(candidates, key=lambda pair: ctx.evaluator.sell_cost(ctx.state, pair[1]))
        # Late game: debt can cost less than the bonuses a sale would break
        if not selected and FINAL_ROUND - ctx.state.round <= 1:
            if ctx.evaluator.keep_over_sale(player, cheapest[0], wage) > 0:
                return Move.confirm_payday(pid)
        return Move.toggle_payday_sell(pid, cheapest[0])
    # Nothing left to sell: take the shortfall as debt
    return Move.confirm_payday_sell(pid) if selected else Move.confirm_payday(pid)


def decide_cleanup(ctx: BotContext) -> Move | None:
    cs = ctx.state.cleanup_state
    cps = cs.player_states.get(ctx.player_id) if cs else None
    if cps is None or cps.confirmed:
        return None

    pid = ctx.player_id
    selected = cps.selected_indices
    if len(selected) > cps.excess_count:
        return Move.toggle_discard(pid, selected[0])
    if len(selected) < cps.excess_count:
        unselected = [i for i in range(len(ctx.player.hand)) if i not in selected]
        lowest = min(unselected, key=lambda i: ctx.evaluator.retain_value(ctx.state, pid, ctx.player.hand[i]))
        return Move.toggle_discard(pid, lowest)
    return Move.confirm_discard(pid)


# =============================================================================
# Card-specific sub-phases
# =============================================================================

def decide_design_office(ctx: BotContext) -> Move | None:
    dos = ctx.state.design_office_state
    if dos is None or not dos.revealed_cards:
        return None
    pid = ctx.player_id
    if not ctx.heuristic:
        return Move.select_design_office_card(pid, ctx.rng.randrange(len(dos.revealed_cards)))

    scored = []
    for i, card in enumerate(dos.revealed_cards):
        if card.is_consumable:
            score = 15 if ctx.player.owns("agri_coop") else 3
        else:
            score = ctx.evaluator.evaluate_card_for_building(ctx.state, pid, ctx.catalog.lookup(card.def_id))
        scored.append((Move.select_design_office_card(pid, i), score))
    return _pick(ctx, scored)


def decide_dual_construction(ctx: BotContext) -> Move | None:
    dcs = ctx.state.dual_construction_state
    if dcs is None:
        return None
    pid = ctx.player_id
    player = ctx.player

    pairs: list[tuple[tuple[int, int], float]] = []
    for cost, indices in dual_cost_groups(ctx.catalog, player).items():
        if len(indices) < 2 or len(player.hand) - 2 < cost:
            continue
        for a in range(len(indices)):
            for b in range(a + 1, len(indices)):
                i, j = indices[a], indices[b]
                if ctx.heuristic:
                    def_i = ctx.catalog.lookup(player.hand[i].def_id)
                    def_j = ctx.catalog.lookup(player.hand[j].def_id)
                    score = (
                        ctx.evaluator.evaluate_card_for_building(ctx.state, pid, def_i)
                        + ctx.evaluator.evaluate_card_for_building(ctx.state, pid, def_j)
                    )
                    if def_i.id == def_j.id:
                        score -= 10
                else:
                    score = ctx.rng.random() * 100
                pairs.append(((i, j), score))

    if not pairs:
        return Move.cancel_action(pid)
    best = max(pairs, key=lambda pair: pair[1])[0]

    for i in dcs.selected_card_indices:
        if i not in best:
            return Move.toggle_dual_card(pid, i)
    for i in best:
        if i not in dcs.selected_card_indices:
            return Move.toggle_dual_card(pid, i)
    return Move.confirm_dual_construction(pid)


def decide_village(ctx: BotContext) -> Move | None:
    player = ctx.player
    consumables = player.consumable_count
    if consumables >= 2 and len(player.hand) - consumables <= 1:
        return Move.select_village_option(ctx.player_id, VillageOption.DRAW_BUILDING)
    return Move.select_village_option(ctx.player_id, VillageOption.DRAW_CONSUMABLE)


def decide_automaton(ctx: BotContext) -> Move | None:
    player = ctx.player
    if player.workers < player.max_workers:
        return Move.select_automaton_option(ctx.player_id, AutomatonOption.GET_ROBOT)
    return Move.select_automaton_option(ctx.player_id, AutomatonOption.SKIP)


PHASE_STRATEGIES: dict[Phase, Strategy] = {
    Phase.WORK: decide_work,
    Phase.BUILD: decide_build,
    Phase.DISCARD: decide_discard,
    Phase.PAYDAY: decide_payday,
    Phase.CLEANUP: decide_cleanup,
    Phase.DESIGN_OFFICE: decide_design_office,
    Phase.DUAL_CONSTRUCTION: decide_dual_construction,
    Phase.CHOICE_VILLAGE: decide_village,
    Phase.CHOICE_AUTOMATON: decide_automaton,
    Phase.CHOICE_MODERNISM: decide_build,
    Phase.CHOICE_TELEPORTER: decide_build,
    Phase.CHOICE_SKYSCRAPER: decide_build,
}
