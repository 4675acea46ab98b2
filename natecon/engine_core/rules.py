"""
Rules - Constants and predicates shared by the reducer and the CPU engine.

Everything here reads state and never mutates it, so the bots can ask
the same questions the reducer asks before accepting a move.
"""

from __future__ import annotations

from .catalog import CardCatalog, CardDef, CostRuleKind, EffectTag
from .state import BuildMode, Card, GameState, PlayerState, Workplace


FINAL_ROUND = 9
STARTING_HAND = 3
STARTING_WORKERS = 2
STARTING_MONEY = 5
MAX_HAND_SIZE = 5
MAX_WORKERS = 5
DESIGN_OFFICE_REVEAL = 5
DEBT_PENALTY = 3
VP_TOKEN_SET_SIZE = 3
VP_TOKEN_SET_VALUE = 10

# Wage per worker, by the last round of each band
WAGE_TABLE: tuple[tuple[int, int], ...] = ((2, 2), (5, 3), (7, 4))
LATE_WAGE = 5

RESTAURANT_INCOME = 15
THEATER_INCOME = 20
COFFEE_SHOP_INCOME = 5
GAME_CAFE_INCOME = 5
GAME_CAFE_LAST_ACTION_INCOME = 10
MUSEUM_INCOME = 7
MUSEUM_FULL_HAND_INCOME = 14


def wage_per_worker(round_number: int) -> int:
    for last_round, wage in WAGE_TABLE:
        if round_number <= last_round:
            return wage
    return LATE_WAGE


def total_wage(round_number: int, player: PlayerState) -> int:
    """Wage owed at payday. Robot workers are not paid."""
    return wage_per_worker(round_number) * player.human_workers


def construction_cost(card_def: CardDef, player: PlayerState, reduction: int = 0) -> int:
    """Net cost after the card's own cost rule and any effect reduction."""
    base = card_def.cost
    rule = card_def.cost_rule
    if rule is not None and rule.kind == CostRuleKind.VP_TOKEN_THRESHOLD:
        if player.vp_tokens >= rule.threshold:
            base -= rule.delta
    return max(0, base - reduction)


def payment_capacity(player: PlayerState, exclude_uids: list[str], consumable_weight: int = 1) -> int:
    """How much cost the hand can pay, not counting the excluded cards."""
    total = 0
    for card in player.hand:
        if card.uid in exclude_uids:
            continue
        total += consumable_weight if card.is_consumable else 1
    return total


def can_afford(
    catalog: CardCatalog,
    player: PlayerState,
    card: Card,
    reduction: int = 0,
    mode: BuildMode = BuildMode.NORMAL,
) -> bool:
    """Whether `card` can be constructed from this hand under `mode`."""
    if card.is_consumable:
        return False
    card_def = catalog.lookup(card.def_id)
    if mode == BuildMode.FARM_ONLY:
        return card_def.is_farm
    if mode == BuildMode.FREE:
        return True
    cost = construction_cost(card_def, player, reduction)
    if mode == BuildMode.MODERNISM:
        return payment_capacity(player, [card.uid], consumable_weight=2) >= cost
    return len(player.hand) - 1 >= cost


def build_cost_for(
    catalog: CardCatalog,
    player: PlayerState,
    card: Card,
    reduction: int = 0,
    mode: BuildMode = BuildMode.NORMAL,
) -> int:
    if mode in (BuildMode.FARM_ONLY, BuildMode.FREE):
        return 0
    return construction_cost(catalog.lookup(card.def_id), player, reduction)


def buildable_indices(
    catalog: CardCatalog,
    player: PlayerState,
    reduction: int = 0,
    mode: BuildMode = BuildMode.NORMAL,
) -> list[int]:
    return [
        i for i, card in enumerate(player.hand)
        if can_afford(catalog, player, card, reduction, mode)
    ]


def can_build_anything(
    catalog: CardCatalog,
    player: PlayerState,
    reduction: int = 0,
    mode: BuildMode = BuildMode.NORMAL,
) -> bool:
    return any(can_afford(catalog, player, card, reduction, mode) for card in player.hand)


def dual_cost_groups(catalog: CardCatalog, player: PlayerState) -> dict[int, list[int]]:
    """Hand indices of building cards grouped by construction cost."""
    groups: dict[int, list[int]] = {}
    for i, card in player.building_cards():
        cost = construction_cost(catalog.lookup(card.def_id), player)
        groups.setdefault(cost, []).append(i)
    return groups


def can_dual_construct(catalog: CardCatalog, player: PlayerState) -> bool:
    for cost, indices in dual_cost_groups(catalog, player).items():
        if len(indices) >= 2 and len(player.hand) - 2 >= cost:
            return True
    return False


def is_workable(card_def: CardDef) -> bool:
    """Buildings without a work effect (passive and scoring cards) cannot take workers."""
    return card_def.effect is not None


def effect_precondition(
    catalog: CardCatalog,
    state: GameState,
    player: PlayerState,
    effect: EffectTag,
) -> str | None:
    """
    Activation precondition for a building work effect.

    Returns a reason string when the effect cannot be activated, None otherwise.
    """
    hand = len(player.hand)
    if effect in (EffectTag.FACTORY, EffectTag.STEAM_FACTORY):
        return None if hand >= 2 else "Need at least 2 cards in hand"
    if effect in (EffectTag.AUTO_FACTORY, EffectTag.LOCOMOTIVE_FACTORY):
        return None if hand >= 3 else "Need at least 3 cards in hand"
    if effect == EffectTag.RESTAURANT:
        if hand < 1:
            return "Need at least 1 card in hand"
        if state.household < RESTAURANT_INCOME:
            return f"Household needs ${RESTAURANT_INCOME}"
        return None
    if effect == EffectTag.THEATER:
        if hand < 2:
            return "Need at least 2 cards in hand"
        if state.household < THEATER_INCOME:
            return f"Household needs ${THEATER_INCOME}"
        return None
    if effect == EffectTag.COFFEE_SHOP:
        return None if state.household >= COFFEE_SHOP_INCOME else f"Household needs ${COFFEE_SHOP_INCOME}"
    if effect == EffectTag.GAME_CAFE:
        return None if state.household >= GAME_CAFE_INCOME else f"Household needs ${GAME_CAFE_INCOME}"
    if effect == EffectTag.MUSEUM:
        return None if state.household >= MUSEUM_INCOME else f"Household needs ${MUSEUM_INCOME}"
    if effect == EffectTag.CONSTRUCTION_CO:
        return None if can_build_anything(catalog, player, 1) else "No affordable building"
    if effect in (EffectTag.GENERAL_CONTRACTOR, EffectTag.COLONIST, EffectTag.SKYSCRAPER):
        return None if can_build_anything(catalog, player, 0) else "No affordable building"
    if effect == EffectTag.PIONEER:
        return None if can_build_anything(catalog, player, mode=BuildMode.FARM_ONLY) else "No farm card in hand"
    if effect == EffectTag.DUAL_CONSTRUCTION:
        return None if can_dual_construct(catalog, player) else "No two affordable cards of equal cost"
    if effect == EffectTag.MODERNISM:
        return None if can_build_anything(catalog, player, mode=BuildMode.MODERNISM) else "No affordable building"
    if effect == EffectTag.TELEPORTER:
        return None if can_build_anything(catalog, player, mode=BuildMode.FREE) else "No building card in hand"
    return None


def workplace_precondition(
    catalog: CardCatalog,
    state: GameState,
    player: PlayerState,
    workplace: Workplace,
) -> str | None:
    """Activation precondition for a public workplace."""
    effect = workplace.effect
    if workplace.from_building_def_id:
        card_def = catalog.lookup(workplace.from_building_def_id)
        if not is_workable(card_def):
            return f"{card_def.name} has no work effect"
        return effect_precondition(catalog, state, player, card_def.effect)
    if effect in (EffectTag.HIRE_WORKER, EffectTag.HIRE_IMMEDIATE):
        return None if player.workers < player.max_workers else "Worker limit reached"
    if effect == EffectTag.EXPAND4:
        return None if player.workers < min(4, player.max_workers) else "Already have 4 workers"
    if effect == EffectTag.EXPAND5:
        return None if player.workers < min(5, player.max_workers) else "Already have 5 workers"
    if effect == EffectTag.BUILD:
        return None if can_build_anything(catalog, player, 0) else "No affordable building"
    if effect == EffectTag.SELL:
        if len(player.hand) < workplace.sell_count:
            return f"Need {workplace.sell_count} cards to sell"
        if state.household < workplace.sell_amount:
            return f"Household cannot pay ${workplace.sell_amount}"
        return None
    return None


def workplace_worker_req(catalog: CardCatalog, workplace: Workplace) -> int:
    if workplace.from_building_def_id:
        return catalog.lookup(workplace.from_building_def_id).worker_req
    return 1


def sellable_building_indices(catalog: CardCatalog, player: PlayerState) -> list[int]:
    return [
        i for i, slot in enumerate(player.buildings)
        if not catalog.lookup(slot.card.def_id).unsellable
    ]


def selected_sale_value(catalog: CardCatalog, player: PlayerState, indices: list[int]) -> list[int]:
    return [catalog.lookup(player.buildings[i].card.def_id).vp for i in indices]
