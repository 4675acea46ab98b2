"""
Scoring - Final and running victory point totals.

calculate_scores() is pure: it reads the state and returns a fresh
ranking without touching the state it was given.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .catalog import CardCatalog, CardDef, EndBonusKind, EndBonusRule
from .rules import DEBT_PENALTY, VP_TOKEN_SET_SIZE, VP_TOKEN_SET_VALUE
from .state import GameState, PlayerState


@dataclass
class BuildingVPDetail:
    name: str
    base_vp: int
    bonus_vp: int


@dataclass
class ScoreBreakdown:
    building_vp: int
    money_vp: int
    debt_vp: int
    bonus_vp: int
    token_vp: int
    total: int
    building_details: list[BuildingVPDetail] = field(default_factory=list)
    raw_debts: int = 0
    exempted_debts: int = 0
    has_law_office: bool = False


@dataclass
class PlayerScore:
    player_id: int
    score: int
    breakdown: ScoreBreakdown


def token_vp(tokens: int) -> int:
    """VP tokens score in sets of three, leftovers one point each."""
    return tokens // VP_TOKEN_SET_SIZE * VP_TOKEN_SET_VALUE + tokens % VP_TOKEN_SET_SIZE


def _tagged_vp(defs: list[CardDef], attr: str) -> int:
    return sum(d.vp for d in defs if getattr(d, attr))


def evaluate_end_bonus(
    rule: EndBonusRule,
    owner_def_id: str,
    player: PlayerState,
    owned_defs: list[CardDef],
) -> int:
    """
    Payout of one end-game bonus rule for a player.

    `owned_defs` is the list of definitions of every building the player
    owns (including the one carrying the rule), so callers can evaluate
    hypothetical building sets.
    """
    kind = rule.kind
    if kind == EndBonusKind.PER_BUILDING:
        return rule.payout * len(owned_defs)
    if kind == EndBonusKind.PER_CONSUMABLE:
        return rule.payout * player.consumable_count
    if kind == EndBonusKind.PER_WORKER:
        return rule.payout * player.workers
    if kind == EndBonusKind.PER_UNSELLABLE:
        return rule.payout * sum(1 for d in owned_defs if d.unsellable)
    if kind == EndBonusKind.PER_FACTORY:
        return rule.payout * sum(1 for d in owned_defs if d.is_factory)
    if kind == EndBonusKind.FARM_VP_AT_LEAST:
        return rule.payout if _tagged_vp(owned_defs, "is_farm") >= rule.param else 0
    if kind == EndBonusKind.FACTORY_VP_AT_LEAST:
        return rule.payout if _tagged_vp(owned_defs, "is_factory") >= rule.param else 0
    if kind == EndBonusKind.FARM_AND_FACTORY:
        has_farm = any(d.is_farm for d in owned_defs)
        has_factory = any(d.is_factory for d in owned_defs)
        return rule.payout if has_farm and has_factory else 0
    if kind == EndBonusKind.VP_TOKENS_AT_LEAST:
        return rule.payout if player.vp_tokens >= rule.param else 0
    if kind == EndBonusKind.HUMAN_WORKERS_AT_LEAST:
        return rule.payout if player.human_workers >= rule.param else 0
    if kind == EndBonusKind.CONSUMABLES_AT_LEAST:
        return rule.payout if player.consumable_count >= rule.param else 0
    if kind == EndBonusKind.SOLE_UNSELLABLE:
        unsellable = [d for d in owned_defs if d.unsellable]
        return rule.payout if len(unsellable) == 1 and unsellable[0].id == owner_def_id else 0
    return 0


def debt_exemption(owned_defs: list[CardDef]) -> int:
    return sum(
        d.end_bonus.param for d in owned_defs
        if d.end_bonus is not None and d.end_bonus.kind == EndBonusKind.DEBT_EXEMPTION
    )


def score_player(catalog: CardCatalog, player_id: int, player: PlayerState) -> PlayerScore:
    owned_defs = [catalog.lookup(slot.card.def_id) for slot in player.buildings]

    details: list[BuildingVPDetail] = []
    building_vp = 0
    bonus_vp = 0
    for card_def in owned_defs:
        bonus = 0
        if card_def.end_bonus is not None:
            bonus = evaluate_end_bonus(card_def.end_bonus, card_def.id, player, owned_defs)
        building_vp += card_def.vp
        bonus_vp += bonus
        details.append(BuildingVPDetail(name=card_def.name, base_vp=card_def.vp, bonus_vp=bonus))

    exemption = debt_exemption(owned_defs)
    exempted = min(player.unpaid_debts, exemption)
    debt_vp = -DEBT_PENALTY * (player.unpaid_debts - exempted)
    tokens = token_vp(player.vp_tokens)
    total = building_vp + bonus_vp + player.money + debt_vp + tokens

    return PlayerScore(
        player_id=player_id,
        score=total,
        breakdown=ScoreBreakdown(
            building_vp=building_vp,
            money_vp=player.money,
            debt_vp=debt_vp,
            bonus_vp=bonus_vp,
            token_vp=tokens,
            total=total,
            building_details=details,
            raw_debts=player.unpaid_debts,
            exempted_debts=exempted,
            has_law_office=exemption > 0,
        ),
    )


def calculate_scores(catalog: CardCatalog, state: GameState) -> list[PlayerScore]:
    """Score every player, highest total first. Ties keep seat order."""
    scores = [score_player(catalog, pid, player) for pid, player in sorted(state.players.items())]
    return sorted(scores, key=lambda s: s.score, reverse=True)
