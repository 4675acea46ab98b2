"""
Heuristic Evaluator - Scores placements and cards for CPU decisions.

The evaluator assigns numeric priorities to:
- Public workplaces and own buildings (work phase)
- Cards as construction targets (build phase, design office, dual)
- Cards as discard fodder (retain value) and buildings as payday sales

Scores are plain numbers on a loose 0-100 scale; only their order
matters. Everything reads state and never mutates it.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from ..engine_core.catalog import CardCatalog, CardDef, EffectTag
from ..engine_core.rules import DEBT_PENALTY, FINAL_ROUND, can_afford, total_wage, wage_per_worker
from ..engine_core.scoring import debt_exemption, evaluate_end_bonus
from ..engine_core.state import BuildingSlot, Card, GameState, PlayerState, Workplace


class Stage(Enum):
    """Coarse game stage used to bucket heuristics."""
    EARLY = "early"
    MID = "mid"
    LATE = "late"


def game_stage(round_number: int) -> Stage:
    if round_number <= 3:
        return Stage.EARLY
    if round_number <= 6:
        return Stage.MID
    return Stage.LATE


class CardCategory(Enum):
    DRAW = "draw"
    PRODUCTION = "production"
    INCOME = "income"
    CONSTRUCTION = "construction"
    BONUS = "bonus"
    UTILITY = "utility"
    PURE_VP = "pure_vp"


CATEGORY_MEMBERS: dict[CardCategory, frozenset[str]] = {
    CardCategory.DRAW: frozenset({
        "factory", "auto_factory", "steel_mill", "chemical_plant", "design_office",
        "gl_steam_factory", "gl_locomotive_factory", "gl_poultry_farm", "gl_cotton_farm",
        "gl_coal_mine", "gl_refinery", "gl_greenhouse", "gl_studio",
    }),
    CardCategory.PRODUCTION: frozenset({"farm", "slash_burn", "orchard", "large_farm", "gl_village"}),
    CardCategory.INCOME: frozenset({"coffee_shop", "restaurant", "gl_game_cafe", "gl_museum", "gl_theater"}),
    CardCategory.CONSTRUCTION: frozenset({
        "construction_co", "general_contractor", "pioneer", "dual_construction",
        "gl_colonist", "gl_skyscraper", "gl_modernism_construction", "gl_teleporter",
    }),
    CardCategory.BONUS: frozenset({
        "real_estate", "agri_coop", "labor_union", "headquarters", "railroad",
        "gl_consumers_coop", "gl_guild_hall", "gl_ivory_tower", "gl_revolution_square",
        "gl_harvest_festival", "gl_tech_exhibition", "gl_temple_of_purification",
    }),
    CardCategory.UTILITY: frozenset({"warehouse", "company_housing", "law_office", "gl_automaton", "gl_relic"}),
    CardCategory.PURE_VP: frozenset({"mansion"}),
}

_CATEGORY_BY_ID = {def_id: cat for cat, ids in CATEGORY_MEMBERS.items() for def_id in ids}


def card_category(def_id: str) -> CardCategory:
    return _CATEGORY_BY_ID.get(def_id, CardCategory.DRAW)


BASE_BONUS_CARDS = frozenset({"real_estate", "agri_coop", "labor_union", "headquarters", "railroad"})

# How much a building helps opponents once sold into a public workplace
SELL_DANGER: dict[str, int] = {
    "restaurant": 12,
    "construction_co": 10,
    "general_contractor": 10,
    "dual_construction": 9,
    "pioneer": 8,
    "coffee_shop": 5,
    "steel_mill": 4,
    "chemical_plant": 4,
    "auto_factory": 4,
    "factory": 2,
    "design_office": 2,
    "large_farm": 2,
    "orchard": 2,
    "farm": 1,
    "slash_burn": 0,
}
DEFAULT_SELL_DANGER = 3

SELL_CATEGORY_PENALTY: dict[CardCategory, int] = {
    CardCategory.INCOME: 30,
    CardCategory.CONSTRUCTION: 25,
    CardCategory.BONUS: 20,
    CardCategory.UTILITY: 15,
    CardCategory.DRAW: 5,
    CardCategory.PRODUCTION: 3,
    CardCategory.PURE_VP: 10,
}

# Value of one use, multiplied by the number of rounds it can still be used
USAGE_PER_USE: dict[str, int] = {
    "steel_mill": 15,
    "chemical_plant": 12,
    "factory": 10,
    "auto_factory": 18,
    "design_office": 5,
    "coffee_shop": 5,
    "restaurant": 15,
    "construction_co": 8,
    "general_contractor": 7,
    "dual_construction": 12,
    "pioneer": 6,
    "warehouse": 3,
    "gl_steam_factory": 12,
    "gl_locomotive_factory": 16,
    "gl_poultry_farm": 8,
    "gl_cotton_farm": 14,
    "gl_coal_mine": 18,
    "gl_refinery": 12,
    "gl_greenhouse": 10,
    "gl_village": 5,
    "gl_game_cafe": 7,
    "gl_museum": 10,
    "gl_theater": 20,
    "gl_studio": 8,
    "gl_colonist": 7,
    "gl_skyscraper": 7,
    "gl_modernism_construction": 10,
    "gl_teleporter": 15,
}

# Flat bonus over the cost-based base score when working an own Glory building
GLORY_WORK_BONUS: dict[str, int] = {
    "gl_poultry_farm": 60,
    "gl_cotton_farm": 80,
    "gl_greenhouse": 70,
    "gl_steam_factory": 65,
    "gl_locomotive_factory": 75,
    "gl_coal_mine": 85,
    "gl_refinery": 70,
    "gl_game_cafe": 50,
    "gl_museum": 60,
    "gl_theater": 65,
    "gl_relic": 20,
    "gl_studio": 40,
    "gl_colonist": 60,
    "gl_skyscraper": 60,
    "gl_modernism_construction": 70,
    "gl_teleporter": 90,
}

CARD_RANK_BONUS: dict[str, int] = {
    "dual_construction": 22,
    "auto_factory": 20,
    "chemical_plant": 14,
    "steel_mill": 16,
    "restaurant": 12,
    "construction_co": 10,
    "general_contractor": 10,
    "factory": 6,
    "large_farm": 5,
    "orchard": 4,
}


@dataclass
class Situation:
    """Per-decision facts about one player that most heuristics need."""
    player: PlayerState
    stage: Stage
    wage: int
    total_wage: int
    shortfall: int
    consumables: int
    is_last_worker: bool
    is_first_worker: bool
    remaining_rounds: int


def situation(state: GameState, player_id: int) -> Situation:
    player = state.player(player_id)
    owed = total_wage(state.round, player)
    return Situation(
        player=player,
        stage=game_stage(state.round),
        wage=wage_per_worker(state.round),
        total_wage=owed,
        shortfall=owed - player.money,
        consumables=player.consumable_count,
        is_last_worker=player.available_workers == 1,
        is_first_worker=player.available_workers == player.workers,
        remaining_rounds=FINAL_ROUND - state.round,
    )


class HeuristicEvaluator:
    """
    Scores CPU options against a GameState.

    Holds only the catalog; every method takes the state it reads.
    """

    def __init__(self, catalog: CardCatalog):
        self.catalog = catalog

    def _def(self, card: Card | BuildingSlot) -> CardDef:
        if isinstance(card, BuildingSlot):
            card = card.card
        return self.catalog.lookup(card.def_id)

    def _owned_defs(self, player: PlayerState) -> list[CardDef]:
        return [self._def(slot) for slot in player.buildings]

    def sellable_value(self, player: PlayerState) -> int:
        return sum(d.vp for d in self._owned_defs(player) if not d.unsellable)

    # =========================================================================
    # Economy checks
    # =========================================================================

    def is_safe_to_hire(self, state: GameState, player_id: int) -> bool:
        """Whether one more worker leaves next round's wage covered with a margin."""
        if state.round <= 1:
            return True
        player = state.player(player_id)
        future_wage = wage_per_worker(state.round + 1) * (player.workers + 1)
        assets = (
            player.money
            + self.sellable_value(player)
            + min(player.consumable_count, 2) * 6
        )
        if state.round <= 3:
            margin = 1.5
        elif state.round <= 6:
            margin = 2.0
        else:
            margin = 3.0
        return assets >= future_wage * margin

    def should_bicycle_operate(self, state: GameState, player_id: int) -> bool:
        """Short of cash: build cheap buildings now to sell them at the next payday."""
        s = situation(state, player_id)
        if s.player.money < s.total_wage * 2:
            return True
        return s.stage == Stage.EARLY and s.player.money < s.total_wage * 3

    def best_sell_amount(self, state: GameState) -> int:
        amounts = [
            wp.sell_amount for wp in state.public_workplaces
            if wp.is_sell and state.household >= wp.sell_amount
        ]
        return max(amounts, default=0)

    # =========================================================================
    # Card values
    # =========================================================================

    def estimate_usage_value(self, state: GameState, player_id: int, def_id: str) -> int:
        """Expected value of working a building over the rounds left after building it."""
        player = state.player(player_id)
        usable_rounds = max(0, FINAL_ROUND - state.round - 1)
        times = min(usable_rounds, 3)
        can_sell = self.best_sell_amount(state) > 0

        if def_id == "farm":
            return times * (8 if can_sell else 2)
        if def_id == "large_farm":
            return times * (12 if can_sell else 3)
        if def_id == "orchard":
            return times * (10 if can_sell else 3)
        if def_id == "slash_burn":
            return 20 if can_sell else 5
        if def_id == "company_housing":
            return 10 if usable_rounds > 2 else 2
        if def_id == "law_office":
            return player.unpaid_debts * 3 if player.unpaid_debts > 0 else 5
        if def_id == "gl_automaton":
            return 50
        return times * USAGE_PER_USE.get(def_id, 0)

    def _bonus_total(self, player: PlayerState, defs: list[CardDef]) -> int:
        return sum(
            evaluate_end_bonus(d.end_bonus, d.id, player, defs)
            for d in defs if d.end_bonus is not None
        )

    def estimate_bonus_gain_if_built(self, state: GameState, player_id: int, card_def: CardDef) -> int:
        """End-bonus VP the player would gain by adding `card_def` to their buildings."""
        player = state.player(player_id)
        owned = self._owned_defs(player)
        return self._bonus_total(player, owned + [card_def]) - self._bonus_total(player, owned)

    def evaluate_card_for_building(self, state: GameState, player_id: int, card_def: CardDef) -> float:
        """Desirability of constructing `card_def` now."""
        player = state.player(player_id)
        stage = game_stage(state.round)
        remaining = FINAL_ROUND - state.round
        category = card_category(card_def.id)
        owned = self._owned_defs(player)

        usage = self.estimate_usage_value(state, player_id, card_def.id)
        score = card_def.vp * 2 + usage + card_def.cost * 15

        if stage != Stage.LATE and category in (CardCategory.PURE_VP, CardCategory.BONUS):
            score -= 40

        if stage == Stage.EARLY:
            if card_def.cost <= 1:
                score += 18
            elif card_def.cost <= 2:
                score += 12
            if card_def.is_farm:
                score += 28
                if not any(d.is_farm for d in owned):
                    score += 25
            if card_def.cost <= 2 and self.should_bicycle_operate(state, player_id):
                score += 10
            if card_def.id == "mansion":
                score -= 35
            if card_def.id in ("headquarters", "railroad"):
                score -= 20
            if card_def.id == "real_estate":
                score -= 10
        elif stage == Stage.MID:
            if card_def.is_factory:
                score += 15
            if card_def.is_farm:
                score += 8
            if card_def.id in ("restaurant", "coffee_shop"):
                score += 15
        else:
            if card_def.cost <= 1 and card_def.vp <= 8 and usage < 10:
                score -= 25
            if card_def.id in BASE_BONUS_CARDS:
                score += max(25, self.estimate_bonus_gain_if_built(state, player_id, card_def))
            if card_def.id == "mansion":
                score += 20
            if card_def.vp >= 15:
                score += 15
            if card_def.vp >= 20:
                score += 10
            if remaining <= 1 and category == CardCategory.DRAW:
                score -= 10

        score += CARD_RANK_BONUS.get(card_def.id, 0)

        if card_def.id == "company_housing":
            if stage == Stage.EARLY:
                score += 15
            elif stage == Stage.MID and player.workers < 5:
                score += 8
            else:
                score -= 5
        if card_def.id == "warehouse":
            score += 10
        if card_def.id == "law_office":
            score += 8 + player.unpaid_debts * 3
            if player.unpaid_debts >= 3:
                score += 10

        score += self.estimate_bonus_gain_if_built(state, player_id, card_def)

        # Synergies with cards already in hand or built
        if any(c.def_id == "dual_construction" for c in player.hand):
            same_cost = [
                c for _, c in player.building_cards()
                if self._def(c).cost == card_def.cost and c.def_id != card_def.id
            ]
            if same_cost:
                score += 15
        if player.owns("railroad") and card_def.is_factory:
            score += 10
        if card_def.id == "real_estate" and len(owned) >= 4:
            score += (len(owned) - 3) * 5
        if card_def.id == "railroad":
            factories = sum(1 for d in owned if d.is_factory)
            if factories >= 2:
                score += factories * 6
        if card_def.id == "headquarters":
            unsellable = sum(1 for d in owned if d.unsellable)
            if unsellable >= 2:
                score += unsellable * 4
        if card_def.id == "labor_union":
            score += player.workers * 4
        if card_def.id == "agri_coop":
            score += player.consumable_count * 3
            score += sum(1 for d in owned if d.is_farm) * 5

        copies = sum(1 for d in owned if d.id == card_def.id)
        score -= 12 * copies
        return score

    def evaluate_build_opportunity(
        self,
        state: GameState,
        player_id: int,
        cost_reduction: int,
        draw_after: int,
    ) -> float:
        """Value of a build action given the best card the hand could afford."""
        player = state.player(player_id)
        best_score = 0.0
        best_usage = 0
        for _, card in player.building_cards():
            if not can_afford(self.catalog, player, card, cost_reduction):
                continue
            card_def = self._def(card)
            score = self.evaluate_card_for_building(state, player_id, card_def)
            if score > best_score:
                best_score = score
                best_usage = self.estimate_usage_value(state, player_id, card_def.id)
        if best_score == 0:
            return 0

        built = len(player.buildings)
        build_bonus = 30 if built == 0 else 15 if built < 3 else 5
        draw_bonus = 8 if draw_after > 0 else 0
        usage_bonus = min(best_usage / 2, 25)
        return min(100, 55 + best_score / 2.5 + build_bonus + draw_bonus + usage_bonus)

    def retain_value(self, state: GameState, player_id: int, card: Card) -> float:
        """How much a hand card is worth keeping; low values are discarded first."""
        player = state.player(player_id)
        if card.is_consumable:
            return 8 if player.owns("agri_coop") else 1

        card_def = self._def(card)
        stage = game_stage(state.round)
        value = card_def.vp
        if card_def.id in ("dual_construction", "auto_factory"):
            value += 25
        if card_def.id in ("steel_mill", "chemical_plant"):
            value += 18
        if card_def.id in BASE_BONUS_CARDS:
            value += 25 if stage == Stage.LATE else 12
        if card_def.id in ("restaurant", "coffee_shop"):
            value += 10
        if card_def.id in ("construction_co", "general_contractor", "pioneer"):
            value += 8
        if player.owns(card_def.id):
            value -= 10
        if stage == Stage.LATE and card_def.cost <= 1 and card_def.vp <= 8:
            value -= 8
        if len(player.hand) - 1 >= card_def.cost:
            value += 4
        if stage == Stage.EARLY and card_def.cost >= 4 and len(player.hand) < card_def.cost + 2:
            value -= 5
        return value

    def sell_cost(self, state: GameState, slot: BuildingSlot) -> int:
        """Cost of selling a building at payday; the cheapest is sold first."""
        card_def = self._def(slot)
        danger = SELL_DANGER.get(card_def.id, DEFAULT_SELL_DANGER)
        remaining = FINAL_ROUND - state.round
        penalty = 0 if remaining <= 1 else SELL_CATEGORY_PENALTY[card_category(card_def.id)]
        used_bonus = -8 if slot.worker_placed else 0
        return card_def.vp + danger * 2 + penalty + used_bonus

    def keep_over_sale(self, player: PlayerState, index: int, wage: int) -> int:
        """
        Final VP difference between keeping building `index` and taking the
        payday shortfall as debt, and selling it to pay the wage.

        Positive when keeping the building scores more.
        """
        owned = self._owned_defs(player)
        sold = owned[index]
        rest = owned[:index] + owned[index + 1:]

        def penalty(defs: list[CardDef], new_debts: int) -> int:
            debts = player.unpaid_debts + new_debts
            return DEBT_PENALTY * max(0, debts - debt_exemption(defs))

        shortfall = max(0, wage - player.money)
        keep = sold.vp + self._bonus_total(player, owned) - penalty(owned, shortfall)
        left = player.money + sold.vp - wage
        sell = self._bonus_total(player, rest) + max(0, left) - penalty(rest, max(0, -left))
        return keep - sell

    # =========================================================================
    # Work phase
    # =========================================================================

    def evaluate_public_workplace(self, state: GameState, player_id: int, wp: Workplace) -> float:
        s = situation(state, player_id)
        player = s.player

        if wp.is_sell:
            return self._evaluate_sell(state, s, wp)

        effect = wp.effect
        if effect == EffectTag.HIRE_WORKER:
            return self._evaluate_hire(state, player_id, s)
        if effect == EffectTag.EXPAND4:
            if player.workers >= 4:
                return 0
            if s.is_last_worker and s.shortfall > 0:
                return 10
            if s.shortfall > s.wage * 2 and s.stage != Stage.EARLY:
                return 12
            if not self.is_safe_to_hire(state, player_id):
                return 0
            if s.stage == Stage.EARLY:
                if player.workers <= 2:
                    return 120
                if player.workers == 3:
                    return 100
            if s.stage == Stage.MID and player.workers <= 3:
                return 88
            return 8
        if effect == EffectTag.EXPAND5:
            if player.workers >= 5:
                return 0
            if s.is_last_worker and s.shortfall > 0:
                return 10
            if not self.is_safe_to_hire(state, player_id):
                return 0
            if player.workers <= 3:
                return 86
            if player.workers == 4:
                if player.money >= s.total_wage + s.wage * 2:
                    return 65
                return 50 if s.stage == Stage.MID else 15
            return 10
        if effect == EffectTag.HIRE_IMMEDIATE:
            if player.workers >= player.max_workers:
                return 0
            if s.is_last_worker and s.shortfall > 0:
                return 8
            if not self.is_safe_to_hire(state, player_id):
                return 0
            return 60 if player.workers <= 4 else 20
        if effect == EffectTag.START_PLAYER_DRAW:
            return self._evaluate_start_player(state, s)
        if effect == EffectTag.DRAW1:
            if not player.hand:
                return 60
            if len(player.hand) <= 1 and s.stage == Stage.EARLY:
                return 30
            return 0
        if effect == EffectTag.RUINS:
            score = 30
            if s.shortfall > 0:
                score += 20
            if s.stage == Stage.LATE:
                score += 10
            return score
        if effect == EffectTag.BUILD:
            score = self.evaluate_build_opportunity(state, player_id, 0, 0)
            if score == 0:
                return 0
            if self.should_bicycle_operate(state, player_id):
                score += 5
            if score > 60:
                score += 15
            if s.stage == Stage.LATE and score > 70:
                score += 10
            if s.shortfall > 0 and not s.is_first_worker:
                score = min(score, 35)
            return score

        if wp.from_building_def_id:
            score = self.evaluate_building_workplace(state, player_id, wp.from_building_def_id)
            if s.is_last_worker and s.shortfall > 0:
                if card_category(wp.from_building_def_id) not in (CardCategory.INCOME, CardCategory.PRODUCTION):
                    score = min(score, 15)
            return score

        return 2 if s.is_last_worker and s.shortfall > 0 else 5

    def _evaluate_sell(self, state: GameState, s: Situation, wp: Workplace) -> float:
        player = s.player
        if state.household < wp.sell_amount or len(player.hand) < wp.sell_count:
            return 0

        pays_with_consumables = s.consumables >= wp.sell_count
        efficiency = (wp.sell_amount / 6 - 1) * 8
        better_sell = any(
            other.is_sell
            and other.id != wp.id
            and other.sell_amount > wp.sell_amount
            and state.household >= other.sell_amount
            and (other.multiple_allowed or not other.is_occupied)
            and s.consumables >= other.sell_count
            for other in state.public_workplaces
        )
        scarcity = -20 if better_sell else 0
        last_worker = 5 if s.is_last_worker and s.shortfall > 0 else 0

        if s.shortfall > 0:
            base = 90 if pays_with_consumables else 80
            return min(base + efficiency + last_worker + scarcity // 2, 100)
        if s.stage != Stage.EARLY and player.money < s.total_wage * 0.5 and pays_with_consumables:
            return min(78 + efficiency + scarcity // 2, 95)
        if pays_with_consumables:
            if s.stage == Stage.LATE:
                return min(85 + efficiency + scarcity, 98)
            return min(40 + efficiency + scarcity, 70)
        # Selling building cards
        if len(player.hand) > player.max_hand_size:
            return min(45 + efficiency + scarcity, 75)
        if s.stage == Stage.LATE:
            return min(40 + efficiency + scarcity, 75)
        return min(10 + efficiency + scarcity, 50)

    def _evaluate_hire(self, state: GameState, player_id: int, s: Situation) -> float:
        player = s.player
        if player.workers >= player.max_workers:
            return 0
        if s.is_last_worker and s.shortfall > 0:
            return 10
        if s.shortfall > s.wage * 2 and s.stage != Stage.EARLY:
            return 5
        if not self.is_safe_to_hire(state, player_id):
            return 0

        if s.stage == Stage.EARLY:
            if s.is_first_worker and player.workers <= 2:
                return 180
            if player.workers <= 2:
                return 150
            if player.workers == 3:
                return 110
            return 80
        if s.stage == Stage.MID:
            if player.workers <= 3:
                return 80
            future_wage = wage_per_worker(state.round + 1) * (player.workers + 1)
            assets = player.money + self.sellable_value(player)
            if player.workers == 4 and assets >= future_wage * 2.5:
                return 50
            return 5
        return 3

    def _evaluate_start_player(self, state: GameState, s: Situation) -> float:
        player = s.player
        score = 40
        if len(player.hand) <= 1:
            score += 30
        elif len(player.hand) <= 2:
            score += 20

        # Next round's new workplace decides how much turn order matters
        next_round = state.round + 1
        if next_round == 4 and player.workers < 4:
            score += 25
        elif next_round == 6 and player.workers < 5:
            score += 20
        elif next_round == 8:
            score += 15
        elif next_round in (2, 3, 5, 7, 9):
            score += 8

        if state.num_players >= 3:
            score += 5
        if s.stage == Stage.EARLY:
            score += 8
        return score

    def evaluate_building_workplace(self, state: GameState, player_id: int, def_id: str) -> float:
        """Priority of working a building (own or sold) with `def_id`."""
        s = situation(state, player_id)
        player = s.player
        card_def = self.catalog.lookup(def_id)
        category = card_category(def_id)
        hand = len(player.hand)

        base = 25 + card_def.cost * 6
        if s.shortfall > s.wage and category not in (CardCategory.INCOME, CardCategory.PRODUCTION):
            base = min(base, 30)

        has_sell_workplace = self.best_sell_amount(state) > 0

        def can_sell_after_produce(produced: int) -> bool:
            future = s.consumables + produced
            return any(
                wp.is_sell
                and future >= wp.sell_count
                and state.household >= wp.sell_amount
                and (wp.multiple_allowed or not wp.is_occupied)
                for wp in state.public_workplaces
            )

        if def_id == "farm":
            score = {Stage.EARLY: 78, Stage.MID: 62, Stage.LATE: 42}[s.stage]
            if has_sell_workplace and can_sell_after_produce(2):
                score += 8
            if s.shortfall > 0 and has_sell_workplace:
                score += 10
            return max(score, base + 40)
        if def_id == "slash_burn":
            score = 95 if has_sell_workplace else 90
            return max(score, base + 60)
        if def_id == "orchard":
            gain = max(0, 4 - hand)
            if gain >= 3:
                return 82 + base
            if gain >= 2:
                return 68 + base
            if gain >= 1:
                return 45 + base
            return 10
        if def_id == "large_farm":
            score = 85
            if has_sell_workplace and can_sell_after_produce(3):
                score += 10
            return max(score, base + 50)
        if def_id == "gl_village":
            score = 75
            if has_sell_workplace and can_sell_after_produce(2):
                score += 8
            return max(score, base + 40)
        if def_id in GLORY_WORK_BONUS:
            return base + GLORY_WORK_BONUS[def_id]
        if def_id == "steel_mill":
            return 90 + base
        if def_id == "chemical_plant":
            return (98 if hand == 0 else 78) + base
        if def_id == "factory":
            if hand >= 5:
                return 80 + base
            if hand >= 4:
                return 72 + base
            if hand >= 2:
                return 58 + base
            return 0
        if def_id == "auto_factory":
            if hand >= 6:
                return 95 + base
            if hand >= 5:
                return 88 + base
            if hand >= 3:
                return 75 + base
            return 0
        if def_id == "design_office":
            if hand <= 1:
                return 60 + base
            return (50 if s.stage == Stage.EARLY else 40) + base
        if def_id == "coffee_shop":
            if state.household < 5:
                return 0
            mult = min(1.0, state.household / 50)
            if s.shortfall > 0:
                return 92 * mult
            return (80 if s.stage == Stage.LATE else 55) * mult
        if def_id == "restaurant":
            if state.household < 15 or hand < 1:
                return 0
            mult = min(1.0, state.household / 100)
            if s.shortfall > 0:
                return 98 * mult
            return (92 if s.stage == Stage.LATE else 75) * mult
        if def_id == "construction_co":
            return self.evaluate_build_opportunity(state, player_id, 1, 0) + 12
        if def_id == "pioneer":
            has_farm_card = any(self._def(c).is_farm for _, c in player.building_cards())
            return 75 if has_farm_card else 0
        if def_id == "general_contractor":
            return self.evaluate_build_opportunity(state, player_id, 0, 2) + 10
        if def_id == "dual_construction":
            # Only offered when a legal pair exists
            return {Stage.LATE: 95, Stage.MID: 82, Stage.EARLY: 68}[s.stage]
        if def_id == "mansion":
            return 3
        return 25
