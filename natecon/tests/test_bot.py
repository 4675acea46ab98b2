"""
Tests for CPU move selection.

Tests:
- Bots only return legal moves
- Phase strategies (payday, cleanup, discard, choices)
- Difficulty and policy variants
"""

import random

import pytest

from ..bots import (
    CPUBot,
    Difficulty,
    FirstLegalPolicy,
    HeuristicEvaluator,
    HeuristicPolicy,
    RandomPolicy,
    decide_move,
)
from ..bots.evaluator import Stage, game_stage
from ..engine_core.action import AutomatonOption, Move, MoveType, VillageOption
from ..engine_core.action_generator import legal_moves
from ..engine_core.catalog import GameVersion
from ..engine_core.reducer import Reducer
from ..engine_core.rules import FINAL_ROUND, total_wage
from ..engine_core.state import (
    ChoiceState,
    DiscardCallback,
    DiscardState,
    GameOptions,
    Phase,
)
from ..engine_core.workplaces import round_workplace
from ..games.national_economy import setup
from ..session import pending_seats
from .helpers import CONSUMABLE, bare_state, build, give, play


def open_payday(reducer, state):
    for player in state.players.values():
        player.available_workers = 0
    reducer.flow.start_payday(state)
    return state


def run_bot(reducer, state, player_id, until, difficulty=Difficulty.HEURISTIC, limit=20):
    """Let one CPU seat act until `until(state)` holds."""
    bot = CPUBot(player_id=player_id, catalog=reducer.catalog, difficulty=difficulty, rng=random.Random(0))
    for _ in range(limit):
        if until(state):
            return state
        move = bot.select_move(state)
        assert move is not None
        state = play(reducer, state, move)
    assert until(state)
    return state


class TestLegality:
    """Bots only return moves the reducer accepts."""

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_opening_move_is_legal(self, catalog, base_state, difficulty):
        """The first work move is one of the legal moves."""
        pid = base_state.current_player
        move = decide_move(catalog, base_state, pid, difficulty, random.Random(3))
        assert move in legal_moves(catalog, base_state, pid)

    def test_waiting_seat_has_no_move(self, catalog, base_state):
        """A seat whose turn it is not returns None."""
        other = (base_state.current_player + 1) % 2
        assert decide_move(catalog, base_state, other) is None

    @pytest.mark.parametrize("version", list(GameVersion))
    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_every_bot_move_is_accepted(self, catalog, reducer, version, difficulty):
        """Over a whole game no bot move is rejected."""
        state = setup(catalog, 3, GameOptions(version=version, seed=21))
        bots = {
            pid: CPUBot(player_id=pid, catalog=catalog, difficulty=difficulty, rng=random.Random(pid))
            for pid in state.players
        }
        while state.phase != Phase.GAME_END:
            pid = pending_seats(state)[0]
            move = bots[pid].select_move(state)
            assert move is not None, f"P{pid + 1} has no move in {state.phase.value}"
            result = reducer.apply(state, move)
            assert result.success, f"{move.describe()}: {result.error}"
            state = result.new_state
            assert state.move_count < 5000
        assert state.final_scores is not None

    def test_heuristic_is_deterministic(self, catalog, base_state):
        """Heuristic choices do not depend on the random source."""
        pid = base_state.current_player
        a = decide_move(catalog, base_state, pid, Difficulty.HEURISTIC, random.Random(1))
        b = decide_move(catalog, base_state, pid, Difficulty.HEURISTIC, random.Random(2))
        assert a == b

    def test_bot_does_not_mutate_state(self, catalog, base_state):
        """Deciding leaves the state untouched."""
        before = base_state.clone()
        decide_move(catalog, base_state, base_state.current_player)
        assert base_state == before


class TestPaydayStrategy:
    """Tests for the payday strategy."""

    def test_scenario_c_sells_only_building(self, vp5_catalog):
        """Wage 4, cash 1 and one 5 VP building: sell it and keep $2."""
        reducer = Reducer(vp5_catalog)
        state = bare_state(vp5_catalog)
        state.player(0).money = 1
        build(state, 0, "test_stand")
        # Keep payday open after P1 confirms
        state.player(1).money = 0
        build(state, 1, "farm")
        state = open_payday(reducer, state)
        assert state.payday_state.player_states[0].total_wage == 4

        bot = CPUBot(player_id=0, catalog=vp5_catalog)
        move = bot.select_move(state)
        assert move == Move.toggle_payday_sell(0, 0)
        state = play(reducer, state, move)

        move = bot.select_move(state)
        assert move == Move.confirm_payday_sell(0)
        state = play(reducer, state, move)

        pps = state.payday_state.player_states[0]
        assert pps.confirmed
        assert state.player(0).money == 2
        assert state.player(0).unpaid_debts == 0
        assert state.player(0).buildings == []

    def test_solvent_player_confirms(self, catalog, reducer, blank_state):
        """A player who can pay confirms straight away."""
        blank_state.player(1).money = 0
        build(blank_state, 1, "farm")
        state = open_payday(reducer, blank_state)
        state.payday_state.player_states[0].confirmed = False
        state.player(0).money = 10
        assert decide_move(catalog, state, 0) == Move.confirm_payday(0)

    def test_sells_cheapest_to_keep(self, catalog, reducer, blank_state):
        """With a choice of buildings the one cheapest to lose is sold."""
        player = blank_state.player(0)
        player.money = 0
        build(blank_state, 0, "mansion", "farm", "orchard")
        state = run_bot(
            reducer, open_payday(reducer, blank_state), 0,
            until=lambda s: s.phase != Phase.PAYDAY,
        )
        owned = [s.card.def_id for s in state.player(0).buildings]
        assert "mansion" in owned
        assert len(owned) == 2
        assert state.player(0).unpaid_debts == 0

    def test_sells_everything_before_debt(self, catalog, reducer, blank_state):
        """When sales cannot cover the wage the bot sells all it can."""
        player = blank_state.player(0)
        player.money = 0
        player.workers = 3
        build(blank_state, 0, "farm", "law_office")
        state = run_bot(
            reducer, open_payday(reducer, blank_state), 0,
            until=lambda s: s.phase != Phase.PAYDAY,
        )
        assert [s.card.def_id for s in state.player(0).buildings] == ["law_office"]
        assert state.player(0).unpaid_debts == 2

    def _short_by_one(self, reducer, state, round_number, *buildings):
        state.round = round_number
        player = state.player(0)
        build(state, 0, *buildings)
        player.money = total_wage(round_number, player) - 1
        return open_payday(reducer, state)

    def test_final_round_keeps_bonus_building_set(self, catalog, reducer, blank_state):
        """Selling a farm would cost real estate more than one debt costs."""
        state = self._short_by_one(reducer, blank_state, FINAL_ROUND, "real_estate", "farm", "farm")
        move = decide_move(catalog, state, 0)
        assert move == Move.confirm_payday(0)

        state = play(reducer, state, move)
        assert state.player(0).unpaid_debts == 1
        assert [s.card.def_id for s in state.player(0).buildings] == ["real_estate", "farm", "farm"]

    def test_final_round_sells_without_bonus_at_stake(self, catalog, reducer, blank_state):
        """With no bonus to protect the debt penalty decides: sell."""
        state = self._short_by_one(reducer, blank_state, FINAL_ROUND, "farm", "farm")
        assert decide_move(catalog, state, 0).move_type == MoveType.TOGGLE_PAYDAY_SELL

    def test_mid_game_always_sells(self, catalog, reducer, blank_state):
        """Debt is only weighed in the last two rounds."""
        state = self._short_by_one(reducer, blank_state, 5, "real_estate", "farm", "farm")
        assert decide_move(catalog, state, 0).move_type == MoveType.TOGGLE_PAYDAY_SELL


class TestCleanupStrategy:
    """Tests for the hand-limit strategy."""

    def test_discards_down_to_limit(self, catalog, reducer, blank_state):
        """The bot trims exactly the excess and the round moves on."""
        give(blank_state, 1, "farm", "farm", "mansion", "factory", "farm", CONSUMABLE, CONSUMABLE)
        state = open_payday(reducer, blank_state)
        assert state.phase == Phase.CLEANUP
        state = run_bot(reducer, state, 1, until=lambda s: s.phase == Phase.WORK)
        assert len(state.player(1).hand) == 5
        assert state.round == 2


class TestDiscardStrategy:
    """Tests for the discard strategy."""

    def test_cancels_when_it_cannot_pay(self, catalog, blank_state):
        """A payment the hand cannot cover is cancelled."""
        give(blank_state, 0, "farm")
        blank_state.phase = Phase.DISCARD
        blank_state.discard_state = DiscardState(
            player_id=0, count=3, reason="test", callback=DiscardCallback.MONEY,
            source="workplace:mine",
        )
        assert decide_move(catalog, blank_state, 0) == Move.cancel_action(0)

    def test_keeps_valuable_cards(self, catalog, blank_state):
        """Consumables go before buildings."""
        give(blank_state, 0, "mansion", CONSUMABLE)
        blank_state.phase = Phase.DISCARD
        blank_state.discard_state = DiscardState(
            player_id=0, count=1, reason="test", callback=DiscardCallback.MONEY,
        )
        assert decide_move(catalog, blank_state, 0) == Move.toggle_discard(0, 1)


class TestChoiceStrategies:
    """Tests for the Glory choice strategies."""

    def _choice(self, state, phase):
        state.phase = phase
        state.choice_state = ChoiceState(player_id=0)
        return state

    def test_automaton_takes_robot(self, catalog, glory_blank_state):
        """The bot takes a robot while below the worker limit."""
        state = self._choice(glory_blank_state, Phase.CHOICE_AUTOMATON)
        assert decide_move(catalog, state, 0) == Move.select_automaton_option(0, AutomatonOption.GET_ROBOT)
        state.player(0).workers = 5
        assert decide_move(catalog, state, 0) == Move.select_automaton_option(0, AutomatonOption.SKIP)

    def test_village_trades_consumables(self, catalog, glory_blank_state):
        """Consumables are traded for buildings when the hand lacks them."""
        state = self._choice(glory_blank_state, Phase.CHOICE_VILLAGE)
        give(state, 0, CONSUMABLE, CONSUMABLE)
        assert decide_move(catalog, state, 0) == Move.select_village_option(0, VillageOption.DRAW_BUILDING)

    def test_village_draws_consumables(self, catalog, glory_blank_state):
        """Without two consumables the bot draws consumables."""
        state = self._choice(glory_blank_state, Phase.CHOICE_VILLAGE)
        give(state, 0, "gl_steam_factory")
        assert decide_move(catalog, state, 0) == Move.select_village_option(0, VillageOption.DRAW_CONSUMABLE)


class TestPolicies:
    """Tests for the BotPolicy implementations."""

    @pytest.mark.parametrize("policy_cls", [HeuristicPolicy, RandomPolicy])
    def test_strategy_policies_return_legal_moves(self, catalog, base_state, policy_cls):
        """Strategy-backed policies pick legal moves."""
        policy = policy_cls(catalog, seed=5)
        pid = base_state.current_player
        assert policy.select_move(base_state, pid) in legal_moves(catalog, base_state, pid)

    def test_first_legal_prefers_confirmations(self, catalog, reducer, blank_state):
        """Pending confirmations come before anything else."""
        blank_state.player(0).money = 1
        build(blank_state, 0, "farm")
        state = open_payday(reducer, blank_state)
        policy = FirstLegalPolicy(catalog)
        assert policy.select_move(state, 0).move_type == MoveType.CONFIRM_PAYDAY

    def test_first_legal_places_worker(self, catalog, blank_state):
        """In the work phase the first legal placement is chosen."""
        policy = FirstLegalPolicy(catalog)
        assert policy.select_move(blank_state, 0) == Move.place_worker(0, "quarry")

    def test_policy_names(self, catalog):
        """get_name reports the class name."""
        assert HeuristicPolicy(catalog).get_name() == "HeuristicPolicy"
        assert FirstLegalPolicy(catalog).get_name() == "FirstLegalPolicy"


class TestEvaluator:
    """Tests for HeuristicEvaluator helpers."""

    @pytest.mark.parametrize("round_number,stage", [(1, Stage.EARLY), (4, Stage.MID), (9, Stage.LATE)])
    def test_game_stage(self, round_number, stage):
        """Rounds bucket into early, mid and late."""
        assert game_stage(round_number) == stage

    def test_sellable_value_skips_unsellable(self, catalog, blank_state):
        """Only sellable buildings count toward emergency funds."""
        build(blank_state, 0, "farm", "mansion")
        assert HeuristicEvaluator(catalog).sellable_value(blank_state.player(0)) == 4

    @pytest.mark.parametrize("round_number,needed", [(2, 14), (5, 24), (8, 45)])
    def test_safe_to_hire_margin(self, catalog, blank_state, round_number, needed):
        """Assets must cover next round's wage by 1.5, 2.0 or 3.0 times."""
        evaluator = HeuristicEvaluator(catalog)
        blank_state.round = round_number
        blank_state.player(0).money = needed - 1
        assert not evaluator.is_safe_to_hire(blank_state, 0)
        blank_state.player(0).money = needed
        assert evaluator.is_safe_to_hire(blank_state, 0)

    def test_first_round_hire_is_safe(self, catalog, blank_state):
        """Round 1 hiring skips the asset check."""
        blank_state.player(0).money = 0
        assert HeuristicEvaluator(catalog).is_safe_to_hire(blank_state, 0)

    def test_better_sell_lowers_score(self, catalog, blank_state):
        """A stall scores lower while a bigger reachable sale is open."""
        evaluator = HeuristicEvaluator(catalog)
        blank_state.round = 4
        blank_state.household = 30
        give(blank_state, 0, CONSUMABLE, CONSUMABLE)
        stall = round_workplace(2, 2)
        blank_state.public_workplaces.append(stall)
        alone = evaluator.evaluate_public_workplace(blank_state, 0, stall)

        market = round_workplace(3, 2)
        blank_state.public_workplaces.append(market)
        assert evaluator.evaluate_public_workplace(blank_state, 0, stall) < alone

        market.workers.append(1)
        assert evaluator.evaluate_public_workplace(blank_state, 0, stall) == alone

    def test_bonus_gain_real_estate(self, catalog, blank_state):
        """Real estate with 4 buildings owned adds 3 x 5."""
        build(blank_state, 0, "farm", "farm", "factory", "orchard")
        gain = HeuristicEvaluator(catalog).estimate_bonus_gain_if_built(
            blank_state, 0, catalog.lookup("real_estate"),
        )
        assert gain == 15

    def test_duplicate_penalty(self, catalog, blank_state):
        """Each owned copy lowers a card's build score by 12."""
        evaluator = HeuristicEvaluator(catalog)
        shop = catalog.lookup("coffee_shop")
        fresh = evaluator.evaluate_card_for_building(blank_state, 0, shop)
        build(blank_state, 0, "coffee_shop")
        assert evaluator.evaluate_card_for_building(blank_state, 0, shop) == fresh - 12

    def test_dangerous_building_costs_more_to_sell(self, catalog, blank_state):
        """Equal VP, but the construction company helps opponents more once public."""
        evaluator = HeuristicEvaluator(catalog)
        blank_state.round = FINAL_ROUND
        dangerous, plain = build(blank_state, 0, "construction_co", "warehouse")
        assert evaluator.sell_cost(blank_state, dangerous) == 30
        assert evaluator.sell_cost(blank_state, plain) == 16

    def test_build_opportunity_uses_cost_rule(self, catalog, glory_blank_state):
        """VP tokens that discount a card make it count as affordable."""
        evaluator = HeuristicEvaluator(catalog)
        give(glory_blank_state, 0, "gl_steam_factory", CONSUMABLE)
        assert evaluator.evaluate_build_opportunity(glory_blank_state, 0, 0, 0) == 0
        glory_blank_state.player(0).vp_tokens = 2
        assert evaluator.evaluate_build_opportunity(glory_blank_state, 0, 0, 0) > 0

    def test_keep_over_sale_counts_exemption(self, catalog, blank_state):
        """Debt covered by the law office makes keeping the building worth more."""
        player = blank_state.player(0)
        build(blank_state, 0, "law_office", "farm")
        player.money = 9
        evaluator = HeuristicEvaluator(catalog)
        assert evaluator.keep_over_sale(player, 1, 10) == 1
        player.unpaid_debts = 5
        assert evaluator.keep_over_sale(player, 1, 10) == -2
