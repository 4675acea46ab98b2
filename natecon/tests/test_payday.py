"""
Tests for payday, cleanup, round advance and game end.

Tests:
- Automatic wage payment
- Selling buildings to cover wages (overselling, debt)
- Hand-limit cleanup
- Round boundaries and final scoring
"""

import pytest

from ..engine_core.action import Move
from ..engine_core.state import Phase
from .helpers import build, give, play


def end_work_phase(reducer, state):
    """Spend every worker and open payday."""
    for player in state.players.values():
        player.available_workers = 0
    reducer.flow.start_payday(state)
    return state


class TestWagePayment:
    """Tests for automatic payday resolution."""

    def test_solvent_players_pay_automatically(self, reducer, blank_state):
        """Everyone with enough money pays and the round moves on."""
        household = blank_state.household
        state = end_work_phase(reducer, blank_state)
        assert state.phase == Phase.WORK
        assert state.round == 2
        assert state.player(0).money == 1
        assert state.player(1).money == 1
        assert state.household == household + 8

    def test_robots_draw_no_wage(self, reducer, blank_state):
        """Robot workers are free at payday."""
        blank_state.player(0).workers = 3
        blank_state.player(0).robot_workers = 1
        state = end_work_phase(reducer, blank_state)
        assert state.player(0).money == 1

    def test_no_sellable_buildings_takes_debt(self, reducer, blank_state):
        """A broke player with nothing to sell goes into debt at once."""
        blank_state.player(0).money = 1
        build(blank_state, 0, "law_office")
        state = end_work_phase(reducer, blank_state)
        assert state.phase == Phase.WORK
        assert state.player(0).money == 0
        assert state.player(0).unpaid_debts == 3

    def test_needs_selling_waits(self, reducer, blank_state):
        """A broke player with sellable buildings keeps payday open."""
        blank_state.player(0).money = 1
        build(blank_state, 0, "farm")
        state = end_work_phase(reducer, blank_state)
        assert state.phase == Phase.PAYDAY
        pps = state.payday_state.player_states[0]
        assert pps.needs_selling
        assert not pps.confirmed
        assert state.payday_state.player_states[1].confirmed
        assert state.current_player == 0
        assert state.invariant_violations() == []


class TestPaydaySelling:
    """Tests for toggle_payday_sell and confirm_payday_sell."""

    @pytest.fixture
    def broke_state(self, reducer, blank_state):
        """P1 owes $4 with $1 and a farm and coffee shop to sell."""
        blank_state.player(0).money = 1
        build(blank_state, 0, "farm", "coffee_shop")
        return end_work_phase(reducer, blank_state)

    def test_sell_one_building(self, reducer, broke_state):
        """Selling the farm covers the wage and the farm becomes a workplace."""
        farm_uid = broke_state.player(0).buildings[0].card.uid
        state = play(
            reducer, broke_state,
            Move.toggle_payday_sell(0, 0),
            Move.confirm_payday_sell(0),
        )
        player = state.player(0)
        assert player.money == 1
        assert player.unpaid_debts == 0
        assert [s.card.def_id for s in player.buildings] == ["coffee_shop"]
        sold = state.find_workplace(f"sold_{farm_uid}")
        assert sold is not None
        assert sold.from_building_def_id == "farm"
        assert state.round == 2

    def test_overselling_rejected(self, reducer, broke_state):
        """Selling both when one would do is rejected."""
        state = play(
            reducer, broke_state,
            Move.toggle_payday_sell(0, 0),
            Move.toggle_payday_sell(0, 1),
        )
        result = reducer.apply(state, Move.confirm_payday_sell(0))
        assert not result.success
        assert "Overselling" in result.error

    def test_toggle_twice_deselects(self, reducer, broke_state):
        """Toggling a building again removes it from the selection."""
        state = play(
            reducer, broke_state,
            Move.toggle_payday_sell(0, 1),
            Move.toggle_payday_sell(0, 1),
        )
        assert state.payday_state.player_states[0].selected_building_indices == []

    def test_confirm_without_selection_rejected(self, reducer, broke_state):
        """A player short of the wage must select something to confirm a sale."""
        result = reducer.apply(broke_state, Move.confirm_payday_sell(0))
        assert not result.success

    def test_plain_confirm_takes_debt(self, reducer, broke_state):
        """Declining to sell pays what is possible and records the rest as debt."""
        state = play(reducer, broke_state, Move.confirm_payday(0))
        player = state.player(0)
        assert player.money == 0
        assert player.unpaid_debts == 3
        assert len(player.buildings) == 2

    def test_unsellable_building_rejected(self, reducer, blank_state):
        """Unsellable buildings cannot be toggled."""
        blank_state.player(0).money = 0
        build(blank_state, 0, "mansion", "farm")
        state = end_work_phase(reducer, blank_state)
        result = reducer.apply(state, Move.toggle_payday_sell(0, 0))
        assert not result.success

    def test_debt_only_after_selling_everything(self, reducer, blank_state):
        """Debt is allowed only once every sellable building is selected."""
        player = blank_state.player(0)
        player.money = 0
        player.workers = 3
        build(blank_state, 0, "farm", "farm", "law_office")
        state = end_work_phase(reducer, blank_state)

        partial = play(reducer, state, Move.toggle_payday_sell(0, 0))
        result = reducer.apply(partial, Move.confirm_payday_sell(0))
        assert not result.success
        assert "Every sellable building" in result.error

        state = play(
            reducer, partial,
            Move.toggle_payday_sell(0, 1),
            Move.confirm_payday_sell(0),
        )
        assert state.player(0).money == 2
        assert state.player(0).unpaid_debts == 0

    def test_partial_sale_with_debt(self, reducer, blank_state):
        """Selling everything sellable and still falling short records debt."""
        player = blank_state.player(0)
        player.money = 0
        player.workers = 3
        build(blank_state, 0, "farm", "law_office")
        state = end_work_phase(reducer, blank_state)
        state = play(
            reducer, state,
            Move.toggle_payday_sell(0, 0),
            Move.confirm_payday_sell(0),
        )
        assert state.player(0).money == 0
        assert state.player(0).unpaid_debts == 2

    def test_confirmed_player_cannot_act(self, reducer, broke_state):
        """Payday moves from a confirmed player are rejected."""
        result = reducer.apply(broke_state, Move.confirm_payday(1))
        assert not result.success

    def test_work_moves_rejected_in_payday(self, reducer, broke_state):
        """Placements are not allowed during payday."""
        result = reducer.apply(broke_state, Move.place_worker(0, "mine"))
        assert not result.success


class TestCleanup:
    """Tests for the hand-limit discard."""

    @pytest.fixture
    def full_hand_state(self, reducer, blank_state):
        give(blank_state, 0, *["farm"] * 7)
        return end_work_phase(reducer, blank_state)

    def test_excess_opens_cleanup(self, full_hand_state):
        """A hand above the limit waits in cleanup."""
        state = full_hand_state
        assert state.phase == Phase.CLEANUP
        assert state.cleanup_state.player_states[0].excess_count == 2
        assert state.cleanup_state.player_states[1].confirmed
        assert state.acting_player() is None

    def test_wrong_count_rejected(self, reducer, full_hand_state):
        """Exactly the excess must be selected."""
        state = play(reducer, full_hand_state, Move.toggle_discard(0, 0))
        result = reducer.apply(state, Move.confirm_discard(0))
        assert not result.success

    def test_discard_to_limit(self, reducer, full_hand_state):
        """Discarding the excess finishes the round."""
        discards = len(full_hand_state.discard)
        state = play(
            reducer, full_hand_state,
            Move.toggle_discard(0, 0),
            Move.toggle_discard(0, 3),
            Move.confirm_discard(0),
        )
        assert len(state.player(0).hand) == 5
        assert len(state.discard) == discards + 2
        assert state.round == 2
        assert state.phase == Phase.WORK

    def test_player_without_excess_rejected(self, reducer, full_hand_state):
        """A player already under the limit has nothing to discard."""
        result = reducer.apply(full_hand_state, Move.confirm_discard(1))
        assert not result.success


class TestRoundAdvance:
    """Tests for the round boundary."""

    def test_new_workplace_opens(self, reducer, blank_state):
        """Round 2 opens the stall."""
        assert blank_state.find_workplace("stall") is None
        state = end_work_phase(reducer, blank_state)
        stall = state.find_workplace("stall")
        assert stall is not None
        assert stall.sell_count == 1
        assert stall.sell_amount == 6

    def test_workers_and_buildings_reset(self, reducer, blank_state):
        """Workers return, placements clear and used slash-and-burn is gone."""
        slots = build(blank_state, 0, "farm", "slash_burn")
        for slot in slots:
            slot.worker_placed = True
        blank_state.find_workplace("mine").workers.append(1)
        state = end_work_phase(reducer, blank_state)

        player = state.player(0)
        assert player.available_workers == player.workers
        assert [s.card.def_id for s in player.buildings] == ["farm"]
        assert not player.buildings[0].worker_placed
        assert any(c.def_id == "slash_burn" for c in state.discard)
        assert state.find_workplace("mine").workers == []
        assert state.current_player == state.start_player

    def test_round_stats_recorded(self, reducer, blank_state):
        """Each finished round adds one stats entry per player."""
        state = end_work_phase(reducer, blank_state)
        assert sorted(state.stats) == [0, 1]
        stat = state.stats[0][0]
        assert stat.round == 1
        assert stat.money == 1
        assert stat.current_vp == 1


class TestGameEnd:
    """Tests for the end of round 9."""

    @pytest.fixture
    def final_state(self, reducer, blank_state):
        blank_state.round = 9
        blank_state.player(0).money = 30
        blank_state.player(1).money = 10
        build(blank_state, 1, "mansion")
        return end_work_phase(reducer, blank_state)

    def test_game_ends_after_round_nine(self, final_state):
        """Round 9 cleanup ends the game with final scores."""
        assert final_state.phase == Phase.GAME_END
        assert final_state.round == 9
        assert final_state.final_scores is not None
        assert final_state.invariant_violations() == []

    def test_final_ranking(self, final_state):
        """Final scores are ordered highest first."""
        scores = final_state.final_scores
        assert [s.player_id for s in scores] == [1, 0]
        assert scores[0].score == 28
        assert scores[1].score == 20

    def test_moves_rejected_after_game_end(self, reducer, final_state):
        """No move is accepted once the game is over."""
        result = reducer.apply(final_state, Move.place_worker(0, "mine"))
        assert not result.success
        assert "Game is over" in result.error
