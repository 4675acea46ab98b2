"""
Round Flow - Turn order, payday, cleanup, round advance and game end.

The work phase passes the turn seat by seat among players with workers
left. When every worker is placed the game moves through two
simultaneous phases (payday, cleanup) before the next round opens.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging

from .catalog import CardCatalog
from .deck import discard_card
from .effect_resolver import clear_sub_states
from .rules import FINAL_ROUND, sellable_building_indices, total_wage, wage_per_worker
from .scoring import calculate_scores, score_player
from .state import (
    CleanupPlayerState,
    CleanupState,
    GameState,
    PaydayPlayerState,
    PaydayState,
    Phase,
    PlayerRoundStat,
)
from .workplaces import round_workplace, sold_building_workplace

logger = logging.getLogger(__name__)


@dataclass
class RoundFlow:
    """Phase transitions that are not tied to a single move handler."""
    catalog: CardCatalog

    # =========================================================================
    # Work phase
    # =========================================================================

    def end_action(self, state: GameState) -> None:
        """Close whatever sub-phase was open and hand the turn on."""
        clear_sub_states(state)
        state.phase = Phase.WORK
        self.advance_turn_or_phase(state)

    def cancel_to_work(self, state: GameState, player_id: int) -> None:
        """Abandon a sub-phase; the same player acts again."""
        clear_sub_states(state)
        state.phase = Phase.WORK
        state.current_player = player_id

    def advance_turn_or_phase(self, state: GameState) -> None:
        if state.total_available_workers == 0:
            self.start_payday(state)
            return
        nxt = self.next_player_with_workers(state, state.current_player)
        if nxt is not None:
            state.current_player = nxt

    def next_player_with_workers(self, state: GameState, from_player: int) -> int | None:
        for offset in range(1, state.num_players + 1):
            candidate = (from_player + offset) % state.num_players
            if state.player(candidate).available_workers > 0:
                return candidate
        return None

    # =========================================================================
    # Payday
    # =========================================================================

    def start_payday(self, state: GameState) -> None:
        clear_sub_states(state)
        state.phase = Phase.PAYDAY
        wage = wage_per_worker(state.round)
        payday = PaydayState(wage_per_worker=wage)
        state.push_log(f"Payday: ${wage} per worker")

        for pid in sorted(state.players):
            player = state.player(pid)
            owed = total_wage(state.round, player)
            pps = PaydayPlayerState(total_wage=owed)
            if player.money >= owed:
                self.pay_wage(state, pid, owed)
                pps.confirmed = True
            elif not sellable_building_indices(self.catalog, player):
                self.pay_wage(state, pid, owed)
                pps.confirmed = True
            else:
                pps.needs_selling = True
            payday.player_states[pid] = pps

        state.payday_state = payday
        logger.debug("Round %d payday started, wage %d", state.round, wage)
        if payday.all_confirmed:
            self.finish_payday(state)
        else:
            self._sync_payday_player(state)

    def pay_wage(self, state: GameState, player_id: int, amount: int) -> None:
        """Pay as much of `amount` as possible; the rest becomes unpaid debt."""
        player = state.player(player_id)
        paid = min(player.money, amount)
        player.money -= paid
        state.household += paid
        shortfall = amount - paid
        if shortfall > 0:
            player.unpaid_debts += shortfall
            state.push_log(
                f"P{player_id + 1}: wage ${amount} short by ${shortfall} "
                f"({player.unpaid_debts} unpaid in total)"
            )
        else:
            state.push_log(f"P{player_id + 1}: paid wage ${amount}")

    def sell_buildings(self, state: GameState, player_id: int, indices: list[int]) -> int:
        """Sell the given buildings for their VP; each becomes a public workplace."""
        player = state.player(player_id)
        proceeds = 0
        for i in sorted(indices, reverse=True):
            slot = player.buildings.pop(i)
            card_def = self.catalog.lookup(slot.card.def_id)
            proceeds += card_def.vp
            state.public_workplaces.append(sold_building_workplace(slot.card, card_def, state.round))
            state.push_log(f"P{player_id + 1}: sold {card_def.name} for ${card_def.vp}")
        player.money += proceeds
        return proceeds

    def confirm_payday_player(self, state: GameState, player_id: int) -> None:
        pps = state.payday_state.player_states[player_id]
        pps.confirmed = True
        pps.selected_building_indices = []
        if state.payday_state.all_confirmed:
            self.finish_payday(state)
        else:
            self._sync_payday_player(state)

    def _sync_payday_player(self, state: GameState) -> None:
        # Display only; payday moves are addressed by player id
        state.current_player = next(
            pid for pid, pps in sorted(state.payday_state.player_states.items()) if not pps.confirmed
        )

    def finish_payday(self, state: GameState) -> None:
        state.payday_state = None
        self.start_cleanup(state)

    # =========================================================================
    # Cleanup
    # =========================================================================

    def start_cleanup(self, state: GameState) -> None:
        state.phase = Phase.CLEANUP
        cleanup = CleanupState()
        for pid in sorted(state.players):
            player = state.player(pid)
            excess = max(0, len(player.hand) - player.max_hand_size)
            cleanup.player_states[pid] = CleanupPlayerState(excess_count=excess, confirmed=excess == 0)
        state.cleanup_state = cleanup
        if cleanup.all_confirmed:
            self.finish_cleanup(state)

    def finish_cleanup(self, state: GameState) -> None:
        state.cleanup_state = None
        self.record_round_stats(state)
        if state.round >= FINAL_ROUND:
            self.end_game(state)
        else:
            self.advance_round(state)

    # =========================================================================
    # Round boundaries
    # =========================================================================

    def record_round_stats(self, state: GameState) -> None:
        for pid, player in sorted(state.players.items()):
            state.stats.setdefault(pid, []).append(PlayerRoundStat(
                round=state.round,
                money=player.money,
                workers=player.workers,
                building_count=len(player.buildings),
                unpaid_debts=player.unpaid_debts,
                vp_tokens=player.vp_tokens,
                current_vp=score_player(self.catalog, pid, player).score,
            ))

    def advance_round(self, state: GameState) -> None:
        state.round += 1
        new_wp = round_workplace(state.round, state.num_players)
        if new_wp is not None:
            state.public_workplaces.append(new_wp)

        for wp in state.public_workplaces:
            wp.workers.clear()

        for pid, player in state.players.items():
            kept = []
            for slot in player.buildings:
                if slot.worker_placed and self.catalog.lookup(slot.card.def_id).consume_on_use:
                    discard_card(state, slot.card)
                    state.push_log(f"P{pid + 1}: {self.catalog.lookup(slot.card.def_id).name} is used up")
                    continue
                slot.worker_placed = False
                kept.append(slot)
            player.buildings = kept
            player.available_workers = player.workers

        state.phase = Phase.WORK
        state.current_player = state.start_player
        state.push_log(f"Round {state.round} begins (start player P{state.start_player + 1})")
        logger.info("Round %d started", state.round)

    def end_game(self, state: GameState) -> None:
        clear_sub_states(state)
        state.final_scores = calculate_scores(self.catalog, state)
        state.phase = Phase.GAME_END
        winner = state.final_scores[0]
        state.push_log(f"Game over: P{winner.player_id + 1} wins with {winner.score} VP")
        logger.info(
            "Game over after round %d: %s",
            state.round,
            ", ".join(f"P{s.player_id + 1}={s.score}" for s in state.final_scores),
        )
