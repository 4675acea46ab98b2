"""
Action Generator - Generates all legal moves from a game state.

The action generator is used by:
1. Bots to enumerate possible moves
2. The API to show available moves
3. Tests (every generated move must be accepted by the reducer)

Design: candidates are built per phase and then filtered through the
reducer's own validation, so the generator can never disagree with
what apply() accepts.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .action import AutomatonOption, Move, VillageOption
from .catalog import CardCatalog
from .reducer import Reducer
from .state import BUILD_PHASES, CANCELLABLE_PHASES, GameState, Phase


@dataclass
class ActionGenerator:
    """Generates legal moves for one player."""
    catalog: CardCatalog
    reducer: Reducer = field(init=False, repr=False)

    def __post_init__(self):
        self.reducer = Reducer(self.catalog)

    def generate(self, state: GameState, player_id: int) -> list[Move]:
        """
        Generate all legal moves for `player_id`.

        Returns an empty list when the player has nothing to decide.
        """
        if state.phase == Phase.GAME_END or player_id not in state.players:
            return []
        acting = state.acting_player()
        if acting is not None and acting != player_id:
            return []

        candidates = self._candidates(state, player_id)
        return [m for m in candidates if self.reducer.validate(state, m) is None]

    def _candidates(self, state: GameState, pid: int) -> list[Move]:
        player = state.player(pid)
        hand_range = range(len(player.hand))
        moves: list[Move] = []

        if state.phase == Phase.WORK:
            moves.extend(Move.place_worker(pid, wp.id) for wp in state.public_workplaces)
            moves.extend(Move.place_worker_on_building(pid, slot.card.uid) for slot in player.buildings)
        elif state.phase in BUILD_PHASES:
            moves.extend(Move.select_build_card(pid, i) for i in hand_range)
        elif state.phase in (Phase.DISCARD, Phase.CLEANUP):
            moves.extend(Move.toggle_discard(pid, i) for i in hand_range)
            moves.append(Move.confirm_discard(pid))
        elif state.phase == Phase.DESIGN_OFFICE:
            revealed = state.design_office_state.revealed_cards
            moves.extend(Move.select_design_office_card(pid, i) for i in range(len(revealed)))
        elif state.phase == Phase.DUAL_CONSTRUCTION:
            moves.extend(Move.toggle_dual_card(pid, i) for i in hand_range)
            moves.append(Move.confirm_dual_construction(pid))
        elif state.phase == Phase.CHOICE_VILLAGE:
            moves.extend(Move.select_village_option(pid, o) for o in VillageOption)
        elif state.phase == Phase.CHOICE_AUTOMATON:
            moves.extend(Move.select_automaton_option(pid, o) for o in AutomatonOption)
        elif state.phase == Phase.PAYDAY:
            moves.extend(Move.toggle_payday_sell(pid, i) for i in range(len(player.buildings)))
            moves.append(Move.confirm_payday_sell(pid))
            moves.append(Move.confirm_payday(pid))

        if state.phase in CANCELLABLE_PHASES:
            moves.append(Move.cancel_action(pid))
        return moves


def legal_moves(catalog: CardCatalog, state: GameState, player_id: int) -> list[Move]:
    """Convenience function to get legal moves."""
    generator = ActionGenerator(catalog=catalog)
    return generator.generate(state, player_id)
