"""
Bot Policy - Interface for bot decision-making.

A BotPolicy takes a game state and a seat and returns the next move
for that seat, or None when it has nothing to decide. Policies never
mutate state.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import random

from ..engine_core.action import Move, MoveType
from ..engine_core.action_generator import ActionGenerator
from ..engine_core.catalog import CardCatalog
from ..engine_core.rules import dual_cost_groups
from ..engine_core.state import GameState
from .cpu_bot import CPUBot
from .strategies import Difficulty


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a bot selects moves.
    Implementations range from the first legal move to the full
    phase-aware heuristic engine.
    """

    @abstractmethod
    def select_move(self, state: GameState, player_id: int) -> Move | None:
        """
        Select the next move for `player_id`.

        Returns None if the player has nothing to decide.
        """

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class _StrategyPolicy(BotPolicy):
    difficulty: Difficulty

    def __init__(self, catalog: CardCatalog, seed: int | None = None):
        self.catalog = catalog
        self.rng = random.Random(seed)
        self._bots: dict[int, CPUBot] = {}

    def select_move(self, state: GameState, player_id: int) -> Move | None:
        bot = self._bots.get(player_id)
        if bot is None:
            bot = CPUBot(player_id=player_id, catalog=self.catalog, difficulty=self.difficulty, rng=self.rng)
            self._bots[player_id] = bot
        return bot.select_move(state)


class HeuristicPolicy(_StrategyPolicy):
    """Phase strategies choosing the highest-scoring candidate."""
    difficulty = Difficulty.HEURISTIC


class RandomPolicy(_StrategyPolicy):
    """
    Phase strategies choosing uniformly among candidates.

    Used for:
    - Testing
    - Baseline comparison
    """
    difficulty = Difficulty.RANDOM


# Moves that complete a pending decision; tried before anything else
_FINISHING_MOVES = (
    MoveType.CONFIRM_DISCARD,
    MoveType.CONFIRM_DUAL_CONSTRUCTION,
    MoveType.CONFIRM_PAYDAY_SELL,
    MoveType.CONFIRM_PAYDAY,
)


class FirstLegalPolicy(BotPolicy):
    """
    First-legal policy - selects the first legal move.

    Confirmations come first and toggles never undo a selection, so
    the policy always makes progress.

    Used for:
    - Deterministic testing
    - Baseline comparison
    """

    def __init__(self, catalog: CardCatalog):
        self.catalog = catalog
        self.generator = ActionGenerator(catalog)

    def select_move(self, state: GameState, player_id: int) -> Move | None:
        moves = self.generator.generate(state, player_id)
        if not moves:
            return None
        for move in moves:
            if move.move_type in _FINISHING_MOVES:
                return move
        for move in moves:
            if move.move_type == MoveType.CANCEL_ACTION or self._deselects(state, move):
                continue
            if move.move_type == MoveType.TOGGLE_DUAL_CARD and not self._pairable(state, move):
                continue
            return move
        return moves[-1]

    def _deselects(self, state: GameState, move: Move) -> bool:
        index = move.payload.index
        if move.move_type == MoveType.TOGGLE_DISCARD:
            if state.cleanup_state is not None:
                return index in state.cleanup_state.player_states[move.player_id].selected_indices
            return index in state.discard_state.selected_indices
        if move.move_type == MoveType.TOGGLE_DUAL_CARD:
            return index in state.dual_construction_state.selected_card_indices
        if move.move_type == MoveType.TOGGLE_PAYDAY_SELL:
            return index in state.payday_state.player_states[move.player_id].selected_building_indices
        return False

    def _pairable(self, state: GameState, move: Move) -> bool:
        # Only cards with an affordable same-cost partner lead to a confirm
        player = state.player(move.player_id)
        for cost, indices in dual_cost_groups(self.catalog, player).items():
            if move.payload.index in indices:
                return len(indices) >= 2 and len(player.hand) - 2 >= cost
        return False
