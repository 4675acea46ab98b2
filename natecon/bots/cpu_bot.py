"""
CPU Bot - Entry point for CPU seat decisions.

decide_move() dispatches on the game phase to the matching strategy.
The bot never mutates state: it returns a Move that the caller submits
through the reducer like any human move.

The bot does NOT:
- Search ahead (no MCTS, minimax)
- Read other players' hands or the deck order
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from ..engine_core.action import Move
from ..engine_core.action_generator import ActionGenerator
from ..engine_core.catalog import CardCatalog
from ..engine_core.state import GameState
from .evaluator import HeuristicEvaluator
from .strategies import PHASE_STRATEGIES, BotContext, Difficulty

logger = logging.getLogger(__name__)


def decide_move(
    catalog: CardCatalog,
    state: GameState,
    player_id: int,
    difficulty: Difficulty = Difficulty.HEURISTIC,
    rng: random.Random | None = None,
) -> Move | None:
    """
    Decide the next move for a CPU seat.

    Returns None when the seat has nothing to decide in this phase.
    """
    bot = CPUBot(player_id=player_id, catalog=catalog, difficulty=difficulty, rng=rng or random.Random())
    return bot.select_move(state)


@dataclass
class CPUBot:
    """
    One CPU seat.

    Usage:
        bot = CPUBot(player_id=1, catalog=catalog)
        move = bot.select_move(state)
        if move is not None:
            result = reducer.apply(state, move)
    """
    player_id: int
    catalog: CardCatalog
    difficulty: Difficulty = Difficulty.HEURISTIC
    rng: random.Random = field(default_factory=random.Random)
    evaluator: HeuristicEvaluator = field(init=False, repr=False)
    generator: ActionGenerator = field(init=False, repr=False)

    def __post_init__(self):
        self.evaluator = HeuristicEvaluator(self.catalog)
        self.generator = ActionGenerator(self.catalog)

    def select_move(self, state: GameState) -> Move | None:
        strategy = PHASE_STRATEGIES.get(state.phase)
        if strategy is None:
            return None
        ctx = BotContext(
            catalog=self.catalog,
            evaluator=self.evaluator,
            generator=self.generator,
            state=state,
            player_id=self.player_id,
            difficulty=self.difficulty,
            rng=self.rng,
        )
        move = strategy(ctx)
        if move is not None:
            logger.debug("CPU P%d (%s) chose %s", self.player_id + 1, self.difficulty.value, move.describe())
        return move
