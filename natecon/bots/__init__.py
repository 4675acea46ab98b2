"""
Bots module - CPU opponent implementations.

Provides:
- BotPolicy: Interface for bot decision-making
- HeuristicEvaluator: Scores placements, cards and sales
- Phase strategies and decide_move(): the CPU engine entry point
- CPUBot: One CPU seat
"""

from .policy import BotPolicy, HeuristicPolicy, RandomPolicy, FirstLegalPolicy
from .evaluator import HeuristicEvaluator, CardCategory, Stage, card_category, game_stage
from .strategies import Difficulty, PHASE_STRATEGIES
from .cpu_bot import CPUBot, decide_move

__all__ = [
    "BotPolicy",
    "HeuristicPolicy",
    "RandomPolicy",
    "FirstLegalPolicy",
    "HeuristicEvaluator",
    "CardCategory",
    "Stage",
    "card_category",
    "game_stage",
    "Difficulty",
    "PHASE_STRATEGIES",
    "CPUBot",
    "decide_move",
]
