"""
Game Loop - Drives CPU seats until a human decision is needed.

The loop:
1. A human seat submits a move through the session
2. The loop asks every CPU seat that must decide for its move
3. Moves go through the reducer like any human move
4. Stops when a human seat must act or the game ends

Payday and cleanup are simultaneous: every unconfirmed seat decides,
CPU seats first, and the phase waits for the humans.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import TYPE_CHECKING

from ..bots import BotPolicy, HeuristicPolicy
from ..engine_core.action import Move
from ..engine_core.catalog import CardCatalog
from ..engine_core.reducer import Reducer
from ..engine_core.scoring import PlayerScore
from ..engine_core.state import GameOptions, GameState, Phase
from ..games.national_economy import setup

if TYPE_CHECKING:
    from .manager import Session

logger = logging.getLogger(__name__)

# Consecutive steps without an accepted move before a game counts as stuck
STUCK_THRESHOLD = 50

# Hard cap on accepted moves per loop run or simulated game
MAX_MOVES = 20_000


class GameStuckError(RuntimeError):
    """No seat can make progress, or the move cap was hit."""


class LoopState(Enum):
    """State of the game loop."""
    RUNNING_CPU = "running_cpu"
    WAITING_HUMAN_ACTION = "waiting_human_action"
    GAME_OVER = "game_over"


@dataclass
class TurnResult:
    """
    Result of running CPU turns.

    Contains the CPU moves taken and who the game is waiting on.
    """
    success: bool
    loop_state: LoopState

    # CPU moves applied, in order
    cpu_actions: list[str] = field(default_factory=list)

    # Seats the game is waiting on
    waiting_on: list[int] = field(default_factory=list)

    errors: list[str] = field(default_factory=list)

    # Game over info
    final_scores: list[PlayerScore] | None = None


def pending_seats(state: GameState) -> list[int]:
    """Seats that must decide before the game can advance."""
    if state.phase == Phase.GAME_END:
        return []
    if state.phase == Phase.PAYDAY and state.payday_state is not None:
        return [pid for pid, ps in sorted(state.payday_state.player_states.items()) if not ps.confirmed]
    if state.phase == Phase.CLEANUP and state.cleanup_state is not None:
        return [pid for pid, cs in sorted(state.cleanup_state.player_states.items()) if not cs.confirmed]
    acting = state.acting_player()
    return [acting] if acting is not None else []


class GameLoop:
    """
    The CPU turn driver for one session.

    Usage:
        loop = GameLoop(session)
        session.submit_move(human_move)
        result = loop.run_cpu_turns()
        if result.loop_state == LoopState.WAITING_HUMAN_ACTION:
            prompt(result.waiting_on)
    """

    def __init__(self, session: Session, stuck_threshold: int = STUCK_THRESHOLD, max_moves: int = MAX_MOVES):
        self.session = session
        self.stuck_threshold = stuck_threshold
        self.max_moves = max_moves
        self.state = LoopState.WAITING_HUMAN_ACTION

    def run_cpu_turns(self) -> TurnResult:
        """
        Run CPU decisions until a human seat must act or the game ends.

        Holds the session lock for the whole run.
        Raises GameStuckError when the CPU seats stop making progress.
        """
        session = self.session
        actions: list[str] = []
        idle = 0

        with session.lock:
            while True:
                state = session.game_state
                seats = pending_seats(state)
                if not seats:
                    self.state = LoopState.GAME_OVER
                    return TurnResult(
                        success=True,
                        loop_state=self.state,
                        cpu_actions=actions,
                        final_scores=state.final_scores,
                    )

                cpu_seats = [pid for pid in seats if session.is_cpu(pid)]
                if not cpu_seats:
                    self.state = LoopState.WAITING_HUMAN_ACTION
                    return TurnResult(success=True, loop_state=self.state, cpu_actions=actions, waiting_on=seats)

                self.state = LoopState.RUNNING_CPU
                progressed = False
                for pid in cpu_seats:
                    move = session.cpu_bots[pid].select_move(session.game_state)
                    if move is None:
                        continue
                    result = session.submit_move(move)
                    if result.success:
                        actions.append(move.describe())
                        progressed = True
                        break

                if progressed:
                    idle = 0
                else:
                    idle += 1
                    if idle >= self.stuck_threshold:
                        raise GameStuckError(
                            f"CPU seats {cpu_seats} made no progress in {state.phase.value} "
                            f"(round {state.round})"
                        )
                if len(actions) >= self.max_moves:
                    raise GameStuckError(f"CPU move cap of {self.max_moves} reached")


def simulate_game(
    catalog: CardCatalog,
    num_players: int,
    options: GameOptions | None = None,
    policies: dict[int, BotPolicy] | None = None,
    stuck_threshold: int = STUCK_THRESHOLD,
    max_moves: int = MAX_MOVES,
) -> GameState:
    """
    Play a whole game with bot policies in every seat.

    Seats without a policy use a HeuristicPolicy seeded from the options.
    Returns the final state (phase GAME_END, final_scores set).
    """
    options = options or GameOptions()
    state = setup(catalog, num_players, options)
    reducer = Reducer(catalog)
    default = HeuristicPolicy(catalog, seed=options.seed)
    seat_policies = {pid: (policies or {}).get(pid, default) for pid in range(num_players)}

    idle = 0
    while state.phase != Phase.GAME_END:
        progressed = False
        for pid in pending_seats(state):
            move: Move | None = seat_policies[pid].select_move(state, pid)
            if move is None:
                continue
            result = reducer.apply(state, move)
            if result.success:
                state = result.new_state
                progressed = True
                break
            logger.debug("Simulation rejected %s: %s", move.describe(), result.error)

        if progressed:
            idle = 0
        else:
            idle += 1
            if idle >= stuck_threshold:
                raise GameStuckError(f"Simulation stuck in {state.phase.value} (round {state.round})")
        if state.move_count >= max_moves:
            raise GameStuckError(f"Simulation move cap of {max_moves} reached")

    logger.info(
        "Simulated %d-player %s game in %d moves",
        num_players, options.version.value, state.move_count,
    )
    return state
