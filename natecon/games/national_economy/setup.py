"""
National Economy Game Setup - Creates initial game state.

This module handles:
- Building and shuffling the deck for the chosen version
- Picking the start player
- Dealing starting hands and money by turn order
- Laying out the initial public workplaces

The setup follows the National Economy rules for 1-4 players.
"""

from __future__ import annotations
import logging
import random

from ...engine_core.catalog import CardCatalog
from ...engine_core.deck import UidAllocator, build_deck
from ...engine_core.rules import (
    MAX_HAND_SIZE,
    MAX_WORKERS,
    STARTING_HAND,
    STARTING_MONEY,
    STARTING_WORKERS,
)
from ...engine_core.state import GameOptions, GameState, Phase, PlayerState
from ...engine_core.workplaces import initial_workplaces

logger = logging.getLogger(__name__)

MIN_PLAYERS = 1
MAX_PLAYERS = 4


def setup(
    catalog: CardCatalog,
    num_players: int,
    options: GameOptions | None = None,
    rng: random.Random | None = None,
    uids: UidAllocator | None = None,
) -> GameState:
    """
    Set up a new National Economy game.

    Args:
        catalog: Card rules to build the deck from
        num_players: Number of players (1-4)
        options: Version, online flag and seed
        rng: Random source; defaults to one seeded from options.seed
        uids: Card uid allocator; defaults to a fresh one starting at c1

    Returns:
        Initial GameState in the round 1 work phase
    """
    if not MIN_PLAYERS <= num_players <= MAX_PLAYERS:
        raise ValueError(f"National Economy supports {MIN_PLAYERS}-{MAX_PLAYERS} players")

    options = options or GameOptions()
    rng = rng or random.Random(options.seed)
    uids = uids or UidAllocator()

    deck = build_deck(catalog, options.version, rng, uids)
    start_player = rng.randrange(num_players)

    players: dict[int, PlayerState] = {}
    for pid in range(num_players):
        # Later seats in turn order start with more money
        order = (pid - start_player) % num_players
        hand = deck[-STARTING_HAND:]
        del deck[-STARTING_HAND:]
        players[pid] = PlayerState(
            hand=hand,
            money=STARTING_MONEY + order,
            workers=STARTING_WORKERS,
            available_workers=STARTING_WORKERS,
            max_hand_size=MAX_HAND_SIZE,
            max_workers=MAX_WORKERS,
        )

    state = GameState(
        version=options.version,
        num_players=num_players,
        players=players,
        public_workplaces=initial_workplaces(num_players, options.version),
        household=0,
        round=1,
        phase=Phase.WORK,
        start_player=start_player,
        current_player=start_player,
        deck=deck,
        is_online=options.is_online,
        rng=rng,
    )
    state.push_log(f"Round 1 begins ({num_players} players, P{start_player + 1} starts)")
    logger.info(
        "New %s game: %d players, start player %d, deck %d cards",
        options.version.value, num_players, start_player, len(deck),
    )
    return state
