"""
State builders shared by the tests.
"""

from itertools import count

from ..engine_core.action import Move
from ..engine_core.catalog import CONSUMABLE_DEF_ID, CardCatalog, GameVersion
from ..engine_core.reducer import Reducer
from ..engine_core.state import BuildingSlot, Card, GameOptions, GameState
from ..games.national_economy import setup

CONSUMABLE = CONSUMABLE_DEF_ID

_uids = count(1)


def card(def_id: str) -> Card:
    """A card with a uid no deck will ever issue."""
    return Card(uid=f"t{next(_uids)}", def_id=def_id)


def give(state: GameState, player_id: int, *def_ids: str) -> list[Card]:
    """Append cards to a player's hand."""
    cards = [card(d) for d in def_ids]
    state.player(player_id).hand.extend(cards)
    return cards


def build(state: GameState, player_id: int, *def_ids: str) -> list[BuildingSlot]:
    """Put buildings straight into a player's building area."""
    slots = [BuildingSlot(card=card(d)) for d in def_ids]
    state.player(player_id).buildings.extend(slots)
    return slots


def bare_state(
    catalog: CardCatalog,
    num_players: int = 2,
    version: GameVersion = GameVersion.BASE,
    seed: int = 1,
) -> GameState:
    """A round 1 work phase with empty hands, $5 each and P1 to act."""
    state = setup(catalog, num_players, GameOptions(version=version, seed=seed))
    state.start_player = 0
    state.current_player = 0
    for player in state.players.values():
        player.hand = []
        player.money = 5
    return state


def play(reducer: Reducer, state: GameState, *moves: Move) -> GameState:
    """Apply moves in order, failing the test on the first rejection."""
    for move in moves:
        result = reducer.apply(state, move)
        assert result.success, f"{move.describe()} rejected: {result.error}"
        state = result.new_state
    return state
