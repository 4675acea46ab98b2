"""
Player View - Redacts hidden information for one seat.

Other players' hands keep their length and card uids but lose their
definitions; the deck keeps only its length. Design office reveals
are private to the player who revealed them. The view gets a fresh
random generator so it does not carry the one behind future reshuffles.
"""

from __future__ import annotations
import random

from .state import Card, GameState

HIDDEN = "hidden"


def _hide(card: Card, keep_uid: bool) -> Card:
    return Card(uid=card.uid if keep_uid else HIDDEN, def_id=HIDDEN)


def player_view(state: GameState, viewer_id: int | None) -> GameState:
    """
    Return a copy of `state` as seen by `viewer_id`.

    A viewer of None (spectator) sees no hand at all.
    """
    view = state.clone()
    view.rng = random.Random()
    for pid, player in view.players.items():
        if pid != viewer_id:
            player.hand = [_hide(c, keep_uid=True) for c in player.hand]
    view.deck = [_hide(c, keep_uid=False) for c in view.deck]

    dos = view.design_office_state
    if dos is not None and dos.player_id != viewer_id:
        dos.revealed_cards = [_hide(c, keep_uid=True) for c in dos.revealed_cards]
    return view
