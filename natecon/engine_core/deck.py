"""
Deck - Uid allocation, deck construction and the draw subsystem.

Cards are drawn from the end of the deck list. When the deck runs dry
the discard pile is shuffled back in; consumables never enter either
pile.
"""

from __future__ import annotations
import logging
import random

from .catalog import CONSUMABLE_DEF_ID, CardCatalog, GameVersion
from .state import Card, GameState

logger = logging.getLogger(__name__)


class UidAllocator:
    """Hands out unique card uids (`c1`, `c2`, ...) for one game."""

    def __init__(self, prefix: str = "c", start: int = 0):
        self.prefix = prefix
        self._next = start

    def allocate(self) -> str:
        self._next += 1
        return f"{self.prefix}{self._next}"

    @property
    def issued(self) -> int:
        return self._next


def build_deck(
    catalog: CardCatalog,
    version: GameVersion,
    rng: random.Random,
    uids: UidAllocator,
) -> list[Card]:
    """Create every copy of the version's deck definitions and shuffle them."""
    deck = [
        Card(uid=uids.allocate(), def_id=card_def.id)
        for card_def in catalog.deck_defs_for(version)
        for _ in range(card_def.copies)
    ]
    rng.shuffle(deck)
    return deck


def reshuffle_discard(state: GameState) -> bool:
    """Move the discard pile into the deck and shuffle. Returns False if it was empty."""
    if not state.discard:
        return False
    state.deck.extend(state.discard)
    state.discard.clear()
    state.rng.shuffle(state.deck)
    state.push_log("Deck reshuffled from the discard pile")
    logger.debug("Reshuffled discard into deck (%d cards)", len(state.deck))
    return True


def draw_cards(state: GameState, count: int) -> list[Card]:
    """
    Draw up to `count` cards from the deck.

    Stops early when both the deck and the discard pile are empty.
    """
    drawn: list[Card] = []
    for _ in range(count):
        if not state.deck and not reshuffle_discard(state):
            break
        drawn.append(state.deck.pop())
    return drawn


def draw_into_hand(state: GameState, player_id: int, count: int) -> int:
    drawn = draw_cards(state, count)
    state.player(player_id).hand.extend(drawn)
    return len(drawn)


def make_consumables(state: GameState, count: int) -> list[Card]:
    cards = []
    for _ in range(count):
        state.consumable_counter += 1
        cards.append(Card(uid=f"g{state.consumable_counter}", def_id=CONSUMABLE_DEF_ID))
    return cards


def gain_consumables(state: GameState, player_id: int, count: int) -> None:
    state.player(player_id).hand.extend(make_consumables(state, count))


def discard_card(state: GameState, card: Card) -> None:
    """Put a card on the discard pile. Consumables leave the economy instead."""
    if not card.is_consumable:
        state.discard.append(card)
