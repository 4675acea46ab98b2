"""
Tests for the catalog, rule helpers, draw subsystem and setup.

Tests:
- Catalog lookup and deck selection
- Wage table and construction cost
- Draw and reshuffle
- Initial state
"""

import random

import pytest

from ..engine_core.catalog import (
    CONSUMABLE_DEF_ID,
    CONSUMABLE_DEF,
    CardCatalog,
    CardDef,
    EffectTag,
    GameVersion,
    UnknownCardError,
)
from ..engine_core.deck import UidAllocator, build_deck, discard_card, draw_cards
from ..engine_core.rules import (
    can_afford,
    construction_cost,
    effect_precondition,
    is_workable,
    payment_capacity,
    total_wage,
    wage_per_worker,
)
from ..engine_core.state import BuildMode, GameOptions, Phase, PlayerState
from ..games.national_economy import setup
from .helpers import CONSUMABLE, card, give


class TestCatalog:
    """Tests for CardCatalog."""

    def test_lookup_known_card(self, catalog):
        """Lookup returns the shared definition."""
        farm = catalog.lookup("farm")
        assert farm.name == "Farm"
        assert farm.is_farm
        assert farm.cost == 0

    def test_lookup_unknown_card_raises(self, catalog):
        """Unknown ids raise UnknownCardError, a KeyError."""
        with pytest.raises(UnknownCardError):
            catalog.lookup("no_such_card")
        with pytest.raises(KeyError):
            catalog.lookup("no_such_card")

    def test_consumable_lookup(self, catalog):
        """Consumables resolve to the shared consumable definition."""
        assert catalog.lookup(CONSUMABLE_DEF_ID) is CONSUMABLE_DEF
        assert CONSUMABLE_DEF_ID in catalog

    def test_glory_deck_is_glory_only(self, catalog):
        """A Glory game draws from the Glory deck alone."""
        defs = catalog.deck_defs_for(GameVersion.GLORY)
        assert defs
        assert all(d.id.startswith("gl_") for d in defs)

    def test_lookup_covers_both_sets(self, catalog):
        """One catalog resolves base and Glory ids."""
        assert catalog.lookup("mansion").vp == 28
        assert catalog.lookup("gl_monument").unsellable

    def test_duplicate_ids_rejected(self):
        """Two definitions with one id are a data error."""
        twin = CardDef(id="twin", name="Twin", cost=1, vp=1)
        with pytest.raises(ValueError):
            CardCatalog({GameVersion.BASE: (twin, twin)})


class TestWages:
    """Tests for the wage table."""

    @pytest.mark.parametrize("round_number,wage", [
        (1, 2), (2, 2), (3, 3), (5, 3), (6, 4), (7, 4), (8, 5), (9, 5),
    ])
    def test_wage_per_worker(self, round_number, wage):
        """Wage rises with the round bands."""
        assert wage_per_worker(round_number) == wage

    def test_robots_are_not_paid(self):
        """Total wage counts human workers only."""
        player = PlayerState(workers=3, robot_workers=1)
        assert total_wage(1, player) == 4


class TestConstructionCost:
    """Tests for cost rules and affordability."""

    def test_vp_token_discount(self, catalog):
        """Steam factory costs 1 less with 2 VP tokens."""
        steam = catalog.lookup("gl_steam_factory")
        assert construction_cost(steam, PlayerState(vp_tokens=1)) == 2
        assert construction_cost(steam, PlayerState(vp_tokens=2)) == 1

    def test_reduction_floors_at_zero(self, catalog):
        """Cost never goes negative."""
        assert construction_cost(catalog.lookup("coffee_shop"), PlayerState(), reduction=3) == 0

    def test_can_afford_counts_other_cards(self, catalog):
        """The card being built cannot pay for itself."""
        player = PlayerState(hand=[card("factory"), card("farm")])
        assert not can_afford(catalog, player, player.hand[0])
        player.hand.append(card("farm"))
        assert can_afford(catalog, player, player.hand[0])

    def test_modernism_counts_consumables_double(self, catalog):
        """Two consumables pay a cost of 3 under modernism but not normally."""
        player = PlayerState(hand=[card("gl_monument"), card(CONSUMABLE), card(CONSUMABLE)])
        monument = player.hand[0]
        assert payment_capacity(player, [monument.uid], consumable_weight=2) == 4
        assert can_afford(catalog, player, monument, mode=BuildMode.MODERNISM)
        assert not can_afford(catalog, player, monument)

    def test_consumables_cannot_be_built(self, catalog):
        """Consumables are never buildable."""
        player = PlayerState(hand=[card(CONSUMABLE)])
        assert not can_afford(catalog, player, player.hand[0], mode=BuildMode.FREE)


class TestPreconditions:
    """Tests for building activation preconditions."""

    def test_restaurant_needs_household(self, catalog, blank_state):
        """Restaurant needs $15 in the household and a card to discard."""
        player = blank_state.player(0)
        give(blank_state, 0, "farm")
        blank_state.household = 10
        assert effect_precondition(catalog, blank_state, player, EffectTag.RESTAURANT) is not None
        blank_state.household = 15
        assert effect_precondition(catalog, blank_state, player, EffectTag.RESTAURANT) is None

    def test_factory_needs_two_cards(self, catalog, blank_state):
        """Factory needs 2 cards in hand."""
        player = blank_state.player(0)
        give(blank_state, 0, "farm")
        assert effect_precondition(catalog, blank_state, player, EffectTag.FACTORY) is not None
        give(blank_state, 0, "farm")
        assert effect_precondition(catalog, blank_state, player, EffectTag.FACTORY) is None

    def test_passive_buildings_are_not_workable(self, catalog):
        """Buildings without a work effect take no workers."""
        assert not is_workable(catalog.lookup("mansion"))
        assert not is_workable(catalog.lookup("warehouse"))
        assert is_workable(catalog.lookup("farm"))


class TestDeck:
    """Tests for the draw subsystem."""

    def test_uids_are_sequential(self):
        """The allocator issues c1, c2, ..."""
        uids = UidAllocator()
        assert [uids.allocate() for _ in range(3)] == ["c1", "c2", "c3"]
        assert uids.issued == 3

    def test_build_deck_makes_every_copy(self, catalog):
        """One card per copy, each with a unique uid."""
        deck = build_deck(catalog, GameVersion.BASE, random.Random(1), UidAllocator())
        assert len(deck) == sum(d.copies for d in catalog.deck_defs_for(GameVersion.BASE))
        assert len({c.uid for c in deck}) == len(deck)

    def test_draw_reshuffles_discard(self, blank_state):
        """An empty deck is refilled from the discard pile."""
        blank_state.deck = []
        blank_state.discard = [card("farm"), card("farm")]
        drawn = draw_cards(blank_state, 3)
        assert len(drawn) == 2
        assert blank_state.discard == []
        assert blank_state.deck == []

    def test_draw_from_empty_piles(self, blank_state):
        """Drawing with nothing left returns nothing."""
        blank_state.deck = []
        blank_state.discard = []
        assert draw_cards(blank_state, 2) == []

    def test_consumables_never_reach_discard(self, blank_state):
        """Discarded consumables leave the game."""
        discard_card(blank_state, card(CONSUMABLE))
        assert blank_state.discard == []


class TestSetup:
    """Tests for game setup."""

    def test_initial_players(self, base_state):
        """Every player starts with 3 cards and 2 workers."""
        assert base_state.round == 1
        assert base_state.phase == Phase.WORK
        assert base_state.current_player == base_state.start_player
        for player in base_state.players.values():
            assert len(player.hand) == 3
            assert player.workers == 2
            assert player.available_workers == 2
            assert player.max_hand_size == 5

    def test_money_follows_turn_order(self, catalog):
        """Later seats in turn order start with more money."""
        state = setup(catalog, 4, GameOptions(seed=3))
        for pid, player in state.players.items():
            order = (pid - state.start_player) % 4
            assert player.money == 5 + order

    def test_deck_size(self, catalog, base_state):
        """Starting hands come out of the deck."""
        total = sum(d.copies for d in catalog.deck_defs_for(GameVersion.BASE))
        assert len(base_state.deck) == total - 6

    def test_seed_is_deterministic(self, catalog):
        """The same seed deals the same game."""
        a = setup(catalog, 3, GameOptions(seed=11))
        b = setup(catalog, 3, GameOptions(seed=11))
        assert [c.uid for c in a.deck] == [c.uid for c in b.deck]
        assert a.start_player == b.start_player

    @pytest.mark.parametrize("num_players", [0, 5])
    def test_invalid_player_count(self, catalog, num_players):
        """Only 1-4 players are supported."""
        with pytest.raises(ValueError):
            setup(catalog, num_players)

    def test_two_player_workplaces(self, base_state):
        """Two players get one carpenter."""
        ids = [wp.id for wp in base_state.public_workplaces]
        assert ids == ["quarry", "mine", "school", "carpenter"]

    def test_four_player_workplaces(self, catalog):
        """Four players get three carpenters."""
        state = setup(catalog, 4, GameOptions(seed=1))
        ids = {wp.id for wp in state.public_workplaces}
        assert {"carpenter", "carpenter_2", "carpenter_3"} <= ids

    def test_glory_setup(self, glory_state):
        """Glory adds the ruins and deals Glory cards only."""
        assert glory_state.find_workplace("ruins") is not None
        assert all(c.def_id.startswith("gl_") for c in glory_state.deck)

    def test_initial_state_is_sound(self, base_state, glory_state):
        """Setup satisfies every structural invariant."""
        assert base_state.invariant_violations() == []
        assert glory_state.invariant_violations() == []
