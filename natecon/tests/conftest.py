"""
Pytest fixtures for natecon tests.
"""

import pytest

from ..engine_core.catalog import CardCatalog, CardDef, EffectTag, GameVersion
from ..engine_core.reducer import Reducer
from ..engine_core.state import GameOptions, GameState
from ..games.national_economy import BASE_CARD_DEFS, default_catalog, setup
from .helpers import bare_state


@pytest.fixture
def catalog() -> CardCatalog:
    """Catalog with the base and Glory decks."""
    return default_catalog()


@pytest.fixture
def reducer(catalog: CardCatalog) -> Reducer:
    return Reducer(catalog)


@pytest.fixture
def base_state(catalog: CardCatalog) -> GameState:
    """Freshly set up 2-player base game."""
    return setup(catalog, 2, GameOptions(seed=7))


@pytest.fixture
def glory_state(catalog: CardCatalog) -> GameState:
    """Freshly set up 2-player Glory game."""
    return setup(catalog, 2, GameOptions(version=GameVersion.GLORY, seed=7))


@pytest.fixture
def blank_state(catalog: CardCatalog) -> GameState:
    """2-player base game with empty hands and P1 to act."""
    return bare_state(catalog)


@pytest.fixture
def glory_blank_state(catalog: CardCatalog) -> GameState:
    """2-player Glory game with empty hands and P1 to act."""
    return bare_state(catalog, version=GameVersion.GLORY)


@pytest.fixture
def vp5_catalog() -> CardCatalog:
    """Base deck plus a sellable 5 VP building."""
    shop = CardDef(
        id="test_stand", name="Test Stand", cost=1, vp=5, copies=1,
        effect_text="Receive $5 from the household", effect=EffectTag.COFFEE_SHOP,
    )
    return CardCatalog({GameVersion.BASE: BASE_CARD_DEFS + (shop,)})
