"""
National Economy - Card data and game setup.
"""

from .cards import BASE_CARD_DEFS, GLORY_CARD_DEFS, default_catalog
from .setup import setup

__all__ = [
    "BASE_CARD_DEFS",
    "GLORY_CARD_DEFS",
    "default_catalog",
    "setup",
]
