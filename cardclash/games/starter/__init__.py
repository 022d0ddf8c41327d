"""
Starter - The sci-fi starter game.

This module contains:
- The starter card library (creatures, spells, artifacts)
- The standard deck composition
- Game setup and rematch
"""

from .cards import STARTER_CARDS, STANDARD_DECK_COPIES, starter_catalog, get_card_by_id, create_standard_deck
from .setup import setup_game, create_rematch

__all__ = [
    "STARTER_CARDS",
    "STANDARD_DECK_COPIES",
    "starter_catalog",
    "get_card_by_id",
    "create_standard_deck",
    "setup_game",
    "create_rematch",
]
