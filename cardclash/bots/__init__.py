"""
Bots module - Automated players.

Provides:
- BotPolicy: Interface for bot decision-making
- RandomPolicy / FirstLegalPolicy: Baseline policies
- BotPlayer: Plays turns on a GameEngine and answers targeting
"""

from .policy import BotPolicy, BotDecision, RandomPolicy, FirstLegalPolicy, BotPlayer

__all__ = [
    "BotPolicy",
    "BotDecision",
    "RandomPolicy",
    "FirstLegalPolicy",
    "BotPlayer",
]
