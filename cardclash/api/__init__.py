"""
API Module - Client interface.

Exposes the engine via REST API. A client:
1. Lists the card library
2. Creates a game (optionally with bot opponents)
3. Submits intents: play a card, attack, end turn
4. Answers targeting sessions when a spell asks for targets

All state is session-scoped and held in memory.
"""

from .schemas import (
    # Requests
    CreateGameRequest,
    PlayCardRequest,
    AttackRequest,
    EndTurnRequest,
    SelectTargetRequest,
    # Responses
    ActionResponse,
    GameStateResponse,
    CardListResponse,
    GameListResponse,
    EndGameResponse,
    ErrorResponse,
    HealthResponse,
    # Shared
    PlayerInfo,
    BattlefieldCardInfo,
    CardInfo,
    LogEntryInfo,
    TargetInfo,
    TargetingInfo,
    # Enums
    ActionStatus,
    ErrorCode,
    GameStatus,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateGameRequest",
    "PlayCardRequest",
    "AttackRequest",
    "EndTurnRequest",
    "SelectTargetRequest",
    # Responses
    "ActionResponse",
    "GameStateResponse",
    "CardListResponse",
    "GameListResponse",
    "EndGameResponse",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "PlayerInfo",
    "BattlefieldCardInfo",
    "CardInfo",
    "LogEntryInfo",
    "TargetInfo",
    "TargetingInfo",
    # Enums
    "ActionStatus",
    "ErrorCode",
    "GameStatus",
    # Service
    "APIService",
    "create_app",
]
