"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between clients and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes (ErrorResponse):
- GAME_NOT_FOUND: Game does not exist or has ended
- NO_TARGETING_SESSION: No targeting session is pending
- INVALID_TARGET: The submitted target is not a candidate
- VALIDATION_ERROR: Request parameters are invalid

Rules failures (not your turn, not enough energy, ...) are not HTTP
errors: they come back as an ActionResponse with success=false and the
engine's error_code.
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class GameStatus(str, Enum):
    """Game status values."""
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class ActionStatus(str, Enum):
    """Outcome of an intent submitted over the API."""
    COMPLETED = "completed"
    FAILED = "failed"
    PENDING_TARGETING = "pending_targeting"


class ErrorCode(str, Enum):
    """Structured error codes."""
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    NO_TARGETING_SESSION = "NO_TARGETING_SESSION"
    INVALID_TARGET = "INVALID_TARGET"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class TriggeredAbilityInfo(BaseModel):
    """A triggered ability printed on a card."""
    trigger: str
    description: str = ""


class CardInfo(BaseModel):
    """Card definition for display."""
    card_id: str
    name: str
    cost: int
    card_type: str = Field(description="creature, spell, artifact, planet, infrastructure")
    description: str = ""
    attack: Optional[int] = None
    health: Optional[int] = None
    has_effect_script: bool = False
    triggered_abilities: list[TriggeredAbilityInfo] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class BattlefieldCardInfo(BaseModel):
    """A card instance on a battlefield."""
    instance_id: str
    card_id: str
    name: str
    sapped: bool
    current_health: int
    max_health: int
    attack: Optional[int] = None

    model_config = {"from_attributes": True}


class PlayerInfo(BaseModel):
    """Player information for display."""
    player_id: str
    is_bot: bool = False
    is_current_turn: bool = False
    health: int
    max_health: int
    energy: int
    max_energy: int
    hand: list[str] = Field(default_factory=list, description="Card ids in hand")
    battlefield: list[BattlefieldCardInfo] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class LogEntryInfo(BaseModel):
    """One game log entry."""
    seq: int
    player_id: str
    action: str
    description: str = ""
    card_id: Optional[str] = None
    instance_id: Optional[str] = None
    target_id: Optional[str] = None
    amount: Optional[int] = None


class TargetInfo(BaseModel):
    """A target: a player, or a creature on a player's battlefield."""
    target_type: str = Field(description="player or creature")
    player_id: str
    instance_id: Optional[str] = None


class TargetingInfo(BaseModel):
    """A pending targeting session."""
    session_id: str
    description: str
    target_type: str
    target_count: int
    sourcer_id: Optional[str] = None
    candidates: list[TargetInfo] = Field(default_factory=list)
    selected: list[TargetInfo] = Field(default_factory=list)


# =============================================================================
# Request Models
# =============================================================================

class CreateGameRequest(BaseModel):
    """Request to create a new game."""
    player_ids: list[str] = Field(
        default_factory=lambda: ["player_1", "player_2"],
        min_length=2,
        description="Players in turn order",
    )
    bot_players: dict[str, str] = Field(
        default_factory=dict,
        description="player_id -> bot policy (first_legal, random)",
    )
    random_seed: Optional[int] = Field(None, description="Seed for reproducible games")
    deck: Optional[list[str]] = Field(None, description="Custom deck of card ids")


class PlayCardRequest(BaseModel):
    """Request to play a card from hand."""
    player_id: str
    card_id: str


class AttackRequest(BaseModel):
    """
    Request to attack with a creature.

    Omit target_instance_id to attack the player directly.
    """
    player_id: str
    instance_id: str = Field(..., description="Attacking creature")
    target_player_id: str
    target_instance_id: Optional[str] = Field(None, description="Creature to attack")


class EndTurnRequest(BaseModel):
    """Request to end the active player's turn."""
    player_id: str


class SelectTargetRequest(BaseModel):
    """Toggle a target in the pending targeting session."""
    target_type: str = Field(..., description="player or creature")
    player_id: str
    instance_id: Optional[str] = None


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    game_id: str
    status: GameStatus
    turn_number: int
    current_player_id: Optional[str] = None
    winner_id: Optional[str] = None
    players: list[PlayerInfo] = Field(default_factory=list)
    deck_size: int = 0
    graveyard: list[str] = Field(default_factory=list)
    log: list[LogEntryInfo] = Field(default_factory=list)
    targeting: Optional[TargetingInfo] = None
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """
    Response to an intent.

    status=pending_targeting means the intent is suspended; answer it
    through the /targeting endpoints.
    """
    success: bool
    status: ActionStatus
    error: Optional[str] = None
    error_code: Optional[str] = None
    changes: list[str] = Field(default_factory=list)
    targeting: Optional[TargetingInfo] = None
    game_state: Optional[GameStateResponse] = None
    api_version: str = "v1"


class CardListResponse(BaseModel):
    """The card library."""
    cards: list[CardInfo]
    count: int


class GameListResponse(BaseModel):
    """Response listing active games."""
    games: list[str]
    count: int


class EndGameResponse(BaseModel):
    """Response after ending a game."""
    success: bool
    game_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
