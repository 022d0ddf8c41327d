"""
Action System - Actions, payloads, and results.

Actions represent:
1. Player actions (play a card, attack, end turn)
2. Targeting responses (select, confirm, cancel)

Bots and the CLI produce Action objects; the engine turns them into
validated transactions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(Enum):
    """Types of actions in the system."""
    PLAY_CARD = "play_card"
    ATTACK_PLAYER = "attack_player"
    ATTACK_CREATURE = "attack_creature"
    END_TURN = "end_turn"


class ErrorCode:
    """Machine-readable failure codes carried by ActionResult."""
    GAME_NOT_ACTIVE = "GAME_NOT_ACTIVE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
    INSUFFICIENT_ENERGY = "INSUFFICIENT_ENERGY"
    UNKNOWN_CARD = "UNKNOWN_CARD"
    CREATURE_NOT_FOUND = "CREATURE_NOT_FOUND"
    CREATURE_SAPPED = "CREATURE_SAPPED"
    NO_ATTACK = "NO_ATTACK"
    INVALID_TARGET = "INVALID_TARGET"
    TARGETING_PENDING = "TARGETING_PENDING"
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
    SCRIPT_FAILED = "SCRIPT_FAILED"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields; validation happens
    in the reducer.
    """
    player_id: str | None = None
    card_id: str | None = None
    instance_id: str | None = None
    target_player_id: str | None = None
    target_instance_id: str | None = None

    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """A complete action a player can take."""
    action_type: ActionType
    payload: ActionPayload

    @classmethod
    def play_card(cls, player_id: str, card_id: str) -> Action:
        return cls(
            action_type=ActionType.PLAY_CARD,
            payload=ActionPayload(player_id=player_id, card_id=card_id),
        )

    @classmethod
    def attack_player(cls, player_id: str, instance_id: str, target_player_id: str) -> Action:
        return cls(
            action_type=ActionType.ATTACK_PLAYER,
            payload=ActionPayload(
                player_id=player_id,
                instance_id=instance_id,
                target_player_id=target_player_id,
            ),
        )

    @classmethod
    def attack_creature(
        cls,
        player_id: str,
        instance_id: str,
        target_player_id: str,
        target_instance_id: str,
    ) -> Action:
        return cls(
            action_type=ActionType.ATTACK_CREATURE,
            payload=ActionPayload(
                player_id=player_id,
                instance_id=instance_id,
                target_player_id=target_player_id,
                target_instance_id=target_instance_id,
            ),
        )

    @classmethod
    def end_turn(cls, player_id: str) -> Action:
        return cls(
            action_type=ActionType.END_TURN,
            payload=ActionPayload(player_id=player_id),
        )

    def describe(self) -> str:
        """Short human-readable form, used by the CLI and logs."""
        p = self.payload
        if self.action_type == ActionType.PLAY_CARD:
            return f"{p.player_id} plays {p.card_id}"
        if self.action_type == ActionType.ATTACK_PLAYER:
            return f"{p.player_id} attacks {p.target_player_id} with {p.instance_id}"
        if self.action_type == ActionType.ATTACK_CREATURE:
            return f"{p.player_id} attacks {p.target_instance_id} with {p.instance_id}"
        return f"{p.player_id} ends turn"


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Errors (if failed)
    - Human-readable changes (for UI updates)
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(cls, state: Any, changes: list[str] | None = None) -> ActionResult:
        """Create a success result with new state."""
        return cls(success=True, new_state=state, state_changes=changes or [])
