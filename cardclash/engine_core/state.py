"""
Game State - The single shared document a game is played on.

Design principles:
- Plain data: dataclasses of ids, counters and lists
- Serializable: to_dict()/from_dict() carry the whole game verbatim
- Mutated only inside store transactions (see store.py and mutations.py)
- Self-contained: the card library is snapshotted into the state
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping
from copy import deepcopy
from enum import Enum

from ..catalog.cards import CardDefinition


class GameStatus(Enum):
    """High-level game status."""
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class LogAction(Enum):
    """Kinds of game log entries."""
    PLAY_CARD = "play_card"
    CAST = "cast"
    CAST_FAILED = "cast_failed"
    ATTACK = "attack"
    TAKE_DAMAGE = "take_damage"
    HEAL = "heal"
    CREATURE_DAMAGED = "creature_damaged"
    CREATURE_DIED = "creature_died"
    DRAW_CARD = "draw_card"
    GAIN_ENERGY = "gain_energy"
    END_TURN = "end_turn"
    TRIGGERED_ABILITY = "triggered_ability"
    EFFECT_LOG = "effect_log"
    GAME_END = "game_end"


@dataclass
class PlayerResourceState:
    """Health and energy for one player."""
    player_id: str
    health: int
    max_health: int
    energy: int
    max_energy: int

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "health": self.health,
            "max_health": self.max_health,
            "energy": self.energy,
            "max_energy": self.max_energy,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PlayerResourceState:
        return cls(**{k: data[k] for k in ("player_id", "health", "max_health", "energy", "max_energy")})


@dataclass
class BattlefieldCard:
    """
    A card instance on a battlefield.

    Note: This is a runtime instance, not the definition.
    The definition lives in GameState.card_library.
    """
    instance_id: str  # Unique per play, never reused
    card_id: str  # References CardDefinition.id
    sapped: bool = True
    current_health: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "card_id": self.card_id,
            "sapped": self.sapped,
            "current_health": self.current_health,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BattlefieldCard:
        return cls(
            instance_id=data["instance_id"],
            card_id=data["card_id"],
            sapped=data.get("sapped", False),
            current_health=data["current_health"],
        )


@dataclass
class GameLogEntry:
    """One append-only entry in the game log."""
    seq: int
    player_id: str
    action: LogAction
    card_id: str | None = None
    instance_id: str | None = None
    target_id: str | None = None
    amount: int | None = None
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "seq": self.seq,
            "player_id": self.player_id,
            "action": self.action.value,
            "description": self.description,
        }
        for key in ("card_id", "instance_id", "target_id", "amount"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GameLogEntry:
        return cls(
            seq=data["seq"],
            player_id=data["player_id"],
            action=LogAction(data["action"]),
            card_id=data.get("card_id"),
            instance_id=data.get("instance_id"),
            target_id=data.get("target_id"),
            amount=data.get("amount"),
            description=data.get("description", ""),
        )


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    This is the document the store holds. All changes go through
    GameStore.change(), which applies them atomically.
    """
    game_id: str
    players: list[str] = field(default_factory=list)  # Turn order

    status: GameStatus = GameStatus.WAITING
    turn_number: int = 1
    current_player_index: int = 0
    winner_id: str | None = None

    # Shared zones
    deck: list[str] = field(default_factory=list)  # Draw from front
    graveyard: list[str] = field(default_factory=list)

    # Per-player zones
    hands: dict[str, list[str]] = field(default_factory=dict)
    battlefields: dict[str, list[BattlefieldCard]] = field(default_factory=dict)
    resources: dict[str, PlayerResourceState] = field(default_factory=dict)

    game_log: list[GameLogEntry] = field(default_factory=list)
    card_library: dict[str, CardDefinition] = field(default_factory=dict)

    next_instance_seq: int = 1
    random_seed: int = 0

    @property
    def current_player_id(self) -> str | None:
        """Id of the active player, None before players join."""
        if not self.players:
            return None
        return self.players[self.current_player_index]

    @property
    def is_playing(self) -> bool:
        return self.status == GameStatus.PLAYING

    def is_active_player(self, player_id: str) -> bool:
        return self.current_player_id == player_id

    def get_card(self, card_id: str) -> CardDefinition | None:
        return self.card_library.get(card_id)

    def get_hand(self, player_id: str) -> list[str]:
        return self.hands.get(player_id, [])

    def get_battlefield(self, player_id: str) -> list[BattlefieldCard]:
        return self.battlefields.get(player_id, [])

    def get_resources(self, player_id: str) -> PlayerResourceState | None:
        return self.resources.get(player_id)

    def find_battlefield_card(self, player_id: str, instance_id: str) -> BattlefieldCard | None:
        """Find a card instance on a player's battlefield."""
        for card in self.battlefields.get(player_id, []):
            if card.instance_id == instance_id:
                return card
        return None

    def opponents_of(self, player_id: str) -> list[str]:
        return [p for p in self.players if p != player_id]

    def alive_players(self) -> list[str]:
        return [p for p in self.players if self.resources[p].is_alive]

    def allocate_instance_id(self) -> str:
        """Hand out the next battlefield instance id."""
        instance_id = f"inst_{self.next_instance_seq}"
        self.next_instance_seq += 1
        return instance_id

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain JSON-compatible data."""
        return {
            "game_id": self.game_id,
            "players": list(self.players),
            "status": self.status.value,
            "turn_number": self.turn_number,
            "current_player_index": self.current_player_index,
            "winner_id": self.winner_id,
            "deck": list(self.deck),
            "graveyard": list(self.graveyard),
            "hands": {pid: list(hand) for pid, hand in self.hands.items()},
            "battlefields": {
                pid: [c.to_dict() for c in cards] for pid, cards in self.battlefields.items()
            },
            "resources": {pid: r.to_dict() for pid, r in self.resources.items()},
            "game_log": [e.to_dict() for e in self.game_log],
            "card_library": {cid: c.to_dict() for cid, c in self.card_library.items()},
            "next_instance_seq": self.next_instance_seq,
            "random_seed": self.random_seed,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GameState:
        """Rebuild a state from to_dict() output."""
        return cls(
            game_id=data["game_id"],
            players=list(data["players"]),
            status=GameStatus(data["status"]),
            turn_number=data["turn_number"],
            current_player_index=data["current_player_index"],
            winner_id=data.get("winner_id"),
            deck=list(data.get("deck", [])),
            graveyard=list(data.get("graveyard", [])),
            hands={pid: list(hand) for pid, hand in data.get("hands", {}).items()},
            battlefields={
                pid: [BattlefieldCard.from_dict(c) for c in cards]
                for pid, cards in data.get("battlefields", {}).items()
            },
            resources={
                pid: PlayerResourceState.from_dict(r)
                for pid, r in data.get("resources", {}).items()
            },
            game_log=[GameLogEntry.from_dict(e) for e in data.get("game_log", [])],
            card_library={
                cid: CardDefinition.from_dict(c)
                for cid, c in data.get("card_library", {}).items()
            },
            next_instance_seq=data.get("next_instance_seq", 1),
            random_seed=data.get("random_seed", 0),
        )
