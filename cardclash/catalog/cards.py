"""
Card Definitions - Immutable card catalog.

A CardDefinition is the design of a card: stats, cost, type and any
scripts attached to it. Runtime copies (hand entries, battlefield
instances) only reference definitions by id.

The catalog is read-only once built; games take a snapshot of it
at setup so later catalog edits never change a running game.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping


class CardType(Enum):
    """Kinds of cards."""
    CREATURE = "creature"
    SPELL = "spell"
    ARTIFACT = "artifact"
    PLANET = "planet"
    INFRASTRUCTURE = "infrastructure"

    @property
    def is_permanent(self) -> bool:
        """Permanents stay on the battlefield after being played."""
        return self is not CardType.SPELL


class TriggerEvent(Enum):
    """Events that can fire a triggered ability."""
    START_TURN = "start_turn"
    END_TURN = "end_turn"
    PLAY_CARD = "play_card"
    TAKE_DAMAGE = "take_damage"
    DEAL_DAMAGE = "deal_damage"


@dataclass(frozen=True)
class TriggeredAbility:
    """A script that runs when its owner's card sees a trigger event."""
    trigger: TriggerEvent
    effect_script: str
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger": self.trigger.value,
            "effect_script": self.effect_script,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TriggeredAbility:
        return cls(
            trigger=TriggerEvent(data["trigger"]),
            effect_script=data["effect_script"],
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class CardDefinition:
    """
    Definition of a card.

    Invariants (checked by catalog validation, not here):
    - creatures have attack and health
    - artifacts and planets have health but no attack
    - spells have neither and never reach a battlefield
    """
    id: str
    name: str
    cost: int
    card_type: CardType
    description: str = ""
    attack: int | None = None
    health: int | None = None
    effect_script: str | None = None
    triggered_abilities: tuple[TriggeredAbility, ...] = ()

    @property
    def is_permanent(self) -> bool:
        return self.card_type.is_permanent

    @property
    def base_health(self) -> int:
        """Health a fresh battlefield instance starts with."""
        return self.health if self.health is not None else 1

    def abilities_for(self, trigger: TriggerEvent) -> list[TriggeredAbility]:
        """Abilities on this card that fire for a trigger, in card order."""
        return [a for a in self.triggered_abilities if a.trigger == trigger]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "cost": self.cost,
            "type": self.card_type.value,
            "description": self.description,
        }
        if self.attack is not None:
            data["attack"] = self.attack
        if self.health is not None:
            data["health"] = self.health
        if self.effect_script is not None:
            data["effect_script"] = self.effect_script
        if self.triggered_abilities:
            data["triggered_abilities"] = [a.to_dict() for a in self.triggered_abilities]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CardDefinition:
        """Build a definition from its persisted shape."""
        return cls(
            id=data["id"],
            name=data["name"],
            cost=int(data["cost"]),
            card_type=CardType(data["type"]),
            description=data.get("description", ""),
            attack=data.get("attack"),
            health=data.get("health"),
            effect_script=data.get("effect_script"),
            triggered_abilities=tuple(
                TriggeredAbility.from_dict(a)
                for a in data.get("triggered_abilities", [])
            ),
        )


@dataclass(frozen=True)
class CardCatalog:
    """
    Immutable lookup of card definitions by id.

    Usage:
        catalog = CardCatalog.from_cards(cards)
        card = catalog.get("card_001")
    """
    _cards: Mapping[str, CardDefinition] = field(default_factory=dict)

    @classmethod
    def from_cards(cls, cards: Iterable[CardDefinition]) -> CardCatalog:
        by_id: dict[str, CardDefinition] = {}
        for card in cards:
            if card.id in by_id:
                raise ValueError(f"Duplicate card id: {card.id}")
            by_id[card.id] = card
        return cls(_cards=MappingProxyType(by_id))

    @classmethod
    def from_dicts(cls, items: Iterable[Mapping[str, Any]]) -> CardCatalog:
        return cls.from_cards(CardDefinition.from_dict(d) for d in items)

    def get(self, card_id: str) -> CardDefinition | None:
        """Get a card definition, or None if unknown."""
        return self._cards.get(card_id)

    def __getitem__(self, card_id: str) -> CardDefinition:
        return self._cards[card_id]

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._cards

    def __iter__(self) -> Iterator[CardDefinition]:
        return iter(self._cards.values())

    def __len__(self) -> int:
        return len(self._cards)

    @property
    def ids(self) -> list[str]:
        return list(self._cards.keys())

    def snapshot(self) -> dict[str, CardDefinition]:
        """Plain dict copy for embedding into a game state."""
        return dict(self._cards)
