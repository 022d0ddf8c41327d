"""
Catalog Validation - Checks card definitions before a game uses them.

Validates that:
1. Required fields are present (id, name, non-negative cost)
2. Stats match the card type (creatures have attack and health, ...)
3. Effect scripts and triggered-ability scripts compile
4. Decks only reference cards in the catalog
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable

from .cards import CardCatalog, CardDefinition, CardType
from ..engine_core.script import ScriptCompiler


class CatalogValidationError(Exception):
    """Raised when catalog validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Catalog validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def raise_for_errors(self):
        if not self.valid:
            raise CatalogValidationError(self.errors)


def validate_card(card: CardDefinition, compiler: ScriptCompiler | None = None) -> list[str]:
    """Validate a single card definition. Returns error messages."""
    compiler = compiler or ScriptCompiler()
    errors = []
    label = f"Card '{card.id}'"

    if not card.id:
        errors.append("Card has empty ID")
    if not card.name:
        errors.append(f"{label} has empty name")
    if card.cost < 0:
        errors.append(f"{label} has negative cost")

    if card.card_type == CardType.CREATURE:
        if card.attack is None or card.health is None:
            errors.append(f"{label}: creatures need attack and health")
    elif card.card_type == CardType.SPELL:
        if card.attack is not None or card.health is not None:
            errors.append(f"{label}: spells cannot have attack or health")
        if card.triggered_abilities:
            errors.append(f"{label}: spells never reach the battlefield, triggered abilities are unreachable")
    elif card.card_type in (CardType.ARTIFACT, CardType.PLANET):
        if card.attack is not None:
            errors.append(f"{label}: {card.card_type.value}s cannot have attack")
        if card.health is None:
            errors.append(f"{label}: {card.card_type.value}s need health")

    if card.health is not None and card.health <= 0:
        errors.append(f"{label}: health must be positive")
    if card.attack is not None and card.attack < 0:
        errors.append(f"{label}: attack cannot be negative")

    if card.effect_script:
        problem = compiler.check(card.effect_script)
        if problem:
            errors.append(f"{label} effect script: {problem}")

    for index, ability in enumerate(card.triggered_abilities):
        problem = compiler.check(ability.effect_script)
        if problem:
            errors.append(f"{label} ability {index} ({ability.trigger.value}): {problem}")

    return errors


def validate_catalog(catalog: CardCatalog, deck: Iterable[str] | None = None) -> ValidationResult:
    """
    Validate every card in a catalog, and optionally a deck against it.

    Returns ValidationResult with errors and warnings.
    """
    compiler = ScriptCompiler()
    errors: list[str] = []
    warnings: list[str] = []

    for card in catalog:
        errors.extend(validate_card(card, compiler))
        if card.is_permanent and card.effect_script:
            warnings.append(f"Card '{card.id}': effect scripts only run for spells")

    if deck is not None:
        deck = list(deck)
        unknown = sorted({card_id for card_id in deck if card_id not in catalog})
        for card_id in unknown:
            errors.append(f"Deck references unknown card '{card_id}'")
        if not deck:
            warnings.append("Deck is empty")

    if len(catalog) == 0:
        warnings.append("No cards defined - catalog may be incomplete")

    return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)
