"""Card catalog - immutable card definitions and their validation."""

from .cards import CardType, TriggerEvent, TriggeredAbility, CardDefinition, CardCatalog
from .validation import validate_card, validate_catalog, CatalogValidationError, ValidationResult

__all__ = [
    "CardType",
    "TriggerEvent",
    "TriggeredAbility",
    "CardDefinition",
    "CardCatalog",
    "validate_card",
    "validate_catalog",
    "CatalogValidationError",
    "ValidationResult",
]
