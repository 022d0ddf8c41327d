"""
Tests for the card catalog and its validation.

Tests:
- Starter library integrity
- Catalog lookup and persistence shape
- Per-type stat rules
- Script and deck checks
"""

import pytest

from ..catalog import (
    CardCatalog,
    CardDefinition,
    CardType,
    CatalogValidationError,
    TriggerEvent,
    TriggeredAbility,
    validate_card,
    validate_catalog,
)
from ..games.starter import STANDARD_DECK_COPIES, create_standard_deck, get_card_by_id, starter_catalog


class TestStarterLibrary:
    """Tests for the bundled starter cards."""

    def test_starter_catalog_is_valid(self):
        """Every starter card and the standard deck pass validation."""
        result = validate_catalog(starter_catalog(), create_standard_deck())

        assert result.valid, result.errors
        assert result.warnings == []

    def test_starter_catalog_has_fifteen_cards(self):
        catalog = starter_catalog()
        assert len(catalog) == 15
        assert "card_001" in catalog
        assert catalog["card_005"].name == "Quantum Destroyer"

    def test_standard_deck_composition(self):
        deck = create_standard_deck()
        assert len(deck) == sum(STANDARD_DECK_COPIES.values())
        assert deck.count("card_006") == 4
        assert deck.count("card_014") == 1

    def test_get_card_by_id(self):
        assert get_card_by_id("card_002").card_type == CardType.SPELL
        assert get_card_by_id("card_999") is None


class TestCardCatalog:
    """Tests for CardCatalog and CardDefinition."""

    def test_duplicate_ids_rejected(self):
        card = CardDefinition(id="x", name="X", cost=1, card_type=CardType.SPELL)
        with pytest.raises(ValueError, match="Duplicate"):
            CardCatalog.from_cards([card, card])

    def test_unknown_card_is_none(self):
        assert starter_catalog().get("nope") is None

    def test_definition_persistence_shape(self):
        """to_dict uses the stored field names and from_dict reads them back."""
        card = get_card_by_id("card_008")
        data = card.to_dict()

        assert data["type"] == "creature"
        assert data["triggered_abilities"][0]["trigger"] == "take_damage"
        assert CardDefinition.from_dict(data) == card

    def test_from_dicts(self):
        catalog = CardCatalog.from_dicts([
            {"id": "a", "name": "A", "cost": 1, "type": "spell"},
            {"id": "b", "name": "B", "cost": 2, "type": "creature", "attack": 1, "health": 1},
        ])
        assert catalog.ids == ["a", "b"]
        assert catalog["b"].is_permanent

    def test_abilities_for_filters_by_trigger(self):
        card = get_card_by_id("card_013")
        assert len(card.abilities_for(TriggerEvent.END_TURN)) == 1
        assert card.abilities_for(TriggerEvent.START_TURN) == []

    def test_base_health_defaults_to_one(self):
        card = CardDefinition(id="i", name="Road", cost=1, card_type=CardType.INFRASTRUCTURE)
        assert card.base_health == 1


class TestCardValidation:
    """Tests for validate_card()."""

    def test_creature_needs_stats(self):
        card = CardDefinition(id="c", name="C", cost=1, card_type=CardType.CREATURE, attack=1)
        errors = validate_card(card)
        assert any("creatures need attack and health" in e for e in errors)

    def test_spell_cannot_have_stats(self):
        card = CardDefinition(id="s", name="S", cost=1, card_type=CardType.SPELL, attack=2)
        errors = validate_card(card)
        assert any("spells cannot have attack or health" in e for e in errors)

    def test_spell_with_triggered_ability_rejected(self):
        card = CardDefinition(
            id="s", name="S", cost=1, card_type=CardType.SPELL,
            triggered_abilities=(TriggeredAbility(TriggerEvent.START_TURN, "lambda api: None"),),
        )
        assert validate_card(card)

    def test_artifact_cannot_attack(self):
        card = CardDefinition(id="a", name="A", cost=1, card_type=CardType.ARTIFACT, attack=1, health=1)
        errors = validate_card(card)
        assert any("cannot have attack" in e for e in errors)

    def test_negative_cost_and_zero_health(self):
        card = CardDefinition(id="c", name="C", cost=-1, card_type=CardType.CREATURE, attack=1, health=0)
        errors = validate_card(card)
        assert any("negative cost" in e for e in errors)
        assert any("health must be positive" in e for e in errors)

    def test_bad_effect_script_reported(self):
        card = CardDefinition(
            id="s", name="S", cost=1, card_type=CardType.SPELL,
            effect_script="def effect(api)\n    pass",
        )
        errors = validate_card(card)
        assert len(errors) == 1
        assert "effect script" in errors[0]

    def test_bad_ability_script_reported(self):
        card = CardDefinition(
            id="c", name="C", cost=1, card_type=CardType.CREATURE, attack=1, health=1,
            triggered_abilities=(TriggeredAbility(TriggerEvent.END_TURN, "import os"),),
        )
        errors = validate_card(card)
        assert any("end_turn" in e for e in errors)


class TestCatalogValidation:
    """Tests for validate_catalog()."""

    def test_unknown_deck_card(self):
        result = validate_catalog(starter_catalog(), ["card_001", "card_404"])

        assert not result.valid
        assert "Deck references unknown card 'card_404'" in result.errors

    def test_raise_for_errors(self):
        result = validate_catalog(starter_catalog(), ["card_404"])
        with pytest.raises(CatalogValidationError) as exc_info:
            result.raise_for_errors()
        assert exc_info.value.errors == result.errors

    def test_permanent_with_effect_script_warns(self):
        catalog = CardCatalog.from_cards([
            CardDefinition(
                id="c", name="C", cost=1, card_type=CardType.CREATURE, attack=1, health=1,
                effect_script="lambda api: None",
            ),
        ])
        result = validate_catalog(catalog)

        assert result.valid
        assert any("only run for spells" in w for w in result.warnings)

    def test_empty_catalog_and_deck_warn(self):
        result = validate_catalog(CardCatalog.from_cards([]), [])
        assert result.valid
        assert len(result.warnings) == 2
