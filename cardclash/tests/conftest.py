"""
Pytest fixtures for CardClash tests.
"""

import pytest

from ..catalog.cards import CardCatalog, CardDefinition, CardType
from ..engine_core import mutations
from ..engine_core.state import GameState, GameStatus, PlayerResourceState
from ..games.starter import STARTER_CARDS


# Small cards with round numbers, alongside the starter library
TEST_CARDS = [
    CardDefinition(id="grunt", name="Grunt", cost=3, card_type=CardType.CREATURE, attack=2, health=1),
    CardDefinition(id="brute", name="Brute", cost=4, card_type=CardType.CREATURE, attack=3, health=4),
    CardDefinition(id="wall", name="Wall", cost=2, card_type=CardType.CREATURE, attack=0, health=4),
    CardDefinition(id="totem", name="Totem", cost=1, card_type=CardType.ARTIFACT, health=2),
    CardDefinition(id="fizzle", name="Fizzle", cost=1, card_type=CardType.SPELL),
    CardDefinition(
        id="burn",
        name="Burn",
        cost=2,
        card_type=CardType.SPELL,
        effect_script="""
def effect(api):
    opponent = [p for p in api.get_all_players() if p != api.caster_id][0]
    api.deal_damage_to_player(opponent, 3)
    api.log("burn")
""",
    ),
    CardDefinition(
        id="broken",
        name="Broken",
        cost=1,
        card_type=CardType.SPELL,
        effect_script="""
def effect(api):
    raise ValueError("boom")
""",
    ),
    CardDefinition(id="refuse", name="Refuse", cost=1, card_type=CardType.SPELL, effect_script="lambda api: False"),
    CardDefinition(
        id="barrage",
        name="Barrage",
        cost=3,
        card_type=CardType.SPELL,
        effect_script="""
async def effect(api):
    targets = await api.select_targets(description="Pick two units", target_type="creature", target_count=2)
    for target in targets:
        api.deal_damage_to_creature(target.player_id, target.instance_id, 2)
    api.log("barrage done")
""",
    ),
    CardDefinition(
        id="bolt",
        name="Bolt",
        cost=1,
        card_type=CardType.SPELL,
        effect_script="""
async def effect(api):
    for target in await api.select_targets(target_type="player", can_target_self=False):
        api.deal_damage_to_player(target.player_id, 2)
""",
    ),
    CardDefinition(
        id="shock",
        name="Shock",
        cost=1,
        card_type=CardType.SPELL,
        effect_script="""
async def effect(api):
    for target in await api.select_targets(target_type="creature"):
        api.deal_damage_to_creature(target.player_id, target.instance_id, 1)
""",
    ),
]


@pytest.fixture
def card_catalog() -> CardCatalog:
    """Starter library plus the test cards."""
    return CardCatalog.from_cards(list(STARTER_CARDS) + TEST_CARDS)


@pytest.fixture
def make_state(card_catalog):
    """
    Factory for a playing state.

    Battlefield cards are created unsapped at full health; instance ids
    are inst_1, inst_2, ... in the order given.
    """

    def build(
        hands=None,
        battlefields=None,
        energy=5,
        health=20,
        deck=None,
        players=("p1", "p2"),
        game_id="test_game",
    ) -> GameState:
        state = GameState(
            game_id=game_id,
            players=list(players),
            status=GameStatus.PLAYING,
            deck=list(deck or []),
            card_library=card_catalog.snapshot(),
        )
        for player_id in players:
            state.hands[player_id] = list((hands or {}).get(player_id, []))
            state.battlefields[player_id] = []
            state.resources[player_id] = PlayerResourceState(
                player_id=player_id,
                health=health,
                max_health=health,
                energy=energy,
                max_energy=10,
            )
        for player_id, card_ids in (battlefields or {}).items():
            for card_id in card_ids:
                card = mutations.put_onto_battlefield(state, player_id, card_id)
                card.sapped = False
        return state

    return build
