"""
Starter Cards - The sci-fi starter library.

Fifteen cards covering every card type. Spells carry effect scripts;
some permanents carry triggered abilities.

Card structure:
- Cost (energy)
- Type (creature, spell, artifact, planet, infrastructure)
- Attack / health for permanents
- Effect script for spells, triggered abilities for permanents
"""

from ...catalog.cards import CardCatalog, CardDefinition, CardType, TriggerEvent, TriggeredAbility


# =============================================================================
# Creatures
# =============================================================================

CYBER_DRONE = CardDefinition(
    id="card_001",
    name="Cyber Drone",
    cost=2,
    card_type=CardType.CREATURE,
    attack=2,
    health=1,
    description="A fast reconnaissance unit.",
)

STEEL_SENTINEL = CardDefinition(
    id="card_003",
    name="Steel Sentinel",
    cost=4,
    card_type=CardType.CREATURE,
    attack=2,
    health=6,
    description="An automated defense unit.",
)

QUANTUM_DESTROYER = CardDefinition(
    id="card_005",
    name="Quantum Destroyer",
    cost=5,
    card_type=CardType.CREATURE,
    attack=4,
    health=3,
    description="A cybernetic war machine from the future.",
    triggered_abilities=(
        TriggeredAbility(
            trigger=TriggerEvent.DEAL_DAMAGE,
            description="Overload: 1 damage to the defending player",
            effect_script="""
def effect(api):
    target = api.trigger_context.get("target_player_id")
    if target is not None:
        api.deal_damage_to_player(target, 1)
""",
        ),
    ),
)

BIO_MECH_GUARDIAN = CardDefinition(
    id="card_007",
    name="Bio-Mech Guardian",
    cost=6,
    card_type=CardType.CREATURE,
    attack=5,
    health=5,
    description="Protects all allied units.",
)

ENERGY_SHIELD = CardDefinition(
    id="card_008",
    name="Energy Shield",
    cost=3,
    card_type=CardType.CREATURE,
    attack=1,
    health=4,
    description="Deflects incoming attacks.",
    triggered_abilities=(
        TriggeredAbility(
            trigger=TriggerEvent.TAKE_DAMAGE,
            description="Recharge 1 health",
            effect_script="lambda api: api.heal_creature(api.owner_id, api.instance_id, 1)",
        ),
    ),
)

ASSAULT_BOT = CardDefinition(
    id="card_011",
    name="Assault Bot",
    cost=3,
    card_type=CardType.CREATURE,
    attack=3,
    health=2,
    description="Fast attack unit.",
)

REPAIR_DRONE = CardDefinition(
    id="card_013",
    name="Repair Drone",
    cost=2,
    card_type=CardType.CREATURE,
    attack=1,
    health=3,
    description="Restore 2 health to allied units at the end of your turn.",
    triggered_abilities=(
        TriggeredAbility(
            trigger=TriggerEvent.END_TURN,
            description="Repair allied units",
            effect_script="""
def effect(api):
    for creature in api.get_own_creatures():
        if creature["instance_id"] != api.instance_id:
            api.heal_creature(api.owner_id, creature["instance_id"], 2)
""",
        ),
    ),
)

STEALTH_INFILTRATOR = CardDefinition(
    id="card_015",
    name="Stealth Infiltrator",
    cost=2,
    card_type=CardType.CREATURE,
    attack=1,
    health=1,
    description="Cannot be blocked.",
)


# =============================================================================
# Spells
# =============================================================================

PLASMA_BURST = CardDefinition(
    id="card_002",
    name="Plasma Burst",
    cost=3,
    card_type=CardType.SPELL,
    description="Deal 3 energy damage to target opponent.",
    effect_script="""
async def effect(api):
    targets = await api.select_targets(
        description="Choose a player to burn",
        target_type="player",
        can_target_self=False,
    )
    for target in targets:
        api.deal_damage_to_player(target.player_id, 3)
""",
)

DATA_SPIKE = CardDefinition(
    id="card_006",
    name="Data Spike",
    cost=1,
    card_type=CardType.SPELL,
    description="Hack enemy systems for 1 damage.",
    effect_script="""
def effect(api):
    for player_id in api.get_all_players():
        if player_id != api.caster_id:
            api.deal_damage_to_player(player_id, 1)
    api.log("Enemy systems hacked")
""",
)

SYSTEM_CRASH = CardDefinition(
    id="card_012",
    name="System Crash",
    cost=4,
    card_type=CardType.SPELL,
    description="Destroy target enemy unit.",
    effect_script="""
async def effect(api):
    targets = await api.select_targets(
        description="Choose a unit to destroy",
        target_type="creature",
        can_target_allies=False,
    )
    for target in targets:
        api.destroy_creature(target.player_id, target.instance_id)
""",
)

PHOTON_CANNON = CardDefinition(
    id="card_014",
    name="Photon Cannon",
    cost=5,
    card_type=CardType.SPELL,
    description="Deal 5 damage to up to two target units.",
    effect_script="""
async def effect(api):
    targets = await api.select_targets(
        description="Choose up to two units",
        target_type="creature",
        target_count=2,
    )
    for target in targets:
        api.deal_damage_to_creature(target.player_id, target.instance_id, 5)
""",
)


# =============================================================================
# Artifacts
# =============================================================================

NANO_ENHANCER = CardDefinition(
    id="card_004",
    name="Nano Enhancer",
    cost=2,
    card_type=CardType.ARTIFACT,
    health=2,
    description="Reinforced plating for allied units.",
)

NEURAL_INTERFACE = CardDefinition(
    id="card_009",
    name="Neural Interface",
    cost=1,
    card_type=CardType.ARTIFACT,
    health=1,
    description="Draw an additional card each turn.",
    triggered_abilities=(
        TriggeredAbility(
            trigger=TriggerEvent.START_TURN,
            description="Draw a card",
            effect_script="lambda api: api.draw_card()",
        ),
    ),
)

FUSION_CORE = CardDefinition(
    id="card_010",
    name="Fusion Core",
    cost=4,
    card_type=CardType.ARTIFACT,
    health=3,
    description="Gain +1 energy per turn.",
    triggered_abilities=(
        TriggeredAbility(
            trigger=TriggerEvent.START_TURN,
            description="Gain 1 energy",
            effect_script="lambda api: api.gain_energy(1)",
        ),
    ),
)


STARTER_CARDS: list[CardDefinition] = [
    CYBER_DRONE,
    PLASMA_BURST,
    STEEL_SENTINEL,
    NANO_ENHANCER,
    QUANTUM_DESTROYER,
    DATA_SPIKE,
    BIO_MECH_GUARDIAN,
    ENERGY_SHIELD,
    NEURAL_INTERFACE,
    FUSION_CORE,
    ASSAULT_BOT,
    SYSTEM_CRASH,
    REPAIR_DRONE,
    PHOTON_CANNON,
    STEALTH_INFILTRATOR,
]

# Copies per card in a standard deck
STANDARD_DECK_COPIES: dict[str, int] = {
    "card_001": 3,
    "card_002": 2,
    "card_003": 2,
    "card_004": 3,
    "card_005": 1,  # rare
    "card_006": 4,
    "card_007": 1,  # rare
    "card_008": 3,
    "card_009": 2,
    "card_010": 2,
    "card_011": 3,
    "card_012": 2,
    "card_013": 3,
    "card_014": 1,  # rare
    "card_015": 3,
}


def starter_catalog() -> CardCatalog:
    """The starter library as a catalog."""
    return CardCatalog.from_cards(STARTER_CARDS)


def get_card_by_id(card_id: str) -> CardDefinition | None:
    """Get a starter card by ID."""
    for card in STARTER_CARDS:
        if card.id == card_id:
            return card
    return None


def create_standard_deck() -> list[str]:
    """Unshuffled standard deck, grouped by card id."""
    deck = []
    for card_id, count in STANDARD_DECK_COPIES.items():
        deck.extend([card_id] * count)
    return deck
