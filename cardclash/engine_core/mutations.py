"""
State Mutations - Primitive changes applied inside a store transaction.

Every function here mutates the GameState it is given. They are only
ever called on the draft handed to GameStore.change(), so a failing
transaction leaves the stored document untouched.

Helpers that change health append their own log entries; callers add
the entries that describe the player's intent (play_card, attack, ...).
"""

from __future__ import annotations
import logging

from .state import GameState, GameStatus, BattlefieldCard, GameLogEntry, LogAction
from .config import GameConfig, EnergyPolicy
from ..catalog.cards import CardType

logger = logging.getLogger(__name__)


def add_log_entry(
    state: GameState,
    player_id: str,
    action: LogAction,
    description: str = "",
    card_id: str | None = None,
    instance_id: str | None = None,
    target_id: str | None = None,
    amount: int | None = None,
) -> GameLogEntry:
    """Append an entry to the game log."""
    entry = GameLogEntry(
        seq=len(state.game_log) + 1,
        player_id=player_id,
        action=action,
        card_id=card_id,
        instance_id=instance_id,
        target_id=target_id,
        amount=amount,
        description=description,
    )
    state.game_log.append(entry)
    return entry


# =============================================================================
# Cards and energy
# =============================================================================

def remove_card_from_hand(state: GameState, player_id: str, card_id: str) -> bool:
    """Remove one copy of a card from a hand. Returns False if absent."""
    hand = state.hands.get(player_id)
    if hand is None or card_id not in hand:
        return False
    hand.remove(card_id)
    return True


def spend_energy(state: GameState, player_id: str, amount: int) -> bool:
    """Deduct energy. Returns False (and changes nothing) if unaffordable."""
    resources = state.resources.get(player_id)
    if resources is None or resources.energy < amount:
        return False
    resources.energy -= amount
    return True


def gain_energy(state: GameState, player_id: str, amount: int) -> int:
    """Add energy up to the player's max. Returns the amount gained."""
    resources = state.resources.get(player_id)
    if resources is None or amount <= 0:
        return 0
    before = resources.energy
    resources.energy = min(resources.max_energy, resources.energy + amount)
    return resources.energy - before


def restore_energy(state: GameState, player_id: str):
    """Refill a player's energy to max."""
    resources = state.resources.get(player_id)
    if resources is not None:
        resources.energy = resources.max_energy


def increase_max_energy(state: GameState, player_id: str, cap: int):
    """Grow a player's max energy by one, up to the cap."""
    resources = state.resources.get(player_id)
    if resources is not None:
        resources.max_energy = min(cap, resources.max_energy + 1)


def add_to_graveyard(state: GameState, card_id: str):
    state.graveyard.append(card_id)


def draw_card(state: GameState, player_id: str) -> str | None:
    """Move the top card of the deck into a hand. None if the deck is empty."""
    if not state.deck:
        return None
    card_id = state.deck.pop(0)
    state.hands.setdefault(player_id, []).append(card_id)
    return card_id


def put_onto_battlefield(state: GameState, player_id: str, card_id: str) -> BattlefieldCard:
    """Create a fresh, sapped instance of a card on a battlefield."""
    definition = state.card_library[card_id]
    card = BattlefieldCard(
        instance_id=state.allocate_instance_id(),
        card_id=card_id,
        sapped=True,
        current_health=definition.base_health,
    )
    state.battlefields.setdefault(player_id, []).append(card)
    return card


# =============================================================================
# Health
# =============================================================================

def deal_damage(state: GameState, player_id: str, amount: int) -> int:
    """
    Reduce a player's health, floored at 0.

    Logs take_damage. Does not decide game over; see check_game_over().
    Returns the damage actually dealt.
    """
    resources = state.resources.get(player_id)
    if resources is None:
        return 0
    dealt = min(resources.health, max(0, amount))
    resources.health -= dealt
    add_log_entry(
        state, player_id, LogAction.TAKE_DAMAGE,
        description=f"Took {amount} damage",
        amount=amount,
    )
    return dealt


def heal_player(state: GameState, player_id: str, amount: int) -> int:
    """Restore a player's health, capped at max. Logs heal."""
    resources = state.resources.get(player_id)
    if resources is None:
        return 0
    before = resources.health
    resources.health = min(resources.max_health, resources.health + max(0, amount))
    add_log_entry(
        state, player_id, LogAction.HEAL,
        description=f"Healed for {amount} health",
        amount=amount,
    )
    return resources.health - before


def remove_creature_from_battlefield(state: GameState, player_id: str, instance_id: str) -> BattlefieldCard | None:
    """
    Take an instance off the battlefield and bury its card.

    Logs creature_died. Returns the removed instance, or None if it
    was already gone.
    """
    cards = state.battlefields.get(player_id, [])
    for index, card in enumerate(cards):
        if card.instance_id == instance_id:
            del cards[index]
            add_to_graveyard(state, card.card_id)
            definition = state.card_library.get(card.card_id)
            name = definition.name if definition else card.card_id
            add_log_entry(
                state, player_id, LogAction.CREATURE_DIED,
                description=f"{name} was destroyed",
                card_id=card.card_id,
                instance_id=instance_id,
            )
            return card
    return None


def deal_damage_to_creature(state: GameState, player_id: str, instance_id: str, amount: int) -> bool | None:
    """
    Damage a battlefield instance.

    Returns True if it died, False if it survived, None if it no longer
    exists (stale reference).
    """
    card = state.find_battlefield_card(player_id, instance_id)
    if card is None:
        logger.debug("Skipping damage to missing instance %s", instance_id)
        return None

    card.current_health -= max(0, amount)
    if card.current_health <= 0:
        remove_creature_from_battlefield(state, player_id, instance_id)
        return True

    definition = state.card_library.get(card.card_id)
    name = definition.name if definition else card.card_id
    add_log_entry(
        state, player_id, LogAction.CREATURE_DAMAGED,
        description=f"{name} took {amount} damage",
        card_id=card.card_id,
        instance_id=instance_id,
        amount=amount,
    )
    return False


def heal_creature(state: GameState, player_id: str, instance_id: str, amount: int) -> int | None:
    """Heal a battlefield instance up to its definition's health."""
    card = state.find_battlefield_card(player_id, instance_id)
    if card is None:
        logger.debug("Skipping heal of missing instance %s", instance_id)
        return None
    definition = state.card_library.get(card.card_id)
    cap = definition.base_health if definition else card.current_health
    before = card.current_health
    card.current_health = min(cap, card.current_health + max(0, amount))
    add_log_entry(
        state, player_id, LogAction.HEAL,
        description=f"Creature healed for {amount} health",
        card_id=card.card_id,
        instance_id=instance_id,
        amount=amount,
    )
    return card.current_health - before


def regenerate_creatures(state: GameState, player_id: str, amount: int) -> int:
    """Heal a player's damaged creatures. Returns how many healed."""
    if amount <= 0:
        return 0
    healed = 0
    for card in state.battlefields.get(player_id, []):
        definition = state.card_library.get(card.card_id)
        if definition is None or definition.card_type != CardType.CREATURE:
            continue
        if card.current_health >= definition.base_health:
            continue
        card.current_health = min(definition.base_health, card.current_health + amount)
        healed += 1
    if healed:
        add_log_entry(
            state, player_id, LogAction.HEAL,
            description=f"{healed} creature(s) healed {amount} health",
            amount=amount,
        )
    return healed


# =============================================================================
# Turn flow
# =============================================================================

def sap_creature(state: GameState, player_id: str, instance_id: str):
    card = state.find_battlefield_card(player_id, instance_id)
    if card is not None:
        card.sapped = True


def refresh_creatures(state: GameState, player_id: str):
    """Clear sapped on every card a player owns."""
    for card in state.battlefields.get(player_id, []):
        card.sapped = False


def advance_to_next_player(state: GameState) -> str:
    """
    Move the turn to the next player.

    Increments turn_number when play wraps back to the first player.
    Returns the new active player's id.
    """
    state.current_player_index = (state.current_player_index + 1) % len(state.players)
    if state.current_player_index == 0:
        state.turn_number += 1
    return state.players[state.current_player_index]


def apply_energy_policy(state: GameState, player_id: str, config: GameConfig):
    """Restore the new active player's energy according to the policy."""
    if config.energy_policy == EnergyPolicy.CURVE and state.current_player_index == 0:
        for pid in state.players:
            increase_max_energy(state, pid, config.max_energy_cap)
    restore_energy(state, player_id)


def check_game_over(state: GameState) -> bool:
    """
    Finish the game if at most one player is still alive.

    Returns True if this call ended the game.
    """
    if state.status != GameStatus.PLAYING or len(state.players) < 2:
        return False
    alive = state.alive_players()
    if len(alive) > 1:
        return False

    state.status = GameStatus.FINISHED
    state.winner_id = alive[0] if alive else None
    defeated = [p for p in state.players if p not in alive]
    for player_id in defeated:
        add_log_entry(state, player_id, LogAction.GAME_END, description="Player defeated")
    logger.info("Game %s finished, winner %s", state.game_id, state.winner_id)
    return True
