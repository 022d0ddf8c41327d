"""
Starter Game Setup - Creates initial game state.

This module handles:
- Snapshotting the card library into the state
- Shuffling the deck with a seed for determinism
- Dealing opening hands
- Initialising health and energy from the config
"""

from __future__ import annotations
import logging
import random

from ...catalog.cards import CardCatalog
from ...engine_core.config import GameConfig
from ...engine_core.state import GameState, GameStatus, PlayerResourceState
from .cards import create_standard_deck, starter_catalog

logger = logging.getLogger(__name__)


def setup_game(
    player_ids: list[str],
    catalog: CardCatalog | None = None,
    deck: list[str] | None = None,
    config: GameConfig | None = None,
    random_seed: int | None = None,
    game_id: str | None = None,
) -> GameState:
    """
    Set up a new game.

    Args:
        player_ids: Players in turn order (at least 2, unique)
        catalog: Card library (starter library if not provided)
        deck: Card ids making up the shared deck (standard deck if not provided)
        config: Rules constants
        random_seed: Seed for deterministic shuffling
        game_id: Id for the game (derived from the seed if not provided)

    Returns:
        GameState with status playing and the first player active
    """
    if len(player_ids) < 2:
        raise ValueError("A game needs at least 2 players")
    if len(set(player_ids)) != len(player_ids):
        raise ValueError("Player ids must be unique")

    config = config or GameConfig()
    catalog = catalog if catalog is not None else starter_catalog()
    deck = list(deck) if deck is not None else create_standard_deck()

    unknown = sorted({card_id for card_id in deck if card_id not in catalog})
    if unknown:
        raise ValueError(f"Deck references unknown cards: {', '.join(unknown)}")

    rng = random.Random(random_seed)
    rng.shuffle(deck)

    state = GameState(
        game_id=game_id or f"game_{random_seed if random_seed is not None else rng.randint(0, 999999)}",
        players=list(player_ids),
        status=GameStatus.PLAYING,
        turn_number=1,
        current_player_index=0,
        deck=deck,
        card_library=catalog.snapshot(),
        random_seed=random_seed or 0,
    )

    for player_id in player_ids:
        state.hands[player_id] = []
        state.battlefields[player_id] = []
        state.resources[player_id] = PlayerResourceState(
            player_id=player_id,
            health=config.starting_health,
            max_health=config.starting_health,
            energy=config.starting_energy,
            max_energy=config.starting_max_energy,
        )

    _deal_hands(state, config.initial_hand_size)

    logger.info("Set up game %s for %s", state.game_id, ", ".join(player_ids))
    return state


def _deal_hands(state: GameState, hand_size: int):
    """Deal one card at a time around the table."""
    for _ in range(hand_size):
        for player_id in state.players:
            if not state.deck:
                return
            state.hands[player_id].append(state.deck.pop(0))


def create_rematch(
    state: GameState,
    config: GameConfig | None = None,
    random_seed: int | None = None,
    game_id: str | None = None,
) -> GameState:
    """
    Fresh game with the same players and library.

    Every card from the old game (deck, hands, battlefields, graveyard)
    is gathered back into the new deck.
    """
    deck = list(state.deck) + list(state.graveyard)
    for player_id in state.players:
        deck.extend(state.get_hand(player_id))
        deck.extend(card.card_id for card in state.get_battlefield(player_id))
    deck.sort()

    return setup_game(
        player_ids=list(state.players),
        catalog=CardCatalog.from_cards(state.card_library.values()),
        deck=deck,
        config=config,
        random_seed=random_seed,
        game_id=game_id or f"{state.game_id}_rematch",
    )
