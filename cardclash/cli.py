"""
CardClash CLI - Command-line interface for the engine.

Usage:
    cardclash cards                       List the starter card library
    cardclash validate <cards_file>       Validate a JSON card catalog
    cardclash simulate --seed 7           Play a bot-vs-bot game
"""

import argparse
import asyncio
import json
import logging
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="CardClash - Card Game Rules Engine",
        prog="cardclash",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Cards command
    subparsers.add_parser("cards", help="List the starter card library")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a card catalog")
    validate_parser.add_argument("cards_file", help="Path to a JSON list of card definitions")
    validate_parser.add_argument("--deck", help="Path to a JSON list of card ids")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a bot-vs-bot game")
    simulate_parser.add_argument("--seed", type=int, default=0, help="Shuffle seed")
    simulate_parser.add_argument("--turns", type=int, default=200, help="Maximum number of turns")
    simulate_parser.add_argument(
        "--policy", choices=["first_legal", "random"], default="first_legal", help="Bot policy"
    )
    simulate_parser.add_argument("--log", action="store_true", help="Print the full game log")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "cards":
        cmd_cards(args)
    elif args.command == "validate":
        cmd_validate(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_cards(args):
    """List the starter card library."""
    from .games.starter import starter_catalog

    for card in starter_catalog():
        stats = ""
        if card.attack is not None or card.health is not None:
            stats = f" {card.attack if card.attack is not None else '-'}/{card.health}"
        print(f"{card.id}  {card.name:<20} {card.card_type.value:<10} cost {card.cost}{stats}")
        if card.description:
            print(f"    {card.description}")


def cmd_validate(args):
    """Validate a card catalog."""
    from .catalog import CardCatalog, validate_catalog

    try:
        with open(args.cards_file, "r", encoding="utf-8") as f:
            catalog = CardCatalog.from_dicts(json.load(f))
        deck = None
        if args.deck:
            with open(args.deck, "r", encoding="utf-8") as f:
                deck = json.load(f)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}")
        sys.exit(1)
    except (json.JSONDecodeError, KeyError, ValueError) as e:
        print(f"Error: Could not load catalog: {e}")
        sys.exit(1)

    result = validate_catalog(catalog, deck)
    print(f"Cards: {len(catalog)}")

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        sys.exit(1)

    print("Catalog is valid")


def cmd_simulate(args):
    """Play a bot-vs-bot game and print the result."""
    state = asyncio.run(simulate(args.seed, args.turns, args.policy))

    if args.log:
        for entry in state.game_log:
            print(f"{entry.seq:4d} {entry.player_id:<10} {entry.action.value:<18} {entry.description}")
        print()

    print(f"Game: {state.game_id}")
    print(f"Turns: {state.turn_number}")
    for player_id in state.players:
        resources = state.resources[player_id]
        print(f"  {player_id}: {resources.health}/{resources.max_health} health")
    if state.winner_id:
        print(f"Winner: {state.winner_id}")
    else:
        print("No winner (turn limit reached)")


async def simulate(seed: int = 0, max_turns: int = 200, policy: str = "first_legal"):
    """Run a two-bot game to completion or the turn limit. Returns the final state."""
    from .bots import BotPlayer, FirstLegalPolicy, RandomPolicy
    from .engine_core import GameEngine, InMemoryGameStore
    from .games.starter import setup_game

    state = setup_game(["bot_1", "bot_2"], random_seed=seed)
    engine = GameEngine(InMemoryGameStore(state))
    bots = {}
    for offset, player_id in enumerate(state.players):
        bot_policy = RandomPolicy(seed + offset) if policy == "random" else FirstLegalPolicy()
        bots[player_id] = BotPlayer(player_id, bot_policy, engine)

    while engine.state.is_playing and engine.state.turn_number <= max_turns:
        await bots[engine.state.current_player_id].play_turn()

    for bot in bots.values():
        bot.detach()
    return engine.state


if __name__ == "__main__":
    main()
