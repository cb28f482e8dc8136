"""
HandParty CLI - Command-line interface for the coordinator.

Usage:
    handparty serve [--host H] [--port P]     Run the WebSocket server
    handparty prompts [--file catalog.json]   List the prompt catalog
    handparty simulate [--players N]          Play a local game with bots
"""

import argparse
import asyncio
import random
import sys

from .config import CoordinatorConfig, configure_logging
from .errors import CatalogError, ConfigError


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="HandParty - Multiplayer hand-shape party game coordinator",
        prog="handparty",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the WebSocket server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port")
    serve_parser.add_argument("--rounds", type=int, help="Override HANDPARTY_TOTAL_ROUNDS")

    # Prompts command
    prompts_parser = subparsers.add_parser("prompts", help="List the prompt catalog")
    prompts_parser.add_argument("--file", help="JSON catalog (defaults to built-in prompts)")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a local game with bots")
    simulate_parser.add_argument("--players", type=int, default=3, help="Number of bot players")
    simulate_parser.add_argument("--rounds", type=int, default=3, help="Rounds to play")
    simulate_parser.add_argument("--seed", type=int, help="Random seed")

    args = parser.parse_args()

    try:
        if args.command == "serve":
            cmd_serve(args)
        elif args.command == "prompts":
            cmd_prompts(args)
        elif args.command == "simulate":
            cmd_simulate(args)
        else:
            parser.print_help()
            sys.exit(1)
    except (ConfigError, CatalogError) as e:
        print(f"Error: {e}")
        sys.exit(1)


def cmd_serve(args):
    """Run the coordinator under uvicorn."""
    import uvicorn
    from dataclasses import replace
    from .api.app import create_app

    config = CoordinatorConfig.from_env()
    if args.rounds is not None:
        config = replace(config, total_rounds=args.rounds)
    configure_logging(config.log_level)

    print(f"Starting coordinator on ws://{args.host}:{args.port}/ws")
    print(f"Rounds: {config.total_rounds}, max players: {config.max_players}, scoring: {config.scoring_mode}")
    uvicorn.run(create_app(config=config), host=args.host, port=args.port, log_level=config.log_level.lower())


def cmd_prompts(args):
    """Print the prompt catalog."""
    from .prompts import DEFAULT_PROMPTS, load_catalog

    catalog = load_catalog(args.file) if args.file else DEFAULT_PROMPTS
    for prompt in catalog:
        print(f"{prompt.id:>6}  {prompt.shape1.value} + {prompt.shape2.value}  {prompt.object_to_make_en}: {prompt.full_text}")
    print(f"\n{len(catalog)} prompt(s)")


def cmd_simulate(args):
    """Play a full game locally with synthetic players and random scores."""
    results = asyncio.run(simulate(args.players, args.rounds, args.seed))
    for result in results:
        print(f"\nRound {result.round_number}: {result.prompt.object_to_make_en} ({result.prompt.full_text})")
        for outcome in result.outcomes:
            print(f"  #{outcome.rank} {outcome.player_name:<10} {outcome.hand_shape.value}  {outcome.score:>3}")
    if results:
        print("\nFinal leaderboard:")
        for entry in results[-1].leaderboard:
            print(f"  #{entry.rank} {entry.player_name:<10} {entry.total_score:>4}")


async def simulate(players: int, rounds: int, seed: int | None = None):
    """
    Drive a SessionManager through a whole game.

    Returns:
        The session's round history

    Raises:
        ConfigError: fewer than one player or one round
    """
    if players < 1:
        raise ConfigError(f"--players must be >= 1, got {players}")
    if rounds < 1:
        raise ConfigError(f"--rounds must be >= 1, got {rounds}")

    from .prompts.catalog import HandShape
    from .scoring import RandomScoreSource, RoundScorer
    from .session import SessionManager

    rng = random.Random(seed)
    manager = SessionManager(total_rounds=rounds, max_players=players, rng=rng)
    scorer = RoundScorer(RandomScoreSource(rng=rng))

    roster = [manager.join(f"Bot {i + 1}") for i in range(players)]
    host = roster[0]
    manager.start(host.player_id)

    while True:
        ticket = None
        for player in roster:
            ticket = manager.submit(player.player_id, rng.choice(list(HandShape)))
        scores = await scorer.evaluate(ticket.entries, ticket.prompt)
        manager.commit_seal(ticket, scores)
        session = manager.advance(host.player_id)
        if session.final_leaderboard is not None:
            return list(session.history)


if __name__ == "__main__":
    main()
