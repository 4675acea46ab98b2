"""
natecon CLI - Command-line interface for the engine.

Usage:
    natecon simulate [--players N] [--version base|glory]
                     [--difficulty heuristic|random] [--games K] [--seed S]
    natecon serve [--host HOST] [--port PORT]
"""

import argparse
import logging
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="natecon - National Economy rules engine and CPU opponents",
        prog="natecon",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play CPU-only games")
    simulate_parser.add_argument("--players", type=int, default=2, choices=[1, 2, 3, 4], help="Seats per game")
    simulate_parser.add_argument("--version", choices=["base", "glory"], default="base", help="Card set")
    simulate_parser.add_argument(
        "--difficulty", choices=["heuristic", "random"], default="heuristic", help="CPU difficulty",
    )
    simulate_parser.add_argument("--games", type=int, default=1, help="Number of games")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Seed of the first game")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_simulate(args):
    """Play CPU-only games and print the rankings."""
    from .bots import HeuristicPolicy, RandomPolicy
    from .engine_core.catalog import GameVersion
    from .engine_core.state import GameOptions
    from .games.national_economy import default_catalog
    from .session import GameStuckError, simulate_game

    catalog = default_catalog()
    version = GameVersion(args.version)
    wins = [0] * args.players
    winning_scores = []

    for game in range(args.games):
        seed = None if args.seed is None else args.seed + game
        policy_cls = HeuristicPolicy if args.difficulty == "heuristic" else RandomPolicy
        policy = policy_cls(catalog, seed=seed)
        options = GameOptions(version=version, seed=seed)
        try:
            state = simulate_game(
                catalog, args.players, options,
                policies={pid: policy for pid in range(args.players)},
            )
        except GameStuckError as e:
            print(f"Game {game + 1}: stuck: {e}")
            sys.exit(1)

        ranking = ", ".join(f"P{s.player_id + 1}={s.score}" for s in state.final_scores)
        print(f"Game {game + 1} (seed {seed}, {state.move_count} moves): {ranking}")
        winner = state.final_scores[0]
        wins[winner.player_id] += 1
        winning_scores.append(winner.score)

    if args.games > 1:
        print("\nWins per seat: " + ", ".join(f"P{i + 1}={w}" for i, w in enumerate(wins)))
        print(f"Average winning score: {sum(winning_scores) / len(winning_scores):.1f}")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn")
        sys.exit(1)

    uvicorn.run("natecon.api.app:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
