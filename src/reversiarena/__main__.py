"""CLI entry point: python -m reversiarena <session.yaml>"""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from reversiarena.config import load_config
from reversiarena.session import Session


def _print_tally(tally) -> None:
    wins = ", ".join(f"{k}: {v}" for k, v in tally.wins.items()) or "-"
    print(f"  {tally.title:6s} {wins}  (draws: {tally.draws})")


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=os.environ.get("REVERSIARENA_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        prog="reversiarena",
        description="Run a headless Reversi session between machine agents",
    )
    parser.add_argument(
        "config",
        type=Path,
        help="Path to session YAML config file",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output directory for JSONL telemetry (default: none)",
    )
    parser.add_argument(
        "-n", "--matches",
        type=int,
        default=None,
        help="Override the number of matches",
    )
    args = parser.parse_args()

    if not args.config.exists():
        print(f"Error: config file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    config = load_config(args.config)
    if args.output:
        config.output_dir = args.output
    if args.matches is not None:
        config.matches = args.matches

    print(f"Session: {config.name} (seed={config.seed}, matches={config.matches})")
    for agent in config.agents.values():
        print(f"  {agent.name:12s} team {agent.team_id}  {agent.color.value:5s}  {agent.strategy}")
    print()

    session = Session(config)
    result = session.run()

    print("=" * 60)
    print("TALLIES")
    print("=" * 60)
    _print_tally(result.color_tally)
    _print_tally(result.team_tally)
    if result.race_tally.total:
        _print_tally(result.race_tally)
    print()
    print(f"Episodes ended: {result.fidelity}")
    if result.telemetry_dir:
        print(f"Telemetry: {result.telemetry_dir}")


if __name__ == "__main__":
    main()
