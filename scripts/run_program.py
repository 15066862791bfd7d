"""
Race a full program headlessly and print each round's finish order.

Usage:
    python scripts/run_program.py
    python scripts/run_program.py --silent --step-size 0.01
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import os
import sys

# Ensure repo root is on sys.path when script is executed from anywhere
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.append(REPO_ROOT)

from dotenv import load_dotenv  # noqa: E402

from derby_sim.controller import RaceController  # noqa: E402
from derby_sim.engine.tuning import DEFAULT_SETTINGS  # noqa: E402
from derby_sim.formatting import format_distance  # noqa: E402
from derby_sim.runner import run_headless  # noqa: E402
from derby_sim.scheduler import ManualScheduler  # noqa: E402


def main() -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Run a full race program without real-time delays.")
    parser.add_argument(
        "--silent",
        action="store_true",
        help="Only print the winner of each round.",
    )
    parser.add_argument(
        "--step-size",
        type=float,
        default=DEFAULT_SETTINGS.step_size,
        help="Progress multiplier applied to each tick's speed.",
    )
    args = parser.parse_args()

    settings = replace(DEFAULT_SETTINGS, step_size=args.step_size)
    controller = RaceController(settings=settings, scheduler=ManualScheduler(), verbose=not args.silent)
    rounds = run_headless(controller)

    if controller.has_error:
        print(f"Program stopped: {controller.error}")
        sys.exit(1)

    for race_round in rounds:
        ordered = race_round.ordered_results()
        if args.silent:
            winner = ordered[0] if ordered else None
            print(f"Round {race_round.round_id}: {winner.horse_name if winner else 'no finishers'}")
            continue
        print(f"\nRound {race_round.round_id} ({format_distance(race_round.distance)}) Finish Order:")
        for result in ordered:
            print(f"{result.position}. {result.horse_name} (ID {result.horse_id}) {result.finish_time}")


if __name__ == "__main__":
    main()
