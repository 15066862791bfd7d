import asyncio

from dotenv import load_dotenv

from derby_sim.controller import RaceController
from derby_sim.formatting import format_distance
from derby_sim.runner import run_race_program

# Load environment variables (e.g. DERBY_SIM_CONFIG) from .env file
load_dotenv()


def _print_round(race_round):
    print(f"\nRound {race_round.round_id} ({format_distance(race_round.distance)}) results:")
    for result in race_round.ordered_results()[:3]:
        print(f"  {result.position}. {result.horse_name} ({result.finish_time})")


async def run_simulator():
    """Races a full program in real time, handing off rounds on the asyncio loop."""
    print("--- Race Simulator Started ---")
    controller = RaceController(verbose=True)
    rounds = await run_race_program(controller, on_round_finished=_print_round)
    if controller.has_error:
        print(f"!!! Program stopped: {controller.error}")
    else:
        print(f"--- Program complete: {len(rounds)} rounds raced ---")


def main():
    try:
        asyncio.run(run_simulator())
    except KeyboardInterrupt:
        print("Race simulator stopped by user.")


if __name__ == "__main__":
    main()
