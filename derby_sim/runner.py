"""
Tick sources that drive a ``RaceController`` through a whole program.

``run_race_program`` is the live loop: it ticks on a real interval and lets
the asyncio scheduler fire the round handoffs. ``run_headless`` does the same
work as fast as possible against a ``ManualScheduler`` clock.
"""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

from derby_sim.controller import RaceController
from derby_sim.engine.data_models import ProgramStatus, RaceRound
from derby_sim.scheduler import ManualScheduler

RoundCallback = Callable[[RaceRound], None]


def _prepare(controller: RaceController) -> bool:
    if controller.generate_horses().failed:
        return False
    if controller.generate_race_program().failed:
        return False
    return not controller.start_race().failed


def _tick(controller: RaceController, on_round_finished: Optional[RoundCallback]) -> None:
    controller.advance_current_round()
    if controller.current_round_finished:
        race_round = controller.current_round
        controller.finish_current_round(race_round.ordered_results())
        if on_round_finished:
            on_round_finished(race_round)


def _stopped(controller: RaceController) -> bool:
    return (
        controller.is_completed
        or controller.has_error
        or controller.status in (ProgramStatus.IDLE, ProgramStatus.GENERATED)
    )


async def run_race_program(
    controller: RaceController,
    tick_interval: Optional[float] = None,
    on_round_finished: Optional[RoundCallback] = None,
) -> List[RaceRound]:
    """Generate, race and complete a full program in real time."""
    if not _prepare(controller):
        return []
    interval = controller.settings.tick_seconds if tick_interval is None else tick_interval

    while not _stopped(controller):
        if controller.is_racing:
            _tick(controller, on_round_finished)
        await asyncio.sleep(interval)

    return [r for r in controller.program.rounds if r.results]


def run_headless(
    controller: RaceController,
    on_round_finished: Optional[RoundCallback] = None,
    max_ticks: int = 1_000_000,
) -> List[RaceRound]:
    """Race a full program without waiting on wall-clock time."""
    scheduler = controller.scheduler
    if not isinstance(scheduler, ManualScheduler):
        raise TypeError("run_headless needs a controller built with a ManualScheduler.")
    if not _prepare(controller):
        return []

    for _ in range(max_ticks):
        if _stopped(controller):
            break
        if controller.is_racing:
            _tick(controller, on_round_finished)
            continue
        if scheduler.next_due() is None:
            # Paused with nothing scheduled: nobody is going to resume us.
            break
        scheduler.advance(scheduler.next_due() - scheduler.now_ms)

    return [r for r in controller.program.rounds if r.results]
