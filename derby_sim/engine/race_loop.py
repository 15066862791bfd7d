from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, List, MutableSet, Optional, Sequence

from derby_sim.errors import StepError
from derby_sim.formatting import format_finish_time

from .data_models import Horse, RaceResult, RaceRound
from .physics import SpeedModel
from .telemetry import TelemetryCollector, TelemetryFrame, TelemetryHorseFrame
from .tuning import DEFAULT_SETTINGS

DEFAULT_STEP_SIZE = DEFAULT_SETTINGS.step_size


def simulate_race_step(
    horses: Sequence[Horse],
    distance: float,
    finished: MutableSet[int],
    step_size: float = DEFAULT_STEP_SIZE,
    model: Optional[SpeedModel] = None,
    speeds: Optional[Dict[int, float]] = None,
) -> List[RaceResult]:
    """
    Advances every unfinished horse by one tick and re-ranks the field.

    ``finished`` is owned by the caller and persists across ticks of a round.
    Horses crossing the line in the same call get sequential positions in
    iteration order. Only results produced by this call are returned.
    """
    model = model or SpeedModel()
    results: List[RaceResult] = []
    moved: List[Horse] = []

    for horse in horses:
        if horse.horse_id in finished:
            continue

        if horse.progress is None:
            horse.progress = 0.0

        try:
            speed = model.speed(horse, distance, horse.progress)
        except (TypeError, ValueError, AttributeError) as exc:
            raise StepError(f"Cannot advance horse {horse.horse_id}: {exc}") from exc
        if speeds is not None:
            speeds[horse.horse_id] = speed

        new_progress = max(horse.progress + speed * step_size, horse.progress)
        if new_progress >= 1:
            finished.add(horse.horse_id)
            horse.progress = 1.0
            results.append(
                RaceResult(position=len(finished), horse_id=horse.horse_id, horse_name=horse.name)
            )
        else:
            horse.progress = new_progress
        moved.append(horse)

    # Only horses moved this call are ranked; earlier finishers keep their position.
    ranked = sorted(moved, key=lambda h: h.progress, reverse=True)
    for rank, horse in enumerate(ranked, start=1):
        horse.position = rank

    return results


class RaceLoop:
    """Drives one round tick by tick, stamping finish times and telemetry."""

    def __init__(
        self,
        race_round: RaceRound,
        model: Optional[SpeedModel] = None,
        step_size: float = DEFAULT_STEP_SIZE,
        tick_seconds: float = DEFAULT_SETTINGS.tick_seconds,
        telemetry: Optional[TelemetryCollector] = None,
    ) -> None:
        if race_round.distance <= 0:
            raise ValueError(f"Round {race_round.round_id} has no valid distance.")
        self.race_round = race_round
        self.model = model or SpeedModel()
        self.step_size = step_size
        self.tick_seconds = tick_seconds
        self.telemetry = telemetry
        self.finished: set = set()
        self.tick_index = 0

    @property
    def time_elapsed(self) -> float:
        return self.tick_index * self.tick_seconds

    @property
    def is_finished(self) -> bool:
        horses = self.race_round.horses
        return bool(horses) and all(h.horse_id in self.finished for h in horses)

    def tick(self, step_size: Optional[float] = None) -> List[RaceResult]:
        speeds: Dict[int, float] = {}
        raw_results = simulate_race_step(
            self.race_round.horses,
            self.race_round.distance,
            self.finished,
            step_size if step_size is not None else self.step_size,
            model=self.model,
            speeds=speeds,
        )
        self.tick_index += 1

        finish_time = format_finish_time(self.time_elapsed)
        results = [replace(result, finish_time=finish_time) for result in raw_results]

        if self.telemetry is not None:
            self._record_frame(speeds)
        return results

    def run_until_finished(
        self,
        on_tick: Optional[Callable[[List[RaceResult]], None]] = None,
        max_ticks: int = 100_000,
    ) -> List[RaceResult]:
        collected: List[RaceResult] = []
        for _ in range(max_ticks):
            results = self.tick()
            collected.extend(results)
            if on_tick:
                on_tick(results)
            if self.is_finished:
                break
        return collected

    def _record_frame(self, speeds: Dict[int, float]) -> None:
        horses = self.race_round.horses
        leader = min(
            (h for h in horses if h.position is not None),
            key=lambda h: h.position,
            default=None,
        )
        frames = [
            TelemetryHorseFrame(
                horse_id=horse.horse_id,
                name=horse.name,
                progress=horse.progress,
                position=horse.position,
                speed=speeds.get(horse.horse_id, 0.0),
                speed_factor=horse.race_day.last_speed_factor if horse.race_day else 1.0,
                racing_style=horse.racing_style.value if horse.racing_style else None,
                is_finished=horse.horse_id in self.finished,
            )
            for horse in horses
        ]
        self.telemetry.record_frame(
            TelemetryFrame(
                tick=self.tick_index,
                round_id=self.race_round.round_id,
                time=self.time_elapsed,
                leader_id=leader.horse_id if leader else None,
                horses=frames,
            )
        )
