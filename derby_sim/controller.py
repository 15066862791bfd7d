from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from derby_sim.engine.constants import ERROR_MESSAGES
from derby_sim.engine.data_models import (
    Horse,
    ProgramStatus,
    RaceProgram,
    RaceResult,
    RaceRound,
    RoundStatus,
)
from derby_sim.engine.physics import SpeedModel
from derby_sim.engine.race_loop import RaceLoop
from derby_sim.engine.telemetry import TelemetryCollector
from derby_sim.engine.tuning import DEFAULT_SETTINGS, DEFAULT_TUNING, RaceSettings, SpeedTuning
from derby_sim.errors import LifecycleError
from derby_sim.formatting import format_distance
from derby_sim.program import generate_race_program
from derby_sim.scheduler import AsyncioScheduler, ScheduledTask, Scheduler
from derby_sim.stable import generate_horses, reset_horse_progress


@dataclass(frozen=True)
class ActionOutcome:
    """What happened when the controller was asked to do something.

    ``applied`` is False both when the action was ignored by a guard and when
    it failed; only failures carry an ``error``.
    """

    applied: bool
    error: Optional[str] = None
    results: Tuple[RaceResult, ...] = ()

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def done(cls, results: Iterable[RaceResult] = ()) -> "ActionOutcome":
        return cls(applied=True, results=tuple(results))

    @classmethod
    def ignored(cls) -> "ActionOutcome":
        return cls(applied=False)

    @classmethod
    def failure(cls, message: str) -> "ActionOutcome":
        return cls(applied=False, error=message)


class RaceController:
    """
    Owns the horse pool and race program and walks them through the round
    lifecycle: idle -> generated -> racing <-> paused -> transitioning ->
    racing (next round) ... -> completed.

    No action raises. A failure is stored in ``error`` (latest only) and the
    controller drops back to a safe state.
    """

    TAG = "[RaceController]"

    def __init__(
        self,
        settings: Optional[RaceSettings] = None,
        tuning: Optional[SpeedTuning] = None,
        scheduler: Optional[Scheduler] = None,
        rng=None,
        telemetry: Optional[TelemetryCollector] = None,
        verbose: bool = False,
    ):
        self.settings = settings or DEFAULT_SETTINGS
        self.speed_model = SpeedModel(tuning or DEFAULT_TUNING, rng=rng)
        self.scheduler = scheduler or AsyncioScheduler()
        self.rng = rng
        self.telemetry = telemetry
        self.verbose = verbose

        self.horses: List[Horse] = []
        self.program = RaceProgram()
        self.round_transition_delay_ms = self.settings.round_transition_delay_ms
        self.is_transitioning = False
        self.next_round_index = -1
        self.error: Optional[str] = None

        self._race_loop: Optional[RaceLoop] = None
        self._tasks: List[ScheduledTask] = []

    # --- Read surface ----------------------------------------------------

    @property
    def current_round(self) -> Optional[RaceRound]:
        rounds = self.program.rounds
        if not rounds or not 0 <= self.program.current_round < len(rounds):
            return None
        return rounds[self.program.current_round]

    @property
    def next_round(self) -> Optional[RaceRound]:
        if self.next_round_index < 0 or self.next_round_index >= len(self.program.rounds):
            return None
        return self.program.rounds[self.next_round_index]

    @property
    def status(self) -> ProgramStatus:
        return self.program.status

    @property
    def is_racing(self) -> bool:
        return self.program.status is ProgramStatus.RACING

    @property
    def is_paused(self) -> bool:
        return self.program.status is ProgramStatus.PAUSED

    @property
    def is_completed(self) -> bool:
        return self.program.status is ProgramStatus.COMPLETED

    @property
    def can_start(self) -> bool:
        return (
            self.program.status in (ProgramStatus.GENERATED, ProgramStatus.PAUSED)
            and not self.is_transitioning
        )

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @property
    def current_round_finished(self) -> bool:
        return self._race_loop is not None and self._race_loop.is_finished

    @property
    def pending_tasks(self) -> List[ScheduledTask]:
        return [task for task in self._tasks if task.pending]

    def get_horse_by_id(self, horse_id: int) -> Optional[Horse]:
        return next((h for h in self.horses if h.horse_id == horse_id), None)

    # --- Generation ------------------------------------------------------

    def generate_horses(self) -> ActionOutcome:
        try:
            horses = generate_horses(self.settings.horse_count, self.settings, rng=self.rng)
        except Exception as exc:
            return self._fail("horse_generation", exc)

        self.horses = horses
        self.error = None
        self._log(f"Generated {len(horses)} horses.")
        return ActionOutcome.done()

    def generate_race_program(self) -> ActionOutcome:
        try:
            rounds = generate_race_program(self.horses, self.settings, rng=self.rng)
            race_loop = self._new_race_loop(rounds[0] if rounds else None)
        except Exception as exc:
            return self._fail("race_generation", exc)

        self._cancel_pending_tasks()
        self.program = RaceProgram(rounds=rounds, current_round=0, status=ProgramStatus.GENERATED)
        self.is_transitioning = False
        self.next_round_index = -1
        self._race_loop = race_loop
        self.error = None
        self._log(
            f"Generated program of {len(rounds)} rounds: "
            + ", ".join(format_distance(r.distance) for r in rounds)
        )
        return ActionOutcome.done()

    # --- Racing ----------------------------------------------------------

    def start_race(self) -> ActionOutcome:
        try:
            if not self.can_start:
                return ActionOutcome.ignored()

            race_round = self.current_round
            if race_round is None:
                raise LifecycleError("Program has no rounds to start.")
            self.program.status = ProgramStatus.RACING
            race_round.status = RoundStatus.IN_PROGRESS
            self.error = None
            self._log(f"Round {race_round.round_id} ({format_distance(race_round.distance)}) is racing.")
            return ActionOutcome.done()
        except Exception as exc:
            outcome = self._fail("start", exc)
            self.pause_race()
            return outcome

    def pause_race(self) -> ActionOutcome:
        if self.program.status is not ProgramStatus.RACING:
            return ActionOutcome.ignored()
        self.program.status = ProgramStatus.PAUSED
        return ActionOutcome.done()

    def toggle_race(self) -> ActionOutcome:
        if self.is_transitioning:
            return ActionOutcome.ignored()
        if self.program.status is ProgramStatus.RACING:
            return self.pause_race()
        return self.start_race()

    def advance_current_round(self, step_size: Optional[float] = None) -> ActionOutcome:
        """One tick of the current round; only moves horses while racing."""
        if not self.is_racing or self._race_loop is None:
            return ActionOutcome.ignored()
        try:
            results = self._race_loop.tick(step_size)
            race_round = self._race_loop.race_round
            for result in results:
                race_round.upsert_result(result)
        except Exception as exc:
            outcome = self._fail("simulation", exc)
            self.pause_race()
            return outcome
        return ActionOutcome.done(results)

    def update_live_results(self, result: RaceResult) -> ActionOutcome:
        try:
            race_round = self.current_round
            if race_round is None:
                return ActionOutcome.ignored()
            race_round.upsert_result(result)
            self.error = None
            return ActionOutcome.done((result,))
        except Exception as exc:
            return self._fail("simulation", exc)

    def update_horse_progress(self, horse_id: int, progress: float) -> ActionOutcome:
        try:
            race_round = self.current_round
            if race_round is None:
                return ActionOutcome.ignored()
            horse = race_round.horse(horse_id)
            if horse is None:
                return ActionOutcome.ignored()
            horse.progress = float(progress)
            self.error = None
            return ActionOutcome.done()
        except Exception as exc:
            return self._fail("simulation", exc)

    def finish_current_round(self, final_results: Iterable[RaceResult]) -> ActionOutcome:
        try:
            race_round = self.current_round
            if race_round is None:
                return ActionOutcome.ignored()
            for result in final_results:
                race_round.upsert_result(result)
            race_round.status = RoundStatus.COMPLETED
            self._log(f"Round {race_round.round_id} finished. Winner: {self._winner_name(race_round)}")

            transition = self.begin_transition_to_next_round()
            if transition.failed:
                return transition
            self.error = None
            return ActionOutcome.done(race_round.ordered_results())
        except Exception as exc:
            outcome = self._fail("simulation", exc)
            self.pause_race()
            return outcome

    # --- Round transitions -----------------------------------------------

    def begin_transition_to_next_round(self) -> ActionOutcome:
        try:
            if self.program.current_round >= len(self.program.rounds) - 1:
                self.program.status = ProgramStatus.COMPLETED
                self.is_transitioning = False
                self._log("Program complete.")
                return ActionOutcome.done()

            if self.is_transitioning:
                return ActionOutcome.ignored()

            self.is_transitioning = True
            self.next_round_index = self.program.current_round + 1
            self.program.status = ProgramStatus.PAUSED
            self._schedule(self.round_transition_delay_ms, self.complete_transition_to_next_round)
            self.error = None
            self._log(
                f"Next round {self.next_round_index + 1} starts in "
                f"{self.round_transition_delay_ms / 1000:.1f}s."
            )
            return ActionOutcome.done()
        except Exception as exc:
            self.is_transitioning = False
            outcome = self._fail("transition", exc)
            self.pause_race()
            return outcome

    def complete_transition_to_next_round(self) -> ActionOutcome:
        try:
            program = self.program
            if program.current_round + 1 >= len(program.rounds):
                raise LifecycleError("No round left to transition to.")

            program.current_round += 1
            race_round = self.current_round
            reset_horse_progress(race_round.horses)
            race_round.status = RoundStatus.PENDING
            self._race_loop = self._new_race_loop(race_round)

            self.is_transitioning = False
            self.next_round_index = -1

            captured_round = program.current_round

            def _start_if_still_current() -> None:
                # A restart or regeneration in the meantime makes this callback stale.
                if self.program is not program or program.current_round != captured_round:
                    return
                program.status = ProgramStatus.RACING
                race_round.status = RoundStatus.IN_PROGRESS
                self._log(f"Round {race_round.round_id} ({format_distance(race_round.distance)}) is racing.")

            self._schedule(self.settings.start_grace_delay_ms, _start_if_still_current)
            self.error = None
            return ActionOutcome.done()
        except Exception as exc:
            self.is_transitioning = False
            outcome = self._fail("transition", exc)
            self.pause_race()
            return outcome

    # --- Reset -----------------------------------------------------------

    def restart(self) -> ActionOutcome:
        try:
            self._cancel_pending_tasks()
            for race_round in self.program.rounds:
                reset_horse_progress(race_round.horses)

            self.program.status = ProgramStatus.IDLE
            self.program.current_round = 0
            self.is_transitioning = False
            self.next_round_index = -1
            self._race_loop = self._new_race_loop(self.current_round)
            self.error = None
            return ActionOutcome.done()
        except Exception as exc:
            return self._fail("simulation", exc)

    def clear_error(self) -> None:
        self.error = None

    # --- Rendering -------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data view of everything a renderer needs."""
        return {
            "status": self.program.status.value,
            "current_round_index": self.program.current_round,
            "is_transitioning": self.is_transitioning,
            "next_round_index": self.next_round_index,
            "error": self.error,
            "horses": [_horse_view(h) for h in self.horses],
            "current_round": _round_view(self.current_round),
            "next_round": _round_view(self.next_round),
            "rounds": [_round_view(r) for r in self.program.rounds],
        }

    # --- Helpers ---------------------------------------------------------

    def _new_race_loop(self, race_round: Optional[RaceRound]) -> Optional[RaceLoop]:
        if race_round is None:
            return None
        return RaceLoop(
            race_round,
            model=self.speed_model,
            step_size=self.settings.step_size,
            tick_seconds=self.settings.tick_seconds,
            telemetry=self.telemetry,
        )

    def _schedule(self, delay_ms: float, callback) -> ScheduledTask:
        self._tasks = [task for task in self._tasks if task.pending]
        task = self.scheduler.call_later(delay_ms, callback)
        self._tasks.append(task)
        return task

    def _cancel_pending_tasks(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks = []

    def _fail(self, kind: str, exc: Exception) -> ActionOutcome:
        message = ERROR_MESSAGES[kind]
        print(f"{self.TAG} {message}: {exc}")
        self.error = message
        return ActionOutcome.failure(message)

    def _log(self, message: str) -> None:
        if self.verbose:
            print(f"{self.TAG} {message}")

    @staticmethod
    def _winner_name(race_round: RaceRound) -> str:
        ordered = race_round.ordered_results()
        return ordered[0].horse_name if ordered else "none"


def _horse_view(horse: Horse) -> Dict[str, Any]:
    return {
        "id": horse.horse_id,
        "name": horse.name,
        "color": horse.color,
        "condition": horse.condition,
        "progress": horse.progress,
        "position": horse.position,
        "racing_style": horse.racing_style.value if horse.racing_style else None,
    }


def _round_view(race_round: Optional[RaceRound]) -> Optional[Dict[str, Any]]:
    if race_round is None:
        return None
    return {
        "id": race_round.round_id,
        "distance": race_round.distance,
        "distance_label": format_distance(race_round.distance),
        "status": race_round.status.value,
        "horses": [_horse_view(h) for h in race_round.horses],
        "results": [
            {
                "position": r.position,
                "horse_id": r.horse_id,
                "horse_name": r.horse_name,
                "finish_time": r.finish_time,
            }
            for r in race_round.ordered_results()
        ],
    }
