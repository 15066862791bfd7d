from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class RacingStyle(Enum):
    """Behavioural archetype shaping a horse's speed curve over a race."""

    FRONTRUNNER = "frontrunner"
    STEADY = "steady"
    CLOSER = "closer"


class RoundStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class ProgramStatus(Enum):
    IDLE = "idle"
    GENERATED = "generated"
    RACING = "racing"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass
class RaceDayState:
    """Latent per-round attributes, rolled once on a horse's first speed evaluation."""

    racing_style: RacingStyle
    race_day_factor: float
    track_preference: float
    lucky_factor: float
    distance_preference: float
    last_speed_factor: float = 1.0


@dataclass
class Horse:
    horse_id: int
    name: str
    color: str
    condition: int
    progress: float = 0.0
    position: Optional[int] = None
    # None until the speed model initialises the horse for the current round.
    race_day: Optional[RaceDayState] = None

    @property
    def racing_style(self) -> Optional[RacingStyle]:
        return self.race_day.racing_style if self.race_day else None

    def copy_for_round(self) -> "Horse":
        """Fresh, independent copy with no race state attached."""
        return Horse(
            horse_id=self.horse_id,
            name=self.name,
            color=self.color,
            condition=self.condition,
        )


@dataclass(frozen=True)
class RaceResult:
    position: int
    horse_id: int
    horse_name: str
    finish_time: Optional[str] = None


@dataclass
class RaceRound:
    round_id: int
    distance: int
    horses: List[Horse] = field(default_factory=list)
    results: List[RaceResult] = field(default_factory=list)
    status: RoundStatus = RoundStatus.PENDING

    def result_for(self, horse_id: int) -> Optional[RaceResult]:
        for result in self.results:
            if result.horse_id == horse_id:
                return result
        return None

    def upsert_result(self, result: RaceResult) -> None:
        """Replace the result for the same horse, or append a new one."""
        for idx, existing in enumerate(self.results):
            if existing.horse_id == result.horse_id:
                self.results[idx] = result
                return
        self.results.append(result)

    def horse(self, horse_id: int) -> Optional[Horse]:
        return next((h for h in self.horses if h.horse_id == horse_id), None)

    @property
    def is_finished(self) -> bool:
        return bool(self.horses) and all(self.result_for(h.horse_id) for h in self.horses)

    def ordered_results(self) -> List[RaceResult]:
        return sorted(self.results, key=lambda r: r.position)


@dataclass
class RaceProgram:
    rounds: List[RaceRound] = field(default_factory=list)
    current_round: int = 0
    status: ProgramStatus = ProgramStatus.IDLE
