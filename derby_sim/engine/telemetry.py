from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence


@dataclass
class TelemetryHorseFrame:
    horse_id: int
    name: str
    progress: float
    position: Optional[int]
    speed: float
    speed_factor: float
    racing_style: Optional[str]
    is_finished: bool


@dataclass
class TelemetryFrame:
    tick: int
    round_id: int
    time: float
    leader_id: Optional[int]
    horses: List[TelemetryHorseFrame] = field(default_factory=list)


class TelemetryCollector:
    def __init__(self) -> None:
        self.frames: List[TelemetryFrame] = []

    def record_frame(self, frame: TelemetryFrame) -> None:
        self.frames.append(frame)

    def export(self) -> Sequence[TelemetryFrame]:
        return tuple(self.frames)

    def clear(self) -> None:
        self.frames.clear()
