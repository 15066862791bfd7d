"""
Race simulation engine.

The package is split into data models, the speed model (physics), the
tick-by-tick race loop and telemetry. The round lifecycle controller in
``derby_sim.controller`` composes these pieces.
"""

from .data_models import (  # noqa: F401
    Horse,
    ProgramStatus,
    RaceDayState,
    RaceProgram,
    RaceResult,
    RaceRound,
    RacingStyle,
    RoundStatus,
)
from .physics import SpeedBreakdown, SpeedModel, calculate_horse_speed  # noqa: F401
from .race_loop import RaceLoop, simulate_race_step  # noqa: F401
from .telemetry import TelemetryCollector, TelemetryFrame, TelemetryHorseFrame  # noqa: F401
from .tuning import DEFAULT_SETTINGS, DEFAULT_TUNING, RaceSettings, SpeedTuning  # noqa: F401

__all__ = [
    "Horse",
    "ProgramStatus",
    "RaceDayState",
    "RaceProgram",
    "RaceResult",
    "RaceRound",
    "RacingStyle",
    "RoundStatus",
    "SpeedBreakdown",
    "SpeedModel",
    "calculate_horse_speed",
    "RaceLoop",
    "simulate_race_step",
    "TelemetryCollector",
    "TelemetryFrame",
    "TelemetryHorseFrame",
    "DEFAULT_SETTINGS",
    "DEFAULT_TUNING",
    "RaceSettings",
    "SpeedTuning",
]
