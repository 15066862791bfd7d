from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional, Tuple

from derby_sim.config import get_config

from .constants import ROUND_DISTANCES, SHORTEST_DISTANCE


def _config_section(name: str) -> Dict[str, Any]:
    section = get_config(name)
    if not isinstance(section, dict):
        return {}
    return section


def _overrides(cls, values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if not values:
        return {}
    known = {f.name: f for f in fields(cls)}
    result: Dict[str, Any] = {}
    for key, value in values.items():
        if key not in known or value is None:
            continue
        if isinstance(value, list):
            value = tuple(value)
        result[key] = value
    return result


@dataclass(frozen=True)
class RaceSettings:
    """Program-level configuration: pool sizes, the distance ladder and timings."""

    horse_count: int = 20
    horses_per_race: int = 10
    total_rounds: int = 6
    round_distances: Tuple[int, ...] = ROUND_DISTANCES
    round_transition_delay_ms: int = 6000
    start_grace_delay_ms: int = 500
    min_horse_condition: int = 60
    max_horse_condition: int = 100
    step_size: float = 0.005
    tick_seconds: float = 0.05

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]] = None) -> "RaceSettings":
        return cls(**_overrides(cls, values))

    @classmethod
    def from_config(cls) -> "RaceSettings":
        return cls.from_mapping(_config_section("race"))


@dataclass(frozen=True)
class SpeedTuning:
    """Constants of the per-tick speed model."""

    min_condition: int = 60
    max_condition: int = 100

    # Racing style
    frontrunner_boost: float = 1.07
    frontrunner_fade: float = 0.25
    closer_start_penalty: float = 0.85
    closer_boost: float = 0.25
    frontrunner_threshold: float = 0.30
    steady_threshold: float = 0.70

    # Pack racing
    position_factor: float = 0.08
    max_pack_boost: float = 0.3

    # Stability
    stability_base_min: float = 0.9
    stability_base_max: float = 0.99

    # Speed calculation
    base_multiplier: float = 0.075
    minimum_speed_factor: float = 0.071
    maximum_speed_factor: float = 0.1
    transition_rate_base: float = 0.08
    shortest_distance: float = SHORTEST_DISTANCE
    distance_match_weight: float = 0.03

    # Bursts fire when a uniform draw exceeds burst_chance.
    burst_chance: float = 0.995
    min_burst_boost: float = 1.04
    max_burst_boost: float = 1.12

    # Race-day factor ranges
    race_day_range: Tuple[float, float] = (0.95, 1.05)
    track_preference_range: Tuple[float, float] = (0.96, 1.04)
    lucky_range: Tuple[float, float] = (0.97, 1.03)
    distance_preference_range: Tuple[float, float] = (-0.03, 0.03)

    @property
    def condition_span(self) -> float:
        return float(self.max_condition - self.min_condition)

    def normalized_condition(self, condition: float) -> float:
        return (condition - self.min_condition) / self.condition_span

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]] = None) -> "SpeedTuning":
        return cls(**_overrides(cls, values))

    @classmethod
    def from_config(cls) -> "SpeedTuning":
        race = _config_section("race")
        values: Dict[str, Any] = {}
        if "min_horse_condition" in race:
            values["min_condition"] = race["min_horse_condition"]
        if "max_horse_condition" in race:
            values["max_condition"] = race["max_horse_condition"]
        values.update(_config_section("race_simulation"))
        return cls.from_mapping(values)


DEFAULT_SETTINGS = RaceSettings.from_config()
DEFAULT_TUNING = SpeedTuning.from_config()
