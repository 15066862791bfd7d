from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .data_models import Horse, RaceDayState, RacingStyle
from .tuning import DEFAULT_TUNING, SpeedTuning


@dataclass(frozen=True)
class SpeedBreakdown:
    """Every factor that went into one speed evaluation."""

    base_speed: float
    burst: float
    racing_style: float
    pack_racing: float
    stability: float
    random_adjustment: float
    section: float
    target_factor: float
    speed_factor: float
    distance_match: float
    base_multiplier: float
    distance_scaling: float
    minimum_speed: float
    maximum_speed: float
    raw_speed: float
    speed: float


class SpeedModel:
    """Turns a horse's condition and race-day state into a per-tick speed.

    The model is stochastic: bursts, stability jitter and the race-day roll
    all draw from ``rng``. Only the evaluated horse's ``race_day`` state is
    mutated.
    """

    def __init__(self, tuning: Optional[SpeedTuning] = None, rng=None):
        self.tuning = tuning or DEFAULT_TUNING
        self.rng = rng or random

    def initialise_race_day(self, horse: Horse) -> RaceDayState:
        """Roll the per-round latent attributes if the horse has none yet."""
        if horse.race_day is not None:
            return horse.race_day

        t = self.tuning
        rng = self.rng
        race_day_factor = rng.uniform(*t.race_day_range)
        track_preference = rng.uniform(*t.track_preference_range)
        lucky_factor = rng.uniform(*t.lucky_range)

        style_roll = rng.random()
        if style_roll < t.frontrunner_threshold:
            style = RacingStyle.FRONTRUNNER
        elif style_roll < t.steady_threshold:
            style = RacingStyle.STEADY
        else:
            style = RacingStyle.CLOSER

        horse.race_day = RaceDayState(
            racing_style=style,
            race_day_factor=race_day_factor,
            track_preference=track_preference,
            lucky_factor=lucky_factor,
            distance_preference=rng.uniform(*t.distance_preference_range),
            last_speed_factor=1.0,
        )
        return horse.race_day

    def bounds(self, horse: Horse, distance: float) -> Tuple[float, float]:
        """(minimum, maximum) speed the model can return for this horse and distance."""
        t = self.tuning
        if distance <= 0:
            raise ValueError(f"Race distance must be positive, got {distance}")
        normalized = t.normalized_condition(horse.condition)
        distance_scaling = t.shortest_distance / distance
        minimum = t.minimum_speed_factor * distance_scaling
        condition_bonus = 1 + normalized * 0.2
        maximum = (distance / t.shortest_distance) * t.maximum_speed_factor * condition_bonus * distance_scaling
        return minimum, maximum

    def evaluate(self, horse: Horse, distance: float, progress: float = 0.0) -> SpeedBreakdown:
        t = self.tuning
        state = self.initialise_race_day(horse)
        normalized = t.normalized_condition(horse.condition)

        condition_factor = normalized ** 2
        base_speed = (horse.condition / 10) * (0.90 + condition_factor * 0.7)

        burst = self._burst()
        style_factor = self._racing_style_factor(state.racing_style, normalized, progress)
        pack_factor = self._pack_racing_factor(horse)
        stability, random_adjustment = self._stability(horse)
        section = math.sin((progress * math.pi * 2) + (horse.horse_id * 0.7)) * 0.01

        target_factor = (
            state.race_day_factor
            * state.track_preference
            * state.lucky_factor
            * burst
            * style_factor
            * pack_factor
            * (1 + section)
            * (1 + random_adjustment)
        )

        # Fitter horses settle into a new pace faster.
        rate = t.transition_rate_base * (1 + normalized * 0.5)
        speed_factor = state.last_speed_factor * (1 - rate) + target_factor * rate
        state.last_speed_factor = speed_factor

        race_length = distance / t.shortest_distance
        distance_match = 1 - abs(race_length - (1 + state.distance_preference)) * t.distance_match_weight

        base_multiplier = t.base_multiplier * (1 + normalized * 0.25)
        distance_scaling = t.shortest_distance / distance
        minimum, maximum = self.bounds(horse, distance)

        raw = base_speed * base_multiplier * speed_factor * distance_match * distance_scaling
        speed = float(np.clip(raw, minimum, maximum))

        return SpeedBreakdown(
            base_speed=base_speed,
            burst=burst,
            racing_style=style_factor,
            pack_racing=pack_factor,
            stability=stability,
            random_adjustment=random_adjustment,
            section=section,
            target_factor=target_factor,
            speed_factor=speed_factor,
            distance_match=distance_match,
            base_multiplier=base_multiplier,
            distance_scaling=distance_scaling,
            minimum_speed=minimum,
            maximum_speed=maximum,
            raw_speed=raw,
            speed=speed,
        )

    def speed(self, horse: Horse, distance: float, progress: float = 0.0) -> float:
        return self.evaluate(horse, distance, progress).speed

    # --- Helpers ---------------------------------------------------------

    def _burst(self) -> float:
        t = self.tuning
        if self.rng.random() > t.burst_chance:
            return self.rng.uniform(t.min_burst_boost, t.max_burst_boost)
        return 1.0

    def _racing_style_factor(self, style: RacingStyle, normalized: float, progress: float) -> float:
        t = self.tuning
        effectiveness = 0.7 + normalized * 0.3
        if style is RacingStyle.FRONTRUNNER:
            fade = t.frontrunner_fade * (1 - normalized)
            return (t.frontrunner_boost * effectiveness) * (1 - (progress * progress * fade))
        if style is RacingStyle.CLOSER:
            closing_power = t.closer_boost * effectiveness
            return t.closer_start_penalty + (progress ** 3) * closing_power
        return effectiveness

    def _pack_racing_factor(self, horse: Horse) -> float:
        t = self.tuning
        if not horse.position or horse.position <= 1:
            return 1.0
        # Stronger horses lean on the pack less.
        independence = min(1.0, max(0.5, horse.condition / t.max_condition))
        dependence = 1.2 - independence
        position_factor = min((horse.position - 1) * t.position_factor, t.max_pack_boost)
        return 1.0 + position_factor * dependence

    def _stability(self, horse: Horse) -> Tuple[float, float]:
        t = self.tuning
        base = max(t.stability_base_min, min(t.stability_base_max, horse.condition / t.max_condition))
        variance = (t.max_condition - horse.condition) / 2000
        stability = base + self.rng.random() * variance
        adjustment = ((self.rng.random() * 0.01) - 0.005) * (1.01 - stability)
        return stability, adjustment


def calculate_horse_speed(
    horse: Horse,
    distance: float,
    progress: float = 0.0,
    model: Optional[SpeedModel] = None,
) -> float:
    """Speed factor for one tick; lazily rolls the horse's race-day state."""
    return (model or SpeedModel()).speed(horse, distance, progress)
