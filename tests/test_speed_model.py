import math
import random

import pytest

from derby_sim.engine import Horse, RaceDayState, RacingStyle, SpeedModel, calculate_horse_speed
from derby_sim.engine.constants import ROUND_DISTANCES


class _FixedRng:
    """Every draw returns the same point of its range."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value

    def uniform(self, a: float, b: float) -> float:
        return a + (b - a) * self.value


def _horse(horse_id: int = 1, condition: int = 80, position=None) -> Horse:
    return Horse(horse_id=horse_id, name=f"Horse {horse_id}", color="#FF0000", condition=condition, position=position)


def _race_day(style: RacingStyle, distance_preference: float = 0.0) -> RaceDayState:
    return RaceDayState(
        racing_style=style,
        race_day_factor=1.0,
        track_preference=1.0,
        lucky_factor=1.0,
        distance_preference=distance_preference,
    )


def test_first_evaluation_rolls_race_day_state():
    horse = _horse()
    assert horse.race_day is None

    SpeedModel(rng=random.Random(3)).speed(horse, 1200, 0.0)

    state = horse.race_day
    assert state is not None
    assert 0.95 <= state.race_day_factor <= 1.05
    assert 0.96 <= state.track_preference <= 1.04
    assert 0.97 <= state.lucky_factor <= 1.03
    assert -0.03 <= state.distance_preference <= 0.03
    assert isinstance(state.racing_style, RacingStyle)


def test_race_day_state_is_held_for_the_round():
    horse = _horse()
    model = SpeedModel(rng=random.Random(11))
    model.speed(horse, 1600, 0.0)
    first = horse.race_day
    snapshot = (first.racing_style, first.race_day_factor, first.track_preference,
                first.lucky_factor, first.distance_preference)

    for step in range(1, 20):
        model.speed(horse, 1600, step / 20)

    assert horse.race_day is first
    assert (first.racing_style, first.race_day_factor, first.track_preference,
            first.lucky_factor, first.distance_preference) == snapshot


@pytest.mark.parametrize(
    "roll, expected",
    [(0.1, RacingStyle.FRONTRUNNER), (0.29, RacingStyle.FRONTRUNNER), (0.3, RacingStyle.STEADY),
     (0.69, RacingStyle.STEADY), (0.7, RacingStyle.CLOSER), (0.95, RacingStyle.CLOSER)],
)
def test_racing_style_partition(roll, expected):
    horse = _horse()
    SpeedModel(rng=_FixedRng(roll)).initialise_race_day(horse)
    assert horse.racing_style is expected


def test_speed_stays_within_bounds_for_random_inputs():
    rng = random.Random(2024)
    model = SpeedModel(rng=rng)
    for _ in range(500):
        horse = _horse(horse_id=rng.randint(1, 20), condition=rng.randint(60, 100),
                       position=rng.choice([None, 1, 2, 5, 10]))
        distance = rng.choice(ROUND_DISTANCES)
        minimum, maximum = model.bounds(horse, distance)
        for _ in range(5):
            speed = model.speed(horse, distance, rng.random())
            assert minimum <= speed <= maximum


def test_minimum_speed_scales_with_distance():
    model = SpeedModel()
    horse = _horse()
    short_min, _ = model.bounds(horse, 1200)
    long_min, _ = model.bounds(horse, 2200)
    assert short_min == pytest.approx(0.071)
    assert long_min == pytest.approx(0.071 * 1200 / 2200)
    assert short_min > long_min


def test_maximum_speed_rewards_condition():
    model = SpeedModel()
    _, weak_max = model.bounds(_horse(condition=60), 1400)
    _, strong_max = model.bounds(_horse(condition=100), 1400)
    assert weak_max == pytest.approx(0.1)
    assert strong_max == pytest.approx(0.12)


def test_bounds_reject_non_positive_distance():
    with pytest.raises(ValueError):
        SpeedModel().bounds(_horse(), 0)


def test_racing_style_curves():
    model = SpeedModel(rng=_FixedRng(0.5))

    fit_front = _horse(condition=100)
    fit_front.race_day = _race_day(RacingStyle.FRONTRUNNER)
    assert model.evaluate(fit_front, 1200, 0.0).racing_style == pytest.approx(1.07)
    # condition 100 means no fade at all
    assert model.evaluate(fit_front, 1200, 1.0).racing_style == pytest.approx(1.07)

    weak_front = _horse(condition=60)
    weak_front.race_day = _race_day(RacingStyle.FRONTRUNNER)
    assert model.evaluate(weak_front, 1200, 1.0).racing_style == pytest.approx(1.07 * 0.7 * 0.75)

    closer = _horse(condition=100)
    closer.race_day = _race_day(RacingStyle.CLOSER)
    assert model.evaluate(closer, 1200, 0.0).racing_style == pytest.approx(0.85)
    assert model.evaluate(closer, 1200, 1.0).racing_style == pytest.approx(1.1)

    steady = _horse(condition=60)
    steady.race_day = _race_day(RacingStyle.STEADY)
    assert model.evaluate(steady, 1200, 0.5).racing_style == pytest.approx(0.7)


@pytest.mark.parametrize(
    "position, condition, expected",
    [(None, 80, 1.0), (1, 80, 1.0), (3, 100, 1.0 + 0.16 * 0.2), (10, 60, 1.0 + 0.3 * 0.6)],
)
def test_pack_racing_boost(position, condition, expected):
    horse = _horse(condition=condition, position=position)
    horse.race_day = _race_day(RacingStyle.STEADY)
    breakdown = SpeedModel(rng=_FixedRng(0.5)).evaluate(horse, 1200, 0.2)
    assert breakdown.pack_racing == pytest.approx(expected)


def test_burst_only_fires_above_burst_chance():
    calm = _horse()
    calm.race_day = _race_day(RacingStyle.STEADY)
    assert SpeedModel(rng=_FixedRng(0.5)).evaluate(calm, 1200).burst == 1.0

    lucky = _horse()
    lucky.race_day = _race_day(RacingStyle.STEADY)
    burst = SpeedModel(rng=_FixedRng(0.999)).evaluate(lucky, 1200).burst
    assert burst == pytest.approx(1.04 + 0.08 * 0.999)


def test_speed_factor_is_smoothed_towards_target():
    horse = _horse(condition=80)
    horse.race_day = _race_day(RacingStyle.STEADY)
    horse.race_day.last_speed_factor = 0.5

    breakdown = SpeedModel(rng=_FixedRng(0.5)).evaluate(horse, 1200, 0.3)

    rate = 0.08 * (1 + 0.5 * 0.5)
    assert breakdown.speed_factor == pytest.approx(0.5 * (1 - rate) + breakdown.target_factor * rate)
    assert horse.race_day.last_speed_factor == breakdown.speed_factor


def test_distance_match_penalises_mismatch():
    horse = _horse()
    horse.race_day = _race_day(RacingStyle.STEADY, distance_preference=0.0)
    model = SpeedModel(rng=_FixedRng(0.5))
    assert model.evaluate(horse, 1200).distance_match == pytest.approx(1.0)
    assert model.evaluate(horse, 2400).distance_match == pytest.approx(0.97)


def test_section_oscillation_depends_on_horse_id():
    model = SpeedModel(rng=_FixedRng(0.5))
    a, b = _horse(horse_id=1), _horse(horse_id=2)
    a.race_day = _race_day(RacingStyle.STEADY)
    b.race_day = _race_day(RacingStyle.STEADY)
    section_a = model.evaluate(a, 1200, 0.25).section
    section_b = model.evaluate(b, 1200, 0.25).section
    assert section_a == pytest.approx(math.sin(math.pi / 2 + 0.7) * 0.01)
    assert section_a != pytest.approx(section_b)


def test_calculate_horse_speed_returns_positive_speed():
    horse = _horse()
    speed = calculate_horse_speed(horse, 1200, 0.0)
    assert 0 < speed < 0.2
    assert horse.race_day is not None
