import random

import pytest

from derby_sim.engine import Horse, RaceDayState, RacingStyle
from derby_sim.engine.constants import COLORS, HORSE_NAMES
from derby_sim.engine.tuning import RaceSettings
from derby_sim.errors import GenerationError
from derby_sim.stable import generate_horses, reset_horse_progress


def test_generated_pool_is_unique_and_in_range():
    horses = generate_horses(rng=random.Random(1))

    assert len(horses) == 20
    assert [h.horse_id for h in horses] == list(range(1, 21))
    assert len({h.name for h in horses}) == 20
    assert len({h.color for h in horses}) == 20
    assert all(h.name in HORSE_NAMES for h in horses)
    assert all(h.color in COLORS for h in horses)
    assert all(60 <= h.condition <= 100 for h in horses)
    assert all(isinstance(h.condition, int) for h in horses)


def test_generated_horses_start_without_race_state():
    for horse in generate_horses(5, rng=random.Random(2)):
        assert horse.progress == 0.0
        assert horse.position is None
        assert horse.race_day is None


def test_condition_range_comes_from_settings():
    settings = RaceSettings(min_horse_condition=70, max_horse_condition=72)
    horses = generate_horses(10, settings, rng=random.Random(3))
    assert {h.condition for h in horses} <= {70, 71, 72}


def test_pool_larger_than_palette_fails():
    with pytest.raises(GenerationError):
        generate_horses(len(COLORS) + 1)


def test_pool_larger_than_name_list_fails():
    with pytest.raises(GenerationError):
        generate_horses(3, names=["Only One", "Two"])


def test_reset_clears_all_race_state():
    horse = Horse(horse_id=1, name="Horse 1", color="#FF0000", condition=80, progress=0.5, position=2)
    horse.race_day = RaceDayState(
        racing_style=RacingStyle.CLOSER,
        race_day_factor=1.02,
        track_preference=0.98,
        lucky_factor=1.01,
        distance_preference=0.02,
        last_speed_factor=0.12,
    )

    reset_horse_progress([horse])

    assert horse.progress == 0
    assert horse.position is None
    assert horse.race_day is None
    assert horse.racing_style is None
    assert horse.condition == 80


def test_reset_tolerates_empty_input():
    reset_horse_progress([])
    reset_horse_progress(None)
