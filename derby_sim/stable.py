from __future__ import annotations

import random
from typing import Iterable, List, Optional, Sequence

from derby_sim.engine.constants import COLORS, HORSE_NAMES
from derby_sim.engine.data_models import Horse
from derby_sim.engine.tuning import DEFAULT_SETTINGS, RaceSettings
from derby_sim.errors import GenerationError


def generate_horses(
    count: Optional[int] = None,
    settings: RaceSettings = DEFAULT_SETTINGS,
    rng=None,
    names: Sequence[str] = HORSE_NAMES,
    colors: Sequence[str] = COLORS,
) -> List[Horse]:
    """
    Builds a fresh horse pool.
    Names and colors are drawn without replacement, so every horse in the
    pool is distinguishable; condition is uniform over the configured range.
    """
    rng = rng or random
    count = settings.horse_count if count is None else count
    if count < 0:
        raise GenerationError(f"Horse count must not be negative, got {count}")
    if count > len(names):
        raise GenerationError(f"Need {count} horse names but only {len(names)} are available.")
    if count > len(colors):
        raise GenerationError(f"Need {count} colors but only {len(colors)} are available.")

    picked_names = rng.sample(list(names), count)
    picked_colors = rng.sample(list(colors), count)

    return [
        Horse(
            horse_id=idx + 1,
            name=picked_names[idx],
            color=picked_colors[idx],
            condition=rng.randint(settings.min_horse_condition, settings.max_horse_condition),
        )
        for idx in range(count)
    ]


def reset_horse_progress(horses: Optional[Iterable[Horse]]) -> None:
    """
    Returns horses to the starting gate.
    Dropping ``race_day`` makes the speed model re-roll racing style,
    race-day factors and distance preference on the next evaluation.
    """
    if not horses:
        return
    for horse in horses:
        horse.progress = 0.0
        horse.position = None
        horse.race_day = None
