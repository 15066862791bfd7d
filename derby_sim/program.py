from __future__ import annotations

import random
from typing import List, Sequence

from derby_sim.engine.data_models import Horse, RaceRound, RoundStatus
from derby_sim.engine.tuning import DEFAULT_SETTINGS, RaceSettings
from derby_sim.errors import GenerationError


def generate_race_program(
    horses: Sequence[Horse],
    settings: RaceSettings = DEFAULT_SETTINGS,
    rng=None,
) -> List[RaceRound]:
    """
    Builds the ordered rounds of a program.

    Each round draws its own field from the pool; a horse may run in several
    rounds but at most once per round. Round horses are copies, so racing
    never touches the master pool or another round.
    """
    rng = rng or random
    if settings.total_rounds > len(settings.round_distances):
        raise GenerationError(
            f"{settings.total_rounds} rounds requested but the distance ladder "
            f"has only {len(settings.round_distances)} entries."
        )
    bad = [d for d in settings.round_distances[: settings.total_rounds] if d <= 0]
    if bad:
        raise GenerationError(f"Round distances must be positive, got {bad}.")
    if len(horses) < settings.horses_per_race:
        raise GenerationError(
            f"Need at least {settings.horses_per_race} horses per race, pool has {len(horses)}."
        )

    rounds: List[RaceRound] = []
    for idx in range(settings.total_rounds):
        field_horses = rng.sample(list(horses), settings.horses_per_race)
        rounds.append(
            RaceRound(
                round_id=idx + 1,
                distance=settings.round_distances[idx],
                horses=[horse.copy_for_round() for horse in field_horses],
                results=[],
                status=RoundStatus.PENDING,
            )
        )
    return rounds

