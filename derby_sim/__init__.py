"""Horse race simulator: speed model, race loop and round lifecycle controller."""

from derby_sim.controller import ActionOutcome, RaceController  # noqa: F401
from derby_sim.formatting import format_distance, format_finish_time  # noqa: F401

__all__ = [
    "ActionOutcome",
    "RaceController",
    "format_distance",
    "format_finish_time",
]
