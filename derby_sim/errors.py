"""Failure taxonomy for the simulator core.

Components raise these; ``RaceController`` catches them and records a
single latest error message instead of letting them escape.
"""


class SimulationError(RuntimeError):
    """Base class for every simulator failure."""


class GenerationError(SimulationError):
    """Horse pool or race program could not be built."""


class StepError(SimulationError):
    """A simulation tick hit malformed horse data."""


class LifecycleError(SimulationError):
    """The controller was asked to do something its state does not allow."""
