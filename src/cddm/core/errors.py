"""Exception taxonomy for simulator failures.

Every error raised by the simulator is fatal for the current run. Nothing in
the package retries or suppresses these exceptions; callers are expected to
abort the trial or the experiment.
"""

from __future__ import annotations


class CddmError(Exception):
    """Base class for all simulator errors."""


class ConfigurationError(CddmError, ValueError):
    """Malformed, missing, or inconsistent configuration.

    Raised at construction time (or first use) for improper priors or trial
    distributions, thresholds outside ``[0, 1)``, negative noise levels, and
    retention intervals that do not divide evenly into the time step.
    """


class StimulusRangeError(CddmError, IndexError):
    """Stimulus index outside the configured context/target counts."""


class SampleLimitError(CddmError, RuntimeError):
    """Accumulation loop reached ``max_samples`` without crossing threshold.

    ``max_samples`` is an infinite-loop guard, not a valid terminal state, so
    hitting it signals a modeling or parameterization problem.
    """


class DegenerateBeliefError(CddmError, ArithmeticError):
    """Posterior normalizer collapsed to zero during an update.

    This happens when every hypothesis density underflows for the drawn
    evidence sample. The posterior is left at its pre-update value.
    """


__all__ = [
    "CddmError",
    "ConfigurationError",
    "DegenerateBeliefError",
    "SampleLimitError",
    "StimulusRangeError",
]
