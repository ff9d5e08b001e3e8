"""Protocol contracts for the simulator's collaborators.

The decision loop consumes three capabilities it does not own: a random
source, a belief model, and a statistics sink. Keeping them as protocols lets
tests substitute scripted random sources and in-memory sinks without touching
task code.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class RandomSource(Protocol):
    """Primitive random variates consumed by belief, timing, and task code.

    Notes
    -----
    Implementations are injected explicitly into every consumer so seeded runs
    are reproducible and no process-wide generator exists.
    """

    def uniform(self) -> float:
        """Return one draw from ``Uniform(0, 1)``."""

    def uniform_int(self, n: int) -> int:
        """Return one integer drawn uniformly from ``[0, n)``.

        Parameters
        ----------
        n : int
            Exclusive upper bound. Must be positive.
        """

    def normal(self, mean: float, sd: float) -> float:
        """Return one Gaussian draw with the given mean and standard deviation."""

    def normal_pdf(self, x: float, mean: Any, sd: float) -> Any:
        """Evaluate the Gaussian density of ``x``.

        Parameters
        ----------
        x : float
            Point at which the density is evaluated.
        mean : float | numpy.ndarray
            Mean(s) of the Gaussian. Array means produce array densities.
        sd : float
            Standard deviation shared by every mean.
        """

    def gamma(self, mean: float, sd: float) -> float:
        """Return one gamma draw parameterized by mean and standard deviation.

        A mean of exactly zero returns ``0.0`` without sampling.
        """

    def bernoulli(self, p: float) -> int:
        """Return ``1`` with probability ``p``, else ``0``."""


@runtime_checkable
class StatsSink(Protocol):
    """Append-only destination for named trial observations.

    Notes
    -----
    Tasks call :meth:`update_datum` but never read sink state, so recording
    can never influence control flow.
    """

    def register_datum(self, key: str, datum: Any) -> None:
        """Declare a named series and the datum that summarizes it."""

    def update_datum(self, key: str, value: Any) -> None:
        """Append one observation to a registered series."""

    def new_trial(self) -> None:
        """Mark the start of a new trial for trial-indexed series."""


@runtime_checkable
class BeliefModel(Protocol):
    """Fixed capability set shared by every belief variant."""

    @property
    def n_contexts(self) -> int:
        """Number of context hypotheses (posterior rows)."""

    @property
    def n_targets(self) -> int:
        """Number of target hypotheses (posterior columns)."""

    def reset(self) -> None:
        """Reset the posterior to the trial-start prior."""

    def set_true_stimulus(self, context: int, target: int) -> None:
        """Store the stimulus that evidence is drawn from."""

    def update_from_context(self, noise: float, *, trial_time: float = 0.0) -> int:
        """Perform one context update and return the retrieval sentinel."""

    def update_from_target(self, noise: float) -> None:
        """Perform one target update."""

    def get_belief(self) -> np.ndarray:
        """Return a copy of the current posterior."""


@runtime_checkable
class DecisionTask(Protocol):
    """One task whose :meth:`run` simulates exactly one trial."""

    trace_datum_names: tuple[str, ...]
    summary_datum_names: tuple[str, ...]
    event_datum_names: tuple[str, ...]

    def run(self) -> Any:
        """Simulate one trial and return its outcome."""


__all__ = ["BeliefModel", "DecisionTask", "RandomSource", "StatsSink"]
