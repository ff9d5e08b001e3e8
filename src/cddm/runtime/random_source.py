"""NumPy-backed implementation of the :class:`RandomSource` protocol."""

from __future__ import annotations

from typing import Any

import numpy as np
from scipy.stats import norm


class NumpyRandomSource:
    """Random variates drawn from one injected :class:`numpy.random.Generator`.

    Parameters
    ----------
    rng : numpy.random.Generator | None, optional
        Generator to draw from. Takes precedence over ``seed``.
    seed : int | None, optional
        Seed for a fresh ``default_rng`` when ``rng`` is not given. ``None``
        uses NumPy's entropy source.

    Notes
    -----
    Gamma variates are parameterized by mean ``m`` and standard deviation
    ``s`` and converted to shape ``k = m^2 / s^2`` and scale
    ``theta = s^2 / m``.
    """

    def __init__(self, rng: np.random.Generator | None = None, *, seed: int | None = None) -> None:
        self._rng = rng if rng is not None else np.random.default_rng(seed)

    @property
    def rng(self) -> np.random.Generator:
        """Underlying generator."""

        return self._rng

    def uniform(self) -> float:
        """Return one draw from ``Uniform(0, 1)``."""

        return float(self._rng.random())

    def uniform_int(self, n: int) -> int:
        """Return one integer drawn uniformly from ``[0, n)``."""

        if n <= 0:
            raise ValueError(f"uniform_int requires n > 0, got {n}")
        return int(self._rng.integers(0, n))

    def normal(self, mean: float, sd: float) -> float:
        """Return one Gaussian draw."""

        return float(mean + sd * self._rng.standard_normal())

    def normal_pdf(self, x: float, mean: Any, sd: float) -> Any:
        """Evaluate the Gaussian density of ``x`` for scalar or array means."""

        density = norm.pdf(x, loc=mean, scale=sd)
        if np.ndim(density) == 0:
            return float(density)
        return np.asarray(density, dtype=float)

    def gamma(self, mean: float, sd: float) -> float:
        """Return one gamma draw parameterized by mean and standard deviation.

        Raises
        ------
        ValueError
            If ``mean`` is negative, or if ``sd`` is not positive while
            ``mean`` is.
        """

        if mean == 0:
            return 0.0
        if mean < 0:
            raise ValueError(f"gamma mean must be >= 0, got {mean!r}")
        if sd <= 0:
            raise ValueError(f"gamma sd must be > 0 when mean > 0, got {sd!r}")
        shape = (mean * mean) / (sd * sd)
        scale = (sd * sd) / mean
        return float(self._rng.gamma(shape, scale))

    def bernoulli(self, p: float) -> int:
        """Return ``1`` with probability ``p``, else ``0``."""

        return 1 if self._rng.random() < p else 0


__all__ = ["NumpyRandomSource"]
