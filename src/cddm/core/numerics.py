"""Numerical helpers shared by belief updates, timing, and trial draws."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

import numpy as np

CUMULATIVE_ATOL = 1e-12


def compensated_sum(values: Iterable[float] | np.ndarray) -> float:
    """Sum floating-point values without accumulating rounding drift.

    Parameters
    ----------
    values : Iterable[float] | numpy.ndarray
        Values to sum. Arrays of any shape are flattened.

    Returns
    -------
    float
        Correctly rounded sum.

    Notes
    -----
    Posteriors are renormalized thousands of times per trial, so the
    normalizer uses :func:`math.fsum` rather than pairwise summation.
    """

    if isinstance(values, np.ndarray):
        return math.fsum(values.ravel().tolist())
    return math.fsum(values)


def round_to_increment(value: float, increment: float) -> float:
    """Round ``value`` half-up to the nearest multiple of ``increment``.

    Parameters
    ----------
    value : float
        Unrounded value.
    increment : float
        Positive rounding granularity.

    Returns
    -------
    float
        ``floor(value / increment + 0.5) * increment``.
    """

    return math.floor(value / increment + 0.5) * increment


def categorical_index(probabilities: Sequence[float] | np.ndarray, draw: float) -> int:
    """Map a uniform draw to a category by inclusive cumulative threshold.

    Parameters
    ----------
    probabilities : Sequence[float] | numpy.ndarray
        Category probabilities in index order. Multi-dimensional arrays are
        scanned in row-major order.
    draw : float
        Uniform draw in ``[0, 1)``.

    Returns
    -------
    int
        First (flat) index whose cumulative probability meets or exceeds
        ``draw``.

    Raises
    ------
    ValueError
        If ``draw`` exceeds the total probability mass by more than
        rounding error.
    """

    running = 0.0
    last_positive = -1
    flat = np.asarray(probabilities, dtype=float).ravel()
    for index, probability in enumerate(flat):
        running += float(probability)
        if probability > 0.0:
            last_positive = index
        if draw <= running:
            return index
    # rounding can leave a proper distribution's running sum just below one
    if last_positive >= 0 and draw < 1.0 and math.isclose(running, 1.0, abs_tol=CUMULATIVE_ATOL):
        return last_positive
    raise ValueError(
        f"categorical draw fell through: draw={draw!r} exceeds cumulative mass {running!r}"
    )


__all__ = ["categorical_index", "compensated_sum", "round_to_increment"]
