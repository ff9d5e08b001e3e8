"""Gaussian evidence likelihoods over the joint (context, target) grid.

Each function returns a fresh matrix for one evidence sample; nothing is
cached between updates.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import numpy as np
from scipy.stats import norm

DensityFn = Callable[[float, Any, float], Any]


def gaussian_density(x: float, mean: Any, sd: float) -> Any:
    """Gaussian density of ``x`` for scalar or array ``mean``."""

    return norm.pdf(x, loc=mean, scale=sd)


def target_likelihood(
    sample: float,
    noise: float,
    *,
    shape: tuple[int, int],
    spacing: float = 1.0,
    density: DensityFn = gaussian_density,
) -> np.ndarray:
    """Likelihood of a target-evidence sample under every hypothesis.

    Parameters
    ----------
    sample : float
        Drawn evidence value.
    noise : float
        Standard deviation of the evidence distribution.
    shape : tuple[int, int]
        ``(n_contexts, n_targets)``.
    spacing : float, optional
        Distance between consecutive target means on the number line.
    density : Callable, optional
        Gaussian density evaluator.

    Returns
    -------
    numpy.ndarray
        Matrix whose cell ``(c, t)`` is ``N(sample; t * spacing, noise)``.
    """

    n_contexts, n_targets = shape
    means = np.arange(n_targets, dtype=float) * spacing
    per_target = np.asarray(density(sample, means, noise), dtype=float)
    return np.tile(per_target, (n_contexts, 1))


def context_likelihood(
    sample: float,
    noise: float,
    *,
    shape: tuple[int, int],
    spacing: float = 1.0,
    p_correct: float = 1.0,
    marginals: np.ndarray | None = None,
    density: DensityFn = gaussian_density,
) -> np.ndarray:
    """Likelihood of a context-evidence sample under every hypothesis.

    Parameters
    ----------
    sample : float
        Drawn evidence value.
    noise : float
        Standard deviation of the evidence distribution.
    shape : tuple[int, int]
        ``(n_contexts, n_targets)``.
    spacing : float, optional
        Distance between consecutive context means on the number line.
    p_correct : float, optional
        Probability that the sample was drawn from the hypothesized context.
        Values below one mix in a retrieval drawn from ``marginals``.
    marginals : numpy.ndarray | None, optional
        Context marginal probabilities. Required when ``p_correct < 1``.
    density : Callable, optional
        Gaussian density evaluator.

    Returns
    -------
    numpy.ndarray
        Matrix whose cell ``(c, t)`` is
        ``p_correct * N(sample; c * spacing, noise)
        + (1 - p_correct) * sum_k marginals[k] * N(sample; k * spacing, noise)``.

    Raises
    ------
    ValueError
        If ``p_correct < 1`` and ``marginals`` is missing or mis-sized.
    """

    n_contexts, n_targets = shape
    means = np.arange(n_contexts, dtype=float) * spacing
    per_context = np.asarray(density(sample, means, noise), dtype=float)

    if p_correct < 1.0:
        if marginals is None or len(marginals) != n_contexts:
            raise ValueError("context marginals with one entry per context are required when p_correct < 1")
        retrieval_noise = float(np.dot(np.asarray(marginals, dtype=float), per_context))
        per_context = p_correct * per_context + (1.0 - p_correct) * retrieval_noise

    return np.tile(per_context[:, np.newaxis], (1, n_targets))


__all__ = ["DensityFn", "context_likelihood", "gaussian_density", "target_likelihood"]
