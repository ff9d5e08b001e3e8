"""Strict validation and typed coercion for simulator parameters.

Every helper raises :class:`~cddm.core.errors.ConfigurationError` and names the
offending field, so a bad parameter set fails at construction rather than
mid-trial.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import numpy as np

from cddm.core.errors import ConfigurationError
from cddm.core.numerics import compensated_sum

PROPER_DISTRIBUTION_ATOL = 1e-9


def validate_allowed_keys(
    mapping: Mapping[str, Any],
    *,
    field_name: str,
    allowed_keys: Iterable[str],
) -> None:
    """Validate that a mapping only contains allowed keys.

    Parameters
    ----------
    mapping : Mapping[str, Any]
        Configuration mapping to validate.
    field_name : str
        Human-readable path used in error messages.
    allowed_keys : Iterable[str]
        Allowed key names for ``mapping``.

    Raises
    ------
    ConfigurationError
        If unknown keys are present.
    """

    allowed = set(str(key) for key in allowed_keys)
    unknown = sorted(str(key) for key in mapping if str(key) not in allowed)
    if unknown:
        raise ConfigurationError(f"{field_name} has unknown keys: {unknown}")


def coerce_float(
    value: Any,
    *,
    field_name: str,
    minimum: float | None = None,
    strictly_positive: bool = False,
) -> float:
    """Coerce a scalar parameter to ``float`` with optional bounds.

    Parameters
    ----------
    value : Any
        Raw parameter value.
    field_name : str
        Parameter name used in error messages.
    minimum : float | None, optional
        Inclusive lower bound.
    strictly_positive : bool, optional
        Require ``value > 0``.

    Returns
    -------
    float
        Coerced value.

    Raises
    ------
    ConfigurationError
        If the value is not numeric or violates its bounds.
    """

    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be a number, got a boolean")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{field_name} must be a number, got {value!r}") from exc
    if not np.isfinite(number):
        raise ConfigurationError(f"{field_name} must be finite, got {number!r}")
    if strictly_positive and number <= 0.0:
        raise ConfigurationError(f"{field_name} must be > 0, got {number!r}")
    if minimum is not None and number < minimum:
        raise ConfigurationError(f"{field_name} must be >= {minimum}, got {number!r}")
    return number


def coerce_int(value: Any, *, field_name: str, minimum: int | None = None) -> int:
    """Coerce an integral parameter, rejecting fractional values."""

    number = coerce_float(value, field_name=field_name)
    if not float(number).is_integer():
        raise ConfigurationError(f"{field_name} must be an integer, got {value!r}")
    integer = int(number)
    if minimum is not None and integer < minimum:
        raise ConfigurationError(f"{field_name} must be >= {minimum}, got {integer}")
    return integer


def coerce_probability_matrix(value: Any, *, field_name: str) -> np.ndarray:
    """Coerce a joint (context, target) distribution to a proper matrix.

    Parameters
    ----------
    value : Any
        Nested sequence or array with rows as contexts and columns as targets.
    field_name : str
        Parameter name used in error messages.

    Returns
    -------
    numpy.ndarray
        Read-only 2-D float array summing to one.

    Raises
    ------
    ConfigurationError
        If the matrix is not 2-D, has negative or non-finite entries, or its
        compensated sum differs from one.
    """

    try:
        matrix = np.array(value, dtype=float)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{field_name} must be a numeric matrix, got {value!r}") from exc
    if matrix.ndim != 2 or matrix.shape[0] == 0 or matrix.shape[1] == 0:
        raise ConfigurationError(f"{field_name} must be a non-empty 2-D matrix, got shape {matrix.shape}")
    if not np.all(np.isfinite(matrix)):
        raise ConfigurationError(f"{field_name} must contain only finite values")
    if np.any(matrix < 0.0):
        raise ConfigurationError(f"{field_name} must be nonnegative")
    total = compensated_sum(matrix)
    if abs(total - 1.0) > PROPER_DISTRIBUTION_ATOL:
        raise ConfigurationError(f"{field_name} is not proper: sums to {total!r}, expected 1")
    matrix.setflags(write=False)
    return matrix


def coerce_threshold(value: Any, *, field_name: str = "decision_thresh") -> float:
    """Coerce a probability-space decision threshold in ``[0, 1)``."""

    threshold = coerce_float(value, field_name=field_name)
    if threshold < 0.0 or threshold >= 1.0:
        raise ConfigurationError(f"{field_name} must be in [0, 1), got {threshold!r}")
    return threshold


def coerce_probability(value: Any, *, field_name: str) -> float:
    """Coerce a probability in ``[0, 1]``."""

    probability = coerce_float(value, field_name=field_name)
    if probability < 0.0 or probability > 1.0:
        raise ConfigurationError(f"{field_name} must be in [0, 1], got {probability!r}")
    return probability


__all__ = [
    "PROPER_DISTRIBUTION_ATOL",
    "coerce_float",
    "coerce_int",
    "coerce_probability",
    "coerce_probability_matrix",
    "coerce_threshold",
    "validate_allowed_keys",
]
