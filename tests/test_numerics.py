"""Tests for shared numerical helpers."""

from __future__ import annotations

import numpy as np
import pytest

from cddm.core.numerics import categorical_index, compensated_sum, round_to_increment


def test_compensated_sum_is_exact_where_naive_summation_drifts() -> None:
    """Compensated sum should not lose small terms next to large ones."""

    values = [1e16, 1.0, -1e16]

    assert sum(values) == 0.0
    assert compensated_sum(values) == 1.0


def test_compensated_sum_flattens_matrices() -> None:
    """Arrays of any shape should be summed over every entry."""

    matrix = np.array([[0.4, 0.3], [0.2, 0.1]])

    assert compensated_sum(matrix) == pytest.approx(1.0, abs=1e-15)


def test_round_to_increment_rounds_half_up() -> None:
    """Rounding should use floor(x / step + 0.5) * step."""

    assert round_to_increment(14.9, 10.0) == 10.0
    assert round_to_increment(15.0, 10.0) == 20.0
    assert round_to_increment(2.5, 1.0) == 3.0
    assert round_to_increment(-2.5, 1.0) == -2.0


def test_categorical_index_uses_inclusive_cumulative_threshold() -> None:
    """A draw equal to a cumulative boundary should select the earlier index."""

    probabilities = [0.25, 0.25, 0.5]

    assert categorical_index(probabilities, 0.0) == 0
    assert categorical_index(probabilities, 0.25) == 0
    assert categorical_index(probabilities, 0.2500001) == 1
    assert categorical_index(probabilities, 0.5) == 1
    assert categorical_index(probabilities, 0.99) == 2


def test_categorical_index_skips_zero_probability_cells() -> None:
    """Zero-mass categories should never be chosen for positive draws."""

    assert categorical_index([0.0, 1.0], 1e-12) == 1


def test_categorical_index_scans_matrices_row_major() -> None:
    """Matrix cells should be visited row by row."""

    matrix = np.array([[0.4, 0.3], [0.2, 0.1]])

    assert categorical_index(matrix, 0.35) == 0
    assert categorical_index(matrix, 0.65) == 1
    assert categorical_index(matrix, 0.85) == 2
    assert categorical_index(matrix, 0.95) == 3


def test_categorical_index_rejects_fallthrough() -> None:
    """Draws above the total mass should fail loudly."""

    with pytest.raises(ValueError, match="fell through"):
        categorical_index([0.2, 0.3], 0.9)


def test_categorical_index_absorbs_cumulative_rounding() -> None:
    """Draws just below one should land in the last nonzero cell of a proper distribution."""

    short_of_one = [0.5, 0.5 - 2.0**-42, 0.0]

    assert categorical_index(short_of_one, 1.0 - 2.0**-44) == 1
    with pytest.raises(ValueError, match="fell through"):
        categorical_index(short_of_one, 1.0)
