"""Tests for the client distance engine."""

import numpy as np
import pytest
from sklearn.metrics import pairwise_distances

from servicerec.exceptions import ValidationError
from servicerec.recommender.preferences import PreferenceMatrix
from servicerec.segmentation.distance import (
    ClientDistanceMatrix,
    compute_client_distances,
    jaccard_distance,
)


@pytest.fixture
def three_client_matrix() -> PreferenceMatrix:
    """A=[1,0,1], B=[1,1,0], C=[0,1,1]."""
    return PreferenceMatrix(
        ["A", "B", "C"],
        ["S1", "S2", "S3"],
        [[1, 0, 1], [1, 1, 0], [0, 1, 1]],
    )


def test_worked_example_two_thirds(three_client_matrix: PreferenceMatrix) -> None:
    """Test that every pair shares one of three services."""
    distances = compute_client_distances(three_client_matrix)

    assert distances.value("A", "B") == pytest.approx(2 / 3)
    assert distances.value("A", "C") == pytest.approx(2 / 3)
    assert distances.value("B", "C") == pytest.approx(2 / 3)


def test_identical_and_empty_profiles_are_zero() -> None:
    """Test the zero-distance conventions."""
    matrix = PreferenceMatrix(
        ["Twin1", "Twin2", "Empty1", "Empty2", "Other"],
        ["S1", "S2", "S3"],
        [[1, 1, 0], [1, 1, 0], [0, 0, 0], [0, 0, 0], [0, 0, 1]],
    )

    distances = compute_client_distances(matrix)

    assert distances.value("Twin1", "Twin2") == 0.0
    assert distances.value("Empty1", "Empty2") == 0.0
    assert distances.value("Twin1", "Other") == 1.0
    assert distances.value("Empty1", "Other") == 1.0


def test_values_bounded_symmetric_zero_diagonal() -> None:
    """Test range, symmetry and diagonal on random data."""
    rng = np.random.default_rng(3)
    usage = (rng.random((15, 7)) < 0.4).astype(int)
    matrix = PreferenceMatrix([f"c{i}" for i in range(15)], [f"s{j}" for j in range(7)], usage)

    values = compute_client_distances(matrix).values

    assert np.all((values >= 0.0) & (values <= 1.0))
    assert np.array_equal(values, values.T)
    assert np.all(np.diag(values) == 0.0)


def test_matches_sklearn_jaccard() -> None:
    """Test against scikit-learn's Jaccard distance on non-empty rows."""
    rng = np.random.default_rng(11)
    usage = (rng.random((10, 6)) < 0.5).astype(int)
    usage[:, 0] = 1
    matrix = PreferenceMatrix([f"c{i}" for i in range(10)], [f"s{j}" for j in range(6)], usage)

    expected = pairwise_distances(usage.astype(bool), metric="jaccard")

    assert np.allclose(compute_client_distances(matrix).values, expected)


def test_parallel_matches_serial() -> None:
    """Test that worker count does not change the result."""
    rng = np.random.default_rng(5)
    usage = (rng.random((9, 5)) < 0.5).astype(int)
    matrix = PreferenceMatrix([f"c{i}" for i in range(9)], [f"s{j}" for j in range(5)], usage)

    serial = compute_client_distances(matrix, n_jobs=1).values
    parallel = compute_client_distances(matrix, n_jobs=2).values

    assert np.array_equal(serial, parallel)


def test_jaccard_distance_partial_overlap() -> None:
    """Test 1 - |{S1}| / |{S1, S2, S3}|."""
    assert jaccard_distance(np.array([1, 0, 1]), np.array([1, 1, 0])) == pytest.approx(2 / 3)


def test_distance_matrix_rejects_bad_values() -> None:
    """Test the [0, 1] range and zero diagonal invariants."""
    with pytest.raises(ValidationError, match="diagonal"):
        ClientDistanceMatrix(["a", "b"], [[0.1, 0.5], [0.5, 0.0]])

    with pytest.raises(ValidationError, match=r"\[0, 1\]"):
        ClientDistanceMatrix(["a", "b"], [[0.0, 1.5], [1.5, 0.0]])
