"""Tests for the item similarity engine."""

import numpy as np
import pandas as pd
import pytest
from sklearn.metrics.pairwise import cosine_similarity as sk_cosine_similarity

from servicerec.exceptions import ParameterError, ValidationError
from servicerec.recommender.preferences import PreferenceMatrix
from servicerec.recommender.similarity import (
    ItemSimilarityMatrix,
    compute_item_similarity,
    cosine_similarity,
)


@pytest.fixture
def three_client_matrix() -> PreferenceMatrix:
    """A=[1,0,1], B=[1,1,0], C=[0,1,1]."""
    return PreferenceMatrix(
        ["A", "B", "C"],
        ["S1", "S2", "S3"],
        [[1, 0, 1], [1, 1, 0], [0, 1, 1]],
    )


def test_worked_example_is_one_half(three_client_matrix: PreferenceMatrix) -> None:
    """Test that every pair of services shares exactly one client."""
    similarity = compute_item_similarity(three_client_matrix)

    assert similarity.services == ["S1", "S2", "S3"]
    assert similarity.value("S1", "S2") == 0.5
    assert similarity.value("S1", "S3") == 0.5
    assert similarity.value("S2", "S3") == 0.5
    assert np.all(np.diag(similarity.values) == 0.0)


def test_unused_service_has_zero_similarity(caplog) -> None:
    """Test that a service nobody uses is similar to nothing."""
    matrix = PreferenceMatrix(
        ["A", "B"],
        ["S1", "S2", "Unused"],
        [[1, 1, 0], [1, 0, 0]],
    )

    with caplog.at_level("WARNING"):
        similarity = compute_item_similarity(matrix)

    assert similarity.value("Unused", "S1") == 0.0
    assert similarity.value("Unused", "S2") == 0.0
    assert "Services with no usage" in caplog.text


def test_cosine_of_zero_vector() -> None:
    """Test the zero-norm convention directly."""
    assert cosine_similarity(np.zeros(3), np.array([1.0, 0.0, 1.0])) == 0.0
    assert cosine_similarity(np.array([1.0, 1.0]), np.array([1.0, 1.0])) == pytest.approx(1.0)


def test_matches_sklearn_off_diagonal() -> None:
    """Test against sklearn's cosine similarity on random binary data."""
    rng = np.random.default_rng(7)
    usage = (rng.random((12, 6)) < 0.4).astype(int)
    usage[0, :] = 1  # every service used at least once
    matrix = PreferenceMatrix(
        [f"C{i}" for i in range(12)],
        [f"S{j}" for j in range(6)],
        usage,
    )

    ours = compute_item_similarity(matrix).values
    expected = sk_cosine_similarity(usage.T.astype(float))
    np.fill_diagonal(expected, 0.0)

    np.testing.assert_allclose(ours, expected, atol=1e-12)


def test_parallel_matches_serial(three_client_matrix: PreferenceMatrix) -> None:
    """Test that the worker count does not change the result."""
    serial = compute_item_similarity(three_client_matrix, n_jobs=1)
    parallel = compute_item_similarity(three_client_matrix, n_jobs=2)

    np.testing.assert_array_equal(serial.values, parallel.values)


def test_zero_jobs_rejected(three_client_matrix: PreferenceMatrix) -> None:
    """Test that n_jobs=0 is not a valid worker count."""
    with pytest.raises(ParameterError):
        compute_item_similarity(three_client_matrix, n_jobs=0)


def test_matrix_is_read_only(three_client_matrix: PreferenceMatrix) -> None:
    """Test that published similarities cannot be mutated."""
    similarity = compute_item_similarity(three_client_matrix)

    with pytest.raises(ValueError):
        similarity.values[0, 1] = 0.9


def test_asymmetric_matrix_rejected() -> None:
    """Test that a hand-built asymmetric matrix is refused."""
    with pytest.raises(ValidationError, match="symmetric"):
        ItemSimilarityMatrix(["S1", "S2"], [[0.0, 0.3], [0.7, 0.0]])


def test_from_frame_round_trip(three_client_matrix: PreferenceMatrix) -> None:
    """Test conversion to and from a labelled DataFrame."""
    similarity = compute_item_similarity(three_client_matrix)
    frame = similarity.to_frame()

    assert isinstance(frame, pd.DataFrame)
    rebuilt = ItemSimilarityMatrix.from_frame(frame)
    assert rebuilt.services == similarity.services
    np.testing.assert_array_equal(rebuilt.values, similarity.values)
