"""Tests for the preference matrix model and CSV loader."""

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from servicerec.exceptions import ClientNotFoundError, ValidationError
from servicerec.recommender.preferences import PreferenceMatrix, load_preferences_csv


@pytest.fixture
def preferences_csv(tmp_path: Path) -> Path:
    """Write a small wide preference CSV with one blank cell."""
    csv_path = tmp_path / "customer_preferences.csv"
    csv_path.write_text(
        "Client,Website Design,SEO,Email Marketing\n"
        "Biscuit Barn,1,0,1\n"
        "Peach Pit,1,,0\n"
        "Grits Galore,0,1,1\n"
    )
    return csv_path


def test_load_preferences_csv_reads_clients_and_services(preferences_csv: Path) -> None:
    """Test that the first column becomes clients and the rest services."""
    matrix = load_preferences_csv(str(preferences_csv))

    assert matrix.clients == ["Biscuit Barn", "Peach Pit", "Grits Galore"]
    assert matrix.services == ["Website Design", "SEO", "Email Marketing"]
    assert matrix.shape == (3, 3)


def test_load_preferences_csv_blank_cells_are_zero(preferences_csv: Path) -> None:
    """Test that missing cells are treated as not used."""
    matrix = load_preferences_csv(str(preferences_csv))

    assert matrix.row(1).tolist() == [1, 0, 0]


def test_load_preferences_csv_named_client_column(tmp_path: Path) -> None:
    """Test that a non-first identifier column can be selected."""
    csv_path = tmp_path / "prefs.csv"
    csv_path.write_text("SEO,Client,Logo\n1,A,0\n0,B,1\n")

    matrix = load_preferences_csv(str(csv_path), client_col="Client")

    assert matrix.clients == ["A", "B"]
    assert matrix.services == ["SEO", "Logo"]


def test_load_preferences_csv_missing_file(tmp_path: Path) -> None:
    """Test that a missing CSV raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_preferences_csv(str(tmp_path / "nonexistent.csv"))


def test_load_preferences_csv_empty_file(tmp_path: Path) -> None:
    """Test that an empty CSV is rejected."""
    empty_csv = tmp_path / "empty.csv"
    empty_csv.write_text("")

    with pytest.raises(ValidationError, match="empty"):
        load_preferences_csv(str(empty_csv))


def test_load_preferences_csv_header_only(tmp_path: Path) -> None:
    """Test that a CSV without client rows is rejected."""
    header_only = tmp_path / "header.csv"
    header_only.write_text("Client,SEO,Logo\n")

    with pytest.raises(ValidationError, match="at least 2 clients"):
        load_preferences_csv(str(header_only))


def test_load_preferences_csv_missing_client_column(preferences_csv: Path) -> None:
    """Test that an unknown identifier column is rejected."""
    with pytest.raises(ValidationError, match="client identifier column"):
        load_preferences_csv(str(preferences_csv), client_col="Customer")


def test_load_preferences_csv_non_numeric_cells(tmp_path: Path) -> None:
    """Test that text in a usage column is rejected."""
    csv_path = tmp_path / "text.csv"
    csv_path.write_text("Client,SEO,Logo\nA,yes,0\nB,1,0\n")

    with pytest.raises(ValidationError, match="numeric"):
        load_preferences_csv(str(csv_path))


def test_load_preferences_csv_repeated_service_header(tmp_path: Path) -> None:
    """Test that a service named twice in the header is rejected."""
    csv_path = tmp_path / "repeated.csv"
    csv_path.write_text("Client,SEO,SEO,Email\nA,1,0,1\nB,0,1,1\n")

    with pytest.raises(ValidationError, match="Duplicate services") as exc_info:
        load_preferences_csv(str(csv_path))

    assert exc_info.value.details["duplicates"] == ["SEO"]


def test_load_preferences_csv_ragged_rows(tmp_path: Path) -> None:
    """Test that a row with extra fields is reported as malformed."""
    csv_path = tmp_path / "ragged.csv"
    csv_path.write_text("Client,SEO,Logo\nA,1,0\nB,1,0,1,1\n")

    with pytest.raises(ValidationError, match="Malformed") as exc_info:
        load_preferences_csv(str(csv_path))

    assert exc_info.value.details["csv_path"] == str(csv_path)


def test_load_preferences_csv_not_utf8(tmp_path: Path) -> None:
    """Test that undecodable bytes are reported as malformed."""
    csv_path = tmp_path / "binary.csv"
    csv_path.write_bytes(b"\xff\xfeClient,SEO\n\xff,1\n")

    with pytest.raises(ValidationError, match="Malformed"):
        load_preferences_csv(str(csv_path))


def test_non_binary_values_rejected() -> None:
    """Test that values other than 0/1 are rejected with the offending cell."""
    with pytest.raises(ValidationError, match="binary") as exc_info:
        PreferenceMatrix(["A", "B"], ["S1", "S2"], [[1, 2], [0, 1]])

    assert exc_info.value.details["client"] == "A"
    assert exc_info.value.details["service"] == "S2"
    assert exc_info.value.status_code == 422


def test_duplicate_identifiers_rejected() -> None:
    """Test that duplicate clients and services are rejected."""
    with pytest.raises(ValidationError, match="Duplicate clients"):
        PreferenceMatrix(["A", "A"], ["S1", "S2"], [[1, 0], [0, 1]])

    with pytest.raises(ValidationError, match="Duplicate services"):
        PreferenceMatrix(["A", "B"], ["S1", "S1"], [[1, 0], [0, 1]])


def test_too_few_clients_or_services_rejected() -> None:
    """Test the 2 x 2 minimum size."""
    with pytest.raises(ValidationError, match="at least 2 clients"):
        PreferenceMatrix(["A"], ["S1", "S2"], [[1, 0]])

    with pytest.raises(ValidationError, match="at least 2 services"):
        PreferenceMatrix(["A", "B"], ["S1"], [[1], [0]])


def test_shape_mismatch_rejected() -> None:
    """Test that the grid must line up with the identifiers."""
    with pytest.raises(ValidationError, match="shape"):
        PreferenceMatrix(["A", "B"], ["S1", "S2"], [[1, 0, 1], [0, 1, 0]])


def test_matrix_is_read_only() -> None:
    """Test that the usage values cannot be modified after loading."""
    matrix = PreferenceMatrix(["A", "B"], ["S1", "S2"], [[1, 0], [0, 1]])

    assert not matrix.values.flags.writeable
    with pytest.raises(ValueError):
        matrix.values[0, 0] = 0


def test_client_index_unknown_client() -> None:
    """Test that looking up an unknown client raises ClientNotFoundError."""
    matrix = PreferenceMatrix(["A", "B"], ["S1", "S2"], [[1, 0], [0, 1]])

    assert matrix.client_index("B") == 1
    with pytest.raises(ClientNotFoundError):
        matrix.client_index("Z")


def test_frame_conversion_preserves_order() -> None:
    """Test DataFrame round trip keeps client and service order."""
    frame = pd.DataFrame(
        [[0, 1, 1], [1, 0, np.nan]],
        index=["zeta", "alpha"],
        columns=["S3", "S1", "S2"],
    )

    matrix = PreferenceMatrix.from_frame(frame)
    back = matrix.to_frame()

    assert matrix.clients == ["zeta", "alpha"]
    assert matrix.services == ["S3", "S1", "S2"]
    assert back.loc["alpha"].tolist() == [1, 0, 0]
    assert matrix.used_services(0) == [1, 2]
    assert matrix.service_usage_counts() == {"S3": 1, "S1": 1, "S2": 1}
