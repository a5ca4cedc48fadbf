"""Binary client x service preference matrix and its CSV loader.

The preference matrix is the single input of both the recommendation and the
segmentation branches. It is validated once, on construction, and is
read-only afterwards.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from servicerec.exceptions import ClientNotFoundError, ValidationError

# Configure module logger
logger = logging.getLogger(__name__)

MIN_CLIENTS = 2
MIN_SERVICES = 2


def _check_identifiers(kind: str, identifiers: List[str], minimum: int) -> None:
    if len(identifiers) < minimum:
        raise ValidationError(
            f"Preference matrix needs at least {minimum} {kind}, "
            f"got {len(identifiers)}",
            details={"kind": kind, "count": len(identifiers)},
        )

    seen = set()
    duplicates = []
    for identifier in identifiers:
        if identifier in seen and identifier not in duplicates:
            duplicates.append(identifier)
        seen.add(identifier)

    if duplicates:
        raise ValidationError(
            f"Duplicate {kind} identifiers: {duplicates}",
            details={"kind": kind, "duplicates": duplicates},
        )


class PreferenceMatrix:
    """Immutable binary usage matrix with ordered client and service labels.

    Rows are clients and columns are services, both kept in the order they
    were supplied. Missing cells (NaN) are treated as 0; any other value
    outside {0, 1} is rejected.
    """

    def __init__(
        self,
        clients: Iterable,
        services: Iterable,
        values: Sequence[Sequence[float]],
    ):
        self.clients: List[str] = [str(client) for client in clients]
        self.services: List[str] = [str(service) for service in services]

        _check_identifiers("clients", self.clients, MIN_CLIENTS)
        _check_identifiers("services", self.services, MIN_SERVICES)

        try:
            grid = np.array(values, dtype=float)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                f"Usage grid must be numeric: {e}",
                details={"error": str(e)},
            ) from e

        expected_shape = (len(self.clients), len(self.services))
        if grid.shape != expected_shape:
            raise ValidationError(
                f"Usage grid shape {grid.shape} does not match "
                f"{expected_shape[0]} clients x {expected_shape[1]} services",
                details={"shape": list(grid.shape), "expected": list(expected_shape)},
            )

        grid = np.where(np.isnan(grid), 0.0, grid)

        invalid = np.argwhere((grid != 0.0) & (grid != 1.0))
        if len(invalid) > 0:
            row, col = (int(i) for i in invalid[0])
            raise ValidationError(
                f"Usage grid must be binary; client '{self.clients[row]}' has "
                f"value {grid[row, col]!r} for service '{self.services[col]}'",
                details={
                    "client": self.clients[row],
                    "service": self.services[col],
                    "value": float(grid[row, col]),
                    "invalid_cells": int(len(invalid)),
                },
            )

        self._values = grid.astype(np.int8)
        self._values.setflags(write=False)
        self._client_index: Dict[str, int] = {
            client: idx for idx, client in enumerate(self.clients)
        }

        logger.debug(
            "Preference matrix created",
            extra={
                "num_clients": self.n_clients,
                "num_services": self.n_services,
                "density": round(self.density, 4),
            },
        )

    @property
    def values(self) -> np.ndarray:
        """Read-only (n_clients, n_services) int8 array."""
        return self._values

    @property
    def n_clients(self) -> int:
        return len(self.clients)

    @property
    def n_services(self) -> int:
        return len(self.services)

    @property
    def shape(self) -> tuple:
        return self._values.shape

    @property
    def density(self) -> float:
        return float(self._values.sum()) / (self.n_clients * self.n_services)

    def client_index(self, client_id: str) -> int:
        """Return the row index of a client.

        Raises:
            ClientNotFoundError: If the client is not in the matrix.
        """
        try:
            return self._client_index[str(client_id)]
        except KeyError:
            raise ClientNotFoundError(str(client_id)) from None

    def row(self, client_idx: int) -> np.ndarray:
        return self._values[client_idx]

    def used_services(self, client_idx: int) -> List[int]:
        """Column indices of the services a client has used, ascending."""
        return np.flatnonzero(self._values[client_idx]).tolist()

    def service_usage_counts(self) -> Dict[str, int]:
        totals = self._values.sum(axis=0)
        return {service: int(total) for service, total in zip(self.services, totals)}

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> "PreferenceMatrix":
        """Build a matrix from a DataFrame indexed by client, one column per service."""
        return cls(
            clients=frame.index.tolist(),
            services=frame.columns.tolist(),
            values=frame.to_numpy(),
        )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            self._values.astype(int),
            index=pd.Index(self.clients, name="Client"),
            columns=self.services,
        )

    def __repr__(self) -> str:
        return (
            f"PreferenceMatrix(n_clients={self.n_clients}, "
            f"n_services={self.n_services})"
        )


def load_preferences_csv(
    csv_path: str,
    client_col: Optional[str] = None,
) -> PreferenceMatrix:
    """Load a wide client x service CSV into a PreferenceMatrix.

    The CSV has one identifier column and one 0/1 column per service, e.g.::

        Client,Website Design,SEO,Email Marketing
        Biscuit Barn,1,0,1

    Args:
        csv_path: Path to the CSV file.
        client_col: Name of the identifier column. Defaults to the first column.

    Returns:
        Validated PreferenceMatrix. Blank cells are read as 0.

    Raises:
        FileNotFoundError: If CSV file does not exist.
        ValidationError: If the file is empty or cannot be parsed, a header
            name repeats, the identifier column is missing, or the usage cells
            are not numeric and binary.
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    logger.info(f"Loading preferences from {csv_path}")

    try:
        # pandas renames repeated headers ("SEO" -> "SEO.1"), so check the raw row
        header = pd.read_csv(csv_file, header=None, nrows=1, dtype=str)
        df = pd.read_csv(csv_file)
    except pd.errors.EmptyDataError as e:
        raise ValidationError(
            f"Cannot create preference matrix from empty CSV: {csv_path}",
            details={"csv_path": str(csv_path)},
        ) from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ValidationError(
            f"Malformed CSV {csv_path}: {e}",
            details={"csv_path": str(csv_path)},
        ) from e

    _check_identifiers("services", header.iloc[0].fillna("").tolist(), 0)

    if client_col is None:
        client_col = df.columns[0]
    elif client_col not in df.columns:
        raise ValidationError(
            f"CSV missing client identifier column: {client_col!r}",
            details={"csv_path": str(csv_path), "columns": df.columns.tolist()},
        )

    usage = df.drop(columns=[client_col])
    try:
        usage = usage.apply(pd.to_numeric)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"CSV usage columns must be numeric: {e}",
            details={"csv_path": str(csv_path)},
        ) from e

    usage.index = df[client_col].astype(str)
    matrix = PreferenceMatrix.from_frame(usage)

    logger.info(f"Loaded {matrix.n_clients} clients x {matrix.n_services} services")
    logger.info(f"Matrix density: {matrix.density:.4%}")

    return matrix
