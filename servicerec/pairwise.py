"""Labelled symmetric matrices and the pairwise fill shared by both engines.

Item similarity and client distance are both computed one unordered pair at
a time over the upper triangle and mirrored. Each pair task reads the shared
read-only input and produces exactly one cell value, so the tasks can be
handed to a joblib worker pool without any locking.
"""

import logging
from itertools import combinations
from typing import Callable, List, Sequence

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from servicerec.exceptions import ValidationError

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_N_JOBS = 1
SYMMETRY_TOLERANCE = 1e-9


def fill_symmetric(
    vectors: np.ndarray,
    pair_fn: Callable[[np.ndarray, np.ndarray], float],
    diagonal: float,
    n_jobs: int = DEFAULT_N_JOBS,
) -> np.ndarray:
    """Evaluate pair_fn on every unordered pair of rows of vectors.

    Args:
        vectors: 2D array, one row per entity.
        pair_fn: Module-level function of two rows returning a float. It must
            be picklable when n_jobs != 1.
        diagonal: Value written on the diagonal.
        n_jobs: joblib worker count; 1 runs in-process, -1 uses all cores.

    Returns:
        Square symmetric float array.
    """
    n = len(vectors)
    pairs = list(combinations(range(n), 2))

    values = Parallel(n_jobs=n_jobs)(
        delayed(pair_fn)(vectors[i], vectors[j]) for i, j in pairs
    )

    matrix = np.full((n, n), diagonal, dtype=float)
    for (i, j), value in zip(pairs, values):
        matrix[i, j] = value
        matrix[j, i] = value

    logger.debug(
        "Filled symmetric matrix",
        extra={"size": n, "num_pairs": len(pairs), "n_jobs": n_jobs},
    )
    return matrix


class SymmetricMatrix:
    """Square symmetric matrix whose rows and columns share one label list."""

    kind = "matrix"

    def __init__(self, labels: Sequence, values: np.ndarray):
        self.labels: List[str] = [str(label) for label in labels]
        grid = np.array(values, dtype=float)

        if grid.ndim != 2 or grid.shape[0] != grid.shape[1]:
            raise ValidationError(
                f"{self.kind} must be square, got shape {grid.shape}",
                details={"kind": self.kind, "shape": list(grid.shape)},
            )
        if grid.shape[0] != len(self.labels):
            raise ValidationError(
                f"{self.kind} has {grid.shape[0]} rows but {len(self.labels)} labels",
                details={"kind": self.kind, "labels": len(self.labels)},
            )
        if len(set(self.labels)) != len(self.labels):
            raise ValidationError(
                f"{self.kind} labels must be unique",
                details={"kind": self.kind},
            )
        if not np.allclose(grid, grid.T, atol=SYMMETRY_TOLERANCE, equal_nan=False):
            raise ValidationError(
                f"{self.kind} must be symmetric",
                details={"kind": self.kind},
            )

        self._values = grid
        self._values.setflags(write=False)
        self._index = {label: idx for idx, label in enumerate(self.labels)}

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def size(self) -> int:
        return len(self.labels)

    def index_of(self, label: str) -> int:
        try:
            return self._index[str(label)]
        except KeyError:
            raise KeyError(f"Unknown label {label!r} in {self.kind}") from None

    def value(self, a: str, b: str) -> float:
        return float(self._values[self.index_of(a), self.index_of(b)])

    @classmethod
    def from_frame(cls, frame: pd.DataFrame):
        if list(frame.index) != list(frame.columns):
            raise ValidationError(
                f"{cls.kind} index and columns must carry the same labels",
                details={"kind": cls.kind},
            )
        return cls(frame.index.tolist(), frame.to_numpy(dtype=float))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self._values, index=self.labels, columns=self.labels)

    def to_dict(self) -> dict:
        return {"labels": list(self.labels), "values": self._values.tolist()}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self.size})"
