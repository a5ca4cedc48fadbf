"""Pairwise Jaccard distance between clients' service-usage sets."""

import logging
import time

import numpy as np

from servicerec.exceptions import ValidationError, require_n_jobs
from servicerec.pairwise import DEFAULT_N_JOBS, SymmetricMatrix, fill_symmetric
from servicerec.recommender.preferences import PreferenceMatrix

# Configure module logger
logger = logging.getLogger(__name__)


class ClientDistanceMatrix(SymmetricMatrix):
    """Client x client distances in [0, 1] with a zero diagonal."""

    kind = "client distance matrix"

    def __init__(self, labels, values):
        super().__init__(labels, values)
        grid = self.values
        if np.any(np.diag(grid) != 0.0):
            raise ValidationError(
                "client distance matrix must have a zero diagonal",
                details={"kind": self.kind},
            )
        if np.any(grid < 0.0) or np.any(grid > 1.0):
            raise ValidationError(
                "client distances must lie in [0, 1]",
                details={"kind": self.kind},
            )

    @property
    def clients(self):
        return self.labels


def jaccard_distance(u: np.ndarray, v: np.ndarray) -> float:
    """Jaccard distance between two binary usage rows.

    Two clients that have used nothing share the same (empty) profile, so
    their distance is 0.
    """
    u_used = u > 0
    v_used = v > 0
    union = int(np.sum(u_used | v_used))
    if union == 0:
        return 0.0
    intersection = int(np.sum(u_used & v_used))
    return 1.0 - intersection / union


def compute_client_distances(
    matrix: PreferenceMatrix,
    n_jobs: int = DEFAULT_N_JOBS,
) -> ClientDistanceMatrix:
    """Compute the Jaccard distance between every pair of clients.

    Args:
        matrix: Validated preference matrix.
        n_jobs: joblib worker count for the pairwise computations.

    Returns:
        Symmetric ClientDistanceMatrix indexed by client identifiers.
    """
    require_n_jobs(n_jobs)
    start_time = time.time()

    values = fill_symmetric(matrix.values, jaccard_distance, diagonal=0.0, n_jobs=n_jobs)
    distances = ClientDistanceMatrix(matrix.clients, values)

    logger.info(
        "Client distances computed",
        extra={
            "num_clients": matrix.n_clients,
            "compute_time_ms": round((time.time() - start_time) * 1000, 2),
        },
    )
    return distances
