"""Item-item cosine similarity over binary usage columns."""

import logging
import time

import numpy as np

from servicerec.exceptions import require_n_jobs
from servicerec.pairwise import DEFAULT_N_JOBS, SymmetricMatrix, fill_symmetric
from servicerec.recommender.preferences import PreferenceMatrix

# Configure module logger
logger = logging.getLogger(__name__)


class ItemSimilarityMatrix(SymmetricMatrix):
    """Service x service cosine similarities.

    The diagonal is stored as 0.0 and never takes part in neighbor selection.
    """

    kind = "item similarity matrix"

    @property
    def services(self):
        return self.labels


def cosine_similarity(u: np.ndarray, v: np.ndarray) -> float:
    """Cosine of the angle between two usage vectors.

    A vector with no usage at all carries no signal, so its similarity to
    anything is 0 rather than undefined.
    """
    squared_norms = float(np.dot(u, u)) * float(np.dot(v, v))
    if squared_norms == 0.0:
        return 0.0
    return float(np.dot(u, v)) / float(np.sqrt(squared_norms))


def compute_item_similarity(
    matrix: PreferenceMatrix,
    n_jobs: int = DEFAULT_N_JOBS,
) -> ItemSimilarityMatrix:
    """Compute the cosine similarity between every pair of services.

    Args:
        matrix: Validated preference matrix.
        n_jobs: joblib worker count for the pairwise computations.

    Returns:
        Symmetric ItemSimilarityMatrix indexed by service identifiers.
    """
    require_n_jobs(n_jobs)
    start_time = time.time()

    columns = matrix.values.T.astype(float)
    unused = [
        service for service, column in zip(matrix.services, columns)
        if not column.any()
    ]
    if unused:
        logger.warning(
            "Services with no usage get zero similarity",
            extra={"services": unused},
        )

    values = fill_symmetric(columns, cosine_similarity, diagonal=0.0, n_jobs=n_jobs)
    similarity = ItemSimilarityMatrix(matrix.services, values)

    logger.info(
        "Item similarity computed",
        extra={
            "num_services": matrix.n_services,
            "compute_time_ms": round((time.time() - start_time) * 1000, 2),
        },
    )
    return similarity
