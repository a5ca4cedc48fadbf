"""End-to-end batch run over one preference matrix.

Runs the recommendation branch (similarity, neighborhoods, prediction) and
the segmentation branch (client distances, cluster tree, optional cut) and
returns every intermediate result. All parameters are checked before any
computation starts.
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional

from servicerec.exceptions import ParameterError, require_n_jobs, require_positive_int
from servicerec.pairwise import DEFAULT_N_JOBS
from servicerec.recommender.infer import (
    DEFAULT_N_RECS,
    RecommendationList,
    batch_recommend_for_clients,
)
from servicerec.recommender.neighborhood import NeighborhoodModel, build_neighborhoods
from servicerec.recommender.preferences import PreferenceMatrix
from servicerec.recommender.similarity import ItemSimilarityMatrix, compute_item_similarity
from servicerec.segmentation.clustering import ClusterTree, average_linkage
from servicerec.segmentation.distance import ClientDistanceMatrix, compute_client_distances

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything one run produces, ready for the formatting collaborators."""

    matrix: PreferenceMatrix
    similarity: ItemSimilarityMatrix
    neighborhoods: NeighborhoodModel
    recommendations: Dict[str, RecommendationList]
    distances: ClientDistanceMatrix
    tree: ClusterTree
    segments: Optional[Dict[str, int]] = None


def validate_parameters(
    matrix: PreferenceMatrix,
    n_recs: int,
    neighborhood_size: Optional[int],
    n_clusters: Optional[int],
    n_jobs: int,
) -> None:
    """Fail fast on any out-of-range parameter.

    Raises:
        ParameterError: On the first invalid parameter.
    """
    require_positive_int("n_recs", n_recs)
    if neighborhood_size is not None:
        require_positive_int("neighborhood_size", neighborhood_size)
    if n_clusters is not None:
        require_positive_int("n_clusters", n_clusters)
        if n_clusters > matrix.n_clients:
            raise ParameterError(
                "n_clusters",
                n_clusters,
                f"must not exceed the number of clients ({matrix.n_clients})",
            )
    require_n_jobs(n_jobs)


def run_pipeline(
    matrix: PreferenceMatrix,
    n_recs: int = DEFAULT_N_RECS,
    neighborhood_size: Optional[int] = None,
    n_clusters: Optional[int] = None,
    n_jobs: int = DEFAULT_N_JOBS,
) -> PipelineResult:
    """Run recommendation and segmentation over a preference matrix.

    Args:
        matrix: Validated preference matrix.
        n_recs: Maximum recommendations per client.
        neighborhood_size: K for the neighborhood model; None means all
            other services.
        n_clusters: Number of segments to cut the tree into; None skips
            the cut.
        n_jobs: joblib worker count for the pairwise computations.

    Returns:
        PipelineResult with both branches' outputs.

    Raises:
        ParameterError: If any parameter is out of range.
    """
    validate_parameters(matrix, n_recs, neighborhood_size, n_clusters, n_jobs)

    start_time = time.time()
    logger.info(
        "Starting pipeline run",
        extra={
            "num_clients": matrix.n_clients,
            "num_services": matrix.n_services,
            "n_recs": n_recs,
            "neighborhood_size": neighborhood_size,
            "n_clusters": n_clusters,
        },
    )

    similarity = compute_item_similarity(matrix, n_jobs=n_jobs)
    neighborhoods = build_neighborhoods(similarity, neighborhood_size)
    recommendations = batch_recommend_for_clients(matrix, neighborhoods, n_recs)

    distances = compute_client_distances(matrix, n_jobs=n_jobs)
    tree = average_linkage(distances)
    segments = tree.cut(n_clusters) if n_clusters is not None else None

    logger.info(
        "Pipeline run completed",
        extra={"total_time_ms": round((time.time() - start_time) * 1000, 2)},
    )

    return PipelineResult(
        matrix=matrix,
        similarity=similarity,
        neighborhoods=neighborhoods,
        recommendations=recommendations,
        distances=distances,
        tree=tree,
        segments=segments,
    )
