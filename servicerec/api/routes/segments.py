"""Client segmentation endpoint for the ServiceRec API."""

import logging
import time

from fastapi import APIRouter

from servicerec.api.metrics import metrics_service
from servicerec.api.schemas import MergeModel, SegmentRequest, SegmentResponse
from servicerec.exceptions import ParameterError
from servicerec.segmentation.clustering import average_linkage
from servicerec.segmentation.distance import compute_client_distances

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/segments",
    tags=["segmentation"],
)


@router.post("", response_model=SegmentResponse)
def segment_clients(request: SegmentRequest) -> SegmentResponse:
    """Cluster the request's clients by Jaccard distance and cut into groups.

    Example:
        POST /segments
        {"clients": ["A", "B", "C"], "services": ["S1", "S2"],
         "usage": [[1, 0], [1, 1], [0, 1]], "n_clusters": 2}
    """
    start_time = time.time()
    matrix = request.to_matrix()
    if not 1 <= request.n_clusters <= matrix.n_clients:
        raise ParameterError(
            "n_clusters",
            request.n_clusters,
            f"must be an integer in [1, {matrix.n_clients}]",
        )

    logger.info(
        "Segmenting clients",
        extra={"num_clients": matrix.n_clients, "n_clusters": request.n_clusters},
    )

    distances = compute_client_distances(matrix)
    tree = average_linkage(distances)
    assignments = tree.cut(request.n_clusters)

    metrics_service.record_run(
        "segments", (time.time() - start_time) * 1000, matrix.n_clients
    )

    return SegmentResponse(
        clients=distances.clients,
        distances=distances.values.tolist(),
        merges=[MergeModel(**merge._asdict()) for merge in tree.merges],
        leaf_order=tree.leaf_order(),
        n_clusters=request.n_clusters,
        assignments=assignments,
    )
