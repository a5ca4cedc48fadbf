"""Recommendation endpoints for the ServiceRec API.

Each request carries its own preference matrix; nothing is cached between
requests. Library errors propagate to the exception handler registered in
servicerec.api.main.
"""

import logging
import time

from fastapi import APIRouter

from servicerec.api.metrics import metrics_service
from servicerec.api.schemas import (
    ClientRecommendations,
    PreferencePayload,
    RecommendRequest,
    RecommendResponse,
    ScoredServiceModel,
    SimilarityResponse,
)
from servicerec.exceptions import require_positive_int
from servicerec.recommender.infer import (
    RecommendationList,
    batch_recommend_for_clients,
    recommend_services_for_client,
)
from servicerec.recommender.messages import format_recommendation_message
from servicerec.recommender.neighborhood import build_neighborhoods
from servicerec.recommender.similarity import compute_item_similarity

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/recommend",
    tags=["recommendations"],
)


def _to_model(recommendations: RecommendationList) -> ClientRecommendations:
    return ClientRecommendations(
        client=recommendations.client,
        recommendations=[
            ScoredServiceModel(service=item.service, score=item.score)
            for item in recommendations.items
        ],
        reason=recommendations.reason.value,
        message=format_recommendation_message(recommendations),
    )


@router.post("", response_model=RecommendResponse)
def recommend_all(request: RecommendRequest) -> RecommendResponse:
    """Rank unused services for every client in the request matrix.

    Example:
        POST /recommend
        {"clients": ["A", "B", "C"], "services": ["S1", "S2", "S3"],
         "usage": [[1, 0, 1], [1, 1, 0], [0, 1, 1]], "n_recs": 2}
    """
    start_time = time.time()
    require_positive_int("n_recs", request.n_recs)
    if request.neighborhood_size is not None:
        require_positive_int("neighborhood_size", request.neighborhood_size)
    matrix = request.to_matrix()

    logger.info(
        "Generating recommendations",
        extra={"num_clients": matrix.n_clients, "n_recs": request.n_recs},
    )

    neighborhoods = build_neighborhoods(
        compute_item_similarity(matrix), request.neighborhood_size
    )
    results = batch_recommend_for_clients(matrix, neighborhoods, request.n_recs)

    metrics_service.record_run(
        "recommend", (time.time() - start_time) * 1000, matrix.n_clients
    )

    return RecommendResponse(
        results=[_to_model(rec) for rec in results.values()],
        n_recs=request.n_recs,
        neighborhood_size=neighborhoods.k,
    )


@router.post("/similarity", response_model=SimilarityResponse)
def item_similarity(request: PreferencePayload) -> SimilarityResponse:
    """Return the service x service cosine similarity matrix."""
    start_time = time.time()
    matrix = request.to_matrix()
    similarity = compute_item_similarity(matrix)

    metrics_service.record_run(
        "similarity", (time.time() - start_time) * 1000, matrix.n_clients
    )

    return SimilarityResponse(
        services=similarity.services,
        values=similarity.values.tolist(),
    )


@router.post("/{client_id}", response_model=ClientRecommendations)
def recommend_for_client(client_id: str, request: RecommendRequest) -> ClientRecommendations:
    """Rank unused services for one client of the request matrix.

    Returns 404 if client_id is not one of the request's clients.
    """
    start_time = time.time()
    require_positive_int("n_recs", request.n_recs)
    if request.neighborhood_size is not None:
        require_positive_int("neighborhood_size", request.neighborhood_size)
    matrix = request.to_matrix()
    matrix.client_index(client_id)

    neighborhoods = build_neighborhoods(
        compute_item_similarity(matrix), request.neighborhood_size
    )
    recommendations = recommend_services_for_client(
        client_id, matrix, neighborhoods, request.n_recs
    )

    metrics_service.record_run(
        "recommend", (time.time() - start_time) * 1000, matrix.n_clients
    )

    return _to_model(recommendations)
