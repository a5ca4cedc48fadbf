"""Module for getting recommendations.

Scores every service a client has not used yet against the services they
have used, through the neighborhood model, and returns the top ranked ones.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Sequence

import numpy as np

from servicerec.exceptions import ValidationError, require_positive_int
from servicerec.recommender.neighborhood import NeighborhoodModel
from servicerec.recommender.preferences import PreferenceMatrix

# Configure module logger
logger = logging.getLogger(__name__)

# Default parameters
DEFAULT_N_RECS = 2


class RecommendationReason(str, Enum):
    """Why a recommendation list looks the way it does."""

    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"
    NO_UNUSED_ITEMS = "no_unused_items"
    NO_SCORED_CANDIDATES = "no_scored_candidates"


class ScoredService(NamedTuple):
    service: str
    score: float


@dataclass
class RecommendationList:
    """Ranked services for one client.

    An empty list always carries a reason other than OK so callers can tell
    a client with no history from one who already uses everything.
    """

    client: str
    items: List[ScoredService] = field(default_factory=list)
    reason: RecommendationReason = RecommendationReason.OK

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def services(self) -> List[str]:
        return [item.service for item in self.items]

    def to_dict(self) -> Dict:
        return {
            "client": self.client,
            "recommendations": [
                {"service": item.service, "score": item.score} for item in self.items
            ],
            "reason": self.reason.value,
        }


def _check_alignment(matrix: PreferenceMatrix, neighborhoods: NeighborhoodModel) -> None:
    if list(matrix.services) != list(neighborhoods.services):
        raise ValidationError(
            "Neighborhood model services do not match preference matrix services",
            details={
                "matrix_services": list(matrix.services),
                "model_services": list(neighborhoods.services),
            },
        )


def score_row(
    row: Sequence[int],
    neighborhoods: NeighborhoodModel,
    link_mask: Optional[np.ndarray] = None,
) -> Dict[int, float]:
    """Score each unused service of one usage row.

    score(s) is the sum of sim(s, u) over used services u that are linked to
    s through either neighbor list.

    Returns:
        Mapping of column index to score for unused services, zeros included.
    """
    row = np.asarray(row)
    if link_mask is None:
        link_mask = neighborhoods.link_mask()
    similarity = neighborhoods.similarity.values

    used = np.flatnonzero(row).tolist()
    scores: Dict[int, float] = {}
    for candidate in np.flatnonzero(row == 0).tolist():
        score = 0.0
        for u in used:
            if link_mask[candidate, u]:
                score += similarity[candidate, u]
        scores[candidate] = float(score)
    return scores


def predict_for_row(
    client: str,
    row: Sequence[int],
    neighborhoods: NeighborhoodModel,
    n_recs: int = DEFAULT_N_RECS,
    link_mask: Optional[np.ndarray] = None,
) -> RecommendationList:
    """Rank unused services for a single client's usage row.

    Args:
        client: Client identifier, carried into the result.
        row: Binary usage row aligned with the neighborhood model's services.
        neighborhoods: Neighborhood model built from the same services.
        n_recs: Maximum number of recommendations.
        link_mask: Precomputed NeighborhoodModel.link_mask(), for batches.

    Returns:
        RecommendationList with at most n_recs items, sorted by score
        descending then by column index.
    """
    require_positive_int("n_recs", n_recs)
    row = np.asarray(row)
    services = neighborhoods.services

    if not row.any():
        logger.debug("Client has no usage history", extra={"client": client})
        return RecommendationList(client, [], RecommendationReason.INSUFFICIENT_DATA)

    if row.all():
        logger.debug("Client already uses every service", extra={"client": client})
        return RecommendationList(client, [], RecommendationReason.NO_UNUSED_ITEMS)

    scores = score_row(row, neighborhoods, link_mask)
    ranked = sorted(
        (idx for idx, score in scores.items() if score > 0),
        key=lambda idx: (-scores[idx], idx),
    )

    if not ranked:
        logger.debug("No unused service scored above zero", extra={"client": client})
        return RecommendationList(client, [], RecommendationReason.NO_SCORED_CANDIDATES)

    items = [ScoredService(services[idx], scores[idx]) for idx in ranked[:n_recs]]
    return RecommendationList(client, items, RecommendationReason.OK)


def recommend_services_for_client(
    client_id: str,
    matrix: PreferenceMatrix,
    neighborhoods: NeighborhoodModel,
    n_recs: int = DEFAULT_N_RECS,
) -> RecommendationList:
    """Get recommendations for one client of the preference matrix.

    Raises:
        ClientNotFoundError: If the client is not in the matrix.
        ParameterError: If n_recs is not a positive integer.
        ValidationError: If the model was built from different services.
    """
    require_positive_int("n_recs", n_recs)
    _check_alignment(matrix, neighborhoods)

    client_idx = matrix.client_index(client_id)
    client = matrix.clients[client_idx]
    recommendations = predict_for_row(client, matrix.row(client_idx), neighborhoods, n_recs)

    logger.info(
        "Recommendations generated",
        extra={
            "client": client,
            "num_recommendations": len(recommendations.items),
            "reason": recommendations.reason.value,
        },
    )
    return recommendations


def batch_recommend_for_clients(
    matrix: PreferenceMatrix,
    neighborhoods: NeighborhoodModel,
    n_recs: int = DEFAULT_N_RECS,
    client_ids: Optional[List[str]] = None,
) -> Dict[str, RecommendationList]:
    """Generate recommendations for many clients in one pass.

    Builds the neighbor link mask once and reuses it for every client.
    Clients without usable history get an empty, reason-tagged list and do
    not stop the batch.

    Args:
        matrix: Validated preference matrix.
        neighborhoods: Neighborhood model over the same services.
        n_recs: Maximum number of recommendations per client.
        client_ids: Subset of clients to score. Defaults to all, in row order.

    Returns:
        Dictionary mapping client identifiers to their RecommendationList.

    Example:
        >>> recs = batch_recommend_for_clients(matrix, neighborhoods, n_recs=2)
        >>> for client, rec in recs.items():
        ...     print(client, rec.services, rec.reason.value)
    """
    require_positive_int("n_recs", n_recs)
    _check_alignment(matrix, neighborhoods)

    if client_ids is None:
        client_ids = list(matrix.clients)
    indices = [matrix.client_index(client_id) for client_id in client_ids]

    start_time = time.time()
    link_mask = neighborhoods.link_mask()

    results: Dict[str, RecommendationList] = {}
    for client_idx in indices:
        client = matrix.clients[client_idx]
        results[client] = predict_for_row(
            client, matrix.row(client_idx), neighborhoods, n_recs, link_mask
        )

    empty = {
        reason.value: sum(1 for rec in results.values() if rec.reason is reason)
        for reason in RecommendationReason
        if reason is not RecommendationReason.OK
    }
    logger.info(
        "Batch recommendations completed",
        extra={
            "num_clients": len(results),
            "n_recs": n_recs,
            "empty_by_reason": empty,
            "total_time_ms": round((time.time() - start_time) * 1000, 2),
        },
    )
    return results
