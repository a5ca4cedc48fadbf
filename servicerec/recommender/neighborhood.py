"""Top-K item neighborhoods derived from an item similarity matrix."""

import logging
from typing import Dict, List, NamedTuple, Optional, Union

import numpy as np
import pandas as pd

from servicerec.exceptions import require_positive_int
from servicerec.recommender.similarity import ItemSimilarityMatrix

# Configure module logger
logger = logging.getLogger(__name__)


class Neighbor(NamedTuple):
    service: str
    weight: float


class NeighborhoodModel:
    """Per-service ordered list of its K most similar other services.

    Lists are sorted by weight descending with ties broken by the neighbor's
    original column index, and never contain the service itself.
    """

    def __init__(
        self,
        similarity: ItemSimilarityMatrix,
        neighbors: Dict[str, List[Neighbor]],
        k: int,
    ):
        self.similarity = similarity
        self.neighbors = neighbors
        self.k = k
        self._members = {
            service: {neighbor.service for neighbor in entries}
            for service, entries in neighbors.items()
        }

    @property
    def services(self) -> List[str]:
        return self.similarity.services

    def neighbors_of(self, service: str) -> List[Neighbor]:
        return list(self.neighbors[service])

    def is_neighbor(self, service: str, candidate: str) -> bool:
        """True if candidate is in service's neighbor list."""
        return candidate in self._members[service]

    def linked(self, a: str, b: str) -> bool:
        """True if either service lists the other as a neighbor."""
        return self.is_neighbor(a, b) or self.is_neighbor(b, a)

    def link_mask(self) -> np.ndarray:
        """Boolean (n, n) array, True where two services are linked."""
        index = {service: idx for idx, service in enumerate(self.services)}
        mask = np.zeros((len(index), len(index)), dtype=bool)
        for service, entries in self.neighbors.items():
            for neighbor in entries:
                mask[index[service], index[neighbor.service]] = True
        return mask | mask.T

    def to_dict(self) -> Dict[str, List[Dict[str, float]]]:
        return {
            service: [
                {"service": n.service, "weight": n.weight} for n in entries
            ]
            for service, entries in self.neighbors.items()
        }


def build_neighborhoods(
    similarity: Union[ItemSimilarityMatrix, pd.DataFrame],
    k: Optional[int] = None,
) -> NeighborhoodModel:
    """Select the k highest-similarity other services for every service.

    Args:
        similarity: Item similarity matrix, or a square DataFrame with the same
            service labels on both axes.
        k: Neighborhood size. None means every other service.

    Returns:
        NeighborhoodModel with lists of length min(k, n_services - 1).

    Raises:
        ValidationError: If the similarity matrix is not square and symmetric.
        ParameterError: If k is not a positive integer.
    """
    if isinstance(similarity, pd.DataFrame):
        similarity = ItemSimilarityMatrix.from_frame(similarity)

    n_services = similarity.size
    if k is None:
        k = max(n_services - 1, 1)
    require_positive_int("neighborhood_size", k)

    values = similarity.values
    services = similarity.services
    neighbors: Dict[str, List[Neighbor]] = {}

    for i, service in enumerate(services):
        candidates = [j for j in range(n_services) if j != i]
        candidates.sort(key=lambda j: (-values[i, j], j))
        neighbors[service] = [
            Neighbor(services[j], float(values[i, j])) for j in candidates[:k]
        ]

    logger.info(
        "Neighborhoods built",
        extra={"num_services": n_services, "neighborhood_size": k},
    )
    return NeighborhoodModel(similarity, neighbors, k)
