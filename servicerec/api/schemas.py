"""Request and response models for the ServiceRec API."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from servicerec import __version__
from servicerec.recommender.infer import DEFAULT_N_RECS
from servicerec.recommender.preferences import PreferenceMatrix
from servicerec.segmentation.clustering import DEFAULT_N_CLUSTERS


class PreferencePayload(BaseModel):
    """Binary client x service usage grid.

    Range and shape checks are left to PreferenceMatrix so that the API
    reports them with the same errors as the library.
    """

    clients: List[str] = Field(..., description="Client identifiers, one per row")
    services: List[str] = Field(..., description="Service identifiers, one per column")
    usage: List[List[Optional[float]]] = Field(
        ..., description="0/1 usage grid; null cells count as 0"
    )

    def to_matrix(self) -> PreferenceMatrix:
        return PreferenceMatrix(
            self.clients,
            self.services,
            [[float("nan") if cell is None else cell for cell in row] for row in self.usage],
        )


class RecommendRequest(PreferencePayload):
    n_recs: int = Field(default=DEFAULT_N_RECS, description="Recommendations per client")
    neighborhood_size: Optional[int] = Field(
        default=None, description="Neighbors kept per service (default: all)"
    )


class SegmentRequest(PreferencePayload):
    n_clusters: int = Field(default=DEFAULT_N_CLUSTERS, description="Number of segments")


class ScoredServiceModel(BaseModel):
    service: str
    score: float


class ClientRecommendations(BaseModel):
    client: str
    recommendations: List[ScoredServiceModel]
    reason: str = Field(..., description="ok, insufficient_data, no_unused_items or no_scored_candidates")
    message: str


class RecommendResponse(BaseModel):
    results: List[ClientRecommendations]
    n_recs: int
    neighborhood_size: int
    model_version: str = Field(default=__version__)


class SimilarityResponse(BaseModel):
    services: List[str]
    values: List[List[float]]


class MergeModel(BaseModel):
    left: int
    right: int
    distance: float
    size: int


class SegmentResponse(BaseModel):
    clients: List[str]
    distances: List[List[float]]
    merges: List[MergeModel]
    leaf_order: List[str]
    n_clusters: int
    assignments: Dict[str, int]
