"""Summary tables behind the usage and recommendation charts.

These functions only shape data with pandas; rendering is left to whatever
plotting tool consumes the frames.
"""

import logging
from typing import Dict

import pandas as pd

from servicerec.recommender.infer import RecommendationList
from servicerec.recommender.preferences import PreferenceMatrix

# Configure module logger
logger = logging.getLogger(__name__)


def usage_long_frame(matrix: PreferenceMatrix) -> pd.DataFrame:
    """One row per (Client, Service) with a 0/1 Used column (heatmap data)."""
    frame = matrix.to_frame().reset_index()
    return frame.melt(id_vars="Client", var_name="Service", value_name="Used")


def recommendation_counts(
    matrix: PreferenceMatrix,
    recommendations: Dict[str, RecommendationList],
) -> pd.DataFrame:
    """Count how often each service was recommended and how often it is used.

    Returns:
        DataFrame with columns Service, Count and UsedCount, one row per
        service in matrix order, including services never recommended.
    """
    recommended = pd.Series(
        [service for rec in recommendations.values() for service in rec.services],
        dtype=object,
    )
    counts = recommended.value_counts().reindex(matrix.services, fill_value=0)
    usage = matrix.service_usage_counts()

    frame = pd.DataFrame(
        {
            "Service": matrix.services,
            "Count": counts.astype(int).tolist(),
            "UsedCount": [usage[service] for service in matrix.services],
        }
    )
    logger.debug(
        "Recommendation counts computed",
        extra={"total_recommendations": int(frame["Count"].sum())},
    )
    return frame


def segment_summary(matrix: PreferenceMatrix, segments: Dict[str, int]) -> pd.DataFrame:
    """Per-cluster size and the share of members using each service.

    Returns:
        DataFrame indexed by cluster id with a Size column followed by one
        adoption-rate column per service.
    """
    frame = matrix.to_frame()
    frame["Cluster"] = [segments[client] for client in matrix.clients]

    rates = frame.groupby("Cluster")[matrix.services].mean()
    rates.insert(0, "Size", frame.groupby("Cluster").size())
    return rates.sort_index()
