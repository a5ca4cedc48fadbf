"""Friendly per-client recommendation messages."""

from typing import Dict, List

from servicerec.recommender.infer import RecommendationList, RecommendationReason


def format_recommendation_message(recommendations: RecommendationList) -> str:
    """Turn a client's recommendation list into a short chatty message."""
    client = recommendations.client

    if recommendations.reason is RecommendationReason.NO_UNUSED_ITEMS:
        return (
            f"Well I'll be, {client} has already tried every service we offer! "
            "Y'all come back when we cook up something new."
        )

    if recommendations.is_empty:
        return (
            f"Well sugar, we ain't got enough data on {client}. "
            "Maybe try tellin' us what y'all like first."
        )

    opening = f"Hey there, {client}! Based on what you've been workin' on,"
    flair = (
        "we reckon you'd love to try "
        f"{' and '.join(recommendations.services)} next."
    )
    closing = "Now get yourself a biscuit while we make it happen."
    return " ".join([opening, flair, closing])


def format_all_messages(recommendations: Dict[str, RecommendationList]) -> List[str]:
    return [format_recommendation_message(rec) for rec in recommendations.values()]
