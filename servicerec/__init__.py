"""ServiceRec: marketing service recommendation and client segmentation.

This package recommends services to clients with item-based collaborative
filtering over a binary client x service usage matrix, and groups clients
into segments with average-linkage hierarchical clustering.

Modules:
    recommender: preference matrix, item similarity, neighborhoods, prediction
    segmentation: client distances and hierarchical clustering
    api: FastAPI application and REST API endpoints
"""

__version__ = "0.1.0"
