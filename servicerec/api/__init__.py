"""FastAPI application module for ServiceRec.

This module contains the FastAPI application and the route handlers that
run recommendation and segmentation over a preference matrix posted in the
request body.
"""
