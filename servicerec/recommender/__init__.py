"""Item-based collaborative filtering module for ServiceRec.

This module contains the preference matrix model, the item similarity
engine, the neighborhood model and the predictor that ranks unused services
for each client, plus the formatting helpers that turn the results into
messages and summary tables.
"""
