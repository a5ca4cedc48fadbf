"""Client segmentation module for ServiceRec.

Computes Jaccard distances between clients' service-usage profiles and
groups them with average-linkage agglomerative clustering.
"""
