"""Event domain helpers (similarity scoring and clustering)."""

from .clustering import (
    Cluster,
    Clusterer,
    GreedyClusterer,
    UnionFindClusterer,
    get_clusterer,
    select_clusters,
)
from .similarity import SimilarityThresholds, are_similar, title_similarity

__all__ = [
    "Cluster",
    "Clusterer",
    "GreedyClusterer",
    "UnionFindClusterer",
    "get_clusterer",
    "select_clusters",
    "SimilarityThresholds",
    "are_similar",
    "title_similarity",
]
