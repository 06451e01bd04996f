"""Event clustering: group articles from distinct sources that cover the same event."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Set

from crossview.core.logging import get_logger
from crossview.events.similarity import DEFAULT_THRESHOLDS, SimilarityThresholds, are_similar
from crossview.feeds.base import Article

logger = get_logger(__name__)

SimilarityFn = Callable[[Article, Article, SimilarityThresholds], bool]


@dataclass
class Cluster:
    """Articles believed to describe one event, at most one per source."""

    articles: List[Article] = field(default_factory=list)
    category: Optional[str] = None
    order: int = 0

    @property
    def source_ids(self) -> Set[str]:
        return {article.source_id for article in self.articles}

    @property
    def size(self) -> int:
        return len(self.articles)

    def accepts_source(self, article: Article) -> bool:
        return article.source_id not in self.source_ids

    def add(self, article: Article) -> None:
        if not self.accepts_source(article):
            raise ValueError(f"Cluster already holds an article from {article.source_id}")
        self.articles.append(article)


class Clusterer(Protocol):
    """Strategy interface for turning a flat article list into clusters."""

    def cluster(self, articles: Sequence[Article]) -> List[Cluster]:
        ...


class GreedyClusterer:
    """
    First-fit single-pass clustering.

    Each article joins the first open cluster holding a similar member and no
    article from the same source; otherwise it opens a new cluster. Membership
    depends on arrival order.
    """

    def __init__(
        self,
        thresholds: SimilarityThresholds = DEFAULT_THRESHOLDS,
        similarity: SimilarityFn = are_similar,
    ) -> None:
        self.thresholds = thresholds
        self.similarity = similarity

    def cluster(self, articles: Sequence[Article]) -> List[Cluster]:
        clusters: List[Cluster] = []
        for article in articles:
            target = next(
                (
                    candidate
                    for candidate in clusters
                    if candidate.accepts_source(article)
                    and any(
                        self.similarity(article, member, self.thresholds)
                        for member in candidate.articles
                    )
                ),
                None,
            )
            if target is None:
                target = Cluster(order=len(clusters))
                clusters.append(target)
            target.add(article)

        logger.debug("greedy_clustering_complete", articles=len(articles), clusters=len(clusters))
        return clusters


class UnionFindClusterer:
    """
    Transitive-closure clustering over pairwise similarity edges.

    Two components merge only when their source sets are disjoint, so the
    one-article-per-source invariant still holds.
    """

    def __init__(
        self,
        thresholds: SimilarityThresholds = DEFAULT_THRESHOLDS,
        similarity: SimilarityFn = are_similar,
    ) -> None:
        self.thresholds = thresholds
        self.similarity = similarity

    def cluster(self, articles: Sequence[Article]) -> List[Cluster]:
        parent = list(range(len(articles)))
        sources: Dict[int, Set[str]] = {i: {a.source_id} for i, a in enumerate(articles)}

        def find(index: int) -> int:
            while parent[index] != index:
                parent[index] = parent[parent[index]]
                index = parent[index]
            return index

        for i in range(len(articles)):
            for j in range(i + 1, len(articles)):
                root_i, root_j = find(i), find(j)
                if root_i == root_j or sources[root_i] & sources[root_j]:
                    continue
                if self.similarity(articles[i], articles[j], self.thresholds):
                    keep, drop = min(root_i, root_j), max(root_i, root_j)
                    parent[drop] = keep
                    sources[keep] |= sources.pop(drop)

        grouped: Dict[int, Cluster] = {}
        for index, article in enumerate(articles):
            root = find(index)
            if root not in grouped:
                grouped[root] = Cluster(order=len(grouped))
            grouped[root].add(article)

        clusters = list(grouped.values())
        logger.debug("union_find_clustering_complete", articles=len(articles), clusters=len(clusters))
        return clusters


def get_clusterer(name: str, thresholds: SimilarityThresholds = DEFAULT_THRESHOLDS) -> Clusterer:
    if name == "union_find":
        return UnionFindClusterer(thresholds)
    if name != "greedy":
        logger.warning("unknown_clusterer_falling_back", clusterer=name)
    return GreedyClusterer(thresholds)


def select_clusters(
    clusters: Sequence[Cluster],
    *,
    min_sources: int = 2,
    max_stories: int = 10,
) -> List[Cluster]:
    """
    Pick up to ``max_stories`` clusters, preferring multi-source coverage.

    Clusters with at least ``min_sources`` members come first (largest first, then
    arrival order). Smaller clusters only fill the remaining slots.
    """

    ranked = sorted(clusters, key=lambda c: (-c.size, c.order))
    preferred = [c for c in ranked if c.size >= min_sources]
    selected = preferred[:max_stories]

    if len(selected) < max_stories:
        fallback = [c for c in ranked if c.size < min_sources]
        selected.extend(fallback[: max_stories - len(selected)])
        if fallback:
            logger.info(
                "cluster_selection_fallback",
                multi_source=len(preferred),
                filled_with_small=min(len(fallback), max_stories - len(preferred)),
            )

    return selected


__all__ = [
    "Cluster",
    "Clusterer",
    "GreedyClusterer",
    "UnionFindClusterer",
    "get_clusterer",
    "select_clusters",
]
