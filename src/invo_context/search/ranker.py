"""
Ranking helpers for merging retrieval result sets.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import DocumentMetadata


@dataclass(frozen=True)
class SearchResult:
    """A ranked document hit."""

    id: str
    content: str
    score: float
    metadata: DocumentMetadata


@dataclass(frozen=True)
class FusionWeights:
    """Relative weight of each ranking in the fused score. Should sum to 1."""

    semantic: float = 0.6
    keyword: float = 0.4

    def __post_init__(self) -> None:
        if self.semantic < 0 or self.keyword < 0:
            raise ValueError("fusion weights must be >= 0")


DEFAULT_FUSION_WEIGHTS = FusionWeights()


def rank_normalize(results: list[SearchResult]) -> dict[str, float]:
    """Map each id to ``1 - index / len``: 1.0 for the top hit, decreasing by rank."""
    total = len(results)
    normalized: dict[str, float] = {}
    for index, result in enumerate(results):
        normalized.setdefault(result.id, 1 - (index / total))
    return normalized


def fuse_rankings(
    semantic_results: list[SearchResult],
    keyword_results: list[SearchResult],
    *,
    limit: int,
    weights: FusionWeights = DEFAULT_FUSION_WEIGHTS,
) -> list[SearchResult]:
    """Merge two rankings by rank position, not raw score.

    Cosine similarity and keyword counts are on incomparable scales, so each
    list contributes only its normalized rank. A document missing from a list
    contributes 0 for that list.
    """
    semantic_norm = rank_normalize(semantic_results)
    keyword_norm = rank_normalize(keyword_results)

    hits: dict[str, SearchResult] = {}
    for result in [*semantic_results, *keyword_results]:
        hits.setdefault(result.id, result)

    fused = [
        SearchResult(
            id=doc_id,
            content=hit.content,
            score=(
                semantic_norm.get(doc_id, 0.0) * weights.semantic
                + keyword_norm.get(doc_id, 0.0) * weights.keyword
            ),
            metadata=hit.metadata,
        )
        for doc_id, hit in hits.items()
    ]
    ordered = sorted(fused, key=lambda result: -result.score)
    return ordered[: max(limit, 1)]
