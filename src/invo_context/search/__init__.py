"""Search helpers for the business corpus."""

from .hybrid import NO_CONTEXT_FOUND, HybridSearchEngine, format_context
from .keyword import KeywordSearchEngine, keyword_score, query_keywords
from .ranker import (
    DEFAULT_FUSION_WEIGHTS,
    FusionWeights,
    SearchResult,
    fuse_rankings,
    rank_normalize,
)
from .semantic import SemanticSearchEngine, cosine_similarity

__all__ = [
    "NO_CONTEXT_FOUND",
    "HybridSearchEngine",
    "format_context",
    "KeywordSearchEngine",
    "keyword_score",
    "query_keywords",
    "DEFAULT_FUSION_WEIGHTS",
    "FusionWeights",
    "SearchResult",
    "fuse_rankings",
    "rank_normalize",
    "SemanticSearchEngine",
    "cosine_similarity",
]
