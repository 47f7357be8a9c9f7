"""
Hybrid retrieval: semantic and keyword rankings fused by rank position.
"""

from __future__ import annotations

import asyncio
import logging

from ..vector_store import VectorStore
from .keyword import KeywordSearchEngine
from .ranker import DEFAULT_FUSION_WEIGHTS, FusionWeights, SearchResult, fuse_rankings
from .semantic import SemanticSearchEngine

logger = logging.getLogger(__name__)

NO_CONTEXT_FOUND = "No relevant context found."


def format_context(results: list[SearchResult]) -> str:
    """Render hits as enumerated, score-annotated blocks for a prompt."""
    if not results:
        return NO_CONTEXT_FOUND
    return "\n\n".join(
        f"[{idx}] (Score: {result.score:.2f}) {result.content}"
        for idx, result in enumerate(results, start=1)
    )


class HybridSearchEngine:
    """Run semantic and keyword search concurrently and fuse their rankings."""

    def __init__(
        self,
        store: VectorStore,
        *,
        weights: FusionWeights = DEFAULT_FUSION_WEIGHTS,
    ) -> None:
        self.store = store
        self.weights = weights
        self.semantic = SemanticSearchEngine(store)
        self.keyword = KeywordSearchEngine(store)

    async def search(self, query: str, top_k: int = 5) -> list[SearchResult]:
        normalized_limit = max(top_k, 1)
        candidate_limit = normalized_limit * 2

        # Initialize once up front so both branches see the same collection.
        await self.store.initialize()
        semantic_results, keyword_results = await asyncio.gather(
            self.semantic.search(query, candidate_limit),
            self.keyword.search(query, candidate_limit),
        )
        merged = fuse_rankings(
            semantic_results,
            keyword_results,
            limit=normalized_limit,
            weights=self.weights,
        )
        logger.debug(
            "Hybrid search for %r: %d semantic, %d keyword, %d fused",
            query,
            len(semantic_results),
            len(keyword_results),
            len(merged),
        )
        return merged

    async def get_relevant_context(self, query: str, max_results: int = 3) -> str:
        """Format the top hybrid hits as a context block, never an empty string."""
        try:
            results = await self.search(query, max_results)
        except Exception:
            logger.exception("Context retrieval failed for %r", query)
            results = []
        return format_context(results)
