"""
Vector-based semantic search engine.

Embeds a query and scores every stored document by cosine similarity. The
corpus holds tens to low hundreds of documents, so this is a plain
brute-force scan with no index structure.
"""

from __future__ import annotations

import math

from ..vector_store import VectorStore
from .ranker import SearchResult


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine of the angle between two vectors; 0 for zero or mismatched vectors."""
    if len(a) != len(b):
        return 0.0
    dot = 0.0
    mag_a = 0.0
    mag_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        mag_a += x * x
        mag_b += y * y
    if mag_a == 0 or mag_b == 0:
        return 0.0
    similarity = dot / (math.sqrt(mag_a) * math.sqrt(mag_b))
    # Rounding can push |similarity| a hair past 1.
    return max(-1.0, min(1.0, similarity))


class SemanticSearchEngine:
    """Embed a query and rank stored document embeddings."""

    def __init__(self, store: VectorStore) -> None:
        self.store = store

    async def search(self, query: str, top_k: int = 5) -> list[SearchResult]:
        """Return the ``top_k`` documents most similar to the query."""
        await self.store.initialize()
        documents = self.store.documents
        if not documents:
            return []

        query_embedding = await self.store.embedding_provider.embed(
            query, task_type="RETRIEVAL_QUERY"
        )
        results = [
            SearchResult(
                id=document.id,
                content=document.content,
                score=cosine_similarity(query_embedding, document.embedding or []),
                metadata=document.metadata,
            )
            for document in documents
        ]
        results.sort(key=lambda result: -result.score)
        return results[: max(top_k, 1)]
