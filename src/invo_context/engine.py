"""
Context engine facade.

Owns one vector store and one analytics cache over a shared data store and
key-value layer, and exposes the retrieval and analytics operations used by
the conversation layer and by CRUD call sites.
"""

from __future__ import annotations

from typing import Callable

from .analytics import AnalyticsCache
from .embeddings import EmbeddingProvider
from .indexing import CorpusBuilder
from .models import CachedAnalytics, Document, Product, Sale, Supplier
from .search import (
    DEFAULT_FUSION_WEIGHTS,
    FusionWeights,
    HybridSearchEngine,
    SearchResult,
)
from .storage import DataStore, DuckDBStorage, KeyValueStore
from .vector_store import VectorStore


class ContextEngine:
    """Retrieval and analytics context for a conversational assistant."""

    def __init__(
        self,
        data_store: DataStore,
        kv_store: KeyValueStore,
        *,
        embedding_provider: EmbeddingProvider | None = None,
        corpus_builder: CorpusBuilder | None = None,
        fusion_weights: FusionWeights | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.embedding_provider = embedding_provider or EmbeddingProvider()
        self.store = VectorStore(
            data_store,
            kv_store,
            self.embedding_provider,
            corpus_builder=corpus_builder,
        )
        self.search_engine = HybridSearchEngine(
            self.store, weights=fusion_weights or DEFAULT_FUSION_WEIGHTS
        )
        self.analytics = AnalyticsCache(data_store, kv_store, clock=clock)

    @classmethod
    def from_db_path(
        cls,
        db_path: str,
        *,
        embedding_provider: EmbeddingProvider | None = None,
    ) -> "ContextEngine":
        """Build an engine whose data and key-value layer share one DuckDB file."""
        storage = DuckDBStorage(db_path)
        return cls(storage, storage, embedding_provider=embedding_provider)

    # -- vector store lifecycle ------------------------------------------

    async def initialize(self) -> None:
        await self.store.initialize()

    async def regenerate_embeddings(self) -> int:
        await self.store.regenerate_embeddings()
        return len(self.store)

    async def invalidate(self) -> None:
        await self.store.invalidate()

    # -- retrieval -------------------------------------------------------

    async def semantic_search(self, query: str, k: int = 5) -> list[SearchResult]:
        return await self.search_engine.semantic.search(query, k)

    async def keyword_search(self, query: str, k: int = 5) -> list[SearchResult]:
        return await self.search_engine.keyword.search(query, k)

    async def hybrid_search(self, query: str, k: int = 5) -> list[SearchResult]:
        return await self.search_engine.search(query, k)

    async def get_relevant_context(self, query: str, k: int = 3) -> str:
        return await self.search_engine.get_relevant_context(query, k)

    # -- incremental sync ------------------------------------------------

    async def update_document(self, entity: Product | Supplier) -> Document:
        return await self.store.update_document(entity)

    async def update_sales_summary(self, sales: list[Sale]) -> Document | None:
        return await self.store.update_sales_summary(sales)

    async def remove_document(self, doc_id: str) -> bool:
        return await self.store.remove_document(doc_id)

    # -- analytics -------------------------------------------------------

    async def get_analytics(self) -> CachedAnalytics:
        return await self.analytics.get_analytics()

    async def force_refresh(self) -> CachedAnalytics:
        return await self.analytics.force_refresh()

    async def invalidate_analytics(self) -> None:
        await self.analytics.invalidate()
