"""
InvoContext - local retrieval and analytics context engine.

This package turns products, suppliers, and sales into a searchable document
corpus, keeps their embeddings and aggregate metrics fresh in a local
key-value layer, and answers hybrid (semantic + keyword) retrieval and
analytics queries that ground a conversational inventory assistant.

Example usage:
    >>> from invo_context import ContextEngine, InMemoryDataStore, InMemoryKeyValueStore
    >>> engine = ContextEngine(InMemoryDataStore(products=[...]), InMemoryKeyValueStore())
    >>> context = await engine.get_relevant_context("which items are low on stock?")
"""

from .analytics import AnalyticsCache, AnalyticsUnavailableError, compute_analytics
from .embeddings import EmbeddingProvider, LocalHashEmbedder
from .engine import ContextEngine
from .indexing import CorpusBuilder
from .models import (
    CachedAnalytics,
    Document,
    Product,
    ProductMetadata,
    Sale,
    SaleMetadata,
    StoreSnapshot,
    Supplier,
    SupplierMetadata,
)
from .search import (
    DEFAULT_FUSION_WEIGHTS,
    NO_CONTEXT_FOUND,
    FusionWeights,
    HybridSearchEngine,
    SearchResult,
)
from .storage import (
    DataStore,
    DuckDBStorage,
    InMemoryDataStore,
    InMemoryKeyValueStore,
    KeyValueStore,
)
from .vector_store import StoreState, VectorStore

__all__ = [
    # Engine
    "ContextEngine",
    "VectorStore",
    "StoreState",
    "AnalyticsCache",
    "AnalyticsUnavailableError",
    "compute_analytics",
    # Embeddings and corpus
    "EmbeddingProvider",
    "LocalHashEmbedder",
    "CorpusBuilder",
    # Search
    "HybridSearchEngine",
    "SearchResult",
    "FusionWeights",
    "DEFAULT_FUSION_WEIGHTS",
    "NO_CONTEXT_FOUND",
    # Storage
    "DataStore",
    "KeyValueStore",
    "DuckDBStorage",
    "InMemoryDataStore",
    "InMemoryKeyValueStore",
    # Models
    "CachedAnalytics",
    "Document",
    "Product",
    "ProductMetadata",
    "Sale",
    "SaleMetadata",
    "StoreSnapshot",
    "Supplier",
    "SupplierMetadata",
]
