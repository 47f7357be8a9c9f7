"""
Persisted document collection with embeddings.

The collection lives in memory and is mirrored to the key-value layer as a
JSON snapshot plus a schema stamp. A snapshot whose stamp differs from the
running configuration is discarded and rebuilt from the data store.
"""

from __future__ import annotations

import asyncio
import enum
import logging

from pydantic import TypeAdapter, ValidationError

from .embeddings import EmbeddingProvider
from .indexing import SALES_DOCUMENT_ID, TEMPLATE_VERSION, CorpusBuilder
from .models import Document, Product, Sale, StoreSnapshot, Supplier
from .storage import DataStore, KeyValueStore

logger = logging.getLogger(__name__)

EMBEDDINGS_KEY = "invo:embeddings"
EMBEDDINGS_VERSION_KEY = "invo:embeddings_version"
STORE_VERSION = "1.0"

_documents_adapter = TypeAdapter(list[Document])


class StoreState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    REGENERATING = "regenerating"
    READY = "ready"


class VectorStore:
    """Owns the document collection, its embeddings, and their persistence."""

    def __init__(
        self,
        data_store: DataStore,
        kv_store: KeyValueStore,
        embedding_provider: EmbeddingProvider,
        corpus_builder: CorpusBuilder | None = None,
    ) -> None:
        self.data_store = data_store
        self.kv_store = kv_store
        self.embedding_provider = embedding_provider
        self.corpus_builder = corpus_builder or CorpusBuilder()
        self.state = StoreState.UNINITIALIZED
        self._documents: list[Document] = []
        self._init_task: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()

    @property
    def schema_version(self) -> str:
        return f"{STORE_VERSION}/tpl{TEMPLATE_VERSION}/{self.embedding_provider.fingerprint}"

    @property
    def documents(self) -> list[Document]:
        return list(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(schema_version=self.schema_version, documents=self.documents)

    async def initialize(self) -> None:
        """Load the persisted snapshot or rebuild it. Idempotent once ready.

        Concurrent callers share a single in-flight initialization.
        """
        if self.state is StoreState.READY:
            return
        if self._init_task is None:
            self._init_task = asyncio.create_task(self._load_or_regenerate())
        task = self._init_task
        try:
            await task
        finally:
            if self._init_task is task and task.done():
                self._init_task = None

    async def _load_or_regenerate(self) -> None:
        # Loading and committing the snapshot must not interleave with invalidate().
        async with self._lock:
            if self.state is StoreState.READY:
                return
            self.state = StoreState.INITIALIZING
            loaded = await self._load_snapshot()
            if loaded is not None:
                self._documents = loaded
                self.state = StoreState.READY
                logger.info("Loaded %d documents from persisted snapshot", len(loaded))
                return
        await self.regenerate_embeddings()

    async def _load_snapshot(self) -> list[Document] | None:
        try:
            version = await self.kv_store.get(EMBEDDINGS_VERSION_KEY)
            if version != self.schema_version:
                logger.info(
                    "Snapshot version %r does not match %r, regenerating",
                    version,
                    self.schema_version,
                )
                return None
            raw = await self.kv_store.get(EMBEDDINGS_KEY)
        except Exception as exc:
            logger.warning("Failed to read persisted snapshot: %s", exc)
            return None

        if raw is None:
            return None
        try:
            documents = _documents_adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Persisted snapshot is unreadable, regenerating: %s", exc)
            return None

        dim = self.embedding_provider.dim
        for document in documents:
            if document.embedding is None or len(document.embedding) != dim:
                logger.warning(
                    "Persisted document %s has no %d-dimension embedding, regenerating",
                    document.id,
                    dim,
                )
                return None
        return documents

    async def regenerate_embeddings(self) -> None:
        """Rebuild every document from the data store and persist the result.

        Failures leave the store ready with whatever was produced.
        """
        async with self._lock:
            previous_state = self.state
            self.state = (
                StoreState.REGENERATING
                if previous_state is StoreState.READY
                else StoreState.INITIALIZING
            )
            try:
                drafts = await self._build_corpus()
                embeddings = await self.embedding_provider.embed_batch(
                    [draft.content for draft in drafts]
                )
                self._documents = [
                    draft.model_copy(update={"embedding": embedding})
                    for draft, embedding in zip(drafts, embeddings)
                ]
                await self._persist()
                logger.info("Generated %d document embeddings", len(self._documents))
            except Exception:
                logger.exception("Failed to regenerate embeddings")
            finally:
                self.state = StoreState.READY

    async def _build_corpus(self) -> list[Document]:
        products: list[Product] = []
        suppliers: list[Supplier] = []
        sales: list[Sale] = []
        try:
            products = await self.data_store.list_products()
        except Exception as exc:
            logger.error("Failed to read products for corpus: %s", exc)
        try:
            sales = await self.data_store.list_sales()
        except Exception as exc:
            logger.error("Failed to read sales for corpus: %s", exc)
        try:
            suppliers = await self.data_store.list_suppliers()
        except Exception as exc:
            logger.error("Failed to read suppliers for corpus: %s", exc)
        return self.corpus_builder.build_documents(
            products=products, suppliers=suppliers, sales=sales
        )

    async def update_document(self, entity: Product | Supplier) -> Document:
        """Upsert the document for a single product or supplier."""
        await self.initialize()
        draft = self.corpus_builder.build_document(entity)
        async with self._lock:
            document = await self._embed(draft)
            self._upsert(document)
            await self._persist()
        logger.info("Updated document %s", document.id)
        return document

    async def update_sales_summary(self, sales: list[Sale]) -> Document | None:
        """Re-render the sales aggregate, dropping it when there are no sales."""
        if not sales:
            await self.remove_document(SALES_DOCUMENT_ID)
            return None
        await self.initialize()
        draft = self.corpus_builder.sales_document(sales)
        async with self._lock:
            document = await self._embed(draft)
            self._upsert(document)
            await self._persist()
        return document

    async def remove_document(self, doc_id: str) -> bool:
        """Delete a document by id. Returns False (and writes nothing) if absent."""
        await self.initialize()
        async with self._lock:
            for idx, document in enumerate(self._documents):
                if document.id == doc_id:
                    del self._documents[idx]
                    break
            else:
                return False
            await self._persist()
        logger.info("Removed document %s", doc_id)
        return True

    async def invalidate(self) -> None:
        """Drop the in-memory collection and the persisted snapshot."""
        async with self._lock:
            self._documents = []
            self.state = StoreState.UNINITIALIZED
            for key in (EMBEDDINGS_KEY, EMBEDDINGS_VERSION_KEY):
                try:
                    await self.kv_store.remove(key)
                except Exception as exc:
                    logger.warning("Failed to clear %s: %s", key, exc)
        logger.info("Vector store invalidated")

    async def _embed(self, draft: Document) -> Document:
        embedding = await self.embedding_provider.embed(
            draft.content, task_type="RETRIEVAL_DOCUMENT"
        )
        return draft.model_copy(update={"embedding": embedding})

    def _upsert(self, document: Document) -> None:
        for idx, existing in enumerate(self._documents):
            if existing.id == document.id:
                self._documents[idx] = document
                return
        self._documents.append(document)

    async def _persist(self) -> None:
        try:
            payload = _documents_adapter.dump_json(self._documents).decode("utf-8")
            await self.kv_store.set(EMBEDDINGS_KEY, payload)
            await self.kv_store.set(EMBEDDINGS_VERSION_KEY, self.schema_version)
        except Exception as exc:
            logger.error("Failed to persist vector store snapshot: %s", exc)
