from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest

from invo_context.embeddings import EmbeddingProvider
from invo_context.engine import ContextEngine
from invo_context.models import Product, Sale, Supplier
from invo_context.storage import InMemoryDataStore, InMemoryKeyValueStore


@dataclass
class FakeEmbedding:
    values: list[float]


@dataclass
class FakeEmbedResult:
    embeddings: list[FakeEmbedding]


class FakeAsyncModels:
    """Records calls and returns deterministic embeddings."""

    def __init__(self, *, fail: bool = False, dim_override: int | None = None) -> None:
        self.calls: list[dict[str, Any]] = []
        self.fail = fail
        self.dim_override = dim_override

    async def embed_content(
        self, *, model: str, contents: list[str], config: dict
    ) -> FakeEmbedResult:
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.fail:
            raise RuntimeError("quota exceeded")
        dim = self.dim_override or config.get("output_dimensionality", 768)
        return FakeEmbedResult(
            embeddings=[
                FakeEmbedding(values=[float(len(text) % 7 + 1)] + [0.5] * (dim - 1))
                for text in contents
            ]
        )


class FakeAio:
    def __init__(self, models: FakeAsyncModels) -> None:
        self.models = models


class FakeGenAIClient:
    def __init__(self, **kwargs: Any) -> None:
        self.aio = FakeAio(FakeAsyncModels(**kwargs))

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self.aio.models.calls


class FailingKeyValueStore(InMemoryKeyValueStore):
    """Reads succeed, writes raise."""

    async def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


class FailingDataStore(InMemoryDataStore):
    """Product reads raise; suppliers and sales still work."""

    async def list_products(self) -> list[Product]:
        raise ConnectionError("database locked")


@pytest.fixture()
def fake_genai_client():
    """Factory for fake GenAI clients: ``fake_genai_client(fail=True)``."""
    return FakeGenAIClient


@pytest.fixture()
def products() -> list[Product]:
    return [
        Product(
            id="p1",
            name="Basmati Rice",
            buying_price=60,
            selling_price=80,
            quantity=0,
            expiry_date="2027-01-01",
        ),
        Product(
            id="p2",
            name="Sunflower Oil",
            buying_price=120,
            selling_price=150,
            quantity=3,
            expiry_date="2026-12-01",
        ),
        Product(
            id="p3",
            name="Green Tea",
            buying_price=40,
            selling_price=100,
            quantity=20,
            expiry_date="2027-06-30",
        ),
    ]


@pytest.fixture()
def suppliers() -> list[Supplier]:
    return [
        Supplier(
            id="s1",
            name="Sharma Traders",
            phone_number="+91 98200 11111",
            whatsapp_number="+91 98200 11111",
            email="orders@sharma.example",
        ),
        Supplier(
            id="s2",
            name="Kerala Spice Co",
            phone_number="+91 94470 22222",
            whatsapp_number="+91 94470 33333",
        ),
    ]


@pytest.fixture()
def sales() -> list[Sale]:
    return [
        Sale(id="t1", product_id="p3", quantity_sold=2, total_amount=200, sale_date="2026-10-01"),
        Sale(id="t2", product_id="p2", quantity_sold=1, total_amount=150, sale_date="2026-10-02"),
    ]


@pytest.fixture()
def data_store(products, suppliers, sales) -> InMemoryDataStore:
    return InMemoryDataStore(products=products, suppliers=suppliers, sales=sales)


@pytest.fixture()
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def failing_data_store() -> FailingDataStore:
    return FailingDataStore()


@pytest.fixture()
def failing_kv_store() -> FailingKeyValueStore:
    return FailingKeyValueStore()


@pytest.fixture()
def local_provider() -> EmbeddingProvider:
    return EmbeddingProvider(use_remote=False)


@pytest.fixture()
def engine(data_store, kv_store, local_provider) -> ContextEngine:
    return ContextEngine(data_store, kv_store, embedding_provider=local_provider)
