"""Tests for the DuckDB storage backend."""

from pathlib import Path

import pytest

from invo_context.engine import ContextEngine
from invo_context.models import Product, Sale, Supplier
from invo_context.storage import DuckDBStorage
from invo_context.vector_store import EMBEDDINGS_KEY


@pytest.fixture()
def storage(tmp_path: Path):
    db = DuckDBStorage(str(tmp_path / "nested" / "context.duckdb"))
    yield db
    db.close()


@pytest.mark.asyncio
async def test_key_value_roundtrip(storage: DuckDBStorage) -> None:
    assert await storage.get("invo:missing") is None

    await storage.set("invo:key", "first")
    await storage.set("invo:key", "second")
    assert await storage.get("invo:key") == "second"

    await storage.remove("invo:key")
    assert await storage.get("invo:key") is None


@pytest.mark.asyncio
async def test_record_upserts_and_listing(storage: DuckDBStorage, products, suppliers) -> None:
    for product in products:
        storage.upsert_product(product)
    storage.upsert_product(products[0].model_copy(update={"quantity": 7}))
    for supplier in suppliers:
        storage.upsert_supplier(supplier)

    listed = await storage.list_products()
    listed_suppliers = await storage.list_suppliers()

    assert [p.name for p in listed] == ["Basmati Rice", "Green Tea", "Sunflower Oil"]
    assert listed[0].quantity == 7
    assert listed[0].expiry_date == "2027-01-01"
    assert [s.name for s in listed_suppliers] == ["Kerala Spice Co", "Sharma Traders"]
    assert listed_suppliers[0].email is None
    assert listed_suppliers[1].email == "orders@sharma.example"


@pytest.mark.asyncio
async def test_sales_are_newest_first_and_not_duplicated(storage: DuckDBStorage, sales) -> None:
    for sale in sales:
        storage.record_sale(sale)
    storage.record_sale(sales[0].model_copy(update={"total_amount": 999}))

    listed = await storage.list_sales()

    assert [s.id for s in listed] == ["t2", "t1"]
    assert listed[1].total_amount == 200


@pytest.mark.asyncio
async def test_deletes_and_counts(storage: DuckDBStorage, products, suppliers) -> None:
    storage.upsert_product(products[0])
    storage.upsert_supplier(suppliers[0])
    storage.record_sale(Sale(id="t1", product_id="p1", quantity_sold=1, total_amount=80))

    storage.delete_product("p1")
    storage.delete_supplier("s1")

    assert storage.counts() == {"products": 0, "suppliers": 0, "sales": 1}


@pytest.mark.asyncio
async def test_engine_snapshot_survives_reopen(tmp_path: Path, local_provider) -> None:
    db_path = str(tmp_path / "context.duckdb")
    storage = DuckDBStorage(db_path)
    storage.upsert_product(
        Product(id="p1", name="Jaggery", buying_price=30, selling_price=45, quantity=8)
    )
    storage.upsert_supplier(Supplier(id="s1", name="Sharma Traders", phone_number="1"))

    engine = ContextEngine(storage, storage, embedding_provider=local_provider)
    assert await engine.regenerate_embeddings() == 2
    assert await storage.get(EMBEDDINGS_KEY) is not None
    storage.close()

    reopened = DuckDBStorage(db_path)
    try:
        engine = ContextEngine(reopened, reopened, embedding_provider=local_provider)
        await engine.initialize()
        assert [doc.id for doc in engine.store.documents] == ["product_p1", "supplier_s1"]
    finally:
        reopened.close()
