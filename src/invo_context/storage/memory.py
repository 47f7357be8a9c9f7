"""
In-process storage backends.
"""

from __future__ import annotations

from ..models import Product, Sale, Supplier


class InMemoryKeyValueStore:
    """Dict-backed key-value store. Contents vanish with the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)


class InMemoryDataStore:
    """List-backed data store, mutable by the embedding application."""

    def __init__(
        self,
        *,
        products: list[Product] | None = None,
        suppliers: list[Supplier] | None = None,
        sales: list[Sale] | None = None,
    ) -> None:
        self.products: list[Product] = list(products or [])
        self.suppliers: list[Supplier] = list(suppliers or [])
        self.sales: list[Sale] = list(sales or [])

    async def list_products(self) -> list[Product]:
        return list(self.products)

    async def list_suppliers(self) -> list[Supplier]:
        return list(self.suppliers)

    async def list_sales(self) -> list[Sale]:
        return sorted(self.sales, key=lambda sale: sale.sale_date, reverse=True)
