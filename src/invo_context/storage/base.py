"""
Storage interfaces consumed by the context engine.
"""

from __future__ import annotations

from typing import Protocol

from ..models import Product, Sale, Supplier


class KeyValueStore(Protocol):
    """Persisted string key-value layer used for snapshots and caches."""

    async def get(self, key: str) -> str | None:
        """Return the stored value or None when the key is absent."""

    async def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""

    async def remove(self, key: str) -> None:
        """Delete a key. Removing an absent key is not an error."""


class DataStore(Protocol):
    """Read-only view of the business records owned elsewhere."""

    async def list_products(self) -> list[Product]:
        """Return all products."""

    async def list_suppliers(self) -> list[Supplier]:
        """Return all suppliers."""

    async def list_sales(self) -> list[Sale]:
        """Return all sales, most recent first."""
