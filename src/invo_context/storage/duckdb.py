"""
DuckDB storage backend for the key-value layer and the business records.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import duckdb

from ..models import Product, Sale, Supplier


class DuckDBStorage:
    """DuckDB-backed persistence for snapshots, caches, products, suppliers, and sales."""

    def __init__(
        self,
        db_path: str,
        *,
        read_only: bool = False,
        initialize: bool = True,
    ) -> None:
        self.db_path = str(Path(db_path).expanduser().resolve())
        self.read_only = read_only
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(self.db_path, read_only=read_only)
        if initialize and not read_only:
            self.initialize()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        self._conn.close()

    def initialize(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key VARCHAR PRIMARY KEY,
                value VARCHAR NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS products (
                id VARCHAR PRIMARY KEY,
                name VARCHAR NOT NULL,
                buying_price DOUBLE NOT NULL,
                selling_price DOUBLE NOT NULL,
                quantity INTEGER NOT NULL,
                expiry_date VARCHAR NOT NULL DEFAULT '',
                image_uri VARCHAR,
                added_date VARCHAR
            );
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS suppliers (
                id VARCHAR PRIMARY KEY,
                name VARCHAR NOT NULL,
                phone_number VARCHAR NOT NULL DEFAULT '',
                whatsapp_number VARCHAR NOT NULL DEFAULT '',
                email VARCHAR,
                added_date VARCHAR
            );
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sales (
                id VARCHAR PRIMARY KEY,
                product_id VARCHAR NOT NULL,
                quantity_sold INTEGER NOT NULL,
                total_amount DOUBLE NOT NULL,
                sale_date VARCHAR NOT NULL DEFAULT ''
            );
            """
        )

    # -- key-value layer -------------------------------------------------

    async def get(self, key: str) -> str | None:
        row = self._conn.execute(
            "SELECT value FROM kv_store WHERE key = ?",
            [key],
        ).fetchone()
        if row is None:
            return None
        return str(row[0])

    async def set(self, key: str, value: str) -> None:
        self._conn.execute(
            """
            INSERT INTO kv_store (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = now()
            """,
            [key, value],
        )

    async def remove(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv_store WHERE key = ?", [key])

    # -- data store reads ------------------------------------------------

    async def list_products(self) -> list[Product]:
        rows = self._conn.execute(
            """
            SELECT id, name, buying_price, selling_price, quantity,
                   expiry_date, image_uri, added_date
            FROM products
            ORDER BY name ASC, id ASC
            """
        ).fetchall()
        return [
            Product(
                id=str(row[0]),
                name=str(row[1]),
                buying_price=float(row[2]),
                selling_price=float(row[3]),
                quantity=int(row[4]),
                expiry_date=str(row[5]),
                image_uri=row[6],
                added_date=row[7],
            )
            for row in rows
        ]

    async def list_suppliers(self) -> list[Supplier]:
        rows = self._conn.execute(
            """
            SELECT id, name, phone_number, whatsapp_number, email, added_date
            FROM suppliers
            ORDER BY name ASC, id ASC
            """
        ).fetchall()
        return [
            Supplier(
                id=str(row[0]),
                name=str(row[1]),
                phone_number=str(row[2]),
                whatsapp_number=str(row[3]),
                email=row[4],
                added_date=row[5],
            )
            for row in rows
        ]

    async def list_sales(self) -> list[Sale]:
        rows = self._conn.execute(
            """
            SELECT id, product_id, quantity_sold, total_amount, sale_date
            FROM sales
            ORDER BY sale_date DESC, id ASC
            """
        ).fetchall()
        return [
            Sale(
                id=str(row[0]),
                product_id=str(row[1]),
                quantity_sold=int(row[2]),
                total_amount=float(row[3]),
                sale_date=str(row[4]),
            )
            for row in rows
        ]

    # -- data store writes (used for seeding) ----------------------------

    def upsert_product(self, product: Product) -> None:
        self._conn.execute(
            """
            INSERT INTO products (
                id, name, buying_price, selling_price, quantity,
                expiry_date, image_uri, added_date
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                buying_price = excluded.buying_price,
                selling_price = excluded.selling_price,
                quantity = excluded.quantity,
                expiry_date = excluded.expiry_date,
                image_uri = excluded.image_uri,
                added_date = excluded.added_date
            """,
            [
                product.id,
                product.name,
                product.buying_price,
                product.selling_price,
                product.quantity,
                product.expiry_date,
                product.image_uri,
                product.added_date,
            ],
        )

    def upsert_supplier(self, supplier: Supplier) -> None:
        self._conn.execute(
            """
            INSERT INTO suppliers (id, name, phone_number, whatsapp_number, email, added_date)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                phone_number = excluded.phone_number,
                whatsapp_number = excluded.whatsapp_number,
                email = excluded.email,
                added_date = excluded.added_date
            """,
            [
                supplier.id,
                supplier.name,
                supplier.phone_number,
                supplier.whatsapp_number,
                supplier.email,
                supplier.added_date,
            ],
        )

    def record_sale(self, sale: Sale) -> None:
        self._conn.execute(
            """
            INSERT INTO sales (id, product_id, quantity_sold, total_amount, sale_date)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO NOTHING
            """,
            [
                sale.id,
                sale.product_id,
                sale.quantity_sold,
                sale.total_amount,
                sale.sale_date,
            ],
        )

    def delete_product(self, product_id: str) -> None:
        self._conn.execute("DELETE FROM products WHERE id = ?", [product_id])

    def delete_supplier(self, supplier_id: str) -> None:
        self._conn.execute("DELETE FROM suppliers WHERE id = ?", [supplier_id])

    def counts(self) -> dict[str, Any]:
        """Row counts per business table."""
        result: dict[str, Any] = {}
        for table in ("products", "suppliers", "sales"):
            row = self._conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
            result[table] = int(row[0]) if row else 0
        return result
