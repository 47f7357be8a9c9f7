"""Corpus rendering components for the context engine."""

from .corpus import (
    SALES_DOCUMENT_ID,
    TEMPLATE_VERSION,
    CorpusBuilder,
    is_low_stock,
    is_out_of_stock,
    product_document_id,
    stock_status,
    supplier_document_id,
)

__all__ = [
    "SALES_DOCUMENT_ID",
    "TEMPLATE_VERSION",
    "CorpusBuilder",
    "is_low_stock",
    "is_out_of_stock",
    "product_document_id",
    "stock_status",
    "supplier_document_id",
]
