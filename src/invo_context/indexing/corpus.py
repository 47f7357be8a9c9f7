"""
Rendering of business entities into retrievable documents.

Each entity type has an explicit text template. Changing any wording here
changes stored content, so bump ``TEMPLATE_VERSION`` alongside it to force
persisted stores to regenerate.
"""

from __future__ import annotations

from ..models import (
    Document,
    Product,
    ProductMetadata,
    Sale,
    SaleMetadata,
    Supplier,
    SupplierMetadata,
)

TEMPLATE_VERSION = "1"

SALES_DOCUMENT_ID = "sales_data"
LOW_STOCK_THRESHOLD = 5
RECENT_SALES_WINDOW = 10


def product_document_id(product_id: str) -> str:
    return f"product_{product_id}"


def supplier_document_id(supplier_id: str) -> str:
    return f"supplier_{supplier_id}"


def is_out_of_stock(quantity: int) -> bool:
    # Negative counts (oversold stock) are treated as none on hand.
    return quantity <= 0


def is_low_stock(quantity: int) -> bool:
    return 0 < quantity <= LOW_STOCK_THRESHOLD


def stock_status(quantity: int) -> str:
    if is_out_of_stock(quantity):
        return "out of stock"
    if is_low_stock(quantity):
        return "low stock"
    return "in stock"


def _amount(value: float) -> str:
    # Whole amounts render without a trailing ".0".
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


class CorpusBuilder:
    """Render products, suppliers, and sales into documents without embeddings."""

    def __init__(self, currency: str = "₹") -> None:
        self.currency = currency

    def build_documents(
        self,
        *,
        products: list[Product],
        suppliers: list[Supplier],
        sales: list[Sale],
    ) -> list[Document]:
        """Build the full corpus: products, then the sales summary, then suppliers."""
        documents = [self.product_document(product) for product in products]
        if sales:
            documents.append(self.sales_document(sales))
        documents.extend(self.supplier_document(supplier) for supplier in suppliers)
        return documents

    def build_document(self, entity: Product | Supplier) -> Document:
        if isinstance(entity, Product):
            return self.product_document(entity)
        if isinstance(entity, Supplier):
            return self.supplier_document(entity)
        raise TypeError(f"Unsupported entity type: {type(entity).__name__}")

    def product_document(self, product: Product) -> Document:
        return Document(
            id=product_document_id(product.id),
            content=self.render_product(product),
            metadata=ProductMetadata(product_id=product.id, name=product.name),
        )

    def supplier_document(self, supplier: Supplier) -> Document:
        return Document(
            id=supplier_document_id(supplier.id),
            content=self.render_supplier(supplier),
            metadata=SupplierMetadata(supplier_id=supplier.id, name=supplier.name),
        )

    def sales_document(self, sales: list[Sale]) -> Document:
        return Document(
            id=SALES_DOCUMENT_ID,
            content=self.render_sales(sales),
            metadata=SaleMetadata(),
        )

    def render_product(self, product: Product) -> str:
        c = self.currency
        total_value = product.buying_price * product.quantity
        return (
            f"Product: {product.name}\n"
            f"Buying Price: {c}{_amount(product.buying_price)}\n"
            f"Selling Price: {c}{_amount(product.selling_price)}\n"
            f"Profit Margin: {product.margin:.1f}%\n"
            f"Quantity: {product.quantity} ({stock_status(product.quantity)})\n"
            f"Expiry: {product.expiry_date}\n"
            f"Total Value: {c}{_amount(total_value)}"
        )

    def render_supplier(self, supplier: Supplier) -> str:
        email = (supplier.email or "").strip()
        parts = [
            f"Supplier: {supplier.name}",
            f"Phone: {supplier.phone_number}",
            f"WhatsApp: {supplier.whatsapp_number}",
        ]
        if email:
            parts.append(f"Email: {email}")

        # Restated contact facts raise keyword hit rate for contact questions.
        parts.append(f"Contact information for {supplier.name}")
        parts.append("Business contact details")
        parts.append(
            f"Supplier contact: call {supplier.phone_number} "
            f"or WhatsApp {supplier.whatsapp_number}"
        )
        if email:
            parts.append(f"Email communications: {email}")
        return "\n".join(parts)

    def render_sales(self, sales: list[Sale]) -> str:
        c = self.currency
        total_sales = sum(sale.total_amount for sale in sales)
        total_items = sum(sale.quantity_sold for sale in sales)
        recent = min(len(sales), RECENT_SALES_WINDOW)
        return (
            "Sales Summary:\n"
            f"Total Sales: {c}{_amount(total_sales)}\n"
            f"Items Sold: {total_items}\n"
            f"Transactions: {len(sales)}\n"
            f"Recent Activity: {recent} recent transactions"
        )
