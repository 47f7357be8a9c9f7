from typing import Annotated, Literal, TypeAlias, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DocumentKind: TypeAlias = Literal["product", "sale", "supplier"]
SearchMode: TypeAlias = Literal["hybrid", "semantic", "keyword"]


class _Entity(BaseModel):
    # Accept both snake_case and the mobile app's camelCase export.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Product(_Entity):
    """A stock item as held by the data store"""

    id: str = Field(description="Stable product identifier")
    name: str = Field(description="Display name of the product")
    buying_price: float = Field(description="Unit cost paid to the supplier")
    selling_price: float = Field(description="Unit price charged to customers")
    quantity: int = Field(description="Units currently in stock")
    expiry_date: str = Field(default="", description="Expiry date as entered by the user")
    image_uri: str | None = None
    added_date: str | None = None

    @property
    def margin(self) -> float:
        """Profit margin as a percentage of the selling price."""
        if self.selling_price == 0:
            return 0.0
        return (self.selling_price - self.buying_price) / self.selling_price * 100


class Supplier(_Entity):
    """A supplier contact"""

    id: str = Field(description="Stable supplier identifier")
    name: str = Field(description="Supplier name")
    phone_number: str = Field(default="", description="Phone number")
    whatsapp_number: str = Field(default="", description="WhatsApp number")
    email: str | None = None
    added_date: str | None = None


class Sale(_Entity):
    """A single recorded sale transaction"""

    id: str
    product_id: str
    quantity_sold: int
    total_amount: float
    sale_date: str = ""


class ProductMetadata(BaseModel):
    kind: Literal["product"] = "product"
    product_id: str
    name: str
    category: str = "inventory"


class SaleMetadata(BaseModel):
    kind: Literal["sale"] = "sale"
    category: str = "analytics"


class SupplierMetadata(BaseModel):
    kind: Literal["supplier"] = "supplier"
    supplier_id: str
    name: str
    category: str = "supplier"


DocumentMetadata: TypeAlias = Annotated[
    Union[ProductMetadata, SaleMetadata, SupplierMetadata],
    Field(discriminator="kind"),
]


class Document(BaseModel):
    """One retrievable unit of the corpus"""

    id: str = Field(description="Stable id, unique within the store")
    content: str = Field(description="Canonical rendered text")
    embedding: list[float] | None = Field(
        default=None, description="Embedding vector, filled by the vector store"
    )
    metadata: DocumentMetadata

    @property
    def name(self) -> str | None:
        return getattr(self.metadata, "name", None)


class StoreSnapshot(BaseModel):
    """Ordered document collection plus the schema stamp it was built under"""

    schema_version: str
    documents: list[Document] = Field(default_factory=list)


class CachedAnalytics(BaseModel):
    """Aggregate business metrics computed from the data store"""

    total_products: int
    total_stock: int
    total_value: float
    low_stock_count: int
    out_of_stock_count: int
    avg_price: float
    avg_margin: float
    top_products: list[str] = Field(default_factory=list)
    high_margin_products: list[str] = Field(default_factory=list)
    reorder_suggestions: list[str] = Field(default_factory=list)
    health_score: float | None = Field(
        default=None, description="None when there are no products"
    )
    stock_health: str
    computed_at: float = Field(description="Epoch seconds of the computation")
