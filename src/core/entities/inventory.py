"""Inventory domain entities: catalog, purchase orders and batches."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class Supplier(BaseModel):
    """Supplier contact card used in reorder advice."""

    id: int | None = None
    company_name: str
    contact_name: str | None = None
    contact_title: str | None = None
    phone: str | None = None
    fax: str | None = None  # many suppliers no longer have one
    homepage: str | None = None


class Product(BaseModel):
    """Catalog product with perpetual-inventory counters."""

    id: int | None = None
    name: str
    supplier_id: int | None = None
    unit_price: float = Field(default=0.0, ge=0)
    units_in_stock: int = Field(default=0, ge=0)
    units_on_order: int = Field(default=0, ge=0)
    reorder_level: int = Field(default=0, ge=0)
    discontinued: bool = False

    @property
    def projected_stock(self) -> int:
        """Stock on hand plus stock already ordered."""
        return self.units_in_stock + self.units_on_order

    @property
    def needs_restock(self) -> bool:
        """True when an active product is at or below its reorder level."""
        return not self.discontinued and self.projected_stock <= self.reorder_level


class PurchaseOrder(BaseModel):
    """An order placed with a supplier for one product."""

    id: int | None = None
    order_date: date
    product_id: int  # FK → products.id
    quantity: int = Field(..., ge=0)
    unit_cost: float | None = None
    received: bool = False
    received_date: date | None = None

    @property
    def is_outstanding(self) -> bool:
        return not self.received and self.received_date is None


class Batch(BaseModel):
    """A dated lot of stock tied to one received purchase order."""

    purchase_order_id: int  # FK → purchase_orders.id
    product_id: int  # FK → products.id
    expiry_date: date
    quantity: int = Field(..., ge=0)
    batch_no: int | None = None


class TransactionStatus(str, Enum):
    """Outcome of a replenishment transaction."""

    COMPLETED = "completed"
    NO_MATCH = "no_match"
    FAILED = "failed"


class PurchaseReceipt(BaseModel):
    """Everything a committed purchase receipt touched."""

    purchase_order: PurchaseOrder
    product: Product
    batch: Batch
    stock_before: int
    on_order_before: int


class RestockCandidate(BaseModel):
    """One row of the restock working set."""

    product_id: int
    quantity: int
    order_date: date


class ReorderAdvice(BaseModel):
    """Reorder line handed to whoever contacts the supplier."""

    purchase_order_id: int | None = None
    product_name: str | None = None
    quantity: int
    supplier_company: str | None = None
    supplier_contact_title: str | None = None
    supplier_contact_name: str | None = None
    supplier_phone: str | None = None
    supplier_fax: str | None = None
    supplier_homepage: str | None = None


class OutstandingPurchase(BaseModel):
    """Unreceived purchase order with product and supplier details."""

    purchase_order_id: int
    product_name: str | None = None
    quantity: int
    order_date: date
    supplier: str | None = None
    contact_title: str | None = None
    contact_name: str | None = None
    phone: str | None = None
    fax: str | None = None
    homepage: str | None = None


class BatchListing(BaseModel):
    """Batch row joined to its product."""

    batch_no: int
    product_name: str
    quantity: int
    expiry_date: date
    unit_price: float = 0.0

    @property
    def subtotal(self) -> float:
        """Value of the batch at the product's list price."""
        return self.quantity * self.unit_price
