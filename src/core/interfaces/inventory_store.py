"""Abstract interface for inventory storage."""

from abc import ABC, abstractmethod
from datetime import date

from src.core.entities.inventory import (
    Batch,
    BatchListing,
    OutstandingPurchase,
    Product,
    PurchaseOrder,
    PurchaseReceipt,
    ReorderAdvice,
)


class IInventoryStore(ABC):
    """Interface for catalog counters, purchase orders and batches."""

    @abstractmethod
    async def get_product(self, product_id: int) -> Product | None:
        """Get product by ID."""
        pass

    @abstractmethod
    async def create_purchase_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Insert an unreceived purchase order without touching counters."""
        pass

    @abstractmethod
    async def get_purchase_order(self, order_id: int) -> PurchaseOrder | None:
        """Get purchase order by ID."""
        pass

    @abstractmethod
    async def list_purchase_orders(
        self, product_id: int | None = None, limit: int = 100, offset: int = 0
    ) -> list[PurchaseOrder]:
        """List purchase orders, oldest first."""
        pass

    @abstractmethod
    async def get_batch(self, purchase_order_id: int) -> Batch | None:
        """Get the batch created when a purchase order was received."""
        pass

    @abstractmethod
    async def receive_purchase(
        self,
        product_fragment: str,
        quantity: int,
        expiry_date: date,
        received_on: date,
    ) -> PurchaseReceipt | None:
        """
        Fulfil the oldest outstanding order matching fragment and quantity.

        Marks the order received, moves the quantity from on-order to stock and
        records a batch, all in one unit of work. Returns None when no order
        matches.
        """
        pass

    @abstractmethod
    async def restock_low_stock(self, order_date: date) -> list[ReorderAdvice]:
        """
        Reorder every active product at or below its reorder level.

        Creates one order of twice the reorder level per product and bumps
        the on-order counters, in one unit of work.
        """
        pass

    @abstractmethod
    async def backfill_purchase_orders(self, order_date: date) -> list[PurchaseOrder]:
        """Create orders for on-order quantities that have no outstanding order."""
        pass

    @abstractmethod
    async def list_outstanding_purchases(
        self, limit: int = 500
    ) -> list[OutstandingPurchase]:
        """List unreceived orders with supplier contact details."""
        pass

    @abstractmethod
    async def stock_level(self, product_fragment: str) -> int | None:
        """Total units in stock across products whose name contains the fragment."""
        pass

    @abstractmethod
    async def list_batches_for(self, product_fragments: list[str]) -> list[BatchListing]:
        """List batches of matching products by expiry date; all when empty."""
        pass

    @abstractmethod
    async def list_expired_batches(self, as_of: date) -> list[BatchListing]:
        """List non-empty batches expiring on or before the given date."""
        pass
