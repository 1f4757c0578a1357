"""Backfill Purchases Use Case: give on-order stock a purchase order."""

from datetime import date

from src.config import get_logger
from src.core.entities.inventory import PurchaseOrder
from src.core.interfaces.inventory_store import IInventoryStore

logger = get_logger(__name__)


class BackfillPurchasesUseCase:
    """
    Create one unreceived purchase order for each product whose on-order
    count is not yet covered by an outstanding order.

    Run once after importing a catalog whose on-order counters were
    maintained by hand, so that later receipts have an order to fulfil.
    """

    def __init__(self, inventory_store: IInventoryStore | None = None):
        self._inventory_store = inventory_store

    async def _get_inventory_store(self) -> IInventoryStore:
        if self._inventory_store is None:
            from src.infrastructure.storage.sqlite import get_inventory_store

            self._inventory_store = await get_inventory_store()
        return self._inventory_store

    async def execute(self, order_date: date | None = None) -> list[PurchaseOrder]:
        order_date = order_date or date.today()
        store = await self._get_inventory_store()
        orders = await store.backfill_purchase_orders(order_date)
        logger.info(
            "purchase_backfill_complete",
            order_date=order_date.isoformat(),
            orders_created=len(orders),
        )
        return orders
