"""Receive Purchase Use Case: fulfil the oldest matching purchase order."""

from dataclasses import dataclass
from datetime import date

from src.application.dto.requests import ReceivePurchaseRequest
from src.application.dto.responses import (
    BatchResponse,
    ProductResponse,
    PurchaseOrderResponse,
    ReceiptResponse,
)
from src.config import get_logger
from src.core.entities.inventory import PurchaseReceipt, TransactionStatus
from src.core.exceptions import StorageError
from src.core.interfaces.inventory_store import IInventoryStore

logger = get_logger(__name__)


@dataclass
class ReceiptOutcome:
    """Result of a purchase receipt."""

    status: TransactionStatus
    receipt: PurchaseReceipt | None = None
    error_code: str | None = None
    message: str | None = None

    @property
    def rows_affected(self) -> int:
        return 1 if self.receipt is not None else 0


class ReceivePurchaseUseCase:
    """
    Record the arrival of a purchase order.

    The oldest outstanding order whose product name contains the fragment and
    whose quantity matches exactly is marked received, its quantity moves from
    on-order to stock, and a batch with the given expiry date is recorded.
    Storage failures roll the whole receipt back and come back as a failed
    outcome instead of an exception.
    """

    def __init__(self, inventory_store: IInventoryStore | None = None):
        self._inventory_store = inventory_store

    async def _get_inventory_store(self) -> IInventoryStore:
        if self._inventory_store is None:
            from src.infrastructure.storage.sqlite import get_inventory_store

            self._inventory_store = await get_inventory_store()
        return self._inventory_store

    async def execute(
        self,
        request: ReceivePurchaseRequest,
        received_on: date | None = None,
    ) -> ReceiptOutcome:
        """Execute receive purchase use case."""
        received_on = received_on or date.today()
        logger.info(
            "purchase_receipt_started",
            product_name=request.product_name,
            quantity=request.quantity,
            expiry_date=request.expiry_date.isoformat(),
        )

        store = await self._get_inventory_store()
        try:
            receipt = await store.receive_purchase(
                request.product_name,
                request.quantity,
                request.expiry_date,
                received_on,
            )
        except StorageError as e:
            logger.error(
                "purchase_receipt_failed",
                product_name=request.product_name,
                quantity=request.quantity,
                error_code=e.code,
                error=e.message,
            )
            return ReceiptOutcome(
                status=TransactionStatus.FAILED,
                error_code=e.code,
                message=e.message,
            )

        if receipt is None:
            return ReceiptOutcome(
                status=TransactionStatus.NO_MATCH,
                message=(
                    f"No outstanding purchase order for '{request.product_name}' "
                    f"with quantity {request.quantity}"
                ),
            )

        logger.info(
            "purchase_receipt_complete",
            purchase_order_id=receipt.purchase_order.id,
            batch_no=receipt.batch.batch_no,
            units_in_stock=receipt.product.units_in_stock,
        )
        return ReceiptOutcome(status=TransactionStatus.COMPLETED, receipt=receipt)

    def to_response(self, outcome: ReceiptOutcome) -> ReceiptResponse:
        """Convert outcome to API response."""
        receipt = outcome.receipt
        if receipt is None:
            return ReceiptResponse(
                status=outcome.status.value,
                rows_affected=0,
                error_code=outcome.error_code,
                message=outcome.message,
            )

        order = receipt.purchase_order
        product = receipt.product
        batch = receipt.batch
        return ReceiptResponse(
            status=outcome.status.value,
            rows_affected=outcome.rows_affected,
            purchase_order=PurchaseOrderResponse(
                id=order.id,  # type: ignore[arg-type]
                order_date=order.order_date,
                product_id=order.product_id,
                quantity=order.quantity,
                unit_cost=order.unit_cost,
                received=order.received,
                received_date=order.received_date,
            ),
            product=ProductResponse(
                id=product.id,  # type: ignore[arg-type]
                name=product.name,
                units_in_stock=product.units_in_stock,
                units_on_order=product.units_on_order,
                reorder_level=product.reorder_level,
                discontinued=product.discontinued,
            ),
            batch=BatchResponse(
                batch_no=batch.batch_no,  # type: ignore[arg-type]
                purchase_order_id=batch.purchase_order_id,
                product_id=batch.product_id,
                expiry_date=batch.expiry_date,
                quantity=batch.quantity,
            ),
        )
