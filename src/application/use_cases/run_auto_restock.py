"""Run Auto Restock Use Case: reorder products at or below reorder level."""

from dataclasses import dataclass, field
from datetime import date

from src.application.dto.responses import ReorderAdviceResponse, RestockResponse
from src.config import get_logger
from src.core.entities.inventory import ReorderAdvice, TransactionStatus
from src.core.exceptions import StorageError
from src.core.interfaces.inventory_store import IInventoryStore

logger = get_logger(__name__)


@dataclass
class RestockOutcome:
    """Result of an auto-restock run."""

    status: TransactionStatus
    advice: list[ReorderAdvice] = field(default_factory=list)
    error_code: str | None = None
    message: str | None = None


class RunAutoRestockUseCase:
    """Create a purchase order of twice the reorder level for every product due."""

    def __init__(self, inventory_store: IInventoryStore | None = None):
        self._inventory_store = inventory_store

    async def _get_inventory_store(self) -> IInventoryStore:
        if self._inventory_store is None:
            from src.infrastructure.storage.sqlite import get_inventory_store

            self._inventory_store = await get_inventory_store()
        return self._inventory_store

    async def execute(self, order_date: date | None = None) -> RestockOutcome:
        """Execute auto restock use case."""
        order_date = order_date or date.today()
        logger.info("auto_restock_started", order_date=order_date.isoformat())

        store = await self._get_inventory_store()
        try:
            advice = await store.restock_low_stock(order_date)
        except StorageError as e:
            logger.error("auto_restock_failed", error_code=e.code, error=e.message)
            return RestockOutcome(
                status=TransactionStatus.FAILED,
                error_code=e.code,
                message=e.message,
            )

        if not advice:
            return RestockOutcome(
                status=TransactionStatus.NO_MATCH,
                message="No product is at or below its reorder level",
            )

        logger.info("auto_restock_complete", orders_created=len(advice))
        return RestockOutcome(status=TransactionStatus.COMPLETED, advice=advice)

    def to_response(self, outcome: RestockOutcome) -> RestockResponse:
        """Convert outcome to API response."""
        return RestockResponse(
            status=outcome.status.value,
            orders_created=len(outcome.advice),
            advice=[ReorderAdviceResponse(**a.model_dump()) for a in outcome.advice],
            error_code=outcome.error_code,
            message=outcome.message,
        )
