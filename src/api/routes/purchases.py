"""Purchase order endpoints: receipt, auto restock and open orders."""

from fastapi import APIRouter, Depends, Query, Response, status

from src.api.dependencies import (
    get_app_settings,
    get_inventory_store_dep,
    get_receive_purchase_use_case,
    get_run_auto_restock_use_case,
)
from src.application.dto.requests import ReceivePurchaseRequest
from src.application.dto.responses import (
    ErrorResponse,
    OutstandingPurchaseResponse,
    ReceiptResponse,
    RestockResponse,
)
from src.application.use_cases.receive_purchase import ReceivePurchaseUseCase
from src.application.use_cases.run_auto_restock import RunAutoRestockUseCase
from src.config import Settings
from src.core.entities.inventory import TransactionStatus
from src.infrastructure.storage.sqlite import SQLiteInventoryStore

router = APIRouter(prefix="/api/purchases", tags=["purchases"])


def _http_status(outcome_status: TransactionStatus) -> int:
    # A failed transaction rolled back; the caller may retry
    if outcome_status == TransactionStatus.FAILED:
        return status.HTTP_409_CONFLICT
    return status.HTTP_200_OK


@router.post(
    "/receive",
    response_model=ReceiptResponse,
    responses={409: {"model": ReceiptResponse}, 422: {"model": ErrorResponse}},
)
async def receive_purchase(
    request: ReceivePurchaseRequest,
    response: Response,
    use_case: ReceivePurchaseUseCase = Depends(get_receive_purchase_use_case),
) -> ReceiptResponse:
    """Mark the oldest matching purchase order received and book its batch."""
    outcome = await use_case.execute(request)
    response.status_code = _http_status(outcome.status)
    return use_case.to_response(outcome)


@router.post(
    "/restock",
    response_model=RestockResponse,
    responses={409: {"model": RestockResponse}},
)
async def run_auto_restock(
    response: Response,
    use_case: RunAutoRestockUseCase = Depends(get_run_auto_restock_use_case),
) -> RestockResponse:
    """Reorder every active product at or below its reorder level."""
    outcome = await use_case.execute()
    response.status_code = _http_status(outcome.status)
    return use_case.to_response(outcome)


@router.get("/outstanding", response_model=list[OutstandingPurchaseResponse])
async def list_outstanding(
    limit: int | None = Query(default=None, ge=1),
    store: SQLiteInventoryStore = Depends(get_inventory_store_dep),
    settings: Settings = Depends(get_app_settings),
) -> list[OutstandingPurchaseResponse]:
    """List purchase orders not yet received, oldest first."""
    cap = settings.inventory.outstanding_limit
    rows = await store.list_outstanding_purchases(limit=min(limit or cap, cap))
    return [OutstandingPurchaseResponse(**row.model_dump()) for row in rows]
