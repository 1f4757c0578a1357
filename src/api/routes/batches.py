"""Batch listings by expiry."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_inventory_store_dep
from src.application.dto.responses import BatchListingResponse
from src.core.entities.inventory import BatchListing
from src.infrastructure.storage.sqlite import SQLiteInventoryStore

router = APIRouter(prefix="/api/batches", tags=["batches"])


def _to_response(rows: list[BatchListing]) -> list[BatchListingResponse]:
    return [
        BatchListingResponse(
            batch_no=row.batch_no,
            product_name=row.product_name,
            quantity=row.quantity,
            expiry_date=row.expiry_date,
            subtotal=row.subtotal,
        )
        for row in rows
    ]


@router.get("/expiring", response_model=list[BatchListingResponse])
async def list_expiring(
    products: str = Query(
        default="",
        description="Comma-separated product name fragments; blank lists every batch",
    ),
    store: SQLiteInventoryStore = Depends(get_inventory_store_dep),
) -> list[BatchListingResponse]:
    """List batches of the given products ordered by expiry date."""
    rows = await store.list_batches_for(products.split(","))
    return _to_response(rows)


@router.get("/expired", response_model=list[BatchListingResponse])
async def list_expired(
    as_of: date | None = None,
    store: SQLiteInventoryStore = Depends(get_inventory_store_dep),
) -> list[BatchListingResponse]:
    """List non-empty batches past expiry, valued at list price."""
    rows = await store.list_expired_batches(as_of or date.today())
    return _to_response(rows)
