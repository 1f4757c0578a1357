"""Inventory endpoints."""

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_inventory_store_dep
from src.application.dto.responses import StockLevelResponse
from src.infrastructure.storage.sqlite import SQLiteInventoryStore

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.get("/stock", response_model=StockLevelResponse)
async def get_stock_level(
    product: str = Query(..., min_length=1, description="Product name fragment"),
    store: SQLiteInventoryStore = Depends(get_inventory_store_dep),
) -> StockLevelResponse:
    """Total units in stock across products whose name contains the fragment."""
    units = await store.stock_level(product.strip())
    return StockLevelResponse(product=product, units_in_stock=units)
