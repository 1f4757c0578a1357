"""
FastAPI ``Depends`` providers.

Tests swap any of these out through ``app.dependency_overrides``.
"""

from src.application.use_cases import (
    ReceivePurchaseUseCase,
    RunAutoRestockUseCase,
    SalesPerformanceUseCase,
)
from src.config import Settings, get_settings
from src.infrastructure.storage.sqlite import SQLiteInventoryStore, get_inventory_store


def get_app_settings() -> Settings:
    return get_settings()


async def get_inventory_store_dep() -> SQLiteInventoryStore:
    return await get_inventory_store()


# Use cases resolve their stores lazily on first execute
def get_receive_purchase_use_case() -> ReceivePurchaseUseCase:
    return ReceivePurchaseUseCase()


def get_run_auto_restock_use_case() -> RunAutoRestockUseCase:
    return RunAutoRestockUseCase()


def get_sales_performance_use_case() -> SalesPerformanceUseCase:
    return SalesPerformanceUseCase()
