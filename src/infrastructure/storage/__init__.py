"""Persistence for products, purchase orders, batches and sales."""

from src.infrastructure.storage.sqlite import (
    close_pool,
    get_inventory_store,
    get_pool,
    get_sales_store,
)

__all__ = ["get_pool", "close_pool", "get_inventory_store", "get_sales_store"]
