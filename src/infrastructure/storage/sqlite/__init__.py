"""aiosqlite-backed stores sharing one process-wide connection pool."""

from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    PoolStats,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from src.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore
from src.infrastructure.storage.sqlite.sales_store import SQLiteSalesStore

# Names the API lifespan and health probe use
get_connection_pool = get_pool
close_connection_pool = close_pool

# Stores hold no connection of their own, so one instance of each serves all callers
_stores: dict[type, object] = {}


async def get_inventory_store() -> SQLiteInventoryStore:
    return _stores.setdefault(SQLiteInventoryStore, SQLiteInventoryStore())


async def get_sales_store() -> SQLiteSalesStore:
    return _stores.setdefault(SQLiteSalesStore, SQLiteSalesStore())


__all__ = [
    "ConnectionPool",
    "PoolStats",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "get_connection_pool",
    "close_connection_pool",
    "SQLiteInventoryStore",
    "SQLiteSalesStore",
    "get_inventory_store",
    "get_sales_store",
]
