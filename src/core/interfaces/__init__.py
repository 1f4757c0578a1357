"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.inventory_store import IInventoryStore
from src.core.interfaces.sales_store import ISalesStore

__all__ = [
    # Storage interfaces
    "IInventoryStore",
    "ISalesStore",
]
