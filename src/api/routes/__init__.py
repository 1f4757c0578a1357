"""API route modules."""

from src.api.routes.batches import router as batches_router
from src.api.routes.health import router as health_router
from src.api.routes.inventory import router as inventory_router
from src.api.routes.purchases import router as purchases_router
from src.api.routes.reports import router as reports_router

__all__ = [
    "health_router",
    "purchases_router",
    "inventory_router",
    "batches_router",
    "reports_router",
]
