"""Core domain entities."""

from src.core.entities.inventory import (
    Batch,
    BatchListing,
    OutstandingPurchase,
    Product,
    PurchaseOrder,
    PurchaseReceipt,
    ReorderAdvice,
    RestockCandidate,
    Supplier,
    TransactionStatus,
)
from src.core.entities.performance import (
    EmployeeSummary,
    SalesSortBasis,
    SalesSortKey,
    SalesSortMetric,
)
from src.core.entities.sales import (
    Employee,
    MonthlySales,
    SalesOrder,
    SalesOrderLine,
)

__all__ = [
    # Inventory entities
    "Supplier",
    "Product",
    "PurchaseOrder",
    "Batch",
    "TransactionStatus",
    "PurchaseReceipt",
    "RestockCandidate",
    "ReorderAdvice",
    "OutstandingPurchase",
    "BatchListing",
    # Sales entities
    "Employee",
    "SalesOrder",
    "SalesOrderLine",
    "MonthlySales",
    # Performance report entities
    "SalesSortBasis",
    "SalesSortMetric",
    "SalesSortKey",
    "EmployeeSummary",
]
