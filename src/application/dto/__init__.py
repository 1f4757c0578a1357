"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from src.application.dto.requests import (
    ReceivePurchaseRequest,
    SalesPerformanceRequest,
)
from src.application.dto.responses import (
    BatchListingResponse,
    BatchResponse,
    DatabaseHealthResponse,
    EmployeeSummaryResponse,
    ErrorResponse,
    HealthResponse,
    OutstandingPurchaseResponse,
    ProductResponse,
    PurchaseOrderResponse,
    ReceiptResponse,
    ReorderAdviceResponse,
    RestockResponse,
    SalesPerformanceResponse,
    StockLevelResponse,
)

__all__ = [
    # Requests
    "ReceivePurchaseRequest",
    "SalesPerformanceRequest",
    # Responses
    "BatchListingResponse",
    "BatchResponse",
    "DatabaseHealthResponse",
    "EmployeeSummaryResponse",
    "ErrorResponse",
    "HealthResponse",
    "OutstandingPurchaseResponse",
    "ProductResponse",
    "PurchaseOrderResponse",
    "ReceiptResponse",
    "ReorderAdviceResponse",
    "RestockResponse",
    "SalesPerformanceResponse",
    "StockLevelResponse",
]
