"""
Application layer - Use cases and DTOs.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate stores and core services

Use cases are the only entry point for API handlers and CLI commands
that change state.
"""

from src.application.dto.requests import (
    ReceivePurchaseRequest,
    SalesPerformanceRequest,
)
from src.application.dto.responses import (
    DatabaseHealthResponse,
    ErrorResponse,
    HealthResponse,
    ReceiptResponse,
    RestockResponse,
    SalesPerformanceResponse,
)
from src.application.use_cases import (
    BackfillPurchasesUseCase,
    ReceivePurchaseUseCase,
    RunAutoRestockUseCase,
    SalesPerformanceUseCase,
)

__all__ = [
    # Request DTOs
    "ReceivePurchaseRequest",
    "SalesPerformanceRequest",
    # Response DTOs
    "ReceiptResponse",
    "RestockResponse",
    "SalesPerformanceResponse",
    "HealthResponse",
    "DatabaseHealthResponse",
    "ErrorResponse",
    # Use Cases
    "ReceivePurchaseUseCase",
    "RunAutoRestockUseCase",
    "SalesPerformanceUseCase",
    "BackfillPurchasesUseCase",
]
