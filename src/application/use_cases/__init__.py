"""Application use cases."""

from src.application.use_cases.backfill_purchases import BackfillPurchasesUseCase
from src.application.use_cases.receive_purchase import (
    ReceiptOutcome,
    ReceivePurchaseUseCase,
)
from src.application.use_cases.run_auto_restock import (
    RestockOutcome,
    RunAutoRestockUseCase,
)
from src.application.use_cases.sales_performance import (
    SalesPerformanceResult,
    SalesPerformanceUseCase,
)

__all__ = [
    "ReceivePurchaseUseCase",
    "ReceiptOutcome",
    "RunAutoRestockUseCase",
    "RestockOutcome",
    "SalesPerformanceUseCase",
    "SalesPerformanceResult",
    "BackfillPurchasesUseCase",
]
