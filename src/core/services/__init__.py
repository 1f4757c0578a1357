"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.sales_performance import (
    SalesPerformanceService,
    month_span,
)

__all__ = [
    # Sales performance
    "SalesPerformanceService",
    "month_span",
]
