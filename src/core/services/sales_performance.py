"""
Sales Performance Service.

Rolls per-employee monthly order counts and revenue up into the monthly
performance report: totals, month-span averages, monthly maxima and the
month(s) in which each maximum occurred.
"""

from __future__ import annotations

from datetime import date

from src.config import get_logger
from src.core.entities.performance import EmployeeSummary, SalesSortKey
from src.core.entities.sales import MonthlySales
from src.core.exceptions import InvalidDateRangeError
from src.core.interfaces.sales_store import ISalesStore

logger = get_logger(__name__)

PEAK_MONTH_SEPARATOR = " & "


def month_span(start_date: date, end_date: date) -> int:
    """Number of calendar-month boundaries between two dates."""
    return (end_date.year - start_date.year) * 12 + end_date.month - start_date.month


class SalesPerformanceService:
    """
    Layer-pure service producing the monthly sales-performance report.

    Averages divide by the month span of the requested range rather than by
    the number of active months, so idle months pull the average down.
    """

    def __init__(self, sales_store: ISalesStore | None = None) -> None:
        self._sales_store = sales_store

    @staticmethod
    def validate_range(start_date: date, end_date: date) -> int:
        """Return the month span, rejecting ranges that span no month."""
        span = month_span(start_date, end_date)
        if span <= 0:
            raise InvalidDateRangeError(start_date, end_date)
        return span

    async def report(
        self,
        start_date: date,
        end_date: date,
        sort_key: SalesSortKey | None = None,
    ) -> list[EmployeeSummary]:
        """
        Build the report for [start_date, end_date].

        Args:
            start_date: First order date included.
            end_date: Last order date included.
            sort_key: Descending sort; None keeps employee-name order.

        Returns:
            One summary per employee with at least one order in range.
        """
        span = self.validate_range(start_date, end_date)
        if self._sales_store is None:
            raise RuntimeError("SalesPerformanceService requires a sales store")

        rows = await self._sales_store.monthly_sales(start_date, end_date)
        summaries = self.summarize(rows, span, sort_key)

        logger.info(
            "sales_performance_computed",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            month_span=span,
            employees=len(summaries),
            sort_key=sort_key.field_name if sort_key else None,
        )
        return summaries

    @staticmethod
    def summarize(
        rows: list[MonthlySales],
        span: int,
        sort_key: SalesSortKey | None = None,
    ) -> list[EmployeeSummary]:
        """Roll monthly rows up into one summary per employee."""
        by_employee: dict[int, list[MonthlySales]] = {}
        for row in rows:
            by_employee.setdefault(row.employee_id, []).append(row)

        summaries: list[EmployeeSummary] = []
        for employee_id, months in by_employee.items():
            months.sort(key=lambda m: m.month)

            total_sales = sum(m.order_count for m in months)
            total_revenue = sum(m.revenue for m in months)
            max_sales = max(m.order_count for m in months)
            max_revenue = max(m.revenue for m in months)

            # Every month tied on order count is named; revenue takes the first
            peak_sales = PEAK_MONTH_SEPARATOR.join(
                m.month_label for m in months if m.order_count == max_sales
            )
            peak_revenue = next(m.month_label for m in months if m.revenue == max_revenue)

            summaries.append(
                EmployeeSummary(
                    employee_id=employee_id,
                    employee_name=months[0].employee_name,
                    avg_monthly_sales=total_sales / span,
                    avg_monthly_revenue=total_revenue / span,
                    total_sales=total_sales,
                    total_revenue=total_revenue,
                    max_monthly_sales=max_sales,
                    peak_sales_months=peak_sales,
                    max_monthly_revenue=max_revenue,
                    peak_revenue_month=peak_revenue,
                )
            )

        if sort_key is not None:
            summaries.sort(key=lambda s: s.sort_value(sort_key), reverse=True)

        return summaries
