"""Sales Performance Use Case: monthly per-employee report."""

from dataclasses import dataclass
from datetime import date

from src.application.dto.requests import SalesPerformanceRequest
from src.application.dto.responses import (
    EmployeeSummaryResponse,
    SalesPerformanceResponse,
)
from src.config import get_logger
from src.core.entities.performance import EmployeeSummary, SalesSortKey
from src.core.exceptions import ValidationError
from src.core.interfaces.sales_store import ISalesStore
from src.core.services.sales_performance import SalesPerformanceService

logger = get_logger(__name__)


@dataclass
class SalesPerformanceResult:
    """Report rows plus the parameters that produced them."""

    start_date: date
    end_date: date
    month_span: int
    sort_key: SalesSortKey | None
    rows: list[EmployeeSummary]


class SalesPerformanceUseCase:
    """Build the monthly sales-performance report."""

    def __init__(self, sales_store: ISalesStore | None = None):
        self._sales_store = sales_store

    async def _get_sales_store(self) -> ISalesStore:
        if self._sales_store is None:
            from src.infrastructure.storage.sqlite import get_sales_store

            self._sales_store = await get_sales_store()
        return self._sales_store

    @staticmethod
    def resolve_sort_key(
        sort_by: str | None = None, sort_hint: str | None = None
    ) -> SalesSortKey | None:
        """Structured name wins over the free-text hint."""
        if sort_by:
            try:
                return SalesSortKey.from_name(sort_by)
            except ValueError as e:
                raise ValidationError(
                    "sort_by",
                    "expected <average|total|maximum>_<sales|revenue>",
                    sort_by,
                ) from e
        return SalesSortKey.parse_hint(sort_hint)

    async def execute(
        self,
        start_date: date,
        end_date: date,
        sort_key: SalesSortKey | None = None,
    ) -> SalesPerformanceResult:
        """Execute sales performance use case."""
        span = SalesPerformanceService.validate_range(start_date, end_date)
        logger.info(
            "sales_performance_started",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            sort_key=sort_key.field_name if sort_key else None,
        )

        service = SalesPerformanceService(await self._get_sales_store())
        rows = await service.report(start_date, end_date, sort_key)

        return SalesPerformanceResult(
            start_date=start_date,
            end_date=end_date,
            month_span=span,
            sort_key=sort_key,
            rows=rows,
        )

    async def execute_request(
        self, request: SalesPerformanceRequest
    ) -> SalesPerformanceResult:
        """Resolve the request's sort options, then run the report."""
        sort_key = self.resolve_sort_key(request.sort_by, request.sort_hint)
        return await self.execute(request.start_date, request.end_date, sort_key)

    def to_response(self, result: SalesPerformanceResult) -> SalesPerformanceResponse:
        """Convert result to API response."""
        return SalesPerformanceResponse(
            start_date=result.start_date,
            end_date=result.end_date,
            month_span=result.month_span,
            sort_by=result.sort_key.field_name if result.sort_key else None,
            rows=[
                EmployeeSummaryResponse(
                    employee_name=row.employee_name,
                    avg_monthly_sales=row.avg_monthly_sales,
                    avg_monthly_revenue=row.avg_monthly_revenue,
                    total_sales=row.total_sales,
                    total_revenue=row.total_revenue,
                    max_monthly_sales=row.max_monthly_sales,
                    peak_sales_months=row.peak_sales_months,
                    max_monthly_revenue=row.max_monthly_revenue,
                    peak_revenue_month=row.peak_revenue_month,
                )
                for row in result.rows
            ],
        )
