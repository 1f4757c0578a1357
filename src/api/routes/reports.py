"""Reporting endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_sales_performance_use_case
from src.application.dto.requests import SalesPerformanceRequest
from src.application.dto.responses import ErrorResponse, SalesPerformanceResponse
from src.application.use_cases.sales_performance import SalesPerformanceUseCase

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get(
    "/sales-performance",
    response_model=SalesPerformanceResponse,
    responses={400: {"model": ErrorResponse}},
)
async def sales_performance(
    start_date: date,
    end_date: date,
    sort_by: str | None = Query(
        default=None, description="e.g. average_revenue, total_sales"
    ),
    sort_hint: str | None = Query(
        default=None, max_length=50, description="Free text such as 'average revenue'"
    ),
    use_case: SalesPerformanceUseCase = Depends(get_sales_performance_use_case),
) -> SalesPerformanceResponse:
    """
    Monthly sales performance per employee.

    Averages divide by the number of calendar months the range spans.
    Without a sort option rows come back in employee-name order.
    """
    request = SalesPerformanceRequest(
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_hint=sort_hint,
    )
    result = await use_case.execute_request(request)
    return use_case.to_response(result)
