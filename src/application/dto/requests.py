"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from datetime import date

from pydantic import BaseModel, Field, field_validator


class ReceivePurchaseRequest(BaseModel):
    """Request to record the arrival of a purchase order."""

    product_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Case-insensitive fragment of the product name",
        examples=["Chang", "queso cabrales"],
    )
    quantity: int = Field(..., gt=0, description="Exact quantity of the order received")
    expiry_date: date = Field(..., description="Expiry date of the delivered batch")

    @field_validator("product_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("product_name must not be blank")
        return v


class SalesPerformanceRequest(BaseModel):
    """Parameters of the monthly sales-performance report."""

    start_date: date = Field(..., description="First order date included")
    end_date: date = Field(..., description="Last order date included")
    sort_by: str | None = Field(
        default=None,
        description="Structured sort key: <average|total|maximum>_<sales|revenue>",
        examples=["average_revenue", "total_sales"],
    )
    sort_hint: str | None = Field(
        default=None,
        max_length=50,
        description="Free-text sort hint such as 'average revenue'",
    )
