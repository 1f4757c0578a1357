"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


# --- System ---


class DatabaseHealthResponse(BaseModel):
    """Reachability of the SQLite store and the state of its pool."""

    available: bool
    latency_ms: float | None = None
    schema_version: str | None = None
    pool_size: int | None = None
    connections_in_use: int | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: DatabaseHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. VALIDATION_ERROR)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)


# --- Purchasing ---


class ProductResponse(BaseModel):
    """Product counters after a transaction."""

    id: int
    name: str
    units_in_stock: int
    units_on_order: int
    reorder_level: int
    discontinued: bool


class PurchaseOrderResponse(BaseModel):
    """Purchase order response DTO."""

    id: int
    order_date: date
    product_id: int
    quantity: int
    unit_cost: float | None = None
    received: bool
    received_date: date | None = None


class BatchResponse(BaseModel):
    """Batch created by a purchase receipt."""

    batch_no: int
    purchase_order_id: int
    product_id: int
    expiry_date: date
    quantity: int


class ReceiptResponse(BaseModel):
    """Outcome of a purchase receipt."""

    status: str = Field(..., description="completed, no_match or failed")
    rows_affected: int = Field(default=0, description="Purchase orders fulfilled")
    purchase_order: PurchaseOrderResponse | None = None
    product: ProductResponse | None = None
    batch: BatchResponse | None = None
    error_code: str | None = None
    message: str | None = None


class ReorderAdviceResponse(BaseModel):
    """One reorder line with supplier contact details."""

    purchase_order_id: int | None = None
    product_name: str | None = None
    quantity: int
    supplier_company: str | None = None
    supplier_contact_title: str | None = None
    supplier_contact_name: str | None = None
    supplier_phone: str | None = None
    supplier_fax: str | None = None
    supplier_homepage: str | None = None


class RestockResponse(BaseModel):
    """Outcome of an auto-restock run."""

    status: str = Field(..., description="completed, no_match or failed")
    orders_created: int = 0
    advice: list[ReorderAdviceResponse] = Field(default_factory=list)
    error_code: str | None = None
    message: str | None = None


class OutstandingPurchaseResponse(BaseModel):
    """Unreceived purchase order with supplier contact."""

    purchase_order_id: int
    product_name: str | None = None
    quantity: int
    order_date: date
    supplier: str | None = None
    contact_title: str | None = None
    contact_name: str | None = None
    phone: str | None = None
    fax: str | None = None
    homepage: str | None = None


# --- Inventory ---


class StockLevelResponse(BaseModel):
    """Units in stock across products matching a name fragment."""

    product: str
    units_in_stock: int | None = Field(
        default=None, description="None when no product matches"
    )


class BatchListingResponse(BaseModel):
    """Batch row with product name and value."""

    batch_no: int
    product_name: str
    quantity: int
    expiry_date: date
    subtotal: float


# --- Reports ---


class EmployeeSummaryResponse(BaseModel):
    """One employee row of the sales-performance report."""

    employee_name: str
    avg_monthly_sales: float
    avg_monthly_revenue: float
    total_sales: int
    total_revenue: float
    max_monthly_sales: int
    peak_sales_months: str
    max_monthly_revenue: float
    peak_revenue_month: str


class SalesPerformanceResponse(BaseModel):
    """Monthly sales-performance report."""

    start_date: date
    end_date: date
    month_span: int
    sort_by: str | None = None
    rows: list[EmployeeSummaryResponse]
