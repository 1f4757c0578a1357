"""Sales domain entities read by the performance report."""

from datetime import date

from pydantic import BaseModel, Field, model_validator

# Report labels are English whatever LC_TIME the host process sets
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


class Employee(BaseModel):
    """Staff member credited with sales orders."""

    id: int | None = None
    first_name: str
    last_name: str
    title: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class SalesOrderLine(BaseModel):
    """A single product line on a sales order."""

    order_id: int | None = None
    product_id: int
    unit_price: float = Field(..., ge=0)
    quantity: int = Field(..., gt=0)
    line_total: float = 0.0  # quantity * unit_price

    @model_validator(mode="after")
    def compute_line(self) -> "SalesOrderLine":
        """Compute line_total from quantity and unit_price."""
        self.line_total = self.quantity * self.unit_price
        return self


class SalesOrder(BaseModel):
    """Customer order taken by an employee."""

    id: int | None = None
    employee_id: int  # FK → employees.id
    customer_name: str | None = None
    order_date: date
    lines: list[SalesOrderLine] = Field(default_factory=list)

    @property
    def revenue(self) -> float:
        return sum(line.line_total for line in self.lines)


class MonthlySales(BaseModel):
    """Orders and revenue for one employee in one calendar month."""

    employee_id: int
    employee_name: str
    month: date  # first day of the month
    order_count: int
    revenue: float

    @property
    def month_label(self) -> str:
        """Month label such as 'March 2017'."""
        return f"{MONTH_NAMES[self.month.month - 1]} {self.month.year}"
