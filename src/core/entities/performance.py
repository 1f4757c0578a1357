"""Sales-performance report entities and sort options."""

from enum import Enum

from pydantic import BaseModel

from src.core.exceptions import AmbiguousSortKeyError


class SalesSortBasis(str, Enum):
    """How the monthly figures are rolled up."""

    AVERAGE = "average"
    TOTAL = "total"
    MAXIMUM = "maximum"


class SalesSortMetric(str, Enum):
    """Which monthly figure is rolled up."""

    SALES = "sales"
    REVENUE = "revenue"


# Substrings recognised in free-text sort hints
_BASIS_TOKENS: dict[SalesSortBasis, str] = {
    SalesSortBasis.AVERAGE: "av",
    SalesSortBasis.TOTAL: "tot",
    SalesSortBasis.MAXIMUM: "max",
}
_METRIC_TOKENS: dict[SalesSortMetric, str] = {
    SalesSortMetric.SALES: "sal",
    SalesSortMetric.REVENUE: "rev",
}


class SalesSortKey(BaseModel):
    """Descending sort key for the performance report."""

    model_config = {"frozen": True}

    basis: SalesSortBasis
    metric: SalesSortMetric

    @property
    def field_name(self) -> str:
        """EmployeeSummary attribute this key sorts on."""
        prefix = {
            SalesSortBasis.AVERAGE: "avg_monthly",
            SalesSortBasis.TOTAL: "total",
            SalesSortBasis.MAXIMUM: "max_monthly",
        }[self.basis]
        return f"{prefix}_{self.metric.value}"

    @classmethod
    def from_name(cls, name: str) -> "SalesSortKey":
        """Build from a structured name such as 'average_revenue'."""
        basis, _, metric = name.strip().lower().partition("_")
        return cls(basis=SalesSortBasis(basis), metric=SalesSortMetric(metric))

    @classmethod
    def parse_hint(cls, hint: str | None) -> "SalesSortKey | None":
        """
        Interpret a free-text hint such as 'average revenue' or 'Max Sales'.

        Returns None when the hint does not name both a basis and a metric.
        Raises AmbiguousSortKeyError when it names more than one of either.
        """
        if not hint:
            return None
        text = hint.lower()

        bases = [b for b, token in _BASIS_TOKENS.items() if token in text]
        metrics = [m for m, token in _METRIC_TOKENS.items() if token in text]

        if len(bases) > 1 or len(metrics) > 1:
            raise AmbiguousSortKeyError(
                hint, [b.value for b in bases] + [m.value for m in metrics]
            )
        if not bases or not metrics:
            return None
        return cls(basis=bases[0], metric=metrics[0])


class EmployeeSummary(BaseModel):
    """One row of the monthly sales-performance report."""

    employee_id: int
    employee_name: str
    avg_monthly_sales: float
    avg_monthly_revenue: float
    total_sales: int
    total_revenue: float
    max_monthly_sales: int
    peak_sales_months: str
    max_monthly_revenue: float
    peak_revenue_month: str

    def sort_value(self, key: SalesSortKey) -> float:
        return float(getattr(self, key.field_name))
