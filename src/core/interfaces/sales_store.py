"""Abstract interface for sales order storage."""

from abc import ABC, abstractmethod
from datetime import date

from src.core.entities.sales import MonthlySales


class ISalesStore(ABC):
    """Read-only access to employees, sales orders and order lines."""

    @abstractmethod
    async def monthly_sales(self, start_date: date, end_date: date) -> list[MonthlySales]:
        """
        Aggregate orders per employee and calendar month.

        Only orders dated within [start_date, end_date] are counted. Rows are
        ordered by employee name, then month.
        """
        pass
