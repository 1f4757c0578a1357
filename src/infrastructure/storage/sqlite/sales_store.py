"""SQLite implementation of sales order storage."""

from datetime import date

import aiosqlite

from src.config import get_logger
from src.core.entities.sales import MonthlySales
from src.core.exceptions import DatabaseError
from src.core.interfaces.sales_store import ISalesStore
from src.infrastructure.storage.sqlite.connection import get_connection

logger = get_logger(__name__)


class SQLiteSalesStore(ISalesStore):
    """SQLite implementation of the read side used by the performance report."""

    async def monthly_sales(self, start_date: date, end_date: date) -> list[MonthlySales]:
        """Aggregate distinct orders and line revenue per employee-month."""
        try:
            async with get_connection() as conn:
                cursor = await conn.execute(
                    """
                    SELECT e.id AS employee_id,
                           e.first_name || ' ' || e.last_name AS employee_name,
                           strftime('%Y-%m-01', o.order_date) AS sales_month,
                           COUNT(DISTINCT o.id) AS order_count,
                           SUM(l.quantity * l.unit_price) AS revenue
                    FROM employees e
                        JOIN sales_orders o ON o.employee_id = e.id
                        JOIN sales_order_lines l ON l.order_id = o.id
                    WHERE o.order_date >= ? AND o.order_date <= ?
                    GROUP BY e.id, sales_month
                    ORDER BY employee_name, e.id, sales_month
                    """,
                    (start_date.isoformat(), end_date.isoformat()),
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise DatabaseError("monthly_sales", str(e)) from e

        logger.debug("monthly_sales_loaded", rows=len(rows))
        return [self._row_to_monthly_sales(row) for row in rows]

    @staticmethod
    def _row_to_monthly_sales(row: aiosqlite.Row) -> MonthlySales:
        """Convert an aggregate row to a MonthlySales entity."""
        return MonthlySales(
            employee_id=row["employee_id"],
            employee_name=row["employee_name"],
            month=date.fromisoformat(row["sales_month"]),
            order_count=row["order_count"],
            revenue=float(row["revenue"] or 0.0),
        )
