"""SQLite implementation of inventory storage."""

from datetime import date

import aiosqlite

from src.config import get_logger
from src.core.entities.inventory import (
    Batch,
    BatchListing,
    OutstandingPurchase,
    Product,
    PurchaseOrder,
    PurchaseReceipt,
    ReorderAdvice,
    RestockCandidate,
)
from src.core.exceptions import ConstraintViolationError, DatabaseError
from src.core.interfaces.inventory_store import IInventoryStore
from src.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)

# Batch numbers are issued from 100001 upwards
BATCH_NO_BASE = 100000

# Reorder policy: order twice the reorder level
RESTOCK_MULTIPLIER = 2

# Case-insensitive substring match on product name; the fragment is not a pattern.
# casefold() is registered on every pooled connection.
NAME_MATCH = "instr(casefold(p.name), casefold(?)) > 0"


class SQLiteInventoryStore(IInventoryStore):
    """SQLite implementation of product counters, purchase orders and batches."""

    async def get_product(self, product_id: int) -> Product | None:
        """Get product by ID."""
        async with get_connection() as conn:
            return await self._fetch_product(conn, product_id)

    async def create_purchase_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Insert an unreceived purchase order without touching counters."""
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO purchase_orders (
                        order_date, product_id, quantity, unit_cost,
                        received, received_date
                    ) VALUES (?, ?, ?, ?, 0, NULL)
                    """,
                    (
                        order.order_date.isoformat(),
                        order.product_id,
                        order.quantity,
                        order.unit_cost,
                    ),
                )
                order.id = cursor.lastrowid
        except aiosqlite.IntegrityError as e:
            raise ConstraintViolationError("create_purchase_order", str(e)) from e

        order.received = False
        order.received_date = None
        logger.info(
            "purchase_order_created",
            purchase_order_id=order.id,
            product_id=order.product_id,
            quantity=order.quantity,
        )
        return order

    async def get_purchase_order(self, order_id: int) -> PurchaseOrder | None:
        """Get purchase order by ID."""
        async with get_connection() as conn:
            return await self._fetch_purchase_order(conn, order_id)

    async def list_purchase_orders(
        self, product_id: int | None = None, limit: int = 100, offset: int = 0
    ) -> list[PurchaseOrder]:
        """List purchase orders, oldest first."""
        async with get_connection() as conn:
            if product_id is None:
                cursor = await conn.execute(
                    """
                    SELECT * FROM purchase_orders
                    ORDER BY order_date, id
                    LIMIT ? OFFSET ?
                    """,
                    (limit, offset),
                )
            else:
                cursor = await conn.execute(
                    """
                    SELECT * FROM purchase_orders
                    WHERE product_id = ?
                    ORDER BY order_date, id
                    LIMIT ? OFFSET ?
                    """,
                    (product_id, limit, offset),
                )
            rows = await cursor.fetchall()
            return [self._row_to_purchase_order(row) for row in rows]

    async def get_batch(self, purchase_order_id: int) -> Batch | None:
        """Get the batch recorded for a purchase order."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM batches WHERE purchase_order_id = ?",
                (purchase_order_id,),
            )
            row = await cursor.fetchone()
            return self._row_to_batch(row) if row else None

    # ------------------------------------------------------------------
    # Purchase receipt
    # ------------------------------------------------------------------

    async def receive_purchase(
        self,
        product_fragment: str,
        quantity: int,
        expiry_date: date,
        received_on: date,
    ) -> PurchaseReceipt | None:
        """Fulfil the oldest outstanding order matching fragment and quantity."""
        try:
            async with get_transaction(immediate=True) as conn:
                match = await self._find_oldest_outstanding(conn, product_fragment, quantity)
                if match is None:
                    logger.info(
                        "purchase_receipt_no_match",
                        product_fragment=product_fragment,
                        quantity=quantity,
                    )
                    return None

                order_id = match["purchase_order_id"]
                product_id = match["product_id"]

                await self._mark_received(conn, order_id, received_on)
                await self._move_on_order_to_stock(conn, product_id, quantity)
                batch = await self._record_batch(
                    conn, order_id, product_id, expiry_date, quantity
                )

                order = await self._fetch_purchase_order(conn, order_id)
                product = await self._fetch_product(conn, product_id)
        except aiosqlite.IntegrityError as e:
            raise ConstraintViolationError("receive_purchase", str(e)) from e
        except aiosqlite.Error as e:
            raise DatabaseError("receive_purchase", str(e)) from e

        logger.info(
            "purchase_received",
            purchase_order_id=order_id,
            product_id=product_id,
            quantity=quantity,
            batch_no=batch.batch_no,
            units_in_stock=product.units_in_stock,
        )
        return PurchaseReceipt(
            purchase_order=order,
            product=product,
            batch=batch,
            stock_before=match["units_in_stock"],
            on_order_before=match["units_on_order"],
        )

    async def _find_oldest_outstanding(
        self, conn: aiosqlite.Connection, product_fragment: str, quantity: int
    ) -> aiosqlite.Row | None:
        cursor = await conn.execute(
            f"""
            SELECT po.id AS purchase_order_id,
                   p.id AS product_id,
                   p.units_in_stock,
                   p.units_on_order
            FROM purchase_orders po
                JOIN products p ON p.id = po.product_id
            WHERE {NAME_MATCH}
              AND po.quantity = ?
              AND po.received = 0
              AND po.received_date IS NULL
            ORDER BY po.order_date, po.id
            LIMIT 1
            """,
            (product_fragment, quantity),
        )
        return await cursor.fetchone()

    async def _mark_received(
        self, conn: aiosqlite.Connection, order_id: int, received_on: date
    ) -> None:
        cursor = await conn.execute(
            """
            UPDATE purchase_orders
            SET received = 1, received_date = ?
            WHERE id = ? AND received = 0 AND received_date IS NULL
            """,
            (received_on.isoformat(), order_id),
        )
        if cursor.rowcount != 1:
            raise DatabaseError("receive_purchase", f"purchase order {order_id} is not outstanding")

    async def _move_on_order_to_stock(
        self, conn: aiosqlite.Connection, product_id: int, quantity: int
    ) -> None:
        await conn.execute(
            """
            UPDATE products
            SET units_in_stock = units_in_stock + ?,
                units_on_order = units_on_order - ?
            WHERE id = ?
            """,
            (quantity, quantity, product_id),
        )

    async def _record_batch(
        self,
        conn: aiosqlite.Connection,
        order_id: int,
        product_id: int,
        expiry_date: date,
        quantity: int,
    ) -> Batch:
        await conn.execute(
            """
            INSERT INTO batches (
                purchase_order_id, product_id, expiry_date, quantity, batch_no
            ) VALUES (
                ?, ?, ?, ?,
                (SELECT COALESCE(MAX(batch_no), ?) + 1 FROM batches)
            )
            """,
            (order_id, product_id, expiry_date.isoformat(), quantity, BATCH_NO_BASE),
        )
        cursor = await conn.execute(
            "SELECT * FROM batches WHERE purchase_order_id = ? AND product_id = ?",
            (order_id, product_id),
        )
        return self._row_to_batch(await cursor.fetchone())

    # ------------------------------------------------------------------
    # Auto restock
    # ------------------------------------------------------------------

    async def restock_low_stock(self, order_date: date) -> list[ReorderAdvice]:
        """Reorder every active product at or below its reorder level."""
        try:
            async with get_transaction(immediate=True) as conn:
                candidates = await self._select_restock_candidates(conn, order_date)
                if not candidates:
                    logger.info("auto_restock_nothing_due")
                    return []

                order_ids: dict[int, int] = {}
                for candidate in candidates:
                    cursor = await conn.execute(
                        """
                        INSERT INTO purchase_orders (
                            order_date, product_id, quantity, received
                        ) VALUES (?, ?, ?, 0)
                        """,
                        (
                            candidate.order_date.isoformat(),
                            candidate.product_id,
                            candidate.quantity,
                        ),
                    )
                    order_ids[candidate.product_id] = cursor.lastrowid

                await conn.executemany(
                    "UPDATE products SET units_on_order = units_on_order + ? WHERE id = ?",
                    [(c.quantity, c.product_id) for c in candidates],
                )

                advice = await self._build_reorder_advice(conn, candidates, order_ids)
        except aiosqlite.IntegrityError as e:
            raise ConstraintViolationError("restock_low_stock", str(e)) from e
        except aiosqlite.Error as e:
            raise DatabaseError("restock_low_stock", str(e)) from e

        logger.info(
            "auto_restock_orders_created",
            orders=len(advice),
            units=sum(a.quantity for a in advice),
        )
        return advice

    async def _select_restock_candidates(
        self, conn: aiosqlite.Connection, order_date: date
    ) -> list[RestockCandidate]:
        cursor = await conn.execute(
            """
            SELECT id, reorder_level FROM products
            WHERE units_in_stock + units_on_order <= reorder_level
              AND discontinued = 0
            ORDER BY id
            """
        )
        rows = await cursor.fetchall()
        return [
            RestockCandidate(
                product_id=row["id"],
                quantity=RESTOCK_MULTIPLIER * row["reorder_level"],
                order_date=order_date,
            )
            for row in rows
        ]

    async def _build_reorder_advice(
        self,
        conn: aiosqlite.Connection,
        candidates: list[RestockCandidate],
        order_ids: dict[int, int],
    ) -> list[ReorderAdvice]:
        placeholders = ", ".join("?" for _ in candidates)
        cursor = await conn.execute(
            f"""
            SELECT p.id AS product_id,
                   p.name AS product_name,
                   s.company_name,
                   s.contact_title,
                   s.contact_name,
                   s.phone,
                   s.fax,
                   s.homepage
            FROM products p
                LEFT JOIN suppliers s ON s.id = p.supplier_id
            WHERE p.id IN ({placeholders})
            """,
            [c.product_id for c in candidates],
        )
        details = {row["product_id"]: row for row in await cursor.fetchall()}

        advice = []
        for candidate in candidates:
            row = details.get(candidate.product_id)
            advice.append(
                ReorderAdvice(
                    purchase_order_id=order_ids.get(candidate.product_id),
                    product_name=row["product_name"] if row else None,
                    quantity=candidate.quantity,
                    supplier_company=row["company_name"] if row else None,
                    supplier_contact_title=row["contact_title"] if row else None,
                    supplier_contact_name=row["contact_name"] if row else None,
                    supplier_phone=row["phone"] if row else None,
                    supplier_fax=row["fax"] if row else None,
                    supplier_homepage=row["homepage"] if row else None,
                )
            )
        return advice

    # ------------------------------------------------------------------
    # Backfill and listings
    # ------------------------------------------------------------------

    async def backfill_purchase_orders(self, order_date: date) -> list[PurchaseOrder]:
        """Create orders for on-order quantities that have no outstanding order."""
        created: list[PurchaseOrder] = []
        try:
            async with get_transaction(immediate=True) as conn:
                cursor = await conn.execute(
                    """
                    SELECT p.id, p.units_on_order FROM products p
                    WHERE p.units_on_order > 0
                      AND NOT EXISTS (
                          SELECT 1 FROM purchase_orders po
                          WHERE po.product_id = p.id AND po.received = 0
                      )
                    ORDER BY p.id
                    """
                )
                for row in await cursor.fetchall():
                    insert = await conn.execute(
                        """
                        INSERT INTO purchase_orders (
                            order_date, product_id, quantity, received
                        ) VALUES (?, ?, ?, 0)
                        """,
                        (order_date.isoformat(), row["id"], row["units_on_order"]),
                    )
                    created.append(
                        PurchaseOrder(
                            id=insert.lastrowid,
                            order_date=order_date,
                            product_id=row["id"],
                            quantity=row["units_on_order"],
                        )
                    )
        except aiosqlite.IntegrityError as e:
            raise ConstraintViolationError("backfill_purchase_orders", str(e)) from e
        except aiosqlite.Error as e:
            raise DatabaseError("backfill_purchase_orders", str(e)) from e

        logger.info("purchase_orders_backfilled", orders=len(created))
        return created

    async def list_outstanding_purchases(self, limit: int = 500) -> list[OutstandingPurchase]:
        """List unreceived orders with supplier contact details."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT po.id AS purchase_order_id,
                       p.name AS product_name,
                       po.quantity,
                       po.order_date,
                       s.company_name AS supplier,
                       s.contact_title,
                       s.contact_name,
                       s.phone,
                       s.fax,
                       s.homepage
                FROM purchase_orders po
                    LEFT JOIN products p ON p.id = po.product_id
                    LEFT JOIN suppliers s ON s.id = p.supplier_id
                WHERE po.received = 0
                ORDER BY po.order_date, p.name, po.id
                LIMIT ?
                """,
                (limit,),
            )
            rows = await cursor.fetchall()
            return [
                OutstandingPurchase(
                    purchase_order_id=row["purchase_order_id"],
                    product_name=row["product_name"],
                    quantity=row["quantity"],
                    order_date=date.fromisoformat(row["order_date"]),
                    supplier=row["supplier"],
                    contact_title=row["contact_title"],
                    contact_name=row["contact_name"],
                    phone=row["phone"],
                    fax=row["fax"],
                    homepage=row["homepage"],
                )
                for row in rows
            ]

    async def stock_level(self, product_fragment: str) -> int | None:
        """Total units in stock across products whose name contains the fragment."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT SUM(p.units_in_stock) FROM products p WHERE {NAME_MATCH}",
                (product_fragment,),
            )
            row = await cursor.fetchone()
            return row[0]

    async def list_batches_for(self, product_fragments: list[str]) -> list[BatchListing]:
        """List batches of matching products by expiry date; all when empty."""
        fragments = [f.strip() for f in product_fragments if f.strip()]
        where = ""
        if fragments:
            where = "WHERE " + " OR ".join(NAME_MATCH for _ in fragments)

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT b.batch_no, p.name AS product_name, b.quantity,
                       b.expiry_date, p.unit_price
                FROM batches b
                    JOIN products p ON p.id = b.product_id
                {where}
                ORDER BY b.expiry_date, b.batch_no
                """,
                fragments,
            )
            rows = await cursor.fetchall()
            return [self._row_to_batch_listing(row) for row in rows]

    async def list_expired_batches(self, as_of: date) -> list[BatchListing]:
        """List non-empty batches expiring on or before the given date."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT b.batch_no, p.name AS product_name, b.quantity,
                       b.expiry_date, p.unit_price
                FROM batches b
                    JOIN products p ON p.id = b.product_id
                WHERE b.expiry_date <= ? AND b.quantity > 0
                ORDER BY b.expiry_date, b.batch_no
                """,
                (as_of.isoformat(),),
            )
            rows = await cursor.fetchall()
            return [self._row_to_batch_listing(row) for row in rows]

    # ------------------------------------------------------------------
    # Row conversion
    # ------------------------------------------------------------------

    async def _fetch_product(self, conn: aiosqlite.Connection, product_id: int) -> Product | None:
        cursor = await conn.execute("SELECT * FROM products WHERE id = ?", (product_id,))
        row = await cursor.fetchone()
        return self._row_to_product(row) if row else None

    async def _fetch_purchase_order(
        self, conn: aiosqlite.Connection, order_id: int
    ) -> PurchaseOrder | None:
        cursor = await conn.execute("SELECT * FROM purchase_orders WHERE id = ?", (order_id,))
        row = await cursor.fetchone()
        return self._row_to_purchase_order(row) if row else None

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> Product:
        """Convert a database row to a Product entity."""
        return Product(
            id=row["id"],
            name=row["name"],
            supplier_id=row["supplier_id"],
            unit_price=float(row["unit_price"]),
            units_in_stock=row["units_in_stock"],
            units_on_order=row["units_on_order"],
            reorder_level=row["reorder_level"],
            discontinued=bool(row["discontinued"]),
        )

    @staticmethod
    def _row_to_purchase_order(row: aiosqlite.Row) -> PurchaseOrder:
        """Convert a database row to a PurchaseOrder entity."""
        received_date = None
        if row["received_date"]:
            received_date = date.fromisoformat(row["received_date"])

        return PurchaseOrder(
            id=row["id"],
            order_date=date.fromisoformat(row["order_date"]),
            product_id=row["product_id"],
            quantity=row["quantity"],
            unit_cost=float(row["unit_cost"]) if row["unit_cost"] is not None else None,
            received=bool(row["received"]),
            received_date=received_date,
        )

    @staticmethod
    def _row_to_batch(row: aiosqlite.Row) -> Batch:
        """Convert a database row to a Batch entity."""
        return Batch(
            purchase_order_id=row["purchase_order_id"],
            product_id=row["product_id"],
            expiry_date=date.fromisoformat(row["expiry_date"]),
            quantity=row["quantity"],
            batch_no=row["batch_no"],
        )

    @staticmethod
    def _row_to_batch_listing(row: aiosqlite.Row) -> BatchListing:
        return BatchListing(
            batch_no=row["batch_no"],
            product_name=row["product_name"],
            quantity=row["quantity"],
            expiry_date=date.fromisoformat(row["expiry_date"]),
            unit_price=float(row["unit_price"]),
        )
