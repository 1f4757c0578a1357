"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock, patch

import aiosqlite
import pytest

import src.infrastructure.storage.sqlite as sqlite_module
import src.infrastructure.storage.sqlite.connection as conn_module
from src.infrastructure.storage.sqlite.connection import close_pool
from src.infrastructure.storage.sqlite.migrations.migrator import initialize_database


async def seed_catalog(db_path: Path) -> None:
    """
    Small catalog with known counters.

    - Chang has two outstanding orders of 40; the higher id is the older one.
    - Gravad lax is the only product due for restock and has no supplier.
    - Alice Mutton is discontinued and would otherwise be due.
    - Aniseed Syrup has units on order but no purchase order.
    - Ikura has an outstanding order its on-order counter does not cover.
    """
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA foreign_keys=ON")
        await conn.executemany(
            """
            INSERT INTO suppliers (id, company_name, contact_name, contact_title, phone, fax, homepage)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (1, "Exotic Liquids", "Charlotte Cooper", "Purchasing Manager",
                 "(171) 555-2222", None, None),
                (2, "Cooperativa de Quesos 'Las Cabras'", "Antonio del Valle Saavedra",
                 "Export Administrator", "(98) 598 76 54", None, None),
            ],
        )
        await conn.executemany(
            """
            INSERT INTO products (
                id, name, supplier_id, unit_price, units_in_stock,
                units_on_order, reorder_level, discontinued
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (1, "Chai", 1, 18.0, 39, 0, 10, 0),
                (2, "Chang", 1, 19.0, 17, 80, 25, 0),
                (3, "Queso Cabrales", 2, 21.0, 22, 30, 30, 0),
                (4, "Gravad lax", None, 26.0, 0, 0, 10, 0),
                (5, "Alice Mutton", 2, 39.0, 0, 0, 0, 1),
                (6, "Aniseed Syrup", 1, 10.0, 13, 70, 25, 0),
                (7, "Ikura", 2, 31.0, 31, 0, 0, 0),
            ],
        )
        await conn.executemany(
            "INSERT INTO purchase_orders (order_date, product_id, quantity) VALUES (?, ?, ?)",
            [
                ("2017-01-10", 2, 40),
                ("2017-01-05", 2, 40),
                ("2017-01-08", 3, 30),
                ("2017-01-09", 7, 12),
            ],
        )
        await conn.commit()


async def seed_sales(db_path: Path) -> None:
    """
    Sales history for 2016-12 .. 2018-01.

    Within 2017-01-01 .. 2018-01-01:
    - Nancy Davolio: Jan 2017 two orders (245.0), Mar 2017 two orders (123.0).
    - Andrew Fuller: Feb 2017 one order (195.0), Jan 2018 one order (18.0).
    - Janet Leverling: only orders outside the range.
    """
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA foreign_keys=ON")
        await conn.executemany(
            "INSERT INTO employees (id, first_name, last_name, title) VALUES (?, ?, ?, ?)",
            [
                (1, "Nancy", "Davolio", "Sales Representative"),
                (2, "Andrew", "Fuller", "Vice President, Sales"),
                (3, "Janet", "Leverling", "Sales Representative"),
            ],
        )
        await conn.executemany(
            "INSERT INTO sales_orders (id, employee_id, customer_name, order_date) VALUES (?, ?, ?, ?)",
            [
                (1, 1, "Alfreds Futterkiste", "2017-01-03"),
                (2, 1, "Ana Trujillo", "2017-01-20"),
                (3, 1, "Around the Horn", "2017-03-02"),
                (4, 1, "Berglunds snabbkop", "2017-03-30"),
                (5, 2, "Blauer See", "2017-02-14"),
                (6, 2, "Blondel pere et fils", "2018-01-01"),
                (7, 3, "Bolido Comidas", "2016-12-31"),
                (8, 3, "Bon app'", "2018-01-02"),
            ],
        )
        await conn.executemany(
            "INSERT INTO sales_order_lines (order_id, product_id, unit_price, quantity) VALUES (?, ?, ?, ?)",
            [
                (1, 1, 18.0, 2),
                (1, 2, 19.0, 1),
                (2, 2, 19.0, 10),
                (3, 3, 21.0, 5),
                (4, 1, 18.0, 1),
                (5, 5, 39.0, 5),
                (6, 1, 18.0, 1),
                (7, 1, 18.0, 50),
                (8, 2, 19.0, 50),
            ],
        )
        await conn.commit()


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def mock_settings(temp_db_path: Path):
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.pool_size = 2
    mock.storage.busy_timeout = 5000
    mock.inventory.outstanding_limit = 500
    return mock


@pytest.fixture
async def migrated_db(temp_db_path: Path) -> Path:
    """Temporary database with every migration applied and nothing else."""
    results = await initialize_database(temp_db_path, create_backup_before=False)
    assert all(r.success for r in results)
    return temp_db_path


@pytest.fixture
async def seeded_db(migrated_db: Path) -> Path:
    """Migrated database with the test catalog and sales history."""
    await seed_catalog(migrated_db)
    await seed_sales(migrated_db)
    return migrated_db


@pytest.fixture
async def pool_on(seeded_db: Path, mock_settings) -> AsyncGenerator[Path, None]:
    """Point the global connection pool and store singletons at the seeded database."""
    conn_module._pool = None
    sqlite_module._stores.clear()
    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield seeded_db
        finally:
            await close_pool()
            sqlite_module._stores.clear()


async def _fetch_one(db_path: Path, sql: str, params: tuple = ()) -> aiosqlite.Row | None:
    async with aiosqlite.connect(db_path) as conn:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute(sql, params)
        return await cursor.fetchone()


async def _fetch_all(db_path: Path, sql: str, params: tuple = ()) -> list[aiosqlite.Row]:
    async with aiosqlite.connect(db_path) as conn:
        conn.row_factory = aiosqlite.Row
        cursor = await conn.execute(sql, params)
        return list(await cursor.fetchall())


@pytest.fixture
def fetch_one():
    """Read a single row on a fresh connection, outside the pool."""
    return _fetch_one


@pytest.fixture
def fetch_all():
    """Read all rows on a fresh connection, outside the pool."""
    return _fetch_all
