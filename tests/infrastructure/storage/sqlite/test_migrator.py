"""Unit tests for database migrator."""

from argparse import Namespace
from pathlib import Path
from unittest.mock import patch

import aiosqlite
import pytest

from src.infrastructure.storage.sqlite.migrations.migrator import (
    REQUIRED_TABLES,
    MigrationInfo,
    create_backup,
    discover_migrations,
    get_applied_migrations,
    get_current_version,
    get_migration_status,
    initialize_database,
    restore_backup,
    run_cli,
    verify_schema_integrity,
)

MIGRATOR = "src.infrastructure.storage.sqlite.migrations.migrator"

TRACKING_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        version TEXT PRIMARY KEY,
        name TEXT,
        checksum TEXT,
        applied_at TEXT DEFAULT (datetime('now')),
        execution_time_ms INTEGER
    );
"""


class TestMigrationInfo:
    """Tests for MigrationInfo dataclass."""

    def test_from_file_parses_filename(self, tmp_path: Path):
        migration_file = tmp_path / "v003_add_returns.sql"
        migration_file.write_text("SELECT 1;")

        info = MigrationInfo.from_file(migration_file)

        assert info.version == "003"
        assert info.name == "add_returns"
        assert len(info.checksum) == 16

    def test_checksum_tracks_content(self, tmp_path: Path):
        first = tmp_path / "v001_a.sql"
        second = tmp_path / "v002_b.sql"
        first.write_text("SELECT 1;")
        second.write_text("SELECT 2;")

        assert MigrationInfo.from_file(first).checksum != MigrationInfo.from_file(second).checksum

    @pytest.mark.parametrize("filename", ["invalid_migration.sql", "v_no_number.sql"])
    def test_invalid_filename_raises(self, tmp_path: Path, filename: str):
        path = tmp_path / filename
        path.write_text("SELECT 1;")

        with pytest.raises(ValueError):
            MigrationInfo.from_file(path)


class TestDiscoverMigrations:
    """Tests for discover_migrations()."""

    def test_bundled_migrations_in_order(self):
        versions = [m.version for m in discover_migrations()]
        assert versions[:2] == ["001", "002"]

    def test_skips_invalid_filenames(self, tmp_path: Path):
        (tmp_path / "v002_second.sql").write_text("SELECT 2;")
        (tmp_path / "v001_first.sql").write_text("SELECT 1;")
        (tmp_path / "vX_broken.sql").write_text("SELECT 3;")

        found = discover_migrations(tmp_path)

        assert [m.name for m in found] == ["first", "second"]


class TestTrackingQueries:
    """Tests for get_applied_migrations() and get_current_version()."""

    async def test_empty_when_no_table(self, tmp_path: Path):
        async with aiosqlite.connect(tmp_path / "empty.db") as conn:
            assert await get_applied_migrations(conn) == {}
            assert await get_current_version(conn) is None

    async def test_reports_applied_versions(self, migrated_db: Path):
        async with aiosqlite.connect(migrated_db) as conn:
            applied = await get_applied_migrations(conn)
            current = await get_current_version(conn)

        assert set(applied) >= {"001", "002"}
        assert current == max(applied)


class TestBackup:
    """Tests for create_backup() and restore_backup()."""

    def test_backup_and_restore(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        db_path.write_bytes(b"original")

        backup_path = create_backup(db_path)
        db_path.write_bytes(b"changed")
        restore_backup(db_path, backup_path)

        assert ".backup_" in backup_path.name
        assert db_path.read_bytes() == b"original"


class TestInitializeDatabase:
    """Tests for initialize_database()."""

    async def test_creates_every_required_table(self, temp_db_path: Path):
        results = await initialize_database(temp_db_path, create_backup_before=False)

        assert [r.version for r in results] == ["001", "002"]
        assert all(r.success for r in results)
        async with aiosqlite.connect(temp_db_path) as conn:
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in await cursor.fetchall()}
        assert set(REQUIRED_TABLES) <= tables

    async def test_second_run_is_a_no_op(self, migrated_db: Path):
        results = await initialize_database(migrated_db, create_backup_before=False)
        assert results == []

    async def test_backup_removed_after_success(self, tmp_path: Path):
        db_path = tmp_path / "test.db"
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("CREATE TABLE existing (id INTEGER)")
            await conn.commit()

        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "v001_init.sql").write_text(TRACKING_TABLE_SQL)

        with patch(f"{MIGRATOR}.MIGRATIONS_DIR", migrations_dir):
            results = await initialize_database(db_path, create_backup_before=True)

        assert len(results) == 1
        assert list(tmp_path.glob("*.backup_*.db")) == []

    async def test_stops_at_failing_migration(self, tmp_path: Path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "v001_init.sql").write_text(TRACKING_TABLE_SQL)
        (migrations_dir / "v002_broken.sql").write_text("CREATE TABLE (;")
        (migrations_dir / "v003_never.sql").write_text("CREATE TABLE never (id INTEGER);")

        with patch(f"{MIGRATOR}.MIGRATIONS_DIR", migrations_dir):
            results = await initialize_database(tmp_path / "t.db", create_backup_before=False)

        assert [(r.version, r.success) for r in results] == [("001", True), ("002", False)]
        assert results[1].error


    async def test_failed_migration_leaves_no_partial_schema(self, tmp_path: Path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "v001_half.sql").write_text(
            "CREATE TABLE partial (id INTEGER);\nCREATE TABLE (;"
        )
        db_path = tmp_path / "t.db"

        with patch(f"{MIGRATOR}.MIGRATIONS_DIR", migrations_dir):
            results = await initialize_database(db_path, create_backup_before=False)

        assert results[0].success is False
        async with aiosqlite.connect(db_path) as conn:
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE name = 'partial'")
            assert await cursor.fetchone() is None
            assert await get_applied_migrations(conn) == {}

    async def test_retry_after_fixing_failed_migration(self, tmp_path: Path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        broken = migrations_dir / "v001_returns.sql"
        broken.write_text("CREATE TABLE returns (;")
        db_path = tmp_path / "t.db"

        with patch(f"{MIGRATOR}.MIGRATIONS_DIR", migrations_dir):
            await initialize_database(db_path, create_backup_before=False)
            broken.write_text("CREATE TABLE returns (id INTEGER);")
            results = await initialize_database(db_path, create_backup_before=False)

        assert [(r.version, r.success) for r in results] == [("001", True)]


class TestSchemaConstraints:
    """The schema itself guards the purchase order and batch invariants."""

    async def test_purchase_order_ids_start_at_1001(self, migrated_db: Path):
        async with aiosqlite.connect(migrated_db) as conn:
            await conn.execute("INSERT INTO products (name) VALUES ('Chai')")
            cursor = await conn.execute(
                "INSERT INTO purchase_orders (order_date, product_id, quantity) VALUES ('2017-01-01', 1, 5)"
            )
            assert cursor.lastrowid == 1001

    async def test_received_flag_requires_date(self, migrated_db: Path):
        async with aiosqlite.connect(migrated_db) as conn:
            await conn.execute("INSERT INTO products (name) VALUES ('Chai')")
            with pytest.raises(aiosqlite.IntegrityError):
                await conn.execute(
                    """
                    INSERT INTO purchase_orders (order_date, product_id, quantity, received)
                    VALUES ('2017-01-01', 1, 5, 1)
                    """
                )

    async def test_batch_requires_received_order(self, migrated_db: Path):
        async with aiosqlite.connect(migrated_db) as conn:
            await conn.execute("INSERT INTO products (name) VALUES ('Chai')")
            await conn.execute(
                "INSERT INTO purchase_orders (order_date, product_id, quantity) VALUES ('2017-01-01', 1, 5)"
            )
            with pytest.raises(aiosqlite.IntegrityError, match="received purchase order"):
                await conn.execute(
                    """
                    INSERT INTO batches (purchase_order_id, product_id, expiry_date, quantity, batch_no)
                    VALUES (1001, 1, '2018-01-01', 5, 100001)
                    """
                )

    async def test_purchase_orders_cannot_be_deleted(self, migrated_db: Path):
        async with aiosqlite.connect(migrated_db) as conn:
            await conn.execute("INSERT INTO products (name) VALUES ('Chai')")
            await conn.execute(
                "INSERT INTO purchase_orders (order_date, product_id, quantity) VALUES ('2017-01-01', 1, 5)"
            )
            with pytest.raises(aiosqlite.IntegrityError):
                await conn.execute("DELETE FROM purchase_orders WHERE id = 1001")

    async def test_negative_stock_rejected(self, migrated_db: Path):
        async with aiosqlite.connect(migrated_db) as conn:
            with pytest.raises(aiosqlite.IntegrityError):
                await conn.execute("INSERT INTO products (name, units_in_stock) VALUES ('Chai', -1)")

    async def test_products_indexed_by_supplier_only(self, migrated_db: Path):
        """Name lookups are substring matches, which no name index can serve."""
        async with aiosqlite.connect(migrated_db) as conn:
            cursor = await conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type = 'index' AND tbl_name = 'products' AND sql IS NOT NULL"
            )
            names = [row[0] for row in await cursor.fetchall()]

        assert names == ["idx_products_supplier"]


class TestStatusAndIntegrity:
    """Tests for get_migration_status() and verify_schema_integrity()."""

    async def test_status_when_no_database(self, tmp_path: Path):
        status = await get_migration_status(tmp_path / "missing.db")

        assert status["exists"] is False
        assert status["pending_migrations"][:2] == ["001", "002"]

    async def test_status_when_migrated(self, migrated_db: Path):
        status = await get_migration_status(migrated_db)

        assert status["exists"] is True
        assert status["pending_migrations"] == []
        assert status["current_version"] == status["applied_migrations"][-1]

    async def test_integrity_passes_on_seeded_db(self, seeded_db: Path):
        checks = await verify_schema_integrity(seeded_db)

        assert {c["check"] for c in checks} == {
            "foreign_keys", "integrity", "required_tables", "received_flags", "batch_orders",
        }
        assert all(c["status"] == "PASS" for c in checks)

    async def test_integrity_reports_missing_tables(self, tmp_path: Path):
        checks = await verify_schema_integrity(tmp_path / "bare.db")

        tables = next(c for c in checks if c["check"] == "required_tables")
        assert tables["status"] == "FAIL"
        assert "purchase_orders" in tables["missing"]

    async def test_cli_status(self, migrated_db: Path, capsys):
        await run_cli(Namespace(status=True, verify=False, db_path=migrated_db, no_backup=True))

        out = capsys.readouterr().out
        assert "Database exists: True" in out
        assert "Pending migrations: []" in out

    async def test_integrity_flags_batch_without_received_order(self, seeded_db: Path):
        async with aiosqlite.connect(seeded_db) as conn:
            await conn.execute("DROP TRIGGER trg_batches_require_received")
            await conn.execute(
                """
                INSERT INTO batches (purchase_order_id, product_id, expiry_date, quantity, batch_no)
                VALUES (1001, 2, '2018-01-01', 40, 100001)
                """
            )
            await conn.commit()

        checks = await verify_schema_integrity(seeded_db)

        batch_check = next(c for c in checks if c["check"] == "batch_orders")
        assert batch_check == {"check": "batch_orders", "status": "FAIL", "violations": 1}

    async def test_status_reports_changed_files(self, tmp_path: Path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        path = migrations_dir / "v001_init.sql"
        path.write_text("CREATE TABLE a (id INTEGER);")
        db_path = tmp_path / "t.db"

        with patch(f"{MIGRATOR}.MIGRATIONS_DIR", migrations_dir):
            await initialize_database(db_path, create_backup_before=False)
            path.write_text("CREATE TABLE a (id INTEGER, note TEXT);")
            status = await get_migration_status(db_path)

        assert status["checksum_mismatches"] == ["001"]
        assert status["pending_migrations"] == []
