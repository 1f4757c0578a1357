"""
Versioned schema migrations for the replenishment store.

Migration files are named ``vNNN_description.sql`` and applied in version
order. Each one runs inside a single transaction together with its row in
``schema_migrations``, so a failing script leaves neither partial tables
nor a tracking row behind. Applying stops at the first failure; the file
backup taken beforehand is restored only if the run itself crashes.
"""

import asyncio
import hashlib
import re
import shutil
import time
from argparse import ArgumentParser, Namespace
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from src.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_FILENAME = re.compile(r"v(\d+)_(.+)\.sql")

TRACKING_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    checksum TEXT NOT NULL,
    execution_time_ms INTEGER,
    applied_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""

REQUIRED_TABLES = [
    "suppliers",
    "products",
    "purchase_orders",
    "batches",
    "employees",
    "sales_orders",
    "sales_order_lines",
    "schema_migrations",
]


@dataclass
class MigrationInfo:
    """A migration file on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=digest[:16])


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations(migrations_dir: Path | None = None) -> list[MigrationInfo]:
    """Migration files in version order; badly named files are skipped."""
    found = []
    for path in sorted((migrations_dir or MIGRATIONS_DIR).glob("v*.sql")):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return found


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied versions mapped to the checksum recorded when they ran."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations ORDER BY version")
    except aiosqlite.OperationalError:
        return {}
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await get_applied_migrations(conn)
    return max(applied) if applied else None


async def apply_migration(conn: aiosqlite.Connection, migration: MigrationInfo) -> MigrationResult:
    """Run one migration script and record it, atomically."""
    logger.info("applying_migration", version=migration.version, name=migration.name)
    started = time.perf_counter()

    def elapsed_ms() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        # executescript commits first; the script's BEGIN stays open until commit below
        await conn.executescript("BEGIN;\n" + migration.path.read_text(encoding="utf-8"))
        await conn.execute(
            """
            INSERT INTO schema_migrations (version, name, checksum, execution_time_ms)
            VALUES (?, ?, ?, ?)
            """,
            (migration.version, migration.name, migration.checksum, elapsed_ms()),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        logger.error(
            "migration_failed",
            version=migration.version,
            name=migration.name,
            error=str(e),
        )
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=False,
            execution_time_ms=elapsed_ms(),
            error=str(e),
        )

    duration = elapsed_ms()
    logger.info("migration_applied", version=migration.version, execution_time_ms=duration)
    return MigrationResult(
        version=migration.version,
        name=migration.name,
        success=True,
        execution_time_ms=duration,
    )


def create_backup(db_path: Path) -> Path:
    """Copy the database file next to itself with a timestamped suffix."""
    backup_path = db_path.with_suffix(f".backup_{datetime.now():%Y%m%d_%H%M%S}.db")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    shutil.copy2(backup_path, db_path)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Bring the database up to the latest schema version.

    Args:
        db_path: Database file; defaults to the configured store.
        create_backup_before: Copy an existing file aside first. The copy is
            removed once every pending migration has succeeded.

    Returns:
        One result per migration attempted, in order. Already-applied
        versions are skipped and do not appear.
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)

    backup_path = create_backup(db_path) if create_backup_before and db_path.exists() else None
    results: list[MigrationResult] = []

    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")
            await conn.execute(TRACKING_TABLE_SQL)
            await conn.commit()

            applied = await get_applied_migrations(conn)
            pending = [m for m in discover_migrations() if m.version not in applied]
            logger.info(
                "initializing_database",
                db_path=str(db_path),
                applied=len(applied),
                pending=len(pending),
            )

            for migration in pending:
                result = await apply_migration(conn, migration)
                results.append(result)
                if not result.success:
                    break
    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        if backup_path is not None:
            restore_backup(db_path, backup_path)
        raise

    if backup_path is not None and all(r.success for r in results):
        backup_path.unlink()

    return results


run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict:
    """Applied, pending and drifted migration versions for a database file."""
    db_path = db_path or get_settings().storage.db_path
    discovered = discover_migrations()

    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": [m.version for m in discovered],
            "checksum_mismatches": [],
        }

    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)

    return {
        "exists": True,
        "current_version": max(applied) if applied else None,
        "applied_migrations": sorted(applied),
        "pending_migrations": [m.version for m in discovered if m.version not in applied],
        # Files edited after they were applied
        "checksum_mismatches": [
            m.version
            for m in discovered
            if m.version in applied and applied[m.version] != m.checksum
        ],
    }


async def _count(conn: aiosqlite.Connection, sql: str) -> int:
    cursor = await conn.execute(sql)
    return (await cursor.fetchone())[0]


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """
    Check the file and the replenishment bookkeeping.

    Besides SQLite's own integrity and foreign-key checks this confirms
    that every received order carries a received date (and only those do)
    and that every batch belongs to a received order for its product.
    """
    db_path = db_path or get_settings().storage.db_path
    checks: list[dict] = []

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA integrity_check")
        result = (await cursor.fetchone())[0]
        checks.append({"check": "integrity", "status": "PASS" if result == "ok" else "FAIL", "result": result})

        cursor = await conn.execute("PRAGMA foreign_key_check")
        fk_violations = len(await cursor.fetchall())
        checks.append({
            "check": "foreign_keys",
            "status": "PASS" if not fk_violations else "FAIL",
            "violations": fk_violations,
        })

        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {row[0] for row in await cursor.fetchall()}
        missing = [t for t in REQUIRED_TABLES if t not in tables]
        checks.append({"check": "required_tables", "status": "PASS" if not missing else "FAIL", "missing": missing})

        if "purchase_orders" in tables:
            bad_flags = await _count(
                conn,
                "SELECT COUNT(*) FROM purchase_orders WHERE (received = 1) != (received_date IS NOT NULL)",
            )
            checks.append({
                "check": "received_flags",
                "status": "PASS" if not bad_flags else "FAIL",
                "violations": bad_flags,
            })

        if {"batches", "purchase_orders"} <= tables:
            orphans = await _count(
                conn,
                """
                SELECT COUNT(*) FROM batches b
                WHERE NOT EXISTS (
                    SELECT 1 FROM purchase_orders po
                    WHERE po.id = b.purchase_order_id
                      AND po.product_id = b.product_id
                      AND po.received = 1
                )
                """,
            )
            checks.append({
                "check": "batch_orders",
                "status": "PASS" if not orphans else "FAIL",
                "violations": orphans,
            })

    return checks


async def run_cli(args: Namespace) -> None:
    """Apply migrations, or print status / integrity checks."""
    if args.status:
        status = await get_migration_status(args.db_path)
        print(f"Database exists: {status['exists']}")
        print(f"Current version: {status['current_version'] or 'N/A'}")
        print(f"Applied migrations: {status['applied_migrations']}")
        print(f"Pending migrations: {status['pending_migrations']}")
        if status["checksum_mismatches"]:
            print(f"Changed since applied: {status['checksum_mismatches']}")
        return

    if args.verify:
        for check in await verify_schema_integrity(args.db_path):
            print(f"[{check['status']}] {check['check']}")
            if check["status"] != "PASS":
                for key, value in check.items():
                    if key not in ("check", "status"):
                        print(f"       {key}: {value}")
        return

    results = await initialize_database(args.db_path, create_backup_before=not args.no_backup)
    if not results:
        print("Schema is up to date.")
    for result in results:
        outcome = "SUCCESS" if result.success else "FAILED"
        print(f"[{outcome}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"         Error: {result.error}")


def add_arguments(parser: ArgumentParser) -> None:
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    parser.add_argument("--status", action="store_true", help="Show migration status")
    parser.add_argument("--verify", action="store_true", help="Verify schema integrity")
    parser.add_argument("--no-backup", action="store_true", help="Skip backup before migrations")


def main() -> None:
    parser = ArgumentParser(description="Replenishment store migrator")
    add_arguments(parser)
    asyncio.run(run_cli(parser.parse_args()))


if __name__ == "__main__":
    main()
