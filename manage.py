#!/usr/bin/env python3
"""
Replenishment engine management CLI.

Usage:
    python manage.py migrate              Apply pending schema migrations
    python manage.py serve                Start the API server
    python manage.py receive NAME QTY EXPIRY
                                          Record arrival of a purchase order
    python manage.py restock              Reorder products at or below reorder level
    python manage.py report START END     Monthly sales performance per employee
    python manage.py backfill-purchases   Create orders for untracked on-order stock
    python manage.py outstanding          List purchase orders not yet received
    python manage.py stock NAME           Units in stock for matching products
    python manage.py expiring [NAMES]     Batches by expiry date
    python manage.py expired              Batches past expiry
"""

import argparse
import asyncio
import subprocess
import sys
from collections.abc import Awaitable, Callable
from datetime import date
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent


def _run(coro_fn: Callable[[argparse.Namespace], Awaitable[int]]) -> Callable:
    """Wrap an async command so it runs on a fresh loop and closes the pool."""

    def runner(args: argparse.Namespace) -> None:
        async def main() -> int:
            from src.infrastructure.storage.sqlite import close_pool

            try:
                return await coro_fn(args)
            finally:
                await close_pool()

        sys.exit(asyncio.run(main()))

    return runner


def _print_table(rows: list[dict], columns: list[str]) -> None:
    if not rows:
        print("(no rows)")
        return
    cells = [[("" if row[c] is None else str(row[c])) for c in columns] for row in rows]
    widths = [max(len(c), *(len(r[i]) for r in cells)) for i, c in enumerate(columns)]
    print("  ".join(c.ljust(w) for c, w in zip(columns, widths)))
    print("  ".join("-" * w for w in widths))
    for r in cells:
        print("  ".join(v.ljust(w) for v, w in zip(r, widths)))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply migrations, or show status / verify integrity."""
    from src.infrastructure.storage.sqlite.migrations.migrator import run_cli

    asyncio.run(run_cli(args))


def cmd_serve(args: argparse.Namespace) -> None:
    """Start uvicorn in the foreground."""
    uvicorn_cmd = [
        sys.executable, "-m", "uvicorn",
        "src.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
    ]
    if args.reload:
        uvicorn_cmd.append("--reload")

    print(f"Starting server on {args.host}:{args.port}...")
    try:
        sys.exit(subprocess.call(uvicorn_cmd, cwd=str(ROOT_DIR)))
    except KeyboardInterrupt:
        print("\nServer stopped.")


async def cmd_receive(args: argparse.Namespace) -> int:
    """Fulfil the oldest matching purchase order."""
    from src.application.dto.requests import ReceivePurchaseRequest
    from src.application.use_cases import ReceivePurchaseUseCase
    from src.core.entities.inventory import TransactionStatus

    request = ReceivePurchaseRequest(
        product_name=args.product_name,
        quantity=args.quantity,
        expiry_date=args.expiry_date,
    )
    use_case = ReceivePurchaseUseCase()
    outcome = await use_case.execute(request)
    response = use_case.to_response(outcome)

    print(f"Status: {response.status} ({response.rows_affected} row(s) affected)")
    if response.purchase_order and response.product and response.batch:
        print(f"  Purchase order: {response.purchase_order.id}")
        print(f"  Batch:          {response.batch.batch_no} (expires {response.batch.expiry_date})")
        print(
            f"  {response.product.name}: {response.product.units_in_stock} in stock, "
            f"{response.product.units_on_order} on order"
        )
    elif response.message:
        print(f"  {response.message}")
    return 1 if outcome.status == TransactionStatus.FAILED else 0


async def cmd_restock(args: argparse.Namespace) -> int:
    """Create purchase orders for every product at or below reorder level."""
    from src.application.use_cases import RunAutoRestockUseCase
    from src.core.entities.inventory import TransactionStatus

    use_case = RunAutoRestockUseCase()
    outcome = await use_case.execute()
    response = use_case.to_response(outcome)

    print(f"Status: {response.status} ({response.orders_created} order(s) created)")
    if response.message:
        print(f"  {response.message}")
    _print_table(
        [a.model_dump() for a in response.advice],
        [
            "product_name",
            "quantity",
            "supplier_company",
            "supplier_contact_title",
            "supplier_contact_name",
            "supplier_phone",
            "supplier_fax",
            "supplier_homepage",
        ],
    )
    return 1 if outcome.status == TransactionStatus.FAILED else 0


async def cmd_report(args: argparse.Namespace) -> int:
    """Print the monthly sales-performance report."""
    from src.application.dto.requests import SalesPerformanceRequest
    from src.application.use_cases import SalesPerformanceUseCase
    from src.core.exceptions import ValidationError

    use_case = SalesPerformanceUseCase()
    try:
        result = await use_case.execute_request(
            SalesPerformanceRequest(
                start_date=args.start_date,
                end_date=args.end_date,
                sort_by=args.sort_by,
                sort_hint=args.sort_hint,
            )
        )
    except ValidationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2

    response = use_case.to_response(result)
    print(
        f"Sales performance {response.start_date} .. {response.end_date} "
        f"({response.month_span} months, sorted by {response.sort_by or 'employee name'})"
    )
    rows = []
    for row in response.rows:
        data = row.model_dump()
        data["avg_monthly_sales"] = f"{row.avg_monthly_sales:.2f}"
        data["avg_monthly_revenue"] = f"{row.avg_monthly_revenue:.2f}"
        data["total_revenue"] = f"{row.total_revenue:.2f}"
        data["max_monthly_revenue"] = f"{row.max_monthly_revenue:.2f}"
        rows.append(data)
    _print_table(rows, list(type(response.rows[0]).model_fields) if response.rows else [])
    return 0


async def cmd_backfill(args: argparse.Namespace) -> int:
    """Create outstanding orders for on-order stock no order accounts for."""
    from src.application.use_cases import BackfillPurchasesUseCase

    orders = await BackfillPurchasesUseCase().execute(args.order_date)
    print(f"Created {len(orders)} purchase order(s).")
    _print_table(
        [o.model_dump() for o in orders],
        ["id", "order_date", "product_id", "quantity"],
    )
    return 0


async def cmd_outstanding(args: argparse.Namespace) -> int:
    from src.config import get_settings
    from src.infrastructure.storage.sqlite import get_inventory_store

    store = await get_inventory_store()
    rows = await store.list_outstanding_purchases(
        limit=get_settings().inventory.outstanding_limit
    )
    _print_table(
        [r.model_dump() for r in rows],
        ["purchase_order_id", "product_name", "quantity", "order_date", "supplier", "phone"],
    )
    return 0


async def cmd_stock(args: argparse.Namespace) -> int:
    from src.infrastructure.storage.sqlite import get_inventory_store

    store = await get_inventory_store()
    units = await store.stock_level(args.product_name)
    if units is None:
        print(f"No product matches '{args.product_name}'.")
        return 1
    print(f"{args.product_name}: {units} in stock")
    return 0


async def cmd_expiring(args: argparse.Namespace) -> int:
    from src.infrastructure.storage.sqlite import get_inventory_store

    store = await get_inventory_store()
    rows = await store.list_batches_for(args.products.split(","))
    _print_table(
        [{**r.model_dump(), "subtotal": f"{r.subtotal:.2f}"} for r in rows],
        ["batch_no", "product_name", "quantity", "expiry_date", "subtotal"],
    )
    return 0


async def cmd_expired(args: argparse.Namespace) -> int:
    from src.infrastructure.storage.sqlite import get_inventory_store

    store = await get_inventory_store()
    rows = await store.list_expired_batches(args.as_of)
    _print_table(
        [{**r.model_dump(), "subtotal": f"{r.subtotal:.2f}"} for r in rows],
        ["batch_no", "product_name", "quantity", "expiry_date", "subtotal"],
    )
    print(f"Total value: {sum(r.subtotal for r in rows):.2f}")
    return 0


def main() -> None:
    from src.config import configure_logging
    from src.infrastructure.storage.sqlite.migrations.migrator import add_arguments

    configure_logging()

    parser = argparse.ArgumentParser(
        description="Replenishment engine management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply schema migrations")
    add_arguments(p_migrate)
    p_migrate.set_defaults(func=cmd_migrate)

    # serve
    p_serve = sub.add_parser("serve", help="Start the API server")
    p_serve.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    p_serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    # receive
    p_receive = sub.add_parser("receive", help="Record arrival of a purchase order")
    p_receive.add_argument("product_name", help="Product name fragment (case-insensitive)")
    p_receive.add_argument("quantity", type=int, help="Exact quantity of the order")
    p_receive.add_argument("expiry_date", type=date.fromisoformat, help="Batch expiry (YYYY-MM-DD)")
    p_receive.set_defaults(func=_run(cmd_receive))

    # restock
    p_restock = sub.add_parser("restock", help="Reorder products at or below reorder level")
    p_restock.set_defaults(func=_run(cmd_restock))

    # report
    p_report = sub.add_parser("report", help="Monthly sales performance per employee")
    p_report.add_argument("start_date", type=date.fromisoformat, help="YYYY-MM-DD")
    p_report.add_argument("end_date", type=date.fromisoformat, help="YYYY-MM-DD")
    sort = p_report.add_mutually_exclusive_group()
    sort.add_argument("--sort-by", help="e.g. average_revenue, total_sales, maximum_sales")
    sort.add_argument("--sort-hint", help="Free text such as 'average revenue'")
    p_report.set_defaults(func=_run(cmd_report))

    # backfill-purchases
    p_backfill = sub.add_parser(
        "backfill-purchases", help="Create orders for untracked on-order stock"
    )
    p_backfill.add_argument(
        "--order-date", type=date.fromisoformat, default=None, help="Defaults to today"
    )
    p_backfill.set_defaults(func=_run(cmd_backfill))

    # outstanding
    p_outstanding = sub.add_parser("outstanding", help="List unreceived purchase orders")
    p_outstanding.set_defaults(func=_run(cmd_outstanding))

    # stock
    p_stock = sub.add_parser("stock", help="Units in stock for matching products")
    p_stock.add_argument("product_name", help="Product name fragment")
    p_stock.set_defaults(func=_run(cmd_stock))

    # expiring
    p_expiring = sub.add_parser("expiring", help="Batches by expiry date")
    p_expiring.add_argument(
        "products", nargs="?", default="", help="Comma-separated name fragments"
    )
    p_expiring.set_defaults(func=_run(cmd_expiring))

    # expired
    p_expired = sub.add_parser("expired", help="Batches past expiry")
    p_expired.add_argument(
        "--as-of", type=date.fromisoformat, default=date.today(), help="Defaults to today"
    )
    p_expired.set_defaults(func=_run(cmd_expired))

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
