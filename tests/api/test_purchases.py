"""API tests for purchase order endpoints."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import (
    get_app_settings,
    get_inventory_store_dep,
    get_receive_purchase_use_case,
    get_run_auto_restock_use_case,
)
from src.api.main import app
from src.application.use_cases.receive_purchase import ReceivePurchaseUseCase
from src.application.use_cases.run_auto_restock import RunAutoRestockUseCase
from src.core.entities.inventory import (
    Batch,
    OutstandingPurchase,
    Product,
    PurchaseOrder,
    PurchaseReceipt,
    ReorderAdvice,
)
from src.core.exceptions import ConstraintViolationError


@pytest.fixture
def mock_inventory_store():
    store = AsyncMock()
    store.list_outstanding_purchases.return_value = [
        OutstandingPurchase(
            purchase_order_id=1002,
            product_name="Chang",
            quantity=40,
            order_date=date(2017, 1, 5),
            supplier="Exotic Liquids",
            contact_name="Charlotte Cooper",
        ),
    ]
    return store


@pytest.fixture
def mock_settings():
    settings = MagicMock()
    settings.inventory.outstanding_limit = 50
    return settings


@pytest.fixture
async def client(mock_inventory_store, mock_settings):
    app.dependency_overrides[get_inventory_store_dep] = lambda: mock_inventory_store
    app.dependency_overrides[get_app_settings] = lambda: mock_settings
    app.dependency_overrides[get_receive_purchase_use_case] = lambda: ReceivePurchaseUseCase(
        inventory_store=mock_inventory_store
    )
    app.dependency_overrides[get_run_auto_restock_use_case] = lambda: RunAutoRestockUseCase(
        inventory_store=mock_inventory_store
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def _receipt() -> PurchaseReceipt:
    return PurchaseReceipt(
        purchase_order=PurchaseOrder(
            id=1002,
            order_date=date(2017, 1, 5),
            product_id=2,
            quantity=40,
            received=True,
            received_date=date.today(),
        ),
        product=Product(id=2, name="Chang", units_in_stock=57, units_on_order=40, reorder_level=25),
        batch=Batch(
            purchase_order_id=1002,
            product_id=2,
            expiry_date=date(2017, 3, 8),
            quantity=40,
            batch_no=100001,
        ),
        stock_before=17,
        on_order_before=80,
    )


RECEIVE_BODY = {"product_name": "chang", "quantity": 40, "expiry_date": "2017-03-08"}


class TestReceiveEndpoint:
    async def test_completed(self, client: AsyncClient, mock_inventory_store):
        mock_inventory_store.receive_purchase.return_value = _receipt()

        response = await client.post("/api/purchases/receive", json=RECEIVE_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["rows_affected"] == 1
        assert data["purchase_order"]["id"] == 1002
        assert data["batch"]["batch_no"] == 100001
        assert data["product"]["units_in_stock"] == 57

    async def test_no_match_is_not_an_error(self, client: AsyncClient, mock_inventory_store):
        mock_inventory_store.receive_purchase.return_value = None

        response = await client.post("/api/purchases/receive", json=RECEIVE_BODY)

        assert response.status_code == 200
        assert response.json()["status"] == "no_match"
        assert response.json()["rows_affected"] == 0

    async def test_failed_returns_conflict(self, client: AsyncClient, mock_inventory_store):
        mock_inventory_store.receive_purchase.side_effect = ConstraintViolationError(
            "receive_purchase", "CHECK constraint failed: units_on_order >= 0"
        )

        response = await client.post("/api/purchases/receive", json=RECEIVE_BODY)

        assert response.status_code == 409
        data = response.json()
        assert data["status"] == "failed"
        assert data["error_code"] == "CONSTRAINT_VIOLATION"

    @pytest.mark.parametrize(
        "body",
        [
            {"product_name": "Chang", "quantity": 0, "expiry_date": "2017-03-08"},
            {"product_name": "   ", "quantity": 40, "expiry_date": "2017-03-08"},
            {"product_name": "Chang", "quantity": 40, "expiry_date": "not-a-date"},
            {"product_name": "Chang", "quantity": 40},
        ],
    )
    async def test_invalid_body(self, client: AsyncClient, mock_inventory_store, body):
        response = await client.post("/api/purchases/receive", json=body)

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        mock_inventory_store.receive_purchase.assert_not_called()


class TestRestockEndpoint:
    async def test_completed(self, client: AsyncClient, mock_inventory_store):
        mock_inventory_store.restock_low_stock.return_value = [
            ReorderAdvice(purchase_order_id=1005, product_name="Gravad lax", quantity=20),
        ]

        response = await client.post("/api/purchases/restock")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["orders_created"] == 1
        assert data["advice"][0]["product_name"] == "Gravad lax"
        assert data["advice"][0]["supplier_company"] is None

    async def test_nothing_due(self, client: AsyncClient, mock_inventory_store):
        mock_inventory_store.restock_low_stock.return_value = []

        response = await client.post("/api/purchases/restock")

        assert response.status_code == 200
        assert response.json()["status"] == "no_match"


class TestOutstandingEndpoint:
    async def test_lists_open_orders(self, client: AsyncClient, mock_inventory_store):
        response = await client.get("/api/purchases/outstanding")

        assert response.status_code == 200
        assert response.json()[0]["purchase_order_id"] == 1002
        mock_inventory_store.list_outstanding_purchases.assert_awaited_once_with(limit=50)

    async def test_limit_capped_by_settings(self, client: AsyncClient, mock_inventory_store):
        await client.get("/api/purchases/outstanding", params={"limit": 10_000})

        mock_inventory_store.list_outstanding_purchases.assert_awaited_once_with(limit=50)

    async def test_smaller_limit_honoured(self, client: AsyncClient, mock_inventory_store):
        await client.get("/api/purchases/outstanding", params={"limit": 3})

        mock_inventory_store.list_outstanding_purchases.assert_awaited_once_with(limit=3)
