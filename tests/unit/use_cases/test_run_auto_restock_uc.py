"""Tests for RunAutoRestockUseCase."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from src.application.use_cases.run_auto_restock import RunAutoRestockUseCase
from src.core.entities.inventory import ReorderAdvice, TransactionStatus
from src.core.exceptions import ConstraintViolationError


@pytest.fixture
def mock_inventory_store():
    store = AsyncMock()
    return store


@pytest.fixture
def use_case(mock_inventory_store):
    return RunAutoRestockUseCase(inventory_store=mock_inventory_store)


@pytest.fixture
def advice():
    return [
        ReorderAdvice(
            purchase_order_id=1005,
            product_name="Chai",
            quantity=20,
            supplier_company="Exotic Liquids",
            supplier_contact_title="Purchasing Manager",
            supplier_contact_name="Charlotte Cooper",
            supplier_phone="(171) 555-2222",
        ),
        ReorderAdvice(purchase_order_id=1006, product_name="Gravad lax", quantity=20),
    ]


class TestRunAutoRestockUseCase:
    async def test_completed(self, use_case, mock_inventory_store, advice):
        mock_inventory_store.restock_low_stock.return_value = advice

        outcome = await use_case.execute(order_date=date(2017, 4, 1))

        assert outcome.status == TransactionStatus.COMPLETED
        assert [a.product_name for a in outcome.advice] == ["Chai", "Gravad lax"]
        mock_inventory_store.restock_low_stock.assert_awaited_once_with(date(2017, 4, 1))

    async def test_order_date_defaults_to_today(self, use_case, mock_inventory_store):
        mock_inventory_store.restock_low_stock.return_value = []

        await use_case.execute()

        mock_inventory_store.restock_low_stock.assert_awaited_once_with(date.today())

    async def test_nothing_due(self, use_case, mock_inventory_store):
        mock_inventory_store.restock_low_stock.return_value = []

        outcome = await use_case.execute()

        assert outcome.status == TransactionStatus.NO_MATCH
        assert outcome.advice == []
        assert outcome.message

    async def test_storage_error_becomes_failed(self, use_case, mock_inventory_store):
        mock_inventory_store.restock_low_stock.side_effect = ConstraintViolationError(
            "restock_low_stock", "FOREIGN KEY constraint failed"
        )

        outcome = await use_case.execute()

        assert outcome.status == TransactionStatus.FAILED
        assert outcome.error_code == "CONSTRAINT_VIOLATION"
        assert outcome.advice == []

    async def test_response(self, use_case, mock_inventory_store, advice):
        mock_inventory_store.restock_low_stock.return_value = advice
        outcome = await use_case.execute()

        response = use_case.to_response(outcome)

        assert response.status == "completed"
        assert response.orders_created == 2
        assert response.advice[0].supplier_company == "Exotic Liquids"
        assert response.advice[1].supplier_phone is None
