"""Tests for BackfillPurchasesUseCase."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from src.application.use_cases.backfill_purchases import BackfillPurchasesUseCase
from src.core.entities.inventory import PurchaseOrder


@pytest.fixture
def mock_inventory_store():
    store = AsyncMock()
    return store


class TestBackfillPurchasesUseCase:
    async def test_returns_created_orders(self, mock_inventory_store):
        mock_inventory_store.backfill_purchase_orders.return_value = [
            PurchaseOrder(id=1005, order_date=date(2017, 1, 1), product_id=6, quantity=70),
        ]
        use_case = BackfillPurchasesUseCase(inventory_store=mock_inventory_store)

        orders = await use_case.execute(order_date=date(2017, 1, 1))

        assert [(o.id, o.quantity) for o in orders] == [(1005, 70)]
        mock_inventory_store.backfill_purchase_orders.assert_awaited_once_with(date(2017, 1, 1))

    async def test_nothing_to_backfill(self, mock_inventory_store):
        mock_inventory_store.backfill_purchase_orders.return_value = []

        orders = await BackfillPurchasesUseCase(mock_inventory_store).execute()

        assert orders == []
        mock_inventory_store.backfill_purchase_orders.assert_awaited_once_with(date.today())
