"""Shared pytest fixtures and configuration for all tests."""

import os
from datetime import datetime
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

# Keep main.py from building the real application at import time
os.environ.setdefault("ENVIRONMENT", "test")

from restaurant_admin.gateway.base_gateway import RecordGateway  # noqa: E402
from restaurant_admin.models.query_models import GatewayResponse  # noqa: E402
from restaurant_admin.models.record_models import InventoryItem, Order  # noqa: E402
from restaurant_admin.services.notification_service import NotificationFeed  # noqa: E402


@pytest.fixture
def mock_gateway() -> MagicMock:
    """Fixture providing a record gateway whose calls are AsyncMocks."""
    gateway = MagicMock(spec=RecordGateway)
    gateway.fetch_records = AsyncMock(return_value=GatewayResponse(data=[], total_count=0))
    gateway.get_record_by_id = AsyncMock(return_value=GatewayResponse(data=None))
    gateway.create_record = AsyncMock(return_value=GatewayResponse(results=[]))
    gateway.update_record = AsyncMock(return_value=GatewayResponse(results=[]))
    gateway.delete_record = AsyncMock(return_value=GatewayResponse())
    return gateway


@pytest.fixture
def notification_feed() -> NotificationFeed:
    """Fixture providing an empty notification feed."""
    return NotificationFeed()


@pytest.fixture
def menu_item_rows() -> list[dict[str, Any]]:
    """Fixture providing menu item rows as returned by the gateway."""
    return [
        {
            "Id": 1,
            "Name": "Avocado Toast",
            "description": "Sourdough with smashed avocado",
            "price": 9.5,
            "category": "Breakfast",
            "dietary_restrictions": "Vegetarian;Vegan",
            "available": True,
            "image_url": None,
            "preparation_time": 10,
        },
        {
            "Id": 2,
            "Name": "Caesar Salad",
            "description": "Romaine with caesar dressing",
            "price": 11.0,
            "category": "Lunch",
            "dietary_restrictions": "",
            "available": False,
            "image_url": "https://example.com/salad.jpg",
            "preparation_time": 8,
        },
    ]


@pytest.fixture
def make_order():
    """Fixture providing a factory for orders."""

    def _make(
        order_id: int,
        status: str = "Pending",
        total: str | None = "20.00",
        order_date: datetime | None = None,
    ) -> Order:
        return Order(
            id=order_id,
            name=f"ORD-{order_id:04d}",
            status=status,
            total_amount=Decimal(total) if total is not None else None,
            order_date=order_date,
        )

    return _make


@pytest.fixture
def make_inventory_item():
    """Fixture providing a factory for inventory items."""

    def _make(item_id: int, quantity: str, reorder_level: str) -> InventoryItem:
        return InventoryItem(
            id=item_id,
            name=f"Item {item_id}",
            quantity=Decimal(quantity),
            reorder_level=Decimal(reorder_level),
        )

    return _make
