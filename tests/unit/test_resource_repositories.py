"""Unit tests for resource repositories."""

from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from restaurant_admin.gateway.base_gateway import GatewayError
from restaurant_admin.models.query_models import (
    GatewayResponse,
    GatewayResult,
    OrderBy,
    PageRequest,
    SortDirection,
    WriteRejected,
)
from restaurant_admin.models.record_models import (
    DietaryTag,
    MenuCategory,
    MenuItem,
    Order,
    OrderItem,
)
from restaurant_admin.repositories.resource_repositories import (
    InventoryRepository,
    MenuItemRepository,
    OrderItemRepository,
    OrderRepository,
    RecordValidationError,
    ResourceRepositories,
    filter_selections,
)
from restaurant_admin.services.notification_service import NotificationFeed, NotificationLevel


def _messages(feed: NotificationFeed) -> list[tuple[NotificationLevel, str]]:
    return [(n.level, n.message) for n in feed.peek()]


@pytest.mark.unit
class TestListRecords:
    """Test suite for list_records."""

    @pytest.fixture
    def repository(
        self, mock_gateway: MagicMock, notification_feed: NotificationFeed
    ) -> MenuItemRepository:
        return MenuItemRepository(mock_gateway, notification_feed)

    @pytest.mark.asyncio
    async def test_list_parses_rows(
        self,
        repository: MenuItemRepository,
        mock_gateway: MagicMock,
        menu_item_rows: list[dict[str, Any]],
    ) -> None:
        """Test that rows are parsed in gateway order with the reported total."""
        mock_gateway.fetch_records.return_value = GatewayResponse(
            data=menu_item_rows, total_count=42
        )

        page = await repository.list_records()

        assert [item.name for item in page.data] == ["Avocado Toast", "Caesar Salad"]
        assert page.data[0].dietary_restrictions == {DietaryTag.VEGETARIAN, DietaryTag.VEGAN}
        assert page.total_count == 42

    @pytest.mark.asyncio
    async def test_total_count_falls_back_to_page_length(
        self,
        repository: MenuItemRepository,
        mock_gateway: MagicMock,
        menu_item_rows: list[dict[str, Any]],
    ) -> None:
        """Test that a missing total count is replaced by the number of rows returned."""
        mock_gateway.fetch_records.return_value = GatewayResponse(data=menu_item_rows)

        page = await repository.list_records()

        assert page.total_count == 2

    @pytest.mark.asyncio
    async def test_empty_result(
        self, repository: MenuItemRepository, notification_feed: NotificationFeed
    ) -> None:
        """Test that no rows is an empty page, not an error."""
        page = await repository.list_records()

        assert page.data == []
        assert page.total_count == 0
        assert len(notification_feed) == 0

    @pytest.mark.asyncio
    async def test_default_query(
        self, repository: MenuItemRepository, mock_gateway: MagicMock
    ) -> None:
        """Test that listing without a query fetches the first page sorted by name."""
        await repository.list_records()

        table, query = mock_gateway.fetch_records.call_args.args
        assert table == "menu_item"
        assert query.paging_info.limit == 20
        assert query.paging_info.offset == 0
        assert query.order_by == [OrderBy(field="Name", direction=SortDirection.ASC)]
        assert query.fields == list(MenuItemRepository.fields)
        assert query.where_groups is None

    @pytest.mark.asyncio
    async def test_given_query_keeps_paging_and_filters(
        self, repository: MenuItemRepository, mock_gateway: MagicMock
    ) -> None:
        """Test that a built query is sent with its paging and filters intact."""
        query = repository.build_query("toast", {"available": "true"}, PageRequest(page=3))

        await repository.list_records(query)

        sent = mock_gateway.fetch_records.call_args.args[1]
        assert sent.paging_info.offset == 20
        assert sent.where_groups == query.where_groups
        assert sent.where_groups[0].sub_groups[0].conditions[1].values == [True]

    @pytest.mark.asyncio
    async def test_gateway_error_notifies_and_raises(
        self,
        repository: MenuItemRepository,
        mock_gateway: MagicMock,
        notification_feed: NotificationFeed,
    ) -> None:
        """Test that a failed call is raised and reported once."""
        mock_gateway.fetch_records.side_effect = GatewayError("timeout", table="menu_item")

        with pytest.raises(GatewayError):
            await repository.list_records()

        assert _messages(notification_feed) == [
            (NotificationLevel.ERROR, "Failed to load menu items")
        ]

    @pytest.mark.asyncio
    async def test_rejected_envelope_raises(
        self,
        repository: MenuItemRepository,
        mock_gateway: MagicMock,
        notification_feed: NotificationFeed,
    ) -> None:
        """Test that a success=false read is treated as a failure."""
        mock_gateway.fetch_records.return_value = GatewayResponse(
            success=False, message="Table not found"
        )

        with pytest.raises(GatewayError, match="Table not found"):
            await repository.list_records()

        assert len(notification_feed) == 1

    @pytest.mark.asyncio
    async def test_malformed_row_raises(
        self, repository: MenuItemRepository, mock_gateway: MagicMock
    ) -> None:
        """Test that a row that does not fit the model raises GatewayError."""
        mock_gateway.fetch_records.return_value = GatewayResponse(
            data=[{"Id": 1, "Name": "Bad", "price": 1, "category": "Brunch"}]
        )

        with pytest.raises(GatewayError, match="Malformed menu item record"):
            await repository.list_records()

    @pytest.mark.asyncio
    async def test_order_default_sort_newest_first(
        self, mock_gateway: MagicMock
    ) -> None:
        """Test that orders are listed by order date, newest first."""
        await OrderRepository(mock_gateway).list_records()

        query = mock_gateway.fetch_records.call_args.args[1]
        assert mock_gateway.fetch_records.call_args.args[0] == "order1"
        assert query.order_by == [OrderBy(field="order_date", direction=SortDirection.DESC)]

    @pytest.mark.asyncio
    async def test_order_items_for_order(self, mock_gateway: MagicMock) -> None:
        """Test listing the line items of one order."""
        mock_gateway.fetch_records.return_value = GatewayResponse(
            data=[{"Id": 1, "Name": "L1", "order": {"Id": 7, "Name": "ORD-7"}, "quantity": 2}]
        )

        page = await OrderItemRepository(mock_gateway).list_for_order(7)

        query = mock_gateway.fetch_records.call_args.args[1]
        condition = query.where_groups[0].sub_groups[0].conditions[0]
        assert condition.field_name == "order"
        assert condition.values == [7]
        assert query.paging_info.limit == 100
        assert page.data[0].order == 7

    @pytest.mark.asyncio
    async def test_order_without_status_is_listed(
        self, mock_gateway: MagicMock, notification_feed: NotificationFeed
    ) -> None:
        """Test that a row with a null status does not fail the page."""
        mock_gateway.fetch_records.return_value = GatewayResponse(
            data=[
                {"Id": 1, "Name": "ORD-1", "status": "Pending"},
                {"Id": 2, "Name": "ORD-2", "status": None},
            ]
        )

        page = await OrderRepository(mock_gateway, notification_feed).list_records()

        assert [order.status for order in page.data] == ["Pending", None]
        assert len(notification_feed) == 0

    @pytest.mark.asyncio
    async def test_inventory_without_stock_figures_is_listed(
        self, mock_gateway: MagicMock, notification_feed: NotificationFeed
    ) -> None:
        """Test that rows with null quantity or reorder level are kept."""
        mock_gateway.fetch_records.return_value = GatewayResponse(
            data=[
                {"Id": 1, "Name": "Flour", "quantity": None, "reorder_level": None},
                {"Id": 2, "Name": "Sugar", "quantity": 3, "reorder_level": 5},
            ]
        )

        page = await InventoryRepository(mock_gateway, notification_feed).list_records()

        assert [item.quantity for item in page.data] == [None, Decimal("3")]
        assert [item.is_low_stock for item in page.data] == [False, True]
        assert len(notification_feed) == 0


@pytest.mark.unit
class TestGetById:
    """Test suite for get_by_id."""

    @pytest.mark.asyncio
    async def test_found(self, mock_gateway: MagicMock, notification_feed: NotificationFeed) -> None:
        """Test that a found record is parsed without a notification."""
        mock_gateway.get_record_by_id.return_value = GatewayResponse(
            data={"Id": 3, "Name": "Flour", "quantity": 12, "reorder_level": 5}
        )

        item = await InventoryRepository(mock_gateway, notification_feed).get_by_id(3)

        assert item is not None
        assert item.quantity == Decimal("12")
        mock_gateway.get_record_by_id.assert_called_once_with("inventory_item", 3)
        assert len(notification_feed) == 0

    @pytest.mark.asyncio
    async def test_not_found_returns_none(
        self, mock_gateway: MagicMock, notification_feed: NotificationFeed
    ) -> None:
        """Test that a missing record is None, not an error."""
        item = await MenuItemRepository(mock_gateway, notification_feed).get_by_id(999)

        assert item is None
        assert _messages(notification_feed) == [(NotificationLevel.ERROR, "Menu item not found")]

    @pytest.mark.asyncio
    async def test_gateway_error_raises(
        self, mock_gateway: MagicMock, notification_feed: NotificationFeed
    ) -> None:
        """Test that a failed call is distinguishable from a missing record."""
        mock_gateway.get_record_by_id.side_effect = GatewayError("boom")

        with pytest.raises(GatewayError):
            await OrderRepository(mock_gateway, notification_feed).get_by_id(1)

        assert _messages(notification_feed) == [
            (NotificationLevel.ERROR, "Failed to load order details")
        ]


@pytest.mark.unit
class TestCreate:
    """Test suite for create."""

    @pytest.fixture
    def new_item(self) -> MenuItem:
        return MenuItem(
            name="Pancakes",
            price=Decimal("8.25"),
            category=MenuCategory.BREAKFAST,
            dietary_restrictions={DietaryTag.VEGETARIAN},
        )

    @pytest.mark.asyncio
    async def test_single_create_returns_record_with_id(
        self,
        mock_gateway: MagicMock,
        notification_feed: NotificationFeed,
        new_item: MenuItem,
    ) -> None:
        """Test creating one record returns the stored record."""
        mock_gateway.create_record.return_value = GatewayResponse(
            results=[
                GatewayResult(
                    success=True,
                    data={
                        "Id": 17,
                        "Name": "Pancakes",
                        "price": 8.25,
                        "category": "Breakfast",
                        "dietary_restrictions": "Vegetarian",
                    },
                )
            ]
        )

        result = await MenuItemRepository(mock_gateway, notification_feed).create(new_item)

        assert isinstance(result, MenuItem)
        assert result.id == 17
        table, records = mock_gateway.create_record.call_args.args
        assert table == "menu_item"
        assert records == [new_item.to_record()]
        assert "Id" not in records[0]
        assert _messages(notification_feed) == [
            (NotificationLevel.SUCCESS, "Menu item created successfully")
        ]

    @pytest.mark.asyncio
    async def test_bulk_create_returns_list(
        self, mock_gateway: MagicMock, new_item: MenuItem
    ) -> None:
        """Test creating several records in one call returns a list."""
        second = new_item.model_copy(update={"name": "Waffles"})

        result = await MenuItemRepository(mock_gateway).create([new_item, second])

        assert isinstance(result, list)
        assert [r.name for r in result] == ["Pancakes", "Waffles"]
        assert len(mock_gateway.create_record.call_args.args[1]) == 2

    @pytest.mark.asyncio
    async def test_success_without_results_returns_submitted(
        self, mock_gateway: MagicMock, new_item: MenuItem
    ) -> None:
        """Test that a bare success envelope falls back to the submitted record."""
        mock_gateway.create_record.return_value = GatewayResponse(success=True)

        result = await MenuItemRepository(mock_gateway).create(new_item)

        assert result == new_item

    @pytest.mark.asyncio
    async def test_rejection_returns_write_rejected(
        self,
        mock_gateway: MagicMock,
        notification_feed: NotificationFeed,
        new_item: MenuItem,
    ) -> None:
        """Test that a refused write is returned, not raised."""
        mock_gateway.create_record.return_value = GatewayResponse(
            success=False, message="Duplicate name"
        )

        result = await MenuItemRepository(mock_gateway, notification_feed).create(new_item)

        assert result == WriteRejected(error="Duplicate name")
        assert result.success is False
        assert _messages(notification_feed) == [
            (NotificationLevel.ERROR, "Failed to create menu item")
        ]

    @pytest.mark.asyncio
    async def test_per_record_rejection(self, mock_gateway: MagicMock, new_item: MenuItem) -> None:
        """Test that a failed entry in results rejects the write."""
        mock_gateway.create_record.return_value = GatewayResponse(
            success=True,
            results=[GatewayResult(success=False, message="price is required")],
        )

        result = await MenuItemRepository(mock_gateway).create(new_item)

        assert isinstance(result, WriteRejected)
        assert result.error == "price is required"

    @pytest.mark.asyncio
    async def test_rejection_without_message(
        self, mock_gateway: MagicMock, new_item: MenuItem
    ) -> None:
        """Test that a rejection without a message still carries an error."""
        mock_gateway.create_record.return_value = GatewayResponse(success=False)

        result = await MenuItemRepository(mock_gateway).create(new_item)

        assert result == WriteRejected(error="Unknown error")

    @pytest.mark.asyncio
    async def test_transport_failure_raises(
        self,
        mock_gateway: MagicMock,
        notification_feed: NotificationFeed,
        new_item: MenuItem,
    ) -> None:
        """Test that a call that could not be completed raises instead of returning."""
        mock_gateway.create_record.side_effect = GatewayError("timeout")

        with pytest.raises(GatewayError):
            await MenuItemRepository(mock_gateway, notification_feed).create(new_item)

        assert _messages(notification_feed) == [
            (NotificationLevel.ERROR, "Failed to create menu item")
        ]


@pytest.mark.unit
class TestUpdate:
    """Test suite for update."""

    @pytest.mark.asyncio
    async def test_update_without_id_makes_no_call(
        self, mock_gateway: MagicMock, notification_feed: NotificationFeed
    ) -> None:
        """Test that an update without an id fails before reaching the gateway."""
        order = Order(name="ORD-1", status="Ready")

        with pytest.raises(RecordValidationError, match="Order ID is required for update"):
            await OrderRepository(mock_gateway, notification_feed).update(order)

        mock_gateway.update_record.assert_not_called()
        assert _messages(notification_feed) == [(NotificationLevel.ERROR, "Failed to update order")]

    @pytest.mark.asyncio
    async def test_update_returns_stored_record(self, mock_gateway: MagicMock) -> None:
        """Test that the stored record is returned after a successful update."""
        mock_gateway.update_record.return_value = GatewayResponse(
            results=[GatewayResult(success=True, data={"Id": 4, "Name": "ORD-4", "status": "Ready"})]
        )
        order = Order(id=4, name="ORD-4", status="Ready")

        result = await OrderRepository(mock_gateway).update(order)

        assert isinstance(result, Order)
        assert result.status == "Ready"
        assert mock_gateway.update_record.call_args.args[1][0]["Id"] == 4

    @pytest.mark.asyncio
    async def test_update_rejected(
        self, mock_gateway: MagicMock, notification_feed: NotificationFeed
    ) -> None:
        """Test a refused update."""
        mock_gateway.update_record.return_value = GatewayResponse(
            success=False, message="Record locked"
        )

        result = await OrderRepository(mock_gateway, notification_feed).update(
            Order(id=4, name="ORD-4")
        )

        assert result == WriteRejected(error="Record locked")
        assert _messages(notification_feed) == [(NotificationLevel.ERROR, "Failed to update order")]


@pytest.mark.unit
class TestDelete:
    """Test suite for delete."""

    @pytest.mark.asyncio
    async def test_single_id_is_wrapped_in_list(
        self, mock_gateway: MagicMock, notification_feed: NotificationFeed
    ) -> None:
        """Test that a single id is sent as a one-element list."""
        deleted = await InventoryRepository(mock_gateway, notification_feed).delete(5)

        assert deleted is True
        mock_gateway.delete_record.assert_called_once_with("inventory_item", [5])
        assert _messages(notification_feed) == [
            (NotificationLevel.SUCCESS, "Inventory item deleted successfully")
        ]

    @pytest.mark.asyncio
    async def test_bulk_delete(
        self, mock_gateway: MagicMock, notification_feed: NotificationFeed
    ) -> None:
        """Test deleting several records in one call."""
        deleted = await MenuItemRepository(mock_gateway, notification_feed).delete([1, 2, 3])

        assert deleted is True
        mock_gateway.delete_record.assert_called_once_with("menu_item", [1, 2, 3])
        assert _messages(notification_feed) == [
            (NotificationLevel.SUCCESS, "3 menu items deleted successfully")
        ]

    @pytest.mark.asyncio
    async def test_rejected_delete_returns_false(
        self, mock_gateway: MagicMock, notification_feed: NotificationFeed
    ) -> None:
        """Test that a refused delete returns False instead of raising."""
        mock_gateway.delete_record.return_value = GatewayResponse(success=False, message="In use")

        deleted = await MenuItemRepository(mock_gateway, notification_feed).delete(1)

        assert deleted is False
        assert _messages(notification_feed) == [
            (NotificationLevel.ERROR, "Failed to delete menu item")
        ]

    @pytest.mark.asyncio
    async def test_empty_ids_rejected(self, mock_gateway: MagicMock) -> None:
        """Test that deleting nothing is refused without a call."""
        with pytest.raises(RecordValidationError):
            await MenuItemRepository(mock_gateway).delete([])

        mock_gateway.delete_record.assert_not_called()

    @pytest.mark.asyncio
    async def test_transport_failure_raises(self, mock_gateway: MagicMock) -> None:
        """Test that a delete that could not be completed raises."""
        mock_gateway.delete_record = AsyncMock(side_effect=GatewayError("down"))

        with pytest.raises(GatewayError):
            await OrderRepository(mock_gateway).delete(1)


@pytest.mark.unit
class TestOrderItemMessages:
    """Test suite for order item notification wording."""

    @pytest.fixture
    def repository(
        self, mock_gateway: MagicMock, notification_feed: NotificationFeed
    ) -> OrderItemRepository:
        return OrderItemRepository(mock_gateway, notification_feed)

    @pytest.mark.asyncio
    async def test_create_says_added(
        self, repository: OrderItemRepository, notification_feed: NotificationFeed
    ) -> None:
        """Test that creating a line item is reported as an addition."""
        await repository.create(OrderItem(name="L1", order=7, quantity=2))

        assert _messages(notification_feed) == [
            (NotificationLevel.SUCCESS, "Order item added successfully")
        ]

    @pytest.mark.asyncio
    async def test_rejected_create_says_add(
        self,
        repository: OrderItemRepository,
        mock_gateway: MagicMock,
        notification_feed: NotificationFeed,
    ) -> None:
        """Test that a refused line item is reported as a failed addition."""
        mock_gateway.create_record.return_value = GatewayResponse(success=False, message="No")

        await repository.create(OrderItem(name="L1", order=7, quantity=2))

        assert _messages(notification_feed) == [
            (NotificationLevel.ERROR, "Failed to add order item")
        ]

    @pytest.mark.asyncio
    async def test_delete_says_removed(
        self, repository: OrderItemRepository, notification_feed: NotificationFeed
    ) -> None:
        """Test that deleting line items is reported as a removal."""
        await repository.delete(4)
        await repository.delete([5, 6])

        assert _messages(notification_feed) == [
            (NotificationLevel.SUCCESS, "Order item removed successfully"),
            (NotificationLevel.SUCCESS, "2 order items removed successfully"),
        ]

    @pytest.mark.asyncio
    async def test_rejected_delete_says_remove(
        self,
        repository: OrderItemRepository,
        mock_gateway: MagicMock,
        notification_feed: NotificationFeed,
    ) -> None:
        """Test that a refused removal keeps the order item wording."""
        mock_gateway.delete_record.return_value = GatewayResponse(success=False, message="Paid")

        assert await repository.delete(4) is False
        assert _messages(notification_feed) == [
            (NotificationLevel.ERROR, "Failed to remove order item")
        ]

    @pytest.mark.asyncio
    async def test_update_wording_unchanged(
        self, repository: OrderItemRepository, notification_feed: NotificationFeed
    ) -> None:
        """Test that updates of line items still say updated."""
        await repository.update(OrderItem(id=3, name="L3", order=7, quantity=1))

        assert _messages(notification_feed) == [
            (NotificationLevel.SUCCESS, "Order item updated successfully")
        ]


@pytest.mark.unit
class TestRepositoryHelpers:
    """Test suite for repository construction helpers."""

    def test_repositories_share_gateway_and_notifier(
        self, mock_gateway: MagicMock, notification_feed: NotificationFeed
    ) -> None:
        """Test that every repository uses the same gateway client."""
        repositories = ResourceRepositories.create(mock_gateway, notification_feed)

        for repository in (
            repositories.menu_items,
            repositories.orders,
            repositories.inventory,
            repositories.order_items,
        ):
            assert repository.gateway is mock_gateway
            assert repository.notifier is notification_feed

    def test_filter_selections(self, mock_gateway: MagicMock) -> None:
        """Test picking filter and facet fields out of request parameters."""
        params = {
            "category": ["Lunch", "Dinner"],
            "dietary_restrictions": ["Vegan", "Nut-Free"],
            "page": ["2"],
        }

        selections = filter_selections(MenuItemRepository(mock_gateway), params)

        assert selections == {
            "category": "Lunch",
            "dietary_restrictions": ["Vegan", "Nut-Free"],
        }

    @pytest.mark.asyncio
    async def test_works_without_notifier(self, mock_gateway: MagicMock) -> None:
        """Test that the notifier is optional."""
        mock_gateway.fetch_records.side_effect = GatewayError("down")

        with pytest.raises(GatewayError):
            await MenuItemRepository(mock_gateway).list_records()
