"""Dashboard data loading."""

import logging
from datetime import UTC, date, datetime

from pydantic import BaseModel, Field

from restaurant_admin.gateway.base_gateway import GatewayError
from restaurant_admin.models.query_models import PageRequest
from restaurant_admin.models.record_models import InventoryItem, Order, OrderStatus
from restaurant_admin.observability import traced
from restaurant_admin.repositories.resource_repositories import (
    InventoryRepository,
    MenuItemRepository,
    OrderRepository,
)
from restaurant_admin.services.aggregations import (
    DailySales,
    StatusHistogram,
    low_stock,
    most_recent,
    sales_by_day,
    status_histogram,
)

logger = logging.getLogger(__name__)


class DashboardSummary(BaseModel):
    """Figures shown on the dashboard.

    When loading stops at a gateway failure, the figures gathered so far are
    kept and ``error`` describes the failure.
    """

    menu_item_count: int = 0
    pending_orders: list[Order] = Field(default_factory=list)
    low_stock_items: list[InventoryItem] = Field(default_factory=list)
    recent_orders: list[Order] = Field(default_factory=list)
    orders_by_status: StatusHistogram = Field(
        default_factory=lambda: status_histogram([])
    )
    sales_by_day: list[DailySales] = Field(default_factory=list)
    error: str | None = None

    @property
    def complete(self) -> bool:
        return self.error is None


class DashboardService:
    """Loads dashboard figures through the resource repositories.

    The reads run one after another; each only feeds its own figure.
    """

    def __init__(
        self,
        menu_items: MenuItemRepository,
        orders: OrderRepository,
        inventory: InventoryRepository,
        panel_size: int = 5,
        histogram_sample_size: int = 100,
        sales_days: int = 7,
    ) -> None:
        """Initialize the DashboardService.

        Args:
            menu_items: Menu item repository
            orders: Order repository
            inventory: Inventory repository
            panel_size: Number of rows in the pending, low-stock and recent panels
            histogram_sample_size: Number of newest orders the histogram and sales chart use
            sales_days: Number of days in the sales chart
        """
        self.menu_items = menu_items
        self.orders = orders
        self.inventory = inventory
        self.panel_size = panel_size
        self.histogram_sample_size = histogram_sample_size
        self.sales_days = sales_days

    @traced("dashboard.load_summary")
    async def load_summary(self, today: date | None = None) -> DashboardSummary:
        """Load every dashboard figure.

        Args:
            today: Last day of the sales chart (defaults to the current UTC date)

        Returns:
            DashboardSummary, with ``error`` set if a read failed
        """
        today = today or datetime.now(UTC).date()
        summary = DashboardSummary()

        try:
            menu_page = await self.menu_items.list_records()
            summary.menu_item_count = menu_page.total_count

            pending_page = await self.orders.list_records(
                self.orders.build_query(
                    filters={"status": OrderStatus.PENDING},
                    page=PageRequest(page=1, page_size=self.panel_size),
                )
            )
            summary.pending_orders = pending_page.data

            inventory_page = await self.inventory.list_records()
            summary.low_stock_items = low_stock(inventory_page.data, self.panel_size)

            recent_page = await self.orders.list_records(
                self.orders.build_query(page=PageRequest(page=1, page_size=self.panel_size))
            )
            summary.recent_orders = most_recent(recent_page.data, self.panel_size)

            sample_page = await self.orders.list_records(
                self.orders.build_query(
                    page=PageRequest(page=1, page_size=self.histogram_sample_size)
                )
            )
            summary.orders_by_status = status_histogram(sample_page.data)
            summary.sales_by_day = sales_by_day(sample_page.data, today, self.sales_days)

        except GatewayError as e:
            logger.error(f"Error loading dashboard data: {e}")
            summary.error = str(e) or "Failed to load dashboard data"

        return summary
