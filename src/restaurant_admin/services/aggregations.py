"""Dashboard figures computed from already-fetched records.

All functions are pure and synchronous; none of them performs I/O or sorts
its input.
"""

from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel

from restaurant_admin.models.record_models import Amount, InventoryItem, Order, OrderStatus

T = TypeVar("T")

DEFAULT_STATUS_ORDER: tuple[OrderStatus, ...] = tuple(OrderStatus)


class StatusHistogram(BaseModel):
    """Order counts per status, aligned with ``labels``."""

    labels: list[str]
    series: list[int]

    @property
    def total(self) -> int:
        return sum(self.series)

    def count(self, status: str) -> int:
        return self.series[self.labels.index(status)]


class DailySales(BaseModel):
    """Sales total for one calendar day."""

    day: date
    label: str
    total: Amount


def status_histogram(
    orders: Iterable[Order], status_order: Sequence[str] = DEFAULT_STATUS_ORDER
) -> StatusHistogram:
    """Count orders per status.

    Buckets are exactly ``status_order``, in that order, with 0 for statuses
    that do not occur. Orders with any other status are left out entirely.
    """
    labels = [s.value if isinstance(s, Enum) else s for s in status_order]
    counts = dict.fromkeys(labels, 0)

    for order in orders:
        if order.status in counts:
            counts[order.status] += 1

    return StatusHistogram(labels=labels, series=[counts[label] for label in labels])


def low_stock(items: Iterable[InventoryItem], limit: int) -> list[InventoryItem]:
    """Items at or below their reorder level, in input order, at most ``limit``."""
    return [item for item in items if item.is_low_stock][:limit]


def most_recent(records: Sequence[T], limit: int) -> list[T]:
    """First ``limit`` records; the caller is responsible for the ordering."""
    return list(records[:limit])


def sales_by_day(orders: Iterable[Order], today: date, days: int = 7) -> list[DailySales]:
    """Sum order totals per calendar day for the ``days`` days ending ``today``.

    Cancelled orders and orders without a date or total are not counted.
    Days without sales report a total of 0.

    Args:
        orders: Orders to aggregate
        today: Last day of the window
        days: Window length in days

    Returns:
        list: One entry per day, oldest first
    """
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    totals = dict.fromkeys(window, Decimal("0"))

    for order in orders:
        if order.status == OrderStatus.CANCELLED.value:
            continue
        if order.order_date is None or order.total_amount is None:
            continue
        day = order.order_date.date()
        if day in totals:
            totals[day] += order.total_amount

    return [DailySales(day=day, label=day.strftime("%b %d"), total=totals[day]) for day in window]
