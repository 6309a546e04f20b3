"""View controllers driving resource stores.

A list view owns the search text, filter selections and page of one resource
list and turns them into a query for the store. After a successful write the
view re-issues exactly the same query; the store never patches its items
locally.
"""

import logging
import math
from typing import Any, Generic, TypeVar

from restaurant_admin.models.query_models import PageRequest, RecordQuery, WriteRejected
from restaurant_admin.models.record_models import GatewayRecord
from restaurant_admin.store.resource_store import ResourceState, ResourceStore

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=GatewayRecord)


class ResourceListView(Generic[RecordT]):
    """Search, filter and paging state of one resource list."""

    def __init__(self, store: ResourceStore[RecordT], page_size: int = 10) -> None:
        """Initialize the view with no search text, no filters and page 1.

        Args:
            store: Store for the listed resource
            page_size: Records per page
        """
        self.store = store
        self.repository = store.repository
        self.search_text = ""
        self.filters: dict[str, Any] = {}
        self.facets: dict[str, list[str]] = {}
        self.page = 1
        self.page_size = page_size
        self.closed = False

    @property
    def state(self) -> ResourceState[RecordT]:
        return self.store.state

    @property
    def total_pages(self) -> int:
        return math.ceil(self.store.state.total_count / self.page_size)

    @property
    def has_active_filters(self) -> bool:
        return any(self.filters.values()) or any(self.facets.values())

    def set_search(self, text: str) -> None:
        self.search_text = text
        self.page = 1

    def set_filter(self, field_name: str, value: Any) -> None:
        """Select a scalar filter value; an empty value removes the filter."""
        if value in (None, ""):
            self.filters.pop(field_name, None)
        else:
            self.filters[field_name] = value
        self.page = 1

    def toggle_facet(self, field_name: str, value: str) -> None:
        """Add ``value`` to a facet selection, or remove it if already selected."""
        selected = self.facets.setdefault(field_name, [])
        if value in selected:
            selected.remove(value)
        else:
            selected.append(value)
        if not selected:
            del self.facets[field_name]
        self.page = 1

    def set_facet(self, field_name: str, values: list[str]) -> None:
        """Replace a facet selection; duplicates are dropped and order kept."""
        selected = list(dict.fromkeys(values))
        if selected:
            self.facets[field_name] = selected
        else:
            self.facets.pop(field_name, None)
        self.page = 1

    def clear_filters(self) -> None:
        self.search_text = ""
        self.filters = {}
        self.facets = {}
        self.page = 1

    def set_page(self, page: int) -> None:
        if page < 1:
            raise ValueError("page must be at least 1")
        self.page = page

    def set_page_size(self, page_size: int) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.page_size = page_size
        self.page = 1

    def current_query(self) -> RecordQuery:
        """Query for the current search, filters and page."""
        selections: dict[str, Any] = dict(self.filters)
        selections.update({name: list(values) for name, values in self.facets.items()})
        return self.repository.build_query(
            self.search_text,
            selections,
            PageRequest(page=self.page, page_size=self.page_size),
        )

    async def load(self) -> ResourceState[RecordT]:
        """Fetch the current page into the store."""
        if self.closed:
            logger.debug(f"Ignoring load on closed {self.store.name} view")
            return self.store.state
        return await self.store.fetch_list(self.current_query())

    async def delete(self, ids: int | list[int]) -> bool:
        """Delete records and, on success, reload the current query.

        Returns:
            bool: Whether the gateway deleted the records
        """
        deleted = await self.repository.delete(ids)
        if deleted:
            await self.load()
        return deleted

    async def save(self, record: RecordT) -> RecordT | WriteRejected:
        """Create a new record or update an existing one, then reload on success.

        Records without an id are created; records with one are updated.

        Returns:
            The stored record, or WriteRejected if the gateway refused the write
        """
        if record.id is None:
            result = await self.repository.create(record)
        else:
            result = await self.repository.update(record)

        if not isinstance(result, WriteRejected):
            await self.load()
        return result  # type: ignore[return-value]

    def close(self) -> None:
        """End the view's lifetime.

        Later loads are ignored and a load still in flight no longer updates
        the store.
        """
        self.closed = True
        self.store.invalidate_list()


class ResourceDetailView(Generic[RecordT]):
    """Single-record view backed by the store's selected-item slot."""

    def __init__(self, store: ResourceStore[RecordT]) -> None:
        self.store = store
        self.closed = False

    @property
    def record(self) -> RecordT | None:
        return self.store.state.selected_item

    async def open(self, record_id: int) -> RecordT | None:
        """Load a record into the selected-item slot."""
        if self.closed:
            return None
        await self.store.fetch_by_id(record_id)
        return self.store.state.selected_item

    def close(self) -> None:
        """Leave the view and clear the selected-item slot."""
        self.closed = True
        self.store.clear_selected_item()
