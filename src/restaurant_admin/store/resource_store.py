"""Client-side state cache for one resource type.

The store holds the last fetched page, the total count, the selected record
and loading/error flags. State is an immutable snapshot replaced wholesale on
every transition, so readers never see a half-applied update.

Every fetch is tagged with a sequence number per slot (list and detail). A
response whose sequence number is no longer the latest is dropped, so a late
answer to an older request cannot overwrite the result of a newer one.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Generic, TypeVar

from restaurant_admin.gateway.base_gateway import GatewayError
from restaurant_admin.models.query_models import RecordQuery
from restaurant_admin.models.record_models import GatewayRecord
from restaurant_admin.observability.metrics import record_stale_response
from restaurant_admin.repositories.resource_repositories import ResourceRepository

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=GatewayRecord)

Listener = Callable[["ResourceState"], None]


@dataclass(frozen=True)
class ResourceState(Generic[RecordT]):
    """Snapshot of a resource store.

    Attributes:
        items: Last fetched page, in the order returned
        total_count: Total number of records matching the last list query
        loading: Whether a list fetch is in flight
        error: Message of the last failed list fetch, None otherwise
        selected_item: Record loaded by the last detail fetch
        detail_loading: Whether a detail fetch is in flight
        detail_error: Message of the last failed detail fetch, None otherwise
    """

    items: tuple[RecordT, ...] = ()
    total_count: int = 0
    loading: bool = False
    error: str | None = None
    selected_item: RecordT | None = None
    detail_loading: bool = False
    detail_error: str | None = None


class ResourceStore(Generic[RecordT]):
    """Last-known list and detail state for one resource type."""

    def __init__(self, name: str, repository: ResourceRepository[RecordT]) -> None:
        """Initialize an empty store.

        Args:
            name: Store name used in logs and metrics (e.g., "menuItems")
            repository: Repository the store fetches through
        """
        self.name = name
        self.repository = repository
        self._state: ResourceState[RecordT] = ResourceState()
        self._list_sequence = 0
        self._detail_sequence = 0
        self._listeners: list[Listener] = []

    @property
    def state(self) -> ResourceState[RecordT]:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every new state.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, **changes: object) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)

    async def fetch_list(self, query: RecordQuery | None = None) -> ResourceState[RecordT]:
        """Fetch a page into ``items``.

        ``loading`` is set before the request is sent; the previous items stay
        visible until the response arrives. On failure the previous items and
        total count are kept and ``error`` is set.

        Args:
            query: List query (None for the repository's default page)

        Returns:
            State after this fetch settled (unchanged if the response was stale)
        """
        self._list_sequence += 1
        sequence = self._list_sequence
        self._publish(loading=True, error=None)

        try:
            page = await self.repository.list_records(query)
        except GatewayError as e:
            if sequence != self._list_sequence:
                self._discard("list", sequence)
                return self._state
            self._publish(loading=False, error=str(e) or f"Failed to fetch {self.name}")
            return self._state

        if sequence != self._list_sequence:
            self._discard("list", sequence)
            return self._state

        self._publish(loading=False, items=tuple(page.data), total_count=page.total_count)
        return self._state

    async def fetch_by_id(self, record_id: int) -> ResourceState[RecordT]:
        """Fetch one record into ``selected_item``.

        Uses its own loading/error pair so list and detail failures never show
        up in each other's context. A missing record clears ``selected_item``
        without setting an error.

        Args:
            record_id: Gateway id of the record

        Returns:
            State after this fetch settled (unchanged if the response was stale)
        """
        self._detail_sequence += 1
        sequence = self._detail_sequence
        self._publish(detail_loading=True, detail_error=None)

        try:
            record = await self.repository.get_by_id(record_id)
        except GatewayError as e:
            if sequence != self._detail_sequence:
                self._discard("detail", sequence)
                return self._state
            self._publish(detail_loading=False, detail_error=str(e) or f"Failed to fetch {self.name}")
            return self._state

        if sequence != self._detail_sequence:
            self._discard("detail", sequence)
            return self._state

        self._publish(detail_loading=False, selected_item=record)
        return self._state

    def invalidate_list(self) -> None:
        """Drop any list fetch still in flight.

        The current items stay; a response arriving later is discarded.
        """
        self._list_sequence += 1
        self._publish(loading=False)

    def clear_selected_item(self) -> None:
        """Empty the selected-item slot.

        Any detail fetch still in flight is invalidated as well.
        """
        self._detail_sequence += 1
        self._publish(selected_item=None, detail_loading=False, detail_error=None)

    def _discard(self, slot: str, sequence: int) -> None:
        logger.debug(f"Discarding stale {slot} response #{sequence} for {self.name}")
        record_stale_response(self.name)
