"""Resource repositories over the record gateway.

One repository per resource type (menu items, orders, inventory items, order
items) translating domain operations into gateway calls and normalizing the
responses.

Failures are reported through three distinct channels:
- GatewayError is raised when the call could not be completed
- WriteRejected is returned when the gateway completed a write but refused it
- None is returned by get_by_id when no record has the requested id
Local validation problems raise RecordValidationError before any call is made.

Writes produce one notification on the injected notifier for success and one
for failure. Reads only notify when they fail or find nothing.
"""

import logging
from collections.abc import Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import ValidationError

from restaurant_admin.gateway.base_gateway import GatewayError, RecordGateway
from restaurant_admin.models.query_models import (
    GatewayResponse,
    OrderBy,
    Page,
    PageRequest,
    PagingInfo,
    RecordQuery,
    SortDirection,
    WriteRejected,
)
from restaurant_admin.models.record_models import (
    GatewayRecord,
    InventoryItem,
    MenuItem,
    Order,
    OrderItem,
)
from restaurant_admin.observability.metrics import record_write_rejection
from restaurant_admin.services.notification_service import Notifier
from restaurant_admin.services.query_builder import build_query

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=GatewayRecord)


class RecordValidationError(ValueError):
    """Raised for requests that are invalid before reaching the gateway."""


class ResourceRepository(Generic[RecordT]):
    """Typed CRUD access to one gateway table.

    Subclasses describe the table through class attributes; the operations
    themselves are shared.
    """

    table_name: ClassVar[str]
    record_model: ClassVar[type[GatewayRecord]]
    fields: ClassVar[tuple[str, ...]]
    singular: ClassVar[str]
    plural: ClassVar[str]
    default_sort: ClassVar[tuple[OrderBy, ...]] = (
        OrderBy(field="Name", direction=SortDirection.ASC),
    )
    default_limit: ClassVar[int] = 20
    filter_fields: ClassVar[tuple[str, ...]] = ()
    boolean_fields: ClassVar[frozenset[str]] = frozenset()
    facet_fields: ClassVar[tuple[str, ...]] = ()
    # (verb, past participle) used in create and delete notifications
    create_verbs: ClassVar[tuple[str, str]] = ("create", "created")
    delete_verbs: ClassVar[tuple[str, str]] = ("delete", "deleted")

    def __init__(self, gateway: RecordGateway, notifier: Notifier | None = None) -> None:
        """Initialize repository.

        Args:
            gateway: Shared record gateway client
            notifier: Destination for user-facing notifications (optional)
        """
        self.gateway = gateway
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def build_query(
        self,
        search_text: str | None = None,
        filters: Mapping[str, Any] | None = None,
        page: PageRequest | None = None,
        sort: Sequence[OrderBy] | None = None,
    ) -> RecordQuery:
        """Build a list query using this resource's boolean fields and default sort."""
        return build_query(
            search_text,
            filters,
            page or PageRequest(),
            sort,
            boolean_fields=self.boolean_fields,
            default_sort=self.default_sort,
        )

    def _prepare(self, query: RecordQuery | None) -> RecordQuery:
        if query is None:
            query = RecordQuery(paging_info=PagingInfo(limit=self.default_limit, offset=0))
        return query.model_copy(
            update={
                "fields": list(self.fields),
                "order_by": query.order_by or list(self.default_sort),
            }
        )

    def _parse(self, row: Any) -> RecordT:
        try:
            return self.record_model.from_record(row)  # type: ignore[return-value]
        except ValidationError as e:
            raise GatewayError(
                f"Malformed {self.singular} record: {e}", table=self.table_name
            ) from e

    def _parse_page(self, response: GatewayResponse) -> Page[RecordT]:
        if not response.success:
            raise GatewayError(
                response.message or f"Gateway refused to list {self.plural}",
                table=self.table_name,
                operation="fetch",
            )

        records = [self._parse(row) for row in response.data or []]
        return Page(data=records, total_count=response.total_count or len(records))

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _notify_success(self, message: str) -> None:
        if self.notifier is not None:
            self.notifier.success(message)

    def _notify_error(self, message: str) -> None:
        if self.notifier is not None:
            self.notifier.error(message)

    @property
    def _title(self) -> str:
        return self.singular[:1].upper() + self.singular[1:]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def list_records(self, query: RecordQuery | None = None) -> Page[RecordT]:
        """Fetch one page of records.

        Args:
            query: Query from build_query; None fetches the first page with the
                default sort

        Returns:
            Page of records (empty page when nothing matches)

        Raises:
            GatewayError: If the records could not be loaded
        """
        query = self._prepare(query)

        try:
            response = await self.gateway.fetch_records(self.table_name, query)
            return self._parse_page(response)
        except GatewayError as e:
            logger.error(f"Error fetching {self.plural}: {e}")
            self._notify_error(f"Failed to load {self.plural}")
            raise

    async def get_by_id(self, record_id: int) -> RecordT | None:
        """Fetch a single record.

        Args:
            record_id: Gateway id of the record

        Returns:
            The record, or None if no record has that id

        Raises:
            GatewayError: If the record could not be loaded
        """
        try:
            response = await self.gateway.get_record_by_id(self.table_name, record_id)
            if not response.success:
                raise GatewayError(
                    response.message or f"Gateway refused to load {self.singular} {record_id}",
                    table=self.table_name,
                    operation="get",
                )
            record = None if response.data is None else self._parse(response.data)
        except GatewayError as e:
            logger.error(f"Error fetching {self.singular} with ID {record_id}: {e}")
            self._notify_error(f"Failed to load {self.singular} details")
            raise

        if record is None:
            logger.info(f"{self._title} {record_id} not found")
            self._notify_error(f"{self._title} not found")

        return record

    async def create(
        self, data: RecordT | Sequence[RecordT]
    ) -> RecordT | list[RecordT] | WriteRejected:
        """Create one or more records.

        Args:
            data: A single record or a sequence of records for bulk insert

        Returns:
            The created record (with its gateway id) when a single record was
            submitted, the created records for a sequence, or WriteRejected if
            the gateway refused the write

        Raises:
            GatewayError: If the call could not be completed
        """
        single = isinstance(data, GatewayRecord)
        records: list[RecordT] = [data] if single else list(data)  # type: ignore[list-item]

        try:
            response = await self.gateway.create_record(
                self.table_name, [record.to_record() for record in records]
            )
        except GatewayError as e:
            logger.error(f"Error creating {self.singular}: {e}")
            self._notify_error(f"Failed to {self.create_verbs[0]} {self.singular}")
            raise

        return self._write_outcome(
            "create",
            response,
            records,
            single,
            success_message=f"{self._title} {self.create_verbs[1]} successfully",
            failure_message=f"Failed to {self.create_verbs[0]} {self.singular}",
        )

    async def update(self, record: RecordT) -> RecordT | WriteRejected:
        """Update an existing record.

        Args:
            record: Record carrying its gateway id

        Returns:
            The updated record as stored by the gateway, or WriteRejected

        Raises:
            RecordValidationError: If the record has no id (no call is made)
            GatewayError: If the call could not be completed
        """
        if record.id is None:
            self._notify_error(f"Failed to update {self.singular}")
            raise RecordValidationError(f"{self._title} ID is required for update")

        try:
            response = await self.gateway.update_record(self.table_name, [record.to_record()])
        except GatewayError as e:
            logger.error(f"Error updating {self.singular} {record.id}: {e}")
            self._notify_error(f"Failed to update {self.singular}")
            raise

        return self._write_outcome(  # type: ignore[return-value]
            "update",
            response,
            [record],
            True,
            success_message=f"{self._title} updated successfully",
            failure_message=f"Failed to update {self.singular}",
        )

    async def delete(self, ids: int | Iterable[int]) -> bool:
        """Delete one or more records by id.

        Args:
            ids: A single id or an iterable of ids

        Returns:
            bool: True if the gateway deleted the records, False if it refused

        Raises:
            RecordValidationError: If no ids were given
            GatewayError: If the call could not be completed
        """
        record_ids = [ids] if isinstance(ids, int) else list(ids)
        if not record_ids:
            raise RecordValidationError(f"At least one {self.singular} ID is required for delete")

        try:
            response = await self.gateway.delete_record(self.table_name, record_ids)
        except GatewayError as e:
            logger.error(f"Error deleting {self.plural} {record_ids}: {e}")
            self._notify_error(f"Failed to {self.delete_verbs[0]} {self.singular}")
            raise

        if not response.success:
            logger.error(f"Gateway rejected delete of {self.plural} {record_ids}: {response.message}")
            record_write_rejection(self.table_name, "delete")
            self._notify_error(f"Failed to {self.delete_verbs[0]} {self.singular}")
            return False

        if len(record_ids) == 1:
            self._notify_success(f"{self._title} {self.delete_verbs[1]} successfully")
        else:
            self._notify_success(
                f"{len(record_ids)} {self.plural} {self.delete_verbs[1]} successfully"
            )
        return True

    def _write_outcome(
        self,
        operation: str,
        response: GatewayResponse,
        submitted: list[RecordT],
        single: bool,
        success_message: str,
        failure_message: str,
    ) -> RecordT | list[RecordT] | WriteRejected:
        """Turn a create/update envelope into the caller-facing result."""
        rejection = _rejection_message(response)
        if rejection is not None:
            logger.error(f"Gateway rejected {operation} on {self.table_name}: {rejection}")
            record_write_rejection(self.table_name, operation)
            self._notify_error(failure_message)
            return WriteRejected(error=rejection)

        try:
            written = [
                self._parse(result.data)
                for result in response.results or []
                if result.data is not None
            ]
        except GatewayError as e:
            logger.error(f"Error reading {operation} results for {self.plural}: {e}")
            self._notify_error(failure_message)
            raise

        self._notify_success(success_message)

        if not written:
            written = submitted
        return written[0] if single else written


def _rejection_message(response: GatewayResponse) -> str | None:
    """Return why the gateway refused a write, or None if every record succeeded."""
    if not response.success:
        return response.message or "Unknown error"

    for result in response.results or []:
        if not result.success:
            return result.message or response.message or "Unknown error"

    return None


class MenuItemRepository(ResourceRepository[MenuItem]):
    """Menu catalog records."""

    table_name = "menu_item"
    record_model = MenuItem
    fields = (
        "Id",
        "Name",
        "description",
        "price",
        "category",
        "dietary_restrictions",
        "available",
        "image_url",
        "preparation_time",
    )
    singular = "menu item"
    plural = "menu items"
    filter_fields = ("category", "available")
    boolean_fields = frozenset({"available"})
    facet_fields = ("dietary_restrictions",)


class OrderRepository(ResourceRepository[Order]):
    """Customer orders, newest first by default."""

    table_name = "order1"
    record_model = Order
    fields = (
        "Id",
        "Name",
        "customer_name",
        "table_number",
        "order_date",
        "status",
        "payment_status",
        "payment_method",
        "total_amount",
        "special_instructions",
    )
    singular = "order"
    plural = "orders"
    default_sort = (OrderBy(field="order_date", direction=SortDirection.DESC),)
    filter_fields = ("status", "payment_status", "payment_method")


class InventoryRepository(ResourceRepository[InventoryItem]):
    """Inventory stock records."""

    table_name = "inventory_item"
    record_model = InventoryItem
    fields = (
        "Id",
        "Name",
        "quantity",
        "unit",
        "reorder_level",
        "category",
        "supplier",
        "last_restocked",
        "cost_per_unit",
    )
    singular = "inventory item"
    plural = "inventory items"
    filter_fields = ("category", "supplier")


class OrderItemRepository(ResourceRepository[OrderItem]):
    """Order line items."""

    table_name = "order_item"
    record_model = OrderItem
    fields = ("Id", "Name", "menu_item", "order", "quantity", "price", "customizations")
    singular = "order item"
    plural = "order items"
    create_verbs = ("add", "added")
    delete_verbs = ("remove", "removed")
    default_limit = 100
    filter_fields = ("order", "menu_item")

    async def list_for_order(
        self, order_id: int, page: PageRequest | None = None
    ) -> Page[OrderItem]:
        """Fetch the line items belonging to one order.

        Args:
            order_id: Order.Id the items belong to
            page: Requested page (defaults to the first 100 items)

        Returns:
            Page of order items
        """
        query = self.build_query(
            filters={"order": order_id},
            page=page or PageRequest(page=1, page_size=self.default_limit),
        )
        return await self.list_records(query)


def filter_selections(
    repository: ResourceRepository[Any], params: Mapping[str, Collection[str]]
) -> dict[str, Any]:
    """Pick a repository's filterable fields out of multi-valued request params.

    Scalar filter fields take their first value; facet fields keep every value
    as a list.

    Args:
        repository: Repository whose filter and facet fields apply
        params: Field name -> submitted values

    Returns:
        dict: Filter selections suitable for build_query
    """
    selections: dict[str, Any] = {}
    for field_name in repository.filter_fields:
        values = list(params.get(field_name, ()))
        if values:
            selections[field_name] = values[0]
    for field_name in repository.facet_fields:
        values = list(params.get(field_name, ()))
        if values:
            selections[field_name] = values
    return selections


@dataclass
class ResourceRepositories:
    """The four resource repositories sharing one gateway and notifier."""

    menu_items: MenuItemRepository
    orders: OrderRepository
    inventory: InventoryRepository
    order_items: OrderItemRepository

    @classmethod
    def create(
        cls, gateway: RecordGateway, notifier: Notifier | None = None
    ) -> "ResourceRepositories":
        """Build every repository on the same gateway client and notifier."""
        return cls(
            menu_items=MenuItemRepository(gateway, notifier),
            orders=OrderRepository(gateway, notifier),
            inventory=InventoryRepository(gateway, notifier),
            order_items=OrderItemRepository(gateway, notifier),
        )
