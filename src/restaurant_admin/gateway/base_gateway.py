"""Record gateway interface.

The gateway is the hosted record store behind every resource. It is keyed by
table name and speaks a generic row shape; resource repositories translate
between it and the typed record models.

Error handling follows two channels:
- A call that could not be completed (transport failure, server error,
  unreadable response) raises GatewayError
- A call that completed returns the gateway's envelope as-is, including
  ``success: false`` envelopes, and the caller decides what that means
"""

from abc import ABC, abstractmethod
from typing import Any

from restaurant_admin.models.query_models import GatewayResponse, RecordQuery


class GatewayError(Exception):
    """Raised when a gateway call could not be completed."""

    def __init__(self, message: str, table: str | None = None, operation: str | None = None) -> None:
        super().__init__(message)
        self.table = table
        self.operation = operation


class RecordGateway(ABC):
    """Abstract generic CRUD API over gateway tables."""

    @abstractmethod
    async def fetch_records(self, table: str, query: RecordQuery) -> GatewayResponse:
        """Fetch one page of rows matching ``query``.

        Args:
            table: Gateway table name
            query: Fields, paging, sort and optional filter groups

        Returns:
            GatewayResponse with ``data`` holding the rows and ``total_count``
            the number of matching rows

        Raises:
            GatewayError: If the call could not be completed
        """

    @abstractmethod
    async def get_record_by_id(self, table: str, record_id: int) -> GatewayResponse:
        """Fetch a single row.

        Returns:
            GatewayResponse whose ``data`` is None when no row has that id

        Raises:
            GatewayError: If the call could not be completed
        """

    @abstractmethod
    async def create_record(self, table: str, records: list[dict[str, Any]]) -> GatewayResponse:
        """Insert rows. The gateway assigns ``Id``.

        Returns:
            GatewayResponse with one entry in ``results`` per submitted row

        Raises:
            GatewayError: If the call could not be completed
        """

    @abstractmethod
    async def update_record(self, table: str, records: list[dict[str, Any]]) -> GatewayResponse:
        """Update rows identified by their ``Id``.

        Returns:
            GatewayResponse with one entry in ``results`` per submitted row

        Raises:
            GatewayError: If the call could not be completed
        """

    @abstractmethod
    async def delete_record(self, table: str, record_ids: list[int]) -> GatewayResponse:
        """Delete rows by id.

        Raises:
            GatewayError: If the call could not be completed
        """
