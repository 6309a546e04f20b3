"""HTTP client for the hosted record gateway."""

import logging
import time
from typing import Any

import httpx
from pydantic import ValidationError

from restaurant_admin.gateway.base_gateway import GatewayError, RecordGateway
from restaurant_admin.models.query_models import GatewayResponse, RecordQuery
from restaurant_admin.observability import traced
from restaurant_admin.observability.metrics import record_gateway_call

logger = logging.getLogger(__name__)


class HttpRecordGateway(RecordGateway):
    """Record gateway client over the gateway's REST API.

    One instance is built by the process entry point and shared by every
    resource repository.
    """

    def __init__(
        self,
        base_url: str,
        project_id: str,
        public_key: str,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the gateway client.

        Args:
            base_url: Base URL of the gateway API (e.g., "https://api.apper.io/v1")
            project_id: Gateway project identifier
            public_key: Public key for the project
            timeout: Transport timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.project_id = project_id
        self.public_key = public_key
        self.timeout = timeout

    @property
    def headers(self) -> dict[str, str]:
        return {
            "X-Apper-Project-Id": self.project_id,
            "X-Apper-Public-Key": self.public_key,
        }

    def _records_url(self, table: str) -> str:
        return f"{self.base_url}/tables/{table}/records"

    async def _send(
        self,
        table: str,
        operation: str,
        method: str,
        url: str,
        json: dict[str, Any] | None = None,
        not_found_ok: bool = False,
    ) -> GatewayResponse:
        """Send one request and decode the gateway envelope.

        Args:
            table: Gateway table name (for logging and metrics)
            operation: Operation name (for logging and metrics)
            method: HTTP method
            url: Request URL
            json: Optional JSON body
            not_found_ok: Treat HTTP 404 as an empty envelope instead of an error

        Returns:
            Decoded GatewayResponse

        Raises:
            GatewayError: On transport errors, error statuses or undecodable bodies
        """
        started = time.perf_counter()
        outcome = "error"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                if method == "GET":
                    response = await client.get(url, headers=self.headers)
                elif method == "POST":
                    response = await client.post(url, json=json, headers=self.headers)
                elif method == "PUT":
                    response = await client.put(url, json=json, headers=self.headers)
                else:
                    response = await client.request(method, url, json=json, headers=self.headers)

                if not_found_ok and response.status_code == 404:
                    outcome = "not_found"
                    return GatewayResponse(success=True, data=None)

                response.raise_for_status()
                envelope = GatewayResponse.model_validate(response.json())
                outcome = "success" if envelope.success else "rejected"
                return envelope

        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            logger.error(f"Gateway {operation} on {table} failed: {e}")
            raise GatewayError(str(e), table=table, operation=operation) from e
        except (ValueError, ValidationError) as e:
            logger.error(f"Gateway {operation} on {table} returned an unreadable response: {e}")
            raise GatewayError(
                f"Unreadable gateway response: {e}", table=table, operation=operation
            ) from e
        finally:
            record_gateway_call(table, operation, outcome, time.perf_counter() - started)

    @traced("gateway.fetch_records")
    async def fetch_records(self, table: str, query: RecordQuery) -> GatewayResponse:
        return await self._send(
            table, "fetch", "POST", f"{self._records_url(table)}/query", json=query.to_payload()
        )

    @traced("gateway.get_record_by_id")
    async def get_record_by_id(self, table: str, record_id: int) -> GatewayResponse:
        return await self._send(
            table, "get", "GET", f"{self._records_url(table)}/{record_id}", not_found_ok=True
        )

    @traced("gateway.create_record")
    async def create_record(self, table: str, records: list[dict[str, Any]]) -> GatewayResponse:
        return await self._send(
            table, "create", "POST", self._records_url(table), json={"records": records}
        )

    @traced("gateway.update_record")
    async def update_record(self, table: str, records: list[dict[str, Any]]) -> GatewayResponse:
        return await self._send(
            table, "update", "PUT", self._records_url(table), json={"records": records}
        )

    @traced("gateway.delete_record")
    async def delete_record(self, table: str, record_ids: list[int]) -> GatewayResponse:
        return await self._send(
            table, "delete", "DELETE", self._records_url(table), json={"RecordIds": record_ids}
        )
