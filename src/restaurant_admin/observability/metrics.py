"""Custom metrics for the restaurant admin service."""

from opentelemetry import metrics

meter = metrics.get_meter("restaurant-admin")

gateway_request_counter = meter.create_counter(
    name="gateway_requests_total",
    description="Total number of record gateway calls by table, operation and outcome",
    unit="1",
)

gateway_duration_histogram = meter.create_histogram(
    name="gateway_request_duration_seconds",
    description="Duration of record gateway calls",
    unit="s",
)

write_rejection_counter = meter.create_counter(
    name="write_rejections_total",
    description="Writes that reached the gateway but were rejected by it",
    unit="1",
)

stale_response_counter = meter.create_counter(
    name="stale_responses_discarded_total",
    description="Fetch results dropped because a newer fetch was issued for the same slot",
    unit="1",
)


def record_gateway_call(table: str, operation: str, outcome: str, duration_seconds: float) -> None:
    """Record a completed or failed gateway call.

    Args:
        table: Gateway table name (e.g., "menu_item")
        operation: Operation performed (fetch, get, create, update, delete)
        outcome: success, rejected, not_found or error
        duration_seconds: Wall time of the call in seconds
    """
    attributes = {"table": table, "operation": operation}
    gateway_request_counter.add(1, {**attributes, "outcome": outcome})
    gateway_duration_histogram.record(duration_seconds, attributes)


def record_write_rejection(table: str, operation: str) -> None:
    """Record a business rejection of a create/update/delete."""
    write_rejection_counter.add(1, {"table": table, "operation": operation})


def record_stale_response(resource: str) -> None:
    """Record a fetch result discarded by the stale-response guard.

    Args:
        resource: Store name the response was meant for
    """
    stale_response_counter.add(1, {"resource": resource})
