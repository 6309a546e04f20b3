"""Logging, tracing and metrics for the restaurant admin service."""

from restaurant_admin.observability.config import configure_logging, setup_observability
from restaurant_admin.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
