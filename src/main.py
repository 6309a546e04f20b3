"""Main application entry point for the restaurant admin service.

This module reads the process configuration, builds the single record
gateway client and wires it into the repositories, dashboard and API.
"""

import logging
import os

from fastapi import FastAPI

from restaurant_admin.gateway.http_gateway import HttpRecordGateway
from restaurant_admin.handlers.api_handler import create_app
from restaurant_admin.observability import configure_logging, setup_observability
from restaurant_admin.repositories.resource_repositories import ResourceRepositories
from restaurant_admin.services.dashboard_service import DashboardService
from restaurant_admin.services.notification_service import NotificationFeed

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_URL = "https://api.apper.io/v1"


def create_gateway() -> HttpRecordGateway:
    """Create the record gateway client from environment variables.

    Returns:
        Gateway client shared by every repository

    Raises:
        ValueError: If APPER_PROJECT_ID or APPER_PUBLIC_KEY is missing
    """
    project_id = os.getenv("APPER_PROJECT_ID")
    public_key = os.getenv("APPER_PUBLIC_KEY")

    if not project_id or not public_key:
        raise ValueError("APPER_PROJECT_ID and APPER_PUBLIC_KEY must be set in environment")

    base_url = os.getenv("APPER_BASE_URL", DEFAULT_GATEWAY_URL)
    timeout = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", "30"))

    logger.info(f"Record gateway configured - URL: {base_url}, project: {project_id}")
    return HttpRecordGateway(
        base_url=base_url,
        project_id=project_id,
        public_key=public_key,
        timeout=timeout,
    )


def get_staff_api_keys() -> list[str]:
    """Read staff API key entries from STAFF_API_KEYS.

    Returns:
        Comma-separated entries (``name:key`` or ``key``), or a development key
        when none are configured
    """
    api_keys_str = os.getenv("STAFF_API_KEYS", "")
    api_keys = [key.strip() for key in api_keys_str.split(",") if key.strip()]

    if not api_keys:
        logger.warning("No STAFF_API_KEYS configured - using development key")
        api_keys = ["dev:dummy-key-for-development"]

    return api_keys


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates the record gateway client
    3. Creates the notification feed and repositories
    4. Creates the dashboard service
    5. Creates the FastAPI app and sets up observability

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing restaurant admin service...")

    gateway = create_gateway()

    notification_feed = NotificationFeed(max_size=int(os.getenv("NOTIFICATION_FEED_SIZE", "50")))
    repositories = ResourceRepositories.create(gateway, notification_feed)

    dashboard_service = DashboardService(
        menu_items=repositories.menu_items,
        orders=repositories.orders,
        inventory=repositories.inventory,
    )

    logger.info("Repositories and services initialized")

    app = create_app(
        repositories=repositories,
        dashboard_service=dashboard_service,
        notification_feed=notification_feed,
        api_keys=get_staff_api_keys(),
    )

    setup_observability(app)

    logger.info("Restaurant admin service initialized successfully")
    return app


# Only build the real application outside tests so importing this module
# during test collection does not require gateway credentials
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    app = FastAPI()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8001"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
