"""FastAPI application for the restaurant admin API."""

import logging
import math
from collections.abc import Callable, Iterator
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from restaurant_admin.auth.api_dependencies import get_staff_from_header
from restaurant_admin.auth.staff_auth import StaffAuthenticator, StaffProfile
from restaurant_admin.gateway.base_gateway import GatewayError
from restaurant_admin.models.query_models import Page, PageRequest, WriteRejected
from restaurant_admin.models.record_models import GatewayRecord
from restaurant_admin.repositories.resource_repositories import (
    RecordValidationError,
    ResourceRepositories,
    ResourceRepository,
    filter_selections,
)
from restaurant_admin.services.dashboard_service import DashboardService, DashboardSummary
from restaurant_admin.services.notification_service import Notification, NotificationFeed
from restaurant_admin.store.resource_store import ResourceStore
from restaurant_admin.views.resource_views import ResourceListView

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class PageResponse(BaseModel):
    """One page of records."""

    model_config = ConfigDict(populate_by_name=True)

    data: list[dict[str, Any]]
    total_count: int = Field(..., alias="totalCount")
    page: int
    page_size: int = Field(..., alias="pageSize")
    total_pages: int = Field(..., alias="totalPages")

    @classmethod
    def from_page(cls, page: Page[Any], request: PageRequest) -> "PageResponse":
        return cls(
            data=[_dump(record) for record in page.data],
            total_count=page.total_count,
            page=request.page,
            page_size=request.page_size,
            total_pages=math.ceil(page.total_count / request.page_size),
        )

    @classmethod
    def from_view(cls, view: ResourceListView[Any]) -> "PageResponse":
        state = view.state
        return cls(
            data=[_dump(record) for record in state.items],
            total_count=state.total_count,
            page=view.page,
            page_size=view.page_size,
            total_pages=view.total_pages,
        )


class DeleteRequest(BaseModel):
    """Request body for bulk deletes."""

    ids: list[int] = Field(..., min_length=1)


class DeleteResponse(BaseModel):
    """Response model for deletes.

    ``page`` is the list page re-fetched after the delete, or None if the
    refresh failed.
    """

    success: bool
    deleted: int
    page: PageResponse | None = None


def _dump(record: GatewayRecord) -> dict[str, Any]:
    return record.model_dump(mode="json", by_alias=True)


def _rejected(rejection: WriteRejected) -> JSONResponse:
    return JSONResponse(status_code=422, content={"success": False, "error": rejection.error})


def _refreshed_page(view: ResourceListView[Any]) -> PageResponse | None:
    if view.state.error is not None:
        logger.warning(f"List refresh after write failed: {view.state.error}")
        return None
    return PageResponse.from_view(view)


def _list_view_dependency(
    repository: ResourceRepository[Any],
) -> Callable[..., Iterator[ResourceListView[Any]]]:
    """Build a dependency opening a list view from the request's list parameters.

    Each request gets its own store and view, so concurrent requests never
    see each other's pages. The view is closed once the response is sent.
    """

    def open_list_view(
        request: Request,
        search: str = "",
        page: int = Query(1, ge=1),
        page_size: int = Query(10, ge=1, le=100),
    ) -> Iterator[ResourceListView[Any]]:
        view: ResourceListView[Any] = ResourceListView(
            ResourceStore(repository.plural, repository), page_size=page_size
        )
        params = {key: request.query_params.getlist(key) for key in request.query_params.keys()}

        view.set_search(search)
        for field_name, selection in filter_selections(repository, params).items():
            if isinstance(selection, list):
                view.set_facet(field_name, selection)
            else:
                view.set_filter(field_name, selection)
        view.set_page(page)

        try:
            view.current_query()
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

        try:
            yield view
        finally:
            view.close()

    return open_list_view


def _register_resource_routes(
    app: FastAPI,
    prefix: str,
    repository: ResourceRepository[Any],
    validate_staff: Any,
) -> None:
    """Add list/get/create/update/delete routes for one resource.

    Lists and writes go through a list view, so every successful write
    re-fetches the list query given in the request's query parameters.
    """
    record_model = repository.record_model
    tag = repository.plural.title()
    title = repository.singular.capitalize()
    open_list_view = _list_view_dependency(repository)

    @app.get(prefix, response_model=PageResponse, tags=[tag])
    async def list_resource(
        view: ResourceListView[Any] = Depends(open_list_view),
        _staff: StaffProfile = Depends(validate_staff),
    ) -> PageResponse:
        """List one page of records.

        Scalar filter fields are passed as query parameters; facet fields may
        be repeated to select several values.
        """
        state = await view.load()
        if state.error is not None:
            raise GatewayError(state.error, table=repository.table_name, operation="fetch")
        return PageResponse.from_view(view)

    @app.get(f"{prefix}/{{record_id}}", tags=[tag])
    async def get_resource(
        record_id: int,
        _staff: StaffProfile = Depends(validate_staff),
    ) -> dict[str, Any]:
        record = await repository.get_by_id(record_id)
        if record is None:
            raise HTTPException(status_code=404, detail=f"{title} {record_id} not found")
        return _dump(record)

    @app.post(prefix, status_code=201, response_model=None, tags=[tag])
    async def create_resource(
        payload: record_model,  # type: ignore[valid-type]
        view: ResourceListView[Any] = Depends(open_list_view),
        _staff: StaffProfile = Depends(validate_staff),
    ) -> Any:
        result = await view.save(payload.model_copy(update={"id": None}))
        if isinstance(result, WriteRejected):
            return _rejected(result)
        return _dump(result)

    @app.put(f"{prefix}/{{record_id}}", response_model=None, tags=[tag])
    async def update_resource(
        record_id: int,
        payload: record_model,  # type: ignore[valid-type]
        view: ResourceListView[Any] = Depends(open_list_view),
        _staff: StaffProfile = Depends(validate_staff),
    ) -> Any:
        result = await view.save(payload.model_copy(update={"id": record_id}))
        if isinstance(result, WriteRejected):
            return _rejected(result)
        return _dump(result)

    @app.delete(f"{prefix}/{{record_id}}", response_model=DeleteResponse, tags=[tag])
    async def delete_resource(
        record_id: int,
        view: ResourceListView[Any] = Depends(open_list_view),
        _staff: StaffProfile = Depends(validate_staff),
    ) -> Any:
        if not await view.delete(record_id):
            return JSONResponse(status_code=422, content={"success": False, "deleted": 0})
        return DeleteResponse(success=True, deleted=1, page=_refreshed_page(view))

    @app.post(f"{prefix}/bulk-delete", response_model=DeleteResponse, tags=[tag])
    async def bulk_delete_resource(
        payload: DeleteRequest,
        view: ResourceListView[Any] = Depends(open_list_view),
        _staff: StaffProfile = Depends(validate_staff),
    ) -> Any:
        if not await view.delete(payload.ids):
            return JSONResponse(status_code=422, content={"success": False, "deleted": 0})
        return DeleteResponse(success=True, deleted=len(payload.ids), page=_refreshed_page(view))


def create_app(
    repositories: ResourceRepositories,
    dashboard_service: DashboardService,
    notification_feed: NotificationFeed,
    api_keys: list[str],
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        repositories: Resource repositories sharing one gateway client
        dashboard_service: Service loading dashboard figures
        notification_feed: Feed receiving the repositories' notifications
        api_keys: Staff API key entries (``name:key`` or ``key``)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Restaurant Admin API",
        description="Back-office API for menu items, orders and inventory",
        version="1.0.0",
    )

    app.state.repositories = repositories
    app.state.dashboard_service = dashboard_service
    app.state.notification_feed = notification_feed
    app.state.staff_authenticator = StaffAuthenticator.from_entries(api_keys)

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(_request: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse(
            status_code=502,
            content={"detail": str(exc), "table": exc.table, "operation": exc.operation},
        )

    @app.exception_handler(RecordValidationError)
    async def validation_error_handler(
        _request: Request, exc: RecordValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint.

        Returns:
            Health status indicating service is running
        """
        return HealthResponse(status="healthy")

    def validate_staff(x_api_key: str | None = Header(None)) -> StaffProfile:
        """Dependency resolving the calling staff member."""
        return get_staff_from_header(
            x_api_key=x_api_key, authenticator=app.state.staff_authenticator
        )

    @app.get("/api/me", response_model=StaffProfile, tags=["Session"])
    async def current_staff(staff: StaffProfile = Depends(validate_staff)) -> StaffProfile:
        return staff

    _register_resource_routes(app, "/api/menu-items", repositories.menu_items, validate_staff)
    _register_resource_routes(app, "/api/orders", repositories.orders, validate_staff)
    _register_resource_routes(app, "/api/inventory-items", repositories.inventory, validate_staff)
    _register_resource_routes(app, "/api/order-items", repositories.order_items, validate_staff)

    @app.get("/api/orders/{order_id}/items", response_model=PageResponse, tags=["Orders"])
    async def list_order_lines(
        order_id: int,
        page: int = Query(1, ge=1),
        page_size: int = Query(100, ge=1, le=500),
        _staff: StaffProfile = Depends(validate_staff),
    ) -> PageResponse:
        """List the line items of one order."""
        page_request = PageRequest(page=page, page_size=page_size)
        result = await app.state.repositories.order_items.list_for_order(order_id, page_request)
        return PageResponse.from_page(result, page_request)

    @app.get("/api/dashboard", response_model=DashboardSummary, tags=["Dashboard"])
    async def dashboard(_staff: StaffProfile = Depends(validate_staff)) -> DashboardSummary:
        """Dashboard figures; ``error`` is set when some figures could not be loaded."""
        summary: DashboardSummary = await app.state.dashboard_service.load_summary()
        return summary

    @app.get("/api/notifications", response_model=list[Notification], tags=["Notifications"])
    async def notifications(_staff: StaffProfile = Depends(validate_staff)) -> list[Notification]:
        """Pending notifications, oldest first. Reading them clears the feed."""
        return app.state.notification_feed.drain()

    return app
