"""Query and response models for the record gateway.

These models mirror the gateway's JSON structures. Python attributes are
snake_case, aliases carry the gateway's own key names.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class FilterOperator(str, Enum):
    """Condition operators understood by the gateway."""

    EXACT_MATCH = "ExactMatch"
    CONTAINS = "Contains"


class SortDirection(str, Enum):
    """Sort directions understood by the gateway."""

    ASC = "ASC"
    DESC = "DESC"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Condition(_WireModel):
    """Single filter condition on one field."""

    field_name: str = Field(..., alias="FieldName")
    operator: FilterOperator
    values: list[Any]


class SubGroup(_WireModel):
    """Conditions evaluated together inside a where group."""

    conditions: list[Condition]
    operator: str = ""


class WhereGroup(_WireModel):
    """Top-level filter group combining sub-groups with ``operator``."""

    operator: str = "AND"
    sub_groups: list[SubGroup] = Field(..., alias="subGroups")


class PagingInfo(_WireModel):
    """Offset/limit paging."""

    limit: int = Field(..., ge=1)
    offset: int = Field(default=0, ge=0)


class OrderBy(_WireModel):
    """Sort instruction for one field."""

    field: str
    direction: SortDirection = SortDirection.ASC


class RecordQuery(_WireModel):
    """Query sent to ``fetch_records``.

    ``where_groups`` is None when there is nothing to filter on. The gateway
    treats an absent filter and an empty filter group differently, so the
    key is left out of the payload entirely in that case.
    """

    fields: list[str] | None = Field(None, alias="Fields")
    paging_info: PagingInfo = Field(..., alias="pagingInfo")
    order_by: list[OrderBy] | None = Field(None, alias="orderBy")
    where_groups: list[WhereGroup] | None = Field(None, alias="whereGroups")

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the gateway's JSON query shape.

        Returns:
            dict: Query payload with unset parts omitted
        """
        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if self.fields is not None:
            payload["Fields"] = [{"Field": {"Name": name}} for name in self.fields]
        return payload


class PageRequest(_WireModel):
    """1-indexed page selection."""

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def to_paging_info(self) -> PagingInfo:
        return PagingInfo(limit=self.page_size, offset=self.offset)


class GatewayResult(BaseModel):
    """Per-record outcome of a create/update call."""

    success: bool = False
    data: dict[str, Any] | None = None
    message: str | None = None


class GatewayResponse(BaseModel):
    """Envelope returned by every gateway call."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: Any = None
    total_count: int | None = Field(None, alias="totalCount")
    results: list[GatewayResult] | None = None
    message: str | None = None


@dataclass
class Page(Generic[T]):
    """One page of records plus the total number of matching records.

    Attributes:
        data: Records in the order returned by the gateway
        total_count: Total number of records matching the query
    """

    data: list[T] = field(default_factory=list)
    total_count: int = 0


@dataclass
class WriteRejected:
    """A write that reached the gateway but was rejected by it.

    Returned rather than raised so callers can tell it apart from a call
    that could not be completed at all.

    Attributes:
        error: Rejection message reported by the gateway
        success: Always False
    """

    error: str
    success: bool = False
