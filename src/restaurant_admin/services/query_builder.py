"""Translate list-view search and filter state into gateway queries.

Everything here is pure: the same inputs always produce an equal RecordQuery.
"""

from collections.abc import Collection, Mapping, Sequence
from enum import Enum
from typing import Any

from restaurant_admin.models.query_models import (
    Condition,
    FilterOperator,
    OrderBy,
    PageRequest,
    RecordQuery,
    SortDirection,
    SubGroup,
    WhereGroup,
)

DISPLAY_FIELD = "Name"

_BOOLEAN_SENTINELS = {"true": True, "false": False}


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def _boolean_value(field_name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    try:
        return _BOOLEAN_SENTINELS[str(value).strip().lower()]
    except KeyError:
        raise ValueError(f"Filter '{field_name}' expects 'true' or 'false', got {value!r}") from None


def build_conditions(
    search_text: str | None,
    filters: Mapping[str, Any] | None,
    *,
    search_field: str = DISPLAY_FIELD,
    boolean_fields: Collection[str] = (),
) -> list[Condition]:
    """Build the filter conditions for a query.

    Args:
        search_text: Free text matched with Contains against ``search_field``
        filters: Field name -> selection. Scalars become ExactMatch conditions;
            lists, tuples and sets are facets and become one Contains condition
            carrying every selected value. Blank selections are skipped.
        search_field: Field the free-text search applies to
        boolean_fields: Fields whose "true"/"false" sentinels are converted to booleans

    Returns:
        list: Conditions in search-then-filter order (may be empty)

    Raises:
        ValueError: If a boolean field carries something other than a boolean sentinel
    """
    conditions: list[Condition] = []

    if search_text and search_text.strip():
        conditions.append(
            Condition(
                field_name=search_field,
                operator=FilterOperator.CONTAINS,
                values=[search_text.strip()],
            )
        )

    for field_name, selection in (filters or {}).items():
        if _is_blank(selection):
            continue

        if isinstance(selection, (set, frozenset)):
            values = sorted(str(_plain(v)) for v in selection)
            conditions.append(
                Condition(field_name=field_name, operator=FilterOperator.CONTAINS, values=values)
            )
        elif isinstance(selection, (list, tuple)):
            values = [_plain(v) for v in selection]
            conditions.append(
                Condition(field_name=field_name, operator=FilterOperator.CONTAINS, values=values)
            )
        elif field_name in boolean_fields:
            conditions.append(
                Condition(
                    field_name=field_name,
                    operator=FilterOperator.EXACT_MATCH,
                    values=[_boolean_value(field_name, selection)],
                )
            )
        else:
            conditions.append(
                Condition(
                    field_name=field_name,
                    operator=FilterOperator.EXACT_MATCH,
                    values=[_plain(selection)],
                )
            )

    return conditions


def build_query(
    search_text: str | None,
    filters: Mapping[str, Any] | None,
    page: PageRequest,
    sort: Sequence[OrderBy] | None = None,
    *,
    search_field: str = DISPLAY_FIELD,
    boolean_fields: Collection[str] = (),
    default_sort: Sequence[OrderBy] | None = None,
) -> RecordQuery:
    """Build a gateway query from list-view state.

    All conditions are combined under a single AND group. With no conditions
    the query carries no where groups at all.

    Args:
        search_text: Free-text search, ignored when blank
        filters: Scalar and facet selections keyed by field name
        page: Requested page (1-indexed)
        sort: Explicit sort, overriding the default
        search_field: Field the free-text search applies to
        boolean_fields: Fields filtered with boolean sentinels
        default_sort: Sort used when ``sort`` is empty (ascending by display
            name when not given)

    Returns:
        RecordQuery ready to be sent by a resource repository
    """
    conditions = build_conditions(
        search_text, filters, search_field=search_field, boolean_fields=boolean_fields
    )

    where_groups = None
    if conditions:
        where_groups = [
            WhereGroup(operator="AND", sub_groups=[SubGroup(conditions=conditions, operator="")])
        ]

    if sort:
        order_by = list(sort)
    elif default_sort:
        order_by = list(default_sort)
    else:
        order_by = [OrderBy(field=DISPLAY_FIELD, direction=SortDirection.ASC)]

    return RecordQuery(
        paging_info=page.to_paging_info(),
        order_by=order_by,
        where_groups=where_groups,
    )
