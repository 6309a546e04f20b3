"""Record models for the restaurant back-office tables.

These models describe the rows held by the record gateway. Gateway column names
(``Id``, ``Name``, ...) are kept as aliases so the rest of the code can use
snake_case attributes while ``to_record``/``from_record`` speak the gateway's
generic row shape.
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    ValidationInfo,
    field_validator,
)

DIETARY_DELIMITER = ";"

# Validation context marking rows read back from the gateway
GATEWAY_CONTEXT = {"from_gateway": True}

# Decimal columns travel as JSON numbers
Amount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

RecordT = TypeVar("RecordT", bound="GatewayRecord")


class MenuCategory(str, Enum):
    """Fixed set of menu categories."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SIDES = "Sides"
    BEVERAGES = "Beverages"
    DESSERTS = "Desserts"


class DietaryTag(str, Enum):
    """Fixed set of dietary restriction tags."""

    VEGETARIAN = "Vegetarian"
    VEGAN = "Vegan"
    GLUTEN_FREE = "Gluten-Free"
    DAIRY_FREE = "Dairy-Free"
    NUT_FREE = "Nut-Free"
    LOW_CARB = "Low-Carb"


class OrderStatus(str, Enum):
    """Order lifecycle values, in display order.

    Pending -> Preparing -> Ready -> Delivered is the usual progression and
    Cancelled is a side exit. No transition rules are enforced.
    """

    PENDING = "Pending"
    PREPARING = "Preparing"
    READY = "Ready"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


def split_dietary_tags(value: str | Iterable[str] | None) -> set[DietaryTag]:
    """Parse the persisted dietary restrictions into a set of tags.

    Args:
        value: A ``;``-joined string, an iterable of tag values, or None

    Returns:
        Set of DietaryTag values (empty for None or an empty string)

    Raises:
        ValueError: If a part is not a known dietary tag
    """
    if value is None:
        return set()

    parts = value.split(DIETARY_DELIMITER) if isinstance(value, str) else value
    return {DietaryTag(part.strip()) for part in parts if part and part.strip()}


def join_dietary_tags(tags: Iterable[DietaryTag | str]) -> str:
    """Join dietary tags into their persisted form.

    Tags are emitted in DietaryTag declaration order so the same set always
    produces the same string.
    """
    selected = {DietaryTag(tag) for tag in tags}
    return DIETARY_DELIMITER.join(tag.value for tag in DietaryTag if tag in selected)


def _lookup_id(value: Any) -> Any:
    """Reduce an expanded lookup value ({"Id": .., "Name": ..}) to its id."""
    if isinstance(value, dict):
        return value.get("Id")
    return value


class GatewayRecord(BaseModel):
    """Base class for rows stored in the record gateway."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | None = Field(None, alias="Id", description="Identifier assigned by the gateway")
    name: str = Field(..., alias="Name", description="Primary display field")

    @field_validator("name")
    @classmethod
    def require_name(cls, v: str, info: ValidationInfo) -> str:
        """Reject blank names on records built locally.

        Rows read back from the gateway are accepted as stored.
        """
        if not v.strip() and not (info.context or {}).get("from_gateway"):
            raise ValueError("Name is required")
        return v

    def to_record(self) -> dict[str, Any]:
        """Convert to the gateway's generic row shape.

        Only populated columns are emitted, so ``Id`` is omitted for records
        that have not been created yet.

        Returns:
            dict: Gateway-compatible representation
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_record(cls: type[RecordT], record: dict[str, Any]) -> RecordT:
        """Create a model from a gateway row.

        Args:
            record: Row returned by the gateway

        Returns:
            Parsed model instance
        """
        return cls.model_validate(record, context=GATEWAY_CONTEXT)


class MenuItem(GatewayRecord):
    """Menu catalog entry."""

    description: str | None = Field(None, description="Item description")
    price: Amount = Field(..., description="Item price", ge=0)
    category: MenuCategory = Field(..., description="Menu category")
    dietary_restrictions: set[DietaryTag] = Field(
        default_factory=set, description="Dietary restriction tags"
    )
    available: bool = Field(default=True, description="Whether item is currently available")
    image_url: str | None = Field(None, description="URL to item image")
    preparation_time: int | None = Field(None, description="Preparation time in minutes", ge=0)

    @field_validator("dietary_restrictions", mode="before")
    @classmethod
    def parse_dietary_restrictions(cls, v: Any) -> set[DietaryTag]:
        """Accept the persisted ``;``-joined string as well as a collection."""
        return split_dietary_tags(v)

    def to_record(self) -> dict[str, Any]:
        record = super().to_record()
        record["dietary_restrictions"] = join_dietary_tags(self.dietary_restrictions)
        return record


class Order(GatewayRecord):
    """Customer order.

    ``status`` is kept as a plain string so rows carrying a value outside
    OrderStatus, or no status at all, can still be read.
    """

    customer_name: str | None = None
    table_number: int | None = None
    order_date: datetime | None = None
    status: str | None = OrderStatus.PENDING.value
    payment_status: str | None = None
    payment_method: str | None = None
    total_amount: Amount | None = None
    special_instructions: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        if isinstance(v, Enum):
            return v.value
        return v


class OrderItem(GatewayRecord):
    """Line item of an order."""

    menu_item: int | None = Field(None, description="MenuItem.Id this line refers to")
    order: int | None = Field(None, description="Order.Id this line belongs to")
    quantity: int = Field(..., description="Number of units ordered", gt=0)
    price: Amount | None = Field(None, description="Unit price at order time")
    customizations: str | None = None

    @field_validator("menu_item", "order", mode="before")
    @classmethod
    def reduce_lookup(cls, v: Any) -> Any:
        return _lookup_id(v)


class InventoryItem(GatewayRecord):
    """Stock-tracked ingredient or supply.

    ``quantity`` is not prevented from going negative, and rows with missing
    stock figures are kept.
    """

    quantity: Amount | None = Decimal("0")
    unit: str | None = None
    reorder_level: Amount | None = Decimal("0")
    category: str | None = None
    supplier: str | None = None
    last_restocked: datetime | None = None
    cost_per_unit: Amount | None = None

    @property
    def is_low_stock(self) -> bool:
        """Whether the stock level has reached the reorder threshold.

        False when either figure is missing.
        """
        if self.quantity is None or self.reorder_level is None:
            return False
        return self.quantity <= self.reorder_level
