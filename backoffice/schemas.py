"""
Schemas for Remote Payloads and Client-side State

Pydantic models validate what the back-office API returns; plain
dataclasses hold the transient client-side state (drafts, attachments,
operation outcomes).

Wire notes:
    - Entities carry their id as "_id"; "id" is accepted as well
    - Menu items reference their category either by bare id or by an
      embedded category document depending on the endpoint
    - Error bodies are {"error": "..."}

Author: Khalil Bannouri
Version: 1.0.0
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from backoffice.exceptions import BackofficeError
from backoffice.models import OrderStatus, ResourceKind


def _id_field(**kwargs: Any) -> Any:
    return Field(..., validation_alias=AliasChoices("_id", "id"), **kwargs)


class Entity(BaseModel):
    """Base for every server-side document. Snapshots are immutable."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = _id_field(min_length=1)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, int):
            return str(v)
        return v


# =============================================================================
# CATALOG
# =============================================================================

class Category(Entity):
    """Menu section, e.g. "Drinks"."""
    name: str = Field(..., min_length=1)
    description: str = ""


class ById(BaseModel):
    """Category reference given as a bare id."""

    model_config = ConfigDict(frozen=True)

    id: str


# A menu item's category: either just the id, or the embedded document.
CategoryRef = Union[ById, Category]


def to_category_ref(value: Any) -> CategoryRef:
    """Build a CategoryRef from any wire or draft representation."""
    if isinstance(value, (ById, Category)):
        return value
    if isinstance(value, dict):
        return Category.model_validate(value)
    if value is None:
        return ById(id="")
    return ById(id=str(value))


def resolve_category(
    ref: CategoryRef,
    categories: Optional[Iterable[Category]] = None,
) -> tuple[str, str]:
    """
    Resolve a category reference to (id, display name).

    For a bare id the name is looked up in `categories` when given;
    unknown ids display as the id itself.
    """
    if isinstance(ref, Category):
        return ref.id, ref.name
    for category in categories or ():
        if category.id == ref.id:
            return ref.id, category.name
    return ref.id, ref.id


class MenuItem(Entity):
    """Dish or drink offered for sale."""
    name: str = Field(..., min_length=1)
    description: str = ""
    price: Decimal = Field(..., ge=0)
    image: Optional[str] = None
    category: CategoryRef
    is_available: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("isAvailable", "is_available"),
    )

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, v: Any) -> CategoryRef:
        return to_category_ref(v)

    @property
    def category_id(self) -> str:
        return resolve_category(self.category)[0]


class Ingredient(Entity):
    """Extra that customers can add, priced individually."""
    name: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    picture: Optional[str] = None


# =============================================================================
# ORDERS
# =============================================================================

class Order(Entity):
    """Customer order as seen by the back office (read-mostly)."""
    status: OrderStatus
    total: Decimal = Field(..., ge=0)
    user: Any = None
    created_at: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "created_at"),
    )

    @property
    def customer_name(self) -> str:
        """Name of the ordering customer, "N/A" when not populated."""
        if isinstance(self.user, dict) and self.user.get("name"):
            return str(self.user["name"])
        return "N/A"


ENTITY_SCHEMAS: dict[ResourceKind, type[Entity]] = {
    ResourceKind.CATEGORY: Category,
    ResourceKind.MENU_ITEM: MenuItem,
    ResourceKind.INGREDIENT: Ingredient,
    ResourceKind.ORDER: Order,
}


# =============================================================================
# AUTH / MISC WIRE SCHEMAS
# =============================================================================

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    token: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    role: str = "admin"


class StatusUpdate(BaseModel):
    status: OrderStatus


class ErrorResponse(BaseModel):
    """Standard error response."""
    model_config = ConfigDict(extra="ignore")

    error: str


# =============================================================================
# CLIENT-SIDE STATE
# =============================================================================

@dataclass
class Attachment:
    """Binary file picked locally and not uploaded yet."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"
    preview: str = ""


@dataclass
class Draft:
    """
    Staged, unpersisted copy of a catalog entity.

    Attributes:
        kind: Which collection the draft belongs to
        fields: Editable values keyed by field name
        target_id: Id of the entity being edited (None for creation)
        attachment: Locally selected image/picture, if any
    """
    kind: ResourceKind
    fields: dict[str, Any] = field(default_factory=dict)
    target_id: Optional[str] = None
    attachment: Optional[Attachment] = None

    @property
    def is_new(self) -> bool:
        return self.target_id is None

    @property
    def preview(self) -> Optional[str]:
        """Local preview reference if a file is selected, else the stored asset URI."""
        if self.attachment is not None:
            return self.attachment.preview
        return self.fields.get("image") or self.fields.get("picture")


@dataclass
class OperationResult:
    """
    Outcome of an orchestrator or workflow operation.

    Attributes:
        success: Whether the remote call succeeded
        entity: Entity returned by the server, when it returned one
        error: The caught error on failure
        discarded: The consumer went away before completion; nothing was applied
    """
    success: bool
    entity: Optional[Entity] = None
    error: Optional[BackofficeError] = None
    discarded: bool = False
