"""
Request Body Encoding

Turns a Draft into the body the back-office API expects:

    Category     JSON       {name, description}
    Menu item    multipart  name, description, price, category, image?
    Ingredient   multipart  name, price, picture?

Multipart bodies are expressed as an httpx-style `files` list so that
every part (text or binary) goes out as multipart/form-data even when no
file is attached. Text parts use a None filename.

Prices are validated here: missing means 0, anything non-numeric or
negative is rejected before any network call.

Author: Khalil Bannouri
Version: 1.0.0
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from backoffice.exceptions import ValidationError
from backoffice.models import ResourceKind
from backoffice.schemas import Draft, resolve_category, to_category_ref

# Field holding the binary part, per kind
ATTACHMENT_FIELDS = {
    ResourceKind.MENU_ITEM: "image",
    ResourceKind.INGREDIENT: "picture",
}

MultipartParts = list[tuple[str, tuple[Optional[str], Any, Optional[str]]]]


@dataclass
class EncodedBody:
    """Exactly one of json / files is set."""
    json: Optional[dict[str, Any]] = None
    files: Optional[MultipartParts] = None


def normalize_price(value: Any) -> Decimal:
    """
    Parse a price into a non-negative Decimal.

    Raises:
        ValidationError: value is not a number or is negative
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return Decimal("0")
    if isinstance(value, bool):
        raise ValidationError("Price must be a number", field="price")
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError("Price must be a number", field="price")
    if not price.is_finite():
        raise ValidationError("Price must be a number", field="price")
    if price < 0:
        raise ValidationError("Price cannot be negative", field="price")
    return price


def format_price(price: Decimal) -> str:
    """Decimal string as sent in multipart bodies."""
    return format(price, "f")


def _text(draft: Draft, name: str) -> str:
    value = draft.fields.get(name)
    return "" if value is None else str(value).strip()


def validate_draft(draft: Draft) -> None:
    """
    Client-side pre-check of required fields.

    Foreign keys (the menu item's category) are only checked for
    presence; whether the category exists is the server's call.
    """
    if not draft.kind.is_editable:
        raise ValidationError(f"{draft.kind.label} records cannot be edited")
    if not _text(draft, "name"):
        raise ValidationError("Name is required", field="name")
    if draft.kind in (ResourceKind.MENU_ITEM, ResourceKind.INGREDIENT):
        normalize_price(draft.fields.get("price"))
    if draft.kind is ResourceKind.MENU_ITEM:
        category_id, _ = resolve_category(to_category_ref(draft.fields.get("category")))
        if not category_id:
            raise ValidationError("Category is required", field="category")


def encode_draft(draft: Draft) -> EncodedBody:
    """Validate and encode a draft for create/update."""
    validate_draft(draft)

    if draft.kind is ResourceKind.CATEGORY:
        return EncodedBody(json={
            "name": _text(draft, "name"),
            "description": _text(draft, "description"),
        })

    parts: MultipartParts = [("name", (None, _text(draft, "name"), None))]
    if draft.kind is ResourceKind.MENU_ITEM:
        category_id, _ = resolve_category(to_category_ref(draft.fields.get("category")))
        parts.append(("description", (None, _text(draft, "description"), None)))
        parts.append(("price", (None, format_price(normalize_price(draft.fields.get("price"))), None)))
        parts.append(("category", (None, category_id, None)))
    else:
        parts.append(("price", (None, format_price(normalize_price(draft.fields.get("price"))), None)))

    if draft.attachment is not None:
        attachment = draft.attachment
        parts.append((
            ATTACHMENT_FIELDS[draft.kind],
            (attachment.filename, attachment.content, attachment.content_type),
        ))

    return EncodedBody(files=parts)
