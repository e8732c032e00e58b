"""
Draft / Edit Session

Stages an unpersisted working copy of a category, menu item or ingredient
while the operator fills in the dialog. Edits and file selection stay
local; only commit() reaches the orchestrator. A failed commit keeps the
draft so the operator can retry without re-entering anything.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import mimetypes
import uuid
from decimal import Decimal
from typing import Any, Optional

from backoffice.models import ResourceKind
from backoffice.schemas import (
    Attachment,
    Category,
    Draft,
    Entity,
    Ingredient,
    MenuItem,
    OperationResult,
)
from backoffice.services.encoding import ATTACHMENT_FIELDS
from backoffice.services.orchestrator import CrudOrchestrator

logger = logging.getLogger(__name__)

DRAFT_FIELDS: dict[ResourceKind, tuple[str, ...]] = {
    ResourceKind.CATEGORY: ("name", "description"),
    ResourceKind.MENU_ITEM: ("name", "description", "price", "category", "image"),
    ResourceKind.INGREDIENT: ("name", "price", "picture"),
}


SCHEMAS: dict[ResourceKind, type[Entity]] = {
    ResourceKind.CATEGORY: Category,
    ResourceKind.MENU_ITEM: MenuItem,
    ResourceKind.INGREDIENT: Ingredient,
}


def _empty_fields(kind: ResourceKind) -> dict[str, Any]:
    if kind is ResourceKind.CATEGORY:
        return {"name": "", "description": ""}
    if kind is ResourceKind.MENU_ITEM:
        return {"name": "", "description": "", "price": Decimal("0"), "category": None, "image": None}
    return {"name": "", "price": Decimal("0"), "picture": None}


def _fields_from(entity: Entity) -> dict[str, Any]:
    if isinstance(entity, Category):
        return {"name": entity.name, "description": entity.description}
    if isinstance(entity, MenuItem):
        return {
            "name": entity.name,
            "description": entity.description,
            "price": entity.price,
            "category": entity.category,
            "image": entity.image,
        }
    if isinstance(entity, Ingredient):
        return {"name": entity.name, "price": entity.price, "picture": entity.picture}
    raise ValueError(f"{type(entity).__name__} cannot be edited")


class DraftSession:
    """
    Holds the single draft being edited.

    Example:
        >>> drafts.open_draft(ResourceKind.CATEGORY)
        >>> drafts.edit_draft(name="Drinks", description="Beverages")
        >>> await drafts.commit()
    """

    def __init__(self, orchestrator: CrudOrchestrator):
        self._orchestrator = orchestrator
        self._draft: Optional[Draft] = None

    @property
    def draft(self) -> Optional[Draft]:
        return self._draft

    def _require_draft(self) -> Draft:
        if self._draft is None:
            raise RuntimeError("No draft is open")
        return self._draft

    def open_draft(self, kind: ResourceKind, existing: Optional[Entity] = None) -> Draft:
        """Stage a copy of `existing`, or an empty draft for creation."""
        kind = ResourceKind(kind)
        if not kind.is_editable:
            raise ValueError(f"{kind.plural} cannot be drafted")

        if existing is None:
            self._draft = Draft(kind=kind, fields=_empty_fields(kind))
        else:
            if not isinstance(existing, SCHEMAS[kind]):
                raise ValueError(f"Expected a {kind.label.lower()}, got {type(existing).__name__}")
            self._draft = Draft(kind=kind, fields=_fields_from(existing), target_id=existing.id)

        logger.debug(f"Drafts: opened {kind.label.lower()} draft (target={self._draft.target_id})")
        return self._draft

    def edit_draft(self, **patch: Any) -> Draft:
        """Merge fields into the draft. Never touches the Resource Store."""
        draft = self._require_draft()
        unknown = set(patch) - set(DRAFT_FIELDS[draft.kind])
        if unknown:
            raise ValueError(f"Unknown {draft.kind.label.lower()} fields: {sorted(unknown)}")
        draft.fields.update(patch)
        return draft

    def select_attachment(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> Attachment:
        """Keep a locally picked file and expose a preview reference. No network call."""
        draft = self._require_draft()
        if draft.kind not in ATTACHMENT_FIELDS:
            raise ValueError(f"{draft.kind.plural} have no picture")
        attachment = Attachment(
            filename=filename,
            content=content,
            content_type=content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream",
            preview=f"local-preview://{uuid.uuid4().hex}/{filename}",
        )
        draft.attachment = attachment
        draft.fields[ATTACHMENT_FIELDS[draft.kind]] = attachment.preview
        return attachment

    async def commit(self) -> OperationResult:
        """Create or update from the draft; the draft survives a failure."""
        draft = self._require_draft()

        if draft.is_new:
            result = await self._orchestrator.create(draft.kind, draft)
        else:
            result = await self._orchestrator.update(draft.kind, draft.target_id, draft)

        if result.success and self._draft is draft:
            self._draft = None
        return result

    def discard(self) -> None:
        """Drop the draft and any unsaved attachment."""
        self._draft = None
