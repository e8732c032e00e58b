"""
Confirmation Gate

Two-phase guard in front of every delete. An intent to delete opens a
ConfirmationRequest; only confirm() on that request reaches the
orchestrator, carrying a single-use DeleteAuthorization that the
orchestrator checks against the (kind, id) it is asked to delete.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from backoffice.models import ResourceKind
from backoffice.schemas import OperationResult

if TYPE_CHECKING:
    from backoffice.services.orchestrator import CrudOrchestrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfirmationRequest:
    """The delete awaiting the operator's answer."""
    target_kind: ResourceKind
    target_id: str
    target_label: str

    @property
    def prompt(self) -> str:
        return f'Delete {self.target_kind.label.lower()} "{self.target_label}"?'


@dataclass
class DeleteAuthorization:
    """Proof that a matching request was confirmed. Valid for one delete."""
    target_kind: ResourceKind
    target_id: str
    consumed: bool = field(default=False, compare=False)

    def matches(self, kind: ResourceKind, entity_id: str) -> bool:
        return self.target_kind is kind and self.target_id == entity_id


class ConfirmationGate:
    """
    Holds at most one open ConfirmationRequest.

    Example:
        >>> gate.request_delete(ResourceKind.INGREDIENT, "i9", "Basil")
        >>> await gate.confirm()   # DELETE /ingredients/i9
    """

    def __init__(self, orchestrator: "CrudOrchestrator"):
        self._orchestrator = orchestrator
        self._pending: Optional[ConfirmationRequest] = None

    @property
    def pending(self) -> Optional[ConfirmationRequest]:
        return self._pending

    def request_delete(
        self,
        kind: ResourceKind,
        entity_id: str,
        label: str,
    ) -> ConfirmationRequest:
        """Open a request, silently replacing any previous one."""
        kind = ResourceKind(kind)
        if not kind.is_editable:
            raise ValueError(f"{kind.plural} cannot be deleted")
        if self._pending is not None:
            logger.debug(f"Confirmation: replacing open request for {self._pending.target_id}")
        self._pending = ConfirmationRequest(kind, entity_id, label)
        return self._pending

    async def confirm(self) -> Optional[OperationResult]:
        """
        Close the open request and run its delete.

        The request is taken before the call, so a second confirm() while
        the delete is in flight finds nothing to confirm. A request opened
        meanwhile stays open.
        """
        request, self._pending = self._pending, None
        if request is None:
            logger.debug("Confirmation: confirm() with no open request")
            return None

        authorization = DeleteAuthorization(request.target_kind, request.target_id)
        return await self._orchestrator.delete(
            request.target_kind,
            request.target_id,
            authorization,
        )

    def cancel(self) -> None:
        self._pending = None
