"""
CRUD Orchestrator

Generic list/create/update/delete against the remote store for every
resource kind, feeding the Resource Store and the Notification Queue.

Policy: pessimistic refetch. A successful mutation is followed by a fresh
listing of the affected kind which replaces the cached collection; a
failed mutation never touches the cache, so there is nothing to roll back.

Mutations (and listings) of one kind are serialized through a per-kind
asyncio.Lock: the refresh of a mutation runs inside its lock, so the
cache always reflects exactly one writer's outcome.

Every terminal outcome produces exactly one notification, except when the
consuming context has gone away (Liveness closed): the result is then
discarded without touching the store or the notification queue.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from typing import Any, Callable, List, Optional

from pydantic import ValidationError as SchemaError

from backoffice.core.session import Liveness
from backoffice.exceptions import (
    AuthError,
    BackofficeError,
    FetchError,
    UnconfirmedDelete,
    ValidationError,
)
from backoffice.models import ResourceKind
from backoffice.schemas import ENTITY_SCHEMAS, Draft, Entity, OperationResult
from backoffice.services.confirmation import DeleteAuthorization
from backoffice.services.encoding import encode_draft
from backoffice.services.notifications import NotificationQueue
from backoffice.services.remote.base import BaseRemoteStore
from backoffice.services.store import ResourceStore

logger = logging.getLogger(__name__)

# Transport verb bound to the logical "update" operation, per kind
UPDATE_VERBS = {
    ResourceKind.CATEGORY: "PUT",
    ResourceKind.MENU_ITEM: "PUT",
    ResourceKind.INGREDIENT: "POST",
}

# Evaluated inside the kind's lock right before the call; returning an
# error aborts the mutation without any network traffic.
Guard = Callable[[], Optional[BackofficeError]]


class CrudOrchestrator:
    """
    Synchronizes the Resource Store with the remote store.

    Args:
        remote: Remote store (mock or HTTP)
        store: Resource Store to keep in sync
        notifications: Queue receiving one message per outcome
        liveness: Token of the consuming context
        on_auth_error: Called with the AuthError whenever the server answers 401/403

    Example:
        >>> result = await orchestrator.create(ResourceKind.CATEGORY, draft)
        >>> result.success, store.get(ResourceKind.CATEGORY)
    """

    def __init__(
        self,
        remote: BaseRemoteStore,
        store: ResourceStore,
        notifications: NotificationQueue,
        liveness: Optional[Liveness] = None,
        on_auth_error: Optional[Callable[[AuthError], None]] = None,
    ):
        self.remote = remote
        self.store = store
        self.notifications = notifications
        self.liveness = liveness or Liveness()
        self._on_auth_error = on_auth_error
        self._locks = {kind: asyncio.Lock() for kind in ResourceKind}

    @property
    def alive(self) -> bool:
        return self.liveness.alive

    def lock(self, kind: ResourceKind) -> asyncio.Lock:
        """Single-flight lock of a kind."""
        return self._locks[kind]

    # =========================================================================
    # OUTCOME REPORTING
    # =========================================================================

    @staticmethod
    def _discarded(kind: ResourceKind) -> OperationResult:
        logger.debug(f"Orchestrator: {kind.plural} completion discarded (context closed)")
        return OperationResult(success=False, discarded=True)

    def report_failure(self, error: BackofficeError, fallback: str) -> OperationResult:
        """Notify once with the server's message when there is one, else `fallback`."""
        cause = error.cause if isinstance(error, FetchError) and error.cause else error
        if isinstance(cause, AuthError) and self._on_auth_error is not None:
            self._on_auth_error(cause)

        logger.warning(f"Orchestrator: {fallback} - {type(cause).__name__}: {cause.message}")
        self.notifications.error(error.detail or fallback)
        return OperationResult(success=False, error=error)

    # =========================================================================
    # LISTING
    # =========================================================================

    async def _fetch(self, kind: ResourceKind) -> list[Entity]:
        """GET and parse a collection. Raises FetchError."""
        try:
            payload = await self.remote.request("GET", kind.path)
        except BackofficeError as e:
            raise FetchError(e.detail, cause=e)

        if not isinstance(payload, list):
            raise FetchError(f"Unexpected {kind.plural} listing from server")
        try:
            entities = [ENTITY_SCHEMAS[kind].model_validate(record) for record in payload]
        except SchemaError as e:
            logger.error(f"Orchestrator: Invalid {kind.plural} payload - {e}")
            raise FetchError(f"Unexpected {kind.label.lower()} data from server")

        ids = [entity.id for entity in entities]
        if len(ids) != len(set(ids)):
            raise FetchError(f"Duplicate {kind.label.lower()} ids from server")
        return entities

    async def refresh(self, kind: ResourceKind) -> bool:
        """
        Re-list a kind into the store without notifying.

        Used after a successful mutation, whose own notification covers
        the outcome. Call with the kind's lock held.
        """
        try:
            entities = await self._fetch(kind)
        except FetchError as e:
            cause = e.cause or e
            if isinstance(cause, AuthError) and self._on_auth_error is not None:
                self._on_auth_error(cause)
            logger.error(f"Orchestrator: Refresh of {kind.plural} failed - {cause.message}")
            return False
        if not self.alive:
            return False
        self.store.replace(kind, entities)
        return True

    async def list(self, kind: ResourceKind) -> OperationResult:
        """
        Fetch a kind and replace its collection.

        On failure the cached collection is left untouched.
        """
        kind = ResourceKind(kind)
        async with self.lock(kind):
            try:
                entities = await self._fetch(kind)
            except FetchError as e:
                if not self.alive:
                    return self._discarded(kind)
                return self.report_failure(e, f"Failed to fetch {kind.plural}")

            if not self.alive:
                return self._discarded(kind)
            self.store.replace(kind, entities)

        self.notifications.success(f"{kind.plural.capitalize()} loaded")
        return OperationResult(success=True)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def _parse_entity(self, kind: ResourceKind, payload: Any) -> Optional[Entity]:
        if not isinstance(payload, dict):
            return None
        try:
            return ENTITY_SCHEMAS[kind].model_validate(payload)
        except SchemaError:
            logger.debug(f"Orchestrator: {kind.label} response is not an entity, ignoring body")
            return None

    async def mutate(
        self,
        kind: ResourceKind,
        method: str,
        path: str,
        *,
        success: str,
        failure: str,
        json: Optional[dict[str, Any]] = None,
        files: Optional[List] = None,
        guard: Optional[Guard] = None,
    ) -> OperationResult:
        """
        Run one mutating round trip followed by a refresh of `kind`.

        Args:
            kind: Collection refreshed on success
            method, path: Transport binding of the operation
            success: Notification text on success
            failure: Fallback notification text on failure
            json, files: Request body
            guard: Pre-call check run under the lock
        """
        async with self.lock(kind):
            if not self.alive:
                return self._discarded(kind)

            if guard is not None:
                error = guard()
                if error is not None:
                    return self.report_failure(error, failure)

            try:
                payload = await self.remote.request(method, path, json=json, files=files)
            except BackofficeError as e:
                if not self.alive:
                    return self._discarded(kind)
                return self.report_failure(e, failure)

            if not self.alive:
                return self._discarded(kind)

            entity = self._parse_entity(kind, payload)
            await self.refresh(kind)
            if not self.alive:
                return self._discarded(kind)

        self.notifications.success(success)
        return OperationResult(success=True, entity=entity)

    async def _save(
        self,
        kind: ResourceKind,
        entity_id: Optional[str],
        draft: Draft,
    ) -> OperationResult:
        kind = ResourceKind(kind)
        failure = f"Failed to save {kind.label.lower()}"

        if not self.alive:
            return self._discarded(kind)

        try:
            if draft.kind is not kind:
                raise ValidationError(f"Draft kind {draft.kind.value} does not match {kind.value}")
            body = encode_draft(draft)
        except ValidationError as e:
            return self.report_failure(e, failure)

        if entity_id is None:
            method, path = "POST", kind.path
        else:
            method, path = UPDATE_VERBS[kind], f"{kind.path}/{entity_id}"

        return await self.mutate(
            kind,
            method,
            path,
            json=body.json,
            files=body.files,
            success=f"{kind.label} saved successfully",
            failure=failure,
        )

    async def create(self, kind: ResourceKind, draft: Draft) -> OperationResult:
        """Create an entity from a draft, then re-list its kind."""
        return await self._save(kind, None, draft)

    async def update(self, kind: ResourceKind, entity_id: str, draft: Draft) -> OperationResult:
        """Update entity `entity_id` from a draft, then re-list its kind."""
        return await self._save(kind, entity_id, draft)

    async def delete(
        self,
        kind: ResourceKind,
        entity_id: str,
        authorization: DeleteAuthorization,
    ) -> OperationResult:
        """
        Delete an entity. Only the Confirmation Gate can supply `authorization`.

        Raises:
            UnconfirmedDelete: missing, reused or mismatched authorization
        """
        kind = ResourceKind(kind)
        if (
            not isinstance(authorization, DeleteAuthorization)
            or authorization.consumed
            or not authorization.matches(kind, entity_id)
        ):
            raise UnconfirmedDelete()
        authorization.consumed = True

        return await self.mutate(
            kind,
            "DELETE",
            f"{kind.path}/{entity_id}",
            success=f"{kind.label} deleted",
            failure=f"Failed to delete {kind.label.lower()}",
        )
