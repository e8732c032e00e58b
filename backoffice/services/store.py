"""
Resource Store

Typed in-memory cache holding one collection per resource kind.

The store is a full-refresh cache: a collection is only ever replaced
wholesale by a fresh listing, never patched in place. Snapshots are
tuples of frozen entities, so readers holding a snapshot keep seeing it
unchanged while a mutation and its refresh are in flight.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Iterable, Optional

from backoffice.models import ResourceKind
from backoffice.schemas import Entity

logger = logging.getLogger(__name__)


class ResourceStore:
    """One immutable snapshot per ResourceKind."""

    def __init__(self):
        self._collections: dict[ResourceKind, tuple[Entity, ...]] = {
            kind: () for kind in ResourceKind
        }
        self._versions: dict[ResourceKind, int] = {kind: 0 for kind in ResourceKind}

    def get(self, kind: ResourceKind) -> tuple[Entity, ...]:
        """Current collection, in server order."""
        return self._collections[kind]

    def find(self, kind: ResourceKind, entity_id: str) -> Optional[Entity]:
        for entity in self._collections[kind]:
            if entity.id == entity_id:
                return entity
        return None

    def version(self, kind: ResourceKind) -> int:
        """Number of times the collection has been replaced."""
        return self._versions[kind]

    def is_loaded(self, kind: ResourceKind) -> bool:
        return self._versions[kind] > 0

    def replace(self, kind: ResourceKind, entities: Iterable[Entity]) -> None:
        """Swap in a fresh listing. Duplicate ids are rejected."""
        snapshot = tuple(entities)
        ids = [e.id for e in snapshot]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate ids in {kind.plural} listing")
        self._collections[kind] = snapshot
        self._versions[kind] += 1
        logger.debug(f"Store: {kind.plural} replaced ({len(snapshot)} entries, v{self._versions[kind]})")
