"""
Mock Remote Store Implementation

Simulates the back-office API in memory without making network calls.
Used in development mode (ENV_MODE=development) to:
    - Exercise the full dashboard flow locally
    - Run the simulation script without a backend
    - Drive the engine in tests

Behavior:
    - Same routes, verbs and body shapes as the real API
    - Ids are assigned per collection: c1, c2... / m1... / i1... / o1...
    - Menu item listings embed the category document; create/update
      responses carry the bare category id
    - Server-side validation: name required, price >= 0, the menu item's
      category must exist
    - Optional simulated latency and random failure rate
    - Deterministic failures can be queued with inject_failure()
    - Every request is recorded in `calls`

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import copy
import random
import uuid
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from backoffice.core.session import Session
from backoffice.exceptions import AuthError, ServerError, TransportError
from backoffice.models import OrderStatus
from backoffice.schemas import StatusUpdate
from backoffice.services.remote.base import BaseRemoteStore

logger = logging.getLogger(__name__)

ID_PREFIXES = {
    "/categories": "c",
    "/menu-items": "m",
    "/ingredients": "i",
    "/orders": "o",
}

ATTACHMENT_FIELDS = {
    "/menu-items": "image",
    "/ingredients": "picture",
}


@dataclass
class _Failure:
    """A queued failure, consumed by the first matching request."""
    status_code: int = 500
    message: Optional[str] = None
    method: Optional[str] = None
    path: Optional[str] = None
    transport: bool = False

    def matches(self, method: str, path: str) -> bool:
        if self.method and self.method.upper() != method:
            return False
        if self.path and not path.startswith(self.path):
            return False
        return True


class MockRemoteStore(BaseRemoteStore):
    """
    In-memory implementation of the remote store.

    Attributes:
        failure_rate: Probability of a simulated 500 (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds
        require_auth: Reject calls without a token issued by /auth/login
        calls: (method, path) of every request received

    Example:
        >>> remote = MockRemoteStore()
        >>> await remote.request("POST", "/categories", json={"name": "Drinks"})
        {'_id': 'c1', 'name': 'Drinks', 'description': ''}
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
        require_auth: bool = False,
    ):
        super().__init__(session)
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max(max_latency, min_latency)
        self.require_auth = require_auth

        self.calls: list[tuple[str, str]] = []
        self._collections: dict[str, dict[str, dict[str, Any]]] = {
            path: {} for path in ID_PREFIXES
        }
        self._counters: dict[str, int] = {path: 0 for path in ID_PREFIXES}
        self._failures: list[_Failure] = []
        self._users: dict[str, dict[str, Any]] = {}
        self._tokens: set[str] = set()

        logger.info(
            f"MockRemoteStore initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{self.max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    # =========================================================================
    # TEST / SIMULATION HOOKS
    # =========================================================================

    def seed(self, path: str, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert records directly (no call recorded). Missing ids are assigned."""
        stored = []
        for record in records:
            record = copy.deepcopy(record)
            record["_id"] = str(record.pop("_id", None) or record.pop("id", None) or self._next_id(path))
            if path == "/orders":
                record.setdefault("status", OrderStatus.PENDING.value)
                record.setdefault("total", 0)
                record.setdefault("createdAt", self._now())
            self._collections[path][record["_id"]] = record
            stored.append(copy.deepcopy(record))
        return stored

    def inject_failure(
        self,
        status_code: int = 500,
        message: Optional[str] = None,
        method: Optional[str] = None,
        path: Optional[str] = None,
        transport: bool = False,
    ) -> None:
        """Queue a failure for the next request matching method/path prefix."""
        self._failures.append(_Failure(status_code, message, method, path, transport))

    def calls_to(self, method: str, path_prefix: str = "") -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0] == method.upper() and c[1].startswith(path_prefix)]

    def records(self, path: str) -> list[dict[str, Any]]:
        return copy.deepcopy(list(self._collections[path].values()))

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def _next_id(self, path: str) -> str:
        while True:
            self._counters[path] += 1
            candidate = f"{ID_PREFIXES[path]}{self._counters[path]}"
            if candidate not in self._collections[path]:
                return candidate

    async def _simulate_latency(self) -> None:
        """Simulate network latency."""
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    def _take_failure(self, method: str, path: str) -> Optional[_Failure]:
        for index, failure in enumerate(self._failures):
            if failure.matches(method, path):
                return self._failures.pop(index)
        return None

    @staticmethod
    def _split_path(path: str) -> tuple[str, Optional[str]]:
        parts = [p for p in path.split("/") if p]
        base = f"/{parts[0]}" if parts else "/"
        entity_id = parts[1] if len(parts) > 1 else None
        return base, entity_id

    @staticmethod
    def _decode_multipart(files: Optional[list]) -> tuple[dict[str, str], dict[str, tuple]]:
        fields: dict[str, str] = {}
        uploads: dict[str, tuple] = {}
        for name, part in files or []:
            filename, content = part[0], part[1]
            if filename is None:
                fields[name] = content.decode() if isinstance(content, bytes) else str(content)
            else:
                uploads[name] = part
        return fields, uploads

    @staticmethod
    def _bad_request(message: str) -> ServerError:
        return ServerError(message, status_code=400)

    def _parse_price(self, raw: Any) -> float:
        try:
            price = Decimal(str(raw))
        except InvalidOperation:
            raise self._bad_request("Invalid price")
        if not price.is_finite() or price < 0:
            raise self._bad_request("Invalid price")
        return float(price)

    def _present(self, path: str, record: dict[str, Any]) -> dict[str, Any]:
        """Listing shape: menu items get their category embedded when it exists."""
        record = copy.deepcopy(record)
        if path == "/menu-items":
            category = self._collections["/categories"].get(record.get("category"))
            if category is not None:
                record["category"] = copy.deepcopy(category)
        return record

    def _check_auth(self, path: str) -> None:
        if not self.require_auth or path.startswith("/auth"):
            return
        if self.session.token not in self._tokens:
            raise AuthError("Unauthorized", status_code=401)

    # =========================================================================
    # REQUEST DISPATCH
    # =========================================================================

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        files: Optional[list] = None,
    ) -> Any:
        method = method.upper()
        self.calls.append((method, path))
        logger.debug(f"Mock: {method} {path}")

        await self._simulate_latency()

        failure = self._take_failure(method, path)
        if failure is not None:
            if failure.transport:
                logger.debug(f"Mock: Simulated transport failure for {method} {path}")
                raise TransportError()
            logger.debug(f"Mock: Simulated {failure.status_code} for {method} {path}")
            if failure.status_code in (401, 403):
                raise AuthError(failure.message, status_code=failure.status_code)
            raise ServerError(failure.message, status_code=failure.status_code)

        if self._should_fail():
            raise ServerError("Simulated server failure", status_code=500)

        self._check_auth(path)

        if path.startswith("/auth/"):
            return self._handle_auth(path, json or {})

        base, entity_id = self._split_path(path)
        if base not in self._collections:
            raise ServerError("Not found", status_code=404)

        if method == "GET" and entity_id is None:
            return [self._present(base, r) for r in self._collections[base].values()]
        if method == "DELETE" and entity_id is not None:
            return self._handle_delete(base, entity_id)
        if base == "/orders" and method == "PUT" and entity_id is not None:
            return self._handle_order_status(entity_id, json or {})
        if base == "/categories" and method in ("POST", "PUT"):
            return self._handle_category_save(method, entity_id, json or {})
        if base in ATTACHMENT_FIELDS:
            # ingredients are updated with POST /ingredients/:id
            update_verb = "POST" if base == "/ingredients" else "PUT"
            if method == "POST" and entity_id is None:
                return self._handle_catalog_save(base, None, files)
            if method == update_verb and entity_id is not None:
                return self._handle_catalog_save(base, entity_id, files)

        raise ServerError("Method not allowed", status_code=405)

    # =========================================================================
    # HANDLERS
    # =========================================================================

    def _handle_auth(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        if path == "/auth/register":
            email = body.get("email")
            if not email or not body.get("password") or not body.get("name"):
                raise self._bad_request("Name, email and password are required")
            if email in self._users:
                raise self._bad_request("User already exists")
            self._users[email] = dict(body)
            logger.info(f"Mock: Registered {body.get('role', 'user')} {email}")
            return {"message": "User registered"}
        if path == "/auth/login":
            user = self._users.get(body.get("email"))
            if user is None or user.get("password") != body.get("password"):
                raise AuthError("Invalid credentials", status_code=401)
            token = f"tok_mock_{uuid.uuid4().hex[:24]}"
            self._tokens.add(token)
            return {"token": token}
        raise ServerError("Not found", status_code=404)

    def _handle_delete(self, base: str, entity_id: str) -> dict[str, Any]:
        if self._collections[base].pop(entity_id, None) is None:
            raise ServerError("Not found", status_code=404)
        logger.info(f"Mock: Deleted {base}/{entity_id}")
        return {"message": "Deleted"}

    def _handle_order_status(self, entity_id: str, body: dict[str, Any]) -> dict[str, Any]:
        order = self._collections["/orders"].get(entity_id)
        if order is None:
            raise ServerError("Order not found", status_code=404)
        try:
            status = StatusUpdate.model_validate(body).status.value
        except ValueError:
            raise self._bad_request("Invalid status")
        order["status"] = status
        logger.info(f"Mock: Order {entity_id} -> {status}")
        return copy.deepcopy(order)

    def _handle_category_save(
        self,
        method: str,
        entity_id: Optional[str],
        body: dict[str, Any],
    ) -> dict[str, Any]:
        name = str(body.get("name") or "").strip()
        if not name:
            raise self._bad_request("Name is required")
        collection = self._collections["/categories"]
        if method == "PUT":
            if entity_id not in collection:
                raise ServerError("Category not found", status_code=404)
        else:
            entity_id = self._next_id("/categories")
        record = {"_id": entity_id, "name": name, "description": body.get("description") or ""}
        collection[entity_id] = record
        return copy.deepcopy(record)

    def _handle_catalog_save(
        self,
        base: str,
        entity_id: Optional[str],
        files: Optional[list],
    ) -> dict[str, Any]:
        fields, uploads = self._decode_multipart(files)
        collection = self._collections[base]

        if entity_id is not None and entity_id not in collection:
            raise ServerError("Not found", status_code=404)
        previous = collection.get(entity_id, {}) if entity_id else {}

        name = fields.get("name", "").strip()
        if not name:
            raise self._bad_request("Name is required")
        record: dict[str, Any] = {
            "name": name,
            "price": self._parse_price(fields.get("price", "0")),
        }

        if base == "/menu-items":
            category_id = fields.get("category", "")
            if category_id not in self._collections["/categories"]:
                raise self._bad_request("Category not found")
            record["description"] = fields.get("description", "")
            record["category"] = category_id
            if "isAvailable" in previous:
                record["isAvailable"] = previous["isAvailable"]

        record = {"_id": entity_id or self._next_id(base), **record}

        attachment_field = ATTACHMENT_FIELDS[base]
        upload = uploads.get(attachment_field)
        if upload is not None:
            record[attachment_field] = f"/uploads/{uuid.uuid4().hex[:12]}-{upload[0]}"
        elif previous.get(attachment_field):
            record[attachment_field] = previous[attachment_field]

        collection[record["_id"]] = record
        logger.info(f"Mock: Saved {base}/{record['_id']}")
        return copy.deepcopy(record)

    async def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True
