"""
Admin Dashboard Facade

Wires the engine together for one consuming context (a dashboard view,
a script): Resource Store, Notification Queue, CRUD Orchestrator, Order
Workflow Engine, Confirmation Gate and Draft Session all share the same
Liveness token, so close() makes every late completion a no-op.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from backoffice.core.config import Settings, get_settings
from backoffice.core.session import Liveness, Session
from backoffice.exceptions import AuthError
from backoffice.models import OrderStatus, ResourceKind
from backoffice.schemas import Category, Ingredient, MenuItem, OperationResult, Order, resolve_category
from backoffice.services.confirmation import ConfirmationGate
from backoffice.services.drafts import DraftSession
from backoffice.services.notifications import NotificationQueue
from backoffice.services.orchestrator import CrudOrchestrator
from backoffice.services.remote import BaseRemoteStore, create_remote_store
from backoffice.services.store import ResourceStore
from backoffice.services.workflow import OrderWorkflowEngine

logger = logging.getLogger(__name__)


@dataclass
class DashboardOverview:
    """Counters shown on the overview tab."""
    total_orders: int
    pending_orders: int
    completed_orders: int


class AdminDashboard:
    """
    One back-office session's engine.

    Example:
        >>> dashboard = AdminDashboard(remote, session)
        >>> await dashboard.load()
        >>> dashboard.gate.request_delete(ResourceKind.INGREDIENT, "i9", "Basil")
        >>> await dashboard.gate.confirm()
        >>> await dashboard.aclose()
    """

    def __init__(
        self,
        remote: BaseRemoteStore,
        session: Session,
        notifications: Optional[NotificationQueue] = None,
        on_auth_error: Optional[Callable[[AuthError], None]] = None,
    ):
        self.session = session
        self.remote = remote
        self.liveness = Liveness()
        self.store = ResourceStore()
        self.notifications = notifications or NotificationQueue()
        self.orchestrator = CrudOrchestrator(
            remote=remote,
            store=self.store,
            notifications=self.notifications,
            liveness=self.liveness,
            on_auth_error=on_auth_error,
        )
        self.workflow = OrderWorkflowEngine(self.orchestrator)
        self.gate = ConfirmationGate(self.orchestrator)
        self.drafts = DraftSession(self.orchestrator)

    @classmethod
    def from_settings(
        cls,
        session: Session,
        settings: Optional[Settings] = None,
    ) -> "AdminDashboard":
        """Build a dashboard on the remote store selected by ENV_MODE."""
        settings = settings or get_settings()
        return cls(create_remote_store(session, settings), session)

    async def load(self) -> dict[ResourceKind, OperationResult]:
        """Initial load of every collection."""
        kinds = list(ResourceKind)
        results = await asyncio.gather(*(self.orchestrator.list(kind) for kind in kinds))
        loaded = dict(zip(kinds, results))
        logger.info(
            "Dashboard: initial load "
            + ", ".join(f"{k.plural}={'ok' if r.success else 'failed'}" for k, r in loaded.items())
        )
        return loaded

    def close(self) -> None:
        """Tear down: pending completions are discarded from now on."""
        self.liveness.close()
        self.gate.cancel()
        self.drafts.discard()
        self.notifications.dismiss()

    async def aclose(self) -> None:
        """close(), then release the remote store's connections."""
        self.close()
        await self.remote.aclose()

    # =========================================================================
    # READ HELPERS
    # =========================================================================

    @property
    def categories(self) -> tuple[Category, ...]:
        return self.store.get(ResourceKind.CATEGORY)

    @property
    def menu_items(self) -> tuple[MenuItem, ...]:
        return self.store.get(ResourceKind.MENU_ITEM)

    @property
    def ingredients(self) -> tuple[Ingredient, ...]:
        return self.store.get(ResourceKind.INGREDIENT)

    @property
    def orders(self) -> tuple[Order, ...]:
        return self.store.get(ResourceKind.ORDER)

    def category_name(self, item: MenuItem) -> str:
        """Display name of a menu item's category, whichever shape it came in."""
        return resolve_category(item.category, self.categories)[1]

    def overview(self) -> DashboardOverview:
        orders = self.orders
        return DashboardOverview(
            total_orders=len(orders),
            pending_orders=sum(1 for o in orders if o.status is OrderStatus.PENDING),
            completed_orders=sum(1 for o in orders if o.status is OrderStatus.COMPLETED),
        )
