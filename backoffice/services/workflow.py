"""
Order Workflow Engine

Finite state machine over Order.status:

    pending ──► accepted ──► completed
       │           │
       └──► rejected ◄┘

completed and rejected are terminal. An illegal (current, target) pair is
refused before any network call, whoever the caller is.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from typing import Optional, Union

from backoffice.exceptions import BackofficeError, InvalidTransition
from backoffice.models import OrderStatus, ResourceKind
from backoffice.schemas import OperationResult, Order
from backoffice.services.orchestrator import CrudOrchestrator

logger = logging.getLogger(__name__)

# Ordered so that UIs can render the actions in a stable order
ORDER_TRANSITIONS: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    OrderStatus.PENDING: (OrderStatus.ACCEPTED, OrderStatus.REJECTED),
    OrderStatus.ACCEPTED: (OrderStatus.COMPLETED, OrderStatus.REJECTED),
    OrderStatus.COMPLETED: (),
    OrderStatus.REJECTED: (),
}


def available_transitions(status: Union[OrderStatus, str]) -> tuple[OrderStatus, ...]:
    """Legal next statuses from `status`."""
    return ORDER_TRANSITIONS[OrderStatus(status)]


def is_terminal(status: Union[OrderStatus, str]) -> bool:
    return not available_transitions(status)


def can_transition(current: Union[OrderStatus, str], target: Union[OrderStatus, str]) -> bool:
    try:
        return OrderStatus(target) in available_transitions(current)
    except ValueError:
        return False


class OrderWorkflowEngine:
    """
    Moves orders along the workflow through the orchestrator's mutation pipeline.

    Example:
        >>> await workflow.request_transition("o1", "accepted")
    """

    def __init__(self, orchestrator: CrudOrchestrator):
        self._orchestrator = orchestrator

    def _check(self, order_id: str, target: str) -> Optional[BackofficeError]:
        """Transition-table check against the cached order."""
        order = self._orchestrator.store.find(ResourceKind.ORDER, order_id)
        if not isinstance(order, Order):
            return InvalidTransition(order_id, None, target)
        if not can_transition(order.status, target):
            return InvalidTransition(order_id, order.status.value, target)
        return None

    async def request_transition(
        self,
        order_id: str,
        target: Union[OrderStatus, str],
    ) -> OperationResult:
        """
        Move order `order_id` to `target`.

        Refused with InvalidTransition (and no network call) when the pair
        is not an edge of the workflow. On success the order collection is
        re-listed; on failure the cached order keeps its status.
        """
        target_value = target.value if isinstance(target, OrderStatus) else str(target)
        logger.info(f"Workflow: order {order_id} -> {target_value} requested")

        def guard() -> Optional[BackofficeError]:
            error = self._check(order_id, target_value)
            if error is not None:
                logger.warning(f"Workflow: {error.message}")
            return error

        # only sent once the guard has accepted target_value as a status
        return await self._orchestrator.mutate(
            ResourceKind.ORDER,
            "PUT",
            f"{ResourceKind.ORDER.path}/{order_id}",
            json={"status": target_value},
            guard=guard,
            success=f"Order {target_value}",
            failure="Failed to update order",
        )
