"""Tests for the order status workflow."""

import asyncio

import pytest

from backoffice.exceptions import InvalidTransition
from backoffice.models import OrderStatus, ResourceKind
from backoffice.services.workflow import available_transitions, can_transition, is_terminal


def status_of(dashboard, order_id: str) -> OrderStatus:
    return dashboard.store.find(ResourceKind.ORDER, order_id).status


class TestTransitionTable:

    def test_available_transitions(self):
        assert available_transitions("pending") == (OrderStatus.ACCEPTED, OrderStatus.REJECTED)
        assert available_transitions(OrderStatus.ACCEPTED) == (OrderStatus.COMPLETED, OrderStatus.REJECTED)

    @pytest.mark.parametrize("status", [OrderStatus.COMPLETED, OrderStatus.REJECTED])
    def test_terminal_statuses(self, status):
        assert is_terminal(status)
        assert available_transitions(status) == ()

    def test_no_way_back(self):
        assert not can_transition("accepted", "pending")
        assert not can_transition("pending", "completed")

    def test_unknown_status_is_not_a_transition(self):
        assert not can_transition("pending", "shipped")


class TestRequestTransition:
    """Legal edges are sent; illegal ones are refused before any call."""

    @pytest.fixture
    def loaded(self, catalog, dashboard):
        asyncio.run(dashboard.orchestrator.list(ResourceKind.ORDER))
        return dashboard

    def test_accept_then_refuse_going_back(self, catalog, loaded):
        result = asyncio.run(loaded.workflow.request_transition("o1", "accepted"))

        assert result.success
        assert status_of(loaded, "o1") is OrderStatus.ACCEPTED
        assert catalog.calls_to("PUT") == [("PUT", "/orders/o1")]
        assert loaded.notifications.current.message == "Order accepted"

        result = asyncio.run(loaded.workflow.request_transition("o1", OrderStatus.PENDING))

        assert not result.success
        assert isinstance(result.error, InvalidTransition)
        assert catalog.calls_to("PUT") == [("PUT", "/orders/o1")]
        assert status_of(loaded, "o1") is OrderStatus.ACCEPTED
        assert loaded.notifications.current.message == "Cannot move order from accepted to pending"

    def test_full_path_to_completed(self, catalog, loaded):
        asyncio.run(loaded.workflow.request_transition("o1", "accepted"))
        asyncio.run(loaded.workflow.request_transition("o1", "completed"))

        assert status_of(loaded, "o1") is OrderStatus.COMPLETED
        assert catalog.records("/orders")[0]["status"] == "completed"

    def test_terminal_order_is_never_sent(self, catalog, loaded):
        result = asyncio.run(loaded.workflow.request_transition("o3", "rejected"))

        assert not result.success
        assert catalog.calls_to("PUT") == []
        assert status_of(loaded, "o3") is OrderStatus.COMPLETED

    def test_unknown_order(self, catalog, loaded):
        result = asyncio.run(loaded.workflow.request_transition("o404", "accepted"))

        assert isinstance(result.error, InvalidTransition)
        assert result.error.message == "Order o404 is not loaded"
        assert catalog.calls_to("PUT") == []

    def test_unknown_target_status(self, catalog, loaded):
        result = asyncio.run(loaded.workflow.request_transition("o1", "shipped"))

        assert isinstance(result.error, InvalidTransition)
        assert catalog.calls_to("PUT") == []

    def test_server_failure_keeps_status(self, catalog, loaded):
        catalog.inject_failure(500, method="PUT", path="/orders")

        result = asyncio.run(loaded.workflow.request_transition("o1", "rejected"))

        assert not result.success
        assert status_of(loaded, "o1") is OrderStatus.PENDING
        assert loaded.notifications.current.message == "Failed to update order"

    def test_each_outcome_notifies_once(self, catalog, loaded):
        notified = len(loaded.notifications.history)

        asyncio.run(loaded.workflow.request_transition("o2", "completed"))
        asyncio.run(loaded.workflow.request_transition("o2", "rejected"))

        assert [n.message for n in loaded.notifications.history[notified:]] == [
            "Order completed",
            "Cannot move order from completed to rejected",
        ]
