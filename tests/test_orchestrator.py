"""Tests for the CRUD Orchestrator against the in-memory backend."""

import asyncio

import pytest

from backoffice.core.session import Session
from backoffice.exceptions import AuthError, FetchError, ServerError, UnconfirmedDelete, ValidationError
from backoffice.models import ResourceKind, Severity
from backoffice.schemas import ById, Category, Draft, Ingredient, MenuItem
from backoffice.services.confirmation import DeleteAuthorization
from backoffice.services.dashboard import AdminDashboard
from backoffice.services.remote.mock import MockRemoteStore


def category_draft(name: str, description: str = "") -> Draft:
    return Draft(kind=ResourceKind.CATEGORY, fields={"name": name, "description": description})


def menu_item_draft(name: str, price, category: str) -> Draft:
    return Draft(kind=ResourceKind.MENU_ITEM, fields={
        "name": name,
        "description": "",
        "price": price,
        "category": category,
    })


class TestListing:
    """list() replaces a collection on success and leaves it alone on failure."""

    def test_list_replaces_collection(self, catalog, dashboard):
        result = asyncio.run(dashboard.orchestrator.list(ResourceKind.CATEGORY))

        assert result.success
        assert [c.name for c in dashboard.categories] == ["Pizza", "Drinks"]
        assert dashboard.notifications.current.message == "Categories loaded"

    def test_menu_items_embed_their_category(self, catalog, dashboard):
        asyncio.run(dashboard.load())
        item = dashboard.menu_items[0]

        assert item.category_id == "c1"
        assert dashboard.category_name(item) == "Pizza"

    def test_failed_listing_keeps_cached_collection(self, catalog, dashboard):
        asyncio.run(dashboard.load())
        before = dashboard.categories
        catalog.inject_failure(method="GET", path="/categories", transport=True)

        result = asyncio.run(dashboard.orchestrator.list(ResourceKind.CATEGORY))

        assert not result.success
        assert isinstance(result.error, FetchError)
        assert dashboard.categories is before
        assert dashboard.notifications.current.message == "Failed to fetch categories"
        assert dashboard.notifications.current.severity is Severity.ERROR


class TestCreate:
    """create() pre-checks, posts, re-lists, and notifies once."""

    def test_create_category_appears_in_listing(self, remote, dashboard):
        result = asyncio.run(dashboard.orchestrator.create(ResourceKind.CATEGORY, category_draft("Drinks")))

        assert result.success
        assert result.entity.id == "c1"
        assert [(c.id, c.name) for c in dashboard.categories] == [("c1", "Drinks")]
        assert remote.calls == [("POST", "/categories"), ("GET", "/categories")]
        assert [n.message for n in dashboard.notifications.history] == ["Category saved successfully"]

    def test_server_error_leaves_store_identical(self, catalog, dashboard):
        asyncio.run(dashboard.load())
        before = dashboard.categories
        version = dashboard.store.version(ResourceKind.CATEGORY)
        notified = len(dashboard.notifications.history)
        catalog.inject_failure(500, "Database unavailable", method="POST", path="/categories")

        result = asyncio.run(dashboard.orchestrator.create(ResourceKind.CATEGORY, category_draft("Desserts")))

        assert not result.success
        assert isinstance(result.error, ServerError)
        assert dashboard.categories == before
        assert dashboard.store.version(ResourceKind.CATEGORY) == version
        assert catalog.calls[-1] == ("POST", "/categories")
        assert len(dashboard.notifications.history) == notified + 1
        assert dashboard.notifications.current.message == "Database unavailable"

    def test_negative_price_is_rejected_without_a_call(self, remote, dashboard):
        result = asyncio.run(
            dashboard.orchestrator.create(ResourceKind.MENU_ITEM, menu_item_draft("Soup", "-1", "c1"))
        )

        assert not result.success
        assert isinstance(result.error, ValidationError)
        assert remote.calls == []
        assert dashboard.menu_items == ()
        assert dashboard.notifications.current.message == "Price cannot be negative"

    def test_unknown_category_is_reported(self, catalog, dashboard):
        asyncio.run(dashboard.load())
        before = dashboard.menu_items

        result = asyncio.run(
            dashboard.orchestrator.create(ResourceKind.MENU_ITEM, menu_item_draft("Soup", "4", "c404"))
        )

        assert not result.success
        assert result.error.status_code == 400
        assert dashboard.menu_items == before
        assert dashboard.notifications.current.message == "Category not found"

    def test_draft_of_another_kind_is_rejected(self, remote, dashboard):
        result = asyncio.run(dashboard.orchestrator.create(ResourceKind.INGREDIENT, category_draft("Drinks")))

        assert not result.success
        assert isinstance(result.error, ValidationError)
        assert remote.calls == []

    def test_failure_without_server_message_uses_fallback(self, remote, dashboard):
        remote.inject_failure(500, method="POST")

        asyncio.run(dashboard.orchestrator.create(ResourceKind.CATEGORY, category_draft("Drinks")))

        assert dashboard.notifications.current.message == "Failed to save category"

    def test_create_menu_item_round_trips_category(self, catalog, dashboard):
        asyncio.run(dashboard.load())
        count = len(dashboard.menu_items)
        draft = Draft(kind=ResourceKind.MENU_ITEM, fields={
            "name": "Calzone",
            "description": "Folded",
            "price": "11.50",
            "category": "c1",
        })

        result = asyncio.run(dashboard.orchestrator.create(ResourceKind.MENU_ITEM, draft))

        assert result.success
        assert result.entity.category == ById(id="c1")
        listed = dashboard.store.find(ResourceKind.MENU_ITEM, result.entity.id)
        assert isinstance(listed, MenuItem)
        assert isinstance(listed.category, Category)
        assert listed.category_id == result.entity.category_id == "c1"
        assert dashboard.category_name(listed) == "Pizza"
        assert (listed.name, listed.description) == ("Calzone", "Folded")
        assert float(listed.price) == 11.5
        assert len(dashboard.menu_items) == count + 1

    def test_create_ingredient_appears_in_listing(self, catalog, dashboard):
        asyncio.run(dashboard.load())
        count = len(dashboard.ingredients)
        draft = Draft(kind=ResourceKind.INGREDIENT, fields={"name": "Oregano", "price": "0.30"})

        result = asyncio.run(dashboard.orchestrator.create(ResourceKind.INGREDIENT, draft))

        assert result.success
        listed = dashboard.store.find(ResourceKind.INGREDIENT, result.entity.id)
        assert isinstance(listed, Ingredient)
        assert listed.name == "Oregano"
        assert float(listed.price) == 0.3
        assert len(dashboard.ingredients) == count + 1
        assert catalog.calls[-2:] == [("POST", "/ingredients"), ("GET", "/ingredients")]


class TestUpdate:

    def test_ingredient_update_is_a_post(self, catalog, dashboard):
        asyncio.run(dashboard.load())
        draft = Draft(kind=ResourceKind.INGREDIENT, fields={"name": "Fresh basil", "price": "0.60"})

        result = asyncio.run(dashboard.orchestrator.update(ResourceKind.INGREDIENT, "i9", draft))

        assert result.success
        assert ("POST", "/ingredients/i9") in catalog.calls
        basil = dashboard.store.find(ResourceKind.INGREDIENT, "i9")
        assert basil.name == "Fresh basil"
        assert float(basil.price) == 0.6
        assert dashboard.notifications.current.message == "Ingredient saved successfully"

    def test_menu_item_update_is_a_put(self, catalog, dashboard):
        asyncio.run(dashboard.load())

        result = asyncio.run(
            dashboard.orchestrator.update(ResourceKind.MENU_ITEM, "m1", menu_item_draft("Marinara", "8", "c1"))
        )

        assert result.success
        assert ("PUT", "/menu-items/m1") in catalog.calls
        item = dashboard.store.find(ResourceKind.MENU_ITEM, "m1")
        assert item.name == "Marinara"
        assert item.image == "/uploads/margherita.png"

    def test_category_update(self, catalog, dashboard):
        asyncio.run(dashboard.load())

        asyncio.run(dashboard.orchestrator.update(ResourceKind.CATEGORY, "c2", category_draft("Beverages")))

        assert ("PUT", "/categories/c2") in catalog.calls
        assert dashboard.store.find(ResourceKind.CATEGORY, "c2").name == "Beverages"


class TestDelete:
    """Deletes need a matching, unused authorization from the confirmation gate."""

    def test_missing_authorization_raises(self, catalog, dashboard):
        with pytest.raises(UnconfirmedDelete):
            asyncio.run(dashboard.orchestrator.delete(ResourceKind.CATEGORY, "c1", None))
        assert catalog.calls_to("DELETE") == []

    def test_mismatched_authorization_raises(self, catalog, dashboard):
        authorization = DeleteAuthorization(ResourceKind.CATEGORY, "c2")
        with pytest.raises(UnconfirmedDelete):
            asyncio.run(dashboard.orchestrator.delete(ResourceKind.CATEGORY, "c1", authorization))
        assert catalog.calls_to("DELETE") == []

    def test_authorization_is_single_use(self, catalog, dashboard):
        authorization = DeleteAuthorization(ResourceKind.INGREDIENT, "i9")

        result = asyncio.run(dashboard.orchestrator.delete(ResourceKind.INGREDIENT, "i9", authorization))
        assert result.success
        assert dashboard.ingredients == ()

        with pytest.raises(UnconfirmedDelete):
            asyncio.run(dashboard.orchestrator.delete(ResourceKind.INGREDIENT, "i9", authorization))
        assert catalog.calls_to("DELETE") == [("DELETE", "/ingredients/i9")]


class TestAuthErrors:

    def test_auth_error_calls_hook(self, catalog, session, notifications):
        errors = []
        dashboard = AdminDashboard(catalog, session, notifications=notifications, on_auth_error=errors.append)
        catalog.inject_failure(401, "Token expired", method="GET", path="/orders")

        result = asyncio.run(dashboard.orchestrator.list(ResourceKind.ORDER))

        assert not result.success
        assert len(errors) == 1
        assert isinstance(errors[0], AuthError)
        assert errors[0].status_code == 401
        assert notifications.current.message == "Token expired"


class TestSingleFlight:
    """Concurrent mutations of one kind are serialized with their refresh."""

    def test_concurrent_updates_converge_on_one_writer(self, notifications):
        remote = MockRemoteStore(min_latency=0.01, max_latency=0.02)
        remote.seed("/categories", [{"_id": "c1", "name": "Drinks"}])

        async def scenario():
            dashboard = AdminDashboard(remote, Session(), notifications=notifications)
            await dashboard.orchestrator.list(ResourceKind.CATEGORY)
            results = await asyncio.gather(
                dashboard.orchestrator.update(ResourceKind.CATEGORY, "c1", category_draft("Soft drinks")),
                dashboard.orchestrator.update(ResourceKind.CATEGORY, "c1", category_draft("Beverages")),
            )
            return dashboard, results

        dashboard, results = asyncio.run(scenario())

        assert all(r.success for r in results)
        assert [method for method, _ in remote.calls] == ["GET", "PUT", "GET", "PUT", "GET"]
        cached = dashboard.store.find(ResourceKind.CATEGORY, "c1").name
        assert cached in ("Soft drinks", "Beverages")
        assert cached == remote.records("/categories")[0]["name"]
        saved = [n for n in notifications.history if n.message == "Category saved successfully"]
        assert len(saved) == 2

    def test_readers_see_old_snapshot_while_in_flight(self, notifications):
        remote = MockRemoteStore(min_latency=0.05, max_latency=0.05)
        remote.seed("/categories", [{"_id": "c1", "name": "Drinks"}])

        async def scenario():
            dashboard = AdminDashboard(remote, Session(), notifications=notifications)
            await dashboard.orchestrator.list(ResourceKind.CATEGORY)
            task = asyncio.create_task(
                dashboard.orchestrator.update(ResourceKind.CATEGORY, "c1", category_draft("Beverages"))
            )
            await asyncio.sleep(0.01)
            during = dashboard.categories[0].name
            await task
            return during, dashboard.categories[0].name

        during, after = asyncio.run(scenario())

        assert during == "Drinks"
        assert after == "Beverages"


class TestLiveness:
    """Completions arriving after close() are discarded."""

    def test_late_mutation_is_discarded(self, notifications):
        remote = MockRemoteStore(min_latency=0.05, max_latency=0.05)

        async def scenario():
            dashboard = AdminDashboard(remote, Session(), notifications=notifications)
            task = asyncio.create_task(
                dashboard.orchestrator.create(ResourceKind.CATEGORY, category_draft("Drinks"))
            )
            await asyncio.sleep(0.01)
            dashboard.close()
            return dashboard, await task

        dashboard, result = asyncio.run(scenario())

        assert result.discarded
        assert not result.success
        assert dashboard.categories == ()
        assert remote.calls_to("GET") == []
        assert notifications.history == []

    def test_late_listing_is_discarded(self, notifications):
        remote = MockRemoteStore(min_latency=0.05, max_latency=0.05)
        remote.seed("/categories", [{"_id": "c1", "name": "Drinks"}])

        async def scenario():
            dashboard = AdminDashboard(remote, Session(), notifications=notifications)
            task = asyncio.create_task(dashboard.orchestrator.list(ResourceKind.CATEGORY))
            await asyncio.sleep(0.01)
            dashboard.close()
            return dashboard, await task

        dashboard, result = asyncio.run(scenario())

        assert result.discarded
        assert not dashboard.store.is_loaded(ResourceKind.CATEGORY)
        assert notifications.history == []

    def test_no_call_after_close(self, remote, dashboard):
        dashboard.close()

        result = asyncio.run(dashboard.orchestrator.create(ResourceKind.CATEGORY, category_draft("Drinks")))

        assert result.discarded
        assert remote.calls == []

    def test_invalid_draft_after_close_is_discarded_silently(self, remote, dashboard):
        dashboard.close()

        for draft in (category_draft("  "), menu_item_draft("Soup", "-1", "c1")):
            result = asyncio.run(dashboard.orchestrator.create(draft.kind, draft))

            assert result.discarded
            assert result.error is None
        assert dashboard.notifications.history == []
        assert remote.calls == []
