"""
Chaos Simulation Script

Drives a back-office session through concurrent catalog edits and order
transitions to check that the cache always converges on one writer's
outcome and that every operation reports exactly one notification.

Runs against the in-memory mock store by default; with --live it uses
the remote store selected by BACKOFFICE_ENV_MODE.

Run from project root: python scripts/simulate.py

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import sys
import os
import random
import time
import argparse
from datetime import datetime
from typing import Any

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backoffice.core.config import get_settings, setup_logging
from backoffice.core.session import Session
from backoffice.models import OrderStatus, ResourceKind
from backoffice.schemas import Draft
from backoffice.services.dashboard import AdminDashboard
from backoffice.services.remote import MockRemoteStore, create_remote_store
from backoffice.services.workflow import available_transitions

# Sample data for random catalog entries
CATEGORIES = [
    ("Pizza", "Stone-baked"),
    ("Pasta", "Fresh every day"),
    ("Drinks", "Beverages"),
    ("Desserts", "Sweet things"),
]
MENU_ITEMS = [
    ("Pizza Margherita", "14.99"),
    ("Pepperoni Pizza", "16.99"),
    ("Pasta Carbonara", "13.99"),
    ("Tiramisu", "7.99"),
    ("Coke", "2.99"),
]
INGREDIENTS = [("Basil", "0.50"), ("Mozzarella", "1.50"), ("Olives", "0.75")]


def build_mock_remote(session: Session, num_orders: int, failure_rate: float) -> MockRemoteStore:
    """Mock store pre-filled with pending orders."""
    remote = MockRemoteStore(
        session=session,
        failure_rate=failure_rate,
        min_latency=0.01,
        max_latency=0.05,
    )
    remote.seed("/orders", [
        {
            "status": OrderStatus.PENDING.value,
            "total": round(random.uniform(8, 80), 2),
            "user": {"name": f"Customer {i + 1}"},
        }
        for i in range(num_orders)
    ])
    return remote


async def edit_catalog(dashboard: AdminDashboard, rounds: int) -> list[dict[str, Any]]:
    """Create categories then fire concurrent menu item and ingredient saves."""
    results = []

    for name, description in CATEGORIES:
        dashboard.drafts.open_draft(ResourceKind.CATEGORY)
        dashboard.drafts.edit_draft(name=name, description=description)
        result = await dashboard.drafts.commit()
        results.append({"op": "category", "success": result.success})

    category_ids = [c.id for c in dashboard.categories]

    async def save_menu_item(index: int) -> dict[str, Any]:
        name, price = random.choice(MENU_ITEMS)
        draft_kind = ResourceKind.MENU_ITEM
        draft = Draft(kind=draft_kind, fields={
            "name": f"{name} #{index}",
            "description": "",
            "price": price,
            "category": random.choice(category_ids) if category_ids else None,
        })
        result = await dashboard.orchestrator.create(draft_kind, draft)
        return {"op": "menu_item", "success": result.success}

    async def save_ingredient(index: int) -> dict[str, Any]:
        name, price = random.choice(INGREDIENTS)
        draft = Draft(kind=ResourceKind.INGREDIENT, fields={"name": f"{name} #{index}", "price": price})
        result = await dashboard.orchestrator.create(ResourceKind.INGREDIENT, draft)
        return {"op": "ingredient", "success": result.success}

    tasks = []
    for i in range(rounds):
        tasks.append(save_menu_item(i))
        tasks.append(save_ingredient(i))
    results.extend(await asyncio.gather(*tasks))
    return results


async def progress_orders(dashboard: AdminDashboard) -> list[dict[str, Any]]:
    """Push every order one or two steps along the workflow, concurrently."""

    async def walk(order_id: str) -> dict[str, Any]:
        steps = 0
        while True:
            order = dashboard.store.find(ResourceKind.ORDER, order_id)
            if order is None:
                break
            options = available_transitions(order.status)
            if not options:
                break
            result = await dashboard.workflow.request_transition(order_id, random.choice(options))
            if not result.success:
                return {"op": "order", "success": False, "steps": steps}
            steps += 1
        return {"op": "order", "success": True, "steps": steps}

    return list(await asyncio.gather(*(walk(o.id) for o in dashboard.orders)))


async def run_simulation(
    num_orders: int = 20,
    rounds: int = 10,
    failure_rate: float = 0.05,
    live: bool = False,
) -> dict[str, Any]:
    """
    Run the chaos simulation.

    Args:
        num_orders: Orders to seed in the mock store
        rounds: Concurrent menu item / ingredient creations
        failure_rate: Simulated server failure rate (mock only)
        live: Use the configured remote store instead of the mock
    """
    settings = get_settings()
    session = Session()

    if live:
        remote = create_remote_store(session, settings)
        target = f"{remote.provider_name} ({settings.api_base_url})"
    else:
        remote = build_mock_remote(session, num_orders, failure_rate)
        target = "in-memory mock"

    print("=" * 70)
    print("🔥 CHAOS SIMULATION - CONCURRENT BACK-OFFICE EDITS")
    print("=" * 70)
    print(f"🏷️  App: {settings.app_name} v{settings.app_version}")
    print(f"🎯 Target: {target}")
    print(f"🔁 Catalog rounds: {rounds}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    dashboard = AdminDashboard(remote, session)
    start_time = time.time()

    await dashboard.load()
    catalog_results = await edit_catalog(dashboard, rounds)
    order_results = await progress_orders(dashboard)
    notified = len(dashboard.notifications.history)

    total_time = round(time.time() - start_time, 2)
    results = catalog_results + order_results
    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    overview = dashboard.overview()

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful operations: {len(successful)}/{len(results)}")
    print(f"❌ Failed operations: {len(failed)}/{len(results)}")
    print(f"🔔 Notifications emitted: {notified}")
    print(f"⏱️  Total Time: {total_time}s")
    print(f"\n📦 Categories: {len(dashboard.categories)}")
    print(f"🍕 Menu items: {len(dashboard.menu_items)}")
    print(f"🧂 Ingredients: {len(dashboard.ingredients)}")
    print(f"🧾 Orders: {overview.total_orders} "
          f"(pending={overview.pending_orders}, completed={overview.completed_orders})")

    if isinstance(remote, MockRemoteStore):
        in_sync = all(
            [e.id for e in dashboard.store.get(kind)] == [r["_id"] for r in remote.records(kind.path)]
            for kind in ResourceKind
        )
        print(f"\n🔍 Cache matches mock store: {'yes' if in_sync else 'NO'}")

    print("=" * 70)

    await dashboard.aclose()

    return {
        "total": len(results),
        "successful": len(successful),
        "failed": len(failed),
        "notifications": notified,
        "total_time": total_time,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Chaos Simulation Script")
    parser.add_argument("--orders", type=int, default=20, help="Number of seeded orders")
    parser.add_argument("--rounds", type=int, default=10, help="Concurrent catalog creations")
    parser.add_argument("--failure-rate", type=float, default=0.05, help="Mock failure rate")
    parser.add_argument("--live", action="store_true", help="Use the configured remote store")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(run_simulation(
        num_orders=args.orders,
        rounds=args.rounds,
        failure_rate=args.failure_rate,
        live=args.live,
    ))
