from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from persistence.dashboard import compute_dashboard_stats


def test_room_counts_from_three_rooms(store):
    async def _run():
        # No initialize(): the rooms collection holds exactly these three records.
        for status in ("available", "occupied", "occupied"):
            await store.insert("rooms", {"status": status})
        stats = await store.get_dashboard_stats()
        assert stats.total_rooms == 3
        assert stats.occupied_rooms == 2
        assert stats.available_rooms == 1

    asyncio.run(_run())


def test_dashboard_counts_and_revenue(store):
    async def _run():
        # Clock fixture is 2025-03-14.
        await store.insert("bookings", {"check_in": "2025-03-14", "booking_status": "confirmed"})
        await store.insert("bookings", {"check_in": "2025-03-14", "booking_status": "cancelled"})
        await store.insert("bookings", {"check_out": "2025-03-14", "booking_status": "checked_in"})
        await store.insert("bookings", {"check_out": "2025-03-15", "booking_status": "checked_in"})

        for status in ("pending", "preparing", "served", "cancelled", "pending"):
            await store.insert("orders", {"status": status})

        await store.insert("inventory", {"name": "limes", "current_stock": 2, "minimum_stock": 5})
        await store.insert("inventory", {"name": "salt", "current_stock": 5, "minimum_stock": 5})
        await store.insert("inventory", {"name": "rum", "current_stock": 9, "minimum_stock": 5})
        await store.insert("inventory", {"name": "unknown"})

        await store.insert("transactions", {"type": "income", "amount": 100, "transaction_date": "2025-03-14"})
        await store.insert("transactions", {"type": "income", "amount": 50.5, "transaction_date": "2025-03-02"})
        await store.insert("transactions", {"type": "expense", "amount": 30, "transaction_date": "2025-03-14"})
        await store.insert("transactions", {"type": "income", "amount": 70, "transaction_date": "2025-02-28"})
        await store.insert("transactions", {"type": "income", "amount": "n/a", "transaction_date": "2025-03-14"})
        await store.insert("transactions", {"type": "income", "amount": 5})

        stats = await store.get_dashboard_stats()
        assert stats.today_check_ins == 1
        assert stats.today_check_outs == 1
        assert stats.pending_orders == 3
        assert stats.low_stock_items == 2
        assert stats.today_revenue == 100
        assert stats.monthly_revenue == 150.5

    asyncio.run(_run())


def test_dashboard_does_not_mutate(store, storage):
    async def _run():
        await store.initialize()
        writes = len(storage.writes)
        before = await store.select("rooms")
        await store.get_dashboard_stats()
        assert await store.select("rooms") == before
        assert len(storage.writes) == writes

    asyncio.run(_run())


def test_stats_serialize_with_camel_case_names():
    stats = compute_dashboard_stats(
        rooms=[{"status": "available"}],
        bookings=[],
        orders=[],
        inventory=[],
        transactions=[],
        now=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    dumped = stats.model_dump(by_alias=True)
    assert dumped["totalRooms"] == 1
    assert dumped["availableRooms"] == 1
    assert dumped["monthlyRevenue"] == 0
