from __future__ import annotations

import asyncio

import pytest

from persistence.errors import AdapterIOError, DuplicateIdError, RecordNotFoundError
from persistence.records import MenuItem
from services.order_manager import OrderManager, round_cents
from services.retry import retry_storage_operation
from services.validation import CartItem, OrderValidationError, cart_errors, sanitize_input


def _item(name: str = "Caesar Salad", price: float = 12.99, **kwargs) -> MenuItem:
    return MenuItem(id=kwargs.pop("id", f"m-{name}"), name=name, price=price, **kwargs)


def test_calculate_order_total_applies_clamped_rates(store):
    manager = OrderManager(store)
    cart = [CartItem(menu_item=_item(price=10.0), quantity=2), CartItem(menu_item=_item("Soda", 2.5), quantity=1)]

    totals = manager.calculate_order_total(cart)
    assert totals.subtotal == 22.5
    assert totals.tax == 1.91  # 8.5% of 22.50 = 1.9125
    assert totals.service_charge == 0
    assert totals.total == 24.41

    capped = manager.calculate_order_total(cart, tax_rate=80, service_charge_rate=45)
    assert capped.tax == 11.25
    assert capped.service_charge == 6.75


def test_round_cents_rounds_half_up():
    assert round_cents(0.125) == 0.13
    assert round_cents(2.675) == 2.68


def test_cart_validation_messages():
    assert cart_errors([]) == ["Cart is empty. Please add items before proceeding."]
    assert cart_errors([CartItem(menu_item=_item(is_available=False), quantity=1)]) == [
        "Caesar Salad: This item is currently unavailable"
    ]
    assert cart_errors([CartItem(menu_item=_item(), quantity=100)]) == ["Caesar Salad: Maximum quantity is 99"]
    assert cart_errors([CartItem(menu_item=_item(price=5000), quantity=3)]) == [
        "Order value exceeds maximum limit of $10,000"
    ]
    assert sanitize_input('  <b>no "onions"</b> & ice ') == "bno onions/b  ice"


def test_create_order_records_order_and_income(store):
    async def _run():
        manager = OrderManager(store)
        cart = [CartItem(menu_item=_item(price=10.0), quantity=1, special_instructions="<no croutons>")]

        order = await manager.create_order(cart, order_type="restaurant", payment_method="Credit Card", table_number="T4")

        assert order.id
        assert order.order_number.startswith("R-")
        assert order.status == "confirmed"
        assert order.table_number == "T4"
        assert order.items[0].special_instructions == "no croutons"
        assert order.total_amount == 10.85

        txns = await store.select("transactions", {"filters": {"reference_id": order.id}})
        assert len(txns) == 1
        assert txns[0]["type"] == "income"
        assert txns[0]["amount"] == 10.85
        assert txns[0]["payment_method"] == "credit_card"
        assert txns[0]["transaction_date"] == "2025-03-14"

        stats = await store.get_dashboard_stats()
        assert stats.today_revenue == 10.85

    asyncio.run(_run())


def test_create_order_rejects_bad_input(store):
    async def _run():
        manager = OrderManager(store)
        cart = [CartItem(menu_item=_item(), quantity=1)]
        with pytest.raises(OrderValidationError) as exc:
            await manager.create_order(cart, order_type="bar", payment_method="bitcoin", table_number="<script>")
        assert exc.value.errors == ["Invalid table number format", "Invalid payment method"]
        assert await store.select("orders") == []

    asyncio.run(_run())


def test_transaction_failure_does_not_fail_the_order(store, storage):
    async def _run():
        storage.fail_writes.add("table_transactions")
        manager = OrderManager(store)
        order = await manager.create_order(
            [CartItem(menu_item=_item(), quantity=1)], order_type="bar", payment_method="cash"
        )
        assert order.order_number.startswith("B-")
        assert order.table_number == "bar Service"
        assert len(await store.select("orders")) == 1
        assert await store.select("transactions") == []

    asyncio.run(_run())


def test_status_update_and_paid_cancellation_refund(store):
    async def _run():
        manager = OrderManager(store)
        order = await manager.create_order(
            [CartItem(menu_item=_item(price=20.0), quantity=1)],
            order_type="pool_bar",
            payment_method="cash",
            payment_status="paid",
        )

        preparing = await manager.update_order_status(order.id, "preparing")
        assert preparing.status == "preparing"
        assert (await store.get_dashboard_stats()).pending_orders == 1

        with pytest.raises(OrderValidationError):
            await manager.update_order_status(order.id, "teleported")

        cancelled = await manager.cancel_order(order.id, "guest left")
        assert cancelled.status == "cancelled"
        assert cancelled.special_instructions == "Cancelled: guest left"

        refunds = await store.select("transactions", {"filters": {"type": "expense"}})
        assert len(refunds) == 1
        assert refunds[0]["transaction_number"] == f"REF-{order.order_number}"
        assert refunds[0]["category"] == "refunds"

        with pytest.raises(OrderValidationError):
            await manager.cancel_order(order.id, "again")

        with pytest.raises(RecordNotFoundError):
            await manager.update_order_status("missing", "ready")

    asyncio.run(_run())


def test_unpaid_cancellation_has_no_refund(store):
    async def _run():
        manager = OrderManager(store)
        order = await manager.create_order(
            [CartItem(menu_item=_item(), quantity=1)], order_type="room_service", payment_method="room charge"
        )
        await manager.cancel_order(order.id, "changed mind")
        assert await store.select("transactions", {"filters": {"type": "expense"}}) == []

    asyncio.run(_run())


class RecordingSleep:
    """Stands in for asyncio.sleep; can run a hook (e.g. heal the storage) on each wait."""

    def __init__(self, on_wait=None) -> None:
        self.delays: list[float] = []
        self._on_wait = on_wait

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self._on_wait is not None:
            self._on_wait()


def test_order_insert_is_retried_after_a_failed_write(store, storage):
    async def _run():
        storage.fail_writes.add("table_orders")
        sleep = RecordingSleep(on_wait=storage.fail_writes.clear)
        manager = OrderManager(store, retry_delay=0.5, sleep=sleep)

        order = await manager.create_order(
            [CartItem(menu_item=_item(), quantity=1)], order_type="restaurant", payment_method="cash"
        )

        assert sleep.delays == [0.5]
        rows = await store.select("orders")
        assert [r["id"] for r in rows] == [order.id]
        assert storage.get("table_orders") is not None
        assert len(await store.select("transactions")) == 1

    asyncio.run(_run())


def test_order_insert_gives_up_after_the_last_attempt(store, storage):
    async def _run():
        storage.fail_writes.add("table_orders")
        sleep = RecordingSleep()
        manager = OrderManager(store, sleep=sleep)

        with pytest.raises(AdapterIOError) as exc:
            await manager.create_order(
                [CartItem(menu_item=_item(), quantity=1)], order_type="bar", payment_method="cash"
            )

        assert exc.value.key == "table_orders"
        assert sleep.delays == [1.0, 2.0]
        assert await store.select("orders") == []
        assert await store.select("transactions") == []

    asyncio.run(_run())


def test_status_update_retries_write_failures_but_not_missing_orders(store, storage):
    async def _run():
        sleep = RecordingSleep(on_wait=storage.fail_writes.clear)
        manager = OrderManager(store, sleep=sleep)
        order = await manager.create_order(
            [CartItem(menu_item=_item(), quantity=1)], order_type="bar", payment_method="cash"
        )

        with pytest.raises(RecordNotFoundError):
            await manager.update_order_status("missing", "ready")
        assert sleep.delays == []

        storage.fail_writes.add("table_orders")
        updated = await manager.update_order_status(order.id, "preparing")
        assert updated.status == "preparing"
        assert sleep.delays == [1.0]

    asyncio.run(_run())


def test_retry_helper_only_retries_adapter_errors():
    calls: list[int] = []

    async def _duplicate():
        calls.append(1)
        raise DuplicateIdError("orders", "o1")

    async def _run():
        sleep = RecordingSleep()
        with pytest.raises(DuplicateIdError):
            await retry_storage_operation(_duplicate, sleep=sleep)
        assert calls == [1]
        assert sleep.delays == []

        with pytest.raises(ValueError):
            await retry_storage_operation(_duplicate, attempts=0, sleep=sleep)

    asyncio.run(_run())
