from __future__ import annotations

import asyncio
import logging
import random
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Awaitable, Callable, TypeVar, get_args

from pydantic import BaseModel

from persistence.document_store import DocumentStore
from persistence.errors import StorageError
from persistence.records import Order, OrderItem, OrderStatus, OrderType, PaymentStatus, Transaction

from .retry import Sleep, retry_storage_operation
from .validation import (
    CartItem,
    OrderValidationError,
    cart_errors,
    normalize_payment_method,
    payment_method_errors,
    sanitize_input,
    table_number_errors,
)

logger = logging.getLogger(__name__)

ORDER_STATUSES: tuple[str, ...] = get_args(OrderStatus)

T = TypeVar("T")


class OrderTotals(BaseModel):
    subtotal: float
    tax: float
    service_charge: float
    total: float


def round_cents(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class OrderManager:
    """
    Till-side order workflow on top of the document store.

    Writes to `orders` and mirrors money movements into `transactions`
    (income on sale, expense on refund of a paid order).
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        tax_rate: float = 8.5,
        service_charge_rate: float = 0.0,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._store = store
        self._tax_rate = tax_rate
        self._service_charge_rate = service_charge_rate
        self._retry_attempts = retry_attempts
        self._retry_delay = retry_delay
        self._sleep = sleep
        self._counter = 0

    def calculate_order_total(
        self,
        cart: list[CartItem],
        *,
        tax_rate: float | None = None,
        service_charge_rate: float | None = None,
    ) -> OrderTotals:
        errors = cart_errors(cart)
        if errors:
            raise OrderValidationError(errors)

        subtotal = sum(line.menu_item.price * line.quantity for line in cart)
        # Rates are percentages: tax capped at 50, service charge at 30.
        tax_pct = _clamp(self._tax_rate if tax_rate is None else tax_rate, 0, 50)
        service_pct = _clamp(self._service_charge_rate if service_charge_rate is None else service_charge_rate, 0, 30)

        tax = round_cents(subtotal * tax_pct / 100)
        service_charge = round_cents(subtotal * service_pct / 100)
        return OrderTotals(
            subtotal=round_cents(subtotal),
            tax=tax,
            service_charge=service_charge,
            total=round_cents(subtotal + tax + service_charge),
        )

    def generate_order_number(self, order_type: str) -> str:
        timestamp = int(time.time() * 1000)
        rand = f"{random.randint(0, 9999):04d}"
        self._counter = (self._counter + 1) % 1000
        prefix = "R" if order_type == "restaurant" else "B"
        return f"{prefix}-{timestamp}-{rand}-{self._counter:03d}"

    async def create_order(
        self,
        cart: list[CartItem],
        *,
        order_type: OrderType,
        payment_method: str,
        table_number: str | None = None,
        payment_status: PaymentStatus = "pending",
        tax_rate: float | None = None,
        service_charge_rate: float | None = None,
    ) -> Order:
        errors = cart_errors(cart)
        if table_number:
            errors += table_number_errors(table_number)
        errors += payment_method_errors(payment_method)
        if errors:
            raise OrderValidationError(errors)

        totals = self.calculate_order_total(cart, tax_rate=tax_rate, service_charge_rate=service_charge_rate)
        if totals.total <= 0:
            raise OrderValidationError(["Invalid payment amount"])

        order = Order(
            order_number=self.generate_order_number(order_type),
            table_number=table_number.strip() if table_number else f"{order_type} Service",
            order_type=order_type,
            items=[
                OrderItem(
                    menu_item_id=line.menu_item.id or "",
                    quantity=line.quantity,
                    unit_price=line.menu_item.price,
                    special_instructions=sanitize_input(line.special_instructions or ""),
                )
                for line in cart
            ],
            subtotal=totals.subtotal,
            tax_amount=totals.tax,
            service_charge=totals.service_charge,
            total_amount=totals.total,
            status="confirmed",
            payment_status=payment_status,
            payment_method=payment_method,
        )
        created: Order = await self._retry(lambda: self._store.insert("orders", order, model=Order), "order insert")
        logger.info("ORDER CREATE: %s total=%.2f", created.order_number, created.total_amount)

        await self._record_sale(created, order_type=order_type, payment_method=payment_method)
        return created

    async def _record_sale(self, order: Order, *, order_type: str, payment_method: str) -> None:
        txn = Transaction(
            transaction_number=f"TXN-{order.order_number}",
            type="income",
            category="food_beverage",
            amount=order.total_amount,
            description=f"{order_type} order - {payment_method}",
            reference_id=order.id,
            payment_method=normalize_payment_method(payment_method),
            transaction_date=self._today(),
            processed_by="pos_system",
        )
        try:
            await self._store.insert("transactions", txn)
        except StorageError as e:
            # The order itself is already stored; accounting can be reconciled later.
            logger.warning("ORDER CREATE: failed to record transaction for %s: %r", order.order_number, e)

    async def update_order_status(self, order_id: str, status: str) -> Order:
        if status not in ORDER_STATUSES:
            raise OrderValidationError([f"Invalid order status: {status}"])
        updated: Order = await self._retry(
            lambda: self._store.update("orders", order_id, {"status": status}, model=Order), "order status update"
        )
        logger.info("ORDER STATUS: %s -> %s", updated.order_number, status)
        return updated

    async def cancel_order(self, order_id: str, reason: str) -> Order:
        current: Order = await self._store.get("orders", order_id, model=Order)
        if current.status == "cancelled":
            raise OrderValidationError(["Order is already cancelled"])

        reason = sanitize_input(reason)
        patch = {"status": "cancelled", "special_instructions": f"Cancelled: {reason}"}
        cancelled: Order = await self._retry(
            lambda: self._store.update("orders", order_id, patch, model=Order), "order cancel"
        )

        if cancelled.payment_status == "paid":
            refund = Transaction(
                transaction_number=f"REF-{cancelled.order_number}",
                type="expense",
                category="refunds",
                amount=cancelled.total_amount,
                description=f"Refund for cancelled order - {reason}",
                reference_id=order_id,
                transaction_date=self._today(),
                processed_by="pos_system",
            )
            await self._store.insert("transactions", refund)
            logger.info("ORDER CANCEL: %s refunded %.2f", cancelled.order_number, cancelled.total_amount)
        else:
            logger.info("ORDER CANCEL: %s", cancelled.order_number)
        return cancelled

    async def _retry(self, operation: Callable[[], Awaitable[T]], label: str) -> T:
        return await retry_storage_operation(
            operation, attempts=self._retry_attempts, delay=self._retry_delay, sleep=self._sleep, label=label
        )

    def _today(self) -> str:
        return self._store.now()[:10]
