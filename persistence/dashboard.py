from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from .records import DashboardStats

IN_PROGRESS_ORDER_STATUSES = frozenset({"pending", "preparing"})


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    return None


def _income_sum(transactions: Iterable[Mapping[str, Any]], date_matches) -> float:
    total: float = 0
    for t in transactions:
        if t.get("type") != "income":
            continue
        tx_date = t.get("transaction_date")
        if not isinstance(tx_date, str) or not date_matches(tx_date):
            continue
        amount = _number(t.get("amount"))
        if amount is not None:
            total += amount
    return total


def compute_dashboard_stats(
    *,
    rooms: list[Mapping[str, Any]],
    bookings: list[Mapping[str, Any]],
    orders: list[Mapping[str, Any]],
    inventory: list[Mapping[str, Any]],
    transactions: list[Mapping[str, Any]],
    now: datetime,
) -> DashboardStats:
    """
    Reduce collection snapshots into dashboard counters as of `now`.

    Dates are compared as ISO strings (YYYY-MM-DD, and the YYYY-MM prefix for the month);
    there is no timezone-aware range logic. Every call is a full scan.
    """
    today = now.date().isoformat()
    current_month = today[:7]

    low_stock = 0
    for item in inventory:
        current = _number(item.get("current_stock"))
        minimum = _number(item.get("minimum_stock"))
        if current is not None and minimum is not None and current <= minimum:
            low_stock += 1

    return DashboardStats(
        total_rooms=len(rooms),
        occupied_rooms=sum(1 for r in rooms if r.get("status") == "occupied"),
        available_rooms=sum(1 for r in rooms if r.get("status") == "available"),
        today_check_ins=sum(
            1 for b in bookings if b.get("check_in") == today and b.get("booking_status") == "confirmed"
        ),
        today_check_outs=sum(
            1 for b in bookings if b.get("check_out") == today and b.get("booking_status") == "checked_in"
        ),
        pending_orders=sum(1 for o in orders if o.get("status") in IN_PROGRESS_ORDER_STATUSES),
        low_stock_items=low_stock,
        today_revenue=_income_sum(transactions, lambda d: d == today),
        monthly_revenue=_income_sum(transactions, lambda d: d.startswith(current_month)),
    )
