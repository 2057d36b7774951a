from __future__ import annotations

from .order_manager import OrderManager, OrderTotals
from .retry import retry_storage_operation
from .validation import CartItem, OrderValidationError

__all__ = [
    "CartItem",
    "OrderManager",
    "OrderTotals",
    "OrderValidationError",
    "retry_storage_operation",
]
