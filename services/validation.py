from __future__ import annotations

import re

from pydantic import BaseModel

from persistence.records import MenuItem

MIN_QUANTITY = 1
MAX_QUANTITY = 99
MIN_ORDER_VALUE = 0.01
MAX_ORDER_VALUE = 10000
MAX_SPECIAL_INSTRUCTIONS_LENGTH = 200
MAX_TABLE_NUMBER_LENGTH = 10

VALID_PAYMENT_METHODS = ("cash", "credit_card", "room_charge", "complimentary")

TABLE_NUMBER_RE = re.compile(r"^[A-Za-z0-9 \-]+$")
UNSAFE_CHARS_RE = re.compile(r"[<>\"'&]")


class OrderValidationError(ValueError):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class CartItem(BaseModel):
    menu_item: MenuItem
    quantity: int
    special_instructions: str | None = None


def sanitize_input(value: str) -> str:
    return UNSAFE_CHARS_RE.sub("", value).strip()[:1000]


def normalize_payment_method(value: str) -> str:
    return re.sub(r"\s+", "_", value.strip().lower())


def menu_item_errors(item: MenuItem) -> list[str]:
    if not item.id:
        return ["Invalid menu item selected"]
    if not item.is_available:
        return ["This item is currently unavailable"]
    if item.price <= 0:
        return ["Menu item has invalid price"]
    if not item.name.strip():
        return ["Menu item has no name"]
    return []


def cart_errors(cart: list[CartItem]) -> list[str]:
    """
    Stops at the first bad line, like the till does; then checks the order value bounds.
    """
    if not cart:
        return ["Cart is empty. Please add items before proceeding."]

    for line in cart:
        name = line.menu_item.name
        problems = menu_item_errors(line.menu_item)
        if problems:
            return [f"{name}: {problems[0]}"]
        if line.quantity < MIN_QUANTITY:
            return [f"{name}: Minimum quantity is {MIN_QUANTITY}"]
        if line.quantity > MAX_QUANTITY:
            return [f"{name}: Maximum quantity is {MAX_QUANTITY}"]
        if line.special_instructions and len(line.special_instructions) > MAX_SPECIAL_INSTRUCTIONS_LENGTH:
            return [f"Special instructions too long (max {MAX_SPECIAL_INSTRUCTIONS_LENGTH} characters)"]

    total = sum(line.menu_item.price * line.quantity for line in cart)
    if total < MIN_ORDER_VALUE:
        return [f"Order value too low (minimum ${MIN_ORDER_VALUE})"]
    if total > MAX_ORDER_VALUE:
        return [f"Order value exceeds maximum limit of ${MAX_ORDER_VALUE:,}"]
    return []


def table_number_errors(table_number: str) -> list[str]:
    value = table_number.strip()
    if not value:
        return ["Table number is required"]
    if len(value) > MAX_TABLE_NUMBER_LENGTH:
        return [f"Table number too long (max {MAX_TABLE_NUMBER_LENGTH} characters)"]
    if not TABLE_NUMBER_RE.match(value):
        return ["Invalid table number format"]
    return []


def payment_method_errors(payment_method: str) -> list[str]:
    normalized = normalize_payment_method(payment_method)
    if not any(m in normalized for m in VALID_PAYMENT_METHODS):
        return ["Invalid payment method"]
    return []
