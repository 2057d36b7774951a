from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OrderBy(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    field: str = Field(alias="column")
    ascending: bool = True


class SelectOptions(BaseModel):
    """
    Query options for DocumentStore.select:
      { "filters": {"status": "available"}, "order_by": {"field": "floor"}, "limit": 10 }

    `orderBy` / `column` spellings are accepted as well.
    """

    model_config = ConfigDict(populate_by_name=True)

    filters: dict[str, Any] = Field(default_factory=dict)
    order_by: OrderBy | None = Field(default=None, alias="orderBy")
    limit: int | None = Field(default=None, ge=0)


class DashboardStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_rooms: int = 0
    occupied_rooms: int = 0
    available_rooms: int = 0
    today_check_ins: int = 0
    today_check_outs: int = 0
    pending_orders: int = 0
    low_stock_items: int = 0
    today_revenue: float = 0
    monthly_revenue: float = 0


class StoredRecord(BaseModel):
    """
    Common shape of every stored record. Unknown fields are kept so that typed reads
    never drop data another caller wrote.
    """

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


RoomStatus = Literal["available", "occupied", "maintenance", "cleaning", "out_of_order"]
OrderStatus = Literal["pending", "confirmed", "preparing", "ready", "served", "completed", "cancelled"]
PaymentStatus = Literal["pending", "paid", "refunded"]
OrderType = Literal["restaurant", "bar", "pool_bar", "room_service"]


class Profile(StoredRecord):
    email: str
    full_name: str | None = None
    role: str = "staff"
    phone: str | None = None
    avatar_url: str | None = None
    is_active: bool = True


class Room(StoredRecord):
    room_number: str
    room_type: str = "standard"
    status: RoomStatus = "available"
    price_per_night: float = 0
    amenities: list[str] = Field(default_factory=list)
    floor: int | None = None
    max_occupancy: int | None = None
    description: str | None = None
    images: list[str] = Field(default_factory=list)


class Booking(StoredRecord):
    room_id: str | None = None
    guest_name: str | None = None
    check_in: str | None = None
    check_out: str | None = None
    booking_status: str = "confirmed"
    total_amount: float | None = None


class MenuItem(StoredRecord):
    name: str
    description: str | None = None
    category: str | None = None
    price: float
    cost_price: float | None = None
    is_available: bool = True


class OrderItem(BaseModel):
    menu_item_id: str
    quantity: int
    unit_price: float
    special_instructions: str = ""


class Order(StoredRecord):
    order_number: str
    table_number: str | None = None
    order_type: OrderType = "restaurant"
    items: list[OrderItem] = Field(default_factory=list)
    subtotal: float = 0
    tax_amount: float = 0
    service_charge: float = 0
    total_amount: float = 0
    status: OrderStatus = "pending"
    payment_status: PaymentStatus = "pending"
    payment_method: str | None = None
    special_instructions: str | None = None


class InventoryItem(StoredRecord):
    name: str
    current_stock: float = 0
    minimum_stock: float = 0
    unit: str | None = None


class Transaction(StoredRecord):
    transaction_number: str
    type: Literal["income", "expense"]
    category: str | None = None
    amount: float
    description: str | None = None
    reference_id: str | None = None
    payment_method: str | None = None
    transaction_date: str
    processed_by: str | None = None
