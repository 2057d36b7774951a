from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from persistence.errors import StorageError
from persistence.records import OrderType, PaymentStatus
from services.order_manager import OrderManager
from services.validation import CartItem, OrderValidationError

from .store_endpoints import http_error_for

router = APIRouter(prefix="/orders", tags=["orders"])
logger = logging.getLogger(__name__)


class CreateOrderBody(BaseModel):
    cart: list[CartItem] = Field(default_factory=list)
    order_type: OrderType = "restaurant"
    payment_method: str
    table_number: str | None = None
    payment_status: PaymentStatus = "pending"
    tax_rate: float | None = None
    service_charge_rate: float | None = None


class StatusBody(BaseModel):
    status: str


class CancelBody(BaseModel):
    reason: str = ""


def get_order_manager(request: Request) -> OrderManager:
    manager = getattr(request.app.state, "order_manager", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="store_unavailable")
    return manager


@router.post("", status_code=201)
async def create_order(body: CreateOrderBody, request: Request):
    manager = get_order_manager(request)
    try:
        order = await manager.create_order(
            body.cart,
            order_type=body.order_type,
            payment_method=body.payment_method,
            table_number=body.table_number,
            payment_status=body.payment_status,
            tax_rate=body.tax_rate,
            service_charge_rate=body.service_charge_rate,
        )
    except OrderValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors) from None
    except StorageError as e:
        raise http_error_for(e) from e
    return order.model_dump(mode="json")


@router.patch("/{order_id}/status")
async def update_status(order_id: str, body: StatusBody, request: Request):
    manager = get_order_manager(request)
    try:
        order = await manager.update_order_status(order_id, body.status)
    except OrderValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors) from None
    except StorageError as e:
        raise http_error_for(e) from e
    return order.model_dump(mode="json")


@router.post("/{order_id}/cancel")
async def cancel(order_id: str, body: CancelBody, request: Request):
    manager = get_order_manager(request)
    try:
        order = await manager.cancel_order(order_id, body.reason)
    except OrderValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors) from None
    except StorageError as e:
        raise http_error_for(e) from e
    return order.model_dump(mode="json")
