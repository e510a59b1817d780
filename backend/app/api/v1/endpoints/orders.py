from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db, get_settings, require_user_id
from backend.app.api.v1.endpoints.users import user_out
from backend.app.core.config import Config
from backend.app.db.models.models_v1 import Order
from backend.app.db.models.core_types import OrderStatus
from backend.services import orders as order_service
from backend.services.errors import NotFound, InvalidReference, InvalidStatusTransition

router = APIRouter(prefix="/orders")


class OrderItemCreate(BaseModel):
    product_id: str = Field(alias="productId", min_length=1)
    quantity: int = Field(ge=1, le=2_147_483_647)  # colonne INTEGER

    class Config:
        populate_by_name = True


class OrderCreate(BaseModel):
    items: list[OrderItemCreate] = Field(min_length=1)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


def order_out(o: Order, *, with_user: bool = False) -> dict:
    out = {
        "id": o.id,
        "userId": o.user_id,
        "status": o.status,
        "total": float(o.total),
        "createdAt": o.created_at,
        "items": [
            {
                "id": it.id,
                "orderId": it.order_id,
                "productId": it.product_id,
                "quantity": it.quantity,
                "price": float(it.price),
                "subtotal": float(it.price * it.quantity),
                "product": {
                    "id": it.product.id,
                    "name": it.product.name,
                    "unit": it.product.unit,
                },
            }
            for it in o.items
        ],
    }
    if with_user:
        out["user"] = user_out(o.user) if o.user else None
    return out


@router.post("")
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_user_id),
    settings: Config = Depends(get_settings),
):
    try:
        order = order_service.place_order(
            db,
            user_id=user_id,
            items=[(it.product_id, it.quantity) for it in payload.items],
            fee=settings.convenience_fee,
        )
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidReference as e:
        raise HTTPException(status_code=400, detail=str(e))

    return order_out(order, with_user=True)


@router.get("")
def list_orders(db: Session = Depends(get_db)):
    return [order_out(o, with_user=True) for o in order_service.list_orders(db)]


@router.get("/user/{user_id}")
def list_user_orders(user_id: str, db: Session = Depends(get_db)):
    return [order_out(o) for o in order_service.list_orders_for_user(db, user_id)]


@router.get("/{order_id}")
def get_order(order_id: str, db: Session = Depends(get_db)):
    try:
        order = order_service.get_order(db, order_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    return order_out(order, with_user=True)


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    settings: Config = Depends(get_settings),
):
    try:
        order = order_service.update_order_status(
            db,
            order_id,
            payload.status,
            enforce_transitions=settings.enforce_status_transitions,
        )
    except NotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {
        "id": order.id,
        "userId": order.user_id,
        "status": order.status,
        "total": float(order.total),
        "createdAt": order.created_at,
    }
