from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db, get_settings
from backend.app.core.config import Config
from backend.services import procurement
from backend.services.errors import NotFound, InvalidReference
from backend.services.orders import mark_delivered as mark_order_delivered
from backend.services.pricing import latest_price_map

router = APIRouter(prefix="/partner")


class PriceSet(BaseModel):
    product_id: str = Field(alias="productId", min_length=1)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)

    class Config:
        populate_by_name = True


class DeliveryCreate(BaseModel):
    order_id: str = Field(alias="orderId", min_length=1)
    partner_id: str | None = Field(default=None, alias="partnerId")

    class Config:
        populate_by_name = True


@router.get("/procurement-list")
def procurement_list(db: Session = Depends(get_db)):
    return [
        {
            "productId": ln.product_id,
            "productName": ln.product_name,
            "totalQuantity": ln.total_quantity,
            "unit": ln.unit,
        }
        for ln in procurement.aggregated_procurement_list(db)
    ]


@router.get("/prices")
def current_prices(db: Session = Depends(get_db)):
    return [
        {"productId": pid, "price": float(price)}
        for pid, price in sorted(latest_price_map(db).items())
    ]


@router.post("/set-price")
def set_price(payload: PriceSet, db: Session = Depends(get_db)):
    try:
        row = procurement.set_procurement_price(db, product_id=payload.product_id, price=payload.price)
    except NotFound:
        raise HTTPException(status_code=404, detail="Product not found")

    return {
        "id": row.id,
        "productId": row.product_id,
        "price": float(row.price),
        "setAt": row.set_at,
    }


@router.get("/earnings")
def earnings(
    partner_id: str | None = Query(default=None, alias="partnerId"),
    db: Session = Depends(get_db),
    settings: Config = Depends(get_settings),
):
    e = procurement.partner_earnings(db, partner_id, fee=settings.convenience_fee)
    return {
        "totalDeliveries": e.total_deliveries,
        "totalEarnings": float(e.total_earnings),
    }


@router.post("/mark-delivered")
def mark_delivered(payload: DeliveryCreate, db: Session = Depends(get_db)):
    try:
        d = mark_order_delivered(db, payload.order_id, partner_id=payload.partner_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    except InvalidReference as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "id": d.id,
        "orderId": d.order_id,
        "partnerId": d.partner_id,
        "deliveredAt": d.delivered_at,
    }
