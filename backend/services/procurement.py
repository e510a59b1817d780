"""
Procurement service.

Côté partenaire : liste d'achat agrégée, prix du jour et gains.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from backend.app.db.models.models_v1 import Product, Order, OrderItem, ProcurementPrice
from backend.app.db.models.core_types import OrderStatus
from backend.services.errors import NotFound
from backend.services.pricing import CONVENIENCE_FEE

logger = logging.getLogger(__name__)

# Seules les commandes pas encore prises en charge alimentent la liste d'achat
OPEN_ORDER_STATUSES = {OrderStatus.placed}


@dataclass(frozen=True)
class ProcurementLine:
    product_id: str
    product_name: str
    total_quantity: int
    unit: str


@dataclass(frozen=True)
class Earnings:
    total_deliveries: int
    total_earnings: Decimal


def aggregated_procurement_list(db: Session) -> list[ProcurementLine]:
    """
    Règle métier :
        total_quantity = SUM(quantity des items) sur les commandes PLACED, par produit

    Un produit sans demande n'apparaît pas (pas de ligne à 0).
    """
    rows = db.execute(
        select(
            OrderItem.product_id,
            Product.name,
            Product.unit,
            func.coalesce(func.sum(OrderItem.quantity), 0).label("total_quantity"),
        )
        .join(Order, Order.id == OrderItem.order_id)
        .join(Product, Product.id == OrderItem.product_id)
        .where(Order.status.in_(OPEN_ORDER_STATUSES))
        .group_by(OrderItem.product_id, Product.name, Product.unit)
        .order_by(Product.name.asc())
    ).all()

    return [
        ProcurementLine(
            product_id=str(pid),
            product_name=name,
            total_quantity=int(qty),
            unit=unit,
        )
        for pid, name, unit, qty in rows
    ]


def set_procurement_price(db: Session, *, product_id: str, price: Decimal) -> ProcurementPrice:
    """Ajoute une ligne de prix ; l'historique n'est jamais réécrit."""
    if not db.get(Product, product_id):
        raise NotFound("Product", product_id)

    row = ProcurementPrice(
        product_id=product_id,
        price=Decimal(price),
        set_at=datetime.now(timezone.utc),
    )
    db.add(row)
    db.commit()
    db.refresh(row)

    logger.info("Procurement price for product %s set to %s", product_id, row.price)
    return row


def partner_earnings(
    db: Session,
    partner_id: str | None = None,
    *,
    fee: Decimal = CONVENIENCE_FEE,
) -> Earnings:
    """
    total_earnings = nb de commandes DELIVERED * frais de service.

    partner_id est accepté mais ignoré : pas d'attribution par partenaire.
    """
    delivered = db.execute(
        select(func.count(Order.id)).where(Order.status == OrderStatus.delivered)
    ).scalar_one()

    return Earnings(
        total_deliveries=int(delivered),
        total_earnings=Decimal(fee) * int(delivered),
    )
