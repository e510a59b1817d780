"""
Order service.

Création de commande, suivi de statut et livraison.
Toute écriture multi-lignes (commande + items, livraison + statut) est
committée en une seule fois : en cas d'erreur, rien n'est persisté.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from backend.app.db.models.models_v1 import (
    User,
    Product,
    Order,
    OrderItem,
    Delivery,
)
from backend.app.db.models.core_types import OrderStatus
from backend.services.errors import NotFound, InvalidReference, InvalidStatusTransition
from backend.services.pricing import CONVENIENCE_FEE, latest_price_map, quote_order

logger = logging.getLogger(__name__)

# Cycle de vie prévu d'une commande
STATUS_FLOW = [
    OrderStatus.placed,
    OrderStatus.procuring,
    OrderStatus.on_the_way,
    OrderStatus.delivered,
]


def _order_query():
    return select(Order).options(
        selectinload(Order.items).selectinload(OrderItem.product),
        selectinload(Order.user),
    )


def place_order(
    db: Session,
    *,
    user_id: str,
    items: Iterable[tuple[str, int]],
    fee: Decimal = CONVENIENCE_FEE,
) -> Order:
    """
    Crée une commande PLACED avec un item par ligne.

    Le prix de chaque item est figé depuis le prix courant du produit ;
    le total persisté est le total calculé (frais inclus).
    """
    lines = [(str(pid), int(qty)) for pid, qty in items]

    if not db.get(User, user_id):
        raise NotFound("User", user_id)

    for pid, _ in lines:
        if not db.get(Product, pid):
            raise InvalidReference(f"Invalid product_id {pid}")

    quote = quote_order(lines, latest_price_map(db), fee=fee)

    try:
        order = Order(user_id=user_id, status=OrderStatus.placed, total=quote.total)
        db.add(order)
        db.flush()  # get order.id

        for ln in quote.lines:
            db.add(
                OrderItem(
                    order_id=order.id,
                    product_id=ln.product_id,
                    quantity=ln.quantity,
                    price=ln.unit_price,
                )
            )

        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Order creation failed for user %s", user_id)
        raise

    logger.info(
        "Order %s placed by user %s: %d item(s), total=%s",
        order.id,
        user_id,
        len(quote.lines),
        quote.total,
    )
    return get_order(db, order.id)


def get_order(db: Session, order_id: str) -> Order:
    order = db.execute(_order_query().where(Order.id == order_id)).scalar_one_or_none()
    if not order:
        raise NotFound("Order", order_id)
    return order


def list_orders(db: Session) -> list[Order]:
    return list(db.execute(_order_query().order_by(Order.created_at.desc())).scalars().all())


def list_orders_for_user(db: Session, user_id: str) -> list[Order]:
    return list(
        db.execute(
            _order_query()
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
        )
        .scalars()
        .all()
    )


def check_transition(current: OrderStatus, requested: OrderStatus) -> None:
    """Autorise uniquement le même statut ou l'étape suivante."""
    if current == requested:
        return
    cur_idx = STATUS_FLOW.index(current)
    if STATUS_FLOW.index(requested) != cur_idx + 1:
        raise InvalidStatusTransition(current, requested)


def update_order_status(
    db: Session,
    order_id: str,
    status: OrderStatus,
    *,
    enforce_transitions: bool = False,
) -> Order:
    """
    Écrase le statut de la commande.

    Sans enforce_transitions, n'importe quel statut est accepté depuis
    n'importe quel état (comportement historique de l'API).
    """
    order = db.get(Order, order_id)
    if not order:
        raise NotFound("Order", order_id)

    previous = order.status
    if enforce_transitions:
        try:
            check_transition(previous, status)
        except InvalidStatusTransition:
            logger.warning("Rejected status change for order %s: %s -> %s", order_id, previous.value, status.value)
            raise

    order.status = status
    db.commit()
    db.refresh(order)

    logger.info("Order %s status %s -> %s", order_id, previous.value, status.value)
    return order


def mark_delivered(db: Session, order_id: str, *, partner_id: str | None = None) -> Delivery:
    """
    Enregistre la livraison et passe la commande en DELIVERED.

    Rejouer l'appel pour une commande déjà livrée renvoie la livraison existante.
    """
    order = db.get(Order, order_id)
    if not order:
        raise NotFound("Order", order_id)
    if partner_id is not None and not db.get(User, partner_id):
        raise InvalidReference(f"Invalid partner_id {partner_id}")

    # idempotent replay
    existing = db.execute(select(Delivery).where(Delivery.order_id == order_id)).scalar_one_or_none()
    if existing:
        if order.status != OrderStatus.delivered:
            order.status = OrderStatus.delivered
            db.commit()
            db.refresh(existing)
        return existing

    try:
        delivery = Delivery(
            order_id=order_id,
            partner_id=partner_id,
            delivered_at=datetime.now(timezone.utc),
        )
        db.add(delivery)
        order.status = OrderStatus.delivered
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to mark order %s delivered", order_id)
        raise

    db.refresh(delivery)
    logger.info("Order %s delivered (partner=%s)", order_id, partner_id)
    return delivery
