"""
Calcul des totaux de commande.

Règle métier :
    total = frais de service + SUM(prix_unitaire * quantité)

Un produit sans prix fixé compte pour 0 (pas d'erreur).
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from backend.app.db.models.models_v1 import ProcurementPrice

CONVENIENCE_FEE = Decimal("40")


@dataclass(frozen=True)
class QuotedLine:
    product_id: str
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class OrderQuote:
    lines: tuple[QuotedLine, ...]
    fee: Decimal

    @property
    def items_total(self) -> Decimal:
        return sum((ln.subtotal for ln in self.lines), Decimal("0"))

    @property
    def total(self) -> Decimal:
        return self.fee + self.items_total


def latest_price_map(db: Session) -> dict[str, Decimal]:
    """
    Prix courant par produit = la ligne avec le set_at le plus récent.

    Seules les lignes au set_at max de chaque produit sont lues. En cas
    d'égalité, elles sont parcourues par id croissant (ordre d'insertion) :
    la dernière insérée l'emporte.
    """
    latest = (
        select(
            ProcurementPrice.product_id,
            func.max(ProcurementPrice.set_at).label("latest_set_at"),
        )
        .group_by(ProcurementPrice.product_id)
        .subquery()
    )

    rows = db.execute(
        select(ProcurementPrice.product_id, ProcurementPrice.price)
        .join(
            latest,
            (latest.c.product_id == ProcurementPrice.product_id)
            & (latest.c.latest_set_at == ProcurementPrice.set_at),
        )
        .order_by(ProcurementPrice.id.asc())
    ).all()
    return {str(pid): Decimal(price) for pid, price in rows}


def quote_order(
    lines: Iterable[tuple[str, int]],
    prices: Mapping[str, Decimal],
    *,
    fee: Decimal = CONVENIENCE_FEE,
) -> OrderQuote:
    quoted = []
    for product_id, quantity in lines:
        if quantity < 1:
            raise ValueError(f"quantity must be >= 1 (product {product_id})")
        unit_price = Decimal(prices.get(product_id, Decimal("0")))
        quoted.append(QuotedLine(product_id=product_id, quantity=int(quantity), unit_price=unit_price))

    return OrderQuote(lines=tuple(quoted), fee=Decimal(fee))
