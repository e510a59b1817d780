"""
Catalogue produits.

Le catalogue est initialisé à la première lecture s'il est vide.
"""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.db.models.models_v1 import Product

logger = logging.getLogger(__name__)

DEFAULT_PRODUCTS = [
    ("Onions", "kg"),
    ("Potatoes", "kg"),
    ("Cooking Oil", "ltr"),
    ("Tomatoes", "kg"),
]


def ensure_default_products(db: Session) -> int:
    """Insère les produits par défaut si la table est vide. Retourne le nb créé."""
    exists = db.execute(select(Product.id).limit(1)).first()
    if exists:
        return 0

    for name, unit in DEFAULT_PRODUCTS:
        db.add(Product(name=name, unit=unit))
    db.commit()

    logger.info("Seeded %d default products", len(DEFAULT_PRODUCTS))
    return len(DEFAULT_PRODUCTS)


def list_products(db: Session) -> list[Product]:
    ensure_default_products(db)
    return list(db.execute(select(Product).order_by(Product.name)).scalars().all())
