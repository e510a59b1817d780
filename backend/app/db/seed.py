from __future__ import annotations

import logging

from sqlalchemy import select

from backend.app.core.config import get_config
from backend.app.core.logging_config import configure_logging
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.db.models.models_v1 import User
from backend.app.db.models.core_types import Role, UserStatus
from backend.services.catalog import ensure_default_products

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("vendor@vendorhub.local", "Demo Vendor", Role.vendor, "Stall 12, Central Market"),
    ("partner@vendorhub.local", "Demo Partner", Role.partner, None),
]


def run_seed(create_schema: bool = False) -> None:
    if create_schema:
        # hors Alembic : pratique pour une base SQLite locale
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        # 1) Produits par défaut
        ensure_default_products(db)

        # 2) Un vendeur et un partenaire de démo
        for email, name, role, stall_info in DEMO_USERS:
            user = db.scalar(select(User).where(User.email == email))
            if not user:
                db.add(
                    User(
                        email=email,
                        name=name,
                        role=role,
                        status=UserStatus.approved,
                        stall_info=stall_info,
                    )
                )
        db.commit()

        logger.info("SEED OK: default products, %d demo users", len(DEMO_USERS))
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging(get_config().log_level)
    run_seed(create_schema=get_config().database_url.startswith("sqlite"))
