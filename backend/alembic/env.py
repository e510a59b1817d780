"""
Alembic env : l'URL vient de la config applicative (DATABASE_URL),
pas d'alembic.ini, pour que l'app et les migrations visent la même base.
"""
from __future__ import annotations

import os
import sys
from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context

alembic_cfg = context.config
if alembic_cfg.config_file_name is not None:
    fileConfig(alembic_cfg.config_file_name)

# backend/alembic/env.py -> racine du repo, pour les imports "backend.*"
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from backend.app.core.config import load_config  # noqa: E402
from backend.app.db.base import Base  # noqa: E402
from backend.app.db.models import models_v1  # noqa: F401,E402  (enregistre les tables)

DATABASE_URL = load_config().database_url
IS_SQLITE = DATABASE_URL.startswith("sqlite")


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        # SQLite ne sait pas ALTER une contrainte : recopie de table
        render_as_batch=IS_SQLITE,
        **kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate_offline() -> None:
    """Génère le SQL sans connexion (alembic upgrade --sql)."""
    _configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


def migrate_online() -> None:
    engine = create_engine(DATABASE_URL, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _configure(connection=connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    migrate_offline()
else:
    migrate_online()
