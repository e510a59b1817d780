from __future__ import annotations

from typing import Generator

from fastapi import Header, HTTPException

from backend.app.core.config import Config, get_config
from backend.app.db.session import SessionLocal

def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_settings() -> Config:
    return get_config()


def require_user_id(user_id: str | None = Header(default=None, alias="user-id")) -> str:
    # Pas d'auth ici : l'identifiant est fourni par le client
    if not user_id or not user_id.strip():
        raise HTTPException(status_code=401, detail="User ID required")
    return user_id.strip()
