from __future__ import annotations

import logging
import sys


def configure_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure le logging stdlib pour toute l'application.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("backend").setLevel(numeric_level)

    # SQLAlchemy est très bavard en INFO
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return logging.getLogger("backend")
