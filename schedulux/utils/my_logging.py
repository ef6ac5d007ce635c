# schedulux/utils/my_logging.py
"""Logging configuration"""
import logging
import sys
from typing import Optional

from schedulux.config.settings import get_settings

# Third-party loggers that drown out booking/lock messages at INFO
NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "alembic",
    "httpx",
    "uvicorn.access",
)


def setup_logging(verbose: bool = True, level: Optional[str] = None) -> None:
    """Configure root logging for the API process and CLI helpers"""
    settings = get_settings()

    if not verbose:
        log_level = logging.WARNING
    else:
        log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Booking decisions are always worth keeping, even when the rest is quiet
    logging.getLogger("schedulux.services.booking").setLevel(min(log_level, logging.INFO))

    for name in NOISY_LOGGERS:
        noisy = logging.getLogger(name)
        noisy.setLevel(logging.ERROR if not verbose else logging.WARNING)
        noisy.propagate = verbose
