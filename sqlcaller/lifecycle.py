"""Lifecycle — process startup/shutdown for applications using SqlCaller.

Invariants:
    - startup() configures logging, then initializes the module-level db_manager
    - shutdown() disposes the engine and clears db_manager

Design Decisions:
    - Explicit functions instead of import-time setup: the host application
      decides when the database comes up
"""

import logging

from sqlcaller.config import Settings, get_settings
from sqlcaller.infrastructure.database import DatabaseManager, close_db, init_db
from sqlcaller.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


def startup(settings: Settings | None = None) -> DatabaseManager:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_recycle=settings.database_pool_recycle,
        echo=settings.database_echo,
    )
    logger.info("sqlcaller started")
    return manager


def shutdown() -> None:
    close_db()
    logger.info("sqlcaller shut down")
