"""
==============================================================================
Database Initialization Module
==============================================================================

Creates the record store schema at startup.

Initialization Flow:
-------------------
1. Verify the connection
2. Create all tables from ORM models
3. Log the number of records already stored for this namespace

Usage:
------
    from app.db import init_db

    init_db()

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func

from app.config import get_settings
from app.db.database import DatabaseManager, get_database_manager
from app.db.models import SubmittedRecord


# Module logger
logger = logging.getLogger(__name__)


class DatabaseInitializer:
    """
    Database initialization manager.

    Example:
        >>> initializer = DatabaseInitializer()
        >>> initializer.initialize()
    """

    def __init__(self, db_manager: Optional[DatabaseManager] = None) -> None:
        self._db_manager = db_manager or get_database_manager()
        self._settings = get_settings()

    def create_tables(self) -> None:
        """Create all tables from ORM models."""
        self._db_manager.create_tables()

    def count_records(self) -> int:
        """Count records stored under the configured namespace."""
        with self._db_manager.session_scope() as session:
            return session.query(func.count(SubmittedRecord.id)).filter(
                SubmittedRecord.namespace == self._settings.app_namespace
            ).scalar() or 0

    def initialize(self) -> bool:
        """
        Run the full initialization flow.

        Returns:
            True if the store is reachable and the schema is in place
        """
        if not self._db_manager.verify_connection():
            logger.error("❌ Record store unreachable, skipping schema setup")
            return False

        self.create_tables()
        logger.info(
            f"📦 Namespace '{self._settings.app_namespace}' holds "
            f"{self.count_records()} records"
        )
        return True


def init_db() -> bool:
    """Initialize the record store using the process-wide manager."""
    return DatabaseInitializer().initialize()
