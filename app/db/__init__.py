"""
==============================================================================
Database Package
==============================================================================

SQLAlchemy infrastructure for the submitted-record store.

Architecture:
------------
├── database.py   - DatabaseManager class, session factory
├── models.py     - SubmittedRecord ORM model, MemberRole enum
└── init_db.py    - DatabaseInitializer for setup

==============================================================================
"""

from .database import DatabaseManager, Base, get_db, get_database_manager
from .models import SubmittedRecord, MemberRole
from .init_db import DatabaseInitializer, init_db

__all__ = [
    "DatabaseManager",
    "Base",
    "get_db",
    "get_database_manager",
    "SubmittedRecord",
    "MemberRole",
    "DatabaseInitializer",
    "init_db",
]
