"""
Database module for IntelBoard.

Exports:
- DatabaseManager: Database connection and session management
- wait_for_db: Database availability checker with retry logic
- Models: Company, User, Request, Landscape
- Base: SQLAlchemy declarative base
"""

from .db import DatabaseManager, wait_for_db
from .models import (
    Base,
    Company,
    User,
    Request,
    Landscape,
)

__all__ = [
    # Database management
    "DatabaseManager",
    "wait_for_db",

    # ORM models
    "Base",
    "Company",
    "User",
    "Request",
    "Landscape",
]
