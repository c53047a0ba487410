"""Landscape persistence.

Each scope (a company, or a user without one) owns one IT Flora
document stored as JSON in the ``landscapes`` table. Mutations are
load-apply-save under a per-scope lock, and every save bumps the
document version.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional, TypeVar

from ..db import DatabaseManager
from ..db.models import Landscape
from .store import FloraStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LandscapeManager:
    """Loads and saves FloraStore documents per scope."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        logger.info("LandscapeManager initialized")

    @staticmethod
    def scope_for(user: Optional[Dict[str, Any]]) -> str:
        """``company:<id>`` for company members, else ``user:<id>``."""
        user = user or {}
        if user.get("company_id"):
            return f"company:{user['company_id']}"
        return f"user:{user.get('user_id') or 'anonymous'}"

    def _lock(self, scope: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(scope)
            if lock is None:
                lock = self._locks[scope] = threading.Lock()
            return lock

    def load(self, scope: str) -> FloraStore:
        with self.db.get_session() as session:
            row = session.query(Landscape).filter(Landscape.scope == scope).first()
            return FloraStore.from_dict(row.document if row else None)

    def get_document(self, scope: str) -> Dict[str, Any]:
        with self.db.get_session() as session:
            row = session.query(Landscape).filter(Landscape.scope == scope).first()
            document = FloraStore.from_dict(row.document if row else None).to_dict()
            document["version"] = row.version if row else 0
            return document

    def mutate(self, scope: str, fn: Callable[[FloraStore], T]) -> T:
        """Apply ``fn`` to the scope's store and persist the result.

        If ``fn`` raises, nothing is written.
        """
        with self._lock(scope):
            with self.db.get_session() as session:
                row = session.query(Landscape).filter(Landscape.scope == scope).first()
                store = FloraStore.from_dict(row.document if row else None)

                result = fn(store)

                if row is None:
                    row = Landscape(scope=scope, document=store.to_dict(), version=1)
                    session.add(row)
                else:
                    row.document = store.to_dict()
                    row.version = (row.version or 0) + 1

                logger.debug(f"Saved landscape {scope} v{row.version}")
                return result
