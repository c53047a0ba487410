"""Shared fixtures: an in-memory database and the managers built on it."""

import pytest

from intelboard.core.db import DatabaseManager, User
from intelboard.core.auth import AuthService
from intelboard.core.constants import APPROVAL_APPROVED


@pytest.fixture
def db_manager():
    db = DatabaseManager("sqlite://")
    db.init_db()
    yield db
    db.engine.dispose()


@pytest.fixture
def make_user(db_manager):
    """Insert a user row and return its id."""

    def _make(user_id, role="Customer", company_id=None, password="secret123", **fields):
        with db_manager.get_session() as session:
            session.add(User(
                id=user_id,
                name=fields.pop("name", user_id.title()),
                email=fields.pop("email", f"{user_id}@example.com"),
                password_hash=AuthService.hash_password(password),
                role=role,
                company_id=company_id,
                approval_status=fields.pop("approval_status", APPROVAL_APPROVED),
                **fields,
            ))
        return user_id

    return _make
