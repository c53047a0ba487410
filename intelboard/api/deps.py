"""FastAPI dependencies for IntelBoard.

Provides shared dependencies (auth, database, managers) via FastAPI's
Depends() injection system.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request

from ..core.auth.rbac import has_permission
from ..core.constants import ROLE_ADMIN

logger = logging.getLogger(__name__)


async def get_db_manager(request: Request):
    """Get DatabaseManager from app state."""
    return request.app.state.db_manager


async def get_user_manager(request: Request):
    return request.app.state.user_manager


async def get_company_manager(request: Request):
    return request.app.state.company_manager


async def get_request_manager(request: Request):
    return request.app.state.request_manager


async def get_landscape_manager(request: Request):
    return request.app.state.landscape_manager


async def get_llm(request: Request):
    """LLM override from app state, else the process-wide gateway."""
    llm = getattr(request.app.state, "llm", None)
    if llm is not None:
        return llm
    from ..core.ai import get_llm as _get_llm
    return _get_llm()


def _session_user(request: Request) -> Optional[dict]:
    session = request.session
    user_id = session.get("user_id")
    if not user_id:
        return None
    return {
        "user_id": user_id,
        "name": session.get("name"),
        "role": session.get("role"),
        "company_id": session.get("company_id"),
    }


async def get_current_user(request: Request) -> dict:
    """FastAPI dependency for authentication.

    Checks session for logged-in user. Returns user dict or raises 401.
    """
    user = _session_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


async def get_optional_user(request: Request) -> Optional[dict]:
    """Like get_current_user but returns None instead of 401."""
    return _session_user(request)


async def require_admin(user: dict = Depends(get_current_user)) -> dict:
    """Require Admin role. Returns user dict or raises 403."""
    if user.get("role") != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def require_roles(*roles: str):
    """Build a dependency that admits only the given roles."""

    async def _require(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in roles:
            raise HTTPException(status_code=403, detail=f"Requires role: {', '.join(roles)}")
        return user

    return _require


def require_permission(permission):
    """Build a dependency that admits roles granted ``permission``."""

    async def _require(user: dict = Depends(get_current_user)) -> dict:
        if not has_permission(user.get("role"), permission):
            raise HTTPException(status_code=403, detail=f"Missing permission: {permission.value}")
        return user

    return _require
