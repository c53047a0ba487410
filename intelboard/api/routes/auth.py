"""FastAPI authentication routes.

Provides endpoints for registration, login, logout, current user and
password change.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from ...core.auth import AuthService
from ...core.team import UserManager
from ..deps import get_current_user, get_db_manager, get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Request/Response models ──────────────────────────────────────────────

class RegisterRequest(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email: str
    password: str


class PasswordChangeRequest(BaseModel):
    old_password: str
    new_password: str


def _store_session(request: Request, user) -> None:
    request.session["user_id"] = user.id
    request.session["name"] = user.name
    request.session["role"] = user.role
    request.session["company_id"] = user.company_id


# ── Routes ───────────────────────────────────────────────────────────────

@router.post("/register")
async def register(data: RegisterRequest, db_manager=Depends(get_db_manager)):
    """Create an account; corporate e-mail domains start pending approval."""
    with db_manager.get_session() as db_session:
        result = AuthService(db_session).register(data.name, data.email, data.password)
    return {"success": True, **result}


@router.post("/login")
async def login(data: LoginRequest, request: Request, db_manager=Depends(get_db_manager)):
    """Authenticate with e-mail and password."""
    with db_manager.get_session() as db_session:
        user = AuthService(db_session).login(data.email, data.password)

        if not user:
            raise HTTPException(status_code=401, detail="Invalid email or password")

        _store_session(request, user)
        return {"success": True, "user": UserManager.user_to_dict(user)}


@router.post("/logout")
async def logout(request: Request):
    request.session.clear()
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me")
async def get_me(
    request: Request,
    current_user: Optional[dict] = Depends(get_optional_user),
    db_manager=Depends(get_db_manager),
):
    """Get current logged-in user info."""
    if not current_user:
        return {"success": True, "authenticated": False, "user": None}

    with db_manager.get_session() as db_session:
        user = AuthService(db_session).get_user_by_id(current_user["user_id"])

        if not user:
            request.session.clear()
            return {"success": True, "authenticated": False, "user": None}

        # Role or company may have changed since login
        _store_session(request, user)
        return {"success": True, "authenticated": True, "user": UserManager.user_to_dict(user)}


@router.post("/password")
async def change_password(
    data: PasswordChangeRequest,
    current_user: dict = Depends(get_current_user),
    db_manager=Depends(get_db_manager),
):
    """Change current user's password."""
    with db_manager.get_session() as db_session:
        success = AuthService(db_session).change_password(
            current_user["user_id"], data.old_password, data.new_password
        )

    if not success:
        raise HTTPException(status_code=400, detail="Invalid old password")

    return {"success": True, "message": "Password changed successfully"}
