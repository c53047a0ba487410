"""User directory and profile routes."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from ..deps import get_current_user, get_user_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


# ── Request/Response models ──────────────────────────────────────────────

class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    job_title: Optional[str] = None
    skills: Optional[List[Any]] = None
    industry: Optional[List[str]] = None
    experience: Optional[str] = None
    linkedin: Optional[str] = None
    availability: Optional[str] = None


class RoleUpdate(BaseModel):
    role: str


# ── Routes ───────────────────────────────────────────────────────────────

@router.get("")
async def search_users(
    q: str = "",
    role: Optional[str] = None,
    skill: Optional[str] = None,
    user: dict = Depends(get_current_user),
    um=Depends(get_user_manager),
):
    users = um.search_users(q, role=role, skill=skill)
    return {"success": True, "users": users, "count": len(users)}


@router.patch("/me")
async def update_my_profile(
    data: ProfileUpdate,
    request: Request,
    user: dict = Depends(get_current_user),
    um=Depends(get_user_manager),
):
    fields: Dict[str, Any] = data.model_dump(exclude_unset=True)
    updated = um.update_profile(user["user_id"], fields)
    if "name" in fields:
        request.session["name"] = updated["name"]
    return {"success": True, "user": updated}


@router.get("/creators/{creator_id}")
async def resolve_creator(
    creator_id: str,
    user: dict = Depends(get_current_user),
    um=Depends(get_user_manager),
):
    """Display identity for a request creator (real or placeholder)."""
    return {"success": True, "creator": um.resolve_creator(creator_id)}


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    user: dict = Depends(get_current_user),
    um=Depends(get_user_manager),
):
    found = um.get_user(user_id)
    if not found:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "user": found}


@router.patch("/{user_id}/role")
async def update_role(
    user_id: str,
    data: RoleUpdate,
    user: dict = Depends(get_current_user),
    um=Depends(get_user_manager),
):
    updated = um.update_role(user["user_id"], user_id, data.role)
    return {"success": True, "user": updated}
