"""Company, invitation and approval routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ...core.constants import ROLE_ADMIN
from ..deps import get_company_manager, get_current_user, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/companies", tags=["companies"])


# ── Request/Response models ──────────────────────────────────────────────

class CompanyCreate(BaseModel):
    name: str
    domain: str
    logo: Optional[str] = None


class MemberRequest(BaseModel):
    email: str
    name: str


def _require_company_admin(user: dict, company_id: str) -> None:
    if user.get("role") != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    if user.get("company_id") and user["company_id"] != company_id:
        raise HTTPException(status_code=403, detail="Access denied: another company")


# ── Routes ───────────────────────────────────────────────────────────────

@router.post("")
async def create_company(
    data: CompanyCreate,
    user: dict = Depends(require_admin),
    cm=Depends(get_company_manager),
):
    company = cm.create_company(data.name, data.domain, data.logo)
    return {"success": True, "company": company}


@router.get("/by-domain/{domain}")
async def get_company_by_domain(domain: str, cm=Depends(get_company_manager)):
    """Public lookup used by the sign-up form."""
    company = cm.get_company_by_domain(domain)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return {"success": True, "company": company}


@router.get("/{company_id}/users")
async def get_company_users(
    company_id: str,
    user: dict = Depends(get_current_user),
    cm=Depends(get_company_manager),
):
    if user.get("role") != ROLE_ADMIN and user.get("company_id") != company_id:
        raise HTTPException(status_code=403, detail="Access denied: another company")
    return {"success": True, "users": cm.get_company_users(company_id)}


@router.post("/{company_id}/invite")
async def invite_user(
    company_id: str,
    data: MemberRequest,
    user: dict = Depends(get_current_user),
    cm=Depends(get_company_manager),
):
    if user.get("company_id") != company_id and user.get("role") != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Access denied: another company")
    invited = cm.invite_user(data.email, data.name, company_id)
    return {"success": True, "user": invited}


@router.post("/{company_id}/access-requests")
async def request_access(
    company_id: str,
    data: MemberRequest,
    cm=Depends(get_company_manager),
):
    """Anonymous request to join a company; pending until approved."""
    pending = cm.request_company_access(data.email, data.name, company_id)
    return {"success": True, "user": pending}


@router.get("/{company_id}/pending")
async def list_pending(
    company_id: str,
    user: dict = Depends(get_current_user),
    cm=Depends(get_company_manager),
):
    _require_company_admin(user, company_id)
    return {"success": True, "users": cm.list_pending_approvals(company_id)}


@router.post("/approvals/{user_id}/approve")
async def approve_user(
    user_id: str,
    user: dict = Depends(get_current_user),
    cm=Depends(get_company_manager),
):
    return {"success": True, "user": cm.approve_user(user, user_id)}


@router.post("/approvals/{user_id}/reject")
async def reject_user(
    user_id: str,
    user: dict = Depends(get_current_user),
    cm=Depends(get_company_manager),
):
    return {"success": True, "user": cm.reject_user(user, user_id)}
