"""Request (ticket) routes: CRUD, board, matching and the specialist workflow."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ...core.auth.rbac import Permission
from ...core.constants import ROLE_ADMIN, ROLE_SPECIALIST
from ...core.matching import find_matches
from ...core.requests import build_board
from ..deps import (
    get_current_user,
    get_landscape_manager,
    get_request_manager,
    get_user_manager,
    require_permission,
    require_roles,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/requests", tags=["requests"])


# ── Request/Response models ──────────────────────────────────────────────

class RequestCreate(BaseModel):
    id: Optional[str] = None
    title: str
    description: str
    industry: Optional[str] = None
    budget: Optional[str] = None
    tags: List[str] = []
    urgency: Optional[str] = None
    category: Optional[str] = None
    attributes: Dict[str, Any] = {}
    attachments: List[str] = []
    acceptance_criteria: List[str] = []
    # Accepted for client compatibility; the server sets the timestamp
    created_at: Optional[str] = None


class RequestUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    industry: Optional[str] = None
    budget: Optional[str] = None
    tags: Optional[List[str]] = None
    urgency: Optional[str] = None
    category: Optional[str] = None
    attributes: Optional[Dict[str, Any]] = None


class FeedbackCreate(BaseModel):
    message: str
    url: Optional[str] = None
    screenshot: Optional[str] = None


class StatusMove(BaseModel):
    status: str


class AssignRequest(BaseModel):
    specialist_id: str


class SpecialistActionRequest(BaseModel):
    action: str
    note: Optional[str] = None


class CriterionText(BaseModel):
    text: str


class CommentCreate(BaseModel):
    text: str


class AttachmentCreate(BaseModel):
    name: str


class LinkProjectRequest(BaseModel):
    project_id: str


# ── Access helpers ───────────────────────────────────────────────────────

def _load(rm, request_id: str) -> dict:
    found = rm.get_request(request_id)
    if not found:
        raise HTTPException(status_code=404, detail="Request not found")
    return found


def _can_view(user: dict, req: dict, um) -> bool:
    if user.get("role") == ROLE_ADMIN:
        return True
    if req.get("creator_id") == user["user_id"] or req.get("assigned_specialist_id") == user["user_id"]:
        return True
    if user.get("company_id") and req.get("creator_id"):
        creator = um.get_user(req["creator_id"])
        return bool(creator) and creator.get("company_id") == user["company_id"]
    return False


def _visible(rm, um, user: dict, request_id: str) -> dict:
    req = _load(rm, request_id)
    if not _can_view(user, req, um):
        raise HTTPException(status_code=403, detail="Access denied")
    return req


def _owned(rm, user: dict, request_id: str) -> dict:
    req = _load(rm, request_id)
    if user.get("role") != ROLE_ADMIN and req.get("creator_id") != user["user_id"]:
        raise HTTPException(status_code=403, detail="Only the creator or an Admin can do this")
    return req


# ── Routes ───────────────────────────────────────────────────────────────

@router.get("")
async def list_requests(
    creator_ids: Optional[List[str]] = Query(None),
    categories: Optional[List[str]] = Query(None),
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
):
    requests = rm.list_requests(user, creator_ids=creator_ids, categories=categories)
    return {"success": True, "requests": requests, "count": len(requests)}


@router.post("")
async def create_request(
    data: RequestCreate,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
):
    payload = data.model_dump(exclude={"created_at"}, exclude_none=True)
    return {"success": True, "request": rm.create_request(payload, user["user_id"])}


@router.post("/feedback")
async def submit_feedback(
    data: FeedbackCreate,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
):
    created = rm.create_feedback(user["user_id"], data.message, data.url, data.screenshot)
    return {"success": True, "request": created}


@router.get("/board")
async def get_board(
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
):
    """Visible requests grouped into the caller's board columns."""
    requests = rm.list_requests(user)
    return {"success": True, "columns": build_board(requests, user.get("role"))}


@router.get("/{request_id}")
async def get_request(
    request_id: str,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
    um=Depends(get_user_manager),
):
    return {"success": True, "request": _visible(rm, um, user, request_id)}


@router.patch("/{request_id}")
async def update_request(
    request_id: str,
    data: RequestUpdate,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
):
    _owned(rm, user, request_id)
    updated = rm.update_request(request_id, data.model_dump(exclude_unset=True))
    return {"success": True, "request": updated}


@router.post("/{request_id}/status")
async def move_status(
    request_id: str,
    data: StatusMove,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
):
    _owned(rm, user, request_id)
    return {"success": True, "request": rm.move_status(request_id, data.status)}


@router.post("/{request_id}/clear-action")
async def clear_action_needed(
    request_id: str,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
    um=Depends(get_user_manager),
):
    _visible(rm, um, user, request_id)
    return {"success": True, "request": rm.clear_action_needed(request_id)}


# ── Matching ─────────────────────────────────────────────────────────────

@router.get("/{request_id}/matches")
async def get_matches(
    request_id: str,
    user: dict = Depends(require_permission(Permission.ASSIGN_SPECIALISTS)),
    rm=Depends(get_request_manager),
    um=Depends(get_user_manager),
):
    req = _load(rm, request_id)
    matches = find_matches(req, um.list_specialists())
    return {"success": True, "matches": [m.to_dict() for m in matches]}


@router.post("/{request_id}/assign")
async def assign_specialist(
    request_id: str,
    data: AssignRequest,
    user: dict = Depends(require_permission(Permission.ASSIGN_SPECIALISTS)),
    rm=Depends(get_request_manager),
):
    return {"success": True, "request": rm.assign_specialist(request_id, data.specialist_id)}


@router.post("/{request_id}/specialist-action")
async def specialist_action(
    request_id: str,
    data: SpecialistActionRequest,
    user: dict = Depends(require_roles(ROLE_SPECIALIST)),
    rm=Depends(get_request_manager),
):
    updated = rm.specialist_action(request_id, user["user_id"], data.action, data.note)
    return {"success": True, "request": updated}


# ── Acceptance criteria ──────────────────────────────────────────────────

@router.post("/{request_id}/criteria")
async def add_criterion(
    request_id: str,
    data: CriterionText,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
    um=Depends(get_user_manager),
):
    _visible(rm, um, user, request_id)
    return {"success": True, "request": rm.add_criterion(request_id, data.text, user.get("role"))}


@router.put("/{request_id}/criteria/{index}")
async def edit_criterion(
    request_id: str,
    index: int,
    data: CriterionText,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
    um=Depends(get_user_manager),
):
    _visible(rm, um, user, request_id)
    updated = rm.edit_criterion(request_id, index, data.text, user.get("role"))
    return {"success": True, "request": updated}


@router.delete("/{request_id}/criteria/{index}")
async def remove_criterion(
    request_id: str,
    index: int,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
    um=Depends(get_user_manager),
):
    _visible(rm, um, user, request_id)
    return {"success": True, "request": rm.remove_criterion(request_id, index, user.get("role"))}


@router.post("/{request_id}/criteria/propose")
async def propose_criteria(
    request_id: str,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
    um=Depends(get_user_manager),
):
    _visible(rm, um, user, request_id)
    return {"success": True, "request": rm.propose_criteria(request_id, user.get("role"))}


@router.post("/{request_id}/criteria/approve")
async def approve_criteria(
    request_id: str,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
):
    _owned(rm, user, request_id)
    return {"success": True, "request": rm.approve_criteria(request_id)}


# ── Comments and attachments ─────────────────────────────────────────────

@router.post("/{request_id}/comments")
async def add_comment(
    request_id: str,
    data: CommentCreate,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
    um=Depends(get_user_manager),
):
    _visible(rm, um, user, request_id)
    return {"success": True, "comment": rm.add_comment(request_id, user, data.text)}


@router.post("/{request_id}/attachments")
async def add_attachment(
    request_id: str,
    data: AttachmentCreate,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
    um=Depends(get_user_manager),
):
    _visible(rm, um, user, request_id)
    return {"success": True, "request": rm.add_attachment(request_id, data.name)}


# ── IT Flora link ────────────────────────────────────────────────────────

@router.post("/{request_id}/link-project")
async def link_project(
    request_id: str,
    data: LinkProjectRequest,
    user: dict = Depends(get_current_user),
    rm=Depends(get_request_manager),
    lm=Depends(get_landscape_manager),
):
    _owned(rm, user, request_id)
    return {"success": True, "request": rm.link_project(request_id, data.project_id, lm, user)}


@router.post("/{request_id}/nda")
async def sign_nda(
    request_id: str,
    user: dict = Depends(require_roles(ROLE_SPECIALIST)),
    rm=Depends(get_request_manager),
    lm=Depends(get_landscape_manager),
):
    return {"success": True, "request": rm.sign_nda(request_id, user["user_id"], lm)}
