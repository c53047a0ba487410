"""IT Flora routes: the landscape document and its systems, assets,
integrations, projects, documents, queries and contract import.

Every mutation runs through LandscapeManager.mutate for the caller's
scope, so it is applied to the latest saved document under the scope lock.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from ...core.ai.profile_extraction import docx_to_text
from ...core.auth.rbac import AccessLevel, check_project_access
from ...core.flora import (
    FloraStore,
    ParsedResult,
    apply_import,
    generate_bank_flora,
    parse_contract_text,
    plan_import,
)
from ..core.exceptions import AuthorizationError, ValidationError
from ..deps import get_current_user, get_landscape_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flora", tags=["flora"])


# ── Request/Response models ──────────────────────────────────────────────

class SystemCreate(BaseModel):
    system: Dict[str, Any]
    project_id: Optional[str] = None


class PositionUpdate(BaseModel):
    x: float
    y: float


class BulkAssetUpdate(BaseModel):
    asset_ids: List[str]
    updates: Dict[str, Any]


class DocumentCreate(BaseModel):
    name: str
    type: str = ""
    content: str = ""


class ShareRequest(BaseModel):
    user_id: str


class ImportPreviewRequest(BaseModel):
    text: str


class ImportApplyRequest(BaseModel):
    text: Optional[str] = None
    parsed: Optional[Dict[str, Any]] = None
    resolution: str = "merge"
    project_id: Optional[str] = None
    document: Optional[Dict[str, Any]] = None


# ── Helpers ──────────────────────────────────────────────────────────────

def _require_project(store: FloraStore, user: dict, project_id: str, level: AccessLevel):
    project = store.get_project(project_id)
    allowed, message = check_project_access(user, project.to_dict(), level)
    if not allowed:
        raise AuthorizationError(message)
    return project


def _preview(store: FloraStore, parsed: ParsedResult) -> dict:
    conflicts = plan_import(parsed, store)
    return {
        "success": True,
        "result": parsed.to_dict(),
        "conflicts": [
            {"newSystem": new.name, "existingSystemId": existing.id, "existingSystem": existing.name}
            for new, existing in conflicts
        ],
    }


# ── Document ─────────────────────────────────────────────────────────────

@router.get("")
async def get_landscape(user: dict = Depends(get_current_user), lm=Depends(get_landscape_manager)):
    """The caller's landscape with only the projects they may see."""
    scope = lm.scope_for(user)
    document = lm.get_document(scope)
    store = FloraStore.from_dict(document)
    document["projects"] = [p.to_dict() for p in store.visible_projects(user)]
    return {"success": True, "scope": scope, "document": document}


# ── Systems ──────────────────────────────────────────────────────────────

@router.post("/systems")
async def add_system(data: SystemCreate, user: dict = Depends(get_current_user), lm=Depends(get_landscape_manager)):
    def fn(store: FloraStore):
        if data.project_id:
            _require_project(store, user, data.project_id, AccessLevel.EDITOR)
        return store.add_system(data.system, user["user_id"], project_id=data.project_id).to_dict()

    return {"success": True, "system": lm.mutate(lm.scope_for(user), fn)}


@router.patch("/systems/{system_id}")
async def update_system(
    system_id: str,
    updates: Dict[str, Any],
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    system = lm.mutate(lm.scope_for(user), lambda store: store.update_system(system_id, updates).to_dict())
    return {"success": True, "system": system}


@router.put("/systems/{system_id}/position")
async def move_system(
    system_id: str,
    data: PositionUpdate,
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    system = lm.mutate(
        lm.scope_for(user),
        lambda store: store.update_system_position(system_id, data.x, data.y).to_dict(),
    )
    return {"success": True, "system": system}


@router.delete("/systems/{system_id}")
async def delete_system(system_id: str, user: dict = Depends(get_current_user), lm=Depends(get_landscape_manager)):
    removed = lm.mutate(lm.scope_for(user), lambda store: store.delete_system(system_id))
    return {"success": True, **removed}


# ── Assets ───────────────────────────────────────────────────────────────

@router.post("/systems/{system_id}/assets")
async def add_asset(
    system_id: str,
    asset: Dict[str, Any],
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    created = lm.mutate(lm.scope_for(user), lambda store: store.add_asset(system_id, asset).to_dict())
    return {"success": True, "asset": created}


@router.post("/systems/{system_id}/assets/bulk")
async def bulk_update_assets(
    system_id: str,
    data: BulkAssetUpdate,
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    assets = lm.mutate(
        lm.scope_for(user),
        lambda store: [a.to_dict() for a in store.bulk_update_assets(system_id, data.asset_ids, data.updates)],
    )
    return {"success": True, "assets": assets}


@router.patch("/systems/{system_id}/assets/{asset_id}")
async def update_asset(
    system_id: str,
    asset_id: str,
    updates: Dict[str, Any],
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    asset = lm.mutate(
        lm.scope_for(user),
        lambda store: store.update_asset(system_id, asset_id, updates).to_dict(),
    )
    return {"success": True, "asset": asset}


@router.post("/systems/{system_id}/assets/{asset_id}/verify")
async def verify_asset(
    system_id: str,
    asset_id: str,
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    asset = lm.mutate(lm.scope_for(user), lambda store: store.verify_asset(system_id, asset_id).to_dict())
    return {"success": True, "asset": asset}


@router.delete("/systems/{system_id}/assets/{asset_id}")
async def delete_asset(
    system_id: str,
    asset_id: str,
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    removed = lm.mutate(lm.scope_for(user), lambda store: store.delete_asset(system_id, asset_id))
    return {"success": True, "integrations_removed": removed}


# ── Documents ────────────────────────────────────────────────────────────

@router.post("/systems/{system_id}/documents")
async def add_document(
    system_id: str,
    data: DocumentCreate,
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    payload = {**data.model_dump(), "uploadedBy": user["user_id"]}
    document = lm.mutate(lm.scope_for(user), lambda store: store.add_document(system_id, payload).to_dict())
    return {"success": True, "document": document}


@router.delete("/systems/{system_id}/documents/{document_id}")
async def remove_document(
    system_id: str,
    document_id: str,
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    lm.mutate(lm.scope_for(user), lambda store: store.remove_document(system_id, document_id))
    return {"success": True}


# ── Integrations ─────────────────────────────────────────────────────────

@router.post("/integrations")
async def add_integration(
    integration: Dict[str, Any],
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    created = lm.mutate(lm.scope_for(user), lambda store: store.add_integration(integration).to_dict())
    return {"success": True, "integration": created}


@router.patch("/integrations/{integration_id}")
async def update_integration(
    integration_id: str,
    updates: Dict[str, Any],
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    updated = lm.mutate(
        lm.scope_for(user),
        lambda store: store.update_integration(integration_id, updates).to_dict(),
    )
    return {"success": True, "integration": updated}


@router.delete("/integrations/{integration_id}")
async def remove_integration(
    integration_id: str,
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    lm.mutate(lm.scope_for(user), lambda store: store.remove_integration(integration_id))
    return {"success": True}


# ── Projects ─────────────────────────────────────────────────────────────

@router.get("/projects")
async def list_projects(user: dict = Depends(get_current_user), lm=Depends(get_landscape_manager)):
    store = lm.load(lm.scope_for(user))
    return {"success": True, "projects": [p.to_dict() for p in store.visible_projects(user)]}


@router.post("/projects")
async def add_project(
    project: Dict[str, Any],
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    created = lm.mutate(lm.scope_for(user), lambda store: store.add_project(project, user["user_id"]).to_dict())
    return {"success": True, "project": created}


@router.get("/projects/{project_id}")
async def get_project_view(project_id: str, user: dict = Depends(get_current_user), lm=Depends(get_landscape_manager)):
    """The project's systems and the integrations among them."""
    store = lm.load(lm.scope_for(user))
    _require_project(store, user, project_id, AccessLevel.VIEWER)
    return {"success": True, **store.project_view(project_id)}


@router.patch("/projects/{project_id}")
async def update_project(
    project_id: str,
    updates: Dict[str, Any],
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    def fn(store: FloraStore):
        _require_project(store, user, project_id, AccessLevel.EDITOR)
        return store.update_project(project_id, updates).to_dict()

    return {"success": True, "project": lm.mutate(lm.scope_for(user), fn)}


@router.delete("/projects/{project_id}")
async def delete_project(project_id: str, user: dict = Depends(get_current_user), lm=Depends(get_landscape_manager)):
    def fn(store: FloraStore):
        _require_project(store, user, project_id, AccessLevel.OWNER)
        store.delete_project(project_id)

    lm.mutate(lm.scope_for(user), fn)
    return {"success": True}


@router.post("/projects/{project_id}/systems/{system_id}/toggle")
async def toggle_project_system(
    project_id: str,
    system_id: str,
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    def fn(store: FloraStore):
        _require_project(store, user, project_id, AccessLevel.EDITOR)
        return store.toggle_system_in_project(project_id, system_id)

    included = lm.mutate(lm.scope_for(user), fn)
    return {"success": True, "included": included}


@router.post("/projects/{project_id}/share")
async def share_project(
    project_id: str,
    data: ShareRequest,
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    def fn(store: FloraStore):
        _require_project(store, user, project_id, AccessLevel.OWNER)
        return store.share_project(project_id, data.user_id).to_dict()

    return {"success": True, "project": lm.mutate(lm.scope_for(user), fn)}


# ── Queries ──────────────────────────────────────────────────────────────

@router.get("/catalogue")
async def catalogue(q: str = "", user: dict = Depends(get_current_user), lm=Depends(get_landscape_manager)):
    entries = lm.load(lm.scope_for(user)).catalogue(q)
    return {"success": True, "assets": entries, "count": len(entries)}


@router.get("/search")
async def search_systems(q: str = "", user: dict = Depends(get_current_user), lm=Depends(get_landscape_manager)):
    systems = lm.load(lm.scope_for(user)).search_systems(q)
    return {"success": True, "systems": [s.to_dict() for s in systems]}


@router.get("/assets/{asset_id}/lineage")
async def lineage(asset_id: str, user: dict = Depends(get_current_user), lm=Depends(get_landscape_manager)):
    return {"success": True, **lm.load(lm.scope_for(user)).lineage(asset_id)}


# ── Contract import ──────────────────────────────────────────────────────

@router.post("/import/preview")
async def import_preview(
    data: ImportPreviewRequest,
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    """Parse contract text and report name conflicts without saving."""
    store = lm.load(lm.scope_for(user))
    return _preview(store, parse_contract_text(data.text))


@router.post("/import/preview-file")
async def import_preview_file(
    file: UploadFile = File(...),
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    if not (file.filename or "").lower().endswith(".docx"):
        raise HTTPException(status_code=400, detail="Only .docx contracts can be uploaded; paste other formats as text")
    text = docx_to_text(await file.read())
    store = lm.load(lm.scope_for(user))
    return {**_preview(store, parse_contract_text(text)), "text": text}


@router.post("/import")
async def import_apply(
    data: ImportApplyRequest,
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    if data.parsed is not None:
        parsed = ParsedResult.from_dict(data.parsed)
    elif data.text:
        parsed = parse_contract_text(data.text)
    else:
        raise ValidationError("Provide contract text or a parsed preview")

    document = {**data.document, "uploadedBy": user["user_id"]} if data.document else None

    def fn(store: FloraStore):
        if data.project_id:
            _require_project(store, user, data.project_id, AccessLevel.EDITOR)
        return apply_import(store, parsed, data.resolution, project_id=data.project_id, document=document)

    return {"success": True, **lm.mutate(lm.scope_for(user), fn)}


@router.post("/samples/bank")
async def seed_bank_sample(user: dict = Depends(get_current_user), lm=Depends(get_landscape_manager)):
    """Add the sample banking landscape to the caller's scope."""
    systems = lm.mutate(
        lm.scope_for(user),
        lambda store: [s.to_dict() for s in generate_bank_flora(store, user["user_id"])],
    )
    return {"success": True, "systems": systems}
