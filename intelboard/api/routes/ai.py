"""AI routes: CV profile extraction and the guided architecture designer."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from ...core.ai import (
    ArchitectureRequirements,
    GeneratedArchitecture,
    analyze_requirements,
    apply_architecture,
    ask_follow_up,
    extract_profile_from_file,
    extract_profile_from_text,
    generate_architecture,
)
from ...core.ai.llm import check_ollama_model
from ...core.auth.rbac import AccessLevel, check_project_access
from ...core.flora import FloraStore
from ..core.exceptions import AuthorizationError, IntelBoardError
from ..deps import get_current_user, get_landscape_manager, get_llm, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


# ── Request/Response models ──────────────────────────────────────────────

class ProfileTextRequest(BaseModel):
    text: str


class ChatTurn(BaseModel):
    role: str
    content: str


class AnalyzeRequest(BaseModel):
    requirements: Dict[str, Any]


class GenerateRequest(BaseModel):
    requirements: Dict[str, Any]
    history: List[ChatTurn] = []


class FollowUpRequest(BaseModel):
    context: str
    history: List[ChatTurn] = []


class ApplyArchitectureRequest(BaseModel):
    architecture: Dict[str, Any]
    project_id: Optional[str] = None


def _history(turns: List[ChatTurn]) -> List[Dict[str, str]]:
    return [turn.model_dump() for turn in turns]


def _call(fn, *args, **kwargs):
    """Run an LLM-backed call, reporting provider failures as 502."""
    try:
        return fn(*args, **kwargs)
    except IntelBoardError:
        raise
    except Exception as e:
        logger.error(f"AI request failed: {e}")
        raise HTTPException(status_code=502, detail="AI request failed. Please try again.")


# ── Profile extraction ───────────────────────────────────────────────────

@router.post("/profile/text")
async def profile_from_text(
    data: ProfileTextRequest,
    user: dict = Depends(get_current_user),
    llm=Depends(get_llm),
):
    """Extract bio, job title, skills, experience and education from CV text."""
    return extract_profile_from_text(data.text, llm=llm)


@router.post("/profile/file")
async def profile_from_file(
    file: UploadFile = File(...),
    user: dict = Depends(get_current_user),
    llm=Depends(get_llm),
):
    content = await file.read()
    return extract_profile_from_file(file.filename, content, llm=llm)


# ── Architecture designer ────────────────────────────────────────────────

@router.post("/architect/analyze")
async def architect_analyze(
    data: AnalyzeRequest,
    user: dict = Depends(get_current_user),
    llm=Depends(get_llm),
):
    requirements = ArchitectureRequirements.from_dict(data.requirements)
    result = _call(analyze_requirements, requirements, llm=llm)
    return {"success": True, **result}


@router.post("/architect/follow-up")
async def architect_follow_up(
    data: FollowUpRequest,
    user: dict = Depends(get_current_user),
    llm=Depends(get_llm),
):
    reply = _call(ask_follow_up, data.context, _history(data.history), llm=llm)
    return {"success": True, "reply": reply}


@router.post("/architect/generate")
async def architect_generate(
    data: GenerateRequest,
    user: dict = Depends(get_current_user),
    llm=Depends(get_llm),
):
    requirements = ArchitectureRequirements.from_dict(data.requirements)
    architecture = _call(generate_architecture, requirements, _history(data.history), llm=llm)
    return {"success": True, "architecture": architecture.to_dict()}


@router.post("/architect/apply")
async def architect_apply(
    data: ApplyArchitectureRequest,
    user: dict = Depends(get_current_user),
    lm=Depends(get_landscape_manager),
):
    """Add a generated architecture's systems and integrations to the landscape."""
    architecture = GeneratedArchitecture.from_dict(data.architecture)

    def fn(store: FloraStore):
        if data.project_id:
            project = store.get_project(data.project_id)
            allowed, message = check_project_access(user, project.to_dict(), AccessLevel.EDITOR)
            if not allowed:
                raise AuthorizationError(message)
        return apply_architecture(store, architecture, user["user_id"], project_id=data.project_id)

    return {"success": True, **lm.mutate(lm.scope_for(user), fn)}


# ── Status ───────────────────────────────────────────────────────────────

@router.get("/status")
async def ai_status(request: Request, user: dict = Depends(require_admin)):
    """Configured provider, gateway metrics and, for Ollama, model availability."""
    llm_settings = request.app.state.settings.llm
    status = {
        "provider": llm_settings.provider,
        "model": llm_settings.model,
        "configured": True,
        "metrics": None,
    }

    try:
        llm = await get_llm(request)
    except IntelBoardError as e:
        status["configured"] = False
        status["error"] = e.message
        llm = None

    if llm is not None and hasattr(llm, "get_metrics"):
        status["metrics"] = llm.get_metrics()

    if llm_settings.provider == "ollama":
        status["model_available"] = check_ollama_model(
            llm_settings.ollama_host, llm_settings.ollama_port, llm_settings.model
        )

    return {"success": True, "status": status}
