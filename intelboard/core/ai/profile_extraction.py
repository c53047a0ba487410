"""Profile extraction from CV text or uploaded documents."""

import io
import logging
from typing import Any, Dict, Optional

from docx import Document

from .llm import get_llm, chat_text, parse_json_output
from .prompts import PROFILE_EXTRACTION_PROMPT

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 50
MAX_TEXT_LENGTH = 20000


def extract_profile_from_text(text: str, llm: Optional[Any] = None) -> Dict[str, Any]:
    """Extract ``{bio, jobTitle, skills, workExperience, education}`` from free text.

    Returns:
        ``{"success": True, "data": {...}}`` or ``{"success": False, "error": msg}``
    """
    if not text or len(text) < MIN_TEXT_LENGTH:
        return {"success": False, "error": "Not enough text to analyze. Please provide more detail."}

    try:
        llm = llm or get_llm()
        raw = chat_text(llm, PROFILE_EXTRACTION_PROMPT, text[:MAX_TEXT_LENGTH], purpose="profile")
        data = parse_json_output(raw)
    except Exception as e:
        logger.error(f"Profile extraction failed: {e}")
        return {"success": False, "error": str(e) or "Failed to analyze text."}

    logger.info(f"Extracted profile with {len(data.get('skills') or [])} skills")
    return {"success": True, "data": data}


def docx_to_text(content: bytes) -> str:
    document = Document(io.BytesIO(content))
    return "\n".join(p.text for p in document.paragraphs)


def extract_profile_from_file(filename: str, content: bytes, llm: Optional[Any] = None) -> Dict[str, Any]:
    """Extract a profile from an uploaded file (``.docx`` only for now)."""
    name = (filename or "").lower()
    if name.endswith(".pdf"):
        return {"success": False, "error": "PDF support coming soon. Please use DOCX or paste text."}
    if not name.endswith(".docx"):
        return {"success": False, "error": "Unsupported file type."}

    try:
        text = docx_to_text(content)
    except Exception as e:
        logger.error(f"Could not read {filename}: {e}")
        return {"success": False, "error": "Failed to analyze file."}

    return extract_profile_from_text(text, llm=llm)
