"""AI solution architect.

Conversation flow:
1. analyze_requirements - initial analysis plus clarifying questions
2. ask_follow_up - free-text follow-up questions
3. generate_architecture - systems, integrations, layers, stack, practices
4. apply_architecture - import the generated systems into a landscape
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..constants import ASSET_PLANNED, UNVERIFIED
from ..flora.models import Asset, System, new_id, normalize_system_type
from ..flora.store import FloraStore
from .llm import chat_text, get_llm, parse_json_output
from .prompts import (
    ARCHITECT_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_follow_up_prompt,
    build_generation_prompt,
)

logger = logging.getLogger(__name__)

DEFAULT_QUESTION = "What are your main scalability concerns?"
DEFAULT_SUMMARY = "Generated architecture"
PARSE_FAILURE_SUMMARY = "Failed to parse architecture. Please try again with more specific requirements."

# Canvas grid for generated systems
GRID_COLUMNS = 3
GRID_ORIGIN = 100
GRID_DX = 300
GRID_DY = 200

_NUMBERED_RE = re.compile(r"^\d+\.\s*")


@dataclass
class ArchitectureRequirements:
    business_context: str = ""
    industry: str = ""
    project_description: str = ""
    functional_requirements: List[str] = field(default_factory=list)
    non_functional_requirements: List[str] = field(default_factory=list)
    acceptance_criteria: List[str] = field(default_factory=list)
    technical_preferences: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "businessContext": self.business_context,
            "industry": self.industry,
            "projectDescription": self.project_description,
            "functionalRequirements": list(self.functional_requirements),
            "nonFunctionalRequirements": list(self.non_functional_requirements),
            "acceptanceCriteria": list(self.acceptance_criteria),
            "technicalPreferences": self.technical_preferences,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArchitectureRequirements":
        return cls(
            business_context=data.get("businessContext", ""),
            industry=data.get("industry", ""),
            project_description=data.get("projectDescription", ""),
            functional_requirements=list(data.get("functionalRequirements") or []),
            non_functional_requirements=list(data.get("nonFunctionalRequirements") or []),
            acceptance_criteria=list(data.get("acceptanceCriteria") or []),
            technical_preferences=data.get("technicalPreferences"),
        )


@dataclass
class GeneratedArchitecture:
    systems: List[System] = field(default_factory=list)
    integrations: List[Dict[str, Any]] = field(default_factory=list)
    layers: List[Dict[str, Any]] = field(default_factory=list)
    tech_stack: List[Dict[str, Any]] = field(default_factory=list)
    best_practices: List[Dict[str, Any]] = field(default_factory=list)
    summary: str = DEFAULT_SUMMARY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "systems": [s.to_dict() for s in self.systems],
            "integrations": list(self.integrations),
            "layers": list(self.layers),
            "techStack": list(self.tech_stack),
            "bestPractices": list(self.best_practices),
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedArchitecture":
        return cls(
            systems=[System.from_dict(s) for s in data.get("systems") or []],
            integrations=list(data.get("integrations") or []),
            layers=list(data.get("layers") or []),
            tech_stack=list(data.get("techStack") or []),
            best_practices=list(data.get("bestPractices") or []),
            summary=data.get("summary") or DEFAULT_SUMMARY,
        )


def extract_questions(text: str) -> List[str]:
    """Questions from free text: lines ending in '?' or numbered lines."""
    questions = []
    for line in (text or "").split("\n"):
        stripped = line.strip()
        if stripped.endswith("?") or _NUMBERED_RE.match(stripped):
            cleaned = _NUMBERED_RE.sub("", stripped).strip()
            if cleaned:
                questions.append(cleaned)
    return questions or [DEFAULT_QUESTION]


def analyze_requirements(requirements: ArchitectureRequirements, llm: Optional[Any] = None) -> Dict[str, Any]:
    """Initial analysis and clarifying questions for a requirements brief."""
    llm = llm or get_llm()
    raw = chat_text(
        llm,
        ARCHITECT_SYSTEM_PROMPT,
        build_analysis_prompt(requirements.to_dict()),
        purpose="architect_analyze",
    )

    try:
        parsed = parse_json_output(raw)
        questions = [q for q in parsed.get("questions") or [] if isinstance(q, str) and q.strip()]
        return {
            "analysis": parsed.get("analysis") or "",
            "questions": questions or [DEFAULT_QUESTION],
        }
    except ValueError:
        logger.info("Analysis was not JSON; extracting questions from text")
        return {"analysis": raw, "questions": extract_questions(raw)}


def ask_follow_up(context: str, history: List[Dict[str, str]], llm: Optional[Any] = None) -> str:
    llm = llm or get_llm()
    return chat_text(
        llm,
        ARCHITECT_SYSTEM_PROMPT,
        build_follow_up_prompt(context),
        history=history,
        purpose="architect_follow_up",
    )


def generate_architecture(
    requirements: ArchitectureRequirements,
    history: List[Dict[str, str]],
    llm: Optional[Any] = None,
) -> GeneratedArchitecture:
    """Ask for a complete architecture and convert it to landscape systems."""
    llm = llm or get_llm()
    raw = chat_text(
        llm,
        ARCHITECT_SYSTEM_PROMPT,
        build_generation_prompt(requirements.to_dict(), history),
        history=history,
        purpose="architect_generate",
    )
    return parse_architecture(raw)


def parse_architecture(raw: str) -> GeneratedArchitecture:
    """Convert the model's JSON answer; unparseable output yields an empty result."""
    try:
        parsed = parse_json_output(raw)
        systems = [_to_system(spec, index) for index, spec in enumerate(parsed.get("systems") or [])]
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        logger.error(f"Failed to parse architecture response: {e}")
        logger.debug(f"Raw response: {raw}")
        return GeneratedArchitecture(summary=PARSE_FAILURE_SUMMARY)

    best_practices = [
        {
            "id": new_id(),
            "category": bp.get("category"),
            "title": bp.get("title"),
            "description": bp.get("description"),
            "priority": bp.get("priority") or "medium",
            "references": list(bp.get("references") or []),
        }
        for bp in parsed.get("bestPractices") or []
        if isinstance(bp, dict)
    ]

    return GeneratedArchitecture(
        systems=systems,
        integrations=[i for i in parsed.get("integrations") or [] if isinstance(i, dict)],
        layers=list(parsed.get("layers") or []),
        tech_stack=list(parsed.get("techStack") or []),
        best_practices=best_practices,
        summary=parsed.get("summary") or DEFAULT_SUMMARY,
    )


def _to_system(spec: Dict[str, Any], index: int) -> System:
    system_id = new_id()
    return System(
        id=system_id,
        name=spec["name"],
        type=normalize_system_type(spec.get("type")),
        description=spec.get("description"),
        position={
            "x": float(GRID_ORIGIN + (index % GRID_COLUMNS) * GRID_DX),
            "y": float(GRID_ORIGIN + (index // GRID_COLUMNS) * GRID_DY),
        },
        assets=[
            Asset(
                id=new_id(),
                name=asset.get("name", ""),
                type=asset.get("type") or "Table",
                system_id=system_id,
                status=ASSET_PLANNED,
                description=asset.get("description"),
                schema=spec.get("schema"),
                verification_status=UNVERIFIED,
            )
            for asset in spec.get("assets") or []
        ],
    )


def apply_architecture(
    store: FloraStore,
    architecture: GeneratedArchitecture,
    owner_id: str,
    project_id: Optional[str] = None,
) -> Dict[str, int]:
    """Import generated systems and wire their integrations by system name."""
    for system in architecture.systems:
        system.owner_id = owner_id
    store.import_systems(architecture.systems, project_id=project_id)

    by_name = {s.name.lower(): s for s in architecture.systems}
    created = 0
    for integration in architecture.integrations:
        source = by_name.get((integration.get("sourceSystemName") or "").lower())
        target = by_name.get((integration.get("targetSystemName") or "").lower())
        if source is None or target is None or not source.assets:
            continue
        store.add_integration({
            "sourceAssetId": source.assets[0].id,
            "targetSystemId": target.id,
            "technology": integration.get("technology"),
            "description": integration.get("description"),
        })
        created += 1

    logger.info(f"Applied architecture: {len(architecture.systems)} systems, {created} integrations")
    return {"systemsImported": len(architecture.systems), "integrationsCreated": created}
