"""Specialist matching for requests.

Scores each specialist against a request with three weighted signals and
returns the non-zero matches best first:

    industry equality      +10
    skill in request text  +5 each, first three only
    role in request text   +5

The score is the point total as a percentage of MAX_POINTS, capped at 100.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

logger = logging.getLogger(__name__)

INDUSTRY_POINTS = 10
SKILL_POINTS = 5
ROLE_POINTS = 5
MAX_SKILL_MATCHES = 3

# industry + role + two skills is a full match
MAX_POINTS = 25


@dataclass
class ScoredSpecialist:
    specialist: Dict[str, Any]
    score: int
    match_reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {**self.specialist, "score": self.score, "matchReasons": list(self.match_reasons)}


def _skill_name(skill: Any) -> str:
    if isinstance(skill, dict):
        return skill.get("name") or ""
    return str(skill) if skill else ""


def _request_text(request: Dict[str, Any]) -> str:
    tags = " ".join(request.get("tags") or [])
    return f"{request.get('title') or ''} {request.get('description') or ''} {tags}".lower()


def score_specialist(request: Dict[str, Any], specialist: Dict[str, Any]) -> ScoredSpecialist:
    points = 0
    reasons: List[str] = []

    industry = (request.get("industry") or "").lower()
    if industry and any((ind or "").lower() == industry for ind in specialist.get("industry") or []):
        points += INDUSTRY_POINTS
        reasons.append(f"Industry match: {request.get('industry')}")

    text = _request_text(request)

    skill_matches = 0
    for skill in specialist.get("skills") or []:
        name = _skill_name(skill)
        if name and name.lower() in text:
            skill_matches += 1
            if skill_matches <= MAX_SKILL_MATCHES:
                points += SKILL_POINTS
                reasons.append(f"Skill match: {name}")

    # Job title is the specialist's working role; the account role is the fallback
    role = specialist.get("job_title") or specialist.get("role") or ""
    if role and role.lower() in text:
        points += ROLE_POINTS
        reasons.append(f"Role match: {role}")

    # half-up rounding
    score = min(int(points * 100 / MAX_POINTS + 0.5), 100)
    return ScoredSpecialist(specialist=specialist, score=score, match_reasons=reasons)


def find_matches(request: Dict[str, Any], specialists: Iterable[Dict[str, Any]]) -> List[ScoredSpecialist]:
    """Rank specialists for a request, dropping those with no signal."""
    scored = [score_specialist(request, s) for s in specialists]
    matches = sorted((s for s in scored if s.score > 0), key=lambda s: s.score, reverse=True)
    logger.debug(f"Request {request.get('id')}: {len(matches)} of {len(scored)} specialists matched")
    return matches
