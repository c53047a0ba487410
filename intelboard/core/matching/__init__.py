"""Specialist matching."""

from .matcher import ScoredSpecialist, find_matches, score_specialist

__all__ = ["ScoredSpecialist", "find_matches", "score_specialist"]
