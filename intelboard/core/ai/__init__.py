"""
AI Module

Exports:
- LLMGateway / get_llm: LlamaIndex LLM behind retry and metrics
- extract_profile_from_text / extract_profile_from_file: CV import
- Architect flow: analyze_requirements, ask_follow_up, generate_architecture, apply_architecture
"""

from .architect import (
    ArchitectureRequirements,
    GeneratedArchitecture,
    analyze_requirements,
    apply_architecture,
    ask_follow_up,
    generate_architecture,
    parse_architecture,
)
from .llm import LLMGateway, get_llm, parse_json_output
from .profile_extraction import extract_profile_from_file, extract_profile_from_text

__all__ = [
    "ArchitectureRequirements",
    "GeneratedArchitecture",
    "LLMGateway",
    "analyze_requirements",
    "apply_architecture",
    "ask_follow_up",
    "extract_profile_from_file",
    "extract_profile_from_text",
    "generate_architecture",
    "get_llm",
    "parse_architecture",
    "parse_json_output",
]
