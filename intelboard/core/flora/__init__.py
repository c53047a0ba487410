"""
IT Flora Module

Exports:
- FloraStore: In-memory landscape with referential bookkeeping
- LandscapeManager: Per-scope persistence of landscape documents
- parse_contract_text / apply_import: Data-contract import
- generate_bank_flora: Sample banking landscape
"""

from .contract_parser import ParsedResult, apply_import, parse_contract_text, plan_import
from .landscape import LandscapeManager
from .models import Asset, Column, Integration, Project, System, SystemDocument
from .samples import generate_bank_flora
from .store import FloraIntegrityError, FloraNotFound, FloraStore

__all__ = [
    "Asset",
    "Column",
    "FloraIntegrityError",
    "FloraNotFound",
    "FloraStore",
    "Integration",
    "LandscapeManager",
    "ParsedResult",
    "Project",
    "System",
    "SystemDocument",
    "apply_import",
    "generate_bank_flora",
    "parse_contract_text",
    "plan_import",
]
