# Lazy imports to avoid triggering full dependency chain.
# This allows targeted imports like `from intelboard.core.db.models import Base`
# without pulling in LlamaIndex, python-docx, etc.

__all__ = [
    # Persistence
    "DatabaseManager",
    # Team and auth
    "AuthService",
    "CompanyManager",
    "UserManager",
    # Requests and matching
    "RequestManager",
    "find_matches",
    # IT Flora
    "FloraStore",
    "LandscapeManager",
    "parse_contract_text",
    # AI
    "get_llm",
]

_IMPORT_MAP = {
    "DatabaseManager": ".db",
    "AuthService": ".auth",
    "CompanyManager": ".team",
    "UserManager": ".team",
    "RequestManager": ".requests",
    "find_matches": ".matching",
    "FloraStore": ".flora",
    "LandscapeManager": ".flora",
    "parse_contract_text": ".flora",
    "get_llm": ".ai",
}


def __getattr__(name):
    if name in _IMPORT_MAP:
        import importlib
        module = importlib.import_module(_IMPORT_MAP[name], __package__)
        return getattr(module, name)
    raise AttributeError(f"module 'intelboard.core' has no attribute {name}")
