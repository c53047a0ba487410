"""Application settings.

Values come from environment variables (a ``.env`` file is honoured) with an
optional YAML overlay at ``config/intelboard.yaml``. Environment variables
always win over the file.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

logger = logging.getLogger(__name__)

_CONFIG_PATH = Path(__file__).parent.parent / "config" / "intelboard.yaml"


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite:///intelboard.db", description="SQLAlchemy database URL")
    wait_retries: int = Field(default=10, description="Connection attempts at startup")
    wait_delay: float = Field(default=2.0, description="Seconds between connection attempts")


class LLMSettings(BaseModel):
    provider: str = Field(default="openai", description="openai or ollama")
    model: str = Field(default="gpt-4o", description="Model name")
    temperature: float = Field(default=0.7)
    max_tokens: int = Field(default=4000)
    max_retries: int = Field(default=3, description="Retries on transient provider errors")
    request_timeout: float = Field(default=120.0)
    api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    ollama_host: str = Field(default="localhost")
    ollama_port: int = Field(default=11434)


class ServerSettings(BaseModel):
    session_secret: str = Field(default="intelboard-dev-secret-change-me")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )
    log_level: str = Field(default="INFO")


class IntelBoardSettings(BaseModel):
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    invite_default_password: str = Field(default="password123")


# Environment variable -> (section, key)
_ENV_MAP = {
    "DATABASE_URL": ("database", "url"),
    "DB_WAIT_RETRIES": ("database", "wait_retries"),
    "LLM_PROVIDER": ("llm", "provider"),
    "LLM_MODEL": ("llm", "model"),
    "LLM_TEMPERATURE": ("llm", "temperature"),
    "LLM_MAX_TOKENS": ("llm", "max_tokens"),
    "LLM_MAX_RETRIES": ("llm", "max_retries"),
    "OPENAI_API_KEY": ("llm", "api_key"),
    "OLLAMA_HOST": ("llm", "ollama_host"),
    "OLLAMA_PORT": ("llm", "ollama_port"),
    "SESSION_SECRET": ("server", "session_secret"),
    "LOG_LEVEL": ("server", "log_level"),
    "INVITE_DEFAULT_PASSWORD": (None, "invite_default_password"),
}


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}
    except Exception as e:
        logger.error(f"Error loading {path}: {e}")
        return {}


def load_settings(config_path: Optional[Path] = None, environ: Optional[dict] = None) -> IntelBoardSettings:
    """Build settings from the YAML overlay and the environment."""
    environ = os.environ if environ is None else environ
    raw = _load_yaml(config_path or _CONFIG_PATH)

    for env_name, (section, key) in _ENV_MAP.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        if section is None:
            raw[key] = value
        else:
            raw.setdefault(section, {})[key] = value

    origins = environ.get("CORS_ORIGINS")
    if origins:
        raw.setdefault("server", {})["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]

    return IntelBoardSettings(**raw)


_settings: Optional[IntelBoardSettings] = None


def get_settings() -> IntelBoardSettings:
    """Return the process-wide settings singleton."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
