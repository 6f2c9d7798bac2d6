"""Configuration models and YAML loader for the autoapply engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_ORACLE_PROVIDERS = ("anthropic", "gemini", "ollama", "openai")


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/autoapply.db"


class BrowserConfig(BaseModel):
    """Automation resource and portal session configuration."""

    headless: bool = True
    timeout_ms: int = Field(default=30000, ge=1000)
    session_dir: str = "data/sessions"
    user_agent: str = DEFAULT_USER_AGENT
    login_retries: int = Field(default=1, ge=0, le=3)


class SchedulerConfig(BaseModel):
    """Tick cadence for the job runner."""

    tick_interval_s: float = Field(default=60.0, ge=1.0)


class ApplyConfig(BaseModel):
    """Bounds and settle delays for the per-listing application flow."""

    max_chat_attempts: int = Field(default=10, ge=1, le=50)
    apply_button_timeout_ms: int = Field(default=5000, ge=500)
    drawer_timeout_ms: int = Field(default=3000, ge=100)
    answer_settle_s: float = Field(default=3.0, ge=0.0)
    static_settle_s: float = Field(default=4.0, ge=0.0)
    final_settle_s: float = Field(default=5.0, ge=0.0)
    success_phrase: str = "You have successfully applied to"

    @field_validator("success_phrase")
    @classmethod
    def phrase_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "success_phrase must not be empty"
            raise ValueError(msg)
        return v.strip()


class OracleConfig(BaseModel):
    """Decision oracle backend selection."""

    provider: str = "gemini"
    model: str | None = None
    timeout_s: float = Field(default=30.0, gt=0.0)
    instruction_cache: str = "cache/system-instruction.json"

    @field_validator("provider")
    @classmethod
    def known_provider(cls, v: str) -> str:
        name = v.strip().lower()
        if name not in _ORACLE_PROVIDERS:
            valid = ", ".join(_ORACLE_PROVIDERS)
            msg = f"Unknown oracle provider '{v}'. Available: {valid}"
            raise ValueError(msg)
        return name


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    apply: ApplyConfig = Field(default_factory=ApplyConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
