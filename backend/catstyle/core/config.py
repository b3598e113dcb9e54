"""
Configuration management using Pydantic Settings
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from project root
# config.py is at: backend/catstyle/core/config.py
_current_file = Path(__file__).resolve()
_backend_dir = _current_file.parent.parent.parent
_project_root = _backend_dir.parent
ENV_FILE = _project_root / ".env"
# Fallback: try in backend/ directory if not found in project root
if not ENV_FILE.exists():
    ENV_FILE = _backend_dir / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "catstyle"
    app_env: str = Field(default="production", description="Application environment")
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="API port")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_uvicorn_access: bool = Field(default=False, description="Enable Uvicorn access logging")
    log_module_levels: Optional[str] = Field(
        default=None,
        description='Module-specific log levels (JSON string, e.g., {"catstyle.api": "DEBUG"})'
    )
    log_format: str = Field(
        default="json",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_file_enabled: bool = Field(default=False, description="Enable file logging")
    log_file_path: str = Field(
        default="logs/catstyle.log",
        description="Path to log file (relative to project root)"
    )
    log_file_retention: int = Field(default=30, ge=1, description="Number of days to keep log files")
    log_sensitive_data: bool = Field(
        default=False,
        description="Enable logging of sensitive data (API keys, tokens) - NOT RECOMMENDED"
    )

    # Language-model provider (gateway side)
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI-compatible API base URL"
    )
    default_ai_model: str = Field(
        default="gpt-3.5-turbo",
        description="Model identifier used when a request names none ('<provider>/<model>' or bare name)"
    )
    llm_max_tokens: int = Field(default=150, ge=16, le=2000, description="Max tokens in the model reply")
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    llm_timeout_seconds: float = Field(default=30.0, gt=0, le=300, description="Provider HTTP timeout (seconds)")
    icon_suffix: str = Field(
        default="",
        description="Icon naming variant: '' for plain Ionicons names, '-outline' for suffixed names"
    )
    suggest_path: str = Field(default="/suggest", description="Path the gateway router is mounted at")

    # Suggestion client side
    ai_proxy_url: Optional[str] = Field(default=None, description="Gateway endpoint URL")
    ai_proxy_timeout_ms: int = Field(default=15000, ge=1, description="Gateway call timeout (milliseconds)")
    ai_proxy_use_mock: bool = Field(default=False, description="Always use the local suggestion")

    # Feature flags
    feature_flags_url: Optional[str] = Field(default=None, description="Remote feature flag JSON URL")
    feature_flags_fetch_interval_seconds: int = Field(
        default=3600,
        ge=0,
        description="Minimum interval between remote flag fetches (seconds)"
    )
    feature_flags_fetch_timeout_seconds: float = Field(default=60.0, gt=0, description="Flag fetch timeout")
    ai_suggestions_enabled: bool = Field(default=True, description="Local value of ai_suggestions_enabled")
    ai_suggestions_model: str = Field(default="mock", description="Local value of ai_suggestions_model")

    @field_validator("openai_api_key", "ai_proxy_url", "feature_flags_url", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty strings as unset"""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("suggest_path")
    @classmethod
    def normalize_path(cls, v: str) -> str:
        """Ensure the router path starts with a slash and has no trailing slash"""
        v = "/" + v.strip().strip("/")
        if v == "/":
            raise ValueError("suggest_path cannot be the root path")
        return v

    @property
    def is_development(self) -> bool:
        """Development deployments expose error details"""
        return self.app_env.lower() == "development"

    @property
    def provider_configured(self) -> bool:
        """Whether a provider credential is available"""
        return bool(self.openai_api_key)

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
