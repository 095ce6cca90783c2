"""Application settings loaded from environment variables.

Environment Configuration:
    SITEBUILDER_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: Database connection string (required)

Auth Configuration (required in all environments):
    AUTH_SECRET: HMAC secret shared with the session-token issuer
    AUTH_ISSUER: Expected `iss` claim of session tokens
    AUTH_COOKIE_NAME: Name of the session cookie

LLM Configuration:
    LLM_API_KEY: Provider API key (required in staging/prod)
    LLM_BASE_URL: Base URL of the OpenAI-compatible endpoint
    LLM_MODEL: Model used for prompt enhancement and code generation
    LLM_TIMEOUT_S: Transport timeout for a single LLM call

File Explorer:
    EXPLORER_ROOT: Directory exposed by the structure/file-content/download endpoints
    EXPLORER_PROJECT_NAME: Display name returned with the structure
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

# python/sitebuilder/config.py -> repository root
DEFAULT_EXPLORER_ROOT = Path(__file__).resolve().parents[2]


class Environment(str, Enum):
    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


DEPLOYED_ENVIRONMENTS = (Environment.STAGING, Environment.PROD)


class Settings(BaseSettings):
    """Process-wide configuration, read once from the environment (and .env)."""

    sitebuilder_env: Environment = Field(default=Environment.LOCAL, alias="SITEBUILDER_ENV")
    database_url: Annotated[str, Field(alias="DATABASE_URL")]

    # Session auth
    auth_secret: str | None = Field(default=None, alias="AUTH_SECRET")
    auth_issuer: str = Field(default="site-builder-auth", alias="AUTH_ISSUER")
    auth_cookie_name: str = Field(default="auth_session", alias="AUTH_COOKIE_NAME")

    # LLM provider (OpenAI-compatible chat completions)
    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_base_url: str = Field(default="https://openrouter.ai/api/v1", alias="LLM_BASE_URL")
    llm_model: str = Field(default="arcee-ai/trinity-large-preview:free", alias="LLM_MODEL")
    llm_timeout_s: int = Field(default=120, alias="LLM_TIMEOUT_S")

    # File explorer
    explorer_root: Path = Field(default=DEFAULT_EXPLORER_ROOT, alias="EXPLORER_ROOT")
    explorer_project_name: str = Field(default="Site Builder", alias="EXPLORER_PROJECT_NAME")

    # Billing
    default_user_credits: int = Field(default=20, alias="DEFAULT_USER_CREDITS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def check_secrets(self) -> "Settings":
        if not self.auth_secret:
            raise ValueError("AUTH_SECRET must be set to the key that signs session tokens")
        if self.sitebuilder_env in DEPLOYED_ENVIRONMENTS and not self.llm_api_key:
            raise ValueError(
                f"LLM_API_KEY is required when SITEBUILDER_ENV={self.sitebuilder_env.value}"
            )
        return self

    @property
    def normalized_issuer(self) -> str:
        return self.auth_issuer.rstrip("/")

    @property
    def resolved_explorer_root(self) -> Path:
        """Absolute, symlink-free explorer root."""
        return Path(self.explorer_root).resolve()


@lru_cache
def get_settings() -> Settings:
    """Settings for this process; raises ValidationError when misconfigured."""
    return Settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
