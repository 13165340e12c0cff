"""Centralised application configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/authflow/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class StytchConfig(BaseModel):
    """Stytch identity provider credentials."""

    project_id: str = ""
    secret: SecretStr = SecretStr("")
    environment: Literal["test", "live"] = "test"
    public_token: str = ""
    oauth_provider: str = "google"
    oauth_redirect_url: str = "http://localhost:8080/auth/oauth/callback"
    session_duration_minutes: int = 60 * 24 * 7

    @model_validator(mode="after")
    def live_oauth_requires_public_token(self) -> StytchConfig:
        if self.environment == "live" and self.project_id and not self.public_token:
            msg = "STYTCH__ENVIRONMENT=live requires STYTCH__PUBLIC_TOKEN to be set"
            raise ValueError(msg)
        return self


class CaptchaConfig(BaseModel):
    """Bot-resistance widget placement."""

    container_id: str = "recaptcha-container"
    size: Literal["invisible", "normal", "compact"] = "invisible"


class AppConfig(BaseModel):
    """Application runtime configuration."""

    log_dir: Path = Path("logs")
    log_level: str = "INFO"


class DevConfig(BaseModel):
    """Development and testing toggles."""

    auth_mock: bool = False


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Application settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``STYTCH__PROJECT_ID``, ``CAPTCHA__SIZE``, ``DEV__AUTH_MOCK``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    stytch: StytchConfig = StytchConfig()
    captcha: CaptchaConfig = CaptchaConfig()
    app: AppConfig = AppConfig()
    dev: DevConfig = DevConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
