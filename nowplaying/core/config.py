"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI callback server, the Telegram
bot gateway and the background refresh tasks share one configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal, Optional

import os

from pydantic import AnyHttpUrl, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class SpotifySettings(BaseSettings):
    """Configuration required for the Spotify authorization-code flow."""

    client_id: str = Field(..., validation_alias="SPOTIFY_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="SPOTIFY_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(..., validation_alias="SPOTIFY_REDIRECT_URI")
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        ("user-read-currently-playing",),
        validation_alias="SPOTIFY_SCOPES",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(scope.strip() for scope in value.split(",") if scope.strip())


class TelegramSettings(BaseSettings):
    """Settings for the Telegram Bot API integration."""

    bot_token: str = Field(..., validation_alias="TELEGRAM_BOT_TOKEN")
    bot_username: Optional[str] = Field(
        None,
        validation_alias="TELEGRAM_BOT_USERNAME",
        description="Username shown in help texts, without the leading @.",
    )
    update_mode: Literal["polling", "webhook"] = Field(
        "polling", validation_alias="TELEGRAM_UPDATE_MODE"
    )
    poll_timeout_seconds: int = Field(60, validation_alias="TELEGRAM_POLL_TIMEOUT")
    webhook_secret: Optional[str] = Field(
        None,
        validation_alias="TELEGRAM_WEBHOOK_SECRET",
        description="Token expected on webhook calls; the bot token is used when unset.",
    )


class SchedulingSettings(BaseSettings):
    """Intervals for the track cache and the credential refresh loop."""

    track_cache_ttl_seconds: float = Field(
        30.0, validation_alias="TRACK_CACHE_TTL_SECONDS"
    )
    token_refresh_interval_seconds: float = Field(
        3600.0, validation_alias="TOKEN_REFRESH_INTERVAL_SECONDS"
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the bot process."""

    # .env values reach every group through _load_env_file at import time.
    model_config = SettingsConfigDict(extra="ignore")

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    tokens_path: str = Field("data/tokens.json", validation_alias="TOKENS_PATH")
    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(8888, validation_alias="PORT")
    public_base_url: Optional[HttpUrl] = Field(
        None,
        validation_alias="PUBLIC_BASE_URL",
        description="Externally reachable URL of this server, used for /start links.",
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    scheduling: SchedulingSettings = Field(default_factory=SchedulingSettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "SchedulingSettings",
    "SecuritySettings",
    "SpotifySettings",
    "TelegramSettings",
    "get_settings",
]
