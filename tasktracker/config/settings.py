"""Application settings using Pydantic."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class TelegramSettings(BaseSettings):
    """Telegram bot configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TELEGRAM_",
        extra="ignore",
    )

    bot_token: Optional[SecretStr] = Field(default=None)
    api_base_url: str = Field(default="https://api.telegram.org")
    bot_name: str = Field(default="Task Tracker Bot")
    # Pause between polls, and back-off after a failed poll
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    # Server-side long-poll wait passed to getUpdates
    long_poll_timeout: int = Field(default=60, ge=0)
    request_timeout: float = Field(default=10.0, gt=0)

    @property
    def enabled(self) -> bool:
        return self.bot_token is not None


class NotificationSettings(BaseSettings):
    """Notification bus configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="NOTIFY_",
        extra="ignore",
    )

    enabled: bool = Field(default=True)
    # 0 means unbounded
    queue_maxsize: int = Field(default=0, ge=0)
    workers: int = Field(default=1, ge=1)
    max_redeliveries: int = Field(default=3, ge=0)


class BindingStoreSettings(BaseSettings):
    """Where chat bindings are kept."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BINDINGS_",
        extra="ignore",
    )

    backend: Literal["memory", "sqlite"] = Field(default="memory")
    sqlite_path: str = Field(default="data/bindings.sqlite3")


class AuthSettings(BaseSettings):
    """Handshake token configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AUTH_",
        extra="ignore",
    )

    secret: SecretStr = Field(
        default=SecretStr("dev-only-handshake-secret-change-me-0123456789")
    )
    handshake_ttl_seconds: int = Field(default=3600, ge=0)


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(default=False)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    log_level: str = Field(default="INFO")
    # JSON list, e.g. CORS_ORIGINS='["http://localhost:3000"]'
    cors_origins: list[str] = Field(default_factory=list)

    # Nested settings - manually create to avoid env prefix issues
    @property
    def telegram(self) -> TelegramSettings:
        return TelegramSettings()

    @property
    def notifications(self) -> NotificationSettings:
        return NotificationSettings()

    @property
    def bindings(self) -> BindingStoreSettings:
        return BindingStoreSettings()

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()


@lru_cache
def get_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
