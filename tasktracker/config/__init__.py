"""Configuration module."""

from .settings import (
    AppSettings,
    AuthSettings,
    BindingStoreSettings,
    NotificationSettings,
    TelegramSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "AppSettings",
    "AuthSettings",
    "BindingStoreSettings",
    "NotificationSettings",
    "TelegramSettings",
    "clear_settings_cache",
    "get_settings",
]
