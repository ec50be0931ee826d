"""Telegram notification delivery."""

from .telegram_api import TelegramBotApi, Update
from .telegram_gateway import TelegramGateway

__all__ = ["TelegramBotApi", "TelegramGateway", "Update"]
