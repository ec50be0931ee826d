"""Task tracker backend with Telegram change notifications."""

__version__ = "1.0.0"
