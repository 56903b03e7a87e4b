"""Lab-result notification relay over Telegram."""

__version__ = "0.1.0"
