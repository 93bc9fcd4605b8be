"""Configuration management from environment variables."""

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

    # Database
    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", "./data/remindcare.db"))

    # Time zone used to interpret reminder dates and times
    TIMEZONE: str = os.getenv("TIMEZONE", "UTC")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Voice announcer
    VOICE_ENABLED_DEFAULT: bool = _env_bool("VOICE_ENABLED_DEFAULT", "true")
    VOICE_RATE: int = int(os.getenv("VOICE_RATE", "180"))  # words per minute
    VOICE_VOLUME: float = float(os.getenv("VOICE_VOLUME", "1.0"))

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        if not cls.TELEGRAM_BOT_TOKEN:
            raise ValueError("TELEGRAM_BOT_TOKEN environment variable is required")

        try:
            ZoneInfo(cls.TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown TIMEZONE: {cls.TIMEZONE}")

        if not 0.0 <= cls.VOICE_VOLUME <= 1.0:
            raise ValueError("VOICE_VOLUME must be between 0.0 and 1.0")

        # Ensure database directory exists
        cls.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
