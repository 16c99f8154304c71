"""
Configuration module for the nail salon booking bot.
Values come from the environment or a .env file next to this module.
"""

from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)

REQUIRED_FIELDS = ("bot_token", "supabase_url", "supabase_key")


class Settings(BaseSettings):
    """Bot, store and schedule settings."""

    # Telegram
    bot_token: str = ""
    admin_telegram_ids: str = ""  # "123456,789012"

    # Supabase (anon key; admin rights come from the signed-in session)
    supabase_url: str = ""
    supabase_key: str = ""

    # Salon calendar
    timezone: str = "America/Sao_Paulo"
    max_lead_days: int = Field(30, ge=0)

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Webhook mode; polling when bot_webhook_url is empty
    bot_webhook_url: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8000
    environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def admin_ids(self) -> List[int]:
        """Telegram ids allowed into the admin commands."""
        return [int(part) for part in self.admin_telegram_ids.split(",") if part.strip()]

    def is_admin(self, telegram_id: int) -> bool:
        return telegram_id in self.admin_ids

    def validate_all_required(self) -> None:
        """
        Fail fast on startup when the bot cannot reach Telegram or Supabase.

        Raises:
            ValueError: Missing values, or placeholders left from .env.example
        """
        invalid = [
            name
            for name in REQUIRED_FIELDS
            if not getattr(self, name) or getattr(self, name).lower().startswith("your_")
        ]
        if invalid:
            raise ValueError(
                f"Missing or invalid required configuration: {', '.join(invalid)}. "
                f"Check your .env file."
            )


# Global settings instance
settings = Settings()
