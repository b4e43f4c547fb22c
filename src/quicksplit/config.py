"""Configuration management for QuickSplit."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # OpenAI API (receipt scanning only)
    openai_api_key: str | None = None
    ocr_model: str = "gpt-4o-mini"

    # Display settings
    currency: str = "EUR"

    # Owner of saved bills
    owner_id: str = "local"

    # Sharing
    share_webhook_url: str | None = None  # Falls back to clipboard when unset
    share_base_url: str = "https://billsplitter.app"

    # Database path
    database_path: Path = Path.home() / ".quicksplit" / "quicksplit.db"

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

    def require_openai_api_key(self) -> str:
        """Return the OpenAI key, failing with guidance when it is missing."""
        if not self.openai_api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY is not configured. Add it to your .env file "
                "to scan receipts."
            )
        return self.openai_api_key


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ValueError(
            f"Failed to load settings. Make sure your .env file is valid. "
            f"See .env.example for reference.\n"
            f"Error: {e}"
        ) from e
