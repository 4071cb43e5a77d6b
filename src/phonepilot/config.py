"""Application configuration loaded from environment."""

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL = "llama-3.3-70b-versatile"


class Settings(BaseSettings):
    """PhonePilot settings from env vars (read-only once loaded)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Groq (OpenAI-compatible chat completions)
    groq_api_key: str = ""
    selected_model: str = DEFAULT_MODEL
    groq_base_url: str = "https://api.groq.com/"
    # Connect/read/write ceiling for the single planner round trip
    planner_timeout_seconds: float = 60.0
    planner_temperature: float = 0.1
    planner_max_tokens: int = 2048

    # Feature toggles
    voice_enabled: bool = True
    floating_button_enabled: bool = True

    # Pause after a screen-mutating action before the next step
    settle_interval_ms: int = 500

    # Command history persistence; empty keeps history in memory only
    history_data_dir: str = ""

    log_level: str = "INFO"


def get_settings() -> Settings:
    """Return loaded settings from environment (and .env if present)."""
    return Settings()
