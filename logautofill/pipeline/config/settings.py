"""
Service configuration.

All values can be overridden through environment variables prefixed with
``LOGAUTOFILL_`` (or a local ``.env`` file), e.g.::

    LOGAUTOFILL_GEMINI_API_KEY=...
    LOGAUTOFILL_SHEET_CSV_URL=https://docs.google.com/spreadsheets/d/<id>/export?format=csv&gid=0
    LOGAUTOFILL_SCRIPT_URL=https://script.google.com/macros/s/<deployment>/exec
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the log sync service."""

    model_config = SettingsConfigDict(
        env_prefix="LOGAUTOFILL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Vision extraction (Gemini REST API)
    gemini_api_key: str | None = None
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-3-flash-preview"
    gemini_timeout_seconds: float = 90.0
    allow_stub: bool = False

    # Spreadsheet store
    sheet_csv_url: str = (
        "https://docs.google.com/spreadsheets/d/"
        "1_ZajSlwXmXnKrXs4j8SEqA_B_EUhyQ_Hzlt5PkZYtSs/export?format=csv&gid=0"
    )
    script_url: str = (
        "https://script.google.com/macros/s/"
        "AKfycbyt3kFW0YUshpnUmfctHddWxpmFhxD48optpNw76yG0OXJaP4BGzIiiDlyBnKy2oRnp/exec"
    )
    sheet_timeout_seconds: float = 30.0

    # Session behaviour
    post_submit_delay_seconds: float = 3.0
    history_preview_limit: int = 30
    voice_language: str = "en-US"
    timestamp_format: str = "%m/%d/%Y, %I:%M:%S %p"
    max_upload_bytes: int = 15 * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


settings = get_settings()
