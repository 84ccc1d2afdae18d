"""
VendorPulse Backend Configuration

Uses pydantic-settings for type-safe environment variable loading.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Find .env file: check CWD first, then parent (project root)
_env_file = Path(".env")
if not _env_file.exists():
    _parent_env = Path(__file__).resolve().parent.parent.parent / ".env"
    if _parent_env.exists():
        _env_file = _parent_env


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "VendorPulse"
    app_version: str = "1.0.0"
    app_env: str = "local"
    debug: bool = False

    # LLM service (root cause, risk, simulation, translation)
    llm_api_key: str = ""
    llm_model: str = "gpt-4o-mini"
    llm_base_url: str = ""

    # Knowledge base
    knowledge_store_path: str = "data/knowledge_files.json"

    # Email
    sendgrid_api_key: str = ""
    alert_from_email: str = "alerts@vendorpulse.io"

    # ── Monitoring defaults ──────────────────────────────────────────
    # Applied when a caller omits a threshold from its configuration.
    default_past_due_percentage: float = 20
    default_past_due_count: float = 5
    default_min_po_lines: float = 0
    default_worsening_days: float = 7
    default_worsening_percentage: float = 0

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {
        "env_file": str(_env_file),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    settings = Settings()
    _enforce_runtime_guardrails(settings)
    return settings


def _enforce_runtime_guardrails(settings: Settings) -> None:
    env = settings.app_env.strip().lower()
    is_local = env in {"", "local", "dev", "development", "test"}
    if is_local:
        return

    if settings.debug:
        raise ValueError("Refusing to start with debug=true outside local/dev/test")
