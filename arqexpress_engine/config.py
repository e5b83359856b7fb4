"""
Application configuration using Pydantic Settings.
All environment-specific values are centralized here.

Pricing tables and the stage catalog are NOT settings: they are injected
into the calculator and workflow engine. Settings only say where their
defaults are loaded from.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── App ──────────────────────────────────────────────
    app_name: str = "ArqExpress Pricing & Workflow Engine"
    default_currency: str = "BRL"

    # ── Configuration sources ────────────────────────────
    pricing_tables_path: Optional[str] = None  # JSON file; None → built-in defaults
    stage_catalog_path: Optional[str] = None   # JSON file; None → built-in defaults

    # ── Workflow limits ──────────────────────────────────
    max_hours_per_entry: float = 24.0
    hours_epsilon: float = 1e-6

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
