"""
Biowiki — Application Configuration
====================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
       The command line (biowiki.__main__) overrides individual fields.
Who:   Imported by main.py, the CLI and the test suite.
"""

from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern for readability.
    """

    # ── Storage ───────────────────────────────────────────────────────────
    # What: Directory holding one subdirectory per web
    # Layout: <storage_root>/<web>/<page>/{page.json, versions/, attachments/}
    storage_root: str = Field(default="./wiki")

    # What: Largest request body accepted (page JSON or base64 attachment)
    # Default: 10MB; base64 inflates attachments by ~4/3
    max_body_size: int = Field(default=10_485_760, ge=1024, le=104_857_600)

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=3000, ge=1, le=65535)

    # What: Allowed origins for cross-origin requests (comma-separated)
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Logging ───────────────────────────────────────────────────────────
    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "BIOWIKI_",
        "case_sensitive": False,
    }

    def validate_storage_root(self) -> Path:
        """
        What:  Resolves the storage root and checks it can hold webs.
        When:  Called during app startup (lifespan) and by the CLI.
        Why:   A root that is a regular file would make every request fail
               with a confusing NotDirectory error; fail fast instead.
        """
        root = Path(self.storage_root).resolve()
        if root.exists() and not root.is_dir():
            raise ValueError(f"Storage root {root} exists and is not a directory")
        return root


# Singleton instance; the CLI mutates it before the app is created
settings = Settings()
