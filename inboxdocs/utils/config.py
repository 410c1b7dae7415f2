"""
Configuration management for Inbox Docs.

Uses pydantic-settings to load configuration from environment variables
and .env files.
"""

from functools import lru_cache
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Inbox Configuration
    inbox_dir: Path = Path("inbox")
    inbox_subfolders: str = "pdf,latex,python,notebooks,other"

    # Output Configuration
    docs_output_dir: Path = Path("docs/inbox")
    asset_dir: Path = Path("docs/static/inbox")
    asset_url_prefix: str = "/static/inbox"

    # Watcher Configuration
    debounce_seconds: float = 2.0  # quiet period before a file is processed
    process_existing: bool = True
    exclude_patterns: str = "*.pyc,__pycache__,node_modules,.git,.ipynb_checkpoints,*.swp,*.tmp,~$*"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def get_inbox_subfolders(self) -> list[str]:
        """Parse advisory inbox subfolders into list."""
        return [s.strip() for s in self.inbox_subfolders.split(',') if s.strip()]

    def get_exclude_patterns(self) -> list[str]:
        """Parse exclude patterns into list."""
        return [p.strip() for p in self.exclude_patterns.split(',') if p.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
