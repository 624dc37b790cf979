"""Configuration settings for bendsync."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from ``BENDSYNC_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="BENDSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Supabase (remote store). Both unset means local-only operation.
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    # Local store
    home: Path = Path.home() / ".bendsync"
    db_path: Optional[Path] = None

    # Remote calls that exceed this are treated as transient failures
    remote_timeout_seconds: float = 5.0

    # Local history log is capped at this many most-recent entries
    history_limit: int = 100

    migration_workers: int = 1

    @property
    def resolved_db_path(self) -> Path:
        return self.db_path or self.home / "activity.db"

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
