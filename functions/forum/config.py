"""
Configuration and settings for the questions service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Backend priority, first entry is the primary. Known names: local,
    # fallback, s3.
    storage_backends: str = Field(default="local,fallback")
    storage_timeout_seconds: float = Field(default=10.0)
    max_reply_depth: int = Field(default=50, ge=1)

    # Local disk
    questions_file: str = Field(default="data/questions.json")
    # Defaults to the system temp directory when unset.
    fallback_dir: Optional[str] = Field(default=None)

    # S3-compatible storage
    s3_bucket: Optional[str] = Field(default=None)
    s3_key: str = Field(default="questions.json")
    s3_endpoint: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    s3_addressing_style: str = Field(default="virtual")
    s3_mirror_to_local: bool = Field(default=True)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    @property
    def backend_order(self) -> list[str]:
        return [
            name.strip().lower()
            for name in self.storage_backends.split(",")
            if name.strip()
        ]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
