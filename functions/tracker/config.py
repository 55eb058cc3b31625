"""
Configuration and settings for the project tracker API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.firebase_constants import PROJECTS_COLLECTION, RATINGS_DOCUMENT


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Relational identity store (Users, Users_Projects); any SQLAlchemy URL.
    database_url: Optional[str] = Field(default=None)

    # Firebase: Firestore documents and Storage images
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_credentials_path: Optional[str] = Field(default=None)
    firebase_storage_bucket: Optional[str] = Field(default=None)
    projects_collection: str = Field(default=PROJECTS_COLLECTION)
    ratings_document_id: str = Field(default=RATINGS_DOCUMENT)

    # S3-compatible storage (Tencent COS), used when no Firebase bucket is set
    cos_endpoint: Optional[str] = Field(default=None)
    cos_region: Optional[str] = Field(default=None)
    cos_bucket: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Project image URLs are signed once and stored on the document.
    image_url_expires_at: datetime = Field(
        default=datetime(2100, 12, 31, tzinfo=timezone.utc)
    )

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    @field_validator("image_url_expires_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
