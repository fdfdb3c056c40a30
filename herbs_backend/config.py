"""
Configuration and settings for the catalog backend.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Any, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    app_name: str = Field(default="Herbs Dashboard API")
    version: str = Field(default="1.0.0")
    api_prefix: str = Field(default="/api")

    # Document store (MongoDB expected)
    mongodb_uri: Optional[str] = Field(default=None)
    mongodb_database: str = Field(default="herbs-dashboard")

    # S3-compatible asset host
    asset_bucket: Optional[str] = Field(default=None)
    asset_region: Optional[str] = Field(default=None)
    asset_endpoint: Optional[str] = Field(default=None)
    asset_public_base_url: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    asset_folder: str = Field(default="herbs-dashboard")
    max_upload_bytes: int = Field(default=5 * 1024 * 1024)
    placeholder_image_url: str = Field(
        default="https://via.placeholder.com/300x300?text=No+Image"
    )

    # Admin gate
    admin_tokens: Annotated[List[str], NoDecode] = Field(default_factory=list)

    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    @field_validator("admin_tokens", "cors_origins", mode="before")
    @classmethod
    def _split_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return [item.strip() for item in value.split(",") if item.strip()]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
