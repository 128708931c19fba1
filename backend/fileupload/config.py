"""Application configuration via environment variables.

Provides type-safe settings loading using pydantic-settings.
Environment variables can be loaded from a .env file.
"""

from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.uploads.models import (
    DEFAULT_ALLOWED_TYPES,
    DEFAULT_MAX_SIZE_BYTES,
    UploadPolicy,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults for development.

    Environment Variables:
        HOST: Bind address (default 0.0.0.0)
        PORT: Listening port (default 3000)
        PUBLIC_DIR: Directory served as static files
        UPLOAD_DIR: Directory receiving accepted uploads (inside PUBLIC_DIR by default)
        STAGING_DIR: Directory for in-flight temp files
        MAX_UPLOAD_SIZE_BYTES: Size limit, 0 disables it (default 10 MiB)
        ALLOWED_TYPES: JSON object, MIME type -> list of extensions
        UPLOAD_FIELD_NAME: Multipart field carrying the file
        RESPONSE_FORMAT: 'json' or 'html'
        LOG_LEVEL: Logging level (default INFO)
        LOG_JSON: Emit JSON log lines (default true)
        ENV: development or production
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Storage
    PUBLIC_DIR: Path = Path("public")
    UPLOAD_DIR: Path = Path("public/uploads")
    STAGING_DIR: Path = Path(".staging")

    # Upload policy
    MAX_UPLOAD_SIZE_BYTES: int = DEFAULT_MAX_SIZE_BYTES
    ALLOWED_TYPES: Dict[str, List[str]] = {
        mime: list(exts) for mime, exts in DEFAULT_ALLOWED_TYPES.items()
    }
    UPLOAD_FIELD_NAME: str = "uploadedFile"
    RESPONSE_FORMAT: Literal["json", "html"] = "json"

    # Application
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    ENV: str = "development"

    @field_validator("MAX_UPLOAD_SIZE_BYTES")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("MAX_UPLOAD_SIZE_BYTES must be >= 0 (0 disables the limit)")
        return v

    @field_validator("ALLOWED_TYPES")
    @classmethod
    def _normalize_allowed_types(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        normalized = {}
        for mime, exts in v.items():
            normalized[mime.strip().lower()] = [
                ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in exts
            ]
        return normalized

    @property
    def max_size_bytes(self) -> Optional[int]:
        """Size limit for the upload policy, None when unbounded."""
        return self.MAX_UPLOAD_SIZE_BYTES or None

    @property
    def upload_url_prefix(self) -> Optional[str]:
        """URL path stored files are served under, None if UPLOAD_DIR is outside PUBLIC_DIR.

        Example:
            PUBLIC_DIR=public, UPLOAD_DIR=public/files/in -> "/files/in"
        """
        try:
            relative = self.UPLOAD_DIR.resolve().relative_to(self.PUBLIC_DIR.resolve())
        except ValueError:
            return None
        return "".join(f"/{part}" for part in relative.parts)

    def upload_policy(self) -> UploadPolicy:
        """Build the UploadPolicy handed to the acceptor."""
        return UploadPolicy(
            upload_dir=self.UPLOAD_DIR,
            allowed_types={mime: tuple(exts) for mime, exts in self.ALLOWED_TYPES.items()},
            max_size_bytes=self.max_size_bytes,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache for singleton behavior.
    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
