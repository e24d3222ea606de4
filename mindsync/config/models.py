"""Pydantic models describing a mindsync run."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_USER_ID = "1197537175369949199"
DEFAULT_FEED_BASE = "https://www.minds.com/api/v2/feeds/container"
DEFAULT_ENTITY_BASE = "https://www.minds.com/api/v2/entities"
DEFAULT_PAGE_SIZE = 150


class RemoteConfig(BaseModel):
    """Endpoints and request options for the Minds API."""

    feed_base: str = DEFAULT_FEED_BASE
    entity_base: str = DEFAULT_ENTITY_BASE
    page_size: int = DEFAULT_PAGE_SIZE
    timeout: float = 15.0
    user_agent: str | None = None

    @field_validator("feed_base", "entity_base", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("API base URL must be a non-empty string")
        return value.strip().rstrip("/")

    @model_validator(mode="after")
    def _validate_limits(self) -> "RemoteConfig":
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        return self


class SyncConfig(BaseModel):
    """Full definition of what to mirror and where."""

    user_id: str = DEFAULT_USER_ID
    output_path: Path = Field(default=Path("out.txt"))
    max_workers: int | None = None
    progress: bool = True
    remote: RemoteConfig = Field(default_factory=RemoteConfig)

    @field_validator("user_id", mode="before")
    @classmethod
    def _coerce_user_id(cls, value: Any) -> str:
        # YAML turns bare numeric ids into ints
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str) or not value.strip():
            raise ValueError("user_id cannot be empty")
        return value.strip()

    @field_validator("output_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value
        if not isinstance(value, str) or not value.strip():
            raise ValueError("output_path must be a non-empty path")
        return Path(value)

    @model_validator(mode="after")
    def _validate_workers(self) -> "SyncConfig":
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        return self

    def resolved_output_path(self, base_dir: Path) -> Path:
        """Return the store file path relative to the mindsync home directory."""

        if not self.output_path.is_absolute():
            return (base_dir / self.output_path).resolve()
        return self.output_path


__all__ = [
    "DEFAULT_ENTITY_BASE",
    "DEFAULT_FEED_BASE",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_USER_ID",
    "RemoteConfig",
    "SyncConfig",
]
