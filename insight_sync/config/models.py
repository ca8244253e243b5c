"""Pydantic models used across insight-sync configuration flow."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class GlobalConfig(BaseModel):
    """Global controls shared by every source worker."""

    database_path: Path = Field(default=Path("data/insight.db"))
    fetch_workers: int = 8
    descriptor_timeout: float = 10.0
    probe_timeout: float = 30.0
    index_timeout: float = 30.0
    item_timeout: float = 10.0
    short_delay: float = Field(
        default=10.0,
        description="Seconds to wait after an unchanged probe or a failed cycle.",
    )
    long_delay: float = Field(
        default=600.0,
        description="Seconds to wait after a fully successful cycle.",
    )
    user_agent: str | None = "insight-sync/0.1"

    @field_validator("database_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @model_validator(mode="after")
    def _validate_limits(self) -> "GlobalConfig":
        if self.fetch_workers < 1:
            raise ValueError("fetch_workers must be >= 1")
        for name in ("descriptor_timeout", "probe_timeout", "index_timeout", "item_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.short_delay < 0 or self.long_delay < 0:
            raise ValueError("cooling delays must be non-negative")
        return self

    def resolved_database_path(self, base_dir: Path) -> Path:
        """Return the database path relative to the project home directory."""

        if not self.database_path.is_absolute():
            return (base_dir / self.database_path).resolve()
        return self.database_path


__all__ = ["GlobalConfig"]
