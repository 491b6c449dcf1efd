"""Configuration models for FlowScene."""

from __future__ import annotations

from pathlib import Path
from typing import Self

from pydantic import BaseModel, ConfigDict, Field


class CompilerConfig(BaseModel):
    """Guardrails and policies for graph compilation.

    Limits are checked before the expensive traversal steps so a pathological
    graph is rejected instead of stalling a render worker.
    """

    model_config = ConfigDict(extra="forbid")

    max_nodes: int = Field(default=500, gt=0, description="Reject graphs with more nodes")
    require_full_coverage: bool = Field(
        default=False,
        description="Treat drawables without an Insert connection as errors for every scene",
    )
    max_scene_duration: float = Field(
        default=3600.0, gt=0.0, description="Upper bound on compiled scene duration (seconds)"
    )
    max_animations: int = Field(
        default=100_000, gt=0, description="Maximum concrete tracks in one scene"
    )
    max_duplicate_count: int = Field(
        default=50, ge=1, description="Upper clamp for Duplicate node counts"
    )
    batch_max_workers: int = Field(
        default=1, ge=1, description="Worker threads for batch variant expansion (1 = inline)"
    )
    batch_key_soft_cap: int = Field(
        default=200, ge=1, description="Warn when one field has more per-key overrides"
    )
    index_cache_size: int = Field(
        default=32, ge=1, description="Graph indexes kept in the in-process cache"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = Field(default=False, description="Emit JSON log records")
    filename: str | None = Field(default=None, description="Log file; stdout when unset")


class ConfigBase(BaseModel):
    """Base class for file-backed configurations.

    Subclasses must implement default_path() to specify their default location.
    """

    model_config = ConfigDict(extra="ignore")  # Forward compatibility

    @classmethod
    def default_path(cls) -> Path:
        """Return the default config file path for this config type."""
        raise NotImplementedError(f"{cls.__name__} must implement default_path()")

    @classmethod
    def load_or_default(cls, path: Path | str | None = None) -> Self:
        """Load config from ``path`` (or the default path), falling back to defaults.

        Raises:
            ValidationError: If the file exists but is invalid
        """
        from flowscene.core.config.loader import load_config

        target = Path(path) if path is not None else cls.default_path()
        if not target.exists():
            return cls()
        return cls.model_validate(load_config(target))


class AppConfig(ConfigBase):
    """Application-level configuration."""

    model_config = ConfigDict(extra="ignore")

    compiler: CompilerConfig = CompilerConfig()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def default_path(cls) -> Path:
        """Default path for application config."""
        return Path("flowscene.yaml")


__all__ = ["AppConfig", "CompilerConfig", "ConfigBase", "LoggingConfig"]
