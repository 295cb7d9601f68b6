"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "DSYNC_"
DEFAULT_CONFIG_PATH = Path("~/.config/design-sync/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("workspace", "path"): "workspace_path",
    ("workspace", "dir_name"): "workspace_dir_name",
    ("watch", "patterns"): "asset_patterns",
    ("watch", "discovery_interval"): "discovery_interval",
    ("watch", "file_poll_interval"): "file_poll_interval",
    ("live", "host"): "live_host",
    ("live", "port"): "live_port",
    ("live", "queue_size"): "subscriber_queue_size",
    ("live", "shutdown_timeout"): "shutdown_timeout",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    workspace_path: Path | None = None
    workspace_dir_name: str = "superdesign"
    asset_patterns: list[str] = Field(default_factory=lambda: ["*.html", "*.svg"])
    discovery_interval: float = Field(default=2.0, gt=0)
    file_poll_interval: float = Field(default=1.0, gt=0)
    live_host: str = "127.0.0.1"
    live_port: int = Field(default=3000, ge=0, le=65535)
    subscriber_queue_size: int = Field(default=256, ge=1)
    shutdown_timeout: int = Field(default=5, ge=0)

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("workspace_path", mode="before")
    @classmethod
    def _expand_workspace_path(cls, value: Any) -> Path | None:
        if value is None or value == "":
            return None
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("workspace_path must be a path or string")

    @field_validator("asset_patterns", mode="before")
    @classmethod
    def _split_patterns(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    def resolve_workspace_path(self) -> Path:
        """Return the configured base path, defaulting to the working directory."""
        base = self.workspace_path or Path.cwd()
        return base.expanduser().resolve()

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with DSYNC_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]
