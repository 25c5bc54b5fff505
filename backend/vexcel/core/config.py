"""Application configuration handling."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "VEXCEL_"
DEFAULT_CONFIG_PATH = Path("~/.config/vexcel/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("mcp", "base_url"): "mcp_base_url",
    ("mcp", "tool_url"): "mcp_tool_url",
    ("mcp", "server_label"): "mcp_server_label",
    ("cloud", "folder"): "cloud_folder",
    ("cloud", "allow_edit"): "cloud_allow_edit",
    ("metadata", "backend"): "metadata_backend",
    ("metadata", "db_path"): "db_path",
    ("metadata", "supabase_url"): "supabase_url",
    ("metadata", "supabase_key"): "supabase_key",
    ("metadata", "table"): "supabase_table",
    ("ai", "model"): "openai_model",
    ("sync", "from_cloud_first"): "sync_from_cloud_first",
    ("sync", "serialize_per_file"): "serialize_per_file",
    ("http", "timeout"): "http_timeout",
    ("upload", "max_bytes"): "max_upload_bytes",
    ("voice", "model"): "speech_model",
    ("voice", "max_bytes"): "max_audio_bytes",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    mcp_base_url: str = "https://vexcelmcp.onrender.com"
    mcp_tool_url: str | None = None
    mcp_server_label: str = "excel-mcp"
    cloud_folder: str = "excel-files"
    cloud_allow_edit: bool = True
    metadata_backend: Literal["sqlite", "supabase"] = "sqlite"
    db_path: Path = Field(default=Path.home() / ".vexcel" / "vexcel.db")
    supabase_url: str | None = None
    supabase_key: str | None = None
    supabase_table: str = "user_files"
    openai_model: str = "gpt-4o"
    sync_from_cloud_first: bool = False
    serialize_per_file: bool = True
    http_timeout: float = 60.0
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_extensions: tuple[str, ...] = (".xlsx", ".xls", ".csv")
    speech_model: str = "eleven_multilingual_v2"
    max_audio_bytes: int = 25 * 1024 * 1024
    speech_url: str = "https://api.elevenlabs.io/v1/speech-to-text"
    environment: str = "development"

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", mode="before")
    @classmethod
    def _expand_db_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("db_path must be a path or string")

    @field_validator("mcp_base_url")
    @classmethod
    def _strip_base_url(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def resolved_tool_url(self) -> str:
        """URL handed to the LLM as the MCP tool server."""
        return self.mcp_tool_url or f"{self.mcp_base_url}/mcp/mcp"

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


_LIST_FIELDS = frozenset({"allowed_extensions"})


def _split_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip().lower() for item in value.split(",") if item.strip())


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with VEXCEL_ prefix into Settings fields.

    ``VEXCEL_ALLOWED_EXTENSIONS`` takes a comma-separated list.
    """
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = _split_list(value) if field_name in _LIST_FIELDS else value
    return overrides


@dataclass(frozen=True, slots=True)
class ApiKeyStatus:
    has_api_key: bool
    key_length: int

    @classmethod
    def from_env(cls, name: str) -> "ApiKeyStatus":
        value = os.environ.get(name) or ""
        return cls(has_api_key=bool(value), key_length=len(value))


@dataclass(frozen=True, slots=True)
class FeatureFlags:
    """Presence of third-party API keys, read fresh on every request."""

    openai: ApiKeyStatus
    elevenlabs: ApiKeyStatus

    @classmethod
    def from_env(cls) -> "FeatureFlags":
        return cls(
            openai=ApiKeyStatus.from_env("OPENAI_API_KEY"),
            elevenlabs=ApiKeyStatus.from_env("ELEVENLABS_API_KEY"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["ApiKeyStatus", "FeatureFlags", "Settings", "get_settings"]
