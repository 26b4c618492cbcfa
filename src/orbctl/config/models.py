"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, orbctl.toml only contains
overrides.  A typical project needs only ``[orb] alias`` and
``[history] snapshots_dir``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

# --- orbctl.toml sections ---


class OrbConfig(BaseModel):
    """[orb] section."""

    model_config = {"frozen": True}

    name: str = "orb"
    alias: str | None = None


class HistoryConfig(BaseModel):
    """[history] section."""

    model_config = {"frozen": True}

    source: Literal["directory", "git"] = "directory"
    snapshots_dir: str = "versions"
    repo: str = "."
    orb_path: str = "src"
    tag_prefix: str = "v"


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    policy: Literal["major", "every_nth", "size"] = "major"
    every_n: int = Field(default=10, gt=0)
    max_delta_bytes: int = Field(default=4096, gt=0)


class MigrationsConfig(BaseModel):
    """[migrations] section."""

    model_config = {"frozen": True}

    rules_dir: str = "migrations"


class ValidationConfig(BaseModel):
    """[validation] section."""

    model_config = {"frozen": True}

    deprecated_markers: list[str] = Field(default_factory=lambda: ["deprecated"])


class McpConfig(BaseModel):
    """[mcp] section."""

    model_config = {"frozen": True}

    transport: Literal["stdio", "sse", "streamable-http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000
