"""Configuration loading: YAML file + CLI overrides, validated with pydantic."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator


class EndpointConfig(BaseModel):
    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    organization: str = ""
    model: str = "gpt-4o-mini"


class HTTPConfig(BaseModel):
    timeout: float = Field(default=180.0, gt=0)
    connect_timeout: float = Field(default=30.0, gt=0)
    http2: bool = True
    max_connections: int = Field(default=100, ge=1)
    max_keepalive_connections: int = Field(default=20, ge=0)

    @model_validator(mode="after")
    def keepalive_within_pool(self) -> "HTTPConfig":
        if self.max_keepalive_connections > self.max_connections:
            raise ValueError(
                "max_keepalive_connections cannot exceed max_connections "
                f"({self.max_keepalive_connections} > {self.max_connections})"
            )
        return self


class RequestDefaults(BaseModel):
    max_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    include_usage: bool = True


class ClientConfig(BaseModel):
    endpoint: EndpointConfig = EndpointConfig()
    http: HTTPConfig = HTTPConfig()
    request: RequestDefaults = RequestDefaults()


def load_config(
    config_path: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> ClientConfig:
    """Load config from YAML file, then apply CLI overrides."""
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}

    if cli_overrides:
        _deep_merge(data, cli_overrides)

    return ClientConfig(**data)


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override dict into base dict recursively (in-place)."""
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
