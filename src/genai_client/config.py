"""Configuration management for genai-client."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

_logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class ProfileSpec(BaseModel):
    """Destination and credentials for one API provider."""

    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    organization: str = ""
    beta: str | None = None  # sent as OpenAI-Beta when set
    default_model: str = "gpt-4o-mini"
    extra_headers: dict[str, str] = Field(default_factory=dict)

    def headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if self.organization:
            headers["OpenAI-Organization"] = self.organization
        if self.beta:
            headers["OpenAI-Beta"] = self.beta
        headers.update(self.extra_headers)
        return headers


class ClientConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    profile: str = "default"
    profiles: dict[str, ProfileSpec] = Field(
        default_factory=lambda: {"default": ProfileSpec()}
    )
    timeout: float = 120
    connect_timeout: float = 30
    read_timeout: float = 300
    stream_read_timeout: float = 60  # max gap between two streamed lines
    verbose: bool = False  # log request and response bodies

    @property
    def active_profile(self) -> ProfileSpec:
        return self.profiles.get(self.profile, ProfileSpec())


CONFIG_FILENAME = "genai_client.yaml"

_SEARCH_PATHS = [
    Path(".") / CONFIG_FILENAME,
    Path.home() / ".config" / "genai-client" / "config.yaml",
]


def _apply_env(config: ClientConfig, env: dict[str, str]) -> ClientConfig:
    """Overlay ``OPENAI_*`` / ``VERBOSE`` environment values."""
    overrides: dict[str, Any] = {}
    if env.get("OPENAI_API_KEY"):
        overrides["api_key"] = env["OPENAI_API_KEY"]
    if env.get("OPENAI_ORGANIZATION"):
        overrides["organization"] = env["OPENAI_ORGANIZATION"]
    if env.get("OPENAI_BASE_URL"):
        overrides["base_url"] = env["OPENAI_BASE_URL"]

    updates: dict[str, Any] = {}
    if overrides:
        profiles = dict(config.profiles)
        profiles[config.profile] = config.active_profile.model_copy(update=overrides)
        updates["profiles"] = profiles
    if env.get("VERBOSE", "").lower() == "true":
        updates["verbose"] = True

    return config.model_copy(update=updates) if updates else config


def load_config(
    config_path: str | Path | None = None,
    env: dict[str, str] | None = None,
) -> tuple[ClientConfig, Path | None]:
    """Load configuration from YAML, then overlay environment variables.

    Returns (config, resolved_path).  *resolved_path* is ``None`` when no
    file was found and built-in defaults are used.

    Search order (first match wins):
      1. Explicit *config_path*
      2. ``./genai_client.yaml``
      3. ``~/.config/genai-client/config.yaml``
    """
    env = dict(os.environ) if env is None else env

    resolved: Path | None = None
    if config_path is not None:
        resolved = Path(config_path)
        if not resolved.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for candidate in _SEARCH_PATHS:
            if candidate.exists():
                resolved = candidate
                break

    if resolved is None:
        _logger.info("No config file found, using defaults")
        return _apply_env(ClientConfig(), env), None

    _logger.info("Loading config from %s", resolved)
    with open(resolved) as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    config = ClientConfig.model_validate(raw)
    return _apply_env(config, env), resolved.resolve()
