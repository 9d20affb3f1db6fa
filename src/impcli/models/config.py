"""Persisted configuration and client settings.

LocalConfig mirrors the project's .impconfig file, GlobalConfig the
user-wide ~/.impconfig. On-disk keys are camelCase; extra keys written
by other imp commands are kept as-is.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

CONFIG_FILENAME = ".impconfig"

DEFAULT_API_URL = "https://build.electricimp.com/v4"


class LocalConfig(BaseModel):
    """Project-scoped settings stored in <project>/.impconfig."""

    model_config = {"extra": "allow", "populate_by_name": True}

    api_key: str | None = Field(default=None, alias="apiKey")
    model_id: str | None = Field(default=None, alias="modelId")
    model_name: str | None = Field(default=None, alias="modelName")
    device_file: str | None = Field(default=None, alias="deviceFile")
    agent_file: str | None = Field(default=None, alias="agentFile")
    devices: list[str] | None = None


class GlobalConfig(BaseModel):
    """User-wide settings stored in ~/.impconfig."""

    model_config = {"extra": "allow", "populate_by_name": True}

    api_key: str | None = Field(default=None, alias="apiKey")


class ClientSettings(BaseModel):
    """Connection settings for the build API.

    Attributes:
        url: Base URL of the build API.
        timeout: Timeout in seconds for a single request.
        max_retries: Extra attempts for GET requests that fail transiently.
    """

    model_config = {"extra": "forbid"}

    url: str = DEFAULT_API_URL
    timeout: float = Field(default=30.0, ge=1.0)
    max_retries: int = Field(default=2, ge=0, le=10)

    @classmethod
    def from_env(cls) -> ClientSettings:
        """Build settings, honouring IMP_API_URL when set."""
        url = os.environ.get("IMP_API_URL")
        if url:
            return cls(url=url.rstrip("/"))
        return cls()


def global_config_path() -> Path:
    """Return the path of the user-wide config file."""
    return Path.home() / CONFIG_FILENAME
