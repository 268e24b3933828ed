"""Environment-driven client configuration.

Parses RELAX_* environment variables into a typed ClientSettings object.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from relax.client import DEFAULT_TIMEOUT, RestClient, new_basic_auth_client, new_client
from relax.errors import ConfigError

logger = logging.getLogger(__name__)

# Mapping of settings field names to environment variable names
ENV_VARS: dict[str, str] = {
    "base_url": "RELAX_BASE_URL",
    "api_key": "RELAX_API_KEY",
    "username": "RELAX_USERNAME",
    "password": "RELAX_PASSWORD",
    "timeout": "RELAX_TIMEOUT",
    "raise_for_status": "RELAX_RAISE_FOR_STATUS",
}

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class ClientSettings(BaseModel):
    """Connection settings for a RestClient.

    Either api_key (token auth) or username/password (basic auth)
    must be present before build_client() is called.
    """

    base_url: str = Field(default="", description="RELAX_BASE_URL - Absolute API root")
    api_key: str = Field(default="", repr=False, description="RELAX_API_KEY - Token auth key")
    username: str = Field(default="", description="RELAX_USERNAME - Basic auth user")
    password: str = Field(default="", repr=False, description="RELAX_PASSWORD - Basic auth password")
    timeout: float = Field(default=DEFAULT_TIMEOUT, description="RELAX_TIMEOUT - Seconds")
    raise_for_status: bool = Field(
        default=False, description="RELAX_RAISE_FOR_STATUS - Fail on non-2xx responses"
    )

    @field_validator("timeout", mode="before")
    @classmethod
    def parse_timeout(cls, v: Any) -> float:
        """Parse string to float, falling back to the default."""
        if isinstance(v, int | float):
            return float(v)
        if isinstance(v, str) and v:
            try:
                return float(v)
            except ValueError:
                logger.warning(f"Ignoring invalid {ENV_VARS['timeout']}={v!r}")
        return DEFAULT_TIMEOUT

    @field_validator("raise_for_status", mode="before")
    @classmethod
    def parse_bool(cls, v: Any) -> bool:
        """Parse common truthy strings."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.strip().lower() in _TRUE_VALUES
        return bool(v)

    @property
    def auth_mode(self) -> str | None:
        """'token', 'basic', or None when no credentials are configured."""
        if self.api_key:
            return "token"
        if self.username or self.password:
            return "basic"
        return None

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> ClientSettings:
        """Build from environment variables.

        Args:
            env: Environment variables mapping (typically os.environ).

        Returns:
            ClientSettings with values parsed from RELAX_* variables.
        """
        values = {name: env[var] for name, var in ENV_VARS.items() if var in env}
        return cls(**values)

    def merged(self, **overrides: Any) -> ClientSettings:
        """Return a copy with every non-None override applied."""
        update = {k: v for k, v in overrides.items() if v is not None}
        return self.model_copy(update=update) if update else self


def build_client(settings: ClientSettings, **kwargs: Any) -> RestClient:
    """Create a RestClient from settings.

    Token auth wins when an API key is set; otherwise basic auth is used.

    Args:
        settings: Connection settings
        **kwargs: Passed through to the client factory (e.g. http=)

    Raises:
        ConfigError: If no credentials are configured or any value is invalid
    """
    if not settings.base_url:
        raise ConfigError("base URL is empty", field="base_url")

    mode = settings.auth_mode
    if mode == "token":
        return new_client(
            settings.base_url,
            settings.api_key,
            timeout=settings.timeout,
            raise_for_status=settings.raise_for_status,
            **kwargs,
        )
    if mode == "basic":
        return new_basic_auth_client(
            settings.base_url,
            settings.username,
            settings.password,
            timeout=settings.timeout,
            raise_for_status=settings.raise_for_status,
            **kwargs,
        )
    raise ConfigError(
        f"no credentials configured: set {ENV_VARS['api_key']} or "
        f"{ENV_VARS['username']}/{ENV_VARS['password']}",
        field="api_key",
    )
