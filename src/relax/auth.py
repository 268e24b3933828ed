"""Credentials and Authorization header handling.

A client holds exactly one Credentials object. Both request builders
and execute() go through ``authenticate``, which only sets the header
when the request does not carry one yet.
"""

from __future__ import annotations

from base64 import b64encode
from dataclasses import dataclass, field

import httpx

from relax.errors import ConfigError

AUTHORIZATION = "Authorization"


@dataclass(frozen=True)
class TokenCredentials:
    """API key sent as ``Authorization: Token token="<key>"``."""

    api_key: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigError("api key is empty", field="api_key")

    @property
    def scheme(self) -> str:
        return "token"

    def header_value(self) -> str:
        return f'Token token="{self.api_key}"'


@dataclass(frozen=True)
class BasicCredentials:
    """Username and password sent as HTTP Basic auth."""

    username: str
    password: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.username:
            raise ConfigError("username is empty", field="username")
        if not self.password:
            raise ConfigError("password is empty", field="password")

    @property
    def scheme(self) -> str:
        return "basic"

    def header_value(self) -> str:
        token = b64encode(f"{self.username}:{self.password}".encode()).decode("ascii")
        return f"Basic {token}"


Credentials = TokenCredentials | BasicCredentials


def authenticate(request: httpx.Request, credentials: Credentials) -> httpx.Request:
    """Attach credentials to a request unless it is already authenticated.

    Args:
        request: Request to update in place.
        credentials: Client credentials.

    Returns:
        The same request, for chaining.
    """
    if AUTHORIZATION not in request.headers:
        request.headers[AUTHORIZATION] = credentials.header_value()
    return request
