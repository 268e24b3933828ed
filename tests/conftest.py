"""Pytest fixtures for relax tests."""

from __future__ import annotations

import email
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from email.message import Message

import httpx
import pytest
from pydantic import BaseModel

from relax.client import RestClient, new_client
from relax.config import ENV_VARS

GOOD_URL = "https://ms.example.com"
API_KEY = "apiKey"


class FooResponse(BaseModel):
    """Destination type used across the JSON verb tests."""

    Foo: str


@dataclass
class ResponseHandler:
    """MockTransport handler that serves one path/method pair.

    Mismatched paths get 404, mismatched methods 405, and an unexpected
    body 400. Every request seen is kept in ``requests``.
    """

    method: str
    path: str
    message: str = ""
    expected_body: bytes | None = None
    status_code: int = 200
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path != self.path:
            return httpx.Response(404, text="404 page not found")
        if request.method != self.method:
            return httpx.Response(405, text="wrong method")
        if self.expected_body is not None:
            body = request.read()
            if body != self.expected_body:
                return httpx.Response(
                    400, text=f"body {body!r} does not match {self.expected_body!r}"
                )
        return httpx.Response(self.status_code, text=self.message)


ServeFn = Callable[..., RestClient]


@pytest.fixture
def serve() -> Iterator[ServeFn]:
    """Build token-auth clients wired to an in-memory transport.

    Usage:
        client = serve(handler)
        client = serve(handler, raise_for_status=True)
    """
    transports: list[httpx.Client] = []

    def _serve(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> RestClient:
        http = httpx.Client(transport=httpx.MockTransport(handler))
        transports.append(http)
        return new_client(GOOD_URL, kwargs.pop("api_key", API_KEY), http=http, **kwargs)

    yield _serve

    for http in transports:
        http.close()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove RELAX_* variables inherited from the outer environment."""
    for var in ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)


def parse_multipart(body: bytes, content_type: str) -> list[Message]:
    """Split a multipart/form-data body into its parts."""
    message = email.message_from_bytes(
        b"Content-Type: " + content_type.encode("ascii") + b"\r\n\r\n" + body
    )
    assert message.is_multipart()
    return message.get_payload()


def part_name(part: Message) -> str | None:
    return part.get_param("name", header="content-disposition")
