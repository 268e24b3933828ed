"""Typed exceptions for relax.

All client errors inherit from RelaxError. The families map to the
stage that failed: building the request, moving it over the wire,
or making sense of the response.
"""

from __future__ import annotations

from typing import Any

# Longest body excerpt rendered into an error message
_MAX_BODY_PREVIEW = 200


class RelaxError(Exception):
    """Base exception for all relax errors."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ConfigError(RelaxError):
    """Client could not be constructed from the given arguments."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message, context={"field": field} if field else None)
        self.field = field


class InvalidURIError(RelaxError):
    """Request URI is absolute or cannot be parsed."""

    def __init__(self, message: str, *, uri: str | None = None):
        super().__init__(message, context={"uri": uri} if uri is not None else None)
        self.uri = uri


class FileAccessError(RelaxError):
    """A file named in a multipart form could not be read."""

    def __init__(self, message: str, *, path: str):
        super().__init__(message, context={"path": path})
        self.path = path


class SerializationError(RelaxError):
    """Request body could not be encoded (JSON or multipart)."""


class NetworkError(RelaxError):
    """The transport failed to complete the exchange."""

    def __init__(self, message: str, *, method: str | None = None, url: str | None = None):
        context = {"method": method, "url": url}
        super().__init__(message, context={k: v for k, v in context.items() if v is not None})
        self.method = method
        self.url = url


class RequestTimeoutError(NetworkError):
    """The transport gave up waiting on the server."""

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        url: str | None = None,
        timeout_seconds: float | None = None,
    ):
        super().__init__(message, method=method, url=url)
        if timeout_seconds:
            self.context["timeout_seconds"] = timeout_seconds
        self.timeout_seconds = timeout_seconds


class DecodeError(RelaxError):
    """Response body is not valid JSON for the requested type.

    The full raw body is kept on ``body``; only a preview goes into
    the message so log lines stay readable.
    """

    def __init__(self, message: str, *, body: bytes, status_code: int | None = None):
        context: dict[str, Any] = {"body": _preview(body)}
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, context=context)
        self.body = body
        self.status_code = status_code


class StatusError(RelaxError):
    """Server answered with a non-2xx status (only when raise_for_status is on)."""

    def __init__(self, message: str, *, status_code: int, body: bytes | None = None):
        context: dict[str, Any] = {"status_code": status_code}
        if body:
            context["body"] = _preview(body)
        super().__init__(message, context=context)
        self.status_code = status_code
        self.body = body


def _preview(body: bytes) -> str:
    text = body.decode("utf-8", errors="replace")
    return text[:_MAX_BODY_PREVIEW] + "..." if len(text) > _MAX_BODY_PREVIEW else text
