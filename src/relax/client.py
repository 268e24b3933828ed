"""REST client for JSON APIs.

Provides a thin layer over httpx with:
- Relative path resolution against a fixed base URL
- Token or HTTP Basic authentication
- JSON and multipart request bodies
- Typed response decoding via pydantic
- Consistent error handling and centralized logging
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar
from urllib.parse import SplitResult, parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import httpx
from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from relax.auth import BasicCredentials, Credentials, TokenCredentials, authenticate
from relax.errors import (
    ConfigError,
    DecodeError,
    InvalidURIError,
    NetworkError,
    RequestTimeoutError,
    SerializationError,
    StatusError,
)
from relax.multipart import MultipartForm, encode_multipart

logger = logging.getLogger(__name__)

T = TypeVar("T")

JSON_CONTENT_TYPE = "application/json"
SUPPORTED_SCHEMES = frozenset({"http", "https"})
DEFAULT_TIMEOUT = 30.0

# Query parameters whose values are masked in log output
_SENSITIVE_PARAMS = frozenset({"api_key", "apikey", "key", "token", "access_token", "password"})


@dataclass(frozen=True)
class JSONResult(Generic[T]):
    """Outcome of a single JSON round trip.

    Attributes:
        method: HTTP method that was sent
        url: Absolute request URL
        status_code: HTTP status code (200, 404, etc.)
        headers: Response headers as dict
        body: Raw response body, or None when no decoding was requested
        data: Decoded body, or None when no decoding was requested
        ok: True if status code is 2xx
    """

    method: str
    url: str
    status_code: int
    headers: dict[str, str]
    body: bytes | None = None
    data: T | None = None

    @property
    def ok(self) -> bool:
        """True if response has 2xx status code."""
        return 200 <= self.status_code < 300


class RestClient:
    """Client bound to one base URL and one set of credentials.

    The client keeps no per-call state: every verb returns a JSONResult
    describing its own exchange, so one instance can be shared freely.

    Examples:
        >>> with new_client("https://api.example.com", "sk_live") as client:
        ...     result = client.read_json("/api/widgets/1", into=Widget)
        ...     widget = result.data
    """

    def __init__(
        self,
        base_url: str,
        credentials: Credentials,
        *,
        http: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        raise_for_status: bool = False,
    ):
        """Initialize the client.

        Args:
            base_url: Absolute URL every request path is resolved against
            credentials: Token or basic credentials (fixed for the client's lifetime)
            http: Optional httpx.Client used as transport
            timeout: Timeout for the owned transport (ignored when http is given)
            raise_for_status: Raise StatusError on non-2xx responses

        Raises:
            ConfigError: If base_url is unparsable, not absolute or not http(s)
        """
        try:
            parts = _parse_uri(base_url)
        except ValueError as e:
            raise ConfigError(f"Invalid base URL: {e}", field="base_url") from e
        if not parts.scheme or not parts.netloc:
            raise ConfigError("URL is not absolute", field="base_url")
        if parts.scheme.lower() not in SUPPORTED_SCHEMES:
            raise ConfigError(f"Unsupported URL scheme: {parts.scheme}", field="base_url")

        self._base_url = base_url
        self._credentials = credentials
        self._owns_http = http is None
        if http is None:
            http = httpx.Client(timeout=timeout, follow_redirects=True)
        self.http = http
        self.raise_for_status = raise_for_status

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def __repr__(self) -> str:
        return f"RestClient(base_url={self._base_url!r}, auth={self._credentials.scheme!r})"

    def __enter__(self) -> RestClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_http:
            self.http.close()

    # ========================================================================
    # Request construction
    # ========================================================================

    def resolve_query(self, uri: str) -> str:
        """Resolve a relative URI against the base URL.

        Args:
            uri: Path (with optional query and fragment) relative to the base URL

        Returns:
            Absolute URL string

        Raises:
            InvalidURIError: If uri is absolute or malformed
        """
        try:
            parts = _parse_uri(uri)
        except ValueError as e:
            raise InvalidURIError(f"Invalid URI: {e}", uri=uri) from e
        if parts.scheme or parts.netloc:
            raise InvalidURIError("URI is not relative", uri=uri)

        return urljoin(self._base_url, uri)

    def build_request(self, method: str, uri: str) -> httpx.Request:
        """Build an authenticated request with no body.

        Raises:
            InvalidURIError: If uri cannot be resolved
        """
        return self._build(method, uri)

    def build_json_request(self, method: str, uri: str, payload: Any) -> httpx.Request:
        """Build an authenticated request carrying a JSON body.

        Args:
            method: HTTP method
            uri: Path relative to the base URL
            payload: Any value pydantic can serialize (dict, list, model, dataclass)

        Raises:
            InvalidURIError: If uri cannot be resolved
            SerializationError: If payload cannot be encoded as JSON
        """
        url = self.resolve_query(uri)
        content = _encode_json(payload)
        return self._build(
            method, uri, url=url, content=content, headers={"Content-Type": JSON_CONTENT_TYPE}
        )

    def build_multipart_request(self, method: str, uri: str, form: MultipartForm) -> httpx.Request:
        """Build an authenticated multipart/form-data request.

        Attached files are read fully and closed before this returns.

        Raises:
            InvalidURIError: If uri cannot be resolved
            FileAccessError: If an attached file cannot be read
            SerializationError: If a form part cannot be written
        """
        url = self.resolve_query(uri)
        content, content_type = encode_multipart(form)
        return self._build(method, uri, url=url, content=content, headers={"Content-Type": content_type})

    def _build(
        self,
        method: str,
        uri: str,
        *,
        url: str | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Request:
        if url is None:
            url = self.resolve_query(uri)
        try:
            request = self.http.build_request(method.upper(), url, content=content, headers=headers)
        except httpx.InvalidURL as e:
            raise InvalidURIError(f"Invalid URI: {e}", uri=uri) from e
        return authenticate(request, self._credentials)

    # ========================================================================
    # Execution
    # ========================================================================

    def execute(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        """Send a request through the transport.

        Authentication is attached here only if the request has none yet.

        Args:
            request: Request built by this client (or any httpx.Request)
            stream: Leave the body unread; the caller must close the response

        Returns:
            The httpx.Response

        Raises:
            RequestTimeoutError: If the transport timed out
            NetworkError: If the transport failed for any other reason
        """
        authenticate(request, self._credentials)
        method = request.method
        log_url = _redact_url(str(request.url))
        logger.debug(f"HTTP {method} {log_url}")

        try:
            response = self.http.send(request, stream=stream)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                f"Request timed out: {method} {log_url}",
                method=method,
                url=log_url,
                timeout_seconds=self.http.timeout.read,
            ) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Request failed: {e}", method=method, url=log_url) from e

        logger.debug(f"HTTP {method} {log_url} -> {response.status_code}")
        return response

    # ========================================================================
    # JSON verbs
    # ========================================================================

    def create_json(
        self, uri: str, payload: Any, into: type[T] | Any | None = None
    ) -> JSONResult[T]:
        """POST a JSON payload and optionally decode the response into ``into``."""
        return self._json_response(self.build_json_request("POST", uri, payload), into)

    def read_json(self, uri: str, into: type[T] | Any | None = None) -> JSONResult[T]:
        """GET a resource and optionally decode the response into ``into``.

        Passing no destination skips reading the body entirely.
        """
        return self._json_response(self.build_request("GET", uri), into)

    def update_json(
        self, uri: str, payload: Any, into: type[T] | Any | None = None
    ) -> JSONResult[T]:
        """PUT a JSON payload and optionally decode the response into ``into``."""
        return self._json_response(self.build_json_request("PUT", uri, payload), into)

    def delete_json(self, uri: str, into: type[T] | Any | None = None) -> JSONResult[T]:
        """DELETE a resource and optionally decode the response into ``into``."""
        return self._json_response(self.build_request("DELETE", uri), into)

    def post_multipart_json(
        self, uri: str, form: MultipartForm, into: type[T] | Any | None = None
    ) -> JSONResult[T]:
        """POST a multipart form and optionally decode the response into ``into``."""
        return self._json_response(self.build_multipart_request("POST", uri, form), into)

    def _json_response(self, request: httpx.Request, into: type[T] | Any | None) -> JSONResult[T]:
        response = self.execute(request, stream=True)
        try:
            body: bytes | None = None
            data: T | None = None

            if into is not None:
                body = self._read_body(response)

            if self.raise_for_status and not response.is_success:
                raise StatusError(
                    f"API returned {response.status_code}",
                    status_code=response.status_code,
                    body=body,
                )

            if into is not None and body is not None:
                data = _decode(body, into, response.status_code)

            return JSONResult(
                method=request.method,
                url=str(request.url),
                status_code=response.status_code,
                headers=dict(response.headers),
                body=body,
                data=data,
            )
        finally:
            response.close()

    def _read_body(self, response: httpx.Response) -> bytes:
        try:
            return response.read()
        except httpx.RequestError as e:
            raise NetworkError(
                f"Reading response body failed: {e}",
                method=response.request.method,
                url=_redact_url(str(response.request.url)),
            ) from e


def new_client(
    base_url: str,
    api_key: str,
    *,
    http: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    raise_for_status: bool = False,
) -> RestClient:
    """Create a client using token authentication.

    Raises:
        ConfigError: If api_key is empty or base_url is invalid
    """
    return RestClient(
        base_url,
        TokenCredentials(api_key),
        http=http,
        timeout=timeout,
        raise_for_status=raise_for_status,
    )


def new_basic_auth_client(
    base_url: str,
    username: str,
    password: str,
    *,
    http: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    raise_for_status: bool = False,
) -> RestClient:
    """Create a client using HTTP Basic authentication.

    Raises:
        ConfigError: If username or password is empty or base_url is invalid
    """
    return RestClient(
        base_url,
        BasicCredentials(username, password),
        http=http,
        timeout=timeout,
        raise_for_status=raise_for_status,
    )


def _parse_uri(value: str) -> SplitResult:
    """Split a URI, rejecting values urlsplit would silently accept."""
    if not isinstance(value, str):
        raise ValueError(f"expected a string, got {type(value).__name__}")
    if any(ord(c) < 0x20 or ord(c) == 0x7F for c in value):
        raise ValueError("contains control characters")
    parts = urlsplit(value)
    # Accessing port validates it
    _ = parts.port
    return parts


def _encode_json(payload: Any) -> bytes:
    # NaN and Infinity are not valid JSON
    try:
        data = to_jsonable_python(payload)
        text = json.dumps(data, allow_nan=False, ensure_ascii=False, separators=(",", ":"))
        return text.encode("utf-8")
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise SerializationError(f"Could not encode JSON payload: {e}") from e


def _decode(body: bytes, into: type[T] | Any, status_code: int) -> T:
    try:
        return TypeAdapter(into).validate_json(body)
    except ValidationError as e:
        name = getattr(into, "__name__", repr(into))
        raise DecodeError(
            f"Invalid JSON for {name}: {e.error_count()} error(s)",
            body=body,
            status_code=status_code,
        ) from e


def _redact_url(url: str) -> str:
    """Redact sensitive parts of URLs for logging.

    Hides userinfo and the values of key/token style query params.
    """
    parts = urlsplit(url)
    netloc = parts.netloc
    if "@" in netloc:
        netloc = "***@" + netloc.rsplit("@", 1)[1]

    query = parts.query
    if query:
        pairs = parse_qsl(query, keep_blank_values=True)
        if any(k.lower() in _SENSITIVE_PARAMS for k, _ in pairs):
            query = urlencode(
                [(k, "***" if k.lower() in _SENSITIVE_PARAMS else v) for k, v in pairs],
                safe="*",
            )

    if netloc == parts.netloc and query == parts.query:
        return url
    return urlunsplit(parts._replace(netloc=netloc, query=query))
