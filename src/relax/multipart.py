"""Multipart form payloads.

Provides the MultipartForm container and a multipart/form-data encoder
that reads attachments from disk.
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from relax.errors import FileAccessError, SerializationError

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
FILE_CONTENT_TYPE = "application/octet-stream"


@dataclass
class MultipartForm:
    """Text fields and file attachments for a multipart request.

    Attributes:
        fields: Form field name -> text value
        files: Form field name -> path of the file to attach
    """

    fields: dict[str, str] = field(default_factory=dict)
    files: dict[str, str | os.PathLike[str]] = field(default_factory=dict)

    def add_field(self, name: str, value: str) -> MultipartForm:
        self.fields[name] = value
        return self

    def add_file(self, name: str, path: str | os.PathLike[str]) -> MultipartForm:
        self.files[name] = path
        return self


def encode_multipart(form: MultipartForm, *, boundary: str | None = None) -> tuple[bytes, str]:
    """Encode a form as a multipart/form-data body.

    File parts are written first, in insertion order, followed by the
    text fields. Each file is opened, read and closed before the next
    one is touched.

    Args:
        form: Fields and files to encode
        boundary: Optional fixed boundary (random when omitted)

    Returns:
        Tuple of (body bytes, Content-Type header value)

    Raises:
        FileAccessError: If an attached file cannot be opened or read
        SerializationError: If a field name or value cannot be encoded
    """
    boundary = boundary or uuid.uuid4().hex
    delimiter = f"--{boundary}".encode("ascii")
    parts: list[bytes] = []

    for name, path in form.files.items():
        data = _read_file(path)
        filename = Path(path).name
        headers = (
            f'Content-Disposition: form-data; name="{_quote(name)}"; '
            f'filename="{_quote(filename)}"\r\n'
            f"Content-Type: {FILE_CONTENT_TYPE}\r\n"
        )
        parts.append(delimiter + CRLF + _encode_text(headers, name) + CRLF + data + CRLF)

    for name, value in form.fields.items():
        if not isinstance(value, str):
            raise SerializationError(
                f"Form field {name!r} must be a string, got {type(value).__name__}"
            )
        headers = f'Content-Disposition: form-data; name="{_quote(name)}"\r\n'
        parts.append(
            delimiter + CRLF + _encode_text(headers, name) + CRLF + _encode_text(value, name) + CRLF
        )

    body = b"".join(parts) + delimiter + b"--" + CRLF
    logger.debug(
        f"Encoded multipart body: {len(form.files)} file(s), "
        f"{len(form.fields)} field(s), {len(body)} bytes"
    )
    return body, f"multipart/form-data; boundary={boundary}"


def _read_file(path: str | os.PathLike[str]) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise FileAccessError(
            f"Error with file {os.fspath(path)}: {e.strerror or e}",
            path=os.fspath(path),
        ) from e


def _encode_text(text: str, name: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise SerializationError(f"Form part {name!r} is not valid UTF-8: {e}") from e


def _quote(value: str) -> str:
    """Escape a Content-Disposition parameter value."""
    return value.replace("\\", "\\\\").replace('"', '\\"')
