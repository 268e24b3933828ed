"""Command-line interface for one-off REST calls."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from relax.client import JSONResult, RestClient
from relax.config import ClientSettings, build_client
from relax.errors import (
    ConfigError,
    DecodeError,
    FileAccessError,
    InvalidURIError,
    NetworkError,
    SerializationError,
    StatusError,
)
from relax.multipart import MultipartForm

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 2
EXIT_REQUEST_ERROR = 3
EXIT_NETWORK_ERROR = 4
EXIT_RESPONSE_ERROR = 5

app = typer.Typer(
    name="relax",
    help="Call a JSON REST API with token or basic auth.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main_callback(
    ctx: typer.Context,
    base_url: str | None = typer.Option(
        None,
        "--base-url",
        "-u",
        help="Absolute API root (default: $RELAX_BASE_URL)",
    ),
    api_key: str | None = typer.Option(
        None,
        "--api-key",
        "-k",
        help="API key for token auth (default: $RELAX_API_KEY)",
    ),
    username: str | None = typer.Option(
        None,
        "--username",
        help="Basic auth user (default: $RELAX_USERNAME)",
    ),
    password: str | None = typer.Option(
        None,
        "--password",
        help="Basic auth password (default: $RELAX_PASSWORD)",
    ),
    fail: bool | None = typer.Option(
        None,
        "--fail/--no-fail",
        help="Exit non-zero on non-2xx responses (default: $RELAX_RAISE_FOR_STATUS)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
) -> None:
    """Collect connection settings shared by every command."""
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ctx.obj = ClientSettings.from_env(os.environ).merged(
        base_url=base_url,
        api_key=api_key,
        username=username,
        password=password,
        raise_for_status=fail,
    )


@app.command("get")
def get_cmd(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path relative to the base URL"),
    no_body: bool = typer.Option(False, "--no-body", help="Skip reading the response body"),
) -> None:
    """GET a resource and print the decoded JSON."""
    _run(ctx.obj, lambda c: c.read_json(path, into=None if no_body else Any))


@app.command("delete")
def delete_cmd(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path relative to the base URL"),
    no_body: bool = typer.Option(False, "--no-body", help="Skip reading the response body"),
) -> None:
    """DELETE a resource."""
    _run(ctx.obj, lambda c: c.delete_json(path, into=None if no_body else Any))


@app.command("post")
def post_cmd(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path relative to the base URL"),
    data: str = typer.Option(
        ...,
        "--data",
        "-d",
        help="Path to a JSON file or inline JSON string",
    ),
    no_body: bool = typer.Option(False, "--no-body", help="Skip reading the response body"),
) -> None:
    """POST a JSON payload."""
    payload = _load_payload(data)
    _run(ctx.obj, lambda c: c.create_json(path, payload, into=None if no_body else Any))


@app.command("put")
def put_cmd(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path relative to the base URL"),
    data: str = typer.Option(
        ...,
        "--data",
        "-d",
        help="Path to a JSON file or inline JSON string",
    ),
    no_body: bool = typer.Option(False, "--no-body", help="Skip reading the response body"),
) -> None:
    """PUT a JSON payload."""
    payload = _load_payload(data)
    _run(ctx.obj, lambda c: c.update_json(path, payload, into=None if no_body else Any))


@app.command("upload")
def upload_cmd(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path relative to the base URL"),
    fields: list[str] | None = typer.Option(
        None,
        "--field",
        "-f",
        help="Text field as name=value (repeatable)",
    ),
    files: list[str] | None = typer.Option(
        None,
        "--file",
        "-F",
        help="File attachment as name=path (repeatable)",
    ),
    no_body: bool = typer.Option(False, "--no-body", help="Skip reading the response body"),
) -> None:
    """POST a multipart form with text fields and file attachments."""
    form = MultipartForm()
    for name, value in (_split_pair(f, "--field") for f in fields or []):
        form.add_field(name, value)
    for name, file_path in (_split_pair(f, "--file") for f in files or []):
        form.add_file(name, file_path)

    _run(ctx.obj, lambda c: c.post_multipart_json(path, form, into=None if no_body else Any))


def _run(settings: ClientSettings, call: Callable[[RestClient], JSONResult[Any]]) -> None:
    """Build a client, perform one call and render the result."""
    try:
        with build_client(settings) as client:
            result = call(client)
    except ConfigError as e:
        err_console.print(f"[red]Config Error:[/red] {e}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None
    except (InvalidURIError, FileAccessError, SerializationError) as e:
        err_console.print(f"[red]Request Error:[/red] {e}")
        raise typer.Exit(code=EXIT_REQUEST_ERROR) from None
    except NetworkError as e:
        err_console.print(f"[red]Network Error:[/red] {e}")
        raise typer.Exit(code=EXIT_NETWORK_ERROR) from None
    except (DecodeError, StatusError) as e:
        err_console.print(f"[red]Response Error:[/red] {e}")
        raise typer.Exit(code=EXIT_RESPONSE_ERROR) from None

    _render(result)


def _render(result: JSONResult[Any]) -> None:
    style = "green" if result.ok else "yellow"
    err_console.print(f"[{style}]{result.method} {result.url} -> {result.status_code}[/{style}]")
    if result.body is not None:
        console.print_json(data=result.data)


def _load_payload(source: str) -> Any:
    """Read a payload from a JSON file path or an inline JSON string."""
    try:
        if _is_file(source):
            return json.loads(Path(source).read_text())
        return json.loads(source)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"Invalid JSON: {e}", param_hint="--data") from e


def _is_file(source: str) -> bool:
    # Inline JSON can exceed the OS path length limit
    try:
        return Path(source).is_file()
    except (OSError, ValueError):
        return False


def _split_pair(value: str, option: str) -> tuple[str, str]:
    name, sep, rest = value.partition("=")
    if not sep or not name:
        raise typer.BadParameter(f"Expected name=value, got {value!r}", param_hint=option)
    return name, rest


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
