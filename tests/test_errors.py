"""Tests for the error taxonomy."""

from __future__ import annotations

from relax.errors import (
    ConfigError,
    DecodeError,
    FileAccessError,
    InvalidURIError,
    NetworkError,
    RelaxError,
    RequestTimeoutError,
    SerializationError,
    StatusError,
)


class TestRelaxError:
    """Tests for the base error."""

    def test_message_only(self):
        assert str(RelaxError("boom")) == "boom"

    def test_context_is_rendered(self):
        err = RelaxError("boom", context={"a": 1, "b": "x"})
        assert str(err) == "boom (a=1, b='x')"

    def test_all_errors_share_base(self):
        for cls in (
            ConfigError,
            DecodeError,
            FileAccessError,
            InvalidURIError,
            NetworkError,
            RequestTimeoutError,
            SerializationError,
            StatusError,
        ):
            assert issubclass(cls, RelaxError)


class TestSubclasses:
    """Tests for the specific error types."""

    def test_config_error_names_field(self):
        err = ConfigError("api key is empty", field="api_key")
        assert err.field == "api_key"
        assert "api_key" in str(err)

    def test_network_error_drops_missing_context(self):
        err = NetworkError("Request failed")
        assert err.context == {}
        assert str(err) == "Request failed"

    def test_timeout_is_network_error(self):
        err = RequestTimeoutError("slow", method="GET", url="https://x", timeout_seconds=5.0)
        assert isinstance(err, NetworkError)
        assert err.context["timeout_seconds"] == 5.0

    def test_decode_error_keeps_full_body(self):
        body = b"x" * 1000
        err = DecodeError("Invalid JSON", body=body, status_code=200)

        assert err.body == body
        assert len(err.context["body"]) < len(body)
        assert err.context["body"].endswith("...")

    def test_status_error_without_body(self):
        err = StatusError("API returned 500", status_code=500)
        assert err.body is None
        assert "body" not in err.context
