"""relax: a small JSON REST client with token or basic auth."""

__version__ = "0.1.0"

from relax.auth import BasicCredentials, Credentials, TokenCredentials
from relax.client import JSONResult, RestClient, new_basic_auth_client, new_client
from relax.config import ClientSettings, build_client
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
from relax.multipart import MultipartForm, encode_multipart

__all__ = [
    # Client
    "JSONResult",
    "RestClient",
    "new_basic_auth_client",
    "new_client",
    # Credentials
    "BasicCredentials",
    "Credentials",
    "TokenCredentials",
    # Configuration
    "ClientSettings",
    "build_client",
    # Multipart
    "MultipartForm",
    "encode_multipart",
    # Errors
    "ConfigError",
    "DecodeError",
    "FileAccessError",
    "InvalidURIError",
    "NetworkError",
    "RelaxError",
    "RequestTimeoutError",
    "SerializationError",
    "StatusError",
]
