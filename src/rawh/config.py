"""
=============================================================================
CONFIGURATION
=============================================================================

Settings for both modes of rawh, as plain dataclasses.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── rawh server --port 9000                                   │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── RAWH_PORT=9000 rawh server                                │
    │                                                                      │
    │   3. Default values (in these dataclasses)                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Both classes validate eagerly: call validate() at start-up so a typo in a
version name fails before any socket is opened.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .http.versions import parse_http_version_name, parse_tls_version_name


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _validate_logging(log_level: str, log_format: str) -> None:
    if log_level.upper() not in LOG_LEVELS:
        raise ValueError(f"Invalid log_level: {log_level}. Must be one of {', '.join(LOG_LEVELS)}.")
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Invalid log_format: {log_format}. Must be 'text' or 'json'.")


@dataclass
class ServerConfig:
    """
    Configuration for the diagnostic server.

    There are no timeouts, worker limits or request size
    limits here: the server reports whatever a peer sends, however slowly.
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """Address to bind to. All interfaces by default."""

    port: int = 8080
    """Port to listen on. 0 lets the OS pick one (used by tests)."""

    backlog: int = 128
    """Maximum number of connections queued by the kernel before accept()."""

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST HANDLING
    # ─────────────────────────────────────────────────────────────────────

    normalize_headers: bool = False
    """
    Canonicalize received header names ("content-type" → "Content-Type")
    before they are reported. Off by default: names are echoed as received.
    """

    verbose: bool = False
    """Log every received and sent line ("< ..." / "> ...")."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        RAWH_HOST         Bind address (default: 0.0.0.0)
        RAWH_PORT         Listen port (default: 8080)
        RAWH_VERBOSE      Verbose line logging (default: off)
        RAWH_NORMALIZE_HEADERS  Canonicalize header names (default: off)
        RAWH_LOG_LEVEL    Logging level (default: INFO)
        RAWH_LOG_FORMAT   text or json (default: text)
        """
        return cls(
            host=os.getenv("RAWH_HOST", "0.0.0.0"),
            port=int(os.getenv("RAWH_PORT", "8080")),
            verbose=_env_flag("RAWH_VERBOSE"),
            normalize_headers=_env_flag("RAWH_NORMALIZE_HEADERS"),
            log_level=os.getenv("RAWH_LOG_LEVEL", "INFO"),
            log_format=os.getenv("RAWH_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """Raise ValueError for settings the server cannot run with."""
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        _validate_logging(self.log_level, self.log_format)


@dataclass
class ClientConfig:
    """Configuration for the raw and canonical clients."""

    canonical: bool = False
    """Send through http.client instead of writing the bytes ourselves."""

    http_version: str = "1.1"
    """Short HTTP version name: 1.0, 1.1, 2 (2.0)."""

    tls_version: str = "1.2"
    """Minimum TLS version name: 1.0, 1.1, 1.2, 1.3."""

    insecure: bool = False
    """Skip TLS certificate and host name verification."""

    normalize_headers: bool = False
    """Canonicalize custom header names before sending them."""

    verbose: bool = False
    """Log every sent and received line."""

    connect_timeout: Optional[float] = None
    """Timeout for the TCP connect only. None blocks like every other step."""

    log_level: str = "WARNING"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Create configuration from environment variables.

        RAWH_CANONICAL     Use the canonical client (default: off)
        RAWH_HTTP_VERSION  HTTP version name (default: 1.1)
        RAWH_TLS_VERSION   TLS version name (default: 1.2)
        RAWH_INSECURE      Skip certificate checks (default: off)
        RAWH_VERBOSE       Verbose line logging (default: off)
        RAWH_LOG_LEVEL     Logging level (default: WARNING)
        """
        return cls(
            canonical=_env_flag("RAWH_CANONICAL"),
            http_version=os.getenv("RAWH_HTTP_VERSION", "1.1"),
            tls_version=os.getenv("RAWH_TLS_VERSION", "1.2"),
            insecure=_env_flag("RAWH_INSECURE"),
            normalize_headers=_env_flag("RAWH_NORMALIZE_HEADERS"),
            verbose=_env_flag("RAWH_VERBOSE"),
            log_level=os.getenv("RAWH_LOG_LEVEL", "WARNING"),
            log_format=os.getenv("RAWH_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Raise on unusable settings.

        Raises:
            UnsupportedVersionError: Unknown HTTP or TLS version name.
            ValueError: Bad timeout or logging settings.
        """
        parse_http_version_name(self.http_version)
        parse_tls_version_name(self.tls_version)

        if self.connect_timeout is not None and self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be > 0")

        _validate_logging(self.log_level, self.log_format)
