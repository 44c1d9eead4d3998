"""
=============================================================================
CONNECTION DIALER
=============================================================================

Opens the client side byte stream for a target URL.

    https://example.com:8443/x?y=1
    ─┬───   ───────┬────────
     │             └── authority → TCP connect to example.com:8443,
     │                             also the value of the Host header
     └── scheme → "https" wraps the socket in TLS, anything else is plain

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         dial(target)                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   create_connection((host, port))   TCP three-way handshake         │
    │            │                                                         │
    │            ├── scheme == "https"?                                    │
    │            │        └── context.wrap_socket(server_hostname=host)   │
    │            │              TLS handshake, min version from config    │
    │            │                                                         │
    │            └── Connection(socket)   buffered reads, CRLF writes     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Ports default to 80 / 443 when the URL has none.

=============================================================================
"""

import socket
import ssl
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from ..errors import RequestError
from .connection import Connection


logger = logging.getLogger(__name__)


DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class Target:
    """
    A parsed request URL.

    Attributes:
        scheme: "http" or "https" (anything but "https" is dialed plain).
        host: Host name or address to connect to.
        port: TCP port to connect to.
        authority: host[:port] exactly as written in the URL, without
                   user info. Used for the Host header.
        request_target: Path (or "/") plus "?query" when present.
    """

    scheme: str
    host: str
    port: int
    authority: str
    request_target: str

    @property
    def is_tls(self) -> bool:
        return self.scheme == "https"


def parse_target(url: str) -> Target:
    """
    Parse a request URL into a Target.

    Raises:
        RequestError: If the URL has no host or an invalid port.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise RequestError(f"error parsing URL: {e}") from e

    if not parts.hostname:
        raise RequestError(f"error parsing URL: missing host in {url!r}")

    scheme = parts.scheme.lower()
    authority = parts.netloc.rpartition("@")[2]

    request_target = parts.path or "/"
    if parts.query:
        request_target += "?" + parts.query

    return Target(
        scheme=scheme,
        host=parts.hostname,
        port=port or DEFAULT_PORTS.get(scheme, 80),
        authority=authority,
        request_target=request_target,
    )


def create_tls_context(
    minimum_version: ssl.TLSVersion = ssl.TLSVersion.TLSv1_2,
    insecure: bool = False,
) -> ssl.SSLContext:
    """
    Build the client TLS context.

    Args:
        minimum_version: Lowest TLS version to negotiate.
        insecure: Skip certificate and host name verification.
    """
    context = ssl.create_default_context()
    context.minimum_version = minimum_version
    if insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class ConnectionDialer:
    """
    Opens plain or TLS connections depending on the URL scheme.

    Usage:
        dialer = ConnectionDialer(create_tls_context(insecure=True))
        with dialer.dial(parse_target("https://localhost:8443/")) as conn:
            conn.send_line("GET / HTTP/1.1")
    """

    def __init__(
        self,
        tls_context: Optional[ssl.SSLContext] = None,
        connect_timeout: Optional[float] = None,
    ):
        """
        Args:
            tls_context: Context used for https targets. A default verifying
                         context is created lazily when needed.
            connect_timeout: Timeout for the TCP connect only. Reads and
                             writes on the returned connection block.
        """
        self._tls_context = tls_context
        self.connect_timeout = connect_timeout

    @property
    def tls_context(self) -> ssl.SSLContext:
        if self._tls_context is None:
            self._tls_context = create_tls_context()
        return self._tls_context

    def dial(self, target: Target) -> Connection:
        """
        Connect to ``target``.

        Raises:
            RequestError: If the TCP connect or the TLS handshake fails.
        """
        try:
            sock = socket.create_connection((target.host, target.port), self.connect_timeout)
        except OSError as e:
            raise RequestError(f"error establishing connection: {e}") from e

        if target.is_tls:
            try:
                sock = self.tls_context.wrap_socket(sock, server_hostname=target.host)
            except (ssl.SSLError, OSError) as e:
                sock.close()
                raise RequestError(f"error establishing secure connection: {e}") from e

        conn = Connection(socket=sock, address=(target.host, target.port))
        logger.debug(
            f"[{conn.id}] Connected to {target.host}:{target.port}"
            f"{' (TLS)' if target.is_tls else ''}"
        )
        return conn
