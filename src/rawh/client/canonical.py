"""
Canonical client: the same request, framed by http.client.

Useful as a baseline next to the raw client. Whatever the raw client
shows that this one does not is the library "fixing" the request:
header names are canonicalized, Host comes from the URL, and
Content-Length is set from the body.

Only HTTP/1.0 and HTTP/1.1 are available; http.client has no HTTP/2.
"""

import http.client
import logging
import ssl
from typing import Optional, Sequence

from ..config import ClientConfig
from ..core.dialer import create_tls_context, parse_target
from ..errors import MalformedHeaderLine, RequestError, ResponseError, UnsupportedVersionError
from ..http.headers import CONTENT_LENGTH_HEADER_NAME, HOST_HEADER_NAME, HeaderCollection, split_header_line
from ..http.versions import HttpVersion, parse_http_version_name, parse_tls_version_name
from .base import Body, Client, ClientResponse, encode_body


logger = logging.getLogger(__name__)


class HTTP10Connection(http.client.HTTPConnection):
    """HTTPConnection writing "HTTP/1.0" on the request line."""

    _http_vsn = 10
    _http_vsn_str = "HTTP/1.0"


class HTTPS10Connection(http.client.HTTPSConnection):
    """HTTPSConnection writing "HTTP/1.0" on the request line."""

    _http_vsn = 10
    _http_vsn_str = "HTTP/1.0"


# (plain, TLS) connection classes by HTTP version name
CONNECTION_CLASSES = {
    "HTTP/1.0": (HTTP10Connection, HTTPS10Connection),
    "HTTP/1.1": (http.client.HTTPConnection, http.client.HTTPSConnection),
}


class CanonicalClient(Client):
    """Client delegating request framing and response parsing to http.client."""

    def __init__(
        self,
        http_version: HttpVersion,
        tls_context: Optional[ssl.SSLContext] = None,
        verbose: bool = False,
        connect_timeout: Optional[float] = None,
    ):
        if http_version.proto not in CONNECTION_CLASSES:
            raise UnsupportedVersionError(
                f"canonical client does not support {http_version.proto}"
            )
        self.http_version = http_version
        self.tls_context = tls_context
        self.verbose = verbose
        self.connect_timeout = connect_timeout

    @classmethod
    def from_config(cls, config: ClientConfig) -> "CanonicalClient":
        tls_context = create_tls_context(
            minimum_version=parse_tls_version_name(config.tls_version),
            insecure=config.insecure,
        )
        return cls(
            http_version=parse_http_version_name(config.http_version),
            tls_context=tls_context,
            verbose=config.verbose,
            connect_timeout=config.connect_timeout,
        )

    def _open(self, target) -> http.client.HTTPConnection:
        plain_class, tls_class = CONNECTION_CLASSES[self.http_version.proto]
        if target.is_tls:
            return tls_class(
                target.host, target.port,
                timeout=self.connect_timeout,
                context=self.tls_context or create_tls_context(),
            )
        return plain_class(target.host, target.port, timeout=self.connect_timeout)

    def do_request(
        self,
        method: str,
        url: str,
        header_lines: Sequence[str] = (),
        data: Body = b"",
    ) -> ClientResponse:
        target = parse_target(url)
        body = encode_body(data)

        headers = HeaderCollection(normalize=True)
        for line in header_lines:
            try:
                headers.add(*split_header_line(line))
            except MalformedHeaderLine as e:
                logger.debug(f"Skipping custom header: {e}")

        conn = self._open(target)
        try:
            try:
                conn.putrequest(method, target.request_target, skip_host=True, skip_accept_encoding=True)
                conn.putheader(HOST_HEADER_NAME, target.authority)
                sent = [f"{method} {target.request_target} {self.http_version.proto}",
                        f"{HOST_HEADER_NAME}: {target.authority}"]
                for name, value in headers.items():
                    if name.lower() in (HOST_HEADER_NAME.lower(), CONTENT_LENGTH_HEADER_NAME.lower()):
                        continue
                    conn.putheader(name, value)
                    sent.append(f"{name}: {value}")
                conn.putheader(CONTENT_LENGTH_HEADER_NAME, str(len(body)))
                sent.append(f"{CONTENT_LENGTH_HEADER_NAME}: {len(body)}")
                self._log_lines(">", sent)
                conn.endheaders(body or None)
            except (OSError, ValueError, http.client.HTTPException) as e:
                raise RequestError(f"error sending request: {e}") from e

            try:
                response = conn.getresponse()
                response_body = response.read()
            except (OSError, http.client.HTTPException) as e:
                raise ResponseError(f"error reading response: {e}") from e
        finally:
            conn.close()

        version = "HTTP/1.0" if response.version == 10 else "HTTP/1.1"
        status_line = f"{version} {response.status} {response.reason}"
        header_lines_received = [f"{name}: {value}" for name, value in response.getheaders()]
        self._log_lines("<", [status_line] + header_lines_received)

        return ClientResponse(
            status_line=status_line,
            header_lines=header_lines_received,
            body=response_body,
        )

    def _log_lines(self, prefix: str, lines: Sequence[str]) -> None:
        if not self.verbose:
            return
        for line in lines:
            logger.info(f"{prefix} {line}")
        logger.info(prefix)
