"""
=============================================================================
RAW CLIENT
=============================================================================

Writes a request byte for byte onto a plain or TLS socket and reads back
whatever the server sends, without any HTTP library in between.

=============================================================================
WHAT GOES ON THE WIRE
=============================================================================

    rawh client http://localhost:8080/x -X POST -d hello \\
        -H "x-b: 2" -H "Host: ignored" -H "X-A: 1"

    POST /x HTTP/1.1\\r\\n              ← method, target, version as given
    Host: localhost:8080\\r\\n          ← always first, from the URL
    x-b: 2\\r\\n                        ← caller headers, caller order,
    X-A: 1\\r\\n                        ←   caller casing, Host dropped
    Content-Length: 5\\r\\n             ← always last, body byte length
    \\r\\n
    hello                               ← body as a raw block, no CRLF

Every line goes through one primitive: trailing whitespace trimmed, CRLF
appended, optionally logged with a "> " prefix. The body does NOT: it is
written as-is so embedded line breaks arrive untouched.

=============================================================================
READING THE RESPONSE
=============================================================================

    status line          read_line()
    header lines         read_line() until an empty line, logged "< ..."
    body                 read_all(): every byte until the peer closes

There is no Content-Length handling on the way back. A server that keeps
the connection open (keep-alive, chunked) keeps this client blocked until
one side closes.

=============================================================================
"""

import logging
from typing import Optional, Sequence

from ..config import ClientConfig
from ..core.connection import Connection, decode_text
from ..core.dialer import ConnectionDialer, create_tls_context, parse_target
from ..errors import ConnectionClosedError, MalformedHeaderLine, RequestError, ResponseError
from ..http.headers import CONTENT_LENGTH_HEADER_NAME, HOST_HEADER_NAME, HeaderCollection
from ..http.versions import HttpVersion, parse_http_version_name, parse_tls_version_name
from .base import Body, Client, ClientResponse, encode_body


logger = logging.getLogger(__name__)


class RawRequestWriter:
    """Serializes one request onto an open connection."""

    def __init__(self, conn: Connection, verbose: bool = False):
        self.conn = conn
        self.verbose = verbose

    def send_line(self, line: str) -> None:
        """
        Send one line (trailing whitespace trimmed, CRLF appended).

        Raises:
            RequestError: If the write fails.
        """
        line = line.rstrip()
        if self.verbose:
            logger.info(f"> {line}")
        try:
            self.conn.send_line(line)
        except OSError as e:
            raise RequestError(f"printing request line '{line}' error: {e}") from e

    def send_body(self, body: bytes) -> None:
        """Send the body as one raw block."""
        if self.verbose:
            logger.info(f"> {decode_text(body)}")
        try:
            self.conn.send_bytes(body)
        except OSError as e:
            raise RequestError(f"error sending request body: {e}") from e

    def write(
        self,
        method: str,
        request_target: str,
        version: str,
        host: str,
        headers: HeaderCollection,
        body: bytes = b"",
    ) -> None:
        """
        Write the complete request.

        Args:
            method: Request method.
            request_target: Path and query.
            version: Version token for the request line, e.g. "HTTP/1.1".
            host: Value of the Host header (sent first).
            headers: Caller headers; any Host entries are skipped.
            body: Request body; Content-Length is derived from it.
        """
        self.send_line(f"{method} {request_target} {version}")
        self.send_line(f"{HOST_HEADER_NAME}: {host}")
        for name, value in headers.items():
            if name.lower() == HOST_HEADER_NAME.lower():
                continue
            self.send_line(f"{name}: {value}")
        self.send_line(f"{CONTENT_LENGTH_HEADER_NAME}: {len(body)}")
        self.send_line("")
        if body:
            self.send_body(body)


class RawResponseReader:
    """Reads a status line, header lines and the rest of the stream."""

    def __init__(self, conn: Connection, verbose: bool = False):
        self.conn = conn
        self.verbose = verbose

    def _log_received(self, line: str) -> None:
        if self.verbose:
            logger.info(f"< {line.strip()}")

    def read(self) -> ClientResponse:
        """
        Read the whole response.

        Raises:
            ResponseError: If any read fails or the stream ends early.
        """
        try:
            status_line = self.conn.read_line()
        except (ConnectionClosedError, OSError) as e:
            raise ResponseError(f"error reading response status: {e}") from e
        self._log_received(status_line)

        # Header lines are collected verbatim, never normalized
        header_lines = []
        while True:
            try:
                line = self.conn.read_line()
            except (ConnectionClosedError, OSError) as e:
                raise ResponseError(f"error reading headers: {e}") from e
            line = line.strip()
            self._log_received(line)
            if not line:
                break  # Header section end
            header_lines.append(line)

        try:
            body = self.conn.read_all()
        except OSError as e:
            raise ResponseError(f"error reading response: {e}") from e

        return ClientResponse(
            status_line=status_line.strip(),
            header_lines=header_lines,
            body=body,
        )


class RawClient(Client):
    """
    Client that writes and reads HTTP/1.x by hand.

    Usage:
        client = RawClient.from_config(ClientConfig(verbose=True))
        response = client.do_request("GET", "http://localhost:8080/", ["X-A: 1"])
        print(response.text)
    """

    def __init__(
        self,
        http_version: HttpVersion,
        dialer: Optional[ConnectionDialer] = None,
        normalize_headers: bool = False,
        verbose: bool = False,
    ):
        self.http_version = http_version
        self.dialer = dialer or ConnectionDialer()
        self.normalize_headers = normalize_headers
        self.verbose = verbose

    @classmethod
    def from_config(cls, config: ClientConfig) -> "RawClient":
        """
        Build a client from configuration.

        Raises:
            UnsupportedVersionError: Unknown HTTP or TLS version name.
        """
        tls_context = create_tls_context(
            minimum_version=parse_tls_version_name(config.tls_version),
            insecure=config.insecure,
        )
        return cls(
            http_version=parse_http_version_name(config.http_version),
            dialer=ConnectionDialer(tls_context, connect_timeout=config.connect_timeout),
            normalize_headers=config.normalize_headers,
            verbose=config.verbose,
        )

    def do_request(
        self,
        method: str,
        url: str,
        header_lines: Sequence[str] = (),
        data: Body = b"",
    ) -> ClientResponse:
        target = parse_target(url)

        headers = HeaderCollection(normalize=self.normalize_headers)
        try:
            headers.add_lines(header_lines)
        except MalformedHeaderLine as e:
            raise RequestError(f"error adding custom headers: {e}") from e

        body = encode_body(data)
        with self.dialer.dial(target) as conn:
            RawRequestWriter(conn, self.verbose).write(
                method=method,
                request_target=target.request_target,
                version=self.http_version.proto,
                host=target.authority,
                headers=headers,
                body=body,
            )
            return RawResponseReader(conn, self.verbose).read()
