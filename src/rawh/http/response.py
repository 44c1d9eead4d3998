"""
=============================================================================
DIAGNOSTIC RESPONDER
=============================================================================

Turns a RequestRecord into a plain-text report and writes it back on the
same connection.

The response is NOT a conforming HTTP message: there is no
Content-Length and no Connection header. The body ends when the server
closes the connection, which is all a raw client needs.

    HTTP/1.1 200 OK
    Content-Type: text/plain
    X-Trace: X-Trace                       ← one line per echoed header
                                           ← blank line
    request-start-line: POST /x HTTP/1.1
    request-header-lines:
    - Host: localhost:8080                 ← every header value, in order
    - Content-Length: 5
    request-body-size: 5.00 B
    request-body-hash: MD5:5d41402abc4b2a76b9719d911017c592
    request-read-duration: 1ms
    request-sleep-duration: 0s

Every line is trimmed and terminated with CRLF. A failed write is logged
and the remaining lines are still attempted.

=============================================================================
"""

import logging
from typing import List

from ..core.connection import Connection
from ..util.durations import format_duration
from ..util.sizes import pretty_byte_size
from .request import RequestRecord


logger = logging.getLogger(__name__)


STATUS_LINE = "HTTP/1.1 200 OK"
CONTENT_TYPE_LINE = "Content-Type: text/plain"


class DiagnosticResponder:
    """
    Writes the plain-text diagnostic response for a parsed request.

    Usage:
        responder = DiagnosticResponder(verbose=True)
        responder.respond(conn, record)
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def render(self, record: RequestRecord) -> List[str]:
        """Build the response lines (without terminators) for ``record``."""
        lines = [STATUS_LINE, CONTENT_TYPE_LINE]
        for name, values in record.headers.echo_headers.items():
            for value in values:
                lines.append(f"{name}: {value}")
        lines.append("")

        lines.append(f"request-start-line: {record.start_line}")
        lines.append("request-header-lines:")
        for name, value in record.headers.items():
            lines.append(f"- {name}: {value}")
        lines.append(f"request-body-size: {pretty_byte_size(record.body_size)}")
        lines.append(f"request-body-hash: {record.body_hash}")
        lines.append(f"request-read-duration: {format_duration(record.read_duration)}")
        lines.append(f"request-sleep-duration: {format_duration(record.sleep_duration)}")
        return [line.strip() for line in lines]

    def respond(self, conn: Connection, record: RequestRecord) -> int:
        """
        Write the response for ``record`` to ``conn``.

        Returns:
            Number of lines written successfully.
        """
        written = 0
        for line in self.render(record):
            if self.verbose:
                logger.info(f"> {line}")
            try:
                conn.send_line(line)
            except OSError as e:
                logger.warning(f"[{conn.id}] print error: {e}")
                continue
            written += 1
        return written
