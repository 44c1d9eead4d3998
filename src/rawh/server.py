"""
=============================================================================
DIAGNOSTIC SERVER
=============================================================================

Ties the listening socket, the raw request parser and the diagnostic
responder together.

=============================================================================
PER-CONNECTION PIPELINE
=============================================================================

    ConnectionServer.accept()
            │
            ▼  new thread, owns the connection
    ┌─────────────────────────────────────────────────────────────────────┐
    │  with conn:                                                          │
    │      record = parser.parse(conn)       request line, headers, body  │
    │      if record.sleep_duration > 0:                                  │
    │          time.sleep(...)               simulate a slow endpoint     │
    │      responder.respond(conn, record)   plain-text report            │
    │  (conn closed here on every path)                                   │
    └─────────────────────────────────────────────────────────────────────┘

Each RequestRecord is created inside the handler and never leaves its
thread, so handlers need no locks. Nothing a single connection does can
stop the server; only bind and accept errors propagate out of run().

=============================================================================
"""

import logging
import time
from datetime import timedelta
from typing import Optional, Tuple

from .config import ServerConfig
from .core import Connection, ConnectionServer, ConnectionState
from .http.request import RawRequestParser, RequestRecord
from .http.response import DiagnosticResponder
from .util.durations import format_duration


logger = logging.getLogger(__name__)


class DiagnosticServer:
    """
    TCP server answering every request with a report of what it received.

    Usage:
        server = DiagnosticServer(ServerConfig(port=8080, verbose=True))
        server.run()    # Blocks until Ctrl+C or an accept error
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = ConnectionServer(self.config)
        self._parser = RawRequestParser(
            normalize_headers=self.config.normalize_headers,
            verbose=self.config.verbose,
        )
        self._responder = DiagnosticResponder(verbose=self.config.verbose)

    @property
    def server_address(self) -> Tuple[str, int]:
        return self._socket_server.server_address

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def run(self) -> None:
        """
        Serve until shutdown() is called or accepting fails.

        Raises:
            OSError: If the port cannot be bound or accept() fails.
        """
        try:
            self._socket_server.start(self.handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")

    def shutdown(self) -> None:
        self._socket_server.shutdown()

    def _log_verbose(self, message: str) -> None:
        if self.config.verbose:
            logger.info(f"# {message}")

    def handle_connection(self, conn: Connection) -> None:
        """
        Parse, optionally sleep, respond and close. Runs in its own thread.

        Unexpected exceptions are logged; they never reach the accept loop.
        """
        with conn:
            try:
                record = self._parser.parse(conn)
                conn.state = ConnectionState.PROCESSING
                self._sleep(record)
                self._responder.respond(conn, record)
                logger.debug(
                    f"[{conn.id}] {record.start_line or '<no start line>'} "
                    f"body={record.body_size} sleep={format_duration(record.sleep_duration)}"
                )
            except Exception as e:
                logger.exception(f"[{conn.id}] Connection error: {e}")

    def _sleep(self, record: RequestRecord) -> None:
        if record.sleep_duration <= timedelta(0):
            return
        self._log_verbose(f"Going to sleep for {format_duration(record.sleep_duration)}")
        started = time.monotonic()
        time.sleep(record.sleep_duration.total_seconds())
        slept = timedelta(milliseconds=int((time.monotonic() - started) * 1000))
        self._log_verbose(f"Woke up after {format_duration(slept)}")
