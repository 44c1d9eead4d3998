"""
=============================================================================
CONNECTION: ONE BYTE STREAM, ONE OWNER
=============================================================================

This module wraps a connected socket (plain TCP or TLS) with the small set
of blocking operations both sides of rawh need:

    read_line()      one protocol line            (request / status / header)
    read_exact(n)    exactly n bytes              (request body)
    read_all()       everything until EOF         (response body)
    send_line(text)  text + CRLF                  (request / response lines)
    send_bytes(data) raw bytes                    (request body)
    close()          shutdown + close, once

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

A single recv() may return half a line or three lines at once:

    peer sends:   "GET / HTTP/1.1\r\nHost: a\r\n\r\n"
    recv() #1 →   "GET / HT"
    recv() #2 →   "TP/1.1\r\nHost: a\r\n\r\n"

So reads go through a buffered file object (socket.makefile("rb")). It
keeps whatever follows the current line in its buffer, which is exactly
what we want when the header section is followed by a body.

=============================================================================
THE LINE GRAMMAR
=============================================================================

There is exactly one definition of "a line", used by the server request
parser and by the client response reader alike:

    ┌─────────────────────────────────────────────────────────────────┐
    │  1. read bytes up to and including the next "\n"                │
    │  2. drop the "\n"                                               │
    │  3. drop one trailing "\r" if present                           │
    │  4. EOF before "\n" → ConnectionClosedError                     │
    └─────────────────────────────────────────────────────────────────┘

So "Host: a\r\n" and "Host: a\n" both read as "Host: a". Callers decide
what further trimming they want.

Text is decoded as UTF-8 with surrogateescape, so bytes that are not valid
UTF-8 survive a read → write round trip unchanged.

=============================================================================
BLOCKING AND TIMEOUTS
=============================================================================

Accepted and dialed sockets are blocking and, by default, carry NO timeout.
A silent peer blocks only the thread that owns the connection. That is
acceptable for a diagnostic tool; there is no cancellation.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Optional

from ..errors import ConnectionClosedError


logger = logging.getLogger(__name__)


ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"
CRLF = "\r\n"


def encode_text(text: str) -> bytes:
    """Encode protocol text the way Connection writes it."""
    return text.encode(ENCODING, ENCODING_ERRORS)


def decode_text(data: bytes) -> str:
    """Decode protocol bytes the way Connection reads them."""
    return data.decode(ENCODING, ENCODING_ERRORS)


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and close bookkeeping."""
    NEW = "new"                # Just accepted/dialed, nothing read yet
    READING = "reading"        # Reading a request or response
    PROCESSING = "processing"  # Request parsed, handler is working (or sleeping)
    WRITING = "writing"        # Sending bytes
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    A connected byte stream owned by exactly one handler.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. BUFFERED READING                                                 │
    │     └── line reads and fixed-size reads share one buffer             │
    │                                                                      │
    │  2. ORDERED WRITING                                                  │
    │     └── sendall() per call, so bytes leave in call order            │
    │                                                                      │
    │  3. CLOSE EXACTLY ONCE                                               │
    │     └── close() is idempotent; use the context manager so every      │
    │         exit path, including exceptions, ends up in close()          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The connected socket (may be an ssl.SSLSocket).
        address: Peer address as returned by accept()/getpeername().
        id: Short identifier used as a log prefix.
        state: Current connection state.
        created_at: Timestamp when the connection was created.
        last_activity: Timestamp of the last read or write.
        timeout: Socket timeout in seconds, None to block forever.
    """

    socket: socket.socket
    address: Any = ("", 0)

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)

    timeout: Optional[float] = None

    _reader: Any = field(default=None, repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)
        self._reader = self.socket.makefile("rb")

    @property
    def peer(self) -> str:
        """Peer address formatted as host:port for log messages."""
        if isinstance(self.address, tuple) and len(self.address) >= 2:
            return f"{self.address[0]}:{self.address[1]}"
        return str(self.address)

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> str:
        """
        Read one line according to the line grammar above.

        Returns:
            The line without its terminator.

        Raises:
            ConnectionClosedError: If the stream ends before a "\\n".
            OSError: On socket errors (reset, TLS failure, ...).
        """
        self.state = ConnectionState.READING
        raw = self._reader.readline()
        self.last_activity = time.time()

        if not raw.endswith(b"\n"):
            raise ConnectionClosedError(
                f"connection closed after {len(raw)} bytes of an unterminated line",
                received=raw,
            )

        raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        return decode_text(raw)

    def read_exact(self, size: int) -> bytes:
        """
        Read exactly ``size`` bytes, blocking until they arrive.

        Raises:
            ConnectionClosedError: If the stream ends first. The partial
                                   data is available as ``received``.
        """
        self.state = ConnectionState.READING
        data = self._reader.read(size)
        self.last_activity = time.time()

        if len(data) < size:
            raise ConnectionClosedError(
                f"expected {size} bytes, connection closed after {len(data)}",
                received=data,
            )
        return data

    def read_all(self) -> bytes:
        """Read until the peer closes the stream."""
        self.state = ConnectionState.READING
        data = self._reader.read()
        self.last_activity = time.time()
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_bytes(self, data: bytes) -> None:
        """
        Send ``data`` in full.

        Uses sendall() so a partially drained kernel buffer never truncates
        the write.

        Raises:
            OSError: If the peer is gone.
        """
        self.state = ConnectionState.WRITING
        self.socket.sendall(data)
        self.last_activity = time.time()

    def send_line(self, line: str) -> str:
        """
        Send one protocol line: trailing whitespace removed, CRLF appended.

        Returns:
            The line as sent, without the CRLF (handy for verbose logs).
        """
        line = line.rstrip()
        self.send_bytes(encode_text(line + CRLF))
        return line

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self) -> None:
        """
        Close the connection. Safe to call more than once.

        Performs the same sequence for both sides:

        1. shutdown(SHUT_WR): send FIN so the peer's read-until-EOF returns
        2. drain briefly: unread request bytes left in the kernel buffer
           would otherwise make close() send RST and clobber our response
        3. close the buffered reader and the socket
        """
        if self.state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except (socket.timeout, OSError):
            pass

        try:
            self._reader.close()
            self.socket.close()
        except OSError as e:
            logger.warning(f"[{self.id}] Error closing connection: {e}")

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection to {self.peer} closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
