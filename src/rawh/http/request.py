"""
=============================================================================
RAW REQUEST PARSER
=============================================================================

Reads one HTTP/1.x request straight off an accepted connection and records
what arrived. Unlike a conforming server, it never rejects anything: a
broken request line, malformed headers or a short body are all reported
back to the client instead of answered with a 400.

=============================================================================
WHAT GETS READ
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  START LINE                        read_line() once                 │
    │  POST /upload?rawh-sleep-duration=1s HTTP/1.1                       │
    │  ──┬─ ─────────────┬──────────────── ───┬────                       │
    │  method          target              version                        │
    │                    └── query may carry a provisional delay          │
    ├─────────────────────────────────────────────────────────────────────┤
    │  HEADERS                           read_line() until blank line     │
    │  Host: localhost:8080                                               │
    │  Content-Length: 5               → content_length                   │
    │  Rawh-Sleep-Duration: 250ms      → overrides the query delay        │
    │  no colon here                   → logged and skipped               │
    ├─────────────────────────────────────────────────────────────────────┤
    │  BODY                              read_exact(content_length)       │
    │  hello                           → size + "MD5:<hex>"               │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FAILURE POLICY
=============================================================================

Nothing in here raises to the caller. Every problem is logged and leaves a
trace in the RequestRecord instead:

    start line unreadable       → record left empty, error set
    header read fails           → headers read so far are kept
    malformed header line       → skipped, next line still read
    bad control value           → previous / default value kept
    control value out of range  → same as a bad control value
    body shorter than length    → body_size 0, body_hash "empty", error set
    length too large to buffer  → same as a short body

=============================================================================
CONTROL VALUE RESOLUTION
=============================================================================

    content_length = Content-Length header if > 0, else 0
                     (the query string never carries a length)

    sleep_duration = Rawh-Sleep-Duration header if > 0,
                     else rawh-sleep-duration query parameter,
                     else 0

=============================================================================
"""

import hashlib
import logging
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional
from urllib.parse import parse_qs, urlsplit

from ..core.connection import Connection
from ..errors import ConnectionClosedError, DurationParseError, MalformedHeaderLine
from ..util.durations import format_duration, parse_duration
from .headers import HeaderCollection


logger = logging.getLogger(__name__)


SLEEP_DURATION_QUERY_PARAM_NAME = "rawh-sleep-duration"
EMPTY_BODY_HASH = "empty"

# Methods whose body is never read, whatever Content-Length says
BODYLESS_METHODS = frozenset({"GET", "HEAD"})


def extract_sleep_duration_from_query(target: str) -> timedelta:
    """
    Return the delay requested through the query string of ``target``.

    A missing parameter gives zero; an unparsable one is logged and also
    gives zero. Only the first occurrence of the parameter counts.
    """
    try:
        query = urlsplit(target).query
    except ValueError as e:
        logger.warning(f"Error parsing URL {target!r}: {e}")
        return timedelta(0)

    values = parse_qs(query, keep_blank_values=True).get(SLEEP_DURATION_QUERY_PARAM_NAME)
    if not values or not values[0]:
        return timedelta(0)

    try:
        return parse_duration(values[0])
    except DurationParseError as e:
        logger.warning(f"Invalid {SLEEP_DURATION_QUERY_PARAM_NAME} format: {e}")
        return timedelta(0)


@dataclass(frozen=True)
class RequestLine:
    """
    The three tokens of a request line.

    All fields stay empty unless the line splits on single spaces into
    exactly three tokens; "GET /" and "GET  / HTTP/1.1" both stay empty.
    """

    method: str = ""
    target: str = ""
    version: str = ""

    @classmethod
    def parse(cls, line: str) -> "RequestLine":
        parts = line.split(" ")
        if len(parts) != 3:
            return cls()
        return cls(*parts)

    @property
    def is_valid(self) -> bool:
        return bool(self.method or self.target or self.version)


@dataclass
class RequestRecord:
    """
    Everything the parser learned about one request.

    Created fresh for every connection, filled in by RawRequestParser,
    read once by DiagnosticResponder and dropped with the connection.

    Attributes:
        start_line: The first line as received (whitespace trimmed).
        request_line: Its method / target / version, if well formed.
        headers: Every received header in arrival order.
        body_size: Number of body bytes read (0 unless fully read).
        body_hash: "MD5:<hex>" of the body, or "empty".
        read_duration: Wall-clock time spent reading the request.
        sleep_duration: Resolved artificial delay.
        content_length: Resolved declared body length.
        error: The I/O error that cut reading short, if any.
    """

    headers: HeaderCollection = field(default_factory=HeaderCollection)
    start_line: str = ""
    request_line: RequestLine = field(default_factory=RequestLine)
    body_size: int = 0
    body_hash: str = EMPTY_BODY_HASH
    read_duration: timedelta = timedelta(0)
    sleep_duration: timedelta = timedelta(0)
    content_length: int = 0
    error: Optional[BaseException] = None

    @property
    def method(self) -> str:
        return self.request_line.method

    @property
    def target(self) -> str:
        return self.request_line.target

    @property
    def version(self) -> str:
        return self.request_line.version

    def set_start_line(self, line: str) -> None:
        """Store the start line and pick up a delay from its query string."""
        self.start_line = line
        self.request_line = RequestLine.parse(line)
        if self.request_line.is_valid:
            self.sleep_duration = extract_sleep_duration_from_query(self.request_line.target)


class RawRequestParser:
    """
    Reads a request line, headers and a fixed-length body off a connection.

    Usage:
        parser = RawRequestParser(verbose=True)
        with conn:
            record = parser.parse(conn)

    Verbose mode logs every received line prefixed with "<" and parser
    progress prefixed with "#".
    """

    def __init__(self, normalize_headers: bool = False, verbose: bool = False):
        self.normalize_headers = normalize_headers
        self.verbose = verbose

    def _log_verbose(self, message: str) -> None:
        if self.verbose:
            logger.info(f"# {message.strip()}")

    def _log_received(self, line: str) -> None:
        if self.verbose:
            logger.info(f"< {line.strip()}")

    def parse(self, conn: Connection) -> RequestRecord:
        """
        Read one request from ``conn`` into a new RequestRecord.

        Never raises for I/O or protocol problems; see the module docstring
        for what ends up in the record instead.
        """
        self._log_verbose("Read request: start")
        started = time.monotonic()
        record = RequestRecord(headers=HeaderCollection(normalize=self.normalize_headers))

        try:
            start_line = conn.read_line()
        except (ConnectionClosedError, OSError) as e:
            logger.warning(f"[{conn.id}] read request line error: {e}")
            record.error = e
        else:
            record.set_start_line(start_line.strip())
            self._log_received(record.start_line)
            self._read_headers(conn, record)
            self._resolve_control_values(record)
            self._read_body(conn, record)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        record.read_duration = timedelta(milliseconds=elapsed_ms)
        self._log_verbose(f"Read request: done [{format_duration(record.read_duration)}]")
        return record

    def _read_headers(self, conn: Connection, record: RequestRecord) -> None:
        """
        Read header lines until a blank line or a read error.

        A read error ends the header section quietly; the headers read so
        far are kept and the request is still answered.
        """
        while True:
            try:
                line = conn.read_line()
            except (ConnectionClosedError, OSError) as e:
                logger.warning(f"[{conn.id}] read error: {e}")
                record.error = e
                return

            self._log_received(line)
            line = line.strip()
            if not line:
                return  # End of headers

            try:
                record.headers.add_line(line)
            except MalformedHeaderLine as e:
                logger.warning(f"[{conn.id}] read header line '{line}' error: {e}")

    def _resolve_control_values(self, record: RequestRecord) -> None:
        headers = record.headers
        if headers.sleep_duration > timedelta(0):
            record.sleep_duration = headers.sleep_duration
        if headers.content_length > 0:
            record.content_length = headers.content_length

    def _read_body(self, conn: Connection, record: RequestRecord) -> None:
        """
        Read exactly content_length bytes and hash them.

        Skipped for GET and HEAD and when there is nothing to read. A short
        read is never hashed: the body fields keep their defaults. Neither
        is a length too large to allocate.
        """
        if record.method in BODYLESS_METHODS or record.content_length <= 0:
            self._log_verbose("Body reading skipped")
            return

        self._log_verbose("Start of body reading")
        try:
            body = conn.read_exact(record.content_length)
        except (ConnectionClosedError, OSError) as e:
            logger.warning(f"[{conn.id}] read body error: {e}")
            record.error = e
        except (OverflowError, MemoryError) as e:
            # Declared length too large to buffer; reported like a short read
            logger.warning(f"[{conn.id}] read body error: cannot buffer {record.content_length} bytes: {e!r}")
            record.error = e
        else:
            record.body_size = len(body)
            record.body_hash = "MD5:" + hashlib.md5(body, usedforsecurity=False).hexdigest()
            self._log_verbose(f"body-size: {record.body_size}")
            self._log_verbose(f"body-hash: {record.body_hash}")
        self._log_verbose("End of body reading")
