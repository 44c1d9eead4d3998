"""
=============================================================================
EXCEPTION TAXONOMY
=============================================================================

Every error rawh raises on purpose derives from RawhError, so the CLI can
catch "our" failures in one place and let real bugs surface as tracebacks.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        WHO IS AFFECTED?                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Client invocation (fatal, exit status 1)                          │
    │     RequestError, ResponseError, UnsupportedVersionError,           │
    │     ByteSizeParseError                                              │
    │                                                                      │
    │   Server connection handler (logged, request still answered)        │
    │     MalformedHeaderLine, DurationParseError, ConnectionClosedError  │
    │                                                                      │
    │   Server process (fatal)                                            │
    │     plain OSError from bind() / accept()                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Parse errors also subclass ValueError and the short-read error subclasses
EOFError, so callers that only know the builtin hierarchy still catch them.

=============================================================================
"""


class RawhError(Exception):
    """Base class for all rawh errors."""


class MalformedHeaderLine(RawhError, ValueError):
    """
    Raised when a header line has no colon.

    The offending line is kept on the exception for logging.
    """

    def __init__(self, line: str):
        super().__init__(f"invalid header line: {line}")
        self.line = line


class DurationParseError(RawhError, ValueError):
    """Raised when a duration string such as '10ms' cannot be parsed."""


class ByteSizeParseError(RawhError, ValueError):
    """Raised when a size string such as '1.5 MB' cannot be parsed."""


class UnsupportedVersionError(RawhError, ValueError):
    """Raised for TLS or HTTP version names missing from the lookup tables."""


class ConnectionClosedError(RawhError, EOFError):
    """
    Raised when the peer closes the stream before a complete line or the
    requested number of bytes arrived.

    Attributes:
        received: The bytes that did arrive before the stream ended.
    """

    def __init__(self, message: str, received: bytes = b""):
        super().__init__(message)
        self.received = received


class RequestError(RawhError):
    """The client could not build, connect or send its request."""


class ResponseError(RawhError):
    """The client failed while reading the response."""
