"""
=============================================================================
HTTP WIRE PIECES
=============================================================================

    headers.py    HeaderCollection: ordered multimap + control side fields
    versions.py   TLS / HTTP version name tables
    request.py    RawRequestParser: bytes off a connection → RequestRecord
    response.py   DiagnosticResponder: RequestRecord → plain-text report

Only the leaf modules are re-exported here; request.py and response.py
depend on rawh.core and are imported from their own modules.

=============================================================================
"""

from .headers import (
    HeaderCollection,
    canonical_header_name,
    split_header_line,
    CONTENT_LENGTH_HEADER_NAME,
    ECHO_HEADER_NAME,
    HOST_HEADER_NAME,
    SLEEP_DURATION_HEADER_NAME,
)
from .versions import HttpVersion, parse_http_version_name, parse_tls_version_name

__all__ = [
    "HeaderCollection",
    "canonical_header_name",
    "split_header_line",
    "CONTENT_LENGTH_HEADER_NAME",
    "ECHO_HEADER_NAME",
    "HOST_HEADER_NAME",
    "SLEEP_DURATION_HEADER_NAME",
    "HttpVersion",
    "parse_http_version_name",
    "parse_tls_version_name",
]
