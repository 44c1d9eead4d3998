"""
TLS and HTTP version name tables.

The CLI accepts short names ("1.2", "1.1", "2") and these tables turn them
into the values the dialer and the request line need. The tables are
read-only mappings; look them up through the parse functions so an unknown
name becomes an UnsupportedVersionError instead of a KeyError.
"""

import ssl
from dataclasses import dataclass
from types import MappingProxyType

from ..errors import UnsupportedVersionError


@dataclass(frozen=True)
class HttpVersion:
    """
    An HTTP version as written on the request line.

    Attributes:
        proto: Literal protocol token, e.g. "HTTP/1.1".
        major: Major version number.
        minor: Minor version number.
    """

    proto: str
    major: int
    minor: int


TLS_VERSIONS = MappingProxyType({
    "1.0": ssl.TLSVersion.TLSv1,
    "1.1": ssl.TLSVersion.TLSv1_1,
    "1.2": ssl.TLSVersion.TLSv1_2,
    "1.3": ssl.TLSVersion.TLSv1_3,
})

HTTP_VERSIONS = MappingProxyType({
    "1.0": HttpVersion("HTTP/1.0", 1, 0),
    "1.1": HttpVersion("HTTP/1.1", 1, 1),
    "2.0": HttpVersion("HTTP/2.0", 2, 0),
    "2": HttpVersion("HTTP/2.0", 2, 0),
})


def parse_tls_version_name(name: str) -> ssl.TLSVersion:
    """Return the ssl.TLSVersion for a short name like "1.2"."""
    try:
        return TLS_VERSIONS[name]
    except KeyError:
        raise UnsupportedVersionError(f"unsupported TLS version: {name}") from None


def parse_http_version_name(name: str) -> HttpVersion:
    """Return the HttpVersion for a short name like "1.1" or "2"."""
    try:
        return HTTP_VERSIONS[name]
    except KeyError:
        raise UnsupportedVersionError(f"unsupported HTTP version: {name}") from None
