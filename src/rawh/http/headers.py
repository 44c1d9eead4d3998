"""
=============================================================================
HEADER COLLECTION
=============================================================================

An ordered multimap of header lines that also pulls rawh's control values
out of the headers while they are being added.

=============================================================================
WHY NOT A DICT?
=============================================================================

A diagnostic tool has to reproduce headers exactly as they were sent:

    X-Trace: a                 dict view:   {"x-trace": "a, b"}
    x-trace: b                 we need:     [("X-Trace", "a"),
    X-Other: c                               ("x-trace", "b"),
                                             ("X-Other", "c")]

So the collection stores a flat list of (name, value) pairs in insertion
order. Names are kept exactly as received unless the collection was
created with normalize=True, in which case they are rewritten to the
canonical "Content-Type" capitalization before being stored.

=============================================================================
SIDE FIELDS
=============================================================================

While a header is added, its lowercased name is compared against the
reserved names below and the matching side field is updated (last write
wins). This happens whether or not normalization is enabled.

    ┌───────────────────────┬───────────────────┬───────────────────────┐
    │ Header                │ Side field        │ On bad value          │
    ├───────────────────────┼───────────────────┼───────────────────────┤
    │ Host                  │ host              │ empty value ignored   │
    │ Content-Length        │ content_length    │ logged, unchanged     │
    │ Rawh-Sleep-Duration   │ sleep_duration    │ logged, unchanged     │
    │ Rawh-Echo             │ echo_headers      │ -                     │
    └───────────────────────┴───────────────────┴───────────────────────┘

Rawh-Echo carries a space separated list of header names. Each listed name
is recorded in echo_headers with the name itself as the value, and the
server mirrors those lines back in its response:

    Rawh-Echo: X-One X-Two    ──►   X-One: X-One
                                    X-Two: X-Two

=============================================================================
"""

import logging
import re
import string
from datetime import timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..errors import DurationParseError, MalformedHeaderLine
from ..util.durations import parse_duration


logger = logging.getLogger(__name__)


HOST_HEADER_NAME = "Host"
CONTENT_LENGTH_HEADER_NAME = "Content-Length"
SLEEP_DURATION_HEADER_NAME = "Rawh-Sleep-Duration"
ECHO_HEADER_NAME = "Rawh-Echo"

# RFC 7230 "tchar": the characters allowed in a header field name.
_TOKEN_CHARS = frozenset("!#$%&'*+-.^_`|~" + string.digits + string.ascii_letters)

_DECIMAL = re.compile(r"^[0-9]+$")

# Signed 64-bit limit; larger declared lengths are rejected like malformed ones
MAX_CONTENT_LENGTH = 2 ** 63 - 1
_MAX_LENGTH_DIGITS = len(str(MAX_CONTENT_LENGTH))


def canonical_header_name(name: str) -> str:
    """
    Return the canonical MIME capitalization of a header name.

    The first letter and any letter following a hyphen are upper-cased,
    everything else is lower-cased: "content-TYPE" -> "Content-Type".
    Names containing characters that are not valid in a header name
    (spaces, for instance) are returned unchanged.
    """
    if not name or any(char not in _TOKEN_CHARS for char in name):
        return name

    result = []
    upper = True
    for char in name:
        result.append(char.upper() if upper else char.lower())
        upper = char == "-"
    return "".join(result)


def split_header_line(line: str) -> Tuple[str, str]:
    """
    Split a raw header line on its first colon.

    Returns the untrimmed (name, value) pair.

    Raises:
        MalformedHeaderLine: If the line has no colon.
    """
    name, sep, value = line.partition(":")
    if not sep:
        raise MalformedHeaderLine(line)
    return name, value


class HeaderCollection:
    """
    Insertion-ordered header multimap with control-value extraction.

    Attributes:
        host: Last non-empty Host value.
        content_length: Last valid Content-Length value (0 if none).
        sleep_duration: Last valid Rawh-Sleep-Duration value (0 if none).
        echo_headers: Header name -> values to mirror in the response.
    """

    def __init__(self, normalize: bool = False):
        self._normalize = normalize
        self._entries: List[Tuple[str, str]] = []

        self.host: str = ""
        self.content_length: int = 0
        self.sleep_duration: timedelta = timedelta(0)
        self.echo_headers: Dict[str, List[str]] = {}

    @property
    def normalize(self) -> bool:
        """Whether header names are canonicalized on add (fixed at construction)."""
        return self._normalize

    # =========================================================================
    # ADDING HEADERS
    # =========================================================================

    def add(self, name: str, value: str) -> None:
        """
        Add one header and update the side fields.

        Both name and value are trimmed. Existing values under the same
        name are kept; the new one is appended after them.
        """
        name = name.strip()
        value = value.strip()
        if self._normalize:
            name = canonical_header_name(name)
        self._entries.append((name, value))

        lowered = name.lower()
        if lowered == HOST_HEADER_NAME.lower():
            if value:
                self.host = value
        elif lowered == CONTENT_LENGTH_HEADER_NAME.lower():
            self._set_content_length(value)
        elif lowered == SLEEP_DURATION_HEADER_NAME.lower():
            self._set_sleep_duration(value)
        elif lowered == ECHO_HEADER_NAME.lower():
            for echo_name in value.split():
                self.echo_headers.setdefault(echo_name, []).append(echo_name)

    def add_line(self, line: str) -> None:
        """
        Split a "Name: value" line and add it.

        Raises:
            MalformedHeaderLine: If the line has no colon. Nothing is added.
        """
        name, value = split_header_line(line)
        self.add(name, value)

    def add_lines(self, lines: Iterable[str]) -> None:
        """
        Add several header lines, stopping at the first malformed one.

        Lines before the malformed one stay in the collection.
        """
        for line in lines:
            self.add_line(line)

    def _set_content_length(self, value: str) -> None:
        if not _DECIMAL.match(value):
            logger.warning(
                "wrong header '%s' value '%s': not a non-negative integer",
                CONTENT_LENGTH_HEADER_NAME, value,
            )
            return
        digits = value.lstrip("0")
        if len(digits) > _MAX_LENGTH_DIGITS or int(digits or "0") > MAX_CONTENT_LENGTH:
            logger.warning(
                "wrong header '%s' value '%s': out of range",
                CONTENT_LENGTH_HEADER_NAME, value,
            )
            return
        self.content_length = int(digits or "0")

    def _set_sleep_duration(self, value: str) -> None:
        try:
            self.sleep_duration = parse_duration(value)
        except DurationParseError as e:
            logger.warning(
                "wrong header '%s' value '%s': %s",
                SLEEP_DURATION_HEADER_NAME, value, e,
            )

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def _matches(self, stored: str, wanted: str) -> bool:
        # Without normalization names are compared exactly as received.
        if self._normalize:
            return stored.lower() == wanted.lower()
        return stored == wanted

    def get_all(self, name: str) -> List[str]:
        """Return every value stored under ``name``, in insertion order."""
        return [value for stored, value in self._entries if self._matches(stored, name)]

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the first value stored under ``name``, or ``default``."""
        for stored, value in self._entries:
            if self._matches(stored, name):
                return value
        return default

    def names(self) -> List[str]:
        """Distinct stored names in order of first appearance."""
        return list(dict.fromkeys(name for name, _ in self._entries))

    def items(self) -> List[Tuple[str, str]]:
        """Every (name, value) pair in exact insertion order."""
        return list(self._entries)

    def as_dict(self) -> Dict[str, List[str]]:
        """Group values by stored name, names in order of first appearance."""
        grouped: Dict[str, List[str]] = {}
        for name, value in self._entries:
            grouped.setdefault(name, []).append(value)
        return grouped

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return any(self._matches(stored, name) for stored, _ in self._entries)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"HeaderCollection(normalize={self._normalize}, entries={self._entries!r})"
