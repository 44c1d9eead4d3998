"""
Duration strings in the "10ms" / "1m30s" notation.

The delay header and query parameter carry durations in the compact notation
popularised by Go (``300ms``, ``1.5h``, ``2h45m``), and the diagnostic
response reports durations back in the same notation. Python has no
built-in for either direction, so both live here.

    parse_duration("1m30s")                  -> timedelta(seconds=90)
    format_duration(timedelta(seconds=90))   -> "1m30s"

Values are carried as ``datetime.timedelta``; anything finer than one
microsecond is rounded away when parsing.
"""

import re
from datetime import timedelta

from ..errors import DurationParseError


_NANOSECOND = 1
_MICROSECOND = 1000 * _NANOSECOND
_MILLISECOND = 1000 * _MICROSECOND
_SECOND = 1000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE

# Largest duration representable as signed 64-bit nanoseconds (about 2562047h)
MAX_NANOSECONDS = 2 ** 63 - 1
_MAX_DIGITS = len(str(MAX_NANOSECONDS))

# Unit suffix -> nanoseconds. Both the micro sign (U+00B5) and the greek
# letter mu (U+03BC) are accepted for microseconds.
UNITS = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "µs": _MICROSECOND,
    "μs": _MICROSECOND,
    "ms": _MILLISECOND,
    "s": _SECOND,
    "m": _MINUTE,
    "h": _HOUR,
}

# One "<number><unit>" group. The unit runs until the next digit or dot.
_COMPONENT = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)")


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration string.

    A duration is an optional sign followed by one or more decimal numbers,
    each with an optional fraction and a mandatory unit suffix, such as
    "300ms", "-1.5h" or "2h45m". A bare "0" is also accepted.

    Raises:
        DurationParseError: If the string does not follow the grammar or
                            uses an unknown unit, or if its magnitude
                            exceeds MAX_NANOSECONDS.
    """
    original = text
    negative = False
    if text[:1] in ("-", "+"):
        negative = text[0] == "-"
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        raise DurationParseError(f"invalid duration {original!r}")

    total_ns = 0
    position = 0
    while position < len(text):
        match = _COMPONENT.match(text, position)
        whole, fraction, unit = match.groups()
        if not whole and not fraction:
            raise DurationParseError(f"invalid duration {original!r}")
        if not unit:
            raise DurationParseError(f"missing unit in duration {original!r}")
        if unit not in UNITS:
            raise DurationParseError(f"unknown unit {unit!r} in duration {original!r}")

        whole = whole.lstrip("0")
        if len(whole) > _MAX_DIGITS:
            raise DurationParseError(f"invalid duration {original!r}: out of range")
        fraction = (fraction or "")[:_MAX_DIGITS]

        scale = UNITS[unit]
        total_ns += int(whole or "0") * scale
        if fraction:
            total_ns += int(fraction) * scale // 10 ** len(fraction)
        if total_ns > MAX_NANOSECONDS:
            raise DurationParseError(f"invalid duration {original!r}: out of range")
        position = match.end()

    if negative:
        total_ns = -total_ns
    return timedelta(microseconds=total_ns / _MICROSECOND)


def _with_fraction(value: int, precision: int) -> str:
    """Render value / 10**precision, dropping trailing zeros of the fraction."""
    whole, remainder = divmod(value, 10 ** precision)
    if remainder == 0:
        return str(whole)
    digits = f"{remainder:0{precision}d}".rstrip("0")
    return f"{whole}.{digits}"


def format_duration(duration: timedelta) -> str:
    """
    Format a timedelta in the same notation parse_duration accepts.

    Durations under one second use the largest fitting sub-second unit
    ("1.5ms", "250µs"); longer ones are split into hours, minutes and
    seconds ("1h0m0s", "1m30s", "2.5s"). Zero is "0s".
    """
    total_ns = (
        (duration.days * 86400 + duration.seconds) * _SECOND
        + duration.microseconds * _MICROSECOND
    )
    if total_ns == 0:
        return "0s"

    sign = "-" if total_ns < 0 else ""
    total_ns = abs(total_ns)

    if total_ns < _MICROSECOND:
        return f"{sign}{total_ns}ns"
    if total_ns < _MILLISECOND:
        return f"{sign}{_with_fraction(total_ns, 3)}µs"
    if total_ns < _SECOND:
        return f"{sign}{_with_fraction(total_ns, 6)}ms"

    hours, remainder = divmod(total_ns, _HOUR)
    minutes, remainder = divmod(remainder, _MINUTE)
    text = f"{_with_fraction(remainder, 9)}s"
    if hours or minutes:
        text = f"{minutes}m{text}"
    if hours:
        text = f"{hours}h{text}"
    return sign + text
