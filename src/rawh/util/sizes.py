"""
Human readable byte sizes and deterministic sample payloads.

    pretty_byte_size(1024)            -> "1.00 KB"
    parse_pretty_byte_size("1.5MB")   -> 1572864
    generate_sample_data(12)          -> "123456789012"
"""

from ..errors import ByteSizeParseError


# Largest unit first so formatting picks the biggest one that fits.
BYTE_UNITS = (
    ("GB", 1024 ** 3),
    ("MB", 1024 ** 2),
    ("KB", 1024),
    ("B", 1),
)

SAMPLE_PATTERN = "1234567890"


def pretty_byte_size(size: int) -> str:
    """
    Format a byte count with two decimals in the largest fitting unit.

    Zero and negative sizes are printed as plain bytes ("0 B").
    """
    if size <= 0:
        return f"{size} B"
    for unit, factor in BYTE_UNITS:
        if size >= factor:
            return f"{size / factor:.2f} {unit}"
    return f"{size} B"  # unreachable, kept for type checkers


def parse_pretty_byte_size(text: str) -> int:
    """
    Parse a size such as "512", "10KB", "1.5 mb" into bytes.

    The number ends at the first letter; a missing unit means bytes.

    Raises:
        ByteSizeParseError: On a malformed number or an unknown unit.
    """
    text = text.strip()
    number, unit = text, "B"
    for index, char in enumerate(text):
        if char.isalpha():
            number, unit = text[:index], text[index:]
            break

    try:
        value = float(number.strip())
    except ValueError:
        raise ByteSizeParseError(f"invalid size number {number!r}") from None

    factors = dict(BYTE_UNITS)
    unit = unit.strip().upper()
    if unit not in factors:
        raise ByteSizeParseError(f"unknown unit {unit}")
    return int(value * factors[unit])


def generate_sample_data(length: int) -> str:
    """Return SAMPLE_PATTERN repeated and cut to exactly ``length`` characters."""
    if length <= 0:
        return ""
    repeat = -(-length // len(SAMPLE_PATTERN))
    return (SAMPLE_PATTERN * repeat)[:length]
