"""Small value helpers shared by client and server: durations and byte sizes."""

from .durations import parse_duration, format_duration
from .sizes import pretty_byte_size, parse_pretty_byte_size, generate_sample_data

__all__ = [
    "parse_duration",
    "format_duration",
    "pretty_byte_size",
    "parse_pretty_byte_size",
    "generate_sample_data",
]
