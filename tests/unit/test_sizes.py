"""
Unit tests for byte sizes and sample data.
"""

import hashlib

import pytest

from rawh.errors import ByteSizeParseError
from rawh.util.sizes import generate_sample_data, parse_pretty_byte_size, pretty_byte_size


class TestPrettyByteSize:
    """Tests for pretty_byte_size()."""

    @pytest.mark.parametrize("size,expected", [
        (0, "0 B"),
        (-5, "-5 B"),
        (1, "1.00 B"),
        (10, "10.00 B"),
        (1023, "1023.00 B"),
        (1024, "1.00 KB"),
        (1536, "1.50 KB"),
        (1024 ** 2, "1.00 MB"),
        (5 * 1024 ** 3, "5.00 GB"),
    ])
    def test_format(self, size, expected):
        assert pretty_byte_size(size) == expected


class TestParsePrettyByteSize:
    """Tests for parse_pretty_byte_size()."""

    @pytest.mark.parametrize("text,expected", [
        ("512", 512),
        ("512B", 512),
        ("10KB", 10 * 1024),
        ("10 kb", 10 * 1024),
        ("1.5MB", int(1.5 * 1024 ** 2)),
        ("2GB", 2 * 1024 ** 3),
    ])
    def test_valid(self, text, expected):
        assert parse_pretty_byte_size(text) == expected

    @pytest.mark.parametrize("text", ["", "KB", "ten", "10TB", "1.2.3KB"])
    def test_invalid(self, text):
        with pytest.raises(ByteSizeParseError):
            parse_pretty_byte_size(text)


class TestGenerateSampleData:
    """Tests for generate_sample_data()."""

    def test_lengths(self):
        assert generate_sample_data(0) == ""
        assert generate_sample_data(-3) == ""
        assert generate_sample_data(5) == "12345"
        assert generate_sample_data(12) == "123456789012"
        assert len(generate_sample_data(1024)) == 1024

    def test_deterministic_digest(self):
        """Two generations of the same size hash identically."""
        first = hashlib.md5(generate_sample_data(1024).encode()).hexdigest()
        second = hashlib.md5(generate_sample_data(1024).encode()).hexdigest()
        assert first == second
        assert generate_sample_data(1024) == ("1234567890" * 103)[:1024]
