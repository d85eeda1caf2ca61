"""Unit tests for quantity and duration parsing."""

import pytest

from volscaler.utils.quantity import format_quantity, parse_duration, parse_quantity

GI = 1024**3


class TestParseQuantity:
    @pytest.mark.parametrize(
        "quantity, expected",
        [
            ("10Gi", 10 * GI),
            ("512Mi", 512 * 1024**2),
            ("1Ti", 1024**4),
            ("1.5Gi", 3 * GI // 2),
            ("500M", 500 * 1000**2),
            ("1G", 1000**3),
            ("1e3", 1000),
            ("1024", 1024),
            (2048, 2048),
        ],
    )
    def test_valid_quantities(self, quantity, expected):
        """Binary, decimal, exponent and plain quantities are parsed to bytes."""
        assert parse_quantity(quantity) == expected

    def test_fractional_bytes_round_up(self):
        """Fractions of a byte are rounded up."""
        assert parse_quantity("1500m") == 2

    @pytest.mark.parametrize("quantity", ["", "Gi", "10Zi", "ten", None, True])
    def test_invalid_quantities(self, quantity):
        """Malformed input raises ValueError."""
        with pytest.raises(ValueError):
            parse_quantity(quantity)


class TestFormatQuantity:
    def test_largest_exact_suffix(self):
        """The largest binary suffix that divides evenly is used."""
        assert format_quantity(12 * GI) == "12Gi"
        assert format_quantity(1536 * 1024**2) == "1536Mi"
        assert format_quantity(1024**4) == "1Ti"

    def test_inexact_sizes_are_plain_bytes(self):
        """Sizes that are not a multiple of 1Ki stay in bytes."""
        assert format_quantity(1500) == "1500"
        assert format_quantity(0) == "0"

    def test_parse_reads_back_formatted_value(self):
        """A formatted size parses back to the same number of bytes."""
        size = 12 * GI + 512 * 1024**2
        assert parse_quantity(format_quantity(size)) == size


class TestParseDuration:
    @pytest.mark.parametrize(
        "duration, expected",
        [
            ("60s", 60.0),
            ("5m", 300.0),
            ("1h30m", 5400.0),
            ("250ms", 0.25),
            ("90", 90.0),
            (45, 45.0),
        ],
    )
    def test_valid_durations(self, duration, expected):
        """Go-style durations and bare seconds are accepted."""
        assert parse_duration(duration) == expected

    @pytest.mark.parametrize("duration", ["", "5x", "m5", "5m garbage", None])
    def test_invalid_durations(self, duration):
        """Malformed durations raise ValueError."""
        with pytest.raises(ValueError):
            parse_duration(duration)
