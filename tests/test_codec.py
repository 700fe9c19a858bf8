"""Unit tests for byte and value conversions."""

import pytest

from obd_adapter.protocol.codec import (
    bit_at,
    bytes_to_int,
    format_fixed,
    format_hex,
    hex_pairs_to_text,
    percentage_of,
)


class TestBytesToInt:
    """Tests for bytes_to_int function."""

    def test_two_bytes_big_endian(self):
        """Test data bytes fold most significant first."""
        assert bytes_to_int([0x41, 0x0C, 0x1A, 0xF8]) == 0x1AF8

    def test_count_limits_window(self):
        """Test count takes only the first bytes of the window."""
        assert bytes_to_int([0x41, 0x0C, 0x1A, 0xF8], count=1) == 0x1A

    def test_custom_start(self):
        """Test start offset selects a later byte."""
        assert bytes_to_int([0x41, 0x14, 0x80, 0x7F], start=3, count=1) == 0x7F

    def test_start_zero_includes_header(self):
        """Test start=0 folds the whole buffer."""
        assert bytes_to_int([0x01, 0x02], start=0) == 0x0102

    def test_window_past_end_accumulates_existing(self):
        """Test a window running off the end uses only present bytes."""
        assert bytes_to_int([0x41, 0x0D, 0x64], count=4) == 0x64

    @pytest.mark.parametrize(
        ("buffer", "start", "count"),
        [
            ([], 2, -1),
            ([0x41], 2, 1),
            ([0x41, 0x0D], 2, 2),
            ([0x41, 0x0D, 0x64], 10, 3),
        ],
    )
    def test_out_of_range_is_zero(self, buffer, start, count):
        """Test windows entirely out of range yield 0 without raising."""
        assert bytes_to_int(buffer, start, count) == 0


class TestPercentageOf:
    """Tests for percentage_of function."""

    def test_bounds(self):
        """Test 0 maps to 0 and 255 maps to 100."""
        assert percentage_of([0x41, 0x04, 0x00], count=1) == 0
        assert percentage_of([0x41, 0x04, 0xFF], count=1) == 100

    def test_monotonic(self):
        """Test percentage never decreases as the raw byte grows."""
        values = [percentage_of([0x41, 0x04, raw], count=1) for raw in range(256)]

        assert values == sorted(values)

    def test_midpoint(self):
        """Test a mid-range value."""
        assert percentage_of([0x41, 0x04, 0x80], count=1) == pytest.approx(50.196, abs=0.001)


class TestBitAt:
    """Tests for bit_at function."""

    def test_msb_is_position_one(self):
        """Test position 1 is the most significant bit."""
        assert bit_at(0x80, 1) == 1
        assert bit_at(0x80, 2) == 0

    def test_lsb(self):
        """Test position 8 is the least significant bit of a byte."""
        assert bit_at(0x01, 8) == 1
        assert bit_at(0x01, 7) == 0

    def test_wider_field(self):
        """Test positions in a 32-bit field."""
        assert bit_at(0x80000000, 1, 32) == 1
        assert bit_at(0x00000001, 32, 32) == 1


class TestFormatFixed:
    """Tests for format_fixed function."""

    @pytest.mark.parametrize(
        ("value", "decimals", "expected"),
        [
            (1.0, 2, "1.00"),
            (12.6, 0, "13"),
            (0.125, 1, "0.1"),
            (99.99, 1, "100.0"),
            (-40, 1, "-40.0"),
            (3.14159, 3, "3.142"),
        ],
    )
    def test_exact_decimals(self, value, decimals, expected):
        """Test output has exactly the requested number of decimals."""
        assert format_fixed(value, decimals) == expected

    def test_no_point_for_zero_decimals(self):
        """Test zero decimals renders no decimal point."""
        assert "." not in format_fixed(7.4, 0)

    def test_negative_zero(self):
        """Test values rounding to zero drop the sign."""
        assert format_fixed(-0.04, 1) == "0.0"

    @pytest.mark.parametrize("value", [0.0, 1.5, 2.675, 33.333, 255.0, -12.34])
    @pytest.mark.parametrize("decimals", [0, 1, 2, 3])
    def test_parses_back_to_rounded_value(self, value, decimals):
        """Test the rendered text parses back to the rounded value."""
        text = format_fixed(value, decimals)

        assert float(text) == pytest.approx(float(f"{value:.{decimals}f}"))
        if decimals:
            assert len(text.split(".")[1]) == decimals


class TestHexHelpers:
    """Tests for hex_pairs_to_text and format_hex."""

    def test_hex_pairs_to_text(self):
        """Test hex pairs decode to characters."""
        assert hex_pairs_to_text("574155") == "WAU"

    def test_hex_pairs_skip_invalid(self):
        """Test unparsable pairs are skipped."""
        assert hex_pairs_to_text("57ZZ41") == "WA"

    def test_format_hex(self):
        """Test two-digit uppercase hex."""
        assert format_hex(0) == "00"
        assert format_hex(0x1A) == "1A"
        assert format_hex(0x1FF) == "FF"
