"""
Tests for core/price_fractions.py - 32nds/256ths price notation.
"""

import pytest

from core.errors import DeskError, MalformedPriceError
from core.price_fractions import MIN_TICK, TICKS_PER_POINT, price_from_fractional, price_to_fractional


class TestDecode:
    """Test price_from_fractional."""

    def test_whole_32nds_and_256ths(self):
        """Test whole + DD/32 + E/256."""
        assert price_from_fractional("100-075") == 100 + 7 / 32 + 5 / 256

    def test_plus_means_four_256ths(self):
        assert price_from_fractional("99-16+") == 99.515625

    def test_plus_equals_explicit_four(self):
        assert price_from_fractional("99-16+") == price_from_fractional("99-164")

    def test_par(self):
        assert price_from_fractional("100-000") == 100.0

    def test_surrounding_whitespace_is_ignored(self):
        assert price_from_fractional("  99-000 ") == 99.0

    @pytest.mark.parametrize("text", ["", "99", "99-1", "99-1234", "abc-000", "99-x00", "99-328", "99-168", "-000"])
    def test_malformed_strings_raise(self, text):
        """Test malformed or out-of-range strings raise MalformedPriceError."""
        with pytest.raises(MalformedPriceError):
            price_from_fractional(text)

    def test_malformed_price_is_value_error_and_desk_error(self):
        """Test the error is catchable as ValueError and DeskError."""
        with pytest.raises(ValueError):
            price_from_fractional("nope")
        with pytest.raises(DeskError):
            price_from_fractional("nope")


class TestEncode:
    """Test price_to_fractional."""

    def test_encode_known_values(self):
        assert price_to_fractional(99.515625) == "99-16+"
        assert price_to_fractional(100.0) == "100-000"
        assert price_to_fractional(100 + 7 / 32 + 5 / 256) == "100-075"

    def test_last_tick_below_whole(self):
        assert price_to_fractional(99 + 255 / 256) == "99-317"

    def test_off_grid_prices_truncate_to_tick(self):
        """Test prices between ticks truncate down."""
        assert price_to_fractional(99.0 + MIN_TICK / 2) == "99-000"

    @pytest.mark.parametrize("whole", [0, 99, 100, 150])
    def test_inverse_on_grid(self, whole):
        """Test decode(encode(p)) == p for every tick of a whole point."""
        for ticks in range(TICKS_PER_POINT):
            price = whole + ticks * MIN_TICK
            text = price_to_fractional(price)
            assert price_from_fractional(text) == price
            assert text.endswith("+") == (ticks % 8 == 4)
