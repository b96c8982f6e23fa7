"""Tests for Decimal <-> minor unit conversion (voucher_kernel.db.types)."""

from decimal import Decimal

import pytest

from voucher_kernel.db.types import (
    MAX_MINOR_UNITS,
    ZERO,
    from_minor_units,
    parse_amount,
    to_minor_units,
)
from voucher_kernel.exceptions import InvalidAmountError


class TestParseAmount:
    def test_thousands_separators_accepted(self):
        assert parse_amount("1,250.50") == Decimal("1250.50")

    def test_int_and_decimal_pass_through(self):
        assert parse_amount(7) == Decimal(7)
        assert parse_amount(Decimal("0.10")) == Decimal("0.10")

    @pytest.mark.parametrize("value", [1.5, True, "abc", "", "NaN", "Infinity"])
    def test_rejected_inputs(self, value):
        with pytest.raises(InvalidAmountError):
            parse_amount(value)


class TestMinorUnits:
    def test_to_minor_units(self):
        assert to_minor_units("100") == 10_000
        assert to_minor_units("0.01") == 1
        assert to_minor_units(Decimal("99.90")) == 9_990

    def test_excess_precision_rejected_not_rounded(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            to_minor_units("10.005")
        assert "decimal places" in exc_info.value.reason

    def test_trailing_zero_places_are_fine(self):
        assert to_minor_units("10.5000") == 1_050

    def test_from_minor_units_fixed_places(self):
        assert from_minor_units(12_345) == Decimal("123.45")
        assert str(from_minor_units(100)) == "1.00"
        assert from_minor_units(0) == ZERO

    def test_negative_round_trip(self):
        assert from_minor_units(to_minor_units("-42.10")) == Decimal("-42.10")

    @pytest.mark.parametrize("value", ["1e30", "12345678901234567890", "-99999999999999999999.99"])
    def test_out_of_range_magnitude_rejected(self, value):
        with pytest.raises(InvalidAmountError) as exc_info:
            to_minor_units(value)
        assert exc_info.value.reason == "amount is too large"

    def test_largest_storable_amount(self):
        assert to_minor_units(from_minor_units(MAX_MINOR_UNITS)) == MAX_MINOR_UNITS
