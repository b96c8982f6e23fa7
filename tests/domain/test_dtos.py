"""
Tests for kernel DTOs: Side parsing, the typed voucher row decoder and
page requests.
"""

from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from voucher_kernel.domain.dtos import LedgerRow, PageRequest, Side, VoucherRecord
from voucher_kernel.exceptions import DataIntegrityError, InvalidPageError, InvalidSideError


def _row(**overrides):
    values = dict(
        id=1,
        company_id=1,
        vehicle_id=1,
        voucher_number=10,
        voucher_date=date(2024, 3, 1),
        amount_minor=12_550,
        side="D",
        narration="diesel",
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestSide:
    """Side parsing and display side."""

    @pytest.mark.parametrize("raw", ["D", "d", " Dr ", "DEBIT", Side.DEBIT])
    def test_debit_spellings(self, raw):
        assert Side.parse(raw) is Side.DEBIT

    @pytest.mark.parametrize("raw", ["C", "c", "CR", "credit"])
    def test_credit_spellings(self, raw):
        assert Side.parse(raw) is Side.CREDIT

    @pytest.mark.parametrize("raw", ["", "X", "DC", None, 1])
    def test_invalid_side_rejected(self, raw):
        with pytest.raises(InvalidSideError) as exc_info:
            Side.parse(raw)
        assert exc_info.value.code == "INVALID_SIDE"

    def test_for_balance_zero_is_debit(self):
        assert Side.for_balance(Decimal("0.00")) is Side.DEBIT
        assert Side.for_balance(Decimal("-0.01")) is Side.CREDIT
        assert Side.for_balance(5) is Side.DEBIT


class TestVoucherRecordDecoder:
    """VoucherRecord.from_row fails fast on malformed rows."""

    def test_decodes_well_formed_row(self):
        record = VoucherRecord.from_row(_row())
        assert record.side is Side.DEBIT
        assert record.amount == Decimal("125.50")
        assert record.signed_minor == 12_550
        assert record.debit == Decimal("125.50")
        assert record.credit == Decimal("0.00")
        assert record.narration == "diesel"

    def test_credit_is_negative(self):
        record = VoucherRecord.from_row(_row(side="C"))
        assert record.signed_minor == -12_550
        assert record.credit == Decimal("125.50")
        assert record.debit == Decimal("0.00")

    def test_datetime_is_truncated_to_date(self):
        record = VoucherRecord.from_row(_row(voucher_date=datetime(2024, 3, 1, 15, 30)))
        assert record.voucher_date == date(2024, 3, 1)

    def test_null_narration_becomes_empty(self):
        assert VoucherRecord.from_row(_row(narration=None)).narration == ""

    @pytest.mark.parametrize("side", ["X", "", None, "d"])
    def test_bad_side_is_integrity_error(self, side):
        with pytest.raises(DataIntegrityError) as exc_info:
            VoucherRecord.from_row(_row(side=side))
        assert exc_info.value.entity == "voucher"
        assert exc_info.value.code == "DATA_INTEGRITY"

    @pytest.mark.parametrize("amount", [0, -5, None, "100", 1.5, True])
    def test_bad_amount_is_integrity_error(self, amount):
        with pytest.raises(DataIntegrityError):
            VoucherRecord.from_row(_row(amount_minor=amount))

    def test_missing_date_is_integrity_error(self):
        with pytest.raises(DataIntegrityError):
            VoucherRecord.from_row(_row(voucher_date=None))


class TestPageRequest:
    """Page request validation."""

    def test_defaults(self):
        page = PageRequest(size=10)
        assert page.offset == 0

    @pytest.mark.parametrize("size,offset", [(0, 0), (-1, 0), (10, -1)])
    def test_invalid_page(self, size, offset):
        with pytest.raises(InvalidPageError) as exc_info:
            PageRequest(size=size, offset=offset)
        assert exc_info.value.size == size
        assert exc_info.value.offset == offset


class TestLedgerRow:
    def test_debit_credit_split(self):
        row = LedgerRow(
            voucher_id=1,
            voucher_number=1,
            voucher_date=date(2024, 1, 1),
            narration="",
            amount=Decimal("40.00"),
            side=Side.CREDIT,
            running_balance=Decimal("60.00"),
        )
        assert row.debit == Decimal("0.00")
        assert row.credit == Decimal("40.00")
