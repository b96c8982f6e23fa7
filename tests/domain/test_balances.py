"""Tests for pure running-balance arithmetic."""

from datetime import date
from decimal import Decimal

from voucher_kernel.domain.balances import (
    fold_balance,
    net_side,
    running_balances,
)
from voucher_kernel.domain.dtos import Side, VoucherRecord


def _record(record_id: int, side: str, amount_minor: int, day: date, number: int | None = None):
    return VoucherRecord(
        id=record_id,
        company_id=1,
        vehicle_id=1,
        voucher_number=number if number is not None else record_id,
        voucher_date=day,
        amount_minor=amount_minor,
        side=Side(side),
    )


class TestRunningBalances:
    """Running balance is the cumulative signed sum in the order given."""

    def test_running_balance_sequence(self):
        records = [
            _record(1, "D", 10_000, date(2024, 1, 1)),
            _record(2, "C", 4_000, date(2024, 1, 1)),
            _record(3, "D", 2_000, date(2024, 1, 2)),
        ]
        balances = [b for _, b in running_balances(records)]
        assert balances == [10_000, 6_000, 8_000]

    def test_opening_balance_seeds_the_fold(self):
        records = [_record(1, "C", 2_500, date(2024, 1, 1))]
        assert [b for _, b in running_balances(records, opening_minor=1_000)] == [-1_500]

    def test_empty_input(self):
        assert list(running_balances([])) == []
        assert fold_balance([]) == Decimal("0.00")

    def test_fold_matches_last_running_balance(self):
        records = [
            _record(1, "D", 333, date(2024, 1, 1)),
            _record(2, "D", 1, date(2024, 1, 2)),
            _record(3, "C", 1_000, date(2024, 1, 3)),
        ]
        last = list(running_balances(records))[-1][1]
        assert fold_balance(records) == Decimal(last) / 100


class TestNetSide:
    def test_negative_balance_is_credit(self):
        assert net_side(Decimal("-12.00")) == (Decimal("12.00"), Side.CREDIT)

    def test_zero_balance_is_debit(self):
        assert net_side(Decimal("0.00")) == (Decimal("0.00"), Side.DEBIT)
