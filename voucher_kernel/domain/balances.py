"""
Balances -- pure running-balance arithmetic.

All arithmetic is over integer minor units; conversion to Decimal happens
only at the edge.  Debit adds, Credit subtracts.
"""

from decimal import Decimal
from typing import Iterable, Iterator

from voucher_kernel.db.types import from_minor_units
from voucher_kernel.domain.dtos import Side, VoucherRecord


def running_balances(
    records: Iterable[VoucherRecord],
    opening_minor: int = 0,
) -> Iterator[tuple[VoucherRecord, int]]:
    """Yield (record, balance_after) in the order given."""
    balance = opening_minor
    for record in records:
        balance += record.signed_minor
        yield record, balance


def fold_balance(records: Iterable[VoucherRecord]) -> Decimal:
    """Sum of signed amounts as a Decimal."""
    return from_minor_units(sum(r.signed_minor for r in records))


def net_side(balance: Decimal) -> tuple[Decimal, Side]:
    """Split a signed balance into (magnitude, display side)."""
    return abs(balance), Side.for_balance(balance)
