"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the selector and
    service boundaries: VoucherRecord (the typed, validated view of a stored
    voucher), ledger paging types, and the result objects of vehicle and
    voucher operations.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_row() class methods are boundary converters invoked by selectors and
    services, never by domain logic.

Invariants enforced:
    - A VoucherRecord always has side D or C and a positive amount.
      from_row() raises DataIntegrityError on anything else; a malformed row
      is never coerced into a plausible one.
    - PageRequest always has size > 0 and offset >= 0.

Failure modes:
    - DataIntegrityError from VoucherRecord.from_row().
    - InvalidPageError from PageRequest().
    - InvalidSideError from Side.parse().
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from voucher_kernel.db.types import from_minor_units
from voucher_kernel.exceptions import (
    DataIntegrityError,
    InvalidPageError,
    InvalidSideError,
)


class Side(str, Enum):
    """
    Direction of a voucher.

    Debit increases a vehicle's balance, Credit decreases it.
    """

    DEBIT = "D"
    CREDIT = "C"

    @classmethod
    def parse(cls, value: Any) -> Side:
        """Accept D/C (or Debit/Credit) in any case."""
        if isinstance(value, Side):
            return value
        text = str(value).strip().upper()
        if text in ("D", "DR", "DEBIT"):
            return cls.DEBIT
        if text in ("C", "CR", "CREDIT"):
            return cls.CREDIT
        raise InvalidSideError(value)

    @classmethod
    def for_balance(cls, balance: Decimal | int) -> Side:
        """Display side of a signed balance: D if >= 0 else C."""
        return cls.DEBIT if balance >= 0 else cls.CREDIT


@dataclass(frozen=True)
class VoucherRecord:
    """Immutable, validated view of one stored voucher."""

    id: int
    company_id: int
    vehicle_id: int
    voucher_number: int
    voucher_date: date
    amount_minor: int
    side: Side
    narration: str = ""

    @classmethod
    def from_row(cls, row: Any) -> VoucherRecord:
        """
        Decode an ORM Voucher or a result row with the same column names.

        Raises:
            DataIntegrityError: side outside {D, C}, non-positive or
                non-integer amount, or a missing date.
        """
        voucher_id = getattr(row, "id", None)

        raw_side = getattr(row, "side", None)
        if raw_side not in ("D", "C"):
            raise DataIntegrityError("voucher", voucher_id, f"side {raw_side!r} is not D or C")

        amount_minor = getattr(row, "amount_minor", None)
        if isinstance(amount_minor, bool) or not isinstance(amount_minor, int):
            raise DataIntegrityError(
                "voucher", voucher_id, f"amount {amount_minor!r} is not an integer amount"
            )
        if amount_minor <= 0:
            raise DataIntegrityError(
                "voucher", voucher_id, f"amount {amount_minor!r} is not positive"
            )

        voucher_date = getattr(row, "voucher_date", None)
        if isinstance(voucher_date, datetime):
            voucher_date = voucher_date.date()
        if not isinstance(voucher_date, date):
            raise DataIntegrityError("voucher", voucher_id, f"date {voucher_date!r} is not a date")

        return cls(
            id=voucher_id,
            company_id=row.company_id,
            vehicle_id=row.vehicle_id,
            voucher_number=row.voucher_number,
            voucher_date=voucher_date,
            amount_minor=amount_minor,
            side=Side(raw_side),
            narration=getattr(row, "narration", None) or "",
        )

    @property
    def amount(self) -> Decimal:
        return from_minor_units(self.amount_minor)

    @property
    def signed_minor(self) -> int:
        """Debit positive, Credit negative."""
        return self.amount_minor if self.side is Side.DEBIT else -self.amount_minor

    @property
    def debit(self) -> Decimal:
        return self.amount if self.side is Side.DEBIT else from_minor_units(0)

    @property
    def credit(self) -> Decimal:
        return self.amount if self.side is Side.CREDIT else from_minor_units(0)


# Ledger paging


@dataclass(frozen=True)
class PageRequest:
    """A window over the newest-first sequence of a vehicle's vouchers."""

    size: int
    offset: int = 0

    def __post_init__(self) -> None:
        if self.size <= 0 or self.offset < 0:
            raise InvalidPageError(self.size, self.offset)


@dataclass(frozen=True)
class LedgerRow:
    """One voucher with the running balance after it."""

    voucher_id: int
    voucher_number: int
    voucher_date: date
    narration: str
    amount: Decimal
    side: Side
    running_balance: Decimal

    @property
    def debit(self) -> Decimal:
        return self.amount if self.side is Side.DEBIT else Decimal("0.00")

    @property
    def credit(self) -> Decimal:
        return self.amount if self.side is Side.CREDIT else Decimal("0.00")


@dataclass(frozen=True)
class LedgerPage:
    """A page of ledger rows, newest first."""

    rows: tuple[LedgerRow, ...]
    total_count: int
    has_more: bool


# Service results


@dataclass(frozen=True)
class MergeResult:
    """Outcome of merging one vehicle account into another."""

    source_vehicle_id: int
    source_code: str
    target_vehicle_id: int
    target_code: str
    vouchers_moved: int


@dataclass(frozen=True)
class VehicleSummary:
    """Derived figures for one vehicle."""

    vehicle_id: int
    code: str
    narration: str
    is_active: bool
    balance: Decimal
    voucher_count: int
    last_transaction_date: date | None


@dataclass(frozen=True)
class DailyTotals:
    """Debit and credit totals for one company-day."""

    day: date
    total_debits: Decimal
    total_credits: Decimal
    voucher_count: int


@dataclass(frozen=True)
class CompanyWipeResult:
    """Rows removed by CompanyService.clear_company_data()."""

    company_id: int
    vouchers_deleted: int
    vehicles_deleted: int
