"""
Report Domain Models (``voucher_reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for every report the engine produces: the
streamed day book and its batches, the consolidated day book, the trial
balance, the aging (recovery) statement, the vehicle statement and the
daily summary.

Architecture position
---------------------
Pure data definitions with ZERO I/O.  Built by the functions in
``statements.py`` and returned by ``ReportingService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` with two places -- never ``float``.
* Signed figures (running balances, net) keep their sign; display pairs
  carry a magnitude plus a ``Side``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from voucher_kernel.domain.dtos import Side


class ReportType(str, Enum):
    """Types of reports."""

    DAY_BOOK = "day_book"
    DAY_BOOK_CONSOLIDATED = "day_book_consolidated"
    TRIAL_BALANCE = "trial_balance"
    AGING = "aging"
    VEHICLE_STATEMENT = "vehicle_statement"
    DAILY_SUMMARY = "daily_summary"


class BatchStatus(str, Enum):
    """Completion status of a streamed day book batch."""

    COMPLETE = "complete"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    company_id: int
    company_name: str
    generated_at: str  # ISO timestamp from the injected clock
    period_start: date | None = None
    period_end: date | None = None
    as_of_date: date | None = None


# =========================================================================
# Day book
# =========================================================================


@dataclass(frozen=True)
class DayBookEntryRow:
    """One voucher line of the day book."""

    voucher_id: int
    voucher_number: int
    voucher_date: date
    vehicle_code: str
    narration: str
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class DaySubtotalRow:
    """End-of-day subtotal, emitted when the date changes and after the last voucher."""

    day: date
    total_debits: Decimal
    total_credits: Decimal
    running_balance: Decimal
    net_amount: Decimal
    net_side: Side


DayBookRow = DayBookEntryRow | DaySubtotalRow


@dataclass(frozen=True)
class DayBookBatch:
    """One page of streamed day book output."""

    rows: tuple[DayBookRow, ...]
    processed: int
    total_count: int
    is_last: bool
    status: BatchStatus = BatchStatus.COMPLETE
    error: str | None = None


@dataclass(frozen=True)
class DayBookReport:
    """A fully collected day book."""

    metadata: ReportMetadata
    rows: tuple[DayBookRow, ...]
    total_debits: Decimal
    total_credits: Decimal
    closing_balance: Decimal
    voucher_count: int

    @property
    def subtotals(self) -> tuple[DaySubtotalRow, ...]:
        return tuple(r for r in self.rows if isinstance(r, DaySubtotalRow))

    @property
    def entries(self) -> tuple[DayBookEntryRow, ...]:
        return tuple(r for r in self.rows if isinstance(r, DayBookEntryRow))


@dataclass(frozen=True)
class ConsolidatedDayRow:
    """Totals for one date that has vouchers."""

    day: date
    total_debits: Decimal
    total_credits: Decimal
    net_amount: Decimal
    net_side: Side
    running_balance: Decimal


@dataclass(frozen=True)
class ConsolidatedDayBook:
    """One row per date with vouchers; empty days are omitted."""

    metadata: ReportMetadata
    rows: tuple[ConsolidatedDayRow, ...]
    total_debits: Decimal
    total_credits: Decimal


# =========================================================================
# Trial balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceLine:
    """One active vehicle's balance as of the report date."""

    vehicle_id: int
    code: str
    narration: str
    amount: Decimal  # |balance|
    side: Side  # D if balance >= 0


@dataclass(frozen=True)
class TrialBalanceReport:
    """Trial balance across the company's active vehicles."""

    metadata: ReportMetadata
    lines: tuple[TrialBalanceLine, ...]
    total_debits: Decimal
    total_credits: Decimal
    net: Decimal  # total_debits - total_credits == sum of balances

    @property
    def net_side(self) -> Side:
        return Side.for_balance(self.net)


# =========================================================================
# Aging / recovery statement
# =========================================================================


@dataclass(frozen=True)
class AgingItem:
    """A vehicle overdue for recovery."""

    vehicle_id: int
    code: str
    narration: str
    last_credit_amount: Decimal
    last_transaction_date: date | None  # None => never transacted
    balance: Decimal
    days_since: int


@dataclass(frozen=True)
class AgingGroup:
    """Items sharing a code prefix such as "UP-25"."""

    prefix: str
    show_header: bool
    items: tuple[AgingItem, ...]


@dataclass(frozen=True)
class AgingStatement:
    """Recovery statement: groups ordered by prefix, members by code."""

    metadata: ReportMetadata
    days: int
    minimum_amount: Decimal
    cutoff_date: date
    groups: tuple[AgingGroup, ...]
    total_balance: Decimal

    @property
    def items(self) -> tuple[AgingItem, ...]:
        return tuple(item for group in self.groups for item in group.items)


# =========================================================================
# Vehicle statement / daily summary
# =========================================================================


@dataclass(frozen=True)
class VehicleStatementRow:
    """One voucher in a vehicle statement."""

    voucher_id: int
    voucher_number: int
    voucher_date: date
    narration: str
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class VehicleStatement:
    """Vehicle ledger over a date range with opening and closing balance."""

    metadata: ReportMetadata
    vehicle_id: int
    code: str
    narration: str
    opening_balance: Decimal
    rows: tuple[VehicleStatementRow, ...]
    total_debits: Decimal
    total_credits: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class DailySummary:
    """Totals for one company-day."""

    metadata: ReportMetadata
    day: date
    total_debits: Decimal
    total_credits: Decimal
    voucher_count: int
    net_amount: Decimal
    net_side: Side
