"""
Report Transformations (``voucher_reporting.statements``).

Responsibility
--------------
Pure functions (and one small accumulator) that turn decoded vouchers and
selector aggregates into the frozen report models.  ``ReportingService``
loads data; everything that decides what a report *says* lives here.

Architecture position
---------------------
Pure layer -- ZERO I/O, no session, no clock.  Inputs are kernel DTOs and
plain values; outputs are ``models.py`` dataclasses.

Invariants enforced
-------------------
* Running balances are folded in integer minor units; Decimal conversion
  happens only when a row is built.
* Debit increases, Credit decreases; display side is D when net >= 0.
* Day book: a subtotal row closes every date, including the last one, and
  the running balance threads across page boundaries.
* Sum of day subtotals equals the grand totals.
* Trial balance: total_debits - total_credits == sum of balances.
"""

from __future__ import annotations

import dataclasses
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from itertools import groupby
from typing import Iterable, Mapping, Sequence

from voucher_kernel.db.types import from_minor_units
from voucher_kernel.domain.balances import net_side, running_balances
from voucher_kernel.domain.dtos import DailyTotals, Side, VoucherRecord
from voucher_kernel.selectors.voucher_selector import DayBookSourceRow, VehicleActivity

from voucher_reporting.models import (
    AgingGroup,
    AgingItem,
    ConsolidatedDayRow,
    DayBookEntryRow,
    DayBookRow,
    DaySubtotalRow,
    TrialBalanceLine,
    VehicleStatementRow,
)


@dataclasses.dataclass(frozen=True)
class VehicleInfo:
    """Vehicle fields the pure layer needs, detached from the ORM."""

    vehicle_id: int
    code: str
    code_key: str
    narration: str
    is_active: bool


# =========================================================================
# Day book
# =========================================================================


class DayBookAccumulator:
    """
    State threaded across day book pages.

    feed() returns the rows a voucher produces: a subtotal for the previous
    date when the date changes, then the voucher's own entry row.  finish()
    closes the last open date.
    """

    def __init__(self, opening_minor: int = 0):
        self.running_minor = opening_minor
        self.current_day: date | None = None
        self.day_debit_minor = 0
        self.day_credit_minor = 0
        self.total_debit_minor = 0
        self.total_credit_minor = 0
        self.processed = 0
        self.finished = False

    def feed(self, source: DayBookSourceRow) -> list[DayBookRow]:
        record = source.voucher
        rows: list[DayBookRow] = []
        if self.current_day is not None and record.voucher_date != self.current_day:
            rows.append(self._close_day())
        self.current_day = record.voucher_date

        if record.side is Side.DEBIT:
            self.day_debit_minor += record.amount_minor
            self.total_debit_minor += record.amount_minor
        else:
            self.day_credit_minor += record.amount_minor
            self.total_credit_minor += record.amount_minor
        self.running_minor += record.signed_minor
        self.processed += 1

        rows.append(
            DayBookEntryRow(
                voucher_id=record.id,
                voucher_number=record.voucher_number,
                voucher_date=record.voucher_date,
                vehicle_code=source.vehicle_code,
                narration=record.narration,
                debit=record.debit,
                credit=record.credit,
                running_balance=from_minor_units(self.running_minor),
            )
        )
        return rows

    def finish(self) -> list[DayBookRow]:
        if self.finished:
            return []
        self.finished = True
        if self.current_day is None:
            return []
        return [self._close_day()]

    def _close_day(self) -> DaySubtotalRow:
        assert self.current_day is not None
        net_amount, side = net_side(from_minor_units(self.day_debit_minor - self.day_credit_minor))
        row = DaySubtotalRow(
            day=self.current_day,
            total_debits=from_minor_units(self.day_debit_minor),
            total_credits=from_minor_units(self.day_credit_minor),
            running_balance=from_minor_units(self.running_minor),
            net_amount=net_amount,
            net_side=side,
        )
        self.day_debit_minor = 0
        self.day_credit_minor = 0
        return row

    @property
    def total_debits(self) -> Decimal:
        return from_minor_units(self.total_debit_minor)

    @property
    def total_credits(self) -> Decimal:
        return from_minor_units(self.total_credit_minor)

    @property
    def closing_balance(self) -> Decimal:
        return from_minor_units(self.running_minor)


def build_consolidated_rows(daily: Iterable[DailyTotals]) -> tuple[ConsolidatedDayRow, ...]:
    """One row per date that has vouchers, with a cumulative running balance."""
    running = Decimal("0.00")
    rows = []
    for day in daily:
        if day.voucher_count == 0:
            continue
        net = day.total_debits - day.total_credits
        running += net
        net_amount, side = net_side(net)
        rows.append(
            ConsolidatedDayRow(
                day=day.day,
                total_debits=day.total_debits,
                total_credits=day.total_credits,
                net_amount=net_amount,
                net_side=side,
                running_balance=running,
            )
        )
    return tuple(rows)


# =========================================================================
# Trial balance
# =========================================================================


def build_trial_balance_lines(
    vehicles: Iterable[VehicleInfo],
    balances: Mapping[int, Decimal],
) -> tuple[TrialBalanceLine, ...]:
    """One line per active vehicle, ordered by (code_key, code)."""
    lines = []
    for vehicle in sorted(vehicles, key=lambda v: (v.code_key, v.code)):
        if not vehicle.is_active:
            continue
        amount, side = net_side(balances.get(vehicle.vehicle_id, Decimal("0.00")))
        lines.append(
            TrialBalanceLine(
                vehicle_id=vehicle.vehicle_id,
                code=vehicle.code,
                narration=vehicle.narration,
                amount=amount,
                side=side,
            )
        )
    return tuple(lines)


def trial_balance_totals(lines: Sequence[TrialBalanceLine]) -> tuple[Decimal, Decimal]:
    """(total_debits, total_credits) over trial balance lines."""
    debits = sum((l.amount for l in lines if l.side is Side.DEBIT), Decimal("0.00"))
    credits = sum((l.amount for l in lines if l.side is Side.CREDIT), Decimal("0.00"))
    return debits, credits


# =========================================================================
# Aging / recovery
# =========================================================================


def vehicle_prefix(code: str, fallback_length: int = 5, empty_group: str = "OTHER") -> str:
    """
    Group key for a vehicle code.

    "UP-25C-1234" -> "UP-25": the first dash-separated part plus the digits
    of the second.  Codes without that shape fall back to their first
    fallback_length characters; an empty code goes to empty_group.
    """
    if not code:
        return empty_group
    parts = code.split("-")
    if len(parts) >= 2:
        digits = "".join(ch for ch in parts[1] if ch.isdigit())
        if digits:
            return f"{parts[0]}-{digits}"
    return code[:fallback_length]


def select_aging_items(
    vehicles: Iterable[VehicleInfo],
    activity: Mapping[int, VehicleActivity],
    balances: Mapping[int, Decimal],
    today: date,
    days: int,
    minimum_amount: Decimal,
    never_transacted_days: int = 9999,
) -> list[AgingItem]:
    """
    Active vehicles overdue for recovery.

    A vehicle qualifies when all of these hold:
        - its last voucher of any side is dated before today - days,
          or it has no vouchers;
        - its current balance is > 0;
        - its most recent Credit amount (0 if none) is >= minimum_amount.

    days_since counts from the last voucher of any side, while the amount
    threshold looks only at the last Credit.
    """
    cutoff = aging_cutoff(today, days)
    items = []
    for vehicle in vehicles:
        if not vehicle.is_active:
            continue
        facts = activity.get(vehicle.vehicle_id)
        last_date = facts.last_voucher_date if facts else None
        if last_date is not None and last_date >= cutoff:
            continue
        balance = balances.get(vehicle.vehicle_id, Decimal("0.00"))
        if balance <= 0:
            continue
        last_credit = from_minor_units(facts.last_credit_minor if facts else 0)
        if last_credit < minimum_amount:
            continue
        items.append(
            AgingItem(
                vehicle_id=vehicle.vehicle_id,
                code=vehicle.code,
                narration=vehicle.narration,
                last_credit_amount=last_credit,
                last_transaction_date=last_date,
                balance=balance,
                days_since=(today - last_date).days if last_date else never_transacted_days,
            )
        )
    return items


def aging_cutoff(today: date, days: int) -> date:
    return today - timedelta(days=days)


def group_aging_items(
    items: Iterable[AgingItem],
    header_min: int = 3,
    fallback_length: int = 5,
    empty_group: str = "OTHER",
) -> tuple[AgingGroup, ...]:
    """Group by prefix; groups ordered by prefix, members by code."""

    def key(item: AgingItem) -> str:
        return vehicle_prefix(item.code, fallback_length, empty_group)

    groups = []
    for prefix, members in groupby(sorted(items, key=lambda i: (key(i), i.code)), key=key):
        members_tuple = tuple(members)
        groups.append(
            AgingGroup(
                prefix=prefix,
                show_header=len(members_tuple) >= header_min,
                items=members_tuple,
            )
        )
    return tuple(groups)


# =========================================================================
# Vehicle statement
# =========================================================================


def build_statement_rows(
    records: Iterable[VoucherRecord],
    opening_minor: int,
) -> tuple[tuple[VehicleStatementRow, ...], int, int, int]:
    """
    Statement rows with a running balance seeded by the opening balance.

    Returns (rows, debit_minor, credit_minor, closing_minor).
    """
    running = opening_minor
    debit_minor = credit_minor = 0
    rows = []
    for record, running in running_balances(records, opening_minor):
        if record.side is Side.DEBIT:
            debit_minor += record.amount_minor
        else:
            credit_minor += record.amount_minor
        rows.append(
            VehicleStatementRow(
                voucher_id=record.id,
                voucher_number=record.voucher_number,
                voucher_date=record.voucher_date,
                narration=record.narration,
                debit=record.debit,
                credit=record.credit,
                running_balance=from_minor_units(running),
            )
        )
    return tuple(rows), debit_minor, credit_minor, running


# =========================================================================
# Serialization
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Decimal -> str (preserving precision)
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
