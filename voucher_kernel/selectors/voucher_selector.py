"""
Module: voucher_kernel.selectors.voucher_selector
Responsibility: Ordered, filtered reads of vouchers.  Every row leaves this
    module through VoucherRecord.from_row(), so a malformed stored row fails
    fast here instead of skewing a balance downstream.
Architecture position: Kernel > Selectors.

Orderings used by callers:
    - chronological: (voucher_date, id) -- ledgers and balances.
    - day book: (voucher_date, voucher_number, id).
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterator

from sqlalchemy import and_, case, func, select

from voucher_kernel.db.types import from_minor_units
from voucher_kernel.domain.dtos import DailyTotals, VoucherRecord
from voucher_kernel.exceptions import VoucherNotFoundError
from voucher_kernel.models import Vehicle, Voucher
from voucher_kernel.selectors.base import BaseSelector

_VOUCHER_COLUMNS = (
    Voucher.id,
    Voucher.company_id,
    Voucher.vehicle_id,
    Voucher.voucher_number,
    Voucher.voucher_date,
    Voucher.amount_minor,
    Voucher.side,
    Voucher.narration,
)

STREAM_CHUNK_SIZE = 1000


@dataclass(frozen=True)
class DayBookSourceRow:
    """A voucher as the day book sees it: with its vehicle's code."""

    voucher: VoucherRecord
    vehicle_code: str


@dataclass(frozen=True)
class VehicleActivity:
    """Per-vehicle facts the aging statement filters on."""

    vehicle_id: int
    last_voucher_date: date | None
    last_credit_minor: int


def debit_minor_expr():
    return case((Voucher.side == "D", Voucher.amount_minor), else_=0)


def credit_minor_expr():
    return case((Voucher.side == "C", Voucher.amount_minor), else_=0)


def signed_minor_expr():
    return case((Voucher.side == "D", Voucher.amount_minor), else_=-Voucher.amount_minor)


class VoucherSelector(BaseSelector):
    """Read access to vouchers."""

    def get(self, voucher_id: int) -> VoucherRecord:
        row = self.session.execute(
            select(*_VOUCHER_COLUMNS).where(Voucher.id == voucher_id)
        ).one_or_none()
        if row is None:
            raise VoucherNotFoundError(voucher_id)
        return VoucherRecord.from_row(row)

    def find_by_number(self, company_id: int, voucher_number: int) -> VoucherRecord | None:
        row = self.session.execute(
            select(*_VOUCHER_COLUMNS).where(
                Voucher.company_id == company_id,
                Voucher.voucher_number == voucher_number,
            )
        ).one_or_none()
        return VoucherRecord.from_row(row) if row is not None else None

    def existing_numbers(self, company_id: int) -> set[int]:
        """All voucher numbers already used in the company."""
        return set(
            self.session.execute(
                select(Voucher.voucher_number).where(Voucher.company_id == company_id)
            ).scalars()
        )

    def iter_vouchers(
        self,
        company_id: int,
        vehicle_id: int | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> Iterator[VoucherRecord]:
        """
        Stream vouchers in chronological order (voucher_date, id).

        Dates are inclusive; None leaves that side open.
        """
        stmt = select(*_VOUCHER_COLUMNS).where(Voucher.company_id == company_id)
        if vehicle_id is not None:
            stmt = stmt.where(Voucher.vehicle_id == vehicle_id)
        if start is not None:
            stmt = stmt.where(Voucher.voucher_date >= start)
        if end is not None:
            stmt = stmt.where(Voucher.voucher_date <= end)
        stmt = stmt.order_by(Voucher.voucher_date, Voucher.id)

        result = self.session.execute(stmt.execution_options(yield_per=STREAM_CHUNK_SIZE))
        for row in result:
            yield VoucherRecord.from_row(row)

    def count_in_range(self, company_id: int, start: date, end: date) -> int:
        return self.session.execute(
            select(func.count(Voucher.id)).where(
                Voucher.company_id == company_id,
                Voucher.voucher_date >= start,
                Voucher.voucher_date <= end,
            )
        ).scalar_one()

    def day_book_page(
        self,
        company_id: int,
        start: date,
        end: date,
        limit: int,
        offset: int,
    ) -> list[DayBookSourceRow]:
        """One page of the day book source, ordered (date, voucher_number, id)."""
        stmt = (
            select(*_VOUCHER_COLUMNS, Vehicle.code.label("vehicle_code"))
            .join(Vehicle, Vehicle.id == Voucher.vehicle_id)
            .where(
                Voucher.company_id == company_id,
                Voucher.voucher_date >= start,
                Voucher.voucher_date <= end,
            )
            .order_by(Voucher.voucher_date, Voucher.voucher_number, Voucher.id)
            .limit(limit)
            .offset(offset)
        )
        return [
            DayBookSourceRow(VoucherRecord.from_row(row), row.vehicle_code)
            for row in self.session.execute(stmt)
        ]

    def daily_totals(self, company_id: int, start: date, end: date) -> list[DailyTotals]:
        """Debit/credit totals per date, only for dates that have vouchers."""
        stmt = (
            select(
                Voucher.voucher_date,
                func.sum(debit_minor_expr()).label("debits"),
                func.sum(credit_minor_expr()).label("credits"),
                func.count(Voucher.id).label("voucher_count"),
            )
            .where(
                Voucher.company_id == company_id,
                Voucher.voucher_date >= start,
                Voucher.voucher_date <= end,
            )
            .group_by(Voucher.voucher_date)
            .order_by(Voucher.voucher_date)
        )
        return [
            DailyTotals(
                day=row.voucher_date,
                total_debits=from_minor_units(row.debits or 0),
                total_credits=from_minor_units(row.credits or 0),
                voucher_count=row.voucher_count,
            )
            for row in self.session.execute(stmt)
        ]

    def vehicle_activity(self, company_id: int) -> dict[int, VehicleActivity]:
        """
        Last voucher date (any side) and last Credit amount per vehicle.

        "Last" means greatest (voucher_date, id).  Vehicles with no vouchers
        are absent from the result.
        """
        last_dates = dict(
            self.session.execute(
                select(Voucher.vehicle_id, func.max(Voucher.voucher_date))
                .where(Voucher.company_id == company_id)
                .group_by(Voucher.vehicle_id)
            ).all()
        )

        ranked = (
            select(
                Voucher.vehicle_id,
                Voucher.amount_minor,
                func.row_number()
                .over(
                    partition_by=Voucher.vehicle_id,
                    order_by=(Voucher.voucher_date.desc(), Voucher.id.desc()),
                )
                .label("rn"),
            )
            .where(and_(Voucher.company_id == company_id, Voucher.side == "C"))
            .subquery()
        )
        last_credits = dict(
            self.session.execute(
                select(ranked.c.vehicle_id, ranked.c.amount_minor).where(ranked.c.rn == 1)
            ).all()
        )

        return {
            vehicle_id: VehicleActivity(
                vehicle_id=vehicle_id,
                last_voucher_date=last_date,
                last_credit_minor=int(last_credits.get(vehicle_id, 0)),
            )
            for vehicle_id, last_date in last_dates.items()
        }

    def count_for_vehicle(self, vehicle_id: int) -> int:
        return self.session.execute(
            select(func.count(Voucher.id)).where(Voucher.vehicle_id == vehicle_id)
        ).scalar_one()

    def last_date_for_vehicle(self, vehicle_id: int) -> date | None:
        return self.session.execute(
            select(func.max(Voucher.voucher_date)).where(Voucher.vehicle_id == vehicle_id)
        ).scalar_one()
