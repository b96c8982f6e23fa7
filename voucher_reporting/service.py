"""
Report Generator (``voucher_reporting.service``).

Responsibility
--------------
Orchestrates report generation -- day book (streamed and collected),
consolidated day book, trial balance, aging (recovery) statement, vehicle
statement and daily summary -- by bridging kernel selectors
(``VoucherSelector``, ``BalanceSelector``) to the pure transformation
functions in ``statements.py``.  This is a **read-only** service.

Invariants enforced
-------------------
* Read-only -- no mutations.
* All monetary amounts use ``Decimal`` -- never ``float``.
* Date ranges are inclusive; start > end raises before any query.
* Day book pages are produced in order; a storage failure mid-stream ends
  the stream with an INCOMPLETE batch and already-yielded batches stand.

Failure modes
-------------
* ``InvalidDateRangeError`` / ``InvalidReportParameterError`` before any
  query.
* ``CompanyNotFoundError`` / ``VehicleNotFoundError`` for unknown ids.
* ``ReportCancelledError`` when the cancellation token is set.
* ``ReportIncompleteError`` from ``day_book()`` when its stream ended
  incomplete.
* ``DataIntegrityError`` propagates from the row decoder.

Audit relevance
---------------
Structured log events are emitted for every report, carrying report type,
company and period.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from voucher_kernel.db.types import from_minor_units, to_minor_units
from voucher_kernel.domain.cancellation import CancellationToken
from voucher_kernel.domain.balances import net_side
from voucher_kernel.domain.clock import Clock, SystemClock
from voucher_kernel.exceptions import (
    CompanyNotFoundError,
    InvalidDateRangeError,
    InvalidReportParameterError,
    ReportIncompleteError,
)
from voucher_kernel.logging_config import LogContext, get_logger
from voucher_kernel.models import Company, Vehicle
from voucher_kernel.selectors.balance_selector import BalanceSelector
from voucher_kernel.selectors.voucher_selector import VoucherSelector

from voucher_reporting.config import ReportingConfig
from voucher_reporting.models import (
    AgingStatement,
    BatchStatus,
    ConsolidatedDayBook,
    DailySummary,
    DayBookBatch,
    DayBookEntryRow,
    DayBookReport,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
    VehicleStatement,
)
from voucher_reporting.statements import (
    DayBookAccumulator,
    VehicleInfo,
    aging_cutoff,
    build_consolidated_rows,
    build_statement_rows,
    build_trial_balance_lines,
    group_aging_items,
    select_aging_items,
    trial_balance_totals,
)

logger = get_logger("reporting.service")


class ReportingService:
    """
    Report generation service.

    Contract
    --------
    * Every public method returns a frozen report model.
    * All methods are read-only.

    Guarantees
    ----------
    * Report content is decided by the pure functions in ``statements.py``.
    * Clock is injectable; the aging statement's "today" comes from it.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._vouchers = VoucherSelector(session)
        self._balances = BalanceSelector(session)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _require_company(self, company_id: int) -> Company:
        company = self._session.get(Company, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        return company

    @staticmethod
    def _check_range(start: date, end: date) -> None:
        if start > end:
            raise InvalidDateRangeError(start, end)

    def _build_metadata(
        self,
        report_type: ReportType,
        company: Company,
        period_start: date | None = None,
        period_end: date | None = None,
        as_of_date: date | None = None,
    ) -> ReportMetadata:
        """Build report metadata with injected clock timestamp."""
        return ReportMetadata(
            report_type=report_type,
            company_id=company.id,
            company_name=company.name,
            generated_at=self._clock.now().isoformat(),
            period_start=period_start,
            period_end=period_end,
            as_of_date=as_of_date,
        )

    def _load_vehicles(self, company_id: int) -> list[VehicleInfo]:
        rows = self._session.execute(
            select(
                Vehicle.id,
                Vehicle.code,
                Vehicle.code_key,
                Vehicle.narration,
                Vehicle.is_active,
            ).where(Vehicle.company_id == company_id)
        )
        return [
            VehicleInfo(
                vehicle_id=row.id,
                code=row.code,
                code_key=row.code_key,
                narration=row.narration or "",
                is_active=bool(row.is_active),
            )
            for row in rows
        ]

    # =========================================================================
    # Day book
    # =========================================================================

    def day_book_stream(
        self,
        company_id: int,
        start: date,
        end: date,
        page_size: int | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Iterator[DayBookBatch]:
        """
        Stream the full day book in pages.

        Parameters are validated eagerly, before the first batch is
        requested.  Each yielded batch carries the rows produced by one
        source page; the last batch also carries the final day subtotal.
        """
        self._check_range(start, end)
        size = page_size if page_size is not None else self._config.day_book_page_size
        if size <= 0:
            raise InvalidReportParameterError("page_size", size, "must be positive")
        self._require_company(company_id)
        return self._iter_day_book(company_id, start, end, size, cancel_token)

    def _iter_day_book(
        self,
        company_id: int,
        start: date,
        end: date,
        size: int,
        cancel_token: CancellationToken | None,
    ) -> Iterator[DayBookBatch]:
        report = ReportType.DAY_BOOK.value
        with LogContext.bind(company_id=company_id, report=report):
            total = self._vouchers.count_in_range(company_id, start, end)
            acc = DayBookAccumulator()
            logger.info(
                "day_book_started",
                extra={
                    "period_start": start.isoformat(),
                    "period_end": end.isoformat(),
                    "total_count": total,
                    "page_size": size,
                },
            )

            if total == 0:
                yield DayBookBatch(rows=(), processed=0, total_count=0, is_last=True)
                return

            offset = 0
            batch_index = 0
            while offset < total:
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled(report, acc.processed)

                try:
                    page = self._vouchers.day_book_page(company_id, start, end, size, offset)
                except SQLAlchemyError as exc:
                    logger.error(
                        "day_book_incomplete",
                        extra={"processed": acc.processed, "total_count": total},
                        exc_info=True,
                    )
                    yield DayBookBatch(
                        rows=(),
                        processed=acc.processed,
                        total_count=total,
                        is_last=True,
                        status=BatchStatus.INCOMPLETE,
                        error=f"{type(exc).__name__}: {exc}",
                    )
                    return

                if not page:
                    # Rows vanished between the count and the read.
                    logger.warning(
                        "day_book_source_shrank",
                        extra={"processed": acc.processed, "total_count": total},
                    )
                    yield DayBookBatch(
                        rows=tuple(acc.finish()),
                        processed=acc.processed,
                        total_count=total,
                        is_last=True,
                        status=BatchStatus.INCOMPLETE,
                        error="source returned fewer rows than counted",
                    )
                    return

                rows = []
                for source_row in page:
                    if cancel_token is not None:
                        cancel_token.raise_if_cancelled(report, acc.processed)
                    rows.extend(acc.feed(source_row))

                offset += len(page)
                is_last = offset >= total
                if is_last:
                    rows.extend(acc.finish())

                batch_index += 1
                logger.debug(
                    "day_book_batch_emitted",
                    extra={
                        "batch_index": batch_index,
                        "processed": acc.processed,
                        "total_count": total,
                        "is_last": is_last,
                    },
                )
                yield DayBookBatch(
                    rows=tuple(rows),
                    processed=acc.processed,
                    total_count=total,
                    is_last=is_last,
                )

    def day_book(
        self,
        company_id: int,
        start: date,
        end: date,
        page_size: int | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> DayBookReport:
        """
        Collect the streamed day book into one report.

        Raises:
            ReportIncompleteError: the stream ended on an INCOMPLETE batch.
        """
        company = self._require_company(company_id)
        rows = []
        last = None
        for batch in self.day_book_stream(company_id, start, end, page_size, cancel_token):
            if batch.status is BatchStatus.INCOMPLETE:
                raise ReportIncompleteError(
                    ReportType.DAY_BOOK.value,
                    batch.processed,
                    batch.total_count,
                    batch.error or "unknown error",
                )
            rows.extend(batch.rows)
            last = batch

        entries = [r for r in rows if isinstance(r, DayBookEntryRow)]
        total_debits = sum((r.debit for r in entries), Decimal("0.00"))
        total_credits = sum((r.credit for r in entries), Decimal("0.00"))
        report = DayBookReport(
            metadata=self._build_metadata(
                ReportType.DAY_BOOK, company, period_start=start, period_end=end,
            ),
            rows=tuple(rows),
            total_debits=total_debits,
            total_credits=total_credits,
            closing_balance=total_debits - total_credits,
            voucher_count=last.processed if last else 0,
        )
        logger.info(
            "day_book_generated",
            extra={
                "company_id": company_id,
                "voucher_count": report.voucher_count,
                "total_debits": str(total_debits),
                "total_credits": str(total_credits),
            },
        )
        return report

    def day_book_consolidated(
        self,
        company_id: int,
        start: date,
        end: date,
    ) -> ConsolidatedDayBook:
        """One row per date that has vouchers, with a running balance."""
        self._check_range(start, end)
        company = self._require_company(company_id)

        rows = build_consolidated_rows(self._vouchers.daily_totals(company_id, start, end))
        report = ConsolidatedDayBook(
            metadata=self._build_metadata(
                ReportType.DAY_BOOK_CONSOLIDATED, company,
                period_start=start, period_end=end,
            ),
            rows=rows,
            total_debits=sum((r.total_debits for r in rows), Decimal("0.00")),
            total_credits=sum((r.total_credits for r in rows), Decimal("0.00")),
        )
        logger.info(
            "day_book_consolidated_generated",
            extra={"company_id": company_id, "day_count": len(rows)},
        )
        return report

    # =========================================================================
    # Trial balance
    # =========================================================================

    def trial_balance(self, company_id: int, end_date: date) -> TrialBalanceReport:
        """
        Balance of every active vehicle as of end_date.

        Returns:
            TrialBalanceReport whose net equals the sum of signed balances.
        """
        company = self._require_company(company_id)
        vehicles = self._load_vehicles(company_id)
        balances = self._balances.balances_for_company(company_id, as_of=end_date)

        lines = build_trial_balance_lines(vehicles, balances)
        total_debits, total_credits = trial_balance_totals(lines)
        report = TrialBalanceReport(
            metadata=self._build_metadata(
                ReportType.TRIAL_BALANCE, company, as_of_date=end_date,
            ),
            lines=lines,
            total_debits=total_debits,
            total_credits=total_credits,
            net=total_debits - total_credits,
        )
        logger.info(
            "trial_balance_generated",
            extra={
                "company_id": company_id,
                "as_of_date": end_date.isoformat(),
                "line_count": len(lines),
                "net": str(report.net),
            },
        )
        return report

    # =========================================================================
    # Aging / recovery
    # =========================================================================

    def aging_statement(
        self,
        company_id: int,
        days: int | None = None,
        minimum_amount: Decimal | str | int = Decimal("0"),
    ) -> AgingStatement:
        """
        Vehicles with no activity in the last ``days`` days, a positive
        balance, and a last Credit of at least ``minimum_amount``.

        Raises:
            InvalidReportParameterError: days <= 0 or minimum_amount < 0.
        """
        days = self._config.aging_default_days if days is None else days
        if days <= 0:
            raise InvalidReportParameterError("days", days, "must be greater than 0")
        minimum = from_minor_units(to_minor_units(minimum_amount))
        if minimum < 0:
            raise InvalidReportParameterError(
                "minimum_amount", minimum_amount, "must be 0 or greater"
            )
        company = self._require_company(company_id)
        today = self._clock.today()

        with LogContext.bind(company_id=company_id, report=ReportType.AGING.value):
            items = select_aging_items(
                vehicles=self._load_vehicles(company_id),
                activity=self._vouchers.vehicle_activity(company_id),
                balances=self._balances.balances_for_company(company_id),
                today=today,
                days=days,
                minimum_amount=minimum,
                never_transacted_days=self._config.never_transacted_days,
            )
            groups = group_aging_items(
                items,
                header_min=self._config.aging_group_header_min,
                fallback_length=self._config.prefix_fallback_length,
                empty_group=self._config.empty_code_group,
            )
            statement = AgingStatement(
                metadata=self._build_metadata(ReportType.AGING, company, as_of_date=today),
                days=days,
                minimum_amount=minimum,
                cutoff_date=aging_cutoff(today, days),
                groups=groups,
                total_balance=sum((i.balance for i in items), Decimal("0.00")),
            )
            logger.info(
                "aging_statement_generated",
                extra={
                    "days": days,
                    "minimum_amount": str(minimum),
                    "item_count": len(items),
                    "group_count": len(groups),
                },
            )
        return statement

    # =========================================================================
    # Vehicle statement / daily summary
    # =========================================================================

    def vehicle_statement(self, vehicle_id: int, start: date, end: date) -> VehicleStatement:
        """
        Vehicle ledger for [start, end] with the opening balance as of the
        day before start.
        """
        self._check_range(start, end)
        opening = self._balances.balance(vehicle_id, as_of=start - timedelta(days=1))
        vehicle = self._session.get(Vehicle, vehicle_id)
        company = self._require_company(vehicle.company_id)

        records = self._vouchers.iter_vouchers(
            vehicle.company_id, vehicle_id=vehicle_id, start=start, end=end,
        )
        rows, debit_minor, credit_minor, closing_minor = build_statement_rows(
            records, to_minor_units(opening),
        )
        statement = VehicleStatement(
            metadata=self._build_metadata(
                ReportType.VEHICLE_STATEMENT, company, period_start=start, period_end=end,
            ),
            vehicle_id=vehicle_id,
            code=vehicle.code,
            narration=vehicle.narration,
            opening_balance=opening,
            rows=rows,
            total_debits=from_minor_units(debit_minor),
            total_credits=from_minor_units(credit_minor),
            closing_balance=from_minor_units(closing_minor),
        )
        logger.info(
            "vehicle_statement_generated",
            extra={"vehicle_id": vehicle_id, "row_count": len(rows)},
        )
        return statement

    def daily_summary(self, company_id: int, day: date) -> DailySummary:
        company = self._require_company(company_id)
        totals = self._vouchers.daily_totals(company_id, day, day)
        debits = totals[0].total_debits if totals else Decimal("0.00")
        credits = totals[0].total_credits if totals else Decimal("0.00")
        count = totals[0].voucher_count if totals else 0
        net_amount, side = net_side(debits - credits)
        return DailySummary(
            metadata=self._build_metadata(ReportType.DAILY_SUMMARY, company, as_of_date=day),
            day=day,
            total_debits=debits,
            total_credits=credits,
            voucher_count=count,
            net_amount=net_amount,
            net_side=side,
        )
