"""
Module: voucher_kernel.selectors.ledger_selector
Responsibility: Paged vehicle ledger with a running balance on every row.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - The running balance is a window SUM over the vehicle's full
      chronological sequence (voucher_date, id), computed before the page is
      cut.  A row's balance therefore never depends on the page window.
    - Pages are counted from the most recent row: offset 0 holds the newest
      vouchers.  Rows within a page are ordered (voucher_date desc, id desc).
    - has_more = offset + len(rows) < total_count.

Failure modes:
    - InvalidPageError (raised by PageRequest) for size <= 0 or offset < 0.
    - VehicleNotFoundError for an unknown vehicle.
    - DataIntegrityError for a malformed stored row.
"""

from sqlalchemy import func, select

from voucher_kernel.db.types import from_minor_units
from voucher_kernel.domain.dtos import LedgerPage, LedgerRow, PageRequest, VoucherRecord
from voucher_kernel.logging_config import get_logger
from voucher_kernel.models import Voucher
from voucher_kernel.selectors.base import BaseSelector
from voucher_kernel.selectors.voucher_selector import signed_minor_expr

logger = get_logger("selectors.ledger")


class LedgerSelector(BaseSelector):
    """Vehicle ledger pages."""

    def ledger(self, vehicle_id: int, page: PageRequest) -> LedgerPage:
        """
        Return one page of the vehicle's ledger, newest first.

        Args:
            vehicle_id: The vehicle whose vouchers are listed.
            page: Window over the newest-first sequence.

        Returns:
            LedgerPage(rows, total_count, has_more).  offset >= total_count
            yields an empty page with has_more False.
        """
        self._require_vehicle(vehicle_id)

        total_count = self.session.execute(
            select(func.count(Voucher.id)).where(Voucher.vehicle_id == vehicle_id)
        ).scalar_one()

        if total_count == 0 or page.offset >= total_count:
            return LedgerPage(rows=(), total_count=total_count, has_more=False)

        running = (
            func.sum(signed_minor_expr())
            .over(
                order_by=(Voucher.voucher_date, Voucher.id),
                rows=(None, 0),
            )
            .label("running_minor")
        )
        windowed = (
            select(
                Voucher.id,
                Voucher.company_id,
                Voucher.vehicle_id,
                Voucher.voucher_number,
                Voucher.voucher_date,
                Voucher.amount_minor,
                Voucher.side,
                Voucher.narration,
                running,
            )
            .where(Voucher.vehicle_id == vehicle_id)
            .subquery()
        )
        stmt = (
            select(windowed)
            .order_by(windowed.c.voucher_date.desc(), windowed.c.id.desc())
            .limit(page.size)
            .offset(page.offset)
        )

        rows = []
        for row in self.session.execute(stmt):
            record = VoucherRecord.from_row(row)
            rows.append(
                LedgerRow(
                    voucher_id=record.id,
                    voucher_number=record.voucher_number,
                    voucher_date=record.voucher_date,
                    narration=record.narration,
                    amount=record.amount,
                    side=record.side,
                    running_balance=from_minor_units(row.running_minor),
                )
            )

        has_more = page.offset + len(rows) < total_count
        logger.debug(
            "ledger_page_loaded",
            extra={
                "vehicle_id": vehicle_id,
                "offset": page.offset,
                "size": page.size,
                "rows": len(rows),
                "total_count": total_count,
            },
        )
        return LedgerPage(rows=tuple(rows), total_count=total_count, has_more=has_more)
