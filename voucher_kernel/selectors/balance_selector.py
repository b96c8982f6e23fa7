"""
Module: voucher_kernel.selectors.balance_selector
Responsibility: Derived vehicle balances.  Balances are never stored; every
    figure here is a SUM over vouchers.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Debit adds, Credit subtracts.
    - Storage-side aggregation runs over integer minor units, so balance()
      and balance_streamed() agree exactly.
    - as_of is inclusive; None means all time.

Failure modes:
    - VehicleNotFoundError / CompanyNotFoundError for unknown ids.
    - DataIntegrityError from balance_streamed() on a malformed row.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import func, select

from voucher_kernel.db.types import from_minor_units
from voucher_kernel.domain.balances import fold_balance
from voucher_kernel.logging_config import get_logger
from voucher_kernel.models import Vehicle, Voucher
from voucher_kernel.selectors.base import BaseSelector
from voucher_kernel.selectors.voucher_selector import VoucherSelector, signed_minor_expr

logger = get_logger("selectors.balance")


class BalanceSelector(BaseSelector):
    """Balance-as-of queries for one vehicle or a whole company."""

    def balance(self, vehicle_id: int, as_of: date | None = None) -> Decimal:
        """
        Balance of a vehicle after all vouchers dated <= as_of.

        Returns Decimal("0.00") for a vehicle with no vouchers.
        """
        self._require_vehicle(vehicle_id)
        stmt = select(func.coalesce(func.sum(signed_minor_expr()), 0)).where(
            Voucher.vehicle_id == vehicle_id
        )
        if as_of is not None:
            stmt = stmt.where(Voucher.voucher_date <= as_of)
        return from_minor_units(self.session.execute(stmt).scalar_one())

    def balance_streamed(self, vehicle_id: int, as_of: date | None = None) -> Decimal:
        """
        Same figure as balance(), folded client-side over decoded rows.

        Used to cross-check the aggregate and to surface malformed rows that
        a SUM would silently absorb.
        """
        vehicle = self._require_vehicle(vehicle_id)
        records = VoucherSelector(self.session).iter_vouchers(
            vehicle.company_id, vehicle_id=vehicle_id, end=as_of
        )
        return fold_balance(records)

    def balances_for_company(
        self,
        company_id: int,
        as_of: date | None = None,
        active_only: bool = False,
    ) -> dict[int, Decimal]:
        """Balance per vehicle id, one grouped query. Vehicles with no vouchers map to zero."""
        self._require_company(company_id)

        vehicle_stmt = select(Vehicle.id).where(Vehicle.company_id == company_id)
        if active_only:
            vehicle_stmt = vehicle_stmt.where(Vehicle.is_active.is_(True))
        vehicle_ids = list(self.session.execute(vehicle_stmt).scalars())

        sum_stmt = (
            select(Voucher.vehicle_id, func.sum(signed_minor_expr()))
            .where(Voucher.company_id == company_id)
            .group_by(Voucher.vehicle_id)
        )
        if as_of is not None:
            sum_stmt = sum_stmt.where(Voucher.voucher_date <= as_of)
        sums = dict(self.session.execute(sum_stmt).all())

        balances = {vid: from_minor_units(sums.get(vid) or 0) for vid in vehicle_ids}
        logger.debug(
            "company_balances_computed",
            extra={"company_id": company_id, "vehicle_count": len(balances)},
        )
        return balances
