"""
VoucherService -- create, update and delete single vouchers.

Responsibility:
    The write path for vouchers.  Validates input before any write, assigns
    voucher numbers through SequenceService, and turns the storage
    uniqueness violation into VoucherNumberConflictError.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - amount > 0 with at most two decimal places; side in {D, C}.
    - The vehicle belongs to the voucher's company and is active.
    - voucher_number is assigned at creation and never changed by update.
    - Auto-numbered inserts retry on conflict up to retry_attempts times;
      explicitly numbered inserts raise the conflict immediately.

Failure modes:
    - InvalidAmountError, InvalidSideError, InactiveVehicleError,
      ValidationError (vehicle of another company) before any write.
    - VoucherNumberConflictError when the number is taken.
    - CompanyNotFoundError, VehicleNotFoundError, VoucherNotFoundError.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from voucher_kernel.db.types import to_minor_units
from voucher_kernel.domain.dtos import Side, VoucherRecord
from voucher_kernel.exceptions import (
    InactiveVehicleError,
    InvalidAmountError,
    ValidationError,
    VoucherNotFoundError,
    VoucherNumberConflictError,
)
from voucher_kernel.logging_config import get_logger
from voucher_kernel.models import Vehicle, Voucher
from voucher_kernel.services.base import BaseService
from voucher_kernel.services.sequence_service import SequenceService

logger = get_logger("services.voucher")

DEFAULT_RETRY_ATTEMPTS = 3
MAX_VOUCHER_NUMBER = 2**63 - 1


def validate_amount(amount: str | int | Decimal) -> int:
    """Positive amount with allowed precision, as minor units."""
    minor = to_minor_units(amount)
    if minor <= 0:
        raise InvalidAmountError(amount)
    return minor


def validate_voucher_number(voucher_number: int) -> int:
    """Positive and within the signed 64-bit column range."""
    if voucher_number <= 0:
        raise ValidationError(f"Voucher number must be positive, got {voucher_number}")
    if voucher_number > MAX_VOUCHER_NUMBER:
        raise ValidationError(f"Voucher number {voucher_number} is too large")
    return voucher_number


class VoucherService(BaseService):
    """Single-voucher write operations."""

    def __init__(
        self,
        session: Session,
        sequence_service: SequenceService | None = None,
        retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
    ):
        super().__init__(session)
        self._sequence = sequence_service or SequenceService(session)
        self._retry_attempts = max(1, retry_attempts)

    def create_voucher(
        self,
        company_id: int,
        vehicle_id: int,
        voucher_date: date,
        amount: str | int | Decimal,
        side: Side | str,
        narration: str = "",
        voucher_number: int | None = None,
        advance_sequence: bool = True,
    ) -> VoucherRecord:
        """
        Insert a voucher.

        With voucher_number=None the number comes from the allocator and a
        lost race is retried.  An explicit number is used as-is and a clash
        raises VoucherNumberConflictError.  Bulk callers that advance the
        counter once at the end pass advance_sequence=False.

        Postconditions:
            - The voucher is flushed and, unless advance_sequence is False,
              the company counter is at least its number.
        """
        amount_minor = validate_amount(amount)
        parsed_side = Side.parse(side)
        self._require_company(company_id)
        self._require_postable_vehicle(company_id, vehicle_id)

        if voucher_number is not None:
            validate_voucher_number(voucher_number)
            voucher = self._insert(
                company_id, vehicle_id, voucher_number, voucher_date,
                amount_minor, parsed_side, narration,
            )
            if advance_sequence:
                self._sequence.advance(company_id, voucher_number)
            return VoucherRecord.from_row(voucher)

        last_conflict: VoucherNumberConflictError | None = None
        for attempt in range(1, self._retry_attempts + 1):
            number = self._sequence.peek_next(company_id)
            try:
                voucher = self._insert(
                    company_id, vehicle_id, number, voucher_date,
                    amount_minor, parsed_side, narration,
                )
            except VoucherNumberConflictError as exc:
                last_conflict = exc
                logger.warning(
                    "voucher_number_conflict_retry",
                    extra={
                        "company_id": company_id,
                        "voucher_number": number,
                        "attempt": attempt,
                        "max_attempts": self._retry_attempts,
                    },
                )
                # Move past the taken number so the next peek differs.
                self._sequence.advance(company_id, number)
                continue
            self._sequence.advance(company_id, number)
            return VoucherRecord.from_row(voucher)

        assert last_conflict is not None
        raise last_conflict

    def update_voucher(
        self,
        voucher_id: int,
        *,
        vehicle_id: int | None = None,
        voucher_date: date | None = None,
        amount: str | int | Decimal | None = None,
        side: Side | str | None = None,
        narration: str | None = None,
    ) -> VoucherRecord:
        """
        Change a voucher's fields.  The voucher number cannot be changed.

        Only arguments that are not None are applied.
        """
        voucher = self._require_voucher(voucher_id)

        amount_minor = validate_amount(amount) if amount is not None else None
        parsed_side = Side.parse(side) if side is not None else None
        if vehicle_id is not None and vehicle_id != voucher.vehicle_id:
            self._require_postable_vehicle(voucher.company_id, vehicle_id)
            voucher.vehicle_id = vehicle_id
        if voucher_date is not None:
            voucher.voucher_date = voucher_date
        if amount_minor is not None:
            voucher.amount_minor = amount_minor
        if parsed_side is not None:
            voucher.side = parsed_side.value
        if narration is not None:
            voucher.narration = narration

        self.session.flush()
        logger.info(
            "voucher_updated",
            extra={"voucher_id": voucher_id, "voucher_number": voucher.voucher_number},
        )
        return VoucherRecord.from_row(voucher)

    def delete_voucher(self, voucher_id: int) -> None:
        voucher = self._require_voucher(voucher_id)
        number = voucher.voucher_number
        self.session.delete(voucher)
        self.session.flush()
        logger.info(
            "voucher_deleted",
            extra={"voucher_id": voucher_id, "voucher_number": number},
        )

    # Internal helpers

    def _require_voucher(self, voucher_id: int) -> Voucher:
        voucher = self.session.get(Voucher, voucher_id)
        if voucher is None:
            raise VoucherNotFoundError(voucher_id)
        return voucher

    def _require_postable_vehicle(self, company_id: int, vehicle_id: int) -> Vehicle:
        vehicle = self._require_vehicle(vehicle_id)
        if vehicle.company_id != company_id:
            raise ValidationError(
                f"Vehicle {vehicle.code} ({vehicle_id}) does not belong to company {company_id}"
            )
        if not vehicle.is_active:
            raise InactiveVehicleError(vehicle_id, vehicle.code)
        return vehicle

    def _insert(
        self,
        company_id: int,
        vehicle_id: int,
        voucher_number: int,
        voucher_date: date,
        amount_minor: int,
        side: Side,
        narration: str,
    ) -> Voucher:
        voucher = Voucher(
            company_id=company_id,
            vehicle_id=vehicle_id,
            voucher_number=voucher_number,
            voucher_date=voucher_date,
            amount_minor=amount_minor,
            side=side.value,
            narration=narration or "",
        )
        # Savepoint so a lost race does not poison the caller's transaction.
        savepoint = self.session.begin_nested()
        try:
            self.session.add(voucher)
            self.session.flush()
        except IntegrityError:
            savepoint.rollback()
            if self._number_taken(company_id, voucher_number):
                raise VoucherNumberConflictError(company_id, voucher_number) from None
            raise
        except Exception:
            savepoint.rollback()
            raise
        savepoint.commit()

        logger.info(
            "voucher_created",
            extra={
                "company_id": company_id,
                "vehicle_id": vehicle_id,
                "voucher_id": voucher.id,
                "voucher_number": voucher_number,
                "side": side.value,
            },
        )
        return voucher

    def _number_taken(self, company_id: int, voucher_number: int) -> bool:
        return (
            self.session.execute(
                select(Voucher.id).where(
                    Voucher.company_id == company_id,
                    Voucher.voucher_number == voucher_number,
                )
            ).first()
            is not None
        )
