"""
VehicleService -- vehicle account management and merging.

Responsibility:
    Creates, renames, deactivates and looks up vehicle accounts, and merges
    one vehicle's history into another.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Codes are unique per company case-insensitively (code_key).
    - Merge is all-or-nothing: vouchers are reassigned and the source
      vehicle deleted inside one SAVEPOINT.  No voucher is ever deleted by a
      merge.

Failure modes:
    - InvalidVehicleCodeError, VehicleCodeConflictError on create/rename.
    - InvalidMergeError for a self-merge or a cross-company merge.
    - TransactionFailedError when the merge fails and is rolled back.
"""

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from voucher_kernel.domain.dtos import MergeResult, VehicleSummary
from voucher_kernel.exceptions import (
    InvalidMergeError,
    InvalidVehicleCodeError,
    TransactionFailedError,
    VehicleCodeConflictError,
)
from voucher_kernel.logging_config import LogContext, get_logger
from voucher_kernel.models import Vehicle, Voucher, normalize_code
from voucher_kernel.selectors.balance_selector import BalanceSelector
from voucher_kernel.selectors.voucher_selector import VoucherSelector
from voucher_kernel.services.base import BaseService

logger = get_logger("services.vehicle")

MAX_CODE_LENGTH = 50


def clean_vehicle_code(code: str) -> str:
    """Trimmed code; raises InvalidVehicleCodeError when empty or over-long."""
    clean = (code or "").strip()
    if not clean:
        raise InvalidVehicleCodeError(code, "code must not be empty")
    if len(clean) > MAX_CODE_LENGTH:
        raise InvalidVehicleCodeError(code, f"code longer than {MAX_CODE_LENGTH} characters")
    return clean


class VehicleService(BaseService):
    """Vehicle account operations."""

    def __init__(self, session: Session):
        super().__init__(session)

    # Lookups

    def get_vehicle(self, vehicle_id: int) -> Vehicle:
        return self._require_vehicle(vehicle_id)

    def find_by_code(self, company_id: int, code: str) -> Vehicle | None:
        """Case-insensitive lookup; inactive vehicles are found too."""
        return self.session.execute(
            select(Vehicle).where(
                Vehicle.company_id == company_id,
                Vehicle.code_key == normalize_code(code),
            )
        ).scalar_one_or_none()

    def list_active(self, company_id: int) -> list[Vehicle]:
        self._require_company(company_id)
        return list(
            self.session.execute(
                select(Vehicle)
                .where(Vehicle.company_id == company_id, Vehicle.is_active.is_(True))
                .order_by(Vehicle.code_key, Vehicle.code)
            ).scalars()
        )

    def search(self, company_id: int, text: str, limit: int = 50) -> list[Vehicle]:
        """Vehicles whose code contains text (case-insensitive)."""
        self._require_company(company_id)
        pattern = f"%{normalize_code(text)}%"
        return list(
            self.session.execute(
                select(Vehicle)
                .where(Vehicle.company_id == company_id, Vehicle.code_key.like(pattern))
                .order_by(Vehicle.code_key, Vehicle.code)
                .limit(limit)
            ).scalars()
        )

    def summary(self, vehicle_id: int) -> VehicleSummary:
        vehicle = self._require_vehicle(vehicle_id)
        vouchers = VoucherSelector(self.session)
        return VehicleSummary(
            vehicle_id=vehicle.id,
            code=vehicle.code,
            narration=vehicle.narration,
            is_active=vehicle.is_active,
            balance=BalanceSelector(self.session).balance(vehicle_id),
            voucher_count=vouchers.count_for_vehicle(vehicle_id),
            last_transaction_date=vouchers.last_date_for_vehicle(vehicle_id),
        )

    # Writes

    def create_vehicle(self, company_id: int, code: str, narration: str = "") -> Vehicle:
        """
        Create a vehicle account.

        Raises:
            InvalidVehicleCodeError: empty or over-long code.
            VehicleCodeConflictError: code already used (any case).
        """
        self._require_company(company_id)
        clean = clean_vehicle_code(code)
        if self.find_by_code(company_id, clean) is not None:
            raise VehicleCodeConflictError(company_id, clean)

        vehicle = Vehicle(
            company_id=company_id,
            code=clean,
            code_key=normalize_code(clean),
            narration=narration or "",
            is_active=True,
        )
        savepoint = self.session.begin_nested()
        try:
            self.session.add(vehicle)
            self.session.flush()
        except IntegrityError:
            savepoint.rollback()
            raise VehicleCodeConflictError(company_id, clean) from None
        savepoint.commit()

        logger.info(
            "vehicle_created",
            extra={"company_id": company_id, "vehicle_id": vehicle.id, "code": clean},
        )
        return vehicle

    def update_vehicle(
        self,
        vehicle_id: int,
        *,
        code: str | None = None,
        narration: str | None = None,
    ) -> Vehicle:
        vehicle = self._require_vehicle(vehicle_id)
        if code is not None:
            clean = clean_vehicle_code(code)
            existing = self.find_by_code(vehicle.company_id, clean)
            if existing is not None and existing.id != vehicle.id:
                raise VehicleCodeConflictError(vehicle.company_id, clean)
            vehicle.code = clean
            vehicle.code_key = normalize_code(clean)
        if narration is not None:
            vehicle.narration = narration
        self.session.flush()
        logger.info("vehicle_updated", extra={"vehicle_id": vehicle_id, "code": vehicle.code})
        return vehicle

    def deactivate(self, vehicle_id: int) -> Vehicle:
        return self._set_active(vehicle_id, False)

    def reactivate(self, vehicle_id: int) -> Vehicle:
        return self._set_active(vehicle_id, True)

    def merge_vehicles(self, source_id: int, target_id: int) -> MergeResult:
        """
        Move every voucher of source onto target, then delete source.

        Preconditions:
            - source_id != target_id, both exist, same company.

        Postconditions:
            - On success: target owns the union of both histories; source
              no longer exists.
            - On failure: nothing changed; TransactionFailedError raised.
        """
        if source_id == target_id:
            raise InvalidMergeError(source_id, target_id, "source and target are the same vehicle")
        source = self._require_vehicle(source_id)
        target = self._require_vehicle(target_id)
        if source.company_id != target.company_id:
            raise InvalidMergeError(source_id, target_id, "vehicles belong to different companies")

        source_code, target_code = source.code, target.code

        with LogContext.bind(company_id=source.company_id, vehicle_id=source_id):
            savepoint = self.session.begin_nested()
            try:
                moved = self._reassign_vouchers(source_id, target_id)
                self._delete_vehicle(source)
                savepoint.commit()
            except SQLAlchemyError as exc:
                rollback_error = None
                try:
                    savepoint.rollback()
                except SQLAlchemyError as rb_exc:
                    rollback_error = rb_exc
                self.session.expire_all()
                logger.error(
                    "merge_rolled_back",
                    extra={
                        "source_vehicle_id": source_id,
                        "target_vehicle_id": target_id,
                        "rollback_failed": rollback_error is not None,
                    },
                )
                raise TransactionFailedError("merge_vehicles", exc, rollback_error) from exc

            logger.info(
                "vehicles_merged",
                extra={
                    "source_vehicle_id": source_id,
                    "target_vehicle_id": target_id,
                    "vouchers_moved": moved,
                },
            )

        return MergeResult(
            source_vehicle_id=source_id,
            source_code=source_code,
            target_vehicle_id=target_id,
            target_code=target_code,
            vouchers_moved=moved,
        )

    # Internal helpers

    def _reassign_vouchers(self, source_id: int, target_id: int) -> int:
        count = self.session.execute(
            select(func.count(Voucher.id)).where(Voucher.vehicle_id == source_id)
        ).scalar_one()
        self.session.execute(
            update(Voucher)
            .where(Voucher.vehicle_id == source_id)
            .values(vehicle_id=target_id)
            .execution_options(synchronize_session="evaluate")
        )
        return count

    def _delete_vehicle(self, vehicle: Vehicle) -> None:
        self.session.delete(vehicle)
        self.session.flush()

    def _set_active(self, vehicle_id: int, active: bool) -> Vehicle:
        vehicle = self._require_vehicle(vehicle_id)
        vehicle.is_active = active
        self.session.flush()
        logger.info(
            "vehicle_activated" if active else "vehicle_deactivated",
            extra={"vehicle_id": vehicle_id},
        )
        return vehicle
