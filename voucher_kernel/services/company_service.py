"""
CompanyService -- company lifecycle and the company data wipe.

Responsibility:
    Creates and looks up companies, and clears a company's bookkeeping data
    (all vouchers, all vehicles, counter back to 0) as one atomic unit.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Company names are unique.
    - clear_company_data() runs inside one SAVEPOINT: vouchers are deleted
      before the vehicles they reference, then the counter is reset.  Any
      failure rolls all three steps back.

Failure modes:
    - CompanyNameConflictError on a duplicate name.
    - CompanyNotFoundError for an unknown company.
    - TransactionFailedError when the wipe fails and is rolled back.
"""

from datetime import date

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from voucher_kernel.domain.dtos import CompanyWipeResult
from voucher_kernel.exceptions import (
    CompanyNameConflictError,
    InvalidDateRangeError,
    TransactionFailedError,
    ValidationError,
)
from voucher_kernel.logging_config import LogContext, get_logger
from voucher_kernel.models import Company, Vehicle, Voucher
from voucher_kernel.services.base import BaseService
from voucher_kernel.services.sequence_service import SequenceService

logger = get_logger("services.company")


class CompanyService(BaseService):
    """Company operations."""

    def __init__(self, session: Session, sequence_service: SequenceService | None = None):
        super().__init__(session)
        self._sequence = sequence_service or SequenceService(session)

    def create_company(
        self,
        name: str,
        financial_year_start: date | None = None,
        financial_year_end: date | None = None,
    ) -> Company:
        clean = (name or "").strip()
        if not clean:
            raise ValidationError("Company name must not be empty")
        if (
            financial_year_start is not None
            and financial_year_end is not None
            and financial_year_start > financial_year_end
        ):
            raise InvalidDateRangeError(financial_year_start, financial_year_end)
        existing = self.session.execute(
            select(Company.id).where(Company.name == clean)
        ).first()
        if existing is not None:
            raise CompanyNameConflictError(clean)

        company = Company(
            name=clean,
            financial_year_start=financial_year_start,
            financial_year_end=financial_year_end,
            last_voucher_number=0,
            is_active=True,
        )
        self.session.add(company)
        self.session.flush()
        logger.info("company_created", extra={"company_id": company.id, "company_name": clean})
        return company

    def get_company(self, company_id: int) -> Company:
        return self._require_company(company_id)

    def list_active(self) -> list[Company]:
        return list(
            self.session.execute(
                select(Company).where(Company.is_active.is_(True)).order_by(Company.name)
            ).scalars()
        )

    def clear_company_data(self, company_id: int) -> CompanyWipeResult:
        """
        Delete every voucher and vehicle of the company and reset its
        voucher counter to 0.

        Postconditions:
            - On success: the company has no vehicles, no vouchers, and
              last_voucher_number == 0.
            - On failure: nothing changed; TransactionFailedError raised.
        """
        self._require_company(company_id)

        with LogContext.bind(company_id=company_id):
            savepoint = self.session.begin_nested()
            try:
                vouchers_deleted = self._delete_vouchers(company_id)
                vehicles_deleted = self._delete_vehicles(company_id)
                self._sequence.reset(company_id)
                savepoint.commit()
            except SQLAlchemyError as exc:
                rollback_error = None
                try:
                    savepoint.rollback()
                except SQLAlchemyError as rb_exc:
                    rollback_error = rb_exc
                self.session.expire_all()
                logger.error(
                    "company_wipe_rolled_back",
                    extra={"rollback_failed": rollback_error is not None},
                )
                raise TransactionFailedError("clear_company_data", exc, rollback_error) from exc

            logger.warning(
                "company_data_cleared",
                extra={
                    "vouchers_deleted": vouchers_deleted,
                    "vehicles_deleted": vehicles_deleted,
                },
            )

        return CompanyWipeResult(
            company_id=company_id,
            vouchers_deleted=vouchers_deleted,
            vehicles_deleted=vehicles_deleted,
        )

    def _delete_vouchers(self, company_id: int) -> int:
        result = self.session.execute(
            delete(Voucher)
            .where(Voucher.company_id == company_id)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount

    def _delete_vehicles(self, company_id: int) -> int:
        result = self.session.execute(
            delete(Vehicle)
            .where(Vehicle.company_id == company_id)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount
