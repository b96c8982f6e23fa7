"""
SequenceService -- per-company voucher-number allocation.

Responsibility:
    Hands out the next voucher number for a company and moves the stored
    high-water mark forward.  The counter lives on the company row
    (``companies.last_voucher_number``) and is never cached in process.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by VoucherService (each insert) and ImportService (once per
    import, with the highest imported number).

Invariants enforced:
    - Monotonicity: advance() is a conditional SetIfGreater
      (``UPDATE ... WHERE last_voucher_number < n``).  A stale or
      out-of-order advance is a no-op, never a decrease.
    - Advisory allocation: peek_next() does not reserve.  Two callers may
      peek the same number; UNIQUE(company_id, voucher_number) decides who
      wins and the loser sees VoucherNumberConflictError.
    - Gaps are acceptable: if the insert commits and the advance does not,
      the next peek skips nothing and the next insert conflicts and retries.

Failure modes:
    - CompanyNotFoundError for an unknown company.

Audit relevance:
    Every effective advance is logged at DEBUG with the new value; no-op
    advances are logged with the value they lost to.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.util import identity_key

from voucher_kernel.exceptions import CompanyNotFoundError
from voucher_kernel.logging_config import get_logger
from voucher_kernel.models import Company

logger = get_logger("services.sequence")


class SequenceService:
    """
    Voucher-number allocator.

    Usage:
        number = sequence_service.peek_next(company_id)
        # insert voucher with number...
        sequence_service.advance(company_id, number)
    """

    def __init__(self, session: Session):
        self._session = session

    def current_value(self, company_id: int) -> int:
        """
        Highest voucher number recorded for the company (0 if none).

        Raises:
            CompanyNotFoundError: unknown company.
        """
        value = self._session.execute(
            select(Company.last_voucher_number)
            .where(Company.id == company_id)
        ).scalar_one_or_none()
        if value is None:
            raise CompanyNotFoundError(company_id)
        return value

    def peek_next(self, company_id: int) -> int:
        """Next candidate number. Does not mutate anything."""
        return self.current_value(company_id) + 1

    def advance(self, company_id: int, n: int) -> bool:
        """
        Raise the company's last voucher number to n if n is greater.

        Postconditions:
            - last_voucher_number == max(previous, n).

        Returns:
            True if the stored value moved, False if n <= current (no-op).

        Raises:
            CompanyNotFoundError: unknown company.
        """
        result = self._session.execute(
            update(Company)
            .where(Company.id == company_id, Company.last_voucher_number < n)
            .values(last_voucher_number=n)
            .execution_options(synchronize_session=False)
        )
        self._expire_cached(company_id)
        if result.rowcount == 0:
            current = self.current_value(company_id)
            logger.debug(
                "sequence_advance_skipped",
                extra={"company_id": company_id, "requested": n, "current": current},
            )
            return False

        logger.debug(
            "sequence_advanced",
            extra={"company_id": company_id, "value": n},
        )
        return True

    def reset(self, company_id: int) -> None:
        """
        Set the counter back to 0.

        Only CompanyService.clear_company_data() calls this, after every
        voucher of the company has been deleted.
        """
        result = self._session.execute(
            update(Company)
            .where(Company.id == company_id)
            .values(last_voucher_number=0)
            .execution_options(synchronize_session=False)
        )
        self._expire_cached(company_id)
        if result.rowcount == 0:
            raise CompanyNotFoundError(company_id)
        logger.info("sequence_reset", extra={"company_id": company_id})

    def _expire_cached(self, company_id: int) -> None:
        # The UPDATE bypasses the identity map; drop any loaded copy.
        cached = self._session.identity_map.get(identity_key(Company, company_id))
        if cached is not None:
            self._session.expire(cached, ["last_voucher_number"])
