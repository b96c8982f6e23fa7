"""
Module: voucher_kernel.models.company
Responsibility: ORM persistence for companies, the bookkeeping scope that
    owns vehicles, vouchers and the voucher-number counter.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - name is unique (uq_company_name).
    - last_voucher_number >= 0.  It only moves forward through
      SequenceService.advance(); CompanyService.clear_company_data() is the
      one operation that resets it to 0.
"""

from datetime import date

from sqlalchemy import BigInteger, Boolean, CheckConstraint, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from voucher_kernel.db.base import TrackedBase


class Company(TrackedBase):
    """
    A company and its financial year.

    The voucher-number counter lives on the company row so that the
    conditional advance is a single-row UPDATE.
    """

    __tablename__ = "companies"

    __table_args__ = (
        UniqueConstraint("name", name="uq_company_name"),
        CheckConstraint("last_voucher_number >= 0", name="ck_company_last_voucher_nonneg"),
    )

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    financial_year_start: Mapped[date | None] = mapped_column(
        nullable=True,
    )

    financial_year_end: Mapped[date | None] = mapped_column(
        nullable=True,
    )

    # Highest voucher number handed out (advisory, see SequenceService)
    last_voucher_number: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        server_default="0",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        return f"<Company {self.id}: {self.name}>"
