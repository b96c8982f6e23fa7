"""
Module: voucher_kernel.models.voucher
Responsibility: ORM persistence for vouchers, the dated Debit/Credit
    postings against a vehicle account.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - UNIQUE(company_id, voucher_number).  The allocator is advisory; this
      constraint is what arbitrates concurrent allocations.
    - CHECK amount_minor > 0.  Direction lives in side, never in the sign.
    - CHECK side IN ('D', 'C').
    - id is insertion-ordered and is the tie-break for same-date postings.

Failure modes:
    - IntegrityError on a duplicate voucher number or a constraint breach.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from voucher_kernel.db.base import TrackedBase
from voucher_kernel.db.types import from_minor_units


class Voucher(TrackedBase):
    """A single Debit or Credit posting against a vehicle."""

    __tablename__ = "vouchers"

    __table_args__ = (
        UniqueConstraint("company_id", "voucher_number", name="uq_voucher_company_number"),
        CheckConstraint("amount_minor > 0", name="ck_voucher_amount_positive"),
        CheckConstraint("side IN ('D', 'C')", name="ck_voucher_side"),
        Index("idx_voucher_vehicle_date", "vehicle_id", "voucher_date", "id"),
        Index("idx_voucher_company_date", "company_id", "voucher_date", "voucher_number"),
    )

    company_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("companies.id"),
        nullable=False,
    )

    vehicle_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("vehicles.id"),
        nullable=False,
    )

    # Assigned at creation, never changed by update
    voucher_number: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    voucher_date: Mapped[date] = mapped_column(
        nullable=False,
    )

    # Magnitude in minor units
    amount_minor: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    side: Mapped[str] = mapped_column(
        String(1),
        nullable=False,
    )

    narration: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        default="",
    )

    @property
    def amount(self) -> Decimal:
        return from_minor_units(self.amount_minor)

    @property
    def signed_minor(self) -> int:
        """Debit positive, Credit negative."""
        return self.amount_minor if self.side == "D" else -self.amount_minor

    def __repr__(self) -> str:
        return (
            f"<Voucher {self.voucher_number} {self.voucher_date} "
            f"{self.amount} {self.side}>"
        )
