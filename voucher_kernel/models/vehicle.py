"""
Module: voucher_kernel.models.vehicle
Responsibility: ORM persistence for vehicle accounts.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - (company_id, code_key) is unique, where code_key is the upper-cased
      code.  Codes are therefore unique per company case-insensitively,
      active or not.
    - Balance is never stored; it is always derived from vouchers.
"""

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from voucher_kernel.db.base import TrackedBase


def normalize_code(code: str) -> str:
    """Case-insensitive comparison key for a vehicle code."""
    return code.strip().upper()


class Vehicle(TrackedBase):
    """A vehicle account ("vehicle number") inside a company."""

    __tablename__ = "vehicles"

    __table_args__ = (
        UniqueConstraint("company_id", "code_key", name="uq_vehicle_company_code"),
        Index("idx_vehicle_company_active", "company_id", "is_active"),
    )

    company_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("companies.id"),
        nullable=False,
    )

    # As entered by the user
    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    # normalize_code(code); the uniqueness and ordering key
    code_key: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    narration: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        default="",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    def __repr__(self) -> str:
        return f"<Vehicle {self.id}: {self.code}>"
