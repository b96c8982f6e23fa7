"""ORM models: companies, vehicles and vouchers."""

from voucher_kernel.models.company import Company
from voucher_kernel.models.vehicle import Vehicle, normalize_code
from voucher_kernel.models.voucher import Voucher

__all__ = [
    "Company",
    "Vehicle",
    "Voucher",
    "normalize_code",
]
