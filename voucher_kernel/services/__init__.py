"""Write-side kernel services."""

from voucher_kernel.services.base import BaseService
from voucher_kernel.services.company_service import CompanyService
from voucher_kernel.services.sequence_service import SequenceService
from voucher_kernel.services.vehicle_service import VehicleService
from voucher_kernel.services.voucher_service import VoucherService

__all__ = [
    "BaseService",
    "CompanyService",
    "SequenceService",
    "VehicleService",
    "VoucherService",
]
