"""Read-only selectors over companies, vehicles and vouchers."""

from voucher_kernel.selectors.balance_selector import BalanceSelector
from voucher_kernel.selectors.base import BaseSelector
from voucher_kernel.selectors.ledger_selector import LedgerSelector
from voucher_kernel.selectors.voucher_selector import (
    DayBookSourceRow,
    VehicleActivity,
    VoucherSelector,
)

__all__ = [
    "BalanceSelector",
    "BaseSelector",
    "DayBookSourceRow",
    "LedgerSelector",
    "VehicleActivity",
    "VoucherSelector",
]
