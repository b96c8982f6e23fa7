"""Pure domain layer: DTOs, balance arithmetic, clock and cancellation."""

from voucher_kernel.domain.balances import (
    fold_balance,
    net_side,
    running_balances,
)
from voucher_kernel.domain.cancellation import CancellationToken
from voucher_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from voucher_kernel.domain.dtos import (
    CompanyWipeResult,
    DailyTotals,
    LedgerPage,
    LedgerRow,
    MergeResult,
    PageRequest,
    Side,
    VehicleSummary,
    VoucherRecord,
)

__all__ = [
    "CancellationToken",
    "Clock",
    "CompanyWipeResult",
    "DailyTotals",
    "DeterministicClock",
    "LedgerPage",
    "LedgerRow",
    "MergeResult",
    "PageRequest",
    "Side",
    "SystemClock",
    "VehicleSummary",
    "VoucherRecord",
    "fold_balance",
    "net_side",
    "running_balances",
]
