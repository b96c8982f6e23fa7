"""
voucher_reporting -- day book, trial balance, aging and vehicle statements.

Public entry point is ``ReportingService``; ``render_to_dict`` turns any
report into JSON-safe data.
"""

from voucher_reporting.config import ReportingConfig
from voucher_reporting.models import (
    AgingGroup,
    AgingItem,
    AgingStatement,
    BatchStatus,
    ConsolidatedDayBook,
    ConsolidatedDayRow,
    DailySummary,
    DayBookBatch,
    DayBookEntryRow,
    DayBookReport,
    DaySubtotalRow,
    ReportMetadata,
    ReportType,
    TrialBalanceLine,
    TrialBalanceReport,
    VehicleStatement,
    VehicleStatementRow,
)
from voucher_reporting.runner import BackgroundReportRunner
from voucher_reporting.service import ReportingService
from voucher_reporting.statements import DayBookAccumulator, render_to_dict, vehicle_prefix

__all__ = [
    "AgingGroup",
    "AgingItem",
    "AgingStatement",
    "BackgroundReportRunner",
    "BatchStatus",
    "ConsolidatedDayBook",
    "ConsolidatedDayRow",
    "DailySummary",
    "DayBookAccumulator",
    "DayBookBatch",
    "DayBookEntryRow",
    "DayBookReport",
    "DaySubtotalRow",
    "ReportMetadata",
    "ReportType",
    "ReportingConfig",
    "ReportingService",
    "TrialBalanceLine",
    "TrialBalanceReport",
    "VehicleStatement",
    "VehicleStatementRow",
    "render_to_dict",
    "vehicle_prefix",
]
