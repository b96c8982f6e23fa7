"""
voucher_ingestion.domain.types -- Pure dataclasses for the listing importer.

ZERO I/O. Imports only from voucher_kernel.domain.

ImportOptions describes one run; ImportResult is the report handed back to
the operator.  ParsedVoucherLine is a typed voucher record after mapping,
before any storage lookup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

from voucher_kernel.domain.dtos import Side


class SourceFormat(str, Enum):
    """Listing formats the importer can read."""

    LEGACY = "legacy"  # VEH.TXT / VCH.TXT print listings
    CSV = "csv"
    XLSX = "xlsx"


@dataclass(frozen=True)
class ParsedVoucherLine:
    """One voucher as read from a listing."""

    voucher_number: int
    voucher_date: date
    vehicle_code: str
    amount: Decimal
    side: Side
    narration: str = ""
    source: str | None = None  # "VCH.TXT:12" for messages

    def describe(self) -> str:
        return f"voucher {self.voucher_number} on {self.voucher_date.isoformat()}"


@dataclass(frozen=True)
class ImportOptions:
    """
    One import run.

    source is a listing file or a directory holding the format's listings.
    dry_run defaults to True: nothing is written unless asked for.
    """

    source: Path | str
    company_id: int
    dry_run: bool = True
    create_missing_vehicles: bool = True
    source_format: SourceFormat | str = SourceFormat.LEGACY
    adapter_options: dict[str, Any] = field(default_factory=dict)


@dataclass
class ImportResult:
    """
    Outcome of an import run.

    In a dry run the inserted counts are what a real run would insert.
    """

    vehicles_parsed: int = 0
    vehicles_inserted: int = 0
    vouchers_parsed: int = 0
    vouchers_inserted: int = 0
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    dry_run: bool = True

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        lines = [
            f"Vehicles: parsed {self.vehicles_parsed}, inserted {self.vehicles_inserted}",
            f"Vouchers: parsed {self.vouchers_parsed}, inserted {self.vouchers_inserted}",
        ]
        if self.dry_run:
            lines.append("Dry run: nothing was written")
        if self.warnings:
            lines.append(f"Warnings ({len(self.warnings)}):")
            lines.extend(f" - {w}" for w in self.warnings)
        if self.errors:
            lines.append(f"Errors ({len(self.errors)}):")
            lines.extend(f" - {e}" for e in self.errors)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.summary()
