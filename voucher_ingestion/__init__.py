"""
voucher_ingestion -- bring old listings into the voucher ledger.

Adapters read files (legacy print listings, CSV, XLSX) into raw dicts, the
mapping engine types them, and ImportService reconciles them against what
is already stored.  Dry run by default.
"""

from voucher_ingestion.domain.types import (
    ImportOptions,
    ImportResult,
    ParsedVoucherLine,
    SourceFormat,
)
from voucher_ingestion.services.import_service import ImportService

__all__ = [
    "ImportOptions",
    "ImportResult",
    "ImportService",
    "ParsedVoucherLine",
    "SourceFormat",
]
