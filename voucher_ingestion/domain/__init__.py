"""Pure domain types for the listing importer."""

from voucher_ingestion.domain.types import (
    ImportOptions,
    ImportResult,
    ParsedVoucherLine,
    SourceFormat,
)

__all__ = [
    "ImportOptions",
    "ImportResult",
    "ParsedVoucherLine",
    "SourceFormat",
]
