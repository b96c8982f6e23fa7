"""Source adapters for listing imports (file I/O only, no DB)."""

from voucher_ingestion.adapters.base import SourceAdapter, SourceInspection
from voucher_ingestion.adapters.csv_adapter import CsvSourceAdapter
from voucher_ingestion.adapters.legacy_text_adapter import LegacyTextAdapter
from voucher_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter

__all__ = [
    "SourceAdapter",
    "SourceInspection",
    "CsvSourceAdapter",
    "LegacyTextAdapter",
    "XlsxSourceAdapter",
]
