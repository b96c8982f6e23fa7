"""
Source adapter protocol and inspection DTO.

Contract:
    SourceAdapter.read() yields one dict per source record (streaming).
    SourceAdapter.inspect() returns a quick snapshot: row count, columns, sample rows.
    SourceAdapter.listing_names names the files looked up when the import
    source is a directory (vehicle listing first, then voucher listing).

Architecture: voucher_ingestion/adapters. File I/O only, no DB or kernel imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Protocol, runtime_checkable

# Keys every adapter may attach for traceability; never mapped to fields.
SOURCE_FILE_KEY = "_source_file"
SOURCE_LINE_KEY = "_source_line"


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol for reading listing files into record dicts."""

    listing_names: tuple[str, ...]

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        """Yield one dict per source record. Streams; does not load entire file."""
        ...

    def inspect(self, source_path: Path, options: dict[str, Any]) -> "SourceInspection":
        """Quick inspection: row count, detected columns, sample rows."""
        ...


@dataclass(frozen=True)
class SourceInspection:
    """Result of inspecting a source file (row count, columns, first N rows)."""

    row_count: int
    columns: tuple[str, ...]
    sample_rows: tuple[dict[str, Any], ...]  # First 5 rows; do not mutate
    encoding: str | None = None
    detected_delimiter: str | None = None


def get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() == "utf-8":
        return "utf-8-sig"  # Strip BOM if present
    return enc
