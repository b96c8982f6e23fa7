"""
CSV source adapter.

Uses csv.DictReader. Configurable: delimiter, encoding, has_header, quoting,
skip_rows, columns. Handles BOM via utf-8-sig when encoding is utf-8. Streams
rows. Column names are passed through untouched; the mapping layer resolves
aliases such as "Vehicle Number" or "D/C".
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterator

from voucher_ingestion.adapters.base import (
    SOURCE_FILE_KEY,
    SOURCE_LINE_KEY,
    SourceInspection,
    get_encoding,
)


_QUOTING = {
    "minimal": csv.QUOTE_MINIMAL,
    "all": csv.QUOTE_ALL,
    "nonnumeric": csv.QUOTE_NONNUMERIC,
    "none": csv.QUOTE_NONE,
}


def _get_quoting(options: dict[str, Any]) -> int:
    q = options.get("quoting", "minimal")
    if isinstance(q, int):
        return q
    return _QUOTING.get(str(q).lower(), csv.QUOTE_MINIMAL)


def _is_blank(row: dict[str, Any]) -> bool:
    return not any(str(v).strip() for v in row.values() if v is not None)


class CsvSourceAdapter:
    """Read CSV files as one dict per row. Streams; does not load entire file."""

    listing_names: tuple[str, ...] = ("vehicles.csv", "vouchers.csv")

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        encoding = get_encoding(options)
        delimiter = options.get("delimiter", ",")
        has_header = options.get("has_header", True)
        skip_rows = int(options.get("skip_rows", 0))
        quoting = _get_quoting(options)

        with source_path.open("r", encoding=encoding, newline="") as f:
            for _ in range(skip_rows):
                next(f, None)
            if has_header:
                reader = csv.DictReader(f, delimiter=delimiter, quoting=quoting)
                for row in reader:
                    if _is_blank(row):
                        continue
                    yield {
                        **row,
                        SOURCE_FILE_KEY: source_path.name,
                        # Header is line 1 after the skipped rows
                        SOURCE_LINE_KEY: reader.line_num + skip_rows,
                    }
            else:
                columns = options.get("columns")
                if not columns:
                    raise ValueError("has_header=False requires a 'columns' option")
                reader = csv.reader(f, delimiter=delimiter, quoting=quoting)
                for values in reader:
                    row = dict(zip(columns, values))
                    if _is_blank(row):
                        continue
                    yield {
                        **row,
                        SOURCE_FILE_KEY: source_path.name,
                        SOURCE_LINE_KEY: reader.line_num + skip_rows,
                    }

    def inspect(self, source_path: Path, options: dict[str, Any]) -> SourceInspection:
        encoding = get_encoding(options)
        delimiter = options.get("delimiter", ",")
        sample_size = 5

        sample: list[dict[str, Any]] = []
        columns: tuple[str, ...] = ()
        count = 0
        for row in self.read(source_path, options):
            if not columns:
                columns = tuple(k for k in row if isinstance(k, str) and not k.startswith("_"))
            if len(sample) < sample_size:
                sample.append(row)
            count += 1

        return SourceInspection(
            row_count=count,
            columns=columns,
            sample_rows=tuple(sample),
            encoding=encoding,
            detected_delimiter=delimiter,
        )
