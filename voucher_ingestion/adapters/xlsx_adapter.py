"""
XLSX source adapter for vehicle and voucher sheets exported from spreadsheets.

Supports:
  - sheet by index (0-based) or name
  - header row by index (0-based, after skip_rows)
  - skip_rows before header
  - normalizes cell values (strip, blank->empty string); dates stay dates
"""

from __future__ import annotations

import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterator

from voucher_ingestion.adapters.base import SOURCE_FILE_KEY, SOURCE_LINE_KEY, SourceInspection

_MAX_ROWS = 100_000


def _normalize_header_cell(value: Any) -> str:
    """Normalize a cell value for use as a column key."""
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def _cell_value(cell: Any) -> Any:
    if cell is None:
        return ""
    v = cell.value
    if v is None:
        return ""
    if isinstance(v, datetime):
        return v.date() if v.time() == datetime.min.time() else v
    if isinstance(v, date):
        return v
    if isinstance(v, float):
        if v == int(v):
            return int(v)
        return v
    if isinstance(v, (int, bool)):
        return v
    return str(v).strip()


class XlsxSourceAdapter:
    """
    Read .xlsx files as one dict per row, using the header row as column names.

    source_options:
      sheet: 0-based sheet index (int) or sheet name (str). Default: active sheet.
      skip_rows: rows to skip at top of sheet before the header. Default: 0.
      header_row: 0-based row index (after skip_rows) holding the header. Default: 0.
    """

    listing_names: tuple[str, ...] = ("vehicles.xlsx", "vouchers.xlsx")

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        import openpyxl

        wb = openpyxl.load_workbook(source_path, read_only=True, data_only=True)
        try:
            sheet = self._get_sheet(wb, options)
            skip_rows = int(options.get("skip_rows", 0))
            header_idx = int(options.get("header_row", 0))

            headers: list[str] | None = None
            for idx, row in enumerate(
                sheet.iter_rows(min_row=1 + skip_rows, max_row=_MAX_ROWS)
            ):
                if idx < header_idx:
                    continue
                if headers is None:
                    headers = self._headers(row)
                    continue
                vals = [_cell_value(cell) for cell in row[: len(headers)]]
                if not any(v != "" for v in vals):
                    continue
                yield {
                    **dict(zip(headers, vals)),
                    SOURCE_FILE_KEY: source_path.name,
                    SOURCE_LINE_KEY: idx + 1 + skip_rows,
                }
        finally:
            wb.close()

    def _get_sheet(self, wb: Any, options: dict[str, Any]) -> Any:
        sheet_ref = options.get("sheet")
        if sheet_ref is None:
            return wb.active
        if isinstance(sheet_ref, int):
            return wb.worksheets[sheet_ref]
        return wb[sheet_ref]

    @staticmethod
    def _headers(row: Any) -> list[str]:
        headers: list[str] = []
        for c, cell in enumerate(row):
            key = _normalize_header_cell(cell.value if cell is not None else None)
            key = key or f"Column_{c + 1}"
            base = key
            cnt = 0
            while key in headers:
                cnt += 1
                key = f"{base}_{cnt}"
            headers.append(key)
        # Trailing unnamed columns carry nothing
        while headers and headers[-1].startswith("Column_"):
            headers.pop()
        return headers

    def inspect(self, source_path: Path, options: dict[str, Any]) -> SourceInspection:
        sample_size = 5
        sample: list[dict[str, Any]] = []
        columns: tuple[str, ...] = ()
        count = 0
        for row in self.read(source_path, options):
            if not columns:
                columns = tuple(k for k in row if not k.startswith("_"))
            if len(sample) < sample_size:
                sample.append(row)
            count += 1
        return SourceInspection(
            row_count=count,
            columns=columns,
            sample_rows=tuple(sample),
            encoding=None,
            detected_delimiter=None,
        )
