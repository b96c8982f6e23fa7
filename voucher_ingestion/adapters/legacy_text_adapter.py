"""
Legacy text listing adapter (VEH.TXT / VCH.TXT).

The old DOS bookkeeping program printed two fixed-layout listings:

    VEHICLE NUMBER LIST                         PAGE NO 1
    ==========================================
    S.No   Vehicle Number
       1   UP-25AB-1234
       2   MH12 ZZ 0001

    CASH VOUCHER LIST                           PAGE NO 1
    ==========================================
    V. No.  Date        A/C Name          Amount  D/C
       101  05-03-2024  UP-25AB-1234    1,250.00  D

Page banners, rules and column headings are skipped.  Data lines are
matched with tolerant regular expressions; anything else is ignored, the
way the listings were always read.

Records are yielded with string fields only.  Date and amount coercion
happen in voucher_ingestion.mapping so every format shares one rule set.

Options:
    listing: "vehicles" or "vouchers"; overrides detection from the file name.
    encoding: default utf-8 (BOM stripped); undecodable bytes are replaced.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterator

from voucher_ingestion.adapters.base import (
    SOURCE_FILE_KEY,
    SOURCE_LINE_KEY,
    SourceInspection,
    get_encoding,
)

VEHICLE_LISTING = "VEH.TXT"
VOUCHER_LISTING = "VCH.TXT"

MIN_VEHICLE_CODE_LENGTH = 3

_VEHICLE_LINE = re.compile(r"^\s*([0-9]+)\s+(.+?)\s*$")
_VOUCHER_LINE = re.compile(
    r"^\s*(?P<vno>\d+)\s+"
    r"(?P<date>\d{1,2}[-/]\d{1,2}[-/]\d{2,4})\s+"
    r"(?P<name>.+?)\s+"
    r"(?P<amount>[0-9,]+(?:\.\d{1,2})?)\s+"
    r"(?P<dc>[DC])\s*$"
)

_VEHICLE_NOISE = ("PAGE NO", "VEHICLE NUMBER LIST")
_VOUCHER_NOISE = ("PAGE NO", "CASH VOUCHER LIST")


def parse_vehicle_line(raw: str) -> str | None:
    """Vehicle code from one VEH.TXT line, or None for noise and short codes."""
    line = raw.strip()
    if not line:
        return None
    if line.startswith("====") or line.startswith("S.No"):
        return None
    if any(marker in line for marker in _VEHICLE_NOISE):
        return None
    m = _VEHICLE_LINE.match(line)
    if not m:
        return None
    code = m.group(2).strip()
    if len(code) < MIN_VEHICLE_CODE_LENGTH:
        return None
    return code


def parse_voucher_line(raw: str) -> dict[str, str] | None:
    """String fields of one VCH.TXT line, or None when it is not a data line."""
    line = raw.rstrip()
    if not line.strip():
        return None
    stripped = line.lstrip()
    if stripped.startswith("====") or stripped.startswith("V. No."):
        return None
    if any(marker in line for marker in _VOUCHER_NOISE):
        return None
    m = _VOUCHER_LINE.match(line)
    if not m:
        return None
    return {
        "voucher_number": m.group("vno"),
        "date": m.group("date"),
        "vehicle_code": m.group("name").strip(),
        "amount": m.group("amount"),
        "side": m.group("dc").upper(),
    }


def detect_listing(source_path: Path, options: dict[str, Any]) -> str:
    """'vehicles' or 'vouchers' from the listing option or the file name."""
    listing = options.get("listing")
    if listing in ("vehicles", "vouchers"):
        return listing
    if listing is not None:
        raise ValueError(f"listing must be 'vehicles' or 'vouchers', got {listing!r}")
    name = source_path.name.upper()
    if name.startswith("VCH"):
        return "vouchers"
    if name.startswith("VEH"):
        return "vehicles"
    raise ValueError(
        f"Cannot tell whether {source_path.name!r} is a vehicle or voucher listing; "
        "pass listing='vehicles' or listing='vouchers'"
    )


def _lines(source_path: Path, options: dict[str, Any]) -> Iterator[tuple[int, str]]:
    with source_path.open("r", encoding=get_encoding(options), errors="replace") as f:
        for line_no, line in enumerate(f, start=1):
            yield line_no, line.rstrip("\r\n")


class LegacyTextAdapter:
    """Read VEH.TXT / VCH.TXT print listings as vehicle and voucher records."""

    listing_names: tuple[str, ...] = (VEHICLE_LISTING, VOUCHER_LISTING)

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        if detect_listing(source_path, options) == "vehicles":
            yield from self._read_vehicles(source_path, options)
        else:
            yield from self._read_vouchers(source_path, options)

    def _read_vehicles(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        seen: set[str] = set()
        for line_no, line in _lines(source_path, options):
            code = parse_vehicle_line(line)
            if code is None:
                continue
            key = code.casefold()
            if key in seen:
                continue
            seen.add(key)
            yield {
                "record_type": "vehicle",
                "code": code,
                SOURCE_FILE_KEY: source_path.name,
                SOURCE_LINE_KEY: line_no,
            }

    def _read_vouchers(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        for line_no, line in _lines(source_path, options):
            fields = parse_voucher_line(line)
            if fields is None:
                continue
            yield {
                "record_type": "voucher",
                **fields,
                SOURCE_FILE_KEY: source_path.name,
                SOURCE_LINE_KEY: line_no,
            }

    def inspect(self, source_path: Path, options: dict[str, Any]) -> SourceInspection:
        sample_size = 5
        sample: list[dict[str, Any]] = []
        count = 0
        for record in self.read(source_path, options):
            if len(sample) < sample_size:
                sample.append(record)
            count += 1
        columns = tuple(
            k for k in (sample[0] if sample else {}) if not k.startswith("_")
        )
        return SourceInspection(
            row_count=count,
            columns=columns,
            sample_rows=tuple(sample),
            encoding=get_encoding(options),
            detected_delimiter=None,
        )
