"""
Mapping engine: pure transformation from raw source dicts to typed records.

Adapters hand over dicts keyed by whatever the file calls its columns.  This
module resolves column aliases, decides whether a row is a vehicle or a
voucher, and coerces strings (or spreadsheet cells) to typed values.
ZERO I/O.

Failures are collected per row, never raised: a bad line must not stop the
rest of the listing from being read.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from voucher_kernel.domain.dtos import Side
from voucher_kernel.exceptions import InvalidSideError
from voucher_kernel.services.voucher_service import MAX_VOUCHER_NUMBER

from voucher_config.schema import DEFAULT_LEGACY_DATE_FORMATS
from voucher_ingestion.adapters.base import SOURCE_FILE_KEY, SOURCE_LINE_KEY
from voucher_ingestion.domain.types import ParsedVoucherLine

# canonical field -> accepted column names (normalized: lower, single spaces)
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "record_type": ("record_type", "record type", "type"),
    "code": (
        "code", "vehicle", "vehicle_code", "vehicle code", "vehicle number",
        "vehicle_number", "vehicle no", "a/c name", "account", "name",
    ),
    "voucher_number": (
        "voucher_number", "voucher number", "voucher no", "voucher no.",
        "v. no.", "v.no.", "vno", "number",
    ),
    "date": ("date", "voucher_date", "voucher date"),
    "amount": ("amount",),
    "side": ("side", "d/c", "dr/cr", "drcr", "dc"),
    "narration": ("narration", "description", "memo"),
}

_ALIAS_LOOKUP: dict[str, str] = {
    alias: canonical
    for canonical, aliases in FIELD_ALIASES.items()
    for alias in aliases
}


class MappingError(ValueError):
    """A single field could not be coerced."""


@dataclass(frozen=True)
class MappedRecords:
    """Typed records from one or more listings, plus per-row failures."""

    vehicle_codes: tuple[str, ...] = ()
    voucher_lines: tuple[ParsedVoucherLine, ...] = ()
    errors: tuple[str, ...] = ()


@dataclass
class _Collector:
    vehicle_codes: list[str] = field(default_factory=list)
    seen_codes: set[str] = field(default_factory=set)
    voucher_lines: list[ParsedVoucherLine] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def freeze(self) -> MappedRecords:
        return MappedRecords(
            vehicle_codes=tuple(self.vehicle_codes),
            voucher_lines=tuple(self.voucher_lines),
            errors=tuple(self.errors),
        )


# -----------------------------------------------------------------------------
# Coercion (pure)
# -----------------------------------------------------------------------------


def normalize_key(key: Any) -> str | None:
    if not isinstance(key, str):
        return None
    return re.sub(r"\s+", " ", key).strip().lower()


def normalize_row(raw: dict[str, Any]) -> dict[str, Any]:
    """Canonical field name -> value; unknown and traceability keys dropped."""
    row: dict[str, Any] = {}
    for key, value in raw.items():
        norm = normalize_key(key)
        if norm is None or norm.startswith("_"):
            continue
        canonical = _ALIAS_LOOKUP.get(norm)
        if canonical is None or canonical in row:
            continue
        if isinstance(value, str):
            value = value.strip()
        row[canonical] = value
    return row


def coerce_date(value: Any, formats: Iterable[str] = DEFAULT_LEGACY_DATE_FORMATS) -> date:
    """Date from a date cell or a string in one of the given strptime formats."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        raise MappingError("date is missing")
    # ISO dates are accepted from any format
    for fmt in ("%Y-%m-%d", *formats):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise MappingError(f"unrecognised date {text!r}")


def coerce_amount(value: Any) -> Decimal:
    """Decimal amount; thousands separators allowed, sign and precision checked later."""
    if isinstance(value, bool):
        raise MappingError(f"invalid amount {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # Spreadsheet cells; repr keeps the shortest exact form
        return Decimal(repr(value))
    text = str(value or "").replace(",", "").strip()
    if not text:
        raise MappingError("amount is missing")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise MappingError(f"invalid amount {value!r}") from None
    if not amount.is_finite():
        raise MappingError(f"invalid amount {value!r}")
    return amount


def coerce_voucher_number(value: Any) -> int:
    if isinstance(value, bool):
        raise MappingError(f"invalid voucher number {value!r}")
    if isinstance(value, int):
        number = value
    else:
        text = str(value or "").strip()
        if not text.isdigit():
            raise MappingError(f"invalid voucher number {value!r}")
        number = int(text)
    if number > MAX_VOUCHER_NUMBER:
        raise MappingError(f"voucher number too large {value!r}")
    return number


def coerce_side(value: Any) -> Side:
    try:
        return Side.parse(value)
    except InvalidSideError as exc:
        raise MappingError(str(exc)) from None


def classify(row: dict[str, Any]) -> str | None:
    """'vehicle', 'voucher' or None for a normalized row."""
    explicit = str(row.get("record_type") or "").strip().lower()
    if explicit in ("vehicle", "vehicles"):
        return "vehicle"
    if explicit in ("voucher", "vouchers"):
        return "voucher"
    if row.get("date") not in (None, "") or row.get("amount") not in (None, ""):
        return "voucher"
    if row.get("code") not in (None, ""):
        return "vehicle"
    return None


def map_voucher(
    row: dict[str, Any],
    formats: Iterable[str] = DEFAULT_LEGACY_DATE_FORMATS,
    source: str | None = None,
) -> ParsedVoucherLine:
    """
    Typed voucher from a normalized row.

    Raises:
        MappingError: a required field is missing or cannot be coerced.
    """
    code = str(row.get("code") or "").strip()
    if not code:
        raise MappingError("vehicle code is missing")
    return ParsedVoucherLine(
        voucher_number=coerce_voucher_number(row.get("voucher_number")),
        voucher_date=coerce_date(row.get("date"), formats),
        vehicle_code=code,
        amount=coerce_amount(row.get("amount")),
        side=coerce_side(row.get("side")),
        narration=str(row.get("narration") or ""),
        source=source,
    )


def _source_label(raw: dict[str, Any]) -> str | None:
    file_name = raw.get(SOURCE_FILE_KEY)
    line_no = raw.get(SOURCE_LINE_KEY)
    if file_name is None:
        return None
    return f"{file_name}:{line_no}" if line_no is not None else str(file_name)


def map_records(
    rows: Iterable[dict[str, Any]],
    formats: Iterable[str] = DEFAULT_LEGACY_DATE_FORMATS,
) -> MappedRecords:
    """
    Split raw rows into vehicle codes and voucher lines.

    Vehicle codes are de-duplicated case-insensitively, first spelling wins.
    Rows that are neither, or that fail coercion, become error messages.
    """
    formats = tuple(formats)
    out = _Collector()
    for index, raw in enumerate(rows, start=1):
        source = _source_label(raw) or f"row {index}"
        row = normalize_row(raw)
        kind = classify(row)
        if kind == "vehicle":
            code = str(row.get("code") or "").strip()
            if not code:
                out.errors.append(f"{source}: vehicle code is missing")
                continue
            key = code.casefold()
            if key not in out.seen_codes:
                out.seen_codes.add(key)
                out.vehicle_codes.append(code)
        elif kind == "voucher":
            try:
                out.voucher_lines.append(map_voucher(row, formats, source))
            except MappingError as exc:
                out.errors.append(f"{source}: {exc}")
        else:
            out.errors.append(f"{source}: not a vehicle or voucher record")
    return out.freeze()
