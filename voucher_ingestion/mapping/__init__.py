"""Raw-row to typed-record mapping (pure)."""

from voucher_ingestion.mapping.engine import (
    FIELD_ALIASES,
    MappedRecords,
    MappingError,
    classify,
    coerce_amount,
    coerce_date,
    coerce_side,
    coerce_voucher_number,
    map_records,
    map_voucher,
    normalize_row,
)

__all__ = [
    "FIELD_ALIASES",
    "MappedRecords",
    "MappingError",
    "classify",
    "coerce_amount",
    "coerce_date",
    "coerce_side",
    "coerce_voucher_number",
    "map_records",
    "map_voucher",
    "normalize_row",
]
