"""
Ledger settings schema.

The human-authored YAML file is parsed into ``LedgerSettings`` by the
loader.  Every field has a default, so an empty file is a valid
configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_LEGACY_DATE_FORMATS: tuple[str, ...] = (
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%d-%m-%y",
    "%d/%m/%y",
)


@dataclass(frozen=True)
class LedgerSettings:
    """Runtime settings for the ledger engine, reports and importer."""

    database_url: str = "sqlite:///voucher_ledger.db"
    echo: bool = False

    # Paging
    day_book_page_size: int = 500

    # Voucher numbering
    voucher_number_retry_attempts: int = 3

    # Aging / recovery statement
    aging_default_days: int = 30
    aging_group_header_min: int = 3
    never_transacted_days: int = 9999

    amount_decimal_places: int = 2

    # strptime formats tried in order by the legacy text importer
    legacy_date_formats: tuple[str, ...] = field(
        default_factory=lambda: DEFAULT_LEGACY_DATE_FORMATS
    )

    def __post_init__(self) -> None:
        for name in (
            "day_book_page_size",
            "voucher_number_retry_attempts",
            "aging_default_days",
            "aging_group_header_min",
            "never_transacted_days",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if self.amount_decimal_places != 2:
            raise ValueError(
                "amount_decimal_places is fixed at 2 for stored minor units, "
                f"got {self.amount_decimal_places!r}"
            )
        if not self.legacy_date_formats:
            raise ValueError("legacy_date_formats must not be empty")
