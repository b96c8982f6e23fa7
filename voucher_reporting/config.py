"""
Reporting Configuration Schema.

Paging, aging thresholds and grouping options for the report generator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Self

from voucher_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from voucher_config.schema import LedgerSettings

logger = get_logger("reporting.config")


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting package.

    Controls day book paging, aging defaults, and grouping.
    """

    # Vouchers fetched per day book page
    day_book_page_size: int = 500

    # Aging / recovery
    aging_default_days: int = 30
    aging_group_header_min: int = 3
    never_transacted_days: int = 9999

    # Prefix grouping: fallback length and the key for empty codes
    prefix_fallback_length: int = 5
    empty_code_group: str = "OTHER"

    def __post_init__(self):
        if self.day_book_page_size <= 0:
            raise ValueError("day_book_page_size must be positive")
        if self.aging_group_header_min < 1:
            raise ValueError("aging_group_header_min must be at least 1")
        if self.prefix_fallback_length < 1:
            raise ValueError("prefix_fallback_length must be at least 1")

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary."""
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)

    @classmethod
    def from_settings(cls, settings: LedgerSettings) -> Self:
        """Derive reporting config from the ledger settings file."""
        return cls(
            day_book_page_size=settings.day_book_page_size,
            aging_default_days=settings.aging_default_days,
            aging_group_header_min=settings.aging_group_header_min,
            never_transacted_days=settings.never_transacted_days,
        )
