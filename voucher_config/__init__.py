"""
voucher_config -- single public entrypoint for ledger settings.

Responsibility:
    Provides the runtime way to obtain settings through
    ``get_active_settings()``.  Resolution order:

        1. explicit ``config_path`` argument
        2. ``VOUCHER_LEDGER_CONFIG`` environment variable
        3. the packaged ``defaults/ledger.yaml``

    ``VOUCHER_LEDGER_DATABASE_URL``, when set, overrides ``database_url``
    from whichever file was chosen.

Architecture position:
    Configuration.  Sits beside ``voucher_kernel``; the kernel never imports
    from here.  Reporting and ingestion translate settings into their own
    config objects.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path

from voucher_config.loader import load_settings, load_yaml_file, parse_settings
from voucher_config.schema import DEFAULT_LEGACY_DATE_FORMATS, LedgerSettings

_logger = logging.getLogger("voucher_kernel.config")

CONFIG_ENV_VAR = "VOUCHER_LEDGER_CONFIG"
DATABASE_URL_ENV_VAR = "VOUCHER_LEDGER_DATABASE_URL"

_DEFAULT_CONFIG_FILE = Path(__file__).parent / "defaults" / "ledger.yaml"


def get_active_settings(config_path: Path | str | None = None) -> LedgerSettings:
    """
    Resolve the active settings.

    Raises:
        FileNotFoundError: the chosen file does not exist.
        ValueError: the file has unknown keys or invalid values.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    path = Path(config_path or env_path or _DEFAULT_CONFIG_FILE)
    settings = load_settings(path)

    env_url = os.environ.get(DATABASE_URL_ENV_VAR)
    if env_url:
        settings = dataclasses.replace(settings, database_url=env_url)

    _logger.info(
        "ledger_settings_loaded",
        extra={
            "config_path": str(path),
            "database_url_from_env": bool(env_url),
            "day_book_page_size": settings.day_book_page_size,
        },
    )
    return settings


__all__ = [
    "CONFIG_ENV_VAR",
    "DATABASE_URL_ENV_VAR",
    "DEFAULT_LEGACY_DATE_FORMATS",
    "LedgerSettings",
    "get_active_settings",
    "load_settings",
    "load_yaml_file",
    "parse_settings",
]
