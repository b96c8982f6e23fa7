"""
Settings loader (``voucher_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into a frozen
``LedgerSettings``.  Runtime callers go through
``voucher_config.get_active_settings()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from voucher_config.schema import LedgerSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def parse_settings(data: dict[str, Any]) -> LedgerSettings:
    """Build LedgerSettings from a dict, rejecting unknown keys."""
    # Accept either a flat mapping or one nested under "ledger:".
    if "ledger" in data and isinstance(data["ledger"], dict):
        data = data["ledger"]

    known = {f.name for f in fields(LedgerSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown settings keys: {', '.join(unknown)}")

    kwargs = dict(data)
    if "legacy_date_formats" in kwargs:
        kwargs["legacy_date_formats"] = tuple(kwargs["legacy_date_formats"])
    return LedgerSettings(**kwargs)


def load_settings(path: Path | str) -> LedgerSettings:
    """Load and parse a settings file."""
    return parse_settings(load_yaml_file(Path(path)))
