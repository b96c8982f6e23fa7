"""Database layer - engine, base classes and column types."""

from voucher_kernel.db.base import Base, IdentityKey, TrackedBase
from voucher_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    session_scope,
)
from voucher_kernel.db.types import (
    AMOUNT_DECIMAL_PLACES,
    ZERO,
    from_minor_units,
    to_minor_units,
)

__all__ = [
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "IdentityKey",
    "AMOUNT_DECIMAL_PLACES",
    "ZERO",
    "from_minor_units",
    "to_minor_units",
]
