"""
Pytest fixtures for the voucher ledger test suite.

Provides:
- A fresh in-memory SQLite database per test
- Deterministic clock
- Factories for companies, vehicles and vouchers
- Structured log capture

Environment Variables:
- VOUCHER_LEDGER_TEST_DATABASE_URL: run against another database instead of
  in-memory SQLite.  Tables are dropped and recreated per test.
"""

import json
import logging
import os
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from voucher_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from voucher_kernel.domain.clock import DeterministicClock
from voucher_kernel.domain.dtos import Side
from voucher_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from voucher_kernel.services.company_service import CompanyService
from voucher_kernel.services.sequence_service import SequenceService
from voucher_kernel.services.vehicle_service import VehicleService
from voucher_kernel.services.voucher_service import VoucherService

DEFAULT_TEST_DATABASE_URL = "sqlite://"


def get_database_url() -> str:
    return os.environ.get("VOUCHER_LEDGER_TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture voucher_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, post_voucher):
            post_voucher(...)
            logs = captured_logs()
            assert any(r["message"] == "voucher_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("voucher_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture(scope="function")
def engine():
    """A freshly created schema, disposed after the test."""
    eng = init_engine_from_url(get_database_url())
    drop_tables()
    create_tables()
    yield eng
    reset_engine()


@pytest.fixture(scope="function")
def session(engine) -> Generator[Session, None, None]:
    """Session bound to the per-test database; rolled back afterwards."""
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture(scope="function")
def session_factory(engine):
    return get_session_factory()


# Clock fixtures


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


# Service fixtures


@pytest.fixture
def sequence_service(session) -> SequenceService:
    return SequenceService(session)


@pytest.fixture
def company_service(session, sequence_service) -> CompanyService:
    return CompanyService(session, sequence_service)


@pytest.fixture
def vehicle_service(session) -> VehicleService:
    return VehicleService(session)


@pytest.fixture
def voucher_service(session, sequence_service) -> VoucherService:
    return VoucherService(session, sequence_service)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_company(company_service):
    """Create companies with unique default names."""
    counter = {"n": 0}

    def _make(name: str | None = None, fy_start: date | None = None, fy_end: date | None = None):
        counter["n"] += 1
        return company_service.create_company(
            name or f"Test Transport Co {counter['n']}",
            fy_start or date(2024, 4, 1),
            fy_end or date(2025, 3, 31),
        )

    return _make


@pytest.fixture
def company(make_company):
    return make_company()


@pytest.fixture
def make_vehicle(vehicle_service, company):
    """Create a vehicle in the default company unless another is given."""

    def _make(code: str, narration: str = "", company_id: int | None = None):
        return vehicle_service.create_vehicle(
            company_id if company_id is not None else company.id, code, narration,
        )

    return _make


@pytest.fixture
def post_voucher(voucher_service):
    """
    Post a voucher with an allocated number.

    Usage::

        post_voucher(vehicle, "D", "100.00", date(2024, 3, 1))
    """

    def _post(
        vehicle,
        side: Side | str,
        amount: str | int | Decimal,
        voucher_date: date,
        narration: str = "",
        voucher_number: int | None = None,
    ):
        return voucher_service.create_voucher(
            vehicle.company_id,
            vehicle.id,
            voucher_date,
            amount,
            side,
            narration=narration,
            voucher_number=voucher_number,
        )

    return _post
