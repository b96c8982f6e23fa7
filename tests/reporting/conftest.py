"""
Reporting-specific test fixtures.

Provides:
- ReportingService wired to the test session
- A clock pinned to REPORT_TODAY, which aging tests count back from
"""

from datetime import date

import pytest

from voucher_kernel.domain.clock import DeterministicClock

from voucher_reporting.config import ReportingConfig
from voucher_reporting.service import ReportingService

REPORT_TODAY = date(2024, 6, 1)


@pytest.fixture
def reporting_config() -> ReportingConfig:
    """Standard reporting configuration for tests."""
    return ReportingConfig.with_defaults()


@pytest.fixture
def report_clock() -> DeterministicClock:
    return DeterministicClock.on(REPORT_TODAY)


@pytest.fixture
def reporting_service(session, report_clock, reporting_config) -> ReportingService:
    """ReportingService wired to the test session."""
    return ReportingService(
        session=session,
        clock=report_clock,
        config=reporting_config,
    )
