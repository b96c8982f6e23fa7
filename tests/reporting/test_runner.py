"""Tests for BackgroundReportRunner: reports run off the caller's thread
with their own session."""

import threading
from datetime import date
from decimal import Decimal

import pytest

from voucher_kernel.domain.cancellation import CancellationToken
from voucher_kernel.exceptions import ReportCancelledError

from voucher_reporting.runner import BackgroundReportRunner


@pytest.fixture
def committed_company(session, company, make_vehicle, post_voucher):
    vehicle = make_vehicle("UP-1")
    post_voucher(vehicle, "D", "100", date(2024, 3, 1))
    post_voucher(vehicle, "C", "25", date(2024, 3, 2))
    # The worker opens its own session and sees only committed rows
    session.commit()
    return company


class TestBackgroundReportRunner:
    def test_day_book_on_worker_thread(self, session_factory, report_clock, committed_company):
        with BackgroundReportRunner(session_factory, clock=report_clock) as runner:
            report = runner.submit_day_book(
                committed_company.id, date(2024, 3, 1), date(2024, 3, 31),
            ).result(timeout=30)
        assert report.voucher_count == 2
        assert report.closing_balance == Decimal("75.00")

    def test_job_runs_off_caller_thread(self, session_factory, committed_company):
        caller = threading.get_ident()
        with BackgroundReportRunner(session_factory) as runner:
            worker = runner.submit(lambda service: threading.get_ident()).result(timeout=30)
        assert worker != caller

    def test_cancelled_job_raises_through_future(self, session_factory, committed_company):
        token = CancellationToken()
        token.cancel()
        with BackgroundReportRunner(session_factory) as runner:
            future = runner.submit_day_book(
                committed_company.id, date(2024, 3, 1), date(2024, 3, 31), cancel_token=token,
            )
            with pytest.raises(ReportCancelledError):
                future.result(timeout=30)
