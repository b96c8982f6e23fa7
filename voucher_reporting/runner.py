"""
Background report execution.

Runs a report on a single worker thread with its own session, so a caller
(a UI loop, a CLI progress bar) is not blocked.  Reports themselves stay
sequential: one worker, no parallelism inside a report.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date
from typing import Callable, TypeVar

from sqlalchemy.orm import Session, sessionmaker

from voucher_kernel.db.engine import get_session_factory
from voucher_kernel.domain.cancellation import CancellationToken
from voucher_kernel.domain.clock import Clock
from voucher_kernel.logging_config import get_logger

from voucher_reporting.config import ReportingConfig
from voucher_reporting.models import DayBookReport
from voucher_reporting.service import ReportingService

logger = get_logger("reporting.runner")

T = TypeVar("T")


class BackgroundReportRunner:
    """
    Single-worker executor for report jobs.

    Usage:
        with BackgroundReportRunner() as runner:
            token = CancellationToken()
            future = runner.submit_day_book(company_id, start, end, token)
            ...
            token.cancel()        # optional
            report = future.result()
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session_factory = session_factory or get_session_factory()
        self._clock = clock
        self._config = config
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="report")

    def submit(self, job: Callable[[ReportingService], T]) -> Future[T]:
        """Run job(service) on the worker with a fresh session."""

        def run() -> T:
            session = self._session_factory()
            try:
                service = ReportingService(session, self._clock, self._config)
                return job(service)
            finally:
                session.close()

        logger.debug("report_job_submitted")
        return self._executor.submit(run)

    def submit_day_book(
        self,
        company_id: int,
        start: date,
        end: date,
        cancel_token: CancellationToken | None = None,
    ) -> Future[DayBookReport]:
        return self.submit(
            lambda service: service.day_book(company_id, start, end, cancel_token=cancel_token)
        )

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> BackgroundReportRunner:
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()
