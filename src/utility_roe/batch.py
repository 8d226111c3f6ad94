"""Batch ROE processing over a fixed list of companies.

Per company:  pending → running → succeeded | failed
Whole batch:  pending → running → complete (BatchOutcome)

Companies are split into fixed-size batches and processed one at a time,
each gated by the shared RateLimiter. A failing company is recorded and
skipped; it never stops the batch. Network errors get a bounded number of
retries with exponential backoff, every other error is permanent.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from enum import Enum
from typing import Callable

import pandas as pd

from utility_roe.errors import NetworkError
from utility_roe.models import (
    BatchOutcome,
    BatchStatistics,
    CompanyIdentity,
    FailureRecord,
    FiscalPeriod,
    ROEResult,
)
from utility_roe.rate_limiter import RateLimiter
from utility_roe.roe import ROECalculator, utc_timestamp

log = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str, int, int], None]


class CompanyStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class BatchState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"


def compute_statistics(values: Iterable[float]) -> BatchStatistics:
    """Mean, median, min, max and population std-dev of ROE values.

    An empty input gives all-zero statistics.
    """
    series = pd.Series(list(values), dtype="float64")
    if series.empty:
        return BatchStatistics()
    return BatchStatistics(
        count=int(series.size),
        average_roe=float(series.mean()),
        median_roe=float(series.median()),
        min_roe=float(series.min()),
        max_roe=float(series.max()),
        std_deviation=float(series.std(ddof=0)),
    )


def top_performers(outcome: BatchOutcome, limit: int = 10) -> list[ROEResult]:
    """Successful results ranked by ROE, highest first."""
    return sorted(outcome.successful, key=lambda r: r.roe, reverse=True)[:limit]


class BatchOrchestrator:
    """Drive ROECalculator across many companies.

    Args:
        calculator: ROECalculator whose client shares *rate_limiter*
        rate_limiter: the upstream budget; acquired once per company
        batch_size: companies per batch
        batch_pause: seconds slept between batches (not after the last)
        max_retries: extra attempts for a company after a NetworkError
        progress: optional callback(ticker, status, index, total)
    """

    def __init__(
        self,
        calculator: ROECalculator,
        rate_limiter: RateLimiter,
        *,
        batch_size: int = 10,
        batch_pause: float = 2.0,
        max_retries: int = 0,
        fiscal_period: FiscalPeriod | str = FiscalPeriod.ANNUAL,
        progress: ProgressCallback | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        self.calculator = calculator
        self.rate_limiter = rate_limiter
        self.batch_size = batch_size
        self.batch_pause = batch_pause
        self.max_retries = max_retries
        self.fiscal_period = FiscalPeriod.parse(fiscal_period)
        self.progress = progress
        self._sleep = sleep
        self.state = BatchState.PENDING
        self.statuses: list[CompanyStatus] = []

    # ── Public entry point ────────────────────────────────────────────

    def run(self, companies: Iterable[CompanyIdentity]) -> BatchOutcome:
        """Process every company and return the aggregated outcome."""
        companies = list(companies)
        total = len(companies)
        self.statuses = [CompanyStatus.PENDING] * total
        self.state = BatchState.RUNNING
        started_at = utc_timestamp()

        successful: list[ROEResult] = []
        times_ms: list[int] = []
        failed: list[FailureRecord] = []

        batches = [companies[i:i + self.batch_size] for i in range(0, total, self.batch_size)]
        log.info(
            "Starting batch ROE processing: %d companies, %d batches of %d (%s)",
            total, len(batches), self.batch_size, self.fiscal_period.value,
        )

        index = 0
        for batch_index, batch in enumerate(batches):
            log.info("Processing batch %d/%d (%d companies)", batch_index + 1, len(batches), len(batch))
            batch_ok = 0
            for company in batch:
                self._set_status(index, company, CompanyStatus.RUNNING, total)
                self.rate_limiter.acquire()
                outcome, elapsed_ms = self._process_company(company)
                if isinstance(outcome, ROEResult):
                    successful.append(outcome)
                    times_ms.append(elapsed_ms)
                    batch_ok += 1
                    self._set_status(index, company, CompanyStatus.SUCCEEDED, total)
                else:
                    failed.append(outcome)
                    self._set_status(index, company, CompanyStatus.FAILED, total)
                index += 1

            log.info(
                "Batch %d summary: %d succeeded, %d failed (%.1f%%)",
                batch_index + 1, batch_ok, len(batch) - batch_ok,
                batch_ok / len(batch) * 100,
            )
            if batch_index < len(batches) - 1 and self.batch_pause > 0:
                log.info("Pausing %.1fs between batches", self.batch_pause)
                self._sleep(self.batch_pause)

        outcome = BatchOutcome(
            successful=tuple(successful),
            processing_times_ms=tuple(times_ms),
            failed=tuple(failed),
            statistics=compute_statistics(r.roe for r in successful),
            fiscal_period=self.fiscal_period.value,
            target_fiscal_year=(
                self.calculator.preferred_year
                if self.fiscal_period is FiscalPeriod.ANNUAL else None
            ),
            batch_size=self.batch_size,
            started_at=started_at,
            finished_at=utc_timestamp(),
        )
        self.state = BatchState.COMPLETE
        log.info(
            "Batch ROE processing complete: %d/%d succeeded (%.2f%%)",
            len(successful), total, outcome.success_rate,
        )
        return outcome

    # ── Per-company processing ────────────────────────────────────────

    def _process_company(
        self, company: CompanyIdentity,
    ) -> tuple[ROEResult | FailureRecord, int]:
        """Outcome for one company and the time it took in ms."""
        start = time.monotonic()
        attempt = 0
        while True:
            try:
                result = self.calculator.calculate(company, self.fiscal_period)
            except NetworkError as exc:
                if attempt < self.max_retries:
                    log.warning("%s: %s; retrying", company.ticker, exc)
                    self.rate_limiter.handle_error(attempt)
                    attempt += 1
                    continue
                error: Exception = exc
            except Exception as exc:
                error = exc
            else:
                elapsed_ms = int((time.monotonic() - start) * 1000)
                log.info(
                    "%s: ROE = %s (%dms)",
                    company.ticker, result.roe_calculation.percentage, elapsed_ms,
                )
                return result, elapsed_ms

            elapsed_ms = int((time.monotonic() - start) * 1000)
            log.warning("%s: %s (%dms)", company.ticker, error, elapsed_ms)
            return FailureRecord(
                ticker=company.ticker,
                cik=company.cik,
                company_name=company.name,
                error_message=str(error),
                processing_time_ms=elapsed_ms,
                timestamp=utc_timestamp(),
            ), elapsed_ms

    def _set_status(
        self,
        index: int,
        company: CompanyIdentity,
        status: CompanyStatus,
        total: int,
    ) -> None:
        self.statuses[index] = status
        if self.progress is not None:
            self.progress(company.ticker, status.value, index + 1, total)
