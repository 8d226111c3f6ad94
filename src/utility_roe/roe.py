"""Return on Equity extraction with full traceability.

Data flow for one company:
  1. FilingsClient.fetch_submissions() + fetch_facts()  (concurrently)
  2. tag_resolver.resolve()  → net income series, equity series
  3. period_selector.select_target_year()  → anchor / latest full year
  4. period_selector.select()  → one observation per metric
  5. validate equity > 0, ratio = income / equity
  6. ROEResult with source filing, tags, raw values and formula

Nothing is cached: every call re-reads upstream and builds a fresh result.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Protocol

from utility_roe.errors import InvalidDataError, ROEError
from utility_roe.models import (
    CompanyIdentity,
    FiscalPeriod,
    HistoricalROE,
    MetricValue,
    ResolvedMetric,
    ROECalculation,
    ROEResult,
    TagSeries,
)
from utility_roe.period_selector import select, select_target_year
from utility_roe.sec_client import ARCHIVE_BASE, build_filing_url
from utility_roe.tag_resolver import resolve
from utility_roe.xbrl_mappings import (
    METRIC_LABELS,
    NET_INCOME,
    STOCKHOLDERS_EQUITY,
    ConceptEntry,
)

log = logging.getLogger(__name__)

DEFAULT_LOOKBACK_YEARS = 20


class FactsSource(Protocol):
    """The part of FilingsClient the calculator depends on."""

    def fetch_submissions(self, cik: int | str) -> dict: ...

    def fetch_facts(self, cik: int | str) -> dict: ...


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _fmt_raw(v: int | float) -> str:
    """Raw value with thousands separators (2854000000 → 2,854,000,000)."""
    if isinstance(v, float) and v.is_integer():
        v = int(v)
    return f"{v:,}"


def format_percentage(ratio: float) -> str:
    return f"{ratio * 100:.2f}%"


class ROECalculator:
    """Compose tag resolution and period selection into one ROE figure.

    Args:
        client: FilingsClient (or any FactsSource, e.g. a test fixture)
        preferred_year: anchor fiscal year tried first for annual ROE
        lookback_years: bound on the historical series window
    """

    def __init__(
        self,
        client: FactsSource,
        *,
        preferred_year: int | None = None,
        lookback_years: int = DEFAULT_LOOKBACK_YEARS,
        net_income_concepts: list[ConceptEntry] = NET_INCOME,
        equity_concepts: list[ConceptEntry] = STOCKHOLDERS_EQUITY,
        archive_base: str = ARCHIVE_BASE,
    ):
        self.client = client
        self.preferred_year = preferred_year
        self.lookback_years = lookback_years
        self.net_income_concepts = net_income_concepts
        self.equity_concepts = equity_concepts
        self.archive_base = archive_base

    # ── Single calculation ────────────────────────────────────────────

    def calculate(
        self,
        company: CompanyIdentity,
        fiscal_period: FiscalPeriod | str = FiscalPeriod.ANNUAL,
    ) -> ROEResult:
        """Calculate ROE for *company*.

        Errors keep their type and get the company attached, so the message
        reads "ROE calculation failed for TICKER (CIK: ...): ...".
        """
        period = FiscalPeriod.parse(fiscal_period)
        try:
            submissions, facts = self._fetch(company)
            return self._build_result(company, period, submissions, facts)
        except ROEError as exc:
            exc.company = company
            raise

    def _fetch(self, company: CompanyIdentity) -> tuple[dict, dict]:
        """Fetch submissions and facts concurrently; both must finish."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            submissions = pool.submit(self.client.fetch_submissions, company.cik)
            facts = pool.submit(self.client.fetch_facts, company.cik)
            return submissions.result(), facts.result()

    def _build_result(
        self,
        company: CompanyIdentity,
        period: FiscalPeriod,
        submissions: dict,
        facts: dict,
    ) -> ROEResult:
        flags: list[str] = []

        income_series = resolve(facts, self.net_income_concepts, METRIC_LABELS["net_income"])
        equity_series = resolve(facts, self.equity_concepts, METRIC_LABELS["stockholders_equity"])

        target_year = None
        if period is FiscalPeriod.ANNUAL:
            year_selection = select_target_year(income_series, self.preferred_year)
            target_year = year_selection.year
            flags.extend(year_selection.flags)

        log.debug(
            "Extracting %s for %s, target year %s (%d income observations)",
            period.value, company.ticker, target_year, len(income_series.observations),
        )

        net_income = ResolvedMetric(
            tag=income_series.tag,
            observation=select(income_series, period, target_year),
        )
        equity = ResolvedMetric(
            tag=equity_series.tag,
            observation=select(equity_series, period, target_year),
        )

        if equity.value <= 0:
            raise InvalidDataError(f"Invalid equity value: {equity.value}")

        ratio = net_income.value / equity.value
        percentage = format_percentage(ratio)
        flags.extend(self._quality_flags(net_income, equity))

        company_name = facts.get("entityName")
        if not company_name:
            company_name = company.name
            flags.append("Entity name missing from company facts")

        sic = submissions.get("sic")
        income_obs = net_income.observation
        accession = income_obs.accn

        return ROEResult(
            ticker=company.ticker,
            cik=company.cik,
            company_name=company_name,
            sic_code=str(sic) if sic else company.sic_code,
            fiscal_year=target_year if target_year is not None else income_obs.fy,
            fiscal_period=period.value,
            filing_date=income_obs.filed.isoformat() if income_obs.filed else None,
            accession_number=accession,
            filing_url=(
                build_filing_url(company.cik, accession, self.archive_base)
                if accession else None
            ),
            net_income=MetricValue(value=net_income.value, tag=net_income.tag, unit=net_income.unit),
            stockholders_equity=MetricValue(value=equity.value, tag=equity.tag, unit=equity.unit),
            roe_calculation=ROECalculation(
                formula=f"ROE = {_fmt_raw(net_income.value)} ÷ {_fmt_raw(equity.value)} = {percentage}",
                value=ratio,
                percentage=percentage,
            ),
            extraction_timestamp=utc_timestamp(),
            data_quality_flags=tuple(flags),
            net_income_metric=net_income,
            equity_metric=equity,
        )

    def _quality_flags(self, net_income: ResolvedMetric, equity: ResolvedMetric) -> list[str]:
        flags: list[str] = []
        if net_income.tag != self.net_income_concepts[0].qualified_name:
            flags.append(f"Net income from fallback tag {net_income.tag}")
        if equity.tag != self.equity_concepts[0].qualified_name:
            flags.append(f"Equity from fallback tag {equity.tag}")

        ni, eq = net_income.observation, equity.observation
        if ni.end != eq.end:
            flags.append(f"Net income period end {ni.end} differs from equity date {eq.end}")
        for label, obs in (("Net income", ni), ("Equity", eq)):
            if obs.is_amendment:
                flags.append(f"{label} taken from amended filing ({obs.form} {obs.accn})")
        if ni.val < 0:
            flags.append("Negative net income")
        return flags

    # ── Historical series ─────────────────────────────────────────────

    def history(
        self,
        company: CompanyIdentity,
        end_year: int | None = None,
        lookback_years: int | None = None,
    ) -> list[HistoricalROE]:
        """Best-effort annual ROE series, oldest first.

        Applies the same resolver/selector per year over a bounded window
        ending at *end_year* (default: target-year policy). Years that
        cannot be resolved are left out. Upstream fetch errors propagate.
        """
        lookback = min(lookback_years or self.lookback_years, self.lookback_years)
        try:
            facts = self.client.fetch_facts(company.cik)
        except ROEError as exc:
            exc.company = company
            raise

        try:
            income_series = resolve(facts, self.net_income_concepts, METRIC_LABELS["net_income"])
            equity_series = resolve(facts, self.equity_concepts, METRIC_LABELS["stockholders_equity"])
        except ROEError as exc:
            log.debug("No ROE history for %s: %s", company.ticker, exc)
            return []

        if end_year is None:
            end_year = select_target_year(income_series, self.preferred_year).year
        if end_year is None:
            return []

        history: list[HistoricalROE] = []
        for year in range(end_year - lookback + 1, end_year + 1):
            point = self._history_point(year, income_series, equity_series)
            if point is not None:
                history.append(point)

        log.info("Built %d-year ROE history for %s", len(history), company.ticker)
        return history

    def _history_point(
        self,
        year: int,
        income_series: TagSeries,
        equity_series: TagSeries,
    ) -> HistoricalROE | None:
        try:
            income = select(income_series, FiscalPeriod.ANNUAL, year, strict=True)
            equity = select(equity_series, FiscalPeriod.ANNUAL, year, strict=True)
        except ROEError:
            return None
        if equity.val <= 0:
            return None
        ratio = income.val / equity.val
        return HistoricalROE(
            fiscal_year=year,
            net_income=income.val,
            stockholders_equity=equity.val,
            roe=ratio,
            percentage=format_percentage(ratio),
            net_income_tag=income_series.tag,
            equity_tag=equity_series.tag,
            accession_number=income.accn,
        )
