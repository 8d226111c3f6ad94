"""Period selection: one authoritative observation per fiscal period.

The companyfacts API mixes two kinds of facts under one time-series shape:

  flow           — defined over a date range (net income): has start + end
  point-in-time  — defined as of a date (equity): end only

and repeats the same period across filings whenever a later filing restates
or re-presents it (10-K/A, next year's comparative column).

Selection order for a target year Y (annual period):
  1. full_year  — start == Y-01-01 and end == Y-12-31   (flow match)
  2. year_end   — end == Y-12-31, any start              (balance-sheet match)
  Within a tier the latest ``filed`` date wins: restatements supersede.
  3. fallback   — fy present and fp == requested period (annual: else any
                  Dec 31 end), newest fy first, then latest filed, then
                  latest end (current column over comparatives).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date
from typing import Callable, NamedTuple

from utility_roe.errors import PeriodNotFoundError
from utility_roe.models import FiscalPeriod, Observation, TagSeries

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  Matching tiers
# ═══════════════════════════════════════════════════════════════════════════

class MatchTier(NamedTuple):
    name: str
    matches: Callable[[Observation, int], bool]


def _is_full_year(obs: Observation, year: int) -> bool:
    return obs.start == date(year, 1, 1) and obs.end == date(year, 12, 31)


def _ends_on_year_end(obs: Observation, year: int) -> bool:
    return obs.end == date(year, 12, 31)


def _ends_on_any_year_end(obs: Observation) -> bool:
    return obs.end.month == 12 and obs.end.day == 31


YEAR_TIERS: tuple[MatchTier, ...] = (
    MatchTier("full_year", _is_full_year),
    MatchTier("year_end", _ends_on_year_end),
)


def _filed_key(obs: Observation) -> date:
    return obs.filed or date.min


def _latest_filed(candidates: list[Observation]) -> Observation:
    # max() keeps the first of equal keys, i.e. API order among ties
    return max(candidates, key=_filed_key)


# ═══════════════════════════════════════════════════════════════════════════
#  Selection
# ═══════════════════════════════════════════════════════════════════════════

def select(
    series: TagSeries | Sequence[Observation],
    fiscal_period: FiscalPeriod | str = FiscalPeriod.ANNUAL,
    target_year: int | None = None,
    *,
    strict: bool = False,
) -> Observation:
    """Choose the single observation for *fiscal_period* / *target_year*.

    strict=True stops after the year tiers instead of falling back to
    "most recent available"; the historical series uses it so one year is
    never filled with another year's value.
    """
    observations = series.observations if isinstance(series, TagSeries) else list(series)
    period = FiscalPeriod.parse(fiscal_period)

    if period is FiscalPeriod.ANNUAL and target_year is not None:
        for tier in YEAR_TIERS:
            candidates = [o for o in observations if tier.matches(o, target_year)]
            if candidates:
                chosen = _latest_filed(candidates)
                log.debug(
                    "Selected %s via %s tier (%d candidates, filed %s)",
                    chosen.end, tier.name, len(candidates), chosen.filed,
                )
                return chosen
        if strict:
            raise PeriodNotFoundError(period.value, target_year)
    elif strict:
        raise ValueError("strict selection requires the annual period and a target year")

    candidates = [o for o in observations if o.fy is not None and o.fp == period.value]
    if not candidates and period is FiscalPeriod.ANNUAL:
        candidates = [o for o in observations if _ends_on_any_year_end(o)]
    if not candidates:
        raise PeriodNotFoundError(period.value)

    # one filing repeats fy/fp/filed on its comparative columns; the newest end is current
    ranked = sorted(
        candidates,
        key=lambda o: (o.fy or 0, _filed_key(o), o.end),
        reverse=True,
    )
    return ranked[0]


# ═══════════════════════════════════════════════════════════════════════════
#  Target-year policy
# ═══════════════════════════════════════════════════════════════════════════

class YearSelection(NamedTuple):
    year: int | None
    flags: tuple[str, ...] = ()


def full_year_years(series: TagSeries | Sequence[Observation]) -> set[int]:
    """Calendar years with a Jan 1 – Dec 31 flow observation."""
    observations = series.observations if isinstance(series, TagSeries) else series
    return {
        o.start.year for o in observations
        if o.start is not None and _is_full_year(o, o.start.year)
    }


def select_target_year(
    income: TagSeries | Sequence[Observation],
    preferred_year: int | None,
) -> YearSelection:
    """Pick the fiscal year to extract.

    The preferred (anchor) year wins when a full-year flow observation exists
    for it. A later full year being available as well is flagged, not
    resolved. Without the anchor, the latest full year is used; without any
    full year there is no target and selection falls back to fy/fp matching.
    """
    years = full_year_years(income)
    if not years:
        return YearSelection(None, ("No calendar-year income data; using latest reported fiscal year",))

    latest = max(years)
    if preferred_year is not None and preferred_year in years:
        if latest > preferred_year:
            return YearSelection(preferred_year, (
                f"Preferred fiscal year {preferred_year} used although {latest} data is available",
            ))
        return YearSelection(preferred_year)

    if preferred_year is None:
        return YearSelection(latest)
    log.info("No %d data found, using most recent available year: %d", preferred_year, latest)
    return YearSelection(latest, (
        f"Preferred fiscal year {preferred_year} unavailable; using {latest}",
    ))
