"""XBRL concept priority lists for the ROE inputs.

Each metric maps to an ordered list of us-gaap tags. Order encodes domain
knowledge: the most standardized tag first, looser synonyms after.
Adding a fallback tag is a data change here, never a new code path.

Utility classification (SIC 49xx) lives here too since it decides which
companies the batch universe is built from.
"""

from __future__ import annotations

from typing import NamedTuple


DEFAULT_TAXONOMY = "us-gaap"
DEFAULT_UNIT = "USD"


# ═══════════════════════════════════════════════════════════════════════════
#  Concept entry
# ═══════════════════════════════════════════════════════════════════════════

class ConceptEntry(NamedTuple):
    xbrl_concept: str               # tag name (without us-gaap: prefix)
    display_name: str               # human label
    taxonomy: str = DEFAULT_TAXONOMY

    @property
    def qualified_name(self) -> str:
        return f"{self.taxonomy}:{self.xbrl_concept}"


# ═══════════════════════════════════════════════════════════════════════════
#  NET INCOME  (flow — reported over a date range)
#  Labels: Net Income, Net Earnings, Income from Continuing Operations,
#          Net Income Available to Common, Profit or Loss
# ═══════════════════════════════════════════════════════════════════════════

NET_INCOME: list[ConceptEntry] = [
    ConceptEntry("NetIncomeLoss", "Net Income"),
    ConceptEntry("IncomeLossFromContinuingOperations",
                 "Income from Continuing Operations"),
    ConceptEntry("NetIncomeLossAvailableToCommonStockholdersBasic",
                 "Net Income Available to Common Stockholders"),
    ConceptEntry("ProfitLoss", "Profit/Loss incl. NCI"),
]

# ═══════════════════════════════════════════════════════════════════════════
#  STOCKHOLDERS' EQUITY  (point-in-time — reported as of a date)
# ═══════════════════════════════════════════════════════════════════════════

STOCKHOLDERS_EQUITY: list[ConceptEntry] = [
    ConceptEntry("StockholdersEquity", "Stockholders' Equity"),
    ConceptEntry("StockholdersEquityIncludingPortionAttributableToNoncontrollingInterest",
                 "Total Equity incl. NCI"),
]

METRIC_LABELS: dict[str, str] = {
    "net_income": "Net Income",
    "stockholders_equity": "Stockholders Equity",
}


# ═══════════════════════════════════════════════════════════════════════════
#  Utility classification
# ═══════════════════════════════════════════════════════════════════════════

# 4900 Electric, Gas & Sanitary Services is labelled as electric
UTILITY_CLASSIFICATIONS: dict[int, str] = {
    4900: "Electric Services",
    4911: "Electric Services",
    4922: "Natural Gas Transmission",
    4923: "Natural Gas Transmission & Distribution",
    4924: "Natural Gas Distribution",
    4931: "Electric & Other Services Combined",
    4932: "Gas & Other Services Combined",
}
UTILITY_SIC_CODES: tuple[int, ...] = tuple(UTILITY_CLASSIFICATIONS)


def _sic_number(sic_code: str | int | None) -> int | None:
    if sic_code is None:
        return None
    try:
        return int(str(sic_code).strip())
    except (ValueError, TypeError):
        return None


def is_utility_sic(sic_code: str | int | None) -> bool:
    """True when *sic_code* is one of the utility SIC codes."""
    return _sic_number(sic_code) in UTILITY_CLASSIFICATIONS


def utility_classification(sic_code: str | int | None) -> str | None:
    """Segment label for a utility SIC code, None for non-utilities."""
    return UTILITY_CLASSIFICATIONS.get(_sic_number(sic_code))
