"""MCP server exposing utility ROE extraction.

Tools
─────
  1. calculate_roe     — traceable ROE for one company (FY or Q1–Q3)
  2. get_roe_history   — best-effort annual ROE series (up to 20 years)
  3. run_roe_batch     — ROE for several companies with summary statistics

All tools share one FilingsClient, and therefore one RateLimiter, so
concurrent tool calls stay inside the SEC request budget.
"""

from __future__ import annotations

from fastmcp import FastMCP

from utility_roe.batch import BatchOrchestrator
from utility_roe.config import get_config
from utility_roe.errors import ROEError
from utility_roe.models import FiscalPeriod
from utility_roe.roe import ROECalculator
from utility_roe.sec_client import (
    FilingsClient,
    create_client,
    find_company,
    parse_ticker_directory,
)

mcp = FastMCP(name="Utility-ROE")

# Lazy — built on first tool call so importing the module has no side effects
_client: FilingsClient | None = None


def _get_client() -> FilingsClient:
    global _client
    if _client is None:
        _client = create_client()
    return _client


def _get_calculator() -> ROECalculator:
    config = get_config()
    return ROECalculator(
        _get_client(),
        preferred_year=config.preferred_fiscal_year,
        lookback_years=config.history_lookback_years,
    )


@mcp.tool()
def calculate_roe(ticker_or_cik: str, fiscal_period: str = "FY") -> dict:
    """Calculate Return on Equity for a company from its SEC XBRL facts.

    Args:
        ticker_or_cik: ticker (e.g. 'DUK') or CIK number
        fiscal_period: 'FY' (annual) or 'Q1', 'Q2', 'Q3'

    Returns the source filing, XBRL tags, raw values, formula and any
    data quality flags. On failure returns {"ticker_or_cik", "error"}.
    """
    try:
        company = _get_client().lookup_company(ticker_or_cik)
        return _get_calculator().calculate(company, fiscal_period).model_dump()
    except (ROEError, ValueError) as exc:
        return {"ticker_or_cik": ticker_or_cik, "error": str(exc)}


@mcp.tool()
def get_roe_history(ticker_or_cik: str, end_year: int | None = None) -> list[dict]:
    """Get a historical annual ROE series, oldest year first.

    Years whose data cannot be resolved are omitted.
    """
    try:
        company = _get_client().lookup_company(ticker_or_cik)
        history = _get_calculator().history(company, end_year=end_year)
    except (ROEError, ValueError) as exc:
        return [{"ticker_or_cik": ticker_or_cik, "error": str(exc)}]
    return [point.model_dump() for point in history]


@mcp.tool()
def run_roe_batch(tickers: list[str], fiscal_period: str = "FY") -> dict:
    """Calculate ROE for several companies and summarize.

    Companies that fail to calculate appear in failed_calculations, tickers
    missing from the SEC directory in unresolved_tickers; the rest of the
    batch still runs.
    """
    config = get_config()
    client = _get_client()
    try:
        period = FiscalPeriod.parse(fiscal_period)
        directory = parse_ticker_directory(client.fetch_ticker_directory())
    except (ROEError, ValueError) as exc:
        return {"error": str(exc)}

    companies = []
    unresolved = []
    for ticker in tickers:
        try:
            companies.append(find_company(directory, ticker))
        except ValueError as exc:
            unresolved.append({"ticker": ticker, "error_message": str(exc)})

    orchestrator = BatchOrchestrator(
        _get_calculator(),
        client.rate_limiter,
        batch_size=config.batch_size,
        batch_pause=config.batch_pause_seconds,
        max_retries=config.max_retries,
        fiscal_period=period,
    )
    summary = orchestrator.run(companies).to_summary()
    summary["unresolved_tickers"] = unresolved
    return summary


if __name__ == "__main__":
    import sys

    # python -m utility_roe.server --sse for remote hosting, STDIO otherwise
    if "--sse" in sys.argv:
        mcp.run(transport="sse")
    else:
        mcp.run()
