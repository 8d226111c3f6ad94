"""Rate-limited SEC EDGAR client for the three resources ROE needs.

Uses only public SEC endpoints (no API key needed, just User-Agent header):
  - company_tickers.json  — ticker→CIK directory
  - submissions/CIK{cik}.json  — company info (SIC code) + filing list
  - api/xbrl/companyfacts/CIK{cik}.json  — ALL XBRL facts for a company

Every request goes through the shared RateLimiter. There is no retry logic
and no caching here: the client is a plain I/O boundary so tests can swap
it for canned fixtures. Retry decisions belong to the batch orchestrator.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from utility_roe.errors import DecodeError, NetworkError
from utility_roe.models import CompanyIdentity, pad_cik
from utility_roe.rate_limiter import RateLimiter

log = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
#  Constants
# ═══════════════════════════════════════════════════════════════════════════

SEC_BASE = "https://www.sec.gov"
DATA_BASE = "https://data.sec.gov"
TICKERS_URL = f"{SEC_BASE}/files/company_tickers.json"
SUBMISSIONS_URL = f"{DATA_BASE}/submissions/CIK{{cik}}.json"
COMPANY_FACTS_URL = f"{DATA_BASE}/api/xbrl/companyfacts/CIK{{cik}}.json"
ARCHIVE_BASE = f"{SEC_BASE}/Archives/edgar/data"

# SEC requires a descriptive User-Agent with contact email
DEFAULT_USER_AGENT = "Utility ROE Analyzer/1.0 utility-roe@example.com"


def build_filing_url(cik: int | str, accession: str, archive_base: str = ARCHIVE_BASE) -> str:
    """Archive folder URL for a filing: ``{base}/{cik unpadded}/{accession sans hyphens}``."""
    cik_raw = str(int(pad_cik(cik)))
    return f"{archive_base}/{cik_raw}/{accession.replace('-', '')}"


# ═══════════════════════════════════════════════════════════════════════════
#  Filings client
# ═══════════════════════════════════════════════════════════════════════════

class FilingsClient:
    """Direct HTTP client for SEC EDGAR public APIs.

    Share one RateLimiter across every client hitting the same budget.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
    ):
        if not user_agent or not user_agent.strip():
            raise ValueError("SEC EDGAR requires a non-empty User-Agent")
        self.rate_limiter = rate_limiter
        self.user_agent = user_agent.strip()
        self.timeout = timeout
        self.headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
        }

    # ── Rate-limited HTTP request ─────────────────────────────────────

    def _request_json(self, url: str) -> Any:
        """GET *url* through the rate limiter and return the decoded JSON."""
        self.rate_limiter.acquire()
        try:
            resp = requests.get(url, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            log.warning("API request failed for %s: %s", url, exc)
            raise NetworkError(f"Request failed: {exc}", url=url) from exc

        if not resp.ok:
            log.warning("API request failed for %s: HTTP %d", url, resp.status_code)
            raise NetworkError(
                f"HTTP {resp.status_code}: {resp.reason}",
                url=url,
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise DecodeError(f"Response from {url} is not valid JSON: {exc}") from exc

    # ── Resources ─────────────────────────────────────────────────────

    def fetch_ticker_directory(self) -> dict:
        """Fetch the ticker directory.

        Format: {"0": {"cik_str": 320193, "ticker": "AAPL", "title": "Apple Inc."}, ...}
        """
        log.info("Fetching SEC company_tickers.json")
        data = self._request_json(TICKERS_URL)
        if not isinstance(data, dict):
            raise DecodeError("Ticker directory is not a JSON object")
        return data

    def fetch_submissions(self, cik: int | str) -> dict:
        """Fetch company metadata (SIC code, filing history)."""
        cik_padded = pad_cik(cik)
        data = self._request_json(SUBMISSIONS_URL.format(cik=cik_padded))
        if not isinstance(data, dict):
            raise DecodeError(f"Submissions for CIK {cik_padded} is not a JSON object")
        return data

    def fetch_facts(self, cik: int | str) -> dict:
        """Fetch ALL XBRL facts for a company.

        Structure: {
            "cik": 1234,
            "entityName": "Example Utility Co",
            "facts": {
                "us-gaap": {
                    "NetIncomeLoss": {
                        "units": {
                            "USD": [
                                {"start": "2024-01-01", "end": "2024-12-31",
                                 "val": 2854000000, "accn": "0001234567-25-000010",
                                 "fy": 2024, "fp": "FY", "form": "10-K",
                                 "filed": "2025-02-20"},
                                ...
                            ]
                        }
                    },
                    ...
                }
            }
        }
        """
        cik_padded = pad_cik(cik)
        log.info("Fetching XBRL companyfacts for CIK %s", cik_padded)
        data = self._request_json(COMPANY_FACTS_URL.format(cik=cik_padded))
        if not isinstance(data, dict) or not isinstance(data.get("facts"), dict):
            raise DecodeError(f"Companyfacts for CIK {cik_padded} has no 'facts' object")
        return data

    # ── Company identity ──────────────────────────────────────────────

    def lookup_company(self, ticker_or_cik: str) -> CompanyIdentity:
        """Resolve a ticker symbol or CIK number to a CompanyIdentity.

        Accepts: "AAPL", "320193", "0000320193"
        The SIC code comes from the submissions endpoint.
        """
        directory = parse_ticker_directory(self.fetch_ticker_directory())
        match = find_company(directory, ticker_or_cik)
        submissions = self.fetch_submissions(match.cik)
        return match.model_copy(update={
            "name": match.name or str(submissions.get("name") or ""),
            "sic_code": str(submissions["sic"]) if submissions.get("sic") else None,
        })


def find_company(directory: list[CompanyIdentity], ticker_or_cik: str) -> CompanyIdentity:
    """Find a ticker or CIK in a parsed directory.

    A numeric CIK missing from the directory still yields an identity
    (some filers have no listed ticker); an unknown ticker raises ValueError.
    """
    clean = ticker_or_cik.strip().upper()
    if clean.removeprefix("CIK").isdigit():
        cik_padded = pad_cik(clean)
        match = next((c for c in directory if c.cik == cik_padded), None)
        return match or CompanyIdentity(ticker=clean.removeprefix("CIK"), cik=cik_padded)

    match = next((c for c in directory if c.ticker == clean), None)
    if match is None:
        raise ValueError(
            f"Could not resolve '{ticker_or_cik}' to a CIK number. "
            f"Try using a ticker symbol or CIK number."
        )
    return match


def parse_ticker_directory(raw: dict) -> list[CompanyIdentity]:
    """Turn the raw ticker directory into CompanyIdentity records.

    Entries missing a ticker or CIK are skipped.
    """
    companies: list[CompanyIdentity] = []
    for entry in raw.values():
        if not isinstance(entry, dict):
            raise DecodeError("Ticker directory entry is not an object")
        ticker = str(entry.get("ticker") or "").strip()
        cik = entry.get("cik_str")
        if not ticker or cik in (None, ""):
            continue
        try:
            companies.append(CompanyIdentity(
                ticker=ticker,
                cik=cik,
                name=str(entry.get("title") or ""),
            ))
        except ValueError as exc:
            raise DecodeError(f"Malformed ticker directory entry for {ticker}: {exc}") from exc
    return companies


# ═══════════════════════════════════════════════════════════════════════════
#  Construction from settings
# ═══════════════════════════════════════════════════════════════════════════

def create_client(rate_limiter: RateLimiter | None = None) -> FilingsClient:
    """Build a FilingsClient from config.

    Pass the same *rate_limiter* to every client sharing one upstream budget;
    a fresh limiter is created from config otherwise.
    """
    from utility_roe.config import get_config
    config = get_config()
    if rate_limiter is None:
        rate_limiter = RateLimiter(
            config.max_requests_per_second,
            config.min_request_interval_ms,
        )
    return FilingsClient(
        rate_limiter,
        user_agent=config.edgar_identity,
        timeout=config.request_timeout,
    )
