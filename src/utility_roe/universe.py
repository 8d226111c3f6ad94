"""Company universe: which utilities the batch runs over.

The master list is a JSON file:

    {"generated_at": "...", "total_utilities": 2,
     "utilities": [{"ticker": "DUK", "cik": "0001326160",
                    "company_name": "Duke Energy CORP", "sic_code": "4931",
                    "classification": "Electric & Other Services Combined"}, ...]}

It is built by scanning the SEC ticker directory and keeping companies
whose submissions SIC code is a utility code.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from utility_roe.errors import DecodeError, ROEError
from utility_roe.models import CompanyIdentity
from utility_roe.roe import utc_timestamp
from utility_roe.sec_client import FilingsClient, parse_ticker_directory
from utility_roe.xbrl_mappings import is_utility_sic, utility_classification

log = logging.getLogger(__name__)


def load_company_list(path: str | Path) -> list[CompanyIdentity]:
    """Read the master utility list. Any problem raises DecodeError."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        entries = data["utilities"]
        companies = [
            CompanyIdentity(
                ticker=e["ticker"],
                cik=e["cik"],
                name=e.get("company_name") or "",
                sic_code=e.get("sic_code"),
            )
            for e in entries
        ]
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
        raise DecodeError(f"Failed to load master utility list from {path}: {exc}") from exc

    log.info("Loaded master utility list: %d utilities", len(companies))
    return companies


def save_company_list(companies: list[CompanyIdentity], path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "generated_at": utc_timestamp(),
        "total_utilities": len(companies),
        "utilities": [
            {
                "ticker": c.ticker,
                "cik": c.cik,
                "company_name": c.name,
                "sic_code": c.sic_code,
                "classification": utility_classification(c.sic_code),
            }
            for c in companies
        ],
    }
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


def build_utility_universe(client: FilingsClient, limit: int | None = None) -> list[CompanyIdentity]:
    """Scan the ticker directory and keep companies with a utility SIC code.

    One submissions request per company, so a full scan is slow; *limit*
    caps how many directory entries are examined. Companies whose
    submissions cannot be read are skipped.
    """
    directory = parse_ticker_directory(client.fetch_ticker_directory())
    if limit is not None:
        directory = directory[:limit]
    log.info("Scanning %d companies for utility SIC codes", len(directory))

    utilities: list[CompanyIdentity] = []
    seen: set[str] = set()
    for company in directory:
        # share classes of one filer appear once per ticker
        if company.cik in seen:
            continue
        seen.add(company.cik)
        try:
            submissions = client.fetch_submissions(company.cik)
        except ROEError as exc:
            log.warning("Skipping %s due to error: %s", company.ticker, exc)
            continue
        sic = submissions.get("sic")
        if is_utility_sic(sic):
            utilities.append(company.model_copy(update={"sic_code": str(sic)}))
            log.info("%s (%s %s) - %s", company.ticker, sic, utility_classification(sic), company.name)

    log.info("Found %d utility companies", len(utilities))
    return utilities


def resume_from(companies: list[CompanyIdentity], ticker: str) -> list[CompanyIdentity]:
    """The tail of *companies* starting at *ticker* (for interrupted runs)."""
    wanted = ticker.strip().upper()
    for i, company in enumerate(companies):
        if company.ticker == wanted:
            return companies[i:]
    raise ValueError(f"Ticker {ticker} not found in master utility list")
