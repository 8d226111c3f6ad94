"""Shared fixtures: canned companyfacts documents, a fake client, a virtual clock."""

import pytest

from utility_roe.errors import DecodeError
from utility_roe.models import CompanyIdentity


def fact(val, end, start=None, fy=None, fp="FY", filed="2025-02-20",
         accn="0001234567-25-000010", form="10-K"):
    entry = {"end": end, "val": val, "accn": accn, "fy": fy, "fp": fp,
             "form": form, "filed": filed}
    if start is not None:
        entry["start"] = start
    return entry


def facts_document(tags, entity_name="Example Utility Co", cik=1234):
    """{tag: [entries]} → companyfacts-shaped document (us-gaap, USD)."""
    return {
        "cik": cik,
        "entityName": entity_name,
        "facts": {
            "us-gaap": {
                tag: {"label": tag, "units": {"USD": entries}}
                for tag, entries in tags.items()
            }
        },
    }


def utility_facts(net_income=2_854_000_000, equity=32_456_000_000, year=2024, **kwargs):
    """A typical calendar-year utility: one 10-K with income and equity."""
    return facts_document({
        "NetIncomeLoss": [
            fact(net_income, f"{year}-12-31", start=f"{year}-01-01", fy=year,
                 filed=f"{year + 1}-02-20"),
        ],
        "StockholdersEquity": [
            fact(equity, f"{year}-12-31", fy=year, filed=f"{year + 1}-02-20"),
        ],
    }, **kwargs)


class FakeClient:
    """Stands in for FilingsClient with canned documents per CIK.

    ``errors`` maps a CIK to a list of exceptions raised (one per call)
    before the canned facts are served.
    """

    def __init__(self, facts=None, submissions=None, errors=None):
        self.facts = facts or {}
        self.submissions = submissions or {}
        self.errors = {k: list(v) for k, v in (errors or {}).items()}
        self.fact_calls = []
        self.submission_calls = []

    def fetch_submissions(self, cik):
        self.submission_calls.append(cik)
        return self.submissions.get(cik, {"cik": cik, "sic": "4911"})

    def fetch_facts(self, cik):
        self.fact_calls.append(cik)
        pending = self.errors.get(cik)
        if pending:
            raise pending.pop(0)
        if cik not in self.facts:
            raise DecodeError(f"Companyfacts for CIK {cik} has no 'facts' object")
        return self.facts[cik]


class FakeClock:
    """Virtual monotonic clock in nanoseconds; sleep advances it."""

    def __init__(self, start_ns=0):
        self.now_ns = start_ns
        self.sleeps = []

    def __call__(self):
        return self.now_ns

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now_ns += round(seconds * 1e9)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def company():
    return CompanyIdentity(ticker="EXU", cik="1234", name="Example Utility Co", sic_code="4911")
