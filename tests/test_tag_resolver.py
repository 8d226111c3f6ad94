"""Tests for tag resolution with fallback."""

import pytest

from conftest import fact, facts_document
from utility_roe.errors import DecodeError, TagNotFoundError
from utility_roe.tag_resolver import resolve
from utility_roe.xbrl_mappings import NET_INCOME, STOCKHOLDERS_EQUITY


class RecordingDict(dict):
    """dict that remembers which keys were looked up."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.looked_up = []

    def get(self, key, default=None):
        self.looked_up.append(key)
        return super().get(key, default)


def _series(val=100):
    return [fact(val, "2024-12-31", start="2024-01-01", fy=2024)]


def test_returns_first_available_candidate():
    doc = facts_document({"B": _series(2), "C": _series(3)})
    series = resolve(doc, ["A", "B", "C"], "Net Income")
    assert series.tag == "us-gaap:B"
    assert series.observations[0].val == 2


def test_never_inspects_later_candidates():
    tags = RecordingDict({
        "A": {"units": {"USD": _series(1)}},
        "B": {"units": {"USD": _series(2)}},
    })
    doc = {"facts": {"us-gaap": tags}}
    series = resolve(doc, ["A", "B"], "Net Income")
    assert series.tag == "us-gaap:A"
    assert tags.looked_up == ["A"]


def test_empty_usd_series_falls_through():
    doc = facts_document({"NetIncomeLoss": [], "ProfitLoss": _series(7)})
    series = resolve(doc, NET_INCOME, "Net Income")
    assert series.tag == "us-gaap:ProfitLoss"


def test_non_usd_unit_is_not_usable():
    doc = {"facts": {"us-gaap": {
        "StockholdersEquity": {"units": {"EUR": _series(5)}},
    }}}
    with pytest.raises(TagNotFoundError):
        resolve(doc, STOCKHOLDERS_EQUITY, "Stockholders Equity")


def test_not_found_names_label_and_candidates():
    doc = facts_document({"Revenues": _series()})
    with pytest.raises(TagNotFoundError) as info:
        resolve(doc, NET_INCOME, "Net Income")
    msg = str(info.value)
    assert "Net Income" in msg
    assert "NetIncomeLoss, IncomeLossFromContinuingOperations" in msg
    assert info.value.candidates[-1] == "ProfitLoss"


def test_qualified_candidate_names():
    doc = {"facts": {"ifrs-full": {"ProfitLoss": {"units": {"USD": _series(9)}}}}}
    series = resolve(doc, ["us-gaap:NetIncomeLoss", "ifrs-full:ProfitLoss"], "Net Income")
    assert series.tag == "ifrs-full:ProfitLoss"


def test_observations_keep_api_order():
    entries = [
        fact(1, "2024-12-31", start="2024-01-01", fy=2024),
        fact(2, "2022-12-31", start="2022-01-01", fy=2022),
        fact(3, "2023-12-31", start="2023-01-01", fy=2023),
    ]
    series = resolve(facts_document({"NetIncomeLoss": entries}), NET_INCOME, "Net Income")
    assert [o.val for o in series.observations] == [1, 2, 3]


def test_instant_facts_have_no_start():
    doc = facts_document({"StockholdersEquity": [fact(10, "2024-12-31", fy=2024)]})
    series = resolve(doc, STOCKHOLDERS_EQUITY, "Stockholders Equity")
    assert series.observations[0].start is None


def test_malformed_observation_raises_decode_error():
    doc = facts_document({"NetIncomeLoss": [{"val": "lots", "end": "yesterday"}]})
    with pytest.raises(DecodeError):
        resolve(doc, NET_INCOME, "Net Income")


def test_missing_facts_object_raises_decode_error():
    with pytest.raises(DecodeError):
        resolve({"entityName": "X"}, NET_INCOME, "Net Income")
