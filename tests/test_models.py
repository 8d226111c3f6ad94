"""Tests for identity normalization and model helpers."""

import pytest
from pydantic import ValidationError

from utility_roe.errors import PeriodNotFoundError, ROEError, TagNotFoundError
from utility_roe.models import CompanyIdentity, FiscalPeriod, Observation, pad_cik


@pytest.mark.parametrize("raw", [1234, "1234", "0000001234", "CIK0000001234", " cik1234 "])
def test_pad_cik(raw):
    assert pad_cik(raw) == "0000001234"


def test_pad_cik_rejects_garbage():
    with pytest.raises(ValueError):
        pad_cik("12-34")


def test_company_identity_normalizes():
    company = CompanyIdentity(ticker=" duk ", cik=1326160, sic_code=4931)
    assert company.ticker == "DUK"
    assert company.cik == "0001326160"
    assert company.cik_unpadded == "1326160"
    assert company.sic_code == "4931"


def test_company_identity_is_immutable():
    company = CompanyIdentity(ticker="DUK", cik=1)
    with pytest.raises(ValidationError):
        company.ticker = "XEL"


@pytest.mark.parametrize("raw, expected", [
    ("annual", FiscalPeriod.ANNUAL),
    ("FY", FiscalPeriod.ANNUAL),
    ("q1", FiscalPeriod.Q1),
    (FiscalPeriod.Q3, FiscalPeriod.Q3),
])
def test_fiscal_period_parse(raw, expected):
    assert FiscalPeriod.parse(raw) is expected


def test_fiscal_period_rejects_q4():
    with pytest.raises(ValueError, match="Q4"):
        FiscalPeriod.parse("Q4")


def test_observation_amendment():
    assert Observation(val=1, end="2024-12-31", form="10-K/A").is_amendment
    assert not Observation(val=1, end="2024-12-31", form="10-K").is_amendment
    assert not Observation(val=1, end="2024-12-31").is_amendment


def test_error_without_company_is_bare_message():
    assert str(ROEError("boom")) == "boom"


def test_error_prefix_once_company_attached():
    exc = TagNotFoundError("Net Income", ["NetIncomeLoss", "ProfitLoss"])
    exc.company = CompanyIdentity(ticker="ES", cik="72741")
    assert str(exc) == (
        "ROE calculation failed for ES (CIK: 0000072741): "
        "No Net Income data found using tag sequence: NetIncomeLoss, ProfitLoss"
    )


def test_period_not_found_message():
    assert str(PeriodNotFoundError("Q2")) == "No data found for fiscal period: Q2"
    assert "target year 2024" in str(PeriodNotFoundError("FY", 2024))
