"""Integration tests against live SEC EDGAR (network, EDGAR_IDENTITY)."""

import pytest


@pytest.mark.integration
def test_lookup_company():
    from utility_roe.sec_client import create_client
    company = create_client().lookup_company("DUK")
    assert company.cik == "0001326160"
    assert company.sic_code == "4931"


@pytest.mark.integration
def test_calculate_roe_tool():
    from utility_roe.server import calculate_roe
    result = calculate_roe.fn("DUK")
    assert "error" not in result
    assert result["net_income"]["unit"] == "USD"
    assert result["roe_calculation"]["percentage"].endswith("%")
    assert result["filing_url"].startswith("https://www.sec.gov/Archives/edgar/data/1326160/")


@pytest.mark.integration
@pytest.mark.slow
def test_roe_history_tool():
    from utility_roe.server import get_roe_history
    history = get_roe_history.fn("SO")
    years = [h["fiscal_year"] for h in history]
    assert years == sorted(years)
    assert len(years) >= 5


@pytest.mark.integration
@pytest.mark.slow
def test_run_roe_batch_tool():
    from utility_roe.server import run_roe_batch
    summary = run_roe_batch.fn(["DUK", "SO", "NOTATICKER"])
    assert summary["processing_summary"]["total_processed"] == 2
    assert summary["unresolved_tickers"][0]["ticker"] == "NOTATICKER"
