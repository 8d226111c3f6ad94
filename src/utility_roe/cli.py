"""Command-line entry point for utility ROE extraction.

Usage:

  # ROE for one company (latest annual, or a quarter)
  utility-roe company DUK
  utility-roe company DUK Q2

  # Best-effort 20-year ROE history
  utility-roe history SO

  # Batch over the master utility list (JSON written to OUTPUT_DIR)
  utility-roe batch
  utility-roe batch --quick
  utility-roe batch --resume NEE

  # Rebuild the master utility list from the SEC ticker directory
  utility-roe universe
  utility-roe universe 500
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from utility_roe.batch import BatchOrchestrator, top_performers
from utility_roe.config import get_config
from utility_roe.errors import ROEError
from utility_roe.models import BatchOutcome
from utility_roe.roe import ROECalculator
from utility_roe.sec_client import FilingsClient, create_client
from utility_roe.universe import (
    build_utility_universe,
    load_company_list,
    resume_from,
    save_company_list,
)

log = logging.getLogger(__name__)

QUICK_SAMPLE_SIZE = 5


def _header(title: str):
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}\n")


def _calculator(client: FilingsClient) -> ROECalculator:
    config = get_config()
    return ROECalculator(
        client,
        preferred_year=config.preferred_fiscal_year,
        lookback_years=config.history_lookback_years,
    )


def cmd_company(ticker: str, fiscal_period: str = "FY"):
    """Calculate ROE for a single company."""
    _header(f"ROE: {ticker} | Period={fiscal_period}")
    client = create_client()
    company = client.lookup_company(ticker)
    result = _calculator(client).calculate(company, fiscal_period)
    print(json.dumps(result.model_dump(), indent=2))


def cmd_history(ticker: str):
    """Print the historical ROE series for a company."""
    _header(f"ROE history: {ticker}")
    client = create_client()
    company = client.lookup_company(ticker)
    history = _calculator(client).history(company)
    if not history:
        print("  No historical data found.")
        return
    for point in history:
        print(f"  {point.fiscal_year}  {point.percentage:>8s}  ({point.net_income_tag})")


def _write_outcome(outcome: BatchOutcome, output_dir: str) -> tuple[Path, Path]:
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    stamp = (outcome.finished_at or "").replace(":", "-").replace(".", "-")
    body = json.dumps(outcome.to_summary(), indent=2)
    dated = out / f"batch_roe_results_{stamp}.json"
    latest = out / "batch_roe_results_latest.json"
    dated.write_text(body, encoding="utf-8")
    latest.write_text(body, encoding="utf-8")
    return dated, latest


def _print_summary(outcome: BatchOutcome):
    stats = outcome.statistics
    _header("BATCH ROE PROCESSING COMPLETE")
    print(f"  Total processed:   {outcome.total_processed}")
    print(f"  Successful:        {len(outcome.successful)}")
    print(f"  Failed:            {len(outcome.failed)}")
    print(f"  Success rate:      {outcome.success_rate:.2f}%")
    if stats.count:
        print("\n  ROE statistics:")
        print(f"    Average:  {stats.average_roe * 100:.2f}%")
        print(f"    Median:   {stats.median_roe * 100:.2f}%")
        print(f"    Min:      {stats.min_roe * 100:.2f}%")
        print(f"    Max:      {stats.max_roe * 100:.2f}%")
        print(f"    Std dev:  {stats.std_deviation * 100:.2f}%")
        print("\n  Top performers:")
        for i, r in enumerate(top_performers(outcome), 1):
            print(f"    {i:2d}. {r.ticker:6s} {r.roe_calculation.percentage:>8s}  {r.company_name}")
    if outcome.failed:
        print("\n  Failures:")
        for f in outcome.failed:
            print(f"    {f.ticker:6s} {f.error_message}")


def cmd_batch(*args: str):
    """Run batch ROE processing over the master utility list."""
    config = get_config()
    companies = load_company_list(config.company_list_path)
    batch_size = config.batch_size

    if "--quick" in args:
        companies = companies[:QUICK_SAMPLE_SIZE]
        batch_size = QUICK_SAMPLE_SIZE
    if "--resume" in args:
        idx = args.index("--resume")
        if idx + 1 >= len(args):
            raise ValueError("--resume needs a ticker")
        companies = resume_from(companies, args[idx + 1])

    _header(f"Batch ROE processing: {len(companies)} companies")
    client = create_client()
    orchestrator = BatchOrchestrator(
        _calculator(client),
        client.rate_limiter,
        batch_size=batch_size,
        batch_pause=config.batch_pause_seconds,
        max_retries=config.max_retries,
    )
    outcome = orchestrator.run(companies)
    dated, latest = _write_outcome(outcome, config.output_dir)
    _print_summary(outcome)
    print(f"\n  Results saved:\n    {dated}\n    {latest}")


def cmd_universe(limit: str | None = None):
    """Rebuild the master utility list."""
    config = get_config()
    _header("Building master utility list")
    client = create_client()
    utilities = build_utility_universe(client, limit=int(limit) if limit else None)
    path = save_company_list(utilities, config.company_list_path)
    print(f"  {len(utilities)} utilities saved to {path}")


COMMANDS = {
    "company": (cmd_company, "ticker [FY|Q1|Q2|Q3]"),
    "history": (cmd_history, "ticker"),
    "batch": (cmd_batch, "[--quick] [--resume TICKER]"),
    "universe": (cmd_universe, "[limit]"),
}


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not argv or argv[0] in ("-h", "--help", "help"):
        print("\nUtility ROE — SEC EDGAR Return on Equity extraction")
        print("=" * 52)
        print("\nUsage: utility-roe <command> [args]\n")
        print("Commands:")
        for cmd, (_, args) in COMMANDS.items():
            print(f"  {cmd:12s}  {args}")
        return 0

    cmd_name = argv[0].lower()
    if cmd_name not in COMMANDS:
        print(f"Unknown command: {cmd_name}")
        print(f"Available: {', '.join(COMMANDS.keys())}")
        return 2

    fn, _ = COMMANDS[cmd_name]
    try:
        fn(*argv[1:])
    except (ROEError, ValueError) as exc:
        log.error("%s failed: %s", cmd_name, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
