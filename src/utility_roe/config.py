"""Configuration management via environment variables.

Reads from .env file (via pydantic-settings) with sensible defaults.
All values can be overridden via environment variables.

Required:
    EDGAR_IDENTITY  — Your name + email for SEC EDGAR API User-Agent header

Optional:
    MAX_REQUESTS_PER_SECOND / MIN_REQUEST_INTERVAL_MS — upstream rate budget
    PREFERRED_FISCAL_YEAR  — anchor year tried first for annual ROE
    BATCH_SIZE / BATCH_PAUSE_SECONDS / MAX_RETRIES — batch processing
    OUTPUT_DIR / COMPANY_LIST_PATH — where batch results and the universe live
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # SEC EDGAR API identity (name + email, required by SEC)
    edgar_identity: str = "Utility ROE Analyzer/1.0 utility-roe@example.com"

    # SEC allows up to 10 req/s
    max_requests_per_second: int = 10
    min_request_interval_ms: int = 100
    request_timeout: float = 30.0

    # Anchor year for annual extraction (expected latest 10-K cycle)
    preferred_fiscal_year: int = 2024
    history_lookback_years: int = 20

    batch_size: int = 10
    batch_pause_seconds: float = 2.0
    max_retries: int = 2

    output_dir: str = "data"
    company_list_path: str = "data/master_utility_list_latest.json"

    # Strip whitespace from string fields — the .env file often has
    # trailing spaces and quotes
    @field_validator("edgar_identity", "output_dir", "company_list_path", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().strip('"').strip("'").strip()
        return v

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


_config: Settings | None = None


def get_config() -> Settings:
    """Get or create the shared Settings singleton."""
    global _config
    if _config is None:
        _config = Settings()
    return _config
