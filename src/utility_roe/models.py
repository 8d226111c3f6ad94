"""Pydantic models for the extraction engine inputs and outputs."""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, field_validator


def pad_cik(cik: int | str) -> str:
    """Normalize a CIK to the 10-digit zero-padded form.

    Accepts: 1234, "1234", "0000001234", "CIK0000001234"
    """
    clean = str(cik).strip().upper()
    if clean.startswith("CIK"):
        clean = clean[3:]
    if not clean.isdigit():
        raise ValueError(f"Invalid CIK: {cik!r}")
    return clean.lstrip("0").zfill(10)


class FiscalPeriod(str, Enum):
    """Fiscal period labels as used in the companyfacts ``fp`` field.

    Q4 is never reported directly; it must be derived from FY - 9M.
    """
    ANNUAL = "FY"
    Q1 = "Q1"
    Q2 = "Q2"
    Q3 = "Q3"

    @classmethod
    def parse(cls, value: str | FiscalPeriod) -> FiscalPeriod:
        if isinstance(value, FiscalPeriod):
            return value
        key = str(value).strip().upper()
        if key in ("ANNUAL", "FY"):
            return cls.ANNUAL
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"Unknown fiscal period {value!r}; expected one of FY, Q1, Q2, Q3"
            ) from None


# ---------------------------------------------------------------------------
# Company & facts
# ---------------------------------------------------------------------------

class CompanyIdentity(BaseModel):
    ticker: str
    cik: str
    name: str = ""
    sic_code: str | None = None

    model_config = {"frozen": True}

    @field_validator("cik", mode="before")
    @classmethod
    def normalize_cik(cls, v: int | str) -> str:
        return pad_cik(v)

    @field_validator("ticker", mode="before")
    @classmethod
    def upper_ticker(cls, v: str) -> str:
        return str(v).strip().upper()

    @field_validator("sic_code", mode="before")
    @classmethod
    def sic_as_str(cls, v: int | str | None) -> str | None:
        if v is None or str(v).strip() == "":
            return None
        return str(v).strip()

    @property
    def cik_unpadded(self) -> str:
        return str(int(self.cik))


class Observation(BaseModel):
    """One companyfacts entry for a tag. Instant facts have no ``start``."""
    val: int | float
    unit: str = "USD"
    start: date | None = None
    end: date
    fy: int | None = None
    fp: str | None = None
    form: str | None = None
    accn: str | None = None
    filed: date | None = None

    model_config = {"frozen": True}

    @property
    def is_amendment(self) -> bool:
        return bool(self.form) and self.form.endswith("/A")


class TagSeries(BaseModel):
    tag: str                    # fully qualified, e.g. "us-gaap:NetIncomeLoss"
    unit: str = "USD"
    observations: list[Observation]

    model_config = {"frozen": True}


class ResolvedMetric(BaseModel):
    """Exactly one observation chosen for one tag."""
    tag: str
    observation: Observation

    model_config = {"frozen": True}

    @property
    def value(self) -> int | float:
        return self.observation.val

    @property
    def unit(self) -> str:
        return self.observation.unit


# ---------------------------------------------------------------------------
# ROE results
# ---------------------------------------------------------------------------

class MetricValue(BaseModel):
    value: int | float
    tag: str
    unit: str = "USD"

    model_config = {"frozen": True}


class ROECalculation(BaseModel):
    formula: str
    value: float
    percentage: str

    model_config = {"frozen": True}


class ROEResult(BaseModel):
    """Fully traceable ROE for one company and period.

    ``model_dump()`` yields exactly the published result schema; the two
    resolved metrics ride along for callers but are excluded from it.
    """
    ticker: str
    cik: str
    company_name: str
    sic_code: str | None = None
    fiscal_year: int | None = None
    fiscal_period: str
    filing_date: str | None = None
    accession_number: str | None = None
    filing_url: str | None = None
    net_income: MetricValue
    stockholders_equity: MetricValue
    roe_calculation: ROECalculation
    extraction_timestamp: str
    data_quality_flags: tuple[str, ...] = ()

    net_income_metric: ResolvedMetric = Field(exclude=True)
    equity_metric: ResolvedMetric = Field(exclude=True)

    model_config = {"frozen": True}

    @property
    def roe(self) -> float:
        return self.roe_calculation.value


class HistoricalROE(BaseModel):
    """One point of a best-effort historical ROE series."""
    fiscal_year: int
    net_income: int | float
    stockholders_equity: int | float
    roe: float
    percentage: str
    net_income_tag: str
    equity_tag: str
    accession_number: str | None = None

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Batch processing
# ---------------------------------------------------------------------------

class FailureRecord(BaseModel):
    ticker: str
    cik: str
    company_name: str
    error_message: str
    processing_time_ms: int
    timestamp: str

    model_config = {"frozen": True}


class BatchStatistics(BaseModel):
    count: int = 0
    average_roe: float = 0.0
    median_roe: float = 0.0
    min_roe: float = 0.0
    max_roe: float = 0.0
    std_deviation: float = 0.0

    model_config = {"frozen": True}


class BatchOutcome(BaseModel):
    successful: tuple[ROEResult, ...] = ()
    # parallel to ``successful``
    processing_times_ms: tuple[int, ...] = ()
    failed: tuple[FailureRecord, ...] = ()
    statistics: BatchStatistics = BatchStatistics()
    fiscal_period: str = FiscalPeriod.ANNUAL.value
    target_fiscal_year: int | None = None
    batch_size: int = 10
    started_at: str | None = None
    finished_at: str | None = None

    model_config = {"frozen": True}

    @property
    def total_processed(self) -> int:
        return len(self.successful) + len(self.failed)

    @property
    def success_rate(self) -> float:
        """Percentage of companies with a successful calculation."""
        if self.total_processed == 0:
            return 0.0
        return round(len(self.successful) / self.total_processed * 100, 2)

    def to_summary(self) -> dict:
        """Render the batch summary document."""
        return {
            "generated_at": self.finished_at,
            "processing_summary": {
                "total_processed": self.total_processed,
                "successful_calculations": len(self.successful),
                "failed_calculations": len(self.failed),
                "success_rate": self.success_rate,
                "statistics": self.statistics.model_dump(),
            },
            "successful_roe_calculations": [
                {**r.model_dump(), "processing_time_ms": ms}
                for r, ms in zip(self.successful, self.processing_times_ms, strict=True)
            ],
            "failed_calculations": [f.model_dump() for f in self.failed],
            "metadata": {
                "fiscal_period": self.fiscal_period,
                "target_fiscal_year": self.target_fiscal_year,
                "batch_size": self.batch_size,
                "processing_start_time": self.started_at,
                "processing_end_time": self.finished_at,
            },
        }
