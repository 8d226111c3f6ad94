"""Error taxonomy for ROE extraction.

  NetworkError        — transport / HTTP failure talking to SEC EDGAR
  DecodeError         — upstream payload not parseable as the expected shape
  TagNotFoundError    — no candidate XBRL tag has usable USD data
  PeriodNotFoundError — no observation matches the requested fiscal period
  InvalidDataError    — data is present but unusable (equity <= 0)

Every error can carry the company it was raised for. Once attached,
``str(exc)`` is prefixed with the ticker and CIK so a single-company
failure is traceable without extra wrapping.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from utility_roe.models import CompanyIdentity


class ROEError(Exception):
    """Base class for every extraction failure."""

    def __init__(self, message: str, company: CompanyIdentity | None = None):
        super().__init__(message)
        self.message = message
        self.company = company

    def __str__(self) -> str:
        if self.company is None:
            return self.message
        return (
            f"ROE calculation failed for {self.company.ticker} "
            f"(CIK: {self.company.cik}): {self.message}"
        )


class NetworkError(ROEError):
    """Transport failure or non-2xx response. Not retried by the client."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        company: CompanyIdentity | None = None,
    ):
        super().__init__(message, company)
        self.url = url
        self.status_code = status_code


class DecodeError(ROEError):
    """Malformed upstream payload. Permanent for the company."""


class TagNotFoundError(ROEError):
    """None of the candidate tags has a non-empty USD series."""

    def __init__(
        self,
        label: str,
        candidates: list[str],
        company: CompanyIdentity | None = None,
    ):
        super().__init__(
            f"No {label} data found using tag sequence: {', '.join(candidates)}",
            company,
        )
        self.label = label
        self.candidates = list(candidates)


class PeriodNotFoundError(ROEError):
    """No observation satisfies any matching tier for the period."""

    def __init__(
        self,
        fiscal_period: str,
        target_year: int | None = None,
        company: CompanyIdentity | None = None,
    ):
        msg = f"No data found for fiscal period: {fiscal_period}"
        if target_year is not None:
            msg += f" (target year {target_year})"
        super().__init__(msg, company)
        self.fiscal_period = fiscal_period
        self.target_year = target_year


class InvalidDataError(ROEError):
    """Data integrity problem, e.g. non-positive stockholders' equity."""
