"""
UK PAYE rate tables and application settings for the take-home calculator.

All monetary values in GBP. Each tax year is described by a
``TaxYearConfig`` so several years can sit side by side; the calculation
modules take the config as a parameter instead of reading globals.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Tuple

# Top of the highest band, and the NT allowance
UNBOUNDED = Decimal("Infinity")


class UnknownTaxYearError(KeyError):
    """Raised when a tax year code has no rate table."""


@dataclass(frozen=True)
class TaxBand:
    """One row of a marginal rate schedule.

    ``rate`` is a percentage. ``upper`` is ``UNBOUNDED`` for the top band.
    """

    label: str
    rate: Decimal
    lower: Decimal
    upper: Decimal

    @property
    def is_unbounded(self) -> bool:
        return self.upper.is_infinite()

    @property
    def width(self) -> Decimal:
        return self.upper - self.lower


# ── General ──────────────────────────────────────────────────────────
MONTHS_IN_YEAR = 12
WEEKS_IN_YEAR = 52
WEEKS_PER_MONTH = Decimal("4.33")   # week-number to tax-month mapping

# Tax months run April .. March
MONTH_NAMES = (
    "April", "May", "June", "July", "August", "September",
    "October", "November", "December", "January", "February", "March",
)

DEFAULT_TAX_CODE = "1257L"
DEFAULT_ALLOWANCE = Decimal("12570")
MARRIAGE_ALLOWANCE = Decimal("1260")

# Flat-rate approximation used by the legacy Week1/Month1 basis
FLAT_BASIC_RATE = Decimal("20")


@dataclass(frozen=True)
class TaxYearConfig:
    """Rates and thresholds for one tax year."""

    code: str                               # e.g. "2024-25"
    personal_allowance: Decimal
    pa_taper_threshold: Decimal             # PA reduces £1 per £2 above this
    marriage_allowance: Decimal             # transferable amount
    ni_primary_threshold: Decimal           # annual
    ni_upper_earnings_limit: Decimal        # annual
    ni_main_rate: Decimal                   # percent
    ni_higher_rate: Decimal                 # percent
    uk_bands: Tuple[TaxBand, ...]
    scottish_bands: Tuple[TaxBand, ...]
    fuel_benefit_charge: Decimal            # company car fuel multiplier
    bik_max_percentage: Decimal = Decimal("37")


# ── Income Tax (England, Wales & NI) ─────────────────────────────────
_UK_BANDS_2024 = (
    TaxBand("Personal Allowance", Decimal("0"), Decimal("0"), Decimal("12570")),
    TaxBand("Basic Rate", Decimal("20"), Decimal("12570"), Decimal("50270")),
    TaxBand("Higher Rate", Decimal("40"), Decimal("50270"), Decimal("125140")),
    TaxBand("Additional Rate", Decimal("45"), Decimal("125140"), UNBOUNDED),
)

# ── Income Tax (Scotland) ────────────────────────────────────────────
_SCOTTISH_BANDS_2024 = (
    TaxBand("Personal Allowance", Decimal("0"), Decimal("0"), Decimal("12570")),
    TaxBand("Starter Rate", Decimal("19"), Decimal("12570"), Decimal("14732")),
    TaxBand("Basic Rate", Decimal("20"), Decimal("14732"), Decimal("25688")),
    TaxBand("Intermediate Rate", Decimal("21"), Decimal("25688"), Decimal("43662")),
    TaxBand("Higher Rate", Decimal("42"), Decimal("43662"), Decimal("125140")),
    TaxBand("Top Rate", Decimal("47"), Decimal("125140"), UNBOUNDED),
)

_SCOTTISH_BANDS_2025 = (
    TaxBand("Personal Allowance", Decimal("0"), Decimal("0"), Decimal("12570")),
    TaxBand("Starter Rate", Decimal("19"), Decimal("12570"), Decimal("15397")),
    TaxBand("Basic Rate", Decimal("20"), Decimal("15397"), Decimal("27491")),
    TaxBand("Intermediate Rate", Decimal("21"), Decimal("27491"), Decimal("43662")),
    TaxBand("Higher Rate", Decimal("42"), Decimal("43662"), Decimal("75000")),
    TaxBand("Advanced Rate", Decimal("45"), Decimal("75000"), Decimal("125140")),
    TaxBand("Top Rate", Decimal("48"), Decimal("125140"), UNBOUNDED),
)

# ── Tax years ────────────────────────────────────────────────────────
TAX_YEARS: Dict[str, TaxYearConfig] = {
    "2024-25": TaxYearConfig(
        code="2024-25",
        personal_allowance=Decimal("12570"),
        pa_taper_threshold=Decimal("100000"),
        marriage_allowance=MARRIAGE_ALLOWANCE,
        ni_primary_threshold=Decimal("12570"),
        ni_upper_earnings_limit=Decimal("50270"),
        ni_main_rate=Decimal("8"),
        ni_higher_rate=Decimal("2"),
        uk_bands=_UK_BANDS_2024,
        scottish_bands=_SCOTTISH_BANDS_2024,
        fuel_benefit_charge=Decimal("27800"),
    ),
    "2025-26": TaxYearConfig(
        code="2025-26",
        personal_allowance=Decimal("12570"),
        pa_taper_threshold=Decimal("100000"),
        marriage_allowance=MARRIAGE_ALLOWANCE,
        ni_primary_threshold=Decimal("12570"),
        ni_upper_earnings_limit=Decimal("50270"),
        ni_main_rate=Decimal("8"),
        ni_higher_rate=Decimal("2"),
        uk_bands=_UK_BANDS_2024,       # rUK thresholds frozen
        scottish_bands=_SCOTTISH_BANDS_2025,
        fuel_benefit_charge=Decimal("28200"),
    ),
}

DEFAULT_TAX_YEAR = "2024-25"


def get_tax_year(code: str | None = None) -> TaxYearConfig:
    """Return the rate table for *code* (default: ``DEFAULT_TAX_YEAR``)."""
    key = code or DEFAULT_TAX_YEAR
    try:
        return TAX_YEARS[key]
    except KeyError:
        known = ", ".join(sorted(TAX_YEARS))
        raise UnknownTaxYearError(f"No rate table for tax year {key!r} (known: {known})") from None


# ── Application settings (environment) ──────────────────────────────
def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the CLI and web app."""

    tax_year: str = DEFAULT_TAX_YEAR
    log_level: str = "INFO"
    log_json: bool = False
    report_path: str = "paye_report.pdf"
    host: str = "127.0.0.1"
    port: int = 5000


def load_settings() -> Settings:
    """Read settings from ``PAYE_*`` environment variables."""
    tax_year = os.environ.get("PAYE_TAX_YEAR", DEFAULT_TAX_YEAR)
    get_tax_year(tax_year)  # fail fast on a typo
    return Settings(
        tax_year=tax_year,
        log_level=os.environ.get("PAYE_LOG_LEVEL", "INFO").upper(),
        log_json=_env_bool("PAYE_LOG_JSON"),
        report_path=os.environ.get("PAYE_REPORT_PATH", "paye_report.pdf"),
        host=os.environ.get("PAYE_HOST", "127.0.0.1"),
        port=int(os.environ.get("PAYE_PORT", "5000")),
    )
