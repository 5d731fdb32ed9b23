"""
UK income tax and National Insurance band calculations.

All amounts are ``Decimal`` and every function is pure: the rate schedule
comes in through a ``TaxYearConfig`` and arithmetic through a
``PrecisionArithmetic`` (both defaulted). Chart helpers at the bottom
return numpy arrays for plotting across a salary grid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Dict, List, Optional, Sequence

import numpy as np

import config as cfg
from config import UNBOUNDED, TaxBand, TaxYearConfig
from precision import DEFAULT_ARITHMETIC, Numeric, PrecisionArithmetic
from tax_code import Region, SpecialRate, TaxCode, parse_tax_code

logger = logging.getLogger(__name__)

ZERO = Decimal(0)

# Annualised NI figures are held to this many decimal places so the
# divide-by-12 then multiply-by-12 round trip leaves no residue
ANNUALISED_PLACES = 10

# The allowance taper moves in whole pounds per £2 of income
MARGINAL_DELTA = Decimal(2)


# ─── Data Classes ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class BandAllocation:
    """A ``TaxBand`` plus the income falling in it and the tax on that income."""

    label: str
    rate: Decimal
    lower: Decimal
    upper: Decimal
    amount: Decimal
    tax: Decimal

    @classmethod
    def from_band(cls, band: TaxBand, amount: Decimal, tax: Decimal) -> "BandAllocation":
        return cls(band.label, band.rate, band.lower, band.upper, amount, tax)

    @property
    def band(self) -> TaxBand:
        return TaxBand(self.label, self.rate, self.lower, self.upper)

    @property
    def is_unbounded(self) -> bool:
        return self.upper.is_infinite()


def total_tax(allocations: Sequence[BandAllocation],
              arith: PrecisionArithmetic = DEFAULT_ARITHMETIC) -> Decimal:
    return arith.sum(a.tax for a in allocations)


def total_amount(allocations: Sequence[BandAllocation],
                 arith: PrecisionArithmetic = DEFAULT_ARITHMETIC) -> Decimal:
    return arith.sum(a.amount for a in allocations)


# ─── Personal Allowance ─────────────────────────────────────────────

def personal_allowance(
    gross_income: Numeric,
    base_allowance: Numeric,
    config: TaxYearConfig = cfg.TAX_YEARS[cfg.DEFAULT_TAX_YEAR],
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> Decimal:
    """Apply the high-income taper to a tax-code allowance.

    Above the taper threshold (£100,000) the allowance drops by £1 for
    every whole £2 of excess, never below zero. K-code (negative) and NT
    (infinite) allowances are returned unchanged.

    Parameters
    ----------
    gross_income : Numeric
        Annual gross income.
    base_allowance : Numeric
        Allowance encoded in the tax code.
    config : TaxYearConfig
        Tax year supplying the taper threshold.
    """
    gross = arith.to_decimal(gross_income)
    allowance = arith.to_decimal(base_allowance)
    if not allowance.is_finite() or allowance <= 0:
        return allowance
    if gross <= config.pa_taper_threshold:
        return allowance

    excess = arith.subtract(gross, config.pa_taper_threshold)
    halved = arith.divide(excess, 2).to_integral_value(rounding=ROUND_FLOOR)
    reduction = min(allowance, halved)
    tapered = arith.subtract(allowance, reduction)
    logger.debug("Allowance tapered from %s to %s for income %s", allowance, tapered, gross)
    return tapered


# ─── Schedules ──────────────────────────────────────────────────────

def schedule_for(region: Region, config: TaxYearConfig) -> Sequence[TaxBand]:
    """Return the configured band schedule for *region* (Wales uses rUK)."""
    if region is Region.SCOTLAND:
        return config.scottish_bands
    return config.uk_bands


def scale_schedule(
    bands: Sequence[TaxBand],
    divisor: Numeric,
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> List[TaxBand]:
    """Divide every threshold by *divisor* (annual to per-period)."""
    return [
        TaxBand(b.label, b.rate, arith.divide(b.lower, divisor), arith.divide(b.upper, divisor))
        for b in bands
    ]


def effective_schedule(
    bands: Sequence[TaxBand],
    allowance: Numeric,
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> List[TaxBand]:
    """Rebase a schedule on the allowance actually available.

    The first band's upper bound becomes *allowance* (clamped at zero) and
    every later band keeps its configured width, laid end to end after it.
    """
    allowance = max(arith.to_decimal(allowance), ZERO)
    first = bands[0]
    rebased = [TaxBand(first.label, first.rate, ZERO, allowance)]
    lower = allowance
    for band in bands[1:]:
        upper = UNBOUNDED if band.is_unbounded else arith.add(lower, band.width)
        rebased.append(TaxBand(band.label, band.rate, lower, upper))
        lower = upper
    return rebased


# ─── Band Allocation ────────────────────────────────────────────────

def allocate(
    income: Numeric,
    bands: Sequence[TaxBand],
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> List[BandAllocation]:
    """Spread *income* across *bands* from the bottom up.

    Every band appears in the result; bands above the income get zero.
    The amounts always sum to ``max(0, income)`` provided the top band
    is unbounded.
    """
    remaining = arith.to_decimal(income)
    allocations = []
    for band in bands:
        if remaining > 0:
            amount = max(min(remaining, band.width), ZERO)
        else:
            amount = ZERO
        tax = arith.percentage_of(amount, band.rate)
        remaining = arith.subtract(remaining, amount)
        allocations.append(BandAllocation.from_band(band, amount, tax))
        if amount > 0:
            logger.debug("Band %s: amount=%s tax=%s rate=%s%%", band.label, amount, tax, band.rate)
    return allocations


def flat_rate_allocation(
    income: Numeric,
    special: SpecialRate,
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> List[BandAllocation]:
    """Single-band allocation for BR, D0, D1 and NT codes."""
    rate = special.flat_rate
    if rate is None:
        raise ValueError(f"{special.value} is not a flat-rate code")
    amount = max(arith.to_decimal(income), ZERO)
    band = TaxBand(f"Flat Rate ({special.value})", rate, ZERO, UNBOUNDED)
    return [BandAllocation.from_band(band, amount, arith.percentage_of(amount, rate))]


# ─── Income Tax ──────────────────────────────────────────────────────

def taxable_base(gross_income: Numeric, allowance: Numeric,
                 arith: PrecisionArithmetic = DEFAULT_ARITHMETIC) -> Decimal:
    """Income to spread across the schedule: K-code amounts are added on."""
    gross = arith.to_decimal(gross_income)
    allowance = arith.to_decimal(allowance)
    if allowance < 0:
        return arith.subtract(gross, allowance)
    return gross


def income_tax_bands(
    gross_income: Numeric,
    tax_code: TaxCode,
    config: TaxYearConfig = cfg.TAX_YEARS[cfg.DEFAULT_TAX_YEAR],
    allowance: Optional[Numeric] = None,
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> List[BandAllocation]:
    """Annual income tax, band by band.

    Parameters
    ----------
    gross_income : Numeric
        Annual gross income.
    tax_code : TaxCode
        Parsed tax code; flat-rate codes bypass the schedule.
    config : TaxYearConfig
        Rate table.
    allowance : Numeric, optional
        Effective allowance; computed with the taper when omitted.
    """
    if tax_code.is_flat_rate:
        return flat_rate_allocation(gross_income, tax_code.special_rate, arith)

    if allowance is None:
        allowance = personal_allowance(gross_income, tax_code.base_allowance, config, arith)
    bands = effective_schedule(schedule_for(tax_code.region, config), allowance, arith)
    return allocate(taxable_base(gross_income, allowance, arith), bands, arith)


def annual_income_tax(
    gross_income: Numeric,
    tax_code: TaxCode | str,
    config: TaxYearConfig = cfg.TAX_YEARS[cfg.DEFAULT_TAX_YEAR],
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> Decimal:
    if isinstance(tax_code, str):
        tax_code = parse_tax_code(tax_code)
    return total_tax(income_tax_bands(gross_income, tax_code, config, arith=arith), arith)


def period_income_tax(
    period_gross: Numeric,
    tax_code: TaxCode,
    annual_allowance: Numeric,
    periods_per_year: int = cfg.MONTHS_IN_YEAR,
    config: TaxYearConfig = cfg.TAX_YEARS[cfg.DEFAULT_TAX_YEAR],
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> Decimal:
    """Income tax for one pay period on a Week1/Month1 basis.

    The schedule thresholds and the allowance are divided by the number of
    periods in the year and the period's pay is banded on its own.
    """
    if tax_code.is_flat_rate:
        return arith.percentage_of(max(arith.to_decimal(period_gross), ZERO), tax_code.flat_rate)

    period_allowance = arith.divide(annual_allowance, periods_per_year)
    scaled = scale_schedule(schedule_for(tax_code.region, config), periods_per_year, arith)
    bands = effective_schedule(scaled, period_allowance, arith)
    return total_tax(allocate(taxable_base(period_gross, period_allowance, arith), bands, arith), arith)


# ─── National Insurance ─────────────────────────────────────────────

def _ni_period_allocations(
    period_gross: Decimal,
    periods_per_year: int,
    config: TaxYearConfig,
    arith: PrecisionArithmetic,
) -> List[BandAllocation]:
    pt = arith.divide(config.ni_primary_threshold, periods_per_year)
    uel = arith.divide(config.ni_upper_earnings_limit, periods_per_year)

    below = max(min(period_gross, pt), ZERO)
    main = max(min(arith.subtract(period_gross, pt), arith.subtract(uel, pt)), ZERO)
    higher = max(arith.subtract(period_gross, uel), ZERO)

    rows = (
        (TaxBand("Below Primary Threshold", ZERO, ZERO, pt), below),
        (TaxBand("Main Rate", config.ni_main_rate, pt, uel), main),
        (TaxBand("Higher Rate", config.ni_higher_rate, uel, UNBOUNDED), higher),
    )
    return [
        BandAllocation.from_band(band, amount, arith.percentage_of(amount, band.rate))
        for band, amount in rows
    ]


def national_insurance_bands(
    gross_income: Numeric,
    config: TaxYearConfig = cfg.TAX_YEARS[cfg.DEFAULT_TAX_YEAR],
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> List[BandAllocation]:
    """Employee Class 1 NI expressed as three annual bands (0%, main, higher).

    NI is assessed per pay period, so the bands are worked out on the
    monthly equivalent of *gross_income* and then scaled back up by 12.
    """
    months = cfg.MONTHS_IN_YEAR
    monthly = arith.divide(gross_income, months)

    def annualise(value: Decimal) -> Decimal:
        return arith.round(arith.multiply(value, months), ANNUALISED_PLACES)

    annualised = []
    for a in _ni_period_allocations(monthly, months, config, arith):
        annualised.append(BandAllocation(
            label=a.label,
            rate=a.rate,
            lower=annualise(a.lower),
            upper=a.upper if a.is_unbounded else annualise(a.upper),
            amount=annualise(a.amount),
            tax=annualise(a.tax),
        ))
    return annualised


def annual_national_insurance(
    gross_income: Numeric,
    config: TaxYearConfig = cfg.TAX_YEARS[cfg.DEFAULT_TAX_YEAR],
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> Decimal:
    return total_tax(national_insurance_bands(gross_income, config, arith), arith)


def period_national_insurance(
    period_gross: Numeric,
    periods_per_year: int = cfg.MONTHS_IN_YEAR,
    config: TaxYearConfig = cfg.TAX_YEARS[cfg.DEFAULT_TAX_YEAR],
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> Decimal:
    """NI for a single weekly or monthly pay period."""
    gross = arith.to_decimal(period_gross)
    return total_tax(_ni_period_allocations(gross, periods_per_year, config, arith), arith)


# ─── Marginal Rate Breakdown ────────────────────────────────────────

def marginal_rate_breakdown(
    salary: Numeric,
    tax_code: TaxCode | str = cfg.DEFAULT_TAX_CODE,
    config: TaxYearConfig = cfg.TAX_YEARS[cfg.DEFAULT_TAX_YEAR],
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> Dict[str, float]:
    """Marginal and effective rate breakdown for a single salary.

    Each component is measured over a £2 step and divided back to a
    per-pound rate, so the whole-pound taper reads as 60% at any salary
    inside it.

    Returns
    -------
    dict
        Keys: ``'income_tax_pct'``, ``'ni_pct'``, ``'total_marginal_pct'``,
        ``'effective_pct'``.
    """
    if isinstance(tax_code, str):
        tax_code = parse_tax_code(tax_code)
    s0 = arith.to_decimal(salary)
    s1 = arith.add(s0, MARGINAL_DELTA)

    it0 = annual_income_tax(s0, tax_code, config, arith)
    it1 = annual_income_tax(s1, tax_code, config, arith)
    ni0 = annual_national_insurance(s0, config, arith)
    ni1 = annual_national_insurance(s1, config, arith)

    it_marginal = arith.divide(arith.subtract(it1, it0), MARGINAL_DELTA)
    ni_marginal = arith.divide(arith.subtract(ni1, ni0), MARGINAL_DELTA)
    effective = arith.percentage(arith.add(it0, ni0), s0) if s0 > 0 else ZERO

    return {
        "income_tax_pct": float(arith.round(arith.multiply(it_marginal, 100))),
        "ni_pct": float(arith.round(arith.multiply(ni_marginal, 100))),
        "total_marginal_pct": float(arith.round(arith.multiply(arith.add(it_marginal, ni_marginal), 100))),
        "effective_pct": float(arith.round(effective)),
    }


# ─── Salary Sweep (charts) ──────────────────────────────────────────

def effective_rate_curve(
    salaries: np.ndarray,
    tax_code: TaxCode | str = cfg.DEFAULT_TAX_CODE,
    config: TaxYearConfig = cfg.TAX_YEARS[cfg.DEFAULT_TAX_YEAR],
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> Dict[str, np.ndarray]:
    """Income tax, NI, net pay and effective rate across a salary grid.

    Parameters
    ----------
    salaries : array_like
        Annual gross salaries.

    Returns
    -------
    dict of np.ndarray
        Keys: ``'salary'``, ``'income_tax'``, ``'ni'``, ``'net'``,
        ``'effective_pct'``.
    """
    if isinstance(tax_code, str):
        tax_code = parse_tax_code(tax_code)
    salaries = np.asarray(salaries, dtype=float)

    it = np.fromiter(
        (float(annual_income_tax(s, tax_code, config, arith)) for s in salaries),
        dtype=float, count=salaries.size,
    )
    ni = np.fromiter(
        (float(annual_national_insurance(s, config, arith)) for s in salaries),
        dtype=float, count=salaries.size,
    )
    net = salaries - it - ni
    with np.errstate(divide="ignore", invalid="ignore"):
        effective = np.where(salaries > 0, (it + ni) / salaries * 100, 0.0)

    return {
        "salary": salaries,
        "income_tax": np.round(it, 2),
        "ni": np.round(ni, 2),
        "net": np.round(net, 2),
        "effective_pct": np.round(effective, 2),
    }
