"""
Spread annual income tax and NI across the pay periods of a tax year.

Month 1 is April and month 12 is March. On the cumulative basis every
month carries an even twelfth of the annual tax. On the Week1/Month1
(non-cumulative) basis each period is assessed on its own, either with a
caller-supplied per-period tax function or with the flat 20% approximation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal
from enum import Enum
from typing import Callable, List, Optional

import config as cfg
from config import TaxYearConfig
from precision import DEFAULT_ARITHMETIC, Numeric, PrecisionArithmetic

logger = logging.getLogger(__name__)

# Tax for one period, given that period's gross pay
PeriodTaxFn = Callable[[Decimal], Decimal]


class NonCumulativeBasis(str, Enum):
    BANDED = "banded"            # schedule and allowance divided per period
    FLAT_BASIC = "flat_basic"    # 20% of the period's taxable pay


@dataclass(frozen=True)
class Period:
    """A pay period selector: ``Period("month", 3)`` or ``Period("week", 14)``."""

    kind: str
    number: int

    def __post_init__(self) -> None:
        if self.kind not in ("month", "week"):
            raise ValueError("Period kind must be 'month' or 'week'")
        limit = cfg.MONTHS_IN_YEAR if self.kind == "month" else cfg.WEEKS_IN_YEAR
        if not 1 <= self.number <= limit:
            raise ValueError(f"{self.kind.title()} number must be 1-{limit}")

    def to_month(self) -> int:
        """Tax month containing this period (weeks via ``ceil(week / 4.33)``)."""
        if self.kind == "month":
            return self.number
        return week_to_month(self.number)


def week_to_month(week: int) -> int:
    month = DEFAULT_ARITHMETIC.divide(week, cfg.WEEKS_PER_MONTH).to_integral_value(rounding=ROUND_CEILING)
    return min(max(int(month), 1), cfg.MONTHS_IN_YEAR)


def month_name(index: int) -> str:
    return cfg.MONTH_NAMES[(index - 1) % cfg.MONTHS_IN_YEAR]


@dataclass(frozen=True)
class PeriodDetail:
    """One row of a monthly or weekly breakdown."""

    label: str
    index: int
    gross: Decimal
    tax_free: Decimal
    taxable: Decimal
    income_tax: Decimal
    national_insurance: Decimal
    net: Decimal


def flat_basic_period_tax(taxable: Decimal,
                          arith: PrecisionArithmetic = DEFAULT_ARITHMETIC) -> Decimal:
    """Legacy Week1/Month1 approximation: 20% of positive taxable pay."""
    if taxable <= 0:
        return Decimal(0)
    return arith.percentage_of(taxable, cfg.FLAT_BASIC_RATE)


def _breakdown(
    periods_per_year: int,
    count: int,
    label_for: Callable[[int], str],
    gross_annual: Numeric,
    total_income_tax: Numeric,
    total_ni: Numeric,
    is_cumulative: bool,
    annual_allowance: Numeric,
    period_tax: Optional[PeriodTaxFn],
    arith: PrecisionArithmetic,
) -> List[PeriodDetail]:
    gross = arith.divide(gross_annual, periods_per_year)
    allowance = arith.divide(annual_allowance, periods_per_year)
    tax_free = max(allowance, Decimal(0))
    taxable = arith.subtract(gross, allowance)
    even_tax = arith.divide(total_income_tax, periods_per_year)
    ni = arith.divide(total_ni, periods_per_year)

    if is_cumulative:
        tax = even_tax
    elif period_tax is not None:
        tax = period_tax(gross)
    else:
        tax = flat_basic_period_tax(taxable, arith)

    net = arith.subtract(gross, arith.add(tax, ni))
    return [
        PeriodDetail(
            label=label_for(i),
            index=i,
            gross=gross,
            tax_free=tax_free,
            taxable=taxable,
            income_tax=tax,
            national_insurance=ni,
            net=net,
        )
        for i in range(1, count + 1)
    ]


def amortize(
    gross_annual: Numeric,
    total_income_tax: Numeric,
    total_ni: Numeric,
    is_cumulative: bool,
    target_period: Optional[Period] = None,
    *,
    annual_allowance: Optional[Numeric] = None,
    period_tax: Optional[PeriodTaxFn] = None,
    config: TaxYearConfig = cfg.TAX_YEARS[cfg.DEFAULT_TAX_YEAR],
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> List[PeriodDetail]:
    """Monthly breakdown of an annual tax position.

    Parameters
    ----------
    gross_annual, total_income_tax, total_ni : Numeric
        Annual figures to spread.
    is_cumulative : bool
        ``True`` splits the annual tax evenly; ``False`` assesses each
        month independently.
    target_period : Period, optional
        Only months ``1..target`` are produced (weeks map to their month).
    annual_allowance : Numeric, optional
        Tax-free amount for the year (defaults to the year's personal
        allowance). Negative for K codes.
    period_tax : callable, optional
        Month1-basis tax for one month's gross pay. Without it the flat
        20% approximation is used on the non-cumulative basis.
    """
    if annual_allowance is None:
        annual_allowance = config.personal_allowance
    count = target_period.to_month() if target_period is not None else cfg.MONTHS_IN_YEAR
    logger.debug("Amortising %s over %d months (cumulative=%s)", gross_annual, count, is_cumulative)
    return _breakdown(
        cfg.MONTHS_IN_YEAR, count, month_name,
        gross_annual, total_income_tax, total_ni, is_cumulative,
        annual_allowance, period_tax, arith,
    )


def weekly_breakdown(
    gross_annual: Numeric,
    total_income_tax: Numeric,
    total_ni: Numeric,
    is_cumulative: bool,
    up_to_week: Optional[int] = None,
    *,
    annual_allowance: Optional[Numeric] = None,
    period_tax: Optional[PeriodTaxFn] = None,
    config: TaxYearConfig = cfg.TAX_YEARS[cfg.DEFAULT_TAX_YEAR],
    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC,
) -> List[PeriodDetail]:
    """Weekly version of ``amortize``; each row is labelled with its tax month."""
    if annual_allowance is None:
        annual_allowance = config.personal_allowance
    count = cfg.WEEKS_IN_YEAR if up_to_week is None else up_to_week
    if not 1 <= count <= cfg.WEEKS_IN_YEAR:
        raise ValueError(f"Week number must be 1-{cfg.WEEKS_IN_YEAR}")
    return _breakdown(
        cfg.WEEKS_IN_YEAR, count,
        lambda week: f"Week {week} ({month_name(week_to_month(week))})",
        gross_annual, total_income_tax, total_ni, is_cumulative,
        annual_allowance, period_tax, arith,
    )


def periods_to_date(details: List[PeriodDetail],
                    arith: PrecisionArithmetic = DEFAULT_ARITHMETIC) -> PeriodDetail:
    """Sum a breakdown into a single year-to-date row labelled by its last period."""
    if not details:
        raise ValueError("No periods to total")
    last = details[-1]
    return PeriodDetail(
        label=f"To {last.label}",
        index=last.index,
        gross=arith.sum(d.gross for d in details),
        tax_free=arith.sum(d.tax_free for d in details),
        taxable=arith.sum(d.taxable for d in details),
        income_tax=arith.sum(d.income_tax for d in details),
        national_insurance=arith.sum(d.national_insurance for d in details),
        net=arith.sum(d.net for d in details),
    )
