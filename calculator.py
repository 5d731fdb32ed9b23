"""
Top-level PAYE calculation: salary + tax code -> annual summary, income
tax and NI bands, and a monthly breakdown.

``calculate_tax_details`` is the single entry point used by the CLI, the
web app and the report. It keeps no state between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import config as cfg
import tax
from config import TaxYearConfig
from periods import (
    NonCumulativeBasis,
    Period,
    PeriodDetail,
    PeriodTaxFn,
    amortize,
    periods_to_date,
    weekly_breakdown,
)
from precision import DEFAULT_ARITHMETIC, Numeric, PrecisionArithmetic
from tax import BandAllocation
from tax_code import SpecialRate, TaxCode, parse_tax_code
from validation import parse_amount, validate_salary, validate_scenario_name

logger = logging.getLogger(__name__)

PeriodSpec = Union[Period, Mapping[str, Any], None]


# ─── Data Classes ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class AnnualSummary:
    gross: Decimal
    total_income_tax: Decimal
    total_ni: Decimal
    net_annual: Decimal
    personal_allowance: Decimal     # tax-free amount actually used

    @property
    def net_monthly(self) -> Decimal:
        return DEFAULT_ARITHMETIC.divide(self.net_annual, cfg.MONTHS_IN_YEAR)

    @property
    def effective_rate(self) -> Decimal:
        """Income tax plus NI as a percentage of gross."""
        deductions = DEFAULT_ARITHMETIC.add(self.total_income_tax, self.total_ni)
        return DEFAULT_ARITHMETIC.percentage(deductions, self.gross)


@dataclass(frozen=True)
class TaxCalculationResult:
    """Everything ``calculate_tax_details`` produces. Values keep full precision."""

    annual_summary: AnnualSummary
    monthly_breakdown: List[PeriodDetail]
    income_tax_bands: List[BandAllocation]
    ni_bands: List[BandAllocation]
    tax_code: TaxCode
    tax_year: str
    is_cumulative: bool = True
    non_cumulative_basis: NonCumulativeBasis = NonCumulativeBasis.BANDED

    @property
    def current_period(self) -> Optional[PeriodDetail]:
        """Last generated month (the one a period calculator displays)."""
        return self.monthly_breakdown[-1] if self.monthly_breakdown else None

    def to_dict(self, places: int = 2) -> Dict[str, Any]:
        """Presentation view: Decimals rounded half-up, unbounded as a string."""
        s = self.annual_summary
        return {
            "taxYear": self.tax_year,
            "taxCode": self.tax_code.code,
            "isCumulative": self.is_cumulative,
            "annualSummary": {
                "gross": _present(s.gross, places),
                "totalIncomeTax": _present(s.total_income_tax, places),
                "totalNI": _present(s.total_ni, places),
                "netAnnual": _present(s.net_annual, places),
                "personalAllowance": _present(s.personal_allowance, places),
            },
            "monthlyBreakdown": [period_to_dict(p, places) for p in self.monthly_breakdown],
            "incomeTaxBands": [band_to_dict(b, places) for b in self.income_tax_bands],
            "niBands": [band_to_dict(b, places) for b in self.ni_bands],
        }


def _present(value: Decimal, places: int) -> Union[float, str]:
    if value.is_infinite():
        return "unbounded"
    return float(DEFAULT_ARITHMETIC.round(value, places))


def band_to_dict(band: BandAllocation, places: int = 2) -> Dict[str, Any]:
    return {
        "band": band.label,
        "rate": f"{band.rate.normalize():f}%",
        "from": _present(band.lower, places),
        "to": _present(band.upper, places),
        "amount": _present(band.amount, places),
        "tax": _present(band.tax, places),
    }


def period_to_dict(p: PeriodDetail, places: int = 2) -> Dict[str, Any]:
    return {
        "month": p.label,
        "monthNumber": p.index,
        "gross": _present(p.gross, places),
        "taxFree": _present(p.tax_free, places),
        "taxable": _present(p.taxable, places),
        "incomeTax": _present(p.income_tax, places),
        "nationalInsurance": _present(p.national_insurance, places),
        "netPay": _present(p.net, places),
    }


# ─── Helpers ─────────────────────────────────────────────────────────

def _coerce_period(spec: PeriodSpec) -> Optional[Period]:
    if spec is None or isinstance(spec, Period):
        return spec
    return Period(str(spec["type"]), int(spec["number"]))


def _tax_free_allowance(gross: Decimal, tax_code: TaxCode, config: TaxYearConfig,
                        arith: PrecisionArithmetic) -> Decimal:
    """Annual tax-free figure used for the period breakdown."""
    if tax_code.special_rate is SpecialRate.NT:
        return max(gross, Decimal(0))
    if tax_code.is_flat_rate:
        return Decimal(0)
    return tax.personal_allowance(gross, tax_code.base_allowance, config, arith)


def _period_tax_fn(
    tax_code: TaxCode,
    allowance: Decimal,
    periods_per_year: int,
    basis: NonCumulativeBasis,
    config: TaxYearConfig,
    arith: PrecisionArithmetic,
) -> Optional[PeriodTaxFn]:
    if basis is NonCumulativeBasis.FLAT_BASIC and not tax_code.is_flat_rate:
        return None

    def period_tax(period_gross: Decimal) -> Decimal:
        return tax.period_income_tax(period_gross, tax_code, allowance, periods_per_year, config, arith)

    return period_tax


# ─── Entry Point ─────────────────────────────────────────────────────

def calculate_tax_details(
    annual_salary: Numeric,
    tax_code: str,
    is_cumulative: bool = True,
    current_period: PeriodSpec = None,
    *,
    tax_year: Optional[str] = None,
    non_cumulative_basis: NonCumulativeBasis = NonCumulativeBasis.BANDED,
    arith: Optional[PrecisionArithmetic] = None,
) -> TaxCalculationResult:
    """Calculate income tax, NI and take-home pay for one salary.

    Parameters
    ----------
    annual_salary : Numeric
        Annual gross salary. Not validated here.
    tax_code : str
        HMRC tax code; unrecognised codes fall back to ``1257L``.
    is_cumulative : bool
        Cumulative basis (even monthly split). A code carrying ``W1``,
        ``M1`` or ``X`` forces the non-cumulative basis regardless.
    current_period : Period or mapping, optional
        ``Period("month", n)`` / ``{"type": "week", "number": n}``; limits
        the breakdown to months ``1..n``.
    tax_year : str, optional
        Rate table code, default ``config.DEFAULT_TAX_YEAR``.
    non_cumulative_basis : NonCumulativeBasis
        How independent periods are taxed.
    arith : PrecisionArithmetic, optional
        Arithmetic context, default 20 significant digits, half-up.

    Returns
    -------
    TaxCalculationResult
    """
    arith = arith or DEFAULT_ARITHMETIC
    config = cfg.get_tax_year(tax_year)
    gross = arith.to_decimal(annual_salary)
    code = parse_tax_code(tax_code)
    period = _coerce_period(current_period)
    cumulative = is_cumulative and not code.is_non_cumulative

    logger.debug(
        "calculate_tax_details salary=%s code=%s cumulative=%s period=%s year=%s",
        gross, code.code, cumulative, period, config.code,
    )

    allowance = _tax_free_allowance(gross, code, config, arith)
    it_bands = tax.income_tax_bands(gross, code, config, allowance=allowance, arith=arith)
    ni_bands = tax.national_insurance_bands(gross, config, arith)

    total_it = tax.total_tax(it_bands, arith)
    total_ni = tax.total_tax(ni_bands, arith)

    monthly = amortize(
        gross, total_it, total_ni, cumulative, period,
        annual_allowance=allowance,
        period_tax=_period_tax_fn(code, allowance, cfg.MONTHS_IN_YEAR,
                                  non_cumulative_basis, config, arith),
        config=config,
        arith=arith,
    )

    summary = AnnualSummary(
        gross=gross,
        total_income_tax=total_it,
        total_ni=total_ni,
        net_annual=arith.subtract(arith.subtract(gross, total_it), total_ni),
        personal_allowance=allowance,
    )
    return TaxCalculationResult(
        annual_summary=summary,
        monthly_breakdown=monthly,
        income_tax_bands=it_bands,
        ni_bands=ni_bands,
        tax_code=code,
        tax_year=config.code,
        is_cumulative=cumulative,
        non_cumulative_basis=non_cumulative_basis,
    )


def weekly_details(
    result: TaxCalculationResult,
    up_to_week: Optional[int] = None,
    arith: Optional[PrecisionArithmetic] = None,
) -> List[PeriodDetail]:
    """Weekly breakdown for an existing result (same code, year and basis)."""
    arith = arith or DEFAULT_ARITHMETIC
    config = cfg.get_tax_year(result.tax_year)
    s = result.annual_summary
    return weekly_breakdown(
        s.gross, s.total_income_tax, s.total_ni, result.is_cumulative, up_to_week,
        annual_allowance=s.personal_allowance,
        period_tax=_period_tax_fn(result.tax_code, s.personal_allowance, cfg.WEEKS_IN_YEAR,
                                  result.non_cumulative_basis, config, arith),
        config=config,
        arith=arith,
    )


def year_to_date(result: TaxCalculationResult) -> PeriodDetail:
    """Totals for every month in the result's breakdown."""
    return periods_to_date(result.monthly_breakdown)


# ─── Scenario Comparison ─────────────────────────────────────────────

@dataclass
class Scenario:
    """A named salary / tax code pair to compare."""

    name: str
    salary: Decimal
    tax_code: str = cfg.DEFAULT_TAX_CODE
    is_cumulative: bool = True

    def __post_init__(self) -> None:
        validate_scenario_name(self.name).raise_for_error()
        validate_salary(self.salary).raise_for_error()
        self.salary = parse_amount(self.salary)


@dataclass(frozen=True)
class ScenarioOutcome:
    scenario: Scenario
    result: TaxCalculationResult = field(repr=False)
    net_difference: Decimal          # annual net pay minus the first scenario's

    @property
    def summary(self) -> AnnualSummary:
        return self.result.annual_summary


def compare_scenarios(
    scenarios: Sequence[Scenario],
    tax_year: Optional[str] = None,
) -> List[ScenarioOutcome]:
    """Run each scenario and measure its net pay against the first one."""
    if not scenarios:
        return []
    results = [
        calculate_tax_details(s.salary, s.tax_code, s.is_cumulative, tax_year=tax_year)
        for s in scenarios
    ]
    baseline = results[0].annual_summary.net_annual
    return [
        ScenarioOutcome(
            scenario=s,
            result=r,
            net_difference=DEFAULT_ARITHMETIC.subtract(r.annual_summary.net_annual, baseline),
        )
        for s, r in zip(scenarios, results)
    ]


# ─── Salary Period Conversion ────────────────────────────────────────

PAY_PERIODS_PER_YEAR = {
    "yearly": 1,
    "monthly": cfg.MONTHS_IN_YEAR,
    "weekly": cfg.WEEKS_IN_YEAR,
    "daily": 260,       # 5 days a week, 52 weeks
}


def convert_to_yearly(amount: Numeric, period: str, hours_per_week: Numeric = 40) -> Decimal:
    """Annualise a pay figure quoted per hour, day, week, month or year."""
    arith = DEFAULT_ARITHMETIC
    if period == "hourly":
        yearly = arith.multiply(arith.multiply(amount, hours_per_week), cfg.WEEKS_IN_YEAR)
    elif period in PAY_PERIODS_PER_YEAR:
        yearly = arith.multiply(amount, PAY_PERIODS_PER_YEAR[period])
    else:
        raise ValueError(f"Unknown pay period {period!r}")
    return arith.round(yearly)


def annual_to_period(amount: Numeric, period: str, hours_per_week: Numeric = 40) -> Decimal:
    """Inverse of ``convert_to_yearly``, rounded to the penny."""
    arith = DEFAULT_ARITHMETIC
    if period == "hourly":
        if arith.to_decimal(hours_per_week) <= 0:
            raise ValueError("Hours per week must be positive")
        value = arith.divide(arith.divide(amount, cfg.WEEKS_IN_YEAR), hours_per_week)
    elif period in PAY_PERIODS_PER_YEAR:
        value = arith.divide(amount, PAY_PERIODS_PER_YEAR[period])
    else:
        raise ValueError(f"Unknown pay period {period!r}")
    return arith.round(value)
