"""
CLI interface and shared display-data computation for the PAYE
take-home pay calculator.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

import config as cfg
import tax
from calculator import (
    PAY_PERIODS_PER_YEAR,
    TaxCalculationResult,
    calculate_tax_details,
    convert_to_yearly,
)
from car_benefit import FUEL_TYPES, CarBenefitInputs, CarBenefitResult, calculate_car_benefit
from periods import Period
from precision import DEFAULT_ARITHMETIC
from tax_code import describe_tax_code, normalise
from validation import (
    parse_amount,
    validate_period_number,
    validate_salary,
    validate_tax_code,
)
import report

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
# Formatting helpers
# ═══════════════════════════════════════════════════════════════════

def fmt(val, decimals: int = 0) -> str:
    """Format number as £X,XXX."""
    if isinstance(val, Decimal) and val.is_infinite():
        return "no limit"
    return f"£{val:,.{decimals}f}"


def pct(val, decimals: int = 1) -> str:
    return f"{val:.{decimals}f}%"


# ═══════════════════════════════════════════════════════════════════
# Input collection (CLI)
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CalculationInputs:
    salary: Decimal
    tax_code: str
    is_cumulative: bool
    period: Optional[Period]
    tax_year: str
    car: Optional[CarBenefitInputs] = None


def _prompt_amount(label: str, default: str, min_val: float | None = None,
                   max_val: float | None = None) -> Decimal:
    while True:
        raw = input(f"  {label} [{default}]: ").strip() or default
        try:
            val = parse_amount(raw.replace("%", ""))
        except ValueError:
            print("    Invalid number, try again.")
            continue
        if min_val is not None and val < Decimal(str(min_val)):
            print(f"    Must be at least {min_val}")
            continue
        if max_val is not None and val > Decimal(str(max_val)):
            print(f"    Must be at most {max_val}")
            continue
        return val


def _prompt_int(
    label: str,
    default: int,
    min_val: int | None = None,
    max_val: int | None = None,
) -> int:
    while True:
        raw = input(f"  {label} [{default}]: ").strip()
        if not raw:
            return default
        try:
            val = int(float(raw.replace(",", "")))
            if min_val is not None and val < min_val:
                print(f"    Must be at least {min_val}")
                continue
            if max_val is not None and val > max_val:
                print(f"    Must be at most {max_val}")
                continue
            return val
        except ValueError:
            print("    Invalid number, try again.")


def _prompt_choice(label: str, options: list[str], default: str) -> str:
    opts = "/".join(options)
    while True:
        raw = input(f"  {label} ({opts}) [{default}]: ").strip().lower()
        if not raw:
            return default
        if raw in options:
            return raw
        print(f"    Choose from: {opts}")


_DEFAULT_PAY = {
    "yearly": "£35,000",
    "monthly": "£2,900",
    "weekly": "£675",
    "daily": "£135",
    "hourly": "£17",
}


def _prompt_salary() -> Decimal:
    pay_period = _prompt_choice("Pay quoted", ["yearly", "monthly", "weekly", "daily", "hourly"], "yearly")
    hours = Decimal(40)
    if pay_period == "hourly":
        hours = _prompt_amount("Hours per week", "40", 1, 100)
    while True:
        amount = _prompt_amount(f"Gross pay ({pay_period})", _DEFAULT_PAY[pay_period])
        salary = convert_to_yearly(amount, pay_period, hours)
        check = validate_salary(salary)
        if check.is_valid:
            if pay_period != "yearly":
                print(f"    = {fmt(salary)} a year")
            return salary
        print(f"    {check.message}")


def _prompt_tax_code() -> str:
    while True:
        raw = input(f"  Tax code [{cfg.DEFAULT_TAX_CODE}]: ").strip() or cfg.DEFAULT_TAX_CODE
        check = validate_tax_code(raw)
        if check.is_valid:
            return normalise(raw)
        print(f"    {check.message}")


def _prompt_period() -> Optional[Period]:
    kind = _prompt_choice("Show up to period", ["none", "month", "week"], "none")
    if kind == "none":
        return None
    limit = cfg.MONTHS_IN_YEAR if kind == "month" else cfg.WEEKS_IN_YEAR
    while True:
        number = _prompt_int(f"{kind.title()} number", 1, 1, limit)
        check = validate_period_number(number, kind)
        if check.is_valid:
            return Period(kind, number)
        print(f"    {check.message}")


def _prompt_car(tax_year: str) -> Optional[CarBenefitInputs]:
    if _prompt_choice("Company car?", ["yes", "no"], "no") != "yes":
        return None
    list_price = _prompt_amount("List price", "£30,000", 0)
    fuel = _prompt_choice("Fuel type", list(FUEL_TYPES), "petrol")
    co2 = 0
    electric_range = 0
    rde2 = True
    if fuel in ("petrol", "diesel"):
        co2 = _prompt_int("CO2 emissions (g/km)", 120, 0, 999)
    if fuel == "diesel":
        rde2 = _prompt_choice("RDE2 compliant?", ["yes", "no"], "yes") == "yes"
    if fuel == "hybrid":
        electric_range = _prompt_int("Electric range (miles)", 40, 0, 500)
    contribution = _prompt_amount("Capital contribution", "£0", 0)
    fuel_provided = _prompt_choice("Private fuel provided?", ["yes", "no"], "no") == "yes"
    return CarBenefitInputs(
        list_price=list_price,
        co2_emissions=co2,
        fuel_type=fuel,
        rde2_compliant=rde2,
        electric_range=electric_range,
        capital_contribution=contribution,
        private_fuel_provided=fuel_provided,
        tax_year=tax_year,
    )


def collect_inputs(tax_year: Optional[str] = None) -> CalculationInputs:
    """Prompt the user for salary, tax code and calculation options."""
    print("\n  Enter your details (press Enter for defaults):\n")

    salary = _prompt_salary()
    code = _prompt_tax_code()
    cumulative = _prompt_choice("Cumulative basis?", ["yes", "no"], "yes") == "yes"
    period = _prompt_period()
    years = sorted(cfg.TAX_YEARS)
    year = tax_year or _prompt_choice("Tax year", years, cfg.DEFAULT_TAX_YEAR)
    car = _prompt_car(year)

    return CalculationInputs(salary=salary, tax_code=code, is_cumulative=cumulative,
                     period=period, tax_year=year, car=car)


# ═══════════════════════════════════════════════════════════════════
# Shared display-data computation (used by CLI and web app)
# ═══════════════════════════════════════════════════════════════════

def compute_display_data(
    result: TaxCalculationResult,
    car: Optional[CarBenefitInputs] = None,
) -> Dict[str, Any]:
    """Extract every metric needed for the output sections."""
    s = result.annual_summary
    config = cfg.get_tax_year(result.tax_year)
    marginal = tax.marginal_rate_breakdown(s.gross, result.tax_code, config)

    car_result: Optional[CarBenefitResult] = None
    if car is not None:
        # Benefit is taxed at the employee's marginal income tax rate
        car_result = calculate_car_benefit(car, tax_rate=marginal["income_tax_pct"])

    return {
        "tax_year": result.tax_year,
        "tax_code": result.tax_code.code,
        "description": describe_tax_code(result.tax_code.code),
        "is_cumulative": result.is_cumulative,
        "gross": s.gross,
        "allowance": s.personal_allowance,
        "income_tax": s.total_income_tax,
        "ni": s.total_ni,
        "net_annual": s.net_annual,
        "net_monthly": s.net_monthly,
        "net_weekly": DEFAULT_ARITHMETIC.divide(s.net_annual, PAY_PERIODS_PER_YEAR["weekly"]),
        "effective_rate": s.effective_rate,
        "marginal": marginal,
        "car": car_result,
    }


# ═══════════════════════════════════════════════════════════════════
# Box-drawing CLI output
# ═══════════════════════════════════════════════════════════════════

W = 78  # box width (characters)
H = "═"


def _box_top(title: str) -> str:
    inner = W - 2
    return (
        f"╔{H * inner}╗\n"
        f"║  {title:<{inner - 2}}║\n"
        f"╠{H * inner}╣"
    )


def _box_line(text: str = "") -> str:
    inner = W - 4
    if len(text) > inner:
        text = text[:inner]
    return f"║  {text:<{inner}}║"


def _box_row(label: str, value: str, lw: int = 38) -> str:
    return _box_line(f"{label:<{lw}}{value}")


def _box_bottom() -> str:
    return f"╚{H * (W - 2)}╝"


def _print_section(title: str, rows: List[str]) -> None:
    """Print a titled box with content rows."""
    print(_box_top(title))
    for r in rows:
        print(r)
    print(_box_bottom())
    print()


def _wrap(text: str, width: int = W - 6) -> List[str]:
    lines, line = [], ""
    for word in text.split():
        if len(line) + len(word) + 1 <= width:
            line = f"{line} {word}" if line else word
        else:
            lines.append(line)
            line = word
    if line:
        lines.append(line)
    return lines


# ═══════════════════════════════════════════════════════════════════
# CLI Section Printers
# ═══════════════════════════════════════════════════════════════════

def _print_summary(d: Dict[str, Any]) -> None:
    rows = [_box_line(line) for line in _wrap(d["description"])]
    rows += [
        _box_line(),
        _box_row("Gross salary", fmt(d["gross"])),
        _box_row("Tax-free allowance", fmt(d["allowance"])),
        _box_row("Income tax", fmt(d["income_tax"], 2)),
        _box_row("National Insurance", fmt(d["ni"], 2)),
        _box_line(),
        _box_row("Take-home pay (annual)", fmt(d["net_annual"], 2)),
        _box_row("Take-home pay (monthly)", fmt(d["net_monthly"], 2)),
        _box_row("Take-home pay (weekly)", fmt(d["net_weekly"], 2)),
        _box_row("Effective deduction rate", pct(d["effective_rate"])),
    ]
    _print_section(f"YOUR PAY: {d['tax_year']} ({d['tax_code']})", rows)


def _print_bands(title: str, bands) -> None:
    h1 = f"{'Band':<26}{'Rate':>6}  {'Income':>14}  {'Tax':>12}"
    rows = [_box_line(h1), _box_line("─" * (W - 6))]
    for b in bands:
        rows.append(_box_line(
            f"{b.label[:26]:<26}{b.rate.normalize():>5f}%  "
            f"{fmt(b.amount, 2):>14}  {fmt(b.tax, 2):>12}"
        ))
    rows.append(_box_line("─" * (W - 6)))
    rows.append(_box_line(f"{'Total':<34}  {fmt(tax.total_amount(bands), 2):>14}  "
                          f"{fmt(tax.total_tax(bands), 2):>12}"))
    _print_section(title, rows)


def _print_monthly(result: TaxCalculationResult) -> None:
    h1 = f"{'Month':<10}{'Gross':>11}{'Tax-free':>11}{'Tax':>11}{'NI':>10}{'Net':>11}"
    rows = [_box_line(h1), _box_line("─" * (W - 6))]
    for p in result.monthly_breakdown:
        rows.append(_box_line(
            f"{p.label:<10}{fmt(p.gross, 2):>11}{fmt(p.tax_free, 2):>11}"
            f"{fmt(p.income_tax, 2):>11}{fmt(p.national_insurance, 2):>10}{fmt(p.net, 2):>11}"
        ))
    basis = "cumulative" if result.is_cumulative else "Week1/Month1 (non-cumulative)"
    rows.append(_box_line())
    rows.append(_box_line(f"Basis: {basis}"))
    _print_section("MONTHLY BREAKDOWN", rows)


def _print_marginal(d: Dict[str, Any]) -> None:
    m = d["marginal"]
    rows = [
        _box_row("Marginal rate", pct(m["total_marginal_pct"])),
        _box_row("  Breakdown", f"{pct(m['income_tax_pct'])} IT + {pct(m['ni_pct'])} NI"),
        _box_row("Effective rate", pct(m["effective_pct"])),
    ]
    if m["total_marginal_pct"] >= 60:
        rows.append(_box_line())
        rows += [_box_line(line) for line in _wrap(
            "You are in the personal allowance taper: each extra pound over "
            "£100,000 removes 50p of allowance. Pension contributions can "
            "bring taxable income back below the threshold."
        )]
    _print_section("MARGINAL RATE", rows)


def _print_car(car: CarBenefitResult) -> None:
    rows = [
        _box_row("Appropriate percentage", pct(car.appropriate_percentage, 0)),
        _box_row("Car benefit", fmt(car.bik_value, 2)),
        _box_row("Fuel benefit", fmt(car.fuel_benefit, 2)),
        _box_row("Total taxable benefit", fmt(car.total_benefit, 2)),
        _box_line(),
        _box_row("Extra tax per year", fmt(car.tax_payable, 2)),
        _box_row("Extra tax per month", fmt(car.monthly_tax_cost, 2)),
    ]
    _print_section("COMPANY CAR", rows)


def _print_report(pdf_path: str | None) -> None:
    rows = []
    if pdf_path:
        rows.append(_box_line(f"PDF report saved to: {pdf_path}"))
    else:
        rows.append(_box_line("Charts available in the web app:"))
        rows.append(_box_line("  python main.py  (opens localhost:5000)"))
    _print_section("CHARTS", rows)


# ═══════════════════════════════════════════════════════════════════
# Main CLI entry point
# ═══════════════════════════════════════════════════════════════════

def run_cli(tax_year: Optional[str] = None, report_path: Optional[str] = None) -> None:
    """Run the full CLI workflow."""
    # Ensure box-drawing characters render on Windows
    try:
        sys.stdout.reconfigure(encoding="utf-8")
    except (AttributeError, OSError):
        pass
    print()
    print("=" * W)
    print("  UK PAYE Take-Home Pay Calculator")
    print("=" * W)

    inputs = collect_inputs(tax_year)
    result = calculate_tax_details(
        inputs.salary, inputs.tax_code, inputs.is_cumulative, inputs.period,
        tax_year=inputs.tax_year,
    )
    d = compute_display_data(result, inputs.car)

    print()
    _print_summary(d)
    _print_bands("INCOME TAX BANDS", result.income_tax_bands)
    _print_bands("NATIONAL INSURANCE", result.ni_bands)
    _print_monthly(result)
    _print_marginal(d)
    if d["car"] is not None:
        _print_car(d["car"])

    print("  Generating PDF report...")
    try:
        pdf_path = report.generate_pdf(result, report_path)
    except OSError as exc:
        logger.warning("Could not write PDF report: %s", exc)
        pdf_path = None
    else:
        print(f"  Saved to {pdf_path}\n")

    _print_report(pdf_path)


if __name__ == "__main__":
    run_cli()
