"""
Company car benefit-in-kind (BIK) calculator.

The taxable benefit is the car's list price times an "appropriate
percentage" set by fuel type and CO2 emissions (or electric range for
hybrids). Private fuel adds the year's fuel benefit charge at the same
percentage. Tax on the benefit is charged at the employee's marginal
income tax rate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Optional

import config as cfg
from precision import DEFAULT_ARITHMETIC, Numeric

logger = logging.getLogger(__name__)

FUEL_TYPES = ("petrol", "diesel", "electric", "hybrid")

ELECTRIC_PERCENTAGE = Decimal("2")
MIN_FOSSIL_PERCENTAGE = Decimal("15")      # petrol/diesel below 55 g/km
CO2_SCALE_START = 55                        # 16% from here, +1% per 5 g/km
NON_RDE2_DIESEL_SUPPLEMENT = Decimal("4")

# (minimum electric range in miles, percentage) for hybrids, highest first
HYBRID_RANGE_BANDS = (
    (130, Decimal("2")),
    (70, Decimal("5")),
    (40, Decimal("8")),
    (30, Decimal("12")),
)
HYBRID_FALLBACK_PERCENTAGE = Decimal("14")


@dataclass
class CarBenefitInputs:
    """Details of the car and the employee's tax position."""

    list_price: Decimal
    co2_emissions: int = 0              # g/km
    fuel_type: str = "petrol"
    rde2_compliant: bool = True         # diesel only
    electric_range: int = 0             # miles, hybrids only
    capital_contribution: Decimal = Decimal(0)
    private_fuel_provided: bool = False
    tax_rate: Decimal = Decimal("20")   # employee's marginal rate, percent
    tax_year: str = cfg.DEFAULT_TAX_YEAR

    def __post_init__(self) -> None:
        arith = DEFAULT_ARITHMETIC
        self.list_price = arith.to_decimal(self.list_price)
        self.capital_contribution = arith.to_decimal(self.capital_contribution)
        self.tax_rate = arith.to_decimal(self.tax_rate)
        if self.list_price < 0:
            raise ValueError("List price cannot be negative")
        if self.fuel_type not in FUEL_TYPES:
            raise ValueError(f"Fuel type must be one of: {', '.join(FUEL_TYPES)}")
        if not 0 <= self.co2_emissions <= 999:
            raise ValueError("CO2 emissions must be 0-999 g/km")
        if self.electric_range < 0:
            raise ValueError("Electric range cannot be negative")
        if not 0 <= self.tax_rate <= 100:
            raise ValueError("Tax rate must be 0-100%")
        if self.capital_contribution < 0:
            raise ValueError("Capital contribution cannot be negative")
        cfg.get_tax_year(self.tax_year)


@dataclass(frozen=True)
class CarBenefitResult:
    appropriate_percentage: Decimal
    bik_value: Decimal
    fuel_benefit: Decimal
    total_benefit: Decimal
    tax_payable: Decimal
    monthly_tax_cost: Decimal


def appropriate_percentage(
    fuel_type: str,
    co2_emissions: int = 0,
    electric_range: int = 0,
    rde2_compliant: bool = True,
    max_percentage: Decimal = Decimal("37"),
) -> Decimal:
    """Percentage of list price treated as the annual benefit.

    Parameters
    ----------
    fuel_type : str
        ``'petrol'``, ``'diesel'``, ``'electric'`` or ``'hybrid'``.
    co2_emissions : int
        CO2 in g/km (petrol and diesel).
    electric_range : int
        Zero-emission range in miles (hybrids).
    rde2_compliant : bool
        Diesels not meeting RDE2 pay a 4% supplement.
    """
    if fuel_type == "electric":
        return ELECTRIC_PERCENTAGE
    if fuel_type == "hybrid":
        for min_range, pct in HYBRID_RANGE_BANDS:
            if electric_range > min_range:
                return pct
        return HYBRID_FALLBACK_PERCENTAGE
    if fuel_type not in FUEL_TYPES:
        raise ValueError(f"Unknown fuel type {fuel_type!r}")

    if co2_emissions < CO2_SCALE_START:
        pct = MIN_FOSSIL_PERCENTAGE
    else:
        steps = (Decimal(co2_emissions - CO2_SCALE_START) / 5).to_integral_value(rounding=ROUND_FLOOR)
        pct = min(MIN_FOSSIL_PERCENTAGE + 1 + steps, max_percentage)
    if fuel_type == "diesel" and not rde2_compliant:
        pct = min(pct + NON_RDE2_DIESEL_SUPPLEMENT, max_percentage)
    return pct


def calculate_car_benefit(inputs: CarBenefitInputs,
                          tax_rate: Optional[Numeric] = None) -> CarBenefitResult:
    """Benefit value and tax for a company car.

    *tax_rate* overrides ``inputs.tax_rate`` (e.g. a marginal rate taken
    from ``tax.marginal_rate_breakdown``).
    """
    arith = DEFAULT_ARITHMETIC
    year = cfg.get_tax_year(inputs.tax_year)
    rate = arith.to_decimal(tax_rate) if tax_rate is not None else inputs.tax_rate

    pct = appropriate_percentage(
        inputs.fuel_type,
        inputs.co2_emissions,
        inputs.electric_range,
        inputs.rde2_compliant,
        year.bik_max_percentage,
    )
    price = max(arith.subtract(inputs.list_price, inputs.capital_contribution), Decimal(0))
    bik = arith.percentage_of(price, pct)
    fuel = arith.percentage_of(year.fuel_benefit_charge, pct) if inputs.private_fuel_provided else Decimal(0)
    total = arith.add(bik, fuel)
    tax_payable = arith.percentage_of(total, rate)

    logger.debug("Car benefit: %s%% of %s, fuel %s, tax %s", pct, price, fuel, tax_payable)
    return CarBenefitResult(
        appropriate_percentage=pct,
        bik_value=arith.round(bik),
        fuel_benefit=arith.round(fuel),
        total_benefit=arith.round(total),
        tax_payable=arith.round(tax_payable),
        monthly_tax_cost=arith.round(arith.divide(tax_payable, cfg.MONTHS_IN_YEAR)),
    )
