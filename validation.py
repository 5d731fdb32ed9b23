"""
Input validation for the CLI, web form and scenario inputs.

The calculation core accepts whatever it is given; these checks run at the
edges before a calculation is requested.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

import config as cfg
from precision import DEFAULT_ARITHMETIC, Numeric
from tax_code import is_valid_tax_code, normalise

MAX_SALARY = Decimal("10000000")
MAX_SCENARIO_NAME = 50


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    message: Optional[str] = None

    def raise_for_error(self) -> None:
        if not self.is_valid:
            raise ValueError(self.message)


OK = ValidationResult(True)


def parse_amount(raw: Numeric) -> Decimal:
    """Parse a currency string such as ``"£45,000"`` into a Decimal.

    Raises
    ------
    ValueError
        If *raw* is not a number.
    """
    if isinstance(raw, str):
        raw = raw.replace("£", "").replace(",", "").replace(" ", "")
    try:
        value = DEFAULT_ARITHMETIC.to_decimal(raw)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Not a number: {raw!r}") from None
    if not value.is_finite():
        raise ValueError(f"Not a number: {raw!r}")
    return value


def validate_salary(salary: Numeric) -> ValidationResult:
    try:
        value = parse_amount(salary)
    except ValueError:
        return ValidationResult(False, "Please enter a valid number")
    if value < 0:
        return ValidationResult(False, "Salary cannot be negative")
    if DEFAULT_ARITHMETIC.equals_within_epsilon(value, 0, Decimal("0.001")):
        return ValidationResult(False, "Salary must be greater than zero")
    if value > MAX_SALARY:
        return ValidationResult(False, "Salary exceeds maximum allowed value")
    return OK


def validate_tax_code(code: str | None) -> ValidationResult:
    if not normalise(code):
        return ValidationResult(False, "Tax code is required")
    if not is_valid_tax_code(code):
        return ValidationResult(False, "Invalid tax code format")
    return OK


def validate_period_number(number: int, kind: str) -> ValidationResult:
    if kind not in ("month", "week"):
        return ValidationResult(False, "Period type must be 'month' or 'week'")
    limit = cfg.MONTHS_IN_YEAR if kind == "month" else cfg.WEEKS_IN_YEAR
    if not isinstance(number, int) or isinstance(number, bool):
        return ValidationResult(False, "Please enter a valid number")
    if not 1 <= number <= limit:
        return ValidationResult(False, f"Period must be between 1 and {limit}")
    return OK


def validate_percentage(value: Numeric, field_name: str = "Percentage") -> ValidationResult:
    try:
        pct = parse_amount(value)
    except ValueError:
        return ValidationResult(False, f"{field_name} must be a valid number")
    if pct < 0:
        return ValidationResult(False, f"{field_name} cannot be negative")
    if pct > 100:
        return ValidationResult(False, f"{field_name} cannot exceed 100%")
    return OK


def validate_scenario_name(name: str | None) -> ValidationResult:
    if not name or not name.strip():
        return ValidationResult(False, "Name is required")
    if len(name) > MAX_SCENARIO_NAME:
        return ValidationResult(False, f"Name cannot exceed {MAX_SCENARIO_NAME} characters")
    return OK
