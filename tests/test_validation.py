"""
Tests for input validation at the CLI and web edges.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from validation import (
    OK,
    parse_amount,
    validate_percentage,
    validate_period_number,
    validate_salary,
    validate_scenario_name,
    validate_tax_code,
)


class TestParseAmount:

    @pytest.mark.parametrize("raw,expected", [
        ("£45,000", Decimal("45000")),
        (" 1 234.50 ", Decimal("1234.50")),
        (30000, Decimal("30000")),
        (2.5, Decimal("2.5")),
    ])
    def test_parses(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "", "Infinity", None])
    def test_rejects(self, raw):
        with pytest.raises(ValueError):
            parse_amount(raw)


class TestValidateSalary:

    def test_valid(self):
        assert validate_salary("£50,000") == OK

    @pytest.mark.parametrize("raw,message", [
        ("-1", "Salary cannot be negative"),
        ("0", "Salary must be greater than zero"),
        ("0.0001", "Salary must be greater than zero"),
        ("10000000.01", "Salary exceeds maximum allowed value"),
        ("fifty", "Please enter a valid number"),
    ])
    def test_invalid(self, raw, message):
        result = validate_salary(raw)
        assert not result.is_valid
        assert result.message == message

    def test_raise_for_error(self):
        with pytest.raises(ValueError, match="negative"):
            validate_salary(-5).raise_for_error()
        OK.raise_for_error()


class TestValidateTaxCode:

    @pytest.mark.parametrize("code", ["1257L", "s1257l", "K500", "BR", "1257L W1", "NT"])
    def test_valid(self, code):
        assert validate_tax_code(code).is_valid

    def test_required(self):
        assert validate_tax_code("  ").message == "Tax code is required"
        assert validate_tax_code(None).message == "Tax code is required"

    def test_bad_format(self):
        assert validate_tax_code("HELLO").message == "Invalid tax code format"


class TestOtherValidators:

    def test_period_number(self):
        assert validate_period_number(12, "month").is_valid
        assert validate_period_number(52, "week").is_valid
        assert not validate_period_number(13, "month").is_valid
        assert not validate_period_number(0, "week").is_valid
        assert not validate_period_number(1, "day").is_valid
        assert not validate_period_number(True, "month").is_valid

    def test_percentage(self):
        assert validate_percentage("45").is_valid
        assert validate_percentage(-1, "Rate").message == "Rate cannot be negative"
        assert not validate_percentage("101").is_valid
        assert not validate_percentage("x").is_valid

    def test_scenario_name(self):
        assert validate_scenario_name("Pay rise").is_valid
        assert not validate_scenario_name("   ").is_valid
        assert not validate_scenario_name("x" * 51).is_valid
