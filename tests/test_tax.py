"""
Tests for income tax band allocation, the allowance taper and NI.
"""

from __future__ import annotations

from decimal import Decimal

import numpy as np
import pytest

import config as cfg
import tax
from config import UNBOUNDED, TaxBand
from tax_code import SpecialRate, parse_tax_code


def _tax(gross, code="1257L", year="2024-25"):
    return tax.annual_income_tax(gross, code, cfg.get_tax_year(year))


# =============================================================================
# Personal allowance taper
# =============================================================================


class TestPersonalAllowance:

    def test_below_threshold_unchanged(self, year_2024):
        assert tax.personal_allowance(100000, 12570, year_2024) == Decimal("12570")

    def test_taper_at_120k(self, year_2024):
        assert tax.personal_allowance(120000, 12570, year_2024) == Decimal("2570")

    def test_taper_uses_whole_pounds(self, year_2024):
        # £3 over: one whole £2 step
        assert tax.personal_allowance(100003, 12570, year_2024) == Decimal("12569")

    def test_fully_withdrawn(self, year_2024):
        assert tax.personal_allowance(125140, 12570, year_2024) == 0
        assert tax.personal_allowance(500000, 12570, year_2024) == 0

    def test_k_code_not_tapered(self, year_2024):
        assert tax.personal_allowance(200000, -5000, year_2024) == Decimal("-5000")

    def test_unbounded_not_tapered(self, year_2024):
        assert tax.personal_allowance(200000, UNBOUNDED, year_2024).is_infinite()


# =============================================================================
# Schedules and allocation
# =============================================================================


class TestEffectiveSchedule:

    def test_first_band_upper_is_allowance(self, year_2024):
        bands = tax.effective_schedule(year_2024.uk_bands, 2570)
        assert bands[0].upper == Decimal("2570")

    def test_contiguous(self, year_2024):
        bands = tax.effective_schedule(year_2024.scottish_bands, 5000)
        for lower, upper in zip(bands, bands[1:]):
            assert lower.upper == upper.lower
        assert bands[-1].upper.is_infinite()

    def test_widths_kept(self, year_2024):
        bands = tax.effective_schedule(year_2024.uk_bands, 0)
        assert bands[1].width == Decimal("37700")

    def test_negative_allowance_clamped(self, year_2024):
        bands = tax.effective_schedule(year_2024.uk_bands, -5000)
        assert bands[0].upper == 0

    def test_wales_uses_uk_bands(self, year_2024):
        assert tax.schedule_for(parse_tax_code("C1257L").region, year_2024) == year_2024.uk_bands

    def test_scale_schedule(self, year_2024):
        monthly = tax.scale_schedule(year_2024.uk_bands, 12)
        assert monthly[0].upper == Decimal("1047.5")
        assert monthly[-1].upper.is_infinite()


class TestAllocate:

    BANDS = [
        TaxBand("Zero", Decimal("0"), Decimal("0"), Decimal("100")),
        TaxBand("Low", Decimal("10"), Decimal("100"), Decimal("300")),
        TaxBand("High", Decimal("50"), Decimal("300"), UNBOUNDED),
    ]

    def test_spreads_bottom_up(self):
        allocations = tax.allocate(Decimal("500"), self.BANDS)
        assert [a.amount for a in allocations] == [100, 200, 200]
        assert [a.tax for a in allocations] == [0, 20, 100]

    def test_every_band_reported(self):
        allocations = tax.allocate(Decimal("50"), self.BANDS)
        assert len(allocations) == 3
        assert allocations[1].amount == 0

    @pytest.mark.parametrize("income", ["0", "1", "99.99", "300", "123456.78"])
    def test_conservation(self, income):
        allocations = tax.allocate(Decimal(income), self.BANDS)
        assert tax.total_amount(allocations) == Decimal(income)

    def test_negative_income_allocates_nothing(self):
        allocations = tax.allocate(Decimal("-10"), self.BANDS)
        assert all(a.amount == 0 and a.tax == 0 for a in allocations)

    def test_tax_is_amount_times_rate(self):
        for a in tax.allocate(Decimal("1000"), self.BANDS):
            assert a.tax == a.amount * a.rate / 100

    def test_flat_rate_allocation(self):
        (band,) = tax.flat_rate_allocation(Decimal("30000"), SpecialRate.D0)
        assert band.tax == Decimal("12000")
        assert band.is_unbounded

    def test_flat_rate_rejects_banded(self):
        with pytest.raises(ValueError):
            tax.flat_rate_allocation(Decimal("1"), SpecialRate.ZERO_T)


# =============================================================================
# Income tax
# =============================================================================


class TestIncomeTax:

    def test_50k_standard(self):
        assert _tax(50000) == Decimal("7486")

    def test_below_allowance(self):
        assert _tax(12000) == 0

    def test_120k_tapered(self):
        # Allowance 2570; 37700 basic, 74870 higher, 4860 additional
        assert _tax(120000) == Decimal("39675")

    def test_scottish_50k(self):
        assert _tax(50000, "S1257L") == Decimal("9038.48")

    def test_scottish_2025_advanced_rate(self):
        bands = tax.income_tax_bands(100000, parse_tax_code("S1257L"), cfg.get_tax_year("2025-26"))
        assert "Advanced Rate" in [b.label for b in bands]

    def test_welsh_matches_uk(self):
        assert _tax(60000, "C1257L") == _tax(60000, "1257L")

    def test_k_code_adds_to_income(self):
        assert _tax(30000, "K500") == Decimal("7000")

    @pytest.mark.parametrize("code,expected", [
        ("BR", Decimal("6000")),
        ("D0", Decimal("12000")),
        ("D1", Decimal("13500")),
        ("NT", Decimal("0")),
        ("0T", Decimal("6000")),
    ])
    def test_special_codes(self, code, expected):
        assert _tax(30000, code) == expected

    def test_monotone_in_income(self):
        previous = Decimal(0)
        for gross in range(0, 300001, 2500):
            current = _tax(gross)
            assert current >= previous
            previous = current

    def test_non_negative(self):
        for code in ("1257L", "S1257L", "K500", "BR", "0T", "NT"):
            for a in tax.income_tax_bands(40000, parse_tax_code(code)):
                assert a.amount >= 0 and a.tax >= 0

    def test_period_income_tax_matches_even_split(self, arith):
        code = parse_tax_code("1257L")
        monthly = tax.period_income_tax(arith.divide(50000, 12), code, 12570, 12)
        assert arith.equals_within_epsilon(monthly, arith.divide(7486, 12))

    def test_period_income_tax_flat(self):
        assert tax.period_income_tax(Decimal("1000"), parse_tax_code("BR"), 0, 12) == Decimal("200")


# =============================================================================
# National Insurance
# =============================================================================


class TestNationalInsurance:

    def test_zero_income(self):
        bands = tax.national_insurance_bands(0)
        assert len(bands) == 3
        assert all(b.amount == 0 and b.tax == 0 for b in bands)

    def test_600k_touches_every_band(self):
        bands = tax.national_insurance_bands(600000)
        assert all(b.amount > 0 for b in bands)

    def test_600k_total(self, arith):
        total = tax.annual_national_insurance(600000)
        assert arith.round(total) == Decimal("14010.60")

    @pytest.mark.parametrize("gross,expected", [
        (50000, Decimal("2994.4")),
        (600000, Decimal("14010.6")),
        (37000, Decimal("1954.4")),
    ])
    def test_annualised_total_has_no_residue(self, gross, expected):
        assert tax.annual_national_insurance(gross) == expected

    def test_50k(self, arith):
        assert arith.round(tax.annual_national_insurance(50000)) == Decimal("2994.40")

    def test_below_threshold(self):
        assert tax.annual_national_insurance(12000) == 0

    def test_band_labels_and_rates(self):
        bands = tax.national_insurance_bands(50000)
        assert [b.label for b in bands] == ["Below Primary Threshold", "Main Rate", "Higher Rate"]
        assert [b.rate for b in bands] == [0, 8, 2]
        assert bands[-1].upper.is_infinite()

    def test_thresholds_annualised(self, arith):
        bands = tax.national_insurance_bands(50000)
        assert arith.equals_within_epsilon(bands[1].lower, 12570)
        assert arith.equals_within_epsilon(bands[1].upper, 50270)

    def test_weekly_period(self, arith):
        weekly = tax.period_national_insurance(Decimal("500"), 52)
        expected = (Decimal("500") - Decimal("12570") / 52) * Decimal("0.08")
        assert arith.equals_within_epsilon(weekly, expected)


# =============================================================================
# Marginal rate and salary sweep
# =============================================================================


class TestMarginalRate:

    def test_basic_rate_taxpayer(self):
        m = tax.marginal_rate_breakdown(30000)
        assert m["income_tax_pct"] == 20.0
        assert m["ni_pct"] == 8.0
        assert m["total_marginal_pct"] == 28.0

    @pytest.mark.parametrize("salary", [100000, 110000, 110001, 115001])
    def test_taper_trap(self, salary):
        m = tax.marginal_rate_breakdown(salary)
        assert m["income_tax_pct"] == 60.0
        assert m["ni_pct"] == 2.0
        assert m["total_marginal_pct"] == 62.0

    def test_above_taper(self):
        assert tax.marginal_rate_breakdown(130000)["income_tax_pct"] == 45.0


class TestEffectiveRateCurve:

    def test_arrays(self):
        salaries = np.linspace(0, 100000, 11)
        curve = tax.effective_rate_curve(salaries)
        assert set(curve) == {"salary", "income_tax", "ni", "net", "effective_pct"}
        assert curve["effective_pct"][0] == 0.0
        assert curve["income_tax"][5] == pytest.approx(7486.0)
        np.testing.assert_allclose(curve["net"], salaries - curve["income_tax"] - curve["ni"], atol=0.02)

    def test_effective_rate_rises(self):
        curve = tax.effective_rate_curve(np.linspace(20000, 200000, 10))
        assert np.all(np.diff(curve["effective_pct"]) > 0)
