"""
Tests for the monthly and weekly amortisation of an annual tax position.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from periods import (
    Period,
    amortize,
    flat_basic_period_tax,
    month_name,
    periods_to_date,
    week_to_month,
    weekly_breakdown,
)


class TestPeriod:

    def test_month(self):
        assert Period("month", 3).to_month() == 3

    @pytest.mark.parametrize("week,month", [(1, 1), (4, 1), (5, 2), (9, 3), (14, 4), (52, 12)])
    def test_week_to_month(self, week, month):
        assert week_to_month(week) == month
        assert Period("week", week).to_month() == month

    @pytest.mark.parametrize("kind,number", [("month", 0), ("month", 13), ("week", 53), ("day", 1)])
    def test_invalid(self, kind, number):
        with pytest.raises(ValueError):
            Period(kind, number)

    def test_month_names_start_in_april(self):
        assert month_name(1) == "April"
        assert month_name(12) == "March"


class TestAmortizeCumulative:

    def test_twelve_months(self):
        rows = amortize(Decimal("50000"), Decimal("7486"), Decimal("2994.4"), True)
        assert len(rows) == 12
        assert [r.index for r in rows] == list(range(1, 13))
        assert rows[0].label == "April"

    def test_even_split(self, arith):
        rows = amortize(Decimal("50000"), Decimal("7486"), Decimal("2994.4"), True)
        share = arith.divide(7486, 12)
        assert all(r.income_tax == share for r in rows)

    def test_taxable_is_gross_minus_allowance(self, arith):
        row = amortize(Decimal("50000"), Decimal("7486"), Decimal("2994.4"), True)[0]
        assert row.tax_free == Decimal("1047.5")
        assert row.taxable == arith.subtract(row.gross, row.tax_free)

    def test_net(self, arith):
        row = amortize(Decimal("50000"), Decimal("7486"), Decimal("2994.4"), True)[0]
        assert row.net == arith.subtract(row.gross, arith.add(row.income_tax, row.national_insurance))

    def test_target_month(self):
        rows = amortize(Decimal("50000"), Decimal("7486"), Decimal("2994.4"), True, Period("month", 3))
        assert [r.label for r in rows] == ["April", "May", "June"]

    def test_target_week_maps_to_month(self):
        rows = amortize(Decimal("50000"), Decimal("7486"), Decimal("2994.4"), True, Period("week", 14))
        assert len(rows) == 4

    def test_negative_allowance(self):
        row = amortize(Decimal("30000"), Decimal("7000"), Decimal("1389.6"), True,
                       annual_allowance=Decimal("-5000"))[0]
        assert row.tax_free == 0
        assert row.taxable > row.gross


class TestAmortizeNonCumulative:

    def test_flat_basic_fallback(self, arith):
        row = amortize(Decimal("100000"), Decimal("27432"), Decimal("5010.4"), False)[0]
        expected = arith.percentage_of(arith.subtract(arith.divide(100000, 12), Decimal("1047.5")), 20)
        assert row.income_tax == expected

    def test_period_tax_callable_used(self):
        rows = amortize(Decimal("24000"), Decimal("0"), Decimal("0"), False,
                        period_tax=lambda gross: gross / 10)
        assert rows[0].income_tax == Decimal("200")

    def test_flat_basic_never_negative(self):
        assert flat_basic_period_tax(Decimal("-50")) == 0


class TestWeekly:

    def test_fifty_two_weeks(self):
        rows = weekly_breakdown(Decimal("52000"), Decimal("7886"), Decimal("3153.6"), True)
        assert len(rows) == 52
        assert rows[0].gross == Decimal("1000")
        assert rows[0].label == "Week 1 (April)"
        assert rows[-1].label == "Week 52 (March)"

    def test_up_to_week(self):
        assert len(weekly_breakdown(Decimal("52000"), Decimal("0"), Decimal("0"), True, 10)) == 10

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            weekly_breakdown(Decimal("52000"), Decimal("0"), Decimal("0"), True, 53)


class TestPeriodsToDate:

    def test_totals(self, arith):
        rows = amortize(Decimal("60000"), Decimal("9486"), Decimal("3194.4"), True, Period("month", 6))
        ytd = periods_to_date(rows)
        assert ytd.label == "To September"
        assert ytd.gross == Decimal("30000")
        assert arith.equals_within_epsilon(ytd.income_tax, Decimal("4743"))

    def test_empty(self):
        with pytest.raises(ValueError):
            periods_to_date([])
