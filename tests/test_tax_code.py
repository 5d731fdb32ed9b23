"""
Tests for tax code parsing, validation and description.
"""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from tax_code import (
    Region,
    SpecialRate,
    describe_tax_code,
    is_valid_tax_code,
    normalise,
    parse_tax_code,
)


class TestStandardCodes:

    def test_1257l(self):
        tc = parse_tax_code("1257L")
        assert tc.base_allowance == Decimal("12570")
        assert tc.region is Region.UK
        assert tc.special_rate is None
        assert not tc.is_non_cumulative
        assert not tc.is_k_code

    def test_lower_case_and_spaces(self):
        assert parse_tax_code(" 1257l ").base_allowance == Decimal("12570")

    def test_scottish(self):
        tc = parse_tax_code("S1257L")
        assert tc.region is Region.SCOTLAND
        assert tc.is_scottish
        assert tc.base_allowance == Decimal("12570")

    def test_welsh(self):
        tc = parse_tax_code("C1257L")
        assert tc.region is Region.WALES
        assert tc.is_welsh

    def test_first_run_of_digits(self):
        assert parse_tax_code("1100T").base_allowance == Decimal("11000")


class TestKCodes:

    def test_k500(self):
        tc = parse_tax_code("K500")
        assert tc.base_allowance == Decimal("-5000")
        assert tc.is_k_code
        assert tc.region is Region.UK

    def test_sk_code_is_negative(self):
        tc = parse_tax_code("SK100")
        assert tc.base_allowance == Decimal("-1000")

    def test_sk_and_ck_are_not_regional(self):
        assert parse_tax_code("SK100").region is Region.UK
        assert parse_tax_code("CK100").region is Region.UK


class TestSpecialCodes:

    @pytest.mark.parametrize("code,special,rate", [
        ("BR", SpecialRate.BR, Decimal("20")),
        ("D0", SpecialRate.D0, Decimal("40")),
        ("D1", SpecialRate.D1, Decimal("45")),
        ("NT", SpecialRate.NT, Decimal("0")),
    ])
    def test_flat_codes(self, code, special, rate):
        tc = parse_tax_code(code)
        assert tc.special_rate is special
        assert tc.is_flat_rate
        assert tc.flat_rate == rate

    def test_br_has_no_allowance(self):
        assert parse_tax_code("BR").base_allowance == 0

    def test_nt_allowance_is_unbounded(self):
        assert parse_tax_code("NT").base_allowance.is_infinite()

    def test_zero_t_is_banded(self):
        tc = parse_tax_code("0T")
        assert tc.special_rate is SpecialRate.ZERO_T
        assert tc.base_allowance == 0
        assert not tc.is_flat_rate

    def test_scottish_br(self):
        tc = parse_tax_code("SBR")
        assert tc.special_rate is SpecialRate.BR
        assert tc.region is Region.SCOTLAND

    def test_exactly_one_of_banded_or_flat(self):
        for code in ("1257L", "BR", "D0", "D1", "NT", "0T", "K500", "S1257L"):
            tc = parse_tax_code(code)
            assert tc.is_flat_rate == (tc.flat_rate is not None)


class TestNonCumulative:

    @pytest.mark.parametrize("code", ["1257LW1", "1257LM1", "1257LX", "1257L W1", "1257L/M1"])
    def test_markers(self, code):
        tc = parse_tax_code(code)
        assert tc.is_non_cumulative
        assert tc.base_allowance == Decimal("12570")

    def test_br_w1(self):
        tc = parse_tax_code("BRW1")
        assert tc.special_rate is SpecialRate.BR
        assert tc.is_non_cumulative

    def test_suffix_stripped_before_marriage_check(self):
        # "M1" must not read as a marriage allowance "M"
        assert parse_tax_code("1257LM1").marriage_allowance_delta == 0


class TestMarriageAllowance:

    def test_recipient(self):
        tc = parse_tax_code("1383M")
        assert tc.has_marriage_allowance
        assert tc.marriage_allowance_delta == Decimal("1260")
        assert tc.base_allowance == Decimal("13830")

    def test_transferor(self):
        tc = parse_tax_code("1131N")
        assert tc.marriage_allowance_delta == Decimal("-1260")


class TestFallback:

    @pytest.mark.parametrize("code", ["", "   ", None, "LLL"])
    def test_default_descriptor(self, code):
        tc = parse_tax_code(code)
        assert tc.base_allowance == Decimal("12570")
        assert tc.region is Region.UK
        assert tc.special_rate is None
        assert not tc.is_non_cumulative

    def test_unrecognised_is_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="tax_code"):
            parse_tax_code("LLL")
        assert "Unrecognised tax code" in caplog.text


class TestValidity:

    @pytest.mark.parametrize("code", ["1257L", "S1257L", "C1257L", "K500", "SK100", "BR", "D0",
                                      "NT", "0T", "1257L W1", "1257LX", "1383M", "1131N"])
    def test_valid(self, code):
        assert is_valid_tax_code(code)

    @pytest.mark.parametrize("code", ["", "ABC", "12345L", "1257", "L1257", "BRBR"])
    def test_invalid(self, code):
        assert not is_valid_tax_code(code)

    def test_normalise(self):
        assert normalise(" 1257l / w1 ") == "1257LW1"


class TestDescribe:

    def test_standard(self):
        assert describe_tax_code("1257L") == "Personal allowance of £12,570."

    def test_scottish(self):
        text = describe_tax_code("S1257L")
        assert text.startswith("Scottish rates apply.")

    def test_k_code(self):
        assert "£5,000 will be added" in describe_tax_code("K500")

    def test_br(self):
        assert "basic rate (20%)" in describe_tax_code("BR")

    def test_nt(self):
        assert describe_tax_code("NT") == "No tax will be deducted."

    def test_non_cumulative(self):
        assert "Non-cumulative" in describe_tax_code("1257LW1")

    def test_empty(self):
        assert describe_tax_code("") == ""
