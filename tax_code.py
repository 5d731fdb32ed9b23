"""
HMRC tax code parsing.

``parse_tax_code`` turns a code such as ``1257L``, ``S1257L``, ``K500``,
``BR`` or ``1257L W1`` into a ``TaxCode`` descriptor. It never raises: an
empty or unrecognised code falls back to the standard UK descriptor, and
syntax checking is left to ``is_valid_tax_code`` (used by the caller-side
validation layer).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

import config as cfg

logger = logging.getLogger(__name__)


class Region(str, Enum):
    UK = "uk"
    SCOTLAND = "scotland"
    WALES = "wales"

    @property
    def label(self) -> str:
        return {"uk": "England & NI", "scotland": "Scotland", "wales": "Wales"}[self.value]


class SpecialRate(str, Enum):
    BR = "BR"
    D0 = "D0"
    D1 = "D1"
    NT = "NT"
    ZERO_T = "0T"

    @property
    def flat_rate(self) -> Optional[Decimal]:
        """Flat percentage applied to all income, or None for banded codes."""
        return _FLAT_RATES.get(self)


_FLAT_RATES = {
    SpecialRate.BR: Decimal("20"),
    SpecialRate.D0: Decimal("40"),
    SpecialRate.D1: Decimal("45"),
    SpecialRate.NT: Decimal("0"),
}

_FLAT_CODES = {"BR": SpecialRate.BR, "D0": SpecialRate.D0, "D1": SpecialRate.D1}
_NON_CUMULATIVE_MARKERS = ("W1", "M1", "X")
_NON_CUMULATIVE_SUFFIX = re.compile(r"(W1|M1|X)$")
_DIGITS = re.compile(r"\d+")

# Strict HMRC syntax, applied to the normalised code
_VALID_PATTERNS = (
    re.compile(r"^[SC]?(BR|D0|D1|NT|0T)(W1|M1|X)?$"),
    re.compile(r"^[SC]?K\d{1,4}(W1|M1|X)?$"),
    re.compile(r"^[SC]?\d{1,4}[LMNTY](W1|M1|X)?$"),
)


@dataclass(frozen=True)
class TaxCode:
    """Structured view of a tax code."""

    code: str
    base_allowance: Decimal
    region: Region = Region.UK
    special_rate: Optional[SpecialRate] = None
    has_marriage_allowance: bool = False
    marriage_allowance_delta: Decimal = Decimal(0)
    is_non_cumulative: bool = False

    @property
    def is_scottish(self) -> bool:
        return self.region is Region.SCOTLAND

    @property
    def is_welsh(self) -> bool:
        return self.region is Region.WALES

    @property
    def is_k_code(self) -> bool:
        return self.base_allowance.is_finite() and self.base_allowance < 0

    @property
    def is_flat_rate(self) -> bool:
        return self.special_rate is not None and self.special_rate.flat_rate is not None

    @property
    def flat_rate(self) -> Optional[Decimal]:
        return self.special_rate.flat_rate if self.special_rate is not None else None


def default_tax_code() -> TaxCode:
    return TaxCode(code=cfg.DEFAULT_TAX_CODE, base_allowance=cfg.DEFAULT_ALLOWANCE)


def normalise(code: str | None) -> str:
    """Upper-case, strip, and drop internal spaces and slashes (``1257L / W1``)."""
    if not code:
        return ""
    return re.sub(r"[\s/]+", "", code.upper())


def _detect_region(code: str) -> Region:
    if code.startswith("S") and not code.startswith("SK"):
        return Region.SCOTLAND
    if code.startswith("C") and not code.startswith("CK"):
        return Region.WALES
    return Region.UK


def _strip_prefix(code: str) -> str:
    if code.startswith(("SK", "CK")):
        return code[2:]
    if code.startswith(("S", "C", "K")):
        return code[1:]
    return code


def parse_tax_code(code: str | None) -> TaxCode:
    """Parse *code* into a ``TaxCode``.

    Parameters
    ----------
    code : str
        Tax code as printed on a payslip. Case and spacing are ignored.

    Returns
    -------
    TaxCode
        The UK default (``1257L``) when *code* is empty or unrecognised.
    """
    normalised = normalise(code)
    if not normalised:
        return default_tax_code()

    is_non_cumulative = any(m in normalised for m in _NON_CUMULATIVE_MARKERS)
    body = _NON_CUMULATIVE_SUFFIX.sub("", normalised)
    region = _detect_region(body)
    core = _strip_prefix(body)

    # Flat-rate and zero-allowance codes
    special: Optional[SpecialRate] = None
    if core in _FLAT_CODES:
        special = _FLAT_CODES[core]
        allowance = Decimal(0)
    elif "NT" in body:
        special = SpecialRate.NT
        allowance = cfg.UNBOUNDED
    elif core.startswith("0T"):
        special = SpecialRate.ZERO_T
        allowance = Decimal(0)
    else:
        digits = _DIGITS.search(core)
        if digits is None:
            logger.info("Unrecognised tax code %r, using %s", code, cfg.DEFAULT_TAX_CODE)
            return default_tax_code()
        allowance = Decimal(int(digits.group())) * 10
        if body.startswith(("K", "SK", "CK")):
            allowance = -allowance

    delta = Decimal(0)
    if special is None:
        if body.endswith("M"):
            delta = cfg.MARRIAGE_ALLOWANCE
        elif body.endswith("N"):
            delta = -cfg.MARRIAGE_ALLOWANCE

    return TaxCode(
        code=normalised,
        base_allowance=allowance,
        region=region,
        special_rate=special,
        has_marriage_allowance=delta != 0,
        marriage_allowance_delta=delta,
        is_non_cumulative=is_non_cumulative,
    )


def is_valid_tax_code(code: str | None) -> bool:
    """Strict syntax check against the HMRC code formats."""
    normalised = normalise(code)
    return any(p.match(normalised) for p in _VALID_PATTERNS)


def describe_tax_code(code: str | None) -> str:
    """Plain-English explanation of a tax code."""
    if not normalise(code):
        return ""

    tc = parse_tax_code(code)
    parts = []

    if tc.is_scottish:
        parts.append("Scottish rates apply.")
    elif tc.is_welsh:
        parts.append("Welsh rates apply.")

    if tc.special_rate is SpecialRate.NT:
        parts.append("No tax will be deducted.")
    elif tc.special_rate is SpecialRate.ZERO_T:
        parts.append("No personal allowance.")
    elif tc.is_flat_rate:
        names = {SpecialRate.BR: "basic", SpecialRate.D0: "higher", SpecialRate.D1: "additional"}
        parts.append(
            f"All income taxed at {names[tc.special_rate]} rate ({tc.flat_rate}%)."
        )
    elif tc.is_k_code:
        parts.append(
            f"K code: £{abs(tc.base_allowance):,} will be added to your taxable income."
        )
    else:
        parts.append(f"Personal allowance of £{tc.base_allowance:,}.")

    if tc.has_marriage_allowance:
        if tc.marriage_allowance_delta > 0:
            parts.append("Received marriage allowance from partner.")
        else:
            parts.append("Transferred marriage allowance to partner.")

    if tc.is_non_cumulative:
        parts.append("Non-cumulative calculation (each pay period calculated independently).")

    return " ".join(parts)
