"""
Decimal arithmetic helpers for currency maths.

Every operation runs inside an explicit ``decimal.Context`` held by a
``PrecisionArithmetic`` instance, so the process-wide decimal context is
never touched. Inputs may be ``int``, ``float``, ``str`` or ``Decimal``;
floats go through ``str`` first so ``0.1`` stays ``Decimal("0.1")``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Union

Numeric = Union[int, float, str, Decimal]

DEFAULT_PRECISION = 20
DEFAULT_EPSILON = Decimal("0.0001")


class DivisionByZeroError(ArithmeticError):
    """Raised by ``PrecisionArithmetic.divide`` for an exactly-zero denominator."""


def make_context(precision: int = DEFAULT_PRECISION, rounding: str = ROUND_HALF_UP) -> Context:
    """Build a decimal context for currency maths (>= 20 significant digits)."""
    return Context(prec=precision, rounding=rounding)


class PrecisionArithmetic:
    """Stateless decimal arithmetic bound to one rounding context."""

    def __init__(self, context: Context | None = None) -> None:
        self.context = context if context is not None else make_context()

    def __repr__(self) -> str:
        return f"PrecisionArithmetic(prec={self.context.prec}, rounding={self.context.rounding})"

    # ─── Conversion ─────────────────────────────────────────────────

    @staticmethod
    def to_decimal(value: Numeric) -> Decimal:
        if isinstance(value, Decimal):
            return value
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)

    # ─── Basic operations ───────────────────────────────────────────

    def add(self, a: Numeric, b: Numeric) -> Decimal:
        return self.context.add(self.to_decimal(a), self.to_decimal(b))

    def subtract(self, a: Numeric, b: Numeric) -> Decimal:
        return self.context.subtract(self.to_decimal(a), self.to_decimal(b))

    def multiply(self, a: Numeric, b: Numeric) -> Decimal:
        return self.context.multiply(self.to_decimal(a), self.to_decimal(b))

    def divide(self, a: Numeric, b: Numeric) -> Decimal:
        """Divide *a* by *b*.

        Raises
        ------
        DivisionByZeroError
            If *b* is exactly zero.
        """
        denominator = self.to_decimal(b)
        if denominator == 0:
            raise DivisionByZeroError(f"Cannot divide {a} by zero")
        return self.context.divide(self.to_decimal(a), denominator)

    def round(self, n: Numeric, places: int = 2) -> Decimal:
        """Round half-up to *places* decimal places. Infinities pass through."""
        value = self.to_decimal(n)
        if not value.is_finite():
            return value
        exponent = Decimal(1).scaleb(-places)
        return value.quantize(exponent, rounding=self.context.rounding)

    def sum(self, values) -> Decimal:
        total = Decimal(0)
        for v in values:
            total = self.add(total, v)
        return total

    # ─── Percentages ────────────────────────────────────────────────

    def percentage_of(self, amount: Numeric, pct: Numeric) -> Decimal:
        """Return ``amount * pct / 100``."""
        return self.divide(self.multiply(amount, pct), 100)

    def percentage(self, part: Numeric, whole: Numeric) -> Decimal:
        """Return *part* as a percentage of *whole* (0 when *whole* is 0)."""
        if self.to_decimal(whole) == 0:
            return Decimal(0)
        return self.multiply(self.divide(part, whole), 100)

    # ─── Comparison ─────────────────────────────────────────────────

    def equals_within_epsilon(self, a: Numeric, b: Numeric, eps: Numeric = DEFAULT_EPSILON) -> bool:
        return self.context.abs(self.subtract(a, b)) < self.to_decimal(eps)


DEFAULT_ARITHMETIC = PrecisionArithmetic()
