"""Exact decimal primitive: unscaled integer coefficient plus scale.

A ScaledDecimal represents ``coefficient * 10**-scale``. Python ints are
unbounded, so add, subtract, multiply and remainder are exact; the only
operations that drop digits (set_scale, divide) take an explicit target
scale and rounding mode.

The scale may be negative (``1.2e5`` parses to coefficient 12, scale -4);
Deci never stores a negative scale, but the primitive allows it so that
parsing and trailing-zero stripping stay lossless.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import NamedTuple

import structlog

from deci.errors import ParseError
from deci.rounding import RoundingMode, round_quotient

logger = structlog.get_logger()

# Plain decimal literal with optional exponent: "12", "-1.5", ".5", "5.", "1.1e-5"
_NUMBER_RE = re.compile(r"[+-]?(?P<int>[0-9]*)(?:\.(?P<frac>[0-9]*))?(?:[eE](?P<exp>[+-]?[0-9]+))?")

# Largest accepted exponent of a literal (and order of magnitude of a Decimal)
MAX_EXPONENT = 100_000

# CPython refuses int <-> str conversion above 4300 digits; larger values
# are converted in halves. 13000 bits stay below that limit.
_CHUNK_BITS = 13_000
_CHUNK_DIGITS = 3_900
_LOG10_2 = 0.30102999566398120


def _pow10(n: int) -> int:
    return 10**n


def _digits_to_int(digits: str) -> int:
    """Convert a non-empty run of decimal digits to int, of any length."""
    if len(digits) <= _CHUNK_DIGITS:
        return int(digits)
    half = len(digits) // 2
    return _digits_to_int(digits[:-half]) * _pow10(half) + _digits_to_int(digits[-half:])


def _int_to_digits(n: int) -> str:
    """Decimal digits of a non-negative int, of any size."""
    if n.bit_length() <= _CHUNK_BITS:
        return str(n)
    half = _digit_count(n) // 2
    high, low = divmod(n, _pow10(half))
    return _int_to_digits(high) + _int_to_digits(low).zfill(half)


def _digit_count(n: int) -> int:
    """Number of decimal digits of abs(n) (1 for zero)."""
    n = abs(n)
    if n.bit_length() <= _CHUNK_BITS:
        return len(str(n))
    # bit_length estimate is off by at most one in either direction
    digits = int((n.bit_length() - 1) * _LOG10_2) + 1
    if n < _pow10(digits - 1):
        return digits - 1
    if n >= _pow10(digits):
        return digits + 1
    return digits


def _reject(text: object, reason: str) -> ParseError:
    logger.debug("deci_parse_failed", text=text, reason=reason)
    return ParseError(f"{reason}: {text!r}")


class ScaledDecimal(NamedTuple):
    """Exact decimal value stored as (coefficient, scale).

    Attributes:
        coefficient: Signed unscaled integer
        scale: Number of digits after the decimal point (may be negative)
    """

    coefficient: int
    scale: int

    # --- Construction ---

    @classmethod
    def parse(cls, text: str) -> ScaledDecimal:
        """Parse a decimal literal, keeping its natural scale.

        "0.120" parses to (120, 3); "1.1e+5" parses to (11, -4).

        Raises:
            ParseError: If text is not a finite decimal literal, or its
                exponent is beyond +/-MAX_EXPONENT
        """
        match = _NUMBER_RE.fullmatch(text) if isinstance(text, str) else None
        if match is None or not (match.group("int") or match.group("frac")):
            raise _reject(text, "Invalid decimal literal")

        int_part = match.group("int") or ""
        frac_part = match.group("frac") or ""
        exp_text = match.group("exp") or "0"
        if len(exp_text.lstrip("+-").lstrip("0")) > len(str(MAX_EXPONENT)):
            raise _reject(text, "Exponent out of range")
        exponent = int(exp_text)
        if abs(exponent) > MAX_EXPONENT:
            raise _reject(text, "Exponent out of range")

        coefficient = _digits_to_int(int_part + frac_part)
        if text.startswith("-"):
            coefficient = -coefficient
        return cls(coefficient, len(frac_part) - exponent)

    @classmethod
    def from_int(cls, value: int) -> ScaledDecimal:
        return cls(value, 0)

    @classmethod
    def from_decimal(cls, value: Decimal) -> ScaledDecimal:
        """Convert a native Decimal exactly, keeping its exponent.

        Raises:
            ParseError: If value is NaN or infinite, or its order of
                magnitude is beyond +/-MAX_EXPONENT
        """
        if not value.is_finite():
            raise _reject(str(value), "Non-finite decimal")
        if abs(value.adjusted()) > MAX_EXPONENT:
            raise _reject(str(value)[:40], "Exponent out of range")
        sign, digits, exponent = value.as_tuple()
        coefficient = _digits_to_int("".join(map(str, digits))) if digits else 0
        if sign:
            coefficient = -coefficient
        return cls(coefficient, -int(exponent))

    def to_decimal(self) -> Decimal:
        """Convert to a native Decimal with the same coefficient and exponent."""
        sign = 1 if self.coefficient < 0 else 0
        digits = tuple(map(int, _int_to_digits(abs(self.coefficient))))
        return Decimal((sign, digits, -self.scale))

    # --- Digit layout ---

    @property
    def precision(self) -> int:
        """Number of digits in the coefficient (1 for zero)."""
        return _digit_count(self.coefficient)

    @property
    def signum(self) -> int:
        return (self.coefficient > 0) - (self.coefficient < 0)

    def is_zero(self) -> bool:
        return self.coefficient == 0

    def integer_digits(self) -> int:
        """Signed count of digits before the decimal point.

        Negative when the value has leading fractional zeros: 0.011 has -1.
        Zero counts as one integer digit.
        """
        if self.coefficient == 0:
            return 1
        return self.precision - self.scale

    # --- Rescaling ---

    def set_scale(self, scale: int, mode: RoundingMode) -> ScaledDecimal:
        """Re-express at the given scale, rounding dropped digits with mode."""
        if scale >= self.scale:
            return ScaledDecimal(self.coefficient * _pow10(scale - self.scale), scale)

        divisor = _pow10(self.scale - scale)
        negative = self.coefficient < 0
        quotient, remainder = divmod(abs(self.coefficient), divisor)
        magnitude = round_quotient(quotient, remainder, divisor, negative, mode)
        return ScaledDecimal(-magnitude if negative else magnitude, scale)

    def strip_trailing_zeros(self) -> ScaledDecimal:
        """Canonical form: remove trailing zeros from the coefficient.

        The resulting scale can go negative (1200 -> (12, -2)); zero is (0, 0).
        """
        if self.coefficient == 0:
            return ScaledDecimal(0, 0)
        coefficient, scale = self.coefficient, self.scale
        # strip in growing chunks of zeros, falling back to smaller ones
        chunk = 1
        while chunk:
            quotient, remainder = divmod(coefficient, _pow10(chunk))
            if remainder:
                chunk //= 2
                continue
            coefficient = quotient
            scale -= chunk
            chunk *= 2
        return ScaledDecimal(coefficient, scale)

    def _aligned(self, other: ScaledDecimal) -> tuple[int, int, int]:
        """Return both coefficients at the larger of the two scales."""
        scale = max(self.scale, other.scale)
        return (
            self.coefficient * _pow10(scale - self.scale),
            other.coefficient * _pow10(scale - other.scale),
            scale,
        )

    # --- Exact arithmetic ---

    def add(self, other: ScaledDecimal) -> ScaledDecimal:
        a, b, scale = self._aligned(other)
        return ScaledDecimal(a + b, scale)

    def subtract(self, other: ScaledDecimal) -> ScaledDecimal:
        a, b, scale = self._aligned(other)
        return ScaledDecimal(a - b, scale)

    def multiply(self, other: ScaledDecimal) -> ScaledDecimal:
        return ScaledDecimal(self.coefficient * other.coefficient, self.scale + other.scale)

    def negate(self) -> ScaledDecimal:
        return ScaledDecimal(-self.coefficient, self.scale)

    def remainder(self, other: ScaledDecimal) -> ScaledDecimal:
        """Exact remainder of truncating division.

        The result takes the sign of the dividend: -7 rem 3 = -1, 7 rem -3 = 1.

        Raises:
            ZeroDivisionError: If other is zero
        """
        a, b, scale = self._aligned(other)
        if b == 0:
            raise ZeroDivisionError("ScaledDecimal remainder by zero")
        magnitude = abs(a) % abs(b)
        return ScaledDecimal(-magnitude if a < 0 else magnitude, scale)

    def divide(self, other: ScaledDecimal, scale: int, mode: RoundingMode) -> ScaledDecimal:
        """Divide to exactly `scale` fractional digits, rounding with mode.

        Raises:
            ZeroDivisionError: If other is zero
        """
        if other.coefficient == 0:
            raise ZeroDivisionError("ScaledDecimal division by zero")

        # result coefficient = self.coefficient * 10^shift / other.coefficient
        shift = scale - self.scale + other.scale
        numerator = self.coefficient
        denominator = other.coefficient
        if shift >= 0:
            numerator *= _pow10(shift)
        else:
            denominator *= _pow10(-shift)

        negative = (numerator < 0) != (denominator < 0)
        divisor = abs(denominator)
        quotient, remainder = divmod(abs(numerator), divisor)
        magnitude = round_quotient(quotient, remainder, divisor, negative, mode)
        return ScaledDecimal(-magnitude if negative else magnitude, scale)

    def compare(self, other: ScaledDecimal) -> int:
        """Numeric comparison ignoring scale: -1, 0 or 1."""
        a, b, _ = self._aligned(other)
        return (a > b) - (a < b)

    # --- Formatting ---

    def to_plain_string(self) -> str:
        """Format without exponent notation, keeping the stored scale."""
        digits = _int_to_digits(abs(self.coefficient))
        sign = "-" if self.coefficient < 0 else ""
        if self.scale <= 0:
            if self.coefficient == 0:
                return "0"
            return sign + digits + "0" * (-self.scale)
        if len(digits) <= self.scale:
            digits = "0" * (self.scale - len(digits) + 1) + digits
        return f"{sign}{digits[: -self.scale]}.{digits[-self.scale :]}"


__all__ = ["ScaledDecimal"]
