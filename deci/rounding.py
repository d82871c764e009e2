"""Decimal rounding modes.

Every place in deci that drops digits (construction normalization,
Deci.round, division) goes through round_quotient, so the seven modes
behave identically everywhere.

Rounding operates on exact integers: the caller splits a magnitude into
quotient and remainder against a positive divisor and gets back the
rounded quotient magnitude.
"""

from __future__ import annotations

import decimal
from enum import Enum

import structlog

from deci.errors import ConfigurationError

logger = structlog.get_logger()


class RoundingMode(str, Enum):
    """Canonical decimal rounding modes.

    Semantics follow the textbook decimal definitions:
    - UP / DOWN: away from / toward zero
    - CEILING / FLOOR: toward positive / negative infinity
    - HALF_UP / HALF_DOWN / HALF_EVEN: to nearest neighbour; an exact tie
      goes away from zero, toward zero, or to the even neighbour
    """

    HALF_UP = "HALF_UP"
    HALF_DOWN = "HALF_DOWN"
    HALF_EVEN = "HALF_EVEN"
    UP = "UP"
    DOWN = "DOWN"
    CEILING = "CEILING"
    FLOOR = "FLOOR"

    @classmethod
    def parse(cls, name: str | RoundingMode) -> RoundingMode:
        """Resolve a rounding mode from its name.

        Accepts the enum itself, a case-insensitive name ("half_up") or the
        decimal module spelling ("ROUND_HALF_UP").

        Raises:
            ConfigurationError: If the name is not a known mode
        """
        if isinstance(name, RoundingMode):
            return name
        if not isinstance(name, str):
            raise ConfigurationError(f"Rounding mode must be a string, got {type(name).__name__}")
        key = name.strip().upper()
        if key.startswith("ROUND_"):
            key = key[len("ROUND_") :]
        try:
            return cls(key)
        except ValueError:
            logger.debug("rounding_mode_unknown", name=name)
            raise ConfigurationError(f"Unknown rounding mode: {name!r}") from None

    def to_decimal(self) -> str:
        """Return the equivalent decimal module rounding constant."""
        return _DECIMAL_ROUNDING[self]

    def __str__(self) -> str:
        return self.value.lower()


_DECIMAL_ROUNDING = {
    RoundingMode.HALF_UP: decimal.ROUND_HALF_UP,
    RoundingMode.HALF_DOWN: decimal.ROUND_HALF_DOWN,
    RoundingMode.HALF_EVEN: decimal.ROUND_HALF_EVEN,
    RoundingMode.UP: decimal.ROUND_UP,
    RoundingMode.DOWN: decimal.ROUND_DOWN,
    RoundingMode.CEILING: decimal.ROUND_CEILING,
    RoundingMode.FLOOR: decimal.ROUND_FLOOR,
}


def round_quotient(
    quotient: int,
    remainder: int,
    divisor: int,
    negative: bool,
    mode: RoundingMode,
) -> int:
    """Round a truncated magnitude according to mode.

    Args:
        quotient: Truncated magnitude, abs(n) // divisor
        remainder: Discarded part, abs(n) % divisor
        divisor: Positive divisor the split was made against
        negative: True if the value being rounded is negative
        mode: Rounding mode to apply

    Returns:
        The rounded magnitude (non-negative); the caller re-applies the sign

    Examples:
        2.5 -> round_quotient(2, 5, 10, False, HALF_EVEN) = 2
        -2.5 -> round_quotient(2, 5, 10, True, FLOOR) = 3 (i.e. -3)
    """
    if remainder == 0:
        return quotient

    if mode is RoundingMode.DOWN:
        increment = False
    elif mode is RoundingMode.UP:
        increment = True
    elif mode is RoundingMode.CEILING:
        increment = not negative
    elif mode is RoundingMode.FLOOR:
        increment = negative
    else:
        twice = 2 * remainder
        if twice > divisor:
            increment = True
        elif twice < divisor:
            increment = False
        elif mode is RoundingMode.HALF_UP:
            increment = True
        elif mode is RoundingMode.HALF_DOWN:
            increment = False
        else:
            # HALF_EVEN: tie goes to the even neighbour
            increment = quotient % 2 == 1

    return quotient + 1 if increment else quotient


__all__ = ["RoundingMode", "round_quotient"]
