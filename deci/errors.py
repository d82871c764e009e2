"""Error types raised by deci.

All errors derive from DeciError so callers can catch the whole family.
Each leaf also derives from the matching builtin (ValueError,
ZeroDivisionError) so code written against plain numbers keeps working.
"""

from __future__ import annotations


class DeciError(Exception):
    """Base class for deci errors."""

    pass


class ConfigurationError(DeciError, ValueError):
    """NumericContext built with out-of-range or malformed settings."""

    pass


class ParseError(DeciError, ValueError):
    """Malformed or non-finite numeric input."""

    pass


class DivisionByZero(DeciError, ZeroDivisionError):
    """Division or remainder by an exact zero."""

    pass


__all__ = [
    "DeciError",
    "ConfigurationError",
    "ParseError",
    "DivisionByZero",
]
