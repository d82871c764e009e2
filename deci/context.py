"""Numeric context: scale, minimum precision and rounding for Deci values.

A NumericContext decides which scale a freshly built Deci keeps. Large
scales are cut back toward `scale`, but numbers with many leading
fractional zeros are allowed enough extra digits to keep at least
`precision` significant digits.

Usage:
    from deci.context import NumericContext, RoundingMode

    ctx4 = NumericContext(scale=4, rounding_mode=RoundingMode.HALF_UP, precision=3)
    # 123.123456 -> 123.1235 (scale 4)
    # 0.0001234  -> 0.000123 (scale 6, three significant digits kept)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

import structlog

from deci.backend import ScaledDecimal
from deci.errors import ConfigurationError
from deci.rounding import RoundingMode

logger = structlog.get_logger()

MIN_SCALE = 0
MAX_SCALE = 2000
MIN_PRECISION = 1
MAX_PRECISION = 2000

DEFAULT_SCALE = 20
DEFAULT_PRECISION = 20


def _check_bound(name: str, value: object, lower: int, upper: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        logger.debug("numeric_context_invalid", field=name, value=value)
        raise ConfigurationError(f"{name} must be an int (is {value!r})")
    if value < lower:
        logger.debug("numeric_context_invalid", field=name, value=value)
        raise ConfigurationError(f"{name} must be >= {lower} (is {value})")
    if value > upper:
        logger.debug("numeric_context_invalid", field=name, value=value)
        raise ConfigurationError(f"{name} must be <= {upper} (is {value})")


@dataclass(frozen=True)
class NumericContext:
    """Immutable (scale, precision, rounding mode) configuration.

    Attributes:
        scale: Number of fractional digits to keep (0..2000)
        rounding_mode: Mode used whenever digits are dropped (default HALF_UP).
            A mode name such as "half_even" is accepted as well.
        precision: Minimum significant digits kept for small magnitudes
            (1..2000). Defaults to `scale`, or to 1 when scale is 0.

    Raises:
        ConfigurationError: If scale or precision is out of range, or the
            rounding mode is unknown
    """

    scale: int = DEFAULT_SCALE
    rounding_mode: RoundingMode = RoundingMode.HALF_UP
    precision: int = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        _check_bound("scale", self.scale, MIN_SCALE, MAX_SCALE)
        if self.precision is None:
            object.__setattr__(self, "precision", max(self.scale, MIN_PRECISION))
        _check_bound("precision", self.precision, MIN_PRECISION, MAX_PRECISION)
        object.__setattr__(self, "rounding_mode", RoundingMode.parse(self.rounding_mode))

    def __str__(self) -> str:
        return f"NumericContext({self.scale}:{self.precision}:{self.rounding_mode})"


DEFAULT_CONTEXT = NumericContext(
    scale=DEFAULT_SCALE,
    rounding_mode=RoundingMode.HALF_UP,
    precision=DEFAULT_PRECISION,
)


def normalize(value: ScaledDecimal, context: NumericContext) -> ScaledDecimal:
    """Pick the stored scale of a new value and round to it.

    - Negative scale (1.2e5) is expanded to scale 0.
    - A scale above context.scale is reduced to context.scale, but never
      below what keeps context.precision significant digits after the
      leading fractional zeros (and never above the value's own scale).
    - Otherwise the value is kept as is; trailing zeros are not stripped.

    Args:
        value: Exact value at its natural scale
        context: Active context

    Returns:
        The value at its stored scale (always >= 0)
    """
    if value.scale < 0:
        return value.set_scale(0, context.rounding_mode)
    if value.scale > context.scale:
        zeros = max(0, value.scale - value.precision)
        scale = max(context.scale, min(zeros + context.precision, value.scale))
        return value.set_scale(scale, context.rounding_mode)
    return value


def context_from_env(
    prefix: str = "DECI_",
    environ: Mapping[str, str] | None = None,
) -> NumericContext:
    """Build a NumericContext from environment variables.

    Reads <prefix>SCALE, <prefix>PRECISION and <prefix>ROUNDING. Missing
    variables fall back to DEFAULT_CONTEXT values, except that a missing
    precision follows the configured scale when only scale is given.

    Args:
        prefix: Variable name prefix (default "DECI_")
        environ: Mapping to read from (default os.environ)

    Raises:
        ConfigurationError: If a variable is malformed or out of range
    """
    env = os.environ if environ is None else environ

    def _read_int(name: str) -> int | None:
        raw = env.get(prefix + name)
        if raw is None or raw.strip() == "":
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("numeric_context_env_invalid", variable=prefix + name, value=raw)
            raise ConfigurationError(f"{prefix}{name} must be an integer (is {raw!r})") from None

    scale = _read_int("SCALE")
    precision = _read_int("PRECISION")
    rounding = env.get(prefix + "ROUNDING") or DEFAULT_CONTEXT.rounding_mode

    if scale is None:
        scale = DEFAULT_CONTEXT.scale
        if precision is None:
            precision = DEFAULT_CONTEXT.precision
    return NumericContext(scale=scale, rounding_mode=rounding, precision=precision)  # type: ignore[arg-type]


__all__ = [
    "NumericContext",
    "RoundingMode",
    "DEFAULT_CONTEXT",
    "normalize",
    "context_from_env",
    "MIN_SCALE",
    "MAX_SCALE",
    "MIN_PRECISION",
    "MAX_PRECISION",
]
