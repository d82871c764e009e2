"""Result scale for Deci division.

Exact division to a fixed number of digits needs the target scale up
front. The scale is chosen from how many orders of magnitude separate the
dividend from the divisor, so the quotient keeps at least
`context.precision` significant digits without growing past what the
context asks for.
"""

from __future__ import annotations

from deci.backend import ScaledDecimal
from deci.context import NumericContext


def resolve_division_scale(
    dividend: ScaledDecimal,
    divisor: ScaledDecimal,
    context: NumericContext,
) -> int:
    """Scale to divide `dividend` by `divisor` at.

    With d_int and v_int the signed integer-digit counts of dividend and
    divisor (see ScaledDecimal.integer_digits):

    - v_int < 0: the divisor is below 0.1, so the quotient grows; keep
      max(dividend.scale, context.scale).
    - otherwise: max(context.scale, context.precision + v_int - d_int).

    Examples (scale=4, precision=3):
        10.1 / 1000       -> 5   (0.01010)
        11 / 99999        -> 6   (0.000110)
        0.0000110 / 0.01  -> 7   (dividend scale kept)
        1 / 100           -> 5
    """
    dividend_int_digits = dividend.integer_digits()
    divisor_int_digits = divisor.integer_digits()
    if divisor_int_digits < 0:
        return max(dividend.scale, context.scale)
    return max(context.scale, context.precision + divisor_int_digits - dividend_int_digits)


__all__ = ["resolve_division_scale"]
