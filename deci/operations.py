"""Canonical binary operations and context propagation.

Every Deci operator, in either operand order and for every supported
operand type, ends up in apply_operation with two exact ScaledDecimal
values and one winning context. Keeping the arithmetic here means there
is exactly one implementation per operator.

Propagation rule: the left operand's context wins. The right operand only
contributes its value. Unary operations and Deci.round keep the operand's
context; Deci.apply_context is the only way to switch context otherwise.
"""

from __future__ import annotations

from enum import Enum

import structlog

from deci.backend import ScaledDecimal
from deci.context import NumericContext
from deci.division import resolve_division_scale
from deci.errors import DivisionByZero

logger = structlog.get_logger()


class Operation(str, Enum):
    """Binary arithmetic operators supported by Deci."""

    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    REMAINDER = "%"


def result_context(left: NumericContext, right: NumericContext | None = None) -> NumericContext:
    """Context attached to the result of `left <op> right`.

    The right context (None for plain ints and Decimals) never survives.
    """
    return left


def apply_operation(
    op: Operation,
    left: ScaledDecimal,
    right: ScaledDecimal,
    context: NumericContext,
) -> ScaledDecimal:
    """Compute `left <op> right` exactly, or to the resolved scale for division.

    The result is not normalized; Deci normalizes it under `context`.

    Raises:
        DivisionByZero: If right is zero for DIVIDE or REMAINDER
    """
    if op is Operation.ADD:
        return left.add(right)
    if op is Operation.SUBTRACT:
        return left.subtract(right)
    if op is Operation.MULTIPLY:
        return left.multiply(right)

    if right.is_zero():
        logger.debug("deci_division_by_zero", op=op.value, dividend=left.to_plain_string())
        raise DivisionByZero(f"Division by zero: {left.to_plain_string()} {op.value} 0")

    if op is Operation.DIVIDE:
        scale = resolve_division_scale(left, right, context)
        return left.divide(right, scale, context.rounding_mode)
    return left.remainder(right)


__all__ = ["Operation", "apply_operation", "result_context"]
