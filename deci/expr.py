"""Null-propagating arithmetic over optional Deci operands.

Plain Deci operators reject None. Inside a DeciExpr scope every operator
accepts None on either side and returns None if any operand is missing,
so formulas over optional fields do not need a guard per operand:

    num: Deci | None = None
    res = deci_expr(lambda e: e.add(3, e.mul(2, num)))
    # res is None

Text and float literals are coerced through the scope's context, and the
left operand of every operation is lifted into it, so results carry the
scope context. A larger context therefore keeps more digits for the whole
expression:

    ctx40 = NumericContext(scale=40, precision=30)
    deci_expr(lambda e: e.mul("1.0123456789012345678901234567890123456789", "1e10"), ctx40)
    # Deci('10123456789.012345678901234567890123456789')

Absence and division by zero are different failures: dividing by an
exact zero still raises DivisionByZero inside a scope.

To treat None as zero instead, use DeciExpr.or_zero (or deci.or_zero).
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import TypeVar

from deci.context import DEFAULT_CONTEXT, NumericContext
from deci.deci import Deci, value_of

A = TypeVar("A")
B = TypeVar("B")
R = TypeVar("R")

Number = Deci | int | Decimal | float | str


def map2(left: A | None, right: B | None, fn: Callable[[A, B], R]) -> R | None:
    """Apply fn to both values, or return None if either is None."""
    if left is None or right is None:
        return None
    return fn(left, right)


class DeciExpr:
    """Evaluation scope carrying the context for null-propagating arithmetic.

    Attributes:
        context: The scope's NumericContext; code running in the scope can
            use it to build values deliberately in the same context
    """

    __slots__ = ("_context",)

    def __init__(self, context: NumericContext = DEFAULT_CONTEXT) -> None:
        self._context = context

    @property
    def context(self) -> NumericContext:
        return self._context

    def deci(self, value: Number | None) -> Deci | None:
        """Coerce a literal or value into the scope context (None stays None)."""
        if value is None:
            return None
        return value_of(value, self._context)

    def _lift(self, value: Number) -> Deci:
        return value_of(value, self._context)

    def _operand(self, value: Number) -> Deci | int | Decimal:
        # ints and Decimals take part with their exact value; text and
        # floats are literals and go through the scope context
        if isinstance(value, (Deci, int, Decimal)) and not isinstance(value, bool):
            return value
        return self._lift(value)

    def add(self, left: Number | None, right: Number | None) -> Deci | None:
        return map2(left, right, lambda a, b: self._lift(a) + self._operand(b))

    def sub(self, left: Number | None, right: Number | None) -> Deci | None:
        return map2(left, right, lambda a, b: self._lift(a) - self._operand(b))

    def mul(self, left: Number | None, right: Number | None) -> Deci | None:
        return map2(left, right, lambda a, b: self._lift(a) * self._operand(b))

    def div(self, left: Number | None, right: Number | None) -> Deci | None:
        """Divide, or None if an operand is missing.

        Raises:
            DivisionByZero: If right is present and zero
        """
        return map2(left, right, lambda a, b: self._lift(a) / self._operand(b))

    def rem(self, left: Number | None, right: Number | None) -> Deci | None:
        return map2(left, right, lambda a, b: self._lift(a) % self._operand(b))

    def neg(self, value: Number | None) -> Deci | None:
        if value is None:
            return None
        return -self._lift(value)

    def or_zero(self, value: Number | None) -> Deci:
        """Coerce into the scope context, treating None as zero."""
        if value is None:
            return Deci(0, self._context)
        return self._lift(value)

    def __repr__(self) -> str:
        return f"DeciExpr({self._context})"


def deci_expr(
    block: Callable[[DeciExpr], Number | None],
    context: NumericContext | None = None,
) -> Deci | None:
    """Run block inside a DeciExpr scope and lift its result.

    Args:
        block: Callable receiving the scope; returns a number or None
        context: Scope context (default: DEFAULT_CONTEXT)

    Returns:
        None if block returned None; otherwise the result as Deci, in
        `context` when one was given

    Raises:
        DivisionByZero: If the block divides by zero
    """
    scope = DeciExpr(DEFAULT_CONTEXT if context is None else context)
    result = block(scope)
    if result is None:
        return None
    return value_of(result, context)


__all__ = ["DeciExpr", "deci_expr", "map2"]
