"""Deci: exact decimal value with an attached NumericContext.

Deci wraps an exact (coefficient, scale) pair and a NumericContext. The
context decides how many digits a new value keeps and how division picks
its scale, so that chained business formulas neither lose the digits of
tiny intermediate results nor grow without bound:

    (1 - 1/365) * (1 - 2/365)      -> 0.99179583412... (not 1)

Rules:
- Operators accept Deci, int and decimal.Decimal on either side
- The left operand's context is attached to the result
- Equality and hashing are numeric: Deci("1.00") == Deci(1) == 1
- str() never uses exponent notation and strips trailing zeros

Usage:
    from deci import Deci, NumericContext

    price, quantity, fee = Deci("55.97"), Deci("12.2"), Deci("15.5")
    percent = ((price * quantity - fee) * 100 / (price * quantity)).round(2)
    # percent == Deci("97.73")
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from decimal import Decimal
from typing import Any, ClassVar, TypeVar

from pydantic_core import core_schema

from deci.backend import ScaledDecimal
from deci.context import DEFAULT_CONTEXT, NumericContext, normalize
from deci.operations import Operation, apply_operation, result_context

T = TypeVar("T")

# Key in a pydantic validation context holding the NumericContext for Deci fields:
#     Model.model_validate(data, context={VALIDATION_CONTEXT_KEY: ctx})
VALIDATION_CONTEXT_KEY = "numeric_context"

# JSON schema patterns: str(Deci) output, and any accepted decimal literal
CANONICAL_PATTERN = r"^-?[0-9]+(\.[0-9]+)?$"
LITERAL_PATTERN = r"^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$"


class Deci:
    """Immutable decimal number with context-aware scale handling.

    Attributes:
        context: NumericContext attached to this value (read-only)
        scale: Stored number of fractional digits (always >= 0)
        precision: Number of digits of the unscaled coefficient
        unscaled_value: The unscaled integer coefficient

    Args:
        value: Decimal literal text, int, decimal.Decimal or another Deci
        context: Context to normalize under (default: DEFAULT_CONTEXT)

    Raises:
        ParseError: If text is malformed or a Decimal is not finite
        TypeError: If value has an unsupported type (use value_of for floats)
    """

    ZERO: ClassVar[Deci]

    __slots__ = ("_value", "_context", "_hash")
    _value: ScaledDecimal
    _context: NumericContext
    _hash: int | None

    def __init__(self, value: str | int | Decimal | Deci, context: NumericContext | None = None) -> None:
        ctx = DEFAULT_CONTEXT if context is None else context
        if isinstance(value, Deci):
            raw = value._value
        elif isinstance(value, str):
            raw = ScaledDecimal.parse(value)
        elif isinstance(value, bool):
            raise TypeError("Deci requires str, int or Decimal, got bool")
        elif isinstance(value, int):
            raw = ScaledDecimal.from_int(value)
        elif isinstance(value, Decimal):
            raw = ScaledDecimal.from_decimal(value)
        else:
            raise TypeError(f"Deci requires str, int or Decimal, got {type(value).__name__}")
        self._value = normalize(raw, ctx)
        self._context = ctx
        self._hash = None

    @classmethod
    def _create(cls, value: ScaledDecimal, context: NumericContext) -> Deci:
        """Build from an exact value, normalizing under context."""
        return cls._wrap(normalize(value, context), context)

    @classmethod
    def _wrap(cls, value: ScaledDecimal, context: NumericContext) -> Deci:
        """Build from an already-normalized value."""
        obj = object.__new__(cls)
        obj._value = value
        obj._context = context
        obj._hash = None
        return obj

    @classmethod
    def value_of(cls, value: Any, context: NumericContext | None = None) -> Deci:
        """Convert any supported number-like value to Deci.

        - Deci: returned as is when context is None or already attached,
          otherwise re-normalized with apply_context
        - int, Decimal, str: as the constructor
        - float: via its shortest textual form, so 2.2 becomes exactly 2.2

        Zero in the default context returns the shared Deci.ZERO.

        Raises:
            ParseError: If text is malformed or the number is not finite
            TypeError: If value has an unsupported type
        """
        if isinstance(value, Deci):
            return value if context is None else value.apply_context(context)
        if isinstance(value, float):
            return cls(repr(value), context)
        if (
            isinstance(value, int)
            and not isinstance(value, bool)
            and value == 0
            and (context is None or context == DEFAULT_CONTEXT)
        ):
            return cls.ZERO
        return cls(value, context)

    # --- Properties ---

    @property
    def context(self) -> NumericContext:
        return self._context

    @property
    def scale(self) -> int:
        return self._value.scale

    @property
    def precision(self) -> int:
        return self._value.precision

    @property
    def unscaled_value(self) -> int:
        return self._value.coefficient

    @property
    def sign(self) -> int:
        """-1, 0 or 1."""
        return self._value.signum

    # --- Context handling ---

    def apply_context(self, context: NumericContext) -> Deci:
        """Re-normalize the same value under another context.

        Returns self when the context is already attached.
        """
        if context == self._context:
            return self
        return Deci._create(self._value, context)

    def round(self, scale: int) -> Deci:
        """Round to `scale` fractional digits with the context's rounding mode.

        Unlike Decimal precision rounding, `scale` counts digits after the
        point: Deci("1.115").round(2) == Deci("1.12"). The result keeps
        exactly `scale` digits (1.11 rounded to 5 is stored as 1.11000) and
        the same context. A negative scale rounds to tens, hundreds, ...
        """
        rounded = self._value.set_scale(scale, self._context.rounding_mode)
        if rounded.scale < 0:
            rounded = rounded.set_scale(0, self._context.rounding_mode)
        return Deci._wrap(rounded, self._context)

    # --- Arithmetic ---

    def _binary(self, op: Operation, other: object) -> Deci:
        right = _operand_value(other)
        if right is None:
            return NotImplemented
        right_context = other._context if isinstance(other, Deci) else None
        context = result_context(self._context, right_context)
        return Deci._create(apply_operation(op, self._value, right, context), context)

    def _reflected(self, op: Operation, other: object) -> Deci:
        # Promoted left operand takes this value's context
        left = _operand_value(other)
        if left is None:
            return NotImplemented
        return Deci._create(left, self._context)._binary(op, self)

    def __add__(self, other: Deci | int | Decimal) -> Deci:
        return self._binary(Operation.ADD, other)

    def __radd__(self, other: int | Decimal) -> Deci:
        return self._reflected(Operation.ADD, other)

    def __sub__(self, other: Deci | int | Decimal) -> Deci:
        return self._binary(Operation.SUBTRACT, other)

    def __rsub__(self, other: int | Decimal) -> Deci:
        return self._reflected(Operation.SUBTRACT, other)

    def __mul__(self, other: Deci | int | Decimal) -> Deci:
        return self._binary(Operation.MULTIPLY, other)

    def __rmul__(self, other: int | Decimal) -> Deci:
        return self._reflected(Operation.MULTIPLY, other)

    def __truediv__(self, other: Deci | int | Decimal) -> Deci:
        """Divide, keeping at least context.precision significant digits.

        Raises:
            DivisionByZero: If other is zero
        """
        return self._binary(Operation.DIVIDE, other)

    def __rtruediv__(self, other: int | Decimal) -> Deci:
        return self._reflected(Operation.DIVIDE, other)

    def __mod__(self, other: Deci | int | Decimal) -> Deci:
        """Exact remainder of truncating division (sign of the dividend).

        Unlike int %, Deci(-7) % 3 == -1.

        Raises:
            DivisionByZero: If other is zero
        """
        return self._binary(Operation.REMAINDER, other)

    def __rmod__(self, other: int | Decimal) -> Deci:
        return self._reflected(Operation.REMAINDER, other)

    def __neg__(self) -> Deci:
        return Deci._wrap(self._value.negate(), self._context)

    def __pos__(self) -> Deci:
        return self

    def __abs__(self) -> Deci:
        return -self if self._value.coefficient < 0 else self

    def __round__(self, ndigits: int | None = None) -> Deci | int:
        if ndigits is None:
            return int(self.round(0))
        return self.round(ndigits)

    # --- Comparison ---

    def compare_to(self, other: Deci | int | Decimal | float) -> int:
        """Numeric comparison ignoring scale and context: -1, 0 or 1.

        Unlike the rich comparisons, NaN and infinite floats are rejected.

        Raises:
            TypeError: If other is not a supported number
            ParseError: If other is a NaN or infinite float
        """
        value = _comparable_value(other)
        if value is None:
            raise TypeError(f"Cannot compare Deci with {type(other).__name__}")
        return self._value.compare(value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Decimal) and not other.is_finite():
            return False
        value = _operand_value(other)
        if value is None:
            return NotImplemented
        return self._value.compare(value) == 0

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return NotImplemented
        return not result

    def _order(self, other: object) -> int | None:
        """Sign of self - other for rich comparisons.

        Infinities order past every Deci and NaN is unordered (None), as for
        float. Unsupported types give NotImplemented.
        """
        if isinstance(other, (float, Decimal)) and not _is_finite(other):
            if _is_nan(other):
                return None
            return -1 if other > 0 else 1
        value = _comparable_value(other)
        if value is None:
            return NotImplemented
        return self._value.compare(value)

    def __lt__(self, other: Deci | int | Decimal | float) -> bool:
        order = self._order(other)
        if order is NotImplemented:
            return NotImplemented
        return order is not None and order < 0

    def __le__(self, other: Deci | int | Decimal | float) -> bool:
        order = self._order(other)
        if order is NotImplemented:
            return NotImplemented
        return order is not None and order <= 0

    def __gt__(self, other: Deci | int | Decimal | float) -> bool:
        order = self._order(other)
        if order is NotImplemented:
            return NotImplemented
        return order is not None and order > 0

    def __ge__(self, other: Deci | int | Decimal | float) -> bool:
        order = self._order(other)
        if order is NotImplemented:
            return NotImplemented
        return order is not None and order >= 0

    def __hash__(self) -> int:
        # Unsynchronized lazy cache: concurrent first calls may both compute
        # it, but they store the same value.
        if self._hash is None:
            self._hash = hash(self._value.strip_trailing_zeros().to_decimal())
        return self._hash

    # --- Conversion ---

    def to_decimal(self) -> Decimal:
        """Exact native Decimal with the stored scale."""
        return self._value.to_decimal()

    def __int__(self) -> int:
        """Truncate toward zero."""
        magnitude = abs(self._value.coefficient) // 10**self._value.scale
        return -magnitude if self._value.coefficient < 0 else magnitude

    def __float__(self) -> float:
        return float(self._value.to_decimal())

    def __bool__(self) -> bool:
        return self._value.coefficient != 0

    def __str__(self) -> str:
        if self._value.coefficient == 0:
            # A zero with an explicit fractional part keeps one digit: "0.0"
            return "0.0" if self._value.scale > 0 else "0"
        return self._value.strip_trailing_zeros().to_plain_string()

    def __repr__(self) -> str:
        return f"Deci('{self}')"

    def __format__(self, format_spec: str) -> str:
        if not format_spec:
            return str(self)
        return format(self._value.to_decimal(), format_spec)

    def __reduce__(self) -> tuple[Callable[..., Deci], tuple[int, int, NumericContext]]:
        return (_restore, (self._value.coefficient, self._value.scale, self._context))

    # --- pydantic integration ---

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.with_info_plain_validator_function(
            _validate_field,
            serialization=core_schema.plain_serializer_function_ser_schema(str, when_used="json"),
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, schema: core_schema.CoreSchema, handler: Any) -> dict[str, Any]:
        # pydantic's own JSON output is the canonical string; input may also be a number
        canonical = {"type": "string", "pattern": CANONICAL_PATTERN}
        if handler.mode == "serialization":
            return canonical
        return {"anyOf": [{"type": "number"}, {"type": "string", "pattern": LITERAL_PATTERN}]}


Deci.ZERO = Deci(0)


def _restore(coefficient: int, scale: int, context: NumericContext) -> Deci:
    return Deci._wrap(ScaledDecimal(coefficient, scale), context)


def _operand_value(value: object) -> ScaledDecimal | None:
    """Exact value of an arithmetic operand, or None if unsupported."""
    if isinstance(value, Deci):
        return value._value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return ScaledDecimal.from_int(value)
    if isinstance(value, Decimal):
        return ScaledDecimal.from_decimal(value)
    return None


def _comparable_value(value: object) -> ScaledDecimal | None:
    """Like _operand_value, but floats compare by their textual form."""
    if isinstance(value, float):
        return ScaledDecimal.parse(repr(value))
    return _operand_value(value)


def _is_finite(value: float | Decimal) -> bool:
    return value.is_finite() if isinstance(value, Decimal) else math.isfinite(value)


def _is_nan(value: float | Decimal) -> bool:
    return value.is_nan() if isinstance(value, Decimal) else math.isnan(value)


def _validate_field(value: Any, info: core_schema.ValidationInfo) -> Deci:
    context = info.context.get(VALIDATION_CONTEXT_KEY) if isinstance(info.context, Mapping) else None
    try:
        return Deci.value_of(value, context)
    except TypeError as err:
        raise ValueError(str(err)) from err


value_of = Deci.value_of


def eq(left: Deci | int | Decimal | float | None, right: Deci | int | Decimal | float | None) -> bool:
    """Numeric equality across Deci, int, Decimal, float and None.

    None eq None is True; None eq anything present is False.

    Raises:
        TypeError: If a present operand is not a supported number
    """
    if left is None or right is None:
        return left is None and right is None
    left_value = _comparable_value(left)
    right_value = _comparable_value(right)
    if left_value is None or right_value is None:
        unsupported = right if left_value is not None else left
        raise TypeError(f"eq does not support {type(unsupported).__name__}")
    return left_value.compare(right_value) == 0


def or_zero(value: Deci | None) -> Deci:
    """Return value, or Deci.ZERO if it is None."""
    return Deci.ZERO if value is None else value


def sum_of(items: Iterable[T], selector: Callable[[T], Deci] | None = None) -> Deci:
    """Sum Deci values (optionally selected from items), starting from zero."""
    total = Deci.ZERO
    for item in items:
        total += selector(item) if selector is not None else item  # type: ignore[operator]
    return total


__all__ = ["Deci", "value_of", "eq", "or_zero", "sum_of", "VALIDATION_CONTEXT_KEY"]
