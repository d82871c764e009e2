"""deci - context-aware exact decimal arithmetic."""

from deci.context import DEFAULT_CONTEXT, NumericContext, context_from_env
from deci.deci import VALIDATION_CONTEXT_KEY, Deci, eq, or_zero, sum_of, value_of
from deci.errors import ConfigurationError, DeciError, DivisionByZero, ParseError
from deci.expr import DeciExpr, deci_expr, map2
from deci.rounding import RoundingMode

__version__ = "0.1.0"
__all__ = [
    # Value type
    "Deci",
    "value_of",
    "eq",
    "or_zero",
    "sum_of",
    "VALIDATION_CONTEXT_KEY",
    # Context
    "NumericContext",
    "RoundingMode",
    "DEFAULT_CONTEXT",
    "context_from_env",
    # Expressions
    "DeciExpr",
    "deci_expr",
    "map2",
    # Errors
    "DeciError",
    "ConfigurationError",
    "ParseError",
    "DivisionByZero",
    "__version__",
]
