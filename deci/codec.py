"""JSON encoding and decoding that keeps Deci values exact.

Deci values are written as bare numeric tokens, never quoted and never
through a float:

    dumps({"amount": Deci("-12.345"), "label": "abra"})
    # '{"amount":-12.345,"label":"abra"}'

Decoding reads every fractional or exponent number token from its raw
text into Deci, so "0.1" decodes to exactly 0.1. Integer tokens stay int,
of any length.
Pydantic models with Deci fields can be encoded directly and decoded by
passing the model class:

    class Payment(BaseModel):
        amount: Deci
        label: str

    payment = loads('{"amount":-12.345,"label":"abra"}', model=Payment)
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, TypeVar, overload

from pydantic import BaseModel

from deci.backend import ScaledDecimal
from deci.context import NumericContext
from deci.deci import VALIDATION_CONTEXT_KEY, Deci

ModelT = TypeVar("ModelT", bound=BaseModel)

_SEPARATORS = (",", ":")


def _encode(obj: Any, sort_keys: bool) -> str:
    if isinstance(obj, Deci):
        return str(obj)
    if isinstance(obj, Decimal):
        if not obj.is_finite():
            raise ValueError(f"Cannot encode non-finite Decimal as JSON: {obj}")
        return format(obj, "f")
    if isinstance(obj, BaseModel):
        return _encode(obj.model_dump(mode="python", by_alias=True), sort_keys)
    if isinstance(obj, int) and not isinstance(obj, bool):
        return ScaledDecimal.from_int(obj).to_plain_string()
    if obj is None or isinstance(obj, (str, float, bool)):
        return json.dumps(obj, allow_nan=False)
    if isinstance(obj, dict):
        items = sorted(obj.items(), key=lambda kv: str(kv[0])) if sort_keys else obj.items()
        members = (
            json.dumps(key if isinstance(key, str) else str(key)) + _SEPARATORS[1] + _encode(value, sort_keys)
            for key, value in items
        )
        return "{" + _SEPARATORS[0].join(members) + "}"
    if isinstance(obj, (list, tuple)):
        return "[" + _SEPARATORS[0].join(_encode(item, sort_keys) for item in obj) + "]"
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _parse_int(token: str) -> int:
    return ScaledDecimal.parse(token).coefficient


def dumps(obj: Any, *, sort_keys: bool = False) -> str:
    """Serialize obj to compact JSON, writing Deci and Decimal as bare numbers.

    Supports dict, list, tuple, str, int, float, bool, None, Deci, Decimal
    and pydantic models (dumped by alias).

    Raises:
        TypeError: If obj contains an unsupported type
        ValueError: If obj contains a NaN or infinite Decimal or float
    """
    return _encode(obj, sort_keys)


@overload
def loads(text: str | bytes, *, context: NumericContext | None = None, model: None = None) -> Any: ...


@overload
def loads(text: str | bytes, *, context: NumericContext | None = None, model: type[ModelT]) -> ModelT: ...


def loads(
    text: str | bytes,
    *,
    context: NumericContext | None = None,
    model: type[BaseModel] | None = None,
) -> Any:
    """Parse JSON, reading fractional number tokens into Deci.

    Args:
        text: JSON document
        context: Context for decoded Deci values (default: DEFAULT_CONTEXT).
            With a model, Deci fields validated from integer tokens take it too.
        model: Optional pydantic model class to validate the document into

    Raises:
        json.JSONDecodeError: If text is not valid JSON
        pydantic.ValidationError: If model validation fails
    """
    data = json.loads(text, parse_float=lambda token: Deci(token, context), parse_int=_parse_int)
    if model is not None:
        validation_context = None if context is None else {VALIDATION_CONTEXT_KEY: context}
        return model.model_validate(data, context=validation_context)
    return data


__all__ = ["dumps", "loads"]
