# nowfmt/value.py
"""Uniform value type shared by template variables and helpers.

A value is one of ``None``, ``bool``, ``int``, ``float``, ``str`` or a
``tuple`` of values. ``bool`` must always be checked before ``int``.
"""
import math
from typing import Any, Tuple, Union

Value = Union[None, bool, int, float, str, Tuple[Any, ...]]


def is_null(value: Value) -> bool:
    return value is None


def is_number(value: Value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_value(obj: Any) -> Value:
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (list, tuple)):
        return tuple(to_value(item) for item in obj)
    return str(obj)


def values_equal(a: Value, b: Value) -> bool:
    """Structural equality that keeps booleans apart from numbers.

    ``1`` and ``1.0`` are equal; ``True`` and ``1`` are not.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, tuple) and isinstance(b, tuple):
        return len(a) == len(b) and all(values_equal(x, y) for x, y in zip(a, b))
    return type(a) is type(b) and a == b


def _render_number(num: Union[int, float]) -> str:
    if isinstance(num, int):
        return str(num)
    if not math.isfinite(num):
        # nan and infinities have no decimal form; treat them as missing
        return ""
    if num.is_integer():
        return str(int(num))
    return repr(num)


def render_value(value: Value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _render_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, tuple):
        return "[" + ", ".join(render_value(item) for item in value) + "]"
    return str(value)
