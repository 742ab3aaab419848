"""Equality policy for watchers.

Two modes, picked per watcher:

- reference (value_eq=False): objects compare by identity. Numbers, strings
  and bytes are immutable scalars and compare by value, so a watch returning
  ``scope.count + 1`` settles. Two NaNs are equal, otherwise a watch
  returning NaN would be dirty forever.
- value (value_eq=True): recursive structural equality, NaN-aware at any depth.
  Instances of classes without their own __eq__ compare by type and by
  their attribute (and slot) values.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Set
from numbers import Number

_SCALARS = (str, bytes)


def is_nan(value: object) -> bool:
    """True for float/complex NaN values (bools and ints are never NaN)."""
    if isinstance(value, float):
        return math.isnan(value)
    if isinstance(value, complex):
        return math.isnan(value.real) or math.isnan(value.imag)
    return False


def same(a: object, b: object) -> bool:
    """Reference equality with value semantics for immutable scalars."""
    if a is b:
        return True
    if isinstance(a, bool) or isinstance(b, bool):
        # True is True; True and 1 are different values here.
        return False
    if isinstance(a, Number) and isinstance(b, Number):
        if is_nan(a) and is_nan(b):
            return True
        return a == b
    if isinstance(a, _SCALARS) and type(a) is type(b):
        return a == b
    return False


def _slot_names(cls: type) -> list[str]:
    names = []
    for klass in cls.__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        names.extend(n for n in slots if n not in ("__dict__", "__weakref__"))
    return names


def _is_plain_instance(obj: object) -> bool:
    """An instance of a user class that relies on object.__eq__ (identity)."""
    cls = type(obj)
    if cls is object or callable(obj) or cls.__eq__ is not object.__eq__:
        return False
    return hasattr(obj, "__dict__") or bool(_slot_names(cls))


def _fields(obj: object) -> dict:
    fields = dict(getattr(obj, "__dict__", {}))
    for name in _slot_names(type(obj)):
        if hasattr(obj, name):
            fields[name] = getattr(obj, name)
    return fields


def deep_equal(a: object, b: object) -> bool:
    """Structural equality, independent of identity."""
    if a is b:
        return True
    if is_nan(a) and is_nan(b):
        return True
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if len(a) != len(b):
            return False
        for key, value in a.items():
            if key not in b or not deep_equal(value, b[key]):
                return False
        return True
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if type(a) is not type(b) or len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, Set) and isinstance(b, Set):
        return a == b
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    if type(a) is type(b) and _is_plain_instance(a):
        return deep_equal(_fields(a), _fields(b))
    return bool(a == b)


def are_equal(new_value: object, old_value: object, value_eq: bool) -> bool:
    if value_eq:
        return deep_equal(new_value, old_value)
    return same(new_value, old_value)
