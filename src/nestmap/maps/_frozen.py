"""
Deep conversion between plain Python containers and immutable values.

freeze() turns dicts into Maps and lists into tuples, all the way down.
thaw() goes back to dicts and lists, which is what json and most
callers outside nestmap expect.
"""

from __future__ import annotations

import collections.abc as _abc
import typing as _typing

import nestmap.maps._map as _map


def freeze(value: _typing.Any) -> _typing.Any:
    """
    Convert nested mutable containers to immutable ones.

    - Mapping (dict, Map, ...) → Map with frozen values
    - list/tuple → tuple with frozen items
    - set → frozenset
    - str/bytes and scalars returned as-is

    Args:
        value: Any value to freeze.

    Returns:
        An equal value containing no mutable containers.

    Example:
        >>> freeze({"a": [1, {"b": 2}]})
        Map({'a': (1, Map({'b': 2}))})
    """
    if isinstance(value, _abc.Mapping):
        return _map.Map._wrap({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(value)
    return value


def thaw(value: _typing.Any) -> _typing.Any:
    """
    Convert Maps and tuples back to dicts and lists, recursively.

    The result shares nothing mutable with the input, so the caller may
    modify it freely.

    Example:
        >>> thaw(Map({"a": (1, 2)}))
        {'a': [1, 2]}
    """
    if isinstance(value, _abc.Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return set(value)
    return value
