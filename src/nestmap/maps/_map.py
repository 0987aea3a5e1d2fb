"""
Map: an immutable, hashable mapping value.

A Map wraps a private dict that is never exposed or modified after
construction. Every transforming operation (see nestmap.maps._ops) builds a
new dict and wraps it, so values already handed out are never affected.
Unchanged nested values are shared between the old and new Map.
"""

from __future__ import annotations

import collections.abc as _abc
import typing as _typing

if _typing.TYPE_CHECKING:
    import nestmap.maps._types as _types


class Map(_abc.Mapping[_typing.Any, _typing.Any]):
    """
    Immutable key/value mapping with value semantics.

    Iteration follows insertion order, but equality does not: a Map equals
    any Mapping holding the same items, including plain dicts.

    Example:
        >>> m = Map({"a": 1})
        >>> m2 = m.assoc("b", 2)
        >>> m, m2
        (Map({'a': 1}), Map({'a': 1, 'b': 2}))
        >>> m2 == {"b": 2, "a": 1}
        True
        >>> m["a"] = 5  # TypeError: immutable
    """

    __slots__ = ("_data", "_hash")

    _data: dict[_typing.Any, _typing.Any]
    _hash: int | None

    def __init__(
        self,
        data: _abc.Mapping[_typing.Any, _typing.Any]
        | _abc.Iterable[tuple[_typing.Any, _typing.Any]]
        | None = None,
        /,
        **kwargs: _typing.Any,
    ) -> None:
        """
        Build a Map from a mapping, an iterable of pairs, and/or keywords.

        The input is copied; later changes to it are not seen by the Map.
        """
        items: dict[_typing.Any, _typing.Any] = {} if data is None else dict(data)
        if kwargs:
            items.update(kwargs)
        self._data = items
        self._hash = None

    @classmethod
    def _wrap(cls, data: dict[_typing.Any, _typing.Any]) -> Map:
        """Wrap a freshly built dict without copying it. Caller gives up the dict."""
        result = cls.__new__(cls)
        result._data = data
        result._hash = None
        return result

    def __getitem__(self, key: _typing.Any) -> _typing.Any:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> _typing.Iterator[_typing.Any]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Map({self._data!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Map):
            return self._data == other._data
        if isinstance(other, _abc.Mapping):
            return len(self._data) == len(other) and self._data == dict(other.items())
        return NotImplemented

    def __hash__(self) -> int:
        """Hash by content. Raises TypeError if any value is unhashable."""
        if self._hash is None:
            self._hash = hash(frozenset(self._data.items()))
        return self._hash

    def __reduce__(self) -> tuple[type[Map], tuple[dict[_typing.Any, _typing.Any]]]:
        return (Map, (self._data,))

    def __copy__(self) -> Map:
        return self

    def __or__(self, other: object) -> Map:
        if not isinstance(other, _abc.Mapping):
            return NotImplemented
        return self.merge(other)

    def __ror__(self, other: object) -> Map:
        if not isinstance(other, _abc.Mapping):
            return NotImplemented
        import nestmap.maps._ops as _ops

        return _ops.merge(other, self)

    # =========================================================================
    # Convenience methods (delegate to nestmap.maps._ops)
    # =========================================================================

    def assoc(self, *kvs: _typing.Any) -> Map:
        """Return a copy with each key bound to the value that follows it."""
        import nestmap.maps._ops as _ops

        return _ops.assoc(self, *kvs)

    def dissoc(self, *keys: _typing.Any) -> Map:
        """Return a copy without the given keys."""
        import nestmap.maps._ops as _ops

        return _ops.dissoc(self, *keys)

    def merge(self, *others: _abc.Mapping[_typing.Any, _typing.Any] | None) -> Map:
        """Return this map merged with others; later maps win."""
        import nestmap.maps._ops as _ops

        return _ops.merge(self, *others)

    def get_in(self, path: _types.Path, default: _typing.Any = None) -> _typing.Any:
        """Return the value at a nested path, or default."""
        import nestmap.maps._ops as _ops

        return _ops.get_in(self, path, default)

    def update_in(
        self,
        path: _types.Path,
        fn: _types.UpdateFunction,
        *args: _typing.Any,
        **kwargs: _typing.Any,
    ) -> _typing.Any:
        """Return a copy with the value at path replaced by fn(value, *args)."""
        import nestmap.maps._ops as _ops

        return _ops.update_in(self, path, fn, *args, **kwargs)

    def to_dict(self) -> dict[_typing.Any, _typing.Any]:
        """Return a shallow, mutable copy as a plain dict."""
        return dict(self._data)
