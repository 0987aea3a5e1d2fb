"""
Operations on immutable maps.

Every function here is pure: inputs are never modified, and results are new
Map values (or tuples, for indexed collections). Unchanged branches are
shared with the input rather than copied.

Any Mapping is accepted where a map is expected; plain dicts are read but
never written. None is treated as an empty map by the building operations
(assoc, merge, update_in), which makes it easy to grow structure from nothing:

    >>> update_in({}, ["author", "residence"], assoc, "country", "USA")
    Map({'author': Map({'residence': Map({'country': 'USA'})})})

Indexed collections are tuples. They can be descended into with int keys,
and assoc at index len(t) appends.
"""

from __future__ import annotations

import collections.abc as _abc
import typing as _typing

import nestmap.errors as errors
import nestmap.maps._map as _map

if _typing.TYPE_CHECKING:
    import nestmap.maps._types as _types

Map = _map.Map


class _MissingType:
    """Sentinel for absent keys, distinct from a stored None."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<MISSING>"


_MISSING = _MissingType()


# =============================================================================
# Argument helpers
# =============================================================================


def _as_map(value: _typing.Any, operation: str) -> Map:
    """Coerce a map argument to Map, treating None as empty."""
    if isinstance(value, Map):
        return value
    if value is None:
        return Map()
    if isinstance(value, _abc.Mapping):
        return Map(value)
    raise errors.ArgumentTypeError(
        f"{operation} expects a mapping, got {type(value).__name__}"
    )


def _as_path(path: _typing.Any, operation: str) -> tuple[_typing.Any, ...]:
    """Validate a path argument and return it as a tuple."""
    if isinstance(path, (str, bytes)) or not isinstance(path, _abc.Sequence):
        raise errors.ArgumentTypeError(
            f"{operation} expects a sequence of keys as path, got {type(path).__name__}"
        )
    return tuple(path)


def _is_index(key: _typing.Any) -> bool:
    return isinstance(key, int) and not isinstance(key, bool)


def _assoc_index(
    vector: tuple[_typing.Any, ...],
    index: _typing.Any,
    value: _typing.Any,
) -> tuple[_typing.Any, ...]:
    """Return a tuple with position index replaced, or appended at len()."""
    if not _is_index(index):
        raise errors.ArgumentTypeError(
            f"tuple index must be an int, got {type(index).__name__}"
        )
    if 0 <= index < len(vector):
        return vector[:index] + (value,) + vector[index + 1 :]
    if index == len(vector):
        return vector + (value,)
    raise IndexError(f"index {index} out of range for tuple of length {len(vector)}")


def _lookup(node: _typing.Any, key: _typing.Any) -> _typing.Any:
    """Return node[key] for maps and tuples, or _MISSING if absent/impossible."""
    if isinstance(node, _abc.Mapping):
        return node.get(key, _MISSING)
    if isinstance(node, tuple) and _is_index(key) and 0 <= key < len(node):
        return node[key]
    return _MISSING


# =============================================================================
# Single-level operations
# =============================================================================


def assoc(m: _typing.Any, *kvs: _typing.Any) -> _typing.Any:
    """
    Bind keys to values.

    Args:
        m: A mapping, a tuple (keys are indices), or None (empty map).
        *kvs: Alternating keys and values. Later pairs win.

    Returns:
        A new Map (or tuple, if m is a tuple).

    Raises:
        ArgumentTypeError: If kvs has odd length or m is not a map/tuple.
    """
    if len(kvs) % 2:
        raise errors.ArgumentTypeError(
            f"assoc expects key/value pairs, got {len(kvs)} arguments after the map"
        )
    if isinstance(m, tuple):
        for i in range(0, len(kvs), 2):
            m = _assoc_index(m, kvs[i], kvs[i + 1])
        return m

    data = dict(_as_map(m, "assoc")._data)
    for i in range(0, len(kvs), 2):
        data[kvs[i]] = kvs[i + 1]
    return Map._wrap(data)


def dissoc(m: _typing.Any, *keys: _typing.Any) -> Map | None:
    """
    Remove keys. Absent keys are ignored.

    Returns:
        A new Map without the keys, or None when m is None.
    """
    if m is None:
        return None
    source = _as_map(m, "dissoc")
    if not any(key in source for key in keys):
        return source
    data = dict(source._data)
    for key in keys:
        data.pop(key, None)
    return Map._wrap(data)


def merge(*maps: _abc.Mapping[_typing.Any, _typing.Any] | None) -> Map:
    """
    Merge maps left to right; on conflicting keys the later map wins.

    None entries are skipped. With no maps at all, returns an empty Map.
    """
    data: dict[_typing.Any, _typing.Any] = {}
    for m in maps:
        if m is None:
            continue
        data.update(_as_map(m, "merge")._data)
    return Map._wrap(data)


def merge_with(
    fn: _types.CombineFunction,
    *maps: _abc.Mapping[_typing.Any, _typing.Any] | None,
) -> Map:
    """
    Merge maps, combining values of conflicting keys with fn.

    For each key present in more than one map, the result is
    fn(accumulated, next) folded from left to right. Exceptions raised by
    fn propagate to the caller and no partial result is produced.

    Example:
        >>> import operator
        >>> merge_with(operator.add, {2011: 206, 2012: 321}, {2011: 25, 2013: 104})
        Map({2011: 231, 2012: 321, 2013: 104})
    """
    if not callable(fn):
        raise errors.ArgumentTypeError(
            f"merge_with expects a callable combiner, got {type(fn).__name__}"
        )
    data: dict[_typing.Any, _typing.Any] = {}
    for m in maps:
        if m is None:
            continue
        for key, value in _as_map(m, "merge_with")._data.items():
            if key in data:
                data[key] = fn(data[key], value)
            else:
                data[key] = value
    return Map._wrap(data)


def deep_merge(*maps: _abc.Mapping[_typing.Any, _typing.Any] | None) -> Map:
    """
    Merge maps recursively; later maps win.

    When both sides hold a Mapping under the same key they are merged in
    turn, otherwise the later value replaces the earlier one.

    Example:
        >>> deep_merge({"model": {"name": "llama", "size": "7b"}},
        ...            {"model": {"size": "70b"}})
        Map({'model': Map({'name': 'llama', 'size': '70b'})})
    """
    data: dict[_typing.Any, _typing.Any] = {}
    for m in maps:
        if m is None:
            continue
        data = _deep_merge_into(data, _as_map(m, "deep_merge"))
    return Map._wrap(data)


def _deep_merge_into(
    base: dict[_typing.Any, _typing.Any],
    override: _abc.Mapping[_typing.Any, _typing.Any],
) -> dict[_typing.Any, _typing.Any]:
    """Return a new dict of base with override merged in."""
    result = dict(base)
    for key, value in override.items():
        existing = result.get(key, _MISSING)
        if isinstance(existing, _abc.Mapping) and isinstance(value, _abc.Mapping):
            result[key] = Map._wrap(_deep_merge_into(dict(existing), value))
        else:
            result[key] = value
    return result


def select_keys(m: _typing.Any, keys: _abc.Iterable[_typing.Any]) -> Map:
    """Return a Map holding only those of keys that are present in m."""
    source = _as_map(m, "select_keys")
    return Map._wrap({key: source[key] for key in keys if key in source})


# =============================================================================
# Path operations
# =============================================================================


def get_in(m: _typing.Any, path: _types.Path, default: _typing.Any = None) -> _typing.Any:
    """
    Return the value at a nested path, or default if any key is missing.

    Descending into a value that is neither a Mapping nor a tuple also
    yields default; reading never raises PathTypeError.
    """
    current = m
    for key in _as_path(path, "get_in"):
        current = _lookup(current, key)
        if current is _MISSING:
            return default
    return current


def update_in(
    m: _typing.Any,
    path: _types.Path,
    fn: _types.UpdateFunction,
    *args: _typing.Any,
    **kwargs: _typing.Any,
) -> _typing.Any:
    """
    Replace the value at a nested path with fn(value, *args, **kwargs).

    Missing keys along the path, including the last one, are filled with
    empty Maps, so fn receives Map() when nothing is stored there yet.
    An empty path applies fn to m itself.

    Args:
        m: Root map (None is treated as empty).
        path: Keys from outermost to innermost.
        fn: Update function; its return value is stored at path.
        *args: Extra positional arguments for fn.
        **kwargs: Extra keyword arguments for fn.

    Returns:
        A new root with the updated value; m is left untouched.

    Raises:
        PathTypeError: If an intermediate value exists but is not a map or tuple.
        ArgumentTypeError: If path is not a sequence of keys or fn not callable.
    """
    keys = _as_path(path, "update_in")
    if not callable(fn):
        raise errors.ArgumentTypeError(
            f"update_in expects a callable, got {type(fn).__name__}"
        )
    return _update_in(m, keys, 0, fn, args, kwargs)


def _update_in(
    node: _typing.Any,
    keys: tuple[_typing.Any, ...],
    depth: int,
    fn: _types.UpdateFunction,
    args: tuple[_typing.Any, ...],
    kwargs: dict[str, _typing.Any],
) -> _typing.Any:
    if depth == len(keys):
        return fn(node, *args, **kwargs)

    key = keys[depth]
    if node is None:
        node = Map()

    if isinstance(node, _abc.Mapping):
        child = node.get(key, _MISSING)
    elif isinstance(node, tuple) and _is_index(key):
        child = node[key] if 0 <= key < len(node) else _MISSING
    else:
        raise errors.PathTypeError(keys[:depth], node)

    if child is _MISSING:
        child = Map()
    new_child = _update_in(child, keys, depth + 1, fn, args, kwargs)
    return assoc(node, key, new_child)


nested_update = update_in


def update(
    m: _typing.Any,
    key: _types.Key,
    fn: _types.UpdateFunction,
    *args: _typing.Any,
    **kwargs: _typing.Any,
) -> _typing.Any:
    """Replace m[key] with fn(m[key], *args, **kwargs); a missing key gives Map()."""
    return update_in(m, (key,), fn, *args, **kwargs)


def assoc_in(m: _typing.Any, path: _types.Path, value: _typing.Any) -> _typing.Any:
    """Bind value at a nested path, creating intermediate maps as needed."""
    keys = _as_path(path, "assoc_in")
    if not keys:
        raise errors.ArgumentTypeError("assoc_in requires a non-empty path")
    return _update_in(m, keys, 0, lambda _current: value, (), {})


def dissoc_in(m: _typing.Any, path: _types.Path) -> Map | None:
    """
    Remove the key at the end of a nested path.

    Int keys descend into tuples as in get_in. When the last key indexes a
    tuple, that element is removed and later elements shift down.

    Maps that become empty as a result are removed from their parent maps
    as well. A map left empty inside a tuple stays in place, so the indices
    of its siblings do not change. If the path does not exist the input is
    returned as a Map, unchanged.
    """
    keys = _as_path(path, "dissoc_in")
    if not keys:
        raise errors.ArgumentTypeError("dissoc_in requires a non-empty path")
    if m is None:
        return None
    source = _as_map(m, "dissoc_in")
    result = _dissoc_in(source, keys, 0)
    return source if result is _MISSING else result


def _dissoc_in(
    node: _typing.Any,
    keys: tuple[_typing.Any, ...],
    depth: int,
) -> _typing.Any:
    """Return node without the path, or _MISSING when the path is absent."""
    key = keys[depth]
    child = _lookup(node, key)
    if child is _MISSING:
        return _MISSING
    if depth == len(keys) - 1:
        if isinstance(node, tuple):
            return node[:key] + node[key + 1 :]
        return dissoc(node, key)

    if not isinstance(child, (_abc.Mapping, tuple)):
        return _MISSING

    new_child = _dissoc_in(child, keys, depth + 1)
    if new_child is _MISSING:
        return _MISSING
    if isinstance(node, _abc.Mapping) and isinstance(new_child, Map) and not new_child:
        return dissoc(node, key)
    return assoc(node, key, new_child)
