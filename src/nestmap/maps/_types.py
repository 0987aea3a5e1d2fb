"""
Type aliases for nestmap.maps.

- Key: anything hashable that can address one level of nesting
- Path: ordered sequence of keys, outermost first
- UpdateFunction: fn(current, *args, **kwargs) -> new value
"""

from __future__ import annotations

import collections.abc as _abc
import typing as _typing

# Example: ("author", "residence", "country") addresses
# m["author"]["residence"]["country"]
Key: _typing.TypeAlias = _typing.Hashable
Path: _typing.TypeAlias = _abc.Sequence[_typing.Any]

UpdateFunction: _typing.TypeAlias = _abc.Callable[..., _typing.Any]
CombineFunction: _typing.TypeAlias = _abc.Callable[[_typing.Any, _typing.Any], _typing.Any]
