"""
YAML codec for immutable values.

Provides:
- MapLoader: SafeLoader that builds Map for mappings and tuple for sequences
- MapDumper: SafeDumper that knows how to write Map and tuple
- load() / dump(): convenience wrappers

Example:
    >>> data = load("author:\\n  name: Ada\\n  tags: [x, y]\\n")
    >>> data
    Map({'author': Map({'name': 'Ada', 'tags': ('x', 'y')})})
    >>> print(dump(data), end="")
    author:
      name: Ada
      tags:
      - x
      - y
"""

from __future__ import annotations

import typing as _typing

import yaml as _yaml

import nestmap.constants as constants
import nestmap.maps._map as _map

# =============================================================================
# Loading
# =============================================================================


def _map_constructor(
    loader: _yaml.SafeLoader,
    node: _yaml.MappingNode,
) -> _map.Map:
    """
    Construct a Map from a YAML mapping node.

    This replaces the default dict constructor so YAML mappings
    become Map instances. Merge keys (<<) are honored.
    """
    loader.flatten_mapping(node)
    pairs = loader.construct_pairs(node, deep=True)  # type: ignore[no-untyped-call]
    return _map.Map._wrap(dict(pairs))


def _tuple_constructor(
    loader: _yaml.SafeLoader,
    node: _yaml.SequenceNode,
) -> tuple[_typing.Any, ...]:
    """Construct a tuple from a YAML sequence node."""
    return tuple(loader.construct_sequence(node, deep=True))


class MapLoader(_yaml.SafeLoader):
    """
    YAML loader producing immutable values.

    Mappings load as Map and sequences as tuple; scalars are unchanged
    from SafeLoader.
    """

    pass


MapLoader.add_constructor(
    _yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _map_constructor,
)
MapLoader.add_constructor(
    _yaml.resolver.BaseResolver.DEFAULT_SEQUENCE_TAG,
    _tuple_constructor,
)


# =============================================================================
# Dumping
# =============================================================================


def _represent_map(dumper: _yaml.SafeDumper, data: _map.Map) -> _yaml.MappingNode:
    return dumper.represent_dict(data)


def _represent_tuple(
    dumper: _yaml.SafeDumper,
    data: tuple[_typing.Any, ...],
) -> _yaml.SequenceNode:
    return dumper.represent_list(data)


class MapDumper(_yaml.SafeDumper):
    """SafeDumper that also represents Map (as a mapping) and tuple (as a sequence)."""

    pass


MapDumper.add_representer(_map.Map, _represent_map)
MapDumper.add_representer(tuple, _represent_tuple)


# =============================================================================
# Convenience Functions
# =============================================================================


def load(stream: _typing.Any) -> _typing.Any:
    """
    Load YAML into immutable values.

    Args:
        stream: YAML content (string, bytes, or file-like object).

    Returns:
        Map, tuple, or scalar depending on the document; None for an empty one.

    Raises:
        yaml.YAMLError: If the document is malformed.
    """
    return _yaml.load(stream, Loader=MapLoader)


def dump(
    value: _typing.Any,
    stream: _typing.IO[str] | None = None,
    *,
    indent: int = constants.DEFAULT_INDENT,
) -> str | None:
    """
    Write a value as block-style YAML, keeping key order.

    Plain dicts and lists are accepted as well as Maps and tuples.

    Returns:
        The YAML text if stream is None, otherwise None.
    """
    return _yaml.dump(  # type: ignore[no-any-return]
        value,
        stream,
        Dumper=MapDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        indent=indent,
    )
