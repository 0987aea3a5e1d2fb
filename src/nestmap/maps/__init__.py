"""
Immutable maps and the functions that transform them.

Example:
    >>> from nestmap.maps import Map, assoc, update_in
    >>> book = Map(title="Dune")
    >>> update_in(book, ["author", "residence"], assoc, "country", "USA")
    Map({'title': 'Dune', 'author': Map({'residence': Map({'country': 'USA'})})})
    >>> book
    Map({'title': 'Dune'})
"""

from nestmap.maps._frozen import freeze, thaw
from nestmap.maps._map import Map
from nestmap.maps._ops import (
    assoc,
    assoc_in,
    deep_merge,
    dissoc,
    dissoc_in,
    get_in,
    merge,
    merge_with,
    nested_update,
    select_keys,
    update,
    update_in,
)
from nestmap.maps._yaml import MapDumper, MapLoader
from nestmap.maps._yaml import dump as dump_yaml
from nestmap.maps._yaml import load as load_yaml

__all__ = [
    "Map",
    "MapDumper",
    "MapLoader",
    "assoc",
    "assoc_in",
    "deep_merge",
    "dissoc",
    "dissoc_in",
    "dump_yaml",
    "freeze",
    "get_in",
    "load_yaml",
    "merge",
    "merge_with",
    "nested_update",
    "select_keys",
    "thaw",
    "update",
    "update_in",
]
