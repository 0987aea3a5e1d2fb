"""
nestmap - immutable nested maps and reference cells

Pure functions (assoc, dissoc, merge, merge_with, update_in, ...) build new
Map values from old ones without ever modifying their inputs. Atom and Agent
hold such values and replace them atomically.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("nestmap")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)

from nestmap.cells import Agent, Atom, RetryPolicy, update  # noqa: E402
from nestmap.errors import (  # noqa: E402
    AgentError,
    ArgumentTypeError,
    ContentionError,
    InvalidStateError,
    NestmapError,
    PathTypeError,
)
from nestmap.maps import (  # noqa: E402
    Map,
    assoc,
    assoc_in,
    deep_merge,
    dissoc,
    dissoc_in,
    freeze,
    get_in,
    merge,
    merge_with,
    nested_update,
    select_keys,
    thaw,
    update_in,
)

__all__ = [
    "__version__",
    "__version_info__",
    "Agent",
    "AgentError",
    "ArgumentTypeError",
    "Atom",
    "ContentionError",
    "InvalidStateError",
    "Map",
    "NestmapError",
    "PathTypeError",
    "RetryPolicy",
    "assoc",
    "assoc_in",
    "deep_merge",
    "dissoc",
    "dissoc_in",
    "freeze",
    "get_in",
    "merge",
    "merge_with",
    "nested_update",
    "select_keys",
    "thaw",
    "update",
    "update_in",
]
