"""
Reference cells holding immutable values.

- Atom: synchronous compare-and-set updates (swap)
- Agent: asynchronous updates applied in order by a worker thread (send)
- update(): apply a state transition to either kind

Example:
    >>> from nestmap.cells import Atom, update
    >>> counter = Atom(0)
    >>> update(counter, lambda n: n + 1)
    1
"""

from nestmap.cells._base import Reference, RetryPolicy, update
from nestmap.cells.agent import Agent
from nestmap.cells.atom import Atom

__all__ = ["Agent", "Atom", "Reference", "RetryPolicy", "update"]
