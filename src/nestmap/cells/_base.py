"""
Shared machinery for reference cells.

A reference cell holds one immutable value at a time and replaces it as a
whole; it never mutates the value it holds. Subclasses decide how the
replacement is coordinated (compare-and-set for Atom, a serial action queue
for Agent). This module provides what they have in common:

- validators: a predicate every candidate value must satisfy
- watches: callbacks run after every change, fn(key, cell, old, new)
- RetryPolicy: limits for optimistic retry loops
- update(): one entry point that works for any cell
"""

from __future__ import annotations

import abc as _abc
import dataclasses as _dataclasses
import threading as _threading
import typing as _typing

import nestmap.constants as constants
import nestmap.errors as errors

if _typing.TYPE_CHECKING:
    import nestmap.config as config

Validator: _typing.TypeAlias = _typing.Callable[[_typing.Any], bool]
WatchFunction: _typing.TypeAlias = _typing.Callable[
    [_typing.Hashable, "Reference", _typing.Any, _typing.Any], None
]


@_dataclasses.dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    How hard an optimistic update tries before giving up.

    Attributes:
        max_retries: Retries allowed after the first contended attempt.
            None retries until the update succeeds.
        backoff_seconds: Base sleep before a retry; retry n sleeps
            n * backoff_seconds. Zero retries immediately.
    """

    max_retries: int | None = constants.DEFAULT_MAX_RETRIES
    backoff_seconds: float = constants.DEFAULT_BACKOFF_SECONDS

    def __post_init__(self) -> None:
        if self.max_retries is not None and self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.backoff_seconds < 0:
            raise ValueError(f"backoff_seconds must be >= 0, got {self.backoff_seconds}")

    @classmethod
    def from_settings(cls, settings: config.Settings) -> RetryPolicy:
        """Build a policy from the cells section of Settings."""
        return cls(
            max_retries=settings.cells.max_retries,
            backoff_seconds=settings.cells.backoff_seconds,
        )

    def exhausted(self, attempts: int) -> bool:
        """Return True if attempts contended tries use up the allowed retries."""
        return self.max_retries is not None and attempts > self.max_retries

    def delay(self, attempts: int) -> float:
        """Seconds to sleep before the next try."""
        return self.backoff_seconds * attempts


class Reference(_abc.ABC):
    """
    Base class for cells holding a single immutable value.

    Subclasses implement deref() and update(); validation and watch
    bookkeeping live here.
    """

    def __init__(self, validator: Validator | None = None) -> None:
        self._validator = validator
        self._watches: dict[_typing.Hashable, WatchFunction] = {}
        self._watch_lock = _threading.Lock()

    @_abc.abstractmethod
    def deref(self) -> _typing.Any:
        """Return the current value."""

    @_abc.abstractmethod
    def update(
        self,
        fn: _typing.Callable[..., _typing.Any],
        *args: _typing.Any,
        **kwargs: _typing.Any,
    ) -> _typing.Any:
        """Apply fn(current, *args, **kwargs) as this cell's state transition."""

    @property
    def value(self) -> _typing.Any:
        """The current value (same as deref())."""
        return self.deref()

    # =========================================================================
    # Validation
    # =========================================================================

    @property
    def validator(self) -> Validator | None:
        return self._validator

    def set_validator(self, validator: Validator | None) -> None:
        """
        Replace the validator. The current value must pass the new one.

        Raises:
            InvalidStateError: If the current value is rejected.
        """
        if validator is not None and not validator(self.deref()):
            raise errors.InvalidStateError(
                f"current value {self.deref()!r} rejected by new validator"
            )
        self._validator = validator

    def _validate(self, value: _typing.Any) -> None:
        if self._validator is not None and not self._validator(value):
            raise errors.InvalidStateError(f"validator rejected value {value!r}")

    # =========================================================================
    # Watches
    # =========================================================================

    def add_watch(self, key: _typing.Hashable, fn: WatchFunction) -> Reference:
        """
        Register fn(key, cell, old, new) to run after every change.

        Adding a watch under an existing key replaces it.
        """
        with self._watch_lock:
            self._watches[key] = fn
        return self

    def remove_watch(self, key: _typing.Hashable) -> Reference:
        """Unregister the watch under key. Unknown keys are ignored."""
        with self._watch_lock:
            self._watches.pop(key, None)
        return self

    @property
    def watches(self) -> dict[_typing.Hashable, WatchFunction]:
        """A snapshot of the registered watches."""
        with self._watch_lock:
            return dict(self._watches)

    def _notify_watches(self, old: _typing.Any, new: _typing.Any) -> None:
        for key, fn in self.watches.items():
            fn(key, self, old, new)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.deref()!r}>"


def update(
    cell: Reference,
    fn: _typing.Callable[..., _typing.Any],
    *args: _typing.Any,
    **kwargs: _typing.Any,
) -> _typing.Any:
    """
    Apply a state transition to any reference cell.

    For an Atom this is swap() and returns the new value; for an Agent it is
    send() and returns the agent.

    Raises:
        ArgumentTypeError: If cell is not a reference cell.
    """
    if not isinstance(cell, Reference):
        raise errors.ArgumentTypeError(
            f"update expects a reference cell, got {type(cell).__name__}"
        )
    return cell.update(fn, *args, **kwargs)
