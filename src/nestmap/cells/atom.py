"""
Atom: a compare-and-set guarded cell for synchronous, independent state.

Readers never block: deref() returns whatever value is current. Writers use
swap(), which reads the current value, computes a new one with a pure
function *outside* any lock, and installs it only if the cell still holds
the value that was read. If another thread got there first the whole cycle
is repeated, so the function may run several times and must not have side
effects.

Example:
    >>> import nestmap.maps as maps
    >>> state = Atom(maps.Map())
    >>> state.swap(maps.assoc_in, ["author", "name"], "Ada")
    Map({'author': Map({'name': 'Ada'})})
"""

from __future__ import annotations

import logging as _logging
import threading as _threading
import time as _time
import typing as _typing

import nestmap.cells._base as _base
import nestmap.errors as errors

_logger = _logging.getLogger(__name__)


class Atom(_base.Reference):
    """
    A single-value cell updated by optimistic compare-and-set.

    Args:
        value: Initial value.
        validator: Optional predicate; values it rejects are never installed.
        retry: Retry limits for contended swaps. Defaults to unbounded retry.

    Raises:
        InvalidStateError: If the initial value fails the validator.
    """

    def __init__(
        self,
        value: _typing.Any = None,
        *,
        validator: _base.Validator | None = None,
        retry: _base.RetryPolicy | None = None,
    ) -> None:
        super().__init__(validator)
        self._validate(value)
        self._value = value
        self._lock = _threading.Lock()
        self._retry = retry if retry is not None else _base.RetryPolicy()

    @property
    def retry(self) -> _base.RetryPolicy:
        return self._retry

    def deref(self) -> _typing.Any:
        return self._value

    def compare_and_set(self, old: _typing.Any, new: _typing.Any) -> bool:
        """
        Install new only if the current value is (identically) old.

        Returns:
            True if the value was replaced.

        Raises:
            InvalidStateError: If new fails the validator.
        """
        self._validate(new)
        with self._lock:
            if self._value is not old:
                return False
            self._value = new
        self._notify_watches(old, new)
        return True

    def swap_vals(
        self,
        fn: _typing.Callable[..., _typing.Any],
        *args: _typing.Any,
        **kwargs: _typing.Any,
    ) -> tuple[_typing.Any, _typing.Any]:
        """
        Atomically replace the value with fn(value, *args, **kwargs).

        Returns:
            (old, new): the value fn was applied to and the value installed.

        Raises:
            ContentionError: If the retry policy is exhausted.
            InvalidStateError: If the result fails the validator.
        """
        attempts = 0
        while True:
            old = self._value
            new = fn(old, *args, **kwargs)
            self._validate(new)
            with self._lock:
                if self._value is old:
                    self._value = new
                    break

            attempts += 1
            if self._retry.exhausted(attempts):
                _logger.debug("Atom %#x: giving up after %d contended attempts", id(self), attempts)
                raise errors.ContentionError(attempts)
            _logger.debug("Atom %#x: contended update, retry %d", id(self), attempts)
            delay = self._retry.delay(attempts)
            if delay:
                _time.sleep(delay)

        self._notify_watches(old, new)
        return old, new

    def swap(
        self,
        fn: _typing.Callable[..., _typing.Any],
        *args: _typing.Any,
        **kwargs: _typing.Any,
    ) -> _typing.Any:
        """Atomically replace the value with fn(value, *args, **kwargs) and return it."""
        return self.swap_vals(fn, *args, **kwargs)[1]

    def update(
        self,
        fn: _typing.Callable[..., _typing.Any],
        *args: _typing.Any,
        **kwargs: _typing.Any,
    ) -> _typing.Any:
        return self.swap(fn, *args, **kwargs)

    def reset_vals(self, new: _typing.Any) -> tuple[_typing.Any, _typing.Any]:
        """Unconditionally install new. Returns (old, new)."""
        self._validate(new)
        with self._lock:
            old = self._value
            self._value = new
        self._notify_watches(old, new)
        return old, new

    def reset(self, new: _typing.Any) -> _typing.Any:
        """Unconditionally install new and return it."""
        return self.reset_vals(new)[1]
