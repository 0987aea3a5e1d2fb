"""
Agent: a cell whose state transitions run one at a time on a worker thread.

send() queues an action and returns immediately. A single daemon thread
applies queued actions in the order they were sent, so actions never
contend and never run twice. Callers that need the result use wait() and
then deref().

When an action raises, what happens next depends on error_mode:

- "fail": the agent keeps its last good value, records the error and
  refuses new actions (AgentError) until restart(). Actions already queued
  are held, and restart() either resumes or discards them.
- "continue": the error is passed to error_handler (if any) and the next
  action runs as usual.

Example:
    >>> log = Agent(())
    >>> log.send(lambda entries, e: entries + (e,), "started").wait()
    True
    >>> log.deref()
    ('started',)
"""

from __future__ import annotations

import collections as _collections
import dataclasses as _dataclasses
import itertools as _itertools
import logging as _logging
import threading as _threading
import typing as _typing

import nestmap.cells._base as _base
import nestmap.constants as constants
import nestmap.errors as errors

if _typing.TYPE_CHECKING:
    import nestmap.config as config

_logger = _logging.getLogger(__name__)

ErrorMode: _typing.TypeAlias = _typing.Literal["fail", "continue"]
ErrorHandler: _typing.TypeAlias = _typing.Callable[["Agent", Exception], None]

_agent_ids = _itertools.count(1)


@_dataclasses.dataclass(frozen=True, slots=True)
class _Action:
    """A queued state transition."""

    fn: _typing.Callable[..., _typing.Any]
    args: tuple[_typing.Any, ...]
    kwargs: dict[str, _typing.Any]


class Agent(_base.Reference):
    """
    A single-value cell updated asynchronously by a serial action queue.

    Args:
        value: Initial value.
        validator: Optional predicate; an action whose result it rejects
            counts as a failed action.
        error_mode: "fail" (default) or "continue".
        error_handler: Called as error_handler(agent, exc) for every
            failed action, from the worker thread.
        shutdown_timeout: Default seconds shutdown() waits for the queue to drain.
        name: Used for the worker thread name and in log records.
    """

    def __init__(
        self,
        value: _typing.Any = None,
        *,
        validator: _base.Validator | None = None,
        error_mode: ErrorMode = "fail",
        error_handler: ErrorHandler | None = None,
        shutdown_timeout: float = constants.DEFAULT_SHUTDOWN_TIMEOUT,
        name: str | None = None,
    ) -> None:
        super().__init__(validator)
        if error_mode not in ("fail", "continue"):
            raise ValueError(f"error_mode must be 'fail' or 'continue', got {error_mode!r}")
        self._validate(value)
        self._value = value
        self._error_mode = error_mode
        self._error_handler = error_handler
        self._shutdown_timeout = shutdown_timeout
        self.name = name or f"agent-{next(_agent_ids)}"

        # Everything below is guarded by _cond
        self._cond = _threading.Condition()
        self._actions: _collections.deque[_Action] = _collections.deque()
        self._busy = False
        self._error: Exception | None = None
        self._stopping = False

        self._worker = _threading.Thread(
            target=self._run,
            name=f"nestmap-{self.name}",
            daemon=True,
        )
        self._worker.start()
        _logger.debug("Agent %s started", self.name)

    @classmethod
    def from_settings(
        cls,
        value: _typing.Any,
        settings: config.Settings,
        **kwargs: _typing.Any,
    ) -> Agent:
        """Create an agent using error_mode and shutdown_timeout from Settings."""
        kwargs.setdefault("error_mode", settings.agents.error_mode)
        kwargs.setdefault("shutdown_timeout", settings.agents.shutdown_timeout)
        return cls(value, **kwargs)

    # =========================================================================
    # State
    # =========================================================================

    def deref(self) -> _typing.Any:
        return self._value

    @property
    def error(self) -> Exception | None:
        """The exception that failed this agent, or None."""
        with self._cond:
            return self._error

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def error_mode(self) -> ErrorMode:
        return self._error_mode

    @property
    def pending(self) -> int:
        """Number of actions queued or running."""
        with self._cond:
            return len(self._actions) + (1 if self._busy else 0)

    # =========================================================================
    # Sending actions
    # =========================================================================

    def send(
        self,
        fn: _typing.Callable[..., _typing.Any],
        *args: _typing.Any,
        **kwargs: _typing.Any,
    ) -> Agent:
        """
        Queue fn(value, *args, **kwargs) to become the next value.

        Returns:
            This agent, so calls can be chained.

        Raises:
            AgentError: If the agent has failed or is shut down.
            ArgumentTypeError: If fn is not callable.
        """
        if not callable(fn):
            raise errors.ArgumentTypeError(
                f"send expects a callable, got {type(fn).__name__}"
            )
        with self._cond:
            if self._stopping:
                raise errors.AgentError(f"agent {self.name} is shut down")
            if self._error is not None:
                raise errors.AgentError(
                    f"agent {self.name} has failed; restart it first",
                    cause=self._error,
                )
            self._actions.append(_Action(fn, args, dict(kwargs)))
            self._cond.notify_all()
        return self

    def update(
        self,
        fn: _typing.Callable[..., _typing.Any],
        *args: _typing.Any,
        **kwargs: _typing.Any,
    ) -> Agent:
        return self.send(fn, *args, **kwargs)

    def wait(self, timeout: float | None = None) -> bool:
        """
        Block until every action sent so far has been applied.

        Returns:
            True once the queue is idle, False if timeout expired first.

        Raises:
            AgentError: If the agent is (or becomes) failed while waiting.
        """
        with self._cond:
            done = self._cond.wait_for(
                lambda: self._error is not None or (not self._actions and not self._busy),
                timeout,
            )
            if self._error is not None:
                raise errors.AgentError(
                    f"agent {self.name} has failed", cause=self._error
                )
        return done

    # =========================================================================
    # Failure handling and lifecycle
    # =========================================================================

    def restart(self, value: _typing.Any, *, clear_actions: bool = False) -> Agent:
        """
        Clear the failure and install value.

        Args:
            value: New state; must pass the validator.
            clear_actions: Discard actions held since the failure instead
                of running them.

        Raises:
            AgentError: If the agent has not failed.
            InvalidStateError: If value fails the validator.
        """
        with self._cond:
            if self._error is None:
                raise errors.AgentError(f"agent {self.name} does not need a restart")
            self._validate(value)
            self._value = value
            self._error = None
            if clear_actions:
                self._actions.clear()
            self._cond.notify_all()
        _logger.debug("Agent %s restarted", self.name)
        return self

    def shutdown(self, timeout: float | None = None) -> bool:
        """
        Stop accepting actions and let the worker drain the queue.

        A failed agent stops immediately; its held actions are dropped.

        Args:
            timeout: Seconds to wait for the worker. Defaults to the
                agent's shutdown_timeout.

        Returns:
            True if the worker has exited.
        """
        with self._cond:
            self._stopping = True
            self._cond.notify_all()
        self._worker.join(self._shutdown_timeout if timeout is None else timeout)
        stopped = not self._worker.is_alive()
        if stopped:
            _logger.debug("Agent %s shut down", self.name)
        else:
            _logger.warning("Agent %s did not stop within the timeout", self.name)
        return stopped

    def __enter__(self) -> Agent:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # =========================================================================
    # Worker
    # =========================================================================

    def _run(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(
                    lambda: self._stopping or (bool(self._actions) and self._error is None)
                )
                if self._error is not None or not self._actions:
                    return
                action = self._actions.popleft()
                self._busy = True

            try:
                self._apply(action)
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()

    def _apply(self, action: _Action) -> None:
        old = self._value
        try:
            new = action.fn(old, *action.args, **action.kwargs)
            self._validate(new)
            self._value = new
            self._notify_watches(old, new)
        except Exception as e:
            self._handle_error(e)

    def _handle_error(self, exc: Exception) -> None:
        _logger.warning("Agent %s: action failed: %s", self.name, exc)

        if self._error_handler is not None:
            try:
                self._error_handler(self, exc)
            except Exception:
                _logger.exception("Agent %s: error handler raised", self.name)

        if self._error_mode == "fail":
            with self._cond:
                self._error = exc
                self._cond.notify_all()
