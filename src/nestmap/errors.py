"""
Exception hierarchy for nestmap.

Every error raised by the library derives from NestmapError, and also from
the builtin exception a caller would expect (TypeError for type problems,
RuntimeError for cell failures) so existing ``except`` clauses keep working.
"""

from __future__ import annotations

import typing as _typing


class NestmapError(Exception):
    """Base class for all nestmap errors."""

    pass


class ArgumentTypeError(NestmapError, TypeError):
    """An argument has the wrong type (e.g. a non-mapping where a map is required)."""

    pass


class PathTypeError(NestmapError, TypeError):
    """
    A non-terminal path segment resolved to a value that cannot be descended into.

    Attributes:
        path: The path prefix whose value blocked descent.
        value_type: Type name of the blocking value.
    """

    def __init__(self, path: tuple[_typing.Any, ...], value: _typing.Any) -> None:
        self.path = path
        self.value_type = type(value).__name__
        super().__init__(
            f"cannot descend into {self.value_type} at path {list(path)!r}"
        )


class ContentionError(NestmapError, RuntimeError):
    """An atomic update gave up after exceeding its retry limit."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"update abandoned after {attempts} contended attempts")


class InvalidStateError(NestmapError, ValueError):
    """A cell validator rejected a proposed value."""

    pass


class AgentError(NestmapError, RuntimeError):
    """
    An agent is failed or shut down and will not accept actions.

    Attributes:
        cause: The exception that failed the agent, or None after shutdown.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)
