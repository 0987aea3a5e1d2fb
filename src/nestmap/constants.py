"""
Shared constants for nestmap.

This module provides a single source of truth for default values
that are used across multiple modules.
"""

# Cell defaults
DEFAULT_MAX_RETRIES: int | None = None
"""Retry cap for contended atom updates (None = retry until success)."""

DEFAULT_BACKOFF_SECONDS = 0.0
"""Base sleep between contended retries; attempt n sleeps n * base."""

DEFAULT_SHUTDOWN_TIMEOUT = 5.0
"""Seconds to wait for an agent worker to drain on shutdown."""

# CLI defaults
DEFAULT_INDENT = 2
"""Indentation for JSON and YAML output."""

DEFAULT_LOG_LEVEL = "WARNING"
"""Log level used by the CLI when neither --verbose nor config sets one."""

PATH_SEPARATOR = "."
"""Separator for dotted paths given on the command line."""
