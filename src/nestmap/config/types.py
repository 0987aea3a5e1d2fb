"""Configuration type definitions for nestmap settings.

This module defines the Pydantic models used to represent configuration
sections nested within the main Settings class:

- CellsConfig: retry policy for contended atom updates
- AgentsConfig: agent failure handling and shutdown
- LoggingConfig: log level for the CLI
- CliConfig: output formatting for the CLI

All types use `extra="allow"` so unknown fields are preserved rather than
silently dropped; use `collect_all_extra_fields()` to audit for typos.
"""

import typing as _typing

import pydantic as _pydantic

import nestmap.constants as constants

# =============================================================================
# Base class with introspection
# =============================================================================


class ConfigBase(_pydantic.BaseModel):
    """
    Base class for all config types.

    Unknown fields are kept in model_extra so they can be reported.
    """

    model_config = _pydantic.ConfigDict(extra="allow")

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """Return fields that were provided but not in the schema."""
        return dict(self.model_extra) if self.model_extra else {}

    def collect_all_extra_fields(
        self,
        prefix: str = "",
    ) -> dict[str, _typing.Any]:
        """
        Recursively collect extra fields from this config and nested configs.

        Returns a flat dict with dotted paths as keys, e.g.:
            {"cells.max_retry": 3}

        Args:
            prefix: Dotted path prefix (used in recursion).
        """
        result: dict[str, _typing.Any] = {}

        for key, value in self.get_extra_fields().items():
            path = f"{prefix}.{key}" if prefix else key
            result[path] = value

        for field_name in self.__class__.model_fields:
            value = getattr(self, field_name, None)
            if isinstance(value, ConfigBase):
                child_prefix = f"{prefix}.{field_name}" if prefix else field_name
                result.update(value.collect_all_extra_fields(child_prefix))

        return result


# =============================================================================
# Sections
# =============================================================================


class CellsConfig(ConfigBase):
    """
    Retry policy for atom updates.

    YAML section: cells.*
    """

    max_retries: int | None = _pydantic.Field(default=constants.DEFAULT_MAX_RETRIES, ge=1)
    """Give up with ContentionError after this many contended attempts (None = never)."""

    backoff_seconds: float = _pydantic.Field(
        default=constants.DEFAULT_BACKOFF_SECONDS, ge=0.0
    )
    """Base sleep between retries; attempt n sleeps n * backoff_seconds."""


class AgentsConfig(ConfigBase):
    """
    Agent behavior.

    YAML section: agents.*
    """

    error_mode: _typing.Literal["fail", "continue"] = "fail"
    """"fail" stops the agent on the first action error; "continue" reports and goes on."""

    shutdown_timeout: float = _pydantic.Field(
        default=constants.DEFAULT_SHUTDOWN_TIMEOUT, gt=0.0
    )
    """Seconds to wait for pending actions when shutting an agent down."""


class LoggingConfig(ConfigBase):
    """
    Logging settings.

    YAML section: logging.*
    """

    level: str = constants.DEFAULT_LOG_LEVEL
    """Log level name used by the CLI (DEBUG, INFO, WARNING, ...)."""

    @_pydantic.field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value!r}")
        return level


class CliConfig(ConfigBase):
    """
    CLI output settings.

    YAML section: cli.*
    """

    indent: int = _pydantic.Field(default=constants.DEFAULT_INDENT, ge=0, le=8)
    """Indentation for YAML and JSON output."""

    default_format: _typing.Literal["yaml", "json"] = "yaml"
    """Format for documents whose file suffix does not decide it."""
