"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with NESTMAP_ prefix
3. .env file (only if NESTMAP_ENV_FILE names one)
4. Layered YAML config files:
   - User config: ~/.config/nestmap/config.yaml
   - Built-in defaults: bundled defaults/config.yaml (lowest)

Nested config uses double underscore delimiter:
  NESTMAP_CELLS__MAX_RETRIES=100
  NESTMAP_AGENTS__ERROR_MODE=continue
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import nestmap.config.sources as sources
import nestmap.config.types as types


def _get_env_file() -> str | None:
    """Return NESTMAP_ENV_FILE if it names an existing file, else None."""
    if env_file := _os.environ.get("NESTMAP_ENV_FILE"):
        if _pathlib.Path(env_file).exists():
            return env_file
    return None


class Settings(_pydantic_settings.BaseSettings):
    """
    nestmap configuration settings.

    All settings can be overridden via environment variables with NESTMAP_ prefix.
    For nested config, use double underscore: NESTMAP_CELLS__MAX_RETRIES=100

    Config precedence (highest to lowest):
    1. Constructor arguments
    2. Environment variables (NESTMAP_*)
    3. .env file
    4. User config (~/.config/nestmap/config.yaml)
    5. Built-in defaults
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix="NESTMAP_",
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # NESTMAP_CELLS__MAX_RETRIES
        extra="allow",  # Preserve unknown fields so they can be reported
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[_pydantic_settings.BaseSettings],
        init_settings: _pydantic_settings.PydanticBaseSettingsSource,
        env_settings: _pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: _pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: _pydantic_settings.PydanticBaseSettingsSource,
    ) -> tuple[_pydantic_settings.PydanticBaseSettingsSource, ...]:
        """
        Configure settings sources with precedence:
        1. init_settings (constructor args), highest
        2. env_settings (NESTMAP_* env vars)
        3. dotenv_settings (.env file)
        4. YAML config layers
        5. defaults via Field definitions, lowest
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            sources.YamlSettingsSource(settings_cls),
            file_secret_settings,
        )

    @classmethod
    def construct_without_dotenv(cls, **kwargs: _typing.Any) -> "Settings":
        """Create Settings from environment variables only, without loading .env file."""
        return cls(_env_file=None, **kwargs)  # type: ignore[call-arg]

    version: int = _pydantic.Field(default=1, description="Config schema version")

    # =========================================================================
    # Nested config sections
    # =========================================================================

    cells: types.CellsConfig = _pydantic.Field(default_factory=types.CellsConfig)
    """Atom retry policy."""

    agents: types.AgentsConfig = _pydantic.Field(default_factory=types.AgentsConfig)
    """Agent failure handling."""

    logging: types.LoggingConfig = _pydantic.Field(default_factory=types.LoggingConfig)
    """Logging settings."""

    cli: types.CliConfig = _pydantic.Field(default_factory=types.CliConfig)
    """CLI output settings."""

    def get_config_dir(self) -> _pathlib.Path:
        """Return the user config directory."""
        return sources.get_user_config_dir()

    def get_unknown_fields(self) -> dict[str, _typing.Any]:
        """
        Return every unrecognized key, with dotted paths.

        Useful for spotting typos such as "cells.max_retry".
        """
        result: dict[str, _typing.Any] = dict(self.model_extra or {})
        for field_name in self.__class__.model_fields:
            value = getattr(self, field_name, None)
            if isinstance(value, types.ConfigBase):
                result.update(value.collect_all_extra_fields(field_name))
        return result
