"""Custom pydantic-settings source for nestmap configuration.

YamlSettingsSource loads layered YAML files and merges them with
nestmap.maps.deep_merge, so nested sections combine key by key while
scalars override.

Configuration layers (in precedence order, highest first):
1. Environment variables (handled by pydantic-settings)
2. User config: ~/.config/nestmap/config.yaml (or NESTMAP_CONFIG_DIR)
3. Built-in defaults: bundled defaults/config.yaml

Environment variables:
- NESTMAP_CONFIG_DIR: Override user config directory (default: ~/.config/nestmap)
"""

import logging as _logging
import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic.fields as _pydantic_fields
import pydantic_settings as _pydantic_settings
import yaml as _yaml

import nestmap.maps as maps

_logger = _logging.getLogger(__name__)

# Environment variable for overriding user config directory
ENV_CONFIG_DIR = "NESTMAP_CONFIG_DIR"


class ConfigFileError(Exception):
    """Error loading or parsing a configuration file."""

    def __init__(self, path: _pathlib.Path, message: str) -> None:
        self.path = path
        super().__init__(f"Error in config file {path}: {message}")


class YamlSettingsSource(_pydantic_settings.PydanticBaseSettingsSource):
    """
    Settings source that loads from layered YAML config files.

    Flow:
    1. Load each YAML file into a Map
    2. deep_merge the layers (lowest precedence first)
    3. Return the merged result as a plain dict for Pydantic to validate

    Layers (lowest to highest precedence):
    1. Built-in defaults (src/nestmap/config/defaults/config.yaml)
    2. User config (~/.config/nestmap/config.yaml)
    """

    def __init__(
        self,
        settings_cls: type[_pydantic_settings.BaseSettings],
        *,
        user_config_path: _pathlib.Path | None = None,
        builtin_config_path: _pathlib.Path | None = None,
    ) -> None:
        """
        Initialize the settings source.

        Args:
            settings_cls: The Settings class being populated.
            user_config_path: Override path for user config file (for testing).
                If not provided, uses NESTMAP_CONFIG_DIR env var or default XDG path.
            builtin_config_path: Override path for builtin defaults (for testing).
                If not provided, uses the bundled defaults/config.yaml.
        """
        super().__init__(settings_cls)
        self._user_config_path = user_config_path or get_user_config_path()
        self._builtin_config_path = builtin_config_path or get_builtin_defaults_path()
        self._loaded_layers: list[tuple[str, _pathlib.Path]] = []
        self._merged = self._load_config_layers()

    def _load_config_layers(self) -> maps.Map:
        """
        Load config files and merge them.

        Returns:
            Map containing the merged configuration.

        Raises:
            ConfigFileError: If the built-in defaults are missing or empty,
                or any present file is unreadable or malformed.
        """
        # Built-in defaults are REQUIRED; missing means a broken installation
        builtin_path = self._builtin_config_path
        if not builtin_path.exists():
            raise ConfigFileError(
                builtin_path,
                "built-in defaults not found (possible installation problem)",
            )
        builtin_content = self._load_yaml_file(builtin_path)
        if not builtin_content:
            raise ConfigFileError(
                builtin_path,
                "built-in defaults file is empty (possible installation problem)",
            )
        layers = [builtin_content]
        self._loaded_layers = [("built-in", builtin_path)]

        # User config is OPTIONAL
        user_path = self._user_config_path
        if user_path.exists():
            content = self._load_yaml_file(user_path)
            if content:
                layers.append(content)
                self._loaded_layers.append(("user", user_path))

        _logger.debug(
            "Loaded config layers: %s",
            ", ".join(f"{name}={path}" for name, path in self._loaded_layers),
        )
        return maps.deep_merge(*layers)

    def get_loaded_layers(self) -> list[tuple[str, _pathlib.Path]]:
        """Return (name, path) for each layer that was loaded, lowest precedence first."""
        return list(self._loaded_layers)

    def _load_yaml_file(self, path: _pathlib.Path) -> maps.Map | None:
        """
        Load a YAML file and return its contents.

        Returns:
            Parsed YAML contents, or None if file is empty.

        Raises:
            ConfigFileError: If the file cannot be read, is malformed YAML,
                or contains non-mapping content at the top level.
        """
        try:
            content = path.read_text(encoding="utf-8")
        except PermissionError as e:
            raise ConfigFileError(path, f"permission denied: {e}") from e
        except OSError as e:
            raise ConfigFileError(path, f"cannot read file: {e}") from e

        try:
            parsed = maps.load_yaml(content)
        except _yaml.YAMLError as e:
            raise ConfigFileError(path, f"invalid YAML: {e}") from e

        if parsed is None:
            return None

        if not isinstance(parsed, maps.Map):
            type_name = type(parsed).__name__
            raise ConfigFileError(
                path,
                f"config must be a YAML mapping, got {type_name}",
            )

        return parsed

    def get_field_value(
        self,
        field: _pydantic_fields.FieldInfo,  # noqa: ARG002 - required by pydantic-settings interface
        field_name: str,
    ) -> tuple[_typing.Any, str, bool]:
        """
        Get value for a field from the merged YAML.

        Returns:
            Tuple of (value, field_name, is_complex).
        """
        value = self._merged.get(field_name)
        if value is None:
            return None, field_name, False
        return maps.thaw(value), field_name, isinstance(value, (maps.Map, tuple))

    def __call__(self) -> dict[str, _typing.Any]:
        """
        Return merged config as a plain dict for Pydantic validation.

        Unknown keys are included so Settings.model_extra can report them.
        """
        return maps.thaw(self._merged)  # type: ignore[no-any-return]


def get_builtin_defaults_path() -> _pathlib.Path:
    """Return the path to the bundled defaults/config.yaml."""
    return _pathlib.Path(__file__).parent / "defaults" / "config.yaml"


def get_user_config_dir() -> _pathlib.Path:
    """
    Get the user config directory.

    Respects NESTMAP_CONFIG_DIR if set, otherwise uses the XDG standard path.
    """
    config_dir_env = _os.environ.get(ENV_CONFIG_DIR)
    if config_dir_env:
        return _pathlib.Path(config_dir_env)
    return _pathlib.Path.home() / ".config" / "nestmap"


def get_user_config_path() -> _pathlib.Path:
    """Return the path to config.yaml in the user config directory."""
    return get_user_config_dir() / "config.yaml"
