"""Tests for Settings precedence and validation."""

import pathlib as _pathlib

import pydantic as _pydantic
import pytest as _pytest

import nestmap.config as config


def _write_user_config(config_dir: _pathlib.Path, text: str) -> None:
    (config_dir / "config.yaml").write_text(text, encoding="utf-8")


class TestSettingsDefaults:
    """Built-in defaults."""

    def test_defaults(self) -> None:
        """Without overrides the bundled defaults apply."""
        settings = config.Settings()

        assert settings.version == 1
        assert settings.cells.max_retries is None
        assert settings.cells.backoff_seconds == 0.0
        assert settings.agents.error_mode == "fail"
        assert settings.agents.shutdown_timeout == 5.0
        assert settings.logging.level == "WARNING"
        assert settings.cli.indent == 2
        assert settings.cli.default_format == "yaml"

    def test_no_unknown_fields(self) -> None:
        """The defaults contain only known keys."""
        assert config.Settings().get_unknown_fields() == {}

    def test_config_dir(self, isolated_config: _pathlib.Path) -> None:
        """get_config_dir honors NESTMAP_CONFIG_DIR."""
        assert config.Settings().get_config_dir() == isolated_config


class TestSettingsPrecedence:
    """User config, environment and constructor layers."""

    def test_user_config_overrides_defaults(self, isolated_config: _pathlib.Path) -> None:
        """Keys in the user file win; others keep their defaults."""
        _write_user_config(isolated_config, "cells:\n  max_retries: 10\n")

        settings = config.Settings()

        assert settings.cells.max_retries == 10
        assert settings.cells.backoff_seconds == 0.0

    def test_env_overrides_user_config(
        self,
        isolated_config: _pathlib.Path,
        monkeypatch: _pytest.MonkeyPatch,
    ) -> None:
        """NESTMAP_SECTION__KEY beats the YAML layers."""
        _write_user_config(isolated_config, "cells:\n  max_retries: 10\n")
        monkeypatch.setenv("NESTMAP_CELLS__MAX_RETRIES", "100")

        assert config.Settings().cells.max_retries == 100

    def test_env_nested_string(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """String fields are read from the environment too."""
        monkeypatch.setenv("NESTMAP_AGENTS__ERROR_MODE", "continue")

        assert config.Settings().agents.error_mode == "continue"

    def test_constructor_wins(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """Constructor arguments have the highest precedence."""
        monkeypatch.setenv("NESTMAP_CLI__INDENT", "4")

        settings = config.Settings(cli={"indent": 6})

        assert settings.cli.indent == 6

    def test_construct_without_dotenv(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """construct_without_dotenv ignores .env but keeps the environment."""
        monkeypatch.setenv("NESTMAP_LOGGING__LEVEL", "info")

        settings = config.Settings.construct_without_dotenv()

        assert settings.logging.level == "INFO"


class TestSettingsValidation:
    """Invalid values are rejected."""

    @_pytest.mark.parametrize(
        "text",
        [
            "cells:\n  max_retries: 0\n",
            "cells:\n  backoff_seconds: -1\n",
            "agents:\n  error_mode: ignore\n",
            "agents:\n  shutdown_timeout: 0\n",
            "logging:\n  level: LOUD\n",
            "cli:\n  indent: 20\n",
            "cli:\n  default_format: toml\n",
        ],
    )
    def test_invalid_values(self, isolated_config: _pathlib.Path, text: str) -> None:
        """Out-of-range or unknown values fail validation."""
        _write_user_config(isolated_config, text)

        with _pytest.raises(_pydantic.ValidationError):
            config.Settings()

    def test_log_level_normalized(self, isolated_config: _pathlib.Path) -> None:
        """Log level names are upper-cased."""
        _write_user_config(isolated_config, "logging:\n  level: debug\n")

        assert config.Settings().logging.level == "DEBUG"

    def test_unknown_fields_reported(self, isolated_config: _pathlib.Path) -> None:
        """Typos are kept and listed with dotted paths."""
        _write_user_config(isolated_config, "cells:\n  max_retry: 3\ncolour: blue\n")

        unknown = config.Settings().get_unknown_fields()

        assert unknown == {"cells.max_retry": 3, "colour": "blue"}
