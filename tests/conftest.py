"""
Shared pytest fixtures for nestmap tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import os as _os
import pathlib as _pathlib

import pytest as _pytest

import nestmap.maps as maps


@_pytest.fixture(autouse=True)
def isolated_config(
    tmp_path: _pathlib.Path,
    monkeypatch: _pytest.MonkeyPatch,
) -> _pathlib.Path:
    """
    Isolate every test from the developer's environment.

    Removes NESTMAP_* variables and points the user config directory at an
    empty temp directory. Returns that directory so tests can drop a
    config.yaml into it.
    """
    for key in list(_os.environ):
        if key.startswith("NESTMAP_"):
            monkeypatch.delenv(key)
    config_dir = tmp_path / "nestmap-config"
    config_dir.mkdir()
    monkeypatch.setenv("NESTMAP_CONFIG_DIR", str(config_dir))
    return config_dir


@_pytest.fixture
def book() -> maps.Map:
    """A small nested document used across map tests."""
    return maps.freeze(
        {
            "title": "Dune",
            "author": {"name": "Frank Herbert", "residence": {"country": "USA"}},
            "chapters": [{"title": "One"}, {"title": "Two"}],
        }
    )
