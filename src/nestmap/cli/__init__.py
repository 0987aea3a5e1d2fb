"""
Command-line interface for nestmap.

Entry point: nestmap.cli:main
"""

from nestmap.cli.main import cli, main, parse_path, resolve_path

__all__ = ["cli", "main", "parse_path", "resolve_path"]
