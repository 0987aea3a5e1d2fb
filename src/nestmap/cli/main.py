"""
Main CLI entry point for nestmap.

Edits YAML and JSON documents by key path using the immutable map
operations: read the document, apply one pure transform, print (or write
back) the result.

Paths are dotted strings; segments made of digits index into lists:
    nestmap assoc-in book.yaml author.residence.country Canada
    nestmap get-in book.yaml chapters.0.title
"""

import collections.abc as _abc
import json as _json
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import click as _click
import pydantic as _pydantic
import yaml as _yaml

import nestmap
import nestmap.config as config
import nestmap.constants as constants
import nestmap.errors as errors
import nestmap.maps as maps

_logger = _logging.getLogger(__name__)

# Custom Click context settings for better help formatting
CONTEXT_SETTINGS: dict[str, _typing.Any] = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 100,
}

_FORMATS = ("yaml", "json")
_MISSING = object()

# Errors that are reported as a one-line message instead of a traceback
_USER_ERRORS = (
    errors.NestmapError,
    config.ConfigFileError,
    _yaml.YAMLError,
    _json.JSONDecodeError,
    OSError,
    IndexError,
)


def _fail(message: str) -> _typing.NoReturn:
    """Report an error on stderr and exit with status 1."""
    _click.echo(f"Error: {message}", err=True)
    raise SystemExit(1)


def _configure_logging(verbose: bool, settings: config.Settings) -> None:
    level = "DEBUG" if verbose else settings.logging.level
    _logging.basicConfig(
        level=getattr(_logging, level, _logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def parse_path(dotted: str) -> tuple[str, ...]:
    """
    Split a dotted path into its segments. An empty string is the empty path.

    Segments stay strings here; resolve_path() decides which of them are
    list indices or int keys once the document is known.

    Example:
        >>> parse_path("chapters.0.title")
        ('chapters', '0', 'title')
    """
    if not dotted:
        return ()
    return tuple(dotted.split(constants.PATH_SEPARATOR))


def _resolve_segment(node: _typing.Any, segment: str) -> _typing.Any:
    """Pick the key a segment stands for in node."""
    if isinstance(node, tuple):
        return int(segment) if segment.isdigit() else segment
    if (
        isinstance(node, _abc.Mapping)
        and segment not in node
        and segment.isdigit()
        and int(segment) in node
    ):
        return int(segment)
    return segment


def resolve_path(document: _typing.Any, dotted: str) -> tuple[_typing.Any, ...]:
    """
    Turn a dotted path into keys for document.

    A digit segment becomes an int when it indexes a list, or when the map
    it addresses has that int key and not the string one (YAML ``2010:``).
    Everywhere else segments are strings, so JSON object keys such as
    ``"2010"`` are matched and never duplicated.

    Example:
        >>> resolve_path(maps.freeze({"chapters": [{"title": "One"}]}), "chapters.0.title")
        ('chapters', 0, 'title')
    """
    keys: list[_typing.Any] = []
    node = document
    for segment in parse_path(dotted):
        key = _resolve_segment(node, segment)
        keys.append(key)
        node = maps.get_in(node, (key,))
    return tuple(keys)


def _detect_format(path: _pathlib.Path, explicit: str | None, default: str) -> str:
    if explicit:
        return explicit
    suffix = path.suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".yaml", ".yml"):
        return "yaml"
    return default


def _read_document(path: _pathlib.Path, fmt: str) -> _typing.Any:
    """Load a document as immutable values (Map / tuple / scalars)."""
    text = path.read_text(encoding="utf-8")
    if fmt == "json":
        return maps.freeze(_json.loads(text))
    return maps.load_yaml(text)


def _render_scalar(value: _typing.Any) -> str:
    text = _yaml.safe_dump(value, default_flow_style=True, allow_unicode=True)
    return text.removesuffix("...\n").strip()


def _render(value: _typing.Any, fmt: str, indent: int) -> str:
    """Render a value in the requested format, without a trailing newline."""
    if fmt == "json":
        try:
            return _json.dumps(maps.thaw(value), indent=indent, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            raise errors.NestmapError(f"cannot write as JSON: {e}") from e
    if isinstance(value, (maps.Map, tuple, dict, list)):
        return (maps.dump_yaml(value, indent=indent) or "").rstrip("\n")
    return _render_scalar(value)


def _emit(
    ctx: _click.Context,
    value: _typing.Any,
    path: _pathlib.Path,
    in_place: bool,
) -> None:
    """Print the result, or write it back to path when in_place is set."""
    fmt = _detect_format(path, ctx.obj["format"], ctx.obj["settings"].cli.default_format)
    rendered = _render(value, fmt, ctx.obj["settings"].cli.indent)
    if in_place:
        path.write_text(rendered + "\n", encoding="utf-8")
        _logger.info("Wrote %s", path)
    else:
        _click.echo(rendered)


def _load(ctx: _click.Context, path: _pathlib.Path) -> _typing.Any:
    fmt = _detect_format(path, ctx.obj["format"], ctx.obj["settings"].cli.default_format)
    _logger.debug("Reading %s as %s", path, fmt)
    return _read_document(path, fmt)


@_click.group(context_settings=CONTEXT_SETTINGS)
@_click.version_option(nestmap.__version__, "-v", "--version", prog_name="nestmap")
@_click.option("--verbose", is_flag=True, help="Enable debug logging")
@_click.option(
    "--format",
    "fmt",
    type=_click.Choice(_FORMATS),
    default=None,
    help="Document format (default: from file suffix)",
)
@_click.pass_context
def cli(ctx: _click.Context, verbose: bool, fmt: str | None) -> None:
    """nestmap - edit nested YAML/JSON documents with immutable map operations."""
    ctx.ensure_object(dict)
    try:
        settings = config.Settings()
    except (config.ConfigFileError, _pydantic.ValidationError) as e:
        _fail(str(e))
    _configure_logging(verbose, settings)
    ctx.obj["settings"] = settings
    ctx.obj["format"] = fmt


@cli.command(name="get-in")
@_click.argument("file", type=_click.Path(exists=True, dir_okay=False, path_type=_pathlib.Path))
@_click.argument("path")
@_click.pass_context
def get_in_cmd(ctx: _click.Context, file: _pathlib.Path, path: str) -> None:
    """Print the value at PATH in FILE."""
    try:
        document = _load(ctx, file)
        value = maps.get_in(document, resolve_path(document, path), _MISSING)
        if value is _MISSING:
            _fail(f"path not found: {path}")
        _emit(ctx, value, file, in_place=False)
    except _USER_ERRORS as e:
        _fail(str(e))


@cli.command(name="assoc-in")
@_click.argument("file", type=_click.Path(exists=True, dir_okay=False, path_type=_pathlib.Path))
@_click.argument("path")
@_click.argument("value")
@_click.option("-i", "--in-place", is_flag=True, help="Write the result back to FILE")
@_click.pass_context
def assoc_in_cmd(
    ctx: _click.Context,
    file: _pathlib.Path,
    path: str,
    value: str,
    in_place: bool,
) -> None:
    """Set PATH in FILE to VALUE, creating missing maps on the way.

    VALUE is read as YAML, so 42 is a number, true a boolean and
    "[a, b]" a list.
    """
    try:
        document = _load(ctx, file)
        result = maps.assoc_in(document, resolve_path(document, path), maps.load_yaml(value))
        _emit(ctx, result, file, in_place)
    except _USER_ERRORS as e:
        _fail(str(e))


@cli.command(name="dissoc-in")
@_click.argument("file", type=_click.Path(exists=True, dir_okay=False, path_type=_pathlib.Path))
@_click.argument("path")
@_click.option("-i", "--in-place", is_flag=True, help="Write the result back to FILE")
@_click.pass_context
def dissoc_in_cmd(ctx: _click.Context, file: _pathlib.Path, path: str, in_place: bool) -> None:
    """Remove PATH from FILE; maps left empty are removed too.

    An index into a list removes that element. A map emptied inside a list
    stays, so the other elements keep their positions.
    """
    try:
        document = _load(ctx, file)
        result = maps.dissoc_in(document, resolve_path(document, path))
        _emit(ctx, result, file, in_place)
    except _USER_ERRORS as e:
        _fail(str(e))


@cli.command(name="merge")
@_click.argument(
    "files",
    nargs=-1,
    required=True,
    type=_click.Path(exists=True, dir_okay=False, path_type=_pathlib.Path),
)
@_click.option("--deep", is_flag=True, help="Merge nested maps key by key")
@_click.pass_context
def merge_cmd(ctx: _click.Context, files: tuple[_pathlib.Path, ...], deep: bool) -> None:
    """Merge FILES left to right; later files win."""
    try:
        documents = [_load(ctx, file) for file in files]
        result = maps.deep_merge(*documents) if deep else maps.merge(*documents)
        _emit(ctx, result, files[0], in_place=False)
    except _USER_ERRORS as e:
        _fail(str(e))


@cli.group(name="config")
def config_cmd() -> None:
    """Inspect nestmap configuration."""


@config_cmd.command(name="show")
@_click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@_click.option("--section", type=str, default=None, help="Show specific section only")
@_click.pass_context
def config_show(ctx: _click.Context, as_json: bool, section: str | None) -> None:
    """Show the effective settings after all layers are applied.

    Examples:
        nestmap config show                  # All settings as YAML
        nestmap config show --json           # As JSON
        nestmap config show --section cells  # One section
    """
    settings: config.Settings = ctx.obj["settings"]
    for key in settings.get_unknown_fields():
        _logger.warning("Unknown config key: %s", key)
    data = settings.model_dump(mode="json")
    if section:
        if section not in data:
            raise _click.ClickException(f"Unknown section: {section}")
        data = {section: data[section]}
    _click.echo(_render(data, "json" if as_json else "yaml", settings.cli.indent))


def main() -> None:
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
