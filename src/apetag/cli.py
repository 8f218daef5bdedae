"""Command line interface for apetag using Typer and Rich."""

from __future__ import annotations

import json
import logging
import sys
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console

from apetag.config import Config
from apetag.console import (
    print as cprint,
)
from apetag.console import (
    print_error,
    print_raw,
    print_success,
    print_warning,
    set_console,
)
from apetag.errors import ApeError
from apetag.item import Item, ItemType
from apetag.safe_logging import configure_rich_logging
from apetag.tag import Tag
from apetag.writer import read, remove, write


class OutputFormat(StrEnum):
    """Output format for CLI commands."""

    TEXT = "text"
    JSON = "json"


class ExitCode:
    """Standard exit codes for CLI commands."""

    SUCCESS = 0
    ERROR = 1
    NO_TAG = 2


app = typer.Typer(
    name="apetag",
    help="Read, edit and strip APEv2 tags in audio files",
    no_args_is_help=True,
    add_completion=False,
)


class AppState:
    """Global application state passed between commands."""

    config: Config
    output_format: OutputFormat
    verbose: int


state = AppState()

FileArg = Annotated[
    Path,
    typer.Argument(help="Audio file", exists=True, dir_okay=False, writable=True),
]


def _item_to_dict(item: Item) -> dict[str, Any]:
    result: dict[str, Any] = {
        "key": item.key,
        "type": str(item.type),
        "read_only": item.read_only,
    }
    if item.type == ItemType.TEXT:
        result["value"] = list(item.value)
    elif item.type == ItemType.LOCATOR:
        result["value"] = item.value
    else:
        result["size"] = len(item.value)
    return result


def _format_item(item: Item) -> str:
    if item.type == ItemType.TEXT:
        value = " / ".join(item.value)
    elif item.type == ItemType.LOCATOR:
        value = f"<{item.value}>"
    else:
        value = f"[{len(item.value)} bytes]"
    flag = " (read-only)" if item.read_only else ""
    return f"{item.key}={value}{flag}"


def _load(path: Path) -> Tag | None:
    try:
        return read(path)
    except ApeError as e:
        print_error(f"{path.name}: {e}")
        sys.exit(ExitCode.ERROR)


def _store(path: Path, tag: Tag) -> None:
    try:
        if len(tag):
            write(path, tag, state.config.write)
        else:
            remove(path)
    except ApeError as e:
        print_error(f"{path.name}: {e}")
        sys.exit(ExitCode.ERROR)


@app.callback()
def main(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Path to configuration TOML file", exists=True),
    ] = None,
    output: Annotated[
        OutputFormat,
        typer.Option("--output", "-o", help="Output format"),
    ] = OutputFormat.TEXT,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase verbosity"),
    ] = 0,
    no_header: Annotated[
        bool, typer.Option("--no-header", help="Write tags with a footer only")
    ] = False,
) -> None:
    """apetag: read, edit and strip APEv2 tags."""
    cfg = Config.load(config_path)

    if no_header:
        cfg.write.header = False

    if verbose > 0:
        log_level = logging.DEBUG if verbose >= 2 else logging.INFO
    else:
        log_level = getattr(logging, cfg.logging.level.upper(), logging.WARNING)

    configure_rich_logging(
        level=log_level,
        format_string=cfg.logging.format,
        hash_paths=cfg.logging.hash_paths,
    )
    set_console(Console())

    logging.getLogger(__name__).debug(
        "Logging configured: level=%s, hash_paths=%s",
        logging.getLevelName(log_level),
        cfg.logging.hash_paths,
    )

    state.config = cfg
    state.output_format = output
    state.verbose = verbose


@app.command()
def show(path: FileArg) -> None:
    """Print the items of a file's APE tag."""
    tag = _load(path)
    if tag is None:
        if state.output_format == OutputFormat.JSON:
            print_raw(json.dumps(None))
        else:
            print_warning(f"{path.name}: no APE tag")
        sys.exit(ExitCode.NO_TAG)

    if state.output_format == OutputFormat.JSON:
        output = {
            "version": tag.version,
            "read_only": tag.read_only,
            "items": [_item_to_dict(item) for item in tag],
        }
        print_raw(json.dumps(output, indent=2, ensure_ascii=False))
        return

    cprint(f"[bold]{path.name}[/bold]: APE v{tag.version / 1000:g}, {len(tag)} items")
    for item in tag:
        print_raw(f"  {_format_item(item)}")


@app.command("set")
def set_item(
    path: FileArg,
    key: Annotated[str, typer.Argument(help="Item key")],
    value: Annotated[str, typer.Argument(help="Value (a file path with --binary)")],
    append: Annotated[
        bool, typer.Option("--append", "-a", help="Add as an extra sub-value")
    ] = False,
    locator: Annotated[bool, typer.Option(help="Store value as a locator (URL)")] = False,
    binary: Annotated[
        bool, typer.Option(help="Store the contents of the file VALUE as binary")
    ] = False,
    read_only: Annotated[bool, typer.Option(help="Mark the item read-only")] = False,
) -> None:
    """Set (or append to) one item."""
    tag = _load(path) or Tag()
    try:
        if append:
            tag.add_value(key, value)
        elif binary:
            tag.set(key, ItemType.BINARY, Path(value).read_bytes(), read_only)
        elif locator:
            tag.set(key, ItemType.LOCATOR, value, read_only)
        else:
            tag.set(key, ItemType.TEXT, value, read_only)
    except (ApeError, OSError) as e:
        print_error(str(e))
        sys.exit(ExitCode.ERROR)

    _store(path, tag)
    print_success(f"{path.name}: {_format_item(tag.get(key))}")  # type: ignore[arg-type]


@app.command()
def delete(
    path: FileArg,
    keys: Annotated[list[str], typer.Argument(help="Item keys to remove")],
) -> None:
    """Remove items by key. The tag is stripped when no items remain."""
    tag = _load(path)
    if tag is None:
        print_warning(f"{path.name}: no APE tag")
        sys.exit(ExitCode.NO_TAG)

    removed = [key for key in keys if tag.remove(key)]
    if not removed:
        print_warning(f"{path.name}: no matching items")
        return
    _store(path, tag)
    print_success(f"{path.name}: removed {', '.join(removed)}")


@app.command()
def strip(paths: Annotated[list[Path], typer.Argument(help="Audio files", exists=True)]) -> None:
    """Remove the APE tag, keeping any ID3v1/Lyrics3v2 trailers."""
    failed = 0
    for path in paths:
        try:
            remove(path)
        except ApeError as e:
            print_error(f"{path.name}: {e}")
            failed += 1
            continue
        print_success(f"{path.name}: stripped")
    if failed:
        sys.exit(ExitCode.ERROR)
