"""Logging setup for the apetag CLI.

File paths passed as log arguments are shortened to ``parent/name`` (or
hashed) so logs do not leak the layout of a user's music library.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


def hash_path(file_path: Path | str, length: int = 12) -> str:
    """Deterministic, non-reversible short hash of a path."""
    return hashlib.sha256(str(file_path).encode()).hexdigest()[:length]


def relativize_path(file_path: Path | str, library_root: Path | str | None = None) -> str:
    """
    Convert path to relative form for safe logging.

    If library_root is provided, returns path relative to it.
    Otherwise, returns just the filename with parent directory.
    """
    path = Path(file_path)

    if library_root:
        try:
            return str(path.relative_to(Path(library_root)))
        except ValueError:
            pass

    if path.parent.name:
        return f"{path.parent.name}/{path.name}"
    return path.name


def safe_path(
    file_path: Path | str,
    library_root: Path | str | None = None,
    use_hash: bool = False,
) -> str:
    """Get a safe representation of a path for logging."""
    if use_hash:
        return f"file:{hash_path(file_path)}"
    return relativize_path(file_path, library_root)


class SafeLogFormatter(logging.Formatter):
    """Log formatter that shortens or hashes ``Path`` arguments."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        hash_paths: bool = False,
        library_root: Path | None = None,
    ):
        super().__init__(fmt, datefmt)
        self.hash_paths = hash_paths
        self.library_root = library_root

    def format(self, record: logging.LogRecord) -> str:
        # Copy so other handlers still see the original record
        record = logging.makeLogRecord(record.__dict__)
        if record.args:
            record.args = self._sanitize_args(record.args)
        return super().format(record)

    def _sanitize_args(
        self, args: tuple[Any, ...] | Mapping[str, Any]
    ) -> tuple[Any, ...] | dict[str, Any]:
        if isinstance(args, Mapping):
            return {k: self._sanitize_value(v) for k, v in args.items()}
        return tuple(self._sanitize_value(arg) for arg in args)

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, Path):
            return safe_path(value, self.library_root, use_hash=self.hash_paths)
        return value


def configure_rich_logging(
    level: int = logging.WARNING,
    format_string: str = "%(message)s",
    hash_paths: bool = False,
    show_time: bool = False,
    show_path: bool = False,
    console: Console | None = None,
) -> Console:
    """
    Route the root logger through a Rich handler on stderr.

    Returns:
        The Console used by the handler, for sharing with CLI output
    """
    if console is None:
        console = Console(stderr=True)

    handler = RichHandler(console=console, show_time=show_time, show_path=show_path)
    handler.setFormatter(SafeLogFormatter(fmt=format_string, hash_paths=hash_paths))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing in [h for h in root_logger.handlers if isinstance(h, RichHandler)]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    return console
