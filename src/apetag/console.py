"""Shared Rich console for apetag CLI output."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.markup import escape

# Global console instance (initialized in CLI)
_console: Console | None = None


def get_console() -> Console:
    """
    Get the global Rich console instance.

    Raises:
        RuntimeError: If console not initialized (should only happen in tests)
    """
    if _console is None:
        raise RuntimeError("Console not initialized. Call set_console() first.")
    return _console


def set_console(console: Console) -> None:
    global _console
    _console = console


def print(*args: Any, **kwargs: Any) -> None:
    """Print to the global console."""
    get_console().print(*args, **kwargs)


def print_raw(text: str) -> None:
    """Print text verbatim: no markup, highlighting or wrapping."""
    get_console().print(text, markup=False, highlight=False, soft_wrap=True)


def print_error(message: str) -> None:
    print(f"[red]Error: {escape(message)}[/red]", highlight=False, soft_wrap=True)


def print_warning(message: str) -> None:
    print(f"[yellow]Warning: {escape(message)}[/yellow]", highlight=False, soft_wrap=True)


def print_success(message: str) -> None:
    print(f"[green]{escape(message)}[/green]", highlight=False, soft_wrap=True)
