"""Shared CLI utilities for w95build commands.

Provides the common Typer options, the leveled logging façade used by every
build component, and standardised error output, so each command gets
consistent ``--verbose`` / ``--root`` / ``--out`` handling without boilerplate.

Usage in a command::

    from w95build.cli import Log, RootOption, VerboseOption, error_exit

    def main(verbose: bool = VerboseOption, root: Path | None = RootOption) -> None:
        log = Log(verbose=verbose)
        ...
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from w95build.errors import BuildError, ToolchainError

VerboseOption: bool = typer.Option(
    False, "--verbose", "-v", help="Show tool invocations and up-to-date checks."
)

RootOption: Path | None = typer.Option(
    None,
    "--root",
    help="Workspace root (default: nearest dir with w95build.toml, else cwd).",
)

OutOption: Path | None = typer.Option(
    None,
    "--out",
    help="Output root, relative to the workspace (default: build).",
)

_out_console = Console(highlight=False)
_err_console = Console(stderr=True, highlight=False)


class Log:
    """Leveled logging façade; verbose messages are dropped unless enabled.

    Results (:meth:`info`) go to stdout; progress and errors go to stderr.
    """

    def __init__(
        self,
        verbose: bool = False,
        console: Console | None = None,
        out_console: Console | None = None,
    ) -> None:
        self.is_verbose = verbose
        self.console = console or _err_console
        self.out_console = out_console or _out_console

    def info(self, msg: str) -> None:
        self.out_console.print(escape(msg))

    def verbose(self, msg: str) -> None:
        if self.is_verbose:
            self.console.print(f"[dim]{escape(msg)}[/dim]")

    def error(self, msg: str) -> None:
        self.console.print(f"[red bold]error:[/red bold] {escape(msg)}")

    def command(self, cmd: list[str]) -> None:
        """Echo a tool invocation in verbose mode."""
        if self.is_verbose:
            self.console.print(f"[cyan]  > {escape(' '.join(cmd))}[/cyan]")


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        _err_console.print(f"[red bold]error:[/red bold] {escape(msg)}")
    raise typer.Exit(code=code)


def fail(exc: BuildError) -> NoReturn:
    """Report a :class:`BuildError` once and exit non-zero."""
    _err_console.print(f"[red bold]error:[/red bold] {escape(str(exc))}")
    if isinstance(exc, ToolchainError) and exc.output:
        _err_console.print(escape(exc.output))
    raise typer.Exit(code=1)


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2))
