"""main.py – Umbrella CLI entry point for w95build.

Registers the ``exe`` and ``dll`` build commands plus the ``init`` and
``doctor`` helpers.  Running ``w95build`` without a command prints usage and
the environment variables that drive the build.
"""

import typer
from rich.console import Console
from rich.table import Table

from w95build import build, doctor, init
from w95build.config import ENV_VARS

app = typer.Typer(
    help="Incremental cross-build recipe for Windows 95 era EXE and DLL targets.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Typical workflow:[/bold]
  w95build init                 Write CRT shims and example sources
  w95build doctor               Check toolchain and workspace
  w95build exe                  Build build/bin/app.exe
  w95build dll                  Build build/bin/mylib.dll

[dim]Settings come from the environment, then w95build.toml.
Run 'w95build <cmd> --help' for details.[/dim]""",
)

build.register(app)
app.command(name="init", help="Initialize a w95build workspace.", epilog=init.EPILOG)(init.main)
app.command(name="doctor", help="Check toolchain and workspace health.", epilog=doctor.EPILOG)(
    doctor.main
)


def print_usage(console: Console | None = None) -> None:
    """Print command usage and the environment variable table."""
    console = console or Console()
    console.print("[bold]Usage:[/bold]")
    console.print("  w95build exe")
    console.print("  w95build dll")
    console.print()

    tbl = Table(title="Environment", title_justify="left", show_edge=False)
    tbl.add_column("Variable", style="cyan", no_wrap=True)
    tbl.add_column("Effect")
    tbl.add_column("Default", no_wrap=True)
    for name, effect, default in ENV_VARS:
        tbl.add_row(name, effect, default)
    console.print(tbl)
    console.print()
    console.print(
        '[dim]e.g. EXTRA_LIBS="user32 gdi32 wsock32 winmm comdlg32 advapi32 '
        'shell32 ole32 oleaut32"[/dim]'
    )


@app.callback(invoke_without_command=True)
def default(ctx: typer.Context) -> None:
    """Show usage when no command is given."""
    if ctx.invoked_subcommand is None:
        print_usage()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
