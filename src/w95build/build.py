"""Build pipeline shared by the ``exe`` and ``dll`` commands.

Usage::

    w95build exe [-v] [--root DIR] [--out DIR]
    w95build dll [-v] [--root DIR] [--out DIR]

Steps, strictly in order, aborting on the first error:

1. resolve ``ToolchainConfig`` and output paths,
2. bring the import libraries in ``<out>/lib/win95`` up to date,
3. collect ``source/<target>/**/*.c``,
4. locate the CRT shim ``crt/w95_crt0_<target>.c``,
5. run the single compile-and-link invocation into ``<out>/bin``.
"""

from __future__ import annotations

import time
from pathlib import Path

import typer

from w95build.cli import Log, OutOption, RootOption, VerboseOption, fail
from w95build.config import BuildPaths, ToolchainConfig, load_config
from w95build.errors import BuildError
from w95build.implib import ensure_import_libs
from w95build.link import crt0_path, link_artifact
from w95build.runner import Runner, run_command
from w95build.sources import collect_sources
from w95build.targets import BuildTarget

EPILOG = """\
[bold]Examples:[/bold]

WIN95_GENERATED_PATH=defs w95build exe          Build build/bin/app.exe

CB_DLL_NAME=engine w95build dll -v              Build build/bin/engine.dll verbosely

EXTRA_LIBS="user32 gdi32" w95build exe          Link extra import libraries

[dim]Import libraries are regenerated only when their .def file is newer.[/dim]"""


def build_target(
    target: BuildTarget,
    cfg: ToolchainConfig,
    paths: BuildPaths,
    log: Log,
    run: Runner = run_command,
) -> Path:
    """Run the full pipeline for *target* and return the linked artifact."""
    lib_dir = ensure_import_libs(cfg, paths, log, run=run)
    sources = collect_sources(target, paths.workspace_root)
    log.verbose(f"{len(sources)} {target.label} source file(s)")
    crt0 = crt0_path(target, paths.workspace_root)
    return link_artifact(target, cfg, paths, crt0, sources, lib_dir, log, run=run)


def _run_target(target: BuildTarget, verbose: bool, root: Path | None, out: Path | None) -> None:
    log = Log(verbose=verbose)
    start = time.time()
    try:
        cfg, paths = load_config(root=root, out=out)
        output = build_target(target, cfg, paths, log, run=run_command)
    except BuildError as exc:
        fail(exc)
    log.info(f"built {paths.rel(output)} ({time.time() - start:.1f}s)")


def exe(
    verbose: bool = VerboseOption,
    root: Path | None = RootOption,
    out: Path | None = OutOption,
) -> None:
    """Build the Win95-compatible windowed EXE."""
    _run_target(BuildTarget.EXE, verbose, root, out)


def dll(
    verbose: bool = VerboseOption,
    root: Path | None = RootOption,
    out: Path | None = OutOption,
) -> None:
    """Build the Win95-compatible DLL."""
    _run_target(BuildTarget.DLL, verbose, root, out)


def register(app: typer.Typer) -> None:
    """Attach the ``exe`` and ``dll`` commands to *app*."""
    app.command(name="exe", help="Build a Win95-compatible windowed EXE.", epilog=EPILOG)(exe)
    app.command(name="dll", help="Build a Win95-compatible DLL.", epilog=EPILOG)(dll)
