"""Workspace health checks for ``w95build doctor``.

Each check inspects one thing a build depends on (project file, cross
toolchain, ``.def`` directory, CRT shims, source trees, output tree) and
returns a :class:`CheckResult` with a suggested fix when it does not pass.

Usage::

    w95build doctor
    w95build doctor --json
    w95build doctor --out dist
"""

import shutil
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from w95build.cli import OutOption, RootOption, json_print
from w95build.config import PROJECT_FILE, BuildPaths, ToolchainConfig, load_config
from w95build.errors import BuildError
from w95build.fsutil import glob_suffix
from w95build.implib import locate_def_dir, plan_import_libs
from w95build.sources import collect_sources
from w95build.targets import BuildTarget


class Status(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass
class CheckResult:
    """Outcome of one check; ``fix`` is only set when something needs doing."""

    name: str
    status: Status
    message: str
    fix: str = ""

    def to_dict(self) -> dict[str, str]:
        out = {"name": self.name, "status": self.status.value, "message": self.message}
        if self.fix:
            out["fix"] = self.fix
        return out


@dataclass
class DoctorReport:
    workspace: str = ""
    checks: list[CheckResult] = field(default_factory=list)

    def counts(self) -> Counter[Status]:
        return Counter(c.status for c in self.checks)

    @property
    def passed(self) -> bool:
        """Warnings do not fail the report."""
        return self.counts()[Status.FAIL] == 0

    def to_dict(self) -> dict[str, Any]:
        counts = self.counts()
        return {
            "workspace": self.workspace,
            "passed": self.passed,
            "summary": {s.value: counts[s] for s in Status},
            "checks": [c.to_dict() for c in self.checks],
        }


def check_tool(name: str, tool: str) -> CheckResult:
    """Check that *tool* resolves on PATH."""
    found = shutil.which(tool)
    if found is None:
        return CheckResult(
            name,
            Status.FAIL,
            f"'{tool}' not found in PATH",
            fix="Install mingw-w64 (e.g. apt install gcc-mingw-w64-i686) or set TOOL_PREFIX.",
        )
    return CheckResult(name, Status.PASS, found)


def check_def_dir(cfg: ToolchainConfig, paths: BuildPaths) -> CheckResult:
    """Check the .def directory and how many libraries it would produce."""
    try:
        def_dir = locate_def_dir(cfg)
        plan = plan_import_libs(def_dir, paths.lib_dir)
    except BuildError as e:
        return CheckResult(
            ".def directory",
            Status.FAIL,
            str(e),
            fix="Point WIN95_GENERATED_PATH (or [defs] path) at a directory of .def files.",
        )
    stale = sum(1 for lib in plan if lib.is_stale())
    return CheckResult(
        ".def directory",
        Status.PASS,
        f"{def_dir} ({len(plan)} .def file(s), {stale} import lib(s) to generate)",
    )


def check_crt0(target: BuildTarget, paths: BuildPaths) -> CheckResult:
    name = f"{target.label} CRT shim"
    if not (paths.workspace_root / target.crt0).is_file():
        return CheckResult(
            name,
            Status.FAIL,
            f"Missing {target.crt0}",
            fix="Run 'w95build init' to write the CRT shim sources.",
        )
    return CheckResult(name, Status.PASS, target.crt0)


def check_sources(target: BuildTarget, paths: BuildPaths) -> CheckResult:
    """Check that the target has at least one source file.

    Missing sources only warn: a workspace may build just one of the targets.
    """
    name = f"{target.label} sources"
    try:
        sources = collect_sources(target, paths.workspace_root)
    except BuildError as e:
        return CheckResult(
            name,
            Status.WARN,
            str(e),
            fix=f"Add C files under {target.source_root}/ to build the {target.value} target.",
        )
    return CheckResult(name, Status.PASS, f"{len(sources)} file(s) in {target.source_root}")


def check_output(paths: BuildPaths) -> CheckResult:
    """Report existing import libraries in the output tree."""
    if not paths.lib_dir.is_dir():
        return CheckResult(
            "Output",
            Status.PASS,
            f"{paths.rel(paths.output_root)} (will be created on first build)",
        )
    libs = glob_suffix(paths.lib_dir, ".a")
    return CheckResult(
        "Output", Status.PASS, f"{paths.rel(paths.lib_dir)} ({len(libs)} import lib(s))"
    )


def run_doctor(root: Path | None = None, out: Path | None = None) -> DoctorReport:
    """Run every check against the workspace at *root* (or the discovered one)."""
    report = DoctorReport()
    try:
        cfg, paths = load_config(root=root, out=out)
    except BuildError as e:
        report.checks.append(
            CheckResult(
                PROJECT_FILE,
                Status.FAIL,
                str(e),
                fix="Fix the TOML syntax or delete the file to use environment settings only.",
            )
        )
        return report

    report.workspace = str(paths.workspace_root)
    report.checks += [
        check_tool("Compiler", cfg.compiler_path),
        check_tool("dlltool", cfg.dlltool_path),
        check_def_dir(cfg, paths),
    ]
    for target in BuildTarget:
        report.checks += [check_crt0(target, paths), check_sources(target, paths)]
    report.checks.append(check_output(paths))
    return report


EPILOG = """\
[bold]Example:[/bold]

w95build doctor                  Check the current workspace

w95build doctor --json           Machine-readable output

[dim]Validates: w95build.toml, cross toolchain on PATH, .def directory,
CRT shim sources, and the source/exe and source/dll trees.[/dim]"""

_STYLES = {
    Status.PASS: "[green]PASS[/green]",
    Status.WARN: "[yellow]WARN[/yellow]",
    Status.FAIL: "[red bold]FAIL[/red bold]",
}


def print_report(report: DoctorReport, console: Console | None = None) -> None:
    console = console or Console()
    tbl = Table(
        title=f"w95build doctor: {escape(report.workspace) or '(unknown workspace)'}",
        title_justify="left",
        show_edge=False,
    )
    tbl.add_column("", no_wrap=True)
    tbl.add_column("Check", style="cyan", no_wrap=True)
    tbl.add_column("Result")
    for check in report.checks:
        result = escape(check.message)
        if check.fix:
            result += f"\n[dim]Fix: {escape(check.fix)}[/dim]"
        tbl.add_row(_STYLES[check.status], check.name, result)
    console.print(tbl)

    counts = report.counts()
    summary = ", ".join(f"{counts[s]} {s.value}" for s in Status if counts[s])
    console.print(f"\n  {summary}")
    if report.passed:
        console.print("  [green]Workspace looks ready to build.[/green]\n")
    else:
        console.print("  [red]Issues found. Fix the failures above and re-run.[/red]\n")


def main(
    root: Path | None = RootOption,
    out: Path | None = OutOption,
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
) -> None:
    """Run diagnostic checks on the w95build workspace."""
    report = run_doctor(root=root, out=out)
    if json_output:
        json_print(report.to_dict())
    else:
        print_report(report)
    if not report.passed:
        raise typer.Exit(code=1)
