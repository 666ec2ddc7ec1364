"""Compiler/linker invocation for the EXE and DLL targets.

The whole artifact is produced by a single ``gcc`` call that compiles the CRT
shim and every source and links them against the generated import libraries.
Argument order is significant and fixed::

    gcc [-shared] -nostartfiles -nostdlib <ABI flags> -o OUT
        CRT0 SOURCES... -L LIBDIR <subsystem/entry flags>
        -lkernel32 -lmsvcrt -lgcc [-lEXTRA...]
"""

from __future__ import annotations

from pathlib import Path

from w95build.cli import Log
from w95build.config import BuildPaths, ToolchainConfig
from w95build.errors import ConfigError, ToolchainError
from w95build.runner import Runner, run_command
from w95build.targets import BuildTarget

# Our own CRT shim replaces the toolchain's startup files and default libs.
FREESTANDING_FLAGS: tuple[str, ...] = ("-nostartfiles", "-nostdlib")

# Pentium baseline, no SSE: the output must load and run on Windows 95.
ABI_FLAGS: tuple[str, ...] = (
    "-O2",
    "-s",
    "-fno-asynchronous-unwind-tables",
    "-fno-ident",
    "-march=pentium",
    "-mno-sse",
    "-mno-sse2",
)

SUBSYSTEM_VERSION_FLAGS: tuple[str, ...] = (
    "-Wl,--major-subsystem-version,4",
    "-Wl,--minor-subsystem-version,0",
)

BASE_LIBS: tuple[str, ...] = ("kernel32", "msvcrt", "gcc")


def crt0_path(target: BuildTarget, workspace_root: Path) -> Path:
    """Return the target's CRT shim source, which must exist."""
    p = workspace_root / target.crt0
    if not p.is_file():
        raise ConfigError(f"Missing {target.crt0}")
    return p


def entry_flags(target: BuildTarget) -> list[str]:
    """Subsystem, subsystem-version and entry-point linker flags."""
    flags: list[str] = []
    if target is BuildTarget.EXE:
        flags.append("-Wl,--subsystem,windows")
    flags.extend(SUBSYSTEM_VERSION_FLAGS)
    flags.append(f"-Wl,-e,{target.entry_symbol}")
    return flags


def lib_flags(extra_libs: tuple[str, ...]) -> list[str]:
    return [f"-l{name}" for name in (*BASE_LIBS, *extra_libs)]


def link_command(
    target: BuildTarget,
    cfg: ToolchainConfig,
    crt0: Path,
    sources: list[Path],
    lib_dir: Path,
    output: Path,
) -> list[str]:
    """Build the full toolchain invocation for *target*."""
    cmd = [cfg.compiler_path]
    if target.shared:
        cmd.append("-shared")
    cmd.extend(FREESTANDING_FLAGS)
    cmd.extend(ABI_FLAGS)
    cmd.extend(["-o", str(output)])
    cmd.append(str(crt0))
    cmd.extend(str(s) for s in sources)
    cmd.extend(["-L", str(lib_dir)])
    cmd.extend(entry_flags(target))
    cmd.extend(lib_flags(cfg.extra_libs))
    return cmd


def link_artifact(
    target: BuildTarget,
    cfg: ToolchainConfig,
    paths: BuildPaths,
    crt0: Path,
    sources: list[Path],
    lib_dir: Path,
    log: Log,
    run: Runner = run_command,
) -> Path:
    """Run the link for *target* and return the produced artifact path.

    A failed link leaves whatever the toolchain wrote in place.
    """
    output = target.output_path(cfg, paths)
    output.parent.mkdir(parents=True, exist_ok=True)

    result = run(link_command(target, cfg, crt0, sources, lib_dir, output), log)
    if not result.ok:
        what = "link failed" if target is BuildTarget.EXE else "dll link failed"
        raise ToolchainError(what, result.rc, result.code, result.output)

    log.verbose(f"Built {paths.rel(output)}")
    return output
