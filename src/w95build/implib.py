"""Import-library generation from ``.def`` module-definition files.

Each ``<Name>.def`` in the configured directory becomes
``<out>/lib/win95/lib<name>.a`` via ``dlltool``.  A library is regenerated only
when it is missing or older than its ``.def``; the first ``dlltool`` failure
aborts the whole pass, leaving already-built libraries in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from w95build.cli import Log
from w95build.config import BuildPaths, ToolchainConfig
from w95build.errors import ConfigError, DiscoveryError, ToolchainError
from w95build.fsutil import glob_suffix, mkdir_p, needs_rebuild
from w95build.runner import Runner, run_command

# ---------------------------------------------------------------------------
# Name derivation
# ---------------------------------------------------------------------------


def basename_no_ext(path: str) -> str:
    """Return the final path component of *path* without its last extension.

    Both ``/`` and ``\\`` count as separators.  Everything from the last dot
    is dropped, even a leading one, so ``.def`` becomes an empty name.

    >>> basename_no_ext("defs\\\\KERNEL32.DEF")
    'KERNEL32'
    >>> basename_no_ext("a/b.c.def")
    'b.c'
    """
    base = path.replace("\\", "/").rsplit("/", 1)[-1]
    dot = base.rfind(".")
    if dot < 0:
        return base
    return base[:dot]


def import_lib_name(def_path: str | Path) -> str:
    """Derive the import-library file name for a ``.def`` path.

    >>> import_lib_name("MyLib.DEF")
    'libmylib.a'
    """
    return f"lib{basename_no_ext(str(def_path)).lower()}.a"


@dataclass(frozen=True)
class ImportLibrary:
    """A ``.def`` input and the archive generated from it."""

    def_path: Path
    output_path: Path

    @property
    def name(self) -> str:
        return self.output_path.name

    def is_stale(self) -> bool:
        return needs_rebuild(self.output_path, [self.def_path])


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def locate_def_dir(cfg: ToolchainConfig) -> Path:
    """Validate the configured ``.def`` directory."""
    if cfg.def_dir:
        p = Path(cfg.def_dir)
        if p.is_dir():
            return p.resolve()
    raise ConfigError("Could not locate .def directory. Set WIN95_GENERATED_PATH")


def plan_import_libs(def_dir: Path, lib_dir: Path) -> list[ImportLibrary]:
    """Map every ``*.def`` in *def_dir* to its import library under *lib_dir*.

    Raises :class:`DiscoveryError` if there are no ``.def`` files and
    :class:`ConfigError` if two of them fold to the same library name.
    """
    defs = glob_suffix(def_dir, ".def")
    if not defs:
        raise DiscoveryError(f"No .def files found in {def_dir}")

    seen: dict[str, Path] = {}
    plan: list[ImportLibrary] = []
    for def_path in defs:
        name = import_lib_name(def_path)
        if name in seen:
            raise ConfigError(
                f"{seen[name].name} and {def_path.name} both map to import library {name}"
            )
        seen[name] = def_path
        plan.append(ImportLibrary(def_path=def_path, output_path=lib_dir / name))
    return plan


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def dlltool_command(cfg: ToolchainConfig, lib: ImportLibrary) -> list[str]:
    """Build the ``dlltool`` invocation for one import library."""
    return [cfg.dlltool_path, "-d", str(lib.def_path), "-k", "-l", str(lib.output_path)]


def ensure_import_libs(
    cfg: ToolchainConfig,
    paths: BuildPaths,
    log: Log,
    run: Runner = run_command,
) -> Path:
    """Bring every import library up to date and return the library directory."""
    def_dir = locate_def_dir(cfg)
    lib_dir = mkdir_p(paths.lib_dir)

    for lib in plan_import_libs(def_dir, lib_dir):
        if not lib.is_stale():
            log.verbose(f"Up to date: {paths.rel(lib.output_path)}")
            continue

        result = run(dlltool_command(cfg, lib), log)
        if not result.ok:
            raise ToolchainError(
                f"dlltool failed for {lib.def_path} -> {lib.output_path}",
                result.rc,
                result.code,
                result.output,
            )
        log.verbose(f"Generated {paths.rel(lib.output_path)}")

    return lib_dir
