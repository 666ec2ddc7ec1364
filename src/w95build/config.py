"""Toolchain and workspace configuration for w95build.

All settings are resolved exactly once per command and then passed down as
immutable values, so no build component reads ``os.environ`` itself.

Sources, highest precedence first:

1. Environment variables (``TOOL_PREFIX``, ``CB_EXE_NAME``, ``CB_DLL_NAME``,
   ``WIN95_GENERATED_PATH``, ``EXTRA_LIBS``).  Empty values count as unset.
2. An optional ``w95build.toml`` in the workspace root.
3. Built-in defaults.

Example ``w95build.toml``::

    [toolchain]
    prefix = "i686-w64-mingw32-"

    [artifacts]
    exe_name = "app"
    dll_name = "mylib"

    [defs]
    path = "generated/defs"

    [link]
    extra_libs = ["user32", "gdi32"]
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from w95build.errors import ConfigError

PROJECT_FILE = "w95build.toml"

DEFAULT_TOOL_PREFIX = "i686-w64-mingw32-"
DEFAULT_EXE_NAME = "app"
DEFAULT_DLL_NAME = "mylib"
DEFAULT_OUTPUT_DIR = "build"

# (variable, effect, default), rendered by the help command.
ENV_VARS: list[tuple[str, str, str]] = [
    ("TOOL_PREFIX", "cross-toolchain prefix", DEFAULT_TOOL_PREFIX),
    ("CB_EXE_NAME", "executable base name", DEFAULT_EXE_NAME),
    ("CB_DLL_NAME", "library base name", DEFAULT_DLL_NAME),
    ("WIN95_GENERATED_PATH", "directory containing .def files", "(required)"),
    ("EXTRA_LIBS", "space-separated extra link libraries", "(empty)"),
]


@dataclass(frozen=True)
class ToolchainConfig:
    """Resolved toolchain and artifact naming settings."""

    tool_prefix: str = DEFAULT_TOOL_PREFIX
    exe_name: str = DEFAULT_EXE_NAME
    dll_name: str = DEFAULT_DLL_NAME
    extra_libs: tuple[str, ...] = field(default_factory=tuple)
    # Raw WIN95_GENERATED_PATH value; validated by the import-library builder.
    def_dir: str | None = None

    @property
    def compiler_path(self) -> str:
        return f"{self.tool_prefix}gcc"

    @property
    def dlltool_path(self) -> str:
        return f"{self.tool_prefix}dlltool"


@dataclass(frozen=True)
class BuildPaths:
    """Workspace and output roots with the derived output directories."""

    workspace_root: Path
    output_root: Path

    @property
    def lib_dir(self) -> Path:
        return self.output_root / "lib" / "win95"

    @property
    def bin_dir(self) -> Path:
        return self.output_root / "bin"

    def rel(self, path: Path) -> str:
        """Return *path* relative to the workspace root when possible."""
        try:
            return Path(path).relative_to(self.workspace_root).as_posix()
        except ValueError:
            return str(path)


def _get(env: Mapping[str, str], name: str) -> str | None:
    """Return a non-empty environment value or ``None``."""
    value = env.get(name)
    return value if value else None


def parse_extra_libs(value: str | list[str] | None) -> tuple[str, ...]:
    """Split a space-delimited library list into an ordered tuple.

    Only spaces separate names; runs of spaces yield no empty entries.

    >>> parse_extra_libs("user32  gdi32")
    ('user32', 'gdi32')
    """
    if not value:
        return ()
    if isinstance(value, list):
        return tuple(v for v in value if v.strip())
    return tuple(name for name in value.split(" ") if name)


def find_workspace_root(start: Path | None = None) -> Path:
    """Walk up from *start* (or cwd) to the directory holding ``w95build.toml``.

    Falls back to *start* itself when no project file exists, so a bare
    directory with ``source/`` and ``crt/`` is a valid workspace.
    """
    origin = (start or Path.cwd()).resolve()
    candidate = origin
    while True:
        if (candidate / PROJECT_FILE).is_file():
            return candidate
        if candidate == candidate.parent:
            return origin
        candidate = candidate.parent


# Known project-file keys and the value types each accepts.
_PROJECT_SCHEMA: dict[str, dict[str, tuple[type, ...]]] = {
    "toolchain": {"prefix": (str,)},
    "artifacts": {"exe_name": (str,), "dll_name": (str,)},
    "defs": {"path": (str,)},
    "link": {"extra_libs": (str, list)},
}


def validate_project_settings(data: Mapping[str, Any]) -> None:
    """Check the known sections and keys of a parsed project file.

    Unknown sections and keys are ignored.
    """
    for section, keys in _PROJECT_SCHEMA.items():
        if section not in data:
            continue
        table = data[section]
        if not isinstance(table, dict):
            raise ConfigError(f"Invalid {PROJECT_FILE}: [{section}] must be a table")
        for key, types in keys.items():
            if key not in table:
                continue
            value = table[key]
            if not isinstance(value, types):
                expected = " or ".join("array" if t is list else "string" for t in types)
                raise ConfigError(
                    f"Invalid {PROJECT_FILE}: {section}.{key} must be a {expected}"
                )
            if isinstance(value, list) and not all(isinstance(v, str) for v in value):
                raise ConfigError(
                    f"Invalid {PROJECT_FILE}: {section}.{key} must contain only strings"
                )


def load_project_file(root: Path) -> dict[str, Any]:
    """Load ``w95build.toml`` from *root*, returning ``{}`` when absent."""
    toml_path = root / PROJECT_FILE
    if not toml_path.is_file():
        return {}
    try:
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid {PROJECT_FILE}: {e}") from e
    validate_project_settings(data)
    return data


def resolve_toolchain(
    env: Mapping[str, str] | None = None,
    file_settings: Mapping[str, Any] | None = None,
    root: Path | None = None,
) -> ToolchainConfig:
    """Resolve a :class:`ToolchainConfig` from environment and project file.

    Never fails for missing values: every setting has a default except the
    ``.def`` directory, whose absence is reported by the import-library step.
    A relative ``[defs] path`` from the project file is resolved against *root*.
    Raises :class:`ConfigError` when *file_settings* has values of the wrong type.
    """
    env = os.environ if env is None else env
    data = file_settings or {}
    validate_project_settings(data)
    toolchain = data.get("toolchain", {})
    artifacts = data.get("artifacts", {})
    defs = data.get("defs", {})
    link = data.get("link", {})

    def_dir = _get(env, "WIN95_GENERATED_PATH")
    if def_dir is None and defs.get("path"):
        p = Path(defs["path"])
        if root is not None and not p.is_absolute():
            p = root / p
        def_dir = str(p)

    extra = _get(env, "EXTRA_LIBS")

    return ToolchainConfig(
        tool_prefix=_get(env, "TOOL_PREFIX") or toolchain.get("prefix") or DEFAULT_TOOL_PREFIX,
        exe_name=_get(env, "CB_EXE_NAME") or artifacts.get("exe_name") or DEFAULT_EXE_NAME,
        dll_name=_get(env, "CB_DLL_NAME") or artifacts.get("dll_name") or DEFAULT_DLL_NAME,
        extra_libs=parse_extra_libs(extra if extra is not None else link.get("extra_libs")),
        def_dir=def_dir,
    )


def resolve_paths(root: Path | None = None, out: Path | None = None) -> BuildPaths:
    """Resolve the workspace and output roots."""
    workspace = root.resolve() if root is not None else find_workspace_root()
    if out is None:
        output = workspace / DEFAULT_OUTPUT_DIR
    else:
        output = out if out.is_absolute() else workspace / out
    return BuildPaths(workspace_root=workspace, output_root=output)


def load_config(
    root: Path | None = None,
    out: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[ToolchainConfig, BuildPaths]:
    """Resolve paths, read the project file and build the toolchain config."""
    paths = resolve_paths(root, out)
    settings = load_project_file(paths.workspace_root)
    return resolve_toolchain(env, settings, root=paths.workspace_root), paths
