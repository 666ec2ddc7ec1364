"""The two build targets and their fixed per-target properties."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from w95build.config import BuildPaths, ToolchainConfig


class BuildTarget(Enum):
    """Windowed executable or dynamic-link library."""

    EXE = "exe"
    DLL = "dll"

    @property
    def label(self) -> str:
        return self.name

    @property
    def source_root(self) -> str:
        """Workspace-relative directory holding the target's C sources."""
        return f"source/{self.value}"

    @property
    def crt0(self) -> str:
        """Workspace-relative path of the target's CRT startup shim source."""
        return f"crt/w95_crt0_{self.value}.c"

    @property
    def suffix(self) -> str:
        return f".{self.value}"

    @property
    def shared(self) -> bool:
        return self is BuildTarget.DLL

    @property
    def entry_symbol(self) -> str:
        """Decorated ``__stdcall`` entry symbol defined by the CRT shim."""
        if self is BuildTarget.EXE:
            return "_mainCRTStartup@0"
        return "_DllMainCRTStartup@12"

    def base_name(self, cfg: ToolchainConfig) -> str:
        return cfg.exe_name if self is BuildTarget.EXE else cfg.dll_name

    def output_path(self, cfg: ToolchainConfig, paths: BuildPaths) -> Path:
        return paths.bin_dir / f"{self.base_name(cfg)}{self.suffix}"
