"""Per-target C source discovery."""

from __future__ import annotations

from pathlib import Path

from w95build.errors import DiscoveryError
from w95build.fsutil import rglob_suffix
from w95build.targets import BuildTarget

SOURCE_SUFFIX = ".c"


def collect_sources(target: BuildTarget, workspace_root: Path) -> list[Path]:
    """Return every ``*.c`` file under the target's source root, sorted by path.

    Sorting keeps link order, and therefore the produced binary, identical
    across runs on an unchanged tree.
    """
    root = workspace_root / target.source_root
    if not root.is_dir():
        raise DiscoveryError(f"{target.label} source directory not found: {target.source_root}")

    sources = rglob_suffix(root, SOURCE_SUFFIX)
    if not sources:
        raise DiscoveryError(
            f"No {target.label} sources found (expected under {target.source_root}/**/*.c)"
        )
    return sources
