"""Filesystem helpers for w95build."""

from __future__ import annotations

import contextlib
import os
from collections.abc import Iterable
from pathlib import Path


def atomic_write_text(filepath: Path, text: str, encoding: str = "utf-8") -> None:
    """Write text to a file atomically to prevent corruption on crash."""
    tmp_path = filepath.with_suffix(filepath.suffix + ".tmp")
    try:
        tmp_path.write_text(text, encoding=encoding)
        os.replace(tmp_path, filepath)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise


def mkdir_p(path: Path) -> Path:
    """Create *path* and its parents if needed; return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def glob_suffix(directory: Path, suffix: str) -> list[Path]:
    """Return files directly in *directory* ending in *suffix*, sorted.

    The suffix comparison is case-insensitive so ``KERNEL32.DEF`` is found by
    ``".def"``.
    """
    suffix = suffix.lower()
    return sorted(p for p in directory.iterdir() if p.is_file() and p.name.lower().endswith(suffix))


def rglob_suffix(directory: Path, suffix: str) -> list[Path]:
    """Return files under *directory* (recursively) ending in *suffix*, sorted."""
    return sorted(p for p in directory.rglob(f"*{suffix}") if p.is_file())


def needs_rebuild(output: Path, inputs: Iterable[Path]) -> bool:
    """True if *output* is missing or older than any of *inputs*."""
    try:
        out_mtime = output.stat().st_mtime_ns
    except FileNotFoundError:
        return True
    return any(Path(p).stat().st_mtime_ns > out_mtime for p in inputs)
