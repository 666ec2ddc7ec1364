"""Tests for w95build.sources — per-target source collection."""

from pathlib import Path

import pytest

from w95build.errors import DiscoveryError
from w95build.sources import collect_sources
from w95build.targets import BuildTarget


def _touch(root: Path, rel: str) -> Path:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text("int x;\n", encoding="utf-8")
    return p


class TestCollectSources:
    def test_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(DiscoveryError, match="EXE source directory not found: source/exe"):
            collect_sources(BuildTarget.EXE, tmp_path)

    def test_empty_root(self, tmp_path: Path) -> None:
        (tmp_path / "source" / "dll").mkdir(parents=True)
        with pytest.raises(DiscoveryError, match="No DLL sources found"):
            collect_sources(BuildTarget.DLL, tmp_path)

    def test_only_non_c_files_is_empty(self, tmp_path: Path) -> None:
        _touch(tmp_path, "source/exe/readme.txt")
        _touch(tmp_path, "source/exe/res.h")
        with pytest.raises(DiscoveryError):
            collect_sources(BuildTarget.EXE, tmp_path)

    def test_recursive_and_sorted(self, tmp_path: Path) -> None:
        _touch(tmp_path, "source/exe/zeta.c")
        _touch(tmp_path, "source/exe/gfx/draw.c")
        _touch(tmp_path, "source/exe/alpha.c")
        _touch(tmp_path, "source/exe/gfx/deep/blit.c")
        srcs = collect_sources(BuildTarget.EXE, tmp_path)
        rel = [p.relative_to(tmp_path / "source/exe").as_posix() for p in srcs]
        assert rel == sorted(rel)
        assert set(rel) == {"zeta.c", "gfx/draw.c", "alpha.c", "gfx/deep/blit.c"}

    def test_targets_are_separate(self, tmp_path: Path) -> None:
        _touch(tmp_path, "source/exe/main.c")
        _touch(tmp_path, "source/dll/lib.c")
        assert [p.name for p in collect_sources(BuildTarget.DLL, tmp_path)] == ["lib.c"]

    def test_stable_across_calls(self, tmp_path: Path) -> None:
        for name in ("c.c", "a.c", "b/b.c"):
            _touch(tmp_path, f"source/dll/{name}")
        assert collect_sources(BuildTarget.DLL, tmp_path) == collect_sources(
            BuildTarget.DLL, tmp_path
        )
