"""Tests for the build pipeline and the exe/dll/default commands."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from w95build import build as build_mod
from w95build.build import build_target
from w95build.cli import Log
from w95build.config import BuildPaths, ToolchainConfig
from w95build.errors import ConfigError, DiscoveryError
from w95build.main import app
from w95build.runner import CommandResult
from w95build.targets import BuildTarget

runner = CliRunner()

ENV_KEYS = ("TOOL_PREFIX", "CB_EXE_NAME", "CB_DLL_NAME", "WIN95_GENERATED_PATH", "EXTRA_LIBS")


class FakeToolchain:
    """Stands in for dlltool and gcc: records calls and writes their outputs."""

    def __init__(self, link_code: int = 0) -> None:
        self.calls: list[list[str]] = []
        self.link_code = link_code

    @property
    def dlltool_calls(self) -> list[list[str]]:
        return [c for c in self.calls if c[0].endswith("dlltool")]

    @property
    def link_calls(self) -> list[list[str]]:
        return [c for c in self.calls if c[0].endswith("gcc")]

    def __call__(self, cmd: list[str], log: Log) -> CommandResult:
        self.calls.append(cmd)
        if cmd[0].endswith("dlltool"):
            Path(cmd[cmd.index("-l") + 1]).write_bytes(b"!<arch>\n")
            return CommandResult(rc=0, code=0)
        if self.link_code:
            return CommandResult(rc=0, code=self.link_code, output="ld returned 1 exit status")
        Path(cmd[cmd.index("-o") + 1]).write_bytes(b"MZ")
        return CommandResult(rc=0, code=0)


def _make_workspace(tmp_path: Path) -> Path:
    ws = tmp_path / "ws"
    for rel in (
        "defs/KERNEL32.def",
        "defs/User32.DEF",
        "crt/w95_crt0_exe.c",
        "crt/w95_crt0_dll.c",
        "source/exe/main.c",
        "source/exe/ui/window.c",
        "source/dll/lib.c",
    ):
        p = ws / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text("/* */\n", encoding="utf-8")
    return ws


def _setup(tmp_path: Path, **cfg_kwargs: object) -> tuple[ToolchainConfig, BuildPaths]:
    ws = _make_workspace(tmp_path)
    cfg = ToolchainConfig(def_dir=str(ws / "defs"), **cfg_kwargs)  # type: ignore[arg-type]
    return cfg, BuildPaths(workspace_root=ws, output_root=ws / "build")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


# ---------------------------------------------------------------------------
# build_target()
# ---------------------------------------------------------------------------


class TestBuildTargetPipeline:
    def test_exe(self, tmp_path: Path) -> None:
        cfg, paths = _setup(tmp_path)
        tc = FakeToolchain()
        out = build_target(BuildTarget.EXE, cfg, paths, Log(), run=tc)
        assert out == paths.bin_dir / "app.exe"
        assert out.exists()
        assert sorted(p.name for p in paths.lib_dir.iterdir()) == ["libkernel32.a", "libuser32.a"]
        assert len(tc.dlltool_calls) == 2
        (link,) = tc.link_calls
        assert "-shared" not in link
        assert link[link.index("-L") + 1] == str(paths.lib_dir)

    def test_dll(self, tmp_path: Path) -> None:
        cfg, paths = _setup(tmp_path, dll_name="engine")
        tc = FakeToolchain()
        out = build_target(BuildTarget.DLL, cfg, paths, Log(), run=tc)
        assert out == paths.bin_dir / "engine.dll"
        (link,) = tc.link_calls
        assert link[1] == "-shared"
        assert str(paths.workspace_root / "crt/w95_crt0_dll.c") in link

    def test_import_libs_before_link(self, tmp_path: Path) -> None:
        cfg, paths = _setup(tmp_path)
        tc = FakeToolchain()
        build_target(BuildTarget.EXE, cfg, paths, Log(), run=tc)
        assert tc.calls[-1][0].endswith("gcc")
        assert all(c[0].endswith("dlltool") for c in tc.calls[:-1])

    def test_second_build_skips_dlltool(self, tmp_path: Path) -> None:
        cfg, paths = _setup(tmp_path)
        build_target(BuildTarget.EXE, cfg, paths, Log(), run=FakeToolchain())
        tc = FakeToolchain()
        build_target(BuildTarget.DLL, cfg, paths, Log(), run=tc)
        assert tc.dlltool_calls == []
        assert len(tc.link_calls) == 1

    def test_deterministic_link_order(self, tmp_path: Path) -> None:
        cfg, paths = _setup(tmp_path)
        first, second = FakeToolchain(), FakeToolchain()
        build_target(BuildTarget.EXE, cfg, paths, Log(), run=first)
        build_target(BuildTarget.EXE, cfg, paths, Log(), run=second)
        assert first.link_calls == second.link_calls
        link = first.link_calls[0]
        crt = link.index(str(paths.workspace_root / "crt/w95_crt0_exe.c"))
        assert link[crt + 1 : crt + 3] == [
            str(paths.workspace_root / "source/exe/main.c"),
            str(paths.workspace_root / "source/exe/ui/window.c"),
        ]

    def test_missing_crt0_aborts_before_link(self, tmp_path: Path) -> None:
        cfg, paths = _setup(tmp_path)
        (paths.workspace_root / "crt/w95_crt0_exe.c").unlink()
        tc = FakeToolchain()
        with pytest.raises(ConfigError, match="Missing crt/w95_crt0_exe.c"):
            build_target(BuildTarget.EXE, cfg, paths, Log(), run=tc)
        assert tc.link_calls == []

    def test_missing_sources_abort(self, tmp_path: Path) -> None:
        cfg, paths = _setup(tmp_path)
        (paths.workspace_root / "source/dll/lib.c").unlink()
        tc = FakeToolchain()
        with pytest.raises(DiscoveryError):
            build_target(BuildTarget.DLL, cfg, paths, Log(), run=tc)
        assert tc.link_calls == []

    def test_missing_def_dir_builds_nothing(self, tmp_path: Path) -> None:
        _, paths = _setup(tmp_path)
        tc = FakeToolchain()
        with pytest.raises(ConfigError):
            build_target(BuildTarget.EXE, ToolchainConfig(), paths, Log(), run=tc)
        assert tc.calls == []
        assert not paths.bin_dir.exists()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestCli:
    def test_default_shows_usage(self) -> None:
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "w95build exe" in result.output
        for key in ENV_KEYS:
            assert key in result.output

    @pytest.mark.parametrize("cmd", ["exe", "dll"])
    def test_missing_def_dir_fails(self, cmd: str, tmp_path: Path, clean_env) -> None:
        ws = _make_workspace(tmp_path)
        result = runner.invoke(app, [cmd, "--root", str(ws)])
        assert result.exit_code == 1
        assert "WIN95_GENERATED_PATH" in result.output
        assert not (ws / "build" / "bin").exists()

    def test_exe_success(self, tmp_path: Path, clean_env, monkeypatch: pytest.MonkeyPatch) -> None:
        ws = _make_workspace(tmp_path)
        clean_env.setenv("WIN95_GENERATED_PATH", str(ws / "defs"))
        clean_env.setenv("CB_EXE_NAME", "game")
        clean_env.setenv("EXTRA_LIBS", "user32 gdi32")
        tc = FakeToolchain()
        monkeypatch.setattr(build_mod, "run_command", tc)

        result = runner.invoke(app, ["exe", "--root", str(ws)])
        assert result.exit_code == 0, result.output
        assert (ws / "build" / "bin" / "game.exe").exists()
        assert "built build/bin/game.exe" in result.stdout
        link = tc.link_calls[0]
        assert link[-2:] == ["-luser32", "-lgdi32"]

    def test_link_failure_exit_code(
        self, tmp_path: Path, clean_env, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        ws = _make_workspace(tmp_path)
        clean_env.setenv("WIN95_GENERATED_PATH", str(ws / "defs"))
        monkeypatch.setattr(build_mod, "run_command", FakeToolchain(link_code=1))

        result = runner.invoke(app, ["dll", "--root", str(ws)])
        assert result.exit_code == 1
        assert "dll link failed" in result.output
        assert "code=1" in result.output

    def test_custom_out(self, tmp_path: Path, clean_env, monkeypatch: pytest.MonkeyPatch) -> None:
        ws = _make_workspace(tmp_path)
        clean_env.setenv("WIN95_GENERATED_PATH", str(ws / "defs"))
        monkeypatch.setattr(build_mod, "run_command", FakeToolchain())

        result = runner.invoke(app, ["dll", "--root", str(ws), "--out", "dist"])
        assert result.exit_code == 0, result.output
        assert (ws / "dist" / "bin" / "mylib.dll").exists()
        assert (ws / "dist" / "lib" / "win95" / "libkernel32.a").exists()

    def test_wrong_typed_project_file_is_config_error(self, tmp_path: Path, clean_env) -> None:
        ws = _make_workspace(tmp_path)
        (ws / "w95build.toml").write_text('link = "user32"\n[defs]\npath = 5\n', encoding="utf-8")

        result = runner.invoke(app, ["exe", "--root", str(ws)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Invalid w95build.toml" in result.output
