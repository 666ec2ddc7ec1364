"""Initialize a w95build workspace.

Usage:
    w95build init [--force]
"""

from pathlib import Path

import typer

from w95build.cli import RootOption
from w95build.config import PROJECT_FILE
from w95build.crt import write_crt_sources
from w95build.fsutil import atomic_write_text, mkdir_p

EPILOG = """\
[bold]What it creates:[/bold]

w95build.toml             Optional settings (environment variables override them)

crt/w95_crt0_exe.c        mainCRTStartup shim for the EXE

crt/w95_crt0_dll.c        DllMainCRTStartup shim for the DLL

source/exe/main.c         Example windowed program

source/dll/mylib.c        Example exported function

[dim]Existing files are kept; pass --force to rewrite the CRT shims.[/dim]"""

DEFAULT_PROJECT_TOML = """# w95build workspace settings
# Environment variables (TOOL_PREFIX, CB_EXE_NAME, CB_DLL_NAME,
# WIN95_GENERATED_PATH, EXTRA_LIBS) take precedence over this file.

[toolchain]
prefix = "i686-w64-mingw32-"

[artifacts]
exe_name = "app"
dll_name = "mylib"

[defs]
# Directory containing the .def files for dlltool.
# path = "generated/defs"

[link]
# extra_libs = ["user32", "gdi32"]
"""

EXE_MAIN_C = """\
#define WIN32_LEAN_AND_MEAN
#include <windows.h>

int main(int argc, char **argv) {
	(void)argc;
	(void)argv;
	MessageBoxA(NULL, "Hello, Windows 95!", "app", MB_OK);
	return 0;
}
"""

DLL_MAIN_C = """\
#define WIN32_LEAN_AND_MEAN
#include <windows.h>

__declspec(dllexport) int __stdcall mylib_version(void) {
	return 1;
}
"""


def _write_if_missing(path: Path, text: str) -> bool:
    if path.exists():
        return False
    mkdir_p(path.parent)
    atomic_write_text(path, text)
    return True


def main(
    root: Path | None = RootOption,
    force: bool = typer.Option(False, "--force", help="Rewrite existing CRT shim sources."),
) -> None:
    """Create the CRT shims, example sources and w95build.toml."""
    workspace = (root or Path.cwd()).resolve()

    if _write_if_missing(workspace / PROJECT_FILE, DEFAULT_PROJECT_TOML):
        typer.secho(f"Created {PROJECT_FILE}", fg=typer.colors.GREEN)

    for path in write_crt_sources(workspace, force=force):
        typer.secho(f"Created {path.relative_to(workspace).as_posix()}", fg=typer.colors.GREEN)

    examples = {
        workspace / "source" / "exe" / "main.c": EXE_MAIN_C,
        workspace / "source" / "dll" / "mylib.c": DLL_MAIN_C,
    }
    for path, text in examples.items():
        if _write_if_missing(path, text):
            typer.secho(f"Created {path.relative_to(workspace).as_posix()}", fg=typer.colors.GREEN)

    typer.secho("\nWorkspace ready. Next steps:", fg=typer.colors.CYAN, bold=True)
    typer.echo("1. Set WIN95_GENERATED_PATH to your directory of .def files")
    typer.echo("2. Run 'w95build doctor' to check the toolchain")
    typer.echo("3. Run 'w95build exe' or 'w95build dll'")
