"""Minimal CRT startup shims compiled into every artifact.

The toolchain's own startup files are disabled (``-nostartfiles``), so each
target links one of the C sources below and names its entry symbol
explicitly:

``crt/w95_crt0_exe.c``
    ``mainCRTStartup`` — builds ``argv = {module file name}``, calls the
    optional (weak) ``main`` and always ends in ``ExitProcess(rc)``.

``crt/w95_crt0_dll.c``
    ``DllMainCRTStartup`` — the loader's attach/detach notification; a
    success-returning stub.

The Python functions :func:`build_argv`, :func:`startup` and
:func:`dll_startup` describe the same contract and are what the tests
exercise.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import NoReturn

from w95build.fsutil import atomic_write_text, mkdir_p
from w95build.targets import BuildTarget

# Win32 MAX_PATH; GetModuleFileNameA truncates at this size.
MAX_PATH = 260

EXE_CRT0_SOURCE = """\
#define WIN32_LEAN_AND_MEAN
#include <stddef.h>
#include <windows.h>

typedef LPSTR(__stdcall *PFN)(void);

void __main(void) {}

__attribute__((weak)) int main(int argc, char **argv);

/* Legacy lookup; the argument vector below does not use it. */
static LPSTR get_cmdline_fallback(void) {
	HMODULE hK = GetModuleHandleA("KERNEL32.DLL");
	if (!hK)
		hK = GetModuleHandleA(NULL);

	PFN p = (PFN)GetProcAddress(hK, "GetCommandLineA");
	return p ? p() : (LPSTR) "";
}

static int call_main(void) {
	char *argv0 = NULL;
	char *argv1[1] = {0};

	char buf[MAX_PATH];
	DWORD n = GetModuleFileNameA(NULL, buf, sizeof(buf));
	if (n && n < sizeof(buf))
		argv0 = buf;

	argv1[0] = argv0;
	return main ? main(argv0 ? 1 : 0, argv0 ? argv1 : NULL) : 0;
}

void __stdcall mainCRTStartup(void) {
	int rc = call_main();

	ExitProcess((UINT)rc);
}
"""

DLL_CRT0_SOURCE = """\
#define WIN32_LEAN_AND_MEAN
#include <windows.h>

void __main(void) {}

BOOL __stdcall DllMainCRTStartup(HINSTANCE hinst, DWORD reason, LPVOID reserved) {
	(void)hinst;
	(void)reason;
	(void)reserved;
	return TRUE;
}
"""

CRT_SOURCES: dict[BuildTarget, str] = {
    BuildTarget.EXE: EXE_CRT0_SOURCE,
    BuildTarget.DLL: DLL_CRT0_SOURCE,
}

# DllMainCRTStartup notification reasons.
DLL_PROCESS_DETACH = 0
DLL_PROCESS_ATTACH = 1
DLL_THREAD_ATTACH = 2
DLL_THREAD_DETACH = 3

EntryFn = Callable[[int, Sequence[str]], int]


def build_argv(module_path: str | None) -> list[str]:
    """Return the argument vector the shim passes to ``main``.

    Only the module's own file name is used; if it is unavailable or would not
    fit in ``MAX_PATH`` the vector is empty.
    """
    if not module_path or len(module_path) >= MAX_PATH:
        return []
    return [module_path]


def startup(
    entry: EntryFn | None,
    module_path: str | None,
    exit_process: Callable[[int], NoReturn],
) -> NoReturn:
    """Run *entry* the way ``mainCRTStartup`` runs ``main``.

    A missing entry yields exit code 0.  The result is always handed to
    *exit_process*; control never returns to the caller.
    """
    argv = build_argv(module_path)
    rc = entry(len(argv), argv) if entry is not None else 0
    exit_process(rc)


def dll_startup(reason: int) -> bool:
    """``DllMainCRTStartup``: succeed for every loader notification."""
    del reason
    return True


def write_crt_sources(workspace_root: Path, *, force: bool = False) -> list[Path]:
    """Write both shim sources under ``crt/``; return the files written.

    Existing shims are left untouched unless *force* is set.
    """
    written: list[Path] = []
    for target, text in CRT_SOURCES.items():
        dest = workspace_root / target.crt0
        if dest.exists() and not force:
            continue
        mkdir_p(dest.parent)
        atomic_write_text(dest, text)
        written.append(dest)
    return written
