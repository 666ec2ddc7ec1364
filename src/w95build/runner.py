"""External tool execution.

Every toolchain invocation (``dlltool``, ``gcc``) goes through
:func:`run_command`, which never raises for tool failures: it reports a
logical return code ``rc`` (``0`` when the process ran, ``-1`` when it could
not be started) and the process exit ``code``.  Callers decide what a failure
means.
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable
from dataclasses import dataclass

from w95build.cli import Log


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single tool invocation."""

    rc: int
    code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.rc == 0 and self.code == 0


Runner = Callable[[list[str], Log], CommandResult]


def run_command(cmd: list[str], log: Log) -> CommandResult:
    """Run *cmd* to completion and return its :class:`CommandResult`."""
    log.command(cmd)
    try:
        r = subprocess.run(cmd, capture_output=True)
    except FileNotFoundError as e:
        return CommandResult(rc=-1, code=0, output=f"Tool not found: {e}")
    except OSError as e:
        return CommandResult(rc=-1, code=0, output=f"Failed to run tool: {e}")

    output = (r.stdout + r.stderr).decode("utf-8", errors="replace").strip()
    if output and log.is_verbose:
        for line in output.splitlines():
            log.verbose(f"    {line}")
    return CommandResult(rc=0, code=r.returncode, output=output)
