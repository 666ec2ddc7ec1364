"""Error taxonomy shared by every build component.

Components raise one of the :class:`BuildError` subclasses; the command layer
catches :class:`BuildError` once, reports it and exits non-zero.  There is no
recoverable class: any error aborts the current command.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a build failure."""

    CONFIG = "config"
    DISCOVERY = "discovery"
    TOOLCHAIN = "toolchain"


class BuildError(Exception):
    """Base class for all fatal build errors."""

    kind: ErrorKind = ErrorKind.CONFIG


class ConfigError(BuildError):
    """Missing or invalid required configuration (directories, CRT shims)."""

    kind = ErrorKind.CONFIG


class DiscoveryError(BuildError):
    """An input set (sources, ``.def`` files) turned out to be empty."""

    kind = ErrorKind.DISCOVERY


class ToolchainError(BuildError):
    """An external tool could not be launched or exited non-zero.

    ``rc`` is the orchestration layer's logical return code (non-zero when the
    process could not be started) and ``code`` is the tool's own exit status.
    """

    kind = ErrorKind.TOOLCHAIN

    def __init__(self, message: str, rc: int, code: int, output: str = "") -> None:
        self.message = message
        self.rc = rc
        self.code = code
        self.output = output
        super().__init__(f"{message} (rc={rc}, code={code})")
