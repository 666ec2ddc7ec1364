"""w95build — incremental cross-build recipe for Windows 95 era binaries.

Turns ``source/exe`` and ``source/dll`` C trees plus a directory of ``.def``
module-definition files into a windowed ``.exe`` and a ``.dll`` linked against
a minimal, self-supplied CRT startup shim, using a MinGW cross toolchain.
"""

__version__ = "0.1.0"
