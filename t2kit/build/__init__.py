"""
Cross builds with cargo.

Selects the binary to build from cargo metadata and runs cargo with an
environment pointing at the installed toolchain.
"""

from .cargo import BuildOutput, query_metadata, binary_outputs, select_binary
from .launcher import BuildLauncher, build_environment

__all__ = [
    "BuildOutput",
    "query_metadata",
    "binary_outputs",
    "select_binary",
    "BuildLauncher",
    "build_environment",
]
