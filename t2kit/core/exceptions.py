"""
Centralized exception hierarchy for t2kit.

This module defines all custom exceptions used across the codebase
so that the CLI can report every failure through a single base class.
"""

from typing import Iterable, List


# ============================================================================
# Base Exceptions
# ============================================================================


class T2KitError(Exception):
    """Base exception for all t2kit errors."""

    pass


class ConfigError(T2KitError):
    """Configuration parsing or validation error."""

    pass


class UnsupportedPlatformError(T2KitError):
    """Raised when no SDK is published for the host platform."""

    pass


# ============================================================================
# Install Pipeline Exceptions
# ============================================================================


class InstallError(T2KitError):
    """Base exception for artifact installation errors."""

    pass


class NetworkError(InstallError):
    """Raised when a checksum or artifact fetch fails."""

    pass


class ChecksumError(InstallError):
    """Raised when the streamed artifact does not match its published digest."""

    def __init__(self, artifact: str, expected: str, actual: str):
        self.artifact = artifact
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Checksum mismatch for {artifact}: "
            f"expected {expected.strip()!r}, got {actual.strip()!r}"
        )


class DecodeError(InstallError):
    """Raised when a compressed stream is malformed or truncated."""

    pass


class ExtractError(InstallError):
    """Raised when a tar stream cannot be extracted."""

    pass


class InsecureArchiveError(ExtractError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


class InstallLockTimeout(InstallError):
    """Raised when the install lock cannot be acquired within timeout."""

    pass


# ============================================================================
# Toolchain-related Exceptions
# ============================================================================


class ToolchainError(T2KitError):
    """Base exception for toolchain discovery errors."""

    pass


class ToolchainDetectionError(ToolchainError):
    """Raised when the local compiler version cannot be determined."""

    pass


class ComponentNotFoundError(ToolchainError):
    """Raised when a single installed component cannot be located."""

    def __init__(self, component: str, message: str):
        self.component = component
        super().__init__(message)


class ComponentsMissingError(ToolchainError):
    """Raised when one or more installed components are absent."""

    def __init__(self, missing: Iterable[str]):
        self.missing: List[str] = list(missing)
        super().__init__(
            f"Missing toolchain components: {', '.join(self.missing)}\n"
            "Run 't2-rust install' to download and install them."
        )


# ============================================================================
# Build Launch Exceptions
# ============================================================================


class BuildError(T2KitError):
    """Base exception for build launch errors."""

    pass


class BuildToolError(BuildError):
    """Raised when the build tool cannot be invoked or its output parsed."""

    pass


class OutputSelectionError(BuildError):
    """Base exception when a single build output cannot be selected."""

    def __init__(self, message: str, candidates: Iterable[str]):
        self.candidates: List[str] = sorted(candidates)
        if self.candidates:
            message += "\nValid --bin values: " + ", ".join(self.candidates)
        super().__init__(message)


class NoOutputError(OutputSelectionError):
    """Raised when no binary output matches the request."""

    pass


class AmbiguousOutputError(OutputSelectionError):
    """Raised when several binary outputs exist and none was chosen."""

    pass
