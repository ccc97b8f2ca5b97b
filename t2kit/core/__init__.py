"""
Core functionality for t2kit.

This package contains the foundational modules that other components depend on.
"""

from .config import T2Config, load_config

from .platform import (
    PlatformInfo,
    detect_platform,
    sdk_platform_key,
    clear_platform_cache,
)

from .locking import install_lock

from .exceptions import (
    T2KitError,
    ConfigError,
    UnsupportedPlatformError,
    InstallError,
    NetworkError,
    ChecksumError,
    DecodeError,
    ExtractError,
    InsecureArchiveError,
    InstallLockTimeout,
    ToolchainError,
    ToolchainDetectionError,
    ComponentNotFoundError,
    ComponentsMissingError,
    BuildError,
    BuildToolError,
    OutputSelectionError,
    NoOutputError,
    AmbiguousOutputError,
)

__all__ = [
    # Configuration
    "T2Config",
    "load_config",
    # Platform
    "PlatformInfo",
    "detect_platform",
    "sdk_platform_key",
    "clear_platform_cache",
    # Locking
    "install_lock",
    # Exceptions
    "T2KitError",
    "ConfigError",
    "UnsupportedPlatformError",
    "InstallError",
    "NetworkError",
    "ChecksumError",
    "DecodeError",
    "ExtractError",
    "InsecureArchiveError",
    "InstallLockTimeout",
    "ToolchainError",
    "ToolchainDetectionError",
    "ComponentNotFoundError",
    "ComponentsMissingError",
    "BuildError",
    "BuildToolError",
    "OutputSelectionError",
    "NoOutputError",
    "AmbiguousOutputError",
]
