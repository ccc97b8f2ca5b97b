"""
Host platform detection for t2kit.

The Tessel 2 SDK is published as one bundle per host operating system
(``t2-sdk-macos-x86_64.tar.bz2``, ``t2-sdk-linux-x86_64.tar.bz2``). This module
maps the running host onto one of those SDK platform keys.

Usage:
    from t2kit.core.platform import detect_platform, sdk_platform_key

    info = detect_platform()
    print(f"Running on {info}")
    print(f"SDK bundle: {sdk_platform_key(info)}")
"""

import functools
import platform
from dataclasses import dataclass
from typing import Optional

from .exceptions import UnsupportedPlatformError

# Host operating systems an SDK bundle exists for
SUPPORTED_PLATFORMS = ("macos", "linux")

# Architecture suffix every published SDK bundle carries
SDK_ARCH = "x86_64"


@dataclass
class PlatformInfo:
    """
    Host platform information.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos')
        arch: CPU architecture ('x64', 'arm64', 'x86', 'arm')
    """

    os: str
    arch: str

    def platform_string(self) -> str:
        """
        Get canonical platform string (e.g., 'linux-x64', 'macos-arm64').

        Example:
            >>> PlatformInfo('linux', 'x64').platform_string()
            'linux-x64'
        """
        return f"{self.os}-{self.arch}"

    def __str__(self) -> str:
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.

    Returns:
        PlatformInfo instance with detected platform information
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    """Normalize ``platform.system()`` to 'windows', 'linux' or 'macos'."""
    system = platform.system().lower()

    if system == "windows":
        return "windows"
    elif system == "linux":
        return "linux"
    elif system == "darwin":
        return "macos"
    return system


def _detect_architecture() -> str:
    """Normalize ``platform.machine()`` to 'x64', 'arm64', 'x86' or 'arm'."""
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    return machine


def sdk_platform_key(info: Optional[PlatformInfo] = None) -> str:
    """
    Get the SDK platform key for a host.

    Only the operating system matters: the macOS bundle runs on Apple Silicon
    through Rosetta and the Linux bundle is built for x86_64 hosts.

    Args:
        info: PlatformInfo to map. If None, detects current platform.

    Returns:
        'macos' or 'linux'

    Raises:
        UnsupportedPlatformError: If no SDK bundle exists for the host OS
    """
    if info is None:
        info = detect_platform()

    if info.os not in SUPPORTED_PLATFORMS:
        raise UnsupportedPlatformError(
            f"No Tessel 2 SDK is published for {info}. "
            f"Supported hosts: {', '.join(SUPPORTED_PLATFORMS)}"
        )
    return info.os


def clear_platform_cache():
    """Clear the platform detection cache (used by tests)."""
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "SUPPORTED_PLATFORMS",
    "SDK_ARCH",
    "detect_platform",
    "sdk_platform_key",
    "clear_platform_cache",
]
