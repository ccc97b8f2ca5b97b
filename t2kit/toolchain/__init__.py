"""
Toolchain provisioning for the Tessel 2.

Downloads, verifies and installs the SDK, target library and target
description, and locates them again for builds.
"""

from .artifacts import (
    Artifact,
    sdk_artifact,
    rustlib_artifact,
    target_artifact,
    toolchain_artifacts,
    format_checksum_line,
    parse_checksum_line,
    read_record,
)
from .detector import detect_rustc_version
from .installer import InstallResult, StagedInstaller
from .locator import ComponentStatus, ResolvedToolchain, ToolchainLocator

__all__ = [
    # Artifacts
    "Artifact",
    "sdk_artifact",
    "rustlib_artifact",
    "target_artifact",
    "toolchain_artifacts",
    "format_checksum_line",
    "parse_checksum_line",
    "read_record",
    # Detection
    "detect_rustc_version",
    # Installation
    "InstallResult",
    "StagedInstaller",
    # Discovery
    "ComponentStatus",
    "ResolvedToolchain",
    "ToolchainLocator",
]
