"""
Locate installed toolchain components.

Three independent lookups over the install roots:

* the cross toolchain: the first ``toolchain-*`` directory inside the SDK
  install root for the configured platform
* the target library: ``rustlib/<rustc-version>``, exact version only
* the target description file: a fixed path, existence only
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..core.config import T2Config
from ..core.exceptions import ComponentNotFoundError, ComponentsMissingError
from .artifacts import RUSTLIB, SDK, TARGET

logger = logging.getLogger(__name__)

TOOLCHAIN_PREFIX = "toolchain-"


@dataclass
class ComponentStatus:
    """Existence record for one installed component."""

    name: str
    exists: bool
    path: Path

    def __str__(self) -> str:
        state = "installed" if self.exists else "missing"
        return f"{self.name}: {state} ({self.path})"


@dataclass
class ResolvedToolchain:
    """Paths of a complete, installed toolchain for one compiler version."""

    rust_version: str
    staging_dir: Path
    toolchain_dir: Path
    rustlib_dir: Path
    target_file: Path

    @property
    def bin_dir(self) -> Path:
        return self.toolchain_dir / "bin"

    @property
    def target_dir(self) -> Path:
        return self.target_file.parent


class ToolchainLocator:
    """Finds installed components under the configured roots."""

    def __init__(self, config: T2Config):
        self.config = config

    def find_toolchain(self) -> ComponentStatus:
        """
        Find the cross toolchain directory inside the SDK.

        Entries are checked in sorted order so the result does not depend on
        directory listing order.

        Raises:
            ComponentNotFoundError: If the SDK is absent or has no toolchain
        """
        sdk_dir = self.config.sdk_dir
        try:
            names = sorted(os.listdir(sdk_dir))
        except OSError as e:
            raise ComponentNotFoundError(
                SDK, f"SDK is not installed at {sdk_dir}: {e.strerror}"
            ) from e

        for name in names:
            candidate = sdk_dir / name
            if name.startswith(TOOLCHAIN_PREFIX) and candidate.is_dir():
                logger.debug(f"Found toolchain: {candidate}")
                return ComponentStatus(name=SDK, exists=True, path=candidate)

        raise ComponentNotFoundError(SDK, f"No toolchain found in {sdk_dir}")

    def find_rustlib(self, rust_version: str) -> ComponentStatus:
        """
        Find the target library built for exactly ``rust_version``.

        Raises:
            ComponentNotFoundError: If that version directory is absent
        """
        path = self.config.rustlib_root / rust_version
        if not path.is_dir():
            raise ComponentNotFoundError(
                RUSTLIB, f"No target library for rustc {rust_version} at {path}"
            )
        return ComponentStatus(name=RUSTLIB, exists=True, path=path)

    def find_target(self) -> ComponentStatus:
        """
        Find the target description file.

        Raises:
            ComponentNotFoundError: If the file is absent
        """
        path = self.config.target_file
        if not path.is_file():
            raise ComponentNotFoundError(
                TARGET, f"Target description not found at {path}"
            )
        return ComponentStatus(name=TARGET, exists=True, path=path)

    def status(self, rust_version: Optional[str]) -> List[ComponentStatus]:
        """
        Report every component without raising for missing ones.

        Args:
            rust_version: Compiler version for the target library lookup;
                None reports the library as missing
        """
        statuses = []

        try:
            statuses.append(self.find_toolchain())
        except ComponentNotFoundError:
            statuses.append(
                ComponentStatus(name=SDK, exists=False, path=self.config.sdk_dir)
            )

        if rust_version is None:
            statuses.append(
                ComponentStatus(
                    name=RUSTLIB, exists=False, path=self.config.rustlib_root
                )
            )
        else:
            try:
                statuses.append(self.find_rustlib(rust_version))
            except ComponentNotFoundError:
                statuses.append(
                    ComponentStatus(
                        name=RUSTLIB,
                        exists=False,
                        path=self.config.rustlib_root / rust_version,
                    )
                )

        try:
            statuses.append(self.find_target())
        except ComponentNotFoundError:
            statuses.append(
                ComponentStatus(name=TARGET, exists=False, path=self.config.target_file)
            )

        return statuses

    def resolve(self, rust_version: str) -> ResolvedToolchain:
        """
        Locate all three components.

        Raises:
            ComponentsMissingError: Naming every component that is absent
        """
        found = {}
        missing = []
        for name, lookup in (
            (SDK, self.find_toolchain),
            (RUSTLIB, lambda: self.find_rustlib(rust_version)),
            (TARGET, self.find_target),
        ):
            try:
                found[name] = lookup().path
            except ComponentNotFoundError as e:
                logger.debug(str(e))
                missing.append(name)

        if missing:
            raise ComponentsMissingError(missing)

        return ResolvedToolchain(
            rust_version=rust_version,
            staging_dir=self.config.sdk_dir,
            toolchain_dir=found[SDK],
            rustlib_dir=found[RUSTLIB],
            target_file=found[TARGET],
        )


__all__ = [
    "TOOLCHAIN_PREFIX",
    "ComponentStatus",
    "ResolvedToolchain",
    "ToolchainLocator",
]
