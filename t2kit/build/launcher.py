"""
Launch cargo against the installed Tessel 2 toolchain.

The build sees the toolchain through environment variables only:

* ``STAGING_DIR``: the SDK install root, required by the OpenWrt toolchain
* ``RUST_TARGET_PATH``: directory holding ``tessel2.json``
* ``RUSTFLAGS``: ``-L`` pointing at the target standard library
* ``PATH``: the cross toolchain ``bin`` directory first
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from ..core.config import T2Config
from ..core.exceptions import BuildToolError
from ..toolchain.detector import detect_rustc_version
from ..toolchain.locator import ResolvedToolchain, ToolchainLocator
from .cargo import BuildOutput, binary_outputs, query_metadata, select_binary

logger = logging.getLogger(__name__)


def build_environment(
    toolchain: ResolvedToolchain, base_env: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """
    Create the environment for a cross build.

    Args:
        toolchain: Located toolchain components
        base_env: Environment to extend (default: ``os.environ``)

    Returns:
        New environment mapping; ``base_env`` is not modified
    """
    env = dict(os.environ if base_env is None else base_env)

    env["STAGING_DIR"] = str(toolchain.staging_dir)
    env["RUST_TARGET_PATH"] = str(toolchain.target_dir)

    rustflags = f"-L {toolchain.rustlib_dir}"
    if env.get("RUSTFLAGS"):
        rustflags = f"{rustflags} {env['RUSTFLAGS']}"
    env["RUSTFLAGS"] = rustflags

    path = str(toolchain.bin_dir)
    if env.get("PATH"):
        path = f"{path}{os.pathsep}{env['PATH']}"
    env["PATH"] = path

    return env


class BuildLauncher:
    """
    Builds one binary of a cargo package for the Tessel 2.

    Example:
        >>> launcher = BuildLauncher(load_config(), Path.cwd())
        >>> exit_code = launcher.run(bin_name="blinky", release=True)
    """

    def __init__(self, config: T2Config, project_root: Path):
        self.config = config
        self.project_root = Path(project_root)
        self.locator = ToolchainLocator(config)

    def build_command(self, output: BuildOutput, release: bool = False) -> List[str]:
        """Assemble the ``cargo build`` command line for one binary."""
        cmd = [
            self.config.cargo,
            "build",
            f"--target={self.config.target_name}",
            "--bin",
            output.name,
        ]
        if release:
            cmd.append("--release")
        return cmd

    def select_output(self, bin_name: Optional[str] = None) -> BuildOutput:
        """Query cargo for binary targets and choose the one to build."""
        metadata = query_metadata(self.config.cargo, self.project_root)
        outputs = binary_outputs(metadata, self.project_root / "Cargo.toml")
        logger.debug(f"Binary targets: {[o.name for o in outputs]}")
        return select_binary(outputs, bin_name)

    def run(self, bin_name: Optional[str] = None, release: bool = False) -> int:
        """
        Build a binary with the installed toolchain.

        Args:
            bin_name: Binary to build; required when there are several
            release: Build with optimizations

        Returns:
            Exit code of ``cargo build``

        Raises:
            ToolchainDetectionError: If rustc cannot be probed
            ComponentsMissingError: If any toolchain component is not installed
            NoOutputError, AmbiguousOutputError: If no single binary is chosen
            BuildToolError: If cargo cannot be started
        """
        rust_version = detect_rustc_version(self.config.rustc)
        toolchain = self.locator.resolve(rust_version)
        output = self.select_output(bin_name)

        env = build_environment(toolchain)
        cmd = self.build_command(output, release)

        logger.info(f"Building '{output.name}' for {self.config.target_name}")
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd, cwd=self.project_root, env=env, stdin=subprocess.DEVNULL
            )
        except FileNotFoundError as e:
            raise BuildToolError(f"Could not find '{self.config.cargo}'.") from e

        returncode = result.returncode
        if returncode < 0:
            # Killed by a signal; report it the way a shell does
            returncode = 128 - returncode
        if returncode != 0:
            logger.error(f"cargo exited with code {returncode}")
        return returncode


__all__ = ["build_environment", "BuildLauncher"]
