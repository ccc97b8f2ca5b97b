"""
Local compiler detection.

The target standard library must be built by exactly the ``rustc`` that will
link against it, so its download is keyed by the version ``rustc -V`` reports.
"""

import logging
import re
import subprocess

from ..core.exceptions import ToolchainDetectionError

logger = logging.getLogger(__name__)

# "rustc 1.12.0 (3191fbae9 2016-09-23)"
RUSTC_VERSION_PATTERN = re.compile(r"^rustc\s+(\S+)")


def detect_rustc_version(rustc: str = "rustc", timeout: int = 10) -> str:
    """
    Get the version of the local Rust compiler.

    Runs ``rustc -V`` and parses the first word after ``rustc``.

    Args:
        rustc: Compiler executable name or path
        timeout: Maximum time to wait for the probe in seconds

    Returns:
        Version string (e.g., "1.12.0", "1.14.0-nightly")

    Raises:
        ToolchainDetectionError: If rustc is missing, fails, or prints
            something that does not look like a version line
    """
    try:
        result = subprocess.run(
            [rustc, "-V"],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise ToolchainDetectionError(
            f"Could not find '{rustc}'. Install Rust (https://rustup.rs) "
            "or set 'rustc' in t2kit.yaml."
        ) from e
    except (subprocess.TimeoutExpired, OSError) as e:
        raise ToolchainDetectionError(f"Failed to run '{rustc} -V': {e}") from e

    if result.returncode != 0:
        raise ToolchainDetectionError(
            f"'{rustc} -V' exited with code {result.returncode}: "
            f"{result.stderr.strip()}"
        )

    match = RUSTC_VERSION_PATTERN.match(result.stdout)
    if not match:
        raise ToolchainDetectionError(
            f"Could not identify rust version from output: {result.stdout[:200]!r}"
        )

    version = match.group(1)
    logger.debug(f"Detected rustc {version}")
    return version


__all__ = ["RUSTC_VERSION_PATTERN", "detect_rustc_version"]
