"""
Install command implementation.

Downloads and installs the SDK, target library and target description.
"""

import logging

from t2kit.cli.utils import config_from_args, format_success_message
from t2kit.core.download import DownloadProgress
from t2kit.core.locking import install_lock
from t2kit.toolchain.artifacts import Artifact
from t2kit.toolchain.detector import detect_rustc_version
from t2kit.toolchain.installer import StagedInstaller

logger = logging.getLogger(__name__)


def _log_progress(artifact: Artifact, progress: DownloadProgress):
    logger.info(f"  {artifact.filename}: {progress}")


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    config = config_from_args(args)
    rust_version = detect_rustc_version(config.rustc)
    logger.info(f"Installing Tessel 2 toolchain for rustc {rust_version}")

    installer = StagedInstaller(config, progress_callback=_log_progress)
    with install_lock(config.lock_path, timeout=config.lock_timeout):
        results = installer.install_all(rust_version)

    details = {
        str(result.artifact): "updated" if result.updated else "already up to date"
        for result in results
    }
    details["Install root"] = config.home
    print(
        format_success_message(
            "SDK installed.", details, next_steps=["t2-rust run [--bin NAME]"]
        )
    )
    return 0
