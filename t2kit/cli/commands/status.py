"""
Status command implementation.

Reports which toolchain components are installed and at what checksum.
"""

import logging

from t2kit.cli.utils import config_from_args
from t2kit.core.exceptions import ToolchainDetectionError
from t2kit.toolchain.artifacts import read_record, toolchain_artifacts
from t2kit.toolchain.detector import detect_rustc_version
from t2kit.toolchain.locator import ToolchainLocator

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the status command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 if every component is installed, 1 otherwise)
    """
    config = config_from_args(args)

    try:
        rust_version = detect_rustc_version(config.rustc)
        print(f"rustc: {rust_version}")
    except ToolchainDetectionError as e:
        logger.warning(str(e))
        rust_version = None

    statuses = ToolchainLocator(config).status(rust_version)
    for status in statuses:
        print(status)

    if rust_version is not None:
        for artifact in toolchain_artifacts(config, rust_version):
            record = read_record(artifact)
            if record:
                print(f"  {record.strip()}")

    if all(status.exists for status in statuses):
        return 0

    print("Run 't2-rust install' to install missing components.")
    return 1
