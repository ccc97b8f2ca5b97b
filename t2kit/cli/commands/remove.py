"""
Remove command implementation.

Deletes the installed SDK and Rust components.
"""

import logging

from t2kit.cli.utils import config_from_args
from t2kit.core.locking import install_lock
from t2kit.toolchain.installer import StagedInstaller

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the remove command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    config = config_from_args(args)

    with install_lock(config.lock_path, timeout=config.lock_timeout):
        removed = StagedInstaller(config).remove_all()

    if not removed:
        logger.info("Nothing to remove.")
    logger.info("done.")
    return 0
