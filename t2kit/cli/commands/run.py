"""
Run command implementation.

Builds a binary of the current cargo package for the Tessel 2.
"""

import logging

from t2kit.build.launcher import BuildLauncher
from t2kit.cli.utils import config_from_args, resolve_project_root

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the build.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code of cargo (0 for success)
    """
    config = config_from_args(args)
    project_root = resolve_project_root(args.project_root)
    logger.debug(f"Project root: {project_root}")

    launcher = BuildLauncher(config, project_root)
    return launcher.run(bin_name=args.bin, release=args.release)
