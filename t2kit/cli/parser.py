"""
t2-rust CLI argument parser.

This module implements the command-line interface for building Rust
programs for the Tessel 2 using argparse.
"""

import argparse
import importlib
import logging
import sys
import traceback
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List, Optional

from t2kit.core.platform import SUPPORTED_PLATFORMS

try:
    __version__ = version("t2kit")
except PackageNotFoundError:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)


class CLI:
    """t2-rust command-line interface."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="t2-rust",
            description="Cross-compile Rust programs for the Tessel 2",
            epilog='Use "t2-rust COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"t2kit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ~/.tessel/t2kit.yaml)",
        )
        parser.add_argument(
            "--home",
            type=Path,
            metavar="PATH",
            help="Install root for the SDK and Rust components (default: ~/.tessel)",
        )
        parser.add_argument(
            "--platform",
            choices=SUPPORTED_PLATFORMS,
            help="SDK platform to use instead of the detected one",
        )
        parser.add_argument(
            "--project-root",
            type=Path,
            metavar="PATH",
            help="Cargo project directory (default: current directory)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_remove_command(subparsers)
        self._add_run_command(subparsers)
        self._add_status_command(subparsers)

        return parser

    def _add_install_command(self, subparsers):
        subparsers.add_parser(
            "install",
            help="Download and install the SDK and Rust target for the local rustc",
            description=(
                "Download the Tessel 2 SDK, the target standard library for the "
                "installed rustc and the target description. Components whose "
                "published checksum matches the installed one are skipped."
            ),
        )

    def _add_remove_command(self, subparsers):
        subparsers.add_parser(
            "remove",
            help="Remove the installed SDK and Rust components",
        )

    def _add_run_command(self, subparsers):
        run_parser = subparsers.add_parser(
            "run",
            help="Build a binary of the current cargo package for the Tessel 2",
        )
        run_parser.add_argument(
            "--bin",
            metavar="NAME",
            help="Binary target to build (required if the package has several)",
        )
        run_parser.add_argument(
            "--release", action="store_true", help="Build with optimizations"
        )

    def _add_status_command(self, subparsers):
        subparsers.add_parser(
            "status",
            help="Show which toolchain components are installed",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "install": "t2kit.cli.commands.install",
            "remove": "t2kit.cli.commands.remove",
            "run": "t2kit.cli.commands.run",
            "status": "t2kit.cli.commands.status",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
