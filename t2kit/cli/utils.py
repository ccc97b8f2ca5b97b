"""
Shared utilities for CLI commands.

Provides common functionality used across multiple CLI commands to
eliminate duplication and ensure consistent behavior.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from t2kit.core.config import T2Config, load_config

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Management
# ============================================================================


def config_from_args(args) -> T2Config:
    """
    Build the configuration for a command from global CLI options.

    Args:
        args: Parsed arguments with config, home and platform fields

    Returns:
        Configuration shared by every component the command uses

    Raises:
        ConfigError: If the configuration file is missing or invalid
    """
    return load_config(
        getattr(args, "config", None),
        home=getattr(args, "home", None),
        platform=getattr(args, "platform", None),
    )


# ============================================================================
# User Interface / Output Formatting
# ============================================================================


def format_success_message(
    title: str,
    details: Dict[str, Any],
    next_steps: Optional[list] = None,
    width: int = 70,
) -> str:
    """
    Format a standardized success message.

    Args:
        title: Success message title
        details: Key-value pairs to display
        next_steps: Optional list of next step instructions
        width: Width of message box

    Returns:
        Formatted message string
    """
    lines = []
    lines.append("=" * width)
    lines.append(title)
    lines.append("=" * width)
    lines.append("")

    for key, value in details.items():
        lines.append(f"{key}: {value}")

    if next_steps:
        lines.append("")
        lines.append("Next steps:")
        for step in next_steps:
            lines.append(f"  {step}")

    lines.append("")
    return "\n".join(lines)


# ============================================================================
# Path Utilities
# ============================================================================


def resolve_project_root(path: Optional[Path] = None) -> Path:
    """
    Resolve project root directory.

    Args:
        path: Optional path (defaults to current directory)

    Returns:
        Resolved absolute path
    """
    if path is None:
        path = Path.cwd()
    return Path(path).resolve()
