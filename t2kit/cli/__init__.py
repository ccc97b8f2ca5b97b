"""
t2kit CLI module.

This module provides the ``t2-rust`` command-line interface.
"""

from .parser import CLI, main
from . import utils

__all__ = ["CLI", "main", "utils"]
