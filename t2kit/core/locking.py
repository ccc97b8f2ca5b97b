"""
Cross-process locking for t2kit.

Only one ``t2-rust install`` or ``t2-rust remove`` may touch the install roots
at a time. The lock is a plain file under the t2kit home directory, managed by
the ``filelock`` library so it is released even if the holder dies.

Usage:
    from t2kit.core.locking import install_lock

    with install_lock(config.lock_path, timeout=300):
        installer.install_all()
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

from .exceptions import InstallLockTimeout

logger = logging.getLogger(__name__)


@contextmanager
def install_lock(lock_path: Path, timeout: int = 300):
    """
    Acquire the install lock for safe modifications of the install roots.

    Args:
        lock_path: Lock file location (parent directory is created)
        timeout: Maximum wait time in seconds (default: 300 for long downloads)

    Yields:
        None

    Raises:
        InstallLockTimeout: If lock can't be acquired within timeout
    """
    lock_path = Path(lock_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(lock_path, timeout=timeout)

    try:
        with lock:
            logger.debug(f"Acquired install lock: {lock_path}")
            yield
            logger.debug(f"Released install lock: {lock_path}")
    except LockTimeout as e:
        raise InstallLockTimeout(
            f"Could not acquire install lock after {timeout}s. "
            "Another t2-rust process may be installing or removing the toolchain."
        ) from e


__all__ = ["install_lock"]
