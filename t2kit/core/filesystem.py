"""
File system utilities for t2kit.

This module provides the file operations the install pipeline depends on:
- Sequential tar extraction from a non-seekable stream
  (strip leading components, skip the archive's root entry)
- Staging directory creation next to an install root
- Safe file operations (atomic writes, guarded deletion)

All paths coming out of an archive are validated so that nothing is written
outside the destination directory.
"""

import logging
import os
import shutil
import tarfile
import tempfile
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Callable, Optional, Union

from .exceptions import ExtractError, InsecureArchiveError, T2KitError

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".staging-"


class FilesystemError(T2KitError):
    """Base exception for filesystem operations."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to parent.

    Example:
        >>> is_relative_to(Path('/home/user/file'), Path('/home'))
        True
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def is_same_directory(path: Union[str, Path], directory: Union[str, Path]) -> bool:
    """Check whether two paths name the same directory after normalization."""
    return os.path.normpath(str(path)) == os.path.normpath(str(directory))


# ============================================================================
# Archive Extraction
# ============================================================================


def _strip_components(name: str, strip_components: int) -> PurePosixPath:
    """
    Drop the first ``strip_components`` segments of an archive member name.

    Empty and '.' segments are ignored, so './a/b' and 'a/b' strip alike.
    Returns an empty path when nothing is left.
    """
    parts = [p for p in PurePosixPath(name).parts if p not in ("", ".", "/")]
    return PurePosixPath(*parts[strip_components:])


def _validate_member_path(name: str, relative: PurePosixPath) -> None:
    """
    Reject absolute member names and '..' segments.

    Raises:
        InsecureArchiveError: If the path attempts directory traversal
    """
    if PurePosixPath(name).is_absolute() or ".." in relative.parts:
        raise InsecureArchiveError(
            f"Archive member '{name}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def extract_tar_stream(
    fileobj: BinaryIO,
    destination: Union[str, Path],
    strip_components: int = 0,
    skip: Optional[Callable[[Path], bool]] = None,
) -> int:
    """
    Extract an uncompressed tar stream into a directory.

    The stream is read strictly front to back (``tarfile`` stream mode), so
    ``fileobj`` may be a pipe or any other non-seekable reader.

    Args:
        fileobj: Readable binary stream of tar data
        destination: Directory to extract to (created if missing)
        strip_components: Number of leading path segments to drop per entry
        skip: Predicate on the resolved target path; matching entries are not
            written. Defaults to skipping entries that resolve to the
            destination directory itself.

    Returns:
        Number of entries written

    Raises:
        InsecureArchiveError: If an entry escapes the destination
        ExtractError: If the stream is not valid tar data

    Example:
        >>> with open('rustlib.tar', 'rb') as f:
        ...     extract_tar_stream(f, '/tmp/rustlib', strip_components=1)
    """
    destination = Path(destination)
    destination.mkdir(parents=True, exist_ok=True)

    if skip is None:

        def skip(target: Path) -> bool:
            return is_same_directory(target, destination)

    root = destination.resolve()
    written = 0
    try:
        with tarfile.open(fileobj=fileobj, mode="r|") as tar:
            for member in tar:
                relative = _strip_components(member.name, strip_components)
                _validate_member_path(member.name, relative)
                target = destination.joinpath(relative)
                if skip(target):
                    logger.debug(f"Skipping archive entry: {member.name}")
                    continue
                if not is_relative_to(target.parent.resolve(), root):
                    raise InsecureArchiveError(
                        f"Archive member '{member.name}' is written through a link "
                        "that leaves the destination directory."
                    )

                if _write_member(tar, member, target, destination, strip_components):
                    written += 1
    except (InsecureArchiveError, ExtractError):
        raise
    except (tarfile.TarError, EOFError) as e:
        raise ExtractError(f"Malformed tar stream: {e}") from e
    except OSError as e:
        raise ExtractError(f"Failed to write archive entry: {e}") from e

    logger.debug(f"Extracted {written} entries to {destination}")
    return written


def _write_member(
    tar: tarfile.TarFile,
    member: tarfile.TarInfo,
    target: Path,
    destination: Path,
    strip_components: int,
) -> bool:
    """Materialize one tar member at ``target``. Returns False if skipped."""
    if member.isdir():
        target.mkdir(parents=True, exist_ok=True)
        return True

    target.parent.mkdir(parents=True, exist_ok=True)
    if target.is_symlink() or target.exists():
        target.unlink()

    if member.isfile():
        source = tar.extractfile(member)
        with source, open(target, "wb") as out:
            shutil.copyfileobj(source, out)
        os.chmod(target, member.mode & 0o777)
        os.utime(target, (member.mtime, member.mtime))
        return True

    if member.issym():
        os.symlink(member.linkname, target)
        return True

    if member.islnk():
        link_relative = _strip_components(member.linkname, strip_components)
        _validate_member_path(member.linkname, link_relative)
        link_source = destination.joinpath(link_relative)
        if not link_source.exists():
            raise ExtractError(
                f"Hard link '{member.name}' points at missing entry '{member.linkname}'"
            )
        os.link(link_source, target)
        return True

    logger.debug(f"Ignoring special archive entry: {member.name}")
    return False


# ============================================================================
# Safe File Operations
# ============================================================================


def create_staging_directory(install_root: Union[str, Path]) -> Path:
    """
    Create a uniquely named staging directory beside ``install_root``.

    Staging on the same filesystem as the install root lets the final
    replace be a rename instead of a copy.

    Args:
        install_root: Directory the staged content will replace

    Returns:
        Path to the new, empty staging directory
    """
    install_root = Path(install_root)
    install_root.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(
        tempfile.mkdtemp(
            prefix=f"{STAGING_PREFIX}{install_root.name}-", dir=install_root.parent
        )
    )
    staging.chmod(0o755)
    logger.debug(f"Created staging directory: {staging}")
    return staging


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    This ensures the file is never in a partially-written state.
    If the write fails, the original file (if any) remains unchanged.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Create temp file in same directory (ensures same filesystem)
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding, newline="") as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('/home/me/.tessel/sdk', require_prefix='/home/me/.tessel')
        >>> safe_rmtree('/usr/bin', require_prefix='/home')  # ValueError
    """
    path = Path(path).absolute()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path.parent.resolve() / path.name, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if path.is_symlink():
        path.unlink()
        return

    if not path.exists():
        return  # Already gone, nothing to do

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        shutil.rmtree(path)
    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}")


__all__ = [
    "FilesystemError",
    "STAGING_PREFIX",
    "is_relative_to",
    "is_same_directory",
    "extract_tar_stream",
    "create_staging_directory",
    "atomic_write",
    "safe_rmtree",
]
