"""
Staged, checksum-gated installation of toolchain artifacts.

This module orchestrates the install of one artifact:

1. Fetch the expected checksum line from the ``.sha256`` sidecar
2. Skip everything if the installed record already holds that line
3. Stream the body through hash, decompress, rechunk and untar stages into a
   fresh staging directory
4. Compare the streamed digest to the expected one
5. Write the record, remove the old install root, rename staging into place
6. Remove the staging directory on every exit path

Step 5 is a remove followed by a rename. A crash between the two leaves the
artifact uninstalled (not corrupted); running the install again repairs it.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from ..core.config import T2Config
from ..core.download import DownloadProgress, fetch_text, open_stream
from ..core.exceptions import ChecksumError, NetworkError
from ..core.filesystem import (
    FilesystemError,
    atomic_write,
    create_staging_directory,
    extract_tar_stream,
    safe_rmtree,
)
from ..core.streams import (
    ChunkStream,
    StreamingHasher,
    decompress,
    hash_chunks,
    rechunk,
)
from .artifacts import (
    Artifact,
    checksums_match,
    format_checksum_line,
    parse_checksum_line,
    read_record,
    toolchain_artifacts,
)

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of installing one artifact."""

    artifact: Artifact
    """The artifact that was processed"""

    checksum: str
    """Checksum line now recorded for the artifact"""

    updated: bool
    """False when the installed copy was already up to date"""

    elapsed: float = 0.0
    """Time spent downloading and extracting in seconds"""


class StagedInstaller:
    """
    Installs artifacts into their install roots.

    Example:
        >>> installer = StagedInstaller(load_config())
        >>> result = installer.install(sdk_artifact(installer.config))
        >>> print("updated" if result.updated else "already up to date")
    """

    def __init__(
        self,
        config: T2Config,
        progress_callback: Optional[Callable[[Artifact, DownloadProgress], None]] = None,
    ):
        """
        Initialize installer.

        Args:
            config: Configuration with install roots and host URLs
            progress_callback: Optional callback for download progress updates
        """
        self.config = config
        self.progress_callback = progress_callback

    def install(self, artifact: Artifact) -> InstallResult:
        """
        Install an artifact unless the installed copy is already current.

        Args:
            artifact: Artifact to install

        Returns:
            InstallResult describing what happened

        Raises:
            NetworkError: If the checksum or body cannot be fetched
            ChecksumError: If the body does not match the published checksum
            DecodeError: If the compressed body is malformed
            ExtractError: If the tar stream is malformed
        """
        logger.info(f"Installing {artifact}...")

        expected = fetch_text(artifact.checksum_url, timeout=self.config.timeout)
        try:
            parse_checksum_line(expected)
        except ValueError as e:
            raise NetworkError(
                f"Malformed checksum file at {artifact.checksum_url}: {e}"
            ) from e

        if self.is_current(artifact, expected):
            logger.info(f"({artifact} already up to date.)")
            return InstallResult(artifact=artifact, checksum=expected, updated=False)

        start = time.time()
        staging = create_staging_directory(artifact.install_root)
        try:
            actual = self._stream_into(artifact, staging)
            if not checksums_match(actual, expected):
                raise ChecksumError(artifact.filename, expected, actual)
            logger.debug(f"Checksum verified for {artifact.filename}")

            atomic_write(staging / artifact.record_path.name, expected)
            self._replace(staging, artifact.install_root)
        finally:
            self._cleanup(staging)

        elapsed = time.time() - start
        logger.info(f"Installed {artifact} in {elapsed:.2f}s")
        return InstallResult(
            artifact=artifact, checksum=expected, updated=True, elapsed=elapsed
        )

    def install_all(self, rust_version: str) -> List[InstallResult]:
        """
        Install the SDK, target library and target description in order.

        Stops at the first failure; artifacts installed before it stay
        installed and later ones are left untouched.
        """
        return [
            self.install(artifact)
            for artifact in toolchain_artifacts(self.config, rust_version)
        ]

    def is_current(self, artifact: Artifact, expected: str) -> bool:
        """Check whether the installed record holds the expected checksum line."""
        record = read_record(artifact)
        return record is not None and record.strip() == expected.strip()

    def remove_all(self) -> List[Path]:
        """
        Delete the SDK and Rust install roots.

        Returns:
            Roots that existed and were removed
        """
        removed = []
        for root in (self.config.sdk_root, self.config.rust_root):
            if root.exists() or root.is_symlink():
                safe_rmtree(root, require_prefix=self.config.home)
                logger.info(f"Removed {root}")
                removed.append(root)
        return removed

    def _stream_into(self, artifact: Artifact, staging: Path) -> str:
        """
        Stream the artifact body into ``staging``.

        Returns:
            Checksum line of the bytes received
        """
        hasher = StreamingHasher("sha256")

        def on_progress(progress: DownloadProgress):
            self.progress_callback(artifact, progress)

        with open_stream(
            artifact.url,
            timeout=self.config.timeout,
            progress_callback=on_progress if self.progress_callback else None,
        ) as body:
            chunks = hash_chunks(body, hasher)

            if not artifact.is_archive:
                with open(staging / artifact.filename, "wb") as out:
                    for chunk in chunks:
                        out.write(chunk)
            else:
                chunks = decompress(chunks, artifact.codec)
                chunks = rechunk(chunks, self.config.block_size)
                tar_stream = ChunkStream(chunks)
                extract_tar_stream(
                    tar_stream,
                    staging,
                    strip_components=artifact.strip_components,
                )
                tar_stream.drain()

        logger.debug(f"Received {hasher.bytes_hashed} bytes for {artifact.filename}")
        return format_checksum_line(hasher.finalize(), artifact.filename)

    def _replace(self, staging: Path, install_root: Path):
        """Swap the staged directory in for the install root."""
        if install_root.exists() or install_root.is_symlink():
            safe_rmtree(install_root, require_prefix=self.config.home)
        staging.rename(install_root)
        logger.debug(f"Moved {staging} to {install_root}")

    def _cleanup(self, staging: Path):
        """Remove the staging directory, logging instead of raising on failure."""
        if not staging.exists():
            return
        try:
            safe_rmtree(staging, require_prefix=staging.parent)
            logger.debug(f"Removed staging directory: {staging}")
        except (FilesystemError, OSError, ValueError) as e:
            logger.warning(f"Failed to remove staging directory {staging}: {e}")


__all__ = ["InstallResult", "StagedInstaller"]
