"""
The three downloadable artifacts that make up a Tessel 2 Rust toolchain.

Each artifact is published on the build host next to a ``.sha256`` sidecar
whose body is a single ``sha256sum`` line::

    <hex-digest>  <archive-filename>

After a verified install the sidecar text is stored inside the install root as
the installed component record, named after the archive plus the same suffix
(``t2-sdk-linux-x86_64.tar.bz2.sha256``).
"""

import logging
import re
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from ..core.config import T2Config
from ..core.platform import SDK_ARCH

logger = logging.getLogger(__name__)

SDK = "sdk"
RUSTLIB = "rustlib"
TARGET = "target"

# Wrapper directories the published archives put around their content
SDK_STRIP_COMPONENTS = 2
RUSTLIB_STRIP_COMPONENTS = 0

_CHECKSUM_LINE = re.compile(r"^([0-9a-fA-F]+)[ \t]+\*?(\S.*?)\s*$")


@dataclass(frozen=True)
class Artifact:
    """
    One downloadable, checksummed toolchain component.

    Attributes:
        kind: 'sdk', 'rustlib' or 'target'
        url: Source URL of the artifact body
        checksum_url: URL of the ``sha256sum`` sidecar
        install_root: Directory the artifact is installed into
        codec: 'bz2' or 'gzip' for tarballs, None for a plain file
        strip_components: Leading path segments dropped during extraction
        version: Compiler version the artifact is keyed by (rustlib only)
    """

    kind: str
    url: str
    checksum_url: str
    install_root: Path
    codec: Optional[str] = None
    strip_components: int = 0
    version: Optional[str] = None

    @property
    def filename(self) -> str:
        """Basename of the source URL."""
        return self.url.rstrip("/").rsplit("/", 1)[-1]

    @property
    def record_path(self) -> Path:
        """Location of the installed component record."""
        suffix = self.checksum_url[len(self.url):]
        return self.install_root / f"{self.filename}{suffix}"

    @property
    def is_archive(self) -> bool:
        return self.codec is not None

    def __str__(self) -> str:
        if self.version:
            return f"{self.kind} {self.version}"
        return self.kind


def sdk_artifact(config: T2Config) -> Artifact:
    """The host SDK bundle holding the cross toolchain."""
    url = f"{config.base_url}/t2-sdk-{config.platform_key}-{SDK_ARCH}.tar.bz2"
    return Artifact(
        kind=SDK,
        url=url,
        checksum_url=url + config.checksum_suffix,
        install_root=config.sdk_dir,
        codec="bz2",
        strip_components=SDK_STRIP_COMPONENTS,
    )


def rustlib_artifact(config: T2Config, rust_version: str) -> Artifact:
    """The target standard library built for ``rust_version``."""
    url = f"{config.base_url}/t2-rustlib-{rust_version}.tar.gz"
    return Artifact(
        kind=RUSTLIB,
        url=url,
        checksum_url=url + config.checksum_suffix,
        install_root=config.rustlib_root / rust_version,
        codec="gzip",
        strip_components=RUSTLIB_STRIP_COMPONENTS,
        version=rust_version,
    )


def target_artifact(config: T2Config) -> Artifact:
    """The rustc target description file."""
    url = f"{config.base_url}/{config.target_file.name}"
    return Artifact(
        kind=TARGET,
        url=url,
        checksum_url=url + config.checksum_suffix,
        install_root=config.target_root,
    )


def toolchain_artifacts(config: T2Config, rust_version: str) -> List[Artifact]:
    """All artifacts needed to build for the target, in install order."""
    return [
        sdk_artifact(config),
        rustlib_artifact(config, rust_version),
        target_artifact(config),
    ]


# ============================================================================
# Checksum Lines
# ============================================================================


def format_checksum_line(digest: str, filename: str) -> str:
    """
    Format a digest the way ``sha256sum`` prints it.

    Example:
        >>> format_checksum_line("abc123", "archive.tar.bz2")
        'abc123  archive.tar.bz2\\n'
    """
    return f"{digest}  {filename}\n"


def parse_checksum_line(text: str) -> Tuple[str, str]:
    """
    Parse the first line of a ``sha256sum`` file.

    Supports ``hash  filename`` and ``hash *filename``.

    Returns:
        Tuple of (lowercase hex digest, filename)

    Raises:
        ValueError: If the text is not a checksum line
    """
    line = text.strip().splitlines()[0] if text.strip() else ""
    match = _CHECKSUM_LINE.match(line)
    if not match:
        raise ValueError(f"Not a checksum line: {text[:80]!r}")
    return match.group(1).lower(), match.group(2)


def checksums_match(actual: str, expected: str) -> bool:
    """
    Compare two checksum lines.

    Digests are compared case-insensitively in constant time; file names
    must be identical.
    """
    try:
        actual_digest, actual_name = parse_checksum_line(actual)
        expected_digest, expected_name = parse_checksum_line(expected)
    except ValueError:
        return False

    return (
        secrets.compare_digest(actual_digest, expected_digest)
        and actual_name == expected_name
    )


def read_record(artifact: Artifact) -> Optional[str]:
    """
    Read the installed component record of an artifact.

    Returns:
        Record text, or None when the artifact is not installed
    """
    try:
        return artifact.record_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning(f"Could not read install record {artifact.record_path}: {e}")
        return None


__all__ = [
    "SDK",
    "RUSTLIB",
    "TARGET",
    "Artifact",
    "sdk_artifact",
    "rustlib_artifact",
    "target_artifact",
    "toolchain_artifacts",
    "format_checksum_line",
    "parse_checksum_line",
    "checksums_match",
    "read_record",
]
