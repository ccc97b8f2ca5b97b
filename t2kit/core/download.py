"""
HTTP access to the build host: checksum sidecars and streamed artifact bodies.

This module provides:
- Fetching small text resources (``<url>.sha256`` sidecar files)
- Streaming large artifact bodies chunk by chunk without touching disk
- Progress reporting (bytes, percentage, speed, ETA)
- Timeout handling

Failed requests are not retried: any transport error or non-2xx status is
raised as ``NetworkError`` and the install of that artifact is abandoned.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

import requests
from requests.exceptions import RequestException

from .exceptions import NetworkError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float  # estimated time remaining

    def __str__(self) -> str:
        """Format progress for display."""
        return format_progress(self)


def fetch_text(url: str, timeout: int = 30) -> str:
    """
    Fetch a small text resource.

    Args:
        url: URL to fetch
        timeout: Request timeout in seconds

    Returns:
        Response body decoded as text

    Raises:
        NetworkError: If the request fails or returns a non-success status

    Example:
        >>> fetch_text("https://builds.tessel.io/t2/sdk/tessel2.json.sha256")
        'e3b0c442...  tessel2.json\\n'
    """
    logger.debug(f"Fetching {url}")
    try:
        response = requests.get(url, timeout=timeout, allow_redirects=True)
    except RequestException as e:
        raise NetworkError(f"Failed to fetch {url}: {e}") from e

    if not response.ok:
        raise NetworkError(f"Failed to fetch {url}: HTTP {response.status_code}")

    return response.text


@contextmanager
def open_stream(
    url: str,
    timeout: int = 30,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
) -> Iterator[Iterator[bytes]]:
    """
    Open a streamed download.

    Yields an iterator of body chunks. The connection is released when the
    ``with`` block exits, whether or not the body was fully read.

    Args:
        url: URL to download
        timeout: Request timeout in seconds
        progress_callback: Optional callback for progress updates

    Raises:
        NetworkError: If the request fails, returns a non-success status,
            or the connection drops mid-body

    Example:
        >>> with open_stream(url) as chunks:
        ...     for chunk in chunks:
        ...         sink.write(chunk)
    """
    logger.info(f"Downloading from {url}")
    try:
        response = requests.get(url, stream=True, timeout=timeout, allow_redirects=True)
    except RequestException as e:
        raise NetworkError(f"Failed to download {url}: {e}") from e

    try:
        if not response.ok:
            raise NetworkError(
                f"Failed to download {url}: HTTP {response.status_code}"
            )

        content_length = response.headers.get("content-length")
        total_size = int(content_length) if content_length else 0

        yield _iter_body(response, url, total_size, progress_callback)
    finally:
        response.close()


def _iter_body(
    response: requests.Response,
    url: str,
    total_size: int,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
) -> Iterator[bytes]:
    """Yield body chunks, reporting progress at most every 0.5 seconds."""
    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    try:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue
            downloaded += len(chunk)
            yield chunk

            current_time = time.time()
            if progress_callback and (
                current_time - last_progress_time >= 0.5 or downloaded == total_size
            ):
                elapsed = current_time - start_time
                speed = downloaded / elapsed if elapsed > 0 else 0
                remaining = total_size - downloaded if total_size > 0 else 0
                eta = remaining / speed if speed > 0 else 0

                progress_callback(
                    DownloadProgress(
                        bytes_downloaded=downloaded,
                        total_bytes=total_size if total_size > 0 else downloaded,
                        percentage=(downloaded / total_size * 100)
                        if total_size > 0
                        else 0,
                        speed_bps=speed,
                        eta_seconds=eta,
                    )
                )
                last_progress_time = current_time
    except RequestException as e:
        raise NetworkError(f"Connection lost while downloading {url}: {e}") from e

    logger.debug(f"Received {downloaded} bytes from {url}")


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Args:
        progress: Download progress information

    Returns:
        Formatted progress string

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.percentage > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    else:
        # Unknown total size
        return f"{mb_downloaded:.1f} MB " f"at {speed_mbps:.1f} MB/s"


__all__ = [
    "DownloadProgress",
    "fetch_text",
    "open_stream",
    "format_progress",
]
