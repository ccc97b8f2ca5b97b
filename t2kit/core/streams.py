"""
Composable byte-stream transforms for the install pipeline.

Every stage takes an iterable of ``bytes`` chunks and yields ``bytes`` chunks,
so stages chain like shell pipes and can be tested with in-memory lists:

    chunks = response.iter_content(8192)
    chunks = hash_chunks(chunks, hasher)
    chunks = decompress(chunks, "bz2")
    chunks = rechunk(chunks, 64 * 1024)
    tar_stream = ChunkStream(chunks)

``ChunkStream`` adapts the final iterator to the file-like ``read()`` interface
that ``tarfile`` consumes. Nothing is read until the extractor pulls, so the
download, checksum and decompression advance together.
"""

import bz2
import hashlib
import io
import logging
import zlib
from typing import Iterable, Iterator

from .exceptions import DecodeError

logger = logging.getLogger(__name__)

SUPPORTED_CODECS = ("bz2", "gzip")


class StreamingHasher:
    """Compute hash incrementally for streaming downloads."""

    def __init__(self, algorithm: str = "sha256"):
        """
        Initialize streaming hasher.

        Args:
            algorithm: Hash algorithm ('sha256', 'sha512')

        Raises:
            ValueError: If algorithm is not supported
        """
        self.algorithm = algorithm.lower()

        if self.algorithm == "sha256":
            self.hasher = hashlib.sha256()
        elif self.algorithm == "sha512":
            self.hasher = hashlib.sha512()
        else:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")

        self.bytes_hashed = 0

    def update(self, data: bytes):
        """Add data to hash computation."""
        self.hasher.update(data)
        self.bytes_hashed += len(data)

    def finalize(self) -> str:
        """Get final hash value as hex string."""
        return self.hasher.hexdigest()


def hash_chunks(chunks: Iterable[bytes], hasher: StreamingHasher) -> Iterator[bytes]:
    """Pass chunks through unchanged while feeding them to ``hasher``."""
    for chunk in chunks:
        hasher.update(chunk)
        yield chunk


def _new_decompressor(codec: str):
    if codec == "bz2":
        return bz2.BZ2Decompressor()
    elif codec == "gzip":
        # 16 + MAX_WBITS: expect a gzip header and trailer
        return zlib.decompressobj(16 + zlib.MAX_WBITS)
    raise ValueError(
        f"Unsupported codec: {codec}. Supported: {', '.join(SUPPORTED_CODECS)}"
    )


def decompress(chunks: Iterable[bytes], codec: str) -> Iterator[bytes]:
    """
    Decompress a bz2 or gzip byte stream.

    Concatenated streams (as written by ``pbzip2`` or ``cat a.gz b.gz``) are
    decoded back to back. Once one stream has completed, anything after the
    last complete stream that fails to decode, or stops partway, is ignored.
    Empty output chunks are not yielded.

    Args:
        chunks: Compressed input chunks
        codec: 'bz2' or 'gzip'

    Yields:
        Decompressed chunks

    Raises:
        ValueError: If codec is not supported
        DecodeError: If the input is malformed or ends mid-stream
    """
    decompressor = _new_decompressor(codec)
    started = False  # current decompressor has been fed input
    completed = 0  # streams decoded to their end marker
    ignoring = False

    for chunk in chunks:
        data = chunk
        while data and not ignoring:
            started = True
            try:
                out = decompressor.decompress(data)
            except (OSError, EOFError, zlib.error) as e:
                if completed:
                    # Padding or garbage after a complete stream
                    logger.debug(f"Ignoring trailing data after {codec} stream: {e}")
                    ignoring = True
                    break
                raise DecodeError(f"Malformed {codec} stream: {e}") from e
            if out:
                yield out

            if not decompressor.eof:
                break
            completed += 1
            data = decompressor.unused_data
            decompressor = _new_decompressor(codec)
            started = False

    if started and not ignoring and not decompressor.eof:
        if not completed:
            raise DecodeError(f"Truncated {codec} stream: unexpected end of input")
        logger.debug(f"Ignoring partial {codec} stream after complete data")


def rechunk(chunks: Iterable[bytes], block_size: int) -> Iterator[bytes]:
    """
    Re-emit a stream as fixed-size blocks.

    Every block has exactly ``block_size`` bytes except possibly the last one,
    which carries whatever is left over. No zero padding is added.

    Args:
        chunks: Input chunks of any size
        block_size: Size of emitted blocks in bytes

    Yields:
        Blocks of ``block_size`` bytes, then a final short block if needed
    """
    if block_size <= 0:
        raise ValueError(f"block_size must be positive, got {block_size}")

    buffer = bytearray()
    for chunk in chunks:
        buffer += chunk
        while len(buffer) >= block_size:
            yield bytes(buffer[:block_size])
            del buffer[:block_size]

    if buffer:
        yield bytes(buffer)


class ChunkStream(io.RawIOBase):
    """Read-only file object over an iterator of byte chunks."""

    def __init__(self, chunks: Iterable[bytes]):
        self._chunks = iter(chunks)
        self._buffer = b""

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        while not self._buffer:
            try:
                self._buffer = next(self._chunks)
            except StopIteration:
                return 0

        n = min(len(b), len(self._buffer))
        b[:n] = self._buffer[:n]
        self._buffer = self._buffer[n:]
        return n

    def drain(self) -> int:
        """
        Consume whatever the reader left unread.

        ``tarfile`` stops at the end-of-archive marker, but upstream stages
        (checksum, decompression) must still see every byte.

        Returns:
            Number of bytes discarded
        """
        discarded = len(self._buffer)
        self._buffer = b""
        for chunk in self._chunks:
            discarded += len(chunk)
        if discarded:
            logger.debug(f"Drained {discarded} trailing bytes")
        return discarded


__all__ = [
    "SUPPORTED_CODECS",
    "StreamingHasher",
    "hash_chunks",
    "decompress",
    "rechunk",
    "ChunkStream",
]
