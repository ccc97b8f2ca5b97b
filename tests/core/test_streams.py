"""
Unit tests for streams module.

Tests the hash, decompress, rechunk and file-adapter pipeline stages with
in-memory chunk lists.
"""

import bz2
import gzip
import hashlib
import random

import pytest

from t2kit.core.exceptions import DecodeError
from t2kit.core.streams import (
    ChunkStream,
    StreamingHasher,
    decompress,
    hash_chunks,
    rechunk,
)
from tests.fixtures.archives import split_chunks


class TestStreamingHasher:
    """Test StreamingHasher class."""

    def test_create_sha256_hasher(self):
        hasher = StreamingHasher("sha256")
        assert hasher.algorithm == "sha256"

    def test_create_sha512_hasher(self):
        hasher = StreamingHasher("SHA512")
        assert hasher.algorithm == "sha512"

    def test_unsupported_algorithm(self):
        """Test unsupported algorithm raises ValueError."""
        with pytest.raises(ValueError, match="Unsupported hash algorithm"):
            StreamingHasher("md5")

    def test_update_and_finalize(self):
        hasher = StreamingHasher("sha256")
        hasher.update(b"hello ")
        hasher.update(b"world")

        assert hasher.finalize() == hashlib.sha256(b"hello world").hexdigest()
        assert hasher.bytes_hashed == 11


class TestHashChunks:
    """Test hash_chunks pass-through stage."""

    def test_passes_chunks_unchanged(self):
        hasher = StreamingHasher()
        chunks = [b"abc", b"", b"defg"]

        assert list(hash_chunks(chunks, hasher)) == chunks
        assert hasher.finalize() == hashlib.sha256(b"abcdefg").hexdigest()

    def test_is_lazy(self):
        """Nothing is hashed until the consumer pulls."""
        hasher = StreamingHasher()
        stage = hash_chunks([b"data"], hasher)

        assert hasher.bytes_hashed == 0
        next(stage)
        assert hasher.bytes_hashed == 4


class TestDecompress:
    """Test decompress stage."""

    PAYLOAD = b"tessel " * 5000

    @pytest.mark.parametrize(
        "codec,compress",
        [("bz2", bz2.compress), ("gzip", gzip.compress)],
    )
    def test_decompress_in_small_chunks(self, codec, compress):
        chunks = split_chunks(compress(self.PAYLOAD), 7)

        assert b"".join(decompress(chunks, codec)) == self.PAYLOAD

    @pytest.mark.parametrize(
        "codec,compress",
        [("bz2", bz2.compress), ("gzip", gzip.compress)],
    )
    def test_concatenated_streams(self, codec, compress):
        data = compress(b"first ") + compress(b"second")

        assert b"".join(decompress([data], codec)) == b"first second"

    def test_empty_output_chunks_not_yielded(self):
        chunks = split_chunks(bz2.compress(self.PAYLOAD), 3)

        assert all(out for out in decompress(chunks, "bz2"))

    def test_trailing_garbage_after_stream_ignored(self):
        data = gzip.compress(b"payload") + b"\x00" * 100

        assert b"".join(decompress([data], "gzip")) == b"payload"

    @pytest.mark.parametrize(
        "codec,compress,partial",
        [("bz2", bz2.compress, b"BZ"), ("gzip", gzip.compress, b"\x1f")],
    )
    def test_partial_stream_after_complete_stream_ignored(
        self, codec, compress, partial
    ):
        data = compress(b"payload") + partial

        assert b"".join(decompress([data], codec)) == b"payload"

    @pytest.mark.parametrize("codec", ["bz2", "gzip"])
    def test_malformed_input(self, codec):
        with pytest.raises(DecodeError, match="Malformed"):
            list(decompress([b"this is not compressed at all"], codec))

    @pytest.mark.parametrize(
        "codec,compress",
        [("bz2", bz2.compress), ("gzip", gzip.compress)],
    )
    def test_truncated_input(self, codec, compress):
        data = compress(self.PAYLOAD)

        with pytest.raises(DecodeError, match="Truncated"):
            list(decompress([data[: len(data) // 2]], codec))

    def test_empty_input_yields_nothing(self):
        assert list(decompress([], "bz2")) == []

    def test_unsupported_codec(self):
        with pytest.raises(ValueError, match="Unsupported codec"):
            list(decompress([b"x"], "xz"))


class TestRechunk:
    """Test rechunk stage."""

    def test_exact_blocks_then_short_tail(self):
        chunks = [b"abc", b"defgh", b"ij"]

        assert list(rechunk(chunks, 4)) == [b"abcd", b"efgh", b"ij"]

    def test_no_padding_when_aligned(self):
        assert list(rechunk([b"abcdefgh"], 4)) == [b"abcd", b"efgh"]

    def test_large_input_chunk_is_split(self):
        blocks = list(rechunk([b"x" * 10], 3))

        assert [len(b) for b in blocks] == [3, 3, 3, 1]

    def test_empty_input(self):
        assert list(rechunk([], 64)) == []
        assert list(rechunk([b"", b""], 64)) == []

    def test_default_block_size(self):
        data = b"y" * (64 * 1024 * 2 + 5)
        blocks = list(rechunk(split_chunks(data, 1000), 64 * 1024))

        assert [len(b) for b in blocks] == [65536, 65536, 5]

    @pytest.mark.parametrize("seed", range(20))
    def test_random_input_preserved(self, seed):
        rng = random.Random(seed)
        block_size = rng.randint(1, 700)
        chunks = [
            bytes(rng.getrandbits(8) for _ in range(rng.randint(0, 1500)))
            for _ in range(rng.randint(0, 12))
        ]

        blocks = list(rechunk(chunks, block_size))

        assert b"".join(blocks) == b"".join(chunks)
        assert all(len(b) == block_size for b in blocks[:-1])
        if blocks:
            assert 0 < len(blocks[-1]) <= block_size

    @pytest.mark.parametrize("block_size", [0, -1])
    def test_invalid_block_size(self, block_size):
        with pytest.raises(ValueError, match="block_size"):
            list(rechunk([b"x"], block_size))


class TestChunkStream:
    """Test ChunkStream file adapter."""

    def test_read_all(self):
        stream = ChunkStream([b"ab", b"", b"cde"])

        assert stream.read() == b"abcde"
        assert stream.read() == b""

    def test_read_sized(self):
        stream = ChunkStream([b"abcdef"])

        assert stream.read(4) == b"abcd"
        assert stream.read(4) == b"ef"
        assert stream.read(4) == b""

    def test_readable(self):
        assert ChunkStream([]).readable() is True

    def test_drain_consumes_rest(self):
        consumed = []

        def source():
            for chunk in (b"1234", b"5678", b"90"):
                consumed.append(chunk)
                yield chunk

        stream = ChunkStream(source())
        assert stream.read(2) == b"12"

        assert stream.drain() == 8
        assert consumed == [b"1234", b"5678", b"90"]

    def test_drain_propagates_upstream_errors(self):
        def source():
            yield b"ok"
            raise DecodeError("Truncated bz2 stream")

        stream = ChunkStream(source())
        stream.read(2)

        with pytest.raises(DecodeError):
            stream.drain()
