"""Test helpers for t2kit tests.

- archives: In-memory tar builders and checksum lines

Import helpers in your tests using:
    from tests.fixtures.archives import build_tar, sha256_line
"""

__all__ = ["archives"]
