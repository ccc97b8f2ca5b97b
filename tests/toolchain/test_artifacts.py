"""
Unit tests for toolchain artifact definitions and checksum lines.
"""

from dataclasses import replace

import pytest

from t2kit.toolchain.artifacts import (
    RUSTLIB,
    SDK,
    TARGET,
    checksums_match,
    format_checksum_line,
    parse_checksum_line,
    read_record,
    rustlib_artifact,
    sdk_artifact,
    target_artifact,
    toolchain_artifacts,
)
from tests.fixtures.archives import BASE_URL

DIGEST = "a" * 64


class TestArtifacts:
    """Test artifact factories."""

    def test_sdk_artifact(self, config):
        artifact = sdk_artifact(config)

        assert artifact.kind == SDK
        assert artifact.url == f"{BASE_URL}/t2-sdk-linux-x86_64.tar.bz2"
        assert artifact.checksum_url == artifact.url + ".sha256"
        assert artifact.install_root == config.home / "sdk" / "linux"
        assert artifact.codec == "bz2"
        assert artifact.strip_components == 2
        assert artifact.record_path == (
            config.sdk_dir / "t2-sdk-linux-x86_64.tar.bz2.sha256"
        )

    def test_sdk_artifact_macos(self, config):
        artifact = sdk_artifact(replace(config, platform="macos"))

        assert artifact.filename == "t2-sdk-macos-x86_64.tar.bz2"
        assert artifact.install_root.name == "macos"

    def test_rustlib_artifact(self, config):
        artifact = rustlib_artifact(config, "1.12.0")

        assert artifact.kind == RUSTLIB
        assert artifact.url == f"{BASE_URL}/t2-rustlib-1.12.0.tar.gz"
        assert artifact.install_root == config.home / "rust" / "rustlib" / "1.12.0"
        assert artifact.codec == "gzip"
        assert artifact.strip_components == 0
        assert str(artifact) == "rustlib 1.12.0"

    def test_target_artifact(self, config):
        artifact = target_artifact(config)

        assert artifact.kind == TARGET
        assert artifact.url == f"{BASE_URL}/tessel2.json"
        assert artifact.install_root == config.target_file.parent
        assert not artifact.is_archive
        assert artifact.record_path.name == "tessel2.json.sha256"

    def test_install_order(self, config):
        kinds = [a.kind for a in toolchain_artifacts(config, "1.12.0")]

        assert kinds == [SDK, RUSTLIB, TARGET]


class TestChecksumLines:
    """Test sha256sum-style line handling."""

    def test_format(self):
        assert format_checksum_line(DIGEST, "f.tar.gz") == f"{DIGEST}  f.tar.gz\n"

    @pytest.mark.parametrize(
        "text",
        [
            f"{DIGEST}  f.tar.gz\n",
            f"{DIGEST} *f.tar.gz",
            f"{DIGEST.upper()}  f.tar.gz  \n",
            f"{DIGEST}\tf.tar.gz\nsecond line ignored\n",
        ],
    )
    def test_parse(self, text):
        assert parse_checksum_line(text) == (DIGEST, "f.tar.gz")

    @pytest.mark.parametrize("text", ["", "\n", "not-hex  file", DIGEST])
    def test_parse_invalid(self, text):
        with pytest.raises(ValueError, match="Not a checksum line"):
            parse_checksum_line(text)

    def test_match_ignores_case_and_whitespace(self):
        assert checksums_match(
            f"{DIGEST}  f.tar.gz\n", f"{DIGEST.upper()}  f.tar.gz"
        )

    def test_mismatch_digest(self):
        assert not checksums_match(f"{DIGEST}  f", f"{'b' * 64}  f")

    def test_mismatch_filename(self):
        assert not checksums_match(f"{DIGEST}  a.tar.gz", f"{DIGEST}  b.tar.gz")

    def test_unparsable_never_matches(self):
        assert not checksums_match("garbage", "garbage")


class TestReadRecord:
    """Test installed record lookup."""

    def test_missing(self, config):
        assert read_record(target_artifact(config)) is None

    def test_present(self, config):
        artifact = target_artifact(config)
        artifact.record_path.parent.mkdir(parents=True)
        artifact.record_path.write_text(f"{DIGEST}  tessel2.json\n")

        assert read_record(artifact) == f"{DIGEST}  tessel2.json\n"
