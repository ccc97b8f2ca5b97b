"""
Unit tests for the build launcher.
"""

import os
from unittest.mock import MagicMock, patch

import pytest

from t2kit.build.cargo import BuildOutput
from t2kit.build.launcher import BuildLauncher, build_environment
from t2kit.core.exceptions import (
    AmbiguousOutputError,
    BuildToolError,
    ComponentsMissingError,
)
from t2kit.toolchain.locator import ToolchainLocator


def metadata(project_root, *bins):
    return {
        "packages": [
            {
                "name": "blinky",
                "manifest_path": str(project_root / "Cargo.toml"),
                "targets": [{"name": b, "kind": ["bin"]} for b in bins],
            }
        ]
    }


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "blinky"
    root.mkdir()
    (root / "Cargo.toml").write_text('[package]\nname = "blinky"\n')
    return root


@pytest.fixture
def toolchain(installed_toolchain):
    return ToolchainLocator(installed_toolchain).resolve("1.12.0")


class TestBuildEnvironment:
    """Test build_environment function."""

    def test_sets_toolchain_variables(self, installed_toolchain, toolchain):
        config = installed_toolchain

        env = build_environment(toolchain, {"PATH": "/usr/bin", "HOME": "/home/me"})

        assert env["STAGING_DIR"] == str(config.sdk_dir)
        assert env["RUST_TARGET_PATH"] == str(config.target_root)
        assert env["RUSTFLAGS"] == f"-L {config.rustlib_root / '1.12.0'}"
        assert env["PATH"] == f"{toolchain.bin_dir}{os.pathsep}/usr/bin"
        assert env["HOME"] == "/home/me"

    def test_existing_rustflags_kept(self, toolchain):
        env = build_environment(toolchain, {"RUSTFLAGS": "-C opt-level=s"})

        assert env["RUSTFLAGS"] == f"-L {toolchain.rustlib_dir} -C opt-level=s"

    def test_empty_path(self, toolchain):
        env = build_environment(toolchain, {})

        assert env["PATH"] == str(toolchain.bin_dir)

    def test_base_env_not_modified(self, toolchain):
        base = {"PATH": "/bin"}

        build_environment(toolchain, base)

        assert base == {"PATH": "/bin"}

    def test_defaults_to_process_environment(self, toolchain, monkeypatch):
        monkeypatch.setenv("T2KIT_TEST_MARKER", "1")

        assert build_environment(toolchain)["T2KIT_TEST_MARKER"] == "1"


class TestBuildLauncher:
    """Test BuildLauncher class."""

    def test_build_command(self, config, project):
        launcher = BuildLauncher(config, project)
        output = BuildOutput("blinky", "blinky")

        assert launcher.build_command(output) == [
            "cargo",
            "build",
            "--target=tessel2",
            "--bin",
            "blinky",
        ]
        assert launcher.build_command(output, release=True)[-1] == "--release"

    def _run(self, launcher, project, bins, returncode=0, **kwargs):
        with patch(
            "t2kit.build.launcher.detect_rustc_version", return_value="1.12.0"
        ), patch(
            "t2kit.build.launcher.query_metadata",
            return_value=metadata(project, *bins),
        ), patch(
            "subprocess.run", return_value=MagicMock(returncode=returncode)
        ) as run:
            code = launcher.run(**kwargs)
        return code, run

    def test_run_single_binary(self, installed_toolchain, project):
        launcher = BuildLauncher(installed_toolchain, project)

        code, run = self._run(launcher, project, ["blinky"], release=True)

        assert code == 0
        cmd = run.call_args.args[0]
        assert cmd == [
            "cargo",
            "build",
            "--target=tessel2",
            "--bin",
            "blinky",
            "--release",
        ]
        assert run.call_args.kwargs["cwd"] == project
        env = run.call_args.kwargs["env"]
        assert env["STAGING_DIR"] == str(installed_toolchain.sdk_dir)

    def test_run_requires_bin_when_ambiguous(self, installed_toolchain, project):
        launcher = BuildLauncher(installed_toolchain, project)

        with pytest.raises(AmbiguousOutputError, match="Valid --bin values: a, b"):
            self._run(launcher, project, ["a", "b"])

    def test_run_named_binary(self, installed_toolchain, project):
        launcher = BuildLauncher(installed_toolchain, project)

        code, run = self._run(launcher, project, ["a", "b"], bin_name="a")

        assert code == 0
        assert run.call_args.args[0][3:5] == ["--bin", "a"]

    def test_exit_code_propagated(self, installed_toolchain, project):
        launcher = BuildLauncher(installed_toolchain, project)

        code, _ = self._run(launcher, project, ["blinky"], returncode=101)

        assert code == 101

    def test_signal_exit_code(self, installed_toolchain, project):
        launcher = BuildLauncher(installed_toolchain, project)

        code, _ = self._run(launcher, project, ["blinky"], returncode=-2)

        assert code == 130

    def test_missing_components_checked_before_cargo(self, config, project):
        launcher = BuildLauncher(config, project)

        with pytest.raises(ComponentsMissingError) as exc:
            self._run(launcher, project, ["blinky"])

        assert exc.value.missing == ["sdk", "rustlib", "target"]

    def test_cargo_not_found(self, installed_toolchain, project):
        launcher = BuildLauncher(installed_toolchain, project)

        with patch(
            "t2kit.build.launcher.detect_rustc_version", return_value="1.12.0"
        ), patch(
            "t2kit.build.launcher.query_metadata",
            return_value=metadata(project, "blinky"),
        ), patch(
            "subprocess.run", side_effect=FileNotFoundError()
        ):
            with pytest.raises(BuildToolError, match="Could not find 'cargo'"):
                launcher.run()
