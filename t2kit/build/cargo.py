"""
Cargo package metadata and binary selection.

Builds are done one binary at a time, so when a package declares several
``[[bin]]`` targets the user must pick one with ``--bin``.
"""

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.exceptions import AmbiguousOutputError, BuildToolError, NoOutputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildOutput:
    """A binary target declared by a cargo package."""

    name: str
    package: str
    src_path: Optional[str] = None


def query_metadata(
    cargo: str, project_root: Path, timeout: int = 120
) -> Dict[str, Any]:
    """
    Run ``cargo metadata`` for the package in ``project_root``.

    Raises:
        BuildToolError: If cargo is missing, fails, or prints invalid JSON
    """
    cmd = [cargo, "metadata", "--no-deps", "--format-version", "1"]
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            cwd=project_root,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise BuildToolError(
            f"Could not find '{cargo}'. Install Rust (https://rustup.rs) "
            "or set 'cargo' in t2kit.yaml."
        ) from e
    except (subprocess.TimeoutExpired, OSError) as e:
        raise BuildToolError(f"Failed to run cargo metadata: {e}") from e

    if result.returncode != 0:
        raise BuildToolError(
            f"cargo metadata failed with exit code {result.returncode}:\n"
            f"{result.stderr.strip()}"
        )

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise BuildToolError(f"cargo metadata printed invalid JSON: {e}") from e


def binary_outputs(
    metadata: Dict[str, Any], manifest_path: Optional[Path] = None
) -> List[BuildOutput]:
    """
    List binary targets from ``cargo metadata`` output.

    Args:
        metadata: Parsed ``cargo metadata`` JSON
        manifest_path: If given and one package has this manifest, only that
            package's binaries are listed; otherwise all packages are used

    Returns:
        Binary outputs in declaration order
    """
    packages = metadata.get("packages") or []

    if manifest_path is not None:
        wanted = str(Path(manifest_path).resolve())
        own = [
            p
            for p in packages
            if p.get("manifest_path")
            and str(Path(p["manifest_path"]).resolve()) == wanted
        ]
        if own:
            packages = own

    outputs = []
    for package in packages:
        for target in package.get("targets") or []:
            if "bin" in (target.get("kind") or []):
                outputs.append(
                    BuildOutput(
                        name=target["name"],
                        package=package.get("name", ""),
                        src_path=target.get("src_path"),
                    )
                )
    return outputs


def select_binary(
    outputs: List[BuildOutput], name: Optional[str] = None
) -> BuildOutput:
    """
    Pick the single binary to build.

    Args:
        outputs: Candidate binaries
        name: Value of ``--bin``, if given

    Raises:
        NoOutputError: If there are no binaries, or none named ``name``
        AmbiguousOutputError: If several binaries exist and ``name`` is None
    """
    names = {o.name for o in outputs}

    if name is not None:
        matches = [o for o in outputs if o.name == name]
        if not matches:
            raise NoOutputError(f"No binary target named '{name}'.", names)
        if len(matches) > 1:
            raise AmbiguousOutputError(
                f"Several packages declare a binary named '{name}'.", names
            )
        return matches[0]

    if not outputs:
        raise NoOutputError("This package has no binary targets to build.", names)
    if len(outputs) > 1:
        raise AmbiguousOutputError(
            "This package has several binary targets; choose one with --bin.", names
        )
    return outputs[0]


__all__ = ["BuildOutput", "query_metadata", "binary_outputs", "select_binary"]
