"""YAML configuration for t2kit.

All install roots and tool names live in a single ``T2Config`` value that the
CLI builds once at startup and hands to every component. Tests point it at a
temporary directory instead of ``~/.tessel``.

Example ``~/.tessel/t2kit.yaml``::

    base_url: https://builds.tessel.io/t2/sdk
    platform: linux
    block_size: 65536
    cargo: /opt/rust/bin/cargo
"""

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigError
from .platform import SUPPORTED_PLATFORMS, sdk_platform_key

logger = logging.getLogger(__name__)

DEFAULT_HOME = Path.home() / ".tessel"
DEFAULT_BASE_URL = "https://builds.tessel.io/t2/sdk"
CONFIG_FILENAME = "t2kit.yaml"


@dataclass(frozen=True)
class T2Config:
    """Complete t2kit configuration."""

    home: Path = DEFAULT_HOME
    platform: Optional[str] = None  # 'macos', 'linux'; detected when unset
    base_url: str = DEFAULT_BASE_URL
    checksum_suffix: str = ".sha256"
    target_name: str = "tessel2"
    block_size: int = 64 * 1024
    rustc: str = "rustc"
    cargo: str = "cargo"
    timeout: int = 30
    lock_timeout: int = 300

    @property
    def platform_key(self) -> str:
        """SDK platform key, detected from the host when not configured."""
        return self.platform or sdk_platform_key()

    @property
    def sdk_root(self) -> Path:
        return self.home / "sdk"

    @property
    def sdk_dir(self) -> Path:
        """Install root of the SDK for the configured platform."""
        return self.sdk_root / self.platform_key

    @property
    def rust_root(self) -> Path:
        return self.home / "rust"

    @property
    def rustlib_root(self) -> Path:
        return self.rust_root / "rustlib"

    @property
    def target_root(self) -> Path:
        """Directory holding the target description file."""
        return self.rust_root / "target"

    @property
    def target_file(self) -> Path:
        return self.target_root / f"{self.target_name}.json"

    @property
    def lock_path(self) -> Path:
        return self.home / ".t2kit.lock"


_PATH_FIELDS = {"home"}
_INT_FIELDS = {"block_size", "timeout", "lock_timeout"}


def load_config(config_file: Optional[Path] = None, **overrides) -> T2Config:
    """
    Build the configuration from defaults, a YAML file and explicit overrides.

    Later sources win: defaults, then the YAML file, then ``overrides`` whose
    value is not None. When ``config_file`` is None, ``<home>/t2kit.yaml`` is
    read if it exists.

    Args:
        config_file: Optional path to a YAML configuration file
        **overrides: Field values taken from the command line

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the file is missing, unparsable or invalid
    """
    overrides = {k: v for k, v in overrides.items() if v is not None}

    if config_file is None:
        home = Path(overrides.get("home", DEFAULT_HOME)).expanduser()
        candidate = home / CONFIG_FILENAME
        data = _read_yaml(candidate) if candidate.exists() else {}
    else:
        config_file = Path(config_file)
        if not config_file.exists():
            raise ConfigError(f"Configuration file not found: {config_file}")
        data = _read_yaml(config_file)

    data.update(overrides)
    return _parse_and_validate(data)


def _read_yaml(config_file: Path) -> Dict[str, Any]:
    logger.debug(f"Loading configuration from {config_file}")
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file} must contain a mapping")
    return data


def _parse_and_validate(data: Dict[str, Any]) -> T2Config:
    known = {f.name for f in fields(T2Config)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key in _PATH_FIELDS:
            values[key] = Path(value).expanduser()
        elif key in _INT_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"'{key}' must be a positive integer, got {value!r}")
            values[key] = value
        else:
            if not isinstance(value, str) or not value:
                raise ConfigError(f"'{key}' must be a non-empty string, got {value!r}")
            if key == "platform" and value not in SUPPORTED_PLATFORMS:
                raise ConfigError(
                    f"'platform' must be one of {', '.join(SUPPORTED_PLATFORMS)}, "
                    f"got {value!r}"
                )
            values[key] = value

    config = replace(T2Config(), **values)
    logger.debug(f"Configuration: {config}")
    return config


__all__ = ["T2Config", "load_config", "DEFAULT_HOME", "DEFAULT_BASE_URL"]
