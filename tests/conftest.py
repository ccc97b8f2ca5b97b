"""
Pytest configuration and shared fixtures for t2kit tests.
"""

from pathlib import Path

import pytest

from t2kit.core.config import T2Config
from t2kit.core.platform import clear_platform_cache
from tests.fixtures.archives import BASE_URL


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def t2_home(tmp_path: Path) -> Path:
    """Isolated install root standing in for ~/.tessel."""
    home = tmp_path / ".tessel"
    home.mkdir()
    return home


@pytest.fixture
def config(t2_home: Path) -> T2Config:
    """Configuration pointing at the isolated home and a fake build host."""
    return T2Config(home=t2_home, platform="linux", base_url=BASE_URL, timeout=5)


@pytest.fixture
def installed_toolchain(config: T2Config) -> T2Config:
    """Lay out a complete toolchain for rustc 1.12.0 on disk."""
    bin_dir = config.sdk_dir / "toolchain-mipsel_24kc_gcc-5.4.0_musl-1.1.16" / "bin"
    bin_dir.mkdir(parents=True)
    (config.rustlib_root / "1.12.0").mkdir(parents=True)
    config.target_root.mkdir(parents=True)
    config.target_file.write_text("{}")
    return config


@pytest.fixture(autouse=True)
def _reset_platform_cache():
    """Platform detection is cached per process; tests patch it freely."""
    clear_platform_cache()
    yield
    clear_platform_cache()
