"""Pytest configuration and shared fixtures."""

import shutil
import tempfile
from pathlib import Path

import pytest

# ============================================================================
# Config Isolation
# ============================================================================
# Point the global config lookup at an empty directory so a developer's own
# ~/.config/searchlink/config.toml never changes test behavior.


@pytest.fixture(autouse=True)
def isolated_global_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect XDG_CONFIG_HOME to an empty per-test directory."""
    config_home = tmp_path / "xdg_config"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home / "searchlink" / "config.toml"


# ============================================================================
# Workspaces
# ============================================================================


@pytest.fixture
def workspace() -> Path:
    """Workspace directory for coordinator sockets.

    Uses a short base path under /tmp: AF_UNIX paths are limited to ~104
    characters on macOS (108 on Linux) and pytest's tmp_path can exceed that.
    """
    short_tmp = tempfile.mkdtemp(prefix="sl_", dir="/tmp")
    yield Path(short_tmp)
    shutil.rmtree(short_tmp, ignore_errors=True)


@pytest.fixture
def fixed_pid() -> int:
    """Caller pid used by clients under test."""
    return 12345
