"""Configuration I/O utilities for reading and writing TOML config files.

This module handles serialization/deserialization of SearchLinkConfig to/from
TOML format.
"""

import os
import platform
import tomllib
from pathlib import Path
from typing import Any

import tomli_w

from searchlink.domain.config import (
    DEFAULT_REQUEST_SOCKET_NAME,
    DEFAULT_RESPONSE_SOCKET_PREFIX,
    SearchLinkConfig,
)

LOCAL_CONFIG_DIR = ".searchlink"
CONFIG_FILE_NAME = "config.toml"


def get_global_config_path() -> Path:
    """Get the path to the global config file.

    The location is platform-dependent:
    - Linux/macOS: $XDG_CONFIG_HOME/searchlink/config.toml or
      ~/.config/searchlink/config.toml
    - Windows: %APPDATA%/searchlink/config.toml

    Returns:
        Path to the global config file (may not exist)
    """
    if platform.system() == "Windows":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "searchlink" / CONFIG_FILE_NAME
        return Path.home() / ".config" / "searchlink" / CONFIG_FILE_NAME

    xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg_config:
        return Path(xdg_config) / "searchlink" / CONFIG_FILE_NAME
    return Path.home() / ".config" / "searchlink" / CONFIG_FILE_NAME


def get_local_config_path(workspace: Path) -> Path:
    """Get the workspace-local config path (may not exist)."""
    return Path(workspace) / LOCAL_CONFIG_DIR / CONFIG_FILE_NAME


def load_config_data(path: Path) -> dict[str, Any]:
    """Load raw TOML data from a config file.

    Args:
        path: Path to config.toml file

    Returns:
        Dictionary with parsed TOML data

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in config file: {e}") from e


def config_to_data(config: SearchLinkConfig) -> dict[str, Any]:
    """Convert a SearchLinkConfig into plain TOML-serializable data."""
    return {
        "ipc": {
            "request_socket_name": config.ipc.request_socket_name,
            "response_socket_prefix": config.ipc.response_socket_prefix,
            "connect_timeout": config.ipc.connect_timeout,
            "reply_timeout": config.ipc.reply_timeout,
        },
        "fallback": {
            "enabled": config.fallback.enabled,
            "rg_command": config.fallback.rg_command,
        },
    }


def load_config(path: Path) -> SearchLinkConfig:
    """Load configuration from a single TOML file over the defaults.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is malformed or fails validation
    """
    return SearchLinkConfig.from_partial(
        SearchLinkConfig.default(), load_config_data(path)
    )


def save_config(config: SearchLinkConfig, path: Path) -> None:
    """Save configuration to a TOML file.

    Args:
        config: SearchLinkConfig to save
        path: Destination path for config.toml
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        tomli_w.dump(config_to_data(config), f)


def create_default_config_file(path: Path) -> None:
    """Create a default config.toml file with sensible defaults and comments.

    Args:
        path: Destination path for config.toml
    """
    template = f"""\
# searchlink configuration
# Created by: searchlink config init

[ipc]
# Shared request socket, relative to the workspace directory
request_socket_name = "{DEFAULT_REQUEST_SOCKET_NAME}"

# Private reply socket prefix; "<pid>.sock" is appended
response_socket_prefix = "{DEFAULT_RESPONSE_SOCKET_PREFIX}"

# Seconds to wait for a socket connection
connect_timeout = 5.0

# Seconds to wait for a coordinator reply (0 = wait indefinitely)
reply_timeout = 0.0

[fallback]
# Run ripgrep directly when the coordinator is unavailable
enabled = true

# ripgrep executable
rg_command = "rg"
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template, encoding="utf-8")
