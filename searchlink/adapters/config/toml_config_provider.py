"""TOML-based configuration provider.

Loads configuration from <workspace>/.searchlink/config.toml with global
config fallback.

Config loading priority (highest to lowest):
1. Local: <workspace>/.searchlink/config.toml (workspace-specific)
2. Global: ~/.config/searchlink/config.toml (user defaults)
3. Built-in defaults
"""

import logging
from pathlib import Path

from searchlink.domain.config import SearchLinkConfig
from searchlink.shared.config_io import (
    get_global_config_path,
    get_local_config_path,
    load_config_data,
)

logger = logging.getLogger(__name__)


class TomlConfigProvider:
    """Configuration provider that loads from TOML files.

    Implements config cascade:
    1. Load global config if present
    2. Load workspace config if present
    3. Workspace values override global values (key-level merge)
    4. Missing values fall back to built-in defaults

    Gracefully handles missing or invalid configs with warnings.
    """

    def load(self, workspace: Path) -> SearchLinkConfig:
        """Load configuration with global fallback.

        Args:
            workspace: Workspace directory whose .searchlink/config.toml
                is consulted

        Returns:
            SearchLinkConfig instance with merged global/local values or defaults
        """
        config = SearchLinkConfig.default()

        for label, path in (
            ("global", get_global_config_path()),
            ("local", get_local_config_path(workspace)),
        ):
            if not path.exists():
                continue
            try:
                data = load_config_data(path)
                config = SearchLinkConfig.from_partial(config, data)
                logger.debug("Loaded %s config from %s", label, path)
            except (FileNotFoundError, ValueError, TypeError) as e:
                logger.warning(
                    "Failed to parse %s config at %s: %s. Ignoring it.",
                    label,
                    path,
                    e,
                )

        return config
