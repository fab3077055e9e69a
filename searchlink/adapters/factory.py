"""Factory classes for adapter and use case instantiation.

Keeps the CLI layer free from direct adapter imports. Factories import lazily
so that commands only load what they use.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from searchlink.adapters.config.toml_config_provider import TomlConfigProvider
    from searchlink.adapters.ipc.client import SearchClient
    from searchlink.adapters.ipc.registry import ClientRegistry
    from searchlink.adapters.ipc.sync_backend import CoordinatorSearch
    from searchlink.core.search_usecase import SearchUseCase
    from searchlink.domain.config import SearchLinkConfig


class ConfigFactory:
    """Factory for creating configuration-related instances."""

    def create_config_provider(self) -> TomlConfigProvider:
        """Create a TomlConfigProvider instance."""
        from searchlink.adapters.config.toml_config_provider import TomlConfigProvider

        return TomlConfigProvider()


class ClientFactory:
    """Factory for IPC client sessions configured per workspace.

    Args:
        config_provider: Provider used to load the workspace config
            (default: TomlConfigProvider).
    """

    def __init__(self, config_provider: TomlConfigProvider | None = None) -> None:
        self._config_provider = config_provider or ConfigFactory().create_config_provider()

    def create_client(self, workspace_path: str | os.PathLike) -> SearchClient:
        """Create an uninitialized session using the workspace's [ipc] config."""
        from searchlink.adapters.ipc.client import SearchClient

        config = self._config_provider.load(Path(workspace_path))
        return SearchClient(workspace_path, config=config.ipc)


class UseCaseFactory:
    """Factory for wiring the search use case."""

    def create_coordinator_search(
        self, workspace: Path, registry: ClientRegistry
    ) -> CoordinatorSearch:
        from searchlink.adapters.ipc.sync_backend import CoordinatorSearch

        return CoordinatorSearch(workspace, registry)

    def create_search_usecase(
        self,
        workspace: Path,
        config: SearchLinkConfig,
        coordinator: CoordinatorSearch,
        allow_fallback: bool = True,
    ) -> SearchUseCase:
        """Create a SearchUseCase.

        Args:
            workspace: Workspace directory searches run in.
            config: Loaded configuration.
            coordinator: Coordinator-backed search backend.
            allow_fallback: Permit direct execution (still subject to
                [fallback] enabled).

        Returns:
            Configured SearchUseCase.
        """
        from searchlink.adapters.ripgrep.direct import DirectRipgrepSearch
        from searchlink.core.search_usecase import SearchUseCase

        fallback = None
        if allow_fallback and config.fallback.enabled:
            fallback = DirectRipgrepSearch(workspace, rg_command=config.fallback.rg_command)
        return SearchUseCase(coordinator=coordinator, fallback=fallback)
