"""Synchronous search backend on top of the async IPC client.

Host code that is not itself async (the CLI, for instance) uses this adapter.
It keeps one event loop alive for its lifetime, since client channels are
bound to the loop they were opened on.
"""

import asyncio
import logging
import os

from searchlink.adapters.ipc.registry import ClientRegistry
from searchlink.domain.value_objects import SearchOptions

logger = logging.getLogger(__name__)


class CoordinatorSearch:
    """SearchBackend that delegates to the workspace search coordinator."""

    def __init__(self, workspace: str | os.PathLike, registry: ClientRegistry):
        """Initialize the backend.

        Args:
            workspace: Workspace whose coordinator handles the searches
            registry: Registry owning the client session
        """
        self.workspace = os.fspath(workspace)
        self.registry = registry
        self._runner: asyncio.Runner | None = None

    def search(
        self,
        pattern: str,
        paths: list[str],
        options: SearchOptions | None = None,
    ) -> str:
        """Initialize the session if needed and run one search.

        Raises:
            IpcError: If the coordinator is unavailable or the search fails
        """
        if self._runner is None:
            self._runner = asyncio.Runner()
        return self._runner.run(self._search(pattern, paths, options))

    async def _search(
        self, pattern: str, paths: list[str], options: SearchOptions | None
    ) -> str:
        client = self.registry.get(self.workspace)
        await client.initialize()
        return await client.request_search(pattern, paths, options)

    def close(self) -> None:
        """Close the session and the event loop."""
        self.registry.cleanup_all()
        if self._runner is not None:
            self._runner.close()
            self._runner = None

    def __enter__(self) -> "CoordinatorSearch":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
