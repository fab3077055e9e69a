"""IPC client for the workspace search coordinator.

This package lets a process delegate text searches to a separately running
coordinator over Unix sockets using newline-delimited JSON.

Architecture:
- protocol.py: wire messages and codec
- connector.py: bounded Unix socket connections
- client.py: client session (allocation handshake, request/reply correlation)
- registry.py: one session per process, shutdown hooks
- timeouts.py: default timeouts

The functions below are the integration points for host applications. They
share a default registry whose shutdown hooks are installed on first use.
"""

import os
from typing import Any

from searchlink.adapters.ipc.client import SearchClient, SessionState
from searchlink.adapters.ipc.registry import ClientRegistry
from searchlink.domain.value_objects import SearchOptions


def _create_configured_client(workspace_path: str) -> SearchClient:
    from searchlink.adapters.factory import ClientFactory

    return ClientFactory().create_client(workspace_path)


default_registry = ClientRegistry(client_factory=_create_configured_client)


def get_client(workspace_path: str | os.PathLike) -> SearchClient:
    """Get or create the session for a workspace."""
    default_registry.install_shutdown_hooks()
    return default_registry.get(workspace_path)


async def initialize_client(workspace_path: str | os.PathLike) -> None:
    """Initialize the session for a workspace.

    Raises:
        ClientInitializationError: If the coordinator cannot be reached or
            rejects the allocation
    """
    await get_client(workspace_path).initialize()


async def request_search(
    workspace_path: str | os.PathLike,
    pattern: str,
    paths: list[str],
    options: SearchOptions | dict[str, Any] | None = None,
) -> str:
    """Search via the coordinator, initializing the session if needed.

    Raises:
        ClientInitializationError: If the session cannot be initialized
        SearchFailed: If the coordinator reports a failed search
        IpcError: For transport or protocol failures
    """
    client = get_client(workspace_path)
    await client.initialize()
    return await client.request_search(pattern, paths, options)


def cleanup_client() -> None:
    """Close and forget the current session, if any."""
    default_registry.cleanup_all()


__all__ = [
    "ClientRegistry",
    "SearchClient",
    "SearchOptions",
    "SessionState",
    "cleanup_client",
    "default_registry",
    "get_client",
    "initialize_client",
    "request_search",
]
