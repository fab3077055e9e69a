"""Registry holding at most one client session per process.

The registry is keyed by workspace: asking for a different workspace replaces
the cached session. It can also install process shutdown hooks so sockets are
closed on normal exit and on SIGINT/SIGTERM.
"""

import atexit
import logging
import os
import signal
import sys
from collections.abc import Callable, Iterable

from searchlink.adapters.ipc.client import SearchClient

logger = logging.getLogger(__name__)

DEFAULT_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ClientRegistry:
    """Process-wide cache of the live SearchClient.

    Only the registry holds the authoritative reference to the session, so two
    independent sessions can never race to allocate the same reply socket.
    """

    def __init__(
        self,
        client_factory: Callable[[str], SearchClient] | None = None,
    ):
        """Create an empty registry.

        Args:
            client_factory: Builds a session for a workspace path
                (default: SearchClient with built-in config)
        """
        self._client_factory = client_factory or SearchClient
        self._client: SearchClient | None = None
        self._hooks_installed = False
        self._previous_handlers: dict[int, object] = {}

    @property
    def current(self) -> SearchClient | None:
        """Cached session, if any."""
        return self._client

    @property
    def hooks_installed(self) -> bool:
        return self._hooks_installed

    def get(self, workspace_path: str | os.PathLike) -> SearchClient:
        """Return the session for ``workspace_path``, creating it if needed.

        A cached session for another workspace is dropped without being
        cleaned up.
        """
        path = os.fspath(workspace_path)
        if self._client is None or self._client.workspace_path != path:
            if self._client is not None:
                logger.debug(
                    f"Replacing IPC session for {self._client.workspace_path} with {path}"
                )
            self._client = self._client_factory(path)
        return self._client

    def cleanup_all(self) -> None:
        """Clean up and forget the cached session. No-op if there is none."""
        if self._client is not None:
            self._client.cleanup()
            self._client = None

    def install_shutdown_hooks(
        self, signals: Iterable[int] = DEFAULT_SHUTDOWN_SIGNALS
    ) -> None:
        """Run cleanup_all() at interpreter exit and on the given signals.

        Installs at most once per registry. Existing signal handlers are
        chained, not replaced. Signal handlers can only be installed from the
        main thread; elsewhere only the exit hook is registered.
        """
        if self._hooks_installed:
            return

        atexit.register(self.cleanup_all)
        for sig in signals:
            try:
                previous = signal.getsignal(sig)
                signal.signal(sig, self._handle_signal)
            except ValueError as e:
                logger.debug(f"Cannot install handler for signal {sig}: {e}")
                continue
            self._previous_handlers[sig] = previous

        self._hooks_installed = True

    def uninstall_shutdown_hooks(self) -> None:
        """Undo install_shutdown_hooks(), restoring the previous handlers."""
        if not self._hooks_installed:
            return

        atexit.unregister(self.cleanup_all)
        for sig, previous in self._previous_handlers.items():
            try:
                signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
            except ValueError as e:
                logger.debug(f"Cannot restore handler for signal {sig}: {e}")
        self._previous_handlers.clear()
        self._hooks_installed = False

    def _handle_signal(self, signum, frame):
        logger.info(f"Received signal {signum}, closing IPC sockets")
        self.cleanup_all()

        previous = self._previous_handlers.get(signum)
        if callable(previous):
            previous(signum, frame)
        elif previous == signal.SIG_IGN:
            return
        elif signum == signal.SIGINT:
            raise KeyboardInterrupt
        else:
            sys.exit(128 + signum)
