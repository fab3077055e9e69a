"""Client session for delegating searches to the workspace search coordinator.

A session owns two Unix socket channels:

- the request channel, shared by every client of the workspace, on which all
  requests are written and the allocation reply is read;
- the private reply channel, created by the coordinator for this process's
  pid once allocation succeeds, on which search replies are read.

Callers that cannot initialize a session are expected to fall back to direct
execution themselves; the client never does.
"""

import asyncio
import logging
import os
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

from searchlink.adapters.ipc.connector import Channel, close_quietly, connect_socket
from searchlink.adapters.ipc.protocol import (
    AllocateSession,
    RequestMessage,
    ResponseMessage,
    SearchRequest,
    decode_response,
    encode_message,
    response_type_for,
)
from searchlink.domain.config import (
    DEFAULT_REQUEST_SOCKET_NAME,
    DEFAULT_RESPONSE_SOCKET_PREFIX,
    IpcConfig,
)
from searchlink.domain.exceptions import (
    AllocationDenied,
    ClientInitializationError,
    ConnectionFailed,
    IpcError,
    IpcStage,
    NotInitialized,
    ReplyTimeout,
    SearchFailed,
)
from searchlink.domain.value_objects import SearchOptions

logger = logging.getLogger(__name__)


def request_socket_path(
    workspace_path: str | os.PathLike,
    socket_name: str = DEFAULT_REQUEST_SOCKET_NAME,
) -> str:
    """Path of the workspace's shared request socket."""
    return os.path.join(os.fspath(workspace_path), socket_name)


def response_socket_path(
    workspace_path: str | os.PathLike,
    pid: int,
    prefix: str = DEFAULT_RESPONSE_SOCKET_PREFIX,
) -> str:
    """Path of the private reply socket the coordinator creates for ``pid``."""
    return os.path.join(os.fspath(workspace_path), f"{prefix}{pid}.sock")


class SessionState(Enum):
    """Lifecycle of a SearchClient."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    CLOSED = "closed"
    FAILED = "failed"


class SearchClient:
    """One process's session with the search coordinator of one workspace.

    Requests on a session are serialized: only one reply is ever outstanding
    per channel, so concurrent callers wait their turn instead of racing for
    the same read.

    Channels are bound to the event loop they were opened on. A session used
    from another loop (or after its loop closed) reports CLOSED and
    initialize() reconnects it on the current loop.
    """

    def __init__(
        self,
        workspace_path: str | os.PathLike,
        config: IpcConfig | None = None,
        pid_provider: Callable[[], int] = os.getpid,
    ):
        """Create an uninitialized session.

        Args:
            workspace_path: Workspace directory holding the coordinator sockets
            config: Socket names and timeouts (default: built-in defaults)
            pid_provider: Returns the caller identity sent to the coordinator
        """
        self.workspace_path = os.fspath(workspace_path)
        self.config = config or IpcConfig()
        self._pid_provider = pid_provider

        self._request_channel: Channel | None = None
        self._response_channel: Channel | None = None
        self._response_socket_path: str | None = None
        self._state = SessionState.UNINITIALIZED
        self._lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def state(self) -> SessionState:
        """Current lifecycle state.

        A ready session whose channels were closed by the coordinator, or
        whose event loop is gone or not the running one, reports CLOSED;
        initialize() reconnects it.
        """
        if self._state is SessionState.READY and (
            self._on_foreign_loop()
            or any(
                channel is None or channel.is_closed
                for channel in (self._request_channel, self._response_channel)
            )
        ):
            return SessionState.CLOSED
        return self._state

    def _on_foreign_loop(self) -> bool:
        if self._loop is None:
            return False
        if self._loop.is_closed():
            return True
        try:
            return asyncio.get_running_loop() is not self._loop
        except RuntimeError:
            return False

    @property
    def is_initialized(self) -> bool:
        return self.state is SessionState.READY

    @property
    def request_socket_path(self) -> str:
        return request_socket_path(self.workspace_path, self.config.request_socket_name)

    @property
    def response_socket_path(self) -> str | None:
        """Reply socket path, known once allocation has succeeded."""
        return self._response_socket_path

    async def initialize(self) -> None:
        """Connect to the coordinator and allocate a private reply channel.

        No-op if the session is already ready.

        Raises:
            ClientInitializationError: If connecting or allocating fails. Its
                kind and stage identify the failing step.
        """
        if self._on_foreign_loop():
            # Channels and lock belong to a loop that is gone or not running here
            self._lock = asyncio.Lock()
        async with self._lock:
            if self.state is SessionState.READY:
                return
            if self.state is SessionState.CLOSED:
                logger.debug("IPC session closed, reconnecting")
                self._release_channels()

            self._state = SessionState.INITIALIZING
            try:
                self._request_channel = await connect_socket(
                    self.request_socket_path,
                    timeout=self.config.connect_timeout,
                )
                await self._allocate_session()
            except IpcError as e:
                self._state = SessionState.FAILED
                self._release_channels()
                raise ClientInitializationError(e) from e

            self._state = SessionState.READY
            self._loop = asyncio.get_running_loop()
            logger.info(
                f"IPC session ready for {self.workspace_path} "
                f"(reply socket {self._response_socket_path})"
            )

    async def request_search(
        self,
        pattern: str,
        paths: Iterable[str],
        options: SearchOptions | dict[str, Any] | None = None,
    ) -> str:
        """Run a search through the coordinator.

        Args:
            pattern: Search pattern
            paths: Paths to search, relative to the workspace
            options: Search flags passed through to the coordinator

        Returns:
            Search output text

        Raises:
            NotInitialized: If the session is not ready
            SearchFailed: If the coordinator reports a failed search
            IpcError: If the request cannot be sent or the reply is lost or
                malformed
        """
        if self.state is not SessionState.READY:
            raise NotInitialized(
                "IPC client not initialized",
                stage=IpcStage.SEND_REQUEST,
                hint="Call initialize() before requesting a search",
            )

        if isinstance(options, dict):
            options = SearchOptions.from_dict(options)
        request = SearchRequest(
            pid=self._pid_provider(),
            pattern=pattern,
            paths=list(paths),
            options=options,
        )

        async with self._lock:
            response = await self._send_request(request, IpcStage.SEND_REQUEST)

        if not response.ok:
            raise SearchFailed("Grep request failed", stage=IpcStage.SEND_REQUEST)
        return response.text

    def cleanup(self) -> None:
        """Close both channels and reset to uninitialized.

        Safe to call repeatedly. Errors while closing are logged, never
        raised. The reply socket file belongs to the coordinator and is left
        in place.
        """
        for label, channel in (
            ("request", self._request_channel),
            ("response", self._response_channel),
        ):
            if channel is None:
                continue
            try:
                channel.close()
            except (OSError, RuntimeError) as e:
                # RuntimeError: the loop that owned the channel is already closed
                logger.warning(f"Error cleaning up {label} socket: {e}")

        self._request_channel = None
        self._response_channel = None
        self._response_socket_path = None
        self._state = SessionState.UNINITIALIZED

    def _release_channels(self) -> None:
        close_quietly(self._request_channel)
        close_quietly(self._response_channel)
        self._request_channel = None
        self._response_channel = None
        self._response_socket_path = None

    def _abandon_session(self) -> None:
        """Drop both channels after a reply was given up on.

        The coordinator may still answer the abandoned request; with the
        channels closed that reply can never be read as the next one.
        """
        self._release_channels()
        self._state = SessionState.CLOSED

    async def _allocate_session(self) -> None:
        """Allocate a reply channel for this process and connect to it.

        The coordinator only creates the reply socket after allocation, so it
        is not opened before a successful reply.

        Raises:
            AllocationDenied: If the coordinator rejects the allocation
            IpcError: If the exchange or the reply connection fails
        """
        pid = self._pid_provider()
        request = AllocateSession(pid=pid, repo_dir_path=self.workspace_path)
        logger.debug(f"Allocating session for pid {pid}")

        response = await self._send_request(request, IpcStage.ALLOCATE)
        if not response.ok:
            raise AllocationDenied(
                "Failed to allocate PID",
                stage=IpcStage.ALLOCATE,
                hint="The coordinator rejected this process; check its logs",
            )

        self._response_socket_path = response_socket_path(
            self.workspace_path, pid, self.config.response_socket_prefix
        )
        self._response_channel = await connect_socket(
            self._response_socket_path,
            timeout=self.config.connect_timeout,
            stage=IpcStage.ALLOCATE,
        )

    def _reply_channel_for(self, request: RequestMessage) -> Channel | None:
        # Allocation replies come back on the request channel itself
        if isinstance(request, AllocateSession):
            return self._request_channel
        return self._response_channel

    async def _send_request(
        self, request: RequestMessage, stage: IpcStage
    ) -> ResponseMessage:
        """Write one request and read exactly one reply.

        No retries; a failure here fails this call only.

        Raises:
            ConnectionFailed: If writing or reading hits a transport error
            UnexpectedClosure: If the reply channel closes first
            ProtocolParseError: If the reply is malformed
            ReplyTimeout: If a reply timeout is configured and expires
        """
        if self._request_channel is None:
            raise ConnectionFailed("Request socket not connected", stage=stage)
        reply_channel = self._reply_channel_for(request)
        if reply_channel is None:
            raise ConnectionFailed("Response socket not available", stage=stage)

        try:
            await self._request_channel.write_line(encode_message(request))
        except OSError as e:
            raise ConnectionFailed(
                f"Failed to send request: {e}", stage=stage, cause=e
            ) from e

        timeout = self.config.reply_timeout_or_none
        try:
            raw = await asyncio.wait_for(
                reply_channel.read_message(stage), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning(
                f"No reply on {reply_channel.address} within {timeout}s, closing session"
            )
            self._abandon_session()
            raise ReplyTimeout(
                f"No reply from coordinator within {timeout}s",
                stage=stage,
                cause=e,
            ) from e
        except asyncio.CancelledError:
            self._abandon_session()
            raise
        except OSError as e:
            raise ConnectionFailed(
                f"Error reading reply from {reply_channel.address}: {e}",
                stage=stage,
                cause=e,
            ) from e

        response = decode_response(raw, response_type_for(request), stage)
        logger.debug(f"Received {type(response).__name__} on {reply_channel.address}")
        return response
