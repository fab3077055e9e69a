"""In-process stand-in for the workspace search coordinator.

Speaks the coordinator side of the protocol: accepts connections on the
request socket, answers alloc_pid on that same connection, creates the
private reply socket for the allocated pid, and answers request_grep on the
reply connection.

Use ``async with FakeCoordinator(...)`` inside a test's event loop, or
``CoordinatorThread`` when the code under test runs its own loop (the CLI).
"""

import asyncio
import contextlib
import functools
import inspect
import json
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from searchlink.adapters.ipc.protocol import AllocateSession, decode_request

REQUEST_SOCKET_NAME = "mem_search_service_requests.sock"
RESPONSE_SOCKET_PREFIX = "qwen_code_response_"

# Sentinels a search handler can return
CLOSE_REPLY = object()
NO_REPLY = object()

SearchHandler = Callable[[dict[str, Any]], Any]


def echo_handler(message: dict[str, Any]) -> dict[str, Any]:
    """Reply with a successful result naming the pattern and paths."""
    paths = ",".join(message["paths"])
    return {"response_status": 1, "text": f"{paths}:1:{message['pattern']}\n"}


class FakeCoordinator:
    """Minimal coordinator for one workspace.

    Args:
        workspace: Directory holding the sockets.
        allocate_status: response_status sent for alloc_pid.
        create_reply_socket: Whether allocation creates the reply socket.
        search_handler: Maps a request_grep message (wire dict) to a reply,
            or to an awaitable of one for late replies. A dict is sent as
            JSON, bytes are sent raw, CLOSE_REPLY closes the reply
            connection, NO_REPLY sends nothing.
    """

    def __init__(
        self,
        workspace: Path,
        allocate_status: int = 1,
        create_reply_socket: bool = True,
        search_handler: SearchHandler = echo_handler,
    ):
        self.workspace = Path(workspace)
        self.allocate_status = allocate_status
        self.create_reply_socket = create_reply_socket
        self.search_handler = search_handler

        self.requests: list[dict[str, Any]] = []
        self._servers: list[asyncio.AbstractServer] = []
        self._writers: list[asyncio.StreamWriter] = []
        self._reply_servers: dict[int, asyncio.AbstractServer] = {}
        self._reply_writers: dict[int, asyncio.Future] = {}

    @property
    def request_socket_path(self) -> Path:
        return self.workspace / REQUEST_SOCKET_NAME

    def response_socket_path(self, pid: int) -> Path:
        return self.workspace / f"{RESPONSE_SOCKET_PREFIX}{pid}.sock"

    async def start(self) -> None:
        server = await asyncio.start_unix_server(
            self._handle_requests, path=str(self.request_socket_path)
        )
        self._servers.append(server)

    async def stop(self) -> None:
        for writer in self._writers:
            writer.close()
        for server in self._servers:
            server.close()
        for server in self._servers:
            with contextlib.suppress(Exception):
                await asyncio.wait_for(server.wait_closed(), timeout=1.0)
        for path in self.workspace.glob("*.sock"):
            with contextlib.suppress(FileNotFoundError):
                os.unlink(path)

    async def __aenter__(self) -> "FakeCoordinator":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    async def _handle_requests(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        self._writers.append(writer)
        while line := await reader.readline():
            request = decode_request(line)
            self.requests.append(request.to_dict())
            if isinstance(request, AllocateSession):
                await self._allocate(request.pid, writer)
            else:
                await self._search(request.to_dict())

    async def _allocate(self, pid: int, writer: asyncio.StreamWriter) -> None:
        if self.allocate_status and self.create_reply_socket:
            # A reconnecting client gets a fresh future; the reply socket is reused
            self._reply_writers[pid] = asyncio.get_running_loop().create_future()
            if pid not in self._reply_servers:
                server = await asyncio.start_unix_server(
                    functools.partial(self._on_reply_connection, pid),
                    path=str(self.response_socket_path(pid)),
                )
                self._reply_servers[pid] = server
                self._servers.append(server)

        writer.write((json.dumps({"response_status": self.allocate_status}) + "\n").encode())
        await writer.drain()

    def _on_reply_connection(
        self, pid: int, _reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        self._writers.append(writer)
        ready = self._reply_writers[pid]
        if not ready.done():
            ready.set_result(writer)

    async def _search(self, message: dict[str, Any]) -> None:
        reply_writer = await self._reply_writers[message["pid"]]
        reply = self.search_handler(message)
        if inspect.isawaitable(reply):
            reply = await reply
        if reply is NO_REPLY:
            return
        if reply is CLOSE_REPLY:
            reply_writer.close()
            return
        if isinstance(reply, bytes):
            reply_writer.write(reply)
        else:
            reply_writer.write((json.dumps(reply) + "\n").encode())
        # The client may have given up and closed its end
        with contextlib.suppress(ConnectionError):
            await reply_writer.drain()


class CoordinatorThread:
    """Runs a FakeCoordinator on its own event loop in a background thread."""

    def __init__(self, workspace: Path, **kwargs: Any):
        self.coordinator = FakeCoordinator(workspace, **kwargs)
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)

    def __enter__(self) -> FakeCoordinator:
        self._thread.start()
        asyncio.run_coroutine_threadsafe(self.coordinator.start(), self._loop).result(5)
        return self.coordinator

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        asyncio.run_coroutine_threadsafe(self.coordinator.stop(), self._loop).result(5)
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(5)
        self._loop.close()
