"""Unix socket connection management for coordinator channels."""

import asyncio
import contextlib
import logging
import os

from searchlink.adapters.ipc.timeouts import IpcTimeouts
from searchlink.domain.exceptions import (
    ConnectionFailed,
    ConnectionRefused,
    ConnectionTimeout,
    IpcStage,
    UnexpectedClosure,
)

logger = logging.getLogger(__name__)


class Channel:
    """An open, bidirectional Unix socket stream to the coordinator.

    Wraps the asyncio reader/writer pair returned by
    ``asyncio.open_unix_connection`` together with the address it was opened
    against.
    """

    def __init__(
        self,
        address: str,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ):
        self.address = address
        self._reader = reader
        self._writer = writer
        self._closed = False
        self._peer_closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed or self._peer_closed or self._writer.is_closing()

    async def write_line(self, data: bytes) -> None:
        """Write one encoded message and wait until it is flushed.

        Raises:
            OSError: If the transport fails
        """
        if self.is_closed:
            raise ConnectionResetError(f"Channel {self.address} is closed")
        self._writer.write(data)
        await self._writer.drain()

    async def read_message(self, stage: IpcStage) -> bytes:
        """Read one newline-terminated message (newline stripped).

        A peer that closes after sending an unterminated message still yields
        what it sent. Bytes after the first newline are dropped with a warning,
        since only one reply is outstanding per channel.

        Raises:
            UnexpectedClosure: If the peer closes before sending anything
        """
        buffer = b""
        while b"\n" not in buffer:
            chunk = await self._reader.read(IpcTimeouts.READ_CHUNK)
            if not chunk:
                self._peer_closed = True
                if buffer:
                    return buffer
                raise UnexpectedClosure(
                    f"Socket {self.address} closed unexpectedly", stage=stage
                )
            buffer += chunk

        message, _, rest = buffer.partition(b"\n")
        if rest.strip():
            logger.warning(
                f"Discarding {len(rest)} bytes received after reply on {self.address}"
            )
        return message

    def close(self) -> None:
        """Close the underlying socket. Safe to call more than once.

        Raises:
            OSError: If closing the transport fails
        """
        if self._closed:
            return
        self._closed = True
        self._writer.close()

    def __repr__(self) -> str:
        state = "closed" if self.is_closed else "open"
        return f"Channel({self.address!r}, {state})"


async def connect_socket(
    address: str | os.PathLike,
    timeout: float = IpcTimeouts.CONNECT,
    stage: IpcStage = IpcStage.CONNECT,
) -> Channel:
    """Open a Unix socket connection with a bounded wait.

    Whichever of timeout and transport error happens first wins; on either
    path the half-open socket is released before the error propagates.

    Args:
        address: Filesystem path of the Unix socket
        timeout: Seconds to wait for the connection to complete
        stage: Stage reported on failure (the reply channel is opened while
            allocating)

    Returns:
        Connected channel

    Raises:
        ConnectionTimeout: If the connection does not complete in time
        ConnectionRefused: If nothing is listening on the socket
        ConnectionFailed: For any other transport error (missing socket file,
            permissions, path too long, ...)
    """
    path = os.fspath(address)
    logger.debug(f"Connecting to socket {path}")
    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_unix_connection(path), timeout=timeout
        )
    except asyncio.TimeoutError as e:
        raise ConnectionTimeout(
            f"Connection timeout to socket {path}",
            stage=stage,
            cause=e,
        ) from e
    except ConnectionRefusedError as e:
        raise ConnectionRefused(
            f"Failed to connect to socket {path}: {e}",
            stage=stage,
            cause=e,
        ) from e
    except OSError as e:
        raise ConnectionFailed(
            f"Failed to connect to socket {path}: {e}",
            stage=stage,
            cause=e,
        ) from e

    logger.debug(f"Connected to socket {path}")
    return Channel(path, reader, writer)


def close_quietly(channel: Channel | None) -> None:
    """Close a channel on an error path, ignoring close failures."""
    if channel is None:
        return
    with contextlib.suppress(OSError, RuntimeError):
        channel.close()
