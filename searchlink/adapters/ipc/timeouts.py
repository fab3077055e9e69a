"""Centralized timeout configuration for coordinator IPC.

All values are in seconds. Per-workspace overrides live in the [ipc] config
section; these are the built-in defaults.
"""


class IpcTimeouts:
    """Timeouts for talking to the search coordinator.

    Groups:
        CONNECT: Socket connection establishment
        REPLY: Waiting for an allocation or search reply
    """

    CONNECT: float = 5.0
    """Bound on establishing a Unix socket connection.

    Applies to both the shared request socket and the private reply socket.
    A connection that has not completed in this time is abandoned and its
    socket released.
    """

    REPLY: float | None = None
    """Bound on waiting for a coordinator reply.

    None waits indefinitely: a hung coordinator stalls the caller. Set
    ``reply_timeout`` in the [ipc] config section to bound it.
    """

    READ_CHUNK: int = 65536
    """Maximum bytes read for one reply chunk."""
