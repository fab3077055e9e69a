"""Domain exceptions for searchlink.

Every failure the IPC client can report is an ``IpcError`` carrying a closed
``IpcErrorKind`` and the ``IpcStage`` it happened in, so callers can branch on
the kind (for example to fall back to direct execution) instead of matching
message substrings. Errors should be caught at the application boundary (CLI,
host application) and converted to user-facing messages there.
"""

from enum import Enum


class SearchLinkError(Exception):
    """Base exception for all searchlink errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class IpcErrorKind(Enum):
    """Kinds of failure surfaced by the IPC client."""

    CONNECTION_TIMEOUT = "connection_timeout"
    CONNECTION_REFUSED = "connection_refused"
    CONNECTION_ERROR = "connection_error"
    ALLOCATION_DENIED = "allocation_denied"
    PROTOCOL_PARSE_ERROR = "protocol_parse_error"
    UNEXPECTED_CLOSURE = "unexpected_closure"
    NOT_INITIALIZED = "not_initialized"
    SEARCH_FAILED = "search_failed"
    REPLY_TIMEOUT = "reply_timeout"


class IpcStage(Enum):
    """Stage of the client lifecycle an error originated from."""

    CONNECT = "connect"
    ALLOCATE = "allocate"
    SEND_REQUEST = "send-request"


class IpcError(SearchLinkError):
    """Failure talking to the search coordinator.

    Attributes:
        kind: What went wrong.
        stage: Where it went wrong (connect / allocate / send-request).
        cause: Underlying transport or parse exception, if any.
    """

    kind: IpcErrorKind = IpcErrorKind.CONNECTION_ERROR

    def __init__(
        self,
        message: str,
        *,
        stage: IpcStage,
        kind: IpcErrorKind | None = None,
        cause: BaseException | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        if kind is not None:
            self.kind = kind
        self.stage = stage
        self.cause = cause

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.message!r}, "
            f"kind={self.kind.value}, stage={self.stage.value})"
        )


class ConnectionTimeout(IpcError):
    """Socket connection did not complete within the bound."""

    kind = IpcErrorKind.CONNECTION_TIMEOUT


class ConnectionRefused(IpcError):
    """Nothing is accepting connections on the socket."""

    kind = IpcErrorKind.CONNECTION_REFUSED


class ConnectionFailed(IpcError):
    """Transport-level failure while connecting or writing."""

    kind = IpcErrorKind.CONNECTION_ERROR


class AllocationDenied(IpcError):
    """Coordinator rejected the session allocation."""

    kind = IpcErrorKind.ALLOCATION_DENIED


class ProtocolParseError(IpcError):
    """Reply was malformed or truncated."""

    kind = IpcErrorKind.PROTOCOL_PARSE_ERROR


class UnexpectedClosure(IpcError):
    """Peer closed the channel while a reply was awaited."""

    kind = IpcErrorKind.UNEXPECTED_CLOSURE


class NotInitialized(IpcError):
    """A search was requested before the session was ready."""

    kind = IpcErrorKind.NOT_INITIALIZED


class SearchFailed(IpcError):
    """Coordinator ran the search but reported a failure status."""

    kind = IpcErrorKind.SEARCH_FAILED


class ReplyTimeout(IpcError):
    """No reply arrived within the configured reply timeout."""

    kind = IpcErrorKind.REPLY_TIMEOUT


class ClientInitializationError(IpcError):
    """Wraps any failure raised while initializing a client session.

    The kind and stage are taken from the wrapped error so callers can still
    tell a refused connection from a denied allocation.
    """

    def __init__(self, inner: IpcError) -> None:
        super().__init__(
            f"Failed to initialize IPC client: {inner.message}",
            stage=inner.stage,
            kind=inner.kind,
            cause=inner,
            hint=inner.hint
            or "Is the search coordinator running for this workspace?",
        )
        self.inner = inner
