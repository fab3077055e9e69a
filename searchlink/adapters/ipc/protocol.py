"""Newline-delimited JSON protocol spoken with the search coordinator.

Each message is one UTF-8 JSON object terminated by a newline. There is no
length prefix and no request id: a reply is correlated with its request by the
channel it arrives on.

Requests:
    {"type": "alloc_pid", "pid": int, "repo_dir_path": str}
    {"type": "request_grep", "pid": int, "pattern": str, "paths": [str],
     "options": {...}}            # options omitted when not given

Responses:
    {"response_status": 0|1}
    {"response_status": 0|1, "text": str}
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from searchlink.domain.exceptions import IpcStage, ProtocolParseError
from searchlink.domain.value_objects import SearchOptions

logger = logging.getLogger(__name__)

ALLOC_PID = "alloc_pid"
REQUEST_GREP = "request_grep"

STATUS_FAILURE = 0
STATUS_SUCCESS = 1


@dataclass(frozen=True)
class AllocateSession:
    """Ask the coordinator to create a reply channel for ``pid``."""

    pid: int
    repo_dir_path: str
    type: str = field(default=ALLOC_PID, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "pid": self.pid, "repo_dir_path": self.repo_dir_path}


@dataclass(frozen=True)
class SearchRequest:
    """Ask the coordinator to run a search and reply on the private channel."""

    pid: int
    pattern: str
    paths: list[str]
    options: SearchOptions | None = None
    type: str = field(default=REQUEST_GREP, init=False)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type,
            "pid": self.pid,
            "pattern": self.pattern,
            "paths": list(self.paths),
        }
        if self.options is not None:
            data["options"] = self.options.to_dict()
        return data


@dataclass(frozen=True)
class AllocateSessionResult:
    """Reply to AllocateSession."""

    response_status: int

    @property
    def ok(self) -> bool:
        return self.response_status != STATUS_FAILURE


@dataclass(frozen=True)
class SearchResult:
    """Reply to SearchRequest."""

    response_status: int
    text: str = ""

    @property
    def ok(self) -> bool:
        return self.response_status != STATUS_FAILURE


RequestMessage = Union[AllocateSession, SearchRequest]
ResponseMessage = Union[AllocateSessionResult, SearchResult]


def encode_message(message: RequestMessage) -> bytes:
    """Serialize a request to one newline-terminated UTF-8 JSON line."""
    return (json.dumps(message.to_dict()) + "\n").encode("utf-8")


def _load_object(line: bytes | str, stage: IpcStage) -> dict[str, Any]:
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolParseError(
                f"Failed to parse response: {e}", stage=stage, cause=e
            ) from e

    try:
        data = json.loads(line.strip())
    except json.JSONDecodeError as e:
        raise ProtocolParseError(
            f"Failed to parse response: {e}", stage=stage, cause=e
        ) from e

    if not isinstance(data, dict):
        raise ProtocolParseError(
            "Failed to parse response: message must be a JSON object", stage=stage
        )
    return data


def decode_request(line: bytes | str) -> RequestMessage:
    """Deserialize one request line.

    Raises:
        ProtocolParseError: If the line is not a known, well-formed request
    """
    data = _load_object(line, IpcStage.SEND_REQUEST)
    kind = data.get("type")
    try:
        if kind == ALLOC_PID:
            return AllocateSession(pid=data["pid"], repo_dir_path=data["repo_dir_path"])
        if kind == REQUEST_GREP:
            options = data.get("options")
            return SearchRequest(
                pid=data["pid"],
                pattern=data["pattern"],
                paths=list(data["paths"]),
                options=SearchOptions.from_dict(options) if options is not None else None,
            )
    except (KeyError, TypeError, ValueError) as e:
        raise ProtocolParseError(
            f"Malformed {kind} request: {e}", stage=IpcStage.SEND_REQUEST, cause=e
        ) from e
    raise ProtocolParseError(
        f"Unknown request type: {kind!r}", stage=IpcStage.SEND_REQUEST
    )


def decode_response(
    line: bytes | str,
    response_type: type[AllocateSessionResult] | type[SearchResult],
    stage: IpcStage = IpcStage.SEND_REQUEST,
) -> ResponseMessage:
    """Deserialize one reply line into ``response_type``.

    Args:
        line: Received chunk (with or without trailing newline)
        response_type: Expected reply class for the request that was sent
        stage: Stage reported on failure

    Raises:
        ProtocolParseError: If the chunk is not JSON, not an object, or lacks
            an integer ``response_status``
    """
    data = _load_object(line, stage)
    status = data.get("response_status")
    if not isinstance(status, int) or isinstance(status, bool):
        raise ProtocolParseError(
            f"Failed to parse response: invalid response_status {status!r}",
            stage=stage,
        )

    if response_type is AllocateSessionResult:
        return AllocateSessionResult(response_status=status)

    text = data.get("text", "")
    if not isinstance(text, str):
        raise ProtocolParseError(
            f"Failed to parse response: text must be a string, got {type(text).__name__}",
            stage=stage,
        )
    return SearchResult(response_status=status, text=text)


def response_type_for(request: RequestMessage) -> type[AllocateSessionResult] | type[SearchResult]:
    """Reply class expected for ``request``."""
    if isinstance(request, AllocateSession):
        return AllocateSessionResult
    return SearchResult


def split_messages(buffer: bytes | str) -> list[dict[str, Any]]:
    """Parse every complete line in ``buffer``, in order.

    Blank lines are skipped. Useful when a peer batches several messages into
    one read.

    Raises:
        ProtocolParseError: If any non-empty line is not a JSON object
    """
    if isinstance(buffer, bytes):
        buffer = buffer.decode("utf-8")
    messages = []
    for line in buffer.split("\n"):
        if line.strip():
            messages.append(_load_object(line, IpcStage.SEND_REQUEST))
    return messages
