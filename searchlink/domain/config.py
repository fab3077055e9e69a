"""Config domain models for searchlink.

Configuration is stored in <workspace>/.searchlink/config.toml (with a global
fallback) and describes how the client reaches the search coordinator and
whether direct execution may be used when it is unavailable.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any

DEFAULT_REQUEST_SOCKET_NAME = "mem_search_service_requests.sock"
DEFAULT_RESPONSE_SOCKET_PREFIX = "qwen_code_response_"


def _validate_socket_name(label: str, value: str) -> None:
    if not value:
        raise ValueError(f"{label} cannot be empty")
    if "/" in value or "\\" in value:
        raise ValueError(f"{label} must be a bare file name, got {value!r}")


@dataclass(frozen=True)
class IpcConfig:
    """Configuration for the coordinator channel.

    Attributes:
        request_socket_name: File name of the shared request socket inside the
            workspace directory.
        response_socket_prefix: Prefix of the private reply socket; the caller's
            pid and ".sock" are appended.
        connect_timeout: Seconds to wait for a socket connection to complete.
        reply_timeout: Seconds to wait for an allocation or search reply.
            0 waits indefinitely.

    Raises:
        ValueError: If a socket name is empty or contains a path separator,
                   connect_timeout is not positive, or reply_timeout is negative.
    """

    request_socket_name: str = DEFAULT_REQUEST_SOCKET_NAME
    response_socket_prefix: str = DEFAULT_RESPONSE_SOCKET_PREFIX
    connect_timeout: float = 5.0
    reply_timeout: float = 0.0

    def __post_init__(self) -> None:
        """Validate IPC config after initialization."""
        _validate_socket_name("request_socket_name", self.request_socket_name)
        _validate_socket_name("response_socket_prefix", self.response_socket_prefix)
        if self.connect_timeout <= 0:
            raise ValueError(
                f"connect_timeout must be positive, got {self.connect_timeout}"
            )
        if self.reply_timeout < 0:
            raise ValueError(
                f"reply_timeout cannot be negative, got {self.reply_timeout}"
            )

    @property
    def reply_timeout_or_none(self) -> float | None:
        """Reply timeout suitable for asyncio.wait_for (None = unbounded)."""
        return self.reply_timeout or None


@dataclass(frozen=True)
class FallbackConfig:
    """Configuration for direct execution when the coordinator is unavailable.

    Attributes:
        enabled: Run the search directly if the IPC client fails.
        rg_command: ripgrep executable used for direct execution.
    """

    enabled: bool = True
    rg_command: str = "rg"

    def __post_init__(self) -> None:
        if not self.rg_command:
            raise ValueError("rg_command cannot be empty")


@dataclass(frozen=True)
class SearchLinkConfig:
    """Complete searchlink configuration.

    Attributes:
        ipc: Coordinator channel configuration
        fallback: Direct-execution fallback configuration
    """

    ipc: IpcConfig = field(default_factory=IpcConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)

    @staticmethod
    def default() -> "SearchLinkConfig":
        """Create a config with all default values."""
        return SearchLinkConfig(ipc=IpcConfig(), fallback=FallbackConfig())

    @staticmethod
    def from_partial(
        base: "SearchLinkConfig", data: dict[str, Any]
    ) -> "SearchLinkConfig":
        """Overlay raw config data onto an existing config.

        Only keys present in ``data`` change; unknown sections and keys are
        ignored. Each section is re-validated after the merge.

        Args:
            base: Config to start from
            data: Parsed TOML data (section -> key -> value)

        Returns:
            New SearchLinkConfig with overrides applied

        Raises:
            ValueError: If a merged section fails validation or a section
                       is not a table.
        """
        sections = {}
        for name in ("ipc", "fallback"):
            section = getattr(base, name)
            overrides = data.get(name, {})
            if not isinstance(overrides, dict):
                raise ValueError(f"[{name}] must be a table")
            known = {f.name for f in fields(section)}
            sections[name] = replace(
                section, **{k: v for k, v in overrides.items() if k in known}
            )
        return SearchLinkConfig(**sections)
