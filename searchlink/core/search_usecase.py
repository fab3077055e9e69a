"""Search use case with fallback to direct execution.

Tries the workspace search coordinator first. If the coordinator cannot be
used, the search runs directly instead, unless fallback is disabled.
"""

import logging
from dataclasses import dataclass
from typing import Literal

from searchlink.domain.exceptions import IpcError, IpcErrorKind
from searchlink.domain.value_objects import SearchOptions
from searchlink.ports.search import SearchBackend

logger = logging.getLogger(__name__)

# A search the coordinator ran and reported as failed would fail the same way
# when run directly.
NO_FALLBACK_KINDS = frozenset({IpcErrorKind.SEARCH_FAILED})


@dataclass(frozen=True)
class SearchResponse:
    """Outcome of a search.

    Attributes:
        text: Search output.
        via: Which backend produced it.
        fallback_reason: Why the coordinator was bypassed, if it was.
    """

    text: str
    via: Literal["ipc", "direct"]
    fallback_reason: str | None = None


class SearchUseCase:
    """Runs searches through the coordinator with an optional fallback."""

    def __init__(
        self,
        coordinator: SearchBackend,
        fallback: SearchBackend | None = None,
    ) -> None:
        """Initialize search use case.

        Args:
            coordinator: Coordinator-backed search.
            fallback: Direct search used when the coordinator fails, or None
                to propagate coordinator errors.
        """
        self.coordinator = coordinator
        self.fallback = fallback

    def execute(
        self,
        pattern: str,
        paths: list[str],
        options: SearchOptions | None = None,
    ) -> SearchResponse:
        """Run a search.

        Raises:
            IpcError: If the coordinator fails and no fallback applies
            SearchFailed: If the fallback search fails
        """
        try:
            text = self.coordinator.search(pattern, paths, options)
            return SearchResponse(text=text, via="ipc")
        except IpcError as e:
            if self.fallback is None or e.kind in NO_FALLBACK_KINDS:
                raise
            logger.warning(f"Coordinator search failed, running directly: {e.message}")
            reason = e.message

        text = self.fallback.search(pattern, paths, options)
        return SearchResponse(text=text, via="direct", fallback_reason=reason)
