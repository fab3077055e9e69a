"""Search port interfaces.

A search backend turns a pattern, a list of paths and search flags into the
text a grep-like tool would print. The coordinator-backed client and direct
ripgrep execution both fit this shape.
"""

from typing import Protocol

from searchlink.domain.value_objects import SearchOptions


class SearchBackend(Protocol):
    """Synchronous text search interface."""

    def search(
        self,
        pattern: str,
        paths: list[str],
        options: SearchOptions | None = None,
    ) -> str:
        """Run a search.

        Args:
            pattern: Pattern to search for.
            paths: Files or directories to search.
            options: Optional search flags.

        Returns:
            Search output text; empty when nothing matched.

        Raises:
            SearchFailed: If the search itself fails.
        """
        ...
