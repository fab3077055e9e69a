"""CLI error handling with actionable hints.

Provides consistent error formatting for all searchlink CLI commands.
"""

from typing import NoReturn

import click


class SearchLinkCliError(click.ClickException):
    """CLI error with actionable hint for users.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.

    Example:
        raise SearchLinkCliError(
            "Workspace not found: /nope",
            hint="Pass an existing directory with --workspace",
        )
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    def format_message(self) -> str:
        """Format the error message with hint if present."""
        msg = self.message
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg


def workspace_not_found_error(path: str) -> NoReturn:
    """Raise error when the workspace directory does not exist.

    Raises:
        SearchLinkCliError: Always raises with workspace hint.
    """
    raise SearchLinkCliError(
        f"Workspace not found: {path}",
        hint="Pass an existing directory with --workspace",
    )
