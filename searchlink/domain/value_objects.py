"""Domain value objects with validation.

Value objects that provide validation at construction time,
ensuring invalid states are unrepresentable.
"""

from dataclasses import dataclass, fields
from typing import Any


@dataclass(frozen=True)
class SearchOptions:
    """Recognized search flags, passed through to the search backend as-is.

    Unset (None) fields are not sent.

    Attributes:
        line_number: Show line numbers.
        no_heading: Print the file name on every matching line.
        with_filename: Show file names.
        ignore_case: Case-insensitive matching.
        regexp: Pattern to use instead of the positional one (``rg -e``).
        glob: Single include/exclude glob.
        globs: Additional include/exclude globs.
        threads: Number of search threads.

    Raises:
        ValueError: If threads is set and not positive.
    """

    line_number: bool | None = None
    no_heading: bool | None = None
    with_filename: bool | None = None
    ignore_case: bool | None = None
    regexp: str | None = None
    glob: str | None = None
    globs: list[str] | None = None
    threads: int | None = None

    def __post_init__(self) -> None:
        if self.threads is not None and self.threads < 1:
            raise ValueError(f"threads must be positive, got {self.threads}")

    def to_dict(self) -> dict[str, Any]:
        """Wire form, omitting unset fields."""
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                data[f.name] = list(value) if f.name == "globs" else value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchOptions":
        """Build options from wire data, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
