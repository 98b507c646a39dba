from __future__ import annotations

from typing import List, Optional


class GridRateLimitError(RuntimeError):
    def __init__(self, message: str, retry_after_s: Optional[float] = None) -> None:
        super().__init__(message)
        self.retry_after_s = retry_after_s


class TeamNotFoundError(LookupError):
    """No team in the GRID directory matched a user-supplied name."""

    def __init__(self, which: str, query: str, suggestions: Optional[List[str]] = None) -> None:
        label = "Your team" if which == "our" else "Opponent team"
        super().__init__(f"{label} not found: {query}")
        self.which = which
        self.query = query
        self.suggestions = suggestions or []
