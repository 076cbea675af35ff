from __future__ import annotations


class ActivityApiError(Exception):
    """Raised when the upstream activity API cannot serve a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
