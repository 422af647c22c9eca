"""Error kinds raised by the board core."""

from __future__ import annotations


class BoardError(Exception):
    """Base class for all board errors."""


class ValidationError(BoardError):
    """Raised when caller input violates a submission or update constraint."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFound(BoardError):
    """Raised when a referenced suggestion or comment does not exist."""

    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind.capitalize()} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id


class Conflict(BoardError):
    """Raised when a concurrent write collides with a unique constraint."""


class StoreUnavailable(BoardError):
    """Raised when the underlying store cannot complete an operation."""
