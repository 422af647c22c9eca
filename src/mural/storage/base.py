"""Abstract storage interface for Mural."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any


class StorageTransaction(ABC):
    """Row operations available inside one atomic storage transaction."""

    # --- Suggestion rows ---

    @abstractmethod
    async def get_suggestion(self, suggestion_id: str) -> dict[str, Any] | None:
        """Get a suggestion row by ID."""

    @abstractmethod
    async def insert_suggestion(self, suggestion: dict[str, Any]) -> dict[str, Any]:
        """Insert a suggestion row. Returns the inserted row."""

    @abstractmethod
    async def update_suggestion(self, suggestion_id: str, updates: dict[str, Any]) -> bool:
        """Update whitelisted suggestion columns. Returns True if a row changed."""

    @abstractmethod
    async def adjust_counter(
        self, suggestion_id: str, column: str, delta: int, updated_at: str
    ) -> int | None:
        """Atomically add delta to a counter column, floored at zero.

        Returns the new value, or None if the suggestion does not exist.
        """

    # --- Vote rows ---

    @abstractmethod
    async def get_vote(self, suggestion_id: str, user_email: str) -> dict[str, Any] | None:
        """Get the ledger row for a (suggestion, voter) pair."""

    @abstractmethod
    async def insert_vote(self, vote: dict[str, Any]) -> dict[str, Any]:
        """Insert a ledger row. Raises Conflict if the pair already exists."""

    @abstractmethod
    async def delete_vote(self, suggestion_id: str, user_email: str) -> bool:
        """Delete a ledger row. Returns True if found and deleted."""

    # --- Comment rows ---

    @abstractmethod
    async def insert_comment(self, comment: dict[str, Any]) -> dict[str, Any]:
        """Insert a comment row."""


class StorageBackend(ABC):
    """Abstract interface for Mural storage backends."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize database schema and connections."""

    @abstractmethod
    async def close(self) -> None:
        """Close all connections."""

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[StorageTransaction]:
        """Open a serialized write transaction. Rolls back if the body raises."""

    # --- Suggestion reads ---

    @abstractmethod
    async def get_suggestion(self, suggestion_id: str) -> dict[str, Any] | None:
        """Get a suggestion by ID. Returns None if not found."""

    @abstractmethod
    async def list_suggestions(self, *, include_private: bool = False) -> list[dict[str, Any]]:
        """List suggestions, public ones only unless include_private is set."""

    # --- Vote reads ---

    @abstractmethod
    async def get_vote(self, suggestion_id: str, user_email: str) -> dict[str, Any] | None:
        """Get the ledger row for a (suggestion, voter) pair."""

    @abstractmethod
    async def voted_suggestion_ids(self, user_email: str) -> set[str]:
        """IDs of every suggestion the voter currently has a vote on."""

    @abstractmethod
    async def count_votes(self, suggestion_id: str) -> int:
        """Count ledger rows for a suggestion."""

    # --- Comment reads ---

    @abstractmethod
    async def list_comments(self, suggestion_id: str) -> list[dict[str, Any]]:
        """List comments for a suggestion, oldest first."""

    @abstractmethod
    async def count_comments(self, suggestion_id: str) -> int:
        """Count comment rows for a suggestion."""

    # --- Stats ---

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Get board statistics."""
