"""Board Service.

Composes the suggestion store, vote ledger, comment thread and ranking engine
into the operations a client needs. It is also where store failures meet the
caller: reads are retried a few times, writes run to completion even if the
caller goes away, and every error kind has a caller-facing message.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import BaseModel

from mural.config import Config
from mural.core.comments import CommentThread
from mural.core.ranking import SORT_VOTES, BoardFilter, rank
from mural.core.suggestions import SuggestionStore
from mural.core.visibility import VisibilityPolicy
from mural.core.votes import VoteLedger
from mural.errors import BoardError, Conflict, StoreUnavailable, ValidationError
from mural.events.bus import EventBus
from mural.models.comment import Comment
from mural.models.suggestion import Suggestion
from mural.models.vote import VoteResult
from mural.storage.base import StorageBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

ROADMAP_STATUSES = ("in-analysis", "approved", "implemented")

CONFLICT_MESSAGE = "Your vote collided with another request. Please try again."
UNAVAILABLE_MESSAGE = "The board is temporarily unavailable. Please try again later."


def _log_write_outcome(task: asyncio.Future[Any]) -> None:
    # Always consumes the exception, even when no caller awaits the write.
    if task.cancelled():
        logger.warning("Board write cancelled")
        return
    exc = task.exception()
    if exc is None:
        logger.debug("Board write completed")
    elif isinstance(exc, BoardError) and not isinstance(exc, StoreUnavailable):
        logger.info("Board write rejected: %s", exc)
    else:
        logger.error("Board write failed: %s", exc)


class BoardEntry(BaseModel):
    """A suggestion as seen by one viewer."""

    suggestion: Suggestion
    has_voted: bool = False

    def to_response(self, *, detail: str = "summary") -> dict[str, Any]:
        data = self.suggestion.to_response(detail=detail)
        data["has_voted"] = self.has_voted
        return data


class BoardService:
    """Entry point for every board operation."""

    def __init__(
        self,
        store: StorageBackend,
        event_bus: EventBus,
        *,
        config: Config | None = None,
        policy: VisibilityPolicy | None = None,
    ) -> None:
        self._config = config or Config()
        self._store = store
        self._event_bus = event_bus
        self.suggestions = SuggestionStore(
            store,
            event_bus,
            policy=policy or VisibilityPolicy(self._config.reserved_domains),
            min_description_length=self._config.min_description_length,
        )
        self.votes = VoteLedger(store, event_bus)
        self.comments = CommentThread(store, event_bus)

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    # --- Failure handling ---

    async def _retrying(self, op: Callable[[], Awaitable[T]], label: str) -> T:
        """Run op, retrying on StoreUnavailable up to config.read_retries times."""
        retries = max(self._config.read_retries, 0)
        attempt = 0
        while True:
            try:
                return await op()
            except StoreUnavailable:
                if attempt >= retries:
                    raise
                attempt += 1
                logger.warning("%s failed (attempt %d/%d), retrying", label, attempt, retries)
                await asyncio.sleep(self._config.retry_delay * attempt)

    @staticmethod
    async def _complete(write: Awaitable[T]) -> T:
        """Let a write finish even if the awaiting caller is cancelled."""
        task = asyncio.ensure_future(write)
        task.add_done_callback(_log_write_outcome)
        return await asyncio.shield(task)

    @staticmethod
    def user_message(exc: BaseException) -> str:
        """Caller-facing text for a board error."""
        if isinstance(exc, ValidationError):
            return f"Invalid {exc.field}: {exc.message}"
        if isinstance(exc, Conflict):
            return CONFLICT_MESSAGE
        if isinstance(exc, StoreUnavailable):
            return UNAVAILABLE_MESSAGE
        if isinstance(exc, BoardError):
            return str(exc)
        return UNAVAILABLE_MESSAGE

    # --- Suggestions ---

    async def submit_suggestion(
        self,
        *,
        title: str,
        description: str,
        module: str,
        email: str,
        youtube_url: str | None = None,
        is_public: bool | None = None,
    ) -> Suggestion:
        return await self._complete(
            self.suggestions.submit(
                title=title,
                description=description,
                module=module,
                email=email,
                youtube_url=youtube_url,
                is_public=is_public,
            )
        )

    async def get_board(
        self,
        flt: BoardFilter | None = None,
        sort: str | None = None,
        *,
        include_private: bool = False,
        viewer: str | None = None,
    ) -> list[BoardEntry]:
        """Ranked board view, with per-viewer vote state when viewer is given."""
        suggestions = await self._retrying(
            lambda: self.suggestions.list_by_visibility(include_private), "list suggestions"
        )
        voted = await self._retrying(lambda: self.votes.voted_ids(viewer), "load viewer votes")
        ranked = rank(suggestions, flt, sort)
        return [BoardEntry(suggestion=s, has_voted=s.id in voted) for s in ranked]

    async def get_suggestion(self, suggestion_id: str, *, viewer: str | None = None) -> BoardEntry:
        suggestion = await self._retrying(
            lambda: self.suggestions.get(suggestion_id), "get suggestion"
        )
        has_voted = False
        if viewer and viewer.strip():
            has_voted = await self._retrying(
                lambda: self.votes.has_voted(suggestion_id, viewer), "check vote"
            )
        return BoardEntry(suggestion=suggestion, has_voted=has_voted)

    async def set_status(
        self, suggestion_id: str, status: str, admin_response: str | None = None
    ) -> Suggestion:
        return await self._complete(
            self.suggestions.set_status(suggestion_id, status, admin_response)
        )

    async def set_pinned(self, suggestion_id: str, pinned: bool) -> Suggestion:
        return await self._complete(self.suggestions.set_pinned(suggestion_id, pinned))

    # --- Votes ---

    async def toggle_vote(self, suggestion_id: str, voter: str) -> VoteResult:
        """Toggle the voter's vote.

        Safe to retry on store failure: each attempt re-reads the ledger inside
        its own transaction, and a failed attempt has been rolled back.
        """
        return await self._retrying(
            lambda: self._complete(self.votes.toggle(suggestion_id, voter)), "toggle vote"
        )

    # --- Comments ---

    async def add_comment(
        self,
        suggestion_id: str,
        author_name: str,
        author_email: str,
        content: str,
    ) -> Comment:
        return await self._complete(
            self.comments.add(
                suggestion_id,
                author_name=author_name,
                author_email=author_email,
                content=content,
            )
        )

    async def list_comments(self, suggestion_id: str) -> list[Comment]:
        await self._retrying(lambda: self.suggestions.get(suggestion_id), "get suggestion")
        return await self._retrying(
            lambda: self.comments.list_comments(suggestion_id), "list comments"
        )

    # --- Overviews ---

    async def roadmap(self) -> dict[str, list[Suggestion]]:
        """Public suggestions in the active statuses, each group ranked by votes."""
        suggestions = await self._retrying(
            lambda: self.suggestions.list_by_visibility(False), "list suggestions"
        )
        return {
            status: rank(suggestions, BoardFilter(status=status), SORT_VOTES)
            for status in ROADMAP_STATUSES
        }

    async def changelog(self, limit: int = 20) -> list[Suggestion]:
        """Implemented public suggestions, most recently implemented first."""
        suggestions = await self._retrying(
            lambda: self.suggestions.list_by_visibility(False), "list suggestions"
        )
        done = [s for s in suggestions if s.status == "implemented"]
        done.sort(key=lambda s: s.status_changed_at, reverse=True)
        return done[: max(limit, 0)]

    async def stats(self) -> dict[str, Any]:
        return await self._retrying(self._store.get_stats, "stats")
