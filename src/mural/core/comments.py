"""Comment Thread Store: append-only comments per suggestion."""

import logging

from mural.core.suggestions import next_timestamp
from mural.errors import NotFound, ValidationError
from mural.events.bus import EventBus
from mural.events.types import EventType
from mural.models.comment import Comment
from mural.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class CommentThread:
    """Appends comments and keeps each suggestion's comment counter in step."""

    def __init__(self, store: StorageBackend, event_bus: EventBus) -> None:
        self._store = store
        self._event_bus = event_bus

    async def add(
        self,
        suggestion_id: str,
        *,
        author_name: str,
        author_email: str,
        content: str,
    ) -> Comment:
        """Append a comment and increment the suggestion's comment counter.

        Raises:
            ValidationError: If content is empty
            NotFound: If the suggestion does not exist
        """
        if not content or not content.strip():
            raise ValidationError("content", "cannot be empty")

        comment = Comment(
            suggestion_id=suggestion_id,
            author_name=(author_name or "").strip(),
            author_email=(author_email or "").strip(),
            content=content.strip(),
        )

        async with self._store.transaction() as tx:
            current = await tx.get_suggestion(suggestion_id)
            if current is None:
                raise NotFound("suggestion", suggestion_id)
            await tx.insert_comment(comment.to_storage())
            count = await tx.adjust_counter(
                suggestion_id, "comments_count", 1, next_timestamp(current["updated_at"])
            )

        logger.info(f"Comment {comment.id} added to {suggestion_id} ({count} total)")
        await self._event_bus.emit(
            EventType.COMMENT_ADDED,
            {"suggestion_id": suggestion_id, "comment_id": comment.id, "count": count},
        )
        return comment

    async def list_comments(self, suggestion_id: str) -> list[Comment]:
        """Comments for a suggestion, oldest first."""
        data_list = await self._store.list_comments(suggestion_id)
        return [Comment(**data) for data in data_list]

    async def count(self, suggestion_id: str) -> int:
        return await self._store.count_comments(suggestion_id)
