"""Board event names."""

from enum import StrEnum


class EventType(StrEnum):
    SUGGESTION_SUBMITTED = "suggestion.submitted"
    SUGGESTION_STATUS_CHANGED = "suggestion.status_changed"
    SUGGESTION_PINNED = "suggestion.pinned"

    VOTE_CAST = "vote.cast"
    VOTE_WITHDRAWN = "vote.withdrawn"

    COMMENT_ADDED = "comment.added"

    @property
    def subject(self) -> str:
        """What changed: suggestion, vote or comment."""
        return self.value.partition(".")[0]
