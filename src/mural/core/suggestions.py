"""Suggestion Store.

Owns suggestion records: submission with validation, lookup, the staff-driven
status workflow and pinning, and visibility-partitioned listing. Counters are
never written here; see VoteLedger and CommentThread.
"""

import logging
import re
from datetime import UTC, datetime, timedelta

from mural.core.visibility import VisibilityPolicy
from mural.errors import NotFound, ValidationError
from mural.events.bus import EventBus
from mural.events.types import EventType
from mural.models.suggestion import (
    DEFAULT_STATUS,
    VALID_MODULES,
    Suggestion,
    status_key,
    utc_now,
)
from mural.storage.base import StorageBackend

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s.]+$")

MIN_DESCRIPTION_LENGTH = 200


def is_well_formed_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email.strip()))


def next_timestamp(previous: str | None) -> str:
    """Current time, nudged forward so it is strictly later than previous."""
    now = utc_now()
    if previous and now <= previous:
        later = datetime.fromisoformat(previous) + timedelta(microseconds=1)
        now = later.astimezone(UTC).isoformat(timespec="microseconds")
    return now


class SuggestionStore:
    """Creates and mutates suggestion records through narrow operations."""

    def __init__(
        self,
        store: StorageBackend,
        event_bus: EventBus,
        *,
        policy: VisibilityPolicy | None = None,
        min_description_length: int = MIN_DESCRIPTION_LENGTH,
    ) -> None:
        """Initialize the SuggestionStore.

        Args:
            store: Storage backend for persistence
            event_bus: Event bus for emitting lifecycle events
            policy: Visibility policy applied at submission
            min_description_length: Minimum description length in characters
        """
        self._store = store
        self._event_bus = event_bus
        self._policy = policy or VisibilityPolicy()
        self._min_description_length = min_description_length

    def validate(self, *, title: str, description: str, module: str, email: str) -> None:
        """Check submission fields, raising on the first violated constraint.

        Raises:
            ValidationError: naming the failing field
        """
        if len(description or "") < self._min_description_length:
            raise ValidationError(
                "description",
                f"must be at least {self._min_description_length} characters "
                f"(got {len(description or '')})",
            )
        if not title or not title.strip():
            raise ValidationError("title", "cannot be empty")
        if module not in VALID_MODULES:
            raise ValidationError(
                "module", f"must be one of {', '.join(VALID_MODULES)} (got {module!r})"
            )
        if not email or not is_well_formed_email(email):
            raise ValidationError("email", f"is not a valid address: {email!r}")

    async def submit(
        self,
        *,
        title: str,
        description: str,
        module: str,
        email: str,
        youtube_url: str | None = None,
        is_public: bool | None = None,
    ) -> Suggestion:
        """Validate and persist a new suggestion with status="received".

        Args:
            title: Suggestion title (required, non-empty)
            description: Detailed description, at least the configured length
            module: One of the fixed module categories
            email: Author email, must be well formed
            youtube_url: Optional media link, stored untouched
            is_public: Requested visibility; internal domains are always private

        Returns:
            Created Suggestion instance

        Raises:
            ValidationError: If any field violates a constraint
        """
        self.validate(title=title, description=description, module=module, email=email)

        now = utc_now()
        suggestion = Suggestion(
            title=title.strip(),
            description=description,
            module=module,
            email=email.strip(),
            youtube_url=youtube_url or None,
            is_public=self._policy.compute(email, is_public),
            status=DEFAULT_STATUS,
            created_at=now,
            updated_at=now,
            status_changed_at=now,
        )

        async with self._store.transaction() as tx:
            await tx.insert_suggestion(suggestion.to_storage())

        logger.info(f"Submitted suggestion: {suggestion.id} - {suggestion.title}")
        if is_public and not suggestion.is_public:
            logger.info(f"Suggestion {suggestion.id} forced private by internal domain")

        await self._event_bus.emit(
            EventType.SUGGESTION_SUBMITTED,
            {
                "suggestion_id": suggestion.id,
                "title": suggestion.title,
                "is_public": suggestion.is_public,
            },
        )
        return suggestion

    async def get(self, suggestion_id: str) -> Suggestion:
        """Get a suggestion by ID.

        Raises:
            NotFound: If no suggestion has this ID
        """
        data = await self._store.get_suggestion(suggestion_id)
        if data is None:
            raise NotFound("suggestion", suggestion_id)
        return Suggestion(**data)

    async def set_status(
        self,
        suggestion_id: str,
        status: str,
        admin_response: str | None = None,
    ) -> Suggestion:
        """Move a suggestion to any of the five statuses.

        Transitions are unrestricted. Display labels are accepted and mapped
        to their keys. admin_response is only replaced when given.

        Raises:
            ValidationError: If status is not a known key or label
            NotFound: If no suggestion has this ID
        """
        key = status_key(status)
        if key is None:
            raise ValidationError("status", f"unknown status: {status!r}")

        async with self._store.transaction() as tx:
            current = await tx.get_suggestion(suggestion_id)
            if current is None:
                raise NotFound("suggestion", suggestion_id)

            stamp = next_timestamp(current["updated_at"])
            updates: dict = {"status": key, "updated_at": stamp, "status_changed_at": stamp}
            if admin_response is not None:
                updates["admin_response"] = admin_response
            await tx.update_suggestion(suggestion_id, updates)
            data = await tx.get_suggestion(suggestion_id)

        updated = Suggestion(**data)
        logger.info(f"Suggestion {suggestion_id} status: {current['status']} -> {key}")

        await self._event_bus.emit(
            EventType.SUGGESTION_STATUS_CHANGED,
            {"suggestion_id": suggestion_id, "from": current["status"], "to": key},
        )
        return updated

    async def set_pinned(self, suggestion_id: str, pinned: bool) -> Suggestion:
        """Pin or unpin a suggestion.

        Raises:
            NotFound: If no suggestion has this ID
        """
        async with self._store.transaction() as tx:
            current = await tx.get_suggestion(suggestion_id)
            if current is None:
                raise NotFound("suggestion", suggestion_id)
            await tx.update_suggestion(
                suggestion_id,
                {"is_pinned": bool(pinned), "updated_at": next_timestamp(current["updated_at"])},
            )
            data = await tx.get_suggestion(suggestion_id)

        logger.info(f"Suggestion {suggestion_id} pinned={bool(pinned)}")
        await self._event_bus.emit(
            EventType.SUGGESTION_PINNED,
            {"suggestion_id": suggestion_id, "pinned": bool(pinned)},
        )
        return Suggestion(**data)

    async def list_by_visibility(self, include_private: bool = False) -> list[Suggestion]:
        """List suggestions, hiding private ones unless include_private is set."""
        data_list = await self._store.list_suggestions(include_private=include_private)
        return [Suggestion(**data) for data in data_list]
