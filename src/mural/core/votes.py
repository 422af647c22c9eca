"""Vote Ledger.

The set of (suggestion, voter) pairs is the only record of who voted. Each
toggle checks the pair, flips it and moves the suggestion's vote counter in
one storage transaction, so the counter always equals the ledger size.
"""

import logging

from mural.core.suggestions import next_timestamp
from mural.errors import NotFound, ValidationError
from mural.events.bus import EventBus
from mural.events.types import EventType
from mural.models.vote import Vote, VoteResult
from mural.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class VoteLedger:
    """At most one vote per voter per suggestion, with an atomic counter."""

    def __init__(self, store: StorageBackend, event_bus: EventBus) -> None:
        self._store = store
        self._event_bus = event_bus

    async def toggle(self, suggestion_id: str, voter: str) -> VoteResult:
        """Cast the voter's vote, or withdraw it if already cast.

        Args:
            suggestion_id: Suggestion being voted on
            voter: Caller identity (opaque, usually an email)

        Returns:
            VoteResult with the new vote state and counter value

        Raises:
            ValidationError: If voter is empty
            NotFound: If the suggestion does not exist
            Conflict: If a concurrent insert of the same pair won the race
        """
        voter = (voter or "").strip()
        if not voter:
            raise ValidationError("voter", "cannot be empty")

        async with self._store.transaction() as tx:
            current = await tx.get_suggestion(suggestion_id)
            if current is None:
                raise NotFound("suggestion", suggestion_id)

            stamp = next_timestamp(current["updated_at"])
            if await tx.get_vote(suggestion_id, voter):
                await tx.delete_vote(suggestion_id, voter)
                count = await tx.adjust_counter(suggestion_id, "votes", -1, stamp)
                voted = False
            else:
                await tx.insert_vote(Vote(suggestion_id=suggestion_id, user_email=voter).to_storage())
                count = await tx.adjust_counter(suggestion_id, "votes", 1, stamp)
                voted = True

        result = VoteResult(suggestion_id=suggestion_id, voted=voted, count=count or 0)
        logger.info(f"Vote {'cast' if voted else 'withdrawn'} on {suggestion_id}: {result.count}")

        await self._event_bus.emit(
            EventType.VOTE_CAST if voted else EventType.VOTE_WITHDRAWN,
            {"suggestion_id": suggestion_id, "voter": voter, "count": result.count},
        )
        return result

    async def has_voted(self, suggestion_id: str, voter: str) -> bool:
        return await self._store.get_vote(suggestion_id, voter.strip()) is not None

    async def voted_ids(self, voter: str | None) -> set[str]:
        """IDs of the suggestions this voter currently supports."""
        if not voter or not voter.strip():
            return set()
        return await self._store.voted_suggestion_ids(voter.strip())

    async def count(self, suggestion_id: str) -> int:
        """Number of ledger rows for a suggestion."""
        return await self._store.count_votes(suggestion_id)
