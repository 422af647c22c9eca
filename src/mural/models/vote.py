"""Vote ledger entry and toggle outcome."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from mural.models.suggestion import utc_now


class Vote(BaseModel):
    """Presence of a (suggestion, voter) pair."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    suggestion_id: str
    user_email: str
    created_at: str = Field(default_factory=utc_now)

    def to_storage(self) -> dict:
        return self.model_dump()


class VoteResult(BaseModel):
    """Outcome of a vote toggle."""

    suggestion_id: str
    voted: bool
    count: int

    def to_response(self) -> dict:
        return {
            "_v": "1.0",
            "suggestion_id": self.suggestion_id,
            "voted": self.voted,
            "votes": self.count,
        }
