"""Comment model."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from mural.models.suggestion import utc_now


class Comment(BaseModel):
    """An append-only comment on a suggestion."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    suggestion_id: str
    author_name: str
    author_email: str
    content: str
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)

    def to_storage(self) -> dict:
        return self.model_dump()

    def to_response(self) -> dict:
        return {
            "_v": "1.0",
            "id": self.id,
            "suggestion_id": self.suggestion_id,
            "author_name": self.author_name,
            "content": self.content,
            "created_at": self.created_at,
        }
