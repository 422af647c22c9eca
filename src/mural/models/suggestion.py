"""Suggestion model, status keys and their display labels."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field

VALID_MODULES = ("Bot", "Mapa", "Workspace", "Financeiro", "Fiscal", "SAC", "Agenda", "Outro")
VALID_STATUSES = ("received", "in-analysis", "approved", "rejected", "implemented")

DEFAULT_STATUS = "received"

STATUS_LABELS: dict[str, str] = {
    "received": "Recebido",
    "in-analysis": "Em análise",
    "approved": "Aprovada",
    "rejected": "Rejeitada",
    "implemented": "Implementada",
}

_LABEL_TO_KEY = {label.casefold(): key for key, label in STATUS_LABELS.items()}


def utc_now() -> str:
    """Current UTC time as a fixed-width ISO-8601 string."""
    return datetime.now(UTC).isoformat(timespec="microseconds")


def status_label(key: str | None) -> str:
    """Display label for a status key. Unknown keys read as received."""
    return STATUS_LABELS.get(key or "", STATUS_LABELS[DEFAULT_STATUS])


def status_key(value: str | None) -> str | None:
    """Resolve a status key or display label to its key, or None."""
    if not value:
        return None
    if value in STATUS_LABELS:
        return value
    return _LABEL_TO_KEY.get(value.strip().casefold())


class Suggestion(BaseModel):
    """A submitted suggestion with engagement counters."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    description: str
    module: str
    email: str
    youtube_url: str | None = None
    is_public: bool = True
    status: str = DEFAULT_STATUS
    votes: int = 0
    comments_count: int = 0
    admin_response: str | None = None
    is_pinned: bool = False
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)
    status_changed_at: str = Field(default_factory=utc_now)

    @property
    def status_label(self) -> str:
        return status_label(self.status)

    def to_storage(self) -> dict:
        return self.model_dump()

    def to_response(self, *, detail: str = "summary") -> dict:
        data = {
            "_v": "1.0",
            "id": self.id,
            "title": self.title,
            "module": self.module,
            "status": self.status_label,
            "votes": self.votes,
            "comments": self.comments_count,
            "is_pinned": self.is_pinned,
        }
        if detail != "summary":
            data.update(
                {
                    "description": self.description,
                    "email": self.email,
                    "youtube_url": self.youtube_url,
                    "is_public": self.is_public,
                    "admin_response": self.admin_response,
                    "created_at": self.created_at,
                    "updated_at": self.updated_at,
                    "status_changed_at": self.status_changed_at,
                }
            )
        return data
