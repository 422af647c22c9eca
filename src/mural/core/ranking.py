"""Ranking Engine.

Pure filter + sort + pin partition over an in-memory suggestion list. It never
touches storage and never raises on odd filter values: anything it does not
recognise is treated as "no filter" or as the default sort.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel

from mural.models.suggestion import VALID_MODULES, Suggestion, status_key

SORT_RECENT = "recent"
SORT_VOTES = "votes"
SORT_COMMENTS = "comments"
DEFAULT_SORT = SORT_RECENT

_ALL = "all"
_EPOCH = datetime.min.replace(tzinfo=UTC)


class BoardFilter(BaseModel):
    """Search, module, status and sort selection for a board view."""

    text: str | None = None
    module: str | None = None
    status: str | None = None
    sort: str | None = None


def _created(s: Suggestion) -> datetime:
    try:
        created = datetime.fromisoformat(s.created_at)
    except (TypeError, ValueError):
        return _EPOCH
    if created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    return created


_SORT_KEYS: dict[str, Callable[[Suggestion], Any]] = {
    SORT_RECENT: _created,
    SORT_VOTES: lambda s: s.votes,
    SORT_COMMENTS: lambda s: s.comments_count,
}


def _text_matches(s: Suggestion, needle: str) -> bool:
    return needle in s.title.casefold() or needle in s.description.casefold()


def apply_filter(suggestions: Iterable[Suggestion], flt: BoardFilter | None) -> list[Suggestion]:
    """Keep suggestions matching every active predicate."""
    items = list(suggestions)
    if flt is None:
        return items

    text = flt.text.strip().casefold() if isinstance(flt.text, str) else ""
    if text:
        items = [s for s in items if _text_matches(s, text)]

    module = flt.module if isinstance(flt.module, str) else None
    if module and module != _ALL and module in VALID_MODULES:
        items = [s for s in items if s.module == module]

    status = status_key(flt.status) if isinstance(flt.status, str) else None
    if status:
        items = [s for s in items if s.status == status]

    return items


def sort_key_for(sort: str | None) -> str:
    """Resolve a sort name, falling back to the default for anything unknown."""
    if isinstance(sort, str) and sort.strip().lower() in _SORT_KEYS:
        return sort.strip().lower()
    return DEFAULT_SORT


def apply_sort(suggestions: Iterable[Suggestion], sort: str | None) -> list[Suggestion]:
    """Sort descending by the chosen key. Ties keep their input order."""
    return sorted(suggestions, key=_SORT_KEYS[sort_key_for(sort)], reverse=True)


def pin_partition(suggestions: Iterable[Suggestion]) -> list[Suggestion]:
    """Move pinned suggestions to the front, keeping order within each group."""
    items = list(suggestions)
    return [s for s in items if s.is_pinned] + [s for s in items if not s.is_pinned]


def rank(
    suggestions: Iterable[Suggestion],
    flt: BoardFilter | None = None,
    sort: str | None = None,
) -> list[Suggestion]:
    """Filter, sort, then promote pinned suggestions.

    Args:
        suggestions: Suggestions to rank; the input is not modified
        flt: Filter selection; None shows everything
        sort: recent | votes | comments. Defaults to flt.sort, then recent.

    Returns:
        A new list in display order
    """
    if sort is None and flt is not None:
        sort = flt.sort
    filtered = apply_filter(suggestions, flt)
    return pin_partition(apply_sort(filtered, sort))
