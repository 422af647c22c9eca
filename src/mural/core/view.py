"""Live board view.

Holds one client's filter selection and a snapshot of the board. The ranked
list is recomputed on explicit triggers only: a filter change re-ranks the
cached snapshot, and any board event marks the snapshot stale so the next
read fetches it again.
"""

from __future__ import annotations

import logging
from typing import Any

from mural.core.board import BoardEntry, BoardService
from mural.core.ranking import BoardFilter, rank
from mural.events.types import EventType

logger = logging.getLogger(__name__)


class BoardView:
    """A ranked board that follows filter changes and board events."""

    def __init__(
        self,
        board: BoardService,
        *,
        include_private: bool = False,
        viewer: str | None = None,
    ) -> None:
        self._board = board
        self._include_private = include_private
        self._viewer = viewer
        self._filter = BoardFilter()
        self._source: list[BoardEntry] = []
        self._ranked: list[BoardEntry] = []
        self._stale = True
        board.event_bus.on_all(self._on_event)

    @property
    def filter(self) -> BoardFilter:
        return self._filter

    @property
    def stale(self) -> bool:
        return self._stale

    async def _on_event(self, event_type: EventType, data: dict[str, Any]) -> None:
        logger.debug("Board view stale after %s change (%s)", event_type.subject, event_type)
        self._stale = True

    async def entries(self) -> list[BoardEntry]:
        """Current ranked entries, refetching first if the board changed."""
        if self._stale:
            await self.refresh()
        return list(self._ranked)

    async def refresh(self) -> list[BoardEntry]:
        """Fetch a fresh snapshot and re-rank it.

        The view stays stale if the fetch fails, so the next read tries again.
        """
        self._stale = False
        try:
            self._source = await self._board.get_board(
                include_private=self._include_private, viewer=self._viewer
            )
        except BaseException:
            self._stale = True
            raise
        self._recompute()
        return list(self._ranked)

    def update_filter(self, **changes: str | None) -> list[BoardEntry]:
        """Change text/module/status/sort and re-rank the cached snapshot."""
        known = {k: v for k, v in changes.items() if k in BoardFilter.model_fields}
        self._filter = self._filter.model_copy(update=known)
        self._recompute()
        return list(self._ranked)

    def clear_filters(self) -> list[BoardEntry]:
        self._filter = BoardFilter()
        self._recompute()
        return list(self._ranked)

    def close(self) -> None:
        """Stop following board events."""
        self._board.event_bus.off_all(self._on_event)

    def _recompute(self) -> None:
        by_id = {entry.suggestion.id: entry for entry in self._source}
        ranked = rank([entry.suggestion for entry in self._source], self._filter)
        self._ranked = [by_id[s.id] for s in ranked]
