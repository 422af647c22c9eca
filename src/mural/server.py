"""FastMCP server — 4 board tools, 3 resources."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any, Literal

from fastmcp import FastMCP
from pydantic import Field

from mural.auth.permissions import can_moderate, role_for
from mural.config import Config
from mural.core.board import BoardService
from mural.core.ranking import BoardFilter
from mural.errors import BoardError, NotFound
from mural.events.bus import EventBus
from mural.storage.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)


def _json(data: dict[str, Any]) -> str:
    return json.dumps(data, default=str, ensure_ascii=False)


def _ok(data: dict[str, Any]) -> str:
    """Return a versioned JSON success response."""
    return _json({**data, "_v": "1.0"})


def _err(msg: str) -> str:
    """Return a versioned JSON error response."""
    return _json({"_v": "1.0", "error": msg})


def create_server(db_path: str, config: Config | None = None) -> FastMCP:
    """Create FastMCP server over the board at db_path."""
    config = config or Config()
    mcp = FastMCP("mural", version="0.1.0")

    state: dict[str, Any] = {}
    _lock = asyncio.Lock()

    async def _init() -> BoardService:
        async with _lock:
            if "init_failed" in state:
                raise RuntimeError(f"Mural init previously failed for {db_path}")
            if "board" not in state:
                try:
                    store = SQLiteStore(Path(db_path), wal_mode=config.wal_mode)
                    await store.initialize()
                except Exception as e:
                    state["init_failed"] = True
                    logger.error("Failed to initialize database: %s", e)
                    raise RuntimeError(f"Mural init failed: {db_path}") from e
                state["store"] = store
                state["board"] = BoardService(store, EventBus(), config=config)
        return state["board"]

    def _is_staff(identity: str | None) -> bool:
        return can_moderate(role_for(identity, config.staff_emails))

    def _page(
        items: list[dict[str, Any]], limit: int | None, offset: int
    ) -> list[dict[str, Any]]:
        limit = min(limit or config.pagination_default, config.pagination_max)
        return items[offset : offset + limit]

    # ── mb_suggestion ─────────────────────────────────────────

    @mcp.tool()
    async def mb_suggestion(
        action: Annotated[
            Literal["submit", "get", "board"],
            Field(description="submit | get | board"),
        ],
        title: Annotated[str | None, Field(description="Suggestion title (submit)")] = None,
        description: Annotated[
            str | None,
            Field(description="Detailed description, at least 200 characters (submit)"),
        ] = None,
        module: Annotated[
            str | None,
            Field(description="Bot|Mapa|Workspace|Financeiro|Fiscal|SAC|Agenda|Outro "
                  "(submit; board filter, 'all' for every module)"),
        ] = None,
        email: Annotated[str | None, Field(description="Author email (submit)")] = None,
        youtube_url: Annotated[str | None, Field(description="Video link (submit)")] = None,
        is_public: Annotated[
            bool | None,
            Field(description="Show on the public board (submit, default true)"),
        ] = None,
        suggestion_id: Annotated[str | None, Field(description="Suggestion ID (get)")] = None,
        viewer: Annotated[
            str | None,
            Field(description="Caller identity, resolves has_voted (get, board)"),
        ] = None,
        text: Annotated[str | None, Field(description="Search title/description (board)")] = None,
        status: Annotated[
            str | None,
            Field(description="Status key or label, 'all' for every status (board)"),
        ] = None,
        sort: Annotated[
            str | None,
            Field(description="recent | votes | comments; anything else is recent (board)"),
        ] = None,
        include_private: Annotated[
            bool,
            Field(description="Include private suggestions; staff viewers only (board)"),
        ] = False,
        detail: Annotated[str, Field(description="summary or full (get, board)")] = "summary",
        limit: Annotated[
            int | None, Field(description="Max results 1-100, default 20 (board)", ge=1, le=100)
        ] = None,
        offset: Annotated[int, Field(description="Pagination offset (board)", ge=0)] = 0,
    ) -> str:
        """Submit suggestions, fetch one, or list the ranked board (pinned first, then by sort)."""
        board = await _init()

        try:
            if action == "submit":
                suggestion = await board.submit_suggestion(
                    title=title or "",
                    description=description or "",
                    module=module or "",
                    email=email or "",
                    youtube_url=youtube_url,
                    is_public=is_public,
                )
                return _ok(suggestion.to_response(detail="full"))

            if action == "get":
                if not suggestion_id:
                    return _err("suggestion_id is required for get")
                entry = await board.get_suggestion(suggestion_id, viewer=viewer)
                if not entry.suggestion.is_public and not _is_staff(viewer):
                    raise NotFound("suggestion", suggestion_id)
                return _ok(entry.to_response(detail="full"))

            if action == "board":
                if include_private and not _is_staff(viewer):
                    return _err("include_private requires a staff viewer")
                entries = await board.get_board(
                    BoardFilter(text=text, module=module, status=status),
                    sort,
                    include_private=include_private,
                    viewer=viewer,
                )
                items = [e.to_response(detail=detail) for e in entries]
                page = _page(items, limit, offset)
                return _ok({"count": len(page), "total": len(items), "suggestions": page})
        except BoardError as e:
            return _err(board.user_message(e))

        return _err(f"Unknown action: {action}")

    # ── mb_vote ───────────────────────────────────────────────

    @mcp.tool()
    async def mb_vote(
        suggestion_id: Annotated[str, Field(description="Suggestion to vote on")],
        voter: Annotated[str, Field(description="Caller identity (email)")],
    ) -> str:
        """Toggle the caller's vote on a suggestion: vote if absent, withdraw if present."""
        board = await _init()
        try:
            result = await board.toggle_vote(suggestion_id, voter)
        except BoardError as e:
            return _err(board.user_message(e))
        return _ok(result.to_response())

    # ── mb_comment ────────────────────────────────────────────

    @mcp.tool()
    async def mb_comment(
        action: Annotated[Literal["add", "list"], Field(description="add | list")],
        suggestion_id: Annotated[str, Field(description="Suggestion ID")],
        author_name: Annotated[str | None, Field(description="Comment author (add)")] = None,
        author_email: Annotated[str | None, Field(description="Author email (add)")] = None,
        content: Annotated[str | None, Field(description="Comment text (add)")] = None,
    ) -> str:
        """Add a comment to a suggestion or list its comments, oldest first."""
        board = await _init()
        try:
            if action == "add":
                comment = await board.add_comment(
                    suggestion_id, author_name or "", author_email or "", content or ""
                )
                return _ok(comment.to_response())

            if action == "list":
                comments = await board.list_comments(suggestion_id)
                items = [c.to_response() for c in comments]
                return _ok({"count": len(items), "comments": items})
        except BoardError as e:
            return _err(board.user_message(e))

        return _err(f"Unknown action: {action}")

    # ── mb_admin ──────────────────────────────────────────────

    @mcp.tool()
    async def mb_admin(
        action: Annotated[Literal["status", "pin"], Field(description="status | pin")],
        actor_email: Annotated[str, Field(description="Staff identity performing the change")],
        suggestion_id: Annotated[str, Field(description="Suggestion ID")],
        status: Annotated[
            str | None,
            Field(description="received|in-analysis|approved|rejected|implemented or label (status)"),
        ] = None,
        admin_response: Annotated[
            str | None, Field(description="Staff response shown with the status (status)")
        ] = None,
        pinned: Annotated[bool, Field(description="Pin to the top of the board (pin)")] = True,
    ) -> str:
        """Staff actions: change a suggestion's status or pin/unpin it."""
        board = await _init()
        if not _is_staff(actor_email):
            logger.warning("Rejected %s by non-staff %s", action, actor_email)
            return _err("Only staff can change status or pins")

        try:
            if action == "status":
                if not status:
                    return _err("status is required for status")
                suggestion = await board.set_status(suggestion_id, status, admin_response)
                return _ok(suggestion.to_response(detail="full"))

            if action == "pin":
                suggestion = await board.set_pinned(suggestion_id, pinned)
                return _ok(suggestion.to_response(detail="full"))
        except BoardError as e:
            return _err(board.user_message(e))

        return _err(f"Unknown action: {action}")

    # ── Resources (3) ──────────────────────────────────────────

    @mcp.resource("mb://stats")
    async def mb_resource_stats() -> str:
        """Board totals and per-status counts."""
        board = await _init()
        return _ok(await board.stats())

    @mcp.resource("mb://roadmap")
    async def mb_resource_roadmap() -> str:
        """Public suggestions in analysis, approved and implemented, by votes."""
        board = await _init()
        roadmap = await board.roadmap()
        return _ok({
            status: [s.to_response() for s in items] for status, items in roadmap.items()
        })

    @mcp.resource("mb://changelog")
    async def mb_resource_changelog() -> str:
        """Recently implemented public suggestions."""
        board = await _init()
        items = [s.to_response(detail="full") for s in await board.changelog()]
        return _ok({"count": len(items), "suggestions": items})

    return mcp
