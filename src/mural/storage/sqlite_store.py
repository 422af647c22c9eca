"""SQLite storage backend with serialized transactions and WAL mode."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import Any

import aiosqlite

from mural.errors import Conflict, StoreUnavailable, ValidationError
from mural.storage.base import StorageBackend, StorageTransaction

logger = logging.getLogger(__name__)

# Columns writable through update_suggestion. Counters are excluded: they only
# move through adjust_counter.
_UPDATABLE_COLUMNS = {
    "status",
    "admin_response",
    "is_pinned",
    "updated_at",
    "status_changed_at",
}

_COUNTER_COLUMNS = {"votes", "comments_count"}

_BOOL_COLUMNS = ("is_public", "is_pinned")


@contextmanager
def _translate_errors() -> Iterator[None]:
    """Map sqlite failures onto board error kinds."""
    try:
        yield
    except aiosqlite.IntegrityError as e:
        if "UNIQUE" in str(e):
            raise Conflict(str(e)) from e
        raise ValidationError("record", str(e)) from e
    except aiosqlite.Error as e:
        logger.error("Store failure: %s", e)
        raise StoreUnavailable(str(e)) from e


class _SQLiteTransaction(StorageTransaction):
    """Row operations bound to an open BEGIN IMMEDIATE transaction."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def get_suggestion(self, suggestion_id: str) -> dict[str, Any] | None:
        return await _fetch_suggestion(self._db, suggestion_id)

    async def insert_suggestion(self, suggestion: dict[str, Any]) -> dict[str, Any]:
        await self._db.execute(
            """INSERT INTO suggestions (id, title, description, module, email,
               youtube_url, is_public, status, votes, comments_count,
               admin_response, is_pinned, created_at, updated_at, status_changed_at)
               VALUES (:id, :title, :description, :module, :email,
               :youtube_url, :is_public, :status, :votes, :comments_count,
               :admin_response, :is_pinned, :created_at, :updated_at, :status_changed_at)""",
            suggestion,
        )
        return suggestion

    async def update_suggestion(self, suggestion_id: str, updates: dict[str, Any]) -> bool:
        updates = _validate_update_keys(updates)
        if not updates:
            return False

        set_clauses = []
        values = []
        for key, value in updates.items():
            set_clauses.append(f"{key} = ?")
            values.append(value)

        values.append(suggestion_id)
        cursor = await self._db.execute(
            f"UPDATE suggestions SET {', '.join(set_clauses)} WHERE id = ?",
            values,
        )
        return cursor.rowcount > 0

    async def adjust_counter(
        self, suggestion_id: str, column: str, delta: int, updated_at: str
    ) -> int | None:
        if column not in _COUNTER_COLUMNS:
            raise ValueError(f"Not a counter column: {column}")

        cursor = await self._db.execute(
            f"""UPDATE suggestions
                SET {column} = MAX({column} + ?, 0), updated_at = ?
                WHERE id = ?""",
            (delta, updated_at, suggestion_id),
        )
        if cursor.rowcount == 0:
            return None

        cursor = await self._db.execute(
            f"SELECT {column} FROM suggestions WHERE id = ?", (suggestion_id,)
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    async def get_vote(self, suggestion_id: str, user_email: str) -> dict[str, Any] | None:
        return await _fetch_vote(self._db, suggestion_id, user_email)

    async def insert_vote(self, vote: dict[str, Any]) -> dict[str, Any]:
        await self._db.execute(
            """INSERT INTO suggestion_votes (id, suggestion_id, user_email, created_at)
               VALUES (:id, :suggestion_id, :user_email, :created_at)""",
            vote,
        )
        return vote

    async def delete_vote(self, suggestion_id: str, user_email: str) -> bool:
        cursor = await self._db.execute(
            "DELETE FROM suggestion_votes WHERE suggestion_id = ? AND user_email = ?",
            (suggestion_id, user_email),
        )
        return cursor.rowcount > 0

    async def insert_comment(self, comment: dict[str, Any]) -> dict[str, Any]:
        await self._db.execute(
            """INSERT INTO suggestion_comments (id, suggestion_id, author_name,
               author_email, content, created_at, updated_at)
               VALUES (:id, :suggestion_id, :author_name,
               :author_email, :content, :created_at, :updated_at)""",
            comment,
        )
        return comment


class SQLiteStore(StorageBackend):
    """SQLite-based storage for the board.

    A single connection is shared by every task, so all access goes through
    one asyncio lock: writes hold it for a whole BEGIN IMMEDIATE transaction
    and reads never see another task's uncommitted rows.
    """

    def __init__(self, db_path: Path, *, wal_mode: bool = True) -> None:
        self.db_path = db_path
        self.wal_mode = wal_mode
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Create database and apply schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        if self._db is None:
            self._db = await aiosqlite.connect(str(self.db_path), isolation_level=None)
            self._db.row_factory = aiosqlite.Row

        if self.wal_mode:
            await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("PRAGMA foreign_keys=ON")
        await self._db.execute("PRAGMA busy_timeout=5000")

        await self._db.executescript(_load_sql("board.sql"))
        logger.info("Initialized SQLite store at %s", self.db_path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Store not initialized. Call initialize() first.")
        return self._db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[StorageTransaction]:
        async with self._lock:
            db = self.db
            with _translate_errors():
                await db.execute("BEGIN IMMEDIATE")
                try:
                    yield _SQLiteTransaction(db)
                    await db.execute("COMMIT")
                except BaseException:
                    if db.in_transaction:
                        await db.execute("ROLLBACK")
                    raise

    @asynccontextmanager
    async def _read(self) -> AsyncIterator[aiosqlite.Connection]:
        async with self._lock:
            with _translate_errors():
                yield self.db

    # --- Suggestion reads ---

    async def get_suggestion(self, suggestion_id: str) -> dict[str, Any] | None:
        async with self._read() as db:
            return await _fetch_suggestion(db, suggestion_id)

    async def list_suggestions(self, *, include_private: bool = False) -> list[dict[str, Any]]:
        query = "SELECT * FROM suggestions"
        if not include_private:
            query += " WHERE is_public = 1"
        query += " ORDER BY created_at DESC"

        async with self._read() as db:
            cursor = await db.execute(query)
            rows = await cursor.fetchall()
        return [_row_to_dict(row) for row in rows]

    # --- Vote reads ---

    async def get_vote(self, suggestion_id: str, user_email: str) -> dict[str, Any] | None:
        async with self._read() as db:
            return await _fetch_vote(db, suggestion_id, user_email)

    async def voted_suggestion_ids(self, user_email: str) -> set[str]:
        async with self._read() as db:
            cursor = await db.execute(
                "SELECT suggestion_id FROM suggestion_votes WHERE user_email = ?",
                (user_email,),
            )
            rows = await cursor.fetchall()
        return {row["suggestion_id"] for row in rows}

    async def count_votes(self, suggestion_id: str) -> int:
        async with self._read() as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM suggestion_votes WHERE suggestion_id = ?",
                (suggestion_id,),
            )
            row = await cursor.fetchone()
        return row[0] if row else 0

    # --- Comment reads ---

    async def list_comments(self, suggestion_id: str) -> list[dict[str, Any]]:
        async with self._read() as db:
            cursor = await db.execute(
                """SELECT * FROM suggestion_comments WHERE suggestion_id = ?
                   ORDER BY created_at ASC, rowid ASC""",
                (suggestion_id,),
            )
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def count_comments(self, suggestion_id: str) -> int:
        async with self._read() as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM suggestion_comments WHERE suggestion_id = ?",
                (suggestion_id,),
            )
            row = await cursor.fetchone()
        return row[0] if row else 0

    # --- Stats ---

    async def get_stats(self) -> dict[str, Any]:
        async with self._read() as db:
            cursor = await db.execute(
                "SELECT COUNT(*), SUM(is_public), SUM(is_pinned) FROM suggestions"
            )
            total, public, pinned = await cursor.fetchone()

            cursor = await db.execute("SELECT COUNT(*) FROM suggestion_votes")
            row = await cursor.fetchone()
            vote_count = row[0] if row else 0

            cursor = await db.execute("SELECT COUNT(*) FROM suggestion_comments")
            row = await cursor.fetchone()
            comment_count = row[0] if row else 0

            cursor = await db.execute(
                "SELECT status, COUNT(*) AS count FROM suggestions GROUP BY status"
            )
            rows = await cursor.fetchall()
            by_status = {row["status"]: row["count"] for row in rows}

        return {
            "suggestions": total,
            "public": public or 0,
            "pinned": pinned or 0,
            "votes": vote_count,
            "comments": comment_count,
            "by_status": by_status,
            "db_path": str(self.db_path),
        }


# --- Helpers ---


def _load_sql(filename: str) -> str:
    """Load SQL file from the schema package."""
    schema_dir = Path(__file__).parent.parent / "schema"
    return (schema_dir / filename).read_text()


async def _fetch_suggestion(db: aiosqlite.Connection, suggestion_id: str) -> dict[str, Any] | None:
    cursor = await db.execute("SELECT * FROM suggestions WHERE id = ?", (suggestion_id,))
    row = await cursor.fetchone()
    return _row_to_dict(row) if row else None


async def _fetch_vote(
    db: aiosqlite.Connection, suggestion_id: str, user_email: str
) -> dict[str, Any] | None:
    cursor = await db.execute(
        "SELECT * FROM suggestion_votes WHERE suggestion_id = ? AND user_email = ?",
        (suggestion_id, user_email),
    )
    row = await cursor.fetchone()
    return dict(row) if row else None


def _row_to_dict(row: aiosqlite.Row) -> dict[str, Any]:
    """Convert a suggestion row to a dict with real booleans."""
    d = dict(row)
    for key in _BOOL_COLUMNS:
        if key in d:
            d[key] = bool(d[key])
    return d


def _validate_update_keys(updates: dict[str, Any]) -> dict[str, Any]:
    """Filter update dict to only allowed column names."""
    filtered = {k: v for k, v in updates.items() if k in _UPDATABLE_COLUMNS}
    rejected = set(updates.keys()) - _UPDATABLE_COLUMNS
    if rejected:
        logger.warning("Rejected invalid column names for suggestions: %s", rejected)
    return filtered
