"""
Script snippet database module.

Handles the SQLite store behind the API:
- Schema creation
- Connection handling (one connection per operation)
- Basic CRUD primitives used by the request handlers
"""

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator, Iterable, Optional

from .config import DB_PATH
from .errors import NotFoundError, StoreError

logger = logging.getLogger(__name__)


# SQL schema for the snippet database
SCHEMA = """
CREATE TABLE IF NOT EXISTS script_snips (
    id TEXT PRIMARY KEY,
    title TEXT,
    characters TEXT NOT NULL DEFAULT '[]',
    lines TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_script_snips_created_at ON script_snips(created_at);
"""

# Column list shared by every SELECT that builds a Snippet
COLUMNS = "id, title, characters, lines, created_at"

# Fields that may be changed by update()
UPDATABLE_FIELDS = ("title", "characters", "lines")


@dataclass
class Snippet:
    """A stored script snippet."""

    id: str
    title: Optional[str]
    characters: list[str] = field(default_factory=list)
    lines: list[dict[str, str]] = field(default_factory=list)
    created_at: str = ""

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Snippet":
        return cls(
            id=row["id"],
            title=row["title"],
            characters=json.loads(row["characters"]),
            lines=json.loads(row["lines"]),
            created_at=row["created_at"],
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the wire field names."""
        return {
            "id": self.id,
            "title": self.title,
            "characters": self.characters,
            "lines": self.lines,
            "createdAt": self.created_at,
        }


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if isinstance(value, str) else value


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


class ScriptStore:
    """
    Gateway over the script_snips table.

    Constructed once per process and handed to the engines. Every operation
    opens its own connection, so one instance can be shared across threads.
    Any sqlite3.Error raised while a connection is open surfaces as StoreError.
    """

    def __init__(self, db_path: Path = DB_PATH):
        self.db_path = Path(db_path)

    def init_database(self) -> None:
        """Initialize the database with schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.connect() as conn:
            conn.executescript(SCHEMA)
        logger.debug("Schema ready at %s", self.db_path)

    @contextmanager
    def connect(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Open a connection in autocommit mode.

        Registers ``casefold()`` so queries can compare text without the
        ASCII-only limits of SQLite's LIKE and LOWER.
        """
        try:
            conn = sqlite3.connect(self.db_path, isolation_level=None, check_same_thread=False)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

        try:
            conn.row_factory = sqlite3.Row
            conn.create_function("casefold", 1, _casefold, deterministic=True)
            yield conn
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    @contextmanager
    def read_transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Yield a connection with an open read transaction.

        Statements issued inside share one snapshot of the table.
        """
        with self.connect() as conn:
            conn.execute("BEGIN")
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def count(self) -> int:
        """Total number of stored snippets."""
        with self.connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM script_snips").fetchone()[0]

    def create(
        self,
        characters: list[str],
        lines: list[dict[str, str]],
        title: Optional[str] = None,
    ) -> Snippet:
        """
        Insert a new snippet.

        Args:
            characters: Character names
            lines: Dialogue entries ({character, dialogue})
            title: Optional title, stored as NULL when None

        Returns:
            The stored Snippet with its generated id and timestamp
        """
        snippet = Snippet(
            id=str(uuid.uuid4()),
            title=title,
            characters=list(characters),
            lines=[dict(line) for line in lines],
            created_at=_now(),
        )

        with self.connect() as conn:
            conn.execute(
                f"INSERT INTO script_snips ({COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (
                    snippet.id,
                    snippet.title,
                    json.dumps(snippet.characters),
                    json.dumps(snippet.lines),
                    snippet.created_at,
                ),
            )

        return snippet

    def get(self, script_id: str) -> Optional[Snippet]:
        """
        Get a specific snippet by ID.

        Returns:
            Snippet or None if not found
        """
        with self.connect() as conn:
            row = conn.execute(
                f"SELECT {COLUMNS} FROM script_snips WHERE id = ?",
                (script_id,),
            ).fetchone()

        return Snippet.from_row(row) if row is not None else None

    def get_many(self, script_ids: Iterable[str]) -> list[Snippet]:
        """Get every snippet whose ID is in ``script_ids``. Unknown IDs are ignored."""
        ids = list(dict.fromkeys(script_ids))
        if not ids:
            return []

        with self.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {COLUMNS} FROM script_snips
                WHERE id IN (SELECT value FROM json_each(?))
                ORDER BY rowid
                """,
                (json.dumps(ids),),
            ).fetchall()

        return [Snippet.from_row(row) for row in rows]

    def update(self, script_id: str, **fields: Any) -> Snippet:
        """
        Replace any subset of title, characters and lines.

        Raises:
            NotFoundError: If no snippet has this ID
            ValueError: If an unknown field is passed
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        assignments = []
        params: list[Any] = []
        for name in UPDATABLE_FIELDS:
            if name in fields:
                assignments.append(f"{name} = ?")
                params.append(fields[name] if name == "title" else json.dumps(fields[name]))

        with self.connect() as conn:
            if assignments:
                conn.execute(
                    f"UPDATE script_snips SET {', '.join(assignments)} WHERE id = ?",
                    (*params, script_id),
                )
            row = conn.execute(
                f"SELECT {COLUMNS} FROM script_snips WHERE id = ?",
                (script_id,),
            ).fetchone()

        if row is None:
            raise NotFoundError()
        return Snippet.from_row(row)

    def delete(self, script_id: str) -> None:
        """
        Delete a snippet by ID.

        Raises:
            NotFoundError: If no snippet has this ID
        """
        with self.connect() as conn:
            deleted = conn.execute(
                "DELETE FROM script_snips WHERE id = ?", (script_id,)
            ).rowcount

        if deleted == 0:
            raise NotFoundError()
