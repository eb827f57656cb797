"""
Sampling engine: uniformly random snippets drawn by the store.

Randomness stays in SQLite (a random OFFSET or ORDER BY RANDOM()), so the
full collection is never loaded into memory.
"""

import json
import logging
import random
from typing import Iterable, Optional, Union

from .config import DEFAULT_RANDOM_COUNT
from .db import COLUMNS, ScriptStore, Snippet
from .errors import EmptyPopulationError, InternalError, NotFoundError, ValidationError
from .listing import parse_int

logger = logging.getLogger(__name__)

COUNT_ERROR = "Invalid count parameter. Must be a positive integer."
NO_SCRIPTS_ERROR = "No scripts available to choose from."
EMPTY_DATABASE_MESSAGE = "No scripts available in the database."


def parse_count(value: Union[str, int, None]) -> int:
    """
    Parse the requested sample size.

    Raises:
        ValidationError: If the value is not an integer >= 0
    """
    if value is None or value == "":
        return DEFAULT_RANDOM_COUNT
    count = parse_int(value)
    if count is None or count < 0:
        raise ValidationError(COUNT_ERROR)
    return count


def parse_id_list(raw: Optional[str]) -> set[str]:
    """Split a comma-delimited ID list, dropping blanks."""
    if not raw:
        return set()
    return {part.strip() for part in raw.split(",") if part.strip()}


def random_script(store: ScriptStore, rng: Optional[random.Random] = None) -> Snippet:
    """
    Pick one snippet uniformly at random.

    Counts the table, picks a random offset, then reads the row there.

    Raises:
        NotFoundError: If the table is empty
        InternalError: If the row at the chosen offset disappeared between
            the count and the read
        StoreError: If a query fails
    """
    rng = rng or random
    total = store.count()
    if total == 0:
        raise NotFoundError(NO_SCRIPTS_ERROR)

    offset = rng.randrange(total)
    with store.connect() as conn:
        row = conn.execute(
            f"SELECT {COLUMNS} FROM script_snips ORDER BY rowid LIMIT 1 OFFSET ?",
            (offset,),
        ).fetchone()

    if row is None:
        logger.error("No row at offset %d although count was %d", offset, total)
        raise InternalError("Failed to retrieve a random script.")

    return Snippet.from_row(row)


def random_scripts(
    store: ScriptStore,
    count: Union[str, int, None] = None,
    exclude_ids: Optional[Iterable[str]] = None,
) -> list[Snippet]:
    """
    Pick up to ``count`` distinct snippets at random.

    The sample size is clamped to the table size before exclusions are
    applied, so fewer than ``count`` rows may come back. That is not an error.

    Args:
        store: Snippet store gateway
        count: Number of snippets wanted (default 3, 0 returns [] immediately)
        exclude_ids: IDs that must not appear in the result

    Raises:
        ValidationError: If count is not an integer >= 0
        EmptyPopulationError: If the table is empty
        StoreError: If a query fails
    """
    wanted = parse_count(count)
    if wanted == 0:
        return []

    total = store.count()
    if total == 0:
        raise EmptyPopulationError(EMPTY_DATABASE_MESSAGE)

    sample_size = min(wanted, total)
    excluded = sorted(set(exclude_ids or ()))

    sql = f"SELECT {COLUMNS} FROM script_snips"
    params: list = []
    if excluded:
        sql += " WHERE id NOT IN (SELECT value FROM json_each(?))"
        params.append(json.dumps(excluded))
    sql += " ORDER BY RANDOM() LIMIT ?"
    params.append(sample_size)

    with store.connect() as conn:
        rows = conn.execute(sql, params).fetchall()

    logger.debug(
        "Sampled %d of %d requested (population %d, %d excluded)",
        len(rows), wanted, total, len(excluded),
    )
    return [Snippet.from_row(row) for row in rows]
