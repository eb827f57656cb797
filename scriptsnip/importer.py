"""
Bulk import of snippets from a JSON file.

The file holds a JSON array of objects with optional ``title``,
``characters`` and ``lines`` keys. Records are inserted one by one so a bad
record is counted and reported without stopping the rest.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from .db import ScriptStore
from .errors import StoreError

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Result of a bulk import."""

    total: int
    imported: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


def load_scripts_file(path: Path) -> list[dict[str, Any]]:
    """
    Read and parse the import file.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content is not a JSON array
    """
    content = Path(path).read_text(encoding="utf-8")
    data = json.loads(content)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array in {path}, got {type(data).__name__}")
    return data


def _record_lists(record: dict[str, Any]) -> tuple[list[str], list[dict[str, Any]]]:
    """
    Pull the characters and lines out of a record, defaulting to empty lists.

    Raises:
        ValueError: If either is not a list, a character is not a string or a
            line is not an object
    """
    characters = record.get("characters") or []
    lines = record.get("lines") or []
    if not isinstance(characters, list):
        raise ValueError(f"characters must be a list, got {type(characters).__name__}")
    if not isinstance(lines, list):
        raise ValueError(f"lines must be a list, got {type(lines).__name__}")
    for name in characters:
        if not isinstance(name, str):
            raise ValueError(f"character names must be strings, got {type(name).__name__}")
    for line in lines:
        if not isinstance(line, dict):
            raise ValueError(f"lines must be objects, got {type(line).__name__}")
    return characters, lines


def import_scripts(
    store: ScriptStore,
    records: list[dict[str, Any]],
    on_progress: Optional[Callable[[int], None]] = None,
) -> ImportResult:
    """
    Insert records into the store.

    Missing titles are stored as NULL and missing characters/lines as empty
    lists. Records whose characters or lines have the wrong shape are counted
    as failed.

    Args:
        store: Snippet store gateway
        records: Parsed import entries
        on_progress: Called with the running count of processed records

    Returns:
        ImportResult with insert/failure counts
    """
    result = ImportResult(total=len(records))

    for index, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            result.failed += 1
            result.errors.append(f"Record {index}: expected an object, got {type(record).__name__}")
        else:
            try:
                characters, lines = _record_lists(record)
                store.create(
                    title=record.get("title") or None,
                    characters=characters,
                    lines=lines,
                )
                result.imported += 1
            except (StoreError, TypeError, ValueError) as e:
                result.failed += 1
                result.errors.append(f"Record {index} ({record.get('title')!r}): {e}")
                logger.warning("Failed to import record %d: %s", index, e)

        if on_progress:
            on_progress(index)

    logger.info("Imported %d/%d records (%d failed)", result.imported, result.total, result.failed)
    return result
