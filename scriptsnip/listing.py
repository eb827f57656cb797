"""
Listing engine: filtered, sorted and paginated views over the snippet table.

User input only ever reaches the SQL as bound parameters. The sort column and
direction are looked up in fixed tables, so the ORDER BY clause is assembled
from literals this module owns.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from .config import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_FIELD,
    DEFAULT_SORT_ORDER,
    SORT_FIELDS,
    SORT_ORDERS,
)
from .db import COLUMNS, ScriptStore, Snippet
from .errors import ValidationError

logger = logging.getLogger(__name__)

PAGINATION_ERROR = "Invalid pagination parameters. Page and limit must be positive integers."

# Largest value SQLite accepts for LIMIT and OFFSET
SQLITE_MAX_INTEGER = 2**63 - 1

INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

# sortBy -> ORDER BY keys, {direction} is filled from SORT_DIRECTIONS
ORDER_CLAUSES = {
    "createdAt": "created_at {direction}, rowid {direction}",
    "title": "casefold(title) {direction}, rowid ASC",
}

SORT_DIRECTIONS = {
    "asc": "ASC",
    "desc": "DESC",
}

# Title, any character name, or any line's dialogue contains the search term
SEARCH_PREDICATE = """
    instr(casefold(title), :needle) > 0
    OR EXISTS (
        SELECT 1 FROM json_each(script_snips.characters) AS c
        WHERE instr(casefold(c.value), :needle) > 0
    )
    OR EXISTS (
        SELECT 1 FROM json_each(script_snips.lines) AS l
        WHERE instr(casefold(json_extract(l.value, '$.dialogue')), :needle) > 0
    )
"""


@dataclass
class Pagination:
    """Pagination metadata returned alongside a page of snippets."""

    total_items: int
    current_page: int
    total_pages: int
    page_size: int
    sort_by: str
    sort_order: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalItems": self.total_items,
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "pageSize": self.page_size,
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
        }


@dataclass
class ListingResult:
    """One page of snippets plus its pagination metadata."""

    data: list[Snippet]
    pagination: Pagination

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [snippet.to_dict() for snippet in self.data],
            "pagination": self.pagination.to_dict(),
        }


def parse_int(value: Union[str, int]) -> Optional[int]:
    """Parse a plain base-10 integer (ASCII digits, optional sign), or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if not isinstance(value, str) or not INTEGER_PATTERN.fullmatch(value):
        return None
    return int(value)


def parse_positive_int(value: Union[str, int, None], default: int) -> Optional[int]:
    """
    Parse a request parameter as an integer >= 1.

    Returns:
        The parsed value, ``default`` when absent, or None when invalid
    """
    if value is None or value == "":
        return default
    parsed = parse_int(value)
    if parsed is None or parsed < 1:
        return None
    return parsed


def normalize_sort(sort_by: Optional[str], sort_order: Optional[str]) -> tuple[str, str]:
    """Map arbitrary input onto the sort allow-lists, falling back to the defaults."""
    field = sort_by if sort_by in SORT_FIELDS else DEFAULT_SORT_FIELD
    order = sort_order if sort_order in SORT_ORDERS else DEFAULT_SORT_ORDER
    return field, order


def build_filter(search: Optional[str]) -> tuple[str, dict[str, Any]]:
    """
    Build the WHERE clause and its bound parameters.

    Returns:
        (predicate SQL, parameters); the predicate matches every row when
        ``search`` is empty
    """
    if not search:
        return "1 = 1", {}
    return f"({SEARCH_PREDICATE})", {"needle": search.casefold()}


def build_order(sort_by: str, sort_order: str) -> str:
    """ORDER BY keys for an already-normalized sort field and direction."""
    return ORDER_CLAUSES[sort_by].format(direction=SORT_DIRECTIONS[sort_order])


def list_scripts(
    store: ScriptStore,
    page: Union[str, int, None] = None,
    limit: Union[str, int, None] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> ListingResult:
    """
    Fetch one page of snippets.

    Args:
        store: Snippet store gateway
        page: 1-based page number (default 1)
        limit: Page size (default 10)
        search: Case-insensitive substring matched against title,
            character names and dialogue
        sort_by: "title" or "createdAt"; anything else means "createdAt"
        sort_order: "asc" or "desc"; anything else means "desc"

    Returns:
        ListingResult with the page and pagination metadata

    Raises:
        ValidationError: If page or limit is not a positive integer
        StoreError: If either query fails
    """
    page_number = parse_positive_int(page, DEFAULT_PAGE)
    page_size = parse_positive_int(limit, DEFAULT_PAGE_SIZE)
    if page_number is None or page_size is None:
        raise ValidationError(PAGINATION_ERROR)

    sort_field, order = normalize_sort(sort_by, sort_order)
    predicate, params = build_filter(search)
    skip = (page_number - 1) * page_size

    page_sql = f"""
        SELECT {COLUMNS} FROM script_snips
        WHERE {predicate}
        ORDER BY {build_order(sort_field, order)}
        LIMIT :limit OFFSET :offset
    """
    count_sql = f"SELECT COUNT(*) FROM script_snips WHERE {predicate}"

    with store.read_transaction() as conn:
        rows = conn.execute(
            page_sql,
            {
                **params,
                "limit": min(page_size, SQLITE_MAX_INTEGER),
                "offset": min(skip, SQLITE_MAX_INTEGER),
            },
        ).fetchall()
        total_items = conn.execute(count_sql, params).fetchone()[0]

    logger.debug(
        "Listed page %d (size %d, sort %s %s, search=%r): %d of %d rows",
        page_number, page_size, sort_field, order, search, len(rows), total_items,
    )

    return ListingResult(
        data=[Snippet.from_row(row) for row in rows],
        pagination=Pagination(
            total_items=total_items,
            current_page=page_number,
            total_pages=math.ceil(total_items / page_size),
            page_size=page_size,
            sort_by=sort_field,
            sort_order=order,
        ),
    )
