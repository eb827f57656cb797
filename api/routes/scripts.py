"""
Script snippet endpoints.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Query, Response, status
from pydantic import ValidationError as PydanticValidationError

from ..deps import CreateRateLimit, Store
from ..schemas.script import (
    BatchRequest,
    Script,
    ScriptCreate,
    ScriptListResponse,
    ScriptUpdate,
)
from scriptsnip.config import DEFAULT_TITLE
from scriptsnip.errors import NotFoundError, ValidationError
from scriptsnip.listing import list_scripts
from scriptsnip.sampling import parse_id_list, random_script, random_scripts

router = APIRouter()
logger = logging.getLogger(__name__)

BATCH_IDS_ERROR = "Invalid input: 'ids' must be a non-empty array of strings."


@router.get("/scripts", response_model=ScriptListResponse)
def get_scripts(
    store: Store,
    page: Optional[str] = Query(None, description="Page number, starting at 1"),
    limit: Optional[str] = Query(None, description="Page size"),
    search: Optional[str] = Query(None, description="Match title, character names or dialogue"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="title or createdAt"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="asc or desc"),
):
    """
    List scripts with search, sorting and pagination.

    Unknown sortBy/sortOrder values fall back to createdAt/desc; the values
    actually applied are echoed in the pagination block.
    """
    result = list_scripts(
        store,
        page=page,
        limit=limit,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return result.to_dict()


@router.get("/scripts/random", response_model=Script)
def get_random_script(store: Store):
    """Get one script chosen uniformly at random."""
    return random_script(store).to_dict()


@router.get("/scripts/random-multiple", response_model=list[Script])
def get_random_scripts(
    store: Store,
    count: Optional[str] = Query(None, description="Number of scripts (default 3)"),
    exclude_ids: Optional[str] = Query(None, alias="excludeIds", description="Comma-separated IDs to leave out"),
):
    """
    Get several distinct random scripts.

    The result may be shorter than ``count`` when the collection is small or
    exclusions remove candidates.
    """
    scripts = random_scripts(store, count=count, exclude_ids=parse_id_list(exclude_ids))
    return [script.to_dict() for script in scripts]


@router.post("/scripts/batch", response_model=list[Script])
def get_scripts_batch(store: Store, payload: Any = Body(None)):
    """Fetch several scripts by ID. IDs that don't exist are skipped."""
    try:
        request = BatchRequest.model_validate(payload)
    except PydanticValidationError:
        raise ValidationError(BATCH_IDS_ERROR)

    return [script.to_dict() for script in store.get_many(request.ids)]


@router.post(
    "/scripts",
    response_model=Script,
    status_code=status.HTTP_201_CREATED,
    dependencies=[CreateRateLimit],
)
def create_script(request: ScriptCreate, store: Store):
    """Create a script. A missing or empty title becomes "Untitled"."""
    script = store.create(
        title=request.title or DEFAULT_TITLE,
        characters=request.characters,
        lines=[line.model_dump() for line in request.lines],
    )
    logger.info(f"Created script {script.id} ({len(script.lines)} lines)")
    return script.to_dict()


@router.get("/scripts/{script_id}", response_model=Script)
def get_script(script_id: str, store: Store):
    """Get a single script by ID."""
    script = store.get(script_id)
    if script is None:
        raise NotFoundError("Script not found")
    return script.to_dict()


@router.put("/scripts/{script_id}", response_model=Script)
def update_script(script_id: str, request: ScriptUpdate, store: Store):
    """Replace any subset of title, characters and lines."""
    return store.update(script_id, **request.changes()).to_dict()


@router.delete("/scripts/{script_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_script(script_id: str, store: Store):
    """Delete a script."""
    store.delete(script_id)
    logger.info(f"Deleted script {script_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
