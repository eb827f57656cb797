"""
Script snippet schemas.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, Field, StrictStr, field_validator, model_validator


CharacterName = Annotated[str, Field(min_length=1)]


class ScriptLine(BaseModel):
    """A single line of dialogue."""
    character: str = Field(min_length=1)
    dialogue: str = Field(min_length=1)


class ScriptCreate(BaseModel):
    """Request to create a script snippet."""
    title: Optional[str] = None
    characters: list[CharacterName] = Field(min_length=1)
    lines: list[ScriptLine] = Field(min_length=1)


class ScriptUpdate(BaseModel):
    """
    Request to update a script snippet.

    Any subset of fields may be sent and the lists may be empty, but at
    least one field must be present and none may be null.
    """
    title: Optional[str] = None
    characters: Optional[list[CharacterName]] = None
    lines: Optional[list[ScriptLine]] = None

    @field_validator("title", "characters", "lines")
    @classmethod
    def reject_null(cls, value):
        # Defaults are not validated, so only an explicit null reaches here
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    @model_validator(mode="after")
    def require_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self

    def changes(self) -> dict:
        """Fields the client sent, ready to hand to the store."""
        return self.model_dump(include=self.model_fields_set)


class Script(BaseModel):
    """A stored script snippet."""
    id: str
    title: Optional[str]
    characters: list[str]
    lines: list[dict]
    createdAt: str


class Pagination(BaseModel):
    """Pagination metadata for a script listing."""
    totalItems: int
    currentPage: int
    totalPages: int
    pageSize: int
    sortBy: str
    sortOrder: str


class ScriptListResponse(BaseModel):
    """Response containing one page of scripts."""
    data: list[Script]
    pagination: Pagination


class BatchRequest(BaseModel):
    """Request to fetch several scripts by ID."""
    ids: list[StrictStr] = Field(min_length=1)
