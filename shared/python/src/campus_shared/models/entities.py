"""
models/entities.py — Pydantic models for entity_types, attributes, entities.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class DataType(str, Enum):
    """Value kinds an attribute can declare; one typed column per kind."""

    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


class EntityType(BaseModel):
    """Matches the entity_types table row."""

    id: int
    code: str
    label: str | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "EntityType":
        return cls(**row)


class AttributeDefinition(BaseModel):
    """Matches the attributes table row."""

    id: int
    entity_type_id: int
    name: str
    label: str | None = None
    data_type: DataType
    is_required: bool = False
    is_unique: bool = False

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "AttributeDefinition":
        return cls(**row)


class AttributeSpec(BaseModel):
    """An attribute declaration that has not been persisted yet."""

    name: str
    data_type: DataType
    label: str | None = None
    is_required: bool = False
    is_unique: bool = False


class Entity(BaseModel):
    """Matches the entities table row."""

    id: int
    entity_type_id: int
    natural_key: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "Entity":
        return cls(**row)

    def to_document(self, attributes: dict[str, Any]) -> dict[str, Any]:
        """Flatten with decoded attribute values; entity fields take precedence."""
        return {**attributes, **self.model_dump()}


class PageRequest(BaseModel):
    """Validated page/limit pair for paginated queries."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
