"""
campus_shared.models — Pydantic models matching each database table.

Row models provide:
  .from_db_row(row: dict) -> Model
"""

from campus_shared.models.entities import (
    AttributeDefinition,
    AttributeSpec,
    DataType,
    Entity,
    EntityType,
    PageRequest,
)

__all__ = [
    "DataType",
    "EntityType",
    "AttributeDefinition",
    "AttributeSpec",
    "Entity",
    "PageRequest",
]
