"""
campus_eav — Entity-Attribute-Value storage engine for campus records.

Architecture:
  registry.py  — entity-type / attribute-definition lookups and declarations
  codec.py     — typed value encoding (string / number / date / boolean)
  store.py     — transactional create / update / fetch / delete of entities
  query.py     — attribute-equality filtering with pagination
  schema.py    — DuckDB DDL and default entity-type seed
  cli.py       — click entrypoint (campus-eav)
  utils/       — structlog configuration, tenacity retry for write conflicts

Quick start:
    from campus_shared.db import ConnectionPool
    from campus_eav import EntityStore, QueryEngine, create_schema, seed_entity_types
    from campus_eav.registry import TypeRegistry

    pool = ConnectionPool(":memory:")
    create_schema(pool)
    seed_entity_types(TypeRegistry(pool))

    store = EntityStore(pool)
    created = store.create_with_attributes("course", {"subject_id": 1, "semester": "Fall", "year": 2024})
    QueryEngine(pool).query("course", {"semester": "Fall"})
"""

from campus_eav.errors import (
    EavError,
    EntityNotFoundError,
    EntityTypeNotFoundError,
    InvalidDataTypeError,
    RequiredAttributeError,
    ValueEncodingError,
)
from campus_eav.query import QueryEngine, QueryResult
from campus_eav.registry import TypeRegistry
from campus_eav.schema import create_schema, seed_entity_types
from campus_eav.store import EntityStore, WriteResult

__version__ = "0.1.0"

__all__ = [
    "EavError",
    "EntityNotFoundError",
    "EntityTypeNotFoundError",
    "InvalidDataTypeError",
    "RequiredAttributeError",
    "ValueEncodingError",
    "EntityStore",
    "WriteResult",
    "QueryEngine",
    "QueryResult",
    "TypeRegistry",
    "create_schema",
    "seed_entity_types",
]
