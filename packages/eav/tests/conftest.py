"""
tests/conftest.py — Shared pytest fixtures for the EAV engine test suite.

Provides:
  pool        — ConnectionPool over a fresh in-memory DuckDB with the schema
  registry    — TypeRegistry bound to that pool
  type_ids    — default entity types seeded, code -> id
  store       — EntityStore over the seeded database
  engine      — QueryEngine over the seeded database
  row_count   — helper counting rows in a table
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from campus_shared.db import ConnectionPool
from campus_eav.query import QueryEngine
from campus_eav.registry import TypeRegistry
from campus_eav.schema import create_schema, seed_entity_types
from campus_eav.store import EntityStore
from campus_eav.utils.logging import configure_logging


@pytest.fixture(scope="session", autouse=True)
def _configure_logging() -> None:
    configure_logging(log_level="DEBUG", log_format="console")


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def pool() -> Iterator[ConnectionPool]:
    pool = ConnectionPool(":memory:")
    create_schema(pool)
    yield pool
    pool.close()


@pytest.fixture
def registry(pool: ConnectionPool) -> TypeRegistry:
    return TypeRegistry(pool)


@pytest.fixture
def type_ids(registry: TypeRegistry) -> dict[str, int]:
    return seed_entity_types(registry)


@pytest.fixture
def store(pool: ConnectionPool, registry: TypeRegistry, type_ids: dict[str, int]) -> EntityStore:
    return EntityStore(pool, registry)


@pytest.fixture
def engine(
    pool: ConnectionPool,
    registry: TypeRegistry,
    store: EntityStore,
) -> QueryEngine:
    return QueryEngine(pool, registry, store)


@pytest.fixture
def row_count(pool: ConnectionPool) -> Callable[..., int]:
    """
    Count rows in *table*, optionally filtered by column equality.

    Usage in tests:
        assert row_count("entity_values", entity_id=7) == 0
    """

    def _count(table: str, **where: Any) -> int:
        sql = f"SELECT COUNT(*) FROM {table}"
        if where:
            sql += " WHERE " + " AND ".join(f"{col} = ?" for col in where)
        with pool.acquire() as conn:
            return conn.execute(sql, list(where.values())).fetchone()[0]

    return _count


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_subject() -> dict[str, Any]:
    return {
        "name": "Intro to CS",
        "code": "CS101",
        "credits": 3,
        "department_id": 5,
        "is_active": True,
    }


@pytest.fixture
def sample_course() -> dict[str, Any]:
    return {
        "subject_id": 1,
        "semester": "Fall",
        "year": 2024,
        "instructor_id": 17,
        "max_enrollment": 30,
        "current_enrollment": 0,
        "lab_required": True,
    }
