"""
registry.py — Entity-type and attribute-definition lookups.

Every lookup re-queries DuckDB; nothing is cached. Methods take an
optional ``conn`` so a write can run its lookups inside its own
transaction; without one a cursor is acquired for the single lookup.

Usage:
    from campus_eav.registry import TypeRegistry

    registry = TypeRegistry(pool)
    type_id = registry.require_entity_type_id("course")
    attrs = registry.attribute_map(type_id)     # {"semester": AttributeDefinition, ...}

    # Out-of-band declarations (seed / CLI / first write with declare=)
    registry.ensure_attribute(type_id, "lab_hours", "number")
"""

from __future__ import annotations

import duckdb
import structlog

from campus_shared.db import ConnectionPool, fetch_dicts, get_connection_pool, use_connection
from campus_shared.models import AttributeDefinition, DataType, EntityType

from campus_eav.codec import parse_data_type
from campus_eav.errors import EntityTypeNotFoundError

log = structlog.get_logger(__name__)

_ATTRIBUTE_COLUMNS = "id, entity_type_id, name, label, data_type, is_required, is_unique"


def default_label(name: str) -> str:
    """Display label derived from an attribute name: "lab_hours" -> "Lab hours"."""
    words = name.replace("_", " ").strip()
    return words[:1].upper() + words[1:]


class TypeRegistry:
    """Read-side schema lookups plus idempotent declarations."""

    def __init__(self, pool: ConnectionPool | None = None) -> None:
        self._pool = pool or get_connection_pool()

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    # ------------------------------------------------------------------
    # Entity types
    # ------------------------------------------------------------------

    def resolve_entity_type_id(
        self, code: str, *, conn: duckdb.DuckDBPyConnection | None = None
    ) -> int | None:
        with use_connection(self._pool, conn) as c:
            row = c.execute(
                "SELECT id FROM entity_types WHERE code = ? LIMIT 1", [code]
            ).fetchone()
        return row[0] if row else None

    def require_entity_type_id(
        self, code: str, *, conn: duckdb.DuckDBPyConnection | None = None
    ) -> int:
        """Like resolve_entity_type_id, but an unknown code is a configuration error."""
        type_id = self.resolve_entity_type_id(code, conn=conn)
        if type_id is None:
            raise EntityTypeNotFoundError(code)
        return type_id

    def list_entity_types(
        self, *, conn: duckdb.DuckDBPyConnection | None = None
    ) -> list[EntityType]:
        with use_connection(self._pool, conn) as c:
            rows = fetch_dicts(c, "SELECT id, code, label FROM entity_types ORDER BY code")
        return [EntityType.from_db_row(r) for r in rows]

    def ensure_entity_type(
        self,
        code: str,
        label: str | None = None,
        *,
        conn: duckdb.DuckDBPyConnection | None = None,
    ) -> int:
        """Register *code* if it is not registered yet; return its id either way."""
        with use_connection(self._pool, conn) as c:
            c.execute(
                """
                INSERT INTO entity_types (code, label) VALUES (?, ?)
                ON CONFLICT (code) DO NOTHING
                """,
                [code, label or default_label(code)],
            )
            return self.require_entity_type_id(code, conn=c)

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def list_attributes(
        self, entity_type_id: int, *, conn: duckdb.DuckDBPyConnection | None = None
    ) -> list[AttributeDefinition]:
        """All attributes declared for a type, ordered by name."""
        with use_connection(self._pool, conn) as c:
            rows = fetch_dicts(
                c,
                f"""
                SELECT {_ATTRIBUTE_COLUMNS}
                FROM attributes
                WHERE entity_type_id = ?
                ORDER BY name
                """,
                [entity_type_id],
            )
        return [AttributeDefinition.from_db_row(r) for r in rows]

    def attribute_map(
        self, entity_type_id: int, *, conn: duckdb.DuckDBPyConnection | None = None
    ) -> dict[str, AttributeDefinition]:
        return {a.name: a for a in self.list_attributes(entity_type_id, conn=conn)}

    def get_attribute(
        self,
        entity_type_id: int,
        name: str,
        *,
        conn: duckdb.DuckDBPyConnection | None = None,
    ) -> AttributeDefinition | None:
        with use_connection(self._pool, conn) as c:
            rows = fetch_dicts(
                c,
                f"""
                SELECT {_ATTRIBUTE_COLUMNS}
                FROM attributes
                WHERE entity_type_id = ? AND name = ?
                LIMIT 1
                """,
                [entity_type_id, name],
            )
        return AttributeDefinition.from_db_row(rows[0]) if rows else None

    def resolve_attribute_id(
        self,
        entity_type_id: int,
        name: str,
        *,
        conn: duckdb.DuckDBPyConnection | None = None,
    ) -> int | None:
        attribute = self.get_attribute(entity_type_id, name, conn=conn)
        return attribute.id if attribute else None

    def ensure_attribute(
        self,
        entity_type_id: int,
        name: str,
        data_type: DataType | str,
        *,
        label: str | None = None,
        is_required: bool = False,
        is_unique: bool = False,
        conn: duckdb.DuckDBPyConnection | None = None,
    ) -> AttributeDefinition:
        """
        Declare an attribute if it is not declared yet.

        The unique (entity_type_id, name) constraint makes the insert a no-op
        for an existing attribute, in which case the stored definition is
        returned unchanged. A differing data type is logged, not applied.

        Raises:
            InvalidDataTypeError: data_type is not one of the four kinds.
        """
        kind = parse_data_type(data_type)
        with use_connection(self._pool, conn) as c:
            c.execute(
                """
                INSERT INTO attributes
                    (entity_type_id, name, label, data_type, is_required, is_unique)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (entity_type_id, name) DO NOTHING
                """,
                [
                    entity_type_id,
                    name,
                    label or default_label(name),
                    kind.value,
                    is_required,
                    is_unique,
                ],
            )
            attribute = self.get_attribute(entity_type_id, name, conn=c)

        if attribute is None:
            raise RuntimeError(f"attribute {name!r} vanished after insert")
        if attribute.data_type is not kind:
            log.warning(
                "attribute_type_mismatch",
                entity_type_id=entity_type_id,
                attribute=name,
                declared=attribute.data_type.value,
                requested=kind.value,
            )
        return attribute
