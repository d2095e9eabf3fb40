"""
store.py — Entity lifecycle and attribute-value persistence.

An entity is an identity row (type, optional natural key, timestamps);
its attribute values live in entity_values, one typed row per
(entity, attribute). Every write runs in one transaction obtained from
ConnectionPool.transaction(): either all rows land or none do.

Attribute names that are not declared for the entity type are skipped,
logged, and reported back in WriteResult.ignored.

Usage:
    from campus_eav.store import EntityStore

    store = EntityStore(pool)

    result = store.create_with_attributes(
        "subject",
        {"name": "Intro to CS", "code": "CS101", "credits": 3},
        natural_key="CS101",
    )
    store.update_attributes(result.entity_id, {"credits": 4}, "subject")
    doc = store.fetch(result.entity_id, "subject")   # {"id": ..., "credits": 4, ...}
    store.delete(result.entity_id)

    # Declare a brand-new attribute in the same transaction as its first value
    store.update_attributes(entity_id, {"lab_hours": 2}, "course",
                            declare={"lab_hours": "number"})
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import duckdb
import structlog

from campus_shared.db import ConnectionPool, fetch_dicts, get_connection_pool, use_connection
from campus_shared.models import AttributeDefinition, AttributeSpec, DataType, Entity
from campus_shared.time_utils import utc_now

from campus_eav.codec import decode, encode
from campus_eav.errors import EntityNotFoundError, RequiredAttributeError
from campus_eav.registry import TypeRegistry
from campus_eav.utils.retry import with_retry

log = structlog.get_logger(__name__)

Declarations = Mapping[str, DataType | str | AttributeSpec]

_INSERT_VALUE = """
    INSERT INTO entity_values
        (entity_id, attribute_id, value_string, value_number, value_date, value_bool)
    VALUES (?, ?, ?, ?, ?, ?)
"""

# Every slot is rewritten so a value never keeps a stale column from an older type.
_UPSERT_VALUE = _INSERT_VALUE + """
    ON CONFLICT (entity_id, attribute_id) DO UPDATE SET
        value_string = excluded.value_string,
        value_number = excluded.value_number,
        value_date = excluded.value_date,
        value_bool = excluded.value_bool
"""


@dataclass
class WriteResult:
    """Outcome of a create or update, including the names that were skipped."""

    entity_id: int
    written: list[str] = field(default_factory=list)
    erased: list[str] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.ignored)


class EntityStore:
    """Creates, updates, fetches and deletes EAV entities."""

    def __init__(
        self,
        pool: ConnectionPool | None = None,
        registry: TypeRegistry | None = None,
    ) -> None:
        self._pool = pool or get_connection_pool()
        self._registry = registry or TypeRegistry(self._pool)

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @with_retry()
    def create_with_attributes(
        self,
        entity_type_code: str,
        attributes: Mapping[str, Any],
        natural_key: str | None = None,
        *,
        declare: Declarations | None = None,
    ) -> WriteResult:
        """
        Create an entity and its initial attribute values in one transaction.

        Args:
            entity_type_code: Registered entity type ("course", "subject", ...).
            attributes:       attribute name -> application value.
            natural_key:      Optional human-meaningful key (not unique).
            declare:          Attributes to declare before writing, name -> data
                              type or AttributeSpec.

        Returns:
            WriteResult carrying the new entity id.

        Raises:
            EntityTypeNotFoundError: unknown entity type code.
            RequiredAttributeError:  a required attribute is null; nothing is written.
            ValueEncodingError:      a value does not fit its declared type.
        """
        store_log = log.bind(entity_type=entity_type_code)

        with self._pool.transaction() as conn:
            type_id = self._registry.require_entity_type_id(entity_type_code, conn=conn)
            self._declare(type_id, declare, conn)

            now = utc_now()
            entity_id = conn.execute(
                """
                INSERT INTO entities (entity_type_id, natural_key, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                RETURNING id
                """,
                [type_id, natural_key, now, now],
            ).fetchone()[0]
            result = WriteResult(entity_id=entity_id)

            definitions = self._registry.attribute_map(type_id, conn=conn)
            for name, value in attributes.items():
                attribute = definitions.get(name)
                if attribute is None:
                    store_log.warning("attribute_not_declared", attribute=name)
                    result.ignored.append(name)
                    continue
                if value is None:
                    if attribute.is_required:
                        raise RequiredAttributeError(name)
                    continue
                self._write_value(conn, _INSERT_VALUE, entity_id, attribute, value)
                result.written.append(name)

        store_log.info(
            "entity_created",
            entity_id=entity_id,
            written=len(result.written),
            ignored=result.ignored,
        )
        return result

    @with_retry()
    def update_attributes(
        self,
        entity_id: int,
        attributes: Mapping[str, Any],
        entity_type_code: str,
        *,
        declare: Declarations | None = None,
    ) -> WriteResult:
        """
        Merge attribute values into an existing entity and bump updated_at.

        Non-null values are upserted; null values erase the stored value,
        required attributes included.

        Raises:
            EntityTypeNotFoundError: unknown entity type code.
            EntityNotFoundError:     no entity with this id and type.
            ValueEncodingError:      a value does not fit its declared type.
        """
        store_log = log.bind(entity_type=entity_type_code, entity_id=entity_id)
        result = WriteResult(entity_id=entity_id)

        with self._pool.transaction() as conn:
            type_id = self._registry.require_entity_type_id(entity_type_code, conn=conn)
            row = conn.execute(
                "SELECT entity_type_id FROM entities WHERE id = ?", [entity_id]
            ).fetchone()
            if row is None or row[0] != type_id:
                raise EntityNotFoundError(entity_id, entity_type_code)
            self._declare(type_id, declare, conn)

            definitions = self._registry.attribute_map(type_id, conn=conn)
            for name, value in attributes.items():
                attribute = definitions.get(name)
                if attribute is None:
                    store_log.warning("attribute_not_declared", attribute=name)
                    result.ignored.append(name)
                    continue
                if value is None:
                    if attribute.is_required:
                        store_log.warning("required_attribute_erased", attribute=name)
                    conn.execute(
                        "DELETE FROM entity_values WHERE entity_id = ? AND attribute_id = ?",
                        [entity_id, attribute.id],
                    )
                    result.erased.append(name)
                    continue
                self._write_value(conn, _UPSERT_VALUE, entity_id, attribute, value)
                result.written.append(name)

            conn.execute(
                "UPDATE entities SET updated_at = ? WHERE id = ?", [utc_now(), entity_id]
            )

        store_log.info(
            "entity_updated",
            written=len(result.written),
            erased=result.erased,
            ignored=result.ignored,
        )
        return result

    @with_retry()
    def delete(self, entity_id: int) -> None:
        """Delete an entity and all of its values. Missing entities are a no-op."""
        with self._pool.transaction() as conn:
            conn.execute("DELETE FROM entity_values WHERE entity_id = ?", [entity_id])
            conn.execute("DELETE FROM entities WHERE id = ?", [entity_id])
        log.info("entity_deleted", entity_id=entity_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch(self, entity_id: int, entity_type_code: str) -> dict[str, Any] | None:
        """
        Load one entity as a flat document.

        Returns:
            Decoded attribute values merged with id, entity_type_id,
            natural_key, created_at and updated_at; None when no entity of
            this type has the id. Attributes without a stored value are
            left out of the document.
        """
        with self._pool.acquire() as conn:
            type_id = self._registry.require_entity_type_id(entity_type_code, conn=conn)
            rows = fetch_dicts(
                conn,
                """
                SELECT id, entity_type_id, natural_key, created_at, updated_at
                FROM entities
                WHERE id = ?
                LIMIT 1
                """,
                [entity_id],
            )
            if not rows:
                return None
            entity = Entity.from_db_row(rows[0])
            if entity.entity_type_id != type_id:
                log.debug(
                    "entity_type_mismatch",
                    entity_id=entity_id,
                    expected=entity_type_code,
                )
                return None
            values = self.fetch_values(entity_id, conn=conn)

        return entity.to_document(values)

    def fetch_values(
        self, entity_id: int, *, conn: duckdb.DuckDBPyConnection | None = None
    ) -> dict[str, Any]:
        """Decoded attribute name -> value map for one entity."""
        with use_connection(self._pool, conn) as c:
            rows = fetch_dicts(
                c,
                """
                SELECT a.name, a.data_type,
                       ev.value_string, ev.value_number, ev.value_date, ev.value_bool
                FROM entity_values ev
                JOIN attributes a ON ev.attribute_id = a.id
                WHERE ev.entity_id = ?
                ORDER BY a.name
                """,
                [entity_id],
            )

        values: dict[str, Any] = {}
        for row in rows:
            value = decode(row["data_type"], row)
            if value is not None:
                values[row["name"]] = value
        return values

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _declare(
        self,
        entity_type_id: int,
        declare: Declarations | None,
        conn: duckdb.DuckDBPyConnection,
    ) -> None:
        for name, spec in (declare or {}).items():
            if isinstance(spec, AttributeSpec):
                self._registry.ensure_attribute(
                    entity_type_id,
                    name,
                    spec.data_type,
                    label=spec.label,
                    is_required=spec.is_required,
                    is_unique=spec.is_unique,
                    conn=conn,
                )
            else:
                self._registry.ensure_attribute(entity_type_id, name, spec, conn=conn)

    @staticmethod
    def _write_value(
        conn: duckdb.DuckDBPyConnection,
        sql: str,
        entity_id: int,
        attribute: AttributeDefinition,
        value: Any,
    ) -> None:
        encoded = encode(attribute.data_type, value)
        conn.execute(sql, [entity_id, attribute.id, *encoded.as_row()])
