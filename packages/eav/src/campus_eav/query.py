"""
query.py — Attribute-equality filtering over entities of one type.

Each filter becomes an EXISTS condition on entity_values: the entity must
have a value row for that attribute whose typed column equals the filter
value, encoded the same way it would be written. A value that cannot be
encoded in the attribute's type matches nothing. Filter names that are
not declared for the type are dropped and reported in
QueryResult.ignored_filters; the result set is then looser than asked.

The total is counted with the same filters as the page (resolved
deliberately: an unfiltered count would disagree with total_pages).

Matches are ordered by entity id descending (newest first) and each page
is re-hydrated one entity at a time through EntityStore.fetch().

Usage:
    from campus_eav.query import QueryEngine

    engine = QueryEngine(pool)
    result = engine.query("course", {"semester": "Fall"}, page=1, limit=10)
    result.total, [doc["id"] for doc in result.entities]
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

import duckdb
import structlog

from campus_shared.config import settings
from campus_shared.db import ConnectionPool, get_connection_pool
from campus_shared.models import PageRequest

from campus_eav.codec import encode
from campus_eav.errors import ValueEncodingError
from campus_eav.registry import TypeRegistry
from campus_eav.store import EntityStore

log = structlog.get_logger(__name__)


@dataclass
class QueryResult:
    """One page of entity documents plus pagination totals."""

    entities: list[dict[str, Any]]
    total: int
    page: int
    limit: int
    total_pages: int
    ignored_filters: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class QueryEngine:
    """Builds filtered, paginated selections of entities."""

    def __init__(
        self,
        pool: ConnectionPool | None = None,
        registry: TypeRegistry | None = None,
        store: EntityStore | None = None,
    ) -> None:
        self._pool = pool or get_connection_pool()
        self._registry = registry or TypeRegistry(self._pool)
        self._store = store or EntityStore(self._pool, self._registry)

    def query(
        self,
        entity_type_code: str,
        filters: Mapping[str, Any] | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> QueryResult:
        """
        Return one page of entities of *entity_type_code* matching every filter.

        Args:
            entity_type_code: Registered entity type.
            filters:          attribute name -> required value. None values
                              impose no constraint.
            page:             1-based page number.
            limit:            Page size (default settings.default_page_size).

        Returns:
            QueryResult; total and total_pages count filtered matches.

        Raises:
            EntityTypeNotFoundError: unknown entity type code.
            ValueError:              invalid page/limit.
        """
        request = PageRequest(
            page=page,
            limit=settings.default_page_size if limit is None else limit,
        )
        if request.limit > settings.max_page_size:
            raise ValueError(
                f"limit {request.limit} exceeds max_page_size {settings.max_page_size}"
            )
        query_log = log.bind(entity_type=entity_type_code)

        with self._pool.acquire() as conn:
            type_id = self._registry.require_entity_type_id(entity_type_code, conn=conn)
            conditions, params, ignored = self._build_conditions(
                type_id, filters or {}, conn
            )
            where = " AND ".join(["e.entity_type_id = ?", *conditions])
            where_params = [type_id, *params]

            ids = [
                row[0]
                for row in conn.execute(
                    f"""
                    SELECT e.id
                    FROM entities e
                    WHERE {where}
                    ORDER BY e.id DESC
                    LIMIT ? OFFSET ?
                    """,
                    [*where_params, request.limit, request.offset],
                ).fetchall()
            ]
            total = conn.execute(
                f"SELECT COUNT(*) FROM entities e WHERE {where}", where_params
            ).fetchone()[0]

        entities = []
        for entity_id in ids:
            doc = self._store.fetch(entity_id, entity_type_code)
            if doc is not None:
                entities.append(doc)

        query_log.info(
            "query_complete",
            filters=len(conditions),
            ignored_filters=ignored,
            total=total,
            page=request.page,
            returned=len(entities),
        )
        return QueryResult(
            entities=entities,
            total=total,
            page=request.page,
            limit=request.limit,
            total_pages=math.ceil(total / request.limit),
            ignored_filters=ignored,
        )

    def _build_conditions(
        self,
        entity_type_id: int,
        filters: Mapping[str, Any],
        conn: duckdb.DuckDBPyConnection,
    ) -> tuple[list[str], list[Any], list[str]]:
        conditions: list[str] = []
        params: list[Any] = []
        ignored: list[str] = []

        for name, value in filters.items():
            if value is None:
                continue
            attribute = self._registry.get_attribute(entity_type_id, name, conn=conn)
            if attribute is None:
                log.warning("filter_attribute_not_declared", attribute=name)
                ignored.append(name)
                continue
            try:
                encoded = encode(attribute.data_type, value)
            except ValueEncodingError:
                # No stored value of this type can equal the filter value
                log.debug("filter_value_unmatchable", attribute=name, value=repr(value))
                conditions.append("FALSE")
                continue
            conditions.append(
                f"""
                EXISTS (
                    SELECT 1 FROM entity_values ev
                    WHERE ev.entity_id = e.id
                      AND ev.attribute_id = ?
                      AND ev.{encoded.column} = ?
                )
                """
            )
            params.extend([attribute.id, encoded.value])

        return conditions, params, ignored
