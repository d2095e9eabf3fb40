"""
schema.py — DuckDB DDL for the EAV tables and the default entity-type seed.

Tables:
  entity_types   registry of entity categories (code unique)
  attributes     declared schema per type, unique (entity_type_id, name)
  entities       generic record identity, ids from a monotonic sequence
  entity_values  one typed row per (entity_id, attribute_id)

Usage:
    from campus_eav.schema import create_schema, seed_entity_types

    create_schema(pool)                 # idempotent
    seed_entity_types(TypeRegistry(pool))
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import structlog

from campus_shared.db import ConnectionPool
from campus_shared.models import AttributeSpec, DataType

from campus_eav.registry import TypeRegistry

log = structlog.get_logger(__name__)

DDL: tuple[str, ...] = (
    "CREATE SEQUENCE IF NOT EXISTS entity_types_id_seq START 1",
    """
    CREATE TABLE IF NOT EXISTS entity_types (
        id      BIGINT PRIMARY KEY DEFAULT nextval('entity_types_id_seq'),
        code    VARCHAR NOT NULL UNIQUE,
        label   VARCHAR
    )
    """,
    "CREATE SEQUENCE IF NOT EXISTS attributes_id_seq START 1",
    """
    CREATE TABLE IF NOT EXISTS attributes (
        id              BIGINT PRIMARY KEY DEFAULT nextval('attributes_id_seq'),
        entity_type_id  BIGINT NOT NULL,
        name            VARCHAR NOT NULL,
        label           VARCHAR,
        data_type       VARCHAR NOT NULL
                        CHECK (data_type IN ('string', 'number', 'date', 'boolean')),
        is_required     BOOLEAN NOT NULL DEFAULT FALSE,
        is_unique       BOOLEAN NOT NULL DEFAULT FALSE,
        UNIQUE (entity_type_id, name)
    )
    """,
    "CREATE SEQUENCE IF NOT EXISTS entities_id_seq START 1",
    """
    CREATE TABLE IF NOT EXISTS entities (
        id              BIGINT PRIMARY KEY DEFAULT nextval('entities_id_seq'),
        entity_type_id  BIGINT NOT NULL,
        natural_key     VARCHAR,
        created_at      TIMESTAMP NOT NULL,
        updated_at      TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS entity_values (
        entity_id       BIGINT NOT NULL,
        attribute_id    BIGINT NOT NULL,
        value_string    VARCHAR,
        value_number    DOUBLE,
        value_date      TIMESTAMP,
        value_bool      TINYINT,
        PRIMARY KEY (entity_id, attribute_id)
    )
    """,
)


def create_schema(pool: ConnectionPool) -> None:
    """Create the sequences and tables that do not exist yet."""
    with pool.transaction() as conn:
        for statement in DDL:
            conn.execute(statement)
    log.info("schema_ready", path=pool.database_path)


# ---------------------------------------------------------------------------
# Default entity types (course catalog, course offerings, facilities)
# ---------------------------------------------------------------------------

_S, _N, _D, _B = DataType.STRING, DataType.NUMBER, DataType.DATE, DataType.BOOLEAN


def _specs(*fields: tuple) -> list[AttributeSpec]:
    specs = []
    for name, data_type, *flags in fields:
        specs.append(
            AttributeSpec(
                name=name,
                data_type=data_type,
                is_required="required" in flags,
                is_unique="unique" in flags,
            )
        )
    return specs


DEFAULT_ENTITY_TYPES: dict[str, list[AttributeSpec]] = {
    "subject": _specs(
        ("name", _S, "required"),
        ("code", _S, "required", "unique"),
        ("description", _S),
        ("credits", _N),
        ("classification", _S),
        ("department_id", _N),
        ("is_active", _B),
        ("created_by", _N),
        ("updated_by", _N),
        ("prerequisites", _S),
        ("corequisites", _S),
        ("learning_outcomes", _S),
        ("required_textbooks", _S),
        ("recommended_textbooks", _S),
        ("lab_required", _B),
        ("studio_required", _B),
        ("special_permission_needed", _B),
        ("industry_certifications", _S),
        ("minimum_grade", _S),
        ("repeatable_for_credit", _B),
        ("max_repeats", _N),
        ("syllabus_template", _S),
        ("typical_offering", _S),
    ),
    "course": _specs(
        ("subject_id", _N, "required"),
        ("semester", _S, "required"),
        ("year", _N, "required"),
        ("instructor_id", _N),
        ("max_enrollment", _N),
        ("current_enrollment", _N),
        ("schedule", _S),
        ("is_active", _B),
        ("prerequisites", _S),
        ("lab_required", _B),
        ("lab_hours", _N),
        ("grading_rubric", _S),
        ("assessment_types", _S),
        ("attendance_policy", _S),
        ("online_meeting_link", _S),
        ("syllabus_url", _S),
        ("office_hours", _S),
        ("textbook_required", _B),
        ("textbook_info", _S),
    ),
    "maintenance_request": _specs(
        ("issue_type", _S, "required"),
        ("title", _S),
        ("category", _S),
        ("description", _S),
        ("severity", _S),
        ("priority", _S),
        ("status", _S, "required"),
        ("location_building", _S),
        ("location_floor", _S),
        ("location_room_number", _S),
        ("reported_by", _N),
        ("submitted_by", _N),
        ("reported_date", _D),
        ("assigned_to", _N),
        ("scheduled_date", _D),
        ("completed_date", _D),
        ("estimated_cost", _N),
        ("actual_cost", _N),
        ("notes", _S),
        ("attachments", _S),
        ("preventive_maintenance", _B),
        ("recurrence_pattern", _S),
    ),
    "room": _specs(
        ("room_name", _S, "required"),
        ("building", _S),
        ("floor", _S),
        ("room_number", _S),
        ("capacity", _N),
        ("room_type", _S),
        ("description", _S),
        ("equipment", _S),
        ("amenities", _S),
        ("is_available", _B),
    ),
}


def seed_entity_types(
    registry: TypeRegistry,
    definitions: Mapping[str, Sequence[AttributeSpec]] | None = None,
) -> dict[str, int]:
    """
    Declare entity types and their attributes; safe to run repeatedly.

    Args:
        registry:    Registry bound to the target pool.
        definitions: type code -> attribute specs (default DEFAULT_ENTITY_TYPES).

    Returns:
        type code -> entity type id.
    """
    definitions = DEFAULT_ENTITY_TYPES if definitions is None else definitions
    type_ids: dict[str, int] = {}

    with registry.pool.transaction() as conn:
        for code, specs in definitions.items():
            type_id = registry.ensure_entity_type(code, conn=conn)
            for spec in specs:
                registry.ensure_attribute(
                    type_id,
                    spec.name,
                    spec.data_type,
                    label=spec.label,
                    is_required=spec.is_required,
                    is_unique=spec.is_unique,
                    conn=conn,
                )
            type_ids[code] = type_id
            log.info("entity_type_seeded", code=code, attributes=len(specs))

    return type_ids
