"""
tests/test_registry.py — Tests for entity-type and attribute lookups.
"""

from __future__ import annotations

import pytest

from campus_eav.errors import EntityTypeNotFoundError, InvalidDataTypeError
from campus_eav.registry import TypeRegistry, default_label
from campus_shared.models import AttributeSpec, DataType


class TestDefaultLabel:
    def test_underscores_become_spaces(self):
        assert default_label("lab_hours") == "Lab hours"

    def test_single_word(self):
        assert default_label("semester") == "Semester"


class TestEntityTypes:
    def test_resolve_seeded_type(self, registry: TypeRegistry, type_ids):
        assert registry.resolve_entity_type_id("course") == type_ids["course"]

    def test_resolve_unknown_type_is_none(self, registry: TypeRegistry, type_ids):
        assert registry.resolve_entity_type_id("widget") is None

    def test_require_unknown_type_raises(self, registry: TypeRegistry):
        with pytest.raises(EntityTypeNotFoundError, match="entity type not found: widget") as exc:
            registry.require_entity_type_id("widget")
        assert exc.value.code == "widget"

    def test_list_ordered_by_code(self, registry: TypeRegistry, type_ids):
        codes = [t.code for t in registry.list_entity_types()]
        assert codes == sorted(codes)
        assert set(codes) == {"course", "maintenance_request", "room", "subject"}

    def test_ensure_entity_type_is_idempotent(self, registry: TypeRegistry):
        first = registry.ensure_entity_type("building", "Building")
        second = registry.ensure_entity_type("building", "Ignored label")
        assert first == second
        [building] = [t for t in registry.list_entity_types() if t.code == "building"]
        assert building.label == "Building"

    def test_ensure_entity_type_default_label(self, registry: TypeRegistry):
        registry.ensure_entity_type("maintenance_log")
        [entity_type] = [t for t in registry.list_entity_types() if t.code == "maintenance_log"]
        assert entity_type.label == "Maintenance log"


class TestAttributes:
    def test_list_ordered_by_name(self, registry: TypeRegistry, type_ids):
        names = [a.name for a in registry.list_attributes(type_ids["course"])]
        assert names == sorted(names)
        assert {"subject_id", "semester", "year"} <= set(names)

    def test_seeded_flags(self, registry: TypeRegistry, type_ids):
        code = registry.get_attribute(type_ids["subject"], "code")
        assert code is not None
        assert code.data_type is DataType.STRING
        assert code.is_required
        assert code.is_unique

        credits = registry.get_attribute(type_ids["subject"], "credits")
        assert credits is not None
        assert credits.data_type is DataType.NUMBER
        assert not credits.is_required

    def test_attribute_map_keyed_by_name(self, registry: TypeRegistry, type_ids):
        attributes = registry.attribute_map(type_ids["room"])
        assert attributes["capacity"].data_type is DataType.NUMBER
        assert attributes["is_available"].data_type is DataType.BOOLEAN

    def test_attribute_names_scoped_per_type(self, registry: TypeRegistry, type_ids):
        subject_lab = registry.resolve_attribute_id(type_ids["subject"], "lab_required")
        course_lab = registry.resolve_attribute_id(type_ids["course"], "lab_required")
        assert subject_lab is not None and course_lab is not None
        assert subject_lab != course_lab

    def test_unknown_attribute(self, registry: TypeRegistry, type_ids):
        assert registry.get_attribute(type_ids["course"], "nickname") is None
        assert registry.resolve_attribute_id(type_ids["course"], "nickname") is None

    def test_ensure_attribute_declares_new(self, registry: TypeRegistry, type_ids):
        attribute = registry.ensure_attribute(type_ids["course"], "delivery_mode", "string")
        assert attribute.label == "Delivery mode"
        assert registry.get_attribute(type_ids["course"], "delivery_mode") == attribute

    def test_ensure_attribute_is_idempotent(self, registry: TypeRegistry, type_ids):
        first = registry.ensure_attribute(type_ids["course"], "credits_override", "number")
        second = registry.ensure_attribute(type_ids["course"], "credits_override", "number")
        assert first.id == second.id
        names = [a.name for a in registry.list_attributes(type_ids["course"])]
        assert names.count("credits_override") == 1

    def test_ensure_attribute_keeps_existing_type(self, registry: TypeRegistry, type_ids):
        attribute = registry.ensure_attribute(type_ids["course"], "year", "string")
        assert attribute.data_type is DataType.NUMBER

    def test_ensure_attribute_rejects_invalid_type(self, registry: TypeRegistry, type_ids):
        with pytest.raises(InvalidDataTypeError):
            registry.ensure_attribute(type_ids["course"], "blob", "binary")
        assert registry.get_attribute(type_ids["course"], "blob") is None

    def test_ensure_attribute_from_spec_fields(self, registry: TypeRegistry, type_ids):
        spec = AttributeSpec(name="room_code", data_type=DataType.STRING, is_unique=True)
        attribute = registry.ensure_attribute(
            type_ids["room"],
            spec.name,
            spec.data_type,
            label="Room code",
            is_unique=spec.is_unique,
        )
        assert attribute.label == "Room code"
        assert attribute.is_unique
        assert not attribute.is_required
