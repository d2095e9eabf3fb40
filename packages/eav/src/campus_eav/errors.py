"""Exceptions raised by the EAV engine."""

from __future__ import annotations


class EavError(Exception):
    """Base class for every engine error."""


class EntityTypeNotFoundError(EavError):
    """An operation named an entity-type code that is not registered."""

    def __init__(self, code: str) -> None:
        super().__init__(f"entity type not found: {code}")
        self.code = code


class EntityNotFoundError(EavError):
    """An update targeted an entity that does not exist as the given type."""

    def __init__(self, entity_id: int, entity_type_code: str) -> None:
        super().__init__(f"entity not found: {entity_type_code} #{entity_id}")
        self.entity_id = entity_id
        self.entity_type_code = entity_type_code


class RequiredAttributeError(EavError):
    """A required attribute was null or missing when creating an entity."""

    def __init__(self, name: str) -> None:
        super().__init__(f"required attribute missing: {name}")
        self.name = name


class InvalidDataTypeError(EavError, ValueError):
    """A data type outside string/number/date/boolean."""

    def __init__(self, data_type: object) -> None:
        super().__init__(f"invalid data type: {data_type}")
        self.data_type = data_type


class ValueEncodingError(EavError, ValueError):
    """A value cannot be stored in the column of its declared data type."""
