"""Translation key conventions.

Entity-bound keys look like ``<entity_type>.<entity_id>.<field>`` (for example
``product.550e8400-e29b-41d4-a716-446655440000.name``). Free-form UI keys look
like ``<namespace>.<leaf>`` and are never parsed as entity keys.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

ENTITY_TYPES = frozenset({"product", "category"})

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class EntityKey:
    entity_type: str
    entity_id: str
    field: str

    @property
    def has_uuid_id(self) -> bool:
        return is_uuid(self.entity_id)

    def __str__(self) -> str:
        return f"{self.entity_type}.{self.entity_id}.{self.field}"


def is_uuid(value: str) -> bool:
    return bool(UUID_RE.match(value or ""))


def build_entity_key(entity_type: str, entity_id: str, field: str) -> str:
    entity_type = (entity_type or "").strip().lower()
    entity_id = str(entity_id or "").strip()
    field = (field or "").strip()
    if entity_type not in ENTITY_TYPES:
        raise ValueError(f"Unknown entity type {entity_type!r}")
    if not entity_id or "." in entity_id:
        raise ValueError(f"Invalid entity id {entity_id!r}")
    if not field:
        raise ValueError("Field name must not be empty")
    return f"{entity_type}.{entity_id}.{field}"


def parse_entity_key(key: str) -> EntityKey | None:
    """Split an entity-bound key, or return None for free-form UI keys.

    Everything after the identifier segment is the field, so nested fields such
    as ``product.<id>.variant.name`` keep their dots.
    """
    parts = (key or "").split(".", 2)
    if len(parts) != 3:
        return None
    entity_type, entity_id, field = parts
    if entity_type not in ENTITY_TYPES or not entity_id or not field:
        return None
    return EntityKey(entity_type=entity_type, entity_id=entity_id, field=field)


def key_pattern(entity_type: str, field: str = "name") -> str:
    """SQL LIKE pattern matching every key of one entity type and field."""
    return f"{entity_type}.%.{field}"
