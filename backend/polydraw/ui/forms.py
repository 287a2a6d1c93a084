"""Form state for entering polygon attributes and inspecting a polygon."""

from __future__ import annotations

import dataclasses
from typing import Any

RESERVED_PROPERTIES = ("id", "created_at")


@dataclasses.dataclass
class AttributeField:
    key: str = ""
    value: str = ""


def _default_fields() -> list[AttributeField]:
    return [AttributeField("name"), AttributeField("type")]


@dataclasses.dataclass
class AttributeForm:
    """Editable list of key/value rows for a newly drawn polygon.

    Rows with a blank key are ignored on submit; keys are trimmed and a
    later row overrides an earlier one with the same key.
    """

    fields: list[AttributeField] = dataclasses.field(default_factory=_default_fields)

    def add_field(self) -> None:
        self.fields.append(AttributeField())

    def remove_field(self, index: int) -> None:
        del self.fields[index]

    def update_field(self, index: int, key: str | None = None, value: str | None = None) -> None:
        field = self.fields[index]
        if key is not None:
            field.key = key
        if value is not None:
            field.value = value

    def to_attributes(self) -> dict[str, str]:
        return {
            field.key.strip(): field.value
            for field in self.fields
            if field.key.strip()
        }


@dataclasses.dataclass
class PolygonDetail:
    """Read-only view of a selected polygon with a two-step delete."""

    feature: dict[str, Any]
    confirm_delete: bool = False
    deleting: bool = False

    @property
    def polygon_id(self) -> str:
        return str(self.feature.get("id"))

    @property
    def created_at(self) -> Any:
        return (self.feature.get("properties") or {}).get("created_at")

    @property
    def attributes(self) -> dict[str, Any]:
        properties = self.feature.get("properties") or {}
        return {
            key: value
            for key, value in properties.items()
            if key not in RESERVED_PROPERTIES
        }

    def request_delete(self) -> None:
        self.confirm_delete = True

    def abort_delete(self) -> None:
        self.confirm_delete = False
