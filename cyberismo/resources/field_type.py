"""
Field type resource.

Changing `dataType` converts every card value of this field; renaming the
field type renames the custom field in every card type that uses it.
"""

from __future__ import annotations

import logging
from typing import Any

from .. import defaults
from ..errors import InvalidOperationError
from ..operations import ChangeOperation, Operation
from ..schemas import DATA_TYPES
from ..values import conversion_allowed, convert_value
from .base import ResourceObject

logger = logging.getLogger(__name__)

ENUM_DATA_TYPES = ("enum", "list")


def field_data_types() -> list[str]:
    return list(DATA_TYPES)


class FieldTypeResource(ResourceObject):
    resource_type = "fieldTypes"

    def default_content(self) -> dict[str, Any]:
        return defaults.field_type(str(self.name), "shortText")

    def create_field_type(self, data_type: str) -> dict[str, Any]:
        """
        Create a field type with the given data type.

        Raises:
            InvalidOperationError: unsupported data type
        """
        if data_type not in DATA_TYPES:
            raise InvalidOperationError(
                f"Field type '{data_type}' not supported. Supported types {', '.join(DATA_TYPES)}"
            )
        return self.create(defaults.field_type(str(self.name), data_type))

    def content_errors(self, content: dict[str, Any]) -> list[str]:
        values = [v["enumValue"] for v in content.get("enumValues", [])]
        duplicates = sorted({v for v in values if values.count(v) > 1})
        if duplicates:
            return [f"enumValues: duplicate enum values {duplicates}"]
        return []

    def cards_with_value(self, include_content: bool = False) -> list:
        name = str(self.name)
        return [
            c
            for c in self.project.all_cards(include_content=include_content)
            if c.metadata and name in c.metadata
        ]

    # ========================================================================
    # Update hooks
    # ========================================================================

    def before_update(self, key: str, operation: Operation) -> None:
        if key != "dataType" or not isinstance(operation, ChangeOperation):
            return
        current = (self.data or {}).get("dataType")
        new = operation.to
        if new not in DATA_TYPES:
            raise InvalidOperationError(
                f"Field type '{new}' not supported. Supported types {', '.join(DATA_TYPES)}"
            )
        if not conversion_allowed(current, new):
            raise InvalidOperationError(f"Cannot change data type from '{current}' to '{new}'")

    def update_document(self, candidate: dict[str, Any], key: str, operation: Operation) -> None:
        if key != "dataType":
            return
        if candidate["dataType"] in ENUM_DATA_TYPES:
            candidate.setdefault("enumValues", [])

    def after_update(self, key: str, operation: Operation, previous: dict[str, Any]) -> None:
        if key != "dataType":
            return
        from_type = previous.get("dataType")
        to_type = self.data["dataType"]
        if from_type == to_type:
            return
        name = str(self.name)

        def convert(metadata: dict[str, Any]):
            value = metadata.get(name)
            if value is None:
                return None
            converted = convert_value(value, from_type, to_type)
            if converted is None:
                logger.warning(
                    "Value %r of '%s' cannot be converted from %s to %s; cleared",
                    value,
                    name,
                    from_type,
                    to_type,
                )
            return {name: converted}, ()

        updated = self.update_cards(self.cards_with_value(), convert)
        logger.info("Converted %d card values of %s from %s to %s", updated, name, from_type, to_type)

    # ========================================================================
    # Rename and usage
    # ========================================================================

    def on_name_change(self, old: str, new: str) -> None:
        super().on_name_change(old, new)
        for card_type in self.project.local_resources("cardTypes"):
            for custom_field in (card_type.data or {}).get("customFields", []):
                if custom_field.get("name") == old:
                    self._best_effort(
                        f"card type {card_type.name}",
                        card_type.update,
                        "customFields",
                        ChangeOperation(target=custom_field, to={**custom_field, "name": new}),
                    )

    def card_types_using(self) -> list[str]:
        name = str(self.name)
        result = []
        for card_type in self.project.resources("cardTypes"):
            data = self.project.resource_data(card_type) or {}
            if any(f.get("name") == name for f in data.get("customFields", [])):
                result.append(card_type)
        return result

    def resource_references(self) -> list[str]:
        return self.card_types_using()

    def card_references(self, cards: list) -> list[str]:
        name = str(self.name)
        with_value = [c.key for c in cards if c.metadata and c.metadata.get(name) is not None]
        return sorted(set(with_value) | set(super().card_references(cards)))
