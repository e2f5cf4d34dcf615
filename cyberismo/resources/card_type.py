"""
Card type resource.

Custom fields reference field types; the visible-field lists reference
custom fields. Changes to `customFields` cascade into the visible lists and
into every card of this type. Changing the workflow moves cards through the
operation's state mapping.
"""

from __future__ import annotations

import logging
from typing import Any

from .. import defaults
from ..errors import InvalidOperationError, ReferenceNotFoundError, WorkflowNotFoundError
from ..operations import (
    AddOperation,
    ChangeOperation,
    Operation,
    RemoveOperation,
    apply_array_operation,
)
from .base import ResourceObject

logger = logging.getLogger(__name__)

VISIBLE_FIELD_KEYS = ("alwaysVisibleFields", "optionallyVisibleFields")


def _field_name(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("name")
    if isinstance(value, str):
        return value
    return None


class CardTypeResource(ResourceObject):
    resource_type = "cardTypes"

    def default_content(self) -> dict[str, Any]:
        raise InvalidOperationError("Card types need a workflow; use create_card_type()")

    def create_card_type(self, workflow_name: str) -> dict[str, Any]:
        """
        Create a card type that uses `workflow_name`.

        Raises:
            WorkflowNotFoundError: the workflow does not exist
        """
        workflow = str(self.project.resource_name(workflow_name))
        if not self.project.resource_exists(workflow, "workflows"):
            raise WorkflowNotFoundError(f"Workflow '{workflow}' does not exist in the project")
        return self.create(defaults.card_type(str(self.name), workflow))

    def field_names(self, content: dict[str, Any] | None = None) -> list[str]:
        content = content if content is not None else (self.data or {})
        return [f["name"] for f in content.get("customFields", [])]

    def content_errors(self, content: dict[str, Any]) -> list[str]:
        errors = []
        workflow = content.get("workflow")
        if workflow and not self.project.resource_exists(workflow, "workflows"):
            errors.append(f"workflow: Workflow '{workflow}' does not exist in the project")
        names = self.field_names(content)
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            errors.append(f"customFields: duplicate custom fields {duplicates}")
        fields = set(names)
        for name in sorted(fields):
            if not self.project.resource_exists(name, "fieldTypes"):
                errors.append(f"customFields: Field type '{name}' does not exist in the project")
        for key in VISIBLE_FIELD_KEYS:
            for name in content.get(key, []):
                if name not in fields:
                    errors.append(f"{key}: '{name}' is not a custom field of the card type")
        return errors

    def cards(self, include_content: bool = False) -> list:
        return self.project.cards_of_type(str(self.name), include_content=include_content)

    # ========================================================================
    # Update hooks
    # ========================================================================

    def before_update(self, key: str, operation: Operation) -> None:
        if key == "workflow" and isinstance(operation, ChangeOperation):
            workflow = str(operation.to)
            if not self.project.resource_exists(workflow, "workflows"):
                raise WorkflowNotFoundError(f"Workflow '{workflow}' does not exist in the project")
            if operation.state_mapping:
                self.verify_state_mapping(operation.state_mapping, workflow)
            return

        if key == "customFields" and isinstance(operation, (AddOperation, ChangeOperation)):
            new_field = operation.target if isinstance(operation, AddOperation) else operation.to
            name = _field_name(new_field)
            if not isinstance(new_field, dict) or not name:
                raise InvalidOperationError("Custom field must be an object with a 'name'")
            if not self.project.resource_exists(name, "fieldTypes"):
                raise ReferenceNotFoundError(f"Field type '{name}' does not exist in the project")
            existing = self.field_names()
            replaced = _field_name(operation.target) if isinstance(operation, ChangeOperation) else None
            if name in existing and name != replaced:
                raise InvalidOperationError(f"Field type '{name}' is already in '{self.name}'")
            return

        if key in VISIBLE_FIELD_KEYS and isinstance(operation, (AddOperation, ChangeOperation)):
            name = operation.target if isinstance(operation, AddOperation) else operation.to
            if name not in self.field_names():
                raise ReferenceNotFoundError(
                    f"Field type '{name}' is not defined in card type '{self.name}'"
                )

    def verify_state_mapping(self, mapping: dict[str, str], new_workflow: str) -> None:
        """
        Check a workflow change's state mapping before anything is written.

        Every state of the current workflow must be mapped, and every target
        must be a state of the new workflow.

        Raises:
            InvalidOperationError: unmapped source states or unknown target states
        """
        current = (self.data or {}).get("workflow") or ""
        current_states = [s["name"] for s in (self.project.resource_data(current) or {}).get("states", [])]
        unmapped = [s for s in current_states if s not in mapping]
        if unmapped:
            raise InvalidOperationError(
                f"State mapping does not cover states of '{current}': {', '.join(unmapped)}"
            )
        new_states = {s["name"] for s in (self.project.resource_data(new_workflow) or {}).get("states", [])}
        unknown = [s for s in mapping.values() if s not in new_states]
        if unknown:
            raise InvalidOperationError(
                f"State mapping targets are not states of '{new_workflow}': {', '.join(unknown)}"
            )

    def update_document(self, candidate: dict[str, Any], key: str, operation: Operation) -> None:
        if key != "customFields":
            return
        if isinstance(operation, RemoveOperation):
            removed = _field_name(operation.target)
            for visible_key in VISIBLE_FIELD_KEYS:
                candidate[visible_key] = [n for n in candidate.get(visible_key, []) if n != removed]
        elif isinstance(operation, ChangeOperation):
            old, new = _field_name(operation.target), _field_name(operation.to)
            if old != new:
                for visible_key in VISIBLE_FIELD_KEYS:
                    candidate[visible_key] = apply_array_operation(
                        candidate.get(visible_key, []),
                        ChangeOperation(target=old, to=new),
                        strict=False,
                    )

    def after_update(self, key: str, operation: Operation, previous: dict[str, Any]) -> None:
        if key == "customFields":
            self._cascade_custom_fields(operation)
        elif key == "workflow" and isinstance(operation, ChangeOperation):
            self._cascade_workflow_change(operation)

    def _cascade_custom_fields(self, operation: Operation) -> None:
        if isinstance(operation, AddOperation):
            field = operation.target
            if field.get("isCalculated", False):
                return
            name = field["name"]
            self.update_cards(
                self.cards(),
                lambda metadata: None if name in metadata else ({name: None}, ()),
            )
        elif isinstance(operation, RemoveOperation):
            name = _field_name(operation.target)
            self.update_cards(
                self.cards(),
                lambda metadata: ({}, (name,)) if name in metadata else None,
            )
        elif isinstance(operation, ChangeOperation):
            old, new = _field_name(operation.target), _field_name(operation.to)
            if old == new:
                return
            self.update_cards(
                self.cards(),
                lambda metadata: ({new: metadata[old]}, (old,)) if old in metadata else None,
            )

    def _cascade_workflow_change(self, operation: ChangeOperation) -> None:
        workflow = self.project.resource_data(str(operation.to)) or {}
        valid_states = {s["name"] for s in workflow.get("states", [])}
        mapping = operation.state_mapping

        def move(metadata: dict[str, Any]):
            state = metadata.get("workflowState")
            if state in mapping:
                return {"workflowState": mapping[state]}, ()
            if state not in valid_states:
                logger.warning(
                    "Card state '%s' is not in workflow '%s' and has no mapping", state, operation.to
                )
            return None

        self.update_cards(self.cards(), move)

    # ========================================================================
    # Rename and usage
    # ========================================================================

    def on_name_change(self, old: str, new: str) -> None:
        super().on_name_change(old, new)
        self.update_cards(
            self.project.cards_of_type(old),
            lambda metadata: ({"cardType": new}, ()),
        )
        for link_type in self.project.local_resources("linkTypes"):
            for key in ("sourceCardTypes", "destinationCardTypes"):
                if link_type.data and old in link_type.data.get(key, []):
                    self._best_effort(
                        f"link type {link_type.name}",
                        link_type.update,
                        key,
                        ChangeOperation(target=old, to=new),
                    )

    def resource_references(self) -> list[str]:
        name = str(self.name)
        references = []
        for link_type in self.project.resources("linkTypes"):
            data = self.project.resource_data(link_type) or {}
            if name in data.get("sourceCardTypes", []) or name in data.get("destinationCardTypes", []):
                references.append(link_type)
        return references

    def card_references(self, cards: list) -> list[str]:
        name = str(self.name)
        of_type = [c.key for c in cards if c.metadata and c.metadata.get("cardType") == name]
        return sorted(set(of_type) | set(super().card_references(cards)))
