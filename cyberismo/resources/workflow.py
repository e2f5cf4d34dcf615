"""
Workflow resource.

Renaming a state rewrites the workflow's own transitions and moves every
card in that state (cards whose card type uses this workflow) to the new
name. Removing a state that transitions or cards still use is rejected
unless a replacement state is given.
"""

from __future__ import annotations

import logging
from typing import Any

from .. import defaults
from ..errors import InvalidOperationError
from ..operations import ChangeOperation, Operation, RemoveOperation
from .base import ResourceObject

logger = logging.getLogger(__name__)

WILDCARD_STATE = "*"
CREATION_STATE = ""


def _state_name(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("name")
    if isinstance(value, str):
        return value
    return None


def _rewrite_transitions(transitions: list[dict[str, Any]], old: str, new: str) -> list[dict[str, Any]]:
    result = []
    for transition in transitions:
        transition = dict(transition)
        from_states: list[str] = []
        for state in transition.get("fromState", []):
            state = new if state == old else state
            if state not in from_states:
                from_states.append(state)
        transition["fromState"] = from_states
        if transition.get("toState") == old:
            transition["toState"] = new
        result.append(transition)
    return result


class WorkflowResource(ResourceObject):
    resource_type = "workflows"

    def default_content(self) -> dict[str, Any]:
        return defaults.workflow(str(self.name))

    def create_workflow(self) -> dict[str, Any]:
        return self.create()

    def state_names(self, content: dict[str, Any] | None = None) -> list[str]:
        content = content if content is not None else (self.data or {})
        return [s["name"] for s in content.get("states", [])]

    def content_errors(self, content: dict[str, Any]) -> list[str]:
        errors = []
        names = self.state_names(content)
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            errors.append(f"states: duplicate state names {duplicates}")
        known = set(names)
        for transition in content.get("transitions", []):
            for state in transition.get("fromState", []):
                if state not in known and state not in (WILDCARD_STATE, CREATION_STATE):
                    errors.append(
                        f"transitions: '{transition['name']}' starts from unknown state '{state}'"
                    )
            if transition.get("toState") not in known:
                errors.append(
                    f"transitions: '{transition['name']}' leads to unknown state '{transition.get('toState')}'"
                )
        return errors

    # ========================================================================
    # Cards using this workflow
    # ========================================================================

    def card_types_using(self) -> list[str]:
        name = str(self.name)
        result = []
        for card_type in self.project.resources("cardTypes"):
            data = self.project.resource_data(card_type)
            if data and data.get("workflow") == name:
                result.append(card_type)
        return result

    def cards_in_state(self, state: str) -> list:
        card_types = set(self.card_types_using())
        return [
            c
            for c in self.project.all_cards()
            if c.metadata
            and c.metadata.get("cardType") in card_types
            and c.metadata.get("workflowState") == state
        ]

    # ========================================================================
    # Update hooks
    # ========================================================================

    def before_update(self, key: str, operation: Operation) -> None:
        if key != "states" or not isinstance(operation, RemoveOperation):
            return
        state = _state_name(operation.target)
        if state is None:
            return
        if operation.replacement_value is not None:
            replacement = _state_name(operation.replacement_value)
            remaining = [s for s in self.state_names() if s != state]
            if replacement not in remaining:
                raise InvalidOperationError(
                    f"Replacement state '{replacement}' is not a state of '{self.name}'"
                )
            return
        using_transitions = [
            t["name"]
            for t in (self.data or {}).get("transitions", [])
            if state in t.get("fromState", []) or t.get("toState") == state
        ]
        using_cards = [c.key for c in self.cards_in_state(state)]
        if using_transitions or using_cards:
            raise InvalidOperationError(
                f"Cannot remove state '{state}' from '{self.name}'. "
                f"It is used by transitions {using_transitions} and cards {using_cards}"
            )

    def update_document(self, candidate: dict[str, Any], key: str, operation: Operation) -> None:
        if key != "states":
            return
        old, new = self._state_change(operation)
        if old is not None and new is not None and old != new:
            candidate["transitions"] = _rewrite_transitions(candidate.get("transitions", []), old, new)

    def after_update(self, key: str, operation: Operation, previous: dict[str, Any]) -> None:
        if key != "states":
            return
        old, new = self._state_change(operation)
        if old is None or new is None or old == new:
            return
        cards = self.cards_in_state(old)
        updated = self.update_cards(cards, lambda metadata: ({"workflowState": new}, ()))
        logger.info("Moved %d cards from state '%s' to '%s' in %s", updated, old, new, self.name)

    @staticmethod
    def _state_change(operation: Operation) -> tuple[str | None, str | None]:
        if isinstance(operation, ChangeOperation):
            return _state_name(operation.target), _state_name(operation.to)
        if isinstance(operation, RemoveOperation) and operation.replacement_value is not None:
            return _state_name(operation.target), _state_name(operation.replacement_value)
        return None, None

    # ========================================================================
    # Rename and usage
    # ========================================================================

    def on_name_change(self, old: str, new: str) -> None:
        super().on_name_change(old, new)
        for card_type in self.project.local_resources("cardTypes"):
            if card_type.data and card_type.data.get("workflow") == old:
                self._best_effort(
                    f"card type {card_type.name}",
                    card_type.update,
                    "workflow",
                    ChangeOperation(target=old, to=new),
                )

    def resource_references(self) -> list[str]:
        return self.card_types_using()
